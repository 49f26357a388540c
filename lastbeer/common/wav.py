"""
Minimal RIFF/WAVE writer for mono 8-bit unsigned PCM.

The container is always the canonical 44-byte header + raw sample data:

    RIFF <len(pcm) + 36> WAVE
    fmt  <16> tag=1 channels=1 rate byte_rate=rate align=1 bits=8
    data <len(pcm)> ...

No pad byte follows an odd-sized data chunk; the RIFF size is exactly
len(pcm) + 36.
"""

import struct

WAVE_FORMAT_PCM = 1
WAV_HEADER_SIZE = 44


def pu16(v):  return struct.pack('<H', v)
def pu32(v):  return struct.pack('<I', v)

def fourcc(s):
    return s.encode('ascii')[:4].ljust(4, b'\x00')

def riff_chunk(tag, data):
    """4-byte tag + 4-byte LE size + data."""
    return fourcc(tag) + pu32(len(data)) + data


def fmt_chunk(sample_rate, channels=1, bits=8):
    block_align = channels * bits // 8
    return riff_chunk('fmt ',
                      pu16(WAVE_FORMAT_PCM) + pu16(channels) + pu32(sample_rate)
                      + pu32(sample_rate * block_align) + pu16(block_align)
                      + pu16(bits))


def encode_wav(pcm, sample_rate):
    """Wraps unsigned 8-bit mono PCM in a WAV container. Returns bytes."""
    if not 0 <= sample_rate <= 0xFFFFFFFF:
        raise ValueError(f"Sample rate {sample_rate} does not fit in 32 bits")
    pcm = bytes(pcm)
    body = b'WAVE' + fmt_chunk(sample_rate) + riff_chunk('data', pcm)
    return riff_chunk('RIFF', body)


def write_wav(f, pcm, sample_rate):
    """Writes the container to binary file object ``f``. Returns bytes written."""
    data = encode_wav(pcm, sample_rate)
    f.write(data)
    return len(data)
