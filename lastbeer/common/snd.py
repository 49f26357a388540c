"""
Eichhof Lastbeer .SND sample container.

Single-sample files (TEST.SND, ...) hold one record starting at byte 0.
LEVEL*.SND files hold several, behind a short prologue:

    u16                 sample_count
    sample_count x u32  per-sample table (meaning unknown, skipped)

Each record:

    u16  priority   (unused)
    u16  rate_code  (sample rate in kHz)
    u16  flags      (bit 0 set -> 4-bit ADPCM, else unsigned 8-bit PCM)
    u32  data_size
    data_size bytes of sample data
"""

from fnmatch import fnmatchcase
from pathlib import PurePath
from typing import NamedTuple

from lastbeer.adpcm import decode_adpcm
from lastbeer.common.byteio import ByteReader

SND_EXT = '.SND'
WAV_EXT = '.WAV'
MULTI_PATTERN = 'LEVEL*'

SINGLE = 'single'
MULTI = 'multi'

RECORD_HEADER_FORMAT = '<HHHI'
FLAG_ADPCM = 0x01


class SampleRecord(NamedTuple):
    priority: int
    rate_code: int
    flags: int
    data: bytes

    @property
    def sample_rate(self):
        return self.rate_code * 1000

    @property
    def is_adpcm(self):
        return bool(self.flags & FLAG_ADPCM)


class DecodedSample(NamedTuple):
    sample_rate: int
    pcm: bytes
    channels: int = 1
    bits: int = 8


def is_sound_entry(name):
    # Case-sensitive, as in the game's own file table
    return PurePath(name).suffix == SND_EXT


def classify(name):
    return MULTI if fnmatchcase(name, MULTI_PATTERN) else SINGLE


def parse_sample_record(buffer, cursor=0):
    """
    Reads one sample record starting at ``cursor``.

    Returns (record, next_cursor). Raises TruncatedSampleError when the header
    or the declared payload runs past the end of ``buffer``.
    """
    reader = buffer if isinstance(buffer, ByteReader) else ByteReader(buffer)
    reader.offset = cursor
    priority, rate_code, flags, data_size = reader.unpack(
        RECORD_HEADER_FORMAT, 'sample record header')
    data = reader.read(data_size, f'sample data ({data_size} bytes declared)')
    return SampleRecord(priority, rate_code, flags, data), reader.offset


def parse_sound_block(name, data):
    """Splits an extracted .SND payload into its sample records."""
    reader = ByteReader(data)

    if classify(name) == MULTI:
        count = reader.u16('sample count')
        reader.skip(count * 4, f'per-sample table ({count} entries)')
    else:
        count = 1

    records = []
    cursor = reader.offset
    for _ in range(count):
        record, cursor = parse_sample_record(reader, cursor)
        records.append(record)
    return records


def sample_output_names(name, count):
    stem = PurePath(name).stem
    if count > 1:
        return [f'{stem}_{i:02d}{WAV_EXT}' for i in range(count)]
    return [f'{stem}{WAV_EXT}'] * count


def decode_sample(record):
    if record.is_adpcm:
        pcm = decode_adpcm(record.data)
    else:
        # already unsigned 8-bit, what WAV expects
        pcm = bytes(record.data)
    return DecodedSample(record.sample_rate, pcm)
