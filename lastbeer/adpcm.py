import numpy as np


class CreativeAdpcmDecoder:
    """
    4-bit ADPCM decoder for Eichhof Lastbeer .SND samples.

    A variant of Creative's 8-bit -> 4-bit ADPCM: byte 0 is a raw unsigned
    8-bit seed sample, every following byte holds two codes (high nibble first).
    Each code is sign (bit 3) + magnitude (bits 0-2), scaled by a shift that
    adapts between 0 and 3.
    Reference: https://wiki.multimedia.cx/index.php?title=Creative_8_bits_ADPCM
    """

    LIMIT = 5
    MAX_STEP = 3

    def __init__(self):
        self.predictor = 0x80
        self.step = 0

    def decode(self, data):
        """
        Decodes a bytes-like ADPCM block into a list of unsigned 8-bit samples.

        State is reset from the block's own seed byte on every call; nothing
        carries over between blocks. N input bytes give 2N - 1 samples.
        """
        data = np.frombuffer(bytes(data), dtype=np.uint8)
        self.step = 0

        if len(data) == 0:
            # no seed byte at all, emit a single silent sample
            self.predictor = 0x80
            return [self.predictor]

        self.predictor = int(data[0])
        samples = [self.predictor]

        # High Nibble First
        codes = np.empty((len(data) - 1) * 2, dtype=np.uint8)
        codes[0::2] = data[1:] >> 4
        codes[1::2] = data[1:] & 0x0F

        for nibble in codes.tolist():
            self._decode_nibble(nibble, samples)

        return samples

    def _decode_nibble(self, nibble, samples):
        sign = -1 if nibble & 0x08 else 1
        value = nibble & 0x07

        self.predictor += sign * (value << self.step)
        if self.predictor > 0xFF: self.predictor = 0xFF
        elif self.predictor < 0: self.predictor = 0

        samples.append(self.predictor)

        if value >= self.LIMIT:
            self.step = min(self.step + 1, self.MAX_STEP)
        elif value == 0:
            self.step = max(self.step - 1, 0)


def decode_adpcm(data):
    """Decodes one ADPCM block to unsigned 8-bit PCM bytes."""
    samples = CreativeAdpcmDecoder().decode(data)
    return np.array(samples, dtype=np.uint8).tobytes()


def adpcm_output_length(n):
    return 2 * n - 1 if n >= 1 else 1
