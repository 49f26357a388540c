import struct

from lastbeer.common.errors import TruncatedSampleError


def read_u16_le(data, offset=0):
    return struct.unpack_from('<H', data, offset)[0]

def read_u32_le(data, offset=0):
    return struct.unpack_from('<I', data, offset)[0]


class ByteReader:
    """
    Little-endian cursor over an immutable byte buffer.

    Every read checks the remaining length first and raises ``error``
    (TruncatedSampleError unless told otherwise) instead of running off the end.
    """

    def __init__(self, data, offset=0, error=TruncatedSampleError):
        self.data = memoryview(bytes(data))
        self.offset = offset
        self.error = error

    @property
    def remaining(self):
        return len(self.data) - self.offset

    def _need(self, size, what):
        if size > self.remaining:
            raise self.error(
                f"{what}: need {size} bytes at offset {self.offset}, "
                f"only {max(self.remaining, 0)} left"
            )

    def u16(self, what='u16'):
        self._need(2, what)
        val = read_u16_le(self.data, self.offset)
        self.offset += 2
        return val

    def u32(self, what='u32'):
        self._need(4, what)
        val = read_u32_le(self.data, self.offset)
        self.offset += 4
        return val

    def unpack(self, fmt, what='record'):
        size = struct.calcsize(fmt)
        self._need(size, what)
        vals = struct.unpack_from(fmt, self.data, self.offset)
        self.offset += size
        return vals

    def read(self, size, what='data'):
        self._need(size, what)
        chunk = self.data[self.offset:self.offset + size].tobytes()
        self.offset += size
        return chunk

    def skip(self, size, what='data'):
        self._need(size, what)
        self.offset += size
