"""
Error types raised while unpacking BEER.DAT.

IO problems (cannot open, short reads, payload outside the file) derive from
OSError, malformed data from ValueError, so callers can catch either the
specific class or the builtin family.
"""


class BeerDatError(Exception):
    """Base class for every archive/sound decoding failure."""


class ArchiveIOError(BeerDatError, OSError):
    """Source could not be opened, read or seeked."""


class OutOfRangeError(ArchiveIOError):
    """Entry payload lies (partly) outside the source."""


class FormatError(BeerDatError, ValueError):
    """Bytes do not follow the BEER.DAT / SND layout."""


class BadMagicError(FormatError):
    pass


class TruncatedDirectoryError(FormatError):
    pass


class TruncatedSampleError(FormatError):
    pass
