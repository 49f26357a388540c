"""
BEER.DAT archive reader (Eichhof Lastbeer).

Layout, little-endian throughout:

    0x00  28s   magic "ALPHA-HELIX COMBINER VER 3.3"
    0x1C  u16   reserved_a (unknown, kept as-is)
    0x1E  u16   reserved_b (unknown, kept as-is)
    0x20  u16   item_count
    0x22        item_count x directory entry, 24 bytes each:
                  14s  name (NUL padded ASCII)
                  u32  size
                  u16  flags (unknown)
                  u32  offset (absolute file position of the payload)

Payload offsets are absolute and unrelated to the table order, so every
extract is a positioned read.
"""

import io
import os
import struct
from typing import NamedTuple

from lastbeer.common.errors import (
    ArchiveIOError,
    BadMagicError,
    OutOfRangeError,
    TruncatedDirectoryError,
)

MAGIC = b'ALPHA-HELIX COMBINER VER 3.3'
HEADER_FORMAT = '<HHH'
ENTRY_FORMAT = '<14sIHI'
HEADER_SIZE = len(MAGIC) + struct.calcsize(HEADER_FORMAT)  # 34
ENTRY_SIZE = struct.calcsize(ENTRY_FORMAT)  # 24


class ArchiveHeader(NamedTuple):
    reserved_a: int
    reserved_b: int
    item_count: int


class DirectoryEntry(NamedTuple):
    """One table-of-contents record."""
    name: str
    size: int
    flags: int
    offset: int


def decode_name(raw):
    """Entry name: ASCII, cut at the first NUL."""
    return raw.split(b'\x00', 1)[0].decode('ascii', errors='replace')


class BeerDatReader:
    """
    Reads the directory of a BEER.DAT archive and extracts entries from it.

    ``f`` is any readable, seekable binary file object. Use open_archive() to
    open one from a path; the reader then owns the handle and close() closes it.
    """

    def __init__(self, f, name=None):
        self.f = f
        self.name = name or getattr(f, 'name', '<stream>')
        self.header = None
        self._owns_file = False
        try:
            self.f.seek(0, io.SEEK_END)
            self.size = self.f.tell()
            self.f.seek(0)
        except (OSError, ValueError) as e:
            raise ArchiveIOError(f"Cannot seek in {self.name}: {e}") from e

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def _seek(self, pos):
        try:
            self.f.seek(pos)
        except (OSError, ValueError) as e:
            raise ArchiveIOError(f"Seek to {pos:#x} in {self.name} failed: {e}") from e

    def _read_at(self, pos, size):
        self._seek(pos)
        try:
            return self.f.read(size)
        except (OSError, ValueError) as e:
            raise ArchiveIOError(f"Read of {size} bytes at {pos:#x} failed: {e}") from e

    def verify_magic(self):
        magic = self._read_at(0, len(MAGIC))
        if magic != MAGIC:
            raise BadMagicError(f"Not a BEER.DAT? Wrong type ID string {magic!r}")

    def read_header(self):
        raw = self._read_at(len(MAGIC), struct.calcsize(HEADER_FORMAT))
        if len(raw) != struct.calcsize(HEADER_FORMAT):
            raise ArchiveIOError(
                f"Short read in archive header: got {len(raw)} of "
                f"{struct.calcsize(HEADER_FORMAT)} bytes"
            )
        self.header = ArchiveHeader(*struct.unpack(HEADER_FORMAT, raw))
        return self.header

    def entries(self):
        """
        Yields a DirectoryEntry per declared item, in table order.

        Every call rescans the table from the file, so the sequence can be
        iterated again. The header is read on first use.
        """
        if self.header is None:
            self.verify_magic()
            self.read_header()

        count = self.header.item_count
        table = self._read_at(HEADER_SIZE, count * ENTRY_SIZE)
        if len(table) < count * ENTRY_SIZE:
            raise TruncatedDirectoryError(
                f"Directory declares {count} items ({count * ENTRY_SIZE} bytes) "
                f"but only {len(table)} bytes follow the header"
            )

        for raw_name, size, flags, offset in struct.iter_unpack(ENTRY_FORMAT, table):
            yield DirectoryEntry(decode_name(raw_name), size, flags, offset)

    def list_entries(self):
        return list(self.entries())

    def extract(self, entry):
        """Reads the entry payload without moving the directory scan position."""
        if entry.offset + entry.size > self.size:
            raise OutOfRangeError(
                f"{entry.name}: payload {entry.offset:#x}+{entry.size} lies beyond "
                f"end of archive ({self.size} bytes)"
            )
        try:
            pos = self.f.tell()
        except (OSError, ValueError) as e:
            raise ArchiveIOError(f"Cannot tell position in {self.name}: {e}") from e
        try:
            data = self._read_at(entry.offset, entry.size)
        finally:
            self._seek(pos)
        if len(data) != entry.size:
            raise OutOfRangeError(
                f"{entry.name}: short read, got {len(data)} of {entry.size} bytes"
            )
        return data

    def close(self):
        if self._owns_file:
            self.f.close()


def open_archive(path):
    """Opens ``path`` for reading and wraps it in a BeerDatReader."""
    try:
        f = open(path, 'rb')
    except OSError as e:
        raise ArchiveIOError(f'Cannot open "{os.fspath(path)}": {e.strerror or e}') from e
    try:
        reader = BeerDatReader(f, name=os.fspath(path))
    except ArchiveIOError:
        f.close()
        raise
    reader._owns_file = True
    return reader
