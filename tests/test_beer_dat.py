import io
import struct

import pytest

from lastbeer.common.beer_dat import (
    ENTRY_SIZE,
    HEADER_SIZE,
    MAGIC,
    ArchiveHeader,
    BeerDatReader,
    DirectoryEntry,
    open_archive,
)
from lastbeer.common.errors import (
    ArchiveIOError,
    BadMagicError,
    FormatError,
    OutOfRangeError,
    TruncatedDirectoryError,
)


def test_layout_sizes():
    assert len(MAGIC) == 28
    assert HEADER_SIZE == 34
    assert ENTRY_SIZE == 24


def test_read_header_keeps_reserved_fields(archive_stream):
    reader = BeerDatReader(archive_stream([('A.BIN', b'x', 0)], reserved=(7, 0xFFFF)))
    reader.verify_magic()
    assert reader.read_header() == ArchiveHeader(7, 0xFFFF, 1)


@pytest.mark.parametrize('pos', [0, 13, 27])
def test_bad_magic_any_byte(make_archive, pos):
    raw = bytearray(make_archive([('A.BIN', b'abc', 0)]))
    raw[pos] ^= 0x20
    reader = BeerDatReader(io.BytesIO(bytes(raw)))
    with pytest.raises(BadMagicError):
        reader.verify_magic()


@pytest.mark.parametrize('raw', [b'', b'ALPHA-HELIX', b'\x00' * 100])
def test_bad_magic_short_or_garbage(raw):
    with pytest.raises(BadMagicError):
        BeerDatReader(io.BytesIO(raw)).verify_magic()


def test_entries_reject_bad_magic_lazily():
    reader = BeerDatReader(io.BytesIO(b'ALPHA-HELIX COMBINER VER 3.2' + b'\x00' * 6))
    with pytest.raises(FormatError):
        list(reader.entries())


def test_short_header_is_io_error():
    reader = BeerDatReader(io.BytesIO(MAGIC + b'\x01\x00'))
    reader.verify_magic()
    with pytest.raises(ArchiveIOError) as exc:
        reader.read_header()
    assert not isinstance(exc.value, FormatError)


@pytest.mark.parametrize('count', [0, 1, 5])
def test_entries_count_and_roundtrip(make_archive, entry_bytes, count):
    items = [(f'FILE{i}.BIN', bytes([i]) * (i + 1), i * 3) for i in range(count)]
    raw = make_archive(items)
    reader = BeerDatReader(io.BytesIO(raw))
    entries = reader.list_entries()

    assert len(entries) == count
    table = raw[HEADER_SIZE:HEADER_SIZE + count * ENTRY_SIZE]
    repacked = b''.join(entry_bytes(e.name, e.size, e.flags, e.offset) for e in entries)
    assert repacked == table


def test_entries_restartable(archive_stream, sample_items):
    reader = BeerDatReader(archive_stream(sample_items))
    first = list(reader.entries())
    assert list(reader.entries()) == first
    assert [e.name for e in first] == ['README.TXT', 'TEST.SND', 'LEVEL1.SND']


def test_name_trimmed_at_first_nul(make_archive):
    raw = bytearray(make_archive([('X', b'', 0)]))
    raw[HEADER_SIZE:HEADER_SIZE + 14] = b'LEVEL2.SND\x00ab'.ljust(14, b'\x00')
    entry = BeerDatReader(io.BytesIO(bytes(raw))).list_entries()[0]
    assert entry.name == 'LEVEL2.SND'


def test_full_width_name(archive_stream):
    entry = BeerDatReader(archive_stream([('ABCDEFGHIJ.SND', b'', 0)])).list_entries()[0]
    assert entry.name == 'ABCDEFGHIJ.SND'


def test_truncated_directory(make_archive):
    raw = make_archive([('A.BIN', b'', 0), ('B.BIN', b'', 0)])
    raw = raw[:32] + struct.pack('<H', 3) + raw[34:HEADER_SIZE + 2 * ENTRY_SIZE]
    reader = BeerDatReader(io.BytesIO(raw))
    with pytest.raises(TruncatedDirectoryError):
        list(reader.entries())


def test_extract_offset_independent_of_table_order(archive_stream):
    items = [('ONE.BIN', b'1111', 0), ('TWO.BIN', b'22', 0), ('THREE.BIN', b'333333', 0)]
    reader = BeerDatReader(archive_stream(items, reverse_payloads=True))
    entries = reader.list_entries()

    assert entries[0].offset > entries[1].offset > entries[2].offset
    assert [reader.extract(e) for e in entries] == [b'1111', b'22', b'333333']


def test_extract_keeps_file_position(archive_stream, sample_items):
    reader = BeerDatReader(archive_stream(sample_items))
    entries = reader.list_entries()
    reader.f.seek(5)
    reader.extract(entries[2])
    assert reader.f.tell() == 5


def test_extract_interleaved_with_scan(archive_stream, sample_items):
    reader = BeerDatReader(archive_stream(sample_items, reverse_payloads=True))
    got = {e.name: reader.extract(e) for e in reader.entries()}
    assert got == {name: payload for name, payload, _ in sample_items}


def test_extract_out_of_range(archive_stream):
    reader = BeerDatReader(archive_stream([('A.BIN', b'abc', 0)]))
    bogus = DirectoryEntry('A.BIN', 10, 0, reader.size - 3)
    with pytest.raises(OutOfRangeError) as exc:
        reader.extract(bogus)
    assert isinstance(exc.value, OSError)


def test_extract_empty_entry_at_end(archive_stream):
    reader = BeerDatReader(archive_stream([('EMPTY', b'', 0)]))
    entry = reader.list_entries()[0]
    assert entry.offset == reader.size
    assert reader.extract(entry) == b''


def test_open_archive_missing(tmp_path):
    with pytest.raises(ArchiveIOError):
        open_archive(tmp_path / 'BEER.DAT')


def test_open_archive_owns_file(tmp_path, make_archive, sample_items):
    path = tmp_path / 'BEER.DAT'
    path.write_bytes(make_archive(sample_items))
    with open_archive(path) as reader:
        assert len(reader.list_entries()) == 3
        f = reader.f
    assert f.closed


def test_reader_does_not_close_foreign_stream(archive_stream, sample_items):
    stream = archive_stream(sample_items)
    with BeerDatReader(stream) as reader:
        reader.list_entries()
    assert not stream.closed
