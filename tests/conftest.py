import io
import struct

import pytest

from lastbeer.common.beer_dat import ENTRY_FORMAT, ENTRY_SIZE, HEADER_SIZE, MAGIC


def pack_entry(name, size, flags, offset):
    return struct.pack(ENTRY_FORMAT, name.encode('ascii'), size, flags, offset)


def build_archive(items, reserved=(0x0102, 0x0304), reverse_payloads=False):
    """
    items: list of (name, payload, flags).
    reverse_payloads stores the payloads in the opposite order of the table.
    """
    data_start = HEADER_SIZE + len(items) * ENTRY_SIZE
    order = list(range(len(items)))
    if reverse_payloads:
        order.reverse()

    offsets = {}
    blob = b''
    for i in order:
        offsets[i] = data_start + len(blob)
        blob += items[i][1]

    table = b''.join(pack_entry(name, len(payload), flags, offsets[i])
                     for i, (name, payload, flags) in enumerate(items))
    return MAGIC + struct.pack('<HHH', *reserved, len(items)) + table + blob


def pack_record(data, rate_code=11, flags=0, priority=0):
    return struct.pack('<HHHI', priority, rate_code, flags, len(data)) + bytes(data)


def pack_multi(records, table_fill=b'\xde\xad\xbe\xef'):
    return struct.pack('<H', len(records)) + table_fill * len(records) + b''.join(records)


@pytest.fixture
def make_archive():
    return build_archive


@pytest.fixture
def archive_stream():
    def _make(items, **kw):
        return io.BytesIO(build_archive(items, **kw))
    return _make


@pytest.fixture
def record():
    return pack_record


@pytest.fixture
def multi():
    return pack_multi


@pytest.fixture
def entry_bytes():
    return pack_entry


@pytest.fixture
def sample_items():
    """A small archive: a text file, a single ADPCM sample and a 3-sample level bank."""
    level = pack_multi([
        pack_record(b'\x80\x81\x82', rate_code=8),
        pack_record(b'\x80\x17', rate_code=11, flags=1),
        pack_record(b'', rate_code=22, flags=1),
    ])
    return [
        ('README.TXT', b'Eichhof!\r\n', 0),
        ('TEST.SND', pack_record(b'\x64\x77\x77', rate_code=11, flags=1), 1),
        ('LEVEL1.SND', level, 0),
    ]
