from __future__ import annotations

import struct

import pytest

from graft.core.models import ImageFormat
from graft.parsers.exceptions import PEFormatError
from graft.parsers.headers import (
    IMAGE_DIRECTORY_ENTRY_EXPORT,
    IMAGE_DIRECTORY_ENTRY_IMPORT,
    PE32_LAYOUT,
    PE32PLUS_LAYOUT,
    locate_headers,
)
from graft.parsers.pe_image import PEImage
from graft.parsers.reader import BinaryReader
from tests.pe_builder import E_LFANEW, OPTIONAL_OFFSET, PEBuilder


def _headers(data: bytes):
    return locate_headers(BinaryReader(data))


@pytest.mark.parametrize("bits, fmt, layout", [
    (32, ImageFormat.PE32, PE32_LAYOUT),
    (64, ImageFormat.PE32_PLUS, PE32PLUS_LAYOUT),
])
def test_locates_headers(bits, fmt, layout):
    builder = PEBuilder(bits=bits)
    headers = _headers(builder.build())
    assert headers.format is fmt
    assert headers.layout is layout
    assert headers.pe_offset == E_LFANEW
    assert headers.optional_offset == OPTIONAL_OFFSET
    assert headers.number_of_sections == 1
    assert headers.section_table_offset == builder.section_table_offset


def test_layout_constants():
    assert (PE32_LAYOUT.export_directory, PE32_LAYOUT.import_directory) == (96, 104)
    assert (PE32PLUS_LAYOUT.export_directory, PE32PLUS_LAYOUT.import_directory) == (112, 120)
    assert PE32_LAYOUT.thunk_size == 4 and PE32_LAYOUT.ordinal_flag == 0x80000000
    assert PE32PLUS_LAYOUT.thunk_size == 8 and PE32PLUS_LAYOUT.ordinal_flag == 1 << 63


@pytest.mark.parametrize("bits", [32, 64])
def test_directory_rvas(bits):
    builder = PEBuilder(bits=bits)
    builder.export_rva = 0x1100
    builder.import_rva = 0x1200
    data = builder.build()
    reader = BinaryReader(data)
    headers = locate_headers(reader)
    assert headers.directory_rva(reader, IMAGE_DIRECTORY_ENTRY_EXPORT) == 0x1100
    assert headers.directory_rva(reader, IMAGE_DIRECTORY_ENTRY_IMPORT) == 0x1200

    image = PEImage.from_bytes(data)
    assert image.is_64bit is (bits == 64)
    assert image.export_directory_rva == 0x1100
    assert image.import_directory_rva == 0x1200


def test_unsupported_directory_index():
    reader = BinaryReader(PEBuilder().build())
    with pytest.raises(ValueError):
        locate_headers(reader).directory_rva(reader, 5)


def test_truncated_directory_slot():
    data = PEBuilder().build()[:OPTIONAL_OFFSET + 50]
    reader = BinaryReader(data)
    headers = locate_headers(reader)
    with pytest.raises(PEFormatError, match="truncated optional header"):
        headers.directory_rva(reader, IMAGE_DIRECTORY_ENTRY_EXPORT)


def test_missing_mz():
    data = bytearray(PEBuilder().build())
    data[0:2] = b"ZM"
    with pytest.raises(PEFormatError, match="MZ"):
        _headers(bytes(data))


def test_shorter_than_dos_header():
    with pytest.raises(PEFormatError, match="MZ"):
        _headers(b"MZ" + bytes(20))


@pytest.mark.parametrize("e_lfanew", [0, 0x2000, 0xFFFFFFFF])
def test_invalid_pe_header_offset(e_lfanew):
    data = bytearray(PEBuilder().build())
    struct.pack_into("<I", data, 0x3C, e_lfanew)
    with pytest.raises(PEFormatError, match="invalid PE header offset"):
        _headers(bytes(data))


def test_pe_signature_past_end_of_file():
    data = bytearray(PEBuilder().build())
    struct.pack_into("<I", data, 0x3C, len(data) - 2)
    with pytest.raises(PEFormatError, match="invalid PE signature"):
        _headers(bytes(data))


def test_bad_pe_signature():
    data = bytearray(PEBuilder().build())
    data[E_LFANEW:E_LFANEW + 4] = b"NE\x00\x00"
    with pytest.raises(PEFormatError, match="invalid PE signature"):
        _headers(bytes(data))


def test_truncated_coff_header():
    data = PEBuilder().build()[:E_LFANEW + 4 + 10]
    with pytest.raises(PEFormatError, match="truncated COFF header"):
        _headers(data)


def test_truncated_optional_header():
    data = PEBuilder().build()[:OPTIONAL_OFFSET + 1]
    with pytest.raises(PEFormatError, match="truncated optional header"):
        _headers(data)


def test_unknown_optional_header_magic():
    data = bytearray(PEBuilder().build())
    struct.pack_into("<H", data, OPTIONAL_OFFSET, 0x107)
    with pytest.raises(PEFormatError, match="0x107"):
        _headers(bytes(data))
