from __future__ import annotations

import pytest

from graft.core.models import Section
from graft.parsers.exceptions import PEFormatError, RVATranslationError, StructuralBoundsError
from graft.parsers.pe_image import PEImage
from graft.parsers.sections import SectionTable
from tests.pe_builder import DATA_RAW_POINTER, DATA_RVA, PEBuilder


def _section(va: int, vsize: int, raw_ptr: int, raw_size: int, name: bytes = b".text") -> Section:
    return Section(
        name=name, virtual_address=va, virtual_size=vsize,
        raw_pointer=raw_ptr, raw_size=raw_size,
    )


def test_parses_section_headers():
    builder = PEBuilder()
    builder.add_section(b".rsrc", 0x3000, 0x1400, 0x200, 0x180)
    image = PEImage.from_bytes(builder.build())

    assert len(image.sections) == 2
    data, rsrc = image.sections
    assert data.name == b".data" and data.display_name == ".data"
    assert (data.virtual_address, data.raw_pointer, data.raw_size) == (DATA_RVA, DATA_RAW_POINTER, 0x1000)
    assert (rsrc.virtual_address, rsrc.virtual_size) == (0x3000, 0x180)
    assert rsrc.raw_end == 0x1600


def test_full_width_section_name():
    builder = PEBuilder()
    builder.add_section(b"ABCDEFGH", 0x3000, 0x1400, 0x200, 0x200)
    image = PEImage.from_bytes(builder.build())
    assert image.sections[1].name == b"ABCDEFGH"


def test_truncated_section_table():
    builder = PEBuilder()
    data = builder.build()[:builder.section_table_offset + 20]
    with pytest.raises(PEFormatError, match="truncated section headers"):
        PEImage.from_bytes(data)


def test_rva_translation():
    image = PEImage.from_bytes(PEBuilder().build())
    assert image.rva_to_offset(DATA_RVA) == DATA_RAW_POINTER
    assert image.rva_to_offset(DATA_RVA + 0x123) == DATA_RAW_POINTER + 0x123
    assert image.rva_to_offset(DATA_RVA + 0xFFF) == DATA_RAW_POINTER + 0xFFF


def test_every_translated_offset_is_inside_raw_data_and_file():
    table = SectionTable([_section(0x1000, 0x3000, 0x400, 0x800)], file_size=0xC00)
    for rva in range(0x0, 0x5000, 0x40):
        try:
            offset = table.rva_to_offset(rva)
        except RVATranslationError:
            continue
        assert 0x400 <= offset < 0xC00


def test_rva_in_virtual_tail_is_rejected():
    builder = PEBuilder(raw_size=0x1000, virtual_size=0x2000)
    image = PEImage.from_bytes(builder.build())
    with pytest.raises(RVATranslationError, match="beyond raw data"):
        image.rva_to_offset(DATA_RVA + 0x1800)
    with pytest.raises(RVATranslationError):
        image.rva_to_offset(DATA_RVA + 0x1000)


@pytest.mark.parametrize("rva", [0, 0xFFF, DATA_RVA + 0x1000, 0xFFFFFFFF])
def test_rva_without_owning_section(rva):
    image = PEImage.from_bytes(PEBuilder().build())
    with pytest.raises(RVATranslationError, match="no owning section"):
        image.rva_to_offset(rva)


def test_translation_error_is_structural():
    image = PEImage.from_bytes(PEBuilder().build())
    with pytest.raises(StructuralBoundsError):
        image.rva_to_offset(0)


def test_raw_data_past_end_of_file():
    image = PEImage.from_bytes(PEBuilder().build()[:0x1000])
    assert image.rva_to_offset(DATA_RVA + 0xBFF) == 0xFFF
    with pytest.raises(RVATranslationError, match="file too small"):
        image.rva_to_offset(DATA_RVA + 0xC00)


def test_first_section_in_table_order_wins():
    table = SectionTable(
        [_section(0x1000, 0x200, 0x400, 0x200), _section(0x1000, 0x200, 0x800, 0x200)],
        file_size=0x1000,
    )
    assert table.rva_to_offset(0x1010) == 0x410


def test_image_info():
    data = PEBuilder(bits=64).build()
    info = PEImage.from_bytes(data, "sample.dll").info()
    assert info.path == "sample.dll"
    assert info.size == len(data)
    assert info.bits == 64
    assert [s.display_name for s in info.sections] == [".data"]
    assert len(info.sha256) == 64
    assert info.model_dump(mode="json")["sections"][0]["name"] == ".data"
