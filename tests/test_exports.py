from __future__ import annotations

import struct

import pytest

from graft.core.models import TableKind
from graft.parsers.exceptions import RVATranslationError, StructuralBoundsError
from graft.parsers.exports import parse_exports
from graft.parsers.pe_image import PEImage
from tests.pe_builder import DATA_RAW_SIZE, DATA_RVA, PEBuilder, export_directory, make_dll

SECTION_END_RVA = DATA_RVA + DATA_RAW_SIZE


def _parse(data: bytes, logger=None):
    return parse_exports(PEImage.from_bytes(data), logger)


@pytest.mark.parametrize("bits", [32, 64])
def test_single_export(bits, quiet_logger):
    table = _parse(make_dll(["GetFileVersionInfoW"], bits=bits), quiet_logger)
    assert table.names == frozenset({"GetFileVersionInfoW"})
    assert table.skipped == []


def test_names_are_a_set(quiet_logger):
    table = _parse(make_dll(["Zeta", "Alpha", "Zeta", "Mid"]), quiet_logger)
    assert table.names == {"Alpha", "Mid", "Zeta"}
    assert table.sorted_names() == ["Alpha", "Mid", "Zeta"]


def test_no_export_directory(quiet_logger):
    table = _parse(PEBuilder().build(), quiet_logger)
    assert not table.names and not table.skipped


def test_zero_named_exports(quiet_logger):
    builder = PEBuilder()
    builder.export_rva = builder.alloc(export_directory(0, 0xDEADBEEF))
    table = _parse(builder.build(), quiet_logger)
    assert table.names == frozenset()
    assert table.skipped == []


def test_unresolvable_name_is_skipped(quiet_logger):
    builder = PEBuilder()
    good = builder.add_string("Good")
    also_good = builder.add_string("AlsoGood")
    array = builder.alloc(struct.pack("<III", good, 0x9000, also_good))
    builder.export_rva = builder.alloc(export_directory(3, array))

    table = _parse(builder.build(), quiet_logger)
    assert table.names == {"Good", "AlsoGood"}
    assert len(table.skipped) == 1
    entry = table.skipped[0]
    assert entry.table is TableKind.EXPORT
    assert entry.index == 1
    assert "0x9000" in entry.reason


def test_unterminated_name_is_skipped(quiet_logger):
    builder = PEBuilder()
    good = builder.add_string("Good")
    tail = SECTION_END_RVA - 4
    builder.put(tail, b"ABCD")
    array = builder.alloc(struct.pack("<II", tail, good))
    builder.export_rva = builder.alloc(export_directory(2, array))

    table = _parse(builder.build(), quiet_logger)
    assert table.names == {"Good"}
    assert [e.index for e in table.skipped] == [0]


def test_truncated_name_pointer_array(quiet_logger):
    builder = PEBuilder()
    first = builder.add_string("First")
    second = builder.add_string("Second")
    array = SECTION_END_RVA - 8
    builder.put(array, struct.pack("<II", first, second))
    builder.export_rva = builder.alloc(export_directory(1000, array))

    table = _parse(builder.build(), quiet_logger)
    assert table.names == {"First", "Second"}
    assert len(table.skipped) == 1
    assert table.skipped[0].index == 2
    assert "truncated" in table.skipped[0].reason


def test_export_directory_outside_every_section(quiet_logger):
    builder = PEBuilder()
    builder.export_rva = 0x50000
    with pytest.raises(RVATranslationError):
        _parse(builder.build(), quiet_logger)


def test_export_directory_in_virtual_tail(quiet_logger):
    builder = PEBuilder(virtual_size=0x3000)
    builder.export_rva = SECTION_END_RVA + 0x100
    with pytest.raises(StructuralBoundsError):
        _parse(builder.build(), quiet_logger)


def test_truncated_export_directory(quiet_logger):
    builder = PEBuilder()
    builder.export_rva = SECTION_END_RVA - 8
    with pytest.raises(StructuralBoundsError, match="export directory truncated"):
        _parse(builder.build(), quiet_logger)


def test_name_pointer_array_outside_every_section(quiet_logger):
    builder = PEBuilder()
    builder.export_rva = builder.alloc(export_directory(2, 0x70000))
    with pytest.raises(RVATranslationError):
        _parse(builder.build(), quiet_logger)


def test_default_logger_is_used_when_none_given():
    assert _parse(make_dll(["Only"])).names == {"Only"}
