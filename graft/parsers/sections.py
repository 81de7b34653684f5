"""
PE Section Table and Address Translation
==========================================

Parses the section headers that follow the optional header and maps
relative virtual addresses (RVAs) to file offsets.

:meth:`SectionTable.rva_to_offset` is the only place an RVA pulled from a
directory table becomes a file offset.  It rejects, rather than clamps,
RVAs that land in a section's virtual tail (the part of ``virtual_size``
with no backing raw data, typically zero-filled ``.bss``-style space).
"""

from __future__ import annotations

from typing import Iterator, Sequence

from graft.core.models import Section
from graft.parsers.exceptions import PEFormatError, RVATranslationError
from graft.parsers.headers import PEHeaders
from graft.parsers.reader import BinaryReader

SECTION_HEADER_SIZE: int = 40  # IMAGE_SECTION_HEADER is always 40 bytes

# Field offsets inside IMAGE_SECTION_HEADER
_SEC_NAME: int = 0
_SEC_NAME_SIZE: int = 8
_SEC_VIRTUAL_SIZE: int = 8
_SEC_VIRTUAL_ADDRESS: int = 12
_SEC_SIZE_OF_RAW_DATA: int = 16
_SEC_POINTER_TO_RAW_DATA: int = 20


class SectionTable:
    """Ordered, read-only section table bound to one image buffer.

    Usage::

        table = parse_sections(reader, headers)
        offset = table.rva_to_offset(0x2010)
    """

    __slots__ = ("_sections", "_file_size")

    def __init__(self, sections: Sequence[Section], file_size: int) -> None:
        self._sections: tuple[Section, ...] = tuple(sections)
        self._file_size: int = file_size

    def __iter__(self) -> Iterator[Section]:
        return iter(self._sections)

    def __len__(self) -> int:
        return len(self._sections)

    def __getitem__(self, index: int) -> Section:
        return self._sections[index]

    @property
    def sections(self) -> tuple[Section, ...]:
        return self._sections

    def rva_to_offset(self, rva: int) -> int:
        """Translate *rva* to a file offset.

        The first section (in table order) whose virtual range contains
        *rva* owns it.  The translated offset must fall inside that
        section's raw data and inside the file.

        Raises:
            RVATranslationError: No owning section, or the offset lies past
                the section's raw data or the end of the file.
        """
        for sec in self._sections:
            start = sec.virtual_address
            if start <= rva < start + sec.virtual_size:
                offset = sec.raw_pointer + (rva - start)
                if not sec.raw_pointer <= offset < sec.raw_end:
                    raise RVATranslationError(
                        rva,
                        f"maps beyond raw data of section "
                        f"{sec.display_name!r} (raw size 0x{sec.raw_size:x})",
                    )
                if offset >= self._file_size:
                    raise RVATranslationError(rva, "file too small for mapped RVA")
                return offset
        raise RVATranslationError(rva, "no owning section")


def parse_sections(reader: BinaryReader, headers: PEHeaders) -> SectionTable:
    """Parse the section table located by *headers*.

    Raises:
        PEFormatError: The declared table runs past the end of the file.
    """
    table_offset = headers.section_table_offset
    count = headers.number_of_sections
    if table_offset + count * SECTION_HEADER_SIZE > len(reader):
        raise PEFormatError(
            f"truncated section headers: {count} section(s) at 0x{table_offset:x} "
            f"exceed file size of {len(reader)} byte(s)"
        )

    sections: list[Section] = []
    for i in range(count):
        off = table_offset + i * SECTION_HEADER_SIZE
        raw_name = reader.read_bytes(off + _SEC_NAME, _SEC_NAME_SIZE)
        sections.append(Section(
            name=raw_name.split(b"\x00", 1)[0],
            virtual_size=reader.read_u32(off + _SEC_VIRTUAL_SIZE),
            virtual_address=reader.read_u32(off + _SEC_VIRTUAL_ADDRESS),
            raw_size=reader.read_u32(off + _SEC_SIZE_OF_RAW_DATA),
            raw_pointer=reader.read_u32(off + _SEC_POINTER_TO_RAW_DATA),
        ))

    return SectionTable(sections, len(reader))
