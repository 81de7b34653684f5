"""
PE Header Locator
==================

Validates the DOS stub and PE signature, then locates the COFF file header
and the optional header.  Only the fields the export/import walk needs are
decoded: section count, optional-header size, the optional-header magic
and the export/import data-directory RVAs.

Layout::

    0x00  "MZ"
    0x3C  e_lfanew ---------------+
                                  v
          "PE\\0\\0" | COFF header (20 bytes) | optional header | sections

References:
    - Microsoft. (2024). PE Format. Microsoft Learn.
      https://learn.microsoft.com/en-us/windows/win32/debug/pe-format
    - Pietrek, M. (1994). Peering Inside the PE: A Tour of the Win32
      Portable Executable File Format. Microsoft Systems Journal.
"""

from __future__ import annotations

from dataclasses import dataclass

from graft.core.models import ImageFormat
from graft.parsers.exceptions import OutOfRangeError, PEFormatError
from graft.parsers.reader import BinaryReader


# ---------------------------------------------------------------------------
# PE Constants
# ---------------------------------------------------------------------------

MZ_MAGIC: bytes = b"MZ"
PE_MAGIC: bytes = b"PE\x00\x00"

DOS_HEADER_SIZE: int = 0x40
E_LFANEW_OFFSET: int = 0x3C

COFF_HEADER_SIZE: int = 20
COFF_NUMBER_OF_SECTIONS: int = 2
COFF_SIZE_OF_OPTIONAL_HEADER: int = 16

PE32_MAGIC: int = 0x10B      # PE32 (32-bit)
PE32PLUS_MAGIC: int = 0x20B  # PE32+ (64-bit)

# Data directory indices
IMAGE_DIRECTORY_ENTRY_EXPORT: int = 0
IMAGE_DIRECTORY_ENTRY_IMPORT: int = 1


@dataclass(frozen=True, slots=True)
class OptionalHeaderLayout:
    """Format-dependent offsets and widths.

    Directory offsets are relative to the start of the optional header and
    point at the RVA half of each 8-byte (RVA, size) directory entry.
    """

    format: ImageFormat
    magic: int
    export_directory: int
    import_directory: int
    thunk_size: int
    ordinal_flag: int


PE32_LAYOUT = OptionalHeaderLayout(
    format=ImageFormat.PE32,
    magic=PE32_MAGIC,
    export_directory=96,
    import_directory=104,
    thunk_size=4,
    ordinal_flag=1 << 31,
)

PE32PLUS_LAYOUT = OptionalHeaderLayout(
    format=ImageFormat.PE32_PLUS,
    magic=PE32PLUS_MAGIC,
    export_directory=112,
    import_directory=120,
    thunk_size=8,
    ordinal_flag=1 << 63,
)

_LAYOUTS: dict[int, OptionalHeaderLayout] = {
    PE32_MAGIC: PE32_LAYOUT,
    PE32PLUS_MAGIC: PE32PLUS_LAYOUT,
}


# ---------------------------------------------------------------------------
# Located headers
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class PEHeaders:
    """Offsets and counts read from the DOS, COFF and optional headers."""

    pe_offset: int
    coff_offset: int
    optional_offset: int
    number_of_sections: int
    size_of_optional_header: int
    layout: OptionalHeaderLayout

    @property
    def format(self) -> ImageFormat:
        return self.layout.format

    @property
    def section_table_offset(self) -> int:
        return self.optional_offset + self.size_of_optional_header

    def directory_rva(self, reader: BinaryReader, index: int) -> int:
        """Return the RVA stored in the export or import directory slot.

        Raises:
            PEFormatError: The slot lies past the end of the file.
        """
        if index == IMAGE_DIRECTORY_ENTRY_EXPORT:
            field = self.layout.export_directory
        elif index == IMAGE_DIRECTORY_ENTRY_IMPORT:
            field = self.layout.import_directory
        else:
            raise ValueError(f"unsupported data directory index: {index}")
        try:
            return reader.read_u32(self.optional_offset + field)
        except OutOfRangeError as exc:
            raise PEFormatError(f"truncated optional header: {exc}") from exc


def locate_headers(reader: BinaryReader) -> PEHeaders:
    """Validate signatures and locate the COFF and optional headers.

    Raises:
        PEFormatError: The buffer is not a PE image this parser accepts.
    """
    size = len(reader)
    if size < DOS_HEADER_SIZE or reader.read_bytes(0, 2) != MZ_MAGIC:
        raise PEFormatError("not a PE file: missing MZ signature")

    pe_offset = reader.read_u32(E_LFANEW_OFFSET)
    if pe_offset <= 0 or pe_offset >= size:
        raise PEFormatError(f"invalid PE header offset: 0x{pe_offset:x}")
    if pe_offset + len(PE_MAGIC) > size or reader.read_bytes(pe_offset, 4) != PE_MAGIC:
        raise PEFormatError("invalid PE signature")

    coff_offset = pe_offset + len(PE_MAGIC)
    optional_offset = coff_offset + COFF_HEADER_SIZE
    try:
        reader.require(coff_offset, COFF_HEADER_SIZE)
        number_of_sections = reader.read_u16(coff_offset + COFF_NUMBER_OF_SECTIONS)
        size_of_optional_header = reader.read_u16(
            coff_offset + COFF_SIZE_OF_OPTIONAL_HEADER
        )
    except OutOfRangeError as exc:
        raise PEFormatError("truncated COFF header") from exc

    try:
        magic = reader.read_u16(optional_offset)
    except OutOfRangeError as exc:
        raise PEFormatError("truncated optional header") from exc

    layout = _LAYOUTS.get(magic)
    if layout is None:
        raise PEFormatError(f"unknown optional header magic: 0x{magic:x}")

    return PEHeaders(
        pe_offset=pe_offset,
        coff_offset=coff_offset,
        optional_offset=optional_offset,
        number_of_sections=number_of_sections,
        size_of_optional_header=size_of_optional_header,
        layout=layout,
    )
