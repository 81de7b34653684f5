"""
Export Directory Parser
========================

Walks ``IMAGE_EXPORT_DIRECTORY`` and collects the names in its
name-pointer array.  Ordinals and function addresses are not needed for
correlation and are not read.

Directory layout (40 bytes)::

    +0   Characteristics        +20  NumberOfFunctions
    +4   TimeDateStamp          +24  NumberOfNames
    +8   Major/MinorVersion     +28  AddressOfFunctions
    +12  Name                   +32  AddressOfNames
    +16  Base                   +36  AddressOfNameOrdinals

A directory that cannot be located is fatal for the table; a single name
that cannot be resolved is recorded in :attr:`ExportTable.skipped` and the
walk continues.
"""

from __future__ import annotations

from shared.logger import GraftLogger

from graft.core.models import ExportTable, SkippedEntry, TableKind
from graft.parsers.exceptions import (
    OutOfRangeError,
    RVATranslationError,
    StructuralBoundsError,
)
from graft.parsers.pe_image import PEImage

EXPORT_DIRECTORY_SIZE: int = 40
EXPORT_NUMBER_OF_NAMES: int = 24
EXPORT_ADDRESS_OF_NAMES: int = 32
NAME_POINTER_SIZE: int = 4


def parse_exports(image: PEImage, logger: GraftLogger | None = None) -> ExportTable:
    """Return the set of names exported by *image*.

    Args:
        image: Parsed PE image (normally a DLL).
        logger: Logger for per-entry diagnostics.

    Returns:
        An :class:`ExportTable`; empty when the image has no export
        directory or exports nothing by name.

    Raises:
        StructuralBoundsError: The export directory or its name-pointer
            array cannot be located inside the image.
        PEFormatError: The export directory slot is missing from the
            optional header.
    """
    log = logger or GraftLogger("graft.exports")
    reader = image.reader

    export_rva = image.export_directory_rva
    if export_rva == 0:
        log.debug("No export directory in %s", image.path)
        return ExportTable()

    export_offset = image.rva_to_offset(export_rva)
    try:
        reader.require(export_offset, EXPORT_DIRECTORY_SIZE, "export directory")
    except OutOfRangeError as exc:
        raise StructuralBoundsError(f"export directory truncated: {exc}") from exc

    number_of_names = reader.read_u32(export_offset + EXPORT_NUMBER_OF_NAMES)
    names_rva = reader.read_u32(export_offset + EXPORT_ADDRESS_OF_NAMES)
    if number_of_names == 0:
        log.debug("Export directory of %s has no named exports", image.path)
        return ExportTable()

    names_offset = image.rva_to_offset(names_rva)

    names: set[str] = set()
    skipped: list[SkippedEntry] = []
    for index in range(number_of_names):
        entry_offset = names_offset + index * NAME_POINTER_SIZE
        try:
            name_rva = reader.read_u32(entry_offset)
        except OutOfRangeError as exc:
            # Every later slot is past the end of the file too.
            skipped.append(SkippedEntry(
                table=TableKind.EXPORT,
                index=index,
                reason=f"name pointer array truncated "
                       f"({number_of_names - index} entries unread): {exc}",
            ))
            log.debug("Export name pointer array truncated at index %d", index)
            break

        try:
            name = reader.read_cstring(image.rva_to_offset(name_rva))
        except (RVATranslationError, OutOfRangeError) as exc:
            skipped.append(SkippedEntry(
                table=TableKind.EXPORT, index=index, reason=str(exc),
            ))
            log.debug("Skipping export name #%d: %s", index, exc)
            continue
        names.add(name)

    log.info(
        "Parsed %d export name(s) from %s (%d skipped)",
        len(names), image.path, len(skipped),
    )
    return ExportTable(names=frozenset(names), skipped=skipped)
