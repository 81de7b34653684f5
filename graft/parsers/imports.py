"""
Import Directory Parser
========================

Walks the array of ``IMAGE_IMPORT_DESCRIPTOR`` records and, for each
module, its import lookup table (or the IAT when the lookup table is
absent).

Descriptor layout (20 bytes)::

    +0   OriginalFirstThunk (ILT RVA)
    +4   TimeDateStamp
    +8   ForwarderChain
    +12  Name (module name RVA)
    +16  FirstThunk (IAT RVA)

Thunks are 4 bytes in PE32 images and 8 bytes in PE32+ images.  A thunk
with its top bit set imports by ordinal; otherwise its low 32 bits are the
RVA of an ``IMAGE_IMPORT_BY_NAME`` record (2-byte hint, then the name).

References:
    - Microsoft. (2024). PE Format -- The .idata Section. Microsoft Learn.
    - Pietrek, M. (2002). An In-Depth Look into the Win32 Portable
      Executable File Format, Part 2. MSDN Magazine.
"""

from __future__ import annotations

from shared.logger import GraftLogger

from graft.core.models import ImportTable, SkippedEntry, TableKind
from graft.parsers.exceptions import OutOfRangeError, RVATranslationError
from graft.parsers.pe_image import PEImage

IMPORT_DESCRIPTOR_SIZE: int = 20
DESC_ORIGINAL_FIRST_THUNK: int = 0
DESC_NAME: int = 12
DESC_FIRST_THUNK: int = 16
HINT_SIZE: int = 2

ORDINAL_PREFIX: str = "ordinal:#"


def ordinal_reference(ordinal: int) -> str:
    """Reference token recorded for an import by ordinal."""
    return f"{ORDINAL_PREFIX}{ordinal}"


class _ImportWalker:
    """Accumulates one import table; used once per :func:`parse_imports` call."""

    def __init__(self, image: PEImage, log: GraftLogger) -> None:
        self._image = image
        self._reader = image.reader
        self._log = log
        self._layout = image.headers.layout
        self.modules: dict[str, list[str]] = {}
        self.named: set[str] = set()
        self.skipped: list[SkippedEntry] = []
        # A well-formed image cannot hold more thunk slots than this.
        self._thunk_budget = len(self._reader) // self._layout.thunk_size
        self.exhausted = False

    def _skip(self, index: int, module: str, reason: str) -> None:
        self.skipped.append(SkippedEntry(
            table=TableKind.IMPORT, index=index, module=module, reason=reason,
        ))
        self._log.debug("Skipping import entry %s#%d: %s", module or "?", index, reason)

    # ------------------------------------------------------------------ #
    #  Descriptor array
    # ------------------------------------------------------------------ #

    def walk_descriptors(self, import_offset: int) -> None:
        reader = self._reader
        desc_index = 0
        while not self.exhausted:
            desc_offset = import_offset + desc_index * IMPORT_DESCRIPTOR_SIZE
            if desc_offset + IMPORT_DESCRIPTOR_SIZE > len(reader):
                break

            original_first_thunk = reader.read_u32(desc_offset + DESC_ORIGINAL_FIRST_THUNK)
            name_rva = reader.read_u32(desc_offset + DESC_NAME)
            first_thunk = reader.read_u32(desc_offset + DESC_FIRST_THUNK)

            # Null terminator entry
            if original_first_thunk == 0 and name_rva == 0 and first_thunk == 0:
                break

            self._walk_descriptor(desc_index, original_first_thunk, name_rva, first_thunk)
            desc_index += 1

    def _walk_descriptor(
        self,
        desc_index: int,
        original_first_thunk: int,
        name_rva: int,
        first_thunk: int,
    ) -> None:
        try:
            dll_name = self._reader.read_cstring(self._image.rva_to_offset(name_rva))
        except (RVATranslationError, OutOfRangeError) as exc:
            self._skip(desc_index, "", f"module name unreadable: {exc}")
            return

        module = dll_name.lower()
        refs = self.modules.setdefault(module, [])

        thunk_rva = original_first_thunk or first_thunk
        if thunk_rva == 0:
            return

        try:
            thunk_offset = self._image.rva_to_offset(thunk_rva)
        except RVATranslationError as exc:
            self._skip(desc_index, module, f"thunk array unreadable: {exc}")
            return

        self._walk_thunks(module, refs, thunk_offset)

    # ------------------------------------------------------------------ #
    #  Thunk array
    # ------------------------------------------------------------------ #

    def _walk_thunks(self, module: str, refs: list[str], thunk_offset: int) -> None:
        reader = self._reader
        thunk_size = self._layout.thunk_size
        ordinal_flag = self._layout.ordinal_flag
        read_thunk = reader.read_u64 if thunk_size == 8 else reader.read_u32

        idx = 0
        while True:
            entry_offset = thunk_offset + idx * thunk_size
            if entry_offset + thunk_size > len(reader):
                break
            if self._thunk_budget == 0:
                self._skip(idx, module, (
                    f"thunk limit reached ({len(reader) // thunk_size} slots); "
                    "remaining imports not read"
                ))
                self.exhausted = True
                break
            self._thunk_budget -= 1
            thunk = read_thunk(entry_offset)
            if thunk == 0:
                break

            if thunk & ordinal_flag:
                refs.append(ordinal_reference(thunk & ~ordinal_flag))
            else:
                hint_name_rva = thunk & 0xFFFFFFFF
                try:
                    hint_offset = self._image.rva_to_offset(hint_name_rva)
                    name = reader.read_cstring(hint_offset + HINT_SIZE)
                except (RVATranslationError, OutOfRangeError) as exc:
                    self._skip(idx, module, str(exc))
                else:
                    refs.append(name)
                    self.named.add(name)
            idx += 1


def parse_imports(image: PEImage, logger: GraftLogger | None = None) -> ImportTable:
    """Return the imports of *image* grouped by lower-cased module name.

    Args:
        image: Parsed PE image (normally an executable).
        logger: Logger for per-entry diagnostics.

    Returns:
        An :class:`ImportTable`; empty when the image has no import
        directory.

    Raises:
        RVATranslationError: The import directory RVA cannot be translated.
        PEFormatError: The import directory slot is missing from the
            optional header.
    """
    log = logger or GraftLogger("graft.imports")

    import_rva = image.import_directory_rva
    if import_rva == 0:
        log.debug("No import directory in %s", image.path)
        return ImportTable()

    walker = _ImportWalker(image, log)
    walker.walk_descriptors(image.rva_to_offset(import_rva))

    table = ImportTable(
        modules=walker.modules,
        named=frozenset(walker.named),
        skipped=walker.skipped,
    )
    log.info(
        "Parsed %d module(s), %d reference(s) from %s (%d skipped)",
        len(table.modules), table.reference_count, image.path, len(table.skipped),
    )
    return table
