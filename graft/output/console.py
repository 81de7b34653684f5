"""
Graft Console Output
=====================

Terminal rendering of export tables, import tables and correlation
results.  Lists are always printed in sorted order so two runs over the
same images produce identical output.
"""

from __future__ import annotations

from shared.console import GraftConsole

from graft.core.models import (
    ExportTable,
    HijackAnalysisResult,
    ImageInfo,
    ImportTable,
)

GUIDANCE_LINES: tuple[str, ...] = (
    "Fire up a disassembler or debugger to determine the optimal function "
    "to hijack based on execution order.",
    "Modify the desired function in the resulting Go file to implement "
    "your payload.",
)


class GraftConsoleOutput:
    """Rich terminal display for Graft results.

    Usage::

        output = GraftConsoleOutput()
        output.display_exports(engine.exports("version.dll"))
    """

    def __init__(self, console: GraftConsole | None = None, show_guidance: bool = True) -> None:
        self._console: GraftConsole = console or GraftConsole()
        self._show_guidance = show_guidance

    def display_exports(self, table: ExportTable) -> None:
        """List exported names, sorted ascending."""
        self._console.success(f"DLL exports ({len(table.names)}):")
        for name in table.sorted_names():
            self._console.item(name)
        self._display_skipped(len(table.skipped), "export")

    def display_imports(self, table: ImportTable) -> None:
        """List imports per module, modules and references sorted ascending."""
        for module, refs in table.sorted_modules():
            self._console.print(f"DLL: {module}", markup=False, soft_wrap=True)
            for ref in refs:
                self._console.item(ref)
        self._display_skipped(len(table.skipped), "import")

    def display_image_info(self, info: ImageInfo) -> None:
        """Show a one-table summary of the image's section layout."""
        rows = [
            (
                sec.display_name,
                f"0x{sec.virtual_address:08x}",
                f"0x{sec.virtual_size:x}",
                f"0x{sec.raw_pointer:08x}",
                f"0x{sec.raw_size:x}",
            )
            for sec in info.sections
        ]
        self._console.table(
            f"{info.path} ({info.format.value.upper()}, {info.size:,} bytes)",
            ["Name", "VirtAddr", "VirtSize", "RawPtr", "RawSize"],
            rows,
            styles=["graft.section"],
        )

    def display_layouts(self, result: HijackAnalysisResult) -> None:
        """Show the section layout of both analysed images."""
        self._console.section("Image layout")
        self.display_image_info(result.dll)
        self.display_image_info(result.exe)

    def display_analysis(self, result: HijackAnalysisResult) -> None:
        """Show the correlation result, stub location and findings."""
        matches = result.correlation.matches
        if not matches:
            self._console.success("No matching functions found.")
        else:
            if result.stub_path:
                self._console.success(
                    f"Stub file created with {len(matches)} exported functions: "
                    f"{result.stub_path}"
                )
            self._console.success("Matching functions:")
            for name in matches:
                self._console.item(name)
            if self._show_guidance:
                for line in GUIDANCE_LINES:
                    self._console.info(line)

        if result.findings:
            self._console.blank()
            self._console.findings_table(result.findings)

    def _display_skipped(self, count: int, kind: str) -> None:
        if count:
            self._console.warning(f"{count} malformed {kind} entr{'y' if count == 1 else 'ies'} skipped")
