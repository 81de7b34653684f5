"""
Graft Analysis Engine
======================

Orchestrates the export/import correlation pipeline:

    1. Read each image wholesale (bounded by ``max_file_size``)
    2. Validate headers and parse the section table
    3. Walk the DLL's export directory
    4. Walk the executable's import directory
    5. Intersect exported names with named imports
    6. Derive findings
    7. Emit the Go stub source for the matches

Header- and directory-level errors raised by the parsers propagate out of
the engine unchanged; callers decide how to report them.
"""

from __future__ import annotations

from pathlib import Path

from shared.config import GraftConfig
from shared.logger import GraftLogger
from shared.models import Finding, Severity

from graft.analyzers.correlator import correlate
from graft.core.models import (
    CorrelationResult,
    ExportTable,
    HijackAnalysisResult,
    ImportTable,
    TableKind,
)
from graft.output.stubs import GoStubEmitter
from graft.parsers.exports import parse_exports
from graft.parsers.imports import parse_imports
from graft.parsers.pe_image import PEImage

_GUIDANCE = (
    "Load the executable in a debugger to see which matched function it "
    "calls first; that is the best one to replace."
)


class GraftEngine:
    """Runs the Graft pipeline for a DLL, an executable, or a pair of both.

    Usage::

        engine = GraftEngine()
        exports = engine.exports("version.dll")
        result = engine.analyze("version.dll", "app.exe", stub_output="stub.go")
        print(result.correlation.matches)
    """

    def __init__(
        self,
        config: GraftConfig | None = None,
        logger: GraftLogger | None = None,
    ) -> None:
        """Initialise the engine.

        Args:
            config: Graft configuration.  Defaults are used if not provided.
            logger: Logger instance.  A new one is created if not provided.
        """
        self._config: GraftConfig = config or GraftConfig()
        self._logger: GraftLogger = logger or GraftLogger("graft.engine")
        self._emitter = GoStubEmitter(package=self._config.graft.stub_package)

    # ------------------------------------------------------------------ #
    #  Single-image operations
    # ------------------------------------------------------------------ #

    def load(self, path: str | Path) -> PEImage:
        """Read and validate the image at *path*."""
        self._logger.debug("Loading image %s", path)
        return PEImage.from_file(path, max_size=self._config.graft.max_file_size)

    def exports(self, path: str | Path) -> ExportTable:
        """Export table of the DLL at *path*."""
        return self._parse_exports(self.load(path))

    def imports(self, path: str | Path) -> ImportTable:
        """Import table of the executable at *path*."""
        return self._parse_imports(self.load(path))

    def _parse_exports(self, image: PEImage) -> ExportTable:
        log = self._logger.child("exports")
        with log.operation("parse_exports"), log.timed(f"export table of {image.path}"):
            return parse_exports(image, log)

    def _parse_imports(self, image: PEImage) -> ImportTable:
        log = self._logger.child("imports")
        with log.operation("parse_imports"), log.timed(f"import table of {image.path}"):
            return parse_imports(image, log)

    # ------------------------------------------------------------------ #
    #  Pair analysis
    # ------------------------------------------------------------------ #

    def analyze(
        self,
        dll_path: str | Path,
        exe_path: str | Path,
        stub_output: str | Path | None = None,
    ) -> HijackAnalysisResult:
        """Correlate the DLL's exports with the executable's imports.

        Args:
            dll_path: DLL whose exports are candidates.
            exe_path: Executable whose imports are matched.
            stub_output: Where to write the Go stub source.  Nothing is
                written when ``None`` or when there are no matches.

        Returns:
            The complete :class:`HijackAnalysisResult`.
        """
        self._logger.info("Correlating %s with %s", dll_path, exe_path)
        return self._analyze_images(self.load(dll_path), self.load(exe_path), stub_output)

    def analyze_data(
        self,
        dll_data: bytes,
        exe_data: bytes,
        stub_output: str | Path | None = None,
    ) -> HijackAnalysisResult:
        """Same as :meth:`analyze` for images already in memory."""
        return self._analyze_images(
            PEImage.from_bytes(dll_data, "<dll>"),
            PEImage.from_bytes(exe_data, "<exe>"),
            stub_output,
        )

    def _analyze_images(
        self,
        dll: PEImage,
        exe: PEImage,
        stub_output: str | Path | None,
    ) -> HijackAnalysisResult:
        exports = self._parse_exports(dll)
        imports = self._parse_imports(exe)
        correlation = correlate(exports, imports)
        self._logger.info("Found %d matching function(s)", len(correlation))

        stub_path: str | None = None
        if correlation and stub_output is not None:
            stub_path = str(self._emitter.write(correlation.matches, stub_output))
            self._logger.info("Stub file written: %s", stub_path)

        return HijackAnalysisResult(
            dll=dll.info(),
            exe=exe.info(),
            exports=exports,
            imports=imports,
            correlation=correlation,
            findings=self._generate_findings(exports, imports, correlation),
            stub_path=stub_path,
        )

    # ------------------------------------------------------------------ #
    #  Findings
    # ------------------------------------------------------------------ #

    @staticmethod
    def _generate_findings(
        exports: ExportTable,
        imports: ImportTable,
        correlation: CorrelationResult,
    ) -> list[Finding]:
        findings: list[Finding] = []

        if correlation:
            findings.append(Finding(
                severity=Severity.MEDIUM,
                title="Import-table hijack candidates",
                description=(
                    f"{len(correlation)} function(s) exported by the DLL are "
                    "imported by name by the executable; a replacement DLL "
                    "exporting them would be bound at load time."
                ),
                evidence=correlation.matches,
                recommendation=_GUIDANCE,
            ))
        else:
            findings.append(Finding(
                severity=Severity.INFO,
                title="No matching functions",
                description=(
                    "The executable imports none of the DLL's exported names."
                ),
            ))

        for kind, skipped in (
            (TableKind.EXPORT, exports.skipped),
            (TableKind.IMPORT, imports.skipped),
        ):
            if skipped:
                findings.append(Finding(
                    severity=Severity.LOW,
                    title=f"Malformed {kind.value} entries skipped",
                    description=(
                        f"{len(skipped)} {kind.value} entr"
                        f"{'y' if len(skipped) == 1 else 'ies'} could not be "
                        "resolved and were left out of the correlation."
                    ),
                    evidence=[entry.reason for entry in skipped[:10]],
                    recommendation=(
                        "Inspect the image for corruption or deliberate "
                        "tampering before relying on the match list."
                    ),
                ))

        return findings
