"""
Graft Data Models
==================

Pydantic models for everything the Graft pipeline produces: parsed
section descriptors, export and import tables, the correlation result and
the aggregate analysis handed to the console, report and stub emitters.

All models are frozen.  Each is derived from a single input file and is
never mutated after the parser that built it returns.

References:
    - Microsoft. (2024). PE Format. Microsoft Learn.
      https://learn.microsoft.com/en-us/windows/win32/debug/pe-format
"""

from __future__ import annotations

import enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from shared.models import Finding


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class ImageFormat(str, enum.Enum):
    """Optional-header layout of a PE image."""
    PE32 = "pe32"
    PE32_PLUS = "pe32+"

    @property
    def bits(self) -> int:
        return 64 if self is ImageFormat.PE32_PLUS else 32


class TableKind(str, enum.Enum):
    """Directory table an entry was read from."""
    EXPORT = "export"
    IMPORT = "import"


# ---------------------------------------------------------------------------
# Section table
# ---------------------------------------------------------------------------

class Section(BaseModel):
    """One 40-byte section header.

    Attributes:
        name: Raw section name, trimmed at the first NUL (up to 8 bytes,
            not necessarily ASCII).
        virtual_address: RVA of the section when mapped.
        virtual_size: Size of the section when mapped.
        raw_pointer: File offset of the section's data.
        raw_size: Size of the section's data on disk.
    """
    model_config = ConfigDict(frozen=True)

    name: bytes = b""
    virtual_address: int = 0
    virtual_size: int = 0
    raw_pointer: int = 0
    raw_size: int = 0

    @property
    def display_name(self) -> str:
        return self.name.decode("latin-1")

    @property
    def raw_end(self) -> int:
        return self.raw_pointer + self.raw_size

    @field_serializer("name")
    def _serialize_name(self, name: bytes) -> str:
        return name.decode("latin-1")


# ---------------------------------------------------------------------------
# Export / import tables
# ---------------------------------------------------------------------------

class SkippedEntry(BaseModel):
    """A single table entry that could not be resolved and was left out.

    Attributes:
        table: Directory the entry belongs to.
        index: Position of the entry in its array (name-pointer index for
            exports, descriptor or thunk index for imports).
        module: Lower-cased module name for import entries, when known.
        reason: Why the entry was dropped.
    """
    model_config = ConfigDict(frozen=True)

    table: TableKind
    index: int
    module: str = ""
    reason: str = ""


class ExportTable(BaseModel):
    """Names exported by a DLL.

    Only names are kept; correlation works on identity alone.
    """
    model_config = ConfigDict(frozen=True)

    names: frozenset[str] = Field(default_factory=frozenset)
    skipped: list[SkippedEntry] = Field(default_factory=list)

    def sorted_names(self) -> list[str]:
        return sorted(self.names)

    @field_serializer("names")
    def _serialize_names(self, names: frozenset[str]) -> list[str]:
        return sorted(names)


class ImportTable(BaseModel):
    """Imports of an executable, grouped by module.

    Attributes:
        modules: Lower-cased module name mapped to its references in thunk
            order.  A reference is either a function name or
            ``ordinal:#N`` for an import by ordinal.  Keys keep parse order.
        named: Every imported function name, ordinals excluded.
        skipped: Descriptors and thunks that could not be resolved.
    """
    model_config = ConfigDict(frozen=True)

    modules: dict[str, list[str]] = Field(default_factory=dict)
    named: frozenset[str] = Field(default_factory=frozenset)
    skipped: list[SkippedEntry] = Field(default_factory=list)

    def sorted_modules(self) -> list[tuple[str, list[str]]]:
        """Modules sorted by name, each with its references sorted."""
        return [(name, sorted(self.modules[name])) for name in sorted(self.modules)]

    @property
    def reference_count(self) -> int:
        return sum(len(refs) for refs in self.modules.values())

    @field_serializer("named")
    def _serialize_named(self, named: frozenset[str]) -> list[str]:
        return sorted(named)


class CorrelationResult(BaseModel):
    """Names exported by the DLL and imported by the executable."""
    model_config = ConfigDict(frozen=True)

    matches: list[str] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.matches)

    def __bool__(self) -> bool:
        return bool(self.matches)


# ---------------------------------------------------------------------------
# Image metadata and aggregate result
# ---------------------------------------------------------------------------

class ImageInfo(BaseModel):
    """Descriptive metadata for one parsed image.

    Attributes:
        path: Filesystem path of the image.
        size: File size in bytes.
        format: Optional-header layout.
        sections: Parsed section table.
        md5: MD5 of the file contents.
        sha256: SHA-256 of the file contents.
    """
    model_config = ConfigDict(frozen=True)

    path: str = ""
    size: int = 0
    format: ImageFormat = ImageFormat.PE32
    sections: list[Section] = Field(default_factory=list)
    md5: str = ""
    sha256: str = ""

    @property
    def bits(self) -> int:
        return self.format.bits


class HijackAnalysisResult(BaseModel):
    """Complete result of correlating one DLL with one executable.

    Attributes:
        dll: Metadata of the analysed DLL.
        exe: Metadata of the analysed executable.
        exports: Export table of the DLL.
        imports: Import table of the executable.
        correlation: Sorted hijack candidates.
        findings: Findings derived from the analysis.
        stub_path: Path of the generated stub source, if one was written.
    """
    model_config = ConfigDict(frozen=True)

    dll: ImageInfo = Field(default_factory=ImageInfo)
    exe: ImageInfo = Field(default_factory=ImageInfo)
    exports: ExportTable = Field(default_factory=ExportTable)
    imports: ImportTable = Field(default_factory=ImportTable)
    correlation: CorrelationResult = Field(default_factory=CorrelationResult)
    findings: list[Finding] = Field(default_factory=list)
    stub_path: Optional[str] = None
