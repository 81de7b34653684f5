"""
PE Image
=========

Bundles the three pieces every directory walker needs: the bounds-checked
reader over the file, the located headers and the parsed section table.
"""

from __future__ import annotations

import hashlib
from pathlib import Path

from graft.core.models import ImageFormat, ImageInfo
from graft.parsers.headers import (
    IMAGE_DIRECTORY_ENTRY_EXPORT,
    IMAGE_DIRECTORY_ENTRY_IMPORT,
    PEHeaders,
    locate_headers,
)
from graft.parsers.reader import BinaryReader
from graft.parsers.sections import SectionTable, parse_sections


class PEImage:
    """A validated PE image with its section table.

    Construction performs header validation and section-table parsing, so
    any :class:`~graft.parsers.exceptions.PEFormatError` surfaces here
    before a directory walk starts.

    Usage::

        image = PEImage.from_file("app.exe")
        offset = image.rva_to_offset(image.import_directory_rva)
    """

    __slots__ = ("_reader", "_headers", "_sections", "_path")

    def __init__(self, reader: BinaryReader, path: str = "<memory>") -> None:
        self._reader: BinaryReader = reader
        self._path: str = path
        self._headers: PEHeaders = locate_headers(reader)
        self._sections: SectionTable = parse_sections(reader, self._headers)

    @classmethod
    def from_bytes(cls, data: bytes, path: str = "<memory>") -> PEImage:
        return cls(BinaryReader(data), path)

    @classmethod
    def from_file(cls, path: str | Path, max_size: int | None = None) -> PEImage:
        reader = BinaryReader.from_file(path, max_size=max_size)
        return cls(reader, str(Path(path)))

    # ------------------------------------------------------------------ #
    #  Properties
    # ------------------------------------------------------------------ #

    @property
    def reader(self) -> BinaryReader:
        return self._reader

    @property
    def headers(self) -> PEHeaders:
        return self._headers

    @property
    def sections(self) -> SectionTable:
        return self._sections

    @property
    def path(self) -> str:
        return self._path

    @property
    def format(self) -> ImageFormat:
        return self._headers.format

    @property
    def is_64bit(self) -> bool:
        return self._headers.format is ImageFormat.PE32_PLUS

    @property
    def export_directory_rva(self) -> int:
        return self._headers.directory_rva(self._reader, IMAGE_DIRECTORY_ENTRY_EXPORT)

    @property
    def import_directory_rva(self) -> int:
        return self._headers.directory_rva(self._reader, IMAGE_DIRECTORY_ENTRY_IMPORT)

    # ------------------------------------------------------------------ #
    #  Helpers
    # ------------------------------------------------------------------ #

    def rva_to_offset(self, rva: int) -> int:
        return self._sections.rva_to_offset(rva)

    def info(self) -> ImageInfo:
        """Describe the image for reports."""
        data = self._reader.data
        return ImageInfo(
            path=self._path,
            size=len(data),
            format=self.format,
            sections=list(self._sections),
            md5=hashlib.md5(data).hexdigest(),
            sha256=hashlib.sha256(data).hexdigest(),
        )
