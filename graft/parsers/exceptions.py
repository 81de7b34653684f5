"""
Graft Parser Exceptions
========================

Error taxonomy shared by every stage of the PE parsing pipeline.

    GraftError
     +-- ImageReadError          file unreadable or over the size limit
     +-- PEFormatError           not a usable PE image at all
     +-- StructuralBoundsError   a directory table points outside the image
     |    +-- RVATranslationError
     +-- OutOfRangeError         primitive read outside the buffer

Header- and directory-level errors propagate to the caller.  Parsers catch
:class:`OutOfRangeError` and :class:`RVATranslationError` only around a
single table entry, record the entry as skipped, and carry on.
"""

from __future__ import annotations


class GraftError(Exception):
    """Base class for all Graft errors."""


class ImageReadError(GraftError, OSError):
    """The image file could not be read into memory."""


class PEFormatError(GraftError, ValueError):
    """Missing signature, unknown optional-header magic or truncated header."""


class StructuralBoundsError(GraftError, ValueError):
    """A directory table or array lies outside the image's data."""


class RVATranslationError(StructuralBoundsError):
    """An RVA has no owning section or maps past the section's raw data."""

    def __init__(self, rva: int, reason: str) -> None:
        self.rva = rva
        self.reason = reason
        super().__init__(f"RVA 0x{rva:x}: {reason}")


class OutOfRangeError(GraftError, IndexError):
    """A read of *length* bytes at *offset* falls outside the buffer."""

    def __init__(self, offset: int, length: int, size: int, what: str = "read") -> None:
        self.offset = offset
        self.length = length
        self.size = size
        super().__init__(
            f"{what} of {length} byte(s) at offset 0x{offset:x} "
            f"outside buffer of {size} byte(s)"
        )
