"""
Graft Parsers
==============

Hand-written, bounds-checked PE parsing: the binary reader, header
locator, section table and address translator, and the export and import
directory walkers.
"""

from graft.parsers.exceptions import (
    GraftError,
    ImageReadError,
    OutOfRangeError,
    PEFormatError,
    RVATranslationError,
    StructuralBoundsError,
)
from graft.parsers.exports import parse_exports
from graft.parsers.imports import parse_imports
from graft.parsers.pe_image import PEImage
from graft.parsers.reader import BinaryReader

__all__ = [
    "BinaryReader",
    "GraftError",
    "ImageReadError",
    "OutOfRangeError",
    "PEFormatError",
    "PEImage",
    "RVATranslationError",
    "StructuralBoundsError",
    "parse_exports",
    "parse_imports",
]
