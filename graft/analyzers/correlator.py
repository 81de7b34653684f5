"""
Export/Import Correlator
=========================

Finds names a DLL exports that an executable also imports by name.  Each
such name is a slot a replacement DLL has to provide when it stands in for
the original (DLL proxying / search-order hijacking).
"""

from __future__ import annotations

from typing import Iterable, Union

from graft.core.models import CorrelationResult, ExportTable, ImportTable

NameSource = Union[ExportTable, ImportTable, Iterable[str]]


def _names(source: NameSource) -> frozenset[str]:
    if isinstance(source, ExportTable):
        return source.names
    if isinstance(source, ImportTable):
        return source.named
    return frozenset(source)


def correlate(exports: NameSource, imports: NameSource) -> CorrelationResult:
    """Intersect exported names with named imports.

    Ordinal-only imports never take part: they carry no name.  The result
    is sorted ascending and does not depend on argument order.

    Args:
        exports: Export table of the DLL, or any iterable of names.
        imports: Import table of the executable, or any iterable of names.

    Returns:
        A :class:`CorrelationResult` with the sorted matches.
    """
    return CorrelationResult(matches=sorted(_names(exports) & _names(imports)))
