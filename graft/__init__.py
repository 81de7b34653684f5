"""
Graft -- Import-Table Hijack Candidate Finder
==============================================

Graft reads a Windows DLL's export directory and an executable's import
directory straight from their on-disk PE layout and reports the names the
executable imports that the DLL exports.  Each match is a function a
stand-in DLL must provide; Graft emits a Go stub source exporting all of
them.

Capabilities:
    - Bounds-checked PE32 / PE32+ header and section-table parsing
    - RVA to file-offset translation that rejects unbacked virtual space
    - Export name extraction and per-module import extraction
      (named and ordinal imports, 32- and 64-bit thunks)
    - Export/import correlation with per-entry skip diagnostics
    - Go (cgo c-shared) stub generation and JSON reports

References:
    - Microsoft. (2024). PE Format. Microsoft Learn.
    - Pietrek, M. (1994). Peering Inside the PE.
"""

__version__ = "1.0.0"
__all__ = [
    "GraftEngine",
    "HijackAnalysisResult",
    "GraftConsoleOutput",
    "GraftReportGenerator",
]
