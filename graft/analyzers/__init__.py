"""
Graft Analyzers
================

Correlation of a DLL's exports with an executable's imports.
"""

from graft.analyzers.correlator import correlate

__all__ = ["correlate"]
