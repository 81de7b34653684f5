"""
Graft Output Module
====================

Console display, JSON reports and Go stub generation for Graft results.
"""

from graft.output.console import GraftConsoleOutput
from graft.output.report import GraftReportGenerator
from graft.output.stubs import GoStubEmitter

__all__ = [
    "GoStubEmitter",
    "GraftConsoleOutput",
    "GraftReportGenerator",
]
