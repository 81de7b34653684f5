"""
Graft Shared Module
====================

Configuration, structured logging, console presentation and finding
models used by every Graft component.
"""

from shared.config import GraftConfig, get_config

__all__ = ["GraftConfig", "get_config"]
