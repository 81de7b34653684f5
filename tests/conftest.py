"""Shared fixtures: quiet loggers and synthetic images on disk."""

from __future__ import annotations

from pathlib import Path

import pytest

from shared.config import GraftConfig
from shared.logger import GraftLogger

from graft.core.engine import GraftEngine
from tests.pe_builder import make_dll, make_exe


@pytest.fixture
def quiet_logger() -> GraftLogger:
    return GraftLogger("tests", log_level="DEBUG", console_output=False)


@pytest.fixture
def engine(quiet_logger: GraftLogger) -> GraftEngine:
    return GraftEngine(config=GraftConfig(), logger=quiet_logger)


@pytest.fixture
def dll_file(tmp_path: Path) -> Path:
    path = tmp_path / "target.dll"
    path.write_bytes(make_dll(["Foo", "Bar"]))
    return path


@pytest.fixture
def exe_file(tmp_path: Path) -> Path:
    path = tmp_path / "app.exe"
    path.write_bytes(make_exe([
        ("TARGET.dll", ["Bar", "Baz"]),
        ("KERNEL32.dll", ["ExitProcess", 7]),
    ]))
    return path
