"""
Graft Configuration Management
===============================

Centralized configuration for the Graft toolkit using Python dataclasses
and TOML-based persistence.

Configuration is kept out of code: every tunable lives in a dataclass with
a sensible default and may be overridden from ``config.toml``.

References:
    - PEP 681 -- Data Class Transforms (2022).
    - TOML v1.0.0 Specification. https://toml.io/en/v1.0.0
"""

from __future__ import annotations

import re
import sys
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib  # type: ignore[no-redef]


# ---------------------------------------------------------------------------
# Default configuration file path relative to the project root
# ---------------------------------------------------------------------------
_DEFAULT_CONFIG_PATH: Path = Path(__file__).resolve().parent.parent / "config.toml"

_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})
_GO_PACKAGE_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


# ========================== Tool-Specific Config ===========================


@dataclass(frozen=False, slots=True)
class GraftSettings:
    """Configuration for the export/import correlation scan.

    Controls input limits and how hijack stubs are emitted.
    """

    max_file_size: int = 268_435_456  # 256 MiB
    stub_output: str = "stub_hijack.go"
    stub_package: str = "main"
    show_guidance: bool = True


# =========================== Global Settings ===============================


@dataclass(frozen=False, slots=True)
class GlobalConfig:
    """Global settings: logging verbosity, log files, output directory."""

    log_level: str = "INFO"
    log_file: Optional[str] = None
    log_json: bool = False
    output_dir: str = "."
    debug: bool = False
    version: str = "1.0.0"


# =========================== Master Config =================================


@dataclass(frozen=False, slots=True)
class GraftConfig:
    """Master configuration aggregating global and scan settings.

    Usage:
        >>> config = GraftConfig.load()                  # from default path
        >>> config = GraftConfig.load("custom.toml")     # from custom path
        >>> print(config.graft.stub_output)
        'stub_hijack.go'
    """

    global_settings: GlobalConfig = field(default_factory=GlobalConfig)
    graft: GraftSettings = field(default_factory=GraftSettings)

    # ------------------------------------------------------------------ #
    #  TOML Loading
    # ------------------------------------------------------------------ #

    @classmethod
    def load(cls, path: str | Path | None = None) -> GraftConfig:
        """Load configuration from a TOML file.

        If *path* is ``None`` the loader looks for ``config.toml`` in the
        project root.  Missing keys fall back to dataclass defaults.

        Args:
            path: Filesystem path to a TOML configuration file.

        Returns:
            A fully-populated :class:`GraftConfig` instance.

        Raises:
            FileNotFoundError: If the specified path does not exist
                *and* was explicitly provided by the caller.
            tomllib.TOMLDecodeError: The file is not valid TOML.
            ValueError: A setting fails :meth:`validate`.
        """
        config_path = Path(path) if path is not None else _DEFAULT_CONFIG_PATH

        if not config_path.exists():
            if path is not None:
                raise FileNotFoundError(
                    f"Configuration file not found: {config_path}"
                )
            return cls()

        with open(config_path, "rb") as fh:
            raw: dict[str, Any] = tomllib.load(fh)

        config = cls(
            global_settings=cls._build_section(GlobalConfig, raw, "global"),
            graft=cls._build_section(GraftSettings, raw, "graft"),
        )
        config.validate()
        return config

    def validate(self) -> None:
        """Reject settings the scan cannot run with.

        Raises:
            ValueError: A setting is out of range or malformed.
        """
        level = self.global_settings.log_level
        if not isinstance(level, str) or level.upper() not in _LOG_LEVELS:
            raise ValueError(f"global.log_level: unknown level {level!r}")
        size = self.graft.max_file_size
        if not isinstance(size, int) or isinstance(size, bool) or size <= 0:
            raise ValueError("graft.max_file_size must be positive")
        if not self.graft.stub_output:
            raise ValueError("graft.stub_output must not be empty")
        if not isinstance(self.graft.stub_package, str) or not _GO_PACKAGE_NAME.match(
            self.graft.stub_package
        ):
            raise ValueError(
                f"graft.stub_package: {self.graft.stub_package!r} is not a Go package name"
            )

    # ------------------------------------------------------------------ #
    #  Serialisation helpers
    # ------------------------------------------------------------------ #

    def to_dict(self) -> dict[str, Any]:
        """Serialise the entire configuration tree to a plain dictionary."""
        return asdict(self)

    # ------------------------------------------------------------------ #
    #  Internal helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _build_section(cls: type, raw: dict[str, Any], section: str) -> Any:
        """Instantiate a dataclass *cls* from table *section* of *raw*, using
        only the keys it declares.

        Unknown keys in the TOML source are ignored.

        Raises:
            ValueError: *section* is not a TOML table.
        """
        data = raw.get(section, {})
        if not isinstance(data, dict):
            raise ValueError(f"[{section}] must be a table, got {type(data).__name__}")
        valid_keys = {f.name for f in cls.__dataclass_fields__.values()}  # type: ignore[attr-defined]
        filtered = {k: v for k, v in data.items() if k in valid_keys}
        return cls(**filtered)


# ========================= Module-level convenience ========================

def get_config(path: str | Path | None = None) -> GraftConfig:
    """Module-level convenience wrapper around :meth:`GraftConfig.load`.

    Caches the result so that repeated calls share one instance.
    """
    if not hasattr(get_config, "_cached") or path is not None:
        get_config._cached = GraftConfig.load(path)  # type: ignore[attr-defined]
    return get_config._cached  # type: ignore[attr-defined]
