"""
Graft CLI -- Import-Table Hijack Candidate Finder
==================================================

Click-based command-line interface.

Usage::

    # List a DLL's exported names
    graft --dll version.dll

    # List an executable's imports, per module
    graft --exe app.exe

    # Correlate both and write a Go stub for every match
    graft --dll version.dll --exe app.exe --out stub_hijack.go

    # Machine-readable output
    graft --dll version.dll --exe app.exe --json

Exit status is 0 on success (including "no matches"), 1 when either image
cannot be read or parsed, and 2 on usage errors.

References:
    - Click documentation: https://click.palletsprojects.com/
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from shared.config import GraftConfig
from shared.console import GraftConsole
from shared.logger import GraftLogger

from graft import __version__
from graft.core.engine import GraftEngine
from graft.output.console import GraftConsoleOutput
from graft.output.report import GraftReportGenerator
from graft.parsers.exceptions import GraftError


def _load_config(config_path: str | None, console: GraftConsole) -> GraftConfig:
    try:
        return GraftConfig.load(config_path)
    except (OSError, ValueError) as exc:
        if config_path is not None:
            console.error(f"Cannot load configuration: {exc}")
            sys.exit(1)
        console.warning(f"Ignoring unreadable config.toml: {exc}")
        return GraftConfig()


def _stub_path(out: str | None, config: GraftConfig) -> Path:
    if out is not None:
        return Path(out)
    stub = Path(config.graft.stub_output)
    if stub.is_absolute():
        return stub
    return Path(config.global_settings.output_dir) / stub


# ---------------------------------------------------------------------------
# CLI command
# ---------------------------------------------------------------------------

@click.command("graft")
@click.option(
    "--dll", "-d",
    "dll_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="DLL whose export table is parsed.",
)
@click.option(
    "--exe", "-e",
    "exe_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Executable whose import table is parsed.",
)
@click.option(
    "--out", "-o",
    "out_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Go stub output file (default: stub_hijack.go).",
)
@click.option(
    "--config", "-c",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="TOML configuration file.",
)
@click.option(
    "--report", "-r",
    "report_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Also write the result as a JSON report.",
)
@click.option(
    "--json", "json_output",
    is_flag=True,
    default=False,
    help="Print the result as JSON instead of formatted text.",
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    default=False,
    help="Debug logging (lists every skipped entry) and section layouts.",
)
@click.version_option(__version__, prog_name="graft")
def graft_cli(
    dll_path: str | None,
    exe_path: str | None,
    out_path: str | None,
    config_path: str | None,
    report_path: str | None,
    json_output: bool,
    verbose: bool,
) -> None:
    """Graft -- find DLL exports an executable imports.

    With --dll only, list the DLL's exported names.  With --exe only, list
    the executable's imports per module.  With both, report the exported
    names the executable imports and write a Go stub exporting them.
    """
    if dll_path is None and exe_path is None:
        raise click.UsageError("at least one of --dll or --exe is required")

    console = GraftConsole()
    config = _load_config(config_path, console)
    settings = config.global_settings
    logger = GraftLogger(
        "cli",
        log_level="DEBUG" if verbose or settings.debug else settings.log_level,
        log_file=settings.log_file,
        json_logs=settings.log_json,
        console_output=not json_output,
    )

    engine = GraftEngine(config=config, logger=logger)
    display = GraftConsoleOutput(console=console, show_guidance=config.graft.show_guidance)
    reporter = GraftReportGenerator()

    try:
        if dll_path is not None and exe_path is not None:
            stub_path = _stub_path(out_path, config)
            if not json_output:
                console.success(f"Parsing DLL export table: {dll_path}")
                console.success(f"Parsing EXE import table: {exe_path}")
            result = engine.analyze(dll_path, exe_path, stub_output=stub_path)
            kind = "analysis"
        elif dll_path is not None:
            result = engine.exports(dll_path)
            kind = "exports"
        else:
            result = engine.imports(exe_path)
            kind = "imports"
    except GraftError as exc:
        logger.debug("Parse failure", exc_info=True)
        console.error(str(exc))
        sys.exit(1)
    except OSError as exc:
        # Image reads raise ImageReadError; a bare OSError comes from the stub write.
        logger.debug("Stub write failure", exc_info=True)
        console.error(f"Failed to generate stub file: {exc}")
        sys.exit(1)

    if report_path is not None:
        try:
            written = reporter.generate_json(result, report_path, kind=kind)
        except OSError as exc:
            logger.debug("Report write failure", exc_info=True)
            console.error(f"Failed to write report: {exc}")
            sys.exit(1)
        logger.info("JSON report saved: %s", written)

    if json_output:
        click.echo(reporter.to_json(result, kind))
        return

    if kind == "analysis":
        if verbose:
            display.display_layouts(result)
        display.display_analysis(result)
    elif kind == "exports":
        display.display_exports(result)
    else:
        display.display_imports(result)


# ---------------------------------------------------------------------------
# Module entry point
# ---------------------------------------------------------------------------

def main() -> None:
    """Entry point for ``graft`` and ``python -m graft``."""
    graft_cli()


if __name__ == "__main__":
    main()
