from __future__ import annotations

import json

from shared.console import GraftConsole

from graft import __version__
from graft.core.models import ExportTable, ImportTable, SkippedEntry, TableKind
from graft.output.console import GUIDANCE_LINES, GraftConsoleOutput
from graft.output.report import GraftReportGenerator
from graft.parsers.pe_image import PEImage
from tests.pe_builder import PEBuilder, make_dll, make_exe


def _output(show_guidance: bool = True) -> tuple[GraftConsoleOutput, GraftConsole]:
    console = GraftConsole(record=True)
    return GraftConsoleOutput(console=console, show_guidance=show_guidance), console


def test_display_exports_sorted():
    output, console = _output()
    output.display_exports(ExportTable(names=frozenset({"b", "a", "[bold]c"})))
    lines = console.export_text().splitlines()
    assert lines[0] == "[+] DLL exports (3):"
    assert lines[1:] == ["  [bold]c", "  a", "  b"]


def test_display_imports_per_module():
    output, console = _output()
    output.display_imports(ImportTable(
        modules={"z.dll": ["b", "a"], "a.dll": ["ordinal:#1"]},
        named=frozenset({"a", "b"}),
        skipped=[SkippedEntry(table=TableKind.IMPORT, index=0, reason="bad")],
    ))
    lines = console.export_text().splitlines()
    assert lines[:5] == ["DLL: a.dll", "  ordinal:#1", "DLL: z.dll", "  a", "  b"]
    assert "1 malformed import entry skipped" in lines[5]


def test_display_analysis(engine, tmp_path):
    result = engine.analyze_data(
        make_dll(["Foo", "Bar"]), make_exe([("x.dll", ["Bar", "Foo"])]),
        stub_output=tmp_path / "s.go",
    )
    output, console = _output()
    output.display_analysis(result)
    text = console.export_text()
    assert "Stub file created with 2 exported functions" in text
    assert "Matching functions:\n  Bar\n  Foo\n" in text
    assert "Findings" in text


def test_display_analysis_without_matches(engine):
    result = engine.analyze_data(make_dll(["Foo"]), make_exe([("x.dll", ["Bar"])]))
    output, console = _output()
    output.display_analysis(result)
    text = console.export_text()
    assert "No matching functions found." in text
    assert "Matching functions:" not in text


def test_guidance_can_be_disabled(engine):
    result = engine.analyze_data(make_dll(["Foo"]), make_exe([("x.dll", ["Foo"])]))
    output, console = _output(show_guidance=False)
    output.display_analysis(result)
    assert "disassembler" not in console.export_text()
    assert "disassembler" in GUIDANCE_LINES[0]


def test_display_image_info():
    builder = PEBuilder(bits=64)
    info = PEImage.from_bytes(builder.build(), "lib.dll").info()
    output, console = _output()
    output.display_image_info(info)
    text = console.export_text()
    assert "lib.dll" in text and ".data" in text and "0x00001000" in text


def test_report_json(engine, tmp_path):
    result = engine.analyze_data(make_dll(["Foo", "Bar"]), make_exe([("x.dll", ["Foo", "Bar"])]))
    path = GraftReportGenerator().generate_json(result, tmp_path / "reports" / "r.json")
    report = json.loads(path.read_text(encoding="utf-8"))
    assert report["tool"] == "graft"
    assert report["version"] == __version__
    assert report["kind"] == "analysis"
    assert report["result"]["correlation"]["matches"] == ["Bar", "Foo"]
    assert report["result"]["exports"]["names"] == ["Bar", "Foo"]
    assert report["result"]["findings"][0]["severity"] == "MEDIUM"


def test_report_for_single_table():
    payload = json.loads(GraftReportGenerator().to_json(ExportTable(names=frozenset({"x"})), "exports"))
    assert payload["kind"] == "exports"
    assert payload["result"] == {"names": ["x"], "skipped": []}


def test_long_list_entries_stay_on_one_line():
    name = "?Render@Scene@@QAEXPAVCamera@@PAVLight@@HH@Z" + "_tail" * 12
    output, console = _output()
    output.display_exports(ExportTable(names=frozenset({name})))
    assert console.export_text().splitlines()[1] == f"  {name}"
