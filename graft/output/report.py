"""
Graft Report Generator
=======================

Writes analysis results as JSON for downstream tooling.  Sets are
serialised as sorted lists, so reports for the same inputs are
byte-identical apart from the ``generated_at`` timestamp.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from graft import __version__


class GraftReportGenerator:
    """Generate JSON reports from Graft result models.

    Usage::

        gen = GraftReportGenerator()
        gen.generate_json(result, "report.json")
    """

    def to_dict(self, result: BaseModel, kind: str) -> dict[str, Any]:
        """Wrap a result model with report metadata."""
        return {
            "tool": "graft",
            "version": __version__,
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "kind": kind,
            "result": result.model_dump(mode="json"),
        }

    def to_json(self, result: BaseModel, kind: str = "analysis") -> str:
        return json.dumps(self.to_dict(result, kind), indent=2, ensure_ascii=False)

    def generate_json(
        self,
        result: BaseModel,
        output_path: str | Path,
        kind: str = "analysis",
    ) -> Path:
        """Write *result* to *output_path*.

        Returns:
            The path of the written report.
        """
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.to_json(result, kind), encoding="utf-8")
        return path
