from __future__ import annotations

import csv
import runpy
import sys
import tempfile
from pathlib import Path

from wwpdf.pipeline.lines import Body, Title
from wwpdf.pipeline.naming import RenderOptions
from wwpdf.pipeline.render_pdf import render_pdf

SCRIPT = Path(__file__).resolve().parents[1] / "scripts" / "export_inventory.py"


def test_inventory_lists_exports(monkeypatch) -> None:
    with tempfile.TemporaryDirectory() as temp_dir:
        out = Path(temp_dir)
        render_pdf([Title("One"), Body("hello")], "one", options=RenderOptions(include_date=False), base_dir=out)
        (out / "ww_one.lines.json").write_text('{"lines": [{"kind": "title"}, {"kind": "body"}]}', encoding="utf-8")
        (out / "broken.pdf").write_bytes(b"not a pdf")
        csv_path = out / "inventory.csv"

        monkeypatch.setattr(sys, "argv", ["export_inventory.py", "--out-dir", str(out), "--csv", str(csv_path)])
        runpy.run_path(str(SCRIPT), run_name="__main__")

        with csv_path.open("r", encoding="utf-8", newline="") as handle:
            rows = {row["filename"]: row for row in csv.DictReader(handle)}

        assert rows["ww_one.pdf"]["page_count"] == "1"
        assert rows["ww_one.pdf"]["line_count"] == "2"
        assert rows["ww_one.pdf"]["error"] == ""
        assert rows["broken.pdf"]["page_count"] == ""
        assert rows["broken.pdf"]["error"].startswith("unreadable PDF")
