from __future__ import annotations

import csv
from datetime import datetime, timezone
import json
import tempfile
from pathlib import Path
import unittest

from sqlalchemy import inspect, text
from typer.testing import CliRunner

from wwpdf import config, models
from wwpdf.main import app
from wwpdf.models import ExportStatus, reset_engine
from wwpdf.pipeline.lines import NothingToExport
from wwpdf.pipeline.naming import RenderOptions
from wwpdf.pipeline.payloads import ArtistInputs
from wwpdf.pipeline.run import list_artifacts, list_exports, run_export


class RunExportTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()
        self.out = Path(self.temp_dir.name) / "out"
        config.set_out_dir(self.out)
        reset_engine()

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def test_campaign_export_records_artifacts(self) -> None:
        record = run_export(
            "campaign",
            "{}",
            inputs=ArtistInputs(artist_name="Nova", genre="Synth-pop"),
            options=RenderOptions(include_date=False),
        )
        self.assertEqual(record.status, ExportStatus.READY)
        self.assertEqual(record.filename, "ww_nova-campaign-concepts.pdf")
        self.assertEqual(record.slug, "nova-campaign-concepts")
        self.assertTrue(record.used_fallback)
        self.assertGreaterEqual(record.page_count, 1)

        self.assertTrue((self.out / "ww_nova-campaign-concepts.pdf").exists())
        self.assertTrue((self.out / "ww_nova-campaign-concepts.preview.html").exists())
        saved = json.loads((self.out / "ww_nova-campaign-concepts.lines.json").read_text(encoding="utf-8"))
        self.assertEqual(len(saved["lines"]), record.line_count)

        types = sorted(a.type for a in list_artifacts(record.id))
        self.assertEqual(types, ["lines_json", "pdf", "preview_html"])

    def test_ledger_timestamps_are_utc(self) -> None:
        self.assertEqual(models.ExportRecord(kind="lines", slug="x").created_at.tzinfo, timezone.utc)
        self.assertEqual(models.ExportArtifact(export_id=1, type="pdf", path="x.pdf").created_at.tzinfo, timezone.utc)

        record = run_export("lines", [{"kind": "body", "text": "Hello"}], options=RenderOptions(include_date=False))
        self.assertEqual(record.status, ExportStatus.READY)
        stored = list_exports()[0]
        self.assertEqual(stored.id, record.id)
        self.assertLessEqual(stored.created_at.replace(tzinfo=timezone.utc), datetime.now(timezone.utc))

    def test_empty_calendar_is_recorded_then_raised(self) -> None:
        with self.assertRaises(NothingToExport):
            run_export("calendar", [], month="2025-03")
        failed = list_exports(status=ExportStatus.FAILED)
        self.assertEqual(len(failed), 1)
        self.assertEqual(failed[0].fail_code, "NOTHING_TO_EXPORT")
        self.assertEqual(failed[0].fail_detail, "No scheduled items in this month to export.")

    def test_unknown_kind_fails_without_raising(self) -> None:
        record = run_export("poster", {})
        self.assertEqual(record.status, ExportStatus.FAILED)
        self.assertEqual(record.fail_code, "RENDER_ERROR")
        self.assertIn("Unknown export kind", record.fail_detail)

    def test_press_kit_uses_press_kit_preset(self) -> None:
        record = run_export(
            "press-kit",
            {"artistName": "Nova", "shortBio": "Synth-pop from Leeds."},
            options=RenderOptions(include_date=False),
        )
        self.assertEqual(record.status, ExportStatus.READY)
        self.assertEqual(record.filename, "ww_nova-press-kit.pdf")
        html = (self.out / "ww_nova-press-kit.preview.html").read_text(encoding="utf-8")
        self.assertIn("font-size: 37px", html)  # 28pt title

    def test_old_ledger_is_migrated(self) -> None:
        self.out.mkdir(parents=True, exist_ok=True)
        with models.engine.begin() as conn:
            conn.execute(
                text(
                    "CREATE TABLE exportrecord (id INTEGER PRIMARY KEY, kind TEXT NOT NULL, slug TEXT NOT NULL, "
                    "filename TEXT, page_count INTEGER NOT NULL, status TEXT NOT NULL, created_at DATETIME NOT NULL)"
                )
            )
        models.init_db()
        columns = {col["name"] for col in inspect(models.engine).get_columns("exportrecord")}
        self.assertTrue({"line_count", "used_fallback", "fail_code", "fail_detail"} <= columns)

        record = run_export("lines", [{"kind": "body", "text": "Hello"}], options=RenderOptions(include_date=False))
        self.assertEqual(record.status, ExportStatus.READY)
        self.assertEqual(len(list_exports()), 1)


def _write_lines(path: Path) -> Path:
    path.write_text(
        json.dumps(
            {
                "lines": [
                    {"kind": "title", "text": "Demo"},
                    {"kind": "divider"},
                    {"kind": "sectionTitle", "text": "Notes"},
                    {"kind": "body", "text": "Hello"},
                ]
            }
        ),
        encoding="utf-8",
    )
    return path


def test_cli_render_writes_pdf_and_preview() -> None:
    runner = CliRunner()
    with tempfile.TemporaryDirectory() as temp_dir:
        out_dir = Path(temp_dir) / "out"
        lines_json = _write_lines(Path(temp_dir) / "lines.json")
        result = runner.invoke(
            app,
            ["render", str(lines_json), "--name", "Demo Doc", "--no-date", "--preview", "--out", str(out_dir)],
        )
        assert result.exit_code == 0, result.output
        assert (out_dir / "ww_demo-doc.pdf").exists()
        assert (out_dir / "ww_demo-doc.preview.html").exists()
        assert "1 page(s)" in result.output


def test_cli_calendar_export_and_history() -> None:
    runner = CliRunner()
    with tempfile.TemporaryDirectory() as temp_dir:
        out_dir = Path(temp_dir) / "out"
        csv_path = Path(temp_dir) / "calendar.csv"
        with csv_path.open("w", encoding="utf-8", newline="") as handle:
            writer = csv.DictWriter(handle, fieldnames=["title", "scheduled_at", "platform"])
            writer.writeheader()
            writer.writerow({"title": "Teaser", "scheduled_at": "2025-03-03T09:30", "platform": "tiktok"})

        result = runner.invoke(app, ["export", "calendar", str(csv_path), "--month", "2025-03", "--out", str(out_dir)])
        assert result.exit_code == 0, result.output
        assert "READY" in result.output

        result = runner.invoke(app, ["export", "calendar", str(csv_path), "--month", "2025-04", "--out", str(out_dir)])
        assert result.exit_code == 1
        assert "No scheduled items in this month to export." in result.output

        result = runner.invoke(app, ["history", "--out", str(out_dir)])
        assert result.exit_code == 0, result.output
        assert "NOTHING_TO_EXPORT" in result.output
        assert "ww-calendar-detailed-2025-03" in result.output


if __name__ == "__main__":
    unittest.main()
