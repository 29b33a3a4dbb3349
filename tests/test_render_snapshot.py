from __future__ import annotations

import tempfile
from pathlib import Path

from wwpdf import config
from wwpdf.pipeline.lines import Body, Title
from wwpdf.pipeline.naming import RenderOptions
from wwpdf.pipeline.render_pdf import render_pdf
from wwpdf.pipeline.render_snapshot import pdf_page_count, render_snapshots


class DummyPixmap:
    def save(self, path: str) -> None:
        Path(path).write_text("snapshot", encoding="utf-8")


class DummyRect:
    width = 595.0
    height = 842.0


class DummyPage:
    rect = DummyRect()

    def get_pixmap(self, matrix=None, alpha=True) -> DummyPixmap:  # noqa: ARG002 - signature matches fitz
        return DummyPixmap()


class DummyDoc:
    def __init__(self) -> None:
        self.page_count = 3
        self.closed = False
        self.loaded = []

    def __enter__(self) -> "DummyDoc":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001 - test helper
        self.closed = True

    def load_page(self, index: int) -> DummyPage:
        self.loaded.append(index)
        return DummyPage()


def test_render_snapshots_closes_document(monkeypatch) -> None:
    doc = DummyDoc()

    def fake_open(path: str) -> DummyDoc:  # noqa: ARG001 - test helper
        return doc

    with tempfile.TemporaryDirectory() as temp_dir:
        config.set_out_dir(Path(temp_dir))
        monkeypatch.setattr("wwpdf.pipeline.render_snapshot.fitz.open", fake_open)
        snapshots = render_snapshots(Path("sample.pdf"), "sample", pages=(0, 1, 7, 1), base_dir=Path(temp_dir))
        assert doc.closed is True
        assert doc.loaded == [0, 1, 2]
        assert [p.name for p in snapshots] == ["sample_p1.png", "sample_p2.png", "sample_p3.png"]
        assert all(path.exists() for path in snapshots)


def test_snapshot_of_real_export() -> None:
    with tempfile.TemporaryDirectory() as temp_dir:
        out = Path(temp_dir)
        result = render_pdf([Title("Snap"), Body("hello")], "snap", options=RenderOptions(include_date=False), base_dir=out)
        assert pdf_page_count(result.path) == 1
        snapshots = render_snapshots(result.path, result.path.stem, pages=(0, 1), base_dir=out, min_px=300)
        assert [p.name for p in snapshots] == ["ww_snap_p1.png"]
        assert snapshots[0].read_bytes().startswith(b"\x89PNG")
