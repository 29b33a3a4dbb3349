from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional

import fitz  # PyMuPDF

from ..storage import artifact_path


def _pick_pages(requested: Iterable[int], page_count: int) -> List[int]:
    # Clamp to the document, keep request order, drop repeats.
    picked: List[int] = []
    for index in requested:
        page = max(0, min(int(index), page_count - 1))
        if page not in picked:
            picked.append(page)
    return picked


def _render_page_to_png(doc: fitz.Document, page_index: int, out_path: Path, min_px: int = 1200) -> None:
    page = doc.load_page(page_index)

    # Scale so the short side comes out at least min_px wide.
    rect = page.rect
    short_side = min(rect.width, rect.height)
    zoom = max(1.0, min_px / float(short_side))
    mat = fitz.Matrix(zoom, zoom)

    pix = page.get_pixmap(matrix=mat, alpha=False)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    pix.save(str(out_path))


def pdf_page_count(pdf_path: Path) -> int:
    with fitz.open(pdf_path) as doc:
        return doc.page_count


def render_snapshots(
    pdf_path: Path,
    stem: str,
    pages: Iterable[int] = (0,),
    base_dir: Optional[Path] = None,
    min_px: int = 1200,
) -> List[Path]:
    """PNG snapshots of selected pages of an exported PDF."""
    out: List[Path] = []
    with fitz.open(pdf_path) as doc:
        if doc.page_count == 0:
            return out
        for page in _pick_pages(pages, doc.page_count):
            target = artifact_path(stem, f"snapshot_{page + 1}", base_dir=base_dir)
            _render_page_to_png(doc, page, target, min_px=min_px)
            out.append(target)
    return out
