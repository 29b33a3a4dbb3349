from __future__ import annotations

import argparse
import csv
import json
import re
from pathlib import Path
from typing import Dict, List, Optional

import fitz  # PyMuPDF


_DATE_SUFFIX = re.compile(r"_(\d{4}-\d{2}-\d{2})$")


def _get_pdf_page_count(pdf_path: Path) -> int:
    """Page count read from the PDF itself."""
    with fitz.open(pdf_path) as doc:
        return int(doc.page_count)


def _line_count(lines_path: Path) -> Optional[int]:
    """
    Number of lines recorded next to the PDF.
    - missing file: None (PDF rendered outside the export pipeline)
    - malformed file: fails immediately
    """
    if not lines_path.exists():
        return None
    try:
        data = json.loads(lines_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {lines_path}: {e}") from e
    lines = data.get("lines", []) if isinstance(data, dict) else data
    return len(lines) if isinstance(lines, list) else None


def _export_date(stem: str) -> str:
    match = _DATE_SUFFIX.search(stem)
    return match.group(1) if match else ""


def main() -> None:
    parser = argparse.ArgumentParser(description="List exported PDFs with their page counts")
    parser.add_argument("--out-dir", type=str, default="out", help="Export directory (default: out)")
    parser.add_argument("--csv", type=str, default="out/inventory.csv", help="Output CSV path")
    args = parser.parse_args()

    out_dir = Path(args.out_dir)
    csv_path = Path(args.csv)

    if not out_dir.exists():
        raise FileNotFoundError(f"out-dir not found: {out_dir}")

    rows: List[Dict[str, str]] = []
    for pdf_path in sorted(out_dir.glob("*.pdf")):
        stem = pdf_path.stem
        error = ""
        try:
            page_count = str(_get_pdf_page_count(pdf_path))
        except fitz.FileDataError as e:
            page_count = ""
            error = f"unreadable PDF: {e}"

        line_count = _line_count(out_dir / f"{stem}.lines.json")
        preview = out_dir / f"{stem}.preview.html"
        snapshots = sorted(out_dir.glob(f"{stem}_p*.png"))

        rows.append(
            {
                "filename": pdf_path.name,
                "date": _export_date(stem),
                "page_count": page_count,
                "line_count": "" if line_count is None else str(line_count),
                "size_bytes": str(pdf_path.stat().st_size),
                "preview_html": str(preview) if preview.exists() else "",
                "snapshots": "|".join(str(p) for p in snapshots),
                "error": error,
            }
        )

    csv_path.parent.mkdir(parents=True, exist_ok=True)

    fieldnames = [
        "filename",
        "date",
        "page_count",
        "line_count",
        "size_bytes",
        "preview_html",
        "snapshots",
        "error",
    ]

    with csv_path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()
        writer.writerows(rows)

    print(f"OK: wrote {len(rows)} rows -> {csv_path}")


if __name__ == "__main__":
    main()
