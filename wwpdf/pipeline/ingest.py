from __future__ import annotations

import csv
import json
import re
from pathlib import Path
from typing import Any, List, Tuple

from .calendar import CalendarItem, calendar_item_from_dict


REQUIRED_COLUMNS = {"title", "scheduled_at"}

_TAG_SPLIT = re.compile(r"[\s,|]+")


def load_json(path: Path) -> Any:
    if not path.exists():
        raise FileNotFoundError(f"JSON not found: {path}")
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {path}: {e}") from e


def load_rows(csv_path: Path) -> List[Tuple[int, dict]]:
    """Non-blank rows paired with the file line they end on."""
    if not csv_path.exists():
        raise FileNotFoundError(f"CSV not found: {csv_path}")
    rows: List[Tuple[int, dict]] = []
    with csv_path.open("r", encoding="utf-8", newline="") as handle:
        reader = csv.DictReader(handle)
        if reader.fieldnames is None:
            raise ValueError("CSV has no header")
        missing = REQUIRED_COLUMNS - set(reader.fieldnames)
        if missing:
            raise ValueError(f"CSV missing columns: {', '.join(sorted(missing))}")
        for row in reader:
            if any((value or "").strip() for value in row.values() if isinstance(value, str)):
                rows.append((reader.line_num, row))
    return rows


def load_calendar_items(csv_path: Path) -> List[CalendarItem]:
    """Calendar rows from CSV. ``hashtags`` may be separated by spaces, commas or pipes."""
    items: List[CalendarItem] = []
    for line_no, row in load_rows(csv_path):
        tags = [t for t in _TAG_SPLIT.split(row.get("hashtags") or "") if t]
        try:
            items.append(calendar_item_from_dict({**row, "hashtags": tags}))
        except ValueError as e:
            raise ValueError(f"{csv_path}:{line_no}: {e}") from e
    return items
