from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from itertools import groupby
from typing import Any, Iterable, List, Optional, Sequence, Tuple, Union

from .. import config
from .lines import EM_DASH, Line, LineBuilder, NothingToExport, normalize_text

PLATFORM_LABELS = {
    "instagram": "Instagram",
    "tiktok": "TikTok",
    "youtube": "YouTube Shorts",
    "facebook": "Facebook",
    "x": "X / Twitter",
}

STATUS_LABELS = {
    "planned": "Planned",
    "draft": "Draft",
    "scheduled": "Scheduled",
    "posted": "Posted",
}

NO_ITEMS_MESSAGE = "No scheduled items in this month to export."

_MONTH = re.compile(r"^(\d{4})-(\d{1,2})$")


@dataclass(frozen=True)
class CalendarItem:
    title: Optional[str] = None
    caption: Optional[str] = None
    platform: Optional[str] = None
    status: Optional[str] = None
    scheduled_at: Optional[datetime] = None
    hashtags: Tuple[str, ...] = field(default_factory=tuple)
    feature: Optional[str] = None


def parse_datetime(value: Any) -> Optional[datetime]:
    """ISO-8601 timestamp, date-only strings included. Trailing ``Z`` is accepted."""
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    text = normalize_text(value)
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError as exc:
        raise ValueError(f"Invalid scheduled_at timestamp: {value!r}") from exc


def parse_month(value: Union[str, date, datetime]) -> date:
    if isinstance(value, (date, datetime)):
        return date(value.year, value.month, 1)
    match = _MONTH.match(normalize_text(value))
    if not match or not 1 <= int(match.group(2)) <= 12:
        raise ValueError(f"Month must look like YYYY-MM, got {value!r}")
    return date(int(match.group(1)), int(match.group(2)), 1)


def platform_label(platform: Optional[str]) -> str:
    if not platform:
        return "Unspecified"
    return PLATFORM_LABELS.get(platform, platform)


def status_label(status: Optional[str]) -> str:
    if not status:
        return "Planned"
    return STATUS_LABELS.get(status, status)


def calendar_item_from_dict(data: dict) -> CalendarItem:
    tags = data.get("hashtags") or ()
    if isinstance(tags, str):
        tags = tags.split()
    return CalendarItem(
        title=normalize_text(data.get("title")) or None,
        caption=normalize_text(data.get("caption")) or None,
        platform=normalize_text(data.get("platform")).lower() or None,
        status=normalize_text(data.get("status")).lower() or None,
        scheduled_at=parse_datetime(data.get("scheduled_at")),
        hashtags=tuple(t for t in (normalize_text(tag) for tag in tags) if t),
        feature=normalize_text(data.get("feature")) or None,
    )


def _wall_clock(item: CalendarItem) -> datetime:
    # Timestamps are compared as written; an offset never moves an item to another day.
    return item.scheduled_at.replace(tzinfo=None)


def items_in_month(items: Iterable[CalendarItem], month: Union[str, date, datetime]) -> List[CalendarItem]:
    m = parse_month(month)
    picked = [
        it
        for it in items
        if it.scheduled_at is not None and (it.scheduled_at.year, it.scheduled_at.month) == (m.year, m.month)
    ]
    return sorted(picked, key=_wall_clock)


def day_label(day: date) -> str:
    return f"{day:%A}, {day.day} {day:%B %Y}"


def month_label(month: date) -> str:
    return f"{month:%B %Y}"


def calendar_filename_base(month: Union[str, date, datetime]) -> str:
    m = parse_month(month)
    return f"ww-calendar-detailed-{m.year}-{m.month:02d}"


def _item_subtitle(item: CalendarItem) -> str:
    parts = [
        _wall_clock(item).strftime("%H:%M"),
        platform_label(item.platform),
        status_label(item.status),
        item.feature,
    ]
    return " • ".join(p for p in parts if p)


def build_calendar_lines(
    items: Sequence[CalendarItem],
    month: Union[str, date, datetime],
    header_title: Optional[str] = None,
) -> Tuple[Line, ...]:
    """Detailed month export: one section per day, one block per scheduled item."""
    m = parse_month(month)
    month_items = items_in_month(items, m)
    if not month_items:
        raise NothingToExport(NO_ITEMS_MESSAGE)

    b = LineBuilder()
    b.title(f"Content Calendar {EM_DASH} {header_title or month_label(m)}")
    b.subtitle(f"Detailed export (full text) • {config.PRODUCT_NAME}")
    b.divider()

    for day, day_items in groupby(month_items, key=lambda it: _wall_clock(it).date()):
        b.section(day_label(day))
        for item in day_items:
            b.subtitle(_item_subtitle(item))
            b.body(item.title or "Untitled")
            b.body(item.caption)
            if item.hashtags:
                b.body(" ".join(t if t.startswith("#") else f"#{t}" for t in item.hashtags))
            b.divider()

    return b.build()
