from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from sqlmodel import select

from .. import config
from ..models import ExportArtifact, ExportRecord, ExportStatus, get_session, init_db
from ..storage import artifact_path, record_artifacts
from .calendar import CalendarItem, build_calendar_lines, calendar_filename_base, calendar_item_from_dict
from .campaign import build_campaign_lines
from .identity_kit import build_identity_kit_lines
from .layout import LayoutOverride, preset, resolve_layout
from .lines import Line, NothingToExport, line_to_dict, parse_lines
from .naming import RenderOptions, slugify_filename
from .payloads import ArtistInputs, parse_campaigns, parse_identity_kit, parse_press_kit
from .press_kit import build_press_kit_lines
from .render_pdf import render_pdf
from .render_preview import write_preview
from .render_snapshot import render_snapshots

logger = logging.getLogger(__name__)

EXPORT_KINDS = ("identity-kit", "campaign", "press-kit", "calendar", "lines")


@dataclass(frozen=True)
class BuiltDocument:
    lines: Tuple[Line, ...]
    filename_base: str
    used_fallback: bool = False
    layout: Dict[str, Any] = field(default_factory=dict)


def _calendar_items(payload: Any) -> List[CalendarItem]:
    if isinstance(payload, dict):
        payload = payload.get("items", [])
    if not isinstance(payload, list):
        raise ValueError("Calendar payload must be a list of items")
    return [item if isinstance(item, CalendarItem) else calendar_item_from_dict(item) for item in payload]


def build_document(
    kind: str,
    payload: Any,
    inputs: Optional[ArtistInputs] = None,
    month: Union[str, date, datetime, None] = None,
    concept: Optional[int] = None,
    name: Optional[str] = None,
) -> BuiltDocument:
    """Validate a payload and turn it into ordered lines for ``kind``."""
    inputs = inputs or ArtistInputs()
    artist = inputs.artist_name or "artist"

    if kind == "identity-kit":
        kit, used_fallback = parse_identity_kit(payload, inputs)
        return BuiltDocument(
            lines=build_identity_kit_lines(kit, inputs, used_fallback),
            filename_base=name or f"{artist} identity kit",
            used_fallback=used_fallback,
        )

    if kind == "campaign":
        campaigns = parse_campaigns(payload, inputs)
        base = f"{artist} concept {concept + 1}" if concept is not None else f"{artist} campaign concepts"
        return BuiltDocument(
            lines=build_campaign_lines(campaigns, inputs, only_concept_index=concept),
            filename_base=name or base,
            used_fallback=campaigns.fallback,
        )

    if kind == "press-kit":
        kit = parse_press_kit(payload)
        return BuiltDocument(
            lines=build_press_kit_lines(kit),
            filename_base=name or f"{kit.artist_name or 'electronic'} press kit",
            layout=preset("press_kit"),
        )

    if kind == "calendar":
        if month is None:
            raise ValueError("Calendar exports need a month (YYYY-MM)")
        return BuiltDocument(
            lines=build_calendar_lines(_calendar_items(payload), month),
            filename_base=name or calendar_filename_base(month),
            layout=preset("calendar"),
        )

    if kind == "lines":
        return BuiltDocument(lines=parse_lines(payload), filename_base=name or "document")

    raise ValueError(f"Unknown export kind: {kind} (expected one of {', '.join(EXPORT_KINDS)})")


def _write_lines_json(lines: Tuple[Line, ...], path: Path) -> Path:
    path.write_text(json.dumps({"lines": [line_to_dict(line) for line in lines]}, indent=2, ensure_ascii=False), encoding="utf-8")
    return path


def _save(record: ExportRecord) -> ExportRecord:
    with get_session() as session:
        session.add(record)
        session.commit()
        session.refresh(record)
    return record


def run_export(
    kind: str,
    payload: Any,
    inputs: Optional[ArtistInputs] = None,
    options: Optional[RenderOptions] = None,
    layout_override: LayoutOverride = None,
    month: Union[str, date, datetime, None] = None,
    concept: Optional[int] = None,
    name: Optional[str] = None,
    preview: bool = True,
    snapshots: bool = False,
    base_dir: Optional[Path] = None,
) -> ExportRecord:
    """
    Build, render and record one export.

    Failures become a FAILED record instead of an exception, except an empty
    document: that is recorded and then re-raised so callers can show it.
    """
    init_db()
    opts = options or RenderOptions()
    record = ExportRecord(kind=kind, slug=slugify_filename(opts.slug or kind))
    artifacts: List[Tuple[str, Path]] = []
    nothing: Optional[NothingToExport] = None

    try:
        doc = build_document(kind, payload, inputs, month=month, concept=concept, name=name)
        record.slug = slugify_filename(opts.slug or doc.filename_base)
        record.line_count = len(doc.lines)
        record.used_fallback = doc.used_fallback

        # Document preset, then house overrides, then the caller's.
        layout = resolve_layout(doc.layout, config.load_layout_preset(), layout_override)
        result = render_pdf(doc.lines, doc.filename_base, layout, opts, base_dir)
        record.filename = result.filename
        record.page_count = result.page_count
        artifacts.append(("pdf", result.path))

        stem = result.path.stem
        artifacts.append(("lines_json", _write_lines_json(doc.lines, artifact_path(stem, "lines_json", base_dir))))
        if preview:
            html_path = write_preview(doc.lines, artifact_path(stem, "preview_html", base_dir), title=stem, layout_override=layout)
            artifacts.append(("preview_html", html_path))
        if snapshots:
            for path in render_snapshots(result.path, stem, config.SNAPSHOT_PAGES, base_dir=base_dir):
                artifacts.append(("snapshot", path))
        record.status = ExportStatus.READY
    except NothingToExport as exc:
        logger.warning("Nothing to export for %s: %s", kind, exc)
        record.status = ExportStatus.FAILED
        record.fail_code = "NOTHING_TO_EXPORT"
        record.fail_detail = str(exc)
        nothing = exc
    except Exception as exc:
        logger.exception("Export error for %s", kind)
        record.status = ExportStatus.FAILED
        record.fail_code = "RENDER_ERROR"
        record.fail_detail = str(exc) or type(exc).__name__

    _save(record)
    if record.status == ExportStatus.READY:
        record_artifacts(record, artifacts)
        logger.info("Export %s READY: %s", record.id, record.filename)
    if nothing is not None:
        raise nothing
    return record


def list_exports(limit: int = 20, status: Optional[ExportStatus] = None) -> List[ExportRecord]:
    init_db()
    with get_session() as session:
        statement = select(ExportRecord)
        if status:
            statement = statement.where(ExportRecord.status == status)
        statement = statement.order_by(ExportRecord.id.desc()).limit(limit)
        return list(session.exec(statement))


def list_artifacts(export_id: int) -> List[ExportArtifact]:
    with get_session() as session:
        statement = select(ExportArtifact).where(ExportArtifact.export_id == export_id)
        return list(session.exec(statement))
