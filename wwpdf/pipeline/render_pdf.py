from __future__ import annotations

import io
import logging
import math
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import BinaryIO, Iterable, List, Optional, Sequence, Union

from reportlab.lib import colors
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from .. import config
from ..storage import export_dir
from .layout import LayoutConfig, LayoutOverride, resolve_layout, spacing_for
from .lines import (
    Divider,
    Line,
    Meta,
    MetaItem,
    NothingToExport,
    SectionTitle,
    Spacer,
    Subtitle,
    Title,
    TwoColumn,
    is_empty_line,
)
from .naming import RenderOptions, export_filename

logger = logging.getLogger(__name__)


# -------------------- Plan types --------------------

@dataclass(frozen=True)
class RenderCursor:
    """Current page index and vertical offset, measured down from the page top."""

    page: int = 0
    y: float = 0.0

    def advance(self, dy: float) -> "RenderCursor":
        return replace(self, y=self.y + dy)

    def next_page(self, top: float) -> "RenderCursor":
        return RenderCursor(page=self.page + 1, y=top)

    def at_top(self, cfg: LayoutConfig) -> bool:
        return self.y <= cfg.margin_top


@dataclass(frozen=True)
class TextOp:
    page: int
    x: float
    y: float  # baseline
    text: str
    font: str
    size: float
    gray: int


@dataclass(frozen=True)
class RuleOp:
    page: int
    x1: float
    x2: float
    y: float
    thickness: float
    gray: int


@dataclass(frozen=True)
class BoxOp:
    page: int
    x: float
    y: float  # top edge
    width: float
    height: float
    radius: float
    gray: int


DrawOp = Union[TextOp, RuleOp, BoxOp]


@dataclass(frozen=True)
class Placement:
    """Area a line (or one page's share of it) occupies."""

    index: int
    kind: str
    page: int
    top: float
    height: float

    @property
    def bottom(self) -> float:
        return self.top + self.height


@dataclass
class DocumentPlan:
    page_count: int = 1
    ops: List[DrawOp] = field(default_factory=list)
    placements: List[Placement] = field(default_factory=list)
    skipped: List[int] = field(default_factory=list)

    def ops_for_page(self, page: int) -> List[DrawOp]:
        return [op for op in self.ops if op.page == page]

    def placements_for(self, index: int) -> List[Placement]:
        return [p for p in self.placements if p.index == index]


@dataclass(frozen=True)
class RenderResult:
    path: Path
    filename: str
    page_count: int
    plan: DocumentPlan


# -------------------- Measurement --------------------

def _split_long_word(word: str, font_name: str, font_size: float, max_width: float) -> List[str]:
    chunks: List[str] = []
    cur = ""
    for ch in word:
        if cur and stringWidth(cur + ch, font_name, font_size) > max_width:
            chunks.append(cur)
            cur = ch
        else:
            cur += ch
    if cur:
        chunks.append(cur)
    return chunks


def wrap_text(text: str, font_name: str, font_size: float, max_width: float) -> List[str]:
    """
    Word wrap with the renderer's own font metrics.
    Explicit newlines start a new line; a word wider than the line is split by character.
    """
    lines: List[str] = []
    for paragraph in (text or "").split("\n"):
        words = paragraph.split()
        if not words:
            lines.append("")
            continue

        cur: List[str] = []
        for w in words:
            test = " ".join(cur + [w])
            if stringWidth(test, font_name, font_size) <= max_width:
                cur.append(w)
                continue

            if cur:
                lines.append(" ".join(cur))
                cur = []

            if stringWidth(w, font_name, font_size) <= max_width:
                cur = [w]
            else:
                pieces = _split_long_word(w, font_name, font_size, max_width)
                lines.extend(pieces[:-1])
                cur = [pieces[-1]]

        if cur:
            lines.append(" ".join(cur))

    while lines and not lines[-1]:
        lines.pop()
    while lines and not lines[0]:
        lines.pop(0)
    return lines


def _baseline(top: float, size: float, leading: float) -> float:
    # Centre the cap height inside the leading band.
    return top + leading / 2 + size * 0.35


def _valid_geometry(*values: float) -> bool:
    return all(isinstance(v, (int, float)) and math.isfinite(v) for v in values)


@dataclass(frozen=True)
class _TextStyle:
    font: str
    size: float
    leading: float


def _text_style(line: Line, cfg: LayoutConfig) -> _TextStyle:
    if isinstance(line, Title):
        return _TextStyle(cfg.font_name_bold, cfg.title_size, cfg.title_leading)
    if isinstance(line, Subtitle):
        return _TextStyle(cfg.font_name, cfg.subtitle_size, cfg.subtitle_leading)
    if isinstance(line, SectionTitle):
        return _TextStyle(cfg.font_name_bold, cfg.section_title_size, cfg.section_title_leading)
    return _TextStyle(cfg.font_name, cfg.body_size, cfg.body_leading)


def _display_text(line: Line) -> str:
    if isinstance(line, SectionTitle):
        return line.text.upper()
    return line.text


@dataclass(frozen=True)
class _MetaRow:
    label: List[str]
    value: List[str]
    height: float


@dataclass(frozen=True)
class _MetaGeometry:
    label_x: float
    label_width: float
    value_x: float
    value_width: float


def _meta_geometry(cfg: LayoutConfig) -> _MetaGeometry:
    inner = cfg.content_width - 2 * cfg.meta_box_pad_x
    label_width = cfg.meta_label_column
    label_x = cfg.margin_x + cfg.meta_box_pad_x
    value_x = label_x + label_width + cfg.meta_col_gap
    value_width = inner - label_width - cfg.meta_col_gap
    return _MetaGeometry(label_x, label_width, value_x, value_width)


def _meta_rows(items: Sequence[MetaItem], geo: _MetaGeometry, cfg: LayoutConfig) -> List[_MetaRow]:
    rows: List[_MetaRow] = []
    for item in items:
        label = wrap_text(item.label, cfg.font_name_bold, cfg.meta_label_size, geo.label_width)
        value = wrap_text(item.display_value, cfg.font_name, cfg.meta_value_size, geo.value_width)
        count = max(len(label), len(value), 1)
        rows.append(_MetaRow(label=label, value=value, height=count * cfg.meta_leading))
    return rows


def _meta_box_height(rows: Sequence[_MetaRow], cfg: LayoutConfig) -> float:
    if not rows:
        return 0.0
    return 2 * cfg.meta_box_pad_y + sum(r.height for r in rows) + (len(rows) - 1) * cfg.meta_row_gap


@dataclass(frozen=True)
class _Column:
    title: List[str]
    bullets: List[List[str]]

    def height(self, cfg: LayoutConfig) -> float:
        h = 0.0
        if self.title:
            h += len(self.title) * cfg.body_leading + cfg.two_col_inner_gap
        h += sum(len(b) for b in self.bullets) * cfg.body_leading
        return h


def _column(title: Optional[str], items: Sequence[str], width: float, cfg: LayoutConfig) -> _Column:
    title_lines = wrap_text(title, cfg.font_name_bold, cfg.body_size, width) if title else []
    bullets = [wrap_text(f"{cfg.bullet}{item}", cfg.font_name, cfg.body_size, width) for item in items]
    return _Column(title=title_lines, bullets=bullets)


def _two_col_width(cfg: LayoutConfig) -> float:
    return (cfg.content_width - cfg.two_col_gap) / 2


def _heading_lines(line: TwoColumn, cfg: LayoutConfig) -> List[str]:
    if not line.heading:
        return []
    return wrap_text(line.heading.upper(), cfg.font_name_bold, cfg.section_title_size, cfg.content_width)


def _heading_height(heading: List[str], cfg: LayoutConfig) -> float:
    if not heading:
        return 0.0
    return len(heading) * cfg.section_title_leading + cfg.gap_after_section_title


def measure_line(line: Line, cfg: LayoutConfig) -> float:
    """Height a line needs at the current content width, trailing gap excluded."""
    if isinstance(line, Divider):
        return cfg.divider_pad_top + cfg.rule_thickness + cfg.divider_pad_bottom + cfg.divider_extra_after
    if isinstance(line, Spacer):
        return line.height
    if isinstance(line, Meta):
        return _meta_box_height(_meta_rows(line.items, _meta_geometry(cfg), cfg), cfg)
    if isinstance(line, TwoColumn):
        width = _two_col_width(cfg)
        left = _column(line.left_title, line.left, width, cfg)
        right = _column(line.right_title, line.right, width, cfg)
        return _heading_height(_heading_lines(line, cfg), cfg) + max(left.height(cfg), right.height(cfg))
    style = _text_style(line, cfg)
    wrapped = wrap_text(_display_text(line), style.font, style.size, cfg.content_width)
    return len(wrapped) * style.leading


# -------------------- Layout --------------------

class _PlanWriter:
    """Collects ops and placements; holds no cursor state."""

    def __init__(self, cfg: LayoutConfig) -> None:
        self.cfg = cfg
        self.plan = DocumentPlan()

    @property
    def page_room(self) -> float:
        return self.cfg.content_bottom - self.cfg.margin_top

    def ensure_space(self, cursor: RenderCursor, needed: float) -> RenderCursor:
        if cursor.y + needed > self.cfg.content_bottom and not cursor.at_top(self.cfg):
            return cursor.next_page(self.cfg.margin_top)
        return cursor

    def fits_fresh_page(self, needed: float) -> bool:
        return needed <= self.page_room

    def text(self, cursor: RenderCursor, x: float, text: str, style: _TextStyle, gray: Optional[int] = None) -> None:
        self.plan.ops.append(
            TextOp(
                page=cursor.page,
                x=x,
                y=_baseline(cursor.y, style.size, style.leading),
                text=text,
                font=style.font,
                size=style.size,
                gray=self.cfg.text_gray if gray is None else gray,
            )
        )

    def place(self, index: int, kind: str, cursor: RenderCursor, height: float) -> None:
        self.plan.placements.append(Placement(index=index, kind=kind, page=cursor.page, top=cursor.y, height=height))

    def skip(self, index: int, kind: str, reason: str, **geometry: float) -> None:
        self.plan.skipped.append(index)
        logger.error("Skipping %s line %d: %s %s", kind, index, reason, geometry)

    def flow(self, index: int, kind: str, cursor: RenderCursor, x: float, lines: Sequence[str], style: _TextStyle) -> RenderCursor:
        """Draw wrapped lines one at a time, breaking pages between them."""
        for text in lines:
            cursor = self.ensure_space(cursor, style.leading)
            self.text(cursor, x, text, style)
            self.place(index, kind, cursor, style.leading)
            cursor = cursor.advance(style.leading)
        return cursor


def _layout_text(w: _PlanWriter, index: int, line: Line, cursor: RenderCursor) -> RenderCursor:
    cfg = w.cfg
    x, width = cfg.margin_x, cfg.content_width
    if not _valid_geometry(x, cursor.y, width) or width <= 0:
        w.skip(index, line.kind, "invalid geometry", x=x, y=cursor.y, width=width)
        return cursor

    style = _text_style(line, cfg)
    wrapped = wrap_text(_display_text(line), style.font, style.size, width)
    if not wrapped:
        return cursor

    before, after = spacing_for(line.kind, cfg)
    text_h = len(wrapped) * style.leading
    # Section titles reserve their trailing gap too so they never end a page.
    needed = before + text_h + (after if isinstance(line, SectionTitle) else 0)

    if not w.fits_fresh_page(needed):
        cursor = w.ensure_space(cursor, before + style.leading)
        cursor = cursor.advance(before)
        cursor = w.flow(index, line.kind, cursor, x, wrapped, style)
        return cursor.advance(after)

    cursor = w.ensure_space(cursor, needed)
    cursor = cursor.advance(before)
    w.place(index, line.kind, cursor, text_h)
    for i, text in enumerate(wrapped):
        w.text(cursor.advance(i * style.leading), x, text, style)
    return cursor.advance(text_h + after)


def _layout_divider(w: _PlanWriter, index: int, cursor: RenderCursor) -> RenderCursor:
    cfg = w.cfg
    x, width = cfg.margin_x, cfg.content_width
    needed = measure_line(Divider(), cfg)
    if not _valid_geometry(x, cursor.y, width) or width <= 0 or not w.fits_fresh_page(needed):
        w.skip(index, "divider", "invalid geometry", x=x, y=cursor.y, width=width)
        return cursor

    cursor = w.ensure_space(cursor, needed)
    w.place(index, "divider", cursor, needed)
    rule_y = cursor.y + cfg.divider_pad_top + cfg.rule_thickness / 2
    w.plan.ops.append(
        RuleOp(page=cursor.page, x1=x, x2=x + width, y=rule_y, thickness=cfg.rule_thickness, gray=cfg.rule_gray)
    )
    return cursor.advance(needed)


def _layout_spacer(w: _PlanWriter, index: int, line: Spacer, cursor: RenderCursor) -> RenderCursor:
    if line.height <= 0:
        return cursor
    if cursor.y + line.height > w.cfg.content_bottom:
        # A gap that runs off the page is absorbed by the page break.
        if cursor.at_top(w.cfg):
            return cursor
        return cursor.next_page(w.cfg.margin_top)
    w.place(index, "spacer", cursor, line.height)
    return cursor.advance(line.height)


def _draw_meta_box(
    w: _PlanWriter,
    index: int,
    rows: Sequence[_MetaRow],
    geo: _MetaGeometry,
    cursor: RenderCursor,
) -> RenderCursor:
    cfg = w.cfg
    box_h = _meta_box_height(rows, cfg)
    w.place(index, "meta", cursor, box_h)
    w.plan.ops.append(
        BoxOp(
            page=cursor.page,
            x=cfg.margin_x,
            y=cursor.y,
            width=cfg.content_width,
            height=box_h,
            radius=cfg.meta_box_radius,
            gray=cfg.box_gray,
        )
    )

    label_style = _TextStyle(cfg.font_name_bold, cfg.meta_label_size, cfg.meta_leading)
    value_style = _TextStyle(cfg.font_name, cfg.meta_value_size, cfg.meta_leading)
    row_cursor = cursor.advance(cfg.meta_box_pad_y)
    for row in rows:
        for i, text in enumerate(row.label):
            w.text(row_cursor.advance(i * cfg.meta_leading), geo.label_x, text, label_style)
        for i, text in enumerate(row.value):
            w.text(row_cursor.advance(i * cfg.meta_leading), geo.value_x, text, value_style)
        row_cursor = row_cursor.advance(row.height + cfg.meta_row_gap)
    return cursor.advance(box_h)


def _layout_meta(w: _PlanWriter, index: int, line: Meta, cursor: RenderCursor) -> RenderCursor:
    cfg = w.cfg
    geo = _meta_geometry(cfg)
    if not _valid_geometry(geo.label_x, geo.value_x, cursor.y, geo.label_width, geo.value_width) or min(
        geo.label_width, geo.value_width
    ) <= 0:
        w.skip(index, "meta", "invalid geometry", x=geo.label_x, y=cursor.y, width=geo.value_width)
        return cursor

    rows = _meta_rows(line.items, geo, cfg)
    if not rows:
        return cursor

    total = _meta_box_height(rows, cfg)
    if w.fits_fresh_page(total):
        cursor = w.ensure_space(cursor, total)

    # Rows that do not fit continue in a fresh box on the next page.
    pending: List[_MetaRow] = []
    for row in rows:
        if _meta_box_height(pending + [row], cfg) <= cfg.content_bottom - cursor.y:
            pending.append(row)
            continue
        if pending:
            cursor = _draw_meta_box(w, index, pending, geo, cursor)
            pending = []
        if not cursor.at_top(cfg):
            cursor = cursor.next_page(cfg.margin_top)
        if not w.fits_fresh_page(_meta_box_height([row], cfg)):
            w.skip(index, "meta", "row taller than a page", height=row.height)
            continue
        pending = [row]
    if pending:
        cursor = _draw_meta_box(w, index, pending, geo, cursor)

    return cursor.advance(spacing_for("meta", cfg).after)


def _layout_column(w: _PlanWriter, col: _Column, x: float, cursor: RenderCursor) -> RenderCursor:
    cfg = w.cfg
    title_style = _TextStyle(cfg.font_name_bold, cfg.body_size, cfg.body_leading)
    body_style = _TextStyle(cfg.font_name, cfg.body_size, cfg.body_leading)
    if col.title:
        for text in col.title:
            w.text(cursor, x, text, title_style)
            cursor = cursor.advance(cfg.body_leading)
        cursor = cursor.advance(cfg.two_col_inner_gap)
    for bullet in col.bullets:
        for text in bullet:
            w.text(cursor, x, text, body_style)
            cursor = cursor.advance(cfg.body_leading)
    return cursor


def _layout_two_column(w: _PlanWriter, index: int, line: TwoColumn, cursor: RenderCursor) -> RenderCursor:
    cfg = w.cfg
    col_w = _two_col_width(cfg)
    left_x = cfg.margin_x
    right_x = cfg.margin_x + col_w + cfg.two_col_gap
    if not _valid_geometry(left_x, right_x, cursor.y, col_w) or col_w <= 0:
        w.skip(index, "twoColumn", "invalid geometry", x=right_x, y=cursor.y, width=col_w)
        return cursor

    heading = _heading_lines(line, cfg)
    heading_h = _heading_height(heading, cfg)
    left = _column(line.left_title, line.left, col_w, cfg)
    right = _column(line.right_title, line.right, col_w, cfg)
    block_h = heading_h + max(left.height(cfg), right.height(cfg))
    after = spacing_for("twoColumn", cfg).after
    heading_style = _TextStyle(cfg.font_name_bold, cfg.section_title_size, cfg.section_title_leading)

    if not w.fits_fresh_page(block_h):
        # Too tall for any page: heading, then the left column, then the right.
        title_style = _TextStyle(cfg.font_name_bold, cfg.body_size, cfg.body_leading)
        body_style = _TextStyle(cfg.font_name, cfg.body_size, cfg.body_leading)
        cursor = w.flow(index, "twoColumn", cursor, left_x, heading, heading_style)
        if heading:
            cursor = cursor.advance(cfg.gap_after_section_title)
        for col in (left, right):
            if col.title:
                cursor = w.flow(index, "twoColumn", cursor, left_x, col.title, title_style)
                cursor = cursor.advance(cfg.two_col_inner_gap)
            for bullet in col.bullets:
                cursor = w.flow(index, "twoColumn", cursor, left_x, bullet, body_style)
        return cursor.advance(after)

    cursor = w.ensure_space(cursor, block_h)
    w.place(index, "twoColumn", cursor, block_h)
    for i, text in enumerate(heading):
        w.text(cursor.advance(i * cfg.section_title_leading), left_x, text, heading_style)

    col_top = cursor.advance(heading_h)
    left_end = _layout_column(w, left, left_x, col_top)
    right_end = _layout_column(w, right, right_x, col_top)
    return replace(cursor, y=max(left_end.y, right_end.y)).advance(after)


def layout_document(lines: Iterable[Line], cfg: LayoutConfig) -> DocumentPlan:
    """Place every line on a page. Pure: measures with font metrics, draws nothing."""
    w = _PlanWriter(cfg)
    cursor = RenderCursor(page=0, y=cfg.margin_top)

    for index, line in enumerate(lines):
        if is_empty_line(line):
            continue
        if isinstance(line, Spacer):
            cursor = _layout_spacer(w, index, line, cursor)
        elif isinstance(line, Divider):
            cursor = _layout_divider(w, index, cursor)
        elif isinstance(line, Meta):
            cursor = _layout_meta(w, index, line, cursor)
        elif isinstance(line, TwoColumn):
            cursor = _layout_two_column(w, index, line, cursor)
        else:
            cursor = _layout_text(w, index, line, cursor)

    w.plan.page_count = cursor.page + 1
    return w.plan


# -------------------- Drawing --------------------

def _gray(level: int) -> colors.Color:
    v = max(0, min(255, int(level))) / 255.0
    return colors.Color(v, v, v)


def _draw_op(canv: canvas.Canvas, op: DrawOp, page_h: float) -> None:
    if isinstance(op, TextOp):
        canv.setFont(op.font, op.size)
        canv.setFillColor(_gray(op.gray))
        canv.drawString(op.x, page_h - op.y, op.text)
    elif isinstance(op, RuleOp):
        canv.setStrokeColor(_gray(op.gray))
        canv.setLineWidth(op.thickness)
        canv.line(op.x1, page_h - op.y, op.x2, page_h - op.y)
    elif isinstance(op, BoxOp):
        canv.setStrokeColor(_gray(op.gray))
        canv.setLineWidth(0.6)
        canv.roundRect(op.x, page_h - op.y - op.height, op.width, op.height, radius=op.radius, stroke=1, fill=0)


def _draw_footer(canv: canvas.Canvas, cfg: LayoutConfig, page_no: int, page_count: int, product_name: str) -> None:
    canv.setFont(cfg.font_name, cfg.footer_size)
    canv.setFillColor(_gray(cfg.muted_gray))
    canv.drawString(cfg.margin_x, cfg.footer_offset, product_name)
    canv.drawRightString(cfg.page_width - cfg.margin_x, cfg.footer_offset, f"Page {page_no} / {page_count}")


def draw_plan(canv: canvas.Canvas, plan: DocumentPlan, cfg: LayoutConfig, product_name: Optional[str] = None) -> None:
    name = product_name or config.PRODUCT_NAME
    for page in range(plan.page_count):
        for op in plan.ops_for_page(page):
            _draw_op(canv, op, cfg.page_height)
        _draw_footer(canv, cfg, page + 1, plan.page_count, name)
        canv.showPage()


# -------------------- Entry points --------------------

def has_content(lines: Sequence[Line]) -> bool:
    return any(not isinstance(line, (Divider, Spacer)) and not is_empty_line(line) for line in lines)


def _document_title(lines: Sequence[Line]) -> str:
    for line in lines:
        if isinstance(line, Title) and line.text:
            return line.text
    return config.PRODUCT_NAME


def render_document(lines: Sequence[Line], target: Union[str, BinaryIO], cfg: LayoutConfig) -> DocumentPlan:
    plan = layout_document(lines, cfg)
    canv = canvas.Canvas(target, pagesize=cfg.page_size, invariant=1)
    canv.setTitle(_document_title(lines))
    canv.setAuthor(config.PRODUCT_NAME)
    draw_plan(canv, plan, cfg)
    canv.save()
    if plan.skipped:
        logger.warning("Rendered with %d skipped line(s): %s", len(plan.skipped), plan.skipped)
    return plan


def _require_content(lines: Sequence[Line]) -> None:
    if not has_content(lines):
        raise NothingToExport("Nothing to export: the document has no content.")


def render_pdf(
    lines: Iterable[Line],
    filename_base: Optional[str],
    layout_override: LayoutOverride = None,
    options: Optional[RenderOptions] = None,
    base_dir: Optional[Path] = None,
) -> RenderResult:
    lines = tuple(lines)
    _require_content(lines)
    cfg = resolve_layout(layout_override)

    filename = export_filename(filename_base, options)
    path = export_dir(base_dir) / filename
    plan = render_document(lines, str(path), cfg)
    logger.info("Exported %s (%d page(s), %d line(s))", filename, plan.page_count, len(lines))
    return RenderResult(path=path, filename=filename, page_count=plan.page_count, plan=plan)


def render_pdf_bytes(lines: Iterable[Line], layout_override: LayoutOverride = None) -> bytes:
    lines = tuple(lines)
    _require_content(lines)
    buffer = io.BytesIO()
    render_document(lines, buffer, resolve_layout(layout_override))
    return buffer.getvalue()
