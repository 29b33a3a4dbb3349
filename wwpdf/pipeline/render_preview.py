from __future__ import annotations

import logging
from dataclasses import dataclass
from html import escape
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from .. import config
from .layout import LayoutConfig, LayoutOverride, pt_to_px, resolve_layout, spacing_for
from .lines import (
    Divider,
    Line,
    Meta,
    SectionTitle,
    Spacer,
    Subtitle,
    Title,
    TwoColumn,
    is_empty_line,
)

logger = logging.getLogger(__name__)

FONT_STACK = "Helvetica, Arial, sans-serif"


@dataclass(frozen=True)
class PreviewBlock:
    """One HTML block per line; spacing in whole pixels."""

    index: int
    kind: str
    before_px: int
    after_px: int
    html: str


def _px(pt: float) -> str:
    return f"{pt_to_px(pt)}px"


def _rgb(level: int) -> str:
    return f"rgb({level},{level},{level})"


def _style(props: Dict[str, str]) -> str:
    return "; ".join(f"{key}: {value}" for key, value in props.items())


def _div(props: Dict[str, str], inner: str = "", css_class: Optional[str] = None) -> str:
    cls = f' class="{css_class}"' if css_class else ""
    return f'<div{cls} style="{escape(_style(props))}">{inner}</div>'


def _text_props(size: float, leading: float, weight: int, cfg: LayoutConfig) -> Dict[str, str]:
    return {
        "font-family": FONT_STACK,
        "font-weight": str(weight),
        "font-size": _px(size),
        "line-height": _px(leading),
        "color": _rgb(cfg.text_gray),
        # Same line breaks as wrap_text: newlines kept, space runs collapsed.
        "white-space": "pre-line",
    }


def _text_block(line: Line, cfg: LayoutConfig, before: int, after: int) -> str:
    if isinstance(line, Title):
        props = _text_props(cfg.title_size, cfg.title_leading, 700, cfg)
    elif isinstance(line, Subtitle):
        props = _text_props(cfg.subtitle_size, cfg.subtitle_leading, 400, cfg)
    elif isinstance(line, SectionTitle):
        props = _text_props(cfg.section_title_size, cfg.section_title_leading, 700, cfg)
        props["text-transform"] = "uppercase"
    else:
        props = _text_props(cfg.body_size, cfg.body_leading, 400, cfg)
    props["margin-top"] = f"{before}px"
    props["margin-bottom"] = f"{after}px"
    return _div(props, escape(line.text), css_class=f"ww-{line.kind}")


def _divider_block(cfg: LayoutConfig, before: int, after: int) -> str:
    rule = _div({"height": _px(cfg.rule_thickness), "background": _rgb(cfg.rule_gray)})
    return _div({"padding-top": f"{before}px", "padding-bottom": f"{after}px"}, rule, css_class="ww-divider")


def _meta_block(line: Meta, cfg: LayoutConfig, after: int) -> str:
    rows: List[str] = []
    last = len(line.items) - 1
    for i, item in enumerate(line.items):
        label = _div(
            {
                **_text_props(cfg.meta_label_size, cfg.meta_leading, 700, cfg),
                "width": _px(cfg.meta_label_column),
                "flex-shrink": "0",
            },
            escape(item.label),
        )
        value = _div(
            {**_text_props(cfg.meta_value_size, cfg.meta_leading, 400, cfg), "flex": "1"},
            escape(item.display_value),
        )
        row_props = {"display": "flex", "gap": _px(cfg.meta_col_gap)}
        if i != last:
            row_props["margin-bottom"] = _px(cfg.meta_row_gap)
        rows.append(_div(row_props, label + value))

    box = {
        "border": f"1px solid {_rgb(cfg.box_gray)}",
        "border-radius": _px(cfg.meta_box_radius),
        "padding": f"{_px(cfg.meta_box_pad_y)} {_px(cfg.meta_box_pad_x)}",
        "margin-bottom": f"{after}px",
    }
    return _div(box, "".join(rows), css_class="ww-meta")


def _column(title: Optional[str], items: Iterable[str], cfg: LayoutConfig) -> str:
    parts: List[str] = []
    if title:
        props = _text_props(cfg.body_size, cfg.body_leading, 700, cfg)
        props["margin-bottom"] = _px(cfg.two_col_inner_gap)
        parts.append(_div(props, escape(title)))
    body = _text_props(cfg.body_size, cfg.body_leading, 400, cfg)
    for item in items:
        parts.append(_div(body, escape(f"{cfg.bullet}{item}")))
    return _div({"flex": "1", "min-width": "0"}, "".join(parts))


def _two_column_block(line: TwoColumn, cfg: LayoutConfig, after: int) -> str:
    parts: List[str] = []
    if line.heading:
        props = _text_props(cfg.section_title_size, cfg.section_title_leading, 700, cfg)
        props["text-transform"] = "uppercase"
        props["margin-bottom"] = _px(cfg.gap_after_section_title)
        parts.append(_div(props, escape(line.heading)))
    columns = _column(line.left_title, line.left, cfg) + _column(line.right_title, line.right, cfg)
    parts.append(_div({"display": "flex", "gap": _px(cfg.two_col_gap)}, columns))
    return _div({"margin-bottom": f"{after}px"}, "".join(parts), css_class="ww-two-column")


def preview_blocks(lines: Iterable[Line], cfg: Optional[LayoutConfig] = None) -> List[PreviewBlock]:
    cfg = cfg or resolve_layout()
    blocks: List[PreviewBlock] = []
    for index, line in enumerate(lines):
        if is_empty_line(line):
            continue
        gap = spacing_for(line.kind, cfg)
        before, after = pt_to_px(gap.before), pt_to_px(gap.after)
        if isinstance(line, Spacer):
            html = _div({"height": _px(line.height)}, css_class="ww-spacer")
        elif isinstance(line, Divider):
            html = _divider_block(cfg, before, after)
        elif isinstance(line, Meta):
            html = _meta_block(line, cfg, after)
        elif isinstance(line, TwoColumn):
            html = _two_column_block(line, cfg, after)
        else:
            html = _text_block(line, cfg, before, after)
        blocks.append(PreviewBlock(index=index, kind=line.kind, before_px=before, after_px=after, html=html))
    return blocks


def render_preview_html(lines: Iterable[Line], layout_override: LayoutOverride = None) -> str:
    cfg = resolve_layout(layout_override)
    page = {
        "box-sizing": "border-box",
        "width": _px(cfg.page_width),
        "background": "#fff",
        "padding": f"{_px(cfg.margin_top)} {_px(cfg.margin_x)} {_px(cfg.margin_bottom)}",
    }
    inner = "\n".join(block.html for block in preview_blocks(lines, cfg))
    return _div(page, inner, css_class="ww-page")


def write_preview(
    lines: Iterable[Line],
    path: Path,
    title: Optional[str] = None,
    layout_override: LayoutOverride = None,
) -> Path:
    fragment = render_preview_html(lines, layout_override)
    doc_title = escape(title or config.PRODUCT_NAME)
    html = (
        "<!DOCTYPE html>\n"
        '<html lang="en">\n<head>\n<meta charset="utf-8">\n'
        f"<title>{doc_title}</title>\n"
        "</head>\n"
        '<body style="margin: 0; padding: 24px; background: rgb(240,240,240)">\n'
        f"{fragment}\n"
        "</body>\n</html>\n"
    )
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(html, encoding="utf-8")
    logger.info("Wrote preview %s", path)
    return path
