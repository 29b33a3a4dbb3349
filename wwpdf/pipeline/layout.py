from __future__ import annotations

import dataclasses
import math
import re
from dataclasses import dataclass
from typing import Any, Dict, Mapping, NamedTuple, Optional, Tuple, Union

from reportlab.lib.pagesizes import A4, LETTER


PAGE_SIZES: Dict[str, Tuple[float, float]] = {
    "a4": A4,
    "letter": LETTER,
}

PX_PER_PT = 96.0 / 72.0


@dataclass(frozen=True)
class LayoutConfig:
    """Spacing and type constants shared by the PDF and preview renderers.

    All lengths are points. Colours are 0-255 gray levels.
    """

    page_format: str = "a4"

    # Page
    margin_x: float = 64
    margin_top: float = 72
    margin_bottom: float = 64
    max_width_padding: float = 0

    # Type
    font_name: str = "Helvetica"
    font_name_bold: str = "Helvetica-Bold"
    title_size: float = 18
    subtitle_size: float = 11
    section_title_size: float = 11
    body_size: float = 11
    meta_label_size: float = 9
    meta_value_size: float = 9

    title_leading: float = 22
    subtitle_leading: float = 16
    section_title_leading: float = 16
    body_leading: float = 16
    meta_leading: float = 13

    # Spacing
    title_gap_after: float = 6
    gap_after_subtitle: float = 14
    section_title_pad_top: float = 10
    gap_after_section_title: float = 8
    gap_after_paragraph: float = 10
    gap_after_meta: float = 10
    gap_after_two_column: float = 10

    divider_pad_top: float = 16
    rule_thickness: float = 1
    divider_pad_bottom: float = 14
    divider_extra_after: float = 10

    # Meta block
    meta_box_pad_x: float = 10
    meta_box_pad_y: float = 10
    meta_box_radius: float = 10
    meta_row_gap: float = 6
    meta_label_width: float = 120
    meta_col_gap: float = 14

    # Two-column blocks
    two_col_gap: float = 18
    two_col_inner_gap: float = 6
    bullet: str = "• "

    # Footer
    footer_size: float = 9
    footer_offset: float = 26

    text_gray: int = 0
    muted_gray: int = 120
    rule_gray: int = 225
    box_gray: int = 230

    @property
    def page_size(self) -> Tuple[float, float]:
        try:
            return PAGE_SIZES[self.page_format]
        except KeyError as exc:
            raise ValueError(f"Unsupported page format: {self.page_format}") from exc

    @property
    def page_width(self) -> float:
        return self.page_size[0]

    @property
    def page_height(self) -> float:
        return self.page_size[1]

    @property
    def content_width(self) -> float:
        return self.page_width - 2 * self.margin_x - self.max_width_padding

    @property
    def content_bottom(self) -> float:
        return self.page_height - self.margin_bottom

    @property
    def meta_label_column(self) -> float:
        """Meta label width, capped at half the box interior."""
        inner = self.content_width - 2 * self.meta_box_pad_x
        return min(self.meta_label_width, inner / 2)

    @property
    def divider_advance(self) -> float:
        return self.divider_pad_top + self.rule_thickness + self.divider_pad_bottom + self.divider_extra_after


DEFAULT_LAYOUT = LayoutConfig()

# Type-size overrides for particular documents. Spacing stays canonical.
LAYOUT_PRESETS: Dict[str, Dict[str, Any]] = {
    "press_kit": {
        "title_size": 28,
        "title_leading": 32,
        "subtitle_size": 12,
        "subtitle_leading": 18,
        "section_title_size": 12,
        "section_title_leading": 18,
        "gap_after_subtitle": 18,
    },
    "calendar": {
        "title_size": 20,
        "title_leading": 24,
    },
}

LayoutOverride = Union[LayoutConfig, Mapping[str, Any], None]

_FIELD_TYPES = {f.name: str(f.type) for f in dataclasses.fields(LayoutConfig)}
_FIELD_NAMES = set(_FIELD_TYPES)
_CAMEL = re.compile(r"(?<!^)(?=[A-Z])")


def _snake(key: str) -> str:
    return _CAMEL.sub("_", key).lower()


def _coerce(key: str, value: Any) -> Any:
    kind = _FIELD_TYPES[key]
    if kind == "str":
        if not isinstance(value, str):
            raise ValueError(f"Layout key {key} must be a string")
        return value.lower() if key == "page_format" else value
    # bool is an int subclass but never a length
    if isinstance(value, bool):
        raise ValueError(f"Layout key {key} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Layout key {key} must be a number") from exc
    if kind == "int":
        if not math.isfinite(number):
            raise ValueError(f"Layout key {key} must be a number")
        return int(number)
    return number


def _normalize_override(override: Mapping[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    unknown = []
    for raw_key, value in override.items():
        if raw_key == "page" and isinstance(value, Mapping):
            if "format" in value:
                out["page_format"] = str(value["format"]).lower()
            continue
        key = _snake(str(raw_key))
        if key not in _FIELD_NAMES:
            unknown.append(str(raw_key))
            continue
        out[key] = _coerce(key, value)
    if unknown:
        raise ValueError(f"Unknown layout keys: {', '.join(sorted(unknown))}")
    return out


def resolve_layout(*overrides: LayoutOverride, base: LayoutConfig = DEFAULT_LAYOUT) -> LayoutConfig:
    """Merge overrides, left to right, over ``base``.

    Each override may be a mapping (snake_case or camelCase keys) or a full
    ``LayoutConfig``, which replaces everything merged so far.
    """
    resolved = base
    for override in overrides:
        if override is None:
            continue
        if isinstance(override, LayoutConfig):
            resolved = override
            continue
        changes = _normalize_override(override)
        if changes:
            resolved = dataclasses.replace(resolved, **changes)
    return resolved


def preset(name: Optional[str]) -> Dict[str, Any]:
    if not name:
        return {}
    try:
        return dict(LAYOUT_PRESETS[name])
    except KeyError as exc:
        raise ValueError(f"Unknown layout preset: {name}") from exc


class Spacing(NamedTuple):
    before: float
    after: float


def spacing_for(kind: Any, cfg: LayoutConfig = DEFAULT_LAYOUT) -> Spacing:
    """Gap reserved above and below a line (or a line kind string)."""
    kind = getattr(kind, "kind", kind)
    if kind == "title":
        return Spacing(0, cfg.title_gap_after)
    if kind == "subtitle":
        return Spacing(0, cfg.gap_after_subtitle)
    if kind == "sectionTitle":
        return Spacing(cfg.section_title_pad_top, cfg.gap_after_section_title)
    if kind == "body":
        return Spacing(0, cfg.gap_after_paragraph)
    if kind == "divider":
        return Spacing(cfg.divider_pad_top, cfg.divider_pad_bottom + cfg.divider_extra_after)
    if kind == "meta":
        return Spacing(0, cfg.gap_after_meta)
    if kind == "twoColumn":
        return Spacing(0, cfg.gap_after_two_column)
    if kind == "spacer":
        return Spacing(0, 0)
    raise ValueError(f"Unknown line kind: {kind}")


def pt_to_px(pt: float) -> int:
    return int(math.floor(pt * PX_PER_PT + 0.5))
