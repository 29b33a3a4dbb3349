from __future__ import annotations

import json
import tempfile
from pathlib import Path

import pytest

from wwpdf import config
from wwpdf.pipeline.layout import DEFAULT_LAYOUT, preset, pt_to_px, resolve_layout, spacing_for
from wwpdf.pipeline.lines import (
    EM_DASH,
    Body,
    Divider,
    LineBuilder,
    Meta,
    SectionTitle,
    Spacer,
    Title,
    TwoColumn,
    build_standard_header,
    line_to_dict,
    meta_block,
    normalize_text,
    parse_lines,
)


def test_normalize_text_straightens_quotes_and_spaces() -> None:
    assert normalize_text("  “Hello” it’s me  ") == "\"Hello\" it's me"
    assert normalize_text(None) == ""


def test_standard_header_scenario_has_five_lines_in_order() -> None:
    lines = build_standard_header("X") + [Divider(), SectionTitle("Y"), Body("Z")]
    assert [line.kind for line in lines] == ["title", "divider", "divider", "sectionTitle", "body"]


def test_standard_header_skips_empty_meta_and_subtitle() -> None:
    lines = build_standard_header("X", "  ", [{"label": "", "value": ""}, None])
    assert [line.kind for line in lines] == ["title", "divider"]

    lines = build_standard_header("X", "Sub", [{"label": "Genre", "value": "Alt"}])
    assert [line.kind for line in lines] == ["title", "subtitle", "meta", "divider"]


def test_meta_keeps_row_order_and_em_dash_placeholder() -> None:
    block = meta_block([{"label": "A", "value": "1"}, {"label": "B"}])
    assert [item.label for item in block.items] == ["A", "B"]
    assert block.items[0].display_value == "1"
    assert block.items[1].display_value == EM_DASH


def test_line_builder_drops_empty_content() -> None:
    lines = (
        LineBuilder()
        .title("Doc")
        .body("   ")
        .body(None)
        .bullets(["one", "", "  ", "two"])
        .meta([])
        .two_column(left=[], right=[" "])
        .build()
    )
    assert [line.kind for line in lines] == ["title", "body", "body"]
    assert [line.text for line in lines[1:]] == ["• one", "• two"]


def test_two_column_cleans_lists() -> None:
    block = TwoColumn(left=("a", "", " b "), right=(), heading=" ")
    assert block.left == ("a", "b")
    assert block.heading is None


def test_spacer_rejects_bad_heights() -> None:
    with pytest.raises(ValueError):
        Spacer(-1)
    with pytest.raises(ValueError):
        Spacer(float("nan"))


def test_lines_json_round_trip_keeps_kinds() -> None:
    data = [
        {"kind": "title", "text": "T"},
        {"kind": "twoCol", "heading": "H", "leftTitle": "L", "left": ["a"], "right": ["b"]},
        {"kind": "meta", "items": [{"label": "A"}]},
        {"kind": "spacer", "height": 12},
    ]
    lines = parse_lines({"lines": data})
    assert isinstance(lines[1], TwoColumn)
    assert lines[1].left_title == "L"
    assert isinstance(lines[2], Meta)
    assert [line_to_dict(line)["kind"] for line in lines] == ["title", "twoColumn", "meta", "spacer"]
    assert parse_lines([line_to_dict(line) for line in lines]) == lines


def test_unknown_line_kind_is_rejected() -> None:
    with pytest.raises(ValueError):
        parse_lines([{"kind": "image", "src": "x.png"}])


def test_resolve_layout_merges_over_defaults() -> None:
    cfg = resolve_layout({"marginX": 50}, {"body_size": 12})
    assert cfg.margin_x == 50
    assert cfg.body_size == 12
    assert DEFAULT_LAYOUT.margin_x == 64
    assert resolve_layout({"page": {"format": "Letter"}}).page_size == (612.0, 792.0)


def test_resolve_layout_rejects_unknown_keys() -> None:
    with pytest.raises(ValueError, match="Unknown layout keys"):
        resolve_layout({"marginLeft": 10})


def test_resolve_layout_coerces_and_rejects_values() -> None:
    cfg = resolve_layout({"marginX": "50", "ruleGray": 200.0, "bullet": "- "})
    assert cfg.margin_x == 50.0
    assert cfg.content_width == DEFAULT_LAYOUT.page_width - 100
    assert cfg.rule_gray == 200 and isinstance(cfg.rule_gray, int)
    assert cfg.bullet == "- "

    with pytest.raises(ValueError, match="Layout key margin_x must be a number"):
        resolve_layout({"marginX": "wide"})
    with pytest.raises(ValueError, match="Layout key body_size must be a number"):
        resolve_layout({"body_size": None})
    with pytest.raises(ValueError, match="must be a number"):
        resolve_layout({"body_size": True})
    with pytest.raises(ValueError, match="Layout key font_name must be a string"):
        resolve_layout({"fontName": 12})


def test_presets_only_touch_type_sizes() -> None:
    cfg = resolve_layout(preset("press_kit"))
    assert cfg.title_size == 28
    assert cfg.divider_advance == DEFAULT_LAYOUT.divider_advance
    assert cfg.gap_after_paragraph == DEFAULT_LAYOUT.gap_after_paragraph
    with pytest.raises(ValueError):
        preset("poster")


def test_spacing_for_divider_matches_advance() -> None:
    gap = spacing_for("divider")
    assert gap.before + DEFAULT_LAYOUT.rule_thickness + gap.after == 41
    assert spacing_for(SectionTitle("x")) == (10, 8)


def test_pt_to_px() -> None:
    assert pt_to_px(72) == 96
    assert pt_to_px(18) == 24
    assert pt_to_px(41) == 55


def test_layout_preset_file() -> None:
    with tempfile.TemporaryDirectory() as temp_dir:
        path = Path(temp_dir) / "layout.json"
        assert config.load_layout_preset(path) == {}
        path.write_text(json.dumps({"bodySize": 10}), encoding="utf-8")
        assert resolve_layout(config.load_layout_preset(path)).body_size == 10
        path.write_text("{broken", encoding="utf-8")
        with pytest.raises(ValueError):
            config.load_layout_preset(path)


def test_title_lines_normalize_on_construction() -> None:
    assert Title("  “Quoted” ").text == '"Quoted"'
