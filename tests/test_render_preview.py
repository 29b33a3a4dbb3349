from __future__ import annotations

import tempfile
from pathlib import Path

from wwpdf.pipeline.layout import DEFAULT_LAYOUT, pt_to_px, resolve_layout, spacing_for
from wwpdf.pipeline.lines import Body, Divider, SectionTitle, Spacer, Title, TwoColumn, build_standard_header, meta_block
from wwpdf.pipeline.render_pdf import TextOp, layout_document
from wwpdf.pipeline.render_preview import preview_blocks, render_preview_html, write_preview


def _document():
    return build_standard_header("Nova", "Synth-pop", [{"label": "Genre", "value": "Synth-pop"}, {"label": "Goal"}]) + [
        SectionTitle("Core"),
        Body("Brand essence: soft-edged."),
        Spacer(16),
        TwoColumn(heading="Voice", left_title="Tone", left=("assured",), right=("poetic",)),
        Divider(),
        Body("End"),
    ]


def test_preview_and_document_agree_on_order() -> None:
    lines = _document()
    blocks = preview_blocks(lines, DEFAULT_LAYOUT)
    plan = layout_document(lines, DEFAULT_LAYOUT)

    placed = []
    for p in plan.placements:
        if p.index not in placed:
            placed.append(p.index)
    assert [b.index for b in blocks] == placed
    assert [b.kind for b in blocks] == [lines[i].kind for i in placed]


def test_preview_spacing_is_converted_from_points() -> None:
    for block in preview_blocks(_document(), DEFAULT_LAYOUT):
        gap = spacing_for(block.kind)
        assert block.before_px == pt_to_px(gap.before)
        assert block.after_px == pt_to_px(gap.after)

    html = render_preview_html([Divider()])
    assert "padding-top: 21px" in html
    assert "padding-bottom: 32px" in html
    assert "rgb(225,225,225)" in html


def test_preview_matches_type_and_page_metrics() -> None:
    html = render_preview_html(_document())
    assert "font-size: 24px" in html  # title 18pt
    assert "padding: 96px 85px 85px" in html  # margins 72 / 64 / 64
    assert "width: 160px" in html  # meta label column
    assert "—" in html
    assert "text-transform: uppercase" in html


def test_preview_escapes_text() -> None:
    html = render_preview_html([Body("<script>alert('x')</script> & more")])
    assert "<script>" not in html
    assert "&lt;script&gt;" in html
    assert "&amp; more" in html


def test_write_preview_creates_document() -> None:
    with tempfile.TemporaryDirectory() as temp_dir:
        path = write_preview(_document(), Path(temp_dir) / "nested" / "doc.preview.html", title="Nova <Kit>")
        text = path.read_text(encoding="utf-8")
        assert text.startswith("<!DOCTYPE html>")
        assert "<title>Nova &lt;Kit&gt;</title>" in text


def test_newlines_break_lines_in_preview_and_document_alike() -> None:
    lines = [Title("Line one\nLine two"), meta_block([{"label": "Where", "value": "one\ntwo"}]), Body("a    b")]
    plan = layout_document(lines, DEFAULT_LAYOUT)
    texts = [op.text for op in plan.ops if isinstance(op, TextOp)]
    assert texts[:2] == ["Line one", "Line two"]
    assert ["one", "two"] == [t for t in texts if t in ("one", "two")]
    assert "a b" in texts

    blocks = preview_blocks(lines, DEFAULT_LAYOUT)
    assert "Line one\nLine two" in blocks[0].html
    assert "one\ntwo" in blocks[1].html
    for block in blocks:
        assert "white-space: pre-line" in block.html
    assert "pre-wrap" not in render_preview_html(lines)


def test_meta_label_column_is_clamped_like_the_document() -> None:
    cfg = resolve_layout({"marginX": 230})
    assert cfg.meta_label_column < cfg.meta_label_width
    html = render_preview_html([meta_block([{"label": "Genre", "value": "Pop"}])], cfg)
    assert f"width: {pt_to_px(cfg.meta_label_column)}px" in html
    assert f"width: {pt_to_px(cfg.meta_label_width)}px" not in html

    plan = layout_document([meta_block([{"label": "Genre", "value": "Pop"}])], cfg)
    value_op = next(op for op in plan.ops if isinstance(op, TextOp) and op.text == "Pop")
    assert value_op.x == cfg.margin_x + cfg.meta_box_pad_x + cfg.meta_label_column + cfg.meta_col_gap
