from __future__ import annotations

from datetime import date

from wwpdf.pipeline.naming import MAX_SLUG_LENGTH, RenderOptions, export_filename, slugify_filename


def test_slug_sanitization() -> None:
    assert slugify_filename("My Cool Artist!! 2024") == "my-cool-artist-2024"
    assert slugify_filename("Budget / Planner: 2025!") == "budget-planner-2025"
    assert slugify_filename("  --under_score--  ") == "under_score"


def test_empty_slug_falls_back_to_export() -> None:
    assert slugify_filename("") == "export"
    assert slugify_filename("!!!") == "export"
    assert slugify_filename(None) == "export"


def test_slug_never_escapes_directory() -> None:
    slug = slugify_filename("../../etc/passwd")
    assert "/" not in slug and ".." not in slug


def test_long_slug_is_capped_on_hyphen() -> None:
    slug = slugify_filename("word " * 40)
    assert len(slug) <= MAX_SLUG_LENGTH
    assert not slug.endswith("-")
    assert set(slug.split("-")) == {"word"}


def test_filename_contract() -> None:
    day = date(2025, 3, 7)
    assert export_filename("Nova Campaign", RenderOptions(date=day)) == "ww_nova-campaign_2025-03-07.pdf"
    assert export_filename("Nova", RenderOptions(include_date=False)) == "ww_nova.pdf"
    assert export_filename("Nova", RenderOptions(prefix="", include_date=False)) == "nova.pdf"
    assert export_filename("ignored", RenderOptions(prefix="EPK", slug="Press Kit", date=day)) == "epk_press-kit_2025-03-07.pdf"


def test_prefix_without_slug_characters_keeps_house_prefix() -> None:
    assert export_filename("Nova", RenderOptions(prefix="!!!", include_date=False)) == "ww_nova.pdf"
    assert export_filename("Nova", RenderOptions(prefix="  ", include_date=False)) == "nova.pdf"
