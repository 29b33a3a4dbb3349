from __future__ import annotations

import json
import logging

from wwpdf.pipeline.payloads import (
    ArtistInputs,
    as_list,
    fallback_identity_kit,
    parse_campaigns,
    parse_identity_kit,
    parse_press_kit,
)

INPUTS = ArtistInputs(artist_name="Nova", genre="Synth-pop", influences="Robyn, Caribou, Jai Paul")


def _valid_kit() -> dict:
    return fallback_identity_kit(INPUTS).model_dump()


def _concepts(n: int) -> list:
    return [{"name": f"Idea {i}", "hook": "Hook", "visual_direction": {"palette": ["#000"]}} for i in range(n)]


def test_as_list_is_lenient() -> None:
    assert as_list([" a ", None, "", {"x": 1}, 3, "“b”"]) == ["a", "3", '"b"']
    assert as_list("not a list") == []
    assert as_list(None) == []


def test_identity_kit_bad_json_uses_fallback(caplog) -> None:
    with caplog.at_level(logging.WARNING):
        kit, used_fallback = parse_identity_kit("{not json", INPUTS)
    assert used_fallback is True
    assert kit.archetype.primary == "Sage"
    assert kit.audience_persona.adjacent_artists == ["Robyn", "Caribou", "Jai Paul"]
    assert "Nova" in kit.brand_essence
    assert "not valid JSON" in caplog.text


def test_identity_kit_meeting_minimums_is_kept() -> None:
    data = _valid_kit()
    data["brand_essence"] = "Custom essence"
    kit, used_fallback = parse_identity_kit(json.dumps({"result": data}), INPUTS)
    assert used_fallback is False
    assert kit.brand_essence == "Custom essence"


def test_identity_kit_below_minimums_uses_fallback() -> None:
    data = _valid_kit()
    data["brand_essence"] = "Custom essence"
    data["taglines"] = ["Only", "Two"]
    kit, used_fallback = parse_identity_kit(data, INPUTS)
    assert used_fallback is True
    assert kit.brand_essence != "Custom essence"


def test_identity_kit_wrong_shapes_do_not_raise() -> None:
    data = _valid_kit()
    data["archetype"] = "Sage"
    data["value_props"] = "one, two, three"
    kit, used_fallback = parse_identity_kit(data, INPUTS)
    assert used_fallback is True
    assert len(kit.value_props) >= 3


def test_fallback_identity_kit_meets_its_own_minimums() -> None:
    assert fallback_identity_kit().meets_minimums()
    assert fallback_identity_kit({"artistName": "Nova"}).seo_keywords[0] == "Nova"


def test_campaigns_bad_json_uses_full_fallback() -> None:
    campaigns = parse_campaigns("{oops", INPUTS)
    assert campaigns.fallback is True
    assert [c.name for c in campaigns.concepts] == ["City After Dark", "Lyric Objects", "Notes To Self"]
    assert "Nova narrates" in campaigns.concepts[0].synopsis
    assert len(campaigns.hashtags) >= 10


def test_campaigns_merge_replaces_only_short_fields() -> None:
    raw = {"concepts": _concepts(3), "kpis": ["Saves"], "hashtags": [f"#tag{i}" for i in range(12)]}
    campaigns = parse_campaigns(raw, INPUTS)
    assert [c.name for c in campaigns.concepts] == ["Idea 0", "Idea 1", "Idea 2"]
    assert len(campaigns.kpis) >= 4 and "Saves" not in campaigns.kpis
    assert campaigns.hashtags[0] == "#tag0"
    assert campaigns.fallback is True


def test_campaigns_complete_payload_is_untouched() -> None:
    raw = {
        "concepts": _concepts(3),
        "kpis": ["a", "b", "c", "d"],
        "hashtags": [f"#t{i}" for i in range(10)],
    }
    campaigns = parse_campaigns(json.dumps(raw), INPUTS)
    assert campaigns.fallback is False
    assert campaigns.kpis == ["a", "b", "c", "d"]
    assert campaigns.concepts[0].visual_direction.palette == ["#000"]


def test_campaigns_non_list_concepts_are_coerced() -> None:
    campaigns = parse_campaigns({"concepts": "three", "kpis": None, "hashtags": 5}, INPUTS)
    assert len(campaigns.concepts) == 3
    assert campaigns.fallback is True


def test_press_kit_accepts_camel_case() -> None:
    kit = parse_press_kit({"artistName": "Nova", "shortBio": "  Bio  ", "contactEmail": "a@b.c"})
    assert kit.artist_name == "Nova"
    assert kit.short_bio == "Bio"
    assert kit.contact_email == "a@b.c"
