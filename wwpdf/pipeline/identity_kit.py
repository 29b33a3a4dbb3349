from __future__ import annotations

from typing import List, Optional, Tuple

from .. import config
from .lines import EM_DASH, Line, LineBuilder, MetaItem, build_standard_header
from .payloads import ArtistInputs, IdentityKit

FALLBACK_NOTE = "Fallback content used (generator unavailable or incomplete)."


def artist_subtitle(inputs: ArtistInputs) -> str:
    parts: List[str] = []
    if inputs.genre:
        parts.append(inputs.genre)
    if inputs.audience:
        parts.append(f"Audience: {inputs.audience}")
    if inputs.goal:
        parts.append(f"Goal: {inputs.goal}")
    return " • ".join(parts) if parts else config.DEFAULT_SUBTITLE


def artist_meta(inputs: ArtistInputs, used_fallback: bool = False) -> List[Optional[MetaItem]]:
    return [
        MetaItem("Genre", inputs.genre) if inputs.genre else None,
        MetaItem("Audience", inputs.audience) if inputs.audience else None,
        MetaItem("Goal", inputs.goal) if inputs.goal else None,
        MetaItem("Influences", inputs.influences) if inputs.influences else None,
        MetaItem("Brand words", inputs.brand_words) if inputs.brand_words else None,
        MetaItem("Note", FALLBACK_NOTE) if used_fallback else None,
    ]


def artist_header(document: str, inputs: ArtistInputs, used_fallback: bool = False) -> List[Line]:
    title = f"{inputs.artist_name} {EM_DASH} {document}" if inputs.artist_name else document
    return build_standard_header(title, artist_subtitle(inputs), artist_meta(inputs, used_fallback))


def _labelled(label: str, value: str) -> str:
    return f"{label}: {value}" if value else ""


def build_identity_kit_lines(
    kit: IdentityKit,
    inputs: Optional[ArtistInputs] = None,
    used_fallback: bool = False,
) -> Tuple[Line, ...]:
    inputs = inputs or ArtistInputs()
    b = LineBuilder().extend(artist_header("Identity Kit", inputs, used_fallback))

    b.section("Core")
    b.body(_labelled("Brand essence", kit.brand_essence))
    b.body(_labelled("Positioning", kit.one_line_positioning))
    b.body(_labelled("Bio", kit.bio_short))

    if kit.archetype.primary or kit.archetype.secondary:
        b.divider().section("Archetype")
        b.meta(
            [
                MetaItem("Primary", kit.archetype.primary),
                MetaItem("Secondary", kit.archetype.secondary),
            ]
        )

    persona = kit.audience_persona
    if persona.nickname or persona.demographics or persona.psychographics or persona.adjacent_artists:
        b.divider().section(f"Audience persona: {persona.nickname}" if persona.nickname else "Audience persona")
        b.body(_labelled("Demographics", persona.demographics))
        b.body(_labelled("Psychographics", persona.psychographics))
        if persona.adjacent_artists:
            b.body("Adjacent artists").bullets(persona.adjacent_artists)

    if kit.value_props:
        b.divider().section("Value propositions").bullets(kit.value_props)

    visual = kit.visual_aesthetics
    if kit.tone_of_voice or visual.mood_words:
        b.divider()
        b.two_column(
            heading="Voice & mood",
            left_title="Tone of voice" if kit.tone_of_voice else None,
            left=kit.tone_of_voice,
            right_title="Mood words" if visual.mood_words else None,
            right=visual.mood_words,
        )

    if visual.palette or visual.references:
        b.two_column(
            heading="Visual aesthetics",
            left_title="Palette" if visual.palette else None,
            left=visual.palette,
            right_title="References" if visual.references else None,
            right=visual.references,
        )

    if kit.content_pillars:
        b.divider().section("Content pillars")
        for pillar in kit.content_pillars:
            b.body(pillar.name)
            b.body(_labelled("Why", pillar.why))
            b.bullets(pillar.formats)
            b.spacer(8)

    strategy = kit.platform_strategy
    if strategy.primary_platforms or strategy.cadence or strategy.cta_examples:
        b.divider().section("Platform strategy")
        if strategy.primary_platforms:
            b.body(_labelled("Platforms", ", ".join(strategy.primary_platforms)))
        b.body(_labelled("Cadence", strategy.cadence))
        if strategy.cta_examples:
            b.body("Calls to action").bullets(strategy.cta_examples)

    if kit.release_plan_90d:
        b.divider().section("90-day plan")
        for block in kit.release_plan_90d:
            week = f"Weeks {block.week}" if block.week else ""
            b.body(f" {EM_DASH} ".join(part for part in (week, block.focus) if part))
            b.bullets(block.tasks, prefix="  • ")

    if kit.seo_keywords or kit.taglines:
        b.divider()
        b.two_column(
            heading="Keywords & taglines",
            left_title="Keywords" if kit.seo_keywords else None,
            left=kit.seo_keywords,
            right_title="Taglines" if kit.taglines else None,
            right=kit.taglines,
        )

    return b.build()
