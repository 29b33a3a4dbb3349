from __future__ import annotations

from typing import Optional, Tuple

from .identity_kit import artist_header
from .lines import Line, LineBuilder
from .payloads import ArtistInputs, CampaignConcept, Campaigns


def _hashtag(tag: str) -> str:
    return tag if tag.startswith("#") else f"#{tag}"


def _concept_lines(b: LineBuilder, concept: CampaignConcept, number: int) -> None:
    b.section(f"Concept {number}: {concept.name or f'Concept {number}'}")
    b.spacer(8)
    if concept.hook:
        b.body(f"Hook: {concept.hook}")
    if concept.synopsis:
        b.spacer(8).body(concept.synopsis)
    b.spacer()

    vd = concept.visual_direction
    if vd.shotlist:
        b.section("Shotlist").bullets(vd.shotlist).spacer()
    if vd.palette or vd.props:
        b.two_column(
            heading="Visual direction",
            left_title="Palette" if vd.palette else None,
            left=vd.palette,
            right_title="Props / set pieces" if vd.props else None,
            right=vd.props,
        )
    b.spacer()

    if concept.deliverables or concept.caption_tones:
        b.two_column(
            heading="Execution",
            left_title="Deliverables" if concept.deliverables else None,
            left=concept.deliverables,
            right_title="Caption tones" if concept.caption_tones else None,
            right=concept.caption_tones,
        )
        b.spacer()

    tl = concept.timeline
    if tl.teasers or tl.drop_day or tl.post_drop:
        b.section("Timeline (2–3 weeks)")
        if tl.teasers:
            b.body("Teasers").bullets(tl.teasers).spacer(8)
        if tl.drop_day:
            b.body("Drop day").bullets(tl.drop_day).spacer(8)
        if tl.post_drop:
            b.body("Post-drop (weeks 2–3)").bullets(tl.post_drop)


def build_campaign_lines(
    campaigns: Campaigns,
    inputs: Optional[ArtistInputs] = None,
    only_concept_index: Optional[int] = None,
) -> Tuple[Line, ...]:
    """
    Campaign concepts pack. With only_concept_index a single concept is
    exported, keeping its original number, and the performance section is left out.
    """
    inputs = inputs or ArtistInputs()
    b = LineBuilder().extend(artist_header("Campaign Concepts", inputs, campaigns.fallback))
    b.spacer()

    single = only_concept_index is not None
    if single:
        if only_concept_index < 0:
            raise ValueError(f"Concept index must be non-negative, got {only_concept_index}")
        picked = campaigns.concepts[only_concept_index:only_concept_index + 1]
    else:
        picked = campaigns.concepts

    if not picked:
        b.section("No concepts found").body("Generate campaign concepts first.")
        return b.build()

    for idx, concept in enumerate(picked):
        number = only_concept_index + 1 if single else idx + 1
        _concept_lines(b, concept, number)
        if idx != len(picked) - 1:
            b.spacer().divider().spacer()

    if not single and (campaigns.kpis or campaigns.hashtags):
        b.spacer().section("Performance").spacer(8)
        if campaigns.kpis:
            b.body("KPIs:").bullets(campaigns.kpis).spacer(10)
        if campaigns.hashtags:
            b.body("Hashtags:").body(" ".join(_hashtag(tag) for tag in campaigns.hashtags))

    return b.build()
