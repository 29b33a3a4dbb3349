"""
Shape validation for the loosely-typed JSON the identity and campaign
generators return. Anything that does not meet the minimum contract is
replaced by deterministic fallback content built from the artist inputs.
"""
from __future__ import annotations

import json
import logging
from typing import Annotated, Any, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, ValidationError

from .lines import normalize_text

logger = logging.getLogger(__name__)


def as_list(value: Any) -> List[str]:
    if not isinstance(value, (list, tuple)):
        return []
    out: List[str] = []
    for item in value:
        if isinstance(item, (dict, list)):
            continue
        text = normalize_text(item)
        if text:
            out.append(text)
    return out


def as_text(value: Any) -> str:
    if isinstance(value, (dict, list, tuple)):
        return ""
    return normalize_text(value)


def _as_mapping(value: Any) -> Dict[str, Any]:
    return dict(value) if isinstance(value, Mapping) else {}


def _as_records(value: Any) -> List[Dict[str, Any]]:
    if not isinstance(value, (list, tuple)):
        return []
    return [dict(item) for item in value if isinstance(item, Mapping)]


Text = Annotated[str, BeforeValidator(as_text)]
TextList = Annotated[List[str], BeforeValidator(as_list)]


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ArtistInputs(_Payload):
    artist_name: Text = Field("", alias="artistName")
    genre: Text = ""
    audience: Text = ""
    goal: Text = ""
    influences: Text = ""
    brand_words: Text = Field("", alias="brandWords")


# ---------- identity kit ----------

class Archetype(_Payload):
    primary: Text = ""
    secondary: Text = ""


class AudiencePersona(_Payload):
    nickname: Text = ""
    demographics: Text = ""
    psychographics: Text = ""
    adjacent_artists: TextList = []


class VisualAesthetics(_Payload):
    palette: TextList = []
    mood_words: TextList = []
    references: TextList = []


class ContentPillar(_Payload):
    name: Text = ""
    why: Text = ""
    formats: TextList = []


class PlatformStrategy(_Payload):
    primary_platforms: TextList = []
    cadence: Text = ""
    cta_examples: TextList = []


class ReleaseBlock(_Payload):
    week: Text = ""
    focus: Text = ""
    tasks: TextList = []


class IdentityKit(_Payload):
    brand_essence: Text = ""
    one_line_positioning: Text = ""
    bio_short: Text = ""
    archetype: Annotated[Archetype, BeforeValidator(_as_mapping)] = Field(default_factory=Archetype)
    audience_persona: Annotated[AudiencePersona, BeforeValidator(_as_mapping)] = Field(
        default_factory=AudiencePersona
    )
    value_props: TextList = []
    tone_of_voice: TextList = []
    visual_aesthetics: Annotated[VisualAesthetics, BeforeValidator(_as_mapping)] = Field(
        default_factory=VisualAesthetics
    )
    content_pillars: Annotated[List[ContentPillar], BeforeValidator(_as_records)] = []
    platform_strategy: Annotated[PlatformStrategy, BeforeValidator(_as_mapping)] = Field(
        default_factory=PlatformStrategy
    )
    release_plan_90d: Annotated[List[ReleaseBlock], BeforeValidator(_as_records)] = []
    seo_keywords: TextList = []
    taglines: TextList = []

    def missing_minimums(self) -> List[str]:
        checks = [
            ("brand_essence", bool(self.brand_essence)),
            ("one_line_positioning", bool(self.one_line_positioning)),
            ("bio_short", bool(self.bio_short)),
            ("archetype.primary", bool(self.archetype.primary)),
            ("audience_persona.adjacent_artists", len(self.audience_persona.adjacent_artists) >= 3),
            ("value_props", len(self.value_props) >= 3),
            ("tone_of_voice", len(self.tone_of_voice) >= 3),
            ("visual_aesthetics.palette", len(self.visual_aesthetics.palette) >= 3),
            ("visual_aesthetics.references", len(self.visual_aesthetics.references) >= 3),
            ("content_pillars", len(self.content_pillars) >= 3),
            ("platform_strategy.cta_examples", len(self.platform_strategy.cta_examples) >= 3),
            ("release_plan_90d", len(self.release_plan_90d) >= 4),
            ("taglines", len(self.taglines) >= 5),
        ]
        return [name for name, ok in checks if not ok]

    def meets_minimums(self) -> bool:
        return not self.missing_minimums()


# ---------- campaigns ----------

class VisualDirection(_Payload):
    shotlist: TextList = []
    palette: TextList = []
    props: TextList = []


class Timeline(_Payload):
    teasers: TextList = []
    drop_day: TextList = []
    post_drop: TextList = []


class CampaignConcept(_Payload):
    name: Text = ""
    hook: Text = ""
    synopsis: Text = ""
    visual_direction: Annotated[VisualDirection, BeforeValidator(_as_mapping)] = Field(
        default_factory=VisualDirection
    )
    deliverables: TextList = []
    caption_tones: TextList = []
    timeline: Annotated[Timeline, BeforeValidator(_as_mapping)] = Field(default_factory=Timeline)


class Campaigns(_Payload):
    concepts: Annotated[List[CampaignConcept], BeforeValidator(_as_records)] = []
    kpis: TextList = []
    hashtags: TextList = []
    fallback: bool = Field(False, alias="_fallback")


MIN_CONCEPTS = 3
MIN_KPIS = 4
MIN_HASHTAGS = 10


# ---------- decoding ----------

def _decode(raw: Any) -> Optional[Dict[str, Any]]:
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", errors="replace")
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.warning("Payload is not valid JSON: %s", exc)
            return None
    if not isinstance(raw, Mapping):
        logger.warning("Payload is not a JSON object: %s", type(raw).__name__)
        return None
    return dict(raw)


def _inputs(inputs: Any) -> ArtistInputs:
    if isinstance(inputs, ArtistInputs):
        return inputs
    return ArtistInputs.model_validate(_as_mapping(inputs))


# ---------- fallbacks ----------

def fallback_identity_kit(inputs: Any = None) -> IdentityKit:
    i = _inputs(inputs)
    influences = [s.strip() for s in i.influences.split(",") if s.strip()][:4] if i.influences else [
        "FKA twigs",
        "James Blake",
        "Dave",
        "Little Simz",
    ]
    audience = i.audience or "late-night listeners who value craft and meaning"
    goal = i.goal or "build momentum into the next release"

    return IdentityKit.model_validate(
        {
            "brand_essence": (
                f"{i.artist_name or 'This artist'} crafts {i.genre or 'left-field'} songs with "
                f"{i.brand_words or 'nocturnal, tactile'} detail, like streetlight through fog: "
                "soft-edged, precise, impossible to ignore."
            ),
            "one_line_positioning": f"{i.artist_name or 'The artist'}: {i.genre or 'alt'} storytelling for {audience}.",
            "bio_short": (
                f"{i.artist_name or 'The artist'} builds a coherent world across music, visuals and touchpoints: "
                "cool-toned lighting, grainy close-ups, and narrative fragments that reward repeat listening. "
                f"Their next 30–90 day focus: {goal}."
            ),
            "archetype": {"primary": "Sage", "secondary": "Creator"},
            "audience_persona": {
                "nickname": "Night Walkers",
                "demographics": "18–32, UK/EU/US, culture-forward urban listeners.",
                "psychographics": (
                    "Introspective, aesthetics-led, values craft and meaning; "
                    "seeks identity, momentum, and proof of progress."
                ),
                "adjacent_artists": influences,
            },
            "value_props": [
                "Cinematic narratives with tactile sonic identity",
                "Ownable visual language across touchpoints",
                "Community prompts that generate UGC",
            ],
            "tone_of_voice": ["introspective", "assured", "poetic"],
            "visual_aesthetics": {
                "palette": ["#0B0B0B", "#6D28D9", "#8B5CF6", "#EDEDED"],
                "mood_words": ["nocturnal", "textural", "elegant", "grounded"],
                "references": ["35mm stills", "projected light on concrete", "mist + neon edges", "slow dolly shots"],
            },
            "content_pillars": [
                {
                    "name": "Lyric Moments",
                    "why": "Narrative decoding = deeper bond",
                    "formats": ["Text-on-reel", "Caption threads", "Carousel breakdowns"],
                },
                {
                    "name": "Making The Track",
                    "why": "Humanise the craft",
                    "formats": ["Studio POV", "Process diaries", "A/B snippet tests"],
                },
                {
                    "name": "World-Building",
                    "why": "Own a distinctive lane",
                    "formats": ["Mood edits", "Micro-set design", "Lookbooks"],
                },
            ],
            "platform_strategy": {
                "primary_platforms": ["Instagram", "TikTok", "YouTube"],
                "cadence": "3× shorts, 1× long-form per week",
                "cta_examples": ["What scene do you see?", "Duet your verse", "Save this for the night walk"],
            },
            "release_plan_90d": [
                {"week": "1–2", "focus": "Brand setup", "tasks": ["Palette & type system", "Hero look test", "5× b-roll shoots"]},
                {"week": "3–6", "focus": "Single rollout", "tasks": ["Teaser ladder", "Lyric moments series", "Studio POV"]},
                {"week": "7–10", "focus": "Depth & community", "tasks": ["Live session", "Fan prompt chain", "Collab duet"]},
                {"week": "11–12", "focus": "Next drop prep", "tasks": ["Snippet tests", "Pre-save path", "Visual refresh"]},
            ],
            "seo_keywords": [
                i.artist_name or "independent artist",
                "new music",
                i.genre or "alt",
                "storytelling rap",
                "cinematic music",
                "UK artist",
            ],
            "taglines": [
                "Night-wired stories",
                "Cinema after dark",
                "Textures you can feel",
                "Ink & neon",
                "Keep the city close",
            ],
        }
    )


def fallback_campaigns(inputs: Any = None) -> Campaigns:
    i = _inputs(inputs)
    name = i.artist_name or "the artist"
    genre = i.genre or "—"
    audience = i.audience or "—"
    goal = i.goal or "—"

    return Campaigns.model_validate(
        {
            "_fallback": True,
            "concepts": [
                {
                    "name": "City After Dark",
                    "hook": "What does your city feel like after midnight?",
                    "synopsis": (
                        f"A nocturnal walk-n-talk format: {name} narrates one line per location cut, building a "
                        "confessional story across 30–45 seconds. Low-light, cool temperature, textured close-ups. "
                        f"({genre} • Audience: {audience} • Goal: {goal})"
                    ),
                    "visual_direction": {
                        "shotlist": [
                            "35mm close-up on moving escalator, tungsten spill",
                            "Wide alley dolly-in, neon rim, shallow DOF",
                            "POV hand on condensation glass, street bokeh",
                            "Static bench confession, slow push-in",
                            "Handheld crossing lights, parallax cars",
                            "Lift lobby mirror, soft bloom",
                            "Underpass silhouette, haze can",
                        ],
                        "palette": ["#0B0B0B", "#6D28D9", "#8B5CF6", "#F5E9FF"],
                        "props": ["condensation glass", "mini haze can", "neon sign", "old lift mirror", "bench", "earbuds", "hood"],
                    },
                    "deliverables": ["5x Reels", "5x TikToks", "1x YT Short", "1x BTS reel", "5x Stills"],
                    "caption_tones": ["diary-fragment", "coolly-confident", "late-night vulnerable", "matter-of-fact poetic"],
                    "timeline": {
                        "teasers": ["location scout stills", "line fragments as text-on-video", "colour tests", "sound design snippet"],
                        "drop_day": ["master reel v1", "alt cut (lyrics on screen)", "stills carousel", "BTS with voiceover"],
                        "post_drop": ["fan duet prompt", "alt city route redo", "night-walk live snippet"],
                    },
                },
                {
                    "name": "Lyric Objects",
                    "hook": "One object per bar: the lyric becomes tangible.",
                    "synopsis": (
                        "Each key lyric is matched to a tangible object on a dark tabletop set. Clean macro shots + "
                        f"sound design. Fast to shoot; strongly ownable. ({genre})"
                    ),
                    "visual_direction": {
                        "shotlist": [
                            "Top light macro on textured object",
                            "Slide-reveal to next object on beat",
                            "Hands enter frame to swap item",
                            "Match cut to artist profile",
                            "Lens flare pass with phone light",
                            "Static overhead grid of objects",
                            "Slow spin turntable close-up",
                        ],
                        "palette": ["#111111", "#6D28D9", "#C4B5FD", "#FFFFFF"],
                        "props": ["tabletop cloth", "macro lens/phone macro", "small turntable", "assorted objects from lyrics"],
                    },
                    "deliverables": ["6x Reels/TikToks", "1x Still grid carousel", "1x BTS cut"],
                    "caption_tones": ["precision-minimal", "playful-inventive", "behind-the-scenes geek"],
                    "timeline": {
                        "teasers": ["object hints", "macro tests", "sound design loop"],
                        "drop_day": ["master edit", "object grid carousel", "BTS assembly"],
                        "post_drop": ["UGC prompt: your object?", "duet chain", "alt colour grade"],
                    },
                },
                {
                    "name": "Notes To Self",
                    "hook": "Write it down. Film the line. Own the page.",
                    "synopsis": (
                        "Handwritten lyrics on paper/post-its placed around everyday spaces; each cut reveals a new "
                        f"fragment with the track's hook. Intimate, cheap, resonant. ({genre})"
                    ),
                    "visual_direction": {
                        "shotlist": [
                            "Close-up pen write-on, ink scratch",
                            "Fridge door note, hinge squeak",
                            "Bathroom mirror post-it, steam wipe",
                            "Notebook on bus seat, soft sway",
                            "Desk lamp pool, slow push",
                            "Bedside table dawn glow",
                            "Street poster paste-up (safe, legal alt: cork board)",
                        ],
                        "palette": ["#0E0E0E", "#8B5CF6", "#EDEDED", "#FFE3F7"],
                        "props": ["notepaper", "post-its", "fine-liner", "masking tape", "desk lamp", "mirror", "cork board"],
                    },
                    "deliverables": ["7x short-form edits", "1x stills carousel", "1x BTS voiceover"],
                    "caption_tones": ["intimate-matter-of-fact", "encouraging", "understated-confident"],
                    "timeline": {
                        "teasers": ["handwrite teasers", "ambient room tone loop", "note stacks timelapse"],
                        "drop_day": ["master sequence", "alt cut on chorus", "stills carousel"],
                        "post_drop": ["fan handwriting prompt", "duet read-your-line", "alt locations"],
                    },
                },
            ],
            "kpis": [
                "Saves rate > 8%",
                "Shares rate > 5%",
                "Average watch time > 65%",
                "+200 pre-saves",
                "+50 high-intent comments",
            ],
            "hashtags": [
                "#newmusic",
                "#independentartist",
                "#musicmarketing",
                "#altRNB",
                "#hiphopcommunity",
                "#ukmusic",
                "#nightphotography",
                "#cinematicvideo",
                "#lyrics",
                "#cityatnight",
                "#lowlight",
                "#broll",
                "#storytelling",
                "#creativeprocess",
            ],
        }
    )


# ---------- parsing ----------

def parse_identity_kit(raw: Any, inputs: Any = None) -> Tuple[IdentityKit, bool]:
    """Returns the validated kit and whether fallback content was used."""
    data = _decode(raw)
    if data is None:
        return fallback_identity_kit(inputs), True

    flagged = bool(data.get("_fallback"))
    if isinstance(data.get("result"), Mapping):
        data = dict(data["result"])

    try:
        kit = IdentityKit.model_validate(data)
    except ValidationError as exc:
        logger.warning("Identity kit payload failed validation (%d errors); using fallback", exc.error_count())
        return fallback_identity_kit(inputs), True

    missing = kit.missing_minimums()
    if missing:
        logger.warning("Identity kit below minimums (%s); using fallback", ", ".join(missing))
        return fallback_identity_kit(inputs), True
    return kit, flagged


def parse_campaigns(raw: Any, inputs: Any = None) -> Campaigns:
    fb = fallback_campaigns(inputs)
    data = _decode(raw)
    if data is None:
        return fb

    try:
        parsed = Campaigns.model_validate(data)
    except ValidationError as exc:
        logger.warning("Campaign payload failed validation (%d errors); using fallback", exc.error_count())
        return fb

    update: Dict[str, Any] = {}
    if len(parsed.concepts) < MIN_CONCEPTS:
        update["concepts"] = fb.concepts
    if len(parsed.kpis) < MIN_KPIS:
        update["kpis"] = fb.kpis
    if len(parsed.hashtags) < MIN_HASHTAGS:
        update["hashtags"] = fb.hashtags
    if update:
        logger.warning("Campaign payload below minimums; fallback used for %s", ", ".join(sorted(update)))
        update["fallback"] = True
    return parsed.model_copy(update=update)


# ---------- press kit ----------

class PressKit(_Payload):
    artist_name: Text = Field("", alias="artistName")
    tagline: Text = ""
    short_bio: Text = Field("", alias="shortBio")
    extended_bio: Text = Field("", alias="extendedBio")
    location: Text = ""
    genre: Text = ""
    for_fans_of: Text = Field("", alias="forFansOf")
    key_achievements: Text = Field("", alias="keyAchievements")
    notable_press: Text = Field("", alias="notablePress")
    live_highlights: Text = Field("", alias="liveHighlights")
    press_angle: Text = Field("", alias="pressAngle")
    streaming_links: Text = Field("", alias="streamingLinks")
    social_links: Text = Field("", alias="socialLinks")
    contact_name: Text = Field("", alias="contactName")
    contact_email: Text = Field("", alias="contactEmail")
    contact_phone: Text = Field("", alias="contactPhone")
    photo_notes: Text = Field("", alias="photoNotes")
    release_title: Text = Field("", alias="releaseTitle")


def parse_press_kit(raw: Any) -> PressKit:
    data = _decode(raw)
    if data is None:
        raise ValueError("Press kit payload must be a JSON object")
    return PressKit.model_validate(data)
