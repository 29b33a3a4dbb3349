from __future__ import annotations

from typing import List, Tuple

from .. import config
from .lines import EM_DASH, Line, LineBuilder
from .payloads import PressKit


def build_press_kit_lines(kit: PressKit) -> Tuple[Line, ...]:
    """Electronic press kit. Required sections get a prompt when empty; optional ones are left out."""
    b = LineBuilder()
    b.title((kit.artist_name or kit.release_title or "Electronic Press Kit").upper())
    b.subtitle(f"{config.PRODUCT_NAME} {EM_DASH} Electronic Press Kit")
    b.divider()

    artist: List[str] = []
    if kit.artist_name:
        artist.append(kit.artist_name)
    if kit.release_title:
        artist.append(kit.release_title)
    elif kit.tagline:
        artist.append(kit.tagline)

    b.section("Artist")
    if artist:
        for text in artist:
            b.body(text)
    else:
        b.body("Add your artist name and tagline.")

    b.divider().section("Overview & bio")
    facts = [
        f"Location: {kit.location}" if kit.location else "",
        f"Genre: {kit.genre}" if kit.genre else "",
        f"For fans of: {kit.for_fans_of}" if kit.for_fans_of else "",
    ]
    for fact in facts:
        b.body(fact)
    b.body(kit.short_bio)
    b.body(kit.extended_bio)
    if not any(facts) and not kit.short_bio and not kit.extended_bio:
        b.body("Add your location, genre, and a short bio.")

    optional = [
        ("Key achievements", kit.key_achievements),
        ("Notable press", kit.notable_press),
        ("Live highlights", kit.live_highlights),
        ("Press angle / story hook", kit.press_angle),
        ("Streaming links", kit.streaming_links),
        ("Socials", kit.social_links),
    ]
    for heading, text in optional:
        if text:
            b.divider().section(heading).body(text)

    if kit.contact_name or kit.contact_email or kit.contact_phone:
        b.divider().section("Contact")
        b.body(kit.contact_name).body(kit.contact_email).body(kit.contact_phone)

    if kit.photo_notes:
        b.divider().section("Press photos").body(kit.photo_notes)

    return b.build()
