from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Union

from slugify import smart_truncate

from .. import config
from .lines import normalize_text


MAX_SLUG_LENGTH = 80
FALLBACK_SLUG = "export"

_WHITESPACE = re.compile(r"\s+")
_DISALLOWED = re.compile(r"[^a-z0-9\-_]")
_DASHES = re.compile(r"-+")


@dataclass(frozen=True)
class RenderOptions:
    prefix: Optional[str] = None
    slug: Optional[str] = None
    include_date: bool = True
    date: Optional[Union[date, datetime]] = None


def _slug(value: Optional[str]) -> str:
    slug = normalize_text(value).lower()
    slug = _WHITESPACE.sub("-", slug)
    slug = _DISALLOWED.sub("", slug)
    slug = _DASHES.sub("-", slug).strip("-")
    if len(slug) > MAX_SLUG_LENGTH:
        slug = smart_truncate(slug, max_length=MAX_SLUG_LENGTH, word_boundary=True, separator="-").strip("-")
    return slug


def slugify_filename(value: Optional[str]) -> str:
    """Filesystem-safe slug: ``"My Cool Artist!! 2024"`` -> ``"my-cool-artist-2024"``."""
    return _slug(value) or FALLBACK_SLUG


def format_date(value: Union[date, datetime]) -> str:
    return value.strftime("%Y-%m-%d")


def export_stem(filename_base: Optional[str], options: Optional[RenderOptions] = None) -> str:
    opts = options or RenderOptions()
    if opts.prefix is None:
        prefix = config.FILENAME_PREFIX
    else:
        # An explicitly empty prefix drops the segment; one with nothing sluggable keeps the house prefix.
        prefix = (_slug(opts.prefix) or config.FILENAME_PREFIX) if normalize_text(opts.prefix) else ""
    slug = slugify_filename(opts.slug if opts.slug else filename_base)
    parts = [prefix, slug] if prefix else [slug]
    if opts.include_date:
        parts.append(format_date(opts.date or date.today()))
    return "_".join(parts)


def export_filename(filename_base: Optional[str], options: Optional[RenderOptions] = None) -> str:
    return f"{export_stem(filename_base, options)}.pdf"
