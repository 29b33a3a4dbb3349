from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union


EM_DASH = "—"

_CURLY = str.maketrans({
    "\u00a0": " ",
    "\u201c": '"',
    "\u201d": '"',
    "\u2018": "'",
    "\u2019": "'",
})


class NothingToExport(ValueError):
    """Raised before any file is written when a document has no content."""


def normalize_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).translate(_CURLY).strip()


def _clean_list(items: Optional[Iterable[Any]]) -> Tuple[str, ...]:
    if items is None or isinstance(items, (str, bytes)):
        return ()
    cleaned = (normalize_text(item) for item in items)
    return tuple(item for item in cleaned if item)


def _optional(value: Any) -> Optional[str]:
    text = normalize_text(value)
    return text or None


@dataclass(frozen=True)
class _TextLine:
    text: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "text", normalize_text(self.text))


@dataclass(frozen=True)
class Title(_TextLine):
    kind: ClassVar[str] = "title"


@dataclass(frozen=True)
class Subtitle(_TextLine):
    kind: ClassVar[str] = "subtitle"


@dataclass(frozen=True)
class SectionTitle(_TextLine):
    kind: ClassVar[str] = "sectionTitle"


@dataclass(frozen=True)
class Body(_TextLine):
    kind: ClassVar[str] = "body"


@dataclass(frozen=True)
class Divider:
    kind: ClassVar[str] = "divider"


@dataclass(frozen=True)
class Spacer:
    height: float
    kind: ClassVar[str] = "spacer"

    def __post_init__(self) -> None:
        height = float(self.height)
        if not math.isfinite(height) or height < 0:
            raise ValueError(f"Spacer height must be a non-negative number, got {self.height!r}")
        object.__setattr__(self, "height", height)


@dataclass(frozen=True)
class MetaItem:
    label: str
    value: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "label", normalize_text(self.label))
        object.__setattr__(self, "value", _optional(self.value))

    @property
    def display_value(self) -> str:
        return self.value or EM_DASH

    def is_empty(self) -> bool:
        return not self.label and not self.value


@dataclass(frozen=True)
class Meta:
    items: Tuple[MetaItem, ...] = ()
    kind: ClassVar[str] = "meta"

    def __post_init__(self) -> None:
        rows = tuple(_meta_item(item) for item in self.items)
        object.__setattr__(self, "items", tuple(row for row in rows if not row.is_empty()))


@dataclass(frozen=True)
class TwoColumn:
    left: Tuple[str, ...] = ()
    right: Tuple[str, ...] = ()
    heading: Optional[str] = None
    left_title: Optional[str] = None
    right_title: Optional[str] = None
    kind: ClassVar[str] = "twoColumn"

    def __post_init__(self) -> None:
        object.__setattr__(self, "left", _clean_list(self.left))
        object.__setattr__(self, "right", _clean_list(self.right))
        object.__setattr__(self, "heading", _optional(self.heading))
        object.__setattr__(self, "left_title", _optional(self.left_title))
        object.__setattr__(self, "right_title", _optional(self.right_title))

    def is_empty(self) -> bool:
        return not self.left and not self.right and not self.heading


Line = Union[Title, Subtitle, SectionTitle, Body, Divider, Spacer, Meta, TwoColumn]

TEXT_KINDS = (Title, Subtitle, SectionTitle, Body)


def _meta_item(item: Union[MetaItem, Mapping[str, Any]]) -> MetaItem:
    if isinstance(item, MetaItem):
        return item
    return MetaItem(label=item.get("label", ""), value=item.get("value"))


def is_empty_line(line: Line) -> bool:
    if isinstance(line, TEXT_KINDS):
        return not line.text
    if isinstance(line, Meta):
        return not line.items
    if isinstance(line, TwoColumn):
        return line.is_empty()
    return False


# ---------- constructors ----------

def meta_block(items: Iterable[Union[MetaItem, Mapping[str, Any], None]]) -> Meta:
    return Meta(items=tuple(item for item in items if item is not None))


def two_col_section(
    left: Iterable[Any] = (),
    right: Iterable[Any] = (),
    heading: Optional[str] = None,
    left_title: Optional[str] = None,
    right_title: Optional[str] = None,
) -> TwoColumn:
    return TwoColumn(
        left=tuple(left or ()),
        right=tuple(right or ()),
        heading=heading,
        left_title=left_title,
        right_title=right_title,
    )


def build_standard_header(
    title: str,
    subtitle: Optional[str] = None,
    meta: Optional[Iterable[Union[MetaItem, Mapping[str, Any], None]]] = None,
) -> List[Line]:
    """Title, optional subtitle, optional meta box, divider."""
    lines: List[Line] = [Title(title)]
    if normalize_text(subtitle):
        lines.append(Subtitle(subtitle or ""))
    if meta is not None:
        block = meta_block(meta)
        if block.items:
            lines.append(block)
    lines.append(Divider())
    return lines


class LineBuilder:
    """Ordered accumulator that drops empty content as it goes."""

    def __init__(self) -> None:
        self._lines: List[Line] = []

    def __len__(self) -> int:
        return len(self._lines)

    def _push_text(self, cls, text: Any) -> "LineBuilder":
        line = cls(normalize_text(text))
        if line.text:
            self._lines.append(line)
        return self

    def title(self, text: Any) -> "LineBuilder":
        return self._push_text(Title, text)

    def subtitle(self, text: Any) -> "LineBuilder":
        return self._push_text(Subtitle, text)

    def section(self, text: Any) -> "LineBuilder":
        return self._push_text(SectionTitle, text)

    def body(self, text: Any) -> "LineBuilder":
        return self._push_text(Body, text)

    def bullets(self, items: Optional[Iterable[Any]], prefix: str = "• ") -> "LineBuilder":
        for item in _clean_list(items):
            self._lines.append(Body(f"{prefix}{item}"))
        return self

    def divider(self) -> "LineBuilder":
        self._lines.append(Divider())
        return self

    def spacer(self, height: float = 16) -> "LineBuilder":
        self._lines.append(Spacer(height))
        return self

    def meta(self, items: Iterable[Union[MetaItem, Mapping[str, Any], None]]) -> "LineBuilder":
        block = meta_block(items)
        if block.items:
            self._lines.append(block)
        return self

    def two_column(self, **kwargs: Any) -> "LineBuilder":
        block = two_col_section(**kwargs)
        if not block.is_empty():
            self._lines.append(block)
        return self

    def extend(self, lines: Iterable[Line]) -> "LineBuilder":
        self._lines.extend(line for line in lines if not is_empty_line(line))
        return self

    def build(self) -> Tuple[Line, ...]:
        return tuple(self._lines)


# ---------- JSON form ----------

_KIND_ALIASES = {
    "twoCol": "twoColumn",
    "two_column": "twoColumn",
    "section_title": "sectionTitle",
    "section": "sectionTitle",
}

_TEXT_CLASSES = {cls.kind: cls for cls in TEXT_KINDS}


def _get(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return default


def line_from_dict(data: Mapping[str, Any]) -> Line:
    if not isinstance(data, Mapping):
        raise ValueError(f"Line must be an object, got {type(data).__name__}")
    raw_kind = str(data.get("kind", ""))
    kind = _KIND_ALIASES.get(raw_kind, raw_kind)
    if kind in _TEXT_CLASSES:
        return _TEXT_CLASSES[kind](data.get("text", ""))
    if kind == "divider":
        return Divider()
    if kind == "spacer":
        return Spacer(data.get("height", 0))
    if kind == "meta":
        items = data.get("items") or []
        if not isinstance(items, Sequence) or isinstance(items, str):
            raise ValueError("Meta line items must be a list")
        return meta_block(items)
    if kind == "twoColumn":
        return two_col_section(
            left=data.get("left") or (),
            right=data.get("right") or (),
            heading=data.get("heading"),
            left_title=_get(data, "leftTitle", "left_title"),
            right_title=_get(data, "rightTitle", "right_title"),
        )
    raise ValueError(f"Unknown line kind: {raw_kind!r}")


def parse_lines(data: Any) -> Tuple[Line, ...]:
    if isinstance(data, Mapping) and "lines" in data:
        data = data["lines"]
    if not isinstance(data, Sequence) or isinstance(data, str):
        raise ValueError("Expected a list of lines")
    return tuple(line_from_dict(item) for item in data)


def line_to_dict(line: Line) -> Dict[str, Any]:
    out: Dict[str, Any] = {"kind": line.kind}
    if isinstance(line, TEXT_KINDS):
        out["text"] = line.text
    elif isinstance(line, Spacer):
        out["height"] = line.height
    elif isinstance(line, Meta):
        out["items"] = [
            {"label": item.label, "value": item.value} if item.value else {"label": item.label}
            for item in line.items
        ]
    elif isinstance(line, TwoColumn):
        if line.heading:
            out["heading"] = line.heading
        if line.left_title:
            out["leftTitle"] = line.left_title
        out["left"] = list(line.left)
        if line.right_title:
            out["rightTitle"] = line.right_title
        out["right"] = list(line.right)
    return out
