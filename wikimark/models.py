from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Dict, Any, Tuple


class StyleTag(str, Enum):
    BOLD = "bold"
    ITALIC = "italic"
    STRIKE = "strike"
    UNDERLINE = "underline"
    MONO = "mono"


@dataclass(frozen=True)
class MarkerRule:
    marker: str
    style: StyleTag


# Order matters: at equal positions the longer marker wins, so "**" and "__"
# are listed ahead of their single-character forms.
MARKERS: Tuple[MarkerRule, ...] = (
    MarkerRule("**", StyleTag.BOLD),
    MarkerRule("*", StyleTag.BOLD),
    MarkerRule("__", StyleTag.UNDERLINE),
    MarkerRule("_", StyleTag.ITALIC),
    MarkerRule("~", StyleTag.STRIKE),
    MarkerRule("`", StyleTag.MONO),
)


@dataclass(frozen=True)
class Segment:
    text: str
    style: Optional[StyleTag] = None
    is_url: bool = False

    @property
    def is_plain(self) -> bool:
        return self.style is None and not self.is_url

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"text": self.text}
        if self.style is not None:
            data["style"] = self.style.value
        if self.is_url:
            data["is_url"] = True
        return data


def _utf16_units(char: str) -> int:
    return 2 if ord(char) > 0xFFFF else 1


@dataclass(frozen=True)
class Selection:
    start: int  # Offset in code points
    end: int

    @property
    def is_empty(self) -> bool:
        return self.start == self.end

    def normalized(self) -> "Selection":
        return Selection(min(self.start, self.end), max(self.start, self.end))

    def clamped(self, length: int) -> "Selection":
        """Normalize and pull both offsets into ``[0, length]``."""
        sel = self.normalized()
        return Selection(
            max(0, min(sel.start, length)),
            max(0, min(sel.end, length)),
        )

    @classmethod
    def from_utf16(cls, text: str, start: int, end: int) -> "Selection":
        """Build a selection from UTF-16 code unit offsets.

        Text-input controls on most hosts report offsets in UTF-16 units.
        An offset that falls inside a surrogate pair is rounded up to the
        following code point.

        Args:
            text: The text the offsets refer to
            start: Start offset in UTF-16 code units
            end: End offset in UTF-16 code units

        Returns:
            Selection expressed in code points
        """

        def convert(offset: int) -> int:
            units = 0
            for index, char in enumerate(text):
                if units >= offset:
                    return index
                units += _utf16_units(char)
            return len(text)

        return cls(convert(start), convert(end))

    def to_utf16(self, text: str) -> Tuple[int, int]:
        """Return ``(start, end)`` as UTF-16 code unit offsets into ``text``."""

        def convert(offset: int) -> int:
            return sum(_utf16_units(char) for char in text[:offset])

        return convert(self.start), convert(self.end)


@dataclass(frozen=True)
class FormatResult:
    text: str
    selection: Selection
    unwrapped: bool = False  # True when an existing marker pair was removed


@dataclass
class NewsArticle:
    id: str
    headline: str
    content: str
    author_id: str
    author_name: str
    created_at: str  # ISO 8601, as stored
    image_url: Optional[str] = None
    link_url: Optional[str] = None
    link_text: Optional[str] = None

    @classmethod
    def from_api_response(cls, data: Dict[str, Any]) -> "NewsArticle":
        return cls(
            id=str(data.get("id", "")),
            headline=data.get("headline") or "",
            content=data.get("content") or "",
            author_id=str(data.get("author_id", "")),
            author_name=data.get("author_name") or "",
            created_at=data.get("created_at") or "",
            image_url=data.get("image_url") or None,
            link_url=data.get("link_url") or None,
            link_text=data.get("link_text") or None,
        )

    def segments(self) -> List[Segment]:
        from .utils.markdown import parse_formatted_text

        return parse_formatted_text(self.content)


@dataclass
class Announcement:
    id: str
    title: str
    content: str
    author_id: str
    author_name: str
    created_at: str

    @classmethod
    def from_api_response(cls, data: Dict[str, Any]) -> "Announcement":
        return cls(
            id=str(data.get("id", "")),
            title=data.get("title") or "",
            content=data.get("content") or "",
            author_id=str(data.get("author_id", "")),
            author_name=data.get("author_name") or "",
            created_at=data.get("created_at") or "",
        )

    def segments(self) -> List[Segment]:
        from .utils.markdown import parse_formatted_text

        return parse_formatted_text(self.content)
