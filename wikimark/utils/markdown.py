"""Inline markup parsing utilities."""

import re
from typing import List, Tuple, Dict, Any, Optional, Sequence

from ..models import MARKERS, MarkerRule, Segment

URL_PATTERN = re.compile(r"https?://\S+")

RICHTEXT_TYPES = {
    "bold": "Bold",
    "italic": "Italic",
    "strike": "Strike",
    "underline": "Underline",
    "mono": "Mono",
}


def _find_next_marker(
    text: str, start: int, markers: Sequence[MarkerRule]
) -> Tuple[int, Optional[MarkerRule]]:
    """Find the earliest marker at or after ``start``.

    Args:
        text: Raw markup
        start: Index to search from
        markers: Marker table in priority order

    Returns:
        Tuple of (index, rule), or (-1, None) when no marker occurs
    """
    best_index = -1
    best_rule = None

    for rule in markers:
        index = text.find(rule.marker, start)
        if index == -1:
            continue
        if (
            best_rule is None
            or index < best_index
            or (index == best_index and len(rule.marker) > len(best_rule.marker))
        ):
            best_index = index
            best_rule = rule

    return best_index, best_rule


def scan_markers(
    text: str, markers: Sequence[MarkerRule] = MARKERS
) -> List[Segment]:
    """Split raw markup into plain and styled segments.

    Styling is flat: the content between an opening marker and the next
    occurrence of the same marker is taken verbatim. A marker with no
    closing partner is kept as literal text.

    Args:
        text: Raw markup
        markers: Marker table in priority order

    Returns:
        Segments in document order
    """
    segments: List[Segment] = []
    i = 0

    while i < len(text):
        index, rule = _find_next_marker(text, i, markers)

        if rule is None:
            segments.append(Segment(text[i:]))
            break

        if index > i:
            segments.append(Segment(text[i:index]))

        content_start = index + len(rule.marker)
        content_end = text.find(rule.marker, content_start)

        if content_end == -1:
            # Unterminated: emit the marker literally and keep scanning
            segments.append(Segment(rule.marker))
            i = content_start
            continue

        segments.append(Segment(text[content_start:content_end], rule.style))
        i = content_end + len(rule.marker)

    return segments


def split_urls(segments: Sequence[Segment]) -> List[Segment]:
    """Break plain segments on http(s) URLs.

    Styled segments pass through untouched, so a URL inside a styled span
    stays styled text rather than becoming a link.
    """
    result: List[Segment] = []

    for segment in segments:
        if segment.style is not None or segment.is_url:
            result.append(segment)
            continue

        last_end = 0
        for match in URL_PATTERN.finditer(segment.text):
            if match.start() > last_end:
                result.append(Segment(segment.text[last_end : match.start()]))
            result.append(Segment(match.group(0), is_url=True))
            last_end = match.end()

        if last_end < len(segment.text):
            result.append(Segment(segment.text[last_end:]))

    return result


def parse_formatted_text(text: Optional[str]) -> List[Segment]:
    """Parse inline markup into renderable segments.

    Never raises: malformed markup degrades to literal text.

    Args:
        text: Raw markup, e.g. ``"*bold* and https://example.com"``

    Returns:
        List of Segment objects in document order
    """
    if not text:
        return []
    return split_urls(scan_markers(text))


def parse_markdown_to_richtext(text: str) -> Tuple[str, List[Dict[str, Any]]]:
    """Parse markup text to plain text and richtext tags.

    Args:
        text: Input text with inline markup

    Returns:
        Tuple of (plain text without markers, list of richtext tags)
        Each tag contains:
        - from_index: start position in plain text
        - to_index: end position in plain text
        - richtext_types: list of formatting types (Bold/Italic/Strike/
          Underline/Mono, or Link for bare URLs)
    """
    plain_parts = []
    richtext_tags = []
    offset = 0

    for segment in parse_formatted_text(text):
        length = len(segment.text)

        if segment.style is not None:
            types = [RICHTEXT_TYPES[segment.style.value]]
        elif segment.is_url:
            types = ["Link"]
        else:
            types = []

        # Empty styled runs have nothing to tag
        if types and length:
            richtext_tags.append(
                {
                    "from_index": offset,
                    "to_index": offset + length,
                    "richtext_types": types,
                }
            )

        plain_parts.append(segment.text)
        offset += length

    return "".join(plain_parts), richtext_tags
