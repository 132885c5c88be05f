"""HTML rendering of parsed segments."""

from html import escape
from typing import Dict, List, Sequence, Union

from .models import Segment, StyleTag
from .utils.links import is_safe_url
from .utils.markdown import parse_formatted_text

STYLE_ATTRIBUTES: Dict[StyleTag, Dict[str, str]] = {
    StyleTag.BOLD: {"font-weight": "700"},
    StyleTag.ITALIC: {"font-style": "italic"},
    StyleTag.STRIKE: {"text-decoration": "line-through"},
    StyleTag.UNDERLINE: {"text-decoration": "underline"},
    StyleTag.MONO: {"font-family": "monospace"},
}


def style_declaration(style: StyleTag) -> str:
    """Return the inline CSS for ``style``, e.g. ``font-weight: 700``."""
    return "; ".join(f"{key}: {value}" for key, value in STYLE_ATTRIBUTES[style].items())


def render_segment(segment: Segment) -> str:
    text = escape(segment.text)

    if segment.style is not None:
        return f'<span style="{style_declaration(segment.style)}">{text}</span>'

    if segment.is_url:
        if not is_safe_url(segment.text):
            return text
        return f'<a href="{escape(segment.text.strip(), quote=True)}">{text}</a>'

    return text


def render_html(source: Union[str, Sequence[Segment]]) -> str:
    """Render markup, or already parsed segments, as an HTML fragment.

    Args:
        source: Raw markup string or a sequence of Segment objects

    Returns:
        HTML with escaped text, styled spans and anchors for link segments
    """
    segments: List[Segment]
    if isinstance(source, str):
        segments = parse_formatted_text(source)
    else:
        segments = list(source)

    return "".join(render_segment(segment) for segment in segments)
