from .editor import Editor, toggle_format
from .models import Segment, Selection, StyleTag, FormatResult, NewsArticle, Announcement
from .utils import parse_formatted_text

__version__ = "0.1.0"
__all__ = [
    "Editor",
    "toggle_format",
    "parse_formatted_text",
    "Segment",
    "Selection",
    "StyleTag",
    "FormatResult",
    "NewsArticle",
    "Announcement",
]
