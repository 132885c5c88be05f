from .markdown import (
    parse_formatted_text,
    parse_markdown_to_richtext,
    scan_markers,
    split_urls,
    URL_PATTERN,
)
from .links import is_safe_url, safe_open_url

__all__ = [
    "parse_formatted_text",
    "parse_markdown_to_richtext",
    "scan_markers",
    "split_urls",
    "URL_PATTERN",
    "is_safe_url",
    "safe_open_url",
]
