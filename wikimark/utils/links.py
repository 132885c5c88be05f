"""Safe URL opening for rendered link segments."""

import sys
import webbrowser
from typing import Callable, Optional

SAFE_SCHEMES = ("https://", "http://")


def is_safe_url(url: Optional[str]) -> bool:
    """Return True only for http(s) URLs."""
    if not url:
        return False
    return url.strip().startswith(SAFE_SCHEMES)


def safe_open_url(
    url: Optional[str], opener: Optional[Callable[[str], object]] = None
) -> bool:
    """Open a URL if it uses a safe scheme.

    Anything other than http/https (``javascript:``, ``intent:``, custom app
    schemes) is ignored.

    Args:
        url: URL taken from a link segment
        opener: Callable that opens the URL. Defaults to ``webbrowser.open``

    Returns:
        Whether the URL was handed to the opener successfully
    """
    if not is_safe_url(url):
        return False

    opener = opener or webbrowser.open
    trimmed = url.strip()

    try:
        result = opener(trimmed)
    except Exception as e:
        print(f"Warning: Unable to open URL {trimmed}: {e}", file=sys.stderr)
        return False

    return result is not False
