import sys
from dataclasses import asdict
from typing import Optional, Dict, Any
from dotenv import load_dotenv
from mcp.server.fastmcp import FastMCP
from wikimark.client import PostsClient
from wikimark.editor import toggle_format as toggle_format_command
from wikimark.exceptions import WikimarkError
from wikimark.models import Selection
from wikimark.render import render_html
from wikimark.utils import parse_formatted_text

# Load environment variables
load_dotenv()

# Initialize FastMCP server
mcp = FastMCP("wikimark")

# Client instance
posts_client: Optional[PostsClient] = None


def initialize_client() -> None:
    """
    Initialize the posts client from environment variables.
    This is called once at server startup. Markup tools work without it.
    """
    global posts_client

    try:
        posts_client = PostsClient()
        print("Posts client initialized successfully", file=sys.stderr)
    except WikimarkError as e:
        print(f"Warning: posts client not initialized: {e}", file=sys.stderr)


def _client_missing() -> Dict[str, Any]:
    return {
        "success": False,
        "message": "Posts client not initialized. Check WIKIMARK_API_KEY and WIKIMARK_API_URL environment variables.",
    }


@mcp.tool()
async def parse_markup(text: str) -> Dict[str, Any]:
    """
    Parse inline markup into styled segments.

    Args:
        text: Raw markup, e.g. "*bold* _italic_ ~strike~ `mono` https://example.com"

    Returns:
        Dict containing the list of segments
    """
    segments = parse_formatted_text(text)
    return {"success": True, "segments": [segment.to_dict() for segment in segments]}


@mcp.tool()
async def toggle_format(text: str, start: int, end: int, marker: str) -> Dict[str, Any]:
    """
    Wrap or unwrap the selected range of text with a formatting marker.

    Args:
        text: Raw markup buffer
        start: Selection start offset
        end: Selection end offset
        marker: Marker to toggle, e.g. "*" for bold or "_" for italic

    Returns:
        Dict containing the new text and selection
    """
    result = toggle_format_command(text, Selection(start, end), marker)
    return {
        "success": True,
        "text": result.text,
        "start": result.selection.start,
        "end": result.selection.end,
        "unwrapped": result.unwrapped,
    }


@mcp.tool()
async def render_markup(text: str) -> Dict[str, Any]:
    """
    Render inline markup as an HTML fragment.

    Args:
        text: Raw markup

    Returns:
        Dict containing the HTML
    """
    return {"success": True, "html": render_html(text)}


@mcp.tool()
async def list_news(limit: int = 20) -> Dict[str, Any]:
    """
    Get the latest news articles with their content rendered to HTML.

    Args:
        limit: Maximum number of articles to return

    Returns:
        Dict containing the articles
    """
    if posts_client is None:
        return _client_missing()

    try:
        articles = posts_client.get_news(limit=limit)
        return {
            "success": True,
            "articles": [
                {**asdict(article), "html": render_html(article.segments())}
                for article in articles
            ],
        }
    except WikimarkError as e:
        return {
            "success": False,
            "error": str(e),
            "message": "Failed to retrieve news",
        }


@mcp.tool()
async def list_announcements(limit: int = 20) -> Dict[str, Any]:
    """
    Get the latest announcements with their content rendered to HTML.

    Args:
        limit: Maximum number of announcements to return

    Returns:
        Dict containing the announcements
    """
    if posts_client is None:
        return _client_missing()

    try:
        announcements = posts_client.get_announcements(limit=limit)
        return {
            "success": True,
            "announcements": [
                {**asdict(item), "html": render_html(item.segments())}
                for item in announcements
            ],
        }
    except WikimarkError as e:
        return {
            "success": False,
            "error": str(e),
            "message": "Failed to retrieve announcements",
        }


@mcp.tool()
async def search_posts(query: str) -> Dict[str, Any]:
    """
    Search news and announcements by content.

    Args:
        query: Text to look for, matched case-insensitively

    Returns:
        Dict containing matching posts
    """
    if posts_client is None:
        return _client_missing()

    try:
        posts = posts_client.search_posts(query)
        return {"success": True, "posts": [asdict(post) for post in posts]}
    except WikimarkError as e:
        return {
            "success": False,
            "error": str(e),
            "message": "Failed to search posts",
        }


if __name__ == "__main__":
    # Initialize the posts client
    initialize_client()

    # Initialize and run the server
    print("Starting wikimark MCP server...", file=sys.stderr)
    mcp.run(transport="stdio")
