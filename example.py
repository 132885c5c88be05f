import asyncio

from wikimark import Editor, parse_formatted_text
from wikimark.client import PostsClient
from wikimark.exceptions import ConfigurationError
from wikimark.render import render_html
from wikimark.utils import parse_markdown_to_richtext


class ConsoleInput:
    """Stand-in for a native text input that just reports what it receives."""

    def set_selection(self, start, end):
        print(f"Control selection set to ({start}, {end})")

    def focus(self):
        print("Control focused")


async def example_editor():
    """Example of formatting text the way a composer does."""
    editor = Editor("hello world", control=ConsoleInput())

    # Example: Select "hello" and press the bold button
    editor.on_selection_change(0, 5)
    result = editor.apply_button("bold")
    print(f"After bold: {result.text!r}, selection {result.selection}")

    # The control receives the selection on a later loop turn
    await asyncio.sleep(editor.scheduler.delay * 2)

    # Example: Press bold again to remove it
    result = editor.apply_button("bold")
    print(f"After second bold: {result.text!r}")
    await asyncio.sleep(editor.scheduler.delay * 2)

    editor.close()


def example_parser():
    """Example of parsing and rendering markup."""
    text = "Meeting moved to *Friday*. Details: https://example.com/agenda ~cancelled~"

    for segment in parse_formatted_text(text):
        print(segment)

    print(render_html(text))

    plain_text, tags = parse_markdown_to_richtext(text)
    print(plain_text)
    print(tags)


def example_posts_client():
    """Example of reading posts from the backend."""
    # Reads WIKIMARK_API_KEY and WIKIMARK_API_URL from the environment or .env
    try:
        client = PostsClient()
    except ConfigurationError as e:
        print(f"Skipping posts example: {e}")
        return

    # Example: Latest news rendered to HTML
    for article in client.get_news(limit=5):
        print(article.headline)
        print(render_html(article.segments()))

    # Example: Search posts by content
    posts = client.search_posts("unfortunate news")
    print(f"\nFound {len(posts)} posts")

    client.close()


if __name__ == "__main__":
    example_parser()
    asyncio.run(example_editor())
    example_posts_client()
