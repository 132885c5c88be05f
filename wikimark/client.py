import os
import sys
import time
from typing import Optional, Dict, Any, List, Union
import httpx
from dotenv import load_dotenv
from wikimark.models import NewsArticle, Announcement
from .exceptions import (
    ApiKeyError,
    AuthenticationError,
    BackendError,
    ConfigurationError,
    NotFoundError,
    RateLimitError,
    RequestTimeoutError,
)

load_dotenv()

NEWS_TABLE = "cbn_app_news"
ANNOUNCEMENTS_TABLE = "cbn_app_announcements"

RETRY_STATUS_CODES = {429, 500, 502, 503, 504}


class PostsClient:
    """Client for reading news and announcement posts from the backend."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        max_retries: int = 5,
        initial_retry_delay: float = 1.0,
        max_retry_delay: float = 32.0,
        backoff_factor: float = 2.0,
        timeout: float = 10.0,
        client: Optional[httpx.Client] = None,
    ):
        """Initialize the posts client.

        Args:
            api_key: Optional API key. If not provided, will be read from WIKIMARK_API_KEY env var.
            base_url: Backend project URL. If not provided, will be read from WIKIMARK_API_URL env var.
            max_retries: Maximum number of attempts for a request
            initial_retry_delay: Initial delay between retries in seconds
            max_retry_delay: Maximum delay between retries in seconds
            backoff_factor: Multiplicative factor for exponential backoff
            timeout: Per-request timeout in seconds
            client: Optional preconfigured httpx.Client
        """
        self.api_key = api_key or os.getenv("WIKIMARK_API_KEY")
        if not self.api_key:
            raise ApiKeyError(
                "API key must be provided either through constructor or WIKIMARK_API_KEY environment variable"
            )

        base_url = base_url or os.getenv("WIKIMARK_API_URL")
        if not base_url:
            raise ConfigurationError(
                "Base URL must be provided either through constructor or WIKIMARK_API_URL environment variable"
            )

        self.base_url = base_url.rstrip("/")
        self.client = client or httpx.Client()
        self.timeout = timeout
        self.headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
        }

        # Retry related configuration
        self.max_retries = max_retries
        self.initial_retry_delay = initial_retry_delay
        self.max_retry_delay = max_retry_delay
        self.backoff_factor = backoff_factor

    def _calculate_retry_delay(self, attempt: int) -> float:
        """Calculate retry delay using exponential backoff algorithm.

        Args:
            attempt: Current retry attempt number

        Returns:
            Delay time in seconds for the next retry
        """
        delay = min(
            self.initial_retry_delay * (self.backoff_factor ** (attempt - 1)),
            self.max_retry_delay,
        )
        return delay

    def _raise_for_status(self, response: httpx.Response) -> None:
        """Translate a non-retryable error response into an exception."""
        if response.status_code in (401, 403):
            raise AuthenticationError(
                "Could not authenticate. Please check your WIKIMARK_API_KEY.",
                response.status_code,
            )
        if response.status_code == 404:
            raise NotFoundError(f"Not found: {response.url}", response.status_code)

        try:
            message = response.json().get("message") or response.text
        except (ValueError, AttributeError):
            message = response.text
        raise BackendError(
            f"Backend error {response.status_code}: {message}", response.status_code
        )

    def _make_request(self, method: str, endpoint: str, **kwargs) -> Any:
        """Make an API request with retry logic.

        Args:
            method: HTTP method
            endpoint: API endpoint
            **kwargs: Additional request parameters

        Returns:
            Decoded JSON response

        Raises:
            AuthenticationError: When authentication fails
            RequestTimeoutError: When every attempt timed out
            RateLimitError: When rate limit is still exceeded on the last attempt
            BackendError: For other error responses
        """
        url = f"{self.base_url}{endpoint}"

        for attempt in range(1, self.max_retries + 1):
            try:
                response = self.client.request(
                    method, url, headers=self.headers, timeout=self.timeout, **kwargs
                )
            except httpx.TimeoutException:
                if attempt == self.max_retries:
                    raise RequestTimeoutError(
                        f"Request to {endpoint} timed out after {attempt} attempts"
                    ) from None
                print(
                    f"Request to {endpoint} timed out, retrying ({attempt}/{self.max_retries})",
                    file=sys.stderr,
                )
                time.sleep(self._calculate_retry_delay(attempt))
                continue

            if response.status_code < 400:
                return response.json()

            if response.status_code not in RETRY_STATUS_CODES:
                self._raise_for_status(response)

            if attempt == self.max_retries:
                if response.status_code == 429:
                    raise RateLimitError(
                        "Rate limit exceeded. Please try again later.", 429
                    )
                self._raise_for_status(response)

            # Calculate delay for next retry
            delay = self._calculate_retry_delay(attempt)
            time.sleep(delay)

        return None

    def _select(self, table: str, **filters: Union[str, int]) -> List[Dict[str, Any]]:
        params = {"select": "*"}
        params.update({key: str(value) for key, value in filters.items()})
        rows = self._make_request("GET", f"/rest/v1/{table}", params=params)
        return rows or []

    def get_news(self, limit: int = 50) -> List[NewsArticle]:
        """Get news articles, newest first.

        Args:
            limit: Maximum number of articles to return

        Returns:
            List of NewsArticle objects
        """
        rows = self._select(NEWS_TABLE, order="created_at.desc", limit=limit)
        return [NewsArticle.from_api_response(row) for row in rows]

    def get_announcements(self, limit: int = 50) -> List[Announcement]:
        """Get announcements, newest first.

        Args:
            limit: Maximum number of announcements to return

        Returns:
            List of Announcement objects
        """
        rows = self._select(ANNOUNCEMENTS_TABLE, order="created_at.desc", limit=limit)
        return [Announcement.from_api_response(row) for row in rows]

    def get_news_article(self, article_id: str) -> NewsArticle:
        """Get a single news article by ID.

        Raises:
            NotFoundError: If no article has that ID
        """
        rows = self._select(NEWS_TABLE, id=f"eq.{article_id}")
        if not rows:
            raise NotFoundError(f"News article {article_id} not found", 404)
        return NewsArticle.from_api_response(rows[0])

    def search_posts(self, query: str) -> List[Union[NewsArticle, Announcement]]:
        """Search news and announcements whose content contains ``query``.

        Matching is case-insensitive.

        Args:
            query: Text to look for in post content

        Returns:
            Matching news articles followed by matching announcements
        """
        pattern = f"ilike.*{query}*"
        news = [
            NewsArticle.from_api_response(row)
            for row in self._select(NEWS_TABLE, content=pattern)
        ]
        announcements = [
            Announcement.from_api_response(row)
            for row in self._select(ANNOUNCEMENTS_TABLE, content=pattern)
        ]
        print(
            f"Found {len(news) + len(announcements)} post(s) matching {query!r}",
            file=sys.stderr,
        )
        return news + announcements

    def close(self) -> None:
        self.client.close()
