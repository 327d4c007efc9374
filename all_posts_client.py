"""All-Posts API client.

This module defines a small client for the ``/all-posts`` endpoint.  It
uses the ``requests`` library internally and reads the pagination
totals from the ``X-WP-Total`` and ``X-WP-TotalPages`` response
headers.

* :meth:`AllPostsClient.fetch_page` – fetch one page of posts.
* :meth:`AllPostsClient.iter_posts` – iterate over every matching post,
  requesting further pages as needed.

Filters are passed as keyword arguments and sent verbatim as query
parameters, e.g. ``client.fetch_page(type="post,event",
event_after=1700000000, tax_category="news")``.  List values are
joined with commas.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional

import requests


logger = logging.getLogger(__name__)


class AllPostsClientError(RuntimeError):
    """Raised when the API cannot be reached or answers with an error."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass
class PostsPage:
    """One page of the all-posts listing.

    Attributes:
        posts: Records returned in the response body.
        total: Total number of matching records (``X-WP-Total``).
        total_pages: Number of pages (``X-WP-TotalPages``).
    """

    posts: List[Dict[str, Any]]
    total: int
    total_pages: int


class AllPostsClient:
    def __init__(
        self,
        *,
        base_url: str,
        namespace: str = "custom-endpoint/v1",
        session: Optional[requests.Session] = None,
        timeout: float = 15,
    ) -> None:
        """Initialise the API client.

        Args:
            base_url: Base URL of the service, e.g. ``https://example.com``.
            namespace: REST namespace the endpoint is mounted under.
            session: Optional requests session.  If not supplied a
                session will be created automatically.
            timeout: Request timeout in seconds.
        """
        self.base_url = base_url.rstrip("/")
        self.namespace = namespace.strip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    @property
    def url(self) -> str:
        return f"{self.base_url}/{self.namespace}/all-posts"

    @staticmethod
    def _encode(params: Dict[str, Any]) -> Dict[str, str]:
        encoded: Dict[str, str] = {}
        for key, value in params.items():
            if value is None:
                continue
            if isinstance(value, (list, tuple, set)):
                value = ",".join(str(item) for item in value)
            encoded[key] = str(value)
        return encoded

    @staticmethod
    def _header_int(response: requests.Response, name: str) -> int:
        try:
            return int(response.headers.get(name, 0))
        except (TypeError, ValueError):
            logger.warning("Malformed %s header: %r", name, response.headers.get(name))
            return 0

    def fetch_page(self, **params: Any) -> PostsPage:
        """Fetch one page of posts.

        Raises:
            AllPostsClientError: on connection errors, non-2xx answers
                or a body which is not a JSON array.
        """
        try:
            logger.debug("Sending GET request to %s with %s", self.url, params)
            response = self.session.get(self.url, params=self._encode(params), timeout=self.timeout)
            response.raise_for_status()
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            message = str(exc)
            if exc.response is not None:
                try:
                    body = exc.response.json()
                except ValueError:
                    message = exc.response.text or message
                else:
                    if isinstance(body, dict):
                        message = body.get("detail") or message
            logger.error("API request failed (%s): %s", status, message)
            raise AllPostsClientError(message, status) from exc
        except requests.RequestException as exc:
            logger.error("API request failed: %s", exc)
            raise AllPostsClientError(str(exc)) from exc

        data = response.json()
        if not isinstance(data, list):
            raise AllPostsClientError("Expected a JSON array of posts", response.status_code)
        return PostsPage(
            posts=data,
            total=self._header_int(response, "X-WP-Total"),
            total_pages=self._header_int(response, "X-WP-TotalPages"),
        )

    def iter_posts(self, **params: Any) -> Iterator[Dict[str, Any]]:
        """Yield every matching post, starting at ``page`` (default 1)."""
        page = int(params.pop("page", 1) or 1)
        while True:
            result = self.fetch_page(page=page, **params)
            yield from result.posts
            if page >= result.total_pages or not result.posts:
                return
            page += 1
