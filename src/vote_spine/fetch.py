"""Feed sources: HTTP download and local files."""

from __future__ import annotations

from pathlib import Path

import httpx

from vote_spine.errors import FetchFailure
from vote_spine.logging import get_logger

logger = get_logger(__name__)

DEFAULT_FEED_URL = (
    "http://www.parl.gc.ca/HouseChamberBusiness/Chambervotelist.aspx?Language=E&xml=True"
)


class HttpFeedFetcher:
    """
    Fetch the vote list over HTTP.

    One blocking GET per run. Any transport error or non-2xx status is a
    ``FetchFailure``; retrying is left to the scheduler.
    """

    TIMEOUT = 30.0

    def __init__(
        self,
        url: str = DEFAULT_FEED_URL,
        timeout: float | None = None,
        client: httpx.Client | None = None,
    ):
        self.url = url
        self.timeout = timeout or self.TIMEOUT
        self._client = client

    def fetch(self) -> bytes:
        try:
            if self._client is not None:
                response = self._client.get(self.url, timeout=self.timeout)
                response.raise_for_status()
            else:
                with httpx.Client(timeout=self.timeout, follow_redirects=True) as client:
                    response = client.get(self.url)
                    response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise FetchFailure(
                f"Feed returned HTTP {exc.response.status_code}", cause=exc
            ).with_context(
                source_name="feed", url=self.url, http_status=exc.response.status_code
            ) from exc
        except httpx.HTTPError as exc:
            raise FetchFailure(f"Feed request failed: {exc}", cause=exc).with_context(
                source_name="feed", url=self.url
            ) from exc

        logger.info("feed_fetched", url=self.url, bytes=len(response.content))
        return response.content


class FileFeedFetcher:
    """Read the vote list from a local file (replays, offline runs)."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def fetch(self) -> bytes:
        try:
            payload = self.path.read_bytes()
        except OSError as exc:
            raise FetchFailure(f"Cannot read feed file: {exc}", cause=exc).with_context(
                source_name="file", path=str(self.path)
            ) from exc
        logger.info("feed_read", path=str(self.path), bytes=len(payload))
        return payload
