"""Posting newly recorded votes to Buffer."""

from __future__ import annotations

import httpx

from vote_spine.errors import ConfigError, PublishFailure
from vote_spine.logging import get_logger
from vote_spine.models import VoteRecord

logger = get_logger(__name__)

BUFFER_API = "https://api.bufferapp.com/1"


class BufferPublisher:
    """Queue one Buffer update per vote: short description plus bill link.

    When *profile_id* is not given, the first profile of the account is used,
    looked up once and cached.
    """

    TIMEOUT = 30.0

    def __init__(
        self,
        access_token: str,
        bill_url_template: str,
        site_url: str,
        profile_id: str | None = None,
        api_url: str = BUFFER_API,
        client: httpx.Client | None = None,
    ):
        if not access_token:
            raise ConfigError("Buffer access token is required")
        self.access_token = access_token
        self.bill_url_template = bill_url_template
        self.site_url = site_url
        self.profile_id = profile_id
        self.api_url = api_url.rstrip("/")
        self._client = client or httpx.Client(timeout=self.TIMEOUT)

    def _profile(self) -> str:
        if self.profile_id:
            return self.profile_id
        url = f"{self.api_url}/profiles.json"
        try:
            response = self._client.get(url, params={"access_token": self.access_token})
            response.raise_for_status()
            profiles = response.json()
            self.profile_id = str(profiles[0]["id"])
        except (httpx.HTTPError, ValueError, LookupError, TypeError) as exc:
            raise PublishFailure(f"Could not resolve Buffer profile: {exc}", cause=exc).with_context(
                source_name="buffer", url=url
            ) from exc
        return self.profile_id

    def publish(self, record: VoteRecord) -> None:
        link = record.link(self.bill_url_template, self.site_url)
        url = f"{self.api_url}/updates/create.json"
        data = {
            "access_token": self.access_token,
            "text": f"{record.short_description()} {link}",
            "profile_ids[]": self._profile(),
            "media[link]": link,
            "shorten": "true",
            "now": "false",
        }
        try:
            response = self._client.post(url, data=data)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise PublishFailure(f"Buffer update failed: {exc}", cause=exc).with_context(
                source_name="buffer", url=url, vote=f"{record.parliament}/{record.number}"
            ) from exc
        logger.debug("vote_published", parliament=record.parliament, number=record.number)

    def close(self) -> None:
        self._client.close()
