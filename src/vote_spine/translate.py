"""
Pivot-word translation.

The pipeline sends one word per selected vote (the first word of its English
description) and expects exactly one translated word back per input, in the
same order. Anything else is a ``TranslationFailure``.
"""

from __future__ import annotations

from collections.abc import Sequence

import httpx

from vote_spine.errors import TranslationFailure
from vote_spine.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TRANSLATOR_ENDPOINT = "https://api.cognitive.microsofttranslator.com"


class MicrosoftTranslator:
    """Client for the Microsoft Translator Text API v3.

    Args:
        key: Subscription key.
        region: Resource region, required for regional resources.
        endpoint: API base URL.
        source: Source language code.
        target: Target language code.
        timeout: Request timeout in seconds.
        client: Optional pre-built ``httpx.Client`` (tests, pooling).
    """

    TIMEOUT = 30.0

    def __init__(
        self,
        key: str,
        region: str | None = None,
        endpoint: str = DEFAULT_TRANSLATOR_ENDPOINT,
        source: str = "en",
        target: str = "fr",
        timeout: float | None = None,
        client: httpx.Client | None = None,
    ):
        self.key = key
        self.region = region
        self.url = endpoint.rstrip("/") + "/translate"
        self.source = source
        self.target = target
        self.timeout = timeout or self.TIMEOUT
        self._client = client

    def _headers(self) -> dict[str, str]:
        headers = {"Ocp-Apim-Subscription-Key": self.key, "Content-Type": "application/json"}
        if self.region:
            headers["Ocp-Apim-Subscription-Region"] = self.region
        return headers

    def _post(self, body: list[dict[str, str]]) -> httpx.Response:
        params = {"api-version": "3.0", "from": self.source, "to": self.target}
        if self._client is not None:
            return self._client.post(
                self.url, params=params, json=body, headers=self._headers(), timeout=self.timeout
            )
        with httpx.Client(timeout=self.timeout) as client:
            return client.post(self.url, params=params, json=body, headers=self._headers())

    def translate(self, words: Sequence[str]) -> list[str]:
        if not words:
            return []

        try:
            response = self._post([{"Text": word} for word in words])
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            raise TranslationFailure(
                f"Translator returned HTTP {exc.response.status_code}", cause=exc
            ).with_context(
                source_name="translator", url=self.url, http_status=exc.response.status_code
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise TranslationFailure(f"Translator request failed: {exc}", cause=exc).with_context(
                source_name="translator", url=self.url
            ) from exc

        translated = self._extract(payload, len(words))
        logger.info("words_translated", words=list(words), translated=translated)
        return translated

    def _extract(self, payload: object, expected: int) -> list[str]:
        if not isinstance(payload, list) or len(payload) != expected:
            raise TranslationFailure(
                f"Translator returned {len(payload) if isinstance(payload, list) else 'no'} "
                f"results for {expected} words"
            ).with_context(source_name="translator", url=self.url)
        try:
            return [str(item["translations"][0]["text"]) for item in payload]
        except (KeyError, IndexError, TypeError) as exc:
            raise TranslationFailure(
                f"Malformed translator response: {exc}", cause=exc
            ).with_context(source_name="translator", url=self.url) from exc


class NoopTranslator:
    """Returns an empty pivot for every word.

    Every split misses, so descriptions are stored whole as English.
    """

    def translate(self, words: Sequence[str]) -> list[str]:
        return ["" for _ in words]
