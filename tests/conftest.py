"""
Shared pytest fixtures for vote-spine tests.

This module provides:
- A sample vote-list payload in the upstream format (newest vote first)
- In-memory SQLite stores
- Fake collaborators (fetcher, translator, publisher, renderer) that
  record how the pipeline called them
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import pytest

from vote_spine.errors import PublishFailure, RenderFailure
from vote_spine.models import VoteRecord
from vote_spine.settings import reset_settings
from vote_spine.store import VoteStore

SAMPLE_FEED = """<?xml version="1.0" encoding="utf-8"?>
<Votes>
  <Vote number="102" parliament="41" session="1" sitting="270" date="2013-06-12">
    <Description>3rd reading and adoption of Bill C-60, An Act to implement certain provisions of the budget3e lecture et adoption du projet de loi C-60, Loi portant exécution de certaines dispositions du budget</Description>
    <Decision>Agreed to</Decision>
    <RelatedBill number="C-60" />
    <TotalYeas>147</TotalYeas>
    <TotalNays>124</TotalNays>
    <TotalPaired>2</TotalPaired>
  </Vote>
  <Vote number="101" parliament="41" session="1" sitting="269" date="2013-06-11">
    <Description>Private Members' Business M-412Affaires émanant des députés M-412</Description>
    <Decision>Negatived</Decision>
    <TotalYeas>110</TotalYeas>
    <TotalNays>160</TotalNays>
    <TotalPaired>0</TotalPaired>
  </Vote>
  <Vote number="100" parliament="41" session="1" sitting="268" date="2013-06-10">
    <Description>Time allocation motion for Bill C-54Attribution de temps pour le projet de loi C-54</Description>
    <Decision>Agreed to</Decision>
    <RelatedBill number="C-54" />
    <TotalYeas>150</TotalYeas>
    <TotalNays>121</TotalNays>
    <TotalPaired>0</TotalPaired>
  </Vote>
</Votes>
""".encode("utf-8")

# What the translator would answer for each sample vote's first word.
SAMPLE_TRANSLATIONS = {"3rd": "3e", "Private": "Privé", "Time": "Temps"}


# =============================================================================
# Fakes
# =============================================================================


class FakeFetcher:
    def __init__(self, payload: bytes = SAMPLE_FEED, error: Exception | None = None):
        self.payload = payload
        self.error = error
        self.calls = 0

    def fetch(self) -> bytes:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.payload


class FakeTranslator:
    """Dictionary lookup; unknown words translate to an empty string."""

    def __init__(self, table: dict[str, str] | None = None, error: Exception | None = None):
        self.table = SAMPLE_TRANSLATIONS if table is None else table
        self.error = error
        self.calls: list[list[str]] = []

    def translate(self, words: Sequence[str]) -> list[str]:
        self.calls.append(list(words))
        if self.error is not None:
            raise self.error
        return [self.table.get(word, "") for word in words]


class RecordingPublisher:
    def __init__(self, fail_on: set[int] | None = None):
        self.published: list[VoteRecord] = []
        self.fail_on = fail_on or set()

    def publish(self, record: VoteRecord) -> None:
        if record.number in self.fail_on:
            raise PublishFailure(f"refused {record.number}")
        self.published.append(record)


class RecordingRenderer:
    def __init__(self, name: str = "recording", fail: bool = False):
        self.name = name
        self.fail = fail
        self.batches: list[list[VoteRecord]] = []

    def render(self, records: Sequence[VoteRecord]) -> Path:
        self.batches.append(list(records))
        if self.fail:
            raise RenderFailure(f"{self.name} is broken")
        return Path(f"/virtual/{self.name}")


class SpyStore:
    """Wraps a real store and records every insert_all call."""

    def __init__(self, store: VoteStore):
        self._store = store
        self.insert_calls: list[list[VoteRecord]] = []

    def current_watermark(self):
        return self._store.current_watermark()

    def insert_all(self, records):
        self.insert_calls.append(list(records))
        return self._store.insert_all(records)

    def latest(self, n: int = 10):
        return self._store.latest(n)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def _reset_settings():
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def sample_feed() -> bytes:
    return SAMPLE_FEED


@pytest.fixture
def store():
    with VoteStore.open(":memory:") as s:
        yield s


@pytest.fixture
def spy_store(store) -> SpyStore:
    return SpyStore(store)


@pytest.fixture
def fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def translator() -> FakeTranslator:
    return FakeTranslator()


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def renderer() -> RecordingRenderer:
    return RecordingRenderer()


@pytest.fixture
def make_vote():
    """Factory for VoteRecord with sensible defaults."""

    def _make(parliament: int = 41, number: int = 1, **kwargs) -> VoteRecord:
        kwargs.setdefault("date", "2013-06-12")
        kwargs.setdefault("description_english", f"Vote {number}")
        kwargs.setdefault("decision", "Agreed to")
        return VoteRecord(number=number, parliament=parliament, **kwargs)

    return _make
