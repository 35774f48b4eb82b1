"""
Incremental vote ingestion pipeline.

Manifesto:
    The House publishes its whole recent vote list on every poll. Each run
    must insert exactly the votes it has not seen before, in chronological
    order, and nothing else. The pipeline is one linear state machine with
    injected collaborators so that every deployment (full worker, digest
    only, replay from file) is the same code with different wiring.

    - **Watermark-driven:** "new" means strictly above the persisted max
    - **All-or-nothing:** One insert transaction per run
    - **Commit before side effects:** Nothing is posted before the commit
    - **Typed failures:** ``fatal`` errors abort, the rest are logged

Architecture:
    ::

        IDLE ─fetch─▶ FETCHED ─normalize─▶ NORMALIZED ─select─▶ SELECTED
                                                                  │
          ┌──────────────────────── translate + split ◀──────────┘
          ▼
        SPLIT ─reverse + insert_all─▶ PERSISTED ─publish, render─▶ RENDERED ─▶ IDLE

        any fatal error ──▶ FAILED (run halts, error re-raised)

Examples:
    >>> pipeline = IngestionPipeline(
    ...     PipelineConfig(name="worker"),
    ...     fetcher=HttpFeedFetcher(),
    ...     store=VoteStore.open("votes.db"),
    ...     translator=NoopTranslator(),
    ...     renderers=[JsonFeedRenderer(Path("public"), FeedChannel())],
    ... )
    >>> report = pipeline.run()
    >>> report.inserted
    3

Guardrails:
    ❌ DON'T: Run two pipelines against one store at the same time
    ✅ DO: Serialize runs in the scheduler; a second ``run()`` on the same
       instance raises ``PipelineBusy``

    ❌ DON'T: Retry inside a run
    ✅ DO: Let the next scheduled run re-derive the watermark

Tags:
    pipeline, ingestion, watermark, state-machine, vote-spine
"""

from __future__ import annotations

import threading
import time
import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Protocol

from vote_spine.errors import (
    PersistenceFailure,
    PipelineBusy,
    PublishFailure,
    RenderFailure,
    TranslationFailure,
    VoteSpineError,
)
from vote_spine.feed import FeedNormalizer
from vote_spine.logging import LogContext, get_logger
from vote_spine.models import VoteRecord, Watermark
from vote_spine.selection import select_new
from vote_spine.splitter import BilingualSplitter, first_word

logger = get_logger(__name__)


# =============================================================================
# Collaborator interfaces
# =============================================================================


class FeedFetcher(Protocol):
    def fetch(self) -> bytes: ...


class VoteRepository(Protocol):
    def current_watermark(self) -> Watermark: ...

    def insert_all(self, records: Sequence[VoteRecord]) -> list[VoteRecord]: ...

    def latest(self, n: int = 10) -> list[VoteRecord]: ...


class Translator(Protocol):
    def translate(self, words: Sequence[str]) -> list[str]: ...


class Publisher(Protocol):
    def publish(self, record: VoteRecord) -> None: ...


class Renderer(Protocol):
    name: str

    def render(self, records: Sequence[VoteRecord]) -> Path: ...


# =============================================================================
# State and results
# =============================================================================


class PipelineState(str, Enum):
    IDLE = "idle"
    FETCHED = "fetched"
    NORMALIZED = "normalized"
    SELECTED = "selected"
    SPLIT = "split"
    PERSISTED = "persisted"
    RENDERED = "rendered"
    FAILED = "failed"


@dataclass(frozen=True)
class PipelineConfig:
    """Per-pipeline run parameters.

    Attributes:
        name: Deployment mode name, bound into every log line.
        latest_count: How many persisted votes the renderers receive.
        batch_limit: Keep only the most recent K new votes per run.
            ``None`` processes every new vote.
    """

    name: str = "worker"
    latest_count: int = 10
    batch_limit: int | None = None


@dataclass
class IngestionReport:
    """What one run did, filled in as the run progresses."""

    run_id: str
    state: PipelineState = PipelineState.IDLE
    watermark: Watermark | None = None
    fetched: int = 0
    selected: int = 0
    split_misses: int = 0
    inserted: int = 0
    published: int = 0
    publish_failures: int = 0
    rendered: list[str] = field(default_factory=list)
    render_errors: list[str] = field(default_factory=list)
    error: Exception | None = None
    duration_ms: float = 0

    @property
    def success(self) -> bool:
        return self.state is not PipelineState.FAILED


# =============================================================================
# Pipeline
# =============================================================================


class IngestionPipeline:
    """Fetch, select, split, persist, publish and render one batch of votes."""

    def __init__(
        self,
        config: PipelineConfig,
        *,
        fetcher: FeedFetcher,
        store: VoteRepository,
        translator: Translator,
        renderers: Sequence[Renderer] = (),
        publisher: Publisher | None = None,
        splitter: BilingualSplitter | None = None,
        normalizer: FeedNormalizer | None = None,
    ):
        self.config = config
        self.fetcher = fetcher
        self.store = store
        self.translator = translator
        self.renderers = list(renderers)
        self.publisher = publisher
        self.splitter = splitter or BilingualSplitter()
        self.normalizer = normalizer or FeedNormalizer()
        self.state = PipelineState.IDLE
        self._lock = threading.Lock()

    def close(self) -> None:
        """Release collaborators that hold connections (store, HTTP clients)."""
        for collaborator in (self.fetcher, self.translator, self.publisher, self.store):
            close = getattr(collaborator, "close", None)
            if close is not None:
                close()

    def __enter__(self) -> IngestionPipeline:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def _advance(self, report: IngestionReport, state: PipelineState) -> None:
        self.state = state
        report.state = state

    def run(self) -> IngestionReport:
        """Execute one ingestion run.

        Returns:
            The run's report. Non-fatal problems (split misses, publish or
            render failures) are counted there.

        Raises:
            VoteSpineError: The fatal error that aborted the run. The pipeline
                is left in ``FAILED`` and nothing was committed unless the
                failure happened after ``PERSISTED``.
        """
        if not self._lock.acquire(blocking=False):
            raise PipelineBusy(f"Pipeline {self.config.name!r} is already running")

        report = IngestionReport(run_id=uuid.uuid4().hex[:12])
        start = time.perf_counter()
        try:
            with LogContext(pipeline=self.config.name, run_id=report.run_id):
                logger.info("run_started")
                try:
                    self._run(report)
                except Exception as exc:
                    failed_in = self.state
                    self._advance(report, PipelineState.FAILED)
                    report.error = exc
                    if isinstance(exc, VoteSpineError):
                        exc.with_context(
                            pipeline=self.config.name, stage=failed_in.value, run_id=report.run_id
                        )
                        logger.error("run_failed", stage=failed_in.value, **exc.to_dict())
                    else:
                        logger.exception("run_failed", stage=failed_in.value, error=str(exc))
                    raise
                finally:
                    report.duration_ms = (time.perf_counter() - start) * 1000

                self.state = PipelineState.IDLE
                logger.info(
                    "run_completed",
                    selected=report.selected,
                    inserted=report.inserted,
                    published=report.published,
                    render_errors=len(report.render_errors),
                    duration_ms=round(report.duration_ms, 1),
                )
                return report
        finally:
            self._lock.release()

    def _run(self, report: IngestionReport) -> None:
        payload = self.fetcher.fetch()
        self._advance(report, PipelineState.FETCHED)

        records = self.normalizer.normalize(payload)
        report.fetched = len(records)
        self._advance(report, PipelineState.NORMALIZED)

        watermark = self.store.current_watermark()
        report.watermark = watermark
        selected = select_new(records, watermark, self.config.batch_limit)
        report.selected = len(selected)
        logger.info(
            "votes_selected", watermark=str(watermark), fetched=len(records), selected=len(selected)
        )
        self._advance(report, PipelineState.SELECTED)

        report.split_misses = self._split(selected)
        self._advance(report, PipelineState.SPLIT)

        inserted = self.store.insert_all(list(reversed(selected)))
        report.inserted = len(inserted)
        logger.info("votes_inserted", count=len(inserted))
        self._advance(report, PipelineState.PERSISTED)

        self._publish(inserted, report)
        self._render(report)
        self._advance(report, PipelineState.RENDERED)

    def _split(self, selected: Sequence[VoteRecord]) -> int:
        if not selected:
            return 0

        words = [first_word(record.description_english) for record in selected]
        pivots = self.translator.translate(words)
        if len(pivots) != len(words):
            raise TranslationFailure(
                f"Translator returned {len(pivots)} words for {len(words)}"
            ).with_context(source_name="translator")

        misses = 0
        for record, pivot in zip(selected, pivots):
            result = self.splitter.apply(record, pivot)
            if result.miss is not None:
                misses += 1
                logger.warning(
                    "split_miss",
                    parliament=record.parliament,
                    number=record.number,
                    pivot=result.pivot,
                    reason=result.miss.message,
                )
        return misses

    def _publish(self, inserted: Sequence[VoteRecord], report: IngestionReport) -> None:
        if self.publisher is None:
            return
        for record in inserted:
            try:
                self.publisher.publish(record)
            except PublishFailure as exc:
                report.publish_failures += 1
                logger.warning("publish_failed", **exc.to_dict())
            else:
                report.published += 1
        logger.info("votes_published", count=report.published, failed=report.publish_failures)

    def _render(self, report: IngestionReport) -> None:
        latest = self.store.latest(self.config.latest_count)
        for renderer in self.renderers:
            try:
                path = renderer.render(latest)
            except RenderFailure as exc:
                report.render_errors.append(f"{renderer.name}: {exc.message}")
                logger.warning("render_failed", renderer=renderer.name, **exc.to_dict())
            else:
                report.rendered.append(str(path))
                logger.info("artifact_rendered", renderer=renderer.name, path=str(path))

    def render_only(self) -> IngestionReport:
        """Re-render artifacts from persisted votes without ingesting."""
        if not self._lock.acquire(blocking=False):
            raise PipelineBusy(f"Pipeline {self.config.name!r} is already running")

        report = IngestionReport(run_id=uuid.uuid4().hex[:12])
        try:
            with LogContext(pipeline=self.config.name, run_id=report.run_id):
                try:
                    self._render(report)
                except PersistenceFailure as exc:
                    report.state = PipelineState.FAILED
                    report.error = exc
                    logger.error("render_failed", **exc.to_dict())
                    raise
        finally:
            self._lock.release()
        report.state = PipelineState.RENDERED
        return report
