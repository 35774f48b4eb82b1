"""Wire an ``IngestionPipeline`` from settings for a deployment mode.

Two modes replace the separate programs the service used to ship:

- ``worker``: translate pivots, split descriptions, post new votes to
  Buffer when a token is configured, render everything.
- ``digest``: ingest and render only; no translation (descriptions stay
  whole) and no social posting.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from vote_spine.errors import ConfigError
from vote_spine.fetch import FileFeedFetcher, HttpFeedFetcher
from vote_spine.logging import get_logger
from vote_spine.pipeline import FeedFetcher, IngestionPipeline, PipelineConfig, Translator
from vote_spine.render import FeedChannel, HtmlPageRenderer, JsonFeedRenderer, RssFeedRenderer
from vote_spine.settings import Settings
from vote_spine.social import BufferPublisher
from vote_spine.splitter import BilingualSplitter
from vote_spine.store import VoteStore
from vote_spine.translate import MicrosoftTranslator, NoopTranslator

logger = get_logger(__name__)


class Mode(str, Enum):
    WORKER = "worker"
    DIGEST = "digest"


def build_channel(settings: Settings) -> FeedChannel:
    return FeedChannel(
        title=settings.feed_title,
        link=settings.site_url,
        description=settings.feed_description,
        bill_url_template=settings.bill_url_template,
    )


def build_renderers(settings: Settings) -> list:
    channel = build_channel(settings)
    return [
        JsonFeedRenderer(settings.output_dir, channel),
        RssFeedRenderer(settings.output_dir, channel),
        HtmlPageRenderer(settings.output_dir, channel, template_dir=settings.template_dir),
    ]


def build_translator(settings: Settings, mode: Mode) -> Translator:
    if mode is Mode.DIGEST:
        return NoopTranslator()
    if not settings.translator_key:
        raise ConfigError(
            "Worker mode needs a translator key (VOTE_SPINE_TRANSLATOR_KEY); "
            "use --mode digest to ingest without translation"
        )
    return MicrosoftTranslator(
        key=settings.translator_key,
        region=settings.translator_region,
        endpoint=settings.translator_endpoint,
        target=settings.target_language,
        timeout=settings.fetch_timeout,
    )


def build_publisher(settings: Settings, mode: Mode) -> BufferPublisher | None:
    if mode is Mode.DIGEST:
        return None
    if not settings.buffer_access_token:
        logger.info("social_posting_disabled", reason="no buffer access token")
        return None
    return BufferPublisher(
        access_token=settings.buffer_access_token,
        bill_url_template=settings.bill_url_template,
        site_url=settings.site_url,
        profile_id=settings.buffer_profile_id,
    )


def build_pipeline(
    settings: Settings,
    mode: Mode = Mode.WORKER,
    *,
    feed_file: Path | None = None,
    store: VoteStore | None = None,
) -> IngestionPipeline:
    """Build a pipeline owning its own store, fetcher and renderers.

    Configuration errors are raised before the store is opened. Close the
    returned pipeline (or use it as a context manager) when done.
    """
    translator = build_translator(settings, mode)
    publisher = build_publisher(settings, mode)
    fetcher: FeedFetcher = (
        FileFeedFetcher(feed_file)
        if feed_file is not None
        else HttpFeedFetcher(settings.feed_url, timeout=settings.fetch_timeout)
    )
    return IngestionPipeline(
        PipelineConfig(
            name=mode.value,
            latest_count=settings.latest_count,
            batch_limit=settings.batch_limit,
        ),
        fetcher=fetcher,
        store=store or VoteStore.open(settings.database_path),
        translator=translator,
        renderers=build_renderers(settings),
        publisher=publisher,
        splitter=BilingualSplitter(settings.pivot_corrections),
    )
