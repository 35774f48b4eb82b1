"""
vote-spine: incremental ingestion of House of Commons votes.

Polls the House vote list, stores only the votes not seen before, splits
their bilingual descriptions, and republishes the latest votes as JSON, RSS
and HTML.

Modules:
    models      VoteRecord, Watermark
    feed        XML repair and parsing
    selection   watermark-based selection of new votes
    splitter    English/French description split
    store       SQLite persistence
    pipeline    the ingestion state machine
    fetch, translate, social, render, web   collaborators
    settings, factory, cli                  configuration and entry points
"""

from vote_spine.errors import (
    FetchFailure,
    MalformedFeed,
    PersistenceFailure,
    RenderFailure,
    SplitMiss,
    TranslationFailure,
    VoteSpineError,
)
from vote_spine.models import VoteRecord, Watermark
from vote_spine.pipeline import IngestionPipeline, IngestionReport, PipelineConfig, PipelineState

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "VoteRecord",
    "Watermark",
    "IngestionPipeline",
    "IngestionReport",
    "PipelineConfig",
    "PipelineState",
    "VoteSpineError",
    "FetchFailure",
    "MalformedFeed",
    "TranslationFailure",
    "SplitMiss",
    "PersistenceFailure",
    "RenderFailure",
]
