"""
Structured error types for vote-spine.

Every failure the ingestion pipeline can meet is a typed error carrying a
category, an advisory retry flag, structured context, and a ``fatal`` flag
that tells the orchestrator whether the run must abort.

Manifesto:
    - **Typed hierarchy:** One error type per failure domain
    - **Abort semantics on the type:** ``fatal`` decides abort vs continue
    - **Rich context:** Errors carry stage, source and URL for logging
    - **Chaining:** The original exception is kept as ``cause``

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                     VoteSpineError                           │
        │        (category, retryable, fatal, context, cause)          │
        ├─────────────────────────────────────────────────────────────┤
        │  fatal=True                     │  fatal=False               │
        │  ───────────                    │  ────────────              │
        │  FetchFailure       (NETWORK)   │  SplitMiss   (VALIDATION)  │
        │  MalformedFeed      (PARSE)     │  RenderFailure (STORAGE)   │
        │  TranslationFailure (SOURCE)    │  PublishFailure (NETWORK)  │
        │  PersistenceFailure (DATABASE)  │                            │
        │  PipelineBusy       (PIPELINE)  │                            │
        │  ConfigError        (CONFIG)    │                            │
        └─────────────────────────────────────────────────────────────┘

Examples:
    >>> err = FetchFailure("feed unreachable").with_context(url="http://x")
    >>> err.fatal, err.retryable
    (True, True)
    >>> err.context.url
    'http://x'

Guardrails:
    ❌ DON'T: Retry inside the pipeline
    ✅ DO: Surface ``retryable`` so the scheduler can try on the next tick

    ❌ DON'T: Swallow the original exception
    ✅ DO: Pass it as ``cause=``

Tags:
    error-handling, exception-hierarchy, pipeline, vote-spine
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Error categories used for classification and log routing."""

    NETWORK = "NETWORK"
    DATABASE = "DATABASE"
    STORAGE = "STORAGE"
    SOURCE = "SOURCE"
    PARSE = "PARSE"
    VALIDATION = "VALIDATION"
    CONFIG = "CONFIG"
    PIPELINE = "PIPELINE"
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """Structured metadata attached to an error.

    Attributes:
        pipeline: Name of the pipeline instance.
        stage: Pipeline state the error happened in (``"fetched"``, ...).
        run_id: Identifier of the ingestion run.
        source_name: Collaborator that failed (``"feed"``, ``"translator"``).
        url: URL that was being accessed.
        http_status: HTTP status code if applicable.
        metadata: Additional key-value pairs.
    """

    pipeline: str | None = None
    stage: str | None = None
    run_id: str | None = None
    source_name: str | None = None
    url: str | None = None
    http_status: int | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["pipeline", "stage", "run_id", "source_name", "url", "http_status"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class VoteSpineError(Exception):
    """
    Base exception for all vote-spine errors.

    Subclasses set ``default_category``, ``default_retryable`` and ``fatal``.
    ``fatal`` errors abort the current ingestion run; non-fatal errors are
    logged by the orchestrator and the run continues.

    Examples:
        >>> error = VoteSpineError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.fatal
        True
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False
    fatal: bool = True

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> VoteSpineError:
        """
        Add context to this error (fluent API).

        Usage:
            raise FetchFailure("Failed").with_context(url=feed_url)
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Serialize error for structured logging."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
            "fatal": self.fatal,
        }
        context = self.context.to_dict()
        if context:
            result["context"] = context
        if self.cause is not None:
            result["cause"] = f"{type(self.cause).__name__}: {self.cause}"
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# Fatal: abort the run, nothing is persisted
# =============================================================================


class FetchFailure(VoteSpineError):
    """The feed source could not be read."""

    default_category = ErrorCategory.NETWORK
    default_retryable = True


class MalformedFeed(VoteSpineError):
    """The feed payload could not be decoded into vote records."""

    default_category = ErrorCategory.PARSE


class TranslationFailure(VoteSpineError):
    """The translation service was unreachable or answered out of shape."""

    default_category = ErrorCategory.SOURCE
    default_retryable = True


class PersistenceFailure(VoteSpineError):
    """The insert transaction failed and was rolled back."""

    default_category = ErrorCategory.DATABASE


class PipelineBusy(VoteSpineError):
    """A run was started while another run on the same pipeline is in flight."""

    default_category = ErrorCategory.PIPELINE
    default_retryable = True


class ConfigError(VoteSpineError):
    """Missing or invalid configuration."""

    default_category = ErrorCategory.CONFIG


# =============================================================================
# Non-fatal: logged, the run continues
# =============================================================================


class SplitMiss(VoteSpineError):
    """The pivot word was empty or absent; the whole description stays English."""

    default_category = ErrorCategory.VALIDATION
    fatal = False


class RenderFailure(VoteSpineError):
    """An output artifact could not be written."""

    default_category = ErrorCategory.STORAGE
    fatal = False


class PublishFailure(VoteSpineError):
    """A vote could not be pushed to the social-posting service."""

    default_category = ErrorCategory.NETWORK
    fatal = False


# =============================================================================
# Helpers
# =============================================================================


def is_fatal(error: Exception) -> bool:
    """Return True if the error must abort an ingestion run.

    Unknown exceptions are treated as fatal.
    """
    if isinstance(error, VoteSpineError):
        return error.fatal
    return True


def is_retryable(error: Exception) -> bool:
    """Return True if the scheduling harness may retry on its next tick."""
    if isinstance(error, VoteSpineError):
        return error.retryable
    return False


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "VoteSpineError",
    "FetchFailure",
    "MalformedFeed",
    "TranslationFailure",
    "PersistenceFailure",
    "PipelineBusy",
    "ConfigError",
    "SplitMiss",
    "RenderFailure",
    "PublishFailure",
    "is_fatal",
    "is_retryable",
]
