"""Tests for vote_spine.errors module."""

import pytest

from vote_spine.errors import (
    ConfigError,
    ErrorCategory,
    ErrorContext,
    FetchFailure,
    MalformedFeed,
    PersistenceFailure,
    PipelineBusy,
    PublishFailure,
    RenderFailure,
    SplitMiss,
    TranslationFailure,
    VoteSpineError,
    is_fatal,
    is_retryable,
)


class TestTaxonomy:
    @pytest.mark.parametrize(
        "error_type, category, fatal",
        [
            (FetchFailure, ErrorCategory.NETWORK, True),
            (MalformedFeed, ErrorCategory.PARSE, True),
            (TranslationFailure, ErrorCategory.SOURCE, True),
            (PersistenceFailure, ErrorCategory.DATABASE, True),
            (PipelineBusy, ErrorCategory.PIPELINE, True),
            (ConfigError, ErrorCategory.CONFIG, True),
            (SplitMiss, ErrorCategory.VALIDATION, False),
            (RenderFailure, ErrorCategory.STORAGE, False),
            (PublishFailure, ErrorCategory.NETWORK, False),
        ],
    )
    def test_category_and_fatality(self, error_type, category, fatal):
        error = error_type("x")
        assert isinstance(error, VoteSpineError)
        assert error.category == category
        assert error.fatal is fatal
        assert is_fatal(error) is fatal

    def test_unknown_exceptions_are_fatal_not_retryable(self):
        assert is_fatal(ValueError("x"))
        assert not is_retryable(ValueError("x"))

    def test_retryable_defaults(self):
        assert is_retryable(FetchFailure("x"))
        assert is_retryable(TranslationFailure("x"))
        assert not is_retryable(MalformedFeed("x"))

    def test_retryable_override(self):
        assert not FetchFailure("x", retryable=False).retryable


class TestContext:
    def test_empty_context(self):
        assert ErrorContext().to_dict() == {}

    def test_with_context_known_and_extra_fields(self):
        error = FetchFailure("down").with_context(url="http://feed", attempt=2)
        assert error.context.url == "http://feed"
        assert error.context.metadata == {"attempt": 2}
        assert error.context.to_dict() == {"url": "http://feed", "attempt": 2}

    def test_with_context_returns_self(self):
        error = MalformedFeed("bad")
        assert error.with_context(stage="fetched") is error


class TestSerialization:
    def test_to_dict(self):
        cause = OSError("disk")
        error = PersistenceFailure("insert failed", cause=cause).with_context(stage="split")
        data = error.to_dict()

        assert data["error_type"] == "PersistenceFailure"
        assert data["message"] == "insert failed"
        assert data["category"] == "DATABASE"
        assert data["fatal"] is True
        assert data["context"] == {"stage": "split"}
        assert data["cause"] == "OSError: disk"
        assert error.__cause__ is cause

    def test_repr(self):
        assert repr(SplitMiss("no pivot")) == "SplitMiss('no pivot', category=VALIDATION)"
