"""Tests for vote_spine.selection and the Watermark predicate."""

import pytest

from vote_spine.models import Watermark
from vote_spine.selection import select_new


class TestWatermarkAdmits:
    @pytest.mark.parametrize(
        "parliament, number, expected",
        [
            (42, 99, False),
            (42, 100, False),
            (42, 101, True),
            (43, 1, True),
            (41, 999, False),
        ],
    )
    def test_boundary(self, make_vote, parliament, number, expected):
        watermark = Watermark(42, 100)
        assert watermark.admits(make_vote(parliament, number)) is expected

    def test_bootstrap_admits_everything(self, make_vote):
        assert Watermark().admits(make_vote(1, 1))
        assert Watermark() == Watermark(0, 0)

    def test_frozen(self):
        with pytest.raises(AttributeError):
            Watermark(1, 2).number = 3  # type: ignore[misc]


class TestSelectNew:
    def test_preserves_feed_order(self, make_vote):
        feed = [make_vote(43, 2), make_vote(43, 1), make_vote(42, 101), make_vote(42, 100)]
        selected = select_new(feed, Watermark(42, 100))
        assert [r.key for r in selected] == [(43, 2), (43, 1), (42, 101)]

    def test_returns_same_objects(self, make_vote):
        vote = make_vote(42, 101)
        assert select_new([vote], Watermark(42, 100))[0] is vote

    def test_empty_input(self):
        assert select_new([], Watermark(42, 100)) == []

    def test_nothing_new(self, make_vote):
        feed = [make_vote(42, 100), make_vote(42, 99)]
        assert select_new(feed, Watermark(42, 100)) == []

    def test_limit_keeps_most_recent(self, make_vote):
        feed = [make_vote(41, n) for n in (105, 104, 103, 102)]
        selected = select_new(feed, Watermark(41, 101), limit=2)
        assert [r.number for r in selected] == [105, 104]

    def test_limit_zero(self, make_vote):
        assert select_new([make_vote(41, 5)], Watermark(), limit=0) == []

    def test_negative_limit_rejected(self, make_vote):
        with pytest.raises(ValueError):
            select_new([make_vote(41, 5)], Watermark(), limit=-1)
