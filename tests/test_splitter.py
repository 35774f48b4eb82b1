"""
Tests for vote_spine.splitter.

Tests cover:
- Split at the first occurrence of the pivot (hit)
- Whole description kept English when the pivot is empty or absent (miss)
- Correction table, default and injected
- english + french reconstructs the description in every case
"""

import pytest

from vote_spine.errors import SplitMiss
from vote_spine.splitter import DEFAULT_CORRECTIONS, BilingualSplitter, first_word


class TestFirstWord:
    @pytest.mark.parametrize(
        "description, expected",
        [
            ("Royal Assent on Bill C-10", "Royal"),
            ("Single", "Single"),
            ("", ""),
            (" leading space", ""),
        ],
    )
    def test_first_word(self, description, expected):
        assert first_word(description) == expected


class TestSplit:
    def setup_method(self):
        self.splitter = BilingualSplitter()

    def test_hit(self):
        result = self.splitter.split("2nd reading of Bill C-602e lecture du projet de loi C-60", "2e")
        assert result.english == "2nd reading of Bill C-60"
        assert result.french == "2e lecture du projet de loi C-60"
        assert result.hit
        assert result.miss is None

    def test_first_occurrence_wins(self):
        result = self.splitter.split("AB motion BBB", "B")
        assert result.english == "A"
        assert result.french == "B motion BBB"

    def test_miss_keeps_everything_english(self):
        result = self.splitter.split("Opposition motion", "Introuvable")
        assert result.english == "Opposition motion"
        assert result.french == ""
        assert not result.hit
        assert isinstance(result.miss, SplitMiss)
        assert not result.miss.fatal

    def test_empty_pivot_is_a_miss(self):
        result = self.splitter.split("Opposition motion", "")
        assert result.english == "Opposition motion"
        assert result.french == ""
        assert result.miss is not None

    def test_royal_assent_correction_not_present(self):
        result = self.splitter.split("Royal Assent on Bill C-10", "Assentiment")
        assert result.pivot == "Adoption"
        assert result.english == "Royal Assent on Bill C-10"
        assert result.french == ""
        assert result.miss is not None

    def test_correction_applied_before_search(self):
        description = "Private Members' Business M-412Affaires émanant des députés M-412"
        result = self.splitter.split(description, "Privé")
        assert result.english == "Private Members' Business M-412"
        assert result.french == "Affaires émanant des députés M-412"

    def test_pivot_at_start(self):
        result = self.splitter.split("Motion Motion", "Motion")
        assert result.english == ""
        assert result.french == "Motion Motion"

    @pytest.mark.parametrize(
        "description, pivot",
        [
            ("3rd reading of Bill C-453e lecture du projet de loi C-45", "3e"),
            ("Royal Assent on Bill C-10", "Assentiment"),
            ("Time allocationAttribution de temps", "Temps"),
            ("", "Temps"),
            ("", ""),
            ("Motion", "Motion"),
            ("Unicode é à ü", "à"),
        ],
    )
    def test_halves_reconstruct_description(self, description, pivot):
        result = self.splitter.split(description, pivot)
        assert result.english + result.french == description


class TestCorrections:
    def test_default_table(self):
        splitter = BilingualSplitter()
        assert splitter.corrections == DEFAULT_CORRECTIONS
        assert splitter.correct("Assentiment") == "Adoption"
        assert splitter.correct("2ème") == "2e"
        assert splitter.correct("Temps") == "Attribution"
        assert splitter.correct("Motion") == "Motion"

    def test_injected_table_replaces_default(self):
        splitter = BilingualSplitter({"Vote": "Scrutin"})
        assert splitter.correct("Vote") == "Scrutin"
        assert splitter.correct("Assentiment") == "Assentiment"

    def test_empty_table_disables_corrections(self):
        splitter = BilingualSplitter({})
        assert splitter.correct("Assentiment") == "Assentiment"

    def test_injected_table_is_copied(self):
        table = {"a": "b"}
        splitter = BilingualSplitter(table)
        table["a"] = "c"
        assert splitter.correct("a") == "b"


class TestApply:
    def test_mutates_record(self, make_vote):
        vote = make_vote(description_english="Time allocationAttribution de temps")
        result = BilingualSplitter().apply(vote, "Temps")
        assert result.hit
        assert vote.description_english == "Time allocation"
        assert vote.description_french == "Attribution de temps"

    def test_miss_leaves_french_empty(self, make_vote):
        vote = make_vote(description_english="Opposition motion")
        BilingualSplitter().apply(vote, "")
        assert vote.description_english == "Opposition motion"
        assert vote.description_french == ""
