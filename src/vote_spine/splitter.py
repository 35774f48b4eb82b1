"""
Bilingual split of vote descriptions.

The upstream ``Description`` field carries the English text immediately
followed by its French rendering, with no separator. To find the boundary,
the first English word of each description is machine-translated and the
translation is looked up in the description: everything before its first
occurrence is English, everything from it onwards is French.

This is a heuristic. Machine translation does not always produce the word
the House actually uses, so a small correction table remaps known
mistranslations (``"Assentiment"`` for "Royal Assent" is ``"Adoption"`` in
the published text) before the lookup.

When the pivot is empty or not found, the whole description stays English
and the French half is empty. That outcome is reported as a ``SplitMiss``
but never raised.

In every case ``english + french`` is exactly the original description.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from vote_spine.errors import SplitMiss
from vote_spine.models import VoteRecord

DEFAULT_CORRECTIONS: dict[str, str] = {
    "Assentiment": "Adoption",
    "2ème": "2e",
    "Privé": "Affaires",
    "Temps": "Attribution",
}


def first_word(description: str) -> str:
    """Text before the first space; this is what gets translated."""
    return description.split(" ", 1)[0]


@dataclass(frozen=True)
class Split:
    """Outcome of splitting one description."""

    english: str
    french: str
    pivot: str
    miss: SplitMiss | None = None

    @property
    def hit(self) -> bool:
        return self.miss is None


class BilingualSplitter:
    """Splits descriptions at a translated pivot word.

    Args:
        corrections: Mapping of mistranslated pivots to the form that appears
            in the published text. Defaults to ``DEFAULT_CORRECTIONS``.
    """

    def __init__(self, corrections: Mapping[str, str] | None = None) -> None:
        self.corrections = dict(DEFAULT_CORRECTIONS if corrections is None else corrections)

    def correct(self, pivot: str) -> str:
        return self.corrections.get(pivot, pivot)

    def split(self, description: str, pivot: str) -> Split:
        pivot = self.correct(pivot)
        if not pivot:
            return Split(description, "", pivot, SplitMiss("Empty pivot word"))

        index = description.find(pivot)
        if index < 0:
            miss = SplitMiss(f"Pivot {pivot!r} not found in description").with_context(
                pivot=pivot
            )
            return Split(description, "", pivot, miss)

        return Split(description[:index], description[index:], pivot)

    def apply(self, record: VoteRecord, pivot: str) -> Split:
        """Split *record*'s English description in place."""
        result = self.split(record.description_english, pivot)
        record.description_english = result.english
        record.description_french = result.french
        return result
