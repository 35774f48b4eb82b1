"""Vote records and the ingestion watermark."""

from __future__ import annotations

from dataclasses import dataclass

SHORT_DESCRIPTION_LENGTH = 110


@dataclass
class VoteRecord:
    """One recorded division of the House of Commons.

    A record is created from a feed entry, has its descriptions rewritten by
    the bilingual split, and is written to the store exactly once. ``id`` is
    ``None`` until the store assigns it.
    """

    number: int
    parliament: int
    session: int = 0
    sitting: int = 0
    date: str = ""
    description_english: str = ""
    description_french: str = ""
    decision: str = ""
    related_bill: str = ""
    total_yeas: int = 0
    total_nays: int = 0
    total_paired: int = 0
    id: int | None = None

    @property
    def key(self) -> tuple[int, int]:
        """Business key ``(parliament, number)``."""
        return (self.parliament, self.number)

    def short_description(self, limit: int = SHORT_DESCRIPTION_LENGTH) -> str:
        """English description cut to *limit* characters with an ellipsis."""
        if len(self.description_english) > limit:
            return self.description_english[:limit] + "..."
        return self.description_english

    def link(self, bill_url_template: str, fallback_url: str) -> str:
        """Bill-detail URL, or *fallback_url* when no bill is attached."""
        if not self.related_bill:
            return fallback_url
        return bill_url_template.format(bill=self.related_bill)


@dataclass(frozen=True, slots=True)
class Watermark:
    """Highest ``(parliament, number)`` already ingested.

    ``Watermark()`` is the bootstrap value for an empty store: every record
    is newer than it.
    """

    parliament: int = 0
    number: int = 0

    def admits(self, record: VoteRecord) -> bool:
        """True if *record* is strictly newer than this watermark."""
        if record.parliament > self.parliament:
            return True
        return record.parliament == self.parliament and record.number > self.number

    def __str__(self) -> str:
        return f"{self.parliament}/{self.number}"
