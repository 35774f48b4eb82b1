"""
Feed normalization: raw vote-list XML to ``VoteRecord`` values.

The upstream vote list encodes an optional related bill as a self-closing
element with the bill id in an attribute::

    <RelatedBill number="C-10" />

Everything downstream models the bill as text content, so the payload is
rewritten to ``<RelatedBill>C-10</RelatedBill>`` before parsing. The rewrite
only touches that exact shape and is idempotent.

Records come back in document order (newest first, as published). No
reordering or deduplication happens here.
"""

from __future__ import annotations

import re
from xml.etree import ElementTree

from vote_spine.errors import MalformedFeed
from vote_spine.logging import get_logger
from vote_spine.models import VoteRecord

logger = get_logger(__name__)

RELATED_BILL_ATTRIBUTE = re.compile(rb'<RelatedBill number="([a-zA-Z0-9-]+)" />')

# XML attribute -> VoteRecord field
_ATTRIBUTES = {
    "number": "number",
    "parliament": "parliament",
    "session": "session",
    "sitting": "sitting",
}

# Largest value the store can hold in an INTEGER column
MAX_INTEGER = 2**63 - 1

# child element -> (VoteRecord field, is_integer)
_CHILDREN = {
    "Description": ("description_english", False),
    "Decision": ("decision", False),
    "RelatedBill": ("related_bill", False),
    "TotalYeas": ("total_yeas", True),
    "TotalNays": ("total_nays", True),
    "TotalPaired": ("total_paired", True),
}


def rewrite_related_bill(payload: bytes) -> bytes:
    """Turn attribute-style related-bill references into element text."""
    return RELATED_BILL_ATTRIBUTE.sub(rb"<RelatedBill>\1</RelatedBill>", payload)


def _to_int(value: str | None, field_name: str, position: int) -> int:
    if value is None or not value.strip():
        return 0
    try:
        number = int(value.strip())
    except ValueError as exc:
        raise MalformedFeed(
            f"Vote #{position}: {field_name} is not an integer: {value!r}", cause=exc
        ) from exc
    if number < 0:
        raise MalformedFeed(f"Vote #{position}: {field_name} is negative: {number}")
    if number > MAX_INTEGER:
        raise MalformedFeed(f"Vote #{position}: {field_name} is out of range: {number}")
    return number


def _parse_vote(element: ElementTree.Element, position: int) -> VoteRecord:
    values: dict[str, object] = {}
    for attribute, field_name in _ATTRIBUTES.items():
        values[field_name] = _to_int(element.get(attribute), attribute, position)
    values["date"] = (element.get("date") or "").strip()

    for tag, (field_name, is_integer) in _CHILDREN.items():
        child = element.find(tag)
        text = child.text if child is not None and child.text is not None else ""
        if is_integer:
            values[field_name] = _to_int(text, tag, position)
        elif field_name == "description_english":
            # verbatim, never stripped
            values[field_name] = text
        else:
            values[field_name] = text.strip()

    return VoteRecord(**values)  # type: ignore[arg-type]


def parse_votes(payload: bytes) -> list[VoteRecord]:
    """Decode an already-rewritten ``<Votes>`` document.

    Raises:
        MalformedFeed: On XML syntax errors, an unexpected root element, or
            a numeric field that is not a non-negative 64-bit integer.
    """
    try:
        root = ElementTree.fromstring(payload)
    except ElementTree.ParseError as exc:
        raise MalformedFeed(f"Feed is not well-formed XML: {exc}", cause=exc) from exc
    except (LookupError, ValueError) as exc:
        # unknown or inconsistent encoding declaration
        raise MalformedFeed(f"Feed cannot be decoded: {exc}", cause=exc) from exc

    if root.tag != "Votes":
        raise MalformedFeed(f"Unexpected root element <{root.tag}>, expected <Votes>")

    return [_parse_vote(element, i) for i, element in enumerate(root.findall("Vote"))]


class FeedNormalizer:
    """Repairs and decodes a raw feed payload."""

    def normalize(self, payload: bytes) -> list[VoteRecord]:
        """Rewrite related-bill attributes, then parse in document order."""
        if not payload or not payload.strip():
            raise MalformedFeed("Feed payload is empty")
        records = parse_votes(rewrite_related_bill(payload))
        logger.debug("feed_normalized", records=len(records), size=len(payload))
        return records
