"""
Output artifacts built from the latest persisted votes.

Three renderers share one interface, ``render(records) -> Path``:

- ``JsonFeedRenderer``  -> ``feed.json``  (JSON-P, ``jsonVoteFeed(...)``)
- ``RssFeedRenderer``   -> ``feed.xml``   (RSS 2.0)
- ``HtmlPageRenderer``  -> ``index.html`` (jinja2 template)

Any failure is raised as ``RenderFailure``; the pipeline logs it and moves on
to the next renderer.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import format_datetime
from pathlib import Path
from xml.etree import ElementTree

import jinja2

from vote_spine.errors import RenderFailure
from vote_spine.logging import get_logger
from vote_spine.models import VoteRecord

logger = get_logger(__name__)

JSONP_CALLBACK = "jsonVoteFeed"
DEFAULT_SITE_URL = "http://www.todaysvote.ca"
DEFAULT_BILL_URL_TEMPLATE = (
    "http://www.parl.gc.ca/LegisInfo/BillDetails.aspx?Mode=1&Language=E&bill={bill}"
)
FALLBACK_ITEM_TITLE = "Vote"


@dataclass(frozen=True)
class FeedChannel:
    """Channel-level metadata shared by every artifact."""

    title: str = "Today's Vote"
    link: str = DEFAULT_SITE_URL
    description: str = (
        "Stay up to date with what Canada's House of Commons is voting on each day."
    )
    bill_url_template: str = DEFAULT_BILL_URL_TEMPLATE

    def item_link(self, record: VoteRecord) -> str:
        return record.link(self.bill_url_template, self.link)


def _parse_date(value: str) -> datetime | None:
    try:
        return datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        return None


def format_date(value: str) -> str:
    """``2013-06-12`` -> ``Wednesday, June 12, 2013``; unparseable dates pass through."""
    parsed = _parse_date(value)
    if parsed is None:
        return value
    return f"{parsed:%A, %B} {parsed.day}, {parsed.year}"


def first_letter(value: str) -> str:
    return value[:1]


def booleanize(decision: str) -> str:
    return "Yea" if decision == "Agreed to" else "Nay"


def _write(path: Path, content: bytes) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    return path


# =============================================================================
# JSON
# =============================================================================


def vote_to_json(record: VoteRecord) -> dict[str, object]:
    """Item shape of the published JSON feed (surrogate id omitted)."""
    return {
        "Number": record.number,
        "Parliament": record.parliament,
        "Session": record.session,
        "Sitting": record.sitting,
        "Date": record.date,
        "DescriptionEnglish": record.description_english,
        "DescriptionFrench": record.description_french,
        "Decision": record.decision,
        "RelatedBill": record.related_bill,
        "TotalYeas": record.total_yeas,
        "TotalNays": record.total_nays,
        "TotalPaired": record.total_paired,
    }


class JsonFeedRenderer:
    name = "json"

    def __init__(self, output_dir: Path, channel: FeedChannel, filename: str = "feed.json"):
        self.path = Path(output_dir) / filename
        self.channel = channel

    def build(self, records: Sequence[VoteRecord]) -> str:
        feed = {
            "title": self.channel.title,
            "link": self.channel.link,
            "description": self.channel.description,
            "items": [vote_to_json(record) for record in records],
        }
        body = json.dumps(feed, indent=2, ensure_ascii=False)
        return f"{JSONP_CALLBACK}({body})"

    def render(self, records: Sequence[VoteRecord]) -> Path:
        try:
            return _write(self.path, self.build(records).encode("utf-8"))
        except OSError as exc:
            raise RenderFailure(f"Cannot write {self.path}: {exc}", cause=exc) from exc


# =============================================================================
# RSS
# =============================================================================


class RssFeedRenderer:
    name = "rss"

    def __init__(self, output_dir: Path, channel: FeedChannel, filename: str = "feed.xml"):
        self.path = Path(output_dir) / filename
        self.channel = channel

    def _item(self, parent: ElementTree.Element, record: VoteRecord) -> None:
        item = ElementTree.SubElement(parent, "item")
        ElementTree.SubElement(item, "title").text = record.related_bill or FALLBACK_ITEM_TITLE
        ElementTree.SubElement(item, "link").text = self.channel.item_link(record)
        ElementTree.SubElement(item, "description").text = (
            f"{record.decision}: {record.description_english}"
        )
        published = _parse_date(record.date)
        if published is not None:
            ElementTree.SubElement(item, "pubDate").text = format_datetime(
                published.replace(tzinfo=timezone.utc)
            )

    def build(self, records: Sequence[VoteRecord]) -> bytes:
        rss = ElementTree.Element("rss", version="2.0")
        channel = ElementTree.SubElement(rss, "channel")
        ElementTree.SubElement(channel, "title").text = self.channel.title
        ElementTree.SubElement(channel, "link").text = self.channel.link
        ElementTree.SubElement(channel, "description").text = self.channel.description
        for record in records:
            self._item(channel, record)
        ElementTree.indent(rss)
        return ElementTree.tostring(rss, encoding="utf-8", xml_declaration=True)

    def render(self, records: Sequence[VoteRecord]) -> Path:
        try:
            return _write(self.path, self.build(records))
        except OSError as exc:
            raise RenderFailure(f"Cannot write {self.path}: {exc}", cause=exc) from exc


# =============================================================================
# HTML
# =============================================================================


def template_environment(template_dir: Path | None = None) -> jinja2.Environment:
    """Templates from *template_dir* first, then the packaged defaults."""
    loaders: list[jinja2.BaseLoader] = []
    if template_dir is not None:
        loaders.append(jinja2.FileSystemLoader(str(template_dir)))
    loaders.append(jinja2.PackageLoader("vote_spine", "templates"))

    env = jinja2.Environment(
        loader=jinja2.ChoiceLoader(loaders),
        autoescape=jinja2.select_autoescape(enabled_extensions=("html", "j2")),
    )
    env.filters["format_date"] = format_date
    env.filters["first_letter"] = first_letter
    env.filters["booleanize"] = booleanize
    return env


class HtmlPageRenderer:
    name = "html"

    def __init__(
        self,
        output_dir: Path,
        channel: FeedChannel,
        template_dir: Path | None = None,
        template: str = "index.html.j2",
        filename: str = "index.html",
    ):
        self.path = Path(output_dir) / filename
        self.channel = channel
        self.template = template
        self.env = template_environment(template_dir)

    def build(self, records: Sequence[VoteRecord]) -> str:
        template = self.env.get_template(self.template)
        return template.render(votes=list(records), channel=self.channel)

    def render(self, records: Sequence[VoteRecord]) -> Path:
        try:
            return _write(self.path, self.build(records).encode("utf-8"))
        except jinja2.TemplateError as exc:
            raise RenderFailure(f"Template {self.template} failed: {exc}", cause=exc) from exc
        except OSError as exc:
            raise RenderFailure(f"Cannot write {self.path}: {exc}", cause=exc) from exc
