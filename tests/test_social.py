"""Tests for vote_spine.social (Buffer publisher) and the record helpers it uses."""

from urllib.parse import parse_qs

import httpx
import pytest

from vote_spine.errors import ConfigError, PublishFailure
from vote_spine.render import DEFAULT_BILL_URL_TEMPLATE, DEFAULT_SITE_URL
from vote_spine.social import BufferPublisher


def make_publisher(handler, profile_id=None) -> BufferPublisher:
    return BufferPublisher(
        access_token="token",
        bill_url_template=DEFAULT_BILL_URL_TEMPLATE,
        site_url=DEFAULT_SITE_URL,
        profile_id=profile_id,
        client=httpx.Client(transport=httpx.MockTransport(handler)),
    )


class TestVoteRecordHelpers:
    def test_short_description_untouched(self, make_vote):
        assert make_vote(description_english="Short").short_description() == "Short"

    def test_short_description_truncated(self, make_vote):
        vote = make_vote(description_english="x" * 200)
        assert vote.short_description() == "x" * 110 + "..."

    def test_link(self, make_vote):
        assert make_vote(related_bill="C-10").link(DEFAULT_BILL_URL_TEMPLATE, DEFAULT_SITE_URL) == (
            "http://www.parl.gc.ca/LegisInfo/BillDetails.aspx?Mode=1&Language=E&bill=C-10"
        )
        assert make_vote().link(DEFAULT_BILL_URL_TEMPLATE, DEFAULT_SITE_URL) == DEFAULT_SITE_URL


class TestBufferPublisher:
    def test_resolves_first_profile_once(self, make_vote):
        requests = []

        def handler(request):
            requests.append(request)
            if request.url.path.endswith("/profiles.json"):
                return httpx.Response(200, json=[{"id": "p1"}, {"id": "p2"}])
            return httpx.Response(200, json={"success": True})

        publisher = make_publisher(handler)
        publisher.publish(make_vote(number=1))
        publisher.publish(make_vote(number=2))

        paths = [r.url.path for r in requests]
        assert paths == ["/1/profiles.json", "/1/updates/create.json", "/1/updates/create.json"]
        assert publisher.profile_id == "p1"

    def test_update_form(self, make_vote):
        forms = []

        def handler(request):
            forms.append(parse_qs(request.content.decode()))
            return httpx.Response(200, json={"success": True})

        make_publisher(handler, profile_id="p9").publish(
            make_vote(related_bill="C-60", description_english="3rd reading of Bill C-60")
        )

        form = forms[0]
        link = "http://www.parl.gc.ca/LegisInfo/BillDetails.aspx?Mode=1&Language=E&bill=C-60"
        assert form["text"] == [f"3rd reading of Bill C-60 {link}"]
        assert form["profile_ids[]"] == ["p9"]
        assert form["media[link]"] == [link]
        assert form["shorten"] == ["true"]
        assert form["now"] == ["false"]

    def test_update_failure(self, make_vote):
        publisher = make_publisher(lambda request: httpx.Response(400), profile_id="p1")
        with pytest.raises(PublishFailure) as exc_info:
            publisher.publish(make_vote())
        assert not exc_info.value.fatal

    def test_no_profiles(self, make_vote):
        publisher = make_publisher(lambda request: httpx.Response(200, json=[]))
        with pytest.raises(PublishFailure, match="profile"):
            publisher.publish(make_vote())

    def test_token_required(self):
        with pytest.raises(ConfigError):
            BufferPublisher("", DEFAULT_BILL_URL_TEMPLATE, DEFAULT_SITE_URL)
