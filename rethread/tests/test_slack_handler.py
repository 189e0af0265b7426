"""
Tests for SlackHandler

Signature verification, URL verification and envelope parsing.
"""

import hashlib
import hmac
import pytest

SECRET = "8f742231b10e8888abcd99yyyzzz85a5"


def _sign(body: bytes, timestamp: str, secret: str = SECRET) -> str:
    base = b"v0:" + timestamp.encode() + b":" + body
    return "v0=" + hmac.new(secret.encode(), base, hashlib.sha256).hexdigest()


@pytest.fixture
def handler():
    from rethread.threader.handlers import SlackHandler
    return SlackHandler(signing_secret=SECRET)


class TestVerifySignature:
    """Tests for Slack v0 request signing"""

    def test_valid(self, handler):
        body = b'{"type":"event_callback"}'

        assert handler.verify_signature(body, _sign(body, "1700000000"), "1700000000", now=1700000010)

    def test_forged(self, handler):
        body = b'{"type":"event_callback"}'
        signature = _sign(body, "1700000000", secret="wrong")

        assert not handler.verify_signature(body, signature, "1700000000", now=1700000010)

    def test_stale(self, handler):
        body = b"{}"

        assert not handler.verify_signature(body, _sign(body, "1700000000"), "1700000000", now=1700000301)

    def test_missing_headers(self, handler):
        assert not handler.verify_signature(b"{}", "", "", now=1700000000)

    def test_bad_timestamp(self, handler):
        assert not handler.verify_signature(b"{}", "v0=abc", "yesterday")

    def test_non_utf8_body(self, handler):
        body = b"\x80\xff payload"

        assert handler.verify_signature(body, _sign(body, "1700000000"), "1700000000", now=1700000010)
        assert not handler.verify_signature(body, _sign(b"other", "1700000000"), "1700000000", now=1700000010)

    def test_non_ascii_signature_header(self, handler):
        body = b"{}"

        assert not handler.verify_signature(body, "v0=\u00e9", "1700000000", now=1700000010)

    def test_no_secret_skips_check(self):
        from rethread.threader.handlers import SlackHandler

        assert SlackHandler().verify_signature(b"{}", "", "")


class TestParseEvent:
    """Tests for envelope unwrapping"""

    def test_message_event(self, handler):
        inbound = handler.parse_event({
            "type": "event_callback",
            "team_id": "T1",
            "event_id": "Ev1",
            "event": {"type": "message", "channel": "C1", "text": "hi", "ts": "1.0"},
        })

        assert inbound.team_id == "T1"
        assert inbound.event_id == "Ev1"
        assert inbound.event["text"] == "hi"
        assert inbound.subtype is None

    def test_subtype_passed_through(self, handler):
        inbound = handler.parse_event({
            "type": "event_callback",
            "team_id": "T1",
            "event": {"type": "message", "subtype": "message_deleted", "channel": "C1"},
        })

        assert inbound.subtype == "message_deleted"

    @pytest.mark.parametrize("payload", [
        {"type": "url_verification", "challenge": "abc"},
        {"type": "event_callback", "event": {"type": "reaction_added"}},
        {"type": "event_callback"},
        {"type": "app_rate_limited"},
    ])
    def test_ignored(self, handler, payload):
        assert handler.parse_event(payload) is None

    def test_url_verification(self, handler):
        payload = {"type": "url_verification", "challenge": "abc"}

        assert handler.is_url_verification(payload)
        assert handler.get_challenge(payload) == "abc"
        assert handler.get_challenge({"type": "event_callback"}) is None
