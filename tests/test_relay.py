"""Tests for the OAuthRelay operations."""

import json
import logging
from unittest.mock import AsyncMock, patch
from urllib.parse import parse_qs, urlparse

import pytest
import respx
from httpx import Response as HTTPXResponse

from config import Config
from oauth.errors import ExchangeError
from oauth.relay import OAuthRelay, sanitize_input

from .conftest import SUCCESS_PAYLOAD, TOKEN_URL


def _state_from(response) -> str:
    return parse_qs(urlparse(response.headers["Location"]).query)["state"][0]


@pytest.mark.parametrize("raw, expected", [
    (None, ""),
    ("", ""),
    ("  john.doe  ", "john.doe"),
    ("<script>alert('x')</script>", "scriptalert(x)/script"),
    ('Tom & "Jerry"', "Tom  Jerry"),
    ("x" * 150, "x" * 100),
    (42, ""),
])
def test_sanitize_input(raw, expected):
    assert sanitize_input(raw) == expected


@pytest.mark.unit
class TestStartFlow:
    """Test suite for OAuthRelay.start_flow."""

    def test_redirects_to_slack_with_state(self, relay, store):
        response = relay.start_flow("u1", "Ada")

        assert response.status_code == 302
        location = urlparse(response.headers["Location"])
        query = parse_qs(location.query)
        assert location.netloc == "slack.test"
        assert query["client_id"] == ["123.456"]
        assert query["user_scope"] == ["channels:read,groups:read,users:read"]
        assert query["redirect_uri"] == ["https://relay.test/auth/callback"]

        entry = store.consume(query["state"][0])
        assert entry.requester_id == "u1"
        assert entry.requester_name == "Ada"

    def test_without_requester_stores_empty_strings(self, relay, store):
        state = _state_from(relay.start_flow())

        entry = store.consume(state)
        assert entry.requester_id == ""
        assert entry.requester_name == ""

    def test_sanitizes_requester(self, relay, store):
        state = _state_from(relay.start_flow("  <b>u1</b> ", "O'Brien"))

        entry = store.consume(state)
        assert entry.requester_id == "bu1/b"
        assert entry.requester_name == "OBrien"

    @pytest.mark.parametrize("missing", ["client_id", "redirect_uri"])
    def test_misconfigured_returns_500_without_state(self, config, store, missing):
        data = dict(config.data)
        data[missing] = None
        relay = OAuthRelay(Config(data), store=store)

        response = relay.start_flow("u1")

        assert response.status_code == 500
        assert "Location" not in response.headers
        assert "Server Configuration Error" in response.body
        assert len(store) == 0


@pytest.mark.unit
class TestHandleCallback:
    """Test suite for OAuthRelay.handle_callback."""

    @pytest.mark.asyncio
    async def test_provider_error_skips_exchange(self, relay, provider):
        with patch.object(provider, "request_token", new_callable=AsyncMock) as request_token:
            response = await relay.handle_callback(error="access_denied")

        assert response.status_code == 400
        assert "Authorization Denied" in response.body
        assert "access_denied" in response.body
        request_token.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code, state", [(None, "abc"), ("abc", None), ("", "")])
    async def test_missing_parameters(self, relay, provider, code, state):
        with patch.object(provider, "request_token", new_callable=AsyncMock) as request_token:
            response = await relay.handle_callback(code=code, state=state)

        assert response.status_code == 400
        assert "Missing authorization code or state" in response.body
        request_token.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_state_skips_exchange(self, relay, provider):
        with patch.object(provider, "request_token", new_callable=AsyncMock) as request_token:
            response = await relay.handle_callback(code="abc", state="deadbeef")

        assert response.status_code == 400
        assert "Invalid or expired state parameter" in response.body
        request_token.assert_not_called()

    @pytest.mark.asyncio
    async def test_expired_state_is_rejected(self, relay, store, clock, provider):
        state = _state_from(relay.start_flow())
        clock.advance(601)
        store.sweep()

        with patch.object(provider, "request_token", new_callable=AsyncMock) as request_token:
            response = await relay.handle_callback(code="abc", state=state)

        assert response.status_code == 400
        assert "Invalid State" in response.body
        request_token.assert_not_called()

    @pytest.mark.asyncio
    async def test_exchange_failure_consumes_state(self, relay, store, provider):
        state = store.create(requester_id="u1")
        request_token = AsyncMock(return_value={"ok": False, "error": "invalid_code"})

        with patch.object(provider, "request_token", request_token):
            first = await relay.handle_callback(code="abc", state=state)
            second = await relay.handle_callback(code="abc", state=state)

        assert first.status_code == 502
        assert "invalid_code" in first.body
        assert "Token Exchange Failed" in first.body
        assert second.status_code == 400
        assert "Invalid or expired state parameter" in second.body
        request_token.assert_awaited_once_with("abc")

    @pytest.mark.asyncio
    async def test_malformed_slack_body_is_an_exchange_failure(self, relay, store, provider):
        state = store.create()
        request_token = AsyncMock(return_value={"ok": True, "authed_user": "oops"})

        with patch.object(provider, "request_token", request_token):
            response = await relay.handle_callback(code="abc", state=state)

        assert response.status_code == 502
        assert "unexpected response from Slack" in response.body
        assert state not in store

    @pytest.mark.asyncio
    async def test_provider_error_is_single_line_and_capped(self, relay, provider, caplog):
        caplog.set_level(logging.WARNING)
        forged = "access_denied\n2026-01-01 00:00:00 [INFO] [AUTH] Token generated" + "x" * 500

        with patch.object(provider, "request_token", new_callable=AsyncMock) as request_token:
            response = await relay.handle_callback(error=forged)

        assert response.status_code == 400
        assert "access_denied" in response.body
        assert "x" * 200 not in response.body
        assert all("\n" not in record.getMessage() for record in caplog.records)
        request_token.assert_not_called()

    @pytest.mark.asyncio
    async def test_exchange_error_message_is_escaped(self, relay, store, provider):
        state = store.create()
        exchange = AsyncMock(side_effect=ExchangeError("<b>bad</b>"))

        with patch.object(provider, "exchange", exchange):
            response = await relay.handle_callback(code="abc", state=state)

        assert "<b>bad</b>" not in response.body
        assert "&lt;b&gt;bad&lt;/b&gt;" in response.body

    @pytest.mark.asyncio
    @respx.mock
    async def test_end_to_end_token_page_and_no_token_in_logs(self, relay, store, caplog):
        caplog.set_level(logging.DEBUG)
        respx.post(TOKEN_URL).mock(return_value=HTTPXResponse(200, json=SUCCESS_PAYLOAD))
        state = _state_from(relay.start_flow("u1"))

        response = await relay.handle_callback(code="abc", state=state)

        assert response.status_code == 200
        assert "xoxp-test" in response.body
        assert "U1" in response.body
        assert "Test" in response.body
        assert "a, b" in response.body
        assert response.headers["Cache-Control"] == "no-store"
        assert len(store) == 0
        assert caplog.records
        for record in caplog.records:
            assert "xoxp-test" not in record.getMessage()
            assert "shh-client-secret" not in record.getMessage()

    @pytest.mark.asyncio
    async def test_token_values_are_escaped(self, relay, store, provider):
        payload = {
            "ok": True,
            "authed_user": {"access_token": "xoxp-1", "id": "U1", "name": "<i>Eve</i>", "scope": "a"},
            "team": {"name": "A&B"},
        }
        state = store.create()

        with patch.object(provider, "request_token", AsyncMock(return_value=payload)):
            response = await relay.handle_callback(code="abc", state=state)

        assert "&lt;i&gt;Eve&lt;/i&gt;" in response.body
        assert "A&amp;B" in response.body

    @pytest.mark.asyncio
    async def test_render_failure_falls_back_to_plain_text(self, relay, store, provider, caplog):
        state = store.create()

        with patch.object(provider, "request_token", AsyncMock(return_value=SUCCESS_PAYLOAD)), \
                patch("oauth.relay.TOKEN_PAGE", "{missing_placeholder}"):
            response = await relay.handle_callback(code="abc", state=state)

        assert response.status_code == 200
        assert response.media_type.startswith("text/plain")
        assert "xoxp-test" in response.body
        assert any("plain-text fallback" in r.getMessage() for r in caplog.records)
        for record in caplog.records:
            assert "xoxp-test" not in record.getMessage()


@pytest.mark.unit
class TestStatus:
    """Test suite for the health and info snapshots."""

    def test_health(self, relay):
        response = relay.health()

        assert response.status_code == 200
        assert response.body["status"] == "ok"
        assert response.body["mode"] == "direct-token-display"
        assert response.body["uptime"] >= 0
        assert "T" in response.body["timestamp"]
        json.dumps(response.body)

    def test_info(self, relay):
        response = relay.info()

        assert response.status_code == 200
        assert response.body["security"] == "No server-side token storage"

    def test_home_lists_configured_scopes(self, relay):
        response = relay.home()

        assert response.status_code == 200
        assert "users:read" in response.body
        assert 'action="/auth/start"' in response.body
