"""Slack user-token relay.

This module contains the transport-neutral operations of the relay:
- Start page (/)
- Flow start (/auth/start): mint state, redirect to Slack
- Callback (/auth/callback): validate state, exchange code, show token once
- Health and info snapshots (/health, /info)

Each operation returns a RelayResponse; main.py (FastAPI listener) and
serverless.py (single invocation) translate it into their own response type.
"""

import html
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from config import Config
from oauth.errors import (
    ConfigurationError,
    InvalidStateError,
    MalformedCallbackError,
    ProviderDeniedError,
    RelayError,
    RenderError,
)
from oauth.provider import SlackClient, TokenExchangeResult, build_authorize_url
from oauth.stores import StateStore
from oauth.templates import (
    BASE_STYLE,
    ERROR_PAGE,
    FALLBACK_TOKEN_TEXT,
    HOME_PAGE,
    SCOPE_ITEM,
    TOKEN_PAGE,
)

logger = logging.getLogger(__name__)

VERSION = "2.1.0"
MODE = "direct-token-display"

MAX_INPUT_LENGTH = 100
_UNSAFE_CHARS = str.maketrans("", "", "<>\"'&")

HTML = "text/html; charset=utf-8"
JSON = "application/json"
TEXT = "text/plain; charset=utf-8"

# Token pages must not be kept by browsers or proxies
NO_STORE = {"Cache-Control": "no-store", "Pragma": "no-cache"}


@dataclass
class RelayResponse:
    """Transport-neutral HTTP response."""

    status_code: int
    body: object = ""
    media_type: str = HTML
    headers: dict = field(default_factory=dict)


def sanitize_input(value: Optional[str], max_length: int = MAX_INPUT_LENGTH) -> str:
    """Trim, cap and strip characters that could break HTML or URL embedding."""
    if not value or not isinstance(value, str):
        return ""
    return value.strip()[:max_length].translate(_UNSAFE_CHARS)


def _state_hint(state: str) -> str:
    # Full state values stay out of logs
    return f"{state[:6]}..." if state else "-"


class OAuthRelay:
    """Runs the three-legged flow against Slack for one relay instance."""

    def __init__(
        self,
        config: Config,
        store: StateStore = None,
        provider: SlackClient = None,
        base_path: str = "",
    ):
        self.config = config
        self.store = store if store is not None else StateStore(ttl=config.state_ttl)
        self.provider = provider if provider is not None else SlackClient(config)
        self.base_path = base_path.rstrip("/")
        self.started_at = time.monotonic()

    # ============== Pages ==============

    def home(self) -> RelayResponse:
        scope_items = "".join(
            SCOPE_ITEM.format(scope=html.escape(scope)) for scope in self.config.user_scopes
        )
        page = HOME_PAGE.format(
            style=BASE_STYLE,
            scope_items=scope_items,
            start_path=f"{self.base_path}/auth/start",
            max_length=MAX_INPUT_LENGTH,
        )
        return RelayResponse(200, page)

    def start_flow(self, user_id: str = None, user_name: str = None) -> RelayResponse:
        """Mint a state and redirect the browser to Slack's consent screen."""
        if not self.config.can_start_flow():
            logger.error("[AUTH] Cannot start flow: SLACK_CLIENT_ID or SLACK_REDIRECT_URI is not set")
            return self.error_response(ConfigurationError("Missing Slack credentials"))

        requester_id = sanitize_input(user_id)
        requester_name = sanitize_input(user_name)
        state = self.store.create(requester_id=requester_id, requester_name=requester_name)
        logger.info(
            f"[AUTH] Flow started (state {_state_hint(state)}, requester: {requester_id or 'anonymous'}, "
            f"pending: {len(self.store)})"
        )
        return RelayResponse(302, headers={"Location": build_authorize_url(self.config, state)})

    async def handle_callback(
        self,
        code: str = None,
        state: str = None,
        error: str = None,
    ) -> RelayResponse:
        """Validate the callback, exchange the code and show the token once."""
        try:
            result = await self._complete_flow(code, state, error)
        except RelayError as e:
            return self.error_response(e)
        return self.token_response(result)

    async def _complete_flow(self, code, state, error) -> TokenExchangeResult:
        if error:
            # Untrusted query value: capped and folded onto one line
            reason = " ".join(sanitize_input(error).split()) or "unknown_error"
            logger.warning(f"[AUTH] Slack reported an error: {reason}")
            raise ProviderDeniedError(reason)

        if not code or not state:
            logger.warning(f"[AUTH] Callback missing parameters (code: {bool(code)}, state: {bool(state)})")
            raise MalformedCallbackError("Missing authorization code or state")

        # Consumed before the exchange so a failed attempt cannot be replayed
        pending = self.store.consume(state)
        if pending is None:
            logger.warning(f"[AUTH] Unknown or expired state {_state_hint(state)}")
            raise InvalidStateError("Invalid or expired state parameter")

        result = await self.provider.exchange(code)
        logger.info(
            f"[AUTH] Token generated for user: {result.owner_id or 'Unknown'} "
            f"({pending.requester_name or result.owner_name or 'Unknown'})"
        )
        return result

    # ============== Rendering ==============

    def render_token_page(self, result: TokenExchangeResult) -> str:
        try:
            return TOKEN_PAGE.format(
                style=BASE_STYLE,
                access_token=html.escape(result.access_token),
                owner_name=html.escape(result.owner_name or "Unknown User"),
                owner_id=html.escape(result.owner_id or "Unknown ID"),
                team_name=html.escape(result.team_name or "Unknown Team"),
                scopes=html.escape(", ".join(result.granted_scopes) or "No scopes"),
                generated_at=datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC"),
            )
        except Exception as e:
            raise RenderError("Token generated, but the page could not be built") from e

    def token_response(self, result: TokenExchangeResult) -> RelayResponse:
        try:
            page = self.render_token_page(result)
        except RenderError:
            logger.exception("[AUTH] Token page failed to render, sending plain-text fallback")
            return RelayResponse(
                200,
                FALLBACK_TOKEN_TEXT.format(access_token=result.access_token),
                media_type=TEXT,
                headers=dict(NO_STORE),
            )
        return RelayResponse(200, page, headers=dict(NO_STORE))

    def error_response(self, error: RelayError) -> RelayResponse:
        page = ERROR_PAGE.format(
            style=BASE_STYLE,
            title=html.escape(error.title),
            message=html.escape(error.message),
            home_path=f"{self.base_path}/",
        )
        return RelayResponse(error.status_code, page)

    # ============== Status ==============

    def health(self) -> RelayResponse:
        try:
            body = {
                "status": "ok",
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "uptime": round(time.monotonic() - self.started_at, 3),
                "mode": MODE,
            }
        except Exception:
            logger.exception("[HTTP] Health check failed")
            return RelayResponse(500, {"status": "error", "message": "Health check failed"}, JSON)
        return RelayResponse(200, body, JSON)

    def info(self) -> RelayResponse:
        return RelayResponse(200, {
            "name": "Slack User Token Generator",
            "mode": "Direct Token Display",
            "description": "Generates user tokens and displays them directly to users",
            "security": "No server-side token storage",
            "version": VERSION,
        }, JSON)
