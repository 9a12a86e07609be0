import logging

import pytest

from config import Config
from oauth.provider import SlackClient
from oauth.relay import OAuthRelay
from oauth.stores import StateStore

TOKEN_URL = "https://slack.test/api/oauth.v2.access"
AUTHORIZE_URL = "https://slack.test/oauth/v2/authorize"

SUCCESS_PAYLOAD = {
    "ok": True,
    "authed_user": {"access_token": "xoxp-test", "id": "U1", "name": "Test", "scope": "a,b"},
    "team": {"name": "T"},
}


class FakeClock:
    """Manually advanced replacement for time.time()."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def config():
    return Config({
        "client_id": "123.456",
        "client_secret": "shh-client-secret",
        "redirect_uri": "https://relay.test/auth/callback",
        "user_scopes": ("channels:read", "groups:read", "users:read"),
        "authorize_url": AUTHORIZE_URL,
        "token_url": TOKEN_URL,
        "state_ttl": 600,
        "sweep_interval": 300,
        "exchange_timeout": 5,
    })


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return StateStore(ttl=600, clock=clock)


@pytest.fixture
def provider(config):
    return SlackClient(config)


@pytest.fixture
def relay(config, store, provider):
    return OAuthRelay(config, store=store, provider=provider)


@pytest.fixture
def restore_root_logger():
    """Undo setup_logging() changes to the root logger after a test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
