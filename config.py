"""Config management for slack-token-relay.

Settings come from the environment (optionally seeded from a .env file by
python-dotenv) and are read once at startup into a Config object that is
passed to the relay.
"""
import math
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from oauth.errors import ConfigurationError


DEFAULT_PORT = 3000
DEFAULT_HOST = "0.0.0.0"

# Read-only user scopes; write scopes are opt-in via SLACK_USER_SCOPES
DEFAULT_USER_SCOPES = ("channels:read", "groups:read", "users:read")

SLACK_AUTHORIZE_URL = "https://slack.com/oauth/v2/authorize"
SLACK_TOKEN_URL = "https://slack.com/api/oauth.v2.access"

STATE_TTL_SECONDS = 10 * 60
STATE_SWEEP_INTERVAL_SECONDS = 5 * 60
EXCHANGE_TIMEOUT_SECONDS = 10.0


class Config:
    """Configuration container."""

    def __init__(self, data: dict = None):
        self.data = data or {}

    @property
    def client_id(self) -> Optional[str]:
        return self.data.get("client_id")

    @property
    def client_secret(self) -> Optional[str]:
        return self.data.get("client_secret")

    @property
    def redirect_uri(self) -> Optional[str]:
        return self.data.get("redirect_uri")

    @property
    def host(self) -> str:
        return self.data.get("host", DEFAULT_HOST)

    @property
    def port(self) -> int:
        return self.data.get("port", DEFAULT_PORT)

    @property
    def user_scopes(self) -> tuple:
        return tuple(self.data.get("user_scopes", DEFAULT_USER_SCOPES))

    @property
    def authorize_url(self) -> str:
        return self.data.get("authorize_url", SLACK_AUTHORIZE_URL)

    @property
    def token_url(self) -> str:
        return self.data.get("token_url", SLACK_TOKEN_URL)

    @property
    def state_ttl(self) -> float:
        return self.data.get("state_ttl", STATE_TTL_SECONDS)

    @property
    def sweep_interval(self) -> float:
        return self.data.get("sweep_interval", STATE_SWEEP_INTERVAL_SECONDS)

    @property
    def exchange_timeout(self) -> float:
        return self.data.get("exchange_timeout", EXCHANGE_TIMEOUT_SECONDS)

    @property
    def log_level(self) -> str:
        return self.data.get("log_level", "INFO")

    @property
    def log_format(self) -> str:
        return self.data.get("log_format", "plain")

    def missing_credentials(self) -> list[str]:
        """Names of the required environment variables that are unset."""
        missing = []
        if not self.client_id:
            missing.append("SLACK_CLIENT_ID")
        if not self.client_secret:
            missing.append("SLACK_CLIENT_SECRET")
        return missing

    def is_valid(self) -> bool:
        """Check if config has the credentials needed to exchange codes."""
        return not self.missing_credentials()

    def can_start_flow(self) -> bool:
        """Check if an authorization URL can be built from this config."""
        return bool(self.client_id and self.redirect_uri)

    def summary(self) -> dict:
        """Config snapshot that is safe to print or log."""
        return {
            "client_id": self.client_id or "(missing)",
            "client_secret": "present" if self.client_secret else "(missing)",
            "redirect_uri": self.redirect_uri or "(missing)",
            "listen": f"{self.host}:{self.port}",
            "user_scopes": ",".join(self.user_scopes),
            "state_ttl": self.state_ttl,
            "sweep_interval": self.sweep_interval,
            "exchange_timeout": self.exchange_timeout,
        }


def _parse_number(env: dict, name: str, default, cast):
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = cast(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}")
    if not math.isfinite(value) or value <= 0:
        raise ConfigurationError(f"{name} must be a positive finite number, got {raw!r}")
    return value


def _parse_scopes(raw: Optional[str]) -> tuple:
    if not raw:
        return DEFAULT_USER_SCOPES
    scopes = []
    for scope in raw.split(","):
        scope = scope.strip()
        if scope and scope not in scopes:
            scopes.append(scope)
    if not scopes:
        raise ConfigurationError("SLACK_USER_SCOPES does not name any scope")
    return tuple(scopes)


def load_env_file(path: Path = Path(".env")) -> None:
    """Load a local .env file into the process environment, if present."""
    if path.exists():
        load_dotenv(path)


def load_config(env: dict = None, default_redirect: bool = True) -> Config:
    """Build a Config from environment variables.

    Args:
        env: Mapping to read from instead of os.environ.
        default_redirect: Fall back to http://localhost:{PORT}/auth/callback
            when SLACK_REDIRECT_URI is unset. The single-invocation adapter
            passes False since it has no local listener to point at.

    Raises:
        ConfigurationError: a numeric setting or the scope list is invalid.
    """
    env = os.environ if env is None else env

    port = _parse_number(env, "PORT", DEFAULT_PORT, int)
    redirect_uri = env.get("SLACK_REDIRECT_URI") or None
    if redirect_uri is None and default_redirect:
        redirect_uri = f"http://localhost:{port}/auth/callback"

    return Config({
        "client_id": env.get("SLACK_CLIENT_ID") or None,
        "client_secret": env.get("SLACK_CLIENT_SECRET") or None,
        "redirect_uri": redirect_uri,
        "host": env.get("HOST") or DEFAULT_HOST,
        "port": port,
        "user_scopes": _parse_scopes(env.get("SLACK_USER_SCOPES")),
        "authorize_url": env.get("SLACK_AUTHORIZE_URL") or SLACK_AUTHORIZE_URL,
        "token_url": env.get("SLACK_TOKEN_URL") or SLACK_TOKEN_URL,
        "state_ttl": _parse_number(env, "STATE_TTL_SECONDS", STATE_TTL_SECONDS, float),
        "sweep_interval": _parse_number(
            env, "STATE_SWEEP_INTERVAL_SECONDS", STATE_SWEEP_INTERVAL_SECONDS, float
        ),
        "exchange_timeout": _parse_number(
            env, "SLACK_EXCHANGE_TIMEOUT", EXCHANGE_TIMEOUT_SECONDS, float
        ),
        "log_level": (env.get("LOG_LEVEL") or "INFO").upper(),
        "log_format": (env.get("LOG_FORMAT") or "plain").lower(),
    })
