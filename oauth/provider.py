"""Slack side of the flow: authorization URL and code-for-token exchange."""

import logging
from dataclasses import dataclass, field
from urllib.parse import urlencode

import httpx

from config import Config
from oauth.errors import ExchangeError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenExchangeResult:
    """What Slack hands back for a user token. Never stored."""

    access_token: str = field(repr=False)
    owner_id: str
    owner_name: str
    team_name: str
    granted_scopes: tuple = ()


def build_authorize_url(config: Config, state: str) -> str:
    """Slack consent URL for the configured user scopes."""
    params = {
        "client_id": config.client_id,
        "user_scope": ",".join(config.user_scopes),
        "redirect_uri": config.redirect_uri,
        "state": state,
    }
    return f"{config.authorize_url}?{urlencode(params)}"


def parse_scopes(raw) -> tuple:
    """Split Slack's comma separated scope string, keeping first-seen order."""
    if not raw:
        return ()
    scopes = []
    for scope in str(raw).split(","):
        scope = scope.strip()
        if scope and scope not in scopes:
            scopes.append(scope)
    return tuple(scopes)


def parse_token_response(data) -> TokenExchangeResult:
    """Turn an oauth.v2.access payload into a TokenExchangeResult.

    Raises:
        ExchangeError: Slack reported `ok: false`, the payload is not shaped
            like an oauth.v2.access body, or it carries no user access token.
    """
    if not isinstance(data, dict):
        raise ExchangeError("unexpected response from Slack")

    if not data.get("ok"):
        raise ExchangeError(data.get("error") or "unknown_error")

    authed_user = data.get("authed_user") or {}
    team = data.get("team") or {}
    if not isinstance(authed_user, dict) or not isinstance(team, dict):
        raise ExchangeError("unexpected response from Slack")

    access_token = authed_user.get("access_token")
    if not access_token:
        raise ExchangeError("no user token in Slack response")

    return TokenExchangeResult(
        access_token=access_token,
        owner_id=authed_user.get("id") or "",
        owner_name=authed_user.get("name") or "",
        team_name=team.get("name") or "",
        granted_scopes=parse_scopes(authed_user.get("scope")),
    )


class SlackClient:
    """Performs the single server-to-server call of the flow.

    Authorization codes are single use, so a failed exchange is never retried.
    """

    def __init__(self, config: Config, http_client: httpx.AsyncClient = None):
        self.config = config
        self._http_client = http_client

    async def request_token(self, code: str) -> dict:
        """POST the code to Slack and return the decoded JSON body.

        Raises:
            ExchangeError: network failure, timeout, non-2xx status or a body
                that is not JSON.
        """
        form = {
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
            "code": code,
            "redirect_uri": self.config.redirect_uri,
        }
        logger.info("[EXCHANGE] Requesting user token from Slack")
        try:
            if self._http_client is not None:
                response = await self._http_client.post(self.config.token_url, data=form)
            else:
                async with httpx.AsyncClient(timeout=self.config.exchange_timeout) as client:
                    response = await client.post(self.config.token_url, data=form)
        except httpx.TimeoutException:
            logger.warning("[EXCHANGE] Slack did not answer in time")
            raise ExchangeError("timed out waiting for Slack")
        except httpx.HTTPError as e:
            logger.warning(f"[EXCHANGE] Network error talking to Slack: {type(e).__name__}")
            raise ExchangeError(f"network error: {type(e).__name__}")

        logger.info(f"[EXCHANGE] Slack responded with HTTP {response.status_code}")
        if not response.is_success:
            raise ExchangeError(f"HTTP {response.status_code}")

        try:
            return response.json()
        except ValueError:
            raise ExchangeError("Slack returned a non-JSON body")

    async def exchange(self, code: str) -> TokenExchangeResult:
        """Exchange an authorization code for a user token."""
        data = await self.request_token(code)
        try:
            result = parse_token_response(data)
        except ExchangeError as e:
            logger.warning(f"[EXCHANGE] Slack rejected the code: {e.provider_error}")
            raise
        logger.info(
            f"[EXCHANGE] Token issued for user {result.owner_id or 'unknown'} "
            f"(scopes: {','.join(result.granted_scopes) or 'none'})"
        )
        return result
