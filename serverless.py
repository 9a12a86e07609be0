"""Slack User Token Relay - single-invocation handler.

For hosts that call a function once per HTTP request instead of running a
listener. The event is a plain dict:

    {"method": "GET", "path": "/api/auth/callback",
     "query": {"code": "...", "state": "..."}, "headers": {...}}

and the handler returns {"statusCode", "headers", "body"}. Paths are accepted
with or without an "/api" prefix.

Pending states live as long as the warm process does. There is no background
timer here, so expired states are swept at the start of each invocation.
"""
import asyncio
import functools
import json
import logging
from typing import Callable

from config import load_config, load_env_file
from logging_config import setup_logging
from oauth.relay import JSON, OAuthRelay, RelayResponse
from oauth.stores import StateStore

logger = logging.getLogger(__name__)

API_PREFIX = "/api"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


def normalize_path(path: str) -> str:
    """Strip the optional /api prefix and any trailing slash."""
    path = (path or "/").split("?", 1)[0]
    if path == API_PREFIX or path.startswith(API_PREFIX + "/"):
        path = path[len(API_PREFIX):]
    path = path.rstrip("/")
    return path or "/"


def _query_value(query: dict, name: str):
    value = (query or {}).get(name)
    # Multi-value query strings arrive as lists on some hosts
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    return value


def _internal_error() -> dict:
    return {
        "statusCode": 500,
        "headers": {"Content-Type": "text/plain; charset=utf-8"},
        "body": "Internal server error - check server logs",
    }


def _to_event_response(result: RelayResponse) -> dict:
    headers = dict(CORS_HEADERS)
    headers.update(result.headers)
    headers["Content-Type"] = result.media_type
    body = json.dumps(result.body) if result.media_type == JSON else result.body
    return {"statusCode": result.status_code, "headers": headers, "body": body}


async def dispatch(relay: OAuthRelay, event: dict) -> dict:
    """Route one event to the matching relay operation."""
    method = (event.get("method") or "GET").upper()
    path = normalize_path(event.get("path"))
    query = event.get("query") or {}

    if method == "OPTIONS":
        return {"statusCode": 200, "headers": dict(CORS_HEADERS), "body": ""}

    relay.store.sweep()
    logger.info(f"[HTTP] {method} {path}")

    if method == "GET":
        if path == "/":
            return _to_event_response(relay.home())
        if path == "/auth/start":
            return _to_event_response(relay.start_flow(
                _query_value(query, "user_id"),
                _query_value(query, "user_name"),
            ))
        if path == "/auth/callback":
            return _to_event_response(await relay.handle_callback(
                _query_value(query, "code"),
                _query_value(query, "state"),
                _query_value(query, "error"),
            ))
        if path == "/health":
            return _to_event_response(relay.health())
        if path == "/info":
            return _to_event_response(relay.info())

    return _to_event_response(
        RelayResponse(404, {"error": "Not found", "path": event.get("path") or "/"}, JSON)
    )


def make_handler(relay: OAuthRelay) -> Callable[..., dict]:
    """Wrap `relay` in a synchronous handler(event, context=None)."""

    def handler(event: dict, context=None) -> dict:
        try:
            return asyncio.run(dispatch(relay, event))
        except Exception:
            logger.exception("[HTTP] Unhandled error in invocation")
            return _internal_error()

    return handler


@functools.lru_cache(maxsize=1)
def _default_handler() -> Callable[..., dict]:
    load_env_file()
    config = load_config(default_redirect=False)
    setup_logging(config.log_level, config.log_format, secrets=[config.client_secret])
    relay = OAuthRelay(config, store=StateStore(ttl=config.state_ttl), base_path=API_PREFIX)
    return make_handler(relay)


def handler(event: dict, context=None) -> dict:
    """Entry point for hosts that import a module-level handler."""
    try:
        relay_handler = _default_handler()
    except Exception:
        logger.exception("[STARTUP] Could not initialise the relay")
        return _internal_error()
    return relay_handler(event, context)
