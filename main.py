"""Slack User Token Relay - long-running listener.

This server runs the OAuth relay behind uvicorn. It handles:
- Start page and flow start (/, /auth/start)
- Slack callback and one-time token display (/auth/callback)
- Liveness and metadata (/health, /info)

Tokens are shown to the user once and never stored. The only server-side
state is the pending-authorization map, swept in the background.

Run with `slack-token-relay serve` or `uvicorn --factory main:create_app`.
"""
import asyncio
import contextlib
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import Config, load_config, load_env_file
from logging_config import setup_logging
from oauth.endpoints import create_router
from oauth.errors import ConfigurationError
from oauth.middleware import SecurityHeadersMiddleware
from oauth.relay import VERSION, OAuthRelay
from oauth.stores import StateStore, run_sweeper

logger = logging.getLogger(__name__)


def create_app(config: Config = None, relay: OAuthRelay = None) -> FastAPI:
    """Build the FastAPI app around one OAuthRelay.

    Raises:
        ConfigurationError: SLACK_CLIENT_ID or SLACK_CLIENT_SECRET is missing.
        ValueError: both `config` and `relay` are given but disagree.
    """
    if relay is not None:
        if config is not None and config is not relay.config:
            raise ValueError("config and relay.config must be the same object")
        config = relay.config
    elif config is None:
        load_env_file()
        config = load_config()
        setup_logging(config.log_level, config.log_format, secrets=[config.client_secret])

    missing = config.missing_credentials()
    if missing:
        raise ConfigurationError(f"Missing required environment variables: {', '.join(missing)}")

    if relay is None:
        relay = OAuthRelay(config, store=StateStore(ttl=config.state_ttl))

    @contextlib.asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("[STARTUP] Slack User Token Generator (Direct Display Mode)")
        logger.info(f"[STARTUP] Redirect URI: {config.redirect_uri}")
        logger.info(f"[STARTUP] User scopes: {','.join(config.user_scopes)}")
        sweeper = asyncio.create_task(run_sweeper(relay.store, config.sweep_interval))
        try:
            yield
        finally:
            sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper
            logger.info("[STARTUP] Server stopped")

    app = FastAPI(
        title="Slack User Token Generator",
        description="Relays the Slack OAuth flow and displays user tokens once",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.relay = relay

    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return JSONResponse({"error": "Not found", "path": request.url.path}, status_code=404)
        return JSONResponse({"error": exc.detail}, status_code=exc.status_code)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"[HTTP] Unhandled error on {request.method} {request.url.path}")
        return PlainTextResponse("Internal server error - check server logs", status_code=500)

    app.include_router(create_router(relay))
    return app


# ============== Main Entry Point ==============

if __name__ == "__main__":
    from cli import main
    main()
