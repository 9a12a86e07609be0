"""FastAPI routes for the token relay.

This module contains the listener-side endpoints:
- Start page (/)
- Flow start (/auth/start)
- Callback (/auth/callback)
- Status (/health, /info)

The routes only translate between FastAPI and the OAuthRelay operations.
"""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse, RedirectResponse, Response

from oauth.relay import JSON, OAuthRelay, RelayResponse

logger = logging.getLogger(__name__)


def to_response(result: RelayResponse) -> Response:
    """Convert a RelayResponse into the matching Starlette response."""
    if result.status_code in (301, 302, 303, 307, 308):
        return RedirectResponse(
            url=result.headers["Location"],
            status_code=result.status_code,
            headers={k: v for k, v in result.headers.items() if k != "Location"},
        )
    if result.media_type == JSON:
        return JSONResponse(result.body, status_code=result.status_code, headers=result.headers)
    return Response(
        content=result.body,
        status_code=result.status_code,
        media_type=result.media_type,
        headers=result.headers,
    )


def create_router(relay: OAuthRelay) -> APIRouter:
    """Build the relay routes bound to one OAuthRelay instance."""
    router = APIRouter(tags=["oauth"])

    @router.get("/")
    async def home():
        """Start page with the optional requester form."""
        return to_response(relay.home())

    @router.get("/auth/start")
    async def auth_start(user_id: str = "", user_name: str = ""):
        """Begin the flow: mint state and redirect to Slack."""
        return to_response(relay.start_flow(user_id, user_name))

    @router.get("/auth/callback")
    async def auth_callback(code: str = None, state: str = None, error: str = None):
        """Slack redirect target."""
        logger.info("[AUTH] OAuth callback received")
        return to_response(await relay.handle_callback(code, state, error))

    @router.get("/health")
    async def health_check():
        """Liveness probe."""
        return to_response(relay.health())

    @router.get("/info")
    async def info():
        """Static service metadata."""
        return to_response(relay.info())

    return router
