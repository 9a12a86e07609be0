"""In-memory store for pending OAuth authorizations.

Maps the random `state` sent to Slack onto the metadata of the request that
started the flow. Entries are single use: consume() reads and deletes in one
step, so a state can never be matched twice. Anything left behind is removed
by sweep() once older than the TTL.

The store is an explicit object handed to the relay, so it can be replaced by
a shared cache when more than one relay instance runs.
"""

import asyncio
import logging
import secrets
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger(__name__)

STATE_BYTES = 16  # hex encoded -> 32 characters


@dataclass(frozen=True)
class PendingAuthorization:
    """Metadata captured when a flow starts."""

    state: str
    requester_id: str
    requester_name: str
    created_at: float


class StateStore:
    """Single-use, expiring state tokens.

    All access to the map goes through one lock, which makes the store safe
    for both the asyncio listener and a threaded single-invocation host.
    """

    def __init__(
        self,
        ttl: float = 600,
        state_bytes: int = STATE_BYTES,
        clock: Callable[[], float] = time.time,
    ):
        self.ttl = ttl
        self.state_bytes = state_bytes
        self._clock = clock
        self._pending: dict[str, PendingAuthorization] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._pending)

    def __contains__(self, state: str) -> bool:
        with self._lock:
            return state in self._pending

    def create(self, requester_id: str = "", requester_name: str = "") -> str:
        """Mint a new state token and remember who asked for it."""
        state = secrets.token_hex(self.state_bytes)
        entry = PendingAuthorization(
            state=state,
            requester_id=requester_id,
            requester_name=requester_name,
            created_at=self._clock(),
        )
        with self._lock:
            self._pending[state] = entry
        return state

    def consume(self, state: str) -> Optional[PendingAuthorization]:
        """Remove and return the entry for `state`.

        Returns None if there is no entry, or if it outlived the TTL but has
        not been swept yet.
        """
        with self._lock:
            entry = self._pending.pop(state, None)
        if entry is None or self._clock() - entry.created_at > self.ttl:
            return None
        return entry

    def sweep(self, now: float = None) -> int:
        """Drop entries older than the TTL. Returns how many were removed."""
        now = self._clock() if now is None else now
        with self._lock:
            expired = [
                state for state, entry in self._pending.items()
                if now - entry.created_at > self.ttl
            ]
            for state in expired:
                del self._pending[state]
        if expired:
            logger.info(f"[STATE] Cleaned up {len(expired)} expired OAuth states")
        return len(expired)


async def run_sweeper(store: StateStore, interval: float) -> None:
    """Sweep `store` every `interval` seconds until cancelled.

    A failing sweep is logged and the loop keeps going.
    """
    logger.info(f"[STATE] Sweeper started (every {interval:g}s, ttl {store.ttl:g}s)")
    while True:
        await asyncio.sleep(interval)
        try:
            store.sweep()
        except Exception:
            logger.exception("[STATE] Sweep failed")
