"""
Preach Point Backend — Per-Client Rate Limiter
================================================

What:  Per-client fixed window rate limiter to deter abuse of the paid LLM call.
Why:   Every admitted /process-sermon request costs one upstream completion.
How:   Tracks a request count and a reset timestamp per client identifier in
       an in-process dict.
Who:   Owned by SermonProcessor; consulted once per POST after the method gate.

Algorithm: Fixed Window, Restarted On Expiry
    1. First request from a client opens a window: count=0, reset=now+window
    2. If now > reset, the window restarts: count=0, reset=now+window
    3. If count >= max_requests, reject (state untouched)
    4. Otherwise increment count and admit

    Unlike a sliding window, a client can burst up to 2x the limit across a
    window boundary. Acceptable for abuse deterrence; not billing-grade.

Memory Bound:
    When more than `max_clients` identifiers are tracked, the entry inserted
    first is evicted. Re-storing an existing key keeps its original position,
    so the evicted client may still be active. This is an arbitrary-eviction
    cap, not LRU.

Thread Safety:
    None. Concurrent admissions for the same client in one process may both
    read a stale count. State is process-local; multiple workers each keep
    their own limiter.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)


@dataclass
class ClientWindowState:
    """Request count and window expiry for one client."""

    count: int
    reset_time: float


class RateLimiter:
    """
    In-memory fixed window rate limiter keyed by client identifier.

    Args:
        max_requests:   Requests admitted per client per window (default 10)
        window_seconds: Window length in seconds (default 60)
        max_clients:    Tracked-client cap before eviction (default 1000)
        clock:          Returns the current time in seconds. Injected so tests
                        can advance time deterministically.
    """

    def __init__(
        self,
        max_requests: int = 10,
        window_seconds: float = 60,
        max_clients: int = 1000,
        clock: Callable[[], float] = time.time,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.max_clients = max_clients
        self._clock = clock
        # Insertion-ordered; the first key is the eviction candidate
        self._clients: Dict[str, ClientWindowState] = {}

    def admit(self, client_id: str) -> bool:
        """
        Decide whether a request from `client_id` may proceed.

        Returns:
            True if admitted (and counted), False if the client has used up
            its window.
        """
        now = self._clock()
        state = self._clients.get(client_id)
        if state is None:
            state = ClientWindowState(count=0, reset_time=now + self.window_seconds)

        if now > state.reset_time:
            state.count = 0
            state.reset_time = now + self.window_seconds

        if state.count >= self.max_requests:
            logger.warning(
                "Rate limit exceeded for client %s: %d requests in %ss window",
                client_id,
                state.count,
                self.window_seconds,
            )
            return False

        state.count += 1
        self._clients[client_id] = state

        if len(self._clients) > self.max_clients:
            self._evict_first()

        return True

    def _evict_first(self) -> None:
        oldest = next(iter(self._clients))
        del self._clients[oldest]
        logger.debug("Evicted rate limit state for client %s", oldest)

    @property
    def tracked_clients(self) -> int:
        return len(self._clients)

    def state_for(self, client_id: str) -> Optional[ClientWindowState]:
        """Returns a copy of the stored state for inspection, or None."""
        state = self._clients.get(client_id)
        if state is None:
            return None
        return ClientWindowState(count=state.count, reset_time=state.reset_time)
