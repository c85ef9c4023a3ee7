"""Admission control for the initiate leg, backed by slowapi's fixed-window limiter."""

import asyncio
import logging
import time

from limits import RateLimitItem, RateLimitItemPerSecond
from slowapi import Limiter
from starlette.requests import Request

from unsubscribe_service.core.config import Settings
from unsubscribe_service.core.errors import AdmissionRejected

logger = logging.getLogger(__name__)

# All initiate requests share one window, not one per client
ADMISSION_SCOPE = "unsubscribe"

# Lower bound on how long a queued request sleeps before re-checking the window
_MIN_WAIT_SECONDS = 0.05


def _get_real_client_ip(request: Request) -> str:
    """Extract the real client IP behind Cloudflare Tunnel / reverse proxy."""
    return (
        request.headers.get("CF-Connecting-IP")
        or request.headers.get("X-Forwarded-For", "").split(",")[0].strip()
        or (request.client.host if request.client else "127.0.0.1")
    )


def create_limiter() -> Limiter:
    """Fixed-window limiter with process-local storage."""
    return Limiter(
        key_func=_get_real_client_ip,
        strategy="fixed-window",
        storage_uri="memory://",
    )


class AdmissionGate:
    """Fixed-window permits with a bounded, oldest-first waiting queue.

    A request is admitted at once when a permit is free and nobody is queued.
    Otherwise it waits for a later window, up to ``queue_limit`` waiters; any
    request beyond that is rejected.
    """

    def __init__(
        self,
        limiter: Limiter,
        permit_limit: int,
        window_seconds: int,
        queue_limit: int,
    ) -> None:
        self.limiter = limiter
        self.item: RateLimitItem = RateLimitItemPerSecond(permit_limit, window_seconds)
        self.queue_limit = queue_limit
        self._waiting = 0
        self._queue = asyncio.Lock()  # FIFO wake-up order gives oldest-first

    @property
    def waiting(self) -> int:
        return self._waiting

    async def acquire(self, client: str = "") -> None:
        """Wait for a permit.

        Raises:
            AdmissionRejected: If the window is spent and the queue is full.
        """
        if not self.limiter.enabled:
            return

        backend = self.limiter.limiter
        if self._waiting == 0 and backend.hit(self.item, ADMISSION_SCOPE):
            return

        if self._waiting >= self.queue_limit:
            logger.warning("Admission rejected for %s: window spent and queue full", client)
            raise AdmissionRejected()

        self._waiting += 1
        logger.info("Request from %s queued for admission (%d waiting)", client, self._waiting)
        try:
            async with self._queue:
                while not backend.hit(self.item, ADMISSION_SCOPE):
                    stats = backend.get_window_stats(self.item, ADMISSION_SCOPE)
                    await asyncio.sleep(max(stats.reset_time - time.time(), _MIN_WAIT_SECONDS))
        finally:
            self._waiting -= 1


def build_admission_gate(settings: Settings) -> AdmissionGate:
    return AdmissionGate(
        create_limiter(),
        permit_limit=settings.rate_limit_permit_limit,
        window_seconds=settings.rate_limit_window_seconds,
        queue_limit=settings.rate_limit_queue_limit,
    )


async def admit_request(request: Request) -> None:
    """FastAPI dependency gating a route through the app's admission gate."""
    gate: AdmissionGate = request.app.state.admission_gate
    await gate.acquire(_get_real_client_ip(request))
