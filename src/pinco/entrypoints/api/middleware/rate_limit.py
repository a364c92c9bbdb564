"""Throttling of login attempts.

Each client IP gets a token bucket. Every attempt on a login path takes
one token; tokens come back at a steady rate up to the burst size.
"""

import math
import time
from collections import OrderedDict
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

logger = structlog.get_logger()

THROTTLED_METHODS = frozenset({"GET", "POST"})


@dataclass
class TokenBucket:
    """Attempts left for one client."""

    capacity: int
    refill_per_second: float
    tokens: float
    updated: float

    def _refill(self, now: float) -> None:
        refilled = self.tokens + (now - self.updated) * self.refill_per_second
        self.tokens = min(self.capacity, refilled)
        self.updated = now

    def take(self, now: float) -> bool:
        """Take one token. Returns False when the bucket is empty."""
        self._refill(now)
        if self.tokens < 1:
            return False
        self.tokens -= 1
        return True

    def is_full(self, now: float) -> bool:
        """Whether the bucket would be back at capacity by ``now``."""
        refilled = self.tokens + (now - self.updated) * self.refill_per_second
        return refilled >= self.capacity

    def seconds_until_next(self) -> int:
        """Whole seconds until one more attempt is allowed."""
        if self.tokens >= 1:
            return 0
        if self.refill_per_second <= 0:
            return 60
        return max(1, math.ceil((1 - self.tokens) / self.refill_per_second))


@dataclass
class LoginThrottle:
    """Per-client login budget.

    A full bucket is the same as no bucket, so refilled buckets are swept
    out when new clients arrive. At most ``max_clients`` buckets are kept;
    past that the least recently seen client is dropped.

    Attributes:
        per_minute: Sustained attempts allowed per minute.
        burst: Attempts allowed back to back.
        max_clients: Upper bound on tracked clients.
        sweep_interval: Minimum seconds between sweeps of refilled buckets.
    """

    per_minute: int = 10
    burst: int = 5
    max_clients: int = 10_000
    sweep_interval: float = 60.0
    clock: Callable[[], float] = time.monotonic
    _buckets: OrderedDict[str, TokenBucket] = field(default_factory=OrderedDict, init=False)
    _last_sweep: float | None = field(default=None, init=False)

    def __len__(self) -> int:
        return len(self._buckets)

    def bucket(self, client: str) -> TokenBucket:
        """Return the bucket of a client, creating a full one if needed."""
        bucket = self._buckets.get(client)
        if bucket is not None:
            self._buckets.move_to_end(client)
            return bucket

        now = self.clock()
        self._evict(now)
        bucket = TokenBucket(
            capacity=self.burst,
            refill_per_second=self.per_minute / 60.0,
            tokens=float(self.burst),
            updated=now,
        )
        self._buckets[client] = bucket
        return bucket

    def _evict(self, now: float) -> None:
        at_capacity = len(self._buckets) >= self.max_clients
        due = self._last_sweep is None or now - self._last_sweep >= self.sweep_interval
        if at_capacity or due:
            refilled = [c for c, b in self._buckets.items() if b.is_full(now)]
            for client in refilled:
                del self._buckets[client]
            self._last_sweep = now
            if refilled:
                logger.debug("login_throttle_swept", dropped=len(refilled))
        while len(self._buckets) >= self.max_clients:
            self._buckets.popitem(last=False)

    def allow(self, client: str) -> bool:
        """Record an attempt and tell whether it may proceed."""
        return self.bucket(client).take(self.clock())

    def forget(self, client: str | None = None) -> None:
        """Drop the state of one client, or of every client."""
        if client is None:
            self._buckets.clear()
        else:
            self._buckets.pop(client, None)


class LoginRateLimitMiddleware(BaseHTTPMiddleware):
    """Answers 429 once a client exhausts its login budget.

    Only requests whose path starts with one of ``paths`` count.
    """

    def __init__(
        self,
        app: ASGIApp,
        paths: Iterable[str],
        throttle: LoginThrottle | None = None,
        enabled: bool = True,
    ) -> None:
        """Initialize the middleware.

        Args:
            app: The ASGI application.
            paths: Login path prefixes.
            throttle: Shared throttle state. A default one is created if omitted.
            enabled: Whether attempts are counted at all.
        """
        super().__init__(app)
        self.paths = tuple(paths)
        self.throttle = throttle or LoginThrottle()
        self.enabled = enabled

    def _applies(self, request: Request) -> bool:
        return request.method in THROTTLED_METHODS and request.url.path.startswith(self.paths)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        """Count login attempts and refuse the ones over budget."""
        if not self.enabled or not self._applies(request):
            return await call_next(request)

        client = request.client.host if request.client else "unknown"
        if self.throttle.allow(client):
            return await call_next(request)

        retry_after = self.throttle.bucket(client).seconds_until_next()
        logger.warning("login_throttled", client=client, retry_after=retry_after)
        return JSONResponse(
            status_code=429,
            content={"detail": "Too many login attempts. Please try again later."},
            headers={"Retry-After": str(retry_after)},
        )
