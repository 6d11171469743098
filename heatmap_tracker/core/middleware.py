from collections import defaultdict
from collections import deque
from collections.abc import Awaitable
from collections.abc import Callable
from collections.abc import Sequence
from threading import RLock
from time import monotonic

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response


HEATMAP_READ_PREFIXES = ("/api/activity/task/", "/api/activity/overview")


class HeatmapRateLimitMiddleware(BaseHTTPMiddleware):
    """In-memory sliding-window rate limiter for heatmap reads.

    Only GET requests whose path starts with one of ``path_prefixes`` are
    counted; every other request passes straight through.
    """

    def __init__(
        self,
        app,
        requests_per_window: int = 30,
        window_seconds: int = 60,
        path_prefixes: Sequence[str] = HEATMAP_READ_PREFIXES,
    ) -> None:
        super().__init__(app)
        self.max_requests = max(1, requests_per_window)
        self.window_seconds = max(1, window_seconds)
        self.path_prefixes = tuple(path_prefixes)
        # One queue of request timestamps per client address.
        self._ip_buckets: dict[str, deque[float]] = defaultdict(deque)
        self._lock = RLock()
        self._last_sweep = monotonic()

    def _is_limited(self, request: Request) -> bool:
        return request.method == "GET" and request.url.path.startswith(
            self.path_prefixes
        )

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        if not self._is_limited(request):
            return await call_next(request)

        retry_after = self._acquire(self._client_ip(request), monotonic())
        if retry_after is not None:
            return JSONResponse(
                status_code=429,
                content={"detail": "Too Many Requests"},
                headers={"Retry-After": str(retry_after)},
            )

        return await call_next(request)

    def _acquire(self, ip: str, now: float) -> int | None:
        """Count a request for ``ip``; return Retry-After seconds when over limit."""

        with self._lock:
            self._sweep(now)
            bucket = self._ip_buckets[ip]
            self._evict(bucket, now)

            if len(bucket) >= self.max_requests:
                return max(1, int(self.window_seconds - (now - bucket[0])))

            bucket.append(now)
            return None

    def _evict(self, bucket: deque[float], now: float) -> None:
        cutoff = now - self.window_seconds
        while bucket and bucket[0] <= cutoff:
            bucket.popleft()

    def _sweep(self, now: float) -> None:
        # At most once per window, drop clients with no requests left in it.
        if now - self._last_sweep < self.window_seconds:
            return
        self._last_sweep = now

        for ip in list(self._ip_buckets):
            bucket = self._ip_buckets[ip]
            self._evict(bucket, now)
            if not bucket:
                del self._ip_buckets[ip]

    @staticmethod
    def _client_ip(request: Request) -> str:
        # Reverse proxies terminate the connection and set X-Forwarded-For.
        forwarded_for = request.headers.get("x-forwarded-for")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip() or "unknown"

        if request.client and request.client.host:
            return request.client.host

        return "unknown"
