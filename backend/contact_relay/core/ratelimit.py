import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from redis import Redis
from redis.exceptions import RedisError

from contact_relay.core.settings import Settings

log = logging.getLogger("uvicorn.error")

REDIS_TIMEOUT_SECONDS = 0.5


@dataclass
class RateLimitState:
    allowed: bool
    limit: int
    remaining: int
    reset_seconds: int


class RateLimiter:
    """Per-client request counter.

    A client's window opens at its first hit and lasts ``window_seconds``;
    the next hit after that opens a fresh window. Counts live in Redis when
    a client is given (shared between workers) and in a process-local dict
    otherwise. A Redis failure falls back to the local counter for that hit.
    """

    def __init__(
        self,
        limit: int,
        window_seconds: int,
        redis: Optional[Redis] = None,
        *,
        prefix: str = "contact-relay:rl",
        clock: Callable[[], float] = time.time,
    ):
        self.limit = limit
        self.window = window_seconds
        self.prefix = prefix
        self._redis = redis
        self._clock = clock
        self._local: Dict[str, Tuple[int, float]] = {}
        self._lock = threading.Lock()

    def _hit_local(self, key: str, now: float) -> Tuple[int, float]:
        with self._lock:
            count, reset_at = self._local.get(key, (0, 0.0))
            if reset_at <= now:
                count, reset_at = 0, now + self.window
            count += 1
            self._local[key] = (count, reset_at)
            # drop expired windows so idle clients do not pile up
            if len(self._local) > 10_000:
                self._local = {k: v for k, v in self._local.items() if v[1] > now}
        return count, reset_at

    def _hit_redis(self, key: str, now: float) -> Tuple[int, float]:
        rkey = f"{self.prefix}:{key}"
        pipe = self._redis.pipeline()
        pipe.incr(rkey)
        pipe.pttl(rkey)
        count, ttl_ms = pipe.execute()
        count = int(count)
        if count == 1 or ttl_ms < 0:
            # first hit opens the window; a key without TTL is repaired the same way
            self._redis.pexpire(rkey, self.window * 1000)
            ttl_ms = self.window * 1000
        return count, now + ttl_ms / 1000.0

    def hit(self, key: str) -> RateLimitState:
        now = self._clock()
        if self._redis is not None:
            try:
                count, reset_at = self._hit_redis(key, now)
            except RedisError as exc:
                log.warning(f"[ratelimit] redis hit failed for {key}: {exc}")
                count, reset_at = self._hit_local(key, now)
        else:
            count, reset_at = self._hit_local(key, now)
        return RateLimitState(
            allowed=count <= self.limit,
            limit=self.limit,
            remaining=max(0, self.limit - count),
            reset_seconds=max(1, math.ceil(reset_at - now)),
        )


def get_redis(url: Optional[str]) -> Optional[Redis]:
    if not url:
        return None
    try:
        return Redis.from_url(
            url,
            decode_responses=False,
            socket_connect_timeout=REDIS_TIMEOUT_SECONDS,
            socket_timeout=REDIS_TIMEOUT_SECONDS,
        )
    except Exception as exc:
        log.warning(f"[ratelimit] Redis init failed: {exc}")
        return None


def build_rate_limiter(cfg: Settings) -> RateLimiter:
    return RateLimiter(
        cfg.rate_limit_max,
        cfg.rate_limit_window,
        get_redis(cfg.redis_url),
    )
