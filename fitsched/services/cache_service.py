# fitsched/services/cache_service.py
"""
Cache service for fitsched.

Holds recommendation entries and resolved coordinates. Redis is used when
configured; otherwise (or while Redis is unreachable) an in-process dict
with per-key expiry takes over. Callers only see get/set/delete semantics,
so the backend is swappable without touching the services.
"""

from datetime import date, datetime, time, timedelta
from enum import Enum
import hashlib
import json
import logging
import threading
from typing import Any, Callable, Dict, Optional, TypeVar, Union

import redis
from redis import Redis
from redis.exceptions import RedisError

from ..core.config import settings
from .base import BaseService

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CircuitState(Enum):
    """Circuit breaker states."""

    CLOSED = "closed"  # Normal operation
    OPEN = "open"  # Failing, reject calls
    HALF_OPEN = "half_open"  # Testing if service recovered


class CircuitBreaker:
    """
    Circuit breaker for the Redis backend.

    After ``failure_threshold`` consecutive Redis errors calls are skipped
    until ``recovery_timeout`` seconds have passed.
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        recovery_timeout: int = 60,
        expected_exception: type[BaseException] = RedisError,
    ) -> None:
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.expected_exception = expected_exception

        self._failure_count: int = 0
        self._last_failure_time: Optional[datetime] = None
        self._state: CircuitState = CircuitState.CLOSED
        self._lock = threading.Lock()

    @property
    def state(self) -> CircuitState:
        with self._lock:
            if self._state == CircuitState.OPEN and self._last_failure_time:
                elapsed = (datetime.now() - self._last_failure_time).total_seconds()
                if elapsed >= self.recovery_timeout:
                    self._state = CircuitState.HALF_OPEN
            return self._state

    @property
    def failure_count(self) -> int:
        return self._failure_count

    def call(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> Optional[T]:
        """
        Execute ``func`` with circuit breaker protection.

        Returns None without calling when the circuit is open. Errors below
        the threshold propagate to the caller.
        """
        if self.state == CircuitState.OPEN:
            logger.warning(f"Circuit breaker is OPEN, skipping {func.__name__}")
            return None

        try:
            result = func(*args, **kwargs)
            self._on_success()
            return result
        except self.expected_exception:
            self._on_failure()
            if self.state == CircuitState.CLOSED:
                raise
            return None

    def _on_success(self) -> None:
        with self._lock:
            self._failure_count = 0
            if self._state == CircuitState.HALF_OPEN:
                self._state = CircuitState.CLOSED
                logger.info("Circuit breaker recovered, closing circuit")

    def _on_failure(self) -> None:
        with self._lock:
            self._failure_count += 1
            self._last_failure_time = datetime.now()

            if self._failure_count >= self.failure_threshold:
                self._state = CircuitState.OPEN
                logger.warning(f"Circuit breaker opened after {self._failure_count} failures")


class CacheKeyBuilder:
    """Standardized cache key generation."""

    # Key prefixes for different domains
    PREFIXES = {
        "recommendation": "rec",
        "geocode": "geo",
    }

    @staticmethod
    def build(*parts: Union[str, int, date, time]) -> str:
        """
        Build a cache key from parts.

        Examples:
            build('recommendation', '01J...') -> 'rec:01J...'
            build('geocode', 'addr', 'ab12cd34ef56') -> 'geo:addr:ab12cd34ef56'
        """
        formatted_parts = []
        for part in parts:
            if isinstance(part, (date, datetime, time)):
                formatted_parts.append(part.isoformat())
            else:
                formatted_parts.append(str(part))

        if parts:
            first = parts[0]
            if isinstance(first, str) and first in CacheKeyBuilder.PREFIXES:
                formatted_parts[0] = CacheKeyBuilder.PREFIXES[first]

        return ":".join(formatted_parts)

    @staticmethod
    def hash_complex_key(data: Dict[str, Any]) -> str:
        """Generate a short stable hash for structured key material."""
        sorted_data = json.dumps(data, sort_keys=True, default=str)
        return hashlib.md5(sorted_data.encode()).hexdigest()[:12]


class CacheService:
    """
    Key/value cache with TTL and manual invalidation.

    Values must be JSON-serialisable; the memory backend stores a JSON
    round-tripped copy so both backends hand back equal data.
    """

    def __init__(
        self,
        redis_client: Optional[Redis] = None,
        backend: Optional[str] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.logger = logging.getLogger(__name__)
        self.circuit_breaker = CircuitBreaker(
            failure_threshold=5, recovery_timeout=60, expected_exception=RedisError
        )
        self._clock = clock

        # In-memory fallback
        self._memory_cache: Dict[str, Any] = {}
        self._memory_expiry: Dict[str, datetime] = {}
        self._memory_lock = threading.Lock()

        self.redis: Optional[Redis] = redis_client
        if self.redis is None and (backend or settings.cache_backend) == "redis":
            self._setup_redis_connection()

        self._stats: Dict[str, int] = self._initialize_stats()

    def _setup_redis_connection(self) -> None:
        try:
            client = redis.from_url(
                settings.redis_url or "redis://localhost:6379",
                decode_responses=True,
                socket_keepalive=True,
                socket_connect_timeout=5,
                retry_on_timeout=True,
                health_check_interval=30,
                max_connections=50,
            )
            client.ping()
            self.redis = client
            logger.info("Connected to Redis cache backend")
        except (RedisError, ConnectionError) as e:
            logger.warning(f"Redis not available: {e}. Using in-memory fallback.")
            self.redis = None

    def _initialize_stats(self) -> Dict[str, int]:
        return {"hits": 0, "misses": 0, "sets": 0, "deletes": 0, "errors": 0}

    @property
    def backend(self) -> str:
        return "redis" if self.redis is not None else "memory"

    # Core Cache Operations

    @BaseService.measure_operation("cache_get")
    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None when absent, expired or unreachable."""
        redis_client = self.redis

        def _get_from_redis() -> Optional[Any]:
            assert redis_client is not None
            value = redis_client.get(key)
            if value is not None:
                return json.loads(value)
            return None

        try:
            if redis_client is not None:
                if self.circuit_breaker.state != CircuitState.OPEN:
                    value = self.circuit_breaker.call(_get_from_redis)
                    if value is not None:
                        self._stats["hits"] += 1
                        return value
            else:
                value = self._get_from_memory(key)
                if value is not None:
                    self._stats["hits"] += 1
                    return value

            self._stats["misses"] += 1
            return None

        except Exception as e:
            logger.error(f"Cache get error for key {key}: {e}")
            self._stats["errors"] += 1
            return None

    def _get_from_memory(self, key: str) -> Optional[Any]:
        with self._memory_lock:
            if key not in self._memory_cache:
                return None
            expires_at = self._memory_expiry.get(key)
            if expires_at is not None and self._clock() >= expires_at:
                del self._memory_cache[key]
                del self._memory_expiry[key]
                return None
            return self._memory_cache[key]

    @BaseService.measure_operation("cache_set")
    def set(self, key: str, value: Any, ttl: int) -> bool:
        """Store ``value`` for ``ttl`` seconds. Returns False when the write was dropped."""
        redis_client = self.redis

        try:
            serialized = json.dumps(value, default=str)

            if redis_client is not None:
                if self.circuit_breaker.state == CircuitState.OPEN:
                    return False

                def _set_in_redis() -> bool:
                    assert redis_client is not None
                    redis_client.setex(key, ttl, serialized)
                    return True

                if self.circuit_breaker.call(_set_in_redis):
                    self._stats["sets"] += 1
                    return True
                return False

            with self._memory_lock:
                self._memory_cache[key] = json.loads(serialized)
                self._memory_expiry[key] = self._clock() + timedelta(seconds=ttl)
            self._stats["sets"] += 1
            return True

        except Exception as e:
            logger.error(f"Cache set error for key {key}: {e}")
            self._stats["errors"] += 1
            return False

    @BaseService.measure_operation("cache_delete")
    def delete(self, key: str) -> bool:
        """Delete a key. Redis errors propagate so invalidation callers can log them."""
        redis_client = self.redis

        if redis_client is not None:

            def _delete_from_redis() -> bool:
                assert redis_client is not None
                return bool(redis_client.delete(key))

            result = bool(self.circuit_breaker.call(_delete_from_redis))
        else:
            with self._memory_lock:
                result = key in self._memory_cache
                self._memory_cache.pop(key, None)
                self._memory_expiry.pop(key, None)

        if result:
            self._stats["deletes"] += 1
        return result

    # Monitoring

    def get_stats(self) -> Dict[str, Any]:
        total_requests = self._stats["hits"] + self._stats["misses"]
        hit_rate = (self._stats["hits"] / total_requests * 100) if total_requests > 0 else 0

        return {
            **self._stats,
            "backend": self.backend,
            "hit_rate": f"{hit_rate:.2f}%",
            "total_requests": total_requests,
            "circuit_breaker": {
                "state": self.circuit_breaker.state.value,
                "failure_count": self.circuit_breaker.failure_count,
                "threshold": self.circuit_breaker.failure_threshold,
            },
        }
