# app/services/cache_service.py
import json
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Any, Callable, Optional, Set

import redis
from redis.exceptions import RedisError

from app.domain.errors import CacheUnavailable
from app.utils.settings import REDIS_URL, CACHE_TIMEOUT_SECONDS, CACHE_WRITE_WORKERS
from app.utils.logging import get_logger

logger = get_logger(__name__)


class CacheService:
    """
    -get / set z TTL / delete na redisie
    -kazdy blad redisa (brak polaczenia, timeout, zly payload) jest lapany tutaj,
     wolajacy widzi tylko "wartosc" albo None
    -zapisy w tle na ThreadPoolExecutor (fire-and-forget), tylko gdy redis
     odpowiadal przy ostatnim wywolaniu; liczba oczekujacych zapisow jest ograniczona

    Cykl zycia: start() przy starcie aplikacji, close() przy zamknieciu.
    """

    def __init__(
        self,
        url: str | None = None,
        client: Optional[redis.Redis] = None,
        timeout: float = CACHE_TIMEOUT_SECONDS,
        background_writes: bool = True,
        max_workers: int = CACHE_WRITE_WORKERS,
        max_pending: int | None = None,
    ):
        self.url = url or REDIS_URL
        self.timeout = timeout
        self.redis = client
        self.background_writes = background_writes
        self.max_workers = max_workers
        self.max_pending = max_pending or max_workers * 4
        #czy ostatnie wywolanie redisa sie udalo
        self.available = True
        self._executor: ThreadPoolExecutor | None = None
        self._pending: Set[Future] = set()
        self._lock = threading.Lock()

    def start(self) -> None:
        if self.redis is None:
            self.redis = redis.Redis.from_url(
                self.url,
                decode_responses=True,
                socket_timeout=self.timeout,
                socket_connect_timeout=self.timeout,
                retry_on_timeout=False,
            )
        if self.background_writes and self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self.max_workers,
                thread_name_prefix="cache-write",
            )

        #brak redisa przy starcie nie blokuje aplikacji, dzialamy bez cache
        if self.ping():
            logger.info(f"Redis cache connected ({self.url})")
        else:
            logger.warning("Redis cache unavailable, running without cache")

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
        if self.redis is not None:
            try:
                self.redis.close()
            except RedisError as e:
                logger.warning(f"Error closing redis client: {e}")
        logger.info("Redis cache stopped")

    def _call(self, op: str, fn: Callable[[], Any]) -> Any:
        if self.redis is None:
            self.available = False
            raise CacheUnavailable("Cache client not started", details={"op": op})
        try:
            result = fn()
        except (RedisError, OSError) as e:
            self.available = False
            raise CacheUnavailable(str(e), details={"op": op}) from e
        self.available = True
        return result

    def ping(self) -> bool:
        try:
            return bool(self._call("ping", lambda: self.redis.ping()))
        except CacheUnavailable:
            return False

    def get(self, key: str) -> Optional[str]:
        try:
            return self._call("get", lambda: self.redis.get(key))
        except CacheUnavailable as e:
            logger.warning(f"Redis error (get {key}): {e}")
            return None

    def set_with_expiry(self, key: str, value: str, ttl: int) -> bool:
        try:
            return bool(self._call("setex", lambda: self.redis.setex(key, ttl, value)))
        except CacheUnavailable as e:
            logger.warning(f"Redis set error ({key}): {e}")
            return False

    def delete(self, *keys: str) -> bool:
        try:
            self._call("delete", lambda: self.redis.delete(*keys))
            return True
        except CacheUnavailable as e:
            logger.warning(f"Redis del error ({', '.join(keys)}): {e}")
            return False

    def get_json(self, key: str) -> Any:
        raw = self.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError) as e:
            #uszkodzony wpis traktujemy jak miss
            logger.warning(f"Malformed cache payload under {key}: {e}")
            return None

    def set_json_in_background(self, key: str, value: Any, ttl: int) -> bool:
        """Planuje zapis; False gdy pominiety (redis niedostepny albo kolejka pelna)."""
        if not self.available:
            logger.debug(f"Redis unavailable, skipping write-back of {key}")
            return False

        payload = json.dumps(value)
        if self._executor is None:
            return self.set_with_expiry(key, payload, ttl)

        with self._lock:
            if len(self._pending) >= self.max_pending:
                logger.warning(f"Cache write queue full, dropping write-back of {key}")
                return False
            future = self._executor.submit(self.set_with_expiry, key, payload, ttl)
            self._pending.add(future)
        future.add_done_callback(self._forget)
        return True

    def _forget(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)

    def pending_writes(self) -> int:
        with self._lock:
            return len(self._pending)

    def drain(self) -> None:
        """Czeka na zaplanowane zapisy (shutdown i testy)."""
        with self._lock:
            pending = list(self._pending)
        wait(pending)
        #callbacki moga jeszcze nie ruszyc po wait()
        with self._lock:
            self._pending.difference_update(pending)
