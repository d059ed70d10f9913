"""Single-flight result cache for repeated validations.

Batch scans over git history often validate the same message many times
(reverts, cherry-picks, "fix typo"). The cache stores one result per raw
message and guarantees that concurrent requests for the same key compute it
at most once: the first caller computes while the others wait for it.
"""
import threading
import time
from collections import OrderedDict
from typing import Callable, Dict, Generic, Hashable, Optional, TypeVar

V = TypeVar("V")


class ResultCache(Generic[V]):
    """Thread-safe LRU memo with single-flight population.

    Attributes:
        max_size: Maximum number of stored entries, or None for unbounded
        hits: Lookups answered from the cache
        misses: Lookups that had to compute a value
    """

    def __init__(self, max_size: Optional[int] = 4096):
        if max_size is not None and max_size <= 0:
            raise ValueError("max_size must be positive or None")
        self.max_size = max_size
        self.hits = 0
        self.misses = 0
        self._lock = threading.Lock()
        self._values: "OrderedDict[Hashable, V]" = OrderedDict()
        self._inflight: Dict[Hashable, threading.Event] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._values)

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._values

    def get(self, key: Hashable) -> Optional[V]:
        with self._lock:
            return self._values.get(key)

    def clear(self) -> None:
        with self._lock:
            self._values.clear()
            self.hits = 0
            self.misses = 0

    def get_or_compute(
        self,
        key: Hashable,
        compute: Callable[[], V],
        cacheable: Callable[[V], bool] = lambda value: True,
        timeout: Optional[float] = None,
    ) -> V:
        """Return the cached value for ``key`` or compute it exactly once.

        Args:
            key: Cache key
            compute: Produces the value; called outside the cache lock
            cacheable: Values for which this returns False are handed back
                to the caller but not stored
            timeout: Seconds to wait for another caller computing the same
                key; None waits as long as it takes

        Returns:
            The cached or freshly computed value

        Raises:
            TimeoutError: If ``timeout`` expires while waiting on another caller
        """
        expires = None if timeout is None else time.monotonic() + timeout
        while True:
            with self._lock:
                if key in self._values:
                    self._values.move_to_end(key)
                    self.hits += 1
                    return self._values[key]
                event = self._inflight.get(key)
                leader = event is None
                if leader:
                    event = threading.Event()
                    self._inflight[key] = event
                    self.misses += 1

            if not leader:
                # Re-check once the leader is done; if it stored nothing,
                # one of the waiters takes over.
                remaining = None if expires is None else max(0.0, expires - time.monotonic())
                if not event.wait(remaining):
                    raise TimeoutError(f"timed out waiting for {key!r} to be computed")
                continue

            try:
                value = compute()
            except BaseException:
                with self._lock:
                    del self._inflight[key]
                event.set()
                raise

            with self._lock:
                if cacheable(value):
                    self._values[key] = value
                    if self.max_size is not None and len(self._values) > self.max_size:
                        self._values.popitem(last=False)
                del self._inflight[key]
            event.set()
            return value
