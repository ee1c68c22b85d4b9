"""Caller-owned read cache with explicit invalidation."""

import time
from typing import Any, Callable, Hashable, Iterable, Optional

WriteHook = Callable[[str, str], None]

_MISSING = object()


class ReadCache:
    """Time-boxed cache of read results, keyed by tenant and collection.

    Services do not own a cache. A caller that wants cached reads creates one,
    wraps its reads with ``get_or_load`` and passes ``invalidate`` to the
    services as an ``on_write`` hook, so every write drops the affected
    collection for that tenant.
    """

    def __init__(self, ttl_seconds: float = 300.0, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[tuple[str, str, Hashable], tuple[float, Any]] = {}

    def get(self, tenant_id: str, collection: str, key: Hashable, default: Any = None) -> Any:
        """Return a cached value, or ``default`` if absent or expired."""
        entry = self._entries.get((tenant_id, collection, key))
        if entry is None:
            return default
        stored_at, value = entry
        if self._clock() - stored_at > self.ttl_seconds:
            del self._entries[(tenant_id, collection, key)]
            return default
        return value

    def set(self, tenant_id: str, collection: str, key: Hashable, value: Any) -> None:
        self._entries[(tenant_id, collection, key)] = (self._clock(), value)

    def get_or_load(self, tenant_id: str, collection: str, key: Hashable, loader: Callable[[], Any]) -> Any:
        """Return the cached value or call ``loader`` and cache its result."""
        value = self.get(tenant_id, collection, key, _MISSING)
        if value is _MISSING:
            value = loader()
            self.set(tenant_id, collection, key, value)
        return value

    def invalidate(self, tenant_id: str, collection: str) -> None:
        """Drop every cached read of ``collection`` for ``tenant_id``."""
        for cache_key in [k for k in self._entries if k[0] == tenant_id and k[1] == collection]:
            del self._entries[cache_key]

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


def notify_write(hooks: Optional[Iterable[WriteHook]], tenant_id: str, collection: str) -> None:
    """Fire every write hook for a tenant collection."""
    for hook in hooks or ():
        hook(tenant_id, collection)
