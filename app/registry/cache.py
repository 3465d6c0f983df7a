from __future__ import annotations

from typing import Callable

from django.conf import settings
from django.core.cache import caches

REGISTRY_CACHE_KEY = "tracker:registry"


class TagCache:
    """Registry snapshot held in a Django cache for at most ``ttl`` seconds.

    A tag added to the registry by another process stays invisible to this
    cache until the entry expires; writes made through ``RegistryStore``
    invalidate it immediately.
    """

    def __init__(self, ttl: int | None = None, alias: str | None = None, key: str = REGISTRY_CACHE_KEY):
        self.ttl = int(ttl if ttl is not None else getattr(settings, "TRACKER_TAG_CACHE_TTL", 300))
        if self.ttl <= 0:
            raise ValueError("TagCache ttl must be a positive number of seconds")
        self.alias = alias or getattr(settings, "TRACKER_TAG_CACHE_ALIAS", "default")
        self.key = key

    @property
    def backend(self):
        return caches[self.alias]

    def get(self):
        return self.backend.get(self.key)

    def set(self, snapshot) -> None:
        self.backend.set(self.key, snapshot, timeout=self.ttl)

    def invalidate(self) -> None:
        self.backend.delete(self.key)

    def get_or_load(self, loader: Callable[[], dict]):
        snapshot = self.get()
        if snapshot is None:
            snapshot = loader()
            self.set(snapshot)
        return snapshot


class NullTagCache:
    """Cache that never holds anything; every read goes to the store."""

    def get(self):
        return None

    def set(self, snapshot) -> None:
        return None

    def invalidate(self) -> None:
        return None

    def get_or_load(self, loader: Callable[[], dict]):
        return loader()
