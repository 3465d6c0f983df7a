from __future__ import annotations

from django.conf import settings
from django.core.cache import caches

from tracking.records import Event

RECENT_KEY_PREFIX = "tracker:recent:"


class RecentSubmissions:
    """Last event recorded by this deployment for each tag, kept in a Django cache."""

    def __init__(self, ttl: int | None = None, alias: str | None = None):
        self.ttl = int(ttl if ttl is not None else getattr(settings, "TRACKER_RECENT_CACHE_TTL", 86400))
        self.alias = alias or getattr(settings, "TRACKER_RECENT_CACHE_ALIAS", "default")

    @property
    def backend(self):
        return caches[self.alias]

    def remember(self, event: Event) -> None:
        self.backend.set(
            RECENT_KEY_PREFIX + event.tag,
            {"event_id": event.id, "status": str(event.status)},
            timeout=self.ttl,
        )

    def lookup(self, tag: str) -> dict | None:
        return self.backend.get(RECENT_KEY_PREFIX + tag)
