from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Protocol

from docstore.client import DocumentStoreClient
from tracking.records import EVENTS_COLLECTION, Event, Status
from tracking.serializers import decode_events
from tracking.services.recent import RecentSubmissions

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Resolution:
    status: Status
    event_id: str | None = None
    source: str = ""


class StatusStrategy(Protocol):
    name: str

    def resolve(self, tag: str) -> Resolution | None:
        ...


def _latest(events: Iterable[Event], tag: str, source: str) -> Resolution:
    # Input is newest-stored first; the stable sort keeps that order between equal timestamps.
    dated = [event for event in events if event.tag == tag and event.timestamp is not None]
    dated.sort(key=lambda event: event.timestamp, reverse=True)
    if not dated:
        return Resolution(status=Status.NONE, source=source)
    return Resolution(status=dated[0].status, event_id=dated[0].id, source=source)


class HistoryScanStrategy:
    name = "history_scan"

    def __init__(self, client: DocumentStoreClient):
        self.client = client

    def resolve(self, tag: str) -> Resolution | None:
        documents = self.client.list_entries(EVENTS_COLLECTION, descending=True)
        return _latest(decode_events(documents), tag, self.name)


class TagQueryStrategy:
    name = "tag_query"

    def __init__(self, client: DocumentStoreClient):
        self.client = client

    def resolve(self, tag: str) -> Resolution | None:
        documents = self.client.query_by_field(EVENTS_COLLECTION, "tag", tag, descending=True)
        return _latest(decode_events(documents), tag, self.name)


class RecentSubmissionStrategy:
    name = "recent_submission"

    def __init__(self, recent: RecentSubmissions):
        self.recent = recent

    def resolve(self, tag: str) -> Resolution | None:
        remembered = self.recent.lookup(tag)
        if not remembered:
            return None
        return Resolution(
            status=Status(remembered["status"]),
            event_id=remembered.get("event_id"),
            source=self.name,
        )


def first_success(strategies: Iterable[StatusStrategy], tag: str) -> Resolution | None:
    for strategy in strategies:
        try:
            result = strategy.resolve(tag)
        except Exception:  # noqa: BLE001
            logger.warning("Status strategy failed", exc_info=True, extra={"strategy": strategy.name, "tag": tag})
            continue
        if result is not None:
            return result
    return None


class StatusResolver:
    def __init__(self, strategies: list[StatusStrategy]):
        self.strategies = list(strategies)

    def resolve(self, tag: str) -> Resolution:
        result = first_success(self.strategies, tag)
        if result is None:
            logger.warning("No status strategy answered, assuming no history", extra={"tag": tag})
            return Resolution(status=Status.NONE, source="default")
        return result

    def get_current_status(self, tag: str) -> Status:
        return self.resolve((tag or "").strip()).status


def default_strategies(client: DocumentStoreClient, recent: RecentSubmissions) -> list[StatusStrategy]:
    return [HistoryScanStrategy(client), TagQueryStrategy(client), RecentSubmissionStrategy(recent)]
