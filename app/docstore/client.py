from __future__ import annotations

import re
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone

from docstore.exceptions import DocumentStoreError, WriteConflictError
from docstore.models import Document, DocumentHead

FIELD_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
QUERY_OPERATORS = ("==", "array-contains")


class _ServerTimestamp:
    def __repr__(self):
        return "SERVER_TIMESTAMP"


# Replaced by the store with the write time of the document.
SERVER_TIMESTAMP = _ServerTimestamp()


@dataclass(frozen=True)
class StoredDocument:
    id: str
    data: dict[str, Any]
    created_at: datetime


@dataclass(frozen=True)
class Guard:
    """Conditional-write token: the insert only happens while the head
    recorded for ``record[field]`` is still ``expected``. A key without a
    head accepts the caller's ``expected`` as its starting point."""

    field: str
    expected: str | None


def _check_field(field: str) -> str:
    if not FIELD_NAME_RE.match(field or ""):
        raise ValueError(f"Invalid field name: {field!r}")
    return field


def _resolve_server_timestamps(record: dict[str, Any], now: datetime) -> dict[str, Any]:
    return {key: (now.isoformat() if value is SERVER_TIMESTAMP else value) for key, value in record.items()}


def _to_stored(document: Document) -> StoredDocument:
    return StoredDocument(id=document.doc_id, data=dict(document.data or {}), created_at=document.created_at)


class DocumentStoreClient:
    """Collections of JSON documents kept in the project database."""

    def __init__(self, using: str = "default"):
        self.using = using

    def _collection(self, collection: str, descending: bool = False):
        queryset = Document.objects.using(self.using).filter(collection=collection)
        if descending:
            return queryset.order_by("-created_at", "-pk")
        return queryset.order_by("created_at", "pk")

    def list_entries(self, collection: str, descending: bool = False) -> list[StoredDocument]:
        try:
            return [_to_stored(document) for document in self._collection(collection, descending)]
        except DatabaseError as exc:
            raise DocumentStoreError(f"Unable to list '{collection}'") from exc

    def get(self, collection: str, doc_id: str) -> StoredDocument | None:
        try:
            document = Document.objects.using(self.using).filter(collection=collection, doc_id=doc_id).first()
        except DatabaseError as exc:
            raise DocumentStoreError(f"Unable to read '{collection}/{doc_id}'") from exc
        return _to_stored(document) if document else None

    def query_by_field(
        self,
        collection: str,
        field: str,
        value: Any,
        op: str = "==",
        *,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[StoredDocument]:
        _check_field(field)
        if op not in QUERY_OPERATORS:
            raise ValueError(f"Unsupported operator: {op!r}")

        try:
            queryset = self._collection(collection, descending)
            if op == "==":
                queryset = queryset.filter(**{f"data__{field}": value})
                if limit is not None:
                    queryset = queryset[:limit]
                return [_to_stored(document) for document in queryset]

            # JSON containment lookups are not available on every backend (SQLite).
            matches = []
            for document in queryset.iterator():
                items = (document.data or {}).get(field)
                if isinstance(items, list) and value in items:
                    matches.append(_to_stored(document))
                    if limit is not None and len(matches) >= limit:
                        break
            return matches
        except DatabaseError as exc:
            raise DocumentStoreError(f"Unable to query '{collection}' on {field} {op} {value!r}") from exc

    def insert(self, collection: str, record: dict[str, Any], guard: Guard | None = None) -> StoredDocument:
        now = timezone.now()
        data = _resolve_server_timestamps(record, now)
        doc_id = uuid.uuid4().hex

        try:
            with transaction.atomic(using=self.using):
                if guard is not None:
                    self._advance_head(collection, guard, data, doc_id)
                document = Document.objects.using(self.using).create(
                    collection=collection,
                    doc_id=doc_id,
                    data=data,
                    created_at=now,
                )
        except DocumentStoreError:
            raise
        except DatabaseError as exc:
            raise DocumentStoreError(f"Unable to insert into '{collection}'") from exc
        return _to_stored(document)

    def _advance_head(self, collection: str, guard: Guard, data: dict[str, Any], doc_id: str) -> None:
        _check_field(guard.field)
        key = str(data.get(guard.field) or "")
        head = (
            DocumentHead.objects.using(self.using)
            .select_for_update()
            .filter(collection=collection, key=key)
            .first()
        )

        if head is not None:
            current = head.doc_id or None
            if current != guard.expected:
                raise WriteConflictError(
                    f"'{collection}' head for {key!r} is {current!r}, expected {guard.expected!r}"
                )
            head.doc_id = doc_id
            head.save(update_fields=["doc_id", "updated_at"])
            return

        # No head yet: the caller's view of the history starts the chain, and
        # the unique constraint lets only one first writer through.
        try:
            with transaction.atomic(using=self.using):
                DocumentHead.objects.using(self.using).create(collection=collection, key=key, doc_id=doc_id)
        except IntegrityError as exc:
            raise WriteConflictError(f"'{collection}' head for {key!r} was created concurrently") from exc

    def upsert_by_id(self, collection: str, doc_id: str, record: dict[str, Any]) -> StoredDocument:
        now = timezone.now()
        data = _resolve_server_timestamps(record, now)
        try:
            with transaction.atomic(using=self.using):
                document = (
                    Document.objects.using(self.using)
                    .select_for_update()
                    .filter(collection=collection, doc_id=doc_id)
                    .first()
                )
                if document is None:
                    document = Document.objects.using(self.using).create(
                        collection=collection,
                        doc_id=doc_id,
                        data=data,
                        created_at=now,
                    )
                else:
                    document.data = {**(document.data or {}), **data}
                    document.save(update_fields=["data", "updated_at"])
        except DatabaseError as exc:
            raise DocumentStoreError(f"Unable to upsert '{collection}/{doc_id}'") from exc
        return _to_stored(document)

    def delete_by_id(self, collection: str, doc_id: str) -> int:
        return self.delete_many(collection, [doc_id])

    def delete_many(self, collection: str, doc_ids: list[str]) -> int:
        ids = [doc_id for doc_id in doc_ids if doc_id]
        if not ids:
            return 0
        try:
            with transaction.atomic(using=self.using):
                # Heads pointing at removed documents are re-seeded on the next guarded insert.
                DocumentHead.objects.using(self.using).filter(collection=collection, doc_id__in=ids).delete()
                deleted, _ = Document.objects.using(self.using).filter(collection=collection, doc_id__in=ids).delete()
        except DatabaseError as exc:
            raise DocumentStoreError(f"Unable to delete {len(ids)} documents from '{collection}'") from exc
        return deleted
