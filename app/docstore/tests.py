from datetime import datetime, timezone as dt_timezone
from unittest.mock import patch

from django.db import DatabaseError
from django.test import TestCase

from docstore.client import SERVER_TIMESTAMP, DocumentStoreClient, Guard
from docstore.exceptions import DocumentStoreError, WriteConflictError
from docstore.models import Document, DocumentHead

FIXED_NOW = datetime(2026, 3, 1, 8, 0, tzinfo=dt_timezone.utc)


class DocumentStoreClientTests(TestCase):
    def setUp(self):
        self.store = DocumentStoreClient()

    def test_insert_assigns_id_and_server_timestamp(self):
        stored = self.store.insert("logs", {"tag": "ER-01", "timestamp": SERVER_TIMESTAMP})

        self.assertEqual(len(stored.id), 32)
        self.assertEqual(stored.data["timestamp"], stored.created_at.isoformat())
        self.assertEqual(self.store.get("logs", stored.id), stored)

    def test_get_returns_none_for_missing_document(self):
        self.assertIsNone(self.store.get("logs", "missing"))

    @patch("docstore.client.timezone.now", return_value=FIXED_NOW)
    def test_list_entries_breaks_timestamp_ties_by_insertion_order(self, _mock_now):
        first = self.store.insert("logs", {"tag": "ER-01"})
        second = self.store.insert("logs", {"tag": "ER-02"})
        third = self.store.insert("logs", {"tag": "ER-03"})
        self.store.insert("other", {"tag": "ER-04"})

        ascending = [document.id for document in self.store.list_entries("logs")]
        descending = [document.id for document in self.store.list_entries("logs", descending=True)]

        self.assertEqual(ascending, [first.id, second.id, third.id])
        self.assertEqual(descending, [third.id, second.id, first.id])

    def test_query_by_field_equality_with_limit(self):
        self.store.insert("logs", {"tag": "ER-01", "status": "checked-in"})
        newest = self.store.insert("logs", {"tag": "ER-01", "status": "checked-out"})
        self.store.insert("logs", {"tag": "ER-02", "status": "checked-in"})

        matches = self.store.query_by_field("logs", "tag", "ER-01")
        latest = self.store.query_by_field("logs", "tag", "ER-01", descending=True, limit=1)

        self.assertEqual(len(matches), 2)
        self.assertEqual([document.id for document in latest], [newest.id])

    def test_query_by_field_array_contains(self):
        self.store.upsert_by_id("departments", "er", {"department": "ER", "tags": ["ER-01", "ER-02"]})
        self.store.upsert_by_id("departments", "or", {"department": "OR", "tags": ["OR-01"]})
        self.store.upsert_by_id("departments", "broken", {"department": "Broken", "tags": "ER-01"})

        matches = self.store.query_by_field("departments", "tags", "ER-01", op="array-contains")

        self.assertEqual([document.id for document in matches], ["er"])

    def test_query_by_field_rejects_bad_operator_and_field(self):
        with self.assertRaises(ValueError):
            self.store.query_by_field("logs", "tag", "ER-01", op=">")
        with self.assertRaises(ValueError):
            self.store.query_by_field("logs", "tag__contains", "ER")

    def test_upsert_creates_then_merges_top_level_fields(self):
        self.store.upsert_by_id("departments", "er", {"department": "ER", "tags": ["ER-01"]})
        merged = self.store.upsert_by_id("departments", "er", {"tags": ["ER-01", "ER-02"]})

        self.assertEqual(merged.data, {"department": "ER", "tags": ["ER-01", "ER-02"]})
        self.assertEqual(Document.objects.filter(collection="departments").count(), 1)

    def test_delete_many_only_removes_listed_documents(self):
        keep = self.store.insert("logs", {"tag": "ER-01"})
        drop_a = self.store.insert("logs", {"tag": "ER-02"})
        drop_b = self.store.insert("logs", {"tag": "ER-03"})
        other = self.store.insert("archive", {"tag": "ER-02"})

        deleted = self.store.delete_many("logs", [drop_a.id, drop_b.id, other.id])

        self.assertEqual(deleted, 2)
        self.assertEqual([document.id for document in self.store.list_entries("logs")], [keep.id])
        self.assertIsNotNone(self.store.get("archive", other.id))
        self.assertEqual(self.store.delete_many("logs", []), 0)

    def test_guarded_insert_without_history_expects_none(self):
        first = self.store.insert("logs", {"tag": "ER-01"}, guard=Guard(field="tag", expected=None))

        with self.assertRaises(WriteConflictError):
            self.store.insert("logs", {"tag": "ER-01"}, guard=Guard(field="tag", expected=None))

        self.assertEqual(DocumentHead.objects.get(collection="logs", key="ER-01").doc_id, first.id)
        self.assertEqual(len(self.store.list_entries("logs")), 1)

    def test_first_guarded_insert_starts_from_callers_view_of_history(self):
        older = self.store.insert("logs", {"tag": "ER-01", "timestamp": "2025-02-01T00:00:00+00:00"})
        self.store.insert("logs", {"tag": "ER-01", "timestamp": "2025-01-01T00:00:00+00:00"})

        # The caller picked the newest event by timestamp, not by insertion.
        accepted = self.store.insert("logs", {"tag": "ER-01"}, guard=Guard(field="tag", expected=older.id))

        self.assertEqual(DocumentHead.objects.get(collection="logs", key="ER-01").doc_id, accepted.id)

    def test_guarded_insert_tracks_head_after_legacy_documents(self):
        legacy = self.store.insert("logs", {"tag": "ER-01"})

        second = self.store.insert("logs", {"tag": "ER-01"}, guard=Guard(field="tag", expected=legacy.id))
        with self.assertRaises(WriteConflictError):
            self.store.insert("logs", {"tag": "ER-01"}, guard=Guard(field="tag", expected=legacy.id))

        self.assertEqual(DocumentHead.objects.get(collection="logs", key="ER-01").doc_id, second.id)
        self.assertEqual(len(self.store.list_entries("logs")), 2)

    def test_deleting_head_document_reseeds_on_next_insert(self):
        first = self.store.insert("logs", {"tag": "ER-01"}, guard=Guard(field="tag", expected=None))
        second = self.store.insert("logs", {"tag": "ER-01"}, guard=Guard(field="tag", expected=first.id))

        self.store.delete_by_id("logs", second.id)
        third = self.store.insert("logs", {"tag": "ER-01"}, guard=Guard(field="tag", expected=first.id))

        self.assertEqual(DocumentHead.objects.get(collection="logs", key="ER-01").doc_id, third.id)

    def test_database_errors_are_raised_as_store_errors(self):
        with patch.object(Document.objects, "using", side_effect=DatabaseError("db down")):
            with self.assertRaises(DocumentStoreError):
                self.store.list_entries("logs")
            with self.assertRaises(DocumentStoreError):
                self.store.insert("logs", {"tag": "ER-01"})
            with self.assertRaises(DocumentStoreError):
                self.store.delete_many("logs", ["abc"])
