from unittest.mock import patch

from django.core.cache import caches
from django.test import TestCase, override_settings

from docstore.client import DocumentStoreClient
from docstore.exceptions import DocumentStoreError
from registry.cache import NullTagCache, TagCache
from registry.serializers import clean_tags, normalize_department_key
from registry.store import DEPARTMENTS_COLLECTION, RegistryStore, UnknownDepartmentError
from registry.validation import TagValidator

TEST_CACHES = {
    "default": {"BACKEND": "django.core.cache.backends.locmem.LocMemCache", "LOCATION": "registry-tests"},
}


class RegistryKeyTests(TestCase):
    def test_department_key_is_lowercased_trimmed_and_collapsed(self):
        self.assertEqual(normalize_department_key("  Emergency   Room "), "emergency-room")
        self.assertEqual(normalize_department_key("ER"), normalize_department_key(" er "))

    def test_clean_tags_trims_dedupes_and_drops_blanks(self):
        self.assertEqual(clean_tags([" ER-02", "ER-01", "ER-01 ", "", "  ", None, 7]), ["ER-01", "ER-02"])


class RegistryStoreTests(TestCase):
    def setUp(self):
        self.store = DocumentStoreClient()
        self.registry = RegistryStore(self.store, cache=NullTagCache())
        self.registry.add_tags("ER", ["ER-01", "ER-02"])

    def test_add_tags_creates_department_and_merges_tags(self):
        entry = self.registry.add_tags(" er ", ["ER-02", "ER-03"])

        self.assertEqual(entry.key, "er")
        self.assertEqual(self.registry.get_tags_by_department("ER"), ["ER-01", "ER-02", "ER-03"])
        self.assertEqual(self.registry.get_departments(), ["er"])

    def test_departments_are_sorted_by_display_name(self):
        self.registry.add_tags("Operating Room", ["OR-01"])
        self.registry.add_tags("Dental", ["DENT-01"])

        self.assertEqual(self.registry.get_departments(), ["Dental", "ER", "Operating Room"])

    def test_unknown_department_has_no_tags(self):
        self.assertEqual(self.registry.get_tags_by_department("Radiology"), [])

    def test_remove_and_rename_tag(self):
        self.registry.remove_tag("ER", "ER-01")
        self.registry.rename_tag("ER", "ER-02", "ER-20")

        self.assertEqual(self.registry.get_tags_by_department("ER"), ["ER-20"])
        with self.assertRaises(LookupError):
            self.registry.rename_tag("ER", "ER-99", "ER-98")
        with self.assertRaises(UnknownDepartmentError):
            self.registry.remove_tag("Radiology", "XRAY-01")

    def test_rename_department_merges_into_target_and_removes_source(self):
        self.registry.add_tags("Emergency", ["EM-01"])

        entry = self.registry.rename_department("ER", "Emergency")

        self.assertEqual(entry.key, "emergency")
        self.assertEqual(self.registry.get_tags_by_department("Emergency"), ["EM-01", "ER-01", "ER-02"])
        self.assertIsNone(self.store.get(DEPARTMENTS_COLLECTION, "er"))
        self.assertEqual(self.registry.get_departments(), ["Emergency"])

    def test_rename_department_with_same_key_updates_display_name(self):
        self.registry.rename_department("ER", " er ")

        self.assertEqual(self.registry.get_departments(), ["er"])
        self.assertEqual(self.registry.get_tags_by_department("ER"), ["ER-01", "ER-02"])

    def test_delete_department(self):
        self.assertTrue(self.registry.delete_department("ER"))
        self.assertFalse(self.registry.delete_department("ER"))
        self.assertEqual(self.registry.get_departments(), [])

    def test_malformed_records_are_skipped(self):
        self.store.upsert_by_id(DEPARTMENTS_COLLECTION, "broken", {"tags": ["X-01"]})

        self.assertEqual(self.registry.get_departments(), ["ER"])


class TagValidatorTests(TestCase):
    def setUp(self):
        self.store = DocumentStoreClient()
        self.registry = RegistryStore(self.store, cache=NullTagCache())
        self.registry.add_tags("ER", ["ER-01", "ER-02"])
        self.registry.add_tags("OR", ["OR-01", "SHARED-01"])
        self.registry.add_tags("Dental", ["SHARED-01"])
        self.validator = TagValidator(self.registry)

    def test_is_valid_tag_is_set_membership(self):
        self.assertTrue(self.validator.is_valid_tag("ER-01", "ER"))
        self.assertTrue(self.validator.is_valid_tag(" ER-01 ", " er "))
        self.assertFalse(self.validator.is_valid_tag("er-01", "ER"))
        self.assertFalse(self.validator.is_valid_tag("ER-99", "ER"))
        self.assertFalse(self.validator.is_valid_tag("ER-01", "OR"))
        self.assertFalse(self.validator.is_valid_tag("ER-01", "Radiology"))
        self.assertFalse(self.validator.is_valid_tag("", "ER"))

    def test_lookup_failure_rejects_the_tag(self):
        with patch.object(self.store, "list_entries", side_effect=DocumentStoreError("down")):
            self.assertFalse(self.validator.is_valid_tag("ER-01", "ER"))
            self.assertEqual(self.validator.find_department_for_tag("ER-01"), "unspecified")

    def test_find_department_for_tag_returns_first_by_name(self):
        self.assertEqual(self.validator.find_department_for_tag("ER-02"), "ER")
        self.assertEqual(self.validator.find_department_for_tag("SHARED-01"), "Dental")

    def test_resolve_department_returns_registry_name_or_none(self):
        self.assertEqual(self.validator.resolve_department("ER-01", "  er "), "ER")
        self.assertEqual(self.validator.resolve_department("OR-01"), "OR")
        self.assertIsNone(self.validator.resolve_department("ER-01", "OR"))
        self.assertIsNone(self.validator.resolve_department("XRAY-01"))

    def test_department_named_like_the_placeholder_is_still_a_department(self):
        self.registry.add_tags("unspecified", ["SPARE-01"])

        self.assertEqual(self.validator.resolve_department("SPARE-01"), "unspecified")
        self.assertTrue(self.validator.is_valid_tag("SPARE-01", "unspecified"))

    @override_settings(TRACKER_UNSPECIFIED_DEPARTMENT="n/a")
    def test_find_department_for_unknown_tag_returns_sentinel(self):
        self.assertEqual(self.validator.find_department_for_tag("XRAY-01"), "n/a")

    def test_renamed_department_moves_tag_validity(self):
        self.registry.rename_department("ER", "Emergency")

        self.assertTrue(self.validator.is_valid_tag("ER-01", "Emergency"))
        self.assertFalse(self.validator.is_valid_tag("ER-01", "ER"))


@override_settings(CACHES=TEST_CACHES)
class TagCacheTests(TestCase):
    def setUp(self):
        caches["default"].clear()
        self.store = DocumentStoreClient()
        self.cache = TagCache(ttl=60)
        self.registry = RegistryStore(self.store, cache=self.cache)
        self.registry.add_tags("ER", ["ER-01"])

    def test_ttl_must_be_bounded(self):
        with self.assertRaises(ValueError):
            TagCache(ttl=0)

    def test_reads_are_served_from_cache_until_invalidated(self):
        validator = TagValidator(self.registry)
        self.assertFalse(validator.is_valid_tag("ER-02", "ER"))

        # Written behind the registry's back, as another process would.
        self.store.upsert_by_id(DEPARTMENTS_COLLECTION, "er", {"department": "ER", "tags": ["ER-01", "ER-02"]})
        self.assertFalse(validator.is_valid_tag("ER-02", "ER"))

        self.cache.invalidate()
        self.assertTrue(validator.is_valid_tag("ER-02", "ER"))

    def test_registry_writes_invalidate_cache(self):
        validator = TagValidator(self.registry)
        self.assertFalse(validator.is_valid_tag("ER-02", "ER"))

        self.registry.add_tags("ER", ["ER-02"])

        self.assertTrue(validator.is_valid_tag("ER-02", "ER"))

    def test_cache_entries_are_set_with_ttl(self):
        with patch.object(caches["default"], "set") as mock_set:
            self.cache.invalidate()
            self.registry.snapshot()

        mock_set.assert_called_once()
        self.assertEqual(mock_set.call_args.kwargs["timeout"], 60)

    def test_null_cache_never_stores(self):
        cache = NullTagCache()
        cache.set({"er": object()})

        self.assertIsNone(cache.get())
        self.assertEqual(cache.get_or_load(lambda: {"loaded": True}), {"loaded": True})
