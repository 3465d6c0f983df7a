from __future__ import annotations

import logging
from typing import Iterable

from docstore.client import DocumentStoreClient
from registry.cache import NullTagCache
from registry.serializers import DepartmentEntry, clean_tags, decode_department, normalize_department_key

logger = logging.getLogger(__name__)

DEPARTMENTS_COLLECTION = "departments"


class UnknownDepartmentError(LookupError):
    pass


class RegistryStore:
    def __init__(self, client: DocumentStoreClient | None = None, cache=None):
        self.client = client or DocumentStoreClient()
        self.cache = cache if cache is not None else NullTagCache()

    def _load(self) -> dict[str, DepartmentEntry]:
        entries = {}
        for document in self.client.list_entries(DEPARTMENTS_COLLECTION):
            entry = decode_department(document)
            if entry is not None:
                entries[entry.key] = entry
        return entries

    def snapshot(self) -> dict[str, DepartmentEntry]:
        return self.cache.get_or_load(self._load)

    def get_entry(self, department: str) -> DepartmentEntry | None:
        return self.snapshot().get(normalize_department_key(department))

    def get_departments(self) -> list[str]:
        return sorted({entry.name for entry in self.snapshot().values()})

    def get_tags_by_department(self, department: str) -> list[str]:
        entry = self.get_entry(department)
        return sorted(entry.tags) if entry else []

    def _read(self, key: str) -> DepartmentEntry | None:
        document = self.client.get(DEPARTMENTS_COLLECTION, key)
        return decode_department(document) if document else None

    def _write(self, key: str, name: str, tags: Iterable[str]) -> DepartmentEntry:
        cleaned = clean_tags(tags)
        self.client.upsert_by_id(DEPARTMENTS_COLLECTION, key, {"department": name, "tags": cleaned})
        self.cache.invalidate()
        return DepartmentEntry(key=key, name=name, tags=frozenset(cleaned))

    def _require(self, department: str) -> DepartmentEntry:
        entry = self._read(normalize_department_key(department))
        if entry is None:
            raise UnknownDepartmentError(f"Unknown department: {department!r}")
        return entry

    def add_tags(self, department: str, tags: Iterable[str]) -> DepartmentEntry:
        name = (department or "").strip()
        if not name:
            raise ValueError("Department name is required")

        key = normalize_department_key(name)
        current = self._read(key)
        existing = current.tags if current else frozenset()
        entry = self._write(key, name, [*existing, *tags])
        logger.info("Registry tags added", extra={"department": name, "tag_count": len(entry.tags)})
        return entry

    def remove_tag(self, department: str, tag: str) -> DepartmentEntry:
        entry = self._require(department)
        return self._write(entry.key, entry.name, [item for item in entry.tags if item != tag.strip()])

    def rename_tag(self, department: str, old_tag: str, new_tag: str) -> DepartmentEntry:
        entry = self._require(department)
        if old_tag.strip() not in entry.tags:
            raise LookupError(f"Tag {old_tag!r} is not registered under {entry.name!r}")
        tags = [item for item in entry.tags if item != old_tag.strip()]
        return self._write(entry.key, entry.name, [*tags, new_tag])

    def rename_department(self, old_name: str, new_name: str) -> DepartmentEntry:
        name = (new_name or "").strip()
        if not name:
            raise ValueError("Department name is required")

        source = self._require(old_name)
        target_key = normalize_department_key(name)
        if target_key == source.key:
            return self._write(source.key, name, source.tags)

        target = self._read(target_key)
        merged = [*source.tags, *(target.tags if target else ())]
        entry = self._write(target_key, name, merged)
        self.client.delete_by_id(DEPARTMENTS_COLLECTION, source.key)
        self.cache.invalidate()
        logger.info("Department renamed", extra={"from": source.name, "to": name})
        return entry

    def delete_department(self, department: str) -> bool:
        deleted = self.client.delete_by_id(DEPARTMENTS_COLLECTION, normalize_department_key(department))
        self.cache.invalidate()
        return bool(deleted)
