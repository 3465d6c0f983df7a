from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable

from rest_framework import serializers

from docstore.client import StoredDocument

logger = logging.getLogger(__name__)

WHITESPACE_RE = re.compile(r"\s+")


def normalize_department_key(name: str) -> str:
    return WHITESPACE_RE.sub("-", (name or "").strip().lower())


def clean_tags(tags: Iterable) -> list[str]:
    return sorted({tag.strip() for tag in tags if isinstance(tag, str) and tag.strip()})


@dataclass(frozen=True)
class DepartmentEntry:
    key: str
    name: str
    tags: frozenset[str]


class DepartmentRecordSerializer(serializers.Serializer):
    department = serializers.CharField()
    tags = serializers.ListField(required=False, default=list)

    def validate_tags(self, value):
        return clean_tags(value)


def decode_department(document: StoredDocument) -> DepartmentEntry | None:
    serializer = DepartmentRecordSerializer(data=document.data)
    if not serializer.is_valid():
        logger.warning(
            "Skipping malformed department record",
            extra={"doc_id": document.id, "errors": serializer.errors},
        )
        return None

    return DepartmentEntry(
        key=document.id,
        name=serializer.validated_data["department"],
        tags=frozenset(serializer.validated_data["tags"]),
    )
