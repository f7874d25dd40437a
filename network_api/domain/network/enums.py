# network_api/domain/network/enums.py
from __future__ import annotations

from enum import Enum


class EntityType(str, Enum):
    ORGANIZATION = "organization"
    PERSON = "person"
    COMMITTEE = "committee"
    GOVERNMENT_BODY = "government_body"
    POLITICAL_PARTY = "political_party"
    OTHER = "other"

    @classmethod
    def from_raw(cls, raw: str | None) -> EntityType:
        """Catalog values outside the closed set are kept as OTHER, not dropped."""
        if raw is None:
            return cls.OTHER
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return cls.OTHER
