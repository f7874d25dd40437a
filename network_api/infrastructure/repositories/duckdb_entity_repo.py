# network_api/infrastructure/repositories/duckdb_entity_repo.py
from __future__ import annotations

from collections.abc import Iterable

import duckdb

from network_api.domain.network.entities import Entity
from network_api.domain.network.enums import EntityType
from network_api.domain.network.errors import UpstreamUnavailableError


class DuckDBEntityRepo:
    """EntityCatalog backed by the `entities` table.

    Callers chunk large id sets; this class runs one IN (...) query per call.
    """

    def __init__(self, conn: duckdb.DuckDBPyConnection) -> None:
        self._conn = conn

    def find_by_ids(self, ids: Iterable[str]) -> list[Entity]:
        id_list = list(dict.fromkeys(ids))
        if not id_list:
            return []
        placeholders = ",".join(["?"] * len(id_list))
        try:
            with self._conn.cursor() as cur:
                rows = cur.execute(
                    f"""
                    SELECT id, name, entity_type
                    FROM entities
                    WHERE id IN ({placeholders})
                """,  # noqa: S608
                    id_list,
                ).fetchall()
        except duckdb.Error as err:
            raise UpstreamUnavailableError(f"Entity catalog lookup failed: {err}") from err
        return [
            Entity(id=str(r[0]), name=str(r[1]), entity_type=EntityType.from_raw(r[2]))
            for r in rows
        ]
