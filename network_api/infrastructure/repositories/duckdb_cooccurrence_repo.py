# network_api/infrastructure/repositories/duckdb_cooccurrence_repo.py
from __future__ import annotations

import duckdb

from network_api.domain.network.entities import CooccurrenceEdge
from network_api.domain.network.errors import UpstreamUnavailableError

_COLUMNS = """
    entity_a_id, entity_b_id, total_shared_case_count,
    invite_cooccurrence_count, response_cooccurrence_count,
    jaccard_score, relationship_strength
"""


class DuckDBCooccurrenceRepo:
    def __init__(self, conn: duckdb.DuckDBPyConnection) -> None:
        self._conn = conn

    def list_edges(
        self,
        min_strength: float,
        limit: int,
        entity_id: str | None = None,
    ) -> list[CooccurrenceEdge]:
        if entity_id is None:
            sql = f"""
                SELECT {_COLUMNS}
                FROM entity_cooccurrence
                WHERE relationship_strength >= ?
                ORDER BY relationship_strength DESC, entity_a_id, entity_b_id
                LIMIT ?
            """  # noqa: S608
            params: list[object] = [min_strength, limit]
        else:
            sql = f"""
                SELECT {_COLUMNS}
                FROM entity_cooccurrence
                WHERE relationship_strength >= ?
                  AND (entity_a_id = ? OR entity_b_id = ?)
                ORDER BY relationship_strength DESC, entity_a_id, entity_b_id
                LIMIT ?
            """  # noqa: S608
            params = [min_strength, entity_id, entity_id, limit]
        return [self._hydrate(r) for r in self._fetch(sql, params)]

    def list_neighbors(self, entity_id: str, limit: int) -> list[CooccurrenceEdge]:
        sql = f"""
            SELECT {_COLUMNS}
            FROM entity_cooccurrence
            WHERE entity_a_id = ? OR entity_b_id = ?
            ORDER BY relationship_strength DESC, entity_a_id, entity_b_id
            LIMIT ?
        """  # noqa: S608
        return [self._hydrate(r) for r in self._fetch(sql, [entity_id, entity_id, limit])]

    def sample_ids(self, limit: int) -> list[str]:
        rows = self._fetch(
            """
            WITH sampled AS (
                SELECT entity_a_id, entity_b_id
                FROM entity_cooccurrence
                ORDER BY entity_a_id, entity_b_id
                LIMIT ?
            )
            SELECT entity_a_id FROM sampled
            UNION
            SELECT entity_b_id FROM sampled
            """,
            [limit],
        )
        return sorted(str(r[0]) for r in rows)

    def _fetch(self, sql: str, params: list[object]) -> list[tuple]:  # type: ignore[type-arg]
        # cursor() gives each worker thread its own handle on the same database.
        try:
            with self._conn.cursor() as cur:
                return cur.execute(sql, params).fetchall()
        except duckdb.Error as err:
            raise UpstreamUnavailableError(f"Co-occurrence store query failed: {err}") from err

    def _hydrate(self, row: tuple) -> CooccurrenceEdge:  # type: ignore[type-arg]
        return CooccurrenceEdge(
            entity_a_id=str(row[0]),
            entity_b_id=str(row[1]),
            shared_case_count=int(row[2]) if row[2] is not None else 0,
            invite_cooccurrence_count=int(row[3]) if row[3] is not None else 0,
            response_cooccurrence_count=int(row[4]) if row[4] is not None else 0,
            jaccard_score=float(row[5]) if row[5] is not None else 0.0,
            relationship_strength=float(row[6]),
        )
