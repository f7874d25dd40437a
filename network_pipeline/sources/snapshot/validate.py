# network_pipeline/sources/snapshot/validate.py
#
# Validate and clean the parsed snapshot tables.
#
# Design decisions:
#   - Entities: null/blank ids are dropped, a missing name falls back to the
#     id, entity_type is lower-cased and a missing one becomes "other".
#     Duplicate ids keep the first row.
#   - Co-occurrence rows are unordered pairs. (a, b) and (b, a) describe the
#     same relationship; only the strongest row of a pair survives.
#   - Counts default to 0 when null. A negative count is corrupt data and the
#     whole row is dropped, not clamped.
#   - jaccard_score is clamped into [0, 1]; a null score stays null and is
#     read back as 0.0 by the API.
#   - Edges whose endpoints are not in the entity table are dropped here, so
#     the served snapshot never references a missing entity at load time.
#
# Invariants:
#   - entity_a_id != entity_b_id and both are non-null in every surviving row.
#   - relationship_strength is finite and non-null.
#   - At most one row per unordered pair.
from __future__ import annotations

import polars as pl

_COUNT_COLUMNS = (
    "cooccurrence_count",
    "total_shared_case_count",
    "invite_cooccurrence_count",
    "response_cooccurrence_count",
)


def validate_entities(df: pl.DataFrame) -> pl.DataFrame:
    df = df.with_columns(pl.col("id").str.strip_chars().alias("id"))
    df = df.filter(pl.col("id").is_not_null() & (pl.col("id") != ""))
    df = df.with_columns(
        pl.coalesce(pl.col("name"), pl.col("id")).alias("name"),
        pl.col("entity_type").str.strip_chars().str.to_lowercase().fill_null("other").alias("entity_type"),
    )
    return df.unique(subset=["id"], keep="first", maintain_order=True)


def validate_cooccurrence(df: pl.DataFrame, entity_ids: pl.Series | None = None) -> pl.DataFrame:
    """Clean co-occurrence rows.

    Args:
        df:         DataFrame returned by parse_cooccurrence().
        entity_ids: Ids of the validated entity table. When given, edges with
                    an endpoint outside it are dropped.
    """
    a, b = pl.col("entity_a_id"), pl.col("entity_b_id")
    df = df.with_columns(a.str.strip_chars(), b.str.strip_chars())
    df = df.filter(a.is_not_null() & b.is_not_null() & (a != "") & (b != "") & (a != b))

    strength = pl.col("relationship_strength")
    df = df.filter(strength.is_not_null() & strength.is_finite())

    df = df.with_columns(pl.col(c).fill_null(0) for c in _COUNT_COLUMNS)
    df = df.filter(pl.all_horizontal(pl.col(c) >= 0 for c in _COUNT_COLUMNS))

    df = df.with_columns(pl.col("jaccard_score").clip(0.0, 1.0).alias("jaccard_score"))

    if entity_ids is not None:
        known = pl.DataFrame({"_id": entity_ids.cast(pl.Utf8)})
        df = df.join(known, left_on="entity_a_id", right_on="_id", how="semi").join(
            known, left_on="entity_b_id", right_on="_id", how="semi"
        )

    return (
        df.with_columns(
            pl.when(a < b).then(a).otherwise(b).alias("_lo"),
            pl.when(a < b).then(b).otherwise(a).alias("_hi"),
        )
        .sort(["relationship_strength", "entity_a_id", "entity_b_id"], descending=[True, False, False])
        .unique(subset=["_lo", "_hi"], keep="first", maintain_order=True)
        .drop(["_lo", "_hi"])
    )
