# network_pipeline/main.py
#
# Loader orchestrator: download -> parse -> validate -> stage -> build.
#
# Design decisions:
#   - run_pipeline is the single entry point. skip_download builds straight
#     from existing staging parquets (used by tests and for rebuilding after a
#     schema change without hitting the network).
#   - Entities are validated first; their ids gate which edges survive.
#   - The loader imports an externally computed snapshot. It never derives
#     co-occurrence statistics itself.
#
# Invariant: the DuckDB file is only replaced when every step succeeded.
from __future__ import annotations

import argparse
from pathlib import Path

import httpx

from network_pipeline.config import PipelineConfig, load_config
from network_pipeline.log import log
from network_pipeline.output.build_duckdb import build_duckdb, validate_tables
from network_pipeline.sources.snapshot.download import download_snapshot
from network_pipeline.sources.snapshot.parse import parse_cooccurrence, parse_entities
from network_pipeline.sources.snapshot.validate import validate_cooccurrence, validate_entities
from network_pipeline.staging.parquet_writer import write_parquet


def run_pipeline(
    config: PipelineConfig,
    *,
    skip_download: bool = False,
    client: httpx.Client | None = None,
) -> Path:
    """Execute the loader and produce the DuckDB database.

    Args:
        config:        Loader configuration.
        skip_download: Build from existing staging parquets only.
        client:        Optional httpx client for the download step.

    Returns:
        Path to the final DuckDB database file.
    """
    config.staging_dir.mkdir(parents=True, exist_ok=True)

    if not skip_download:
        log("Downloading snapshot...")
        raw_paths = download_snapshot(config, client=client)
        _stage(raw_paths, config.staging_dir)

    log("Building DuckDB...")
    output_path = build_duckdb(config.staging_dir, config.duckdb_output_path)
    for table, count in validate_tables(output_path).items():
        log(f"  {table}: {count:,} rows")
    log(f"Done. DuckDB written to: {output_path}")
    return output_path


def _stage(raw_paths: dict[str, Path], staging_dir: Path) -> None:
    entities = validate_entities(parse_entities(raw_paths["entities"]))
    write_parquet(entities, staging_dir / "entities.parquet")
    log(f"  Staged entities: {len(entities):,} rows")

    raw_edges = parse_cooccurrence(raw_paths["entity_cooccurrence"])
    edges = validate_cooccurrence(raw_edges, entities["id"])
    write_parquet(edges, staging_dir / "cooccurrence.parquet")
    log(f"  Staged co-occurrence: {len(edges):,} rows ({len(raw_edges) - len(edges):,} dropped)")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Load the entity co-occurrence snapshot into DuckDB.")
    parser.add_argument(
        "--skip-download",
        action="store_true",
        help="build from existing staging parquets",
    )
    args = parser.parse_args(argv)
    run_pipeline(load_config(), skip_download=args.skip_download)


if __name__ == "__main__":
    main()
