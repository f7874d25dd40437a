# network_pipeline/config.py
#
# Snapshot loader configuration loaded from environment variables.
#
# Design decisions:
#   - Frozen dataclass, same as the API settings; pydantic stays in the API
#     layer.
#   - SNAPSHOT_BASE_URL has no default: the loader refuses to run without a
#     source instead of silently building an empty database.
#   - Paths default to network_pipeline/data so a fresh checkout works.
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

_PIPELINE_DIR = Path(__file__).parent


@dataclass(frozen=True)
class PipelineConfig:
    """Immutable loader configuration.

    Invariants:
      - snapshot_base_url is non-empty (enforced by load_config).
      - download_timeout, download_retries and page_size are positive.
    """

    data_dir: Path
    snapshot_base_url: str
    duckdb_output_path: Path
    snapshot_api_key: str | None = None
    download_timeout: int = 60
    download_retries: int = 3
    page_size: int = 1000

    @property
    def raw_dir(self) -> Path:
        return self.data_dir / "raw"

    @property
    def staging_dir(self) -> Path:
        return self.data_dir / "staging"


def load_config() -> PipelineConfig:
    """Build PipelineConfig from environment variables.

    Raises:
        ValueError: if SNAPSHOT_BASE_URL is not set.
    """
    base_url = os.environ.get("SNAPSHOT_BASE_URL", "").strip()
    if not base_url:
        raise ValueError(
            "SNAPSHOT_BASE_URL environment variable is required. "
            "Point it at the PostgREST endpoint exposing entities and entity_cooccurrence."
        )

    data_dir = Path(os.environ.get("PIPELINE_DATA_DIR", str(_PIPELINE_DIR / "data")))
    duckdb_output_path = Path(
        os.environ.get("DUCKDB_OUTPUT_PATH", str(data_dir / "output" / "entity_network.duckdb"))
    )

    return PipelineConfig(
        data_dir=data_dir,
        snapshot_base_url=base_url.rstrip("/"),
        duckdb_output_path=duckdb_output_path,
        snapshot_api_key=os.environ.get("SNAPSHOT_API_KEY") or None,
        download_timeout=int(os.environ.get("PIPELINE_DOWNLOAD_TIMEOUT", "60")),
        download_retries=int(os.environ.get("PIPELINE_DOWNLOAD_RETRIES", "3")),
        page_size=int(os.environ.get("PIPELINE_PAGE_SIZE", "1000")),
    )
