# network_pipeline/log.py
#
# Shared loader logger with elapsed time. Plain stdout, flushed per line.
from __future__ import annotations

import sys
import time

_start = time.monotonic()


def log(message: str) -> None:
    """Write a timestamped log line to stdout."""
    elapsed = time.monotonic() - _start
    minutes, seconds = divmod(int(elapsed), 60)
    sys.stdout.write(f"[pipeline {minutes:02d}:{seconds:02d}] {message}\n")
    sys.stdout.flush()
