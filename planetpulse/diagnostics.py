"""Tagged console diagnostics shared across the package."""

from __future__ import annotations

import os
import sys
import time

from .constants import DEBUG_ENV_VAR

_START_TIME = time.perf_counter()


def debug_enabled() -> bool:
    return bool(os.environ.get(DEBUG_ENV_VAR))


def log(tag: str, message: str) -> None:
    print(f"[{tag}] {message}")


def warn(tag: str, message: str) -> None:
    print(f"[{tag}] {message}", file=sys.stderr)


def log_debug(tag: str, message: str) -> None:
    if debug_enabled():
        elapsed = time.perf_counter() - _START_TIME
        print(f"[debug] {tag}: {message} ({elapsed:.3f}s)")


__all__ = ["debug_enabled", "log", "warn", "log_debug"]
