"""Startup automation for dependency and rendering-backend validation."""

from __future__ import annotations

import importlib.metadata as importlib_metadata
from typing import Iterable, List, Sequence

from .errors import RenderSubstrateInitFailure

REQUIRED_DISTRIBUTIONS: Sequence[str] = ("numpy", "vispy", "PyQt6", "requests")
OPTIONAL_DISTRIBUTIONS: Sequence[str] = ("qtawesome",)


def _missing_distributions(names: Iterable[str]) -> List[str]:
    missing: List[str] = []
    for name in names:
        normalized = name.replace("_", "-")
        try:
            importlib_metadata.distribution(normalized)
        except importlib_metadata.PackageNotFoundError:
            missing.append(name)
    return missing


def ensure_requirements_installed(required: Sequence[str] = REQUIRED_DISTRIBUTIONS) -> None:
    missing = _missing_distributions(required)
    if missing:
        message = f"[startup] Missing required packages: {', '.join(missing)}. Install them with: pip install {' '.join(missing)}"
        raise SystemExit(message)
    print("[startup] All required Python packages already installed")
    optional_missing = _missing_distributions(OPTIONAL_DISTRIBUTIONS)
    if optional_missing:
        print(f"[startup] Optional packages not installed: {', '.join(optional_missing)}")


def ensure_render_backend(backend: str = "pyqt6") -> None:
    """Select the vispy GUI backend, raising ``RenderSubstrateInitFailure`` if it is unusable."""
    try:
        from vispy import app

        app.use_app(backend)
    except Exception as exc:
        raise RenderSubstrateInitFailure(f"vispy backend '{backend}' is unavailable: {exc}") from exc
    print(f"[startup] vispy backend '{backend}' ready")


def run_startup_checks() -> None:
    ensure_requirements_installed()
    ensure_render_backend()


__all__ = [
    "REQUIRED_DISTRIBUTIONS",
    "ensure_requirements_installed",
    "ensure_render_backend",
    "run_startup_checks",
]
