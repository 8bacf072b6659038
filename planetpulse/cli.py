"""Command-line interface helpers for the PlanetPulse globe."""

from __future__ import annotations

import argparse
import sys
from typing import Optional, Sequence

from .constants import FEED_MAX_POINTS, FEED_TIMEOUT_SECONDS, FEED_URL
from .errors import PlanetPulseError, RenderSubstrateInitFailure
from .metrics import PROFILES, DatasetProfile, get_profile
from .startup_checks import run_startup_checks


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Interactive 3D globe of geolocated metrics")
    parser.add_argument(
        "--dataset",
        choices=sorted(PROFILES),
        default="earthquakes",
        help="Dataset to display (default: earthquakes)",
    )
    parser.add_argument(
        "--metric",
        default=None,
        help="Metric to encode on start (default: the dataset's primary metric)",
    )
    parser.add_argument(
        "--days",
        type=int,
        default=None,
        help="Initial time window in days (clamped to the dataset's range)",
    )
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Skip the live feed and show the bundled sample data",
    )
    parser.add_argument("--feed-url", default=FEED_URL, help="GeoJSON feed to fetch")
    parser.add_argument(
        "--timeout",
        type=float,
        default=FEED_TIMEOUT_SECONDS,
        help=f"Seconds to wait for the feed before falling back (default: {FEED_TIMEOUT_SECONDS:g})",
    )
    parser.add_argument(
        "--max-points",
        type=int,
        default=FEED_MAX_POINTS,
        help="Keep only this many of the largest events from the feed",
    )
    parser.add_argument("--no-spin", action="store_true", help="Start with the globe rotation paused")
    parser.add_argument("--skip-checks", action="store_true", help="Skip the startup dependency checks")
    return parser.parse_args(argv)


def resolve_window_days(profile: DatasetProfile, days: Optional[int]) -> float:
    if days is None:
        return float(profile.default_window_days)
    lower, upper = profile.window_range
    return float(min(max(days, lower), upper))


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    if not args.skip_checks:
        try:
            run_startup_checks()
        except RenderSubstrateInitFailure as exc:
            print(f"[startup] {exc}; the globe will fall back to a text listing", file=sys.stderr)

    profile = get_profile(args.dataset)
    if args.metric is not None and args.metric not in profile.metrics:
        raise SystemExit(f"Unknown metric '{args.metric}' for {args.dataset}; choose from {', '.join(profile.metrics)}")
    if args.timeout <= 0:
        raise SystemExit("--timeout must be positive")
    if args.max_points is not None and args.max_points <= 0:
        raise SystemExit("--max-points must be positive")

    from .app import PlanetPulseApp
    from .ui import create_root, run_mainloop, show_error

    root = create_root()
    try:
        app = PlanetPulseApp(
            root,
            profile,
            metric_id=args.metric,
            window_days=resolve_window_days(profile, args.days),
            spinning=not args.no_spin,
            offline=args.offline,
            feed_url=args.feed_url,
            timeout=args.timeout,
            max_points=args.max_points,
        )
    except PlanetPulseError as exc:
        show_error("PlanetPulse", str(exc))
        raise SystemExit(1) from exc
    try:
        run_mainloop(root)
    finally:
        app.engine.dispose()


__all__ = [
    "parse_args",
    "resolve_window_days",
    "main",
]
