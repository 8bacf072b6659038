from planetpulse.cli import parse_args, resolve_window_days
from planetpulse.constants import FEED_MAX_POINTS
from planetpulse.metrics import CITIES, EARTHQUAKES


def test_parse_args_defaults() -> None:
    args = parse_args([])
    assert args.dataset == "earthquakes"
    assert args.metric is None
    assert args.days is None
    assert not args.offline
    assert not args.no_spin
    assert args.max_points == FEED_MAX_POINTS


def test_parse_args_flags() -> None:
    args = parse_args(["--dataset", "cities", "--metric", "emissions", "--days", "90", "--offline", "--no-spin"])
    assert args.dataset == "cities"
    assert args.metric == "emissions"
    assert args.days == 90
    assert args.offline
    assert args.no_spin


def test_resolve_window_days_clamps_to_profile_range() -> None:
    assert resolve_window_days(EARTHQUAKES, None) == 30.0
    assert resolve_window_days(EARTHQUAKES, 0) == 1.0
    assert resolve_window_days(EARTHQUAKES, 90) == 30.0
    assert resolve_window_days(EARTHQUAKES, 7) == 7.0
    assert resolve_window_days(CITIES, 10) == 30.0
    assert resolve_window_days(CITIES, None) == 3650.0
