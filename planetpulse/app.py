"""Core Qt + Vispy application logic for the PlanetPulse globe."""

from __future__ import annotations

import os
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, List, Optional, Sequence

from PyQt6 import QtCore

from .constants import DEBUG_ENV_VAR, FEED_MAX_POINTS, FEED_TIMEOUT_SECONDS, FEED_URL
from .diagnostics import log, warn
from .engine import GlobeEngine
from .errors import PlanetPulseError
from .feed import FeedClient, FeedLoader, sample_entities
from .hover import PlanetPulseHoverMixin
from .metrics import CITIES, DatasetProfile
from .models import Entity, Notice, ViewState
from .sample_data import city_entities
from .status import PlanetPulseStatusMixin
from .ui import PlanetPulseUIMixin


class PlanetPulseApp(
    PlanetPulseStatusMixin,
    PlanetPulseHoverMixin,
    PlanetPulseUIMixin,
):
    """Qt + Vispy app showing a dataset profile on a spinning globe."""

    def __init__(
        self,
        root: Any,
        profile: DatasetProfile,
        *,
        metric_id: Optional[str] = None,
        window_days: Optional[float] = None,
        spinning: bool = True,
        offline: bool = False,
        feed_url: str = FEED_URL,
        timeout: float = FEED_TIMEOUT_SECONDS,
        max_points: Optional[int] = FEED_MAX_POINTS,
    ) -> None:
        self._startup_debug_log_enabled = bool(os.environ.get(DEBUG_ENV_VAR))
        self._startup_start_time = time.perf_counter()
        self._log_startup("PlanetPulseApp.__init__ begin")

        self.root = root
        self.profile = profile
        self.offline = bool(offline or not profile.live_feed)
        self.view_state = ViewState(
            active_metric_id=metric_id or profile.default_metric,
            time_window_days=float(window_days if window_days is not None else profile.default_window_days),
            is_spinning=bool(spinning),
        )
        self._selected_entity: Optional[Entity] = None

        self._initialise_ui_variables()
        self._initialise_status_dispatcher()
        self._build_ui()
        self._log_startup("UI built")

        self.engine = GlobeEngine(profile, self.substrate, view_state=self.view_state)
        self.engine.on_hover(self._handle_hover_entity)
        self.engine.on_select(self._apply_selection)
        self.engine.on_stats(self._apply_stats)
        self.engine.on_legend(self._apply_legend)
        self.engine.on_notice(self._show_notice)
        self.engine.on_spin_change(self._apply_spin_state)
        self.engine.set_reload_handler(self._load_data)
        self._apply_spin_state(self.view_state.is_spinning)
        self._apply_legend(self.engine.legend())
        self._log_startup("engine wired")

        self._io_executor: Optional[ThreadPoolExecutor] = None
        self.feed_loader: Optional[FeedLoader] = None
        if not self.offline:
            self._io_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="planetpulse-feed")
            self.feed_loader = FeedLoader(
                FeedClient(feed_url, timeout=timeout, max_points=max_points),
                self._io_executor,
                dispatch=self._invoke_on_main_thread,
                call_later=self._call_later,
                on_loaded=self._on_entities_loaded,
            )

        self._connect_scene()
        self._register_bindings()
        self.engine.start()
        self._log_startup("bindings registered; frame loop started")
        self._post_ui_initialisation()
        self._log_startup("PlanetPulseApp.__init__ complete")

    def _log_startup(self, label: str) -> None:
        if getattr(self, "_startup_debug_log_enabled", False):
            elapsed = time.perf_counter() - getattr(self, "_startup_start_time", time.perf_counter())
            print(f"[startup-debug] {label}: {elapsed:.3f}s")

    def _post_ui_initialisation(self) -> None:
        """Defer the first load so the window paints before any work happens."""
        self._set_loading(True, "Loading data…")
        QtCore.QTimer.singleShot(100, self._load_data)

    def _bundled_entities(self) -> List[Entity]:
        if self.profile.name == CITIES.name:
            return city_entities()
        return sample_entities()

    def _load_data(self) -> None:
        self.error_overlay.hide()
        if self.feed_loader is not None:
            if self.feed_loader.in_flight:
                log("PlanetPulse", "Reload ignored; a fetch is already in flight")
                return
            self._set_loading(True, "Fetching live data…")
            self._set_status(f"Fetching {self.profile.entity_noun}…")
            self.feed_loader.load()
            return
        self._set_loading(True, "Loading bundled data…")
        try:
            entities = self._bundled_entities()
        except PlanetPulseError as exc:
            self._on_load_failed(str(exc))
            return
        self._on_entities_loaded(entities, None, "sample")

    def _on_entities_loaded(self, entities: Sequence[Entity], notice: Optional[Notice], source: str) -> None:
        self._set_loading(False)
        try:
            self.engine.load_entities(entities, notice, source)
        except (PlanetPulseError, ValueError) as exc:
            self._on_load_failed(str(exc))
            return
        origin = "live USGS feed" if source == "live" else "bundled sample data"
        self.title_bar.set_subtitle(f"{len(entities)} {self.profile.entity_noun} · {origin}")
        if notice is None:
            self._show_notice("Globe ready")
        self._refresh_fallback_listing()

    def _on_load_failed(self, message: str) -> None:
        warn("PlanetPulse", f"Could not load data: {message}")
        self._set_loading(False)
        self._set_status("Failed to load data")
        self.error_overlay.show_error(message)

    def _on_reload_requested(self) -> None:
        self.engine.reload()


__all__ = ["PlanetPulseApp"]
