"""UI, feed and globe constants for the PlanetPulse viewer."""

from __future__ import annotations

import os

UI_BACKGROUND = "#05060b"
UI_SURFACE = "#0b1020"
UI_ACCENT = "#66d9ff"
UI_TEXT_PRIMARY = "#dce9ff"
UI_TEXT_MUTED = "#7ca2d8"
UI_ERROR = "#ef4444"

# USGS summary feed: past 30 days, magnitude 2.5+
DEFAULT_FEED_URL = "https://earthquake.usgs.gov/earthquakes/feed/v1.0/summary/2.5_month.geojson"
FEED_URL = os.environ.get("PLANETPULSE_FEED_URL", DEFAULT_FEED_URL)
FEED_TIMEOUT_SECONDS = float(os.environ.get("PLANETPULSE_FEED_TIMEOUT", "10"))
FEED_MAX_POINTS = 500
DEBUG_ENV_VAR = "PLANETPULSE_DEBUG"

MILLIS_PER_DAY = 24 * 60 * 60 * 1000
DEFAULT_TIME_WINDOW_DAYS = 30
TIME_WINDOW_RANGE = (1, 30)

GLOBE_RADIUS = 1.0
GLOBE_SEGMENTS = 64
MARKER_ALTITUDE = 1.02
CAMERA_DISTANCE = 2.5
CAMERA_MIN_DISTANCE = 1.5
CAMERA_MAX_DISTANCE = 5.0
CAMERA_FOV = 45.0
CAMERA_DAMPING = 0.05
CAMERA_ROTATE_SPEED = 0.5

# Radians per frame, not per second
ROTATION_SPEED = 0.0008

STARFIELD_COUNT = 2000
STARFIELD_RADIUS = 50.0

# Marker sizes are in screen pixels; MARKER_WORLD_SCALE converts them for picking
MARKER_PIXEL_SIZE = (8.0, 24.0)
MARKER_WORLD_SCALE = 1.0 / 400.0
MARKER_PICK_RADIUS = 0.5

IDLE_OPACITY = 0.9
HIGHLIGHT_OPACITY = 1.0
HOVER_SCALE = 1.15
SELECT_SCALE = 1.3

PULSE_THRESHOLD = 6.0
PULSE_AMPLITUDE = 0.15
PULSE_FREQUENCY = 3.0

RESIZE_DEBOUNCE_SECONDS = 0.1
FRAME_INTERVAL_SECONDS = 1.0 / 60.0
STATUS_AUTO_HIDE_MS = 2200

COLOR_LOW = (34, 211, 238)
COLOR_MID = (250, 204, 21)
COLOR_HIGH = (239, 68, 68)
