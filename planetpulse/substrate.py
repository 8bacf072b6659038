"""Interface between the globe engine and whatever draws the globe."""

from __future__ import annotations

from typing import Callable, List, Optional, Protocol, Sequence, Tuple

from .models import Marker
from .picking import Ray

FrameCallback = Callable[[float], object]


class RenderSubstrate(Protocol):
    """Scene graph, camera, pick primitive and frame source used by the engine."""

    def start_frames(self, callback: FrameCallback) -> None: ...

    def stop_frames(self) -> None: ...

    def set_markers(self, markers: Sequence[Marker]) -> None: ...

    def clear_markers(self) -> None: ...

    def update_markers(self, markers: Sequence[Marker]) -> None: ...

    def set_globe_rotation(self, angle: float) -> None: ...

    def advance_controls(self, delta_seconds: float) -> None: ...

    def reset_camera(self) -> None: ...

    def resize(self, width: int, height: int) -> None: ...

    def pick_ray(self, x: float, y: float) -> Optional[Ray]: ...

    def render(self) -> None: ...


class HeadlessSubstrate:
    """Substrate that draws nothing; used when no GL context is available.

    The engine keeps computing stats, legends and details against it so the
    window can fall back to a textual listing.
    """

    def __init__(self) -> None:
        self.frame_callback: Optional[FrameCallback] = None
        self.markers: List[Marker] = []
        self.rotation = 0.0
        self.size: Optional[Tuple[int, int]] = None
        self.render_count = 0
        self.cleared = 0
        self.camera_resets = 0

    def start_frames(self, callback: FrameCallback) -> None:
        self.frame_callback = callback

    def stop_frames(self) -> None:
        self.frame_callback = None

    def set_markers(self, markers: Sequence[Marker]) -> None:
        self.markers = list(markers)

    def clear_markers(self) -> None:
        self.markers = []
        self.cleared += 1

    def update_markers(self, markers: Sequence[Marker]) -> None:
        return None

    def set_globe_rotation(self, angle: float) -> None:
        self.rotation = float(angle)

    def advance_controls(self, delta_seconds: float) -> None:
        return None

    def reset_camera(self) -> None:
        self.camera_resets += 1

    def resize(self, width: int, height: int) -> None:
        self.size = (int(width), int(height))

    def pick_ray(self, x: float, y: float) -> Optional[Ray]:
        return None

    def render(self) -> None:
        self.render_count += 1


__all__ = ["FrameCallback", "RenderSubstrate", "HeadlessSubstrate"]
