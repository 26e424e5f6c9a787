from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any


def is_finite(*values: Any) -> bool:
    for v in values:
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            return False
        if not math.isfinite(v):
            return False
    return True


@dataclass(frozen=True)
class ScreenCoordinate:
    """Absolute display pixel; negative on monitors left of / above the primary."""

    x: float
    y: float

    def offset(self, dx: float = 0.0, dy: float = 0.0) -> ScreenCoordinate:
        return ScreenCoordinate(self.x + dx, self.y + dy)

    def rounded(self) -> tuple[int, int]:
        return int(round(self.x)), int(round(self.y))

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y}


@dataclass(frozen=True)
class WindowBounds:
    # width/height are 0 for minimized or hidden windows.
    x: float
    y: float
    width: float
    height: float

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass(frozen=True)
class Viewport:
    width: float
    height: float
    scroll_x: float = 0.0
    scroll_y: float = 0.0

    def to_dict(self) -> dict[str, float]:
        return {"width": self.width, "height": self.height, "scrollX": self.scroll_x, "scrollY": self.scroll_y}


@dataclass(frozen=True)
class ElementRect:
    left: float
    top: float
    width: float
    height: float

    @property
    def center(self) -> tuple[float, float]:
        return self.left + self.width / 2.0, self.top + self.height / 2.0

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> ElementRect:
        return cls(
            left=float(raw.get("left", raw.get("x", 0.0))),
            top=float(raw.get("top", raw.get("y", 0.0))),
            width=float(raw.get("width", 0.0)),
            height=float(raw.get("height", 0.0)),
        )

    def to_dict(self) -> dict[str, float]:
        return {"left": self.left, "top": self.top, "width": self.width, "height": self.height}
