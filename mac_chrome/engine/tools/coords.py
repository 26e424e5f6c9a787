"""
Coordinate resolution: selector or viewport point -> absolute screen pixel.

screen = window origin + (0, chrome_offset) + viewport point, then any
caller offset. Selector lookups are cached briefly per (selector, window, tab);
coordinate lookups never are.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import Any

from ..cache import TTLCache
from ..config import DEFAULT_CHROME_OFFSET, MAX_COORDS_CACHE_TTL
from ..core.errors import ErrorCode
from ..core.result import Result, fail, ok
from ..geometry import ElementRect, ScreenCoordinate, Viewport, WindowBounds, is_finite
from ..scripting import ScriptRunner
from .js_helpers import ELEMENT_RECT_JS, render

_LOGGER = logging.getLogger("mac_chrome.engine.coords")


@dataclass(frozen=True)
class TargetDescriptor:
    selector: str | None = None
    x: float | None = None
    y: float | None = None
    window_index: int = 1
    tab_index: int = 1
    offset_x: float = 0.0
    offset_y: float = 0.0
    require_unique: bool = False
    scroll_into_view: bool = True

    def describe(self) -> str:
        if self.selector:
            return f"selector {self.selector!r} (window {self.window_index})"
        return f"point ({self.x}, {self.y}) (window {self.window_index})"


@dataclass(frozen=True)
class CoordinateData:
    coordinates: ScreenCoordinate
    window: WindowBounds
    element: ElementRect | None = None
    viewport: Viewport | None = None
    match_count: int | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"coordinates": self.coordinates.to_dict(), "window": self.window.to_dict()}
        if self.element is not None:
            out["element"] = self.element.to_dict()
        if self.viewport is not None:
            out["viewport"] = self.viewport.to_dict()
        if self.match_count is not None:
            out["matchCount"] = self.match_count
        return out


def _checked(point: ScreenCoordinate) -> Result[ScreenCoordinate]:
    # Finite operands can still overflow to inf.
    if not is_finite(point.x, point.y):
        return fail(f"Coordinates overflow: ({point.x}, {point.y})", ErrorCode.INVALID_COORDINATES)
    return ok(point)


def to_screen(
    viewport_x: float,
    viewport_y: float,
    window: WindowBounds,
    chrome_offset: float = DEFAULT_CHROME_OFFSET,
) -> Result[ScreenCoordinate]:
    """Pure viewport -> screen transform."""
    if not is_finite(viewport_x, viewport_y):
        return fail(
            f"Invalid coordinates ({viewport_x}, {viewport_y}): coordinates must be finite numbers",
            ErrorCode.INVALID_COORDINATES,
        )
    if not is_finite(window.x, window.y, chrome_offset):
        return fail("Window geometry is not finite", ErrorCode.COORDINATE_CALCULATION_FAILED)
    point = ScreenCoordinate(window.x + viewport_x, window.y + chrome_offset + viewport_y)
    return _checked(point)


def apply_offset(data: CoordinateData, offset_x: float, offset_y: float) -> Result[CoordinateData]:
    if not is_finite(offset_x, offset_y):
        return fail(f"Invalid offset ({offset_x}, {offset_y})", ErrorCode.INVALID_COORDINATES)
    if not offset_x and not offset_y:
        return ok(data)
    point = _checked(data.coordinates.offset(offset_x, offset_y))
    if point.failed or point.data is None:
        return point
    return ok(replace(data, coordinates=point.data))


class CoordinateResolver:
    def __init__(
        self,
        runner: ScriptRunner,
        *,
        chrome_offset: float = DEFAULT_CHROME_OFFSET,
        cache: TTLCache[tuple[Any, ...], CoordinateData] | None = None,
    ) -> None:
        self.runner = runner
        self.chrome_offset = chrome_offset
        self.cache = cache if cache is not None else TTLCache(100, MAX_COORDS_CACHE_TTL)

    async def resolve(self, target: TargetDescriptor) -> Result[CoordinateData]:
        if target.selector:
            base = await self.selector_to_screen(
                target.selector,
                window_index=target.window_index,
                tab_index=target.tab_index,
                require_unique=target.require_unique,
                scroll_into_view=target.scroll_into_view,
            )
        elif target.x is not None and target.y is not None:
            base = await self.viewport_to_screen(target.x, target.y, window_index=target.window_index)
        else:
            return fail("Must provide either selector or x,y coordinates", ErrorCode.MISSING_REQUIRED_PARAM)
        if base.failed or base.data is None:
            return base
        return apply_offset(base.data, target.offset_x, target.offset_y)

    async def viewport_to_screen(self, x: float, y: float, *, window_index: int = 1) -> Result[CoordinateData]:
        if not is_finite(x, y):
            return fail(
                f"Invalid coordinates ({x}, {y}): coordinates must be finite numbers",
                ErrorCode.INVALID_COORDINATES,
            )
        bounds = await self.runner.get_window_bounds(window_index)
        if bounds.failed or bounds.data is None:
            return bounds
        point = to_screen(x, y, bounds.data, self.chrome_offset)
        if point.failed or point.data is None:
            return point
        return ok(CoordinateData(coordinates=point.data, window=bounds.data))

    async def selector_to_screen(
        self,
        selector: str,
        *,
        window_index: int = 1,
        tab_index: int = 1,
        require_unique: bool = False,
        scroll_into_view: bool = True,
    ) -> Result[CoordinateData]:
        if not selector or not selector.strip():
            return fail("Selector is empty", ErrorCode.INVALID_SELECTOR)
        key = ("sel", selector, window_index, tab_index)
        cached = self.cache.get(key)
        if cached is not None:
            if require_unique and (cached.match_count or 0) > 1:
                return self._ambiguous(selector, cached.match_count or 0)
            _LOGGER.debug("coordinates cache hit for %s (window %d)", selector, window_index)
            return ok(cached, metadata={"cached": True})

        js = render(ELEMENT_RECT_JS, selector=selector, scroll=scroll_into_view)
        probe, bounds = await asyncio.gather(
            self.runner.execute_js(js, tab_index, window_index),
            self.runner.get_window_bounds(window_index),
        )
        if probe.failed:
            return probe
        raw = probe.data if isinstance(probe.data, dict) else None
        if raw is None:
            return fail(f"Unexpected element probe payload: {probe.data!r}", ErrorCode.JAVASCRIPT_ERROR)
        if raw.get("invalidSelector"):
            return fail(f"Invalid selector {selector!r}: {raw.get('message')}", ErrorCode.INVALID_SELECTOR)
        count = int(raw.get("count") or 0)
        if count == 0:
            return fail(f"Element not found: {selector}", ErrorCode.TARGET_NOT_FOUND, metadata={"selector": selector})
        if require_unique and count > 1:
            return self._ambiguous(selector, count)
        if bounds.failed or bounds.data is None:
            return bounds

        rect_raw = raw.get("rect") or {}
        if not is_finite(rect_raw.get("left"), rect_raw.get("top"), rect_raw.get("width"), rect_raw.get("height")):
            return fail(f"Element rect is not finite: {rect_raw!r}", ErrorCode.COORDINATE_CALCULATION_FAILED)
        rect = ElementRect.from_dict(rect_raw)
        cx, cy = rect.center
        point = to_screen(cx, cy, bounds.data, self.chrome_offset)
        if point.failed or point.data is None:
            return point

        vp_raw = raw.get("viewport") or {}
        viewport = None
        if is_finite(vp_raw.get("width"), vp_raw.get("height")):
            viewport = Viewport(
                width=vp_raw["width"],
                height=vp_raw["height"],
                scroll_x=float(vp_raw.get("scrollX") or 0.0),
                scroll_y=float(vp_raw.get("scrollY") or 0.0),
            )
        data = CoordinateData(
            coordinates=point.data,
            window=bounds.data,
            element=rect,
            viewport=viewport,
            match_count=count,
        )
        self.cache.set(key, data)
        return ok(data, metadata={"cached": False})

    @staticmethod
    def _ambiguous(selector: str, count: int) -> Result[CoordinateData]:
        return fail(
            f"Selector {selector!r} matched {count} elements",
            ErrorCode.MULTIPLE_TARGETS_FOUND,
            metadata={"selector": selector, "matchCount": count},
        )

    async def is_coordinate_visible(self, x: float, y: float, *, window_index: int = 1, tab_index: int = 1) -> bool:
        """Whether a viewport point lies inside the current viewport."""
        if not is_finite(x, y):
            return False
        viewport = await self.runner.get_viewport(window_index, tab_index)
        if viewport.failed or viewport.data is None:
            return False
        return 0 <= x <= viewport.data.width and 0 <= y <= viewport.data.height

    def invalidate(self, selector: str | None = None) -> None:
        if selector is None:
            self.cache.clear()
            return
        for key in [k for k in self.cache.keys() if k[1] == selector]:
            self.cache.pop(key)
