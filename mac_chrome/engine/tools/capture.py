"""
Screen capture of Chrome windows, viewports, elements and raw regions.

All captures shell out to `screencapture -x -R x,y,w,h <path>`; rectangles are
derived from the same window-origin + chrome offset transform the coordinate
resolver uses, so an element capture frames what a click would hit.
"""

from __future__ import annotations

import logging
import tempfile
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..config import EngineConfig
from ..core.errors import ErrorCode
from ..core.result import Result, fail, ok
from ..geometry import is_finite
from ..process import ProcessRunner, run_process
from ..scripting import ScriptRunner
from .coords import CoordinateResolver
from .image import DEFAULT_MAX_BYTES, DEFAULT_MAX_WIDTH, EncodedImage, ImageEncoder
from .visibility import VisibilityValidator

_LOGGER = logging.getLogger("mac_chrome.engine.capture")

CAPTURE_FORMATS = {"png", "jpg", "pdf"}
_PREVIEWABLE = {"png", "jpg"}
_CAPTURE_TIMEOUT = 15.0

PERMISSION_MESSAGE = (
    "Screen recording permission denied. "
    "Grant permission in System Settings > Privacy & Security > Screen Recording"
)


@dataclass(frozen=True)
class CaptureOptions:
    output_path: str | None = None
    fmt: str = "png"
    preview: bool = True
    preview_max_bytes: int = DEFAULT_MAX_BYTES
    preview_max_width: int = DEFAULT_MAX_WIDTH


@dataclass(frozen=True)
class CaptureData:
    action: str
    path: str
    fmt: str
    x: float
    y: float
    width: float
    height: float
    preview: EncodedImage | None = None
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "action": self.action,
            "path": self.path,
            "format": self.fmt,
            "region": {"x": self.x, "y": self.y, "width": self.width, "height": self.height},
        }
        if self.preview is not None:
            out["preview"] = {**self.preview.to_dict(), "base64": self.preview.base64}
        out.update(self.details)
        return out


def default_capture_path(fmt: str = "png", *, directory: str | Path | None = None) -> Path:
    base = Path(directory) if directory is not None else Path(tempfile.gettempdir())
    stamp = time.strftime("%Y%m%d-%H%M%S")
    return base / f"mac-chrome-{stamp}-{time.time_ns() % 1_000_000:06d}.{fmt}"


def region_args(x: float, y: float, width: float, height: float) -> list[str]:
    return ["-x", "-R", f"{int(round(x))},{int(round(y))},{int(round(width))},{int(round(height))}"]


class ScreenCapture:
    def __init__(
        self,
        config: EngineConfig,
        runner: ScriptRunner,
        resolver: CoordinateResolver,
        validator: VisibilityValidator,
        encoder: ImageEncoder,
        *,
        process_runner: ProcessRunner = run_process,
    ) -> None:
        self.config = config
        self.runner = runner
        self.resolver = resolver
        self.validator = validator
        self.encoder = encoder
        self._run = process_runner

    async def capture_region(
        self,
        x: float,
        y: float,
        width: float,
        height: float,
        options: CaptureOptions | None = None,
        *,
        action: str = "region_screenshot",
        **details: Any,
    ) -> Result[CaptureData]:
        opts = options or CaptureOptions()
        if opts.fmt not in CAPTURE_FORMATS:
            return fail(f"Unsupported capture format: {opts.fmt}. Use png, jpg or pdf", ErrorCode.INVALID_INPUT)
        if not is_finite(x, y, width, height):
            return fail(f"Capture region must be finite: {(x, y, width, height)}", ErrorCode.INVALID_COORDINATES)
        if width < 1 or height < 1:
            return fail(f"Capture region is empty: {width}x{height}", ErrorCode.INVALID_INPUT)

        path = Path(opts.output_path).expanduser() if opts.output_path else default_capture_path(opts.fmt)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            return fail(f"Cannot create capture directory {path.parent}: {exc}", ErrorCode.FILE_WRITE_ERROR)

        args = region_args(x, y, width, height)
        if opts.fmt != "png":
            args += ["-t", opts.fmt]
        res = await self._run(self.config.screencapture_binary, [*args, str(path)], timeout=_CAPTURE_TIMEOUT)
        if res.failed:
            if res.code == ErrorCode.PERMISSION_DENIED:
                return fail(PERMISSION_MESSAGE, ErrorCode.PERMISSION_DENIED, metadata=res.metadata)
            return fail(
                f"Screen capture failed: {res.error}",
                ErrorCode.SCREEN_CAPTURE_FAILED,
                metadata={**res.metadata, "causeCode": res.code.name},
            )
        if not path.exists():
            return fail(f"Screenshot file was not created: {path}", ErrorCode.SCREEN_CAPTURE_FAILED)

        preview = None
        meta: dict[str, Any] = {}
        if opts.preview and opts.fmt in _PREVIEWABLE:
            encoded = await self.encoder.encode_file_async(path, opts.preview_max_bytes, opts.preview_max_width)
            if encoded.success:
                preview = encoded.data
            else:
                # The capture itself succeeded; report the preview problem alongside it.
                _LOGGER.warning("Preview encoding failed for %s: %s", path, encoded.error)
                meta["previewError"] = encoded.error

        _LOGGER.debug("captured %s %dx%d to %s", action, width, height, path)
        return ok(
            CaptureData(
                action=action,
                path=str(path),
                fmt=opts.fmt,
                x=x,
                y=y,
                width=width,
                height=height,
                preview=preview,
                details=details,
            ),
            duration_ms=res.duration_ms,
            metadata=meta,
        )

    async def capture_window(self, options: CaptureOptions | None = None, *, window_index: int = 1) -> Result[CaptureData]:
        bounds = await self.runner.get_window_bounds(window_index)
        if bounds.failed or bounds.data is None:
            return fail(
                f"Failed to get Chrome window bounds: {bounds.error}",
                bounds.code,
                metadata={**bounds.metadata, "windowIndex": window_index},
            )
        b = bounds.data
        return await self.capture_region(
            b.x, b.y, b.width, b.height, options, action="window_screenshot", windowIndex=window_index
        )

    async def capture_viewport(
        self,
        options: CaptureOptions | None = None,
        *,
        window_index: int = 1,
        tab_index: int = 1,
    ) -> Result[CaptureData]:
        bounds = await self.runner.get_window_bounds(window_index)
        if bounds.failed or bounds.data is None:
            return fail(
                f"Failed to get Chrome window bounds: {bounds.error}",
                bounds.code,
                metadata={**bounds.metadata, "windowIndex": window_index},
            )
        viewport = await self.runner.get_viewport(window_index, tab_index)
        if viewport.failed or viewport.data is None:
            return viewport
        b, vp = bounds.data, viewport.data
        return await self.capture_region(
            b.x,
            b.y + self.resolver.chrome_offset,
            vp.width,
            vp.height,
            options,
            action="viewport_screenshot",
            windowIndex=window_index,
        )

    async def capture_element(
        self,
        selector: str,
        options: CaptureOptions | None = None,
        *,
        window_index: int = 1,
        tab_index: int = 1,
    ) -> Result[CaptureData]:
        visible = await self.validator.ensure_visible(selector, window_index=window_index, tab_index=tab_index)
        if visible.failed:
            return visible
        coords = await self.resolver.selector_to_screen(selector, window_index=window_index, tab_index=tab_index)
        if coords.failed or coords.data is None:
            return coords
        element, window = coords.data.element, coords.data.window
        if element is None:
            return fail(f"No element rect for {selector}", ErrorCode.COORDINATE_CALCULATION_FAILED)
        return await self.capture_region(
            window.x + element.left,
            window.y + self.resolver.chrome_offset + element.top,
            max(1.0, element.width),
            max(1.0, element.height),
            options,
            action="element_screenshot",
            selector=selector,
        )
