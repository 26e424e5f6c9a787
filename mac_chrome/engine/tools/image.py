"""
Adaptive WebP encoding under a byte budget.

Resize (never upscale) -> baseline quality -> descending quality ladder ->
one smaller-width pass at low quality. The step list is fixed, so encoding
always terminates; when the budget is unreachable the smallest buffer wins.
"""

from __future__ import annotations

import asyncio
import base64
import logging
from collections.abc import Callable
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Any

from PIL import Image, UnidentifiedImageError

from ..cache import TTLCache
from ..core.errors import ErrorCode
from ..core.result import Result, fail, ok
from ..performance import BenchmarkTable

_LOGGER = logging.getLogger("mac_chrome.engine.image")

BASELINE_QUALITY = 85
QUALITY_LADDER = (70, 60, 50, 40, 30)
LAST_RESORT_SCALE = 0.8
LAST_RESORT_QUALITY = 30

DEFAULT_MAX_BYTES = int(1.5 * 1024 * 1024)
DEFAULT_MAX_WIDTH = 1200


@dataclass(frozen=True)
class LadderStep:
    width: int
    quality: int


@dataclass(frozen=True)
class LadderOutcome:
    buffer: bytes
    step: LadderStep
    iterations: int
    met_budget: bool
    size_history: tuple[int, ...]


@dataclass(frozen=True)
class EncodedImage:
    buffer: bytes
    base64: str
    size_bytes: int
    width: int
    height: int
    quality: int
    iterations: int
    met_budget: bool
    size_history: tuple[int, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "sizeBytes": self.size_bytes,
            "width": self.width,
            "height": self.height,
            "quality": self.quality,
            "iterations": self.iterations,
            "metBudget": self.met_budget,
            "format": "webp",
        }


def target_width(source_width: int, max_width: int) -> int:
    return max(1, min(int(source_width), int(max_width)))


def scaled_height(source_width: int, source_height: int, width: int) -> int:
    if source_width <= 0:
        return max(1, source_height)
    return max(1, int(round(source_height * width / source_width)))


def plan_ladder(width: int) -> list[LadderStep]:
    steps = [LadderStep(width, BASELINE_QUALITY)]
    steps.extend(LadderStep(width, q) for q in QUALITY_LADDER)
    steps.append(LadderStep(max(1, int(width * LAST_RESORT_SCALE)), LAST_RESORT_QUALITY))
    return steps


def run_ladder(encode: Callable[[int, int], bytes], width: int, max_bytes: int) -> LadderOutcome:
    """Walk the fixed ladder, stopping at the first buffer within budget.

    `size_history` holds the best size after each iteration, so it never
    increases even if an encoder step produces a larger buffer.
    """
    steps = plan_ladder(width)
    best_step = steps[0]
    best = encode(best_step.width, best_step.quality)
    history = [len(best)]
    if len(best) <= max_bytes:
        return LadderOutcome(best, best_step, 1, True, tuple(history))
    for i, step in enumerate(steps[1:], start=2):
        buf = encode(step.width, step.quality)
        if len(buf) < len(best):
            best, best_step = buf, step
        history.append(len(best))
        if len(buf) <= max_bytes:
            return LadderOutcome(buf, step, i, True, tuple(history))
    return LadderOutcome(best, best_step, len(history), False, tuple(history))


def encode_webp(image: Image.Image, width: int, quality: int) -> bytes:
    src_w, src_h = image.size
    height = scaled_height(src_w, src_h, width)
    frame = image if (width, height) == image.size else image.resize((width, height), Image.Resampling.LANCZOS)
    buf = BytesIO()
    frame.save(buf, format="WEBP", quality=int(quality), method=4)
    return buf.getvalue()


def _prepare(image: Image.Image) -> Image.Image:
    if image.mode in ("RGB", "RGBA"):
        return image
    if "A" in image.getbands() or image.mode == "P":
        return image.convert("RGBA")
    return image.convert("RGB")


def encode_image(
    image: Image.Image,
    max_bytes: int = DEFAULT_MAX_BYTES,
    max_width: int = DEFAULT_MAX_WIDTH,
) -> EncodedImage:
    prepared = _prepare(image)
    src_w, src_h = prepared.size
    width = target_width(src_w, max_width)
    outcome = run_ladder(lambda w, q: encode_webp(prepared, w, q), width, max_bytes)
    return EncodedImage(
        buffer=outcome.buffer,
        base64=base64.b64encode(outcome.buffer).decode("ascii"),
        size_bytes=len(outcome.buffer),
        width=outcome.step.width,
        height=scaled_height(src_w, src_h, outcome.step.width),
        quality=outcome.step.quality,
        iterations=outcome.iterations,
        met_budget=outcome.met_budget,
        size_history=outcome.size_history,
    )


class ImageEncoder:
    def __init__(
        self,
        *,
        cache: TTLCache[tuple[Any, ...], EncodedImage] | None = None,
        benchmarks: BenchmarkTable | None = None,
    ) -> None:
        self.cache = cache if cache is not None else TTLCache(20, 600.0)
        self.benchmarks = benchmarks if benchmarks is not None else BenchmarkTable()

    def encode_file(
        self,
        path: str | Path,
        max_bytes: int = DEFAULT_MAX_BYTES,
        max_width: int = DEFAULT_MAX_WIDTH,
    ) -> Result[EncodedImage]:
        if max_bytes <= 0 or max_width <= 0:
            return fail("max_bytes and max_width must be positive", ErrorCode.INVALID_INPUT)
        src = Path(path).expanduser()
        try:
            stat = src.stat()
        except FileNotFoundError:
            return fail(f"Image not found: {src}", ErrorCode.FILE_NOT_FOUND)
        except OSError as exc:
            return fail(f"Cannot stat {src}: {exc}", ErrorCode.FILE_READ_ERROR)

        # mtime in the key: a rewritten file never hits a stale entry.
        key = (str(src.resolve()), int(max_bytes), int(max_width), stat.st_mtime_ns)
        cached = self.cache.get(key)
        if cached is not None:
            return ok(cached, metadata={"cached": True})

        bench_id = self.benchmarks.start("webp-encode", maxBytes=max_bytes, maxWidth=max_width)
        try:
            with Image.open(src) as img:
                img.load()
                encoded = encode_image(img, max_bytes, max_width)
        except (UnidentifiedImageError, Image.DecompressionBombError) as exc:
            self.benchmarks.end(bench_id, False)
            return fail(f"Unsupported or corrupt image {src}: {exc}", ErrorCode.FILE_READ_ERROR)
        except OSError as exc:
            self.benchmarks.end(bench_id, False)
            return fail(f"Failed to read image {src}: {exc}", ErrorCode.FILE_READ_ERROR)
        self.benchmarks.end(bench_id, encoded.met_budget)

        if not encoded.met_budget:
            _LOGGER.info(
                "WebP for %s stays above budget: %d > %d bytes after %d steps",
                src.name,
                encoded.size_bytes,
                max_bytes,
                encoded.iterations,
            )
        self.cache.set(key, encoded)
        return ok(encoded, metadata={"cached": False})

    async def encode_file_async(
        self,
        path: str | Path,
        max_bytes: int = DEFAULT_MAX_BYTES,
        max_width: int = DEFAULT_MAX_WIDTH,
    ) -> Result[EncodedImage]:
        return await asyncio.to_thread(self.encode_file, path, max_bytes, max_width)
