"""
Engine wiring.

`AutomationEngine.from_config` builds every bounded table exactly once and
injects it into the components that share it: the script cache, coordinate
cache, image cache, connection pool and benchmark table. Feature commands
talk to the engine's components; the engine itself only adds the common
resolve -> verify -> click path and housekeeping.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from .cache import TTLCache
from .config import MAX_COORDS_CACHE_TTL, EngineConfig
from .core.result import Result, ok
from .logs import set_level
from .performance import BenchmarkTable, ConnectionPool, performance_recommendations
from .process import ProcessRunner, run_process
from .scripting import ScriptRunner
from .tools.batch import BatchProcessor
from .tools.capture import ScreenCapture
from .tools.clipboard import ClipboardBridge
from .tools.coords import CoordinateResolver, TargetDescriptor
from .tools.image import ImageEncoder
from .tools.input.cliclick import CliclickRunner, UIAction
from .tools.input.fill import FillOptions, FillOutcome, InputFiller
from .tools.input.keyboard import Keyboard
from .tools.input.mouse import Mouse
from .tools.visibility import VisibilityValidator

_LOGGER = logging.getLogger("mac_chrome.engine")


@dataclass
class AutomationEngine:
    config: EngineConfig
    benchmarks: BenchmarkTable
    pool: ConnectionPool
    runner: ScriptRunner
    resolver: CoordinateResolver
    validator: VisibilityValidator
    cliclick: CliclickRunner
    mouse: Mouse
    keyboard: Keyboard
    clipboard: ClipboardBridge
    filler: InputFiller
    encoder: ImageEncoder
    capture: ScreenCapture

    @classmethod
    def from_config(
        cls,
        config: EngineConfig | None = None,
        *,
        process_runner: ProcessRunner = run_process,
    ) -> AutomationEngine:
        cfg = config or EngineConfig.from_env()
        set_level(cfg.log_level)
        benchmarks = BenchmarkTable(cfg.max_benchmarks)
        pool = ConnectionPool(cfg.max_connections, cfg.connection_ttl)
        runner = ScriptRunner(
            cfg,
            script_cache=TTLCache(cfg.script_cache_size, cfg.script_cache_ttl),
            pool=pool,
            benchmarks=benchmarks,
            process_runner=process_runner,
        )
        resolver = CoordinateResolver(
            runner,
            chrome_offset=cfg.chrome_offset,
            cache=TTLCache(cfg.coords_cache_size, min(cfg.coords_cache_ttl, MAX_COORDS_CACHE_TTL)),
        )
        validator = VisibilityValidator(runner)
        cliclick = CliclickRunner(cfg, runner, process_runner=process_runner)
        clipboard = ClipboardBridge(cfg, process_runner=process_runner)
        mouse = Mouse(cliclick)
        keyboard = Keyboard(cliclick, clipboard)
        filler = InputFiller(runner, resolver, validator, mouse, keyboard)
        encoder = ImageEncoder(cache=TTLCache(cfg.image_cache_size, cfg.image_cache_ttl), benchmarks=benchmarks)
        capture = ScreenCapture(cfg, runner, resolver, validator, encoder, process_runner=process_runner)
        _LOGGER.debug("engine ready for %s (chrome offset %d)", cfg.chrome_app, cfg.chrome_offset)
        return cls(
            config=cfg,
            benchmarks=benchmarks,
            pool=pool,
            runner=runner,
            resolver=resolver,
            validator=validator,
            cliclick=cliclick,
            mouse=mouse,
            keyboard=keyboard,
            clipboard=clipboard,
            filler=filler,
            encoder=encoder,
            capture=capture,
        )

    def batch(self, *, batch_size: int | None = None, concurrency: int | None = None, preserve_order: bool = True) -> BatchProcessor:
        return BatchProcessor(
            batch_size=self.config.batch_size if batch_size is None else batch_size,
            concurrency=self.config.concurrency if concurrency is None else concurrency,
            preserve_order=preserve_order,
        )

    async def click(
        self,
        target: TargetDescriptor,
        *,
        button: str = "left",
        click_count: int = 1,
        require_clickable: bool = True,
    ) -> Result[UIAction]:
        """Resolve a target, verify a selector target is visible, then click it."""
        if target.selector:
            visible = await self.validator.ensure_visible(
                target.selector,
                window_index=target.window_index,
                tab_index=target.tab_index,
                require_clickable=require_clickable,
            )
            if visible.failed:
                return visible
        resolved = await self.resolver.resolve(target)
        if resolved.failed or resolved.data is None:
            return resolved
        point = resolved.data.coordinates
        return await self.mouse.click_at(
            point.x,
            point.y,
            button=button,
            click_count=click_count,
            window_index=target.window_index,
        )

    async def fill(self, selector: str, value: str, **options: Any) -> Result[FillOutcome]:
        return await self.filler.fill(FillOptions(selector=selector, value=value, **options))

    def stats(self) -> dict[str, Any]:
        script_stats = self.runner.script_cache.stats()
        coords_stats = self.resolver.cache.stats()
        pool_stats = self.pool.stats()
        return {
            "scriptCache": script_stats.to_dict(),
            "coordsCache": coords_stats.to_dict(),
            "imageCache": self.encoder.cache.stats().to_dict(),
            "connectionPool": pool_stats.to_dict(),
            "benchmarks": self.benchmarks.summary(),
            "recommendations": performance_recommendations(
                script_cache=script_stats,
                coords_cache=coords_stats,
                pool=pool_stats,
            ),
        }

    def clear_caches(self) -> Result[dict[str, int]]:
        cleared = {
            "scriptCache": len(self.runner.script_cache),
            "coordsCache": len(self.resolver.cache),
            "imageCache": len(self.encoder.cache),
            "connections": self.pool.stats().active_connections,
            "benchmarks": len(self.benchmarks),
        }
        self.runner.script_cache.clear()
        self.resolver.cache.clear()
        self.encoder.cache.clear()
        self.pool.clear()
        self.benchmarks.clear()
        _LOGGER.info("cleared engine caches: %s", cleared)
        return ok(cleared)
