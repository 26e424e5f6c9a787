"""
AppleScript execution layer.

Every browser-directed command passes through `ScriptRunner`:
- tab scripts are wrapped in a `tell application` template, cached by content hash
- `ERROR:` sentinels in stdout become failure Results (never a false success)
- batches run in one osascript call with a per-operation error trap, falling
  back to one call per operation when the combined output can't be trusted
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from .cache import TTLCache, content_hash
from .config import EngineConfig
from .core.errors import ErrorCode
from .core.result import Result, fail, ok, with_context
from .geometry import Viewport, WindowBounds, is_finite
from .performance import BenchmarkTable, ConnectionPool
from .process import ExecData, ProcessRunner, run_process

_LOGGER = logging.getLogger("mac_chrome.engine.scripting")

ERROR_PREFIX = "ERROR:"
# U+241E SYMBOL FOR RECORD SEPARATOR. The ASCII control (0x1E) counts as
# whitespace for str.strip(), which would eat empty trailing results.
RECORD_SEPARATOR = "\u241e"

_APPLESCRIPT_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\r": "\\r",
    "\n": "\\n",
    "\t": "\\t",
}


def escape_applescript_string(text: str | None) -> str:
    """Escape text for embedding inside an AppleScript string literal.

    Other control characters become a JavaScript `\\u00XX` escape: AppleScript
    turns the doubled backslash into a single one, so the page receives a
    regular JS escape sequence.
    """
    if text is None:
        return ""
    out: list[str] = []
    for ch in str(text):
        mapped = _APPLESCRIPT_ESCAPES.get(ch)
        if mapped is not None:
            out.append(mapped)
        elif ord(ch) < 0x20 or ord(ch) == 0x7F:
            out.append(f"\\\\u{ord(ch):04x}")
        else:
            out.append(ch)
    return "".join(out)


def applescript_literal(text: str) -> str:
    return f'"{escape_applescript_string(text)}"'


def compile_tab_script(escaped_js: str, tab_index: int, window_index: int, *, app: str = "Google Chrome") -> str:
    """Pure template builder: same inputs, same script."""
    return f"""
tell application {applescript_literal(app)}
  if not running then
    return "ERROR: Chrome is not running"
  end if

  try
    set targetWindow to window {int(window_index)}
    set targetTab to tab {int(tab_index)} of targetWindow
    set jsResult to execute javascript "{escaped_js}" in targetTab
    return jsResult as string
  on error errorMessage
    return "ERROR: " & errorMessage
  end try
end tell"""


def compile_batch_script(operations: Sequence[ScriptOperation], *, app: str = "Google Chrome") -> str:
    blocks: list[str] = []
    for i, op in enumerate(operations):
        blocks.append(
            f"""
  try
    set targetWindow{i} to window {int(op.window_index)}
    set targetTab{i} to tab {int(op.tab_index)} of targetWindow{i}
    set jsResult{i} to execute javascript "{escape_applescript_string(op.script)}" in targetTab{i}
    set end of results to (jsResult{i} as string)
  on error errorMessage{i}
    set end of results to ("ERROR: " & errorMessage{i})
  end try"""
        )
    return f"""
tell application {applescript_literal(app)}
  if not running then
    return "ERROR: Chrome is not running"
  end if

  set results to {{}}
{"".join(blocks)}

  set AppleScript's text item delimiters to (character id 9246)
  set joined to results as text
  set AppleScript's text item delimiters to ""
  return joined
end tell"""


def classify_script_error(message: str) -> ErrorCode:
    """Map the text after an `ERROR:` sentinel onto the taxonomy."""
    low = (message or "").lower().replace("’", "'")
    if "not running" in low or "isn't running" in low:
        return ErrorCode.CHROME_NOT_RUNNING
    if "javascript through applescript is turned off" in low or "allow javascript from apple events" in low:
        return ErrorCode.SECURITY_RESTRICTION
    if "not authorized" in low or "-1743" in low:
        return ErrorCode.APPLE_EVENTS_DENIED
    if "can't get tab" in low or ("tab " in low and "invalid index" in low):
        return ErrorCode.TAB_NOT_FOUND
    if "can't get window" in low or ("window " in low and "invalid index" in low):
        return ErrorCode.WINDOW_NOT_FOUND
    return ErrorCode.JAVASCRIPT_ERROR


def _channel_failure(result: Result[ExecData]) -> Result[ExecData]:
    """Refine osascript failures that the generic process classifier can't see."""
    if result.success or result.code != ErrorCode.UNKNOWN_ERROR:
        return result
    low = (result.error or "").lower()
    if "syntax error" in low or "-2741" in low or "-2740" in low:
        return fail(result.error or "", ErrorCode.APPLESCRIPT_COMPILATION_FAILED, metadata=result.metadata)
    if "-600" in low or "isn't running" in low or "not running" in low:
        return fail(result.error or "", ErrorCode.CHROME_NOT_RUNNING, metadata=result.metadata)
    return result


def check_sentinel(result: Result[ExecData]) -> Result[ExecData]:
    if result.failed or result.data is None:
        return result
    out = result.data.stdout
    if not out.startswith(ERROR_PREFIX):
        return result
    message = out[len(ERROR_PREFIX) :].strip()
    return fail(
        message or "AppleScript reported an error",
        classify_script_error(message),
        duration_ms=result.duration_ms,
        metadata={**result.metadata, "stdout": out},
    )


def decode_js_output(output: str) -> Any:
    try:
        return json.loads(output)
    except ValueError:
        return output


@dataclass(frozen=True)
class ScriptOperation:
    script: str
    tab_index: int = 1
    window_index: int = 1


@dataclass(frozen=True)
class TabInfo:
    title: str
    url: str
    loading: bool
    window_index: int

    def to_dict(self) -> dict[str, Any]:
        return {"title": self.title, "url": self.url, "loading": self.loading, "windowIndex": self.window_index}


_BOUNDS_JS = """
(function() {
  return JSON.stringify({
    x: window.screenX,
    y: window.screenY,
    width: window.outerWidth,
    height: window.outerHeight
  });
})();
"""

_VIEWPORT_JS = """
(function() {
  return JSON.stringify({
    width: window.innerWidth,
    height: window.innerHeight,
    scrollX: window.scrollX,
    scrollY: window.scrollY
  });
})();
"""

_ACTIVE_TAB_JS = """
(function() {
  return JSON.stringify({
    title: document.title,
    url: window.location.href,
    loading: document.readyState !== 'complete'
  });
})();
"""


class ScriptRunner:
    def __init__(
        self,
        config: EngineConfig,
        *,
        script_cache: TTLCache[str, str] | None = None,
        pool: ConnectionPool | None = None,
        benchmarks: BenchmarkTable | None = None,
        process_runner: ProcessRunner = run_process,
    ) -> None:
        self.config = config
        self.script_cache = (
            script_cache if script_cache is not None else TTLCache(config.script_cache_size, config.script_cache_ttl)
        )
        self.pool = pool if pool is not None else ConnectionPool(config.max_connections, config.connection_ttl)
        self.benchmarks = benchmarks if benchmarks is not None else BenchmarkTable(config.max_benchmarks)
        self._run = process_runner

    async def _osascript(self, source: str, timeout: float) -> Result[ExecData]:
        result = await self._run(self.config.osascript_binary, ["-e", source], timeout=timeout)
        return _channel_failure(result)

    def compile(self, script: str, tab_index: int, window_index: int) -> str:
        key = content_hash(script, tab_index, window_index)
        cached = self.script_cache.get(key)
        if cached is not None:
            return cached
        compiled = compile_tab_script(
            escape_applescript_string(script), tab_index, window_index, app=self.config.chrome_app
        )
        self.script_cache.set(key, compiled)
        return compiled

    async def execute(
        self,
        script: str,
        tab_index: int = 1,
        window_index: int = 1,
        timeout: float | None = None,
    ) -> Result[ExecData]:
        """Run a JavaScript snippet in a tab; returns raw stdout on success."""
        if not script or not script.strip():
            return fail("Script is empty", ErrorCode.INVALID_INPUT)
        if tab_index < 1 or window_index < 1:
            return fail("Tab and window indices start at 1", ErrorCode.INVALID_INPUT)
        warm = self.pool.is_warm(window_index)
        self.pool.acquire(window_index)
        bench_id = self.benchmarks.start("applescript-exec", scriptLength=len(script), tabIndex=tab_index)
        compiled = self.compile(script, tab_index, window_index)
        result = check_sentinel(await self._osascript(compiled, timeout or self.config.script_timeout))
        self.benchmarks.end(bench_id, result.success)
        return with_context(result, windowIndex=window_index, tabIndex=tab_index, warm=warm)

    async def run_applescript(self, source: str, timeout: float | None = None) -> Result[ExecData]:
        """Run a free-standing AppleScript (not tab-scoped, not cached)."""
        bench_id = self.benchmarks.start("applescript-raw", scriptLength=len(source))
        result = check_sentinel(await self._osascript(source, timeout or self.config.script_timeout))
        self.benchmarks.end(bench_id, result.success)
        return result

    async def execute_batch(
        self,
        operations: Sequence[ScriptOperation],
        timeout: float | None = None,
    ) -> list[Result[ExecData]]:
        """Results line up positionally with `operations`."""
        ops = list(operations)
        if not ops:
            return []
        bench_id = self.benchmarks.start("applescript-batch", operationCount=len(ops))
        for op in ops:
            self.pool.acquire(op.window_index)
        source = compile_batch_script(ops, app=self.config.chrome_app)
        combined = await self._osascript(source, timeout or self.config.batch_timeout)

        results: list[Result[ExecData]] | None = None
        reason = ""
        if combined.failed or combined.data is None:
            reason = f"channel failure ({combined.code.name})"
        elif combined.data.stdout.startswith(ERROR_PREFIX) and RECORD_SEPARATOR not in combined.data.stdout:
            if len(ops) == 1:
                results = [check_sentinel(combined)]
            else:
                reason = "batch aborted before running operations"
        else:
            results = self._split_batch(combined.data, len(ops))
            if results is None:
                reason = "result count mismatch"

        if results is None:
            _LOGGER.info("Batch of %d fell back to individual execution: %s", len(ops), reason)
            results = []
            for op in ops:
                results.append(await self.execute(op.script, op.tab_index, op.window_index))
            self.benchmarks.end(bench_id, False)
            return [with_context(r, batchFallback=True) for r in results]

        self.benchmarks.end(bench_id, all(r.success for r in results))
        return results

    @staticmethod
    def _split_batch(data: ExecData, expected: int) -> list[Result[ExecData]] | None:
        parts = data.stdout.split(RECORD_SEPARATOR)
        if len(parts) != expected:
            return None
        out: list[Result[ExecData]] = []
        for i, part in enumerate(parts):
            item = ok(ExecData(stdout=part.strip(), stderr="", command=f"batch-operation-{i}"))
            out.append(with_context(check_sentinel(item), batchIndex=i))
        return out

    async def execute_js(
        self,
        javascript: str,
        tab_index: int = 1,
        window_index: int = 1,
        timeout: float | None = None,
    ) -> Result[Any]:
        result = await self.execute(javascript, tab_index, window_index, timeout)
        if result.failed or result.data is None:
            return result
        return ok(decode_js_output(result.data.stdout), duration_ms=result.duration_ms, metadata=result.metadata)

    async def get_window_bounds(self, window_index: int = 1) -> Result[WindowBounds]:
        result = await self.execute_js(_BOUNDS_JS, 1, window_index)
        if result.failed:
            return result
        raw = result.data
        if not isinstance(raw, dict) or not is_finite(raw.get("x"), raw.get("y"), raw.get("width"), raw.get("height")):
            return fail(f"Unexpected window bounds payload: {raw!r}", ErrorCode.COORDINATE_CALCULATION_FAILED)
        return ok(WindowBounds(x=raw["x"], y=raw["y"], width=raw["width"], height=raw["height"]))

    async def get_viewport(self, window_index: int = 1, tab_index: int = 1) -> Result[Viewport]:
        result = await self.execute_js(_VIEWPORT_JS, tab_index, window_index)
        if result.failed:
            return result
        raw = result.data
        if not isinstance(raw, dict) or not is_finite(raw.get("width"), raw.get("height")):
            return fail(f"Unexpected viewport payload: {raw!r}", ErrorCode.COORDINATE_CALCULATION_FAILED)
        return ok(
            Viewport(
                width=raw["width"],
                height=raw["height"],
                scroll_x=float(raw.get("scrollX") or 0.0),
                scroll_y=float(raw.get("scrollY") or 0.0),
            )
        )

    async def get_active_tab(self, window_index: int = 1) -> Result[TabInfo]:
        result = await self.execute_js(_ACTIVE_TAB_JS, 1, window_index)
        if result.failed:
            return result
        raw = result.data if isinstance(result.data, dict) else {}
        return ok(
            TabInfo(
                title=str(raw.get("title") or ""),
                url=str(raw.get("url") or ""),
                loading=bool(raw.get("loading")),
                window_index=window_index,
            )
        )

    async def focus_window(self, window_index: int = 1) -> Result[bool]:
        source = f"""
tell application {applescript_literal(self.config.chrome_app)}
  if not running then
    return "ERROR: Chrome is not running"
  end if

  try
    activate
    set index of window {int(window_index)} to 1
    return "true"
  on error errorMessage
    return "ERROR: " & errorMessage
  end try
end tell"""
        result = await self.run_applescript(source, timeout=5.0)
        if result.failed or result.data is None:
            return result
        self.pool.acquire(window_index)
        return ok(result.data.stdout == "true")

    async def is_chrome_running(self) -> bool:
        source = f"""
tell application "System Events"
  return exists (processes where name is {applescript_literal(self.config.chrome_app)})
end tell"""
        result = await self.run_applescript(source, timeout=5.0)
        return result.success and result.data is not None and result.data.stdout.strip() == "true"


__all__ = [
    "ERROR_PREFIX",
    "RECORD_SEPARATOR",
    "ScriptOperation",
    "ScriptRunner",
    "TabInfo",
    "applescript_literal",
    "check_sentinel",
    "classify_script_error",
    "compile_batch_script",
    "compile_tab_script",
    "decode_js_output",
    "escape_applescript_string",
]
