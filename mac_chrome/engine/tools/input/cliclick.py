"""
cliclick command builder and runner.

Argument reference (cliclick 5.x):
- c:/rc:/dc:/tc: click variants, m: move, dd:/dm:/du: drag
- kd:/ku: modifier down/up, kp: special key press, t: type text
- w<dir>: scroll wheel (not available on every build)
Absolute negative values need a leading `=` (plain `-10` means relative).
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from ...config import EngineConfig
from ...core.errors import ErrorCode, RecoveryHint
from ...core.result import Result, fail, ok
from ...geometry import ScreenCoordinate
from ...process import ExecData, ProcessRunner, run_process
from ...scripting import ScriptRunner

_LOGGER = logging.getLogger("mac_chrome.engine.input")

INSTALL_HINT = "cliclick is not installed. Install with: brew install cliclick"

MODIFIERS = {"cmd", "alt", "ctrl", "shift", "fn"}

_MODIFIER_ALIASES = {
    "command": "cmd",
    "meta": "cmd",
    "super": "cmd",
    "option": "alt",
    "opt": "alt",
    "control": "ctrl",
}

SPECIAL_KEYS = {
    "arrow-down",
    "arrow-left",
    "arrow-right",
    "arrow-up",
    "delete",
    "end",
    "enter",
    "esc",
    "fwd-delete",
    "home",
    "page-down",
    "page-up",
    "return",
    "space",
    "tab",
    *{f"f{i}" for i in range(1, 17)},
}

_KEY_ALIASES = {
    "escape": "esc",
    "backspace": "delete",
    "del": "fwd-delete",
    "forward-delete": "fwd-delete",
    "up": "arrow-up",
    "down": "arrow-down",
    "left": "arrow-left",
    "right": "arrow-right",
    "pageup": "page-up",
    "pagedown": "page-down",
    "pgup": "page-up",
    "pgdn": "page-down",
}


@dataclass(frozen=True)
class UIAction:
    action: str
    coordinates: ScreenCoordinate | None = None
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"action": self.action}
        if self.coordinates is not None:
            out["coordinates"] = self.coordinates.to_dict()
        if self.details:
            out.update(self.details)
        return out


def format_value(v: float) -> str:
    n = int(round(v))
    return f"={n}" if n < 0 else str(n)


def format_point(x: float, y: float) -> str:
    return f"{format_value(x)},{format_value(y)}"


def normalize_key(key: str) -> str:
    k = (key or "").strip().lower()
    k = _MODIFIER_ALIASES.get(k, k)
    return _KEY_ALIASES.get(k, k)


def key_args(combo: str) -> list[str]:
    """Translate `cmd+shift+r` style combos into cliclick arguments.

    Modifiers are held with kd:/ku:; the final key is pressed with kp: when
    it is a named key and typed with t: otherwise.
    """
    raw = (combo or "").strip()
    if not raw:
        return []
    parts = [normalize_key(p) for p in raw.replace(",", "+").split("+") if p.strip()]
    if raw.endswith("++"):
        parts.append("+")
    mods = [p for p in parts if p in MODIFIERS]
    keys = [p for p in parts if p not in MODIFIERS]
    args: list[str] = []
    if mods:
        args.append("kd:" + ",".join(mods))
    for k in keys:
        args.append(f"kp:{k}" if k in SPECIAL_KEYS else f"t:{k}")
    if mods:
        args.append("ku:" + ",".join(reversed(mods)))
    return args


class CliclickRunner:
    """Focus the target window, then run one cliclick invocation."""

    def __init__(
        self,
        config: EngineConfig,
        runner: ScriptRunner,
        *,
        process_runner: ProcessRunner = run_process,
    ) -> None:
        self.config = config
        self.scripts = runner
        self._run = process_runner

    async def focus(self, window_index: int) -> Result[Any]:
        res = await self.scripts.focus_window(window_index)
        if res.failed:
            _LOGGER.info("Focusing window %d failed: %s", window_index, res.error)
        return res

    async def run(
        self,
        args: Sequence[str],
        *,
        failure_code: ErrorCode,
        window_index: int | None = 1,
    ) -> Result[ExecData]:
        if window_index is not None:
            focused = await self.focus(window_index)
            if focused.failed:
                return focused
        result = await self._run(self.config.cliclick_binary, list(args), timeout=self.config.input_timeout)
        if result.success:
            return result
        return self.classify(result, failure_code)

    @staticmethod
    def classify(result: Result[ExecData], failure_code: ErrorCode) -> Result[ExecData]:
        meta = dict(result.metadata)
        if result.code == ErrorCode.PROCESS_FAILED and meta.get("missingBinary"):
            return fail(INSTALL_HINT, ErrorCode.TARGET_NOT_FOUND, recovery_hint=RecoveryHint.USER_ACTION, metadata=meta)
        if result.code == ErrorCode.PERMISSION_DENIED:
            return fail(
                "Permission denied. Grant Accessibility permission to the terminal in "
                "System Settings > Privacy & Security > Accessibility",
                ErrorCode.PERMISSION_DENIED,
                metadata=meta,
            )
        if result.code == ErrorCode.TIMEOUT:
            return result
        return fail(result.error or "cliclick command failed", failure_code, metadata=meta)


def ui_ok(action: str, coordinates: ScreenCoordinate | None = None, **details: Any) -> Result[UIAction]:
    return ok(UIAction(action=action, coordinates=coordinates, details=details))
