"""
Keyboard actions via cliclick.

Provides:
- type_text: type a string, optionally paced per keystroke
- send_keys: key combinations such as cmd+shift+r
- press_key: a single (named) key
- clear_field: select-all + delete in the focused field
- paste_text: clipboard copy + cmd+v
"""

from __future__ import annotations

from ...core.errors import ErrorCode
from ...core.result import Result, fail
from ..clipboard import ClipboardBridge
from .cliclick import SPECIAL_KEYS, CliclickRunner, UIAction, key_args, normalize_key, ui_ok


def type_args(text: str, speed_ms: int = 0) -> list[str]:
    if speed_ms and speed_ms > 0 and len(text) > 1:
        return ["-w", str(int(speed_ms)), *(f"t:{ch}" for ch in text)]
    return [f"t:{text}"]


class Keyboard:
    def __init__(self, cliclick: CliclickRunner, clipboard: ClipboardBridge | None = None) -> None:
        self.cliclick = cliclick
        self.clipboard = clipboard

    async def _keys(self, args: list[str], action: str, window_index: int | None, **details: object) -> Result[UIAction]:
        res = await self.cliclick.run(args, failure_code=ErrorCode.KEYBOARD_INPUT_FAILED, window_index=window_index)
        if res.failed:
            return res
        return ui_ok(action, **details)

    async def type_text(self, text: str, *, speed_ms: int | None = None, window_index: int = 1) -> Result[UIAction]:
        if text is None:
            return fail("Text is required", ErrorCode.MISSING_REQUIRED_PARAM)
        if text == "":
            return ui_ok("type_text", chars=0)
        speed = self.cliclick.config.type_speed_ms if speed_ms is None else max(0, int(speed_ms))
        return await self._keys(type_args(text, speed), "type_text", window_index, chars=len(text))

    async def send_keys(self, combo: str, *, window_index: int | None = 1) -> Result[UIAction]:
        args = key_args(combo)
        if not args:
            return fail("Key combination is empty", ErrorCode.INVALID_INPUT)
        return await self._keys(args, "send_keys", window_index, keys=combo)

    async def press_key(self, key: str, *, window_index: int | None = 1) -> Result[UIAction]:
        name = normalize_key(key)
        if not name:
            return fail("Key is empty", ErrorCode.INVALID_INPUT)
        if name not in SPECIAL_KEYS and len(name) != 1:
            return fail(f"Unknown key: {key}", ErrorCode.INVALID_INPUT)
        arg = f"kp:{name}" if name in SPECIAL_KEYS else f"t:{name}"
        return await self._keys([arg], "press_key", window_index, key=name)

    async def clear_field(self, *, window_index: int = 1) -> Result[UIAction]:
        focused = await self.cliclick.focus(window_index)
        if focused.failed:
            return focused
        selected = await self.send_keys("cmd+a", window_index=None)
        if selected.failed:
            return selected
        deleted = await self.press_key("delete", window_index=None)
        if deleted.failed:
            return deleted
        return ui_ok("clear_field")

    async def paste_text(self, text: str, *, window_index: int = 1) -> Result[UIAction]:
        if self.clipboard is None:
            return fail("No clipboard bridge configured", ErrorCode.RESOURCE_UNAVAILABLE)
        copied = await self.clipboard.copy(text)
        if copied.failed:
            return copied
        pasted = await self.send_keys("cmd+v", window_index=window_index)
        if pasted.failed:
            return pasted
        return ui_ok("paste_text", chars=len(text))
