"""
Mouse actions at absolute screen coordinates via cliclick.

Provides click (left/right/middle, multi-click), move, drag and scroll.
Every action focuses the target Chrome window first.
"""

from __future__ import annotations

from ...core.errors import ErrorCode
from ...core.result import Result, fail
from ...geometry import ScreenCoordinate, is_finite
from .cliclick import CliclickRunner, UIAction, format_point, ui_ok

_CLICK_COMMANDS = {"left": "c", "right": "rc", "middle": "mc"}
_SCROLL_COMMANDS = {"up": "wu", "down": "wd", "left": "wl", "right": "wr"}


def click_args(x: float, y: float, *, button: str = "left", click_count: int = 1) -> list[str]:
    point = format_point(x, y)
    if button == "left" and click_count == 2:
        return [f"dc:{point}"]
    if button == "left" and click_count == 3:
        return [f"tc:{point}"]
    cmd = _CLICK_COMMANDS[button]
    return [f"{cmd}:{point}"] * click_count


def _bad_point(*values: float) -> Result[UIAction] | None:
    if not is_finite(*values):
        return fail(f"Invalid coordinates {values}: coordinates must be finite numbers", ErrorCode.INVALID_COORDINATES)
    return None


class Mouse:
    def __init__(self, cliclick: CliclickRunner) -> None:
        self.cliclick = cliclick

    async def click_at(
        self,
        x: float,
        y: float,
        *,
        button: str = "left",
        click_count: int = 1,
        window_index: int = 1,
    ) -> Result[UIAction]:
        bad = _bad_point(x, y)
        if bad is not None:
            return bad
        if button not in _CLICK_COMMANDS:
            return fail(f"Invalid mouse button: {button}. Use one of: left, right, middle", ErrorCode.INVALID_INPUT)
        click_count = max(1, int(click_count))
        res = await self.cliclick.run(
            click_args(x, y, button=button, click_count=click_count),
            failure_code=ErrorCode.MOUSE_CLICK_FAILED,
            window_index=window_index,
        )
        if res.failed:
            return res
        return ui_ok(f"{button}_click", ScreenCoordinate(x, y), clickCount=click_count)

    async def double_click_at(self, x: float, y: float, *, window_index: int = 1) -> Result[UIAction]:
        return await self.click_at(x, y, click_count=2, window_index=window_index)

    async def right_click_at(self, x: float, y: float, *, window_index: int = 1) -> Result[UIAction]:
        return await self.click_at(x, y, button="right", window_index=window_index)

    async def move_to(self, x: float, y: float, *, window_index: int = 1) -> Result[UIAction]:
        bad = _bad_point(x, y)
        if bad is not None:
            return bad
        res = await self.cliclick.run(
            [f"m:{format_point(x, y)}"],
            failure_code=ErrorCode.UI_AUTOMATION_FAILED,
            window_index=window_index,
        )
        if res.failed:
            return res
        return ui_ok("mouse_move", ScreenCoordinate(x, y))

    async def drag(
        self,
        from_x: float,
        from_y: float,
        to_x: float,
        to_y: float,
        *,
        window_index: int = 1,
    ) -> Result[UIAction]:
        bad = _bad_point(from_x, from_y, to_x, to_y)
        if bad is not None:
            return bad
        to_point = format_point(to_x, to_y)
        res = await self.cliclick.run(
            [f"dd:{format_point(from_x, from_y)}", f"dm:{to_point}", f"du:{to_point}"],
            failure_code=ErrorCode.MOUSE_CLICK_FAILED,
            window_index=window_index,
        )
        if res.failed:
            return res
        return ui_ok("drag", ScreenCoordinate(to_x, to_y), origin=ScreenCoordinate(from_x, from_y).to_dict())

    async def scroll(self, direction: str, amount: int = 3, *, window_index: int | None = None) -> Result[UIAction]:
        cmd = _SCROLL_COMMANDS.get((direction or "").lower())
        if cmd is None:
            return fail(f"Invalid scroll direction: {direction}. Use up, down, left or right", ErrorCode.INVALID_INPUT)
        amount = max(1, int(amount))
        res = await self.cliclick.run(
            [f"{cmd}:{amount}"],
            failure_code=ErrorCode.UI_AUTOMATION_FAILED,
            window_index=window_index,
        )
        if res.failed:
            return res
        return ui_ok("scroll", direction=direction.lower(), amount=amount)
