from __future__ import annotations

import asyncio
import math

import pytest


def test_key_args_holds_modifiers() -> None:
    from mac_chrome.engine.tools.input.cliclick import key_args

    assert key_args("cmd+shift+r") == ["kd:cmd,shift", "t:r", "ku:shift,cmd"]
    assert key_args("Command+A") == ["kd:cmd", "t:a", "ku:cmd"]
    assert key_args("enter") == ["kp:enter"]
    assert key_args("ctrl+escape") == ["kd:ctrl", "kp:esc", "ku:ctrl"]
    assert key_args("") == []


def test_format_point_marks_negatives() -> None:
    from mac_chrome.engine.tools.input.cliclick import format_point

    assert format_point(10.4, 20.6) == "10,21"
    assert format_point(-50, 74) == "=-50,74"


def test_click_args() -> None:
    from mac_chrome.engine.tools.input.mouse import click_args

    assert click_args(1, 2) == ["c:1,2"]
    assert click_args(1, 2, click_count=2) == ["dc:1,2"]
    assert click_args(1, 2, click_count=3) == ["tc:1,2"]
    assert click_args(1, 2, button="right", click_count=2) == ["rc:1,2", "rc:1,2"]


def test_type_args_paces_per_character() -> None:
    from mac_chrome.engine.tools.input.keyboard import type_args

    assert type_args("hi", 0) == ["t:hi"]
    assert type_args("hi", 40) == ["-w", "40", "t:h", "t:i"]
    assert type_args("h", 40) == ["t:h"]


def test_click_focuses_window_then_clicks(engine, fake_process) -> None:
    res = asyncio.run(engine.mouse.click_at(-50, 74, window_index=2))
    assert res.success
    assert res.data.to_dict() == {"action": "left_click", "coordinates": {"x": -50, "y": 74}, "clickCount": 1}
    commands = [cmd for cmd, _, _ in fake_process.calls]
    assert commands == ["osascript", "cliclick"]
    assert "set index of window 2 to 1" in fake_process.calls[0][1][-1]
    assert fake_process.args_for("cliclick") == [["c:=-50,74"]]


@pytest.mark.parametrize("bad", [math.nan, math.inf])
def test_click_rejects_non_finite(engine, fake_process, bad: float) -> None:
    from mac_chrome.engine.core.errors import ErrorCode

    res = asyncio.run(engine.mouse.click_at(bad, 1))
    assert res.code is ErrorCode.INVALID_COORDINATES
    assert fake_process.calls == []


def test_click_rejects_unknown_button(engine) -> None:
    from mac_chrome.engine.core.errors import ErrorCode

    assert asyncio.run(engine.mouse.click_at(1, 1, button="side")).code is ErrorCode.INVALID_INPUT


def test_missing_cliclick_has_install_hint(engine, fake_process) -> None:
    from mac_chrome.engine.core.errors import ErrorCode, RecoveryHint
    from mac_chrome.engine.core.result import fail
    from mac_chrome.engine.tools.input.cliclick import INSTALL_HINT

    fake_process.on(
        "cliclick",
        lambda args, _: fail("Executable not found: cliclick", ErrorCode.PROCESS_FAILED, metadata={"missingBinary": "cliclick"}),
    )
    res = asyncio.run(engine.mouse.click_at(1, 1))
    assert res.code is ErrorCode.TARGET_NOT_FOUND
    assert res.error == INSTALL_HINT
    assert res.recovery_hint is RecoveryHint.USER_ACTION


def test_cliclick_failures_are_classified(engine, fake_process) -> None:
    from mac_chrome.engine.core.errors import ErrorCode
    from mac_chrome.engine.core.result import fail

    fake_process.on("cliclick", lambda args, _: fail("boom", ErrorCode.UNKNOWN_ERROR))
    assert asyncio.run(engine.mouse.click_at(1, 1)).code is ErrorCode.MOUSE_CLICK_FAILED
    assert asyncio.run(engine.mouse.move_to(1, 1)).code is ErrorCode.UI_AUTOMATION_FAILED
    assert asyncio.run(engine.keyboard.type_text("x")).code is ErrorCode.KEYBOARD_INPUT_FAILED

    fake_process.on("cliclick", lambda args, _: fail("not allowed", ErrorCode.PERMISSION_DENIED))
    denied = asyncio.run(engine.keyboard.press_key("enter"))
    assert denied.code is ErrorCode.PERMISSION_DENIED
    assert "Accessibility" in denied.error


def test_focus_failure_stops_before_cliclick(engine, chrome, fake_process) -> None:
    from mac_chrome.engine.core.errors import ErrorCode

    chrome.running = False
    res = asyncio.run(engine.mouse.click_at(1, 1))
    assert res.code is ErrorCode.CHROME_NOT_RUNNING
    assert fake_process.args_for("cliclick") == []


def test_drag_and_scroll(engine, fake_process) -> None:
    from mac_chrome.engine.core.errors import ErrorCode

    async def _main() -> None:
        dragged = await engine.mouse.drag(1, 2, 30, 40)
        assert dragged.data.details["origin"] == {"x": 1, "y": 2}
        scrolled = await engine.mouse.scroll("Down", 5)
        assert scrolled.data.details == {"direction": "down", "amount": 5}
        bad = await engine.mouse.scroll("sideways")
        assert bad.code is ErrorCode.INVALID_INPUT

    asyncio.run(_main())
    assert fake_process.args_for("cliclick") == [["dd:1,2", "dm:30,40", "du:30,40"], ["wd:5"]]


def test_keyboard_actions(engine, fake_process) -> None:
    from mac_chrome.engine.core.errors import ErrorCode

    async def _main() -> None:
        assert (await engine.keyboard.type_text("")).data.details == {"chars": 0}
        assert (await engine.keyboard.type_text("abc", speed_ms=25)).success
        assert (await engine.keyboard.send_keys("cmd+l")).success
        assert (await engine.keyboard.press_key("Escape")).data.details == {"key": "esc"}
        assert (await engine.keyboard.press_key("nope")).code is ErrorCode.INVALID_INPUT
        assert (await engine.keyboard.send_keys("  ")).code is ErrorCode.INVALID_INPUT

    asyncio.run(_main())
    assert fake_process.args_for("cliclick") == [
        ["-w", "25", "t:a", "t:b", "t:c"],
        ["kd:cmd", "t:l", "ku:cmd"],
        ["kp:esc"],
    ]


def test_clear_field_focuses_once(engine, fake_process) -> None:
    res = asyncio.run(engine.keyboard.clear_field())
    assert res.success
    assert [cmd for cmd, _, _ in fake_process.calls] == ["osascript", "cliclick", "cliclick"]
    assert fake_process.args_for("cliclick") == [["kd:cmd", "t:a", "ku:cmd"], ["kp:delete"]]


def test_paste_text_uses_clipboard(engine, chrome, fake_process) -> None:
    res = asyncio.run(engine.keyboard.paste_text("pasted value"))
    assert res.success
    assert chrome.clipboard == "pasted value"
    assert ("pbcopy", [], "pasted value") in fake_process.calls
    assert fake_process.args_for("cliclick") == [["kd:cmd", "t:v", "ku:cmd"]]


def test_clipboard_failure(engine, fake_process) -> None:
    from mac_chrome.engine.core.errors import ErrorCode
    from mac_chrome.engine.core.result import fail

    fake_process.on("pbcopy", lambda args, _: fail("pbcopy exploded", ErrorCode.UNKNOWN_ERROR))
    res = asyncio.run(engine.clipboard.copy("x"))
    assert res.code is ErrorCode.SYSTEM_ERROR
    assert "pbcopy exploded" in res.error
    assert asyncio.run(engine.keyboard.paste_text("x")).code is ErrorCode.SYSTEM_ERROR


def test_paste_without_clipboard(engine) -> None:
    from mac_chrome.engine.core.errors import ErrorCode
    from mac_chrome.engine.tools.input.keyboard import Keyboard

    keyboard = Keyboard(engine.cliclick)
    assert asyncio.run(keyboard.paste_text("x")).code is ErrorCode.RESOURCE_UNAVAILABLE
