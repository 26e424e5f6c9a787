"""
Progressive input filling.

Validate -> Focus -> Clear (optional, best effort) -> Input -> Done | Failed.

In "auto" mode the Input step walks an ordered strategy list (paste, type,
js) and stops at the first method whose result reads back correctly. An
explicit method runs exactly that strategy.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ...core.errors import ErrorCode, RecoveryHint
from ...core.result import Result, fail, ok
from ...core.retry import RetryPolicy, retry_result
from ...scripting import ScriptRunner
from ...sensitivity import looks_sensitive_selector, mask_secret, redact_args
from ..coords import CoordinateResolver, TargetDescriptor
from ..js_helpers import ELEMENT_INFO_JS, GET_VALUE_JS, SET_VALUE_JS, SUBMIT_FORM_JS, render
from ..visibility import VisibilityValidator
from .keyboard import Keyboard
from .mouse import Mouse

_LOGGER = logging.getLogger("mac_chrome.engine.fill")

FILL_METHODS = ("auto", "paste", "type", "js")
UI_METHODS = ("paste", "type")

_TEXT_INPUT_EXCLUDED = {
    "button",
    "checkbox",
    "color",
    "file",
    "hidden",
    "image",
    "radio",
    "range",
    "reset",
    "submit",
}

# Failures that a different input method can't fix.
_VERBATIM_CODES = {
    ErrorCode.PERMISSION_DENIED,
    ErrorCode.ACCESSIBILITY_DENIED,
    ErrorCode.APPLE_EVENTS_DENIED,
    ErrorCode.TARGET_NOT_FOUND,
}


class FillState(str, Enum):
    VALIDATE = "validate"
    FOCUS = "focus"
    CLEAR = "clear"
    INPUT = "input"
    DONE = "done"
    FAILED = "failed"


@dataclass
class FillOptions:
    selector: str
    value: str
    clear: bool = True
    method: str = "auto"
    speed_ms: int | None = None
    window_index: int = 1
    tab_index: int = 1
    # None: mask when the selector or the element type looks sensitive.
    mask_secret: bool | None = None


@dataclass(frozen=True)
class FillAttempt:
    method: str
    success: bool
    code: ErrorCode = ErrorCode.OK
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"method": self.method, "success": self.success, "code": self.code.name, "error": self.error}


@dataclass(frozen=True)
class FillOutcome:
    selector: str
    method: str
    value: str
    cleared: bool
    actual_value: str | None = None
    verified: bool | None = None
    element: dict[str, Any] = field(default_factory=dict)
    attempts: tuple[FillAttempt, ...] = ()
    states: tuple[FillState, ...] = ()
    action: str = "fill_input"

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "action": self.action,
            "selector": self.selector,
            "method": self.method,
            "value": self.value,
            "cleared": self.cleared,
            "verified": self.verified,
            "element": self.element,
            "attempts": [a.to_dict() for a in self.attempts],
        }
        if self.actual_value is not None:
            out["actualValue"] = self.actual_value
        return out


Strategy = tuple[str, Callable[[], Awaitable[Result[Any]]]]


async def run_strategies(strategies: Sequence[Strategy]) -> tuple[str, Result[Any], list[FillAttempt]]:
    """Try strategies in order, stopping at the first success.

    Returns the winning (or last attempted) method, its result and the full
    attempt log.
    """
    if not strategies:
        raise ValueError("at least one strategy is required")
    attempts: list[FillAttempt] = []
    method = strategies[0][0]
    result: Result[Any] = fail("No strategy attempted", ErrorCode.UNKNOWN_ERROR)
    for method, attempt in strategies:
        result = await attempt()
        attempts.append(FillAttempt(method, result.success, result.code, result.error))
        if result.success:
            break
        _LOGGER.debug("fill method %s failed: %s", method, result.code.name)
    return method, result, attempts


def _expected_value(before: str, value: str, cleared: bool) -> str:
    return value if cleared else before + value


class InputFiller:
    def __init__(
        self,
        runner: ScriptRunner,
        resolver: CoordinateResolver,
        validator: VisibilityValidator,
        mouse: Mouse,
        keyboard: Keyboard,
        *,
        focus_policy: RetryPolicy | None = None,
    ) -> None:
        self.runner = runner
        self.resolver = resolver
        self.validator = validator
        self.mouse = mouse
        self.keyboard = keyboard
        self.focus_policy = focus_policy or RetryPolicy(max_attempts=2, delay=0.15)

    @staticmethod
    def validate_options(options: FillOptions) -> Result[None]:
        if not isinstance(options.selector, str) or not options.selector.strip():
            return fail("Invalid selector", ErrorCode.INVALID_SELECTOR)
        if not isinstance(options.value, str):
            return fail("Invalid value", ErrorCode.INVALID_INPUT)
        if options.method not in FILL_METHODS:
            return fail("Invalid method. Must be auto, paste, type, or js", ErrorCode.INVALID_INPUT)
        if options.speed_ms is not None and (isinstance(options.speed_ms, bool) or options.speed_ms < 0):
            return fail("Invalid speed", ErrorCode.INVALID_INPUT)
        return ok(None)

    async def element_info(self, selector: str, *, window_index: int = 1, tab_index: int = 1) -> Result[dict[str, Any]]:
        res = await self.runner.execute_js(render(ELEMENT_INFO_JS, selector=selector), tab_index, window_index)
        if res.failed:
            return res
        info = res.data if isinstance(res.data, dict) else None
        if info is None:
            return fail(f"Unexpected element info payload: {res.data!r}", ErrorCode.JAVASCRIPT_ERROR)
        if info.get("invalidSelector"):
            return fail(f"Invalid selector {selector!r}: {info.get('message')}", ErrorCode.INVALID_SELECTOR)
        if not info.get("found"):
            return fail(f"Element not found: {selector}", ErrorCode.TARGET_NOT_FOUND)
        return ok(info)

    @staticmethod
    def check_fillable(selector: str, info: dict[str, Any]) -> Result[None]:
        tag = str(info.get("tagName") or "")
        input_type = str(info.get("type") or "").lower()
        editable = bool(info.get("contentEditable"))
        if not editable and tag not in {"input", "textarea"}:
            return fail(
                f'Element "{selector}" is a <{tag}>, not an input, textarea or content-editable',
                ErrorCode.ELEMENT_NOT_INTERACTABLE,
                recovery_hint=RecoveryHint.CHECK_TARGET,
            )
        if tag == "input" and input_type in _TEXT_INPUT_EXCLUDED:
            return fail(
                f'Element "{selector}" is an input of type {input_type!r} and does not accept text',
                ErrorCode.ELEMENT_NOT_INTERACTABLE,
                recovery_hint=RecoveryHint.CHECK_TARGET,
            )
        if info.get("disabled") or info.get("readonly"):
            return fail(f'Element "{selector}" is disabled or readonly', ErrorCode.ELEMENT_NOT_INTERACTABLE)
        return ok(None)

    async def _focus(self, options: FillOptions) -> Result[Any]:
        target = TargetDescriptor(
            selector=options.selector,
            window_index=options.window_index,
            tab_index=options.tab_index,
        )
        coords = await self.resolver.resolve(target)
        if coords.failed or coords.data is None:
            return coords
        point = coords.data.coordinates

        async def _click() -> Result[Any]:
            return await self.mouse.click_at(point.x, point.y, window_index=options.window_index)

        clicked = await retry_result(_click, self.focus_policy, label="fill focus")
        if clicked.success or clicked.code in _VERBATIM_CODES:
            return clicked
        return fail(
            f"Failed to focus {options.selector}: {clicked.error}",
            ErrorCode.MOUSE_CLICK_FAILED,
            metadata={**clicked.metadata, "causeCode": clicked.code.name},
        )

    async def _js_set(self, options: FillOptions, value: str) -> Result[Any]:
        res = await self.runner.execute_js(
            render(SET_VALUE_JS, selector=options.selector, value=value),
            options.tab_index,
            options.window_index,
        )
        if res.failed:
            return res
        payload = res.data if isinstance(res.data, dict) else {}
        if not payload.get("success"):
            return fail(
                f"JavaScript fill failed: {payload.get('reason') or 'element rejected value'}",
                ErrorCode.JAVASCRIPT_ERROR,
            )
        return ok(payload)

    async def _clear(self, options: FillOptions, focused: bool) -> bool:
        if focused:
            res = await self.keyboard.clear_field(window_index=options.window_index)
            if res.success:
                return True
            _LOGGER.info("Keyboard clear of %s failed (%s); trying JavaScript", options.selector, res.code.name)
        res = await self._js_set(options, "")
        if res.failed:
            _LOGGER.info("Clearing %s failed: %s", options.selector, res.error)
        return res.success

    async def _verified(self, attempt: Result[Any], options: FillOptions, expected: str) -> Result[Any]:
        """Read the field back after a method claims success."""
        if attempt.failed:
            return attempt
        current = await self.get_input_value(
            options.selector, window_index=options.window_index, tab_index=options.tab_index
        )
        if current.failed:
            return ok(attempt.data, metadata={"verified": None})
        if current.data != expected:
            return fail(
                "Field value did not match after input",
                ErrorCode.VALIDATION_FAILED,
                recovery_hint=RecoveryHint.RETRY,
            )
        return ok(attempt.data, metadata={"verified": True})

    def _strategies(
        self,
        options: FillOptions,
        focus: Result[Any] | None,
        before: str,
        expected: str,
    ) -> list[Strategy]:
        value = options.value
        dirty = False

        def ui(method: str, action: Callable[[], Awaitable[Result[Any]]]) -> Strategy:
            async def attempt() -> Result[Any]:
                nonlocal dirty
                if focus is None or focus.failed:
                    return focus or fail("Element was not focused", ErrorCode.MOUSE_CLICK_FAILED)
                if dirty:
                    # a previous method left partial text behind
                    await self._js_set(options, before)
                res = await self._verified(await action(), options, expected)
                dirty = res.code == ErrorCode.VALIDATION_FAILED
                return res

            return method, attempt

        async def paste() -> Result[Any]:
            return await self.keyboard.paste_text(value, window_index=options.window_index)

        async def type_() -> Result[Any]:
            return await self.keyboard.type_text(value, speed_ms=options.speed_ms, window_index=options.window_index)

        async def js() -> Result[Any]:
            return await self._verified(await self._js_set(options, expected), options, expected)

        table: dict[str, Strategy] = {
            "paste": ui("paste", paste),
            "type": ui("type", type_),
            "js": ("js", js),
        }
        if options.method == "auto":
            return [table["paste"], table["type"], table["js"]]
        return [table[options.method]]

    async def fill(self, options: FillOptions) -> Result[FillOutcome]:
        states: list[FillState] = [FillState.VALIDATE]
        checked = self.validate_options(options)
        if checked.failed:
            return checked
        _LOGGER.debug("fill %s", redact_args({"selector": options.selector, "value": options.value}, secret=True))

        visible = await self.validator.ensure_visible(
            options.selector, window_index=options.window_index, tab_index=options.tab_index
        )
        if visible.failed or visible.data is None:
            return visible
        info_res = await self.element_info(
            options.selector, window_index=options.window_index, tab_index=options.tab_index
        )
        if info_res.failed or info_res.data is None:
            return info_res
        info = info_res.data
        fillable = self.check_fillable(options.selector, info)
        if fillable.failed:
            return fillable

        secret = options.mask_secret
        if secret is None:
            secret = looks_sensitive_selector(options.selector) or str(info.get("type") or "").lower() == "password"

        focus: Result[Any] | None = None
        if options.method in ("auto", *UI_METHODS):
            states.append(FillState.FOCUS)
            focus = await self._focus(options)
            if focus.failed:
                if options.method != "auto":
                    return focus
                _LOGGER.info("Focus of %s failed (%s); falling back to JavaScript", options.selector, focus.code.name)

        cleared = False
        if options.clear:
            states.append(FillState.CLEAR)
            cleared = await self._clear(options, focused=focus is not None and focus.success)

        before = "" if cleared else str(info.get("value") or "")
        expected = _expected_value(before, options.value, cleared)
        states.append(FillState.INPUT)
        method, result, attempts = await run_strategies(self._strategies(options, focus, before, expected))

        element = {
            "tagName": info.get("tagName"),
            "type": info.get("type") or info.get("tagName"),
            "visible": visible.data.visible,
            "focusable": not info.get("disabled") and not info.get("readonly"),
        }
        if result.failed:
            states.append(FillState.FAILED)
            return fail(
                f"Failed to fill input using method: {method}",
                result.code,
                metadata={
                    "selector": options.selector,
                    "method": method,
                    "attempts": [a.to_dict() for a in attempts],
                    "states": [s.value for s in states],
                    "cleared": cleared,
                },
            )

        states.append(FillState.DONE)
        outcome = FillOutcome(
            selector=options.selector,
            method=method,
            value=mask_secret(options.value) if secret else options.value,
            actual_value=None if secret else options.value,
            cleared=cleared,
            verified=result.metadata.get("verified"),
            element=element,
            attempts=tuple(attempts),
            states=tuple(states),
        )
        return ok(outcome)

    async def get_input_value(self, selector: str, *, window_index: int = 1, tab_index: int = 1) -> Result[str]:
        res = await self.runner.execute_js(render(GET_VALUE_JS, selector=selector), tab_index, window_index)
        if res.failed:
            return res
        payload = res.data if isinstance(res.data, dict) else {}
        if not payload.get("found"):
            return fail(f"Element not found: {selector}", ErrorCode.TARGET_NOT_FOUND)
        return ok(str(payload.get("value") or ""))

    async def submit_form(self, selector: str, *, window_index: int = 1, tab_index: int = 1) -> Result[dict[str, Any]]:
        res = await self.runner.execute_js(render(SUBMIT_FORM_JS, selector=selector), tab_index, window_index)
        if res.failed:
            return res
        payload = res.data if isinstance(res.data, dict) else {}
        if not payload.get("success"):
            return fail(
                f"Element not found or no form to submit: {selector}",
                ErrorCode.TARGET_NOT_FOUND,
            )
        return ok({"action": "submit_form", "selector": selector, "method": payload.get("method")})
