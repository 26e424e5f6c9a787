from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..core.errors import ErrorCode
from ..core.result import Result, fail, ok
from ..scripting import ScriptRunner
from .js_helpers import VISIBILITY_JS, render


@dataclass(frozen=True)
class ElementVisibilityState:
    """Point-in-time probe snapshot; never cached."""

    visible: bool
    clickable: bool
    in_viewport: bool
    found: bool = True
    disabled: bool = False
    covered: bool = False
    covered_by: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "visible": self.visible,
            "clickable": self.clickable,
            "inViewport": self.in_viewport,
            "found": self.found,
            "disabled": self.disabled,
            "covered": self.covered,
            "coveredBy": self.covered_by,
        }


class VisibilityValidator:
    def __init__(self, runner: ScriptRunner) -> None:
        self.runner = runner

    async def check(self, selector: str, *, window_index: int = 1, tab_index: int = 1) -> Result[ElementVisibilityState]:
        """Probe an element.

        A successful Result means the probe ran; the state may still say "not
        visible". A channel failure is reported as JAVASCRIPT_ERROR with the
        underlying code kept in metadata.
        """
        if not selector or not selector.strip():
            return fail("Selector is empty", ErrorCode.INVALID_SELECTOR)
        probe = await self.runner.execute_js(render(VISIBILITY_JS, selector=selector), tab_index, window_index)
        if probe.failed:
            return fail(
                f"Visibility probe failed: {probe.error}",
                ErrorCode.JAVASCRIPT_ERROR,
                metadata={**probe.metadata, "causeCode": probe.code.name, "selector": selector},
            )
        raw = probe.data
        if not isinstance(raw, dict):
            return fail(f"Unexpected visibility payload: {raw!r}", ErrorCode.JAVASCRIPT_ERROR)
        if raw.get("invalidSelector"):
            return fail(f"Invalid selector {selector!r}: {raw.get('message')}", ErrorCode.INVALID_SELECTOR)
        return ok(
            ElementVisibilityState(
                visible=bool(raw.get("visible")),
                clickable=bool(raw.get("clickable")),
                in_viewport=bool(raw.get("inViewport")),
                found=bool(raw.get("found", True)),
                disabled=bool(raw.get("disabled")),
                covered=bool(raw.get("covered")),
                covered_by=raw.get("coveredBy"),
            )
        )

    async def ensure_visible(
        self,
        selector: str,
        *,
        window_index: int = 1,
        tab_index: int = 1,
        require_clickable: bool = False,
    ) -> Result[ElementVisibilityState]:
        result = await self.check(selector, window_index=window_index, tab_index=tab_index)
        if result.failed or result.data is None:
            return result
        state = result.data
        meta = {"selector": selector, "state": state.to_dict()}
        if not state.found:
            return fail(f"Element not found: {selector}", ErrorCode.TARGET_NOT_FOUND, metadata=meta)
        if not state.visible:
            return fail(f"Element is not visible: {selector}", ErrorCode.ELEMENT_NOT_VISIBLE, metadata=meta)
        if require_clickable and not state.clickable:
            reason = "disabled" if state.disabled else f"covered by {state.covered_by}" if state.covered else "not clickable"
            return fail(
                f"Element is not interactable ({reason}): {selector}",
                ErrorCode.ELEMENT_NOT_INTERACTABLE,
                metadata=meta,
            )
        return result
