from __future__ import annotations

import json
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest

from mac_chrome.engine.config import EngineConfig
from mac_chrome.engine.core.result import Result, ok
from mac_chrome.engine.process import ExecData
from mac_chrome.engine.scripting import escape_applescript_string

Handler = Callable[[list[str], "str | None"], Any]


class FakeProcess:
    """Stand-in for `run_process`, routed by binary name.

    A handler returns a Result (used as-is) or anything else (stringified as
    stdout of a successful run). Unrouted binaries succeed with empty output.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, list[str], str | None]] = []
        self.handlers: dict[str, Handler] = {}

    def on(self, command: str, handler: Handler) -> FakeProcess:
        self.handlers[command] = handler
        return self

    def args_for(self, command: str) -> list[list[str]]:
        return [args for cmd, args, _ in self.calls if cmd == command]

    async def __call__(
        self,
        command: str,
        args: Sequence[str] = (),
        *,
        timeout: float = 30.0,
        input_text: str | None = None,
    ) -> Result[ExecData]:
        argv = list(args)
        self.calls.append((command, argv, input_text))
        handler = self.handlers.get(command)
        if handler is None:
            return ok(ExecData(stdout="", stderr="", command=command), metadata={"exitCode": 0})
        out = handler(argv, input_text)
        if isinstance(out, Result):
            return out
        return ok(ExecData(stdout=str(out), stderr="", command=command), metadata={"exitCode": 0})


_UNESCAPES = {'"': '"', "\\": "\\", "n": "\n", "r": "\r", "t": "\t"}


def unescape_applescript(text: str) -> str:
    out: list[str] = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == "\\" and i + 1 < len(text) and text[i + 1] in _UNESCAPES:
            out.append(_UNESCAPES[text[i + 1]])
            i += 2
            continue
        out.append(ch)
        i += 1
    return "".join(out)


@dataclass
class FakeElement:
    left: float = 10.0
    top: float = 20.0
    width: float = 200.0
    height: float = 30.0
    count: int = 1
    tag: str = "input"
    type: str | None = "text"
    value: str = ""
    visible: bool = True
    clickable: bool = True
    disabled: bool = False
    readonly: bool = False
    content_editable: bool = False
    covered_by: str | None = None
    in_form: bool = True
    invalid: bool = False


@dataclass
class FakeChrome:
    """A one-page Chrome that answers the engine's AppleScript probes.

    Keystrokes from cliclick land in the element that was last clicked,
    unless `keystrokes_land` is off (a page that ignores synthetic input).
    """

    window: dict[str, float] = field(default_factory=lambda: {"x": 0, "y": 0, "width": 1280, "height": 800})
    viewport: dict[str, float] = field(default_factory=lambda: {"width": 1280, "height": 700, "scrollX": 0, "scrollY": 0})
    chrome_offset: int = 24
    elements: dict[str, FakeElement] = field(default_factory=dict)
    running: bool = True
    keystrokes_land: bool = True
    clipboard: str = ""
    focused: str | None = None
    selected: bool = False
    js_results: dict[str, str] = field(default_factory=dict)
    submitted: list[str] = field(default_factory=list)

    def add(self, selector: str, **attrs: Any) -> FakeElement:
        el = FakeElement(**attrs)
        self.elements[selector] = el
        return el

    def install(self, proc: FakeProcess) -> FakeProcess:
        proc.on("osascript", self.osascript)
        proc.on("cliclick", self.cliclick)
        proc.on("pbcopy", self.pbcopy)
        return proc

    # osascript

    def _selector_in(self, source: str) -> str | None:
        for selector in self.elements:
            if escape_applescript_string(json.dumps(selector)) in source:
                return selector
        return None

    def osascript(self, args: list[str], _stdin: str | None) -> Any:
        source = args[-1]
        if "System Events" in source:
            return "true" if self.running else "false"
        if not self.running:
            return "ERROR: Chrome is not running"
        if "set index of window" in source:
            return "true"
        if "window.screenX" in source:
            return json.dumps(self.window)
        if "scrollX: window.scrollX," in source:
            return json.dumps(self.viewport)
        if "document.readyState" in source:
            return json.dumps({"title": "Fake", "url": "https://example.test/", "loading": False})
        for marker, answer in self.js_results.items():
            if marker in source:
                return answer

        selector = self._selector_in(source)
        el = self.elements.get(selector) if selector else None
        if el is not None and el.invalid and "__mcQueryAll" in source:
            return json.dumps({"invalidSelector": True, "message": "is not a valid selector"})
        if "count: count" in source:
            return self._rect(el)
        if "getComputedStyle" in source:
            return self._visibility(el)
        if "contentEditable: !!" in source:
            return self._info(el)
        if "getOwnPropertyDescriptor" in source:
            return self._set_value(el, source)
        if "requestSubmit" in source:
            if el is None:
                return json.dumps({"success": False, "reason": "Element not found"})
            self.submitted.append(selector or "")
            return json.dumps({"success": True, "method": "form" if el.in_form else "enter"})
        if "found: true, value: value" in source:
            if el is None:
                return json.dumps({"found": False})
            return json.dumps({"found": True, "value": el.value})
        return ""

    def _rect(self, el: FakeElement | None) -> str:
        if el is None:
            return json.dumps({"count": 0})
        return json.dumps(
            {
                "count": el.count,
                "rect": {"left": el.left, "top": el.top, "width": el.width, "height": el.height},
                "viewport": self.viewport,
            }
        )

    def _visibility(self, el: FakeElement | None) -> str:
        if el is None:
            return json.dumps({"found": False, "visible": False, "clickable": False, "inViewport": False})
        return json.dumps(
            {
                "found": True,
                "visible": el.visible,
                "clickable": el.clickable and not el.disabled and el.covered_by is None,
                "inViewport": True,
                "disabled": el.disabled,
                "covered": el.covered_by is not None,
                "coveredBy": el.covered_by,
            }
        )

    def _info(self, el: FakeElement | None) -> str:
        if el is None:
            return json.dumps({"found": False})
        return json.dumps(
            {
                "found": True,
                "tagName": el.tag,
                "type": el.type,
                "value": el.value,
                "disabled": el.disabled,
                "readonly": el.readonly,
                "contentEditable": el.content_editable,
            }
        )

    def _set_value(self, el: FakeElement | None, source: str) -> str:
        if el is None:
            return json.dumps({"success": False, "reason": "Element not found"})
        match = re.search(r"const next = (.*?);\\n", source)
        assert match is not None, "value placeholder not rendered"
        el.value = json.loads(unescape_applescript(match.group(1)))
        return json.dumps({"success": True, "value": el.value})

    # cliclick / pbcopy

    def _hit(self, x: float, y: float) -> str | None:
        for selector, el in self.elements.items():
            left = self.window["x"] + el.left
            top = self.window["y"] + self.chrome_offset + el.top
            if left <= x <= left + el.width and top <= y <= top + el.height:
                return selector
        return None

    def _type(self, text: str) -> None:
        el = self.elements.get(self.focused or "")
        if el is None or not self.keystrokes_land:
            return
        el.value = text if self.selected else el.value + text
        self.selected = False

    def cliclick(self, args: list[str], _stdin: str | None) -> Any:
        held: set[str] = set()
        for arg in args:
            cmd, _, rest = arg.partition(":")
            if cmd in {"c", "dc", "tc"}:
                x, y = (float(v.lstrip("=")) for v in rest.split(","))
                self.focused = self._hit(x, y)
                self.selected = False
            elif cmd == "kd":
                held.update(rest.split(","))
            elif cmd == "ku":
                held.difference_update(rest.split(","))
            elif cmd == "t" and "cmd" in held:
                if rest == "a":
                    self.selected = True
                elif rest == "v":
                    self._type(self.clipboard)
            elif cmd == "t":
                self._type(rest)
            elif cmd == "kp" and rest == "delete":
                el = self.elements.get(self.focused or "")
                if el is not None and self.keystrokes_land:
                    el.value = "" if self.selected else el.value[:-1]
                self.selected = False
        return ""

    def pbcopy(self, _args: list[str], stdin: str | None) -> Any:
        self.clipboard = stdin or ""
        return ""


@pytest.fixture
def fake_process() -> FakeProcess:
    return FakeProcess()


@pytest.fixture
def chrome() -> FakeChrome:
    return FakeChrome(elements={"#name": FakeElement()})


@pytest.fixture
def config() -> EngineConfig:
    return EngineConfig(type_speed_ms=0, chrome_offset=24)


@pytest.fixture
def engine(chrome: FakeChrome, fake_process: FakeProcess, config: EngineConfig):
    from mac_chrome.engine.engine import AutomationEngine

    chrome.install(fake_process)
    eng = AutomationEngine.from_config(config, process_runner=fake_process)
    # No real sleeping between focus retries.
    eng.filler.focus_policy = type(eng.filler.focus_policy)(max_attempts=2, delay=0.0)
    return eng


def noise_image(path: Path, size: tuple[int, int] = (640, 480), seed: int = 7) -> Path:
    import random

    from PIL import Image

    rnd = random.Random(seed)
    img = Image.frombytes("RGB", size, rnd.randbytes(size[0] * size[1] * 3))
    img.save(path)
    return path


@pytest.fixture
def make_noise_image() -> Callable[..., Path]:
    return noise_image
