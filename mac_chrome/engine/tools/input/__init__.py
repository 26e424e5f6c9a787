"""
Mouse and keyboard input for Chrome automation.

Provides:
- cliclick: window focus + argument formatting for the input binary
- Mouse operations: click, double-click, right-click, move, drag, scroll
- Keyboard operations: type text, key combos, clear field, paste
- fill: progressive input filling (paste -> type -> js)
"""

from .cliclick import CliclickRunner, UIAction, key_args
from .fill import FillOptions, FillOutcome, InputFiller
from .keyboard import Keyboard
from .mouse import Mouse

__all__ = [
    # Runner
    "CliclickRunner",
    "UIAction",
    "key_args",
    # Mouse
    "Mouse",
    # Keyboard
    "Keyboard",
    # Fill
    "FillOptions",
    "FillOutcome",
    "InputFiller",
]
