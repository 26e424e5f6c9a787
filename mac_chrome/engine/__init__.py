"""
Execution engine for driving a local Google Chrome on macOS.

Targets (CSS selectors or viewport points) are resolved to screen pixels
through AppleScript-evaluated DOM probes, then acted on with cliclick.
Every fallible call returns a `Result` whose error code carries a recovery
hint; see `core.errors`.
"""

from .config import EngineConfig
from .core import EngineError, ErrorCode, RecoveryHint, Result, fail, ok
from .engine import AutomationEngine
from .logs import configure_logging
from .tools import TargetDescriptor

__all__ = [
    "AutomationEngine",
    "EngineConfig",
    "EngineError",
    "ErrorCode",
    "RecoveryHint",
    "Result",
    "TargetDescriptor",
    "configure_logging",
    "fail",
    "ok",
]
