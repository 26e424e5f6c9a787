from __future__ import annotations

from ..config import EngineConfig
from ..core.errors import ErrorCode
from ..core.result import Result, fail, ok
from ..process import ProcessRunner, run_process


class ClipboardBridge:
    """Write text to the system clipboard through pbcopy's stdin."""

    def __init__(self, config: EngineConfig, *, process_runner: ProcessRunner = run_process) -> None:
        self.config = config
        self._run = process_runner

    async def copy(self, text: str) -> Result[int]:
        res = await self._run(self.config.clipboard_binary, [], timeout=5.0, input_text=text)
        if res.success:
            return ok(len(text))
        if res.code in {ErrorCode.PERMISSION_DENIED, ErrorCode.TIMEOUT}:
            return res
        return fail(f"Failed to copy text to clipboard: {res.error}", ErrorCode.SYSTEM_ERROR, metadata=res.metadata)
