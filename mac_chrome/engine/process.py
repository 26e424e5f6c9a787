"""Bounded external process execution.

Every automation channel (osascript, cliclick, pbcopy, screencapture) goes
through `run_process`. A call either completes, times out (the child is
killed) or fails; it never blocks past its timeout.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass

from .core.errors import ErrorCode, RecoveryHint
from .core.result import Result, fail, ok

_LOGGER = logging.getLogger("mac_chrome.engine.process")

_PERMISSION_MARKERS = (
    "not authorized",
    "not allowed",
    "permission",
    "-1743",
    "access",
)


@dataclass(frozen=True)
class ExecData:
    stdout: str
    stderr: str
    command: str


ProcessRunner = Callable[..., Awaitable[Result[ExecData]]]


def classify_process_failure(stderr: str) -> ErrorCode:
    low = (stderr or "").lower()
    if any(marker in low for marker in _PERMISSION_MARKERS):
        return ErrorCode.PERMISSION_DENIED
    return ErrorCode.UNKNOWN_ERROR


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000.0


async def run_process(
    command: str,
    args: Sequence[str] = (),
    *,
    timeout: float = 30.0,
    input_text: str | None = None,
) -> Result[ExecData]:
    full_command = " ".join([command, *args])
    started = time.perf_counter()
    try:
        proc = await asyncio.create_subprocess_exec(
            command,
            *args,
            stdin=asyncio.subprocess.PIPE if input_text is not None else asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError:
        _LOGGER.warning("Executable not found: %s", command)
        return fail(
            f"Executable not found: {command}",
            ErrorCode.PROCESS_FAILED,
            recovery_hint=RecoveryHint.CHECK_TARGET,
            duration_ms=_elapsed_ms(started),
            metadata={"command": full_command, "missingBinary": command},
        )
    except OSError as exc:
        _LOGGER.warning("Failed to spawn %s: %s", command, exc)
        return fail(
            f"Failed to spawn {command}: {exc}",
            ErrorCode.PROCESS_FAILED,
            duration_ms=_elapsed_ms(started),
            metadata={"command": full_command},
        )

    stdin_bytes = input_text.encode("utf-8") if input_text is not None else None
    try:
        raw_out, raw_err = await asyncio.wait_for(proc.communicate(stdin_bytes), timeout=max(0.01, float(timeout)))
    except asyncio.TimeoutError:
        with contextlib.suppress(ProcessLookupError):
            proc.kill()
        with contextlib.suppress(ProcessLookupError):
            await proc.wait()
        _LOGGER.warning("Command timed out after %.1fs: %s", timeout, command)
        return fail(
            "Command timed out",
            ErrorCode.TIMEOUT,
            recovery_hint=RecoveryHint.RETRY,
            duration_ms=_elapsed_ms(started),
            metadata={"command": full_command, "timeoutMs": int(timeout * 1000)},
        )

    stdout = (raw_out or b"").decode("utf-8", errors="replace").strip()
    stderr = (raw_err or b"").decode("utf-8", errors="replace").strip()
    duration = _elapsed_ms(started)
    if proc.returncode == 0:
        return ok(
            ExecData(stdout=stdout, stderr=stderr, command=full_command),
            duration_ms=duration,
            metadata={"exitCode": 0, "command": full_command},
        )

    code = classify_process_failure(stderr)
    return fail(
        stderr or f"Process exited with code {proc.returncode}",
        code,
        recovery_hint=None if code == ErrorCode.PERMISSION_DENIED else RecoveryHint.CHECK_TARGET,
        duration_ms=duration,
        metadata={
            "exitCode": proc.returncode,
            "command": full_command,
            "stdout": stdout,
            "stderr": stderr,
        },
    )


__all__ = ["ExecData", "ProcessRunner", "classify_process_failure", "run_process"]
