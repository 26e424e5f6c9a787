"""Tagged Result type shared by every engine component.

A `Result` is either a success (`code == OK`, optional `data`) or a failure
(`code != OK`, non-empty `error`, never `data`). Results are frozen: helpers
return new instances instead of mutating.
"""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field, replace
from typing import Any, Generic, TypeVar

from .errors import ErrorCode, RecoveryHint, get_error_info, recovery_hint_for

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class ResultContext:
    duration_ms: float | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    recovery_hint: RecoveryHint | None = None


@dataclass(frozen=True)
class Result(Generic[T]):
    success: bool
    code: ErrorCode = ErrorCode.OK
    data: T | None = None
    error: str | None = None
    context: ResultContext = field(default_factory=ResultContext)
    timestamp: float = field(default_factory=time.time)

    def __post_init__(self) -> None:
        if self.success:
            if self.code != ErrorCode.OK:
                raise ValueError(f"successful result must carry OK, got {self.code.name}")
            if self.error is not None:
                raise ValueError("successful result cannot carry an error")
        else:
            if self.code == ErrorCode.OK:
                raise ValueError("failed result cannot carry OK")
            if not self.error:
                raise ValueError("failed result requires an error message")
            if self.data is not None:
                raise ValueError("failed result cannot carry data")

    @property
    def failed(self) -> bool:
        return not self.success

    @property
    def recovery_hint(self) -> RecoveryHint | None:
        return self.context.recovery_hint

    @property
    def metadata(self) -> dict[str, Any]:
        return self.context.metadata

    @property
    def duration_ms(self) -> float | None:
        return self.context.duration_ms


def ok(data: T | None = None, *, duration_ms: float | None = None, metadata: dict[str, Any] | None = None) -> Result[T]:
    return Result(
        success=True,
        code=ErrorCode.OK,
        data=data,
        context=ResultContext(duration_ms=duration_ms, metadata=dict(metadata or {})),
    )


def fail(
    error: str,
    code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
    *,
    recovery_hint: RecoveryHint | None = None,
    duration_ms: float | None = None,
    metadata: dict[str, Any] | None = None,
) -> Result[Any]:
    """Build a failure; the recovery hint defaults to the code's taxonomy entry."""
    if code == ErrorCode.OK:
        code = ErrorCode.UNKNOWN_ERROR
    return Result(
        success=False,
        code=code,
        error=error or get_error_info(code).message,
        context=ResultContext(
            duration_ms=duration_ms,
            metadata=dict(metadata or {}),
            recovery_hint=recovery_hint or recovery_hint_for(code),
        ),
    )


def map_result(result: Result[T], fn: Callable[[T | None], U]) -> Result[U]:
    if result.failed:
        return result  # type: ignore[return-value]
    return replace(result, data=fn(result.data))  # type: ignore[return-value]


def flat_map(result: Result[T], fn: Callable[[T | None], Result[U]]) -> Result[U]:
    if result.failed:
        return result  # type: ignore[return-value]
    return fn(result.data)


def map_error(result: Result[T], fn: Callable[[str], str]) -> Result[T]:
    if result.success:
        return result
    return replace(result, error=fn(result.error or ""))


def unwrap(result: Result[T]) -> T | None:
    """Return the data of a success, raise `EngineError` for a failure."""
    if result.success:
        return result.data
    raise EngineError.from_result(result)


def unwrap_or(result: Result[T], default: T) -> T:
    if result.success and result.data is not None:
        return result.data
    return default


def with_context(
    result: Result[T],
    *,
    duration_ms: float | None = None,
    **metadata: Any,
) -> Result[T]:
    ctx = result.context
    merged = {**ctx.metadata, **metadata}
    new_ctx = replace(
        ctx,
        metadata=merged,
        duration_ms=duration_ms if duration_ms is not None else ctx.duration_ms,
    )
    return replace(result, context=new_ctx)


def with_recovery_hint(result: Result[T], hint: RecoveryHint) -> Result[T]:
    if result.success:
        return result
    return replace(result, context=replace(result.context, recovery_hint=hint))


def combine(results: Iterable[Result[Any]]) -> Result[list[Any]]:
    """Success with all data (in order) or the first failure."""
    collected: list[Any] = []
    for res in results:
        if res.failed:
            return res
        collected.append(res.data)
    return ok(collected)


def try_call(
    fn: Callable[[], T],
    code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
    *,
    context: str | None = None,
) -> Result[T]:
    try:
        return ok(fn())
    except EngineError as exc:
        return exc.to_result()
    except Exception as exc:
        msg = f"{context}: {exc}" if context else str(exc) or type(exc).__name__
        return fail(msg, code)


async def try_async(
    fn: Callable[[], Awaitable[T]],
    code: ErrorCode = ErrorCode.UNKNOWN_ERROR,
    *,
    context: str | None = None,
) -> Result[T]:
    try:
        return ok(await fn())
    except EngineError as exc:
        return exc.to_result()
    except Exception as exc:
        msg = f"{context}: {exc}" if context else str(exc) or type(exc).__name__
        return fail(msg, code)


def to_dict(result: Result[Any]) -> dict[str, Any]:
    out: dict[str, Any] = {
        "success": result.success,
        "code": int(result.code),
        "codeName": result.code.name,
        "timestamp": result.timestamp,
    }
    if result.success:
        out["data"] = result.data
    else:
        out["error"] = result.error
    ctx: dict[str, Any] = {}
    if result.context.duration_ms is not None:
        ctx["durationMs"] = round(result.context.duration_ms, 3)
    if result.context.metadata:
        ctx["metadata"] = result.context.metadata
    if result.context.recovery_hint is not None:
        ctx["recoveryHint"] = result.context.recovery_hint.value
    if ctx:
        out["context"] = ctx
    return out


@dataclass
class EngineError(Exception):
    """Structured error raised where a Result cannot be returned."""

    tool: str
    action: str
    reason: str
    suggestion: str
    code: ErrorCode = ErrorCode.UNKNOWN_ERROR
    details: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return f"[{self.tool}] {self.action} failed: {self.reason}. Suggestion: {self.suggestion}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": True,
            "tool": self.tool,
            "action": self.action,
            "reason": self.reason,
            "suggestion": self.suggestion,
            "code": self.code.name,
            "details": self.details,
        }

    def to_result(self) -> Result[Any]:
        return fail(self.reason, self.code, metadata={"tool": self.tool, "action": self.action, **self.details})

    @classmethod
    def from_result(cls, result: Result[Any], *, tool: str = "engine", action: str = "unwrap") -> EngineError:
        info = get_error_info(result.code)
        return cls(
            tool=tool,
            action=action,
            reason=result.error or info.message,
            suggestion=info.suggestion,
            code=result.code,
            details=dict(result.metadata),
        )


__all__ = [
    "EngineError",
    "Result",
    "ResultContext",
    "combine",
    "fail",
    "flat_map",
    "map_error",
    "map_result",
    "ok",
    "to_dict",
    "try_async",
    "try_call",
    "unwrap",
    "unwrap_or",
    "with_context",
    "with_recovery_hint",
]
