from __future__ import annotations

import pytest


def test_ok_and_fail_invariants() -> None:
    from mac_chrome.engine.core.errors import ErrorCode, RecoveryHint
    from mac_chrome.engine.core.result import fail, ok

    good = ok({"a": 1}, duration_ms=2.5, metadata={"k": "v"})
    assert good.success and not good.failed
    assert good.code is ErrorCode.OK
    assert good.error is None
    assert good.duration_ms == 2.5
    assert good.metadata == {"k": "v"}
    assert good.recovery_hint is None

    bad = fail("nope", ErrorCode.TARGET_NOT_FOUND)
    assert bad.failed
    assert bad.data is None
    assert bad.error == "nope"
    assert bad.recovery_hint is RecoveryHint.CHECK_TARGET


def test_fail_never_carries_ok_and_never_empty_message() -> None:
    from mac_chrome.engine.core.errors import ErrorCode
    from mac_chrome.engine.core.result import fail

    res = fail("", ErrorCode.OK)
    assert res.code is ErrorCode.UNKNOWN_ERROR
    assert res.error == "Unknown error"


def test_result_constructor_rejects_inconsistent_states() -> None:
    from mac_chrome.engine.core.errors import ErrorCode
    from mac_chrome.engine.core.result import Result

    with pytest.raises(ValueError):
        Result(success=True, code=ErrorCode.TIMEOUT)
    with pytest.raises(ValueError):
        Result(success=False, code=ErrorCode.OK, error="x")
    with pytest.raises(ValueError):
        Result(success=False, code=ErrorCode.TIMEOUT, error="")
    with pytest.raises(ValueError):
        Result(success=False, code=ErrorCode.TIMEOUT, error="x", data=1)


def test_explicit_recovery_hint_overrides_taxonomy() -> None:
    from mac_chrome.engine.core.errors import ErrorCode, RecoveryHint
    from mac_chrome.engine.core.result import fail, with_recovery_hint

    res = fail("boom", ErrorCode.TIMEOUT, recovery_hint=RecoveryHint.NOT_RECOVERABLE)
    assert res.recovery_hint is RecoveryHint.NOT_RECOVERABLE
    again = with_recovery_hint(res, RecoveryHint.RETRY)
    assert again.recovery_hint is RecoveryHint.RETRY
    assert res.recovery_hint is RecoveryHint.NOT_RECOVERABLE


def test_map_and_flat_map_skip_failures() -> None:
    from mac_chrome.engine.core.result import fail, flat_map, map_error, map_result, ok

    assert map_result(ok(2), lambda v: v * 3).data == 6
    failed = fail("bad")
    assert map_result(failed, lambda v: v * 3) is failed
    assert flat_map(ok(2), lambda v: ok(v + 1)).data == 3
    assert flat_map(ok(2), lambda v: fail("inner")).error == "inner"
    assert map_error(failed, lambda e: f"outer: {e}").error == "outer: bad"
    good = ok(1)
    assert map_error(good, lambda e: "x") is good


def test_unwrap_raises_engine_error_with_code() -> None:
    from mac_chrome.engine.core.errors import ErrorCode
    from mac_chrome.engine.core.result import EngineError, fail, ok, unwrap, unwrap_or

    assert unwrap(ok(5)) == 5
    assert unwrap_or(fail("x"), 7) == 7
    assert unwrap_or(ok(None), 7) == 7
    with pytest.raises(EngineError) as exc_info:
        unwrap(fail("gone", ErrorCode.TAB_NOT_FOUND, metadata={"tabIndex": 3}))
    err = exc_info.value
    assert err.code is ErrorCode.TAB_NOT_FOUND
    assert err.reason == "gone"
    assert err.details == {"tabIndex": 3}
    assert "gone" in str(err)


def test_engine_error_round_trips_into_result() -> None:
    from mac_chrome.engine.core.errors import ErrorCode
    from mac_chrome.engine.core.result import EngineError

    err = EngineError(
        tool="coords",
        action="resolve",
        reason="window vanished",
        suggestion="Check the window index",
        code=ErrorCode.WINDOW_NOT_FOUND,
    )
    res = err.to_result()
    assert res.code is ErrorCode.WINDOW_NOT_FOUND
    assert res.metadata["tool"] == "coords"
    assert err.to_dict()["code"] == "WINDOW_NOT_FOUND"


def test_with_context_merges_metadata() -> None:
    from mac_chrome.engine.core.result import ok, with_context

    res = with_context(ok(1, metadata={"a": 1}), duration_ms=4.0, b=2)
    assert res.metadata == {"a": 1, "b": 2}
    assert res.duration_ms == 4.0
    assert with_context(res, c=3).duration_ms == 4.0


def test_combine_returns_first_failure() -> None:
    from mac_chrome.engine.core.result import combine, fail, ok

    assert combine([ok(1), ok(2)]).data == [1, 2]
    res = combine([ok(1), fail("first"), fail("second")])
    assert res.error == "first"


def test_try_call_and_try_async_capture_exceptions() -> None:
    import asyncio

    from mac_chrome.engine.core.errors import ErrorCode
    from mac_chrome.engine.core.result import try_async, try_call

    def boom() -> int:
        raise RuntimeError("kaput")

    res = try_call(boom, ErrorCode.SYSTEM_ERROR, context="loading")
    assert res.code is ErrorCode.SYSTEM_ERROR
    assert res.error == "loading: kaput"
    assert try_call(lambda: 3).data == 3

    async def aboom() -> int:
        raise ValueError("async kaput")

    async def _main() -> None:
        res = await try_async(aboom)
        assert res.code is ErrorCode.UNKNOWN_ERROR
        assert res.error == "async kaput"

    asyncio.run(_main())


def test_to_dict_shape() -> None:
    from mac_chrome.engine.core.errors import ErrorCode
    from mac_chrome.engine.core.result import fail, ok, to_dict

    good = to_dict(ok({"x": 1}, duration_ms=1.23456))
    assert good["success"] is True
    assert good["code"] == 0
    assert good["data"] == {"x": 1}
    assert good["context"] == {"durationMs": 1.235}

    bad = to_dict(fail("lost", ErrorCode.TIMEOUT))
    assert bad["codeName"] == "TIMEOUT"
    assert bad["error"] == "lost"
    assert "data" not in bad
    assert bad["context"]["recoveryHint"] == "retry"
