from __future__ import annotations


def test_every_code_has_error_info() -> None:
    from mac_chrome.engine.core.errors import ERROR_INFO, ErrorCode

    assert set(ERROR_INFO) == set(ErrorCode)
    for code, info in ERROR_INFO.items():
        assert info.code is code
        assert info.message
        assert info.suggestion


def test_every_failure_code_has_a_recovery_hint() -> None:
    from mac_chrome.engine.core.errors import ErrorCode, recovery_hint_for

    assert recovery_hint_for(ErrorCode.OK) is None
    for code in ErrorCode:
        if code is ErrorCode.OK:
            continue
        assert recovery_hint_for(code) is not None, code


def test_hint_classes_for_common_codes() -> None:
    from mac_chrome.engine.core.errors import ErrorCode, RecoveryHint, recovery_hint_for

    assert recovery_hint_for(ErrorCode.TIMEOUT) is RecoveryHint.RETRY
    assert recovery_hint_for(ErrorCode.ELEMENT_NOT_INTERACTABLE) is RecoveryHint.RETRY_WITH_DELAY
    assert recovery_hint_for(ErrorCode.MOUSE_CLICK_FAILED) is RecoveryHint.RETRY_WITH_DELAY
    assert recovery_hint_for(ErrorCode.TARGET_NOT_FOUND) is RecoveryHint.CHECK_TARGET
    assert recovery_hint_for(ErrorCode.MULTIPLE_TARGETS_FOUND) is RecoveryHint.CHECK_TARGET
    assert recovery_hint_for(ErrorCode.PERMISSION_DENIED) is RecoveryHint.PERMISSION
    assert recovery_hint_for(ErrorCode.APPLE_EVENTS_DENIED) is RecoveryHint.PERMISSION
    assert recovery_hint_for(ErrorCode.INVALID_INPUT) is RecoveryHint.NOT_RECOVERABLE
    assert recovery_hint_for(ErrorCode.INVALID_COORDINATES) is RecoveryHint.NOT_RECOVERABLE


def test_unknown_integer_falls_back_to_unknown_error() -> None:
    from mac_chrome.engine.core.errors import ErrorCode, get_error_info

    assert get_error_info(12345).code is ErrorCode.UNKNOWN_ERROR
    assert get_error_info(20).code is ErrorCode.TARGET_NOT_FOUND


def test_retryable_and_user_action_flags() -> None:
    from mac_chrome.engine.core.errors import ErrorCode, is_retryable, requires_user_action

    assert is_retryable(ErrorCode.TIMEOUT) is True
    assert is_retryable(ErrorCode.INVALID_INPUT) is False
    assert requires_user_action(ErrorCode.PERMISSION_DENIED) is True
    assert requires_user_action(ErrorCode.TIMEOUT) is False


def test_format_error_message_includes_context() -> None:
    from mac_chrome.engine.core.errors import ErrorCode, format_error_message

    msg = format_error_message(ErrorCode.TARGET_NOT_FOUND, "#login")
    assert msg.startswith("Target element not found: ")
    assert msg.endswith("(#login)")
    assert "(" not in format_error_message(ErrorCode.TIMEOUT)
