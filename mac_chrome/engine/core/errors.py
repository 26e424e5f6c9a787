"""Closed error taxonomy + recovery hints.

Every failure the engine reports carries exactly one `ErrorCode`. Each code
maps (totally) to an `ErrorInfo` entry, and every non-OK code maps to a
`RecoveryHint` that retry logic consults to decide retry vs. abort.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum


class ErrorCode(IntEnum):
    OK = 0

    # Input / validation (10-19)
    INVALID_INPUT = 10
    INVALID_SELECTOR = 11
    INVALID_URL = 12
    INVALID_FILE_PATH = 13
    INVALID_COORDINATES = 14
    VALIDATION_FAILED = 15
    MISSING_REQUIRED_PARAM = 16
    INVALID_JSON = 17

    # Target / element (20-29)
    TARGET_NOT_FOUND = 20
    ELEMENT_NOT_VISIBLE = 21
    ELEMENT_NOT_INTERACTABLE = 22
    MULTIPLE_TARGETS_FOUND = 23
    TARGET_OUTSIDE_VIEWPORT = 24
    ELEMENT_STALE = 25

    # Permission / security (30-39)
    PERMISSION_DENIED = 30
    ACCESSIBILITY_DENIED = 31
    SCREEN_RECORDING_DENIED = 32
    FILE_SYSTEM_DENIED = 33
    APPLE_EVENTS_DENIED = 34
    SECURITY_RESTRICTION = 35

    # Timeouts (40-49)
    TIMEOUT = 40
    NETWORK_TIMEOUT = 41
    SCRIPT_TIMEOUT = 42
    LOAD_TIMEOUT = 43
    ANIMATION_TIMEOUT = 44

    # Chrome / browser (50-59)
    CHROME_NOT_FOUND = 50
    CHROME_NOT_RUNNING = 51
    CHROME_CRASHED = 52
    TAB_NOT_FOUND = 53
    WINDOW_NOT_FOUND = 54
    PAGE_LOAD_FAILED = 55
    NAVIGATION_FAILED = 56
    JAVASCRIPT_ERROR = 57

    # Network (60-69)
    NETWORK_ERROR = 60
    CONNECTION_REFUSED = 61
    DNS_RESOLUTION_FAILED = 62
    SSL_ERROR = 63
    PROXY_ERROR = 64

    # File system (70-79)
    FILE_NOT_FOUND = 70
    FILE_READ_ERROR = 71
    FILE_WRITE_ERROR = 72
    DIRECTORY_NOT_FOUND = 73
    DISK_FULL = 74
    PATH_TOO_LONG = 75

    # System / resources (80-89)
    MEMORY_ERROR = 80
    CPU_LIMIT_EXCEEDED = 81
    RESOURCE_UNAVAILABLE = 82
    PROCESS_FAILED = 83
    SYSTEM_ERROR = 84
    RATE_LIMITED = 85

    # Automation channel (90-98)
    APPLESCRIPT_ERROR = 90
    APPLESCRIPT_COMPILATION_FAILED = 91
    UI_AUTOMATION_FAILED = 92
    COORDINATE_CALCULATION_FAILED = 93
    SCREEN_CAPTURE_FAILED = 94
    MOUSE_CLICK_FAILED = 95
    KEYBOARD_INPUT_FAILED = 96

    UNKNOWN_ERROR = 99


class ErrorCategory(str, Enum):
    SUCCESS = "success"
    INPUT = "input"
    TARGET = "target"
    PERMISSION = "permission"
    TIMEOUT = "timeout"
    BROWSER = "browser"
    NETWORK = "network"
    FILESYSTEM = "filesystem"
    SYSTEM = "system"
    AUTOMATION = "automation"
    UNKNOWN = "unknown"


class RecoveryHint(str, Enum):
    RETRY = "retry"
    RETRY_WITH_DELAY = "retry_with_delay"
    CHECK_TARGET = "check_target"
    PERMISSION = "permission"
    USER_ACTION = "user_action"
    NOT_RECOVERABLE = "not_recoverable"


@dataclass(frozen=True)
class ErrorInfo:
    code: ErrorCode
    category: ErrorCategory
    message: str
    suggestion: str
    hint: RecoveryHint | None
    retryable: bool
    user_action: bool


_C = ErrorCategory
_H = RecoveryHint

# code -> (category, message, suggestion, hint, retryable, user_action)
_TABLE: dict[ErrorCode, tuple[ErrorCategory, str, str, RecoveryHint | None, bool, bool]] = {
    ErrorCode.OK: (_C.SUCCESS, "Success", "No action needed", None, False, False),
    ErrorCode.INVALID_INPUT: (
        _C.INPUT, "Invalid input provided", "Check input parameters and try again", _H.NOT_RECOVERABLE, False, True
    ),
    ErrorCode.INVALID_SELECTOR: (
        _C.INPUT, "Invalid CSS selector", "Verify selector syntax and try again", _H.NOT_RECOVERABLE, False, True
    ),
    ErrorCode.INVALID_URL: (_C.INPUT, "Invalid URL", "Check URL format", _H.NOT_RECOVERABLE, False, True),
    ErrorCode.INVALID_FILE_PATH: (
        _C.INPUT, "Invalid file path", "Check file path and permissions", _H.NOT_RECOVERABLE, False, True
    ),
    ErrorCode.INVALID_COORDINATES: (
        _C.INPUT, "Invalid coordinates", "Coordinates must be finite numbers", _H.NOT_RECOVERABLE, False, True
    ),
    ErrorCode.VALIDATION_FAILED: (
        _C.INPUT, "Validation failed", "Review and correct input parameters", _H.NOT_RECOVERABLE, False, True
    ),
    ErrorCode.MISSING_REQUIRED_PARAM: (
        _C.INPUT, "Missing required parameter", "Provide all required parameters", _H.NOT_RECOVERABLE, False, True
    ),
    ErrorCode.INVALID_JSON: (_C.INPUT, "Invalid JSON", "Check JSON syntax", _H.NOT_RECOVERABLE, False, True),
    ErrorCode.TARGET_NOT_FOUND: (
        _C.TARGET, "Target element not found", "Check the selector or target", _H.CHECK_TARGET, True, True
    ),
    ErrorCode.ELEMENT_NOT_VISIBLE: (
        _C.TARGET, "Element not visible", "Wait for the element to appear or scroll it into view",
        _H.RETRY_WITH_DELAY, True, False,
    ),
    ErrorCode.ELEMENT_NOT_INTERACTABLE: (
        _C.TARGET, "Element not interactable", "Wait for the element to become enabled",
        _H.RETRY_WITH_DELAY, True, False,
    ),
    ErrorCode.MULTIPLE_TARGETS_FOUND: (
        _C.TARGET, "Multiple targets found", "Use a more specific selector", _H.CHECK_TARGET, False, True
    ),
    ErrorCode.TARGET_OUTSIDE_VIEWPORT: (
        _C.TARGET, "Target outside viewport", "Scroll the target into view", _H.CHECK_TARGET, True, False
    ),
    ErrorCode.ELEMENT_STALE: (
        _C.TARGET, "Element reference is stale", "Re-query the element", _H.RETRY, True, False
    ),
    ErrorCode.PERMISSION_DENIED: (
        _C.PERMISSION, "Permission denied", "Grant the required permission in System Settings > Privacy & Security",
        _H.PERMISSION, False, True,
    ),
    ErrorCode.ACCESSIBILITY_DENIED: (
        _C.PERMISSION, "Accessibility permission denied",
        "Grant Accessibility permission in System Settings > Privacy & Security > Accessibility",
        _H.PERMISSION, False, True,
    ),
    ErrorCode.SCREEN_RECORDING_DENIED: (
        _C.PERMISSION, "Screen recording permission denied",
        "Grant Screen Recording permission in System Settings > Privacy & Security > Screen Recording",
        _H.PERMISSION, False, True,
    ),
    ErrorCode.FILE_SYSTEM_DENIED: (
        _C.PERMISSION, "File system access denied", "Check file and directory permissions", _H.PERMISSION, False, True
    ),
    ErrorCode.APPLE_EVENTS_DENIED: (
        _C.PERMISSION, "Apple Events permission denied",
        "Grant Automation permission in System Settings > Privacy & Security > Automation",
        _H.PERMISSION, False, True,
    ),
    ErrorCode.SECURITY_RESTRICTION: (
        _C.PERMISSION, "Security restriction", "Review security settings", _H.PERMISSION, False, True
    ),
    ErrorCode.TIMEOUT: (_C.TIMEOUT, "Operation timed out", "Try again", _H.RETRY, True, False),
    ErrorCode.NETWORK_TIMEOUT: (
        _C.TIMEOUT, "Network timeout", "Check connectivity and retry", _H.RETRY_WITH_DELAY, True, False
    ),
    ErrorCode.SCRIPT_TIMEOUT: (_C.TIMEOUT, "Script execution timeout", "Try again", _H.RETRY, True, False),
    ErrorCode.LOAD_TIMEOUT: (
        _C.TIMEOUT, "Page load timeout", "Wait for the page and retry", _H.RETRY_WITH_DELAY, True, False
    ),
    ErrorCode.ANIMATION_TIMEOUT: (
        _C.TIMEOUT, "Animation timeout", "Wait for animations to settle", _H.RETRY_WITH_DELAY, True, False
    ),
    ErrorCode.CHROME_NOT_FOUND: (
        _C.BROWSER, "Chrome not found", "Install Google Chrome", _H.USER_ACTION, False, True
    ),
    ErrorCode.CHROME_NOT_RUNNING: (
        _C.BROWSER, "Chrome not running", "Start Google Chrome and retry", _H.USER_ACTION, True, True
    ),
    ErrorCode.CHROME_CRASHED: (
        _C.BROWSER, "Chrome crashed", "Restart Google Chrome", _H.RETRY_WITH_DELAY, True, True
    ),
    ErrorCode.TAB_NOT_FOUND: (_C.BROWSER, "Tab not found", "Check the tab index", _H.CHECK_TARGET, True, True),
    ErrorCode.WINDOW_NOT_FOUND: (
        _C.BROWSER, "Window not found", "Check the window index", _H.CHECK_TARGET, True, True
    ),
    ErrorCode.PAGE_LOAD_FAILED: (
        _C.BROWSER, "Page load failed", "Reload the page", _H.RETRY_WITH_DELAY, True, False
    ),
    ErrorCode.NAVIGATION_FAILED: (
        _C.BROWSER, "Navigation failed", "Check the URL and retry", _H.RETRY_WITH_DELAY, True, False
    ),
    ErrorCode.JAVASCRIPT_ERROR: (
        _C.BROWSER, "JavaScript execution error", "Check the script and the page state",
        _H.RETRY_WITH_DELAY, True, True,
    ),
    ErrorCode.NETWORK_ERROR: (_C.NETWORK, "Network error", "Check connectivity", _H.RETRY_WITH_DELAY, True, False),
    ErrorCode.CONNECTION_REFUSED: (
        _C.NETWORK, "Connection refused", "Check that the service is reachable", _H.RETRY_WITH_DELAY, True, False
    ),
    ErrorCode.DNS_RESOLUTION_FAILED: (
        _C.NETWORK, "DNS resolution failed", "Check the hostname", _H.CHECK_TARGET, True, True
    ),
    ErrorCode.SSL_ERROR: (_C.NETWORK, "SSL error", "Check certificates", _H.NOT_RECOVERABLE, False, True),
    ErrorCode.PROXY_ERROR: (_C.NETWORK, "Proxy error", "Check proxy settings", _H.USER_ACTION, True, True),
    ErrorCode.FILE_NOT_FOUND: (_C.FILESYSTEM, "File not found", "Check the file path", _H.CHECK_TARGET, False, True),
    ErrorCode.FILE_READ_ERROR: (_C.FILESYSTEM, "File read error", "Check the file", _H.RETRY, True, False),
    ErrorCode.FILE_WRITE_ERROR: (_C.FILESYSTEM, "File write error", "Check disk and permissions", _H.RETRY, True, False),
    ErrorCode.DIRECTORY_NOT_FOUND: (
        _C.FILESYSTEM, "Directory not found", "Check the directory path", _H.CHECK_TARGET, False, True
    ),
    ErrorCode.DISK_FULL: (_C.FILESYSTEM, "Disk full", "Free disk space", _H.USER_ACTION, False, True),
    ErrorCode.PATH_TOO_LONG: (
        _C.FILESYSTEM, "Path too long", "Use a shorter path", _H.NOT_RECOVERABLE, False, True
    ),
    ErrorCode.MEMORY_ERROR: (
        _C.SYSTEM, "Memory error", "Free memory and retry", _H.RETRY_WITH_DELAY, True, True
    ),
    ErrorCode.CPU_LIMIT_EXCEEDED: (
        _C.SYSTEM, "CPU limit exceeded", "Reduce system load and retry", _H.RETRY_WITH_DELAY, True, True
    ),
    ErrorCode.RESOURCE_UNAVAILABLE: (
        _C.SYSTEM, "Resource unavailable", "Wait for the resource to become available", _H.RETRY_WITH_DELAY, True, False
    ),
    ErrorCode.PROCESS_FAILED: (_C.SYSTEM, "Process failed", "Check system logs", _H.RETRY, True, True),
    ErrorCode.SYSTEM_ERROR: (_C.SYSTEM, "System error", "Check system status", _H.RETRY_WITH_DELAY, True, True),
    ErrorCode.RATE_LIMITED: (
        _C.SYSTEM, "Rate limit exceeded", "Reduce operation frequency", _H.RETRY_WITH_DELAY, True, False
    ),
    ErrorCode.APPLESCRIPT_ERROR: (
        _C.AUTOMATION, "AppleScript error", "Check script and automation permissions", _H.RETRY, True, True
    ),
    ErrorCode.APPLESCRIPT_COMPILATION_FAILED: (
        _C.AUTOMATION, "AppleScript compilation failed", "Check AppleScript syntax", _H.NOT_RECOVERABLE, False, True
    ),
    ErrorCode.UI_AUTOMATION_FAILED: (
        _C.AUTOMATION, "UI automation failed", "Check element accessibility", _H.RETRY_WITH_DELAY, True, True
    ),
    ErrorCode.COORDINATE_CALCULATION_FAILED: (
        _C.AUTOMATION, "Coordinate calculation failed", "Check element position and window", _H.RETRY, True, False
    ),
    ErrorCode.SCREEN_CAPTURE_FAILED: (
        _C.AUTOMATION, "Screen capture failed", "Check screen recording permission", _H.RETRY_WITH_DELAY, True, True
    ),
    ErrorCode.MOUSE_CLICK_FAILED: (
        _C.AUTOMATION, "Mouse click operation failed", "Check element visibility and accessibility permission",
        _H.RETRY_WITH_DELAY, True, False,
    ),
    ErrorCode.KEYBOARD_INPUT_FAILED: (
        _C.AUTOMATION, "Keyboard input operation failed", "Check accessibility permission and element focus",
        _H.RETRY_WITH_DELAY, True, False,
    ),
    ErrorCode.UNKNOWN_ERROR: (
        _C.UNKNOWN, "Unknown error", "Try again; report the problem if it persists", _H.RETRY, True, False
    ),
}

ERROR_INFO: dict[ErrorCode, ErrorInfo] = {
    code: ErrorInfo(
        code=code,
        category=row[0],
        message=row[1],
        suggestion=row[2],
        hint=row[3],
        retryable=row[4],
        user_action=row[5],
    )
    for code, row in _TABLE.items()
}


def get_error_info(code: ErrorCode | int) -> ErrorInfo:
    try:
        return ERROR_INFO[ErrorCode(code)]
    except ValueError:
        return ERROR_INFO[ErrorCode.UNKNOWN_ERROR]


def recovery_hint_for(code: ErrorCode | int) -> RecoveryHint | None:
    """Recovery hint for a failure code (None only for OK)."""
    return get_error_info(code).hint


def is_retryable(code: ErrorCode | int) -> bool:
    return get_error_info(code).retryable


def requires_user_action(code: ErrorCode | int) -> bool:
    return get_error_info(code).user_action


def format_error_message(code: ErrorCode | int, context: str | None = None) -> str:
    info = get_error_info(code)
    base = f"{info.message}: {info.suggestion}"
    if context:
        return f"{base} ({context})"
    return base


__all__ = [
    "ERROR_INFO",
    "ErrorCategory",
    "ErrorCode",
    "ErrorInfo",
    "RecoveryHint",
    "format_error_message",
    "get_error_info",
    "is_retryable",
    "recovery_hint_for",
    "requires_user_action",
]
