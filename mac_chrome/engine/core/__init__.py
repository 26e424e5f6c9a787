from .errors import ErrorCode, ErrorInfo, RecoveryHint, get_error_info
from .result import EngineError, Result, fail, ok
from .retry import RetryPolicy, retry_result

__all__ = [
    "EngineError",
    "ErrorCode",
    "ErrorInfo",
    "RecoveryHint",
    "Result",
    "RetryPolicy",
    "fail",
    "get_error_info",
    "ok",
    "retry_result",
]
