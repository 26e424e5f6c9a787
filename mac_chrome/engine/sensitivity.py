"""Small helpers for identifying and masking potentially sensitive values.

Fill values and script arguments go through here before they reach a log
line or a returned payload (safe-by-default).
"""

from __future__ import annotations

from typing import Any

_SENSITIVE_SUBSTRINGS = (
    "token",
    "secret",
    "password",
    "passwd",
    "pwd",
    "authorization",
    "cookie",
    "session",
    "jwt",
    "bearer",
    "api-key",
    "api_key",
    "apikey",
    "otp",
    "cvv",
    "card-number",
    "cardnumber",
)

_SENSITIVE_EXACT = {
    # Avoid false-positives like "author"/"authorship" while still protecting obvious keys.
    "auth",
    "pin",
}

_VALUE_KEYS = {"value", "text", "script"}


def is_sensitive_key(key: str) -> bool:
    k = (key or "").strip().lower()
    if not k:
        return False
    if k in _SENSITIVE_EXACT:
        return True
    return any(s in k for s in _SENSITIVE_SUBSTRINGS)


def looks_sensitive_selector(selector: str) -> bool:
    """`input[type=password]`, `#api_key`, `[name="otp"]` and friends."""
    s = (selector or "").strip().lower()
    if not s:
        return False
    if "type=password" in s.replace('"', "").replace("'", "").replace(" ", ""):
        return True
    return is_sensitive_key(s)


def mask_secret(value: str) -> str:
    """Keep the first two characters of values longer than three; star the rest."""
    if len(value) <= 3:
        return value
    return value[:2] + "*" * (len(value) - 2)


def _summary(value: Any) -> str:
    if isinstance(value, str):
        return f"<redacted str len={len(value)}>"
    return "<redacted>"


def redact_args(args: dict[str, Any], *, secret: bool = False) -> dict[str, Any]:
    """Redact an argument dict for safe logging.

    Sensitive keys are always replaced. When `secret` is set, free-form value
    fields (`value`, `text`, `script`) are masked too.
    """
    out: dict[str, Any] = {}
    for k, v in (args or {}).items():
        if is_sensitive_key(str(k)):
            out[k] = _summary(v)
        elif secret and str(k).lower() in _VALUE_KEYS and isinstance(v, str):
            out[k] = mask_secret(v)
        elif isinstance(v, dict):
            out[k] = redact_args(v, secret=secret)
        else:
            out[k] = v
    return out
