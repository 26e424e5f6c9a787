from __future__ import annotations

import os
from dataclasses import dataclass

# Title bar height of a standard Chrome window on recent macOS releases.
# Measured, not queried: calibrate via MAC_CHROME_CHROME_OFFSET.
DEFAULT_CHROME_OFFSET = 24

# Layout moves; selector coordinates must never outlive this.
MAX_COORDS_CACHE_TTL = 30.0


def _str_env(name: str, *, default: str) -> str:
    raw = (os.environ.get(name) or "").strip()
    return raw or default


def _float_env(name: str, *, default: float, lo: float, hi: float) -> float:
    try:
        val = float(os.environ.get(name) or default)
    except ValueError:
        val = default
    if val != val:  # NaN
        val = default
    return max(lo, min(val, hi))


def _int_env(name: str, *, default: int, lo: int, hi: int) -> int:
    try:
        val = int(os.environ.get(name) or default)
    except ValueError:
        val = default
    return max(lo, min(val, hi))


@dataclass
class EngineConfig:
    chrome_app: str = "Google Chrome"
    osascript_binary: str = "osascript"
    cliclick_binary: str = "cliclick"
    clipboard_binary: str = "pbcopy"
    screencapture_binary: str = "screencapture"
    chrome_offset: int = DEFAULT_CHROME_OFFSET
    script_timeout: float = 10.0
    batch_timeout: float = 15.0
    input_timeout: float = 10.0
    script_cache_size: int = 50
    script_cache_ttl: float = 15 * 60.0
    coords_cache_size: int = 100
    coords_cache_ttl: float = MAX_COORDS_CACHE_TTL
    image_cache_size: int = 20
    image_cache_ttl: float = 10 * 60.0
    max_connections: int = 5
    connection_ttl: float = 30.0
    max_benchmarks: int = 1000
    batch_size: int = 5
    concurrency: int = 3
    type_speed_ms: int = 50
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> EngineConfig:
        return cls(
            chrome_app=_str_env("MAC_CHROME_APP", default="Google Chrome"),
            osascript_binary=_str_env("MAC_CHROME_OSASCRIPT", default="osascript"),
            cliclick_binary=_str_env("MAC_CHROME_CLICLICK", default="cliclick"),
            clipboard_binary=_str_env("MAC_CHROME_CLIPBOARD", default="pbcopy"),
            screencapture_binary=_str_env("MAC_CHROME_SCREENCAPTURE", default="screencapture"),
            chrome_offset=_int_env("MAC_CHROME_CHROME_OFFSET", default=DEFAULT_CHROME_OFFSET, lo=0, hi=400),
            script_timeout=_float_env("MAC_CHROME_SCRIPT_TIMEOUT", default=10.0, lo=0.1, hi=300.0),
            batch_timeout=_float_env("MAC_CHROME_BATCH_TIMEOUT", default=15.0, lo=0.1, hi=600.0),
            input_timeout=_float_env("MAC_CHROME_INPUT_TIMEOUT", default=10.0, lo=0.1, hi=120.0),
            script_cache_size=_int_env("MAC_CHROME_SCRIPT_CACHE_SIZE", default=50, lo=1, hi=10_000),
            script_cache_ttl=_float_env("MAC_CHROME_SCRIPT_CACHE_TTL", default=900.0, lo=1.0, hi=86_400.0),
            coords_cache_size=_int_env("MAC_CHROME_COORDS_CACHE_SIZE", default=100, lo=1, hi=10_000),
            coords_cache_ttl=_float_env(
                "MAC_CHROME_COORDS_CACHE_TTL", default=MAX_COORDS_CACHE_TTL, lo=0.1, hi=MAX_COORDS_CACHE_TTL
            ),
            image_cache_size=_int_env("MAC_CHROME_IMAGE_CACHE_SIZE", default=20, lo=1, hi=1_000),
            image_cache_ttl=_float_env("MAC_CHROME_IMAGE_CACHE_TTL", default=600.0, lo=1.0, hi=86_400.0),
            max_connections=_int_env("MAC_CHROME_MAX_CONNECTIONS", default=5, lo=1, hi=100),
            connection_ttl=_float_env("MAC_CHROME_CONNECTION_TTL", default=30.0, lo=0.1, hi=3_600.0),
            max_benchmarks=_int_env("MAC_CHROME_MAX_BENCHMARKS", default=1000, lo=1, hi=1_000_000),
            batch_size=_int_env("MAC_CHROME_BATCH_SIZE", default=5, lo=1, hi=1_000),
            concurrency=_int_env("MAC_CHROME_CONCURRENCY", default=3, lo=1, hi=64),
            type_speed_ms=_int_env("MAC_CHROME_TYPE_SPEED", default=50, lo=0, hi=5_000),
            log_level=_str_env("MAC_CHROME_LOG_LEVEL", default="INFO").upper(),
        )
