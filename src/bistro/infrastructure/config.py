from __future__ import annotations

import os

DEFAULT_CURRENCY = "BRL"
DEFAULT_UTC_OFFSET_HOURS = -4.0
DEFAULT_RECONCILE_INTERVAL_SECONDS = 5.0
DEFAULT_MENU_CACHE_TTL_SECONDS = 30


def pos_currency() -> str:
    return os.getenv("POS_CURRENCY", DEFAULT_CURRENCY).strip().upper() or DEFAULT_CURRENCY


def utc_offset_hours() -> float:
    raw = os.getenv("POS_UTC_OFFSET_HOURS")
    if raw is None or not raw.strip():
        return DEFAULT_UTC_OFFSET_HOURS
    try:
        return float(raw)
    except ValueError as exc:
        raise RuntimeError(f"POS_UTC_OFFSET_HOURS must be a number, got {raw!r}") from exc


def public_base_url() -> str:
    return os.getenv("PUBLIC_BASE_URL", "http://localhost:8000").rstrip("/")


def reconcile_interval_seconds() -> float:
    raw = os.getenv("RECONCILE_INTERVAL_SECONDS")
    if raw is None or not raw.strip():
        return DEFAULT_RECONCILE_INTERVAL_SECONDS
    value = float(raw)
    # Zero or negative disables the background reconciliation worker.
    return max(value, 0.5) if value > 0 else 0.0


def menu_cache_ttl_seconds() -> int:
    raw = os.getenv("MENU_CACHE_TTL_SECONDS")
    if raw is None or not raw.strip():
        return DEFAULT_MENU_CACHE_TTL_SECONDS
    return max(int(raw), 1)
