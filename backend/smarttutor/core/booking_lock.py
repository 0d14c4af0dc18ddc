# backend/smarttutor/core/booking_lock.py
"""
Per-slot mutex held across the availability check and the insert.

Backed by a Redis ``SET NX EX`` key whose value is a per-acquire token.
Release deletes the key only while it still holds that token. When Redis
is unreachable the lock fails open and callers rely on the partial unique
index on the bookings table to reject the losing insert.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
import logging
import threading
import uuid
from typing import Iterator, Optional

from redis import Redis

from smarttutor.core.config import settings
from smarttutor.monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)

_SYNC_REDIS: Optional[Redis] = None
_SYNC_REDIS_LOCK = threading.Lock()

# Deletes KEYS[1] only if it still holds ARGV[1]
RELEASE_LUA = r"""
if redis.call('GET', KEYS[1]) == ARGV[1] then
  return redis.call('DEL', KEYS[1])
end
return 0
"""


def _lock_key(slot_key: str) -> str:
    return f"slot:{slot_key}:mutex"


def _namespaced_key(key: str) -> str:
    return f"{settings.lock_namespace}:lock:{key}"


def _get_sync_redis() -> Optional[Redis]:
    global _SYNC_REDIS
    if _SYNC_REDIS is not None:
        return _SYNC_REDIS
    with _SYNC_REDIS_LOCK:
        if _SYNC_REDIS is not None:
            return _SYNC_REDIS
        try:
            client = Redis.from_url(
                settings.redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=settings.redis_socket_timeout_seconds,
                socket_timeout=settings.redis_socket_timeout_seconds,
            )
            client.ping()
        except Exception as exc:
            logger.warning("slot_lock_redis_unavailable: %s", exc)
            return None
        _SYNC_REDIS = client
        return _SYNC_REDIS


@dataclass(frozen=True)
class SlotLease:
    """
    Result of an acquire attempt.

    ``token`` is the value stored under the lock key and is required to
    release it. A lease that failed open is held without a token.
    """

    held: bool
    token: Optional[str] = None


def acquire_slot_lock(slot_key: str, ttl_s: int = 30) -> SlotLease:
    client = _get_sync_redis()
    if client is None:
        prometheus_metrics.record_booking_lock("acquire", "redis_unavailable")
        logger.warning(
            "slot_lock_redis_unavailable",
            extra={"slot_key": slot_key},
        )
        return SlotLease(held=True)

    token = uuid.uuid4().hex
    try:
        acquired = bool(client.set(_namespaced_key(_lock_key(slot_key)), token, nx=True, ex=ttl_s))
    except Exception as exc:
        prometheus_metrics.record_booking_lock("acquire", "error")
        logger.warning(
            "slot_lock_acquire_failed",
            extra={
                "slot_key": slot_key,
                "error": str(exc),
                "error_type": type(exc).__name__,
            },
        )
        return SlotLease(held=True)

    if not acquired:
        prometheus_metrics.record_booking_lock("acquire", "blocked")
        return SlotLease(held=False)
    prometheus_metrics.record_booking_lock("acquire", "success")
    return SlotLease(held=True, token=token)


def release_slot_lock(slot_key: str, token: str) -> bool:
    """
    Delete the lock key only while it still holds ``token``.

    Returns False when the key expired or now belongs to another holder.
    """
    client = _get_sync_redis()
    if client is None:
        prometheus_metrics.record_booking_lock("release", "redis_unavailable")
        return False
    try:
        released = bool(client.eval(RELEASE_LUA, 1, _namespaced_key(_lock_key(slot_key)), token))
    except Exception as exc:
        prometheus_metrics.record_booking_lock("release", "error")
        logger.warning(
            "slot_lock_release_failed",
            extra={
                "slot_key": slot_key,
                "error": str(exc),
                "error_type": type(exc).__name__,
            },
        )
        return False

    if released:
        prometheus_metrics.record_booking_lock("release", "success")
    else:
        prometheus_metrics.record_booking_lock("release", "not_owner")
        logger.warning("slot_lock_expired_before_release", extra={"slot_key": slot_key})
    return released


@contextmanager
def slot_lock(slot_key: str, ttl_s: Optional[int] = None) -> Iterator[bool]:
    """
    Hold the slot mutex for the duration of the block.

    Yields True when the lock is held (or Redis is unavailable / locking is
    disabled) and False when another request currently holds it.
    """
    if not settings.booking_lock_enabled:
        yield True
        return

    lease = acquire_slot_lock(slot_key, ttl_s=ttl_s or settings.booking_lock_ttl_seconds)
    try:
        yield lease.held
    finally:
        if lease.token is not None:
            release_slot_lock(slot_key, lease.token)
