"""Failure taxonomy for referral reward processing."""

from __future__ import annotations

import asyncio

from sqlalchemy.exc import (
    DBAPIError,
    IntegrityError,
    InterfaceError,
    OperationalError,
    TimeoutError as PoolTimeoutError,
)


class RewardProcessingError(RuntimeError):
    """Base exception for reward processing failures."""

    retryable = False


class NotFoundError(RewardProcessingError):
    """Raised when the referenced purchase or purchaser does not exist."""


class StoreError(RewardProcessingError):
    """Transient store failure; the whole processing call may be retried."""

    retryable = True


class FatalError(RewardProcessingError):
    """Data-integrity or configuration problem that retrying will not fix."""


class ConfigurationError(FatalError):
    """Raised when reward configuration fails validation at startup."""


def translate_store_error(exc: BaseException) -> RewardProcessingError:
    """Map a store-layer exception onto the processing error taxonomy."""

    if isinstance(exc, RewardProcessingError):
        return exc
    if isinstance(exc, IntegrityError):
        return FatalError(f"Ledger constraint violated: {exc.orig}")
    if isinstance(exc, (OperationalError, InterfaceError, PoolTimeoutError)):
        return StoreError(f"Ledger store unavailable: {exc}")
    if isinstance(exc, DBAPIError):
        if exc.connection_invalidated:
            return StoreError(f"Ledger store connection lost: {exc}")
        return FatalError(f"Ledger store rejected the operation: {exc.orig}")
    if isinstance(exc, (asyncio.TimeoutError, OSError)):
        return StoreError(f"Ledger store unreachable: {exc!r}")
    return FatalError(f"Unexpected reward processing failure: {exc!r}")


__all__ = [
    "ConfigurationError",
    "FatalError",
    "NotFoundError",
    "RewardProcessingError",
    "StoreError",
    "translate_store_error",
]
