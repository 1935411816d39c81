"""Domain exceptions for the achievement engine."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError
from sqlalchemy.exc import InterfaceError, OperationalError


class FitQuestError(Exception):
    """Base class for all engine errors."""


class NotFoundError(FitQuestError, LookupError):
    """A referenced entity (e.g. an achievement id) does not exist."""


class StorageError(FitQuestError):
    """The storage backend is temporarily unavailable. Safe to retry."""


class ConfigurationError(FitQuestError, ValueError):
    """Malformed catalog or settings. Fatal at startup."""


class AuthenticationRequiredError(FitQuestError):
    """An operation needs a resolved user id and none was available."""


@contextmanager
def translate_storage_errors(operation: str) -> Iterator[None]:
    """Re-raise backend connectivity failures as StorageError."""
    try:
        yield
    except (OperationalError, InterfaceError, RedisConnectionError, RedisTimeoutError) as exc:
        raise StorageError(f"{operation} failed: storage unavailable") from exc
