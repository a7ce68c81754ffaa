"""Store exception hierarchy."""

from __future__ import annotations


class StoreError(Exception):
    """A read, write or subscription against the store failed."""

    def __init__(self, message: str, *, path: str | None = None):
        super().__init__(message)
        self.path = path


class PermissionDeniedError(StoreError):
    """The store rejected the request for the current credentials."""


class ConcurrentModificationError(StoreError):
    """A checked write found the record changed since it was read."""
