"""Error taxonomy shared by the store, query engine and HTTP layer.

Each error carries the HTTP status it maps to so the route layer can turn any
``ItemsError`` into a ``{"error": message}`` response without a lookup table.
"""
from __future__ import annotations


class ItemsError(Exception):
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFound(ItemsError):
    """No record matches the requested id."""

    status_code = 404


class InvalidParameter(ItemsError):
    """A query parameter or request body is malformed."""

    status_code = 400


class DataUnavailable(ItemsError):
    """The backing file could not be read, decoded, parsed or written."""

    status_code = 500
