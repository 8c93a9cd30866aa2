"""Exception types for the mapping store and the alias service.

Two separate families keep driver details out of the service layer:

- ``StoreError`` subclasses are raised only by ``shortener.store`` and carry a
  ``StoreErrorKind``.
- ``AliasServiceError`` subclasses are raised only by
  ``shortener.alias_service`` and carry an ``ErrorKind``; the HTTP layer maps
  each kind to a status code.
"""

from shortener.enums import DuplicateField, ErrorKind, StoreErrorKind

__all__ = [
    "StoreError",
    "DuplicateKeyError",
    "RecordNotFoundError",
    "AliasServiceError",
    "InvalidRequestError",
    "AliasConflictError",
    "URLAlreadyExistsError",
    "AliasNotFoundError",
    "StorageError",
]


class StoreError(Exception):
    kind: StoreErrorKind = StoreErrorKind.UNAVAILABLE


class DuplicateKeyError(StoreError):
    kind = StoreErrorKind.DUPLICATE_KEY

    def __init__(self, field: DuplicateField, message: str | None = None) -> None:
        self.field = field
        super().__init__(message or f"duplicate value for unique column '{field.value}'")


class RecordNotFoundError(StoreError):
    kind = StoreErrorKind.NOT_FOUND


class AliasServiceError(Exception):
    kind: ErrorKind = ErrorKind.STORAGE_ERROR


class InvalidRequestError(AliasServiceError):
    kind = ErrorKind.INVALID_REQUEST


class AliasConflictError(AliasServiceError):
    kind = ErrorKind.ALIAS_CONFLICT


class URLAlreadyExistsError(AliasServiceError):
    kind = ErrorKind.URL_ALREADY_EXISTS


class AliasNotFoundError(AliasServiceError):
    kind = ErrorKind.ALIAS_NOT_FOUND


class StorageError(AliasServiceError):
    kind = ErrorKind.STORAGE_ERROR
