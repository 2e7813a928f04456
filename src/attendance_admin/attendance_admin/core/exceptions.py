class DomainError(Exception):
    """Base exception for data-layer rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid (e.g. a record without an ``id``)."""


class BackendError(DomainError):
    """Raised when the storage backend rejects a read or write."""


class UnsupportedFormatError(DomainError):
    """Raised when an uploaded file is not a recognized import format."""


class NotFoundError(DomainError):
    """Raised by write paths that target a record which does not exist.

    Read paths never raise it; they return ``None`` or an empty list.
    """
