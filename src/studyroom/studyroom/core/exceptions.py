class DomainError(Exception):
    """Base exception for business rule violations."""

    kind = "domain"


class ValidationError(DomainError):
    """Raised when input data is invalid; nothing was written."""

    kind = "validation"


class NotFoundError(DomainError):
    """Raised when a referenced member, plan or session does not exist."""

    kind = "not_found"


class ConflictError(DomainError):
    """Raised when a write would break an invariant (seat, open session, receipt)."""

    kind = "conflict"


class StateError(DomainError):
    """Raised when an operation is not allowed in the member's current status."""

    kind = "state"


class StorageError(DomainError):
    """Raised when the ledger store itself fails; the transaction was rolled back."""

    kind = "storage"


class Unauthorized(DomainError):
    """Raised when the bridge token is missing or does not match."""

    kind = "unauthorized"


class BackupIOError(DomainError):
    """Raised when a backup snapshot cannot be written."""

    kind = "io"
