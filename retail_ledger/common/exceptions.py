class LedgerError(Exception):
    """Base class for every error the reconciliation engine surfaces to callers."""
    status_code = 500


class NotFound(LedgerError):
    """Raised when an entity id does not resolve."""
    status_code = 404


class InvalidAmount(LedgerError):
    """Raised when a settlement amount is <= 0 or exceeds the due amount / balance."""
    status_code = 400


class ConsistencyViolation(LedgerError):
    """Raised when an invariant no longer holds around a store write, or stored data fails validation."""
    status_code = 409


class StoreUnavailable(LedgerError):
    """Raised when a range query or write fails at the storage boundary."""
    status_code = 503
