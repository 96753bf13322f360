# packledger/errors/pack_errors.py

class PackLedgerError(Exception):
    """Base exception for pack ledger errors."""
    pass

class NotFoundError(PackLedgerError):
    """Raised when a member, pack template or pack assignment is not found."""
    pass

class ValidationError(PackLedgerError):
    """Raised when input is malformed, e.g. a negative amount or an empty idempotency key."""
    pass

class InvalidTransitionError(PackLedgerError):
    """Raised when a manual status change is not allowed from the current status."""
    pass

class IneligibleError(PackLedgerError):
    """Raised when a check-in is attempted against a pack that is not active."""

    def __init__(self, reason: str, message: str = None):
        self.reason = reason
        super().__init__(message or f"Pack assignment is {reason}")

class ContentionError(PackLedgerError):
    """Raised when the check-in retry budget is spent on lost races. Safe to retry later."""
    pass
