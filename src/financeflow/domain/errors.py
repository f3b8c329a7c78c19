"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class AuthRequiredError(DomainError):
    """A remote operation was attempted without a signed-in principal."""


class SubscriptionError(DomainError):
    """A live transaction feed failed or could not be opened."""


class PersistenceError(DomainError):
    """A single read or write against a backing store failed."""


class LoadingTimeoutError(DomainError):
    """Loading exceeded its bound. Recorded, never fatal."""


def transaction_not_found(transaction_id: str) -> str:
    """Return message for missing transaction."""
    return f"Transaction {transaction_id} not found"


def auth_required(operation: str) -> str:
    """Return message for a remote operation without a principal."""
    return f"Cannot {operation}: no signed-in user"


def invalid_paid_amount(paid_amount, amount) -> str:
    """Return message when a paid amount violates 0 <= paid <= amount."""
    return f"Paid amount {paid_amount} must be between 0 and {amount}"


def invalid_payment(amount) -> str:
    """Return message for a non-positive payment."""
    return f"Payment amount must be positive, got {amount}"


def live_updates_unsupported(store_name: str) -> str:
    """Return message when a store cannot open a live feed."""
    return f"{store_name} does not support live updates"
