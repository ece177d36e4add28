"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """

    kind = "error"


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""

    kind = "validation"


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""

    kind = "not_found"


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness or state violations."""

    kind = "conflict"


def account_not_found(account_id: int) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def submenu_not_found(submenu_id: int) -> str:
    """Return message for missing submenu."""
    return f"Submenu {submenu_id} not found"


def master_not_found(master_name: str) -> str:
    """Return message for missing or inactive master."""
    return f"Master type '{master_name}' not found"


def transaction_not_found(transaction_id: int) -> str:
    """Return message for missing transaction."""
    return f"Transaction {transaction_id} not found"


def reconciliation_not_found(reconciliation_id: int) -> str:
    """Return message for missing reconciliation."""
    return f"Reconciliation {reconciliation_id} not found"


def duplicate_account_code(code: str) -> str:
    """Return message for an account code already in use."""
    return f"Account code '{code}' already exists"


def invalid_transaction_type(value: object) -> str:
    """Return message for an unknown transaction type."""
    return f"Invalid transaction type '{value}'. Expected Deposit or Withdrawal"


def reconciliation_not_editable(reconciliation_id: int) -> str:
    """Return message when a completed reconciliation is modified."""
    return f"Reconciliation {reconciliation_id} is completed; only in-progress reconciliations can be modified"
