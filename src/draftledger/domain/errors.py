"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist for the owner."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class DependencyError(DomainError):
    """Operation blocked due to dependent domain data."""


class InvalidStateError(DomainError):
    """Operation not allowed in the current draft or entry state."""


class ConcurrencyError(DomainError):
    """Draft was modified by another caller since it was read."""


def draft_not_found(draft_id: int) -> str:
    """Return message for missing statement draft."""
    return f"Statement draft {draft_id} not found"


def entry_not_found(entry_id: int, draft_id: int) -> str:
    """Return message for missing draft entry."""
    return f"Entry {entry_id} not found in draft {draft_id}"


def account_not_found(account_id: int) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def contact_not_found(contact_id: int) -> str:
    """Return message for missing contact."""
    return f"Contact {contact_id} not found"


def savings_plan_not_found(plan_id: int) -> str:
    """Return message for missing savings plan."""
    return f"Savings plan {plan_id} not found"


def security_not_found(security_id: int) -> str:
    """Return message for missing security."""
    return f"Security {security_id} not found"


def self_contact_missing(owner_id: int) -> str:
    """Return message when the owner has no Self contact yet."""
    return f"Owner {owner_id} has no Self contact"


def draft_not_editable(draft_id: int) -> str:
    """Return message for mutations on a committed draft."""
    return f"Statement draft {draft_id} is already committed"


def draft_version_conflict(draft_id: int, expected: int, actual: int | None) -> str:
    """Return message for a lost optimistic version race."""
    found = "deleted" if actual is None else f"at version {actual}"
    return (
        f"Statement draft {draft_id} was modified concurrently "
        f"(expected version {expected}, found {found})"
    )
