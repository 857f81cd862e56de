"""Contact domain service."""

import logging
from typing import Optional

from draftledger.database.base import Database
from draftledger.domain.entities import AliasName, Contact, ContactType
from draftledger.domain.errors import (
    ConflictError,
    DependencyError,
    NotFoundError,
    ValidationError,
    contact_not_found,
)

logger = logging.getLogger(__name__)

DEFAULT_SELF_NAME = "Myself"


class ContactService:
    """Service for managing contacts and their alias patterns."""

    def __init__(self, db: Database):
        """Initialize contact service.

        Args:
            db: Database instance
        """
        self.db = db

    def ensure_self_contact(self, owner_id: int, name: str = DEFAULT_SELF_NAME) -> Contact:
        """Return the owner's Self contact, creating it on first use."""
        existing = self.db.get_self_contact(owner_id)
        if existing is not None:
            return existing
        contact_id = self.db.create_contact(owner_id, name, ContactType.SELF)
        logger.info("Created Self contact %s for owner %s", contact_id, owner_id)
        return self.db.get_contact(owner_id, contact_id)

    def create_contact(
        self,
        owner_id: int,
        name: str,
        contact_type: ContactType,
        is_payment_intermediary: bool = False,
    ) -> int:
        """Create a new contact.

        Args:
            owner_id: Owning user
            name: Display name
            contact_type: Contact type (Self is reserved)
            is_payment_intermediary: Whether payments through this contact need a split draft

        Returns:
            Contact ID

        Raises:
            ValidationError: If the name is empty or the type is Self
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Contact name must not be empty")
        if contact_type == ContactType.SELF:
            raise ValidationError("The Self contact is created automatically")
        return self.db.create_contact(owner_id, name, contact_type, is_payment_intermediary)

    def get_contact(self, owner_id: int, contact_id: int) -> Optional[Contact]:
        return self.db.get_contact(owner_id, contact_id)

    def require_contact(self, owner_id: int, contact_id: int) -> Contact:
        contact = self.db.get_contact(owner_id, contact_id)
        if contact is None:
            raise NotFoundError(contact_not_found(contact_id))
        return contact

    def list_contacts(self, owner_id: int) -> list[Contact]:
        return self.db.list_contacts(owner_id)

    def find_by_name(self, owner_id: int, name: str) -> Optional[Contact]:
        """Find a contact by case-insensitive name."""
        wanted = name.strip().casefold()
        for contact in self.db.list_contacts(owner_id):
            if contact.name.casefold() == wanted:
                return contact
        return None

    def update_contact(
        self,
        owner_id: int,
        contact_id: int,
        name: str,
        contact_type: ContactType,
        is_payment_intermediary: bool = False,
    ) -> None:
        """Rename or retype a contact.

        Raises:
            NotFoundError: If the contact does not exist
            ValidationError: If the change would create, retype or rename away a Self contact
        """
        contact = self.require_contact(owner_id, contact_id)
        name = (name or "").strip()
        if not name:
            raise ValidationError("Contact name must not be empty")
        if contact.contact_type == ContactType.SELF and contact_type != ContactType.SELF:
            raise ValidationError("The Self contact cannot change its type")
        if contact.contact_type != ContactType.SELF and contact_type == ContactType.SELF:
            raise ValidationError("Only one Self contact is allowed")
        if contact.contact_type == ContactType.SELF and is_payment_intermediary:
            raise ValidationError("The Self contact cannot be a payment intermediary")
        self.db.update_contact(owner_id, contact_id, name, contact_type, is_payment_intermediary)

    def delete_contact(self, owner_id: int, contact_id: int) -> None:
        """Delete a contact that nothing refers to.

        Raises:
            NotFoundError: If the contact does not exist
            ValidationError: If it is the Self contact
            DependencyError: If postings, accounts or draft entries still use it
        """
        contact = self.require_contact(owner_id, contact_id)
        if contact.contact_type == ContactType.SELF:
            raise ValidationError("The Self contact cannot be deleted")
        usage = self.db.get_contact_usage_count(owner_id, contact_id)
        if usage > 0:
            raise DependencyError(
                f"Cannot delete contact {contact_id}: it is referenced {usage} "
                f"time{'s' if usage != 1 else ''}."
            )
        self.db.delete_contact(owner_id, contact_id)

    def add_alias(self, owner_id: int, contact_id: int, pattern: str) -> int:
        """Add a wildcard alias ('*', '?') to a contact.

        Raises:
            ValidationError: If the pattern is blank
            ConflictError: If the contact already has this alias
        """
        self.require_contact(owner_id, contact_id)
        pattern = (pattern or "").strip()
        if not pattern:
            raise ValidationError("Alias pattern must not be empty")
        for alias in self.db.list_aliases(owner_id, contact_id):
            if alias.pattern.casefold() == pattern.casefold():
                raise ConflictError(f"Alias '{pattern}' already exists for contact {contact_id}")
        return self.db.add_alias(owner_id, contact_id, pattern)

    def list_aliases(self, owner_id: int, contact_id: Optional[int] = None) -> list[AliasName]:
        return self.db.list_aliases(owner_id, contact_id)

    def delete_alias(self, owner_id: int, alias_id: int) -> None:
        self.db.delete_alias(owner_id, alias_id)

    def alias_lookup(self, owner_id: int) -> dict[int, list[str]]:
        """Map contact id to its alias patterns, in alias creation order."""
        lookup: dict[int, list[str]] = {}
        for alias in self.db.list_aliases(owner_id):
            lookup.setdefault(alias.contact_id, []).append(alias.pattern)
        return lookup
