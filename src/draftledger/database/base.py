"""Abstract database interface.

Every query and mutation takes the owning user's id and must only see or
touch rows of that owner.
"""

from abc import ABC, abstractmethod
from typing import Optional
from datetime import date
from decimal import Decimal

# Import entities directly to avoid circular import through domain/__init__.py
from draftledger.domain.entities import (
    Account,
    AccountType,
    AliasName,
    Attachment,
    Contact,
    ContactType,
    DraftStatus,
    Posting,
    PostingAggregate,
    PostingKind,
    SavingsPlan,
    SavingsPlanInterval,
    SavingsPlanType,
    Security,
    SecurityPostingSubType,
    SplitReference,
    StatementDraft,
    StatementDraftEntry,
    StatementMovement,
)


class Database(ABC):
    """Abstract database interface for draftledger."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Contact operations
    @abstractmethod
    def create_contact(
        self,
        owner_id: int,
        name: str,
        contact_type: ContactType,
        is_payment_intermediary: bool = False,
    ) -> int:
        """Create a new contact. Returns contact ID."""
        pass

    @abstractmethod
    def get_contact(self, owner_id: int, contact_id: int) -> Optional[Contact]:
        """Get contact by ID."""
        pass

    @abstractmethod
    def get_self_contact(self, owner_id: int) -> Optional[Contact]:
        """Get the owner's Self contact."""
        pass

    @abstractmethod
    def list_contacts(self, owner_id: int) -> list[Contact]:
        """List all contacts ordered by name."""
        pass

    @abstractmethod
    def update_contact(
        self,
        owner_id: int,
        contact_id: int,
        name: str,
        contact_type: ContactType,
        is_payment_intermediary: bool,
    ) -> None:
        """Update a contact's name, type and intermediary flag."""
        pass

    @abstractmethod
    def delete_contact(self, owner_id: int, contact_id: int) -> None:
        """Delete a contact and its aliases."""
        pass

    @abstractmethod
    def get_contact_usage_count(self, owner_id: int, contact_id: int) -> int:
        """Count postings, accounts and draft entries referencing a contact."""
        pass

    @abstractmethod
    def add_alias(self, owner_id: int, contact_id: int, pattern: str) -> int:
        """Add an alias pattern to a contact. Returns alias ID."""
        pass

    @abstractmethod
    def list_aliases(self, owner_id: int, contact_id: Optional[int] = None) -> list[AliasName]:
        """List alias patterns, optionally for a single contact."""
        pass

    @abstractmethod
    def delete_alias(self, owner_id: int, alias_id: int) -> None:
        """Delete an alias pattern."""
        pass

    # Account operations
    @abstractmethod
    def create_account(
        self,
        owner_id: int,
        name: str,
        account_type: AccountType,
        iban: Optional[str],
        bank_contact_id: int,
    ) -> int:
        """Create a new account. Returns account ID."""
        pass

    @abstractmethod
    def get_account(self, owner_id: int, account_id: int) -> Optional[Account]:
        """Get account by ID."""
        pass

    @abstractmethod
    def list_accounts(self, owner_id: int) -> list[Account]:
        """List all accounts ordered by name."""
        pass

    # Savings plan operations
    @abstractmethod
    def create_savings_plan(
        self,
        owner_id: int,
        name: str,
        plan_type: SavingsPlanType,
        target_amount: Optional[Decimal] = None,
        target_date: Optional[date] = None,
        interval: Optional[SavingsPlanInterval] = None,
        contract_number: Optional[str] = None,
    ) -> int:
        """Create a new savings plan. Returns plan ID."""
        pass

    @abstractmethod
    def get_savings_plan(self, owner_id: int, plan_id: int) -> Optional[SavingsPlan]:
        """Get savings plan by ID."""
        pass

    @abstractmethod
    def list_savings_plans(self, owner_id: int, active_only: bool = False) -> list[SavingsPlan]:
        """List savings plans ordered by name."""
        pass

    @abstractmethod
    def update_savings_plan_target_date(self, owner_id: int, plan_id: int, target_date: date) -> None:
        """Move a savings plan's target date."""
        pass

    @abstractmethod
    def archive_savings_plan(self, owner_id: int, plan_id: int) -> None:
        """Deactivate a savings plan and stamp its archive time."""
        pass

    # Security operations
    @abstractmethod
    def create_security(
        self,
        owner_id: int,
        name: str,
        identifier: str,
        external_code: Optional[str] = None,
        currency_code: str = "EUR",
    ) -> int:
        """Create a new security. Returns security ID."""
        pass

    @abstractmethod
    def get_security(self, owner_id: int, security_id: int) -> Optional[Security]:
        """Get security by ID."""
        pass

    @abstractmethod
    def list_securities(self, owner_id: int, active_only: bool = False) -> list[Security]:
        """List securities ordered by name."""
        pass

    @abstractmethod
    def set_security_active(self, owner_id: int, security_id: int, is_active: bool) -> None:
        """Activate or deactivate a security."""
        pass

    # Statement draft operations
    @abstractmethod
    def create_draft(
        self,
        owner_id: int,
        original_file_name: str,
        description: Optional[str] = None,
        account_name: Optional[str] = None,
        detected_account_id: Optional[int] = None,
        upload_group_id: Optional[str] = None,
    ) -> int:
        """Create a new statement draft. Returns draft ID."""
        pass

    @abstractmethod
    def get_draft(self, owner_id: int, draft_id: int) -> Optional[StatementDraft]:
        """Get draft by ID with its entries and split parent reference."""
        pass

    @abstractmethod
    def list_drafts(
        self,
        owner_id: int,
        status: Optional[DraftStatus] = None,
        upload_group_id: Optional[str] = None,
    ) -> list[StatementDraft]:
        """List drafts ordered by creation time, then ID."""
        pass

    @abstractmethod
    def update_draft_account(self, owner_id: int, draft_id: int, account_id: Optional[int]) -> None:
        """Set or clear a draft's detected account."""
        pass

    @abstractmethod
    def set_draft_status(self, owner_id: int, draft_id: int, status: DraftStatus) -> None:
        """Change a draft's status."""
        pass

    @abstractmethod
    def delete_draft(self, owner_id: int, draft_id: int) -> None:
        """Delete a draft together with its entries."""
        pass

    @abstractmethod
    def claim_draft(self, owner_id: int, draft_id: int, expected_version: int) -> int:
        """Atomically bump a draft's version if it still equals expected_version.

        Returns the new version. Raises ConcurrencyError if another caller
        claimed the draft first, NotFoundError if it does not exist.
        """
        pass

    @abstractmethod
    def find_split_parent(self, owner_id: int, split_draft_id: int) -> Optional[SplitReference]:
        """Find the entry (in any draft) whose split draft is split_draft_id."""
        pass

    # Draft entry operations
    @abstractmethod
    def add_entries(
        self, owner_id: int, draft_id: int, movements: list[StatementMovement]
    ) -> list[int]:
        """Append one entry per movement. Returns entry IDs in order."""
        pass

    @abstractmethod
    def get_entry(self, owner_id: int, entry_id: int) -> Optional[StatementDraftEntry]:
        """Get a draft entry by ID."""
        pass

    @abstractmethod
    def save_entry(self, owner_id: int, entry: StatementDraftEntry) -> None:
        """Persist all mutable fields of an entry."""
        pass

    @abstractmethod
    def delete_entry(self, owner_id: int, entry_id: int) -> None:
        """Delete a draft entry."""
        pass

    # Posting operations
    @abstractmethod
    def create_posting(
        self,
        owner_id: int,
        kind: PostingKind,
        amount: Decimal,
        booking_date: date,
        group_id: str,
        source_entry_id: Optional[int] = None,
        valuta_date: Optional[date] = None,
        subject: Optional[str] = None,
        recipient_name: Optional[str] = None,
        description: Optional[str] = None,
        account_id: Optional[int] = None,
        contact_id: Optional[int] = None,
        savings_plan_id: Optional[int] = None,
        security_id: Optional[int] = None,
        security_sub_type: Optional[SecurityPostingSubType] = None,
        quantity: Optional[Decimal] = None,
    ) -> Posting:
        """Append a posting and return it."""
        pass

    @abstractmethod
    def list_postings(
        self,
        owner_id: int,
        kind: Optional[PostingKind] = None,
        account_id: Optional[int] = None,
        contact_id: Optional[int] = None,
        savings_plan_id: Optional[int] = None,
        group_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[Posting]:
        """List postings with optional filters, ordered by booking date then ID."""
        pass

    # Attachment operations
    @abstractmethod
    def create_attachment(
        self,
        owner_id: int,
        entity_kind: str,
        entity_id: int,
        file_name: str,
        reference_attachment_id: Optional[int] = None,
    ) -> int:
        """Create attachment metadata. Returns attachment ID."""
        pass

    @abstractmethod
    def list_attachments(self, owner_id: int, entity_kind: str, entity_id: int) -> list[Attachment]:
        """List attachments of one entity."""
        pass

    @abstractmethod
    def reassign_attachment(
        self, owner_id: int, attachment_id: int, entity_kind: str, entity_id: int
    ) -> None:
        """Move an attachment to another entity."""
        pass

    # Aggregate operations
    @abstractmethod
    def add_to_posting_aggregate(
        self,
        owner_id: int,
        kind: PostingKind,
        entity_id: Optional[int],
        security_sub_type: Optional[SecurityPostingSubType],
        period_start: date,
        amount: Decimal,
    ) -> None:
        """Add an amount to the aggregate row for the key, creating it if missing."""
        pass

    @abstractmethod
    def list_posting_aggregates(
        self, owner_id: int, kind: Optional[PostingKind] = None
    ) -> list[PostingAggregate]:
        """List aggregate rows ordered by period."""
        pass
