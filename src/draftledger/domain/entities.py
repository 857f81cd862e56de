"""Domain model entities for draftledger.

These are pure data classes representing business concepts, independent of
database schema. Entities are immutable; state transitions on draft entries
return a new instance that the owning service persists.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional


class ContactType(str, Enum):
    """Kinds of contacts a posting can be accounted to."""

    SELF = "self"
    BANK = "bank"
    PERSON = "person"
    ORGANIZATION = "organization"
    OTHER = "other"


class AccountType(str, Enum):
    """Bank account kinds."""

    GIRO = "giro"
    SAVINGS = "savings"


class SavingsPlanType(str, Enum):
    ONE_TIME = "one_time"
    RECURRING = "recurring"
    OPEN = "open"


class SavingsPlanInterval(str, Enum):
    """Recurrence interval of a savings plan."""

    MONTHLY = "monthly"
    BI_MONTHLY = "bi_monthly"
    QUARTERLY = "quarterly"
    SEMI_ANNUALLY = "semi_annually"
    ANNUALLY = "annually"

    @property
    def months(self) -> int:
        return {
            SavingsPlanInterval.MONTHLY: 1,
            SavingsPlanInterval.BI_MONTHLY: 2,
            SavingsPlanInterval.QUARTERLY: 3,
            SavingsPlanInterval.SEMI_ANNUALLY: 6,
            SavingsPlanInterval.ANNUALLY: 12,
        }[self]


class DraftStatus(str, Enum):
    DRAFT = "draft"
    COMMITTED = "committed"


class EntryStatus(str, Enum):
    """Lifecycle of a statement draft entry.

    OPEN -> {ALREADY_BOOKED, ANNOUNCED, ACCOUNTED, NEEDS_CHECK}; booked
    entries are removed (partial booking) or committed with their draft.
    """

    OPEN = "open"
    ANNOUNCED = "announced"
    ACCOUNTED = "accounted"
    ALREADY_BOOKED = "already_booked"
    NEEDS_CHECK = "needs_check"


class SecurityTransactionType(str, Enum):
    BUY = "buy"
    SELL = "sell"
    DIVIDEND = "dividend"


class PostingKind(str, Enum):
    BANK = "bank"
    CONTACT = "contact"
    SAVINGS_PLAN = "savings_plan"
    SECURITY = "security"


class SecurityPostingSubType(str, Enum):
    BUY = "buy"
    SELL = "sell"
    DIVIDEND = "dividend"
    FEE = "fee"
    TAX = "tax"


@dataclass(frozen=True)
class Account:
    """Bank account domain entity."""

    id: int
    owner_id: int
    name: str
    account_type: AccountType
    iban: Optional[str]
    bank_contact_id: int
    created_at: datetime


@dataclass(frozen=True)
class Contact:
    """Counterparty domain entity."""

    id: int
    owner_id: int
    name: str
    contact_type: ContactType
    is_payment_intermediary: bool
    created_at: datetime


@dataclass(frozen=True)
class AliasName:
    """Wildcard pattern (`*`, `?`) that identifies a contact."""

    id: int
    contact_id: int
    pattern: str


@dataclass(frozen=True)
class SavingsPlan:
    """Savings plan domain entity."""

    id: int
    owner_id: int
    name: str
    plan_type: SavingsPlanType
    target_amount: Optional[Decimal]
    target_date: Optional[date]
    interval: Optional[SavingsPlanInterval]
    contract_number: Optional[str]
    is_active: bool
    created_at: datetime
    archived_at: Optional[datetime] = None


@dataclass(frozen=True)
class Security:
    """Security (stock, fund, bond) domain entity."""

    id: int
    owner_id: int
    name: str
    identifier: str
    external_code: Optional[str]
    currency_code: str
    is_active: bool
    created_at: datetime


@dataclass(frozen=True)
class StatementMovement:
    """One parsed statement line as delivered by a statement reader."""

    booking_date: date
    amount: Decimal
    subject: str = ""
    counterparty: Optional[str] = None
    valuta_date: Optional[date] = None
    currency_code: str = "EUR"
    posting_description: Optional[str] = None
    quantity: Optional[Decimal] = None
    fee_amount: Optional[Decimal] = None
    tax_amount: Optional[Decimal] = None
    is_preview: bool = False


@dataclass(frozen=True)
class SplitReference:
    """Entry in a parent draft that links to a split draft."""

    entry_id: int
    draft_id: int
    amount: Decimal


@dataclass(frozen=True)
class StatementDraftEntry:
    """One statement line within a draft."""

    id: int
    draft_id: int
    booking_date: date
    amount: Decimal
    subject: str
    recipient_name: Optional[str] = None
    valuta_date: Optional[date] = None
    currency_code: str = "EUR"
    booking_description: Optional[str] = None
    is_announced: bool = False
    is_cost_neutral: bool = False
    archive_savings_plan_on_booking: bool = False
    status: EntryStatus = EntryStatus.OPEN
    contact_id: Optional[int] = None
    savings_plan_id: Optional[int] = None
    split_draft_id: Optional[int] = None
    security_id: Optional[int] = None
    security_transaction_type: Optional[SecurityTransactionType] = None
    security_quantity: Optional[Decimal] = None
    security_fee_amount: Optional[Decimal] = None
    security_tax_amount: Optional[Decimal] = None

    def _base_status(self) -> EntryStatus:
        return EntryStatus.ANNOUNCED if self.is_announced else EntryStatus.OPEN

    def mark_accounted(self, contact_id: int) -> "StatementDraftEntry":
        return replace(self, contact_id=contact_id, status=EntryStatus.ACCOUNTED)

    def assign_contact_without_accounting(self, contact_id: int) -> "StatementDraftEntry":
        """Set the contact but keep the entry open, e.g. pending a split draft."""
        status = self.status if self.status == EntryStatus.ALREADY_BOOKED else self._base_status()
        return replace(self, contact_id=contact_id, status=status)

    def clear_contact(self) -> "StatementDraftEntry":
        status = self.status if self.status == EntryStatus.ALREADY_BOOKED else self._base_status()
        return replace(self, contact_id=None, status=status)

    def reset_open(self) -> "StatementDraftEntry":
        # duplicates are never downgraded
        if self.status == EntryStatus.ALREADY_BOOKED:
            return self
        return replace(self, status=self._base_status())

    def mark_needs_check(self) -> "StatementDraftEntry":
        if self.status == EntryStatus.ALREADY_BOOKED:
            return self
        return replace(self, status=EntryStatus.NEEDS_CHECK)

    def mark_already_booked(self) -> "StatementDraftEntry":
        return replace(self, status=EntryStatus.ALREADY_BOOKED)

    def mark_cost_neutral(self, value: bool) -> "StatementDraftEntry":
        return replace(self, is_cost_neutral=value)

    def assign_savings_plan(self, savings_plan_id: Optional[int]) -> "StatementDraftEntry":
        return replace(self, savings_plan_id=savings_plan_id)

    def set_archive_savings_plan_on_booking(self, value: bool) -> "StatementDraftEntry":
        return replace(self, archive_savings_plan_on_booking=value)

    def assign_split_draft(self, split_draft_id: Optional[int]) -> "StatementDraftEntry":
        return replace(self, split_draft_id=split_draft_id)

    def set_security(
        self,
        security_id: Optional[int],
        transaction_type: Optional[SecurityTransactionType] = None,
        quantity: Optional[Decimal] = None,
        fee_amount: Optional[Decimal] = None,
        tax_amount: Optional[Decimal] = None,
    ) -> "StatementDraftEntry":
        if security_id is None:
            transaction_type = quantity = fee_amount = tax_amount = None
        return replace(
            self,
            security_id=security_id,
            security_transaction_type=transaction_type,
            security_quantity=quantity,
            security_fee_amount=fee_amount,
            security_tax_amount=tax_amount,
        )

    def update_core(
        self,
        booking_date: date,
        valuta_date: Optional[date],
        amount: Decimal,
        subject: str,
        recipient_name: Optional[str],
        currency_code: Optional[str],
        booking_description: Optional[str],
    ) -> "StatementDraftEntry":
        return replace(
            self,
            booking_date=booking_date,
            valuta_date=valuta_date,
            amount=amount,
            subject=subject,
            recipient_name=recipient_name,
            currency_code=currency_code or "EUR",
            booking_description=booking_description,
        )


@dataclass(frozen=True)
class StatementDraft:
    """Editable batch of statement entries awaiting classification and booking."""

    id: int
    owner_id: int
    original_file_name: str
    description: Optional[str]
    account_name: Optional[str]
    detected_account_id: Optional[int]
    upload_group_id: Optional[str]
    status: DraftStatus
    version: int
    created_at: datetime
    entries: tuple[StatementDraftEntry, ...] = ()
    split_parent: Optional[SplitReference] = None

    @property
    def total_amount(self) -> Decimal:
        return sum((e.amount for e in self.entries), Decimal("0"))

    def find_entry(self, entry_id: int) -> Optional[StatementDraftEntry]:
        for entry in self.entries:
            if entry.id == entry_id:
                return entry
        return None


@dataclass(frozen=True)
class Posting:
    """Immutable ledger leg. Legs sharing a group_id form one economic event."""

    id: int
    owner_id: int
    kind: PostingKind
    amount: Decimal
    booking_date: date
    group_id: str
    source_entry_id: Optional[int] = None
    valuta_date: Optional[date] = None
    subject: Optional[str] = None
    recipient_name: Optional[str] = None
    description: Optional[str] = None
    account_id: Optional[int] = None
    contact_id: Optional[int] = None
    savings_plan_id: Optional[int] = None
    security_id: Optional[int] = None
    security_sub_type: Optional[SecurityPostingSubType] = None
    quantity: Optional[Decimal] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class Attachment:
    """File attached to an entity, or a reference to another attachment."""

    id: int
    owner_id: int
    entity_kind: str
    entity_id: int
    file_name: str
    reference_attachment_id: Optional[int] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class PostingAggregate:
    """Monthly sum of postings for one linked entity."""

    id: int
    owner_id: int
    kind: PostingKind
    entity_id: Optional[int]
    security_sub_type: Optional[SecurityPostingSubType]
    period_start: date
    amount: Decimal
    posting_count: int = field(default=0)
