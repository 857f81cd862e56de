"""Booking of validated statement drafts into ledger postings.

Every booked entry produces a group of postings that share one group id:
a bank leg on the draft's account, a contact leg and, depending on the
entry, a savings plan leg and security legs. Entries routed through a
payment intermediary produce a zero-amount pair and book their split
drafts recursively.
"""

import logging
import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from draftledger.database.base import Database
from draftledger.domain.aggregates import PostingAggregateService
from draftledger.domain.attachments import (
    ENTITY_DRAFT_ENTRY,
    ENTITY_POSTING,
    AttachmentService,
)
from draftledger.domain.contacts import ContactService
from draftledger.domain.entities import (
    Account,
    Contact,
    DraftStatus,
    Posting,
    PostingKind,
    SecurityPostingSubType,
    SecurityTransactionType,
    StatementDraft,
    StatementDraftEntry,
)
from draftledger.domain.errors import (
    ConcurrencyError,
    InvalidStateError,
    NotFoundError,
    account_not_found,
    draft_not_editable,
    draft_not_found,
    entry_not_found,
)
from draftledger.domain.savings_plans import SavingsPlanService
from draftledger.domain.validation import (
    SKIPPED_STATUSES,
    DraftValidator,
    Severity,
    ValidationMessage,
    ValidationResult,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


@dataclass(frozen=True)
class BookingResult:
    """Outcome of a booking call."""

    success: bool
    has_warnings: bool
    validation: ValidationResult
    booked_count: int = 0
    next_open_draft_id: Optional[int] = None


@dataclass(frozen=True)
class SecurityLeg:
    sub_type: SecurityPostingSubType
    amount: Decimal
    quantity: Optional[Decimal] = None


def security_legs(entry: StatementDraftEntry) -> list[SecurityLeg]:
    """Compute the security postings of an entry.

    Fee and tax carry the sign of the entry amount. The trade leg holds the
    amount net of fee and tax; fee and tax legs are only produced when
    non-zero.
    """
    if entry.security_id is None or entry.security_transaction_type is None:
        return []
    tx_type = entry.security_transaction_type
    fee = abs(entry.security_fee_amount or ZERO)
    tax = abs(entry.security_tax_amount or ZERO)
    if entry.amount < 0:
        fee, tax = -fee, -tax

    if tx_type == SecurityTransactionType.BUY:
        factor = 1
        trade = entry.amount - fee - tax
    else:
        factor = -1
        trade = entry.amount + fee + tax

    quantity = None
    if entry.security_quantity is not None:
        if tx_type == SecurityTransactionType.BUY:
            quantity = abs(entry.security_quantity)
        elif tx_type == SecurityTransactionType.SELL:
            quantity = -abs(entry.security_quantity)

    legs = [SecurityLeg(SecurityPostingSubType(tx_type.value), trade, quantity)]
    if fee != 0:
        legs.append(SecurityLeg(SecurityPostingSubType.FEE, factor * fee))
    if tax != 0:
        legs.append(SecurityLeg(SecurityPostingSubType.TAX, factor * tax))
    return legs


@dataclass
class _BookingRun:
    """State of one booking call."""

    owner_id: int
    account: Account
    self_contact: Contact
    contacts: dict[int, Contact]
    visited: set[int]
    advanced_plans: set[int]


class BookingEngine:
    """Turns validated drafts into postings with partial or full commit."""

    def __init__(self, db: Database):
        """Initialize booking engine.

        Args:
            db: Database instance
        """
        self.db = db
        self.validator = DraftValidator(db)
        self.savings_plan_service = SavingsPlanService(db)
        self.aggregate_service = PostingAggregateService(db)
        self.attachment_service = AttachmentService(db)
        self.contact_service = ContactService(db)

    def book(
        self,
        owner_id: int,
        draft_id: int,
        entry_id: Optional[int] = None,
        force_warnings: bool = False,
        expected_version: Optional[int] = None,
    ) -> BookingResult:
        """Book a whole draft, or a single entry of it.

        Args:
            owner_id: Owning user
            draft_id: Draft to book
            entry_id: Book only this entry (partial booking)
            force_warnings: Book even if validation produced warnings
            expected_version: Version the caller last read; defaults to the current one

        Returns:
            BookingResult; success is False if validation blocked the booking

        Raises:
            NotFoundError: If the draft, entry or account is missing
            InvalidStateError: If the draft is committed, is a split draft, or
                the entry cannot be booked
            ConcurrencyError: If the draft changed since expected_version
        """
        draft = self._load_bookable_draft(owner_id, draft_id, entry_id)

        version = draft.version if expected_version is None else expected_version
        try:
            self.db.claim_draft(owner_id, draft_id, version)
        except ConcurrencyError:
            logger.warning("Booking of draft %s lost a concurrent update", draft_id)
            raise

        validation = self.validator.validate(owner_id, draft_id, entry_id)
        if not validation.is_valid:
            logger.info("Booking of draft %s blocked by validation errors", draft_id)
            return BookingResult(False, validation.has_warnings, validation)
        if validation.has_warnings and not force_warnings:
            logger.info("Booking of draft %s needs confirmation of warnings", draft_id)
            return BookingResult(False, True, validation)

        account = self.db.get_account(owner_id, draft.detected_account_id)
        if account is None:
            raise NotFoundError(account_not_found(draft.detected_account_id))
        self_contact = self.contact_service.ensure_self_contact(owner_id)

        run = _BookingRun(
            owner_id=owner_id,
            account=account,
            self_contact=self_contact,
            contacts={c.id: c for c in self.db.list_contacts(owner_id)},
            visited={draft.id},
            advanced_plans=set(),
        )

        # Re-read: validation may have changed entry states
        draft = self.db.get_draft(owner_id, draft_id)
        scope = [
            e
            for e in draft.entries
            if (entry_id is None or e.id == entry_id) and e.status not in SKIPPED_STATUSES
        ]
        booked_count = 0
        for entry in scope:
            if self._book_entry(run, draft, entry):
                booked_count += 1

        extra: list[ValidationMessage] = []
        if entry_id is None:
            self.db.set_draft_status(owner_id, draft_id, DraftStatus.COMMITTED)
            extra = self._archive_completed_plans(owner_id, draft_id, scope)
        else:
            for entry in scope:
                self.db.delete_entry(owner_id, entry.id)
            remaining = self.db.get_draft(owner_id, draft_id)
            if not remaining.entries:
                self.db.set_draft_status(owner_id, draft_id, DraftStatus.COMMITTED)

        logger.info(
            "Booked draft %s: %d entries%s",
            draft_id,
            booked_count,
            "" if entry_id is None else f" (entry {entry_id})",
        )
        return BookingResult(
            success=True,
            has_warnings=validation.has_warnings,
            validation=validation.with_messages(*extra),
            booked_count=booked_count,
            next_open_draft_id=self.next_open_draft_id(owner_id, draft_id),
        )

    def _load_bookable_draft(
        self, owner_id: int, draft_id: int, entry_id: Optional[int]
    ) -> StatementDraft:
        draft = self.db.get_draft(owner_id, draft_id)
        if draft is None:
            raise NotFoundError(draft_not_found(draft_id))
        if draft.status != DraftStatus.DRAFT:
            raise InvalidStateError(draft_not_editable(draft_id))
        if draft.split_parent is not None:
            raise InvalidStateError(
                f"Draft {draft_id} is the split draft of entry {draft.split_parent.entry_id} "
                "and is booked together with it"
            )
        if entry_id is not None:
            entry = draft.find_entry(entry_id)
            if entry is None:
                raise NotFoundError(entry_not_found(entry_id, draft_id))
            if entry.status in SKIPPED_STATUSES:
                raise InvalidStateError(
                    f"Entry {entry_id} has status '{entry.status.value}' and cannot be booked"
                )
        return draft

    def next_open_draft_id(self, owner_id: int, current_draft_id: int) -> Optional[int]:
        """Return the next open draft after the current one, else the last open draft."""
        open_ids = sorted(d.id for d in self.db.list_drafts(owner_id, status=DraftStatus.DRAFT))
        if not open_ids:
            return None
        for draft_id in open_ids:
            if draft_id > current_draft_id:
                return draft_id
        return open_ids[-1]

    def _post(
        self,
        run: _BookingRun,
        entry: StatementDraftEntry,
        kind: PostingKind,
        amount: Decimal,
        group_id: str,
        **links,
    ) -> Posting:
        posting = self.db.create_posting(
            run.owner_id,
            kind=kind,
            amount=amount,
            booking_date=entry.booking_date,
            group_id=group_id,
            source_entry_id=entry.id,
            valuta_date=entry.valuta_date,
            subject=entry.subject,
            recipient_name=entry.recipient_name,
            description=entry.booking_description,
            **links,
        )
        self.aggregate_service.upsert_for_posting(posting)
        return posting

    def _post_security_legs(
        self, run: _BookingRun, entry: StatementDraftEntry, group_id: str
    ) -> list[Posting]:
        return [
            self._post(
                run,
                entry,
                PostingKind.SECURITY,
                leg.amount,
                group_id,
                security_id=entry.security_id,
                security_sub_type=leg.sub_type,
                quantity=leg.quantity,
            )
            for leg in security_legs(entry)
        ]

    def _book_entry(
        self, run: _BookingRun, draft: StatementDraft, entry: StatementDraftEntry
    ) -> bool:
        """Create the postings of one entry. Returns False if nothing was posted."""
        if entry.contact_id is None:
            return False
        contact = run.contacts.get(entry.contact_id)
        group_id = uuid.uuid4().hex

        if contact is not None and contact.is_payment_intermediary and entry.split_draft_id:
            bank = self._post(
                run, entry, PostingKind.BANK, ZERO, group_id, account_id=run.account.id
            )
            others = [
                self._post(
                    run, entry, PostingKind.CONTACT, ZERO, group_id, contact_id=entry.contact_id
                )
            ]
            others.extend(self._post_security_legs(run, entry, group_id))
            self._move_attachments(run.owner_id, entry, bank, others)
            self._book_split_group(run, draft.id, entry.split_draft_id)
            return True

        bank = self._post(
            run, entry, PostingKind.BANK, entry.amount, group_id, account_id=run.account.id
        )
        others = [
            self._post(
                run, entry, PostingKind.CONTACT, entry.amount, group_id, contact_id=entry.contact_id
            )
        ]
        if entry.contact_id == run.self_contact.id and entry.savings_plan_id is not None:
            others.append(
                self._post(
                    run,
                    entry,
                    PostingKind.SAVINGS_PLAN,
                    -entry.amount,
                    group_id,
                    savings_plan_id=entry.savings_plan_id,
                )
            )
            if entry.savings_plan_id not in run.advanced_plans:
                run.advanced_plans.add(entry.savings_plan_id)
                self.savings_plan_service.advance_target_date_if_due(
                    run.owner_id, entry.savings_plan_id, entry.booking_date
                )
        others.extend(self._post_security_legs(run, entry, group_id))
        self._move_attachments(run.owner_id, entry, bank, others)
        return True

    def _book_split_group(self, run: _BookingRun, parent_draft_id: int, split_draft_id: int):
        """Book every open draft of a split draft's upload group and commit them."""
        if split_draft_id in run.visited:
            return
        group = [
            d
            for d in self.validator.load_split_group(run.owner_id, split_draft_id, parent_draft_id)
            if d.id not in run.visited
        ]
        run.visited.update(d.id for d in group)
        for child_draft in group:
            for child in child_draft.entries:
                if child.status in SKIPPED_STATUSES:
                    continue
                self._book_entry(run, child_draft, child)
            self.db.set_draft_status(run.owner_id, child_draft.id, DraftStatus.COMMITTED)
            logger.debug("Committed split draft %s", child_draft.id)

    def _move_attachments(
        self,
        owner_id: int,
        entry: StatementDraftEntry,
        bank: Posting,
        others: list[Posting],
    ):
        moved = self.attachment_service.reassign(
            owner_id, ENTITY_DRAFT_ENTRY, entry.id, ENTITY_POSTING, bank.id
        )
        for attachment in moved:
            for posting in others:
                self.attachment_service.create_reference(
                    owner_id, ENTITY_POSTING, posting.id, attachment
                )

    def _archive_completed_plans(
        self, owner_id: int, draft_id: int, entries: list[StatementDraftEntry]
    ) -> list[ValidationMessage]:
        messages = []
        plan_ids = {
            e.savings_plan_id
            for e in entries
            if e.archive_savings_plan_on_booking and e.savings_plan_id is not None
        }
        for plan_id in sorted(plan_ids):
            plan = self.db.get_savings_plan(owner_id, plan_id)
            if plan is None or not plan.is_active or plan.target_amount is None:
                continue
            if self.savings_plan_service.get_balance(owner_id, plan_id) != plan.target_amount:
                continue
            self.savings_plan_service.archive_plan(owner_id, plan_id)
            messages.append(
                ValidationMessage(
                    "SAVINGSPLAN_ARCHIVED",
                    Severity.INFORMATION,
                    f"Savings plan '{plan.name}' has been archived.",
                    draft_id,
                )
            )
        return messages
