"""Automatic classification of statement draft entries.

Classification resolves the counterparty contact, savings plan and security
of every entry from the owner's reference data, and flags entries that were
already booked. Ambiguous matches never fail; they leave the entry open or
flag it for review.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Mapping, Optional, Sequence

from draftledger.database.base import Database
from draftledger.domain.accounts import AccountService
from draftledger.domain.contacts import ContactService
from draftledger.domain.duplicates import DuplicateKey, is_duplicate, load_booked_keys
from draftledger.domain.entities import (
    Contact,
    ContactType,
    DraftStatus,
    EntryStatus,
    SavingsPlan,
    Security,
    StatementDraft,
    StatementDraftEntry,
)
from draftledger.domain.errors import (
    InvalidStateError,
    NotFoundError,
    draft_not_editable,
    draft_not_found,
    entry_not_found,
)
from draftledger.domain.matching import (
    match_contact,
    match_savings_plans,
    match_securities,
    normalize_text,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClassificationContext:
    """Reference data loaded once per classification call."""

    self_contact: Contact
    contacts: tuple[Contact, ...]
    aliases: Mapping[int, Sequence[str]]
    savings_plans: tuple[SavingsPlan, ...]
    securities: tuple[Security, ...]
    bank_contact_id: Optional[int] = None
    booked_keys: frozenset[DuplicateKey] = frozenset()


def assign_contact(entry: StatementDraftEntry, ctx: ClassificationContext) -> StatementDraftEntry:
    """Resolve the entry's counterparty from its recipient text."""
    recipient = normalize_text(entry.recipient_name)
    if not recipient.strip():
        if ctx.bank_contact_id is not None:
            return entry.mark_accounted(ctx.bank_contact_id)
        return entry

    matched = match_contact(recipient, ctx.contacts, ctx.aliases)
    if matched is None:
        return entry

    if matched.is_payment_intermediary:
        # The real beneficiary usually appears in the subject
        beneficiary = match_contact(normalize_text(entry.subject), ctx.contacts, ctx.aliases)
        return entry.assign_contact_without_accounting((beneficiary or matched).id)

    if (
        matched.contact_type == ContactType.BANK
        and ctx.bank_contact_id is not None
        and matched.id != ctx.bank_contact_id
    ):
        # Transfer to another of the owner's banks
        return entry.mark_cost_neutral(True).mark_accounted(ctx.self_contact.id)

    if matched.id == ctx.self_contact.id:
        entry = entry.mark_cost_neutral(True)
    return entry.mark_accounted(matched.id)


def assign_savings_plan(entry: StatementDraftEntry, ctx: ClassificationContext) -> StatementDraftEntry:
    """Match own transfers against savings plans by name or contract number."""
    if entry.contact_id is None or entry.contact_id != ctx.self_contact.id:
        return entry
    plans = match_savings_plans(entry.subject, ctx.savings_plans)
    if not plans:
        return entry
    entry = entry.assign_savings_plan(plans[0].id)
    if len(plans) > 1:
        logger.debug("Entry %s matches %d savings plans", entry.id, len(plans))
        entry = entry.mark_needs_check()
    return entry


def assign_security(entry: StatementDraftEntry, ctx: ClassificationContext) -> StatementDraftEntry:
    """Match the entry text against securities if none is set yet."""
    if entry.security_id is not None or not ctx.securities:
        return entry
    matches = match_securities(
        entry.subject, entry.booking_description, entry.recipient_name, ctx.securities
    )
    if not matches:
        return entry
    entry = entry.set_security(
        matches[0].id,
        entry.security_transaction_type,
        entry.security_quantity,
        entry.security_fee_amount,
        entry.security_tax_amount,
    )
    if len(matches) > 1:
        logger.debug("Entry %s matches %d securities", entry.id, len(matches))
        entry = entry.reset_open()
    return entry


def classify_entry(entry: StatementDraftEntry, ctx: ClassificationContext) -> StatementDraftEntry:
    """Return the classified form of one entry. Pure and idempotent."""
    entry = entry.reset_open()
    if is_duplicate(entry, ctx.booked_keys):
        return entry.mark_already_booked()
    if entry.status == EntryStatus.ALREADY_BOOKED:
        return entry

    entry = assign_contact(entry, ctx)
    entry = assign_savings_plan(entry, ctx)
    entry = assign_security(entry, ctx)
    return entry


class ClassificationService:
    """Service that classifies drafts against the owner's reference data."""

    def __init__(self, db: Database):
        """Initialize classification service.

        Args:
            db: Database instance
        """
        self.db = db
        self.account_service = AccountService(db)
        self.contact_service = ContactService(db)

    def detect_account(self, owner_id: int, draft: StatementDraft) -> Optional[int]:
        """Find the account a draft belongs to from its account reference.

        The reference is compared to IBANs, then names. Without any reference
        the owner's only account is used, if there is exactly one.
        """
        if draft.detected_account_id is not None:
            return draft.detected_account_id
        reference = (draft.account_name or "").strip()
        if reference:
            account = self.account_service.find_by_iban(owner_id, reference)
            if account is not None:
                return account.id
            for account in self.account_service.list_accounts(owner_id):
                if account.name.casefold() == reference.casefold():
                    return account.id
            return None
        accounts = self.account_service.list_accounts(owner_id)
        if len(accounts) == 1:
            return accounts[0].id
        return None

    def build_context(
        self, owner_id: int, draft: StatementDraft, as_of: Optional[date] = None
    ) -> ClassificationContext:
        """Load all reference data needed to classify one draft."""
        bank_contact_id = None
        keys = frozenset()
        if draft.detected_account_id is not None:
            account = self.db.get_account(owner_id, draft.detected_account_id)
            if account is not None:
                bank_contact_id = account.bank_contact_id
                keys = load_booked_keys(self.db, owner_id, account.id, as_of)
        return ClassificationContext(
            self_contact=self.contact_service.ensure_self_contact(owner_id),
            contacts=tuple(self.db.list_contacts(owner_id)),
            aliases=self.contact_service.alias_lookup(owner_id),
            savings_plans=tuple(self.db.list_savings_plans(owner_id, active_only=True)),
            securities=tuple(self.db.list_securities(owner_id, active_only=True)),
            bank_contact_id=bank_contact_id,
            booked_keys=keys,
        )

    def classify(
        self,
        owner_id: int,
        draft_id: int,
        entry_id: Optional[int] = None,
        expected_version: Optional[int] = None,
        as_of: Optional[date] = None,
    ) -> StatementDraft:
        """Classify a draft (or a single entry of it).

        Args:
            owner_id: Owning user
            draft_id: Draft to classify
            entry_id: Only classify this entry
            expected_version: Version the caller last read; defaults to the current one
            as_of: Reference date for duplicate detection (defaults to today)

        Returns:
            The classified draft

        Raises:
            NotFoundError: If the draft or entry does not exist
            InvalidStateError: If the draft is already committed
            ConcurrencyError: If the draft changed since expected_version
        """
        draft = self.db.get_draft(owner_id, draft_id)
        if draft is None:
            raise NotFoundError(draft_not_found(draft_id))
        if draft.status != DraftStatus.DRAFT:
            raise InvalidStateError(draft_not_editable(draft_id))
        if entry_id is not None and draft.find_entry(entry_id) is None:
            raise NotFoundError(entry_not_found(entry_id, draft_id))

        version = draft.version if expected_version is None else expected_version
        self.db.claim_draft(owner_id, draft_id, version)

        account_id = self.detect_account(owner_id, draft)
        if account_id != draft.detected_account_id:
            self.db.update_draft_account(owner_id, draft_id, account_id)
            draft = self.db.get_draft(owner_id, draft_id)

        ctx = self.build_context(owner_id, draft, as_of)
        changed = 0
        for entry in draft.entries:
            if entry_id is not None and entry.id != entry_id:
                continue
            classified = classify_entry(entry, ctx)
            if classified != entry:
                self.db.save_entry(owner_id, classified)
                changed += 1

        logger.info(
            "Classified draft %s: %d entries, %d changed", draft_id, len(draft.entries), changed
        )
        return self.db.get_draft(owner_id, draft_id)
