"""Statement draft lifecycle service.

Creates drafts from uploaded statements and provides the manual editing
operations used between classification and booking.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence

from draftledger.database.base import Database
from draftledger.domain.accounts import AccountService
from draftledger.domain.classification import ClassificationService
from draftledger.domain.contacts import ContactService
from draftledger.domain.entities import (
    DraftStatus,
    EntryStatus,
    SecurityTransactionType,
    StatementDraft,
    StatementDraftEntry,
    StatementMovement,
)
from draftledger.domain.errors import (
    InvalidStateError,
    NotFoundError,
    ValidationError,
    draft_not_editable,
    draft_not_found,
    entry_not_found,
)
from draftledger.domain.grouping import ImportSplitInfo, ImportSplitSettings, group_movements
from draftledger.domain.savings_plans import SavingsPlanService
from draftledger.domain.securities import SecurityService
from draftledger.readers.base import StatementParseResult, StatementReader, parse_statement

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImportResult:
    """Drafts created from one upload."""

    drafts: tuple[StatementDraft, ...]
    split_info: ImportSplitInfo

    @property
    def upload_group_id(self) -> Optional[str]:
        return self.drafts[0].upload_group_id if self.drafts else None


def draft_description(base: Optional[str], label: str) -> Optional[str]:
    """Combine the statement description with a group label."""
    base = (base or "").strip()
    if not label:
        return base or None
    return f"{base} {label}" if base else label


class StatementDraftService:
    """Service for importing and editing statement drafts."""

    def __init__(self, db: Database):
        """Initialize statement draft service.

        Args:
            db: Database instance
        """
        self.db = db
        self.account_service = AccountService(db)
        self.contact_service = ContactService(db)
        self.savings_plan_service = SavingsPlanService(db)
        self.security_service = SecurityService(db)
        self.classification_service = ClassificationService(db)

    # Import
    def import_statement(
        self,
        owner_id: int,
        file_name: str,
        data: bytes,
        readers: Sequence[StatementReader],
        settings: Optional[ImportSplitSettings] = None,
    ) -> ImportResult:
        """Parse an uploaded file and create classified drafts from it.

        Raises:
            ValidationError: If no reader can parse the file or the settings are invalid
        """
        parse_result = parse_statement(readers, file_name, data)
        return self.create_drafts(owner_id, file_name, parse_result, settings)

    def create_drafts(
        self,
        owner_id: int,
        file_name: str,
        parse_result: StatementParseResult,
        settings: Optional[ImportSplitSettings] = None,
    ) -> ImportResult:
        """Split parsed movements into drafts of one upload group and classify them.

        Args:
            owner_id: Owning user
            file_name: Original file name of the upload
            parse_result: Header and movements from a statement reader
            settings: Import split settings (defaults apply if omitted)

        Returns:
            ImportResult with the created drafts in creation order
        """
        settings = settings or ImportSplitSettings()
        groups, info = group_movements(parse_result.movements, settings)
        header = parse_result.header
        upload_group_id = uuid.uuid4().hex

        detected = self.account_service.find_by_iban(owner_id, header.account_iban)
        drafts = []
        for group in groups:
            draft_id = self.db.create_draft(
                owner_id,
                original_file_name=file_name,
                description=draft_description(header.description, group.label),
                account_name=header.account_reference,
                detected_account_id=detected.id if detected else None,
                upload_group_id=upload_group_id,
            )
            self.db.add_entries(owner_id, draft_id, list(group.movements))
            drafts.append(self.classification_service.classify(owner_id, draft_id))

        logger.info(
            "Imported %s: %d movements into %d drafts (mode=%s, monthly=%s, largest=%d)",
            file_name,
            info.total_movements,
            info.draft_count,
            info.mode.value,
            info.effective_monthly,
            info.largest_draft_size,
        )
        return ImportResult(drafts=tuple(drafts), split_info=info)

    # Drafts
    def get_draft(self, owner_id: int, draft_id: int) -> Optional[StatementDraft]:
        return self.db.get_draft(owner_id, draft_id)

    def require_draft(self, owner_id: int, draft_id: int) -> StatementDraft:
        draft = self.db.get_draft(owner_id, draft_id)
        if draft is None:
            raise NotFoundError(draft_not_found(draft_id))
        return draft

    def _require_open_draft(self, owner_id: int, draft_id: int) -> StatementDraft:
        draft = self.require_draft(owner_id, draft_id)
        if draft.status != DraftStatus.DRAFT:
            raise InvalidStateError(draft_not_editable(draft_id))
        return draft

    def list_open_drafts(self, owner_id: int) -> list[StatementDraft]:
        return self.db.list_drafts(owner_id, status=DraftStatus.DRAFT)

    def cancel_draft(self, owner_id: int, draft_id: int) -> None:
        """Discard an open draft and its entries."""
        self._require_open_draft(owner_id, draft_id)
        self.db.delete_draft(owner_id, draft_id)
        logger.info("Cancelled draft %s", draft_id)

    def delete_all_open(self, owner_id: int) -> int:
        """Discard every open draft of the owner. Returns the number deleted."""
        drafts = self.list_open_drafts(owner_id)
        for draft in drafts:
            self.db.delete_draft(owner_id, draft.id)
        logger.info("Deleted %d open drafts of owner %s", len(drafts), owner_id)
        return len(drafts)

    def set_account(self, owner_id: int, draft_id: int, account_id: Optional[int]) -> StatementDraft:
        self._require_open_draft(owner_id, draft_id)
        if account_id is not None:
            self.account_service.require_account(owner_id, account_id)
        self.db.update_draft_account(owner_id, draft_id, account_id)
        return self.require_draft(owner_id, draft_id)

    def get_upload_group_neighbors(
        self, owner_id: int, draft_id: int
    ) -> tuple[Optional[int], Optional[int]]:
        """Return (previous, next) draft ids within the draft's upload group."""
        draft = self.require_draft(owner_id, draft_id)
        if draft.upload_group_id is None:
            return None, None
        ids = [d.id for d in self.db.list_drafts(owner_id, upload_group_id=draft.upload_group_id)]
        index = ids.index(draft_id)
        previous_id = ids[index - 1] if index > 0 else None
        next_id = ids[index + 1] if index + 1 < len(ids) else None
        return previous_id, next_id

    # Entries
    def get_entry(self, owner_id: int, draft_id: int, entry_id: int) -> Optional[StatementDraftEntry]:
        draft = self.db.get_draft(owner_id, draft_id)
        if draft is None:
            return None
        return draft.find_entry(entry_id)

    def _require_entry(
        self, owner_id: int, draft_id: int, entry_id: int
    ) -> tuple[StatementDraft, StatementDraftEntry]:
        draft = self._require_open_draft(owner_id, draft_id)
        entry = draft.find_entry(entry_id)
        if entry is None:
            raise NotFoundError(entry_not_found(entry_id, draft_id))
        return draft, entry

    def _save(self, owner_id: int, draft: StatementDraft, entry: StatementDraftEntry):
        self.db.save_entry(owner_id, entry)
        if draft.split_parent is not None:
            self.reevaluate_parent_entry_status(owner_id, draft.id)
        return self.db.get_entry(owner_id, entry.id)

    def add_entry(
        self,
        owner_id: int,
        draft_id: int,
        booking_date: date,
        amount: Decimal,
        subject: str,
        recipient_name: Optional[str] = None,
        valuta_date: Optional[date] = None,
        currency_code: str = "EUR",
        booking_description: Optional[str] = None,
        is_announced: bool = False,
    ) -> StatementDraftEntry:
        """Add a manually entered line to an open draft."""
        draft = self._require_open_draft(owner_id, draft_id)
        movement = StatementMovement(
            booking_date=booking_date,
            amount=amount,
            subject=(subject or "").strip(),
            counterparty=(recipient_name or "").strip() or None,
            valuta_date=valuta_date,
            currency_code=currency_code or "EUR",
            posting_description=booking_description,
            is_preview=is_announced,
        )
        (entry_id,) = self.db.add_entries(owner_id, draft_id, [movement])
        if draft.split_parent is not None:
            self.reevaluate_parent_entry_status(owner_id, draft_id)
        return self.db.get_entry(owner_id, entry_id)

    def update_entry_core(
        self,
        owner_id: int,
        draft_id: int,
        entry_id: int,
        booking_date: date,
        valuta_date: Optional[date],
        amount: Decimal,
        subject: str,
        recipient_name: Optional[str] = None,
        currency_code: Optional[str] = None,
        booking_description: Optional[str] = None,
    ) -> StatementDraftEntry:
        draft, entry = self._require_entry(owner_id, draft_id, entry_id)
        updated = entry.update_core(
            booking_date,
            valuta_date,
            amount,
            (subject or "").strip(),
            (recipient_name or "").strip() or None,
            currency_code,
            booking_description,
        )
        saved = self._save(owner_id, draft, updated)
        if saved.split_draft_id is not None and amount != entry.amount:
            self.reevaluate_parent_entry_status(owner_id, saved.split_draft_id)
            saved = self.db.get_entry(owner_id, entry_id)
        return saved

    def delete_entry(self, owner_id: int, draft_id: int, entry_id: int) -> None:
        draft, _ = self._require_entry(owner_id, draft_id, entry_id)
        self.db.delete_entry(owner_id, entry_id)
        if draft.split_parent is not None:
            self.reevaluate_parent_entry_status(owner_id, draft_id)

    def set_entry_contact(
        self, owner_id: int, draft_id: int, entry_id: int, contact_id: Optional[int]
    ) -> StatementDraftEntry:
        """Assign a contact by hand.

        Intermediaries leave the entry open until a matching split draft is
        linked. Other contacts account the entry and drop any split link.
        """
        draft, entry = self._require_entry(owner_id, draft_id, entry_id)
        if contact_id is None:
            return self._save(owner_id, draft, entry.clear_contact())

        contact = self.contact_service.require_contact(owner_id, contact_id)
        if contact.is_payment_intermediary:
            updated = entry.assign_contact_without_accounting(contact_id)
        else:
            updated = entry.assign_split_draft(None).mark_accounted(contact_id)
            self_contact = self.db.get_self_contact(owner_id)
            if self_contact is not None and contact_id == self_contact.id:
                updated = updated.mark_cost_neutral(True)
        saved = self._save(owner_id, draft, updated)
        if contact.is_payment_intermediary and saved.split_draft_id is not None:
            self.reevaluate_parent_entry_status(owner_id, saved.split_draft_id)
            saved = self.db.get_entry(owner_id, entry_id)
        return saved

    def set_entry_cost_neutral(
        self, owner_id: int, draft_id: int, entry_id: int, value: bool
    ) -> StatementDraftEntry:
        draft, entry = self._require_entry(owner_id, draft_id, entry_id)
        return self._save(owner_id, draft, entry.mark_cost_neutral(value))

    def assign_savings_plan(
        self, owner_id: int, draft_id: int, entry_id: int, savings_plan_id: Optional[int]
    ) -> StatementDraftEntry:
        draft, entry = self._require_entry(owner_id, draft_id, entry_id)
        if savings_plan_id is not None:
            plan = self.savings_plan_service.require_plan(owner_id, savings_plan_id)
            if not plan.is_active:
                raise InvalidStateError(f"Savings plan '{plan.name}' is archived")
            updated = entry.assign_savings_plan(savings_plan_id)
        else:
            updated = entry.assign_savings_plan(None).set_archive_savings_plan_on_booking(False)
        return self._save(owner_id, draft, updated)

    def set_entry_archive_on_booking(
        self, owner_id: int, draft_id: int, entry_id: int, value: bool
    ) -> StatementDraftEntry:
        draft, entry = self._require_entry(owner_id, draft_id, entry_id)
        if value and entry.savings_plan_id is None:
            raise ValidationError("Archiving on booking requires a savings plan")
        return self._save(owner_id, draft, entry.set_archive_savings_plan_on_booking(value))

    def set_entry_security(
        self,
        owner_id: int,
        draft_id: int,
        entry_id: int,
        security_id: Optional[int],
        transaction_type: Optional[SecurityTransactionType] = None,
        quantity: Optional[Decimal] = None,
        fee_amount: Optional[Decimal] = None,
        tax_amount: Optional[Decimal] = None,
    ) -> StatementDraftEntry:
        """Link a security with its trade details, or clear it when security_id is None."""
        draft, entry = self._require_entry(owner_id, draft_id, entry_id)
        if security_id is not None:
            self.security_service.require_security(owner_id, security_id)
            for name, value in (("Quantity", quantity), ("Fee", fee_amount), ("Tax", tax_amount)):
                if value is not None and value < 0:
                    raise ValidationError(f"{name} must not be negative")
        updated = entry.set_security(security_id, transaction_type, quantity, fee_amount, tax_amount)
        return self._save(owner_id, draft, updated)

    # Split drafts
    def set_entry_split_draft(
        self, owner_id: int, draft_id: int, entry_id: int, split_draft_id: Optional[int]
    ) -> StatementDraftEntry:
        """Link an intermediary entry to the draft holding its breakdown.

        Raises:
            InvalidStateError: If the entry has no intermediary contact, or the
                split draft has an account, is already linked or stems from
                the same upload
            NotFoundError: If the split draft does not exist
        """
        draft, entry = self._require_entry(owner_id, draft_id, entry_id)
        if split_draft_id is None:
            updated = entry.assign_split_draft(None)
            if entry.status == EntryStatus.ACCOUNTED and entry.contact_id is not None:
                updated = updated.assign_contact_without_accounting(entry.contact_id)
            return self._save(owner_id, draft, updated)

        if entry.contact_id is None:
            raise InvalidStateError("Assign a payment intermediary contact before linking a split draft")
        contact = self.contact_service.require_contact(owner_id, entry.contact_id)
        if not contact.is_payment_intermediary:
            raise InvalidStateError(f"Contact '{contact.name}' is not a payment intermediary")
        if split_draft_id == draft_id:
            raise ValidationError("A draft cannot be its own split draft")

        split_draft = self._require_open_draft(owner_id, split_draft_id)
        if split_draft.detected_account_id is not None:
            raise InvalidStateError(f"Split draft {split_draft_id} must not have an account")
        if split_draft.split_parent is not None and split_draft.split_parent.entry_id != entry_id:
            raise InvalidStateError(
                f"Draft {split_draft_id} is already linked to entry {split_draft.split_parent.entry_id}"
            )
        if split_draft.upload_group_id is not None and split_draft.upload_group_id == draft.upload_group_id:
            raise InvalidStateError("A split draft must come from a different upload")

        self.db.save_entry(owner_id, entry.assign_split_draft(split_draft_id))
        logger.info("Linked entry %s to split draft %s", entry_id, split_draft_id)
        self.reevaluate_parent_entry_status(owner_id, split_draft_id)
        return self.db.get_entry(owner_id, entry_id)

    def get_split_group_sum(self, owner_id: int, split_draft_id: int) -> Optional[Decimal]:
        """Sum of all entries in the split draft's upload group, or None if the draft is missing."""
        split_draft = self.db.get_draft(owner_id, split_draft_id)
        if split_draft is None:
            return None
        if split_draft.upload_group_id is None:
            return split_draft.total_amount
        drafts = self.db.list_drafts(owner_id, upload_group_id=split_draft.upload_group_id)
        return sum((d.total_amount for d in drafts), Decimal("0"))

    def reevaluate_parent_entry_status(
        self, owner_id: int, split_draft_id: int
    ) -> Optional[StatementDraftEntry]:
        """Re-derive the parent entry's status after its split draft changed.

        The parent is accounted when the split draft's entries sum to its
        amount, and reopened (keeping its contact) otherwise.
        """
        parent_ref = self.db.find_split_parent(owner_id, split_draft_id)
        if parent_ref is None:
            return None
        split_draft = self.db.get_draft(owner_id, split_draft_id)
        parent = self.db.get_entry(owner_id, parent_ref.entry_id)
        if split_draft is None or parent is None:
            return parent

        total = split_draft.total_amount
        updated = parent
        if total == parent.amount:
            if parent.contact_id is not None and parent.status != EntryStatus.ACCOUNTED:
                updated = parent.mark_accounted(parent.contact_id)
        elif parent.status == EntryStatus.ACCOUNTED:
            updated = parent.reset_open().assign_contact_without_accounting(parent.contact_id)

        if updated != parent:
            self.db.save_entry(owner_id, updated)
            logger.debug(
                "Parent entry %s of split draft %s is now %s",
                parent.id,
                split_draft_id,
                updated.status.value,
            )
        return updated
