"""Business-rule validation of statement drafts.

Validation never raises for rule violations; it returns messages with a
severity. Entries that receive an Error are flagged for review.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from enum import Enum
from typing import Optional

from draftledger.database.base import Database
from draftledger.domain.entities import (
    Account,
    AccountType,
    Contact,
    DraftStatus,
    EntryStatus,
    SecurityTransactionType,
    StatementDraft,
    StatementDraftEntry,
)
from draftledger.domain.errors import NotFoundError, draft_not_found, entry_not_found
from draftledger.domain.savings_plans import SavingsPlanService

logger = logging.getLogger(__name__)

SPLIT_PREFIX = "[Split] "

# Entries in these states are neither validated nor booked
SKIPPED_STATUSES = frozenset({EntryStatus.ALREADY_BOOKED, EntryStatus.ANNOUNCED})


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFORMATION = "information"


@dataclass(frozen=True)
class ValidationMessage:
    """One finding of a draft validation."""

    code: str
    severity: Severity
    message: str
    draft_id: int
    entry_id: Optional[int] = None


@dataclass(frozen=True)
class ValidationResult:
    """All findings of one draft validation."""

    draft_id: int
    messages: tuple[ValidationMessage, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.has_errors

    @property
    def has_errors(self) -> bool:
        return any(m.severity == Severity.ERROR for m in self.messages)

    @property
    def has_warnings(self) -> bool:
        return any(m.severity == Severity.WARNING for m in self.messages)

    def codes(self) -> list[str]:
        return [m.code for m in self.messages]

    def with_messages(self, *extra: ValidationMessage) -> "ValidationResult":
        return ValidationResult(self.draft_id, self.messages + tuple(extra))


@dataclass
class _ValidationScope:
    """Per-call state shared by the checks of one validation."""

    draft: StatementDraft
    account: Optional[Account]
    self_contact: Optional[Contact]
    contacts: dict[int, Contact]
    messages: list[ValidationMessage] = field(default_factory=list)

    def add(self, code: str, severity: Severity, message: str, entry_id: Optional[int] = None):
        self.messages.append(ValidationMessage(code, severity, message, self.draft.id, entry_id))

    def entry_has_error(self, entry_id: int) -> bool:
        return any(
            m.entry_id == entry_id and m.severity == Severity.ERROR for m in self.messages
        )


def adjust_due_date(due: date) -> date:
    """Move a due date on a weekend back to the preceding Friday."""
    if due.weekday() == 5:
        return due - timedelta(days=1)
    if due.weekday() == 6:
        return due - timedelta(days=2)
    return due


class DraftValidator:
    """Runs per-entry, split-tree and savings plan checks on a draft."""

    def __init__(self, db: Database):
        """Initialize draft validator.

        Args:
            db: Database instance
        """
        self.db = db
        self.savings_plan_service = SavingsPlanService(db)

    def validate(
        self, owner_id: int, draft_id: int, entry_id: Optional[int] = None
    ) -> ValidationResult:
        """Validate a draft, or one entry of it.

        Entries with an Error message are moved to NeedsCheck.

        Raises:
            NotFoundError: If the draft or entry does not exist
        """
        draft = self.db.get_draft(owner_id, draft_id)
        if draft is None:
            raise NotFoundError(draft_not_found(draft_id))
        if entry_id is not None and draft.find_entry(entry_id) is None:
            raise NotFoundError(entry_not_found(entry_id, draft_id))

        account = None
        if draft.detected_account_id is not None:
            account = self.db.get_account(owner_id, draft.detected_account_id)
        scope = _ValidationScope(
            draft=draft,
            account=account,
            self_contact=self.db.get_self_contact(owner_id),
            contacts={c.id: c for c in self.db.list_contacts(owner_id)},
        )

        if draft.detected_account_id is None:
            scope.add("NO_ACCOUNT", Severity.ERROR, "No account assigned.")

        if self.has_split_cycle(owner_id, draft.id):
            scope.add(
                "SPLIT_CYCLE_DETECTED",
                Severity.ERROR,
                SPLIT_PREFIX + "Cycle detected in split draft links.",
            )

        entries = [
            e
            for e in draft.entries
            if (entry_id is None or e.id == entry_id) and e.status not in SKIPPED_STATUSES
        ]
        for entry in entries:
            self._validate_entry(owner_id, scope, entry)
            if scope.entry_has_error(entry.id):
                flagged = entry.mark_needs_check()
                if flagged != entry:
                    self.db.save_entry(owner_id, flagged)

        self._check_savings_plan_goals(owner_id, scope, entries)
        if entry_id is None and draft.entries:
            self._check_due_savings_plans(owner_id, scope)

        result = ValidationResult(draft.id, tuple(scope.messages))
        logger.info(
            "Validated draft %s: valid=%s messages=%d",
            draft.id,
            result.is_valid,
            len(result.messages),
        )
        return result

    # Split graph
    def _split_children(self, owner_id: int, draft_id: int) -> list[int]:
        draft = self.db.get_draft(owner_id, draft_id)
        if draft is None:
            return []
        return [e.split_draft_id for e in draft.entries if e.split_draft_id is not None]

    def has_split_cycle(self, owner_id: int, root_draft_id: int) -> bool:
        """Depth-first search for a split link back to a draft on the current path."""
        done: set[int] = set()

        def visit(draft_id: int, path: set[int]) -> bool:
            path.add(draft_id)
            for child_id in self._split_children(owner_id, draft_id):
                if child_id in path:
                    return True
                if child_id not in done and visit(child_id, path):
                    return True
            path.discard(draft_id)
            done.add(draft_id)
            return False

        return visit(root_draft_id, set())

    def load_split_group(
        self, owner_id: int, split_draft_id: int, parent_draft_id: int
    ) -> list[StatementDraft]:
        """Return the open drafts of the split draft's upload group, excluding the parent."""
        child = self.db.get_draft(owner_id, split_draft_id)
        if child is None:
            return []
        if child.upload_group_id is None:
            return [child]
        group = [
            d
            for d in self.db.list_drafts(
                owner_id, status=DraftStatus.DRAFT, upload_group_id=child.upload_group_id
            )
            if d.id != parent_draft_id
        ]
        if all(d.id != child.id for d in group):
            group.append(child)
        return group

    # Entry checks
    def _validate_entry(self, owner_id: int, scope: _ValidationScope, entry: StatementDraftEntry):
        if entry.contact_id is None:
            scope.add("ENTRY_NO_CONTACT", Severity.ERROR, "No contact assigned.", entry.id)
            return
        if entry.status == EntryStatus.OPEN:
            scope.add("ENTRY_NEEDS_CHECK", Severity.ERROR, "The entry needs to be checked.", entry.id)
            return

        contact = scope.contacts.get(entry.contact_id)
        if contact is None:
            return
        if contact.is_payment_intermediary:
            if entry.split_draft_id is None:
                scope.add(
                    "INTERMEDIARY_NO_SPLIT",
                    Severity.ERROR,
                    "Payment intermediary without split draft.",
                    entry.id,
                )
            else:
                self._validate_split_branch(owner_id, scope, entry, {scope.draft.id})

        if scope.self_contact is not None and entry.contact_id == scope.self_contact.id:
            if entry.savings_plan_id is None:
                scope.add(
                    "SAVINGSPLAN_MISSING_FOR_SELF",
                    Severity.WARNING,
                    "A savings plan is recommended for own transfers.",
                    entry.id,
                )
            elif scope.account is not None and scope.account.account_type == AccountType.SAVINGS:
                scope.add(
                    "SAVINGSPLAN_INVALID_ACCOUNT",
                    Severity.ERROR,
                    "Savings plans cannot be booked on a savings account.",
                    entry.id,
                )

        self._check_security(scope, entry, "")

    def _check_security(self, scope: _ValidationScope, entry: StatementDraftEntry, prefix: str):
        if entry.security_id is None or scope.account is None:
            return
        if entry.contact_id != scope.account.bank_contact_id:
            scope.add(
                "SECURITY_INVALID_CONTACT",
                Severity.ERROR,
                prefix + "Security bookings require the account's bank contact.",
                entry.id,
            )
        tx_type = entry.security_transaction_type
        if tx_type is None:
            scope.add(
                "SECURITY_MISSING_TXTYPE",
                Severity.ERROR,
                prefix + "Security: transaction type missing.",
                entry.id,
            )
        elif tx_type != SecurityTransactionType.DIVIDEND:
            if entry.security_quantity is None or entry.security_quantity <= 0:
                scope.add(
                    "SECURITY_MISSING_QUANTITY",
                    Severity.ERROR,
                    prefix + "Security: quantity missing.",
                    entry.id,
                )
        elif entry.security_quantity is not None:
            scope.add(
                "SECURITY_QUANTITY_NOT_ALLOWED_FOR_DIVIDEND",
                Severity.ERROR,
                prefix + "Security: quantity is not allowed for dividends.",
                entry.id,
            )
        fee = entry.security_fee_amount or Decimal("0")
        tax = entry.security_tax_amount or Decimal("0")
        if fee + tax > abs(entry.amount):
            scope.add(
                "SECURITY_FEE_TAX_EXCEEDS_AMOUNT",
                Severity.ERROR,
                prefix + "Security: fees and taxes exceed the amount.",
                entry.id,
            )

    def _validate_split_branch(
        self,
        owner_id: int,
        scope: _ValidationScope,
        parent: StatementDraftEntry,
        path: set[int],
    ):
        """Validate the upload group behind a parent's split draft.

        path holds the drafts on the current branch; links back into it are
        reported by cycle detection and not followed here.
        """
        if parent.split_draft_id is None or parent.split_draft_id in path:
            return
        group = self.load_split_group(owner_id, parent.split_draft_id, scope.draft.id)
        if not group:
            return
        branch = path | {d.id for d in group}

        if any(d.detected_account_id is not None for d in group):
            scope.add(
                "SPLIT_DRAFT_HAS_ACCOUNT",
                Severity.ERROR,
                SPLIT_PREFIX + "Split drafts must not have an account assigned.",
                parent.id,
            )
        children = [e for d in group for e in d.entries]
        total = sum((e.amount for e in children), Decimal("0"))
        if total != parent.amount:
            scope.add(
                "SPLIT_AMOUNT_MISMATCH",
                Severity.ERROR,
                SPLIT_PREFIX + f"Split total {total} does not match the original amount {parent.amount}.",
                parent.id,
            )

        for child in children:
            if child.status in SKIPPED_STATUSES:
                continue
            if child.contact_id is None:
                scope.add(
                    "ENTRY_NO_CONTACT", Severity.ERROR, SPLIT_PREFIX + "No contact assigned.", child.id
                )
                continue
            contact = scope.contacts.get(child.contact_id)
            if contact is None:
                continue
            if contact.is_payment_intermediary:
                if child.split_draft_id is None:
                    scope.add(
                        "INTERMEDIARY_NO_SPLIT",
                        Severity.ERROR,
                        SPLIT_PREFIX + "Payment intermediary without further split.",
                        child.id,
                    )
                else:
                    self._validate_split_branch(owner_id, scope, child, branch)
            if (
                scope.self_contact is not None
                and child.contact_id == scope.self_contact.id
                and child.savings_plan_id is None
            ):
                scope.add(
                    "SAVINGSPLAN_MISSING_FOR_SELF",
                    Severity.WARNING,
                    SPLIT_PREFIX + "A savings plan is recommended for own transfers.",
                    child.id,
                )
            self._check_security(scope, child, SPLIT_PREFIX)

    # Savings plan checks
    def _check_savings_plan_goals(
        self, owner_id: int, scope: _ValidationScope, entries: list[StatementDraftEntry]
    ):
        planned: dict[int, Decimal] = {}
        wants_archive: set[int] = set()
        for entry in entries:
            if entry.savings_plan_id is None:
                continue
            planned[entry.savings_plan_id] = (
                planned.get(entry.savings_plan_id, Decimal("0")) - entry.amount
            )
            if entry.archive_savings_plan_on_booking:
                wants_archive.add(entry.savings_plan_id)

        for plan_id, planned_amount in planned.items():
            plan = self.db.get_savings_plan(owner_id, plan_id)
            if plan is None or plan.target_amount is None:
                continue
            current = self.savings_plan_service.get_balance(owner_id, plan_id)
            remaining = plan.target_amount - current
            if remaining > 0 and planned_amount == remaining:
                scope.add(
                    "SAVINGSPLAN_GOAL_REACHED_INFO",
                    Severity.INFORMATION,
                    f"The bookings in this statement reach the goal of savings plan '{plan.name}'.",
                )
            elif remaining > 0 and planned_amount > remaining:
                scope.add(
                    "SAVINGSPLAN_GOAL_EXCEEDS",
                    Severity.WARNING,
                    f"The planned bookings exceed the goal of savings plan '{plan.name}'.",
                )
            if plan_id in wants_archive and current + planned_amount != plan.target_amount:
                scope.add(
                    "SAVINGSPLAN_ARCHIVE_MISMATCH",
                    Severity.ERROR,
                    f"Savings plan '{plan.name}' cannot be archived: "
                    "the bookings do not exactly settle the remaining amount.",
                )

    def _check_due_savings_plans(self, owner_id: int, scope: _ValidationScope):
        latest = max(e.booking_date for e in scope.draft.entries)
        assigned_in_open_drafts = {
            e.savings_plan_id
            for d in self.db.list_drafts(owner_id, status=DraftStatus.DRAFT)
            for e in d.entries
            if e.savings_plan_id is not None
        }
        for plan in self.db.list_savings_plans(owner_id, active_only=True):
            if plan.target_amount is None or plan.target_date is None:
                continue
            due = adjust_due_date(plan.target_date)
            if due > latest:
                continue
            if self.savings_plan_service.get_balance(owner_id, plan.id) >= plan.target_amount:
                continue
            if self.savings_plan_service.has_posting_in_month(
                owner_id, plan.id, latest.year, latest.month
            ):
                continue
            if plan.id in assigned_in_open_drafts:
                continue
            scope.add(
                "SAVINGSPLAN_DUE",
                Severity.INFORMATION,
                f"Savings plan '{plan.name}' is due (due date: {due.isoformat()}).",
            )
