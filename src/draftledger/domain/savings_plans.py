"""Savings plan domain service."""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from dateutil.relativedelta import relativedelta

from draftledger.database.base import Database
from draftledger.domain.entities import (
    PostingKind,
    SavingsPlan,
    SavingsPlanInterval,
    SavingsPlanType,
)
from draftledger.domain.errors import NotFoundError, ValidationError, savings_plan_not_found

logger = logging.getLogger(__name__)


def _is_month_end(value: date) -> bool:
    return (value + relativedelta(days=1)).month != value.month


def add_interval(value: date, interval: SavingsPlanInterval) -> date:
    """Move a date forward by one interval.

    A date on the last day of its month stays on the last day of the new
    month; other days are capped to the length of the new month.
    """
    if _is_month_end(value):
        return value + relativedelta(months=interval.months, day=31)
    return value + relativedelta(months=interval.months)


def next_target_date(plan: SavingsPlan, as_of: date) -> Optional[date]:
    """Return the advanced target date of a due recurring plan, or None if not due."""
    if plan.plan_type != SavingsPlanType.RECURRING:
        return None
    if plan.interval is None or plan.target_date is None:
        return None
    target = plan.target_date
    if target > as_of:
        return None
    while target <= as_of:
        target = add_interval(target, plan.interval)
    return target


class SavingsPlanService:
    """Service for managing savings plans."""

    def __init__(self, db: Database):
        """Initialize savings plan service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_plan(
        self,
        owner_id: int,
        name: str,
        plan_type: SavingsPlanType = SavingsPlanType.OPEN,
        target_amount: Optional[Decimal] = None,
        target_date: Optional[date] = None,
        interval: Optional[SavingsPlanInterval] = None,
        contract_number: Optional[str] = None,
    ) -> int:
        """Create a new savings plan.

        Returns:
            Savings plan ID

        Raises:
            ValidationError: If the name is empty, the target amount is not
                positive or a recurring plan has no interval
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Savings plan name must not be empty")
        if target_amount is not None and target_amount <= 0:
            raise ValidationError("Target amount must be positive")
        if plan_type == SavingsPlanType.RECURRING and interval is None:
            raise ValidationError("Recurring savings plans need an interval")
        if plan_type != SavingsPlanType.RECURRING:
            interval = None
        return self.db.create_savings_plan(
            owner_id,
            name=name,
            plan_type=plan_type,
            target_amount=target_amount,
            target_date=target_date,
            interval=interval,
            contract_number=(contract_number or "").strip() or None,
        )

    def get_plan(self, owner_id: int, plan_id: int) -> Optional[SavingsPlan]:
        return self.db.get_savings_plan(owner_id, plan_id)

    def require_plan(self, owner_id: int, plan_id: int) -> SavingsPlan:
        plan = self.db.get_savings_plan(owner_id, plan_id)
        if plan is None:
            raise NotFoundError(savings_plan_not_found(plan_id))
        return plan

    def list_plans(self, owner_id: int, active_only: bool = False) -> list[SavingsPlan]:
        return self.db.list_savings_plans(owner_id, active_only=active_only)

    def get_balance(self, owner_id: int, plan_id: int) -> Decimal:
        """Sum of all savings plan postings of the plan."""
        postings = self.db.list_postings(
            owner_id, kind=PostingKind.SAVINGS_PLAN, savings_plan_id=plan_id
        )
        return sum((p.amount for p in postings), Decimal("0"))

    def has_posting_in_month(self, owner_id: int, plan_id: int, year: int, month: int) -> bool:
        start = date(year, month, 1)
        end = start + relativedelta(months=1, days=-1)
        postings = self.db.list_postings(
            owner_id,
            kind=PostingKind.SAVINGS_PLAN,
            savings_plan_id=plan_id,
            start_date=start,
            end_date=end,
        )
        return bool(postings)

    def advance_target_date_if_due(self, owner_id: int, plan_id: int, as_of: date) -> bool:
        """Advance a recurring plan's target date past as_of.

        Returns:
            True if the target date was moved
        """
        plan = self.require_plan(owner_id, plan_id)
        new_date = next_target_date(plan, as_of)
        if new_date is None:
            return False
        self.db.update_savings_plan_target_date(owner_id, plan_id, new_date)
        logger.info("Advanced savings plan %s target date to %s", plan_id, new_date)
        return True

    def archive_plan(self, owner_id: int, plan_id: int) -> None:
        """Deactivate a plan so it is no longer matched or listed as active."""
        plan = self.require_plan(owner_id, plan_id)
        if not plan.is_active:
            return
        self.db.archive_savings_plan(owner_id, plan_id)
        logger.info("Archived savings plan %s", plan_id)
