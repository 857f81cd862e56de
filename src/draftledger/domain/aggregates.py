"""Monthly posting aggregates maintained alongside booking."""

from datetime import date
from typing import Optional

from draftledger.database.base import Database
from draftledger.domain.entities import Posting, PostingAggregate, PostingKind


def period_start(booking_date: date) -> date:
    return booking_date.replace(day=1)


def linked_entity_id(posting: Posting) -> Optional[int]:
    """Return the id of the entity a posting is aggregated under."""
    return {
        PostingKind.BANK: posting.account_id,
        PostingKind.CONTACT: posting.contact_id,
        PostingKind.SAVINGS_PLAN: posting.savings_plan_id,
        PostingKind.SECURITY: posting.security_id,
    }[posting.kind]


class PostingAggregateService:
    """Keeps per-month sums of postings by kind and linked entity."""

    def __init__(self, db: Database):
        self.db = db

    def upsert_for_posting(self, posting: Posting) -> None:
        """Add a posting's amount to its monthly aggregate. Zero amounts are ignored."""
        if posting.amount == 0:
            return
        self.db.add_to_posting_aggregate(
            posting.owner_id,
            kind=posting.kind,
            entity_id=linked_entity_id(posting),
            security_sub_type=posting.security_sub_type,
            period_start=period_start(posting.booking_date),
            amount=posting.amount,
        )

    def list_aggregates(self, owner_id: int, kind: Optional[PostingKind] = None) -> list[PostingAggregate]:
        return self.db.list_posting_aggregates(owner_id, kind)
