"""Detection of statement entries that were already booked."""

import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Optional

from draftledger.database.base import Database
from draftledger.domain.entities import Posting, PostingKind, StatementDraftEntry

logger = logging.getLogger(__name__)

DUPLICATE_LOOKBACK_DAYS = 180

DuplicateKey = tuple[date, Decimal, str]


def duplicate_key(booking_date: date, amount: Decimal, subject: Optional[str]) -> DuplicateKey:
    """Identity of a booked movement: date, amount and case-insensitive subject."""
    return booking_date, amount, (subject or "").casefold()


def booked_keys(postings: Iterable[Posting]) -> frozenset[DuplicateKey]:
    return frozenset(duplicate_key(p.booking_date, p.amount, p.subject) for p in postings)


def load_booked_keys(
    db: Database, owner_id: int, account_id: int, as_of: Optional[date] = None
) -> frozenset[DuplicateKey]:
    """Load keys of bank postings on the account within the lookback window.

    Args:
        db: Database instance
        owner_id: Owner whose postings are considered
        account_id: Account the draft was detected for
        as_of: Reference date for the window (defaults to today)

    Returns:
        Set of duplicate keys
    """
    since = (as_of or date.today()) - timedelta(days=DUPLICATE_LOOKBACK_DAYS)
    postings = db.list_postings(
        owner_id, kind=PostingKind.BANK, account_id=account_id, start_date=since
    )
    keys = booked_keys(postings)
    logger.debug("Loaded %d booked keys for account %s since %s", len(keys), account_id, since)
    return keys


def is_duplicate(entry: StatementDraftEntry, keys: frozenset[DuplicateKey]) -> bool:
    return duplicate_key(entry.booking_date, entry.amount, entry.subject) in keys
