"""Shared pytest fixtures for draftledger tests."""

import tempfile
import os
from datetime import date
from decimal import Decimal
import pytest

from draftledger.database.factories import create_sqlite_database
from draftledger.domain.accounts import AccountService
from draftledger.domain.booking import BookingEngine
from draftledger.domain.classification import ClassificationService
from draftledger.domain.contacts import ContactService
from draftledger.domain.drafts import StatementDraftService
from draftledger.domain.entities import StatementMovement
from draftledger.domain.savings_plans import SavingsPlanService
from draftledger.domain.securities import SecurityService
from draftledger.domain.validation import DraftValidator

OWNER = 1
OTHER_OWNER = 2
IBAN = "DE89370400440532013000"


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def contact_service(temp_db):
    return ContactService(temp_db)


@pytest.fixture
def account_service(temp_db):
    return AccountService(temp_db)


@pytest.fixture
def savings_plan_service(temp_db):
    return SavingsPlanService(temp_db)


@pytest.fixture
def security_service(temp_db):
    return SecurityService(temp_db)


@pytest.fixture
def draft_service(temp_db):
    return StatementDraftService(temp_db)


@pytest.fixture
def classification_service(temp_db):
    return ClassificationService(temp_db)


@pytest.fixture
def validator(temp_db):
    return DraftValidator(temp_db)


@pytest.fixture
def booking_engine(temp_db):
    return BookingEngine(temp_db)


@pytest.fixture
def self_contact(contact_service):
    """The owner's Self contact."""
    return contact_service.ensure_self_contact(OWNER)


@pytest.fixture
def sample_account(account_service, self_contact):
    """A giro account at 'Test Bank' with a known IBAN."""
    account_id = account_service.create_account(
        OWNER, name="Checking", iban=IBAN, bank_name="Test Bank"
    )
    return account_service.get_account(OWNER, account_id)


@pytest.fixture
def make_draft(temp_db):
    """Factory creating a draft with entries built from (date, amount, subject, recipient)."""

    def _make(rows, account_id=None, upload_group_id=None, file_name="statement.csv"):
        draft_id = temp_db.create_draft(
            OWNER,
            original_file_name=file_name,
            detected_account_id=account_id,
            upload_group_id=upload_group_id,
        )
        movements = [
            StatementMovement(
                booking_date=row[0],
                amount=Decimal(row[1]),
                subject=row[2],
                counterparty=row[3] if len(row) > 3 else None,
            )
            for row in rows
        ]
        temp_db.add_entries(OWNER, draft_id, movements)
        return temp_db.get_draft(OWNER, draft_id)

    return _make


@pytest.fixture
def movement():
    """Factory for statement movements."""

    def _movement(day, amount="-10.00", subject="Payment", counterparty=None):
        return StatementMovement(
            booking_date=day if isinstance(day, date) else date.fromisoformat(day),
            amount=Decimal(amount),
            subject=subject,
            counterparty=counterparty,
        )

    return _movement


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
