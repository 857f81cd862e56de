"""Tests for database mappers."""

from datetime import datetime, date, UTC
from decimal import Decimal

from draftledger.database.models import (
    Account as ORMAccount,
    Contact as ORMContact,
    Posting as ORMPosting,
    SavingsPlan as ORMSavingsPlan,
    StatementDraftEntry as ORMStatementDraftEntry,
)
from draftledger.database.mappers import (
    account_to_domain,
    apply_entry_to_orm,
    contact_to_domain,
    entry_to_domain,
    posting_to_domain,
    savings_plan_to_domain,
)
from draftledger.domain.entities import (
    Account,
    AccountType,
    ContactType,
    EntryStatus,
    PostingKind,
    SavingsPlanType,
    SecurityPostingSubType,
    SecurityTransactionType,
)


def orm_entry(**kwargs):
    values = dict(
        id=5,
        draft_id=2,
        booking_date=date(2024, 3, 1),
        valuta_date=None,
        amount=Decimal("-19.99"),
        currency_code="EUR",
        subject="Abo",
        recipient_name="Streaming GmbH",
        booking_description=None,
        is_announced=False,
        is_cost_neutral=False,
        archive_savings_plan_on_booking=False,
        status="open",
        contact_id=None,
        savings_plan_id=None,
        split_draft_id=None,
        security_id=None,
        security_transaction_type=None,
        security_quantity=None,
        security_fee_amount=None,
        security_tax_amount=None,
    )
    values.update(kwargs)
    return ORMStatementDraftEntry(**values)


class TestAccountMapper:
    """Tests for Account mapper."""

    def test_account_to_domain(self):
        """Test converting ORM Account to domain Account."""
        orm_account = ORMAccount(
            id=1,
            owner_id=1,
            name="Checking",
            account_type="giro",
            iban="DE89370400440532013000",
            bank_contact_id=3,
            created_at=datetime.now(UTC),
        )
        domain_account = account_to_domain(orm_account)

        assert isinstance(domain_account, Account)
        assert domain_account.account_type == AccountType.GIRO
        assert domain_account.iban == "DE89370400440532013000"
        assert domain_account.bank_contact_id == 3
        assert domain_account.created_at == orm_account.created_at


class TestContactMapper:
    def test_contact_type_is_enum(self):
        orm_contact = ORMContact(
            id=4, owner_id=1, name="PayPal", contact_type="organization", is_payment_intermediary=True
        )
        contact = contact_to_domain(orm_contact)

        assert contact.contact_type == ContactType.ORGANIZATION
        assert contact.is_payment_intermediary is True


class TestSavingsPlanMapper:
    def test_open_plan_without_interval(self):
        orm_plan = ORMSavingsPlan(
            id=1,
            owner_id=1,
            name="Notgroschen",
            plan_type="open",
            target_amount="1500.00",
            target_date=None,
            interval=None,
            contract_number=None,
            is_active=True,
        )
        plan = savings_plan_to_domain(orm_plan)

        assert plan.plan_type == SavingsPlanType.OPEN
        assert plan.interval is None
        assert plan.target_amount == Decimal("1500.00")


class TestEntryMapper:
    """Tests for statement draft entry mapping in both directions."""

    def test_entry_to_domain(self):
        entry = entry_to_domain(
            orm_entry(
                status="accounted",
                contact_id=8,
                security_id=1,
                security_transaction_type="buy",
                security_quantity=Decimal("2.500000"),
            )
        )

        assert entry.status == EntryStatus.ACCOUNTED
        assert entry.amount == Decimal("-19.99")
        assert entry.security_transaction_type == SecurityTransactionType.BUY
        assert entry.security_quantity == Decimal("2.5")
        assert entry.security_fee_amount is None

    def test_apply_entry_to_orm(self):
        """Test that domain changes are written back as plain values."""
        target = orm_entry()
        entry = entry_to_domain(orm_entry()).mark_accounted(9).set_security(
            2, SecurityTransactionType.DIVIDEND, None, None, Decimal("-1.50")
        )

        apply_entry_to_orm(entry, target)

        assert target.status == "accounted"
        assert target.contact_id == 9
        assert target.security_transaction_type == "dividend"
        assert target.security_tax_amount == Decimal("-1.50")


class TestPostingMapper:
    def test_security_posting(self):
        orm_posting = ORMPosting(
            id=1,
            owner_id=1,
            kind="security",
            amount=Decimal("-2.50"),
            booking_date=date(2024, 3, 1),
            group_id="g",
            security_id=2,
            security_sub_type="fee",
            quantity=None,
        )
        posting = posting_to_domain(orm_posting)

        assert posting.kind == PostingKind.SECURITY
        assert posting.security_sub_type == SecurityPostingSubType.FEE
        assert posting.quantity is None
