"""Tests for contacts, aliases, securities and savings plans."""

from datetime import date
from decimal import Decimal

import pytest

from draftledger.domain.entities import (
    ContactType,
    PostingKind,
    SavingsPlanInterval,
    SavingsPlanType,
)
from draftledger.domain.errors import (
    ConflictError,
    DependencyError,
    NotFoundError,
    ValidationError,
)
from draftledger.domain.savings_plans import add_interval, next_target_date

OWNER = 1


class TestContacts:
    """Tests for ContactService."""

    def test_self_contact_is_created_once(self, contact_service):
        first = contact_service.ensure_self_contact(OWNER)
        second = contact_service.ensure_self_contact(OWNER)

        assert first == second
        assert first.contact_type == ContactType.SELF
        assert first.name == "Myself"
        assert contact_service.ensure_self_contact(2).id != first.id

    def test_self_contact_cannot_be_created_by_hand(self, contact_service):
        with pytest.raises(ValidationError):
            contact_service.create_contact(OWNER, "Ich", ContactType.SELF)
        with pytest.raises(ValidationError):
            contact_service.create_contact(OWNER, " ", ContactType.PERSON)

    def test_update_rules_for_self(self, contact_service, self_contact):
        shop = contact_service.create_contact(OWNER, "Shop", ContactType.ORGANIZATION)

        with pytest.raises(ValidationError):
            contact_service.update_contact(OWNER, self_contact.id, "Ich", ContactType.PERSON)
        with pytest.raises(ValidationError):
            contact_service.update_contact(OWNER, shop, "Shop", ContactType.SELF)
        with pytest.raises(ValidationError):
            contact_service.update_contact(
                OWNER, self_contact.id, "Ich", ContactType.SELF, is_payment_intermediary=True
            )

        contact_service.update_contact(OWNER, self_contact.id, "Ich", ContactType.SELF)
        assert contact_service.get_contact(OWNER, self_contact.id).name == "Ich"

    def test_delete_contact(self, contact_service, self_contact, sample_account):
        shop = contact_service.create_contact(OWNER, "Shop", ContactType.ORGANIZATION)

        contact_service.delete_contact(OWNER, shop)
        assert contact_service.get_contact(OWNER, shop) is None

        with pytest.raises(ValidationError):
            contact_service.delete_contact(OWNER, self_contact.id)
        with pytest.raises(DependencyError):
            contact_service.delete_contact(OWNER, sample_account.bank_contact_id)
        with pytest.raises(NotFoundError):
            contact_service.delete_contact(OWNER, shop)

    def test_aliases(self, contact_service):
        shop = contact_service.create_contact(OWNER, "Shop", ContactType.ORGANIZATION)

        contact_service.add_alias(OWNER, shop, "shop*")
        contact_service.add_alias(OWNER, shop, "*online-shop*")

        assert contact_service.alias_lookup(OWNER) == {shop: ["shop*", "*online-shop*"]}
        with pytest.raises(ConflictError):
            contact_service.add_alias(OWNER, shop, "SHOP*")
        with pytest.raises(ValidationError):
            contact_service.add_alias(OWNER, shop, "  ")
        with pytest.raises(NotFoundError):
            contact_service.add_alias(OWNER, 404, "x*")

    def test_contacts_are_listed_by_name(self, contact_service):
        contact_service.create_contact(OWNER, "Zeitung", ContactType.ORGANIZATION)
        contact_service.create_contact(OWNER, "Apotheke", ContactType.ORGANIZATION)

        assert [c.name for c in contact_service.list_contacts(OWNER)] == ["Apotheke", "Zeitung"]
        assert contact_service.list_contacts(2) == []


class TestSecurities:
    """Tests for SecurityService."""

    def test_create_security(self, security_service):
        security_id = security_service.create_security(
            OWNER, " MSCI World ", "ie00b4l5y983", external_code="A0RPWH", currency_code="usd"
        )

        security = security_service.get_security(OWNER, security_id)
        assert (security.name, security.identifier, security.currency_code) == (
            "MSCI World",
            "IE00B4L5Y983",
            "USD",
        )
        assert security.is_active

    def test_identifier_is_unique(self, security_service):
        security_service.create_security(OWNER, "MSCI World", "IE00B4L5Y983")

        with pytest.raises(ConflictError):
            security_service.create_security(OWNER, "Other", "ie00b4l5y983")
        with pytest.raises(ValidationError):
            security_service.create_security(OWNER, "No identifier", " ")

    def test_inactive_securities(self, security_service):
        security_id = security_service.create_security(OWNER, "Old", "DE0001")

        security_service.set_active(OWNER, security_id, False)

        assert security_service.list_securities(OWNER, active_only=True) == []
        assert len(security_service.list_securities(OWNER)) == 1
        with pytest.raises(NotFoundError):
            security_service.set_active(OWNER, 404, True)


class TestSavingsPlans:
    """Tests for SavingsPlanService and interval arithmetic."""

    @pytest.mark.parametrize(
        "start, interval, expected",
        [
            (date(2024, 1, 15), SavingsPlanInterval.MONTHLY, date(2024, 2, 15)),
            (date(2024, 1, 31), SavingsPlanInterval.MONTHLY, date(2024, 2, 29)),
            (date(2024, 2, 29), SavingsPlanInterval.MONTHLY, date(2024, 3, 31)),
            (date(2024, 1, 30), SavingsPlanInterval.MONTHLY, date(2024, 2, 29)),
            (date(2024, 3, 30), SavingsPlanInterval.MONTHLY, date(2024, 4, 30)),
            (date(2024, 4, 30), SavingsPlanInterval.MONTHLY, date(2024, 5, 31)),
            (date(2024, 1, 15), SavingsPlanInterval.BI_MONTHLY, date(2024, 3, 15)),
            (date(2024, 11, 30), SavingsPlanInterval.QUARTERLY, date(2025, 2, 28)),
            (date(2024, 8, 31), SavingsPlanInterval.SEMI_ANNUALLY, date(2025, 2, 28)),
            (date(2024, 2, 29), SavingsPlanInterval.ANNUALLY, date(2025, 2, 28)),
        ],
    )
    def test_add_interval(self, start, interval, expected):
        assert add_interval(start, interval) == expected

    def test_next_target_date(self, savings_plan_service):
        plan_id = savings_plan_service.create_plan(
            OWNER,
            "Versicherung",
            plan_type=SavingsPlanType.RECURRING,
            target_date=date(2024, 1, 31),
            interval=SavingsPlanInterval.MONTHLY,
        )
        plan = savings_plan_service.get_plan(OWNER, plan_id)

        assert next_target_date(plan, date(2024, 1, 30)) is None
        assert next_target_date(plan, date(2024, 1, 31)) == date(2024, 2, 29)
        assert next_target_date(plan, date(2024, 4, 2)) == date(2024, 4, 30)

    def test_only_recurring_plans_advance(self, savings_plan_service):
        plan_id = savings_plan_service.create_plan(
            OWNER, "Auto", plan_type=SavingsPlanType.ONE_TIME, target_date=date(2024, 1, 1)
        )

        assert savings_plan_service.advance_target_date_if_due(OWNER, plan_id, date(2024, 6, 1)) is False
        assert savings_plan_service.get_plan(OWNER, plan_id).target_date == date(2024, 1, 1)

    def test_advance_target_date(self, savings_plan_service):
        plan_id = savings_plan_service.create_plan(
            OWNER,
            "Steuer",
            plan_type=SavingsPlanType.RECURRING,
            target_date=date(2024, 3, 15),
            interval=SavingsPlanInterval.QUARTERLY,
        )

        assert savings_plan_service.advance_target_date_if_due(OWNER, plan_id, date(2024, 3, 20))
        assert savings_plan_service.get_plan(OWNER, plan_id).target_date == date(2024, 6, 15)

    def test_create_plan_validation(self, savings_plan_service):
        with pytest.raises(ValidationError):
            savings_plan_service.create_plan(OWNER, " ")
        with pytest.raises(ValidationError):
            savings_plan_service.create_plan(OWNER, "Null", target_amount=Decimal("0"))
        with pytest.raises(ValidationError):
            savings_plan_service.create_plan(OWNER, "Rate", plan_type=SavingsPlanType.RECURRING)

        plan_id = savings_plan_service.create_plan(
            OWNER, "Einmal", interval=SavingsPlanInterval.MONTHLY, contract_number=" 12-34 "
        )
        plan = savings_plan_service.get_plan(OWNER, plan_id)
        assert plan.interval is None
        assert plan.contract_number == "12-34"

    def test_balance_and_monthly_postings(self, temp_db, savings_plan_service):
        plan_id = savings_plan_service.create_plan(OWNER, "Urlaub")
        for day, amount in ((date(2024, 5, 31), "100.00"), (date(2024, 6, 1), "50.00")):
            temp_db.create_posting(
                OWNER, PostingKind.SAVINGS_PLAN, Decimal(amount), day, "g", savings_plan_id=plan_id
            )

        assert savings_plan_service.get_balance(OWNER, plan_id) == Decimal("150.00")
        assert savings_plan_service.has_posting_in_month(OWNER, plan_id, 2024, 6)
        assert not savings_plan_service.has_posting_in_month(OWNER, plan_id, 2024, 7)

    def test_archive_plan(self, savings_plan_service):
        plan_id = savings_plan_service.create_plan(OWNER, "Urlaub")

        savings_plan_service.archive_plan(OWNER, plan_id)
        savings_plan_service.archive_plan(OWNER, plan_id)

        assert not savings_plan_service.get_plan(OWNER, plan_id).is_active
        assert savings_plan_service.list_plans(OWNER, active_only=True) == []
        with pytest.raises(NotFoundError):
            savings_plan_service.archive_plan(OWNER, 404)
