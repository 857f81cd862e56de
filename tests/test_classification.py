"""Tests for automatic classification of draft entries."""

from datetime import date, datetime
from decimal import Decimal

import pytest

from draftledger.domain.classification import ClassificationContext, classify_entry
from draftledger.domain.duplicates import duplicate_key
from draftledger.domain.entities import (
    Contact,
    ContactType,
    DraftStatus,
    EntryStatus,
    PostingKind,
    StatementDraftEntry,
)
from draftledger.domain.errors import ConcurrencyError, InvalidStateError, NotFoundError

OWNER = 1
DAY = date(2024, 6, 3)
AS_OF = date(2024, 6, 30)


@pytest.fixture
def contacts(contact_service, self_contact):
    return {
        "rewe": contact_service.create_contact(OWNER, "REWE", ContactType.ORGANIZATION),
        "paypal": contact_service.create_contact(
            OWNER, "PayPal", ContactType.ORGANIZATION, is_payment_intermediary=True
        ),
        "netflix": contact_service.create_contact(OWNER, "Netflix", ContactType.ORGANIZATION),
        "sparkasse": contact_service.create_contact(OWNER, "Sparkasse", ContactType.BANK),
    }


def classify_single(classification_service, make_draft, account, row):
    draft = make_draft([row], account_id=account.id)
    result = classification_service.classify(OWNER, draft.id, as_of=AS_OF)
    return result.entries[0]


def test_contact_from_recipient(classification_service, make_draft, sample_account, contacts):
    entry = classify_single(
        classification_service, make_draft, sample_account,
        (DAY, "-12.50", "Einkauf", "REWE SAGT DANKE 1234"),
    )

    assert entry.contact_id == contacts["rewe"]
    assert entry.status == EntryStatus.ACCOUNTED
    assert entry.is_cost_neutral is False


def test_contact_from_alias(classification_service, contact_service, make_draft, sample_account, contacts):
    contact_service.add_alias(OWNER, contacts["rewe"], "markt ?? filiale*")
    entry = classify_single(
        classification_service, make_draft, sample_account,
        (DAY, "-3.00", "Einkauf", "Markt 12 Filiale Nord"),
    )

    assert entry.contact_id == contacts["rewe"]
    assert entry.status == EntryStatus.ACCOUNTED


def test_empty_recipient_uses_bank_contact(classification_service, make_draft, sample_account, contacts):
    entry = classify_single(
        classification_service, make_draft, sample_account, (DAY, "-4.90", "Kontofuehrung", None)
    )

    assert entry.contact_id == sample_account.bank_contact_id
    assert entry.status == EntryStatus.ACCOUNTED


def test_unknown_recipient_stays_open(classification_service, make_draft, sample_account, contacts):
    entry = classify_single(
        classification_service, make_draft, sample_account, (DAY, "-20.00", "Miete", "Hausverwaltung")
    )

    assert entry.contact_id is None
    assert entry.status == EntryStatus.OPEN


def test_intermediary_resolves_beneficiary_from_subject(
    classification_service, make_draft, sample_account, contacts
):
    entry = classify_single(
        classification_service, make_draft, sample_account,
        (DAY, "-12.99", "Netflix Abo 06/2024", "PayPal Europe"),
    )

    assert entry.contact_id == contacts["netflix"]
    assert entry.status == EntryStatus.OPEN


def test_intermediary_without_beneficiary_keeps_intermediary(
    classification_service, make_draft, sample_account, contacts
):
    entry = classify_single(
        classification_service, make_draft, sample_account,
        (DAY, "-30.00", "Kauf 4711", "PayPal Europe"),
    )

    assert entry.contact_id == contacts["paypal"]
    assert entry.status == EntryStatus.OPEN


def test_transfer_to_other_bank_is_own_transfer(
    classification_service, make_draft, sample_account, contacts, self_contact
):
    entry = classify_single(
        classification_service, make_draft, sample_account,
        (DAY, "-500.00", "Umbuchung", "Sparkasse Berlin"),
    )

    assert entry.contact_id == self_contact.id
    assert entry.is_cost_neutral is True
    assert entry.status == EntryStatus.ACCOUNTED


def test_savings_plan_assigned_for_own_transfer(
    classification_service, savings_plan_service, make_draft, sample_account, contacts
):
    plan_id = savings_plan_service.create_plan(OWNER, "Urlaub")
    entry = classify_single(
        classification_service, make_draft, sample_account,
        (DAY, "-100.00", "Sparrate URLAUB", "Myself"),
    )

    assert entry.savings_plan_id == plan_id
    assert entry.status == EntryStatus.ACCOUNTED


def test_ambiguous_savings_plan_needs_check(
    classification_service, savings_plan_service, make_draft, sample_account, contacts
):
    first = savings_plan_service.create_plan(OWNER, "Auto")
    second = savings_plan_service.create_plan(OWNER, "Autoreparatur")
    entry = classify_single(
        classification_service, make_draft, sample_account,
        (DAY, "-100.00", "Autoreparatur Rate", "Myself"),
    )

    assert entry.savings_plan_id in {first, second}
    assert entry.status == EntryStatus.NEEDS_CHECK


def test_savings_plan_not_assigned_to_third_party(
    classification_service, savings_plan_service, make_draft, sample_account, contacts
):
    savings_plan_service.create_plan(OWNER, "Urlaub")
    entry = classify_single(
        classification_service, make_draft, sample_account,
        (DAY, "-80.00", "Urlaub Anzahlung", "REWE Reisen"),
    )

    assert entry.savings_plan_id is None


def test_security_matched(classification_service, security_service, make_draft, sample_account, contacts):
    security_id = security_service.create_security(OWNER, "MSCI World", "IE00B4L5Y983")
    entry = classify_single(
        classification_service, make_draft, sample_account,
        (DAY, "-1000.00", "Kauf IE00B4L5Y983 12 Stk", None),
    )

    assert entry.security_id == security_id
    assert entry.contact_id == sample_account.bank_contact_id
    assert entry.status == EntryStatus.ACCOUNTED


def test_ambiguous_security_resets_to_open(
    classification_service, security_service, make_draft, sample_account, contacts
):
    security_service.create_security(OWNER, "World Fund", "IE00B4L5Y983")
    security_service.create_security(OWNER, "World Fund Acc", "LU0000000001")
    entry = classify_single(
        classification_service, make_draft, sample_account,
        (DAY, "-1000.00", "Kauf World Fund Acc", None),
    )

    assert entry.security_id is not None
    assert entry.status == EntryStatus.OPEN


def test_duplicate_of_booked_posting(temp_db, classification_service, make_draft, sample_account, contacts):
    temp_db.create_posting(
        OWNER, PostingKind.BANK, Decimal("-12.50"), DAY, "g-1",
        subject="EINKAUF", account_id=sample_account.id,
    )
    entry = classify_single(
        classification_service, make_draft, sample_account,
        (DAY, "-12.50", "Einkauf", "REWE"),
    )

    assert entry.status == EntryStatus.ALREADY_BOOKED


def test_duplicate_ignores_postings_outside_window(
    temp_db, classification_service, make_draft, sample_account, contacts
):
    old_day = date(2023, 1, 2)
    temp_db.create_posting(
        OWNER, PostingKind.BANK, Decimal("-12.50"), old_day, "g-1",
        subject="Einkauf", account_id=sample_account.id,
    )
    entry = classify_single(
        classification_service, make_draft, sample_account,
        (old_day, "-12.50", "Einkauf", "REWE"),
    )

    assert entry.status == EntryStatus.ACCOUNTED


def test_duplicate_stays_already_booked_on_reclassification(
    temp_db, classification_service, make_draft, sample_account, contacts
):
    temp_db.create_posting(
        OWNER, PostingKind.BANK, Decimal("-12.50"), DAY, "g-1",
        subject="Einkauf", account_id=sample_account.id,
    )
    draft = make_draft([(DAY, "-12.50", "Einkauf", "REWE")], account_id=sample_account.id)

    first = classification_service.classify(OWNER, draft.id, as_of=AS_OF)
    second = classification_service.classify(OWNER, draft.id, as_of=AS_OF)

    assert first.entries[0].status == EntryStatus.ALREADY_BOOKED
    assert second.entries[0].status == EntryStatus.ALREADY_BOOKED


def test_classification_is_idempotent(
    classification_service, savings_plan_service, security_service, make_draft, sample_account, contacts
):
    savings_plan_service.create_plan(OWNER, "Urlaub")
    security_service.create_security(OWNER, "MSCI World", "IE00B4L5Y983")
    draft = make_draft(
        [
            (DAY, "-12.50", "Einkauf", "REWE"),
            (DAY, "-12.99", "Netflix Abo", "PayPal"),
            (DAY, "-100.00", "Urlaub", "Myself"),
            (DAY, "-1000.00", "Kauf IE00B4L5Y983", None),
            (DAY, "-1.00", "Unbekannt", "Niemand"),
        ],
        account_id=sample_account.id,
    )

    first = classification_service.classify(OWNER, draft.id, as_of=AS_OF)
    second = classification_service.classify(OWNER, draft.id, as_of=AS_OF)

    assert first.entries == second.entries


def test_classify_single_entry(classification_service, make_draft, sample_account, contacts):
    draft = make_draft(
        [(DAY, "-1.00", "A", "REWE"), (DAY, "-2.00", "B", "REWE")], account_id=sample_account.id
    )
    result = classification_service.classify(OWNER, draft.id, entry_id=draft.entries[1].id)

    assert result.entries[0].status == EntryStatus.OPEN
    assert result.entries[1].status == EntryStatus.ACCOUNTED


def test_classify_bumps_version(classification_service, make_draft, sample_account):
    draft = make_draft([(DAY, "-1.00", "A", None)], account_id=sample_account.id)

    result = classification_service.classify(OWNER, draft.id, expected_version=draft.version)

    assert result.version == draft.version + 1
    with pytest.raises(ConcurrencyError):
        classification_service.classify(OWNER, draft.id, expected_version=draft.version)


def test_detect_account_by_iban(temp_db, classification_service, sample_account, account_service):
    account_service.create_account(OWNER, "Second", iban="DE02120300000000202051")
    draft_id = temp_db.create_draft(
        OWNER, "statement.csv", account_name="de89 3704 0044 0532 0130 00"
    )

    result = classification_service.classify(OWNER, draft_id)

    assert result.detected_account_id == sample_account.id


def test_detect_single_account_without_reference(temp_db, classification_service, sample_account):
    draft_id = temp_db.create_draft(OWNER, "statement.csv")
    assert classification_service.classify(OWNER, draft_id).detected_account_id == sample_account.id


def test_unknown_account_reference_is_not_detected(temp_db, classification_service, sample_account):
    draft_id = temp_db.create_draft(OWNER, "statement.csv", account_name="DE00000000000000000000")
    assert classification_service.classify(OWNER, draft_id).detected_account_id is None


def test_classify_rejects_committed_draft(temp_db, classification_service, make_draft):
    draft = make_draft([(DAY, "-1.00", "A", None)])
    temp_db.set_draft_status(OWNER, draft.id, DraftStatus.COMMITTED)

    with pytest.raises(InvalidStateError):
        classification_service.classify(OWNER, draft.id)


def test_classify_unknown_draft_or_entry(classification_service, make_draft):
    with pytest.raises(NotFoundError):
        classification_service.classify(OWNER, 999)

    draft = make_draft([(DAY, "-1.00", "A", None)])
    with pytest.raises(NotFoundError):
        classification_service.classify(OWNER, draft.id, entry_id=999)


def test_classify_creates_self_contact(temp_db, classification_service, make_draft):
    draft = make_draft([(DAY, "-1.00", "A", None)])
    classification_service.classify(OWNER, draft.id)

    assert temp_db.get_self_contact(OWNER) is not None


def test_classify_entry_is_pure():
    """Test the classification function against an in-memory context."""
    now = datetime(2024, 1, 1)
    me = Contact(1, OWNER, "Myself", ContactType.SELF, False, now)
    shop = Contact(2, OWNER, "Shop", ContactType.ORGANIZATION, False, now)
    ctx = ClassificationContext(
        self_contact=me,
        contacts=(me, shop),
        aliases={},
        savings_plans=(),
        securities=(),
        booked_keys=frozenset({duplicate_key(DAY, Decimal("-9.00"), "dup")}),
    )
    entry = StatementDraftEntry(1, 1, DAY, Decimal("-5.00"), "x", recipient_name="Shop")
    duplicate = StatementDraftEntry(2, 1, DAY, Decimal("-9.00"), "DUP", recipient_name="Shop")

    assert classify_entry(entry, ctx).contact_id == 2
    assert classify_entry(duplicate, ctx).status == EntryStatus.ALREADY_BOOKED
    assert entry.contact_id is None
