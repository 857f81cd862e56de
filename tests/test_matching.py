"""Tests for text matching of contacts, savings plans and securities."""

from datetime import datetime

import pytest

from draftledger.domain.entities import (
    Contact,
    ContactType,
    SavingsPlan,
    SavingsPlanType,
    Security,
)
from draftledger.domain.matching import (
    alias_to_regex,
    match_alias,
    match_contact,
    match_savings_plans,
    match_securities,
    normalize_contract_number,
    normalize_for_security,
    normalize_text,
    normalize_umlauts,
)

NOW = datetime(2024, 1, 1)


def contact(contact_id, name, contact_type=ContactType.ORGANIZATION, intermediary=False):
    return Contact(contact_id, 1, name, contact_type, intermediary, NOW)


def plan(plan_id, name, contract_number=None):
    return SavingsPlan(
        plan_id, 1, name, SavingsPlanType.OPEN, None, None, None, contract_number, True, NOW
    )


def security(security_id, name, identifier, external_code=None):
    return Security(security_id, 1, name, identifier, external_code, "EUR", True, NOW)


def test_normalize_umlauts():
    assert normalize_umlauts("Müller Straße") == "Mueller Strasse"
    assert normalize_umlauts("ÄÖÜ") == "AeOeUe"
    assert normalize_umlauts(None) == ""


def test_normalize_text():
    assert normalize_text("  Bäckerei Schmidt  ") == "  baeckerei schmidt"
    assert normalize_text("Bäckerei Schmidt", strip_whitespace=True) == "baeckereischmidt"


@pytest.mark.parametrize(
    "pattern, text, matches",
    [
        ("amazon*", "amazon eu s.a.r.l.", True),
        ("*netflix*", "paypal netflix.com", True),
        ("rewe ????", "rewe 1234", True),
        ("rewe ????", "rewe 12345", False),
        ("a.b", "axb", False),
    ],
)
def test_alias_to_regex(pattern, text, matches):
    """Test that wildcards work and other characters are literal."""
    assert bool(alias_to_regex(pattern).match(text)) is matches


def test_match_alias_tries_whitespace_stripped_text():
    aliases = {7: ["stadtwerkemuenchen*"]}
    assert match_alias("stadtwerke muenchen gmbh", aliases) == 7
    assert match_alias("gasag", aliases) is None


def test_match_contact_order():
    """Test exact name before containment before alias."""
    rewe = contact(1, "REWE")
    rewe_markt = contact(2, "Rewe Markt")
    lidl = contact(3, "Lidl")
    contacts = [rewe, rewe_markt, lidl]
    aliases = {3: ["*discount*"]}

    assert match_contact("rewe markt", contacts, aliases) == rewe_markt
    assert match_contact("rewe markt gmbh berlin", contacts, aliases) == rewe
    assert match_contact("discount store", contacts, aliases) == lidl
    assert match_contact("aldi", contacts, aliases) is None
    assert match_contact("", contacts, aliases) is None


def test_match_contact_handles_umlauts_in_names():
    baecker = contact(1, "Bäcker Schmidt")
    assert match_contact(normalize_text("BAECKER SCHMIDT KG"), [baecker], {}) == baecker


def test_match_contact_ignores_blank_names():
    blank = contact(1, "  ")
    assert match_contact("anything", [blank], {}) is None


def test_match_savings_plans_by_name_and_contract():
    holiday = plan(1, "Urlaub 2024")
    building = plan(2, "Bausparen", contract_number="12-345 678")
    plans = [holiday, building]

    assert match_savings_plans("Sparen fuer URLAUB 2024", plans) == [holiday]
    assert match_savings_plans("Vertrag 12345678 Rate", plans) == [building]
    assert match_savings_plans("Miete", plans) == []


def test_match_savings_plans_returns_all_matches():
    plans = [plan(1, "Auto"), plan(2, "Autoversicherung")]
    assert [p.id for p in match_savings_plans("Autoversicherung Rate", plans)] == [1, 2]


def test_normalize_contract_number():
    assert normalize_contract_number(" 12-34 56 ") == "123456"


def test_normalize_for_security():
    assert normalize_for_security("iShares Core MSCI-World (Acc)") == "ISHARESCOREMSCIWORLDACC"


def test_match_securities():
    """Test matching by identifier, external code and name."""
    world = security(1, "MSCI World", "IE00B4L5Y983", "A0RPWH")
    apple = security(2, "Apple Inc", "US0378331005")
    securities = [world, apple]

    assert match_securities("Kauf IE00B4L5Y983", None, None, securities) == [world]
    assert match_securities("Wertpapier", "WKN A0RPWH", None, securities) == [world]
    assert match_securities("Dividende", None, "APPLE INC.", securities) == [apple]
    assert match_securities("Miete", None, None, securities) == []
