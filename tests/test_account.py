"""Tests for accounts and account commands."""

import pytest
from draftledger.cli.main import cli
from draftledger.domain.entities import AccountType, ContactType
from draftledger.domain.errors import ConflictError, ValidationError
from draftledger.domain.accounts import normalize_iban

OWNER = 1


def test_account_create_with_bank(cli_runner, temp_db):
    """Test creating an account with --bank option."""
    result = cli_runner.invoke(
        cli,
        [
            "--db-path", temp_db.database_path,
            "account", "create", "Checking",
            "--bank", "Comdirect",
            "--iban", "de89 3704 0044 0532 0130 00",
        ],
    )

    assert result.exit_code == 0
    assert "Created account 'Checking'" in result.output
    assert "ID:" in result.output


def test_account_list_empty(cli_runner, temp_db):
    """Test listing accounts when none exist."""
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "account", "list"]
    )

    assert result.exit_code == 0
    assert "No accounts found" in result.output


def test_account_list_with_data(cli_runner, temp_db, sample_account):
    """Test listing accounts with data."""
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "account", "list"]
    )

    assert result.exit_code == 0
    assert "Checking" in result.output
    assert "DE89370400440532013000" in result.output


def test_account_create_duplicate(cli_runner, temp_db):
    """Test creating duplicate account name fails."""
    result1 = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "account", "create", "Checking"]
    )
    assert result1.exit_code == 0

    result2 = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "account", "create", "Checking"]
    )
    assert result2.exit_code == 1
    assert "already exists" in result2.output


def test_account_is_owner_scoped(cli_runner, temp_db, sample_account):
    """Test that --owner selects another user's data."""
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "--owner", "2", "account", "list"]
    )

    assert result.exit_code == 0
    assert "No accounts found" in result.output


def test_create_account_creates_bank_contact(account_service, contact_service):
    account_id = account_service.create_account(OWNER, "Checking", iban="DE89 3704", bank_name="Comdirect")

    account = account_service.get_account(OWNER, account_id)
    bank = contact_service.get_contact(OWNER, account.bank_contact_id)
    assert account.iban == "DE893704"
    assert account.account_type == AccountType.GIRO
    assert (bank.name, bank.contact_type) == ("Comdirect", ContactType.BANK)


def test_accounts_share_existing_bank_contact(account_service):
    first = account_service.create_account(OWNER, "Giro", bank_name="Comdirect")
    second = account_service.create_account(
        OWNER, "Tagesgeld", account_type=AccountType.SAVINGS, bank_name="comdirect"
    )

    assert (
        account_service.get_account(OWNER, first).bank_contact_id
        == account_service.get_account(OWNER, second).bank_contact_id
    )


def test_create_account_rejects_non_bank_contact(account_service, contact_service):
    shop = contact_service.create_contact(OWNER, "Shop", ContactType.ORGANIZATION)

    with pytest.raises(ValidationError):
        account_service.create_account(OWNER, "Giro", bank_contact_id=shop)
    with pytest.raises(ValidationError):
        account_service.create_account(OWNER, "  ")


def test_duplicate_account_name(account_service):
    account_service.create_account(OWNER, "Giro")

    with pytest.raises(ConflictError):
        account_service.create_account(OWNER, "Giro")
    # names are unique per owner only
    account_service.create_account(2, "Giro")


def test_find_by_iban(account_service, sample_account):
    assert account_service.find_by_iban(OWNER, "de89 3704 0044 0532 0130 00").id == sample_account.id
    assert account_service.find_by_iban(OWNER, "DE02120300000000202051") is None
    assert account_service.find_by_iban(OWNER, None) is None
    assert account_service.find_by_iban(2, sample_account.iban) is None


def test_normalize_iban():
    assert normalize_iban(" de89 3704 ") == "DE893704"
    assert normalize_iban("   ") is None
    assert normalize_iban(None) is None
