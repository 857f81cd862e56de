"""Account domain service."""

from typing import Optional

from draftledger.database.base import Database
from draftledger.domain.contacts import ContactService
from draftledger.domain.entities import Account as AccountEntity, AccountType, ContactType
from draftledger.domain.errors import ConflictError, NotFoundError, ValidationError, account_not_found


def normalize_iban(iban: Optional[str]) -> Optional[str]:
    """Strip spaces and upper-case an IBAN; blank values become None."""
    if iban is None:
        return None
    compact = "".join(iban.split()).upper()
    return compact or None


class AccountService:
    """Service for managing bank accounts."""

    def __init__(self, db: Database):
        """Initialize account service.

        Args:
            db: Database instance
        """
        self.db = db
        self.contact_service = ContactService(db)

    def create_account(
        self,
        owner_id: int,
        name: str,
        account_type: AccountType = AccountType.GIRO,
        iban: Optional[str] = None,
        bank_contact_id: Optional[int] = None,
        bank_name: Optional[str] = None,
    ) -> int:
        """Create a new account.

        The bank contact is either given by id or looked up (and created if
        missing) by bank_name. If neither is given the account name is used.

        Args:
            owner_id: Owning user
            name: Account name
            account_type: Giro or savings account
            iban: Optional IBAN
            bank_contact_id: Existing contact of type Bank
            bank_name: Bank name used when bank_contact_id is not given

        Returns:
            Account ID

        Raises:
            ConflictError: If account name already exists
            ValidationError: If the bank contact is not of type Bank
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Account name must not be empty")
        for acc in self.db.list_accounts(owner_id):
            if acc.name == name:
                raise ConflictError(f"Account with name '{name}' already exists")

        if bank_contact_id is not None:
            bank = self.contact_service.require_contact(owner_id, bank_contact_id)
            if bank.contact_type != ContactType.BANK:
                raise ValidationError(f"Contact {bank_contact_id} is not a bank")
        else:
            bank_label = (bank_name or name).strip()
            bank = self.contact_service.find_by_name(owner_id, bank_label)
            if bank is None or bank.contact_type != ContactType.BANK:
                bank_contact_id = self.contact_service.create_contact(
                    owner_id, bank_label, ContactType.BANK
                )
            else:
                bank_contact_id = bank.id

        return self.db.create_account(
            owner_id,
            name=name,
            account_type=account_type,
            iban=normalize_iban(iban),
            bank_contact_id=bank_contact_id,
        )

    def get_account(self, owner_id: int, account_id: int) -> Optional[AccountEntity]:
        """Get account by ID.

        Returns:
            Account entity or None if not found
        """
        return self.db.get_account(owner_id, account_id)

    def require_account(self, owner_id: int, account_id: int) -> AccountEntity:
        account = self.db.get_account(owner_id, account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        return account

    def list_accounts(self, owner_id: int) -> list[AccountEntity]:
        return self.db.list_accounts(owner_id)

    def find_by_iban(self, owner_id: int, iban: Optional[str]) -> Optional[AccountEntity]:
        """Find the account whose IBAN equals iban (ignoring spaces and case)."""
        wanted = normalize_iban(iban)
        if wanted is None:
            return None
        for account in self.db.list_accounts(owner_id):
            if account.iban == wanted:
                return account
        return None
