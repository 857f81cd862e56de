"""Security domain service."""

from typing import Optional

from draftledger.database.base import Database
from draftledger.domain.entities import Security
from draftledger.domain.errors import ConflictError, NotFoundError, ValidationError, security_not_found


class SecurityService:
    """Service for managing securities."""

    def __init__(self, db: Database):
        self.db = db

    def create_security(
        self,
        owner_id: int,
        name: str,
        identifier: str,
        external_code: Optional[str] = None,
        currency_code: str = "EUR",
    ) -> int:
        """Create a new security.

        Raises:
            ValidationError: If name or identifier is empty
            ConflictError: If the identifier is already in use
        """
        name = (name or "").strip()
        identifier = (identifier or "").strip().upper()
        if not name or not identifier:
            raise ValidationError("Security name and identifier are required")
        for security in self.db.list_securities(owner_id):
            if security.identifier == identifier:
                raise ConflictError(f"Security with identifier '{identifier}' already exists")
        return self.db.create_security(
            owner_id,
            name=name,
            identifier=identifier,
            external_code=(external_code or "").strip() or None,
            currency_code=(currency_code or "EUR").upper(),
        )

    def get_security(self, owner_id: int, security_id: int) -> Optional[Security]:
        return self.db.get_security(owner_id, security_id)

    def require_security(self, owner_id: int, security_id: int) -> Security:
        security = self.db.get_security(owner_id, security_id)
        if security is None:
            raise NotFoundError(security_not_found(security_id))
        return security

    def list_securities(self, owner_id: int, active_only: bool = False) -> list[Security]:
        return self.db.list_securities(owner_id, active_only=active_only)

    def set_active(self, owner_id: int, security_id: int, is_active: bool) -> None:
        self.require_security(owner_id, security_id)
        self.db.set_security_active(owner_id, security_id, is_active)
