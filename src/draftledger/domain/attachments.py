"""Attachment metadata service.

Only metadata is tracked here; payload storage is handled elsewhere.
"""

from draftledger.database.base import Database
from draftledger.domain.entities import Attachment
from draftledger.domain.errors import ValidationError

ENTITY_DRAFT_ENTRY = "statement_draft_entry"
ENTITY_POSTING = "posting"


class AttachmentService:
    """Lists, moves and references attachments by (entity kind, entity id)."""

    def __init__(self, db: Database):
        self.db = db

    def add(self, owner_id: int, entity_kind: str, entity_id: int, file_name: str) -> int:
        file_name = (file_name or "").strip()
        if not file_name:
            raise ValidationError("Attachment file name must not be empty")
        return self.db.create_attachment(owner_id, entity_kind, entity_id, file_name)

    def list_attachments(self, owner_id: int, entity_kind: str, entity_id: int) -> list[Attachment]:
        return self.db.list_attachments(owner_id, entity_kind, entity_id)

    def reassign(
        self,
        owner_id: int,
        from_kind: str,
        from_id: int,
        to_kind: str,
        to_id: int,
    ) -> list[Attachment]:
        """Move every attachment of one entity to another.

        Returns:
            The moved attachments as they were before the move
        """
        moved = self.db.list_attachments(owner_id, from_kind, from_id)
        for attachment in moved:
            self.db.reassign_attachment(owner_id, attachment.id, to_kind, to_id)
        return moved

    def create_reference(
        self, owner_id: int, entity_kind: str, entity_id: int, master: Attachment
    ) -> int:
        """Attach a reference to an existing (master) attachment to another entity."""
        return self.db.create_attachment(
            owner_id,
            entity_kind,
            entity_id,
            master.file_name,
            reference_attachment_id=master.id,
        )
