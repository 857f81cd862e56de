"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic. Enum-valued domain fields are
stored as their string values so the schema stays readable from plain SQL.
"""

from decimal import Decimal
from typing import Optional

from draftledger.domain import entities as domain
from draftledger.database.models import (
    Account as ORMAccount,
    AliasName as ORMAliasName,
    Attachment as ORMAttachment,
    Contact as ORMContact,
    Posting as ORMPosting,
    PostingAggregate as ORMPostingAggregate,
    SavingsPlan as ORMSavingsPlan,
    Security as ORMSecurity,
    StatementDraft as ORMStatementDraft,
    StatementDraftEntry as ORMStatementDraftEntry,
)


def _decimal(value) -> Optional[Decimal]:
    if value is None:
        return None
    return Decimal(str(value))


def contact_to_domain(orm_contact: ORMContact) -> domain.Contact:
    """Convert SQLAlchemy Contact model to domain Contact entity."""
    return domain.Contact(
        id=orm_contact.id,
        owner_id=orm_contact.owner_id,
        name=orm_contact.name,
        contact_type=domain.ContactType(orm_contact.contact_type),
        is_payment_intermediary=orm_contact.is_payment_intermediary,
        created_at=orm_contact.created_at,
    )


def alias_to_domain(orm_alias: ORMAliasName) -> domain.AliasName:
    """Convert SQLAlchemy AliasName model to domain AliasName entity."""
    return domain.AliasName(
        id=orm_alias.id,
        contact_id=orm_alias.contact_id,
        pattern=orm_alias.pattern,
    )


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        owner_id=orm_account.owner_id,
        name=orm_account.name,
        account_type=domain.AccountType(orm_account.account_type),
        iban=orm_account.iban,
        bank_contact_id=orm_account.bank_contact_id,
        created_at=orm_account.created_at,
    )


def savings_plan_to_domain(orm_plan: ORMSavingsPlan) -> domain.SavingsPlan:
    """Convert SQLAlchemy SavingsPlan model to domain SavingsPlan entity."""
    return domain.SavingsPlan(
        id=orm_plan.id,
        owner_id=orm_plan.owner_id,
        name=orm_plan.name,
        plan_type=domain.SavingsPlanType(orm_plan.plan_type),
        target_amount=_decimal(orm_plan.target_amount),
        target_date=orm_plan.target_date,
        interval=domain.SavingsPlanInterval(orm_plan.interval) if orm_plan.interval else None,
        contract_number=orm_plan.contract_number,
        is_active=orm_plan.is_active,
        created_at=orm_plan.created_at,
        archived_at=orm_plan.archived_at,
    )


def security_to_domain(orm_security: ORMSecurity) -> domain.Security:
    """Convert SQLAlchemy Security model to domain Security entity."""
    return domain.Security(
        id=orm_security.id,
        owner_id=orm_security.owner_id,
        name=orm_security.name,
        identifier=orm_security.identifier,
        external_code=orm_security.external_code,
        currency_code=orm_security.currency_code,
        is_active=orm_security.is_active,
        created_at=orm_security.created_at,
    )


def entry_to_domain(orm_entry: ORMStatementDraftEntry) -> domain.StatementDraftEntry:
    """Convert SQLAlchemy StatementDraftEntry model to domain entity."""
    tx_type = orm_entry.security_transaction_type
    return domain.StatementDraftEntry(
        id=orm_entry.id,
        draft_id=orm_entry.draft_id,
        booking_date=orm_entry.booking_date,
        valuta_date=orm_entry.valuta_date,
        amount=_decimal(orm_entry.amount),
        currency_code=orm_entry.currency_code,
        subject=orm_entry.subject,
        recipient_name=orm_entry.recipient_name,
        booking_description=orm_entry.booking_description,
        is_announced=orm_entry.is_announced,
        is_cost_neutral=orm_entry.is_cost_neutral,
        archive_savings_plan_on_booking=orm_entry.archive_savings_plan_on_booking,
        status=domain.EntryStatus(orm_entry.status),
        contact_id=orm_entry.contact_id,
        savings_plan_id=orm_entry.savings_plan_id,
        split_draft_id=orm_entry.split_draft_id,
        security_id=orm_entry.security_id,
        security_transaction_type=domain.SecurityTransactionType(tx_type) if tx_type else None,
        security_quantity=_decimal(orm_entry.security_quantity),
        security_fee_amount=_decimal(orm_entry.security_fee_amount),
        security_tax_amount=_decimal(orm_entry.security_tax_amount),
    )


def apply_entry_to_orm(entry: domain.StatementDraftEntry, orm_entry: ORMStatementDraftEntry) -> None:
    """Copy the mutable fields of a domain entry onto its SQLAlchemy row."""
    orm_entry.booking_date = entry.booking_date
    orm_entry.valuta_date = entry.valuta_date
    orm_entry.amount = entry.amount
    orm_entry.currency_code = entry.currency_code
    orm_entry.subject = entry.subject
    orm_entry.recipient_name = entry.recipient_name
    orm_entry.booking_description = entry.booking_description
    orm_entry.is_announced = entry.is_announced
    orm_entry.is_cost_neutral = entry.is_cost_neutral
    orm_entry.archive_savings_plan_on_booking = entry.archive_savings_plan_on_booking
    orm_entry.status = entry.status.value
    orm_entry.contact_id = entry.contact_id
    orm_entry.savings_plan_id = entry.savings_plan_id
    orm_entry.split_draft_id = entry.split_draft_id
    orm_entry.security_id = entry.security_id
    orm_entry.security_transaction_type = (
        entry.security_transaction_type.value if entry.security_transaction_type else None
    )
    orm_entry.security_quantity = entry.security_quantity
    orm_entry.security_fee_amount = entry.security_fee_amount
    orm_entry.security_tax_amount = entry.security_tax_amount


def draft_to_domain(
    orm_draft: ORMStatementDraft,
    split_parent: Optional[domain.SplitReference] = None,
) -> domain.StatementDraft:
    """Convert SQLAlchemy StatementDraft model (with entries) to domain entity."""
    return domain.StatementDraft(
        id=orm_draft.id,
        owner_id=orm_draft.owner_id,
        original_file_name=orm_draft.original_file_name,
        description=orm_draft.description,
        account_name=orm_draft.account_name,
        detected_account_id=orm_draft.detected_account_id,
        upload_group_id=orm_draft.upload_group_id,
        status=domain.DraftStatus(orm_draft.status),
        version=orm_draft.version,
        created_at=orm_draft.created_at,
        entries=tuple(entry_to_domain(e) for e in orm_draft.entries),
        split_parent=split_parent,
    )


def posting_to_domain(orm_posting: ORMPosting) -> domain.Posting:
    """Convert SQLAlchemy Posting model to domain Posting entity."""
    sub_type = orm_posting.security_sub_type
    return domain.Posting(
        id=orm_posting.id,
        owner_id=orm_posting.owner_id,
        kind=domain.PostingKind(orm_posting.kind),
        amount=_decimal(orm_posting.amount),
        booking_date=orm_posting.booking_date,
        valuta_date=orm_posting.valuta_date,
        group_id=orm_posting.group_id,
        source_entry_id=orm_posting.source_entry_id,
        subject=orm_posting.subject,
        recipient_name=orm_posting.recipient_name,
        description=orm_posting.description,
        account_id=orm_posting.account_id,
        contact_id=orm_posting.contact_id,
        savings_plan_id=orm_posting.savings_plan_id,
        security_id=orm_posting.security_id,
        security_sub_type=domain.SecurityPostingSubType(sub_type) if sub_type else None,
        quantity=_decimal(orm_posting.quantity),
        created_at=orm_posting.created_at,
    )


def attachment_to_domain(orm_attachment: ORMAttachment) -> domain.Attachment:
    """Convert SQLAlchemy Attachment model to domain Attachment entity."""
    return domain.Attachment(
        id=orm_attachment.id,
        owner_id=orm_attachment.owner_id,
        entity_kind=orm_attachment.entity_kind,
        entity_id=orm_attachment.entity_id,
        file_name=orm_attachment.file_name,
        reference_attachment_id=orm_attachment.reference_attachment_id,
        created_at=orm_attachment.created_at,
    )


def aggregate_to_domain(orm_aggregate: ORMPostingAggregate) -> domain.PostingAggregate:
    """Convert SQLAlchemy PostingAggregate model to domain entity."""
    sub_type = orm_aggregate.security_sub_type
    return domain.PostingAggregate(
        id=orm_aggregate.id,
        owner_id=orm_aggregate.owner_id,
        kind=domain.PostingKind(orm_aggregate.kind),
        entity_id=orm_aggregate.entity_id,
        security_sub_type=domain.SecurityPostingSubType(sub_type) if sub_type else None,
        period_start=orm_aggregate.period_start,
        amount=_decimal(orm_aggregate.amount),
        posting_count=orm_aggregate.posting_count,
    )
