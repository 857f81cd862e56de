"""SQLAlchemy models for draftledger database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


class Contact(Base):
    """Counterparty model."""

    __tablename__ = "contacts"

    id = Column(Integer, primary_key=True)
    owner_id = Column(Integer, nullable=False, index=True)
    name = Column(String, nullable=False)
    contact_type = Column(String, nullable=False)
    is_payment_intermediary = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    aliases = relationship("AliasName", back_populates="contact", cascade="all, delete-orphan")


class AliasName(Base):
    """Wildcard alias pattern of a contact."""

    __tablename__ = "alias_names"

    id = Column(Integer, primary_key=True)
    contact_id = Column(Integer, ForeignKey("contacts.id"), nullable=False)
    pattern = Column(String, nullable=False)

    __table_args__ = (UniqueConstraint("contact_id", "pattern", name="uq_contact_alias"),)

    # Relationships
    contact = relationship("Contact", back_populates="aliases")


class Account(Base):
    """Bank account model."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    owner_id = Column(Integer, nullable=False, index=True)
    name = Column(String, nullable=False)
    account_type = Column(String, nullable=False)
    iban = Column(String, nullable=True)
    bank_contact_id = Column(Integer, ForeignKey("contacts.id"), nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (UniqueConstraint("owner_id", "name", name="uq_owner_account_name"),)


class SavingsPlan(Base):
    """Savings plan model."""

    __tablename__ = "savings_plans"

    id = Column(Integer, primary_key=True)
    owner_id = Column(Integer, nullable=False, index=True)
    name = Column(String, nullable=False)
    plan_type = Column(String, nullable=False)
    target_amount = Column(Numeric(18, 2), nullable=True)
    target_date = Column(Date, nullable=True)
    interval = Column(String, nullable=True)
    contract_number = Column(String, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)
    archived_at = Column(DateTime, nullable=True)


class Security(Base):
    """Security model."""

    __tablename__ = "securities"

    id = Column(Integer, primary_key=True)
    owner_id = Column(Integer, nullable=False, index=True)
    name = Column(String, nullable=False)
    identifier = Column(String, nullable=False)
    external_code = Column(String, nullable=True)
    currency_code = Column(String, default="EUR", nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)


class StatementDraft(Base):
    """Statement draft model."""

    __tablename__ = "statement_drafts"

    id = Column(Integer, primary_key=True)
    owner_id = Column(Integer, nullable=False, index=True)
    original_file_name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    account_name = Column(String, nullable=True)
    detected_account_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    upload_group_id = Column(String, nullable=True, index=True)
    status = Column(String, nullable=False)
    version = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    entries = relationship(
        "StatementDraftEntry",
        back_populates="draft",
        cascade="all, delete-orphan",
        order_by="StatementDraftEntry.id",
        foreign_keys="StatementDraftEntry.draft_id",
    )


class StatementDraftEntry(Base):
    """Statement draft entry model."""

    __tablename__ = "statement_draft_entries"

    id = Column(Integer, primary_key=True)
    draft_id = Column(Integer, ForeignKey("statement_drafts.id"), nullable=False, index=True)
    booking_date = Column(Date, nullable=False)
    valuta_date = Column(Date, nullable=True)
    amount = Column(Numeric(18, 2), nullable=False)
    currency_code = Column(String, default="EUR", nullable=False)
    subject = Column(String, default="", nullable=False)
    recipient_name = Column(String, nullable=True)
    booking_description = Column(String, nullable=True)
    is_announced = Column(Boolean, default=False, nullable=False)
    is_cost_neutral = Column(Boolean, default=False, nullable=False)
    archive_savings_plan_on_booking = Column(Boolean, default=False, nullable=False)
    status = Column(String, nullable=False)
    contact_id = Column(Integer, ForeignKey("contacts.id"), nullable=True)
    savings_plan_id = Column(Integer, ForeignKey("savings_plans.id"), nullable=True)
    split_draft_id = Column(Integer, ForeignKey("statement_drafts.id"), nullable=True, index=True)
    security_id = Column(Integer, ForeignKey("securities.id"), nullable=True)
    security_transaction_type = Column(String, nullable=True)
    security_quantity = Column(Numeric(18, 6), nullable=True)
    security_fee_amount = Column(Numeric(18, 2), nullable=True)
    security_tax_amount = Column(Numeric(18, 2), nullable=True)

    # Relationships
    draft = relationship("StatementDraft", back_populates="entries", foreign_keys=[draft_id])


class Posting(Base):
    """Ledger posting model. Rows are never updated after insert."""

    __tablename__ = "postings"

    id = Column(Integer, primary_key=True)
    owner_id = Column(Integer, nullable=False, index=True)
    kind = Column(String, nullable=False)
    amount = Column(Numeric(18, 2), nullable=False)
    booking_date = Column(Date, nullable=False)
    valuta_date = Column(Date, nullable=True)
    group_id = Column(String, nullable=False, index=True)
    source_entry_id = Column(Integer, nullable=True)
    subject = Column(String, nullable=True)
    recipient_name = Column(String, nullable=True)
    description = Column(String, nullable=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    contact_id = Column(Integer, ForeignKey("contacts.id"), nullable=True)
    savings_plan_id = Column(Integer, ForeignKey("savings_plans.id"), nullable=True)
    security_id = Column(Integer, ForeignKey("securities.id"), nullable=True)
    security_sub_type = Column(String, nullable=True)
    quantity = Column(Numeric(18, 6), nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)


class Attachment(Base):
    """Attachment metadata model. File payloads are stored elsewhere."""

    __tablename__ = "attachments"

    id = Column(Integer, primary_key=True)
    owner_id = Column(Integer, nullable=False, index=True)
    entity_kind = Column(String, nullable=False)
    entity_id = Column(Integer, nullable=False)
    file_name = Column(String, nullable=False)
    reference_attachment_id = Column(Integer, ForeignKey("attachments.id"), nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)


class PostingAggregate(Base):
    """Monthly posting sum per linked entity."""

    __tablename__ = "posting_aggregates"

    id = Column(Integer, primary_key=True)
    owner_id = Column(Integer, nullable=False, index=True)
    kind = Column(String, nullable=False)
    entity_id = Column(Integer, nullable=True)
    security_sub_type = Column(String, nullable=True)
    period_start = Column(Date, nullable=False)
    amount = Column(Numeric(18, 2), nullable=False)
    posting_count = Column(Integer, default=0, nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "owner_id",
            "kind",
            "entity_id",
            "security_sub_type",
            "period_start",
            name="uq_posting_aggregate_key",
        ),
    )


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
