"""
Module: ohada_kernel.models.audit_record
Responsibility: Append-only trail of ledger mutations.
Architecture position: Kernel > Models.

Invariants enforced:
    - Rows are never updated or deleted (db/immutability.py).
    - payload_hash is the SHA-256 of the canonical JSON payload.
"""

from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import JSON, DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from ohada_kernel.db.base import Base, UUIDString


class AuditAction(str, Enum):
    ENTRY_CREATED = "entry_created"
    ENTRY_UPDATED = "entry_updated"
    ENTRY_VALIDATED = "entry_validated"
    ENTRY_SOFT_DELETED = "entry_soft_deleted"
    ENTRY_RESTORED = "entry_restored"
    ENTRY_PURGED = "entry_purged"
    ACCOUNT_CREATED = "account_created"
    ACCOUNT_DELETED = "account_deleted"
    FISCAL_YEAR_CREATED = "fiscal_year_created"
    FISCAL_YEAR_CLOSED = "fiscal_year_closed"


class AuditRecord(Base):
    """One recorded mutation."""

    __tablename__ = "audit_records"

    __table_args__ = (
        Index("idx_audit_entity", "entity_type", "entity_id"),
        Index("idx_audit_company", "company_id"),
    )

    company_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)

    # Not a foreign key: purged entries keep their audit trail
    entity_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    action: Mapped[AuditAction] = mapped_column(String(50), nullable=False)

    actor_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    occurred_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    payload: Mapped[dict] = mapped_column(JSON, nullable=False)

    payload_hash: Mapped[str] = mapped_column(String(64), nullable=False)
