"""
Module: ohada_kernel.models.journal
Responsibility: Posting channels (sales, purchases, bank, cash, payroll, ...).
Architecture position: Kernel > Models.

Invariants enforced:
    - code is unique within a company (uq_journal_company_code).
    - The journal code is the prefix of every reference number it issues.
"""

from sqlalchemy import Boolean, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ohada_kernel.db.base import TenantScoped, TrackedBase
from ohada_kernel.domain.values import JournalType


class Journal(TenantScoped, TrackedBase):
    """A named posting channel."""

    __tablename__ = "journals"

    __table_args__ = (
        UniqueConstraint("company_id", "code", name="uq_journal_company_code"),
    )

    code: Mapped[str] = mapped_column(String(10), nullable=False)

    label: Mapped[str] = mapped_column(String(255), nullable=False)

    journal_type: Mapped[JournalType] = mapped_column(String(20), nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<Journal {self.code} ({self.journal_type})>"
