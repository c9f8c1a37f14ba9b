"""
Module: ohada_kernel.models.fiscal_year
Responsibility: Date-bounded, closable accounting periods.
Architecture position: Kernel > Models.

Invariants enforced:
    - start_date <= end_date (ck_fiscal_year_dates).
    - Closing is one-way: is_closed never goes back to False
      (db/immutability.py before_update check).
    - Entries may only be posted or mutated while the year is open and the
      entry date lies in [start_date, end_date].

Audit relevance:
    closed_at and closed_by_id record who locked the books and when.
"""

from datetime import date, datetime
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ohada_kernel.db.base import TenantScoped, TrackedBase, UUIDString


class FiscalYear(TenantScoped, TrackedBase):
    """An accounting year of a company."""

    __tablename__ = "fiscal_years"

    __table_args__ = (
        UniqueConstraint("company_id", "code", name="uq_fiscal_year_company_code"),
        CheckConstraint("start_date <= end_date", name="ck_fiscal_year_dates"),
    )

    code: Mapped[str] = mapped_column(String(20), nullable=False)

    start_date: Mapped[date] = mapped_column(nullable=False)

    end_date: Mapped[date] = mapped_column(nullable=False)

    is_closed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    closed_at: Mapped[datetime | None] = mapped_column(nullable=True)

    closed_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    def __repr__(self) -> str:
        state = "closed" if self.is_closed else "open"
        return f"<FiscalYear {self.code} {self.start_date}..{self.end_date} {state}>"
