"""
Module: ohada_kernel.models.company
Responsibility: The tenant.  Accounts, journals, fiscal years and entries all
    belong to exactly one company.
Architecture position: Kernel > Models.  May import from db/ only.
"""

from uuid import UUID

from sqlalchemy import String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ohada_kernel.db.base import Base, UUIDString


class Company(Base):
    """A legal entity keeping its own OHADA books."""

    __tablename__ = "companies"

    __table_args__ = (UniqueConstraint("name", name="uq_company_name"),)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Local (reporting) currency, e.g. CDF, XAF, XOF
    local_currency: Mapped[str] = mapped_column(String(3), nullable=False)

    tax_id: Mapped[str | None] = mapped_column(String(50), nullable=True)


class Branch(Base):
    """Optional subdivision of a company that narrows journal scope."""

    __tablename__ = "branches"

    __table_args__ = (
        UniqueConstraint("company_id", "code", name="uq_branch_company_code"),
    )

    company_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    code: Mapped[str] = mapped_column(String(20), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
