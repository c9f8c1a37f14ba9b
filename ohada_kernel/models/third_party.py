"""
Module: ohada_kernel.models.third_party
Responsibility: Auxiliary dimensions referenced by entry lines (counterparties
    and cost centers).  The ledger references them but does not own their
    lifecycle.
Architecture position: Kernel > Models.
"""

from enum import Enum

from sqlalchemy import Boolean, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ohada_kernel.db.base import TenantScoped, TrackedBase


class ThirdPartyKind(str, Enum):
    CLIENT = "client"
    SUPPLIER = "supplier"
    BOTH = "both"


class ThirdParty(TenantScoped, TrackedBase):
    """Customer or supplier carried on receivable/payable lines."""

    __tablename__ = "third_parties"

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    kind: Mapped[ThirdPartyKind] = mapped_column(String(20), nullable=False)

    tax_id: Mapped[str | None] = mapped_column(String(50), nullable=True)

    is_vat_subject: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class CostCenter(TenantScoped, TrackedBase):
    """Analytical axis for expense and revenue lines."""

    __tablename__ = "cost_centers"

    __table_args__ = (
        UniqueConstraint("company_id", "code", name="uq_cost_center_company_code"),
    )

    code: Mapped[str] = mapped_column(String(20), nullable=False)

    label: Mapped[str] = mapped_column(String(255), nullable=False)
