"""
Source Document ORM Models (``ohada_modules.automation.orm``).

Responsibility
--------------
The business documents whose events are posted to the ledger: customer
invoices, customer payments, purchase orders and payslips.  Only the fields
the postings read are modelled; catalog and HR screens own the rest.

Architecture position
---------------------
**Modules layer** -- persistence.  Imports from ``ohada_kernel.db`` and
``ohada_kernel.models``.  MUST NOT be imported by ``ohada_kernel`` services.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from sqlalchemy import Date, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ohada_kernel.db.base import TenantScoped, TrackedBase
from ohada_kernel.db.types import Currency, Money, Rate
from ohada_kernel.models.third_party import ThirdParty


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    VALIDATED = "validated"
    PAID = "paid"
    CANCELLED = "cancelled"


class PurchaseOrderStatus(str, Enum):
    DRAFT = "draft"
    ORDERED = "ordered"
    RECEIVED = "received"
    CANCELLED = "cancelled"


class PayslipStatus(str, Enum):
    DRAFT = "draft"
    VALIDATED = "validated"
    PAID = "paid"


class PayslipLineType(str, Enum):
    EARNING = "earning"
    DEDUCTION = "deduction"
    EMPLOYER_CONTRIBUTION = "employer_contribution"


class PayslipLineCategory(str, Enum):
    SALARY = "salary"
    CNSS = "cnss"
    IPR = "ipr"
    OTHER = "other"


# ---------------------------------------------------------------------------
# 1. InvoiceModel
# ---------------------------------------------------------------------------


class InvoiceModel(TenantScoped, TrackedBase):
    """
    Customer invoice.

    Guarantees:
        - invoice_number is unique per company.
        - total_incl_tax = total_excl_tax + total_vat (set by the invoicing
          screens; the posting trusts it).
    """

    __tablename__ = "invoices"

    __table_args__ = (
        UniqueConstraint("company_id", "invoice_number", name="uq_invoice_number"),
    )

    invoice_number: Mapped[str] = mapped_column(String(50), nullable=False)
    client_id: Mapped[UUID] = mapped_column(ForeignKey("third_parties.id"), nullable=False)
    issued_at: Mapped[date] = mapped_column(Date, nullable=False)
    total_excl_tax: Mapped[Money]
    total_vat: Mapped[Money]
    total_incl_tax: Mapped[Money]
    currency: Mapped[Currency]
    exchange_rate: Mapped[Rate] = mapped_column(default=Decimal("1"))
    status: Mapped[InvoiceStatus] = mapped_column(
        String(20), default=InvoiceStatus.DRAFT
    )

    client: Mapped[ThirdParty] = relationship(lazy="joined", innerjoin=True)


# ---------------------------------------------------------------------------
# 2. PaymentModel
# ---------------------------------------------------------------------------


class PaymentModel(TenantScoped, TrackedBase):
    """Customer payment settling (part of) an invoice."""

    __tablename__ = "payments"

    invoice_id: Mapped[UUID] = mapped_column(ForeignKey("invoices.id"), nullable=False)
    amount_paid: Mapped[Money]
    paid_at: Mapped[date] = mapped_column(Date, nullable=False)
    method: Mapped[str] = mapped_column(String(20), nullable=False)
    currency: Mapped[Currency]
    exchange_rate: Mapped[Rate] = mapped_column(default=Decimal("1"))

    invoice: Mapped[InvoiceModel] = relationship(lazy="joined", innerjoin=True)


# ---------------------------------------------------------------------------
# 3. PurchaseOrderModel
# ---------------------------------------------------------------------------


class PurchaseOrderModel(TenantScoped, TrackedBase):
    """Supplier order; billed to the ledger once received."""

    __tablename__ = "purchase_orders"

    __table_args__ = (
        UniqueConstraint("company_id", "order_number", name="uq_purchase_order_number"),
    )

    order_number: Mapped[str] = mapped_column(String(50), nullable=False)
    supplier_id: Mapped[UUID] = mapped_column(ForeignKey("third_parties.id"), nullable=False)
    order_date: Mapped[date] = mapped_column(Date, nullable=False)
    total_amount: Mapped[Money]  # excluding tax
    currency: Mapped[Currency]
    exchange_rate: Mapped[Rate] = mapped_column(default=Decimal("1"))
    status: Mapped[PurchaseOrderStatus] = mapped_column(
        String(20), default=PurchaseOrderStatus.DRAFT
    )

    supplier: Mapped[ThirdParty] = relationship(lazy="joined", innerjoin=True)


# ---------------------------------------------------------------------------
# 4. PayslipModel / PayslipLineModel
# ---------------------------------------------------------------------------


class PayslipModel(TenantScoped, TrackedBase):
    """
    One employee's payslip for a pay period.

    ``period_end`` dates the payroll posting.  Employee CNSS and IPR
    withholdings and employer contributions are carried on the lines.
    """

    __tablename__ = "payslips"

    employee_name: Mapped[str] = mapped_column(String(255), nullable=False)
    period_name: Mapped[str] = mapped_column(String(50), nullable=False)
    period_end: Mapped[date] = mapped_column(Date, nullable=False)
    gross_salary: Mapped[Money]
    net_salary: Mapped[Money]
    currency: Mapped[Currency]
    status: Mapped[PayslipStatus] = mapped_column(
        String(20), default=PayslipStatus.DRAFT
    )

    lines: Mapped[list["PayslipLineModel"]] = relationship(
        back_populates="payslip",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class PayslipLineModel(TenantScoped, TrackedBase):
    __tablename__ = "payslip_lines"

    payslip_id: Mapped[UUID] = mapped_column(
        ForeignKey("payslips.id", ondelete="CASCADE"), nullable=False
    )
    label: Mapped[str] = mapped_column(String(255), nullable=False)
    line_type: Mapped[PayslipLineType] = mapped_column(String(30), nullable=False)
    category: Mapped[PayslipLineCategory] = mapped_column(
        String(20), default=PayslipLineCategory.OTHER
    )
    amount: Mapped[Money]

    payslip: Mapped[PayslipModel] = relationship(back_populates="lines")
