"""
Automation fixtures: counterparties and source documents.

Documents are inserted directly through the ORM into a company that already
has the standard chart, journals and 2026 fiscal year.  The automation
service only reads them (and marks payslips paid).
"""

from datetime import date
from decimal import Decimal

import pytest

from ohada_kernel.models.third_party import ThirdParty, ThirdPartyKind
from ohada_modules.automation.config import AutomationConfig
from ohada_modules.automation.orm import (
    InvoiceModel,
    InvoiceStatus,
    PaymentModel,
    PayslipLineCategory,
    PayslipLineModel,
    PayslipLineType,
    PayslipModel,
    PayslipStatus,
    PurchaseOrderModel,
    PurchaseOrderStatus,
)
from ohada_modules.automation.service import PostingAutomationService


@pytest.fixture
def automation_config() -> AutomationConfig:
    return AutomationConfig.with_defaults()


@pytest.fixture
def automation(session, deterministic_clock, automation_config, entry_service):
    return PostingAutomationService(
        session,
        deterministic_clock,
        automation_config,
        entry_service=entry_service,
    )


def _party(session, ctx, actor_id, name, kind, is_vat_subject=True) -> ThirdParty:
    party = ThirdParty(
        company_id=ctx.company_id,
        name=name,
        kind=kind,
        is_vat_subject=is_vat_subject,
        created_by_id=actor_id,
    )
    session.add(party)
    session.flush()
    return party


@pytest.fixture
def client(session, ctx, actor_id):
    return _party(session, ctx, actor_id, "Bralima SA", ThirdPartyKind.CLIENT)


@pytest.fixture
def supplier(session, ctx, actor_id):
    return _party(session, ctx, actor_id, "Congo Futur Distribution", ThirdPartyKind.SUPPLIER)


@pytest.fixture
def exempt_supplier(session, ctx, actor_id):
    return _party(
        session, ctx, actor_id, "Artisan Kasa-Vubu", ThirdPartyKind.SUPPLIER,
        is_vat_subject=False,
    )


@pytest.fixture
def make_invoice(session, ctx, actor_id, client, ledger):
    def _make(
        number: str = "FAC-2026-001",
        net: str = "1200",
        vat: str = "192",
        gross: str | None = None,
        issued_at: date = date(2026, 4, 10),
        status: InvoiceStatus = InvoiceStatus.VALIDATED,
    ) -> InvoiceModel:
        invoice = InvoiceModel(
            company_id=ctx.company_id,
            invoice_number=number,
            client_id=client.id,
            issued_at=issued_at,
            total_excl_tax=Decimal(net),
            total_vat=Decimal(vat),
            total_incl_tax=Decimal(gross) if gross else Decimal(net) + Decimal(vat),
            currency="CDF",
            status=status,
            created_by_id=actor_id,
        )
        session.add(invoice)
        session.flush()
        return invoice

    return _make


@pytest.fixture
def make_payment(session, ctx, actor_id):
    def _make(invoice: InvoiceModel, amount: str, method: str, paid_at=date(2026, 4, 20)):
        payment = PaymentModel(
            company_id=ctx.company_id,
            invoice_id=invoice.id,
            amount_paid=Decimal(amount),
            paid_at=paid_at,
            method=method,
            currency="CDF",
            created_by_id=actor_id,
        )
        session.add(payment)
        session.flush()
        return payment

    return _make


@pytest.fixture
def make_order(session, ctx, actor_id, ledger):
    def _make(
        supplier: ThirdParty,
        amount: str = "100000",
        status: PurchaseOrderStatus = PurchaseOrderStatus.RECEIVED,
        number: str = "BC-2026-001",
    ) -> PurchaseOrderModel:
        order = PurchaseOrderModel(
            company_id=ctx.company_id,
            order_number=number,
            supplier_id=supplier.id,
            order_date=date(2026, 5, 5),
            total_amount=Decimal(amount),
            currency="CDF",
            status=status,
            created_by_id=actor_id,
        )
        session.add(order)
        session.flush()
        return order

    return _make


@pytest.fixture
def make_payslip(session, ctx, actor_id, ledger):
    """Payslip: gross 500000, CNSS 17500, IPR 77500, net 405000, employer 45000."""

    def _make(
        status: PayslipStatus = PayslipStatus.VALIDATED,
        period_end: date = date(2026, 5, 31),
    ) -> PayslipModel:
        payslip = PayslipModel(
            company_id=ctx.company_id,
            employee_name="Mbuyi Kalala",
            period_name="2026-05",
            period_end=period_end,
            gross_salary=Decimal("500000"),
            net_salary=Decimal("405000"),
            currency="CDF",
            status=status,
            created_by_id=actor_id,
        )
        for label, line_type, category, amount in (
            ("Base salary", PayslipLineType.EARNING, PayslipLineCategory.SALARY, "500000"),
            ("CNSS employee", PayslipLineType.DEDUCTION, PayslipLineCategory.CNSS, "17500"),
            ("IPR", PayslipLineType.DEDUCTION, PayslipLineCategory.IPR, "77500"),
            (
                "CNSS employer",
                PayslipLineType.EMPLOYER_CONTRIBUTION,
                PayslipLineCategory.CNSS,
                "45000",
            ),
        ):
            payslip.lines.append(
                PayslipLineModel(
                    company_id=ctx.company_id,
                    label=label,
                    line_type=line_type,
                    category=category,
                    amount=Decimal(amount),
                    created_by_id=actor_id,
                )
            )
        session.add(payslip)
        session.flush()
        return payslip

    return _make
