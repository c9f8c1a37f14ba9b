"""
Pure posting builders: business document facts in, entry lines out.

ZERO I/O.  The automation service resolves accounts and loads documents,
then calls these functions to shape the balanced lines.

Every builder returns lines whose debits equal their credits whenever the
document is internally consistent (gross = net + VAT, net pay = gross minus
withholdings).  Zero-amount lines are omitted.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from ohada_kernel.db.types import ZERO, money, round_money
from ohada_kernel.domain.dtos import EntryLineDraft


def _debit(account_id: UUID, amount: Decimal, label: str, third_party_id=None):
    return EntryLineDraft(
        account_id=account_id, debit=amount, label=label, third_party_id=third_party_id
    )


def _credit(account_id: UUID, amount: Decimal, label: str, third_party_id=None):
    return EntryLineDraft(
        account_id=account_id, credit=amount, label=label, third_party_id=third_party_id
    )


def invoice_lines(
    *,
    client_account_id: UUID,
    revenue_account_id: UUID,
    vat_account_id: UUID,
    client_id: UUID,
    invoice_number: str,
    client_name: str,
    net: Decimal,
    vat: Decimal,
    gross: Decimal,
) -> tuple[EntryLineDraft, ...]:
    """Dr client (gross) / Cr revenue (net) / Cr collected VAT (if any)."""
    lines = [
        _debit(
            client_account_id,
            gross,
            f"Invoice {invoice_number} - {client_name}",
            third_party_id=client_id,
        ),
        _credit(revenue_account_id, net, f"Sales - {invoice_number}"),
    ]
    if vat > ZERO:
        lines.append(_credit(vat_account_id, vat, f"VAT collected - {invoice_number}"))
    return tuple(lines)


def payment_lines(
    *,
    treasury_account_id: UUID,
    client_account_id: UUID,
    client_id: UUID,
    invoice_number: str,
    amount: Decimal,
) -> tuple[EntryLineDraft, ...]:
    """Dr cash or bank / Cr client, same amount."""
    return (
        _debit(treasury_account_id, amount, f"Receipt - {invoice_number}"),
        _credit(
            client_account_id,
            amount,
            f"Settlement of invoice {invoice_number}",
            third_party_id=client_id,
        ),
    )


def purchase_vat(net: Decimal, vat_rate: Decimal, supplier_is_vat_subject: bool) -> Decimal:
    """Deductible VAT at the standard rate over the order total, to the cent."""
    if not supplier_is_vat_subject:
        return ZERO
    return round_money(money(net) * vat_rate)


def purchase_lines(
    *,
    purchase_account_id: UUID,
    vat_account_id: UUID | None,
    supplier_account_id: UUID,
    supplier_id: UUID,
    order_number: str,
    supplier_name: str,
    net: Decimal,
    vat: Decimal,
) -> tuple[EntryLineDraft, ...]:
    """Dr purchases (net) / Dr deductible VAT (if any) / Cr supplier (gross)."""
    lines = [_debit(purchase_account_id, net, f"Purchases - {order_number}")]
    if vat > ZERO:
        lines.append(_debit(vat_account_id, vat, f"VAT deductible - {order_number}"))
    lines.append(
        _credit(
            supplier_account_id,
            net + vat,
            f"Supplier bill - {supplier_name}",
            third_party_id=supplier_id,
        )
    )
    return tuple(lines)


@dataclass(frozen=True)
class PayrollAmounts:
    """Payslip totals the payroll posting needs."""

    gross: Decimal
    net: Decimal
    employee_social: Decimal
    employer_charges: Decimal
    withheld_tax: Decimal

    @property
    def total_social(self) -> Decimal:
        return self.employee_social + self.employer_charges


@dataclass(frozen=True)
class PayrollAccounts:
    salaries: UUID
    employer_charges: UUID
    social_security: UUID
    withheld_tax: UUID
    net_pay_due: UUID


def payroll_lines(
    *,
    accounts: PayrollAccounts,
    amounts: PayrollAmounts,
    period_name: str,
    employee_name: str,
) -> tuple[EntryLineDraft, ...]:
    """
    Dr salaries (gross) and employer charges / Cr social security (employee
    plus employer share), withheld income tax, and net pay due.
    """
    candidates = (
        _debit(accounts.salaries, amounts.gross, f"Gross salary {period_name} - {employee_name}"),
        _debit(accounts.employer_charges, amounts.employer_charges, "Employer social charges"),
        _credit(accounts.social_security, amounts.total_social, "Social security contributions"),
        _credit(accounts.withheld_tax, amounts.withheld_tax, "Income tax withheld"),
        _credit(accounts.net_pay_due, amounts.net, f"Net pay due - {employee_name}"),
    )
    return tuple(line for line in candidates if line.debit > ZERO or line.credit > ZERO)


def salary_payment_lines(
    *,
    net_pay_due_account_id: UUID,
    treasury_account_id: UUID,
    amount: Decimal,
    period_name: str,
    employee_name: str,
) -> tuple[EntryLineDraft, ...]:
    """Dr net pay due / Cr cash or bank."""
    return (
        _debit(net_pay_due_account_id, amount, "Net pay settled"),
        _credit(treasury_account_id, amount, f"Salary {period_name} - {employee_name}"),
    )
