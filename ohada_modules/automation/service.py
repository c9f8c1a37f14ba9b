"""
Posting Automation Service (``ohada_modules.automation.service``).

Responsibility
--------------
Turns business events into VALIDATED ledger entries:

    invoice validated        -> VT: Dr 411 gross / Cr 701 net / Cr 443 VAT
    payment recorded         -> CA or BQ: Dr 57 or 52 / Cr 411
    purchase order received  -> HA: Dr 601 net / Dr 445 VAT / Cr 401 gross
    payslip validated        -> PA: Dr 641 + 646 / Cr 431, 442, 422
    salary paid              -> CA or BQ: Dr 422 / Cr 57 or 52

Journals and accounts are resolved per company from ``AutomationConfig``
(journal codes and account prefixes).  The entry itself is created through
``EntryService.create`` so every ledger invariant still applies.

Architecture position
---------------------
**Modules layer** -- thin glue over the kernel entry service.  Flush-only:
the caller owns the transaction and can roll back the triggering business
operation together with the entry.

Failure modes
-------------
* Missing document -> ``SourceDocumentNotFoundError`` (always raised).
* Document in the wrong state -> ``SourceDocumentStateError`` (always raised).
* Missing journal, account or open fiscal year -> subclass of
  ``AutomationResolutionError``.  Raised under the ``propagate`` policy; under
  ``log_and_continue`` (payment, payroll and salary payment only) it is
  logged at WARNING and the call returns None.
* Ledger errors from ``EntryService`` (unbalanced, closed period, ...) are
  always raised.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import date
from decimal import Decimal
from typing import Any, TypeVar
from uuid import UUID

from sqlalchemy.orm import Session

from ohada_kernel.db.types import ZERO
from ohada_kernel.domain.clock import Clock, SystemClock
from ohada_kernel.domain.dtos import EntryDraft, EntryLineDraft, EntryRecord
from ohada_kernel.domain.tenant import TenantContext
from ohada_kernel.domain.values import EntryStatus, PaymentMethod, SourceDocumentType
from ohada_kernel.exceptions import (
    AccountResolutionError,
    AutomationResolutionError,
    FiscalYearResolutionError,
    JournalResolutionError,
    OhadaLedgerError,
    SourceDocumentNotFoundError,
    SourceDocumentStateError,
)
from ohada_kernel.logging_config import get_logger
from ohada_kernel.models.account import Account
from ohada_kernel.models.fiscal_year import FiscalYear
from ohada_kernel.models.journal import Journal
from ohada_kernel.repositories.accounts import AccountRepository
from ohada_kernel.repositories.fiscal_years import FiscalYearRepository
from ohada_kernel.repositories.journals import JournalRepository
from ohada_kernel.services.entry_service import EntryService
from ohada_modules.automation.config import (
    AutomationConfig,
    AutomationFlow,
    FailurePolicy,
)
from ohada_modules.automation.orm import (
    InvoiceStatus,
    PayslipLineCategory,
    PayslipLineType,
    PayslipModel,
    PayslipStatus,
    PurchaseOrderStatus,
)
from ohada_modules.automation.postings import (
    PayrollAccounts,
    PayrollAmounts,
    invoice_lines,
    payment_lines,
    payroll_lines,
    purchase_lines,
    purchase_vat,
    salary_payment_lines,
)
from ohada_modules.automation.repositories import (
    InvoiceRepository,
    PaymentRepository,
    PayslipRepository,
    PurchaseOrderRepository,
)

logger = get_logger("modules.automation.service")

T = TypeVar("T")


class PostingAutomationService:
    """
    Posts business documents to the ledger.

    Entries go through ``entry_service`` when given.  Otherwise an
    ``EntryService`` is built from ``entry_service_options`` (the keyword
    arguments of ``LedgerSettings.entry_service_options()``), so postings
    follow the configured currency, tolerance and reference numbering.

    Usage:
        config = get_active_config()
        automation = PostingAutomationService(
            session,
            clock,
            config.automation,
            entry_service_options=config.ledger.entry_service_options(),
        )
        record = automation.post_invoice(ctx, invoice_id, actor_id)
        session.commit()
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: AutomationConfig | None = None,
        entry_service: EntryService | None = None,
        *,
        entry_service_options: Mapping[str, Any] | None = None,
    ):
        if entry_service is not None and entry_service_options is not None:
            raise ValueError("Pass either entry_service or entry_service_options, not both")
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or AutomationConfig.with_defaults()
        self._entries = entry_service or EntryService(
            session, self._clock, **(entry_service_options or {})
        )
        self._accounts = AccountRepository(session)
        self._journals = JournalRepository(session)
        self._fiscal_years = FiscalYearRepository(session)
        self._invoices = InvoiceRepository(session)
        self._payments = PaymentRepository(session)
        self._orders = PurchaseOrderRepository(session)
        self._payslips = PayslipRepository(session)

    # =========================================================================
    # Public API
    # =========================================================================

    def post_invoice(
        self, ctx: TenantContext, invoice_id: UUID, actor_id: UUID
    ) -> EntryRecord:
        """Sales entry for a validated customer invoice."""

        def post() -> EntryRecord:
            invoice = self._invoices.get(ctx, invoice_id)
            if invoice is None:
                raise SourceDocumentNotFoundError("invoice", str(invoice_id))
            if invoice.status != InvoiceStatus.VALIDATED:
                raise SourceDocumentStateError(
                    "invoice",
                    str(invoice_id),
                    InvoiceStatus(invoice.status).value,
                    InvoiceStatus.VALIDATED.value,
                )

            prefixes = self._config.accounts
            journal = self._journal(ctx, self._config.journals.sales)
            fiscal_year = self._fiscal_year(ctx, invoice.issued_at)
            client_account = self._account(ctx, prefixes.client)
            revenue_account = self._account(ctx, prefixes.sales)
            vat_account = self._account(ctx, prefixes.vat_collected)

            lines = invoice_lines(
                client_account_id=client_account.id,
                revenue_account_id=revenue_account.id,
                vat_account_id=vat_account.id,
                client_id=invoice.client_id,
                invoice_number=invoice.invoice_number,
                client_name=invoice.client.name,
                net=invoice.total_excl_tax,
                vat=invoice.total_vat,
                gross=invoice.total_incl_tax,
            )
            return self._create(
                ctx,
                actor_id,
                journal=journal,
                fiscal_year=fiscal_year,
                entry_date=invoice.issued_at,
                description=f"Sales invoice {invoice.invoice_number}",
                lines=lines,
                currency=invoice.currency,
                exchange_rate=invoice.exchange_rate,
                source_type=SourceDocumentType.INVOICE,
                source_id=invoice.id,
            )

        return self._run(AutomationFlow.INVOICE, ctx, invoice_id, post)

    def post_payment(
        self, ctx: TenantContext, payment_id: UUID, actor_id: UUID
    ) -> EntryRecord | None:
        """Treasury entry for a customer payment."""

        def post() -> EntryRecord:
            payment = self._payments.get(ctx, payment_id)
            if payment is None:
                raise SourceDocumentNotFoundError("payment", str(payment_id))

            method = PaymentMethod(payment.method)
            journal = self._journal(ctx, self._treasury_journal_code(method))
            fiscal_year = self._fiscal_year(ctx, payment.paid_at)
            treasury_account = self._account(ctx, self._treasury_prefix(method))
            client_account = self._account(ctx, self._config.accounts.client)

            invoice = payment.invoice
            lines = payment_lines(
                treasury_account_id=treasury_account.id,
                client_account_id=client_account.id,
                client_id=invoice.client_id,
                invoice_number=invoice.invoice_number,
                amount=payment.amount_paid,
            )
            return self._create(
                ctx,
                actor_id,
                journal=journal,
                fiscal_year=fiscal_year,
                entry_date=payment.paid_at,
                description=f"Customer settlement - {invoice.client.name}",
                lines=lines,
                currency=payment.currency,
                exchange_rate=payment.exchange_rate,
                source_type=SourceDocumentType.PAYMENT,
                source_id=payment.id,
            )

        return self._run(AutomationFlow.PAYMENT, ctx, payment_id, post)

    def post_purchase_bill(
        self, ctx: TenantContext, order_id: UUID, actor_id: UUID
    ) -> EntryRecord:
        """Purchase entry for a received purchase order."""

        def post() -> EntryRecord:
            order = self._orders.get(ctx, order_id)
            if order is None:
                raise SourceDocumentNotFoundError("purchase_order", str(order_id))
            if order.status != PurchaseOrderStatus.RECEIVED:
                raise SourceDocumentStateError(
                    "purchase_order",
                    str(order_id),
                    PurchaseOrderStatus(order.status).value,
                    PurchaseOrderStatus.RECEIVED.value,
                )

            prefixes = self._config.accounts
            journal = self._journal(ctx, self._config.journals.purchases)
            fiscal_year = self._fiscal_year(ctx, order.order_date)
            purchase_account = self._account(ctx, prefixes.purchases)
            supplier_account = self._account(ctx, prefixes.supplier)

            vat = purchase_vat(
                order.total_amount,
                self._config.standard_vat_rate,
                order.supplier.is_vat_subject,
            )
            vat_account_id = (
                self._account(ctx, prefixes.vat_deductible).id if vat > ZERO else None
            )
            lines = purchase_lines(
                purchase_account_id=purchase_account.id,
                vat_account_id=vat_account_id,
                supplier_account_id=supplier_account.id,
                supplier_id=order.supplier_id,
                order_number=order.order_number,
                supplier_name=order.supplier.name,
                net=order.total_amount,
                vat=vat,
            )
            return self._create(
                ctx,
                actor_id,
                journal=journal,
                fiscal_year=fiscal_year,
                entry_date=order.order_date,
                description=f"Purchase bill {order.order_number}",
                lines=lines,
                currency=order.currency,
                exchange_rate=order.exchange_rate,
                source_type=SourceDocumentType.PURCHASE_ORDER,
                source_id=order.id,
            )

        return self._run(AutomationFlow.PURCHASE_BILL, ctx, order_id, post)

    def post_payroll(
        self, ctx: TenantContext, payslip_id: UUID, actor_id: UUID
    ) -> EntryRecord | None:
        """Payroll commitment entry for a validated payslip, dated at period end."""

        def post() -> EntryRecord:
            payslip = self._validated_payslip(ctx, payslip_id)

            prefixes = self._config.accounts
            journal = self._journal(ctx, self._config.journals.payroll)
            fiscal_year = self._fiscal_year(ctx, payslip.period_end)
            accounts = PayrollAccounts(
                salaries=self._account(ctx, prefixes.salaries).id,
                employer_charges=self._account(ctx, prefixes.employer_charges).id,
                social_security=self._account(ctx, prefixes.social_security).id,
                withheld_tax=self._account(ctx, prefixes.withheld_tax).id,
                net_pay_due=self._account(ctx, prefixes.net_pay_due).id,
            )
            lines = payroll_lines(
                accounts=accounts,
                amounts=payroll_amounts(payslip),
                period_name=payslip.period_name,
                employee_name=payslip.employee_name,
            )
            return self._create(
                ctx,
                actor_id,
                journal=journal,
                fiscal_year=fiscal_year,
                entry_date=payslip.period_end,
                description=f"Payroll {payslip.period_name} - {payslip.employee_name}",
                lines=lines,
                currency=payslip.currency,
                exchange_rate=Decimal("1"),
                source_type=SourceDocumentType.PAYSLIP,
                source_id=payslip.id,
            )

        return self._run(AutomationFlow.PAYROLL, ctx, payslip_id, post)

    def post_salary_payment(
        self,
        ctx: TenantContext,
        payslip_id: UUID,
        method: PaymentMethod,
        payment_date: date,
        actor_id: UUID,
    ) -> EntryRecord | None:
        """Treasury entry settling a payslip's net pay; marks the payslip PAID."""

        def post() -> EntryRecord:
            payslip = self._validated_payslip(ctx, payslip_id)
            payment_method = PaymentMethod(method)

            journal = self._journal(ctx, self._treasury_journal_code(payment_method))
            fiscal_year = self._fiscal_year(ctx, payment_date)
            net_pay_due = self._account(ctx, self._config.accounts.net_pay_due)
            treasury = self._account(ctx, self._treasury_prefix(payment_method))

            lines = salary_payment_lines(
                net_pay_due_account_id=net_pay_due.id,
                treasury_account_id=treasury.id,
                amount=payslip.net_salary,
                period_name=payslip.period_name,
                employee_name=payslip.employee_name,
            )
            record = self._create(
                ctx,
                actor_id,
                journal=journal,
                fiscal_year=fiscal_year,
                entry_date=payment_date,
                description=f"Salary payment {payslip.period_name} - {payslip.employee_name}",
                lines=lines,
                currency=payslip.currency,
                exchange_rate=Decimal("1"),
                source_type=SourceDocumentType.PAYSLIP,
                source_id=payslip.id,
            )
            payslip.status = PayslipStatus.PAID
            payslip.updated_by_id = actor_id
            self._session.flush()
            return record

        return self._run(AutomationFlow.SALARY_PAYMENT, ctx, payslip_id, post)

    # =========================================================================
    # Failure policy
    # =========================================================================

    def _run(
        self,
        flow: AutomationFlow,
        ctx: TenantContext,
        document_id: UUID,
        post: Callable[[], T],
    ) -> T | None:
        log_fields = {
            "tenant": ctx,
            "flow": flow.value,
            "document_id": str(document_id),
        }
        try:
            record = post()
        except AutomationResolutionError as exc:
            if self._config.policy_for(flow) is FailurePolicy.LOG_AND_CONTINUE:
                logger.warning(
                    "automation_posting_skipped",
                    extra={**log_fields, "error_code": exc.code, "reason": str(exc)},
                )
                return None
            logger.error(
                "automation_posting_failed",
                extra={**log_fields, "error_code": exc.code, "reason": str(exc)},
            )
            raise
        except OhadaLedgerError as exc:
            logger.error(
                "automation_posting_failed",
                extra={**log_fields, "error_code": exc.code, "reason": str(exc)},
            )
            raise

        logger.info(
            "automation_entry_posted",
            extra={
                **log_fields,
                "entry_id": str(record.id),
                "reference_number": record.reference_number,
            },
        )
        return record

    # =========================================================================
    # Resolution helpers
    # =========================================================================

    def _journal(self, ctx: TenantContext, code: str) -> Journal:
        journal = self._journals.get_by_code(ctx, code)
        if journal is None:
            raise JournalResolutionError(code, str(ctx.company_id))
        return journal

    def _account(self, ctx: TenantContext, prefix: str) -> Account:
        account = self._accounts.find_by_prefix(ctx, prefix)
        if account is None:
            raise AccountResolutionError(prefix, str(ctx.company_id))
        return account

    def _fiscal_year(self, ctx: TenantContext, on_date: date) -> FiscalYear:
        fiscal_year = self._fiscal_years.find_for_date(ctx, on_date, open_only=True)
        if fiscal_year is None:
            raise FiscalYearResolutionError(on_date.isoformat(), str(ctx.company_id))
        return fiscal_year

    def _treasury_journal_code(self, method: PaymentMethod) -> str:
        journals = self._config.journals
        return journals.cash if method.is_cash else journals.bank

    def _treasury_prefix(self, method: PaymentMethod) -> str:
        accounts = self._config.accounts
        return accounts.cash if method.is_cash else accounts.bank

    def _validated_payslip(self, ctx: TenantContext, payslip_id: UUID) -> PayslipModel:
        payslip = self._payslips.get(ctx, payslip_id)
        if payslip is None:
            raise SourceDocumentNotFoundError("payslip", str(payslip_id))
        if payslip.status != PayslipStatus.VALIDATED:
            raise SourceDocumentStateError(
                "payslip",
                str(payslip_id),
                PayslipStatus(payslip.status).value,
                PayslipStatus.VALIDATED.value,
            )
        return payslip

    def _create(
        self,
        ctx: TenantContext,
        actor_id: UUID,
        *,
        journal: Journal,
        fiscal_year: FiscalYear,
        entry_date: date,
        description: str,
        lines: tuple[EntryLineDraft, ...],
        currency: str,
        exchange_rate: Decimal,
        source_type: SourceDocumentType,
        source_id: UUID,
    ) -> EntryRecord:
        draft = EntryDraft(
            journal_id=journal.id,
            fiscal_year_id=fiscal_year.id,
            entry_date=entry_date,
            lines=lines,
            description=description,
            status=EntryStatus.VALIDATED,
            currency=currency,
            exchange_rate=exchange_rate,
            source_type=source_type,
            source_id=str(source_id),
        )
        return self._entries.create(ctx, draft, actor_id).entry


def payroll_amounts(payslip: PayslipModel) -> PayrollAmounts:
    """Sum the payslip lines into the amounts the payroll posting credits."""
    employee_social = ZERO
    withheld_tax = ZERO
    employer_charges = ZERO
    for line in payslip.lines:
        line_type = PayslipLineType(line.line_type)
        category = PayslipLineCategory(line.category)
        if line_type is PayslipLineType.EMPLOYER_CONTRIBUTION:
            employer_charges += line.amount
        elif line_type is PayslipLineType.DEDUCTION and category is PayslipLineCategory.IPR:
            withheld_tax += line.amount
        elif line_type is PayslipLineType.DEDUCTION and category is PayslipLineCategory.CNSS:
            employee_social += line.amount
    return PayrollAmounts(
        gross=payslip.gross_salary,
        net=payslip.net_salary,
        employee_social=employee_social,
        withheld_tax=withheld_tax,
        employer_charges=employer_charges,
    )
