"""
PostingAutomationService: business documents to VALIDATED entries.

Each flow is checked for its journal, accounts and amounts, then for the
failure policy (propagate vs log-and-continue).
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from ohada_config.schema import LedgerSettings
from ohada_kernel.domain.values import EntryStatus, PaymentMethod, SourceDocumentType
from ohada_kernel.exceptions import (
    AccountResolutionError,
    FiscalYearResolutionError,
    JournalResolutionError,
    SourceDocumentNotFoundError,
    SourceDocumentStateError,
    UnbalancedEntryError,
)
from ohada_kernel.models.accounting_entry import AccountingEntry
from ohada_modules.automation.config import (
    AccountPrefixes,
    AutomationConfig,
    AutomationFlow,
    FailurePolicy,
    JournalCodes,
)
from ohada_modules.automation.orm import InvoiceStatus, PayslipStatus, PurchaseOrderStatus
from ohada_modules.automation.service import PostingAutomationService


def _movements(record, accounts) -> dict[str, tuple[Decimal, Decimal]]:
    """Entry lines keyed by account code as (debit, credit)."""
    codes = {account.id: code for code, account in accounts.items()}
    return {codes[line.account_id]: (line.debit, line.credit) for line in record.lines}


def _events(captured_logs, name):
    return [r for r in captured_logs() if r["message"] == name]


class TestInvoicePosting:
    def test_sale_with_vat(self, ctx, actor_id, automation, make_invoice, accounts, journals):
        invoice = make_invoice()
        record = automation.post_invoice(ctx, invoice.id, actor_id)

        assert record.status == EntryStatus.VALIDATED
        assert record.journal_id == journals["VT"].id
        assert record.reference_number == "VT-2026-0001"
        assert record.entry_date == date(2026, 4, 10)
        assert record.source_type == SourceDocumentType.INVOICE
        assert record.source_id == str(invoice.id)
        assert _movements(record, accounts) == {
            "411000": (Decimal("1392"), Decimal("0")),
            "701000": (Decimal("0"), Decimal("1200")),
            "443000": (Decimal("0"), Decimal("192")),
        }

    def test_client_carried_on_receivable_line(
        self, ctx, actor_id, automation, make_invoice, client, accounts
    ):
        record = automation.post_invoice(ctx, make_invoice().id, actor_id)
        receivable = next(l for l in record.lines if l.account_id == accounts["411000"].id)
        assert receivable.third_party_id == client.id

    def test_sale_without_vat_has_two_lines(self, ctx, actor_id, automation, make_invoice):
        record = automation.post_invoice(ctx, make_invoice(vat="0").id, actor_id)
        assert len(record.lines) == 2
        assert record.total_debit == record.total_credit == Decimal("1200")

    @pytest.mark.parametrize(
        "status", [InvoiceStatus.DRAFT, InvoiceStatus.PAID, InvoiceStatus.CANCELLED]
    )
    def test_invoice_must_be_validated(
        self, session, ctx, actor_id, automation, make_invoice, status
    ):
        invoice = make_invoice(status=status)
        with pytest.raises(SourceDocumentStateError) as exc_info:
            automation.post_invoice(ctx, invoice.id, actor_id)
        assert exc_info.value.status == status.value
        assert exc_info.value.expected == "validated"
        assert session.query(AccountingEntry).filter_by(source_id=invoice.id).count() == 0

    def test_unknown_invoice(self, ctx, actor_id, automation, ledger):
        with pytest.raises(SourceDocumentNotFoundError):
            automation.post_invoice(ctx, uuid4(), actor_id)

    def test_inconsistent_totals_rejected_by_ledger(
        self, ctx, actor_id, automation, make_invoice, captured_logs
    ):
        invoice = make_invoice(gross="1500")
        with pytest.raises(UnbalancedEntryError):
            automation.post_invoice(ctx, invoice.id, actor_id)
        failed = _events(captured_logs, "automation_posting_failed")
        assert failed[0]["error_code"] == "UNBALANCED_ENTRY"

    def test_success_is_logged(self, ctx, actor_id, automation, make_invoice, captured_logs):
        invoice = make_invoice()
        automation.post_invoice(ctx, invoice.id, actor_id)
        posted = _events(captured_logs, "automation_entry_posted")
        assert posted[0]["flow"] == "invoice"
        assert posted[0]["document_id"] == str(invoice.id)


class TestPaymentPosting:
    def test_cash_payment_goes_to_cash_journal(
        self, ctx, actor_id, automation, make_invoice, make_payment, accounts, journals
    ):
        payment = make_payment(make_invoice(), "1392", PaymentMethod.CASH.value)
        record = automation.post_payment(ctx, payment.id, actor_id)

        assert record.journal_id == journals["CA"].id
        assert record.reference_number == "CA-2026-0001"
        assert _movements(record, accounts) == {
            "571000": (Decimal("1392"), Decimal("0")),
            "411000": (Decimal("0"), Decimal("1392")),
        }

    @pytest.mark.parametrize(
        "method",
        [PaymentMethod.BANK_TRANSFER, PaymentMethod.CHECK, PaymentMethod.MOBILE_MONEY],
    )
    def test_non_cash_payment_goes_to_bank(
        self, ctx, actor_id, automation, make_invoice, make_payment, accounts, journals, method
    ):
        payment = make_payment(make_invoice(), "500", method.value)
        record = automation.post_payment(ctx, payment.id, actor_id)
        assert record.journal_id == journals["BQ"].id
        assert set(_movements(record, accounts)) == {"521000", "411000"}


class TestPurchasePosting:
    def test_vat_subject_supplier(
        self, ctx, actor_id, automation, make_order, supplier, accounts, journals
    ):
        record = automation.post_purchase_bill(ctx, make_order(supplier).id, actor_id)

        assert record.journal_id == journals["HA"].id
        assert _movements(record, accounts) == {
            "601000": (Decimal("100000"), Decimal("0")),
            "445000": (Decimal("16000.00"), Decimal("0")),
            "401000": (Decimal("0"), Decimal("116000.00")),
        }

    def test_vat_rounded_to_the_cent(self, ctx, actor_id, automation, make_order, supplier):
        record = automation.post_purchase_bill(
            ctx, make_order(supplier, amount="333.33").id, actor_id
        )
        vat_line = record.lines[1]
        assert vat_line.debit == Decimal("53.33")

    def test_exempt_supplier_has_no_vat_line(
        self, ctx, actor_id, automation, make_order, exempt_supplier, accounts
    ):
        record = automation.post_purchase_bill(
            ctx, make_order(exempt_supplier).id, actor_id
        )
        assert set(_movements(record, accounts)) == {"601000", "401000"}

    @pytest.mark.parametrize(
        "status",
        [PurchaseOrderStatus.DRAFT, PurchaseOrderStatus.ORDERED, PurchaseOrderStatus.CANCELLED],
    )
    def test_order_must_be_received(
        self, ctx, actor_id, automation, make_order, supplier, status
    ):
        order = make_order(supplier, status=status)
        with pytest.raises(SourceDocumentStateError) as exc_info:
            automation.post_purchase_bill(ctx, order.id, actor_id)
        assert exc_info.value.status == status.value


class TestPayrollPosting:
    def test_payroll_entry_dated_at_period_end(
        self, ctx, actor_id, automation, make_payslip, accounts, journals
    ):
        record = automation.post_payroll(ctx, make_payslip().id, actor_id)

        assert record.journal_id == journals["PA"].id
        assert record.entry_date == date(2026, 5, 31)
        assert _movements(record, accounts) == {
            "641000": (Decimal("500000"), Decimal("0")),
            "646000": (Decimal("45000"), Decimal("0")),
            "431000": (Decimal("0"), Decimal("62500")),
            "442000": (Decimal("0"), Decimal("77500")),
            "422000": (Decimal("0"), Decimal("405000")),
        }
        assert record.total_debit == record.total_credit

    def test_draft_payslip_rejected(self, ctx, actor_id, automation, make_payslip):
        payslip = make_payslip(status=PayslipStatus.DRAFT)
        with pytest.raises(SourceDocumentStateError):
            automation.post_payroll(ctx, payslip.id, actor_id)


class TestSalaryPaymentPosting:
    def test_bank_salary_payment_marks_payslip_paid(
        self, ctx, actor_id, automation, make_payslip, accounts, journals
    ):
        payslip = make_payslip()
        record = automation.post_salary_payment(
            ctx, payslip.id, PaymentMethod.BANK_TRANSFER, date(2026, 6, 2), actor_id
        )

        assert record.journal_id == journals["BQ"].id
        assert record.entry_date == date(2026, 6, 2)
        assert _movements(record, accounts) == {
            "422000": (Decimal("405000"), Decimal("0")),
            "521000": (Decimal("0"), Decimal("405000")),
        }
        assert payslip.status == PayslipStatus.PAID

    def test_paid_payslip_cannot_be_paid_twice(
        self, ctx, actor_id, automation, make_payslip
    ):
        payslip = make_payslip()
        automation.post_salary_payment(
            ctx, payslip.id, PaymentMethod.CASH, date(2026, 6, 2), actor_id
        )
        with pytest.raises(SourceDocumentStateError) as exc_info:
            automation.post_salary_payment(
                ctx, payslip.id, PaymentMethod.CASH, date(2026, 6, 3), actor_id
            )
        assert exc_info.value.status == "paid"


class TestFailurePolicy:
    """Resolution failures propagate unless the flow opts into log-and-continue."""

    @pytest.fixture
    def lenient_automation(self, session, deterministic_clock, entry_service):
        config = AutomationConfig(
            failure_policies={
                AutomationFlow.PAYMENT: FailurePolicy.LOG_AND_CONTINUE,
                AutomationFlow.PAYROLL: FailurePolicy.LOG_AND_CONTINUE,
                AutomationFlow.SALARY_PAYMENT: FailurePolicy.LOG_AND_CONTINUE,
            }
        )
        return PostingAutomationService(
            session, deterministic_clock, config, entry_service=entry_service
        )

    def test_default_policy_propagates_for_every_flow(self):
        config = AutomationConfig.with_defaults()
        assert all(
            config.policy_for(flow) is FailurePolicy.PROPAGATE for flow in AutomationFlow
        )

    def test_missing_fiscal_year_propagates_by_default(
        self, ctx, actor_id, automation, make_payslip, captured_logs
    ):
        payslip = make_payslip(period_end=date(2027, 1, 31))
        with pytest.raises(FiscalYearResolutionError):
            automation.post_payroll(ctx, payslip.id, actor_id)
        failed = _events(captured_logs, "automation_posting_failed")
        assert failed[0]["level"] == "ERROR"

    def test_missing_fiscal_year_skipped_when_lenient(
        self, ctx, actor_id, lenient_automation, make_payslip, entry_service, captured_logs
    ):
        payslip = make_payslip(period_end=date(2027, 1, 31))

        assert lenient_automation.post_payroll(ctx, payslip.id, actor_id) is None

        skipped = _events(captured_logs, "automation_posting_skipped")
        assert len(skipped) == 1
        assert skipped[0]["level"] == "WARNING"
        assert skipped[0]["error_code"] == "FISCAL_YEAR_RESOLUTION_FAILED"
        assert skipped[0]["flow"] == "payroll"
        assert entry_service.list_entries(ctx) == []

    def test_missing_journal_skipped_when_lenient(
        self, session, ctx, actor_id, deterministic_clock, entry_service,
        make_invoice, make_payment, captured_logs,
    ):
        config = AutomationConfig(
            journals=JournalCodes(cash="CX"),
            failure_policies={"payment": "log_and_continue"},
        )
        service = PostingAutomationService(
            session, deterministic_clock, config, entry_service=entry_service
        )
        payment = make_payment(make_invoice(), "100", PaymentMethod.CASH.value)

        assert service.post_payment(ctx, payment.id, actor_id) is None
        skipped = _events(captured_logs, "automation_posting_skipped")
        assert skipped[0]["error_code"] == "JOURNAL_RESOLUTION_FAILED"

    def test_missing_journal_propagates_by_default(
        self, session, ctx, actor_id, deterministic_clock, entry_service,
        make_invoice, make_payment,
    ):
        config = AutomationConfig(journals=JournalCodes(cash="CX"))
        service = PostingAutomationService(
            session, deterministic_clock, config, entry_service=entry_service
        )
        payment = make_payment(make_invoice(), "100", PaymentMethod.CASH.value)
        with pytest.raises(JournalResolutionError):
            service.post_payment(ctx, payment.id, actor_id)

    def test_missing_account_propagates_for_invoices(
        self, session, ctx, actor_id, deterministic_clock, entry_service, make_invoice,
        captured_logs,
    ):
        config = AutomationConfig(accounts=AccountPrefixes(vat_collected="4439"))
        service = PostingAutomationService(
            session, deterministic_clock, config, entry_service=entry_service
        )
        invoice = make_invoice()
        with pytest.raises(AccountResolutionError) as exc_info:
            service.post_invoice(ctx, invoice.id, actor_id)
        assert exc_info.value.prefix == "4439"
        assert session.query(AccountingEntry).filter_by(source_id=invoice.id).count() == 0
        failed = _events(captured_logs, "automation_posting_failed")
        assert failed[0]["flow"] == "invoice"

    def test_missing_account_propagates_for_purchases(
        self, session, ctx, actor_id, deterministic_clock, entry_service, make_order, supplier
    ):
        config = AutomationConfig(accounts=AccountPrefixes(purchases="6049"))
        service = PostingAutomationService(
            session, deterministic_clock, config, entry_service=entry_service
        )
        with pytest.raises(AccountResolutionError) as exc_info:
            service.post_purchase_bill(ctx, make_order(supplier).id, actor_id)
        assert exc_info.value.prefix == "6049"

    def test_state_errors_always_propagate(
        self, ctx, actor_id, lenient_automation, make_payslip, captured_logs
    ):
        payslip = make_payslip(status=PayslipStatus.DRAFT)
        with pytest.raises(SourceDocumentStateError):
            lenient_automation.post_payroll(ctx, payslip.id, actor_id)
        assert _events(captured_logs, "automation_posting_skipped") == []
        assert _events(captured_logs, "automation_posting_failed")

    def test_missing_document_always_propagates(
        self, ctx, actor_id, lenient_automation, ledger
    ):
        with pytest.raises(SourceDocumentNotFoundError):
            lenient_automation.post_payment(ctx, uuid4(), actor_id)


class TestLedgerSettings:
    def test_entries_follow_configured_reference_width(
        self, session, ctx, actor_id, deterministic_clock, make_invoice
    ):
        settings = LedgerSettings(reference_sequence_width=6)
        service = PostingAutomationService(
            session,
            deterministic_clock,
            entry_service_options=settings.entry_service_options(),
        )
        record = service.post_invoice(ctx, make_invoice().id, actor_id)
        assert record.reference_number == "VT-2026-000001"

    def test_entry_service_and_options_are_exclusive(
        self, session, deterministic_clock, entry_service
    ):
        with pytest.raises(ValueError, match="either entry_service or entry_service_options"):
            PostingAutomationService(
                session,
                deterministic_clock,
                entry_service=entry_service,
                entry_service_options=LedgerSettings().entry_service_options(),
            )
