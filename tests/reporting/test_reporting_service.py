"""
ReportingService over a real session.

Each statement is generated from VALIDATED entries posted through
EntryService; provisional and trashed entries never appear.
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from ohada_kernel.domain.values import EntryStatus
from ohada_kernel.exceptions import (
    AccountNotFoundError,
    InvalidFiscalYearError,
    JournalNotFoundError,
)
from ohada_modules.reporting.models import ReportType, VatStatus
from ohada_modules.reporting.opening_balances import StaticOpeningBalanceProvider
from ohada_modules.reporting.service import ReportingService

SALE = [("411000", "1392", 0), ("701000", 0, "1200"), ("443000", 0, "192")]


@pytest.fixture
def sale(post_entry):
    return post_entry("VT", SALE)


class TestSaleScenario:
    """One validated sale: 411 Dr 1392 / 701 Cr 1200 / 443 Cr 192."""

    def test_trial_balance(self, ctx, fiscal_year, reporting_service, sale):
        report = reporting_service.get_trial_balance(ctx, fiscal_year.id)

        assert report.grand_total_debit == Decimal("1392")
        assert report.grand_total_credit == Decimal("1392")
        assert report.is_balanced
        assert [line.account_code for line in report.lines] == [
            "411000",
            "443000",
            "701000",
        ]
        assert report.metadata.report_type is ReportType.TRIAL_BALANCE
        assert report.metadata.currency == "CDF"

    def test_balance_sheet_reports_open_result_as_unbalanced(
        self, ctx, fiscal_year, reporting_service, sale
    ):
        report = reporting_service.get_balance_sheet(ctx, fiscal_year.id)

        assert report.assets.current_assets.total == Decimal("1392")
        assert report.liabilities.current_liabilities.total == Decimal("192")
        assert not report.is_balanced

    def test_vat_to_pay(self, ctx, fiscal_year, reporting_service, sale):
        report = reporting_service.get_vat_report(ctx, fiscal_year.id)

        assert report.vat_collected == Decimal("192")
        assert report.vat_deductible == Decimal("0")
        assert report.vat_to_pay == Decimal("192")
        assert report.status is VatStatus.TO_PAY

    def test_income_statement(self, ctx, fiscal_year, reporting_service, sale):
        report = reporting_service.get_income_statement(ctx, fiscal_year.id)
        assert report.total_revenue == Decimal("1200")
        assert report.net_result == Decimal("1200")

    def test_key_figures(self, ctx, fiscal_year, reporting_service, sale):
        figures = reporting_service.get_key_figures(ctx, fiscal_year.id)

        assert figures.total_revenue == Decimal("1200")
        assert figures.vat_to_pay == Decimal("192")
        assert figures.current_ratio == Decimal("7.25")
        assert figures.net_margin == Decimal("100.00")
        assert figures.debt_ratio == Decimal("0")

    def test_reports_are_idempotent(self, ctx, fiscal_year, reporting_service, sale):
        first = reporting_service.render_report(
            reporting_service.get_trial_balance(ctx, fiscal_year.id)
        )
        second = reporting_service.render_report(
            reporting_service.get_trial_balance(ctx, fiscal_year.id)
        )
        first["metadata"].pop("generated_at")
        second["metadata"].pop("generated_at")
        assert first == second

    def test_generation_is_logged(
        self, ctx, fiscal_year, reporting_service, sale, captured_logs
    ):
        reporting_service.get_trial_balance(ctx, fiscal_year.id)
        events = [r for r in captured_logs() if r["message"] == "trial_balance_generated"]
        assert events[0]["fiscal_year"] == "FY2026"
        assert events[0]["is_balanced"] == "True"


class TestEntrySelection:
    def test_provisional_entries_excluded(
        self, ctx, fiscal_year, reporting_service, post_entry
    ):
        post_entry("VT", SALE, status=EntryStatus.PROVISIONAL)
        report = reporting_service.get_trial_balance(ctx, fiscal_year.id)
        assert report.lines == ()
        assert report.grand_total_debit == Decimal("0")

    def test_trashed_entries_excluded(
        self, ctx, actor_id, fiscal_year, reporting_service, post_entry, entry_service
    ):
        draft = post_entry("VT", SALE, status=EntryStatus.PROVISIONAL)
        entry_service.soft_delete(ctx, draft.id, actor_id)
        post_entry("OD", [("601000", "50", 0), ("571000", 0, "50")])

        report = reporting_service.get_trial_balance(ctx, fiscal_year.id)
        assert report.grand_total_debit == Decimal("50")

    def test_other_company_entries_excluded(
        self, ctx, fiscal_year, reporting_service, sale, other_ctx, other_ledger
    ):
        other_year = other_ledger[2]
        report = reporting_service.get_trial_balance(other_ctx, other_year.id)
        assert report.lines == ()

    def test_transaction_and_local_currency(
        self, ctx, fiscal_year, reporting_service, post_entry
    ):
        post_entry(
            "VT",
            [("411000", "100", 0), ("701000", 0, "100")],
            currency="USD",
            exchange_rate=Decimal("2850.5"),
        )

        local = reporting_service.get_trial_balance(ctx, fiscal_year.id)
        foreign = reporting_service.get_trial_balance(
            ctx, fiscal_year.id, use_local_currency=False
        )

        assert local.grand_total_debit == Decimal("285050")
        assert foreign.grand_total_debit == Decimal("100")
        assert foreign.metadata.currency is None


class TestSixColumnBalance:
    def test_opening_balances_from_provider(
        self, session, ctx, deterministic_clock, fiscal_year, accounts, post_entry
    ):
        provider = StaticOpeningBalanceProvider(
            {
                (fiscal_year.id, accounts["521000"].id): Decimal("1000"),
                (fiscal_year.id, accounts["101000"].id): Decimal("-1000"),
            }
        )
        service = ReportingService(session, deterministic_clock, opening_balances=provider)
        post_entry("BQ", [("601000", "300", 0), ("521000", 0, "300")])

        report = service.get_six_column_balance(ctx, fiscal_year.id)
        lines = {line.account_code: line for line in report.lines}

        assert set(lines) == {"101000", "521000", "601000"}
        assert lines["521000"].initial_debit == Decimal("1000")
        assert lines["521000"].movement_credit == Decimal("300")
        assert lines["521000"].final_debit == Decimal("700")
        assert lines["101000"].final_credit == Decimal("1000")
        assert report.totals.final_debit == report.totals.final_credit == Decimal("1000")

    def test_default_provider_opens_at_zero(
        self, ctx, fiscal_year, reporting_service, sale
    ):
        report = reporting_service.get_six_column_balance(ctx, fiscal_year.id)
        assert report.totals.initial_debit == report.totals.initial_credit == Decimal("0")
        assert report.totals.final_debit == Decimal("1392")


class TestCashFlowAndEquity:
    @pytest.fixture
    def opened(self, post_entry):
        post_entry(
            "AN",
            [("521000", "5000", 0), ("101000", 0, "5000")],
            entry_date=date(2026, 1, 1),
        )

    def test_cash_flow_starts_from_opening_journal(
        self, ctx, fiscal_year, reporting_service, post_entry, opened
    ):
        post_entry("BQ", [("521000", "1392", 0), ("411000", 0, "1392")])
        post_entry(
            "BQ",
            [("241000", "2000", 0), ("521000", 0, "2000")],
            entry_date=date(2026, 4, 1),
        )
        post_entry(
            "BQ",
            [("521000", "800", 0), ("162000", 0, "800")],
            entry_date=date(2026, 4, 2),
        )

        report = reporting_service.get_cash_flow(ctx, fiscal_year.id)

        assert report.cash_begin == Decimal("5000")
        assert report.operating == Decimal("1392")
        assert report.investing == Decimal("-2000")
        assert report.financing == Decimal("800")
        assert report.cash_end == Decimal("5192")
        assert len(report.flows) == 3

    def test_equity_changes(self, ctx, fiscal_year, reporting_service, post_entry, opened):
        post_entry("BQ", [("521000", "1500", 0), ("101000", 0, "1500")])
        report = reporting_service.get_equity_changes(ctx, fiscal_year.id)
        capital = report.categories[0]

        assert capital.initial == Decimal("5000")
        assert capital.increases == Decimal("1500")
        assert capital.final == Decimal("6500")
        assert report.total_final == Decimal("6500")


class TestGeneralLedger:
    def test_date_window(self, ctx, fiscal_year, accounts, reporting_service, post_entry):
        post_entry("BQ", [("521000", "1000", 0), ("411000", 0, "1000")])
        post_entry(
            "BQ",
            [("601000", "250", 0), ("521000", 0, "250")],
            entry_date=date(2026, 5, 10),
        )

        full = reporting_service.get_general_ledger(
            ctx, accounts["521000"].id, fiscal_year.id
        )
        window = reporting_service.get_general_ledger(
            ctx,
            accounts["521000"].id,
            fiscal_year.id,
            start_date=date(2026, 4, 1),
            end_date=date(2026, 6, 30),
        )

        assert [m.running_balance for m in full.movements] == [
            Decimal("1000"),
            Decimal("750"),
        ]
        assert full.final_balance == Decimal("750")
        assert len(window.movements) == 1
        assert window.metadata.period_start == date(2026, 4, 1)

    def test_inverted_window(self, ctx, fiscal_year, accounts, reporting_service):
        with pytest.raises(ValueError):
            reporting_service.get_general_ledger(
                ctx,
                accounts["521000"].id,
                fiscal_year.id,
                start_date=date(2026, 6, 1),
                end_date=date(2026, 5, 1),
            )

    def test_unknown_account(self, ctx, fiscal_year, reporting_service):
        with pytest.raises(AccountNotFoundError):
            reporting_service.get_general_ledger(ctx, uuid4(), fiscal_year.id)


class TestAuxiliaryJournal:
    def test_month_filter(self, ctx, fiscal_year, reporting_service, post_entry):
        post_entry("VT", SALE)
        post_entry("VT", SALE, entry_date=date(2026, 4, 2))

        march = reporting_service.get_auxiliary_journal(ctx, "vt", fiscal_year.id, month=3)
        year = reporting_service.get_auxiliary_journal(ctx, "VT", fiscal_year.id)

        assert [e.reference_number for e in march.entries] == ["VT-2026-0001"]
        assert march.metadata.period_end == date(2026, 3, 31)
        assert len(year.entries) == 2
        assert year.total_debit == Decimal("2784")

    def test_invalid_month(self, ctx, fiscal_year, reporting_service):
        with pytest.raises(ValueError):
            reporting_service.get_auxiliary_journal(ctx, "VT", fiscal_year.id, month=13)

    def test_unknown_journal(self, ctx, fiscal_year, reporting_service):
        with pytest.raises(JournalNotFoundError):
            reporting_service.get_auxiliary_journal(ctx, "ZZ", fiscal_year.id)


class TestFiscalYearScope:
    def test_unknown_fiscal_year(self, ctx, ledger, reporting_service):
        with pytest.raises(InvalidFiscalYearError):
            reporting_service.get_trial_balance(ctx, uuid4())

    def test_other_company_fiscal_year(self, ctx, ledger, other_ledger, reporting_service):
        with pytest.raises(InvalidFiscalYearError):
            reporting_service.get_balance_sheet(ctx, other_ledger[2].id)
