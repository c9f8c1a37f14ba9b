"""
OHADA Reporting Service (``ohada_modules.reporting.service``).

Responsibility
--------------
Orchestrates statement generation (trial balance, balance sheet, income
statement, VAT report, cash-flow statement, equity changes, six-column
balance, general ledger, auxiliary journals, key figures) by bridging the
``LedgerSelector`` to the pure functions in ``statements.py``.  This is a
**read-only** service: no entries are created or modified.

Architecture position
---------------------
**Modules layer**.  Constructor: ``session`` + ``clock`` + ``config`` +
``opening_balances`` provider.

Invariants enforced
-------------------
* Read-only: no add, flush or commit.
* Only VALIDATED, non-deleted entries of the calling tenant are read.
* Every method takes ``use_local_currency`` (default True) selecting the
  local-currency or transaction-currency amount columns.
* Computing a report twice over the same committed state yields equal
  reports (``generated_at`` is excluded from equality).

Failure modes
-------------
* Unknown fiscal year -> ``InvalidFiscalYearError``.
* Unknown account (general ledger) -> ``AccountNotFoundError``.
* Unknown journal code (auxiliary journal) -> ``JournalNotFoundError``.
* Month outside 1-12 or outside the fiscal year -> ``ValueError``.

Audit relevance
---------------
A structured log event is emitted for every report with its type, fiscal
year and headline figures.  Callers that need one consistent snapshot across
several reports wrap the calls in a single read transaction.
"""

from __future__ import annotations

from datetime import date
from uuid import UUID

from sqlalchemy.orm import Session

from ohada_kernel.domain.clock import Clock, SystemClock
from ohada_kernel.domain.tenant import TenantContext
from ohada_kernel.exceptions import (
    AccountNotFoundError,
    InvalidFiscalYearError,
    JournalNotFoundError,
)
from ohada_kernel.logging_config import get_logger
from ohada_kernel.models.fiscal_year import FiscalYear
from ohada_kernel.repositories.accounts import AccountRepository
from ohada_kernel.repositories.fiscal_years import FiscalYearRepository
from ohada_kernel.repositories.journals import JournalRepository
from ohada_kernel.selectors.ledger_selector import LedgerSelector
from ohada_modules.reporting.config import ReportingConfig
from ohada_modules.reporting.models import (
    AccountBalance,
    AuxiliaryJournalReport,
    BalanceSheetReport,
    CashFlowReport,
    EquityChangesReport,
    GeneralLedgerReport,
    IncomeStatementReport,
    KeyFigures,
    ReportMetadata,
    ReportType,
    SixColumnBalanceReport,
    TrialBalanceReport,
    VatReport,
)
from ohada_modules.reporting.opening_balances import (
    OpeningBalanceProvider,
    ZeroOpeningBalanceProvider,
)
from ohada_modules.reporting.statements import (
    CashFlowClassifier,
    EquityClassifier,
    balances_from_movements,
    build_auxiliary_journal,
    build_balance_sheet,
    build_cash_flow,
    build_equity_changes,
    build_general_ledger,
    build_income_statement,
    build_key_figures,
    build_six_column_balance,
    build_trial_balance,
    build_vat_report,
    classify_cash_flow,
    classify_equity_account,
    month_window,
    render_to_dict,
)

logger = get_logger("modules.reporting.service")


class ReportingService:
    """
    OHADA statement generation service.

    Contract
    --------
    * Every public method returns a frozen report DTO.
    * No financial logic lives here; aggregation and classification are in
      ``statements.py``.
    * The clock only stamps ``ReportMetadata.generated_at``.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: ReportingConfig | None = None,
        opening_balances: OpeningBalanceProvider | None = None,
        *,
        local_currency: str = "CDF",
        cash_flow_classifier: CashFlowClassifier = classify_cash_flow,
        equity_classifier: EquityClassifier = classify_equity_account,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or ReportingConfig.with_defaults()
        self._opening_balances = opening_balances or ZeroOpeningBalanceProvider()
        self._local_currency = local_currency
        self._cash_flow_classifier = cash_flow_classifier
        self._equity_classifier = equity_classifier
        self._ledger = LedgerSelector(session)
        self._fiscal_years = FiscalYearRepository(session)
        self._accounts = AccountRepository(session)
        self._journals = JournalRepository(session)

    # =========================================================================
    # Internal helpers
    # =========================================================================

    def _fiscal_year(self, ctx: TenantContext, fiscal_year_id: UUID) -> FiscalYear:
        fiscal_year = self._fiscal_years.get(ctx, fiscal_year_id)
        if fiscal_year is None:
            raise InvalidFiscalYearError(str(fiscal_year_id))
        return fiscal_year

    def _metadata(
        self,
        ctx: TenantContext,
        report_type: ReportType,
        fiscal_year: FiscalYear,
        use_local_currency: bool,
        period_start: date | None = None,
        period_end: date | None = None,
    ) -> ReportMetadata:
        return ReportMetadata(
            report_type=report_type,
            company_id=ctx.company_id,
            fiscal_year_id=fiscal_year.id,
            fiscal_year_code=fiscal_year.code,
            period_start=period_start or fiscal_year.start_date,
            period_end=period_end or fiscal_year.end_date,
            currency=self._local_currency if use_local_currency else None,
            use_local_currency=use_local_currency,
            generated_at=self._clock.now().isoformat(),
        )

    def _balances(
        self, ctx: TenantContext, fiscal_year_id: UUID, use_local_currency: bool,
    ) -> tuple[AccountBalance, ...]:
        return balances_from_movements(
            self._ledger.account_movements(ctx, fiscal_year_id, use_local_currency)
        )

    def _log(self, ctx: TenantContext, event: str, fiscal_year: FiscalYear, **fields):
        logger.info(
            event,
            extra={
                "tenant": ctx,
                "fiscal_year": fiscal_year.code,
                **{key: str(value) for key, value in fields.items()},
            },
        )

    # =========================================================================
    # Statements over per-account totals
    # =========================================================================

    def get_trial_balance(
        self,
        ctx: TenantContext,
        fiscal_year_id: UUID,
        use_local_currency: bool = True,
    ) -> TrialBalanceReport:
        fiscal_year = self._fiscal_year(ctx, fiscal_year_id)
        report = build_trial_balance(
            self._balances(ctx, fiscal_year_id, use_local_currency),
            self._config,
            self._metadata(ctx, ReportType.TRIAL_BALANCE, fiscal_year, use_local_currency),
        )
        self._log(
            ctx,
            "trial_balance_generated",
            fiscal_year,
            line_count=len(report.lines),
            is_balanced=report.is_balanced,
        )
        return report

    def get_balance_sheet(
        self,
        ctx: TenantContext,
        fiscal_year_id: UUID,
        use_local_currency: bool = True,
    ) -> BalanceSheetReport:
        fiscal_year = self._fiscal_year(ctx, fiscal_year_id)
        report = build_balance_sheet(
            self._balances(ctx, fiscal_year_id, use_local_currency),
            self._config,
            self._metadata(ctx, ReportType.BALANCE_SHEET, fiscal_year, use_local_currency),
        )
        self._log(
            ctx,
            "balance_sheet_generated",
            fiscal_year,
            total_assets=report.assets.grand_total,
            total_liabilities=report.liabilities.grand_total,
            is_balanced=report.is_balanced,
        )
        return report

    def get_income_statement(
        self,
        ctx: TenantContext,
        fiscal_year_id: UUID,
        use_local_currency: bool = True,
    ) -> IncomeStatementReport:
        fiscal_year = self._fiscal_year(ctx, fiscal_year_id)
        report = build_income_statement(
            self._balances(ctx, fiscal_year_id, use_local_currency),
            self._metadata(
                ctx, ReportType.INCOME_STATEMENT, fiscal_year, use_local_currency
            ),
        )
        self._log(
            ctx,
            "income_statement_generated",
            fiscal_year,
            net_result=report.net_result,
        )
        return report

    def get_vat_report(
        self,
        ctx: TenantContext,
        fiscal_year_id: UUID,
        use_local_currency: bool = True,
    ) -> VatReport:
        fiscal_year = self._fiscal_year(ctx, fiscal_year_id)
        report = build_vat_report(
            self._balances(ctx, fiscal_year_id, use_local_currency),
            self._metadata(ctx, ReportType.VAT, fiscal_year, use_local_currency),
        )
        self._log(
            ctx,
            "vat_report_generated",
            fiscal_year,
            vat_to_pay=report.vat_to_pay,
            status=report.status.value,
        )
        return report

    def get_six_column_balance(
        self,
        ctx: TenantContext,
        fiscal_year_id: UUID,
        use_local_currency: bool = True,
    ) -> SixColumnBalanceReport:
        """Opening balances come from the configured ``OpeningBalanceProvider``."""
        fiscal_year = self._fiscal_year(ctx, fiscal_year_id)
        accounts = self._accounts.list_ordered(ctx)
        opening = {
            account.id: self._opening_balances.opening_balance(
                ctx, account.id, fiscal_year_id
            )
            for account in accounts
        }
        labels = {account.id: (account.code, account.label) for account in accounts}
        report = build_six_column_balance(
            self._balances(ctx, fiscal_year_id, use_local_currency),
            opening,
            labels,
            self._metadata(
                ctx, ReportType.SIX_COLUMN_BALANCE, fiscal_year, use_local_currency
            ),
        )
        self._log(
            ctx,
            "six_column_balance_generated",
            fiscal_year,
            line_count=len(report.lines),
        )
        return report

    # =========================================================================
    # Statements over individual lines
    # =========================================================================

    def get_cash_flow(
        self,
        ctx: TenantContext,
        fiscal_year_id: UUID,
        use_local_currency: bool = True,
    ) -> CashFlowReport:
        fiscal_year = self._fiscal_year(ctx, fiscal_year_id)
        report = build_cash_flow(
            self._ledger.lines(ctx, fiscal_year_id, use_local_currency),
            self._config,
            self._metadata(ctx, ReportType.CASH_FLOW, fiscal_year, use_local_currency),
            classifier=self._cash_flow_classifier,
        )
        self._log(
            ctx,
            "cash_flow_generated",
            fiscal_year,
            net_variation=report.net_variation,
            flow_count=len(report.flows),
        )
        return report

    def get_equity_changes(
        self,
        ctx: TenantContext,
        fiscal_year_id: UUID,
        use_local_currency: bool = True,
    ) -> EquityChangesReport:
        fiscal_year = self._fiscal_year(ctx, fiscal_year_id)
        report = build_equity_changes(
            self._ledger.lines(ctx, fiscal_year_id, use_local_currency),
            self._config,
            self._metadata(
                ctx, ReportType.EQUITY_CHANGES, fiscal_year, use_local_currency
            ),
            classifier=self._equity_classifier,
        )
        self._log(
            ctx,
            "equity_changes_generated",
            fiscal_year,
            total_final=report.total_final,
        )
        return report

    def get_general_ledger(
        self,
        ctx: TenantContext,
        account_id: UUID,
        fiscal_year_id: UUID,
        start_date: date | None = None,
        end_date: date | None = None,
        use_local_currency: bool = True,
    ) -> GeneralLedgerReport:
        """Movements of one account, optionally narrowed to a date window."""
        if start_date and end_date and end_date < start_date:
            raise ValueError("end_date must not be before start_date")
        fiscal_year = self._fiscal_year(ctx, fiscal_year_id)
        account = self._accounts.get(ctx, account_id)
        if account is None:
            raise AccountNotFoundError(str(account_id))

        period_start = start_date or fiscal_year.start_date
        period_end = end_date or fiscal_year.end_date
        lines = self._ledger.lines(
            ctx,
            fiscal_year_id,
            use_local_currency,
            account_id=account_id,
            start_date=period_start,
            end_date=period_end,
        )
        report = build_general_ledger(
            account.id,
            account.code,
            account.label,
            lines,
            self._metadata(
                ctx,
                ReportType.GENERAL_LEDGER,
                fiscal_year,
                use_local_currency,
                period_start,
                period_end,
            ),
        )
        self._log(
            ctx,
            "general_ledger_generated",
            fiscal_year,
            account_code=account.code,
            movement_count=len(report.movements),
        )
        return report

    def get_auxiliary_journal(
        self,
        ctx: TenantContext,
        journal_code: str,
        fiscal_year_id: UUID,
        month: int | None = None,
        use_local_currency: bool = True,
    ) -> AuxiliaryJournalReport:
        """Entries of one journal for the fiscal year or one of its months."""
        fiscal_year = self._fiscal_year(ctx, fiscal_year_id)
        journal = self._journals.get_by_code(ctx, journal_code.upper())
        if journal is None:
            raise JournalNotFoundError(journal_code)

        if month is None:
            period_start, period_end = fiscal_year.start_date, fiscal_year.end_date
        else:
            period_start, period_end = month_window(
                fiscal_year.start_date, fiscal_year.end_date, month
            )
        lines = self._ledger.lines(
            ctx,
            fiscal_year_id,
            use_local_currency,
            journal_id=journal.id,
            start_date=period_start,
            end_date=period_end,
        )
        report = build_auxiliary_journal(
            journal.code,
            journal.label,
            month,
            lines,
            self._metadata(
                ctx,
                ReportType.AUXILIARY_JOURNAL,
                fiscal_year,
                use_local_currency,
                period_start,
                period_end,
            ),
        )
        self._log(
            ctx,
            "auxiliary_journal_generated",
            fiscal_year,
            journal_code=journal.code,
            entry_count=len(report.entries),
        )
        return report

    # =========================================================================
    # Dashboard and rendering
    # =========================================================================

    def get_key_figures(
        self,
        ctx: TenantContext,
        fiscal_year_id: UUID,
        use_local_currency: bool = True,
    ) -> KeyFigures:
        fiscal_year = self._fiscal_year(ctx, fiscal_year_id)
        balances = self._balances(ctx, fiscal_year_id, use_local_currency)

        def meta(report_type: ReportType) -> ReportMetadata:
            return self._metadata(ctx, report_type, fiscal_year, use_local_currency)

        income = build_income_statement(balances, meta(ReportType.INCOME_STATEMENT))
        balance_sheet = build_balance_sheet(
            balances, self._config, meta(ReportType.BALANCE_SHEET)
        )
        vat = build_vat_report(balances, meta(ReportType.VAT))
        figures = build_key_figures(
            income, balance_sheet, vat, self._config, meta(ReportType.KEY_FIGURES)
        )
        self._log(
            ctx,
            "key_figures_generated",
            fiscal_year,
            net_result=figures.net_result,
            current_ratio=figures.current_ratio,
        )
        return figures

    @staticmethod
    def render_report(report: object) -> dict:
        """JSON-friendly dict of any report (Decimals as strings)."""
        return render_to_dict(report)
