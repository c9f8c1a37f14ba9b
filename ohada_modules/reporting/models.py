"""
OHADA Reporting Domain Models (``ohada_modules.reporting.models``).

Responsibility
--------------
Frozen dataclass value objects for every derived statement: trial balance,
balance sheet (bilan), income statement (compte de resultat), VAT report,
cash-flow statement (TFT), equity-changes statement (TVCP), six-column
balance, general ledger (grand livre), auxiliary journals and the key-figure
dashboard.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.  Built by the
functions in ``statements.py`` and returned by ``ReportingService``.

Invariants enforced
-------------------
* All models are ``frozen=True``.
* All monetary fields use ``Decimal`` -- NEVER ``float``.
* ``ReportMetadata.generated_at`` is excluded from equality so that two
  computations over the same committed state compare equal.

Audit relevance
---------------
* Statements are derived from validated entries only; nothing here is
  stored.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID


# =========================================================================
# Enums
# =========================================================================


class ReportType(str, Enum):
    TRIAL_BALANCE = "trial_balance"
    BALANCE_SHEET = "balance_sheet"
    INCOME_STATEMENT = "income_statement"
    VAT = "vat"
    CASH_FLOW = "cash_flow"
    EQUITY_CHANGES = "equity_changes"
    SIX_COLUMN_BALANCE = "six_column_balance"
    GENERAL_LEDGER = "general_ledger"
    AUXILIARY_JOURNAL = "auxiliary_journal"
    KEY_FIGURES = "key_figures"


class BalanceSide(str, Enum):
    DEBIT = "DEBIT"
    CREDIT = "CREDIT"


class VatStatus(str, Enum):
    TO_PAY = "TO_PAY"
    CREDIT = "CREDIT"


class CashFlowCategory(str, Enum):
    OPERATING = "OPERATING"
    INVESTING = "INVESTING"
    FINANCING = "FINANCING"


class FlowDirection(str, Enum):
    INFLOW = "INFLOW"
    OUTFLOW = "OUTFLOW"


class EquityCategory(str, Enum):
    CAPITAL = "capital"
    RESERVES = "reserves"
    RETAINED_EARNINGS = "retained_earnings"
    NET_RESULT = "net_result"
    OTHERS = "others"


# =========================================================================
# Report Metadata (common to all reports)
# =========================================================================


@dataclass(frozen=True)
class ReportMetadata:
    """Metadata attached to every report."""

    report_type: ReportType
    company_id: UUID
    fiscal_year_id: UUID
    fiscal_year_code: str
    period_start: date
    period_end: date
    currency: str | None  # local currency code; None for transaction amounts
    use_local_currency: bool
    generated_at: str = field(compare=False)  # ISO timestamp from injected clock


# =========================================================================
# Trial balance
# =========================================================================


@dataclass(frozen=True)
class AccountBalance:
    """Totals and signed balance of one account over the period."""

    account_id: UUID
    account_code: str
    account_label: str
    account_class: int
    total_debit: Decimal
    total_credit: Decimal

    @property
    def balance(self) -> Decimal:
        """Signed balance: debit positive, credit negative."""
        return self.total_debit - self.total_credit


@dataclass(frozen=True)
class TrialBalanceLine:
    account_id: UUID
    account_code: str
    account_label: str
    account_class: int
    total_debit: Decimal
    total_credit: Decimal
    balance: Decimal
    balance_side: BalanceSide


@dataclass(frozen=True)
class TrialBalanceReport:
    metadata: ReportMetadata
    lines: tuple[TrialBalanceLine, ...]
    grand_total_debit: Decimal
    grand_total_credit: Decimal
    is_balanced: bool


# =========================================================================
# Balance sheet
# =========================================================================


@dataclass(frozen=True)
class BalanceSheetLine:
    account_id: UUID
    account_code: str
    account_label: str
    amount: Decimal  # presented positive


@dataclass(frozen=True)
class BalanceSheetSection:
    name: str
    lines: tuple[BalanceSheetLine, ...]
    total: Decimal


@dataclass(frozen=True)
class BalanceSheetAssets:
    fixed_assets: BalanceSheetSection
    current_assets: BalanceSheetSection
    cash_assets: BalanceSheetSection
    grand_total: Decimal


@dataclass(frozen=True)
class BalanceSheetLiabilities:
    equity: BalanceSheetSection
    long_term_debt: BalanceSheetSection
    current_liabilities: BalanceSheetSection
    cash_liabilities: BalanceSheetSection
    grand_total: Decimal


@dataclass(frozen=True)
class BalanceSheetReport:
    metadata: ReportMetadata
    assets: BalanceSheetAssets
    liabilities: BalanceSheetLiabilities
    is_balanced: bool


# =========================================================================
# Income statement
# =========================================================================


@dataclass(frozen=True)
class IncomeStatementLine:
    account_id: UUID
    account_code: str
    account_label: str
    amount: Decimal


@dataclass(frozen=True)
class IncomeStatementReport:
    metadata: ReportMetadata
    revenue: tuple[IncomeStatementLine, ...]
    expenses: tuple[IncomeStatementLine, ...]
    hao_revenue: tuple[IncomeStatementLine, ...]
    hao_expenses: tuple[IncomeStatementLine, ...]
    total_revenue: Decimal
    total_expenses: Decimal
    total_hao_revenue: Decimal
    total_hao_expenses: Decimal
    operating_result: Decimal
    hao_result: Decimal
    net_result: Decimal


# =========================================================================
# VAT
# =========================================================================


@dataclass(frozen=True)
class VatReport:
    metadata: ReportMetadata
    vat_collected: Decimal
    vat_deductible: Decimal
    vat_to_pay: Decimal
    status: VatStatus


# =========================================================================
# Cash flow (TFT)
# =========================================================================


@dataclass(frozen=True)
class CashFlowItem:
    entry_id: UUID
    entry_date: date
    reference_number: str
    description: str | None
    account_code: str
    amount: Decimal  # absolute
    direction: FlowDirection
    category: CashFlowCategory


@dataclass(frozen=True)
class CashFlowReport:
    metadata: ReportMetadata
    cash_begin: Decimal
    operating: Decimal
    investing: Decimal
    financing: Decimal
    net_variation: Decimal
    cash_end: Decimal
    flows: tuple[CashFlowItem, ...]


# =========================================================================
# Equity changes (TVCP)
# =========================================================================


@dataclass(frozen=True)
class EquityMovementRow:
    category: EquityCategory
    label: str
    prefix: str
    initial: Decimal
    increases: Decimal
    decreases: Decimal
    final: Decimal


@dataclass(frozen=True)
class EquityChangesReport:
    metadata: ReportMetadata
    categories: tuple[EquityMovementRow, ...]
    total_initial: Decimal
    total_final: Decimal


# =========================================================================
# Six-column balance
# =========================================================================


@dataclass(frozen=True)
class SixColumnLine:
    account_id: UUID
    account_code: str
    account_label: str
    initial_debit: Decimal
    initial_credit: Decimal
    movement_debit: Decimal
    movement_credit: Decimal
    final_debit: Decimal
    final_credit: Decimal


@dataclass(frozen=True)
class SixColumnTotals:
    initial_debit: Decimal
    initial_credit: Decimal
    movement_debit: Decimal
    movement_credit: Decimal
    final_debit: Decimal
    final_credit: Decimal


@dataclass(frozen=True)
class SixColumnBalanceReport:
    metadata: ReportMetadata
    lines: tuple[SixColumnLine, ...]
    totals: SixColumnTotals


# =========================================================================
# General ledger and auxiliary journals
# =========================================================================


@dataclass(frozen=True)
class LedgerMovement:
    entry_date: date
    reference_number: str
    journal_code: str
    label: str | None
    debit: Decimal
    credit: Decimal
    running_balance: Decimal


@dataclass(frozen=True)
class GeneralLedgerReport:
    metadata: ReportMetadata
    account_id: UUID
    account_code: str
    account_label: str
    movements: tuple[LedgerMovement, ...]
    total_debit: Decimal
    total_credit: Decimal
    final_balance: Decimal


@dataclass(frozen=True)
class JournalLine:
    account_code: str
    account_label: str
    third_party_name: str | None
    label: str | None
    debit: Decimal
    credit: Decimal


@dataclass(frozen=True)
class JournalEntryView:
    entry_id: UUID
    entry_date: date
    reference_number: str
    description: str | None
    lines: tuple[JournalLine, ...]
    total_debit: Decimal
    total_credit: Decimal


@dataclass(frozen=True)
class AuxiliaryJournalReport:
    metadata: ReportMetadata
    journal_code: str
    journal_label: str
    month: int | None
    entries: tuple[JournalEntryView, ...]
    total_debit: Decimal
    total_credit: Decimal


# =========================================================================
# Dashboard
# =========================================================================


@dataclass(frozen=True)
class KeyFigures:
    metadata: ReportMetadata
    total_revenue: Decimal
    total_expenses: Decimal
    net_result: Decimal
    cash_position: Decimal
    vat_to_pay: Decimal
    current_ratio: Decimal
    net_margin: Decimal  # percent of revenue
    debt_ratio: Decimal  # long-term debt as percent of equity
