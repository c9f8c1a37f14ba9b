"""
OHADA Reporting Module (``ohada_modules.reporting``).

Read-only derivation of the OHADA statements from validated entries: trial
balance, balance sheet, income statement, VAT report, cash-flow statement,
equity changes, six-column balance, general ledger, auxiliary journals and
a key-figure dashboard.  Nothing is stored; every report is recomputed from
entry lines.
"""

from ohada_modules.reporting.config import ReportingConfig
from ohada_modules.reporting.models import (
    AuxiliaryJournalReport,
    BalanceSheetReport,
    CashFlowCategory,
    CashFlowReport,
    EquityCategory,
    EquityChangesReport,
    GeneralLedgerReport,
    IncomeStatementReport,
    KeyFigures,
    ReportType,
    SixColumnBalanceReport,
    TrialBalanceReport,
    VatReport,
    VatStatus,
)
from ohada_modules.reporting.opening_balances import (
    OpeningBalanceProvider,
    StaticOpeningBalanceProvider,
    ZeroOpeningBalanceProvider,
)
from ohada_modules.reporting.service import ReportingService
from ohada_modules.reporting.statements import (
    classify_cash_flow,
    classify_equity_account,
)

__all__ = [
    "AuxiliaryJournalReport",
    "BalanceSheetReport",
    "CashFlowCategory",
    "CashFlowReport",
    "EquityCategory",
    "EquityChangesReport",
    "GeneralLedgerReport",
    "IncomeStatementReport",
    "KeyFigures",
    "OpeningBalanceProvider",
    "ReportType",
    "ReportingConfig",
    "ReportingService",
    "SixColumnBalanceReport",
    "StaticOpeningBalanceProvider",
    "TrialBalanceReport",
    "VatReport",
    "VatStatus",
    "ZeroOpeningBalanceProvider",
    "classify_cash_flow",
    "classify_equity_account",
]
