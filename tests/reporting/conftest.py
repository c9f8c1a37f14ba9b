"""
Reporting-specific test fixtures.

Provides:
- ReportingService instances
- Synthetic balances and ledger lines for pure statement tests (no DB)
"""

from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

import pytest

from ohada_kernel.domain.values import JournalType
from ohada_kernel.selectors.ledger_selector import LedgerLine
from ohada_modules.reporting.config import ReportingConfig
from ohada_modules.reporting.models import AccountBalance, ReportMetadata, ReportType
from ohada_modules.reporting.service import ReportingService


@pytest.fixture
def reporting_config() -> ReportingConfig:
    """Standard reporting configuration for tests."""
    return ReportingConfig.with_defaults()


@pytest.fixture
def reporting_service(session, deterministic_clock, reporting_config) -> ReportingService:
    """ReportingService wired to the test session."""
    return ReportingService(session, deterministic_clock, reporting_config)


# =========================================================================
# Synthetic data for pure function tests
# =========================================================================


def make_balance(code: str, debit: str = "0", credit: str = "0") -> AccountBalance:
    return AccountBalance(
        account_id=uuid4(),
        account_code=code,
        account_label=f"Account {code}",
        account_class=int(code[0]),
        total_debit=Decimal(debit),
        total_credit=Decimal(credit),
    )


def make_line(
    entry_id: UUID,
    code: str,
    debit: str = "0",
    credit: str = "0",
    journal_type: JournalType = JournalType.OD,
    entry_date: date = date(2026, 3, 15),
    reference: str = "OD-2026-0001",
) -> LedgerLine:
    return LedgerLine(
        line_id=uuid4(),
        entry_id=entry_id,
        line_seq=0,
        entry_date=entry_date,
        reference_number=reference,
        entry_description="Synthetic entry",
        journal_code=reference.split("-")[0],
        journal_type=journal_type,
        account_id=uuid4(),
        account_code=code,
        account_label=f"Account {code}",
        account_class=int(code[0]),
        debit=Decimal(debit),
        credit=Decimal(credit),
    )


def make_metadata(report_type: ReportType = ReportType.TRIAL_BALANCE) -> ReportMetadata:
    return ReportMetadata(
        report_type=report_type,
        company_id=uuid4(),
        fiscal_year_id=uuid4(),
        fiscal_year_code="FY2026",
        period_start=date(2026, 1, 1),
        period_end=date(2026, 12, 31),
        currency="CDF",
        use_local_currency=True,
        generated_at="2026-06-30T09:00:00+00:00",
    )
