"""
OHADA rules -- pure checks over account codes, fiscal years and lines.

Responsibility:
    Account class legality, fiscal year open/in-range checks, suspicious
    debit/credit combinations, VAT presence, and the derivations used when
    creating accounts (class, type, normal balance, parent prefix).

Architecture position:
    Kernel > Domain -- zero I/O.  The OhadaValidator service loads accounts and
    fiscal years and feeds them to these functions.

Invariants enforced:
    - Ordinary postings use account classes 1 to 8 only.
    - Entries are dated inside an open fiscal year (date-only comparison).

Failure modes:
    - InvalidAccountClassError, ClosedPeriodError, OutOfPeriodError.
    Combination and VAT checks never raise; they return warning strings.
"""

from collections.abc import Iterable, Sequence
from datetime import date, datetime

from ohada_kernel.db.types import ZERO
from ohada_kernel.domain.dtos import FiscalYearInfo, LineFacts
from ohada_kernel.domain.values import AccountType, NormalBalance
from ohada_kernel.exceptions import (
    ClosedPeriodError,
    InvalidAccountClassError,
    OutOfPeriodError,
)

VALID_CLASSES = range(1, 9)
BALANCE_SHEET_CLASSES = range(1, 6)
INCOME_STATEMENT_CLASSES = (6, 7)

VAT_COLLECTED_PREFIX = "443"
VAT_DEDUCTIBLE_PREFIX = "445"


def account_class_of(code: str) -> int | None:
    """Leading digit of an account code, or None if it is not a digit."""
    if not code or not code[0].isdigit():
        return None
    return int(code[0])


def validate_account_class(code: str) -> int:
    """Return the OHADA class of ``code``; raise unless it is 1 to 8."""
    account_class = account_class_of(code)
    if account_class not in VALID_CLASSES:
        raise InvalidAccountClassError(code)
    return account_class


def is_valid_ohada_account_number(code: str) -> bool:
    """6 or 7 digit numeric code with a class between 1 and 8."""
    return (
        code.isdigit()
        and 6 <= len(code) <= 7
        and account_class_of(code) in VALID_CLASSES
    )


def check_period_open(fiscal_year: FiscalYearInfo, entry_date: date) -> None:
    """Raise unless ``entry_date`` falls inside the open ``fiscal_year``."""
    if isinstance(entry_date, datetime):
        entry_date = entry_date.date()
    if fiscal_year.is_closed:
        raise ClosedPeriodError(fiscal_year.code, entry_date.isoformat())
    if not (fiscal_year.start_date <= entry_date <= fiscal_year.end_date):
        raise OutOfPeriodError(
            fiscal_year.code,
            entry_date.isoformat(),
            fiscal_year.start_date.isoformat(),
            fiscal_year.end_date.isoformat(),
        )


def _is_balance_sheet(account_class: int | None) -> bool:
    return account_class in BALANCE_SHEET_CLASSES


def _is_income_statement(account_class: int | None) -> bool:
    return account_class in INCOME_STATEMENT_CLASSES


def account_combination_warnings(lines: Sequence[LineFacts]) -> list[str]:
    """
    Flag debit/credit pairs that cross balance sheet and income statement.

    Such direct postings normally only appear in year-end closing entries.
    Every (debit line, credit line) pair is inspected; duplicates collapse.
    """
    debits = [line for line in lines if line.debit > ZERO]
    credits = [line for line in lines if line.credit > ZERO]

    warnings: list[str] = []
    for debit_line in debits:
        debit_class = account_class_of(debit_line.account_code)
        for credit_line in credits:
            credit_class = account_class_of(credit_line.account_code)
            crosses = (
                _is_balance_sheet(debit_class) and _is_income_statement(credit_class)
            ) or (
                _is_income_statement(debit_class) and _is_balance_sheet(credit_class)
            )
            if not crosses:
                continue
            message = (
                f"Unusual combination: debit {debit_line.account_code} "
                f"(class {debit_class}) against credit {credit_line.account_code} "
                f"(class {credit_class})"
            )
            if message not in warnings:
                warnings.append(message)
    return warnings


def vat_warnings(lines: Sequence[LineFacts]) -> list[str]:
    """Warn when revenue lacks collected VAT or expense lacks deductible VAT."""
    warnings: list[str] = []

    has_revenue = any(
        account_class_of(line.account_code) == 7 and line.credit > ZERO
        for line in lines
    )
    has_vat_collected = any(
        line.account_code.startswith(VAT_COLLECTED_PREFIX) and line.credit > ZERO
        for line in lines
    )
    if has_revenue and not has_vat_collected:
        warnings.append(
            f"Revenue entry without collected VAT ({VAT_COLLECTED_PREFIX}): "
            f"check that the customer is not VAT-subject"
        )

    has_expense = any(
        account_class_of(line.account_code) == 6 and line.debit > ZERO
        for line in lines
    )
    has_vat_deductible = any(
        line.account_code.startswith(VAT_DEDUCTIBLE_PREFIX) and line.debit > ZERO
        for line in lines
    )
    if has_expense and not has_vat_deductible:
        warnings.append(
            f"Expense entry without deductible VAT ({VAT_DEDUCTIBLE_PREFIX}): "
            f"check that the purchase is subject to VAT"
        )

    return warnings


def line_shape_errors(lines: Sequence[LineFacts]) -> list[str]:
    """Structural problems that block persistence."""
    if not lines:
        return ["Entry must have at least one line"]
    errors = []
    for index, line in enumerate(lines, start=1):
        if line.debit > ZERO and line.credit > ZERO:
            errors.append(
                f"Line {index} ({line.account_code}) has both a debit and a credit"
            )
    return errors


# ---------------------------------------------------------------------------
# Chart of accounts derivations
# ---------------------------------------------------------------------------

_TYPE_BY_CLASS = {
    1: AccountType.LIABILITY,
    2: AccountType.ASSET,
    3: AccountType.ASSET,
    4: AccountType.LIABILITY,
    5: AccountType.ASSET,
    6: AccountType.EXPENSE,
    7: AccountType.REVENUE,
    8: AccountType.EXPENSE,
}


def infer_account_type(account_class: int) -> AccountType:
    """Default account type for a class when none is supplied."""
    return _TYPE_BY_CLASS[account_class]


def normal_balance_for(account_type: AccountType) -> NormalBalance:
    if account_type in (AccountType.ASSET, AccountType.EXPENSE):
        return NormalBalance.DEBIT
    return NormalBalance.CREDIT


def find_parent_code(code: str, existing_codes: Iterable[str]) -> str | None:
    """Longest existing code that is a strict prefix of ``code``."""
    best: str | None = None
    for candidate in existing_codes:
        if len(candidate) < len(code) and code.startswith(candidate):
            if best is None or len(candidate) > len(best):
                best = candidate
    return best
