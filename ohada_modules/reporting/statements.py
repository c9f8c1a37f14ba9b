"""
Pure OHADA statement transformation functions.

These functions turn per-account totals (``AccountBalance``) and validated
ledger lines (``LedgerLine``) into the statement models.  ZERO I/O. ZERO side
effects.

All monetary values are Decimal. All inputs/outputs are frozen dataclasses.

Functions in this module follow the ohada_kernel/domain/ purity convention:
- No database access
- No clock access
- Deterministic: same inputs always produce same outputs

The two classification heuristics (cash-flow category from counter-accounts,
equity category from account prefix) are standalone functions of
``(line, siblings)`` and ``(account_code)``.  The builders take them as
parameters so that alternate rules can be substituted.
"""

from __future__ import annotations

import calendar
import dataclasses
from collections import OrderedDict
from collections.abc import Callable, Mapping, Sequence
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from uuid import UUID

from ohada_kernel.db.types import ZERO
from ohada_kernel.selectors.ledger_selector import AccountMovement, LedgerLine
from ohada_modules.reporting.config import ReportingConfig
from ohada_modules.reporting.models import (
    AccountBalance,
    AuxiliaryJournalReport,
    BalanceSheetAssets,
    BalanceSheetLiabilities,
    BalanceSheetLine,
    BalanceSheetReport,
    BalanceSheetSection,
    BalanceSide,
    CashFlowCategory,
    CashFlowItem,
    CashFlowReport,
    EquityCategory,
    EquityChangesReport,
    EquityMovementRow,
    FlowDirection,
    GeneralLedgerReport,
    IncomeStatementLine,
    IncomeStatementReport,
    JournalEntryView,
    JournalLine,
    KeyFigures,
    LedgerMovement,
    ReportMetadata,
    SixColumnBalanceReport,
    SixColumnLine,
    SixColumnTotals,
    TrialBalanceLine,
    TrialBalanceReport,
    VatReport,
    VatStatus,
)

CashFlowClassifier = Callable[[LedgerLine, Sequence[LedgerLine]], CashFlowCategory]
EquityClassifier = Callable[[str], EquityCategory | None]

LONG_TERM_DEBT_PREFIXES = ("16", "17")
VAT_COLLECTED_PREFIXES = ("443", "444")
VAT_DEDUCTIBLE_PREFIXES = ("445",)

_CENT = Decimal("0.01")


# =========================================================================
# Helpers
# =========================================================================


def balances_from_movements(
    movements: Sequence[AccountMovement],
) -> tuple[AccountBalance, ...]:
    """Bridge selector aggregates to the reporting balance type."""
    return tuple(
        AccountBalance(
            account_id=m.account_id,
            account_code=m.account_code,
            account_label=m.account_label,
            account_class=m.account_class,
            total_debit=m.debit_total,
            total_credit=m.credit_total,
        )
        for m in movements
    )


def _sum(values) -> Decimal:
    return sum(values, ZERO)


def _split_signed(amount: Decimal) -> tuple[Decimal, Decimal]:
    """Signed balance into (debit column, credit column)."""
    if amount > ZERO:
        return amount, ZERO
    return ZERO, -amount


def group_by_entry(lines: Sequence[LedgerLine]) -> OrderedDict[UUID, list[LedgerLine]]:
    """Group lines by owning entry, keeping the input order."""
    grouped: OrderedDict[UUID, list[LedgerLine]] = OrderedDict()
    for line in lines:
        grouped.setdefault(line.entry_id, []).append(line)
    return grouped


def month_window(
    fiscal_year_start: date, fiscal_year_end: date, month: int,
) -> tuple[date, date]:
    """
    Calendar bounds of ``month`` inside a fiscal year.

    The first occurrence of that month number on or after the fiscal year
    start is used, so a July-June year maps month 1 to January of its second
    calendar year.  Raises ValueError if the month is not 1-12 or falls
    outside the fiscal year.
    """
    if not 1 <= month <= 12:
        raise ValueError(f"month must be between 1 and 12, got {month}")
    year = fiscal_year_start.year
    if month < fiscal_year_start.month:
        year += 1
    start = date(year, month, 1)
    end = date(year, month, calendar.monthrange(year, month)[1])
    if start > fiscal_year_end:
        raise ValueError(
            f"month {month} is outside fiscal year "
            f"{fiscal_year_start.isoformat()}..{fiscal_year_end.isoformat()}"
        )
    return max(start, fiscal_year_start), min(end, fiscal_year_end)


# =========================================================================
# 1. TRIAL BALANCE
# =========================================================================


def build_trial_balance(
    balances: Sequence[AccountBalance],
    config: ReportingConfig,
    metadata: ReportMetadata,
) -> TrialBalanceReport:
    """Per-account debit/credit totals; balanced within the configured tolerance."""
    lines = tuple(
        TrialBalanceLine(
            account_id=b.account_id,
            account_code=b.account_code,
            account_label=b.account_label,
            account_class=b.account_class,
            total_debit=b.total_debit,
            total_credit=b.total_credit,
            balance=b.balance,
            balance_side=BalanceSide.DEBIT if b.balance >= ZERO else BalanceSide.CREDIT,
        )
        for b in sorted(balances, key=lambda b: b.account_code)
        if b.total_debit != ZERO or b.total_credit != ZERO
    )
    total_debit = _sum(line.total_debit for line in lines)
    total_credit = _sum(line.total_credit for line in lines)
    return TrialBalanceReport(
        metadata=metadata,
        lines=lines,
        grand_total_debit=total_debit,
        grand_total_credit=total_credit,
        is_balanced=abs(total_debit - total_credit) < config.trial_balance_tolerance,
    )


# =========================================================================
# 2. BALANCE SHEET (bilan)
# =========================================================================


def classify_for_balance_sheet(balance: AccountBalance) -> str | None:
    """
    Balance sheet section of a nonzero account balance.

    Class 2 fixed assets, class 3 current assets, class 1 equity unless the
    code starts with 16/17 (long-term debt), class 4 current asset when in
    debit else current liability, class 5 cash asset when in debit else cash
    liability.  Classes 6-8 return None: they belong to the income statement.
    """
    signed = balance.balance
    account_class = balance.account_class
    if account_class == 2:
        return "fixed_assets"
    if account_class == 3:
        return "current_assets"
    if account_class == 1:
        if balance.account_code.startswith(LONG_TERM_DEBT_PREFIXES):
            return "long_term_debt"
        return "equity"
    if account_class == 4:
        return "current_assets" if signed > ZERO else "current_liabilities"
    if account_class == 5:
        return "cash_assets" if signed > ZERO else "cash_liabilities"
    return None


_ASSET_SECTIONS = ("fixed_assets", "current_assets", "cash_assets")
_LIABILITY_SECTIONS = (
    "equity",
    "long_term_debt",
    "current_liabilities",
    "cash_liabilities",
)


def build_balance_sheet(
    balances: Sequence[AccountBalance],
    config: ReportingConfig,
    metadata: ReportMetadata,
) -> BalanceSheetReport:
    """
    OHADA balance sheet from class 1-5 balances.

    Asset sections keep the signed (debit-positive) balance; liability
    sections are presented as absolute amounts.  The current year result is
    not closed into class 1 here, so a ledger with open income statement
    accounts is reported as unbalanced.
    """
    buckets: dict[str, list[BalanceSheetLine]] = {
        name: [] for name in _ASSET_SECTIONS + _LIABILITY_SECTIONS
    }
    for balance in sorted(balances, key=lambda b: b.account_code):
        if balance.balance == ZERO:
            continue
        section = classify_for_balance_sheet(balance)
        if section is None:
            continue
        amount = balance.balance if section in _ASSET_SECTIONS else abs(balance.balance)
        buckets[section].append(
            BalanceSheetLine(
                account_id=balance.account_id,
                account_code=balance.account_code,
                account_label=balance.account_label,
                amount=amount,
            )
        )

    sections = {
        name: BalanceSheetSection(
            name=name,
            lines=tuple(lines),
            total=_sum(line.amount for line in lines),
        )
        for name, lines in buckets.items()
    }

    assets = BalanceSheetAssets(
        fixed_assets=sections["fixed_assets"],
        current_assets=sections["current_assets"],
        cash_assets=sections["cash_assets"],
        grand_total=_sum(sections[name].total for name in _ASSET_SECTIONS),
    )
    liabilities = BalanceSheetLiabilities(
        equity=sections["equity"],
        long_term_debt=sections["long_term_debt"],
        current_liabilities=sections["current_liabilities"],
        cash_liabilities=sections["cash_liabilities"],
        grand_total=_sum(sections[name].total for name in _LIABILITY_SECTIONS),
    )
    return BalanceSheetReport(
        metadata=metadata,
        assets=assets,
        liabilities=liabilities,
        is_balanced=(
            abs(assets.grand_total - liabilities.grand_total)
            < config.balance_sheet_tolerance
        ),
    )


# =========================================================================
# 3. INCOME STATEMENT (compte de resultat)
# =========================================================================


def _income_line(balance: AccountBalance, amount: Decimal) -> IncomeStatementLine:
    return IncomeStatementLine(
        account_id=balance.account_id,
        account_code=balance.account_code,
        account_label=balance.account_label,
        amount=amount,
    )


def build_income_statement(
    balances: Sequence[AccountBalance],
    metadata: ReportMetadata,
) -> IncomeStatementReport:
    """
    Class 7 revenue, class 6 expense, class 8 split by sign into HAO items.

    Revenue amounts are credit minus debit, expense amounts debit minus
    credit.  Class 8 accounts with a credit (or zero-signed) result are HAO
    revenue, the rest HAO expense.
    """
    revenue: list[IncomeStatementLine] = []
    expenses: list[IncomeStatementLine] = []
    hao_revenue: list[IncomeStatementLine] = []
    hao_expenses: list[IncomeStatementLine] = []

    for balance in sorted(balances, key=lambda b: b.account_code):
        credit_signed = balance.total_credit - balance.total_debit
        if credit_signed == ZERO:
            continue
        if balance.account_class == 7:
            revenue.append(_income_line(balance, credit_signed))
        elif balance.account_class == 6:
            expenses.append(_income_line(balance, -credit_signed))
        elif balance.account_class == 8:
            if credit_signed >= ZERO:
                hao_revenue.append(_income_line(balance, credit_signed))
            else:
                hao_expenses.append(_income_line(balance, -credit_signed))

    total_revenue = _sum(line.amount for line in revenue)
    total_expenses = _sum(line.amount for line in expenses)
    total_hao_revenue = _sum(line.amount for line in hao_revenue)
    total_hao_expenses = _sum(line.amount for line in hao_expenses)
    operating_result = total_revenue - total_expenses
    hao_result = total_hao_revenue - total_hao_expenses

    return IncomeStatementReport(
        metadata=metadata,
        revenue=tuple(revenue),
        expenses=tuple(expenses),
        hao_revenue=tuple(hao_revenue),
        hao_expenses=tuple(hao_expenses),
        total_revenue=total_revenue,
        total_expenses=total_expenses,
        total_hao_revenue=total_hao_revenue,
        total_hao_expenses=total_hao_expenses,
        operating_result=operating_result,
        hao_result=hao_result,
        net_result=operating_result + hao_result,
    )


# =========================================================================
# 4. VAT REPORT
# =========================================================================


def build_vat_report(
    balances: Sequence[AccountBalance],
    metadata: ReportMetadata,
) -> VatReport:
    """Collected VAT (443/444, credit side) against deductible VAT (445, debit side)."""
    collected = _sum(
        b.total_credit - b.total_debit
        for b in balances
        if b.account_code.startswith(VAT_COLLECTED_PREFIXES)
    )
    deductible = _sum(
        b.total_debit - b.total_credit
        for b in balances
        if b.account_code.startswith(VAT_DEDUCTIBLE_PREFIXES)
    )
    vat_to_pay = collected - deductible
    return VatReport(
        metadata=metadata,
        vat_collected=collected,
        vat_deductible=deductible,
        vat_to_pay=vat_to_pay,
        status=VatStatus.TO_PAY if vat_to_pay >= ZERO else VatStatus.CREDIT,
    )


# =========================================================================
# 5. CASH FLOW (TFT)
# =========================================================================


def classify_cash_flow(
    line: LedgerLine, siblings: Sequence[LedgerLine],
) -> CashFlowCategory:
    """
    Cash-flow category of a treasury line from the other lines of its entry.

    A class 2 counter-account makes it INVESTING; a class 1 counter-account
    other than 13 (result), or any 16 (borrowings), makes it FINANCING;
    anything else is OPERATING.  Investing wins over financing.
    """
    others = [s for s in siblings if s.line_id != line.line_id]
    if any(s.account_code.startswith("2") for s in others):
        return CashFlowCategory.INVESTING
    if any(
        (s.account_code.startswith("1") and not s.account_code.startswith("13"))
        or s.account_code.startswith("16")
        for s in others
    ):
        return CashFlowCategory.FINANCING
    return CashFlowCategory.OPERATING


def build_cash_flow(
    lines: Sequence[LedgerLine],
    config: ReportingConfig,
    metadata: ReportMetadata,
    classifier: CashFlowClassifier = classify_cash_flow,
) -> CashFlowReport:
    """
    Cash-flow statement over class 5 movements.

    ``lines`` must hold every validated line of the period, not just the
    treasury lines: the classifier inspects the sibling lines of each entry.
    Opening-journal movements feed ``cash_begin`` instead of a category.
    """
    totals = {category: ZERO for category in CashFlowCategory}
    cash_begin = ZERO
    flows: list[CashFlowItem] = []

    for entry_lines in group_by_entry(lines).values():
        for line in entry_lines:
            if line.account_class != 5:
                continue
            amount = line.debit - line.credit
            if line.journal_type == config.opening_journal_type:
                cash_begin += amount
                continue
            if amount == ZERO:
                continue

            category = classifier(line, entry_lines)
            direction = FlowDirection.INFLOW if line.debit > ZERO else FlowDirection.OUTFLOW
            signed = abs(amount) if direction is FlowDirection.INFLOW else -abs(amount)
            totals[category] += signed
            flows.append(
                CashFlowItem(
                    entry_id=line.entry_id,
                    entry_date=line.entry_date,
                    reference_number=line.reference_number,
                    description=line.label or line.entry_description,
                    account_code=line.account_code,
                    amount=abs(amount),
                    direction=direction,
                    category=category,
                )
            )

    net_variation = _sum(totals.values())
    flows.sort(key=lambda f: (f.entry_date, f.reference_number, f.account_code))
    return CashFlowReport(
        metadata=metadata,
        cash_begin=cash_begin,
        operating=totals[CashFlowCategory.OPERATING],
        investing=totals[CashFlowCategory.INVESTING],
        financing=totals[CashFlowCategory.FINANCING],
        net_variation=net_variation,
        cash_end=cash_begin + net_variation,
        flows=tuple(flows),
    )


# =========================================================================
# 6. EQUITY CHANGES (TVCP)
# =========================================================================

EQUITY_MAPPING: tuple[tuple[EquityCategory, str, str], ...] = (
    (EquityCategory.CAPITAL, "Capital", "10"),
    (EquityCategory.RESERVES, "Reserves", "11"),
    (EquityCategory.RETAINED_EARNINGS, "Retained earnings", "12"),
    (EquityCategory.NET_RESULT, "Net result", "13"),
    (EquityCategory.OTHERS, "Other equity", "1"),
)


def classify_equity_account(account_code: str) -> EquityCategory | None:
    """Equity category of a class 1 account; None outside class 1."""
    if not account_code.startswith("1"):
        return None
    for category, _label, prefix in EQUITY_MAPPING:
        if category is not EquityCategory.OTHERS and account_code.startswith(prefix):
            return category
    return EquityCategory.OTHERS


def build_equity_changes(
    lines: Sequence[LedgerLine],
    config: ReportingConfig,
    metadata: ReportMetadata,
    classifier: EquityClassifier = classify_equity_account,
) -> EquityChangesReport:
    """
    Movements of class 1 accounts by equity category.

    Amounts are credit-positive.  Opening-journal lines are the initial
    amount; other lines are increases or decreases by sign.
    """
    initial = {category: ZERO for category, _, _ in EQUITY_MAPPING}
    increases = dict(initial)
    decreases = dict(initial)

    for line in lines:
        category = classifier(line.account_code)
        if category is None:
            continue
        amount = line.credit - line.debit
        if line.journal_type == config.opening_journal_type:
            initial[category] += amount
        elif amount > ZERO:
            increases[category] += amount
        else:
            decreases[category] += -amount

    rows = tuple(
        EquityMovementRow(
            category=category,
            label=label,
            prefix=prefix,
            initial=initial[category],
            increases=increases[category],
            decreases=decreases[category],
            final=initial[category] + increases[category] - decreases[category],
        )
        for category, label, prefix in EQUITY_MAPPING
    )
    return EquityChangesReport(
        metadata=metadata,
        categories=rows,
        total_initial=_sum(row.initial for row in rows),
        total_final=_sum(row.final for row in rows),
    )


# =========================================================================
# 7. SIX-COLUMN BALANCE
# =========================================================================


def build_six_column_balance(
    balances: Sequence[AccountBalance],
    opening_balances: Mapping[UUID, Decimal],
    account_labels: Mapping[UUID, tuple[str, str]],
    metadata: ReportMetadata,
) -> SixColumnBalanceReport:
    """
    Opening, movement and closing balances split into debit/credit columns.

    ``opening_balances`` holds signed (debit-positive) opening amounts;
    accounts with an opening balance but no movement still get a line.
    ``account_labels`` maps account id to (code, label) for such accounts.
    """
    by_account = {b.account_id: b for b in balances}
    account_ids = set(by_account)
    account_ids.update(aid for aid, amount in opening_balances.items() if amount != ZERO)

    lines: list[SixColumnLine] = []
    for account_id in account_ids:
        movement = by_account.get(account_id)
        if movement is not None:
            code, label = movement.account_code, movement.account_label
            moved_debit, moved_credit = movement.total_debit, movement.total_credit
        else:
            code, label = account_labels[account_id]
            moved_debit = moved_credit = ZERO
        opening = opening_balances.get(account_id, ZERO)
        initial_debit, initial_credit = _split_signed(opening)
        final_debit, final_credit = _split_signed(opening + moved_debit - moved_credit)
        lines.append(
            SixColumnLine(
                account_id=account_id,
                account_code=code,
                account_label=label,
                initial_debit=initial_debit,
                initial_credit=initial_credit,
                movement_debit=moved_debit,
                movement_credit=moved_credit,
                final_debit=final_debit,
                final_credit=final_credit,
            )
        )
    lines.sort(key=lambda line: line.account_code)

    totals = SixColumnTotals(
        initial_debit=_sum(line.initial_debit for line in lines),
        initial_credit=_sum(line.initial_credit for line in lines),
        movement_debit=_sum(line.movement_debit for line in lines),
        movement_credit=_sum(line.movement_credit for line in lines),
        final_debit=_sum(line.final_debit for line in lines),
        final_credit=_sum(line.final_credit for line in lines),
    )
    return SixColumnBalanceReport(metadata=metadata, lines=tuple(lines), totals=totals)


# =========================================================================
# 8. GENERAL LEDGER AND AUXILIARY JOURNALS
# =========================================================================


def build_general_ledger(
    account_id: UUID,
    account_code: str,
    account_label: str,
    lines: Sequence[LedgerLine],
    metadata: ReportMetadata,
) -> GeneralLedgerReport:
    """Chronological movements of one account with a running debit-positive balance."""
    running = ZERO
    movements: list[LedgerMovement] = []
    for line in lines:
        running += line.debit - line.credit
        movements.append(
            LedgerMovement(
                entry_date=line.entry_date,
                reference_number=line.reference_number,
                journal_code=line.journal_code,
                label=line.label or line.entry_description,
                debit=line.debit,
                credit=line.credit,
                running_balance=running,
            )
        )
    return GeneralLedgerReport(
        metadata=metadata,
        account_id=account_id,
        account_code=account_code,
        account_label=account_label,
        movements=tuple(movements),
        total_debit=_sum(m.debit for m in movements),
        total_credit=_sum(m.credit for m in movements),
        final_balance=running,
    )


def build_auxiliary_journal(
    journal_code: str,
    journal_label: str,
    month: int | None,
    lines: Sequence[LedgerLine],
    metadata: ReportMetadata,
) -> AuxiliaryJournalReport:
    """Entries of one journal with their lines and per-entry totals."""
    entries: list[JournalEntryView] = []
    for entry_id, entry_lines in group_by_entry(lines).items():
        first = entry_lines[0]
        view_lines = tuple(
            JournalLine(
                account_code=line.account_code,
                account_label=line.account_label,
                third_party_name=line.third_party_name,
                label=line.label,
                debit=line.debit,
                credit=line.credit,
            )
            for line in entry_lines
        )
        entries.append(
            JournalEntryView(
                entry_id=entry_id,
                entry_date=first.entry_date,
                reference_number=first.reference_number,
                description=first.entry_description,
                lines=view_lines,
                total_debit=_sum(line.debit for line in view_lines),
                total_credit=_sum(line.credit for line in view_lines),
            )
        )
    return AuxiliaryJournalReport(
        metadata=metadata,
        journal_code=journal_code,
        journal_label=journal_label,
        month=month,
        entries=tuple(entries),
        total_debit=_sum(e.total_debit for e in entries),
        total_credit=_sum(e.total_credit for e in entries),
    )


# =========================================================================
# 9. KEY FIGURES
# =========================================================================


def _ratio(numerator: Decimal, denominator: Decimal, scale: Decimal = Decimal("1")) -> Decimal:
    return (numerator / denominator * scale).quantize(_CENT, rounding=ROUND_HALF_UP)


def build_key_figures(
    income: IncomeStatementReport,
    balance_sheet: BalanceSheetReport,
    vat: VatReport,
    config: ReportingConfig,
    metadata: ReportMetadata,
) -> KeyFigures:
    """Dashboard summary derived from already-built statements."""
    assets = balance_sheet.assets
    liabilities = balance_sheet.liabilities

    current_assets = assets.current_assets.total + assets.cash_assets.total
    current_liabilities = (
        liabilities.current_liabilities.total + liabilities.cash_liabilities.total
    )
    if current_liabilities > ZERO:
        current_ratio = _ratio(current_assets, current_liabilities)
    elif current_assets > ZERO:
        current_ratio = config.current_ratio_cap
    else:
        current_ratio = ZERO

    if income.total_revenue > ZERO:
        net_margin = _ratio(income.net_result, income.total_revenue, Decimal("100"))
    else:
        net_margin = ZERO

    long_term_debt = liabilities.long_term_debt.total
    equity = liabilities.equity.total
    if long_term_debt > ZERO and equity > ZERO:
        debt_ratio = _ratio(long_term_debt, equity, Decimal("100"))
    else:
        debt_ratio = ZERO

    return KeyFigures(
        metadata=metadata,
        total_revenue=income.total_revenue,
        total_expenses=income.total_expenses,
        net_result=income.net_result,
        cash_position=assets.cash_assets.total,
        vat_to_pay=vat.vat_to_pay,
        current_ratio=current_ratio,
        net_margin=net_margin,
        debt_ratio=debt_ratio,
    )


# =========================================================================
# 10. RENDERER (dict/JSON output)
# =========================================================================


def render_to_dict(obj: object) -> dict | list | str | int | float | bool | None:
    """
    Convert any report dataclass to a plain dict for JSON serialization.

    Handles:
    - Decimal -> str (preserving precision)
    - UUID -> str
    - date -> ISO format string
    - Enum -> .value
    - Nested frozen dataclasses -> nested dicts
    - Tuples -> lists
    """
    if obj is None:
        return None
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, UUID):
        return str(obj)
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (list, tuple)):
        return [render_to_dict(item) for item in obj]
    if isinstance(obj, dict):
        return {str(k): render_to_dict(v) for k, v in obj.items()}
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {
            f.name: render_to_dict(getattr(obj, f.name))
            for f in dataclasses.fields(obj)
        }
    if isinstance(obj, (str, int, float, bool)):
        return obj
    return str(obj)
