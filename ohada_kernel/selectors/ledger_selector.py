"""
Module: ohada_kernel.selectors.ledger_selector
Responsibility: Read-only access to the validated ledger of a fiscal year:
    line-level movements (general ledger, journals, cash flow) and per-account
    aggregates (trial balance, statements).
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Only VALIDATED, non-deleted entries of the tenant are ever returned.
    - No stored balances: everything derives from entry lines at query time.
    - ``use_local_currency`` picks debit_local/credit_local instead of the
      transaction-currency columns.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, or_, select

from ohada_kernel.db.types import ZERO
from ohada_kernel.domain.tenant import TenantContext
from ohada_kernel.domain.values import EntryStatus, JournalType
from ohada_kernel.models.account import Account
from ohada_kernel.models.accounting_entry import AccountingEntry, EntryLine
from ohada_kernel.models.journal import Journal
from ohada_kernel.models.third_party import ThirdParty
from ohada_kernel.selectors.base import BaseSelector


@dataclass(frozen=True)
class LedgerLine:
    """One validated entry line with its entry, journal and account context."""

    line_id: UUID
    entry_id: UUID
    line_seq: int
    entry_date: date
    reference_number: str
    entry_description: str | None
    journal_code: str
    journal_type: JournalType
    account_id: UUID
    account_code: str
    account_label: str
    account_class: int
    debit: Decimal
    credit: Decimal
    label: str | None = None
    third_party_name: str | None = None

    @property
    def net(self) -> Decimal:
        return self.debit - self.credit


@dataclass(frozen=True)
class AccountMovement:
    """Total debits and credits of one account over a fiscal year."""

    account_id: UUID
    account_code: str
    account_label: str
    account_class: int
    debit_total: Decimal
    credit_total: Decimal

    @property
    def balance(self) -> Decimal:
        return self.debit_total - self.credit_total


class LedgerSelector(BaseSelector[EntryLine]):
    def _amount_columns(self, use_local_currency: bool):
        if use_local_currency:
            return EntryLine.debit_local, EntryLine.credit_local
        return EntryLine.debit, EntryLine.credit

    def _validated_scope(self, stmt, ctx: TenantContext, fiscal_year_id: UUID):
        stmt = (
            stmt.where(AccountingEntry.company_id == ctx.company_id)
            .where(AccountingEntry.fiscal_year_id == fiscal_year_id)
            .where(AccountingEntry.status == EntryStatus.VALIDATED)
            .where(AccountingEntry.deleted_at.is_(None))
        )
        if ctx.branch_id is not None:
            stmt = stmt.where(
                or_(
                    AccountingEntry.branch_id == ctx.branch_id,
                    AccountingEntry.branch_id.is_(None),
                )
            )
        return stmt

    def lines(
        self,
        ctx: TenantContext,
        fiscal_year_id: UUID,
        use_local_currency: bool = True,
        account_id: UUID | None = None,
        journal_id: UUID | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[LedgerLine]:
        """Validated lines in chronological order (date, reference, line)."""
        debit_col, credit_col = self._amount_columns(use_local_currency)
        stmt = (
            select(
                EntryLine.id,
                EntryLine.entry_id,
                EntryLine.line_seq,
                AccountingEntry.entry_date,
                AccountingEntry.reference_number,
                AccountingEntry.description,
                Journal.code,
                Journal.journal_type,
                Account.id,
                Account.code,
                Account.label,
                Account.account_class,
                debit_col,
                credit_col,
                EntryLine.label,
                ThirdParty.name,
            )
            .select_from(EntryLine)
            .join(AccountingEntry, EntryLine.entry_id == AccountingEntry.id)
            .join(Journal, AccountingEntry.journal_id == Journal.id)
            .join(Account, EntryLine.account_id == Account.id)
            .outerjoin(ThirdParty, EntryLine.third_party_id == ThirdParty.id)
        )
        stmt = self._validated_scope(stmt, ctx, fiscal_year_id)
        if account_id is not None:
            stmt = stmt.where(EntryLine.account_id == account_id)
        if journal_id is not None:
            stmt = stmt.where(AccountingEntry.journal_id == journal_id)
        if start_date is not None:
            stmt = stmt.where(AccountingEntry.entry_date >= start_date)
        if end_date is not None:
            stmt = stmt.where(AccountingEntry.entry_date <= end_date)
        stmt = stmt.order_by(
            AccountingEntry.entry_date,
            AccountingEntry.reference_number,
            EntryLine.line_seq,
        )

        return [
            LedgerLine(
                line_id=row[0],
                entry_id=row[1],
                line_seq=row[2],
                entry_date=row[3],
                reference_number=row[4],
                entry_description=row[5],
                journal_code=row[6],
                journal_type=JournalType(row[7]),
                account_id=row[8],
                account_code=row[9],
                account_label=row[10],
                account_class=row[11],
                debit=row[12] if row[12] is not None else ZERO,
                credit=row[13] if row[13] is not None else ZERO,
                label=row[14],
                third_party_name=row[15],
            )
            for row in self.session.execute(stmt)
        ]

    def account_movements(
        self,
        ctx: TenantContext,
        fiscal_year_id: UUID,
        use_local_currency: bool = True,
    ) -> list[AccountMovement]:
        """Per-account debit/credit totals, ordered by account code."""
        debit_col, credit_col = self._amount_columns(use_local_currency)
        debit_sum = func.coalesce(func.sum(debit_col), 0).label("debit_total")
        credit_sum = func.coalesce(func.sum(credit_col), 0).label("credit_total")
        stmt = (
            select(
                Account.id,
                Account.code,
                Account.label,
                Account.account_class,
                debit_sum,
                credit_sum,
            )
            .select_from(EntryLine)
            .join(AccountingEntry, EntryLine.entry_id == AccountingEntry.id)
            .join(Account, EntryLine.account_id == Account.id)
        )
        stmt = self._validated_scope(stmt, ctx, fiscal_year_id)
        stmt = stmt.group_by(
            Account.id, Account.code, Account.label, Account.account_class
        ).order_by(Account.code)

        return [
            AccountMovement(
                account_id=row[0],
                account_code=row[1],
                account_label=row[2],
                account_class=row[3],
                debit_total=Decimal(str(row[4])),
                credit_total=Decimal(str(row[5])),
            )
            for row in self.session.execute(stmt)
        ]
