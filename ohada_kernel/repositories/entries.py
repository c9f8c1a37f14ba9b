"""Accounting entry repository.

Trash handling lives here: ordinary lookups exclude soft-deleted entries,
``get_trashed``/``list_trashed`` return only them, and ``get_any`` ignores
the trash state (purge).
"""

from uuid import UUID

from sqlalchemy import func, select

from ohada_kernel.domain.tenant import TenantContext
from ohada_kernel.domain.values import EntryStatus
from ohada_kernel.models.accounting_entry import AccountingEntry
from ohada_kernel.repositories.base import TenantScopedRepository


class EntryRepository(TenantScopedRepository[AccountingEntry]):
    model = AccountingEntry
    branch_scoped = True

    def _live(self, ctx: TenantContext):
        return self._scoped(ctx).where(AccountingEntry.deleted_at.is_(None))

    def get(self, ctx: TenantContext, entry_id: UUID) -> AccountingEntry | None:
        return self.session.execute(
            self._live(ctx).where(AccountingEntry.id == entry_id)
        ).unique().scalar_one_or_none()

    def get_for_update(self, ctx: TenantContext, entry_id: UUID) -> AccountingEntry | None:
        return self.session.execute(
            self._live(ctx)
            .where(AccountingEntry.id == entry_id)
            .with_for_update(of=AccountingEntry)
            .execution_options(populate_existing=True)
        ).unique().scalar_one_or_none()

    def get_trashed(self, ctx: TenantContext, entry_id: UUID) -> AccountingEntry | None:
        return self.session.execute(
            self._scoped(ctx)
            .where(AccountingEntry.id == entry_id)
            .where(AccountingEntry.deleted_at.is_not(None))
        ).unique().scalar_one_or_none()

    def get_any(self, ctx: TenantContext, entry_id: UUID) -> AccountingEntry | None:
        return super().get(ctx, entry_id)

    def list_live(
        self,
        ctx: TenantContext,
        fiscal_year_id: UUID | None = None,
        journal_id: UUID | None = None,
        status: EntryStatus | None = None,
    ) -> list[AccountingEntry]:
        stmt = self._live(ctx)
        if fiscal_year_id is not None:
            stmt = stmt.where(AccountingEntry.fiscal_year_id == fiscal_year_id)
        if journal_id is not None:
            stmt = stmt.where(AccountingEntry.journal_id == journal_id)
        if status is not None:
            stmt = stmt.where(AccountingEntry.status == status)
        stmt = stmt.order_by(AccountingEntry.entry_date, AccountingEntry.reference_number)
        return list(self.session.execute(stmt).unique().scalars())

    def list_trashed(self, ctx: TenantContext) -> list[AccountingEntry]:
        return list(
            self.session.execute(
                self._scoped(ctx)
                .where(AccountingEntry.deleted_at.is_not(None))
                .order_by(AccountingEntry.deleted_at.desc())
            ).unique().scalars()
        )

    def references_with_prefix(
        self, ctx: TenantContext, journal_id: UUID, prefix: str
    ) -> list[str]:
        """Every reference of the journal starting with ``prefix``, trash included."""
        return list(
            self.session.execute(
                select(AccountingEntry.reference_number)
                .where(AccountingEntry.company_id == ctx.company_id)
                .where(AccountingEntry.journal_id == journal_id)
                .where(AccountingEntry.reference_number.startswith(prefix, autoescape=True))
            ).scalars()
        )

    def count_provisional(self, ctx: TenantContext, fiscal_year_id: UUID) -> int:
        return self.session.execute(
            select(func.count(AccountingEntry.id))
            .where(AccountingEntry.company_id == ctx.company_id)
            .where(AccountingEntry.fiscal_year_id == fiscal_year_id)
            .where(AccountingEntry.status == EntryStatus.PROVISIONAL)
            .where(AccountingEntry.deleted_at.is_(None))
        ).scalar_one()
