"""Fiscal year repository."""

from datetime import date

from ohada_kernel.domain.tenant import TenantContext
from ohada_kernel.models.fiscal_year import FiscalYear
from ohada_kernel.repositories.base import TenantScopedRepository


class FiscalYearRepository(TenantScopedRepository[FiscalYear]):
    model = FiscalYear

    def find_for_date(
        self, ctx: TenantContext, on_date: date, open_only: bool = True
    ) -> FiscalYear | None:
        stmt = (
            self._scoped(ctx)
            .where(FiscalYear.start_date <= on_date)
            .where(FiscalYear.end_date >= on_date)
        )
        if open_only:
            stmt = stmt.where(FiscalYear.is_closed.is_(False))
        return self.session.execute(
            stmt.order_by(FiscalYear.start_date).limit(1)
        ).scalar_one_or_none()

    def find_overlapping(
        self, ctx: TenantContext, start_date: date, end_date: date
    ) -> FiscalYear | None:
        return self.session.execute(
            self._scoped(ctx)
            .where(FiscalYear.start_date <= end_date)
            .where(FiscalYear.end_date >= start_date)
            .limit(1)
        ).scalar_one_or_none()

    def list_ordered(self, ctx: TenantContext) -> list[FiscalYear]:
        return list(
            self.session.execute(
                self._scoped(ctx).order_by(FiscalYear.start_date)
            ).scalars()
        )
