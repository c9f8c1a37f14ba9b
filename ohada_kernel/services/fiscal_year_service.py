"""
FiscalYearService -- fiscal year lifecycle.

Responsibility:
    Creates non-overlapping fiscal years and closes them.  Closing is
    one-way and is refused while PROVISIONAL entries remain in the year.

Invariants enforced:
    - start_date <= end_date, no overlap within a company.
    - A closed year is never reopened (also enforced by the ORM listener).

Failure modes:
    - FiscalYearOverlapError, InvalidFiscalYearError,
      ProvisionalEntriesRemainError, ValueError on inverted dates.
"""

from datetime import date
from uuid import UUID

from sqlalchemy.orm import Session

from ohada_kernel.domain.clock import Clock, SystemClock
from ohada_kernel.domain.dtos import FiscalYearInfo
from ohada_kernel.domain.tenant import TenantContext
from ohada_kernel.exceptions import (
    FiscalYearOverlapError,
    InvalidFiscalYearError,
    ProvisionalEntriesRemainError,
)
from ohada_kernel.logging_config import get_logger
from ohada_kernel.models.audit_record import AuditAction
from ohada_kernel.models.fiscal_year import FiscalYear
from ohada_kernel.repositories.entries import EntryRepository
from ohada_kernel.repositories.fiscal_years import FiscalYearRepository
from ohada_kernel.services.audit_service import AuditTrailService
from ohada_kernel.services.base import BaseService

logger = get_logger("services.fiscal_year")


class FiscalYearService(BaseService[FiscalYear]):
    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._fiscal_years = FiscalYearRepository(session)
        self._entries = EntryRepository(session)
        self._audit = AuditTrailService(session, self._clock)

    def create_fiscal_year(
        self,
        ctx: TenantContext,
        code: str,
        start_date: date,
        end_date: date,
        actor_id: UUID,
    ) -> FiscalYearInfo:
        if start_date > end_date:
            raise ValueError(f"Fiscal year {code}: start {start_date} is after end {end_date}")
        existing = self._fiscal_years.find_overlapping(ctx, start_date, end_date)
        if existing is not None:
            raise FiscalYearOverlapError(code, existing.code)

        fiscal_year = self._fiscal_years.add(
            ctx,
            FiscalYear(
                code=code,
                start_date=start_date,
                end_date=end_date,
                is_closed=False,
                created_by_id=actor_id,
            ),
        )
        self.session.flush()
        self._audit.record(
            ctx, "FiscalYear", fiscal_year.id, AuditAction.FISCAL_YEAR_CREATED, actor_id,
            {"code": code, "start_date": start_date, "end_date": end_date},
        )
        logger.info(
            "fiscal_year_created",
            extra={"fiscal_year_code": code, "start_date": start_date, "end_date": end_date},
        )
        return FiscalYearInfo.from_model(fiscal_year)

    def get(self, ctx: TenantContext, fiscal_year_id: UUID) -> FiscalYearInfo:
        fiscal_year = self._fiscal_years.get(ctx, fiscal_year_id)
        if fiscal_year is None:
            raise InvalidFiscalYearError(str(fiscal_year_id))
        return FiscalYearInfo.from_model(fiscal_year)

    def find_for_date(self, ctx: TenantContext, on_date: date) -> FiscalYearInfo | None:
        """The open fiscal year covering ``on_date``, if any."""
        fiscal_year = self._fiscal_years.find_for_date(ctx, on_date)
        return FiscalYearInfo.from_model(fiscal_year) if fiscal_year else None

    def close_fiscal_year(
        self, ctx: TenantContext, fiscal_year_id: UUID, actor_id: UUID
    ) -> FiscalYearInfo:
        """
        Close the year.  Idempotent on an already closed year.

        Raises:
            InvalidFiscalYearError, ProvisionalEntriesRemainError.
        """
        fiscal_year = self._fiscal_years.get_for_update(ctx, fiscal_year_id)
        if fiscal_year is None:
            raise InvalidFiscalYearError(str(fiscal_year_id))
        if fiscal_year.is_closed:
            return FiscalYearInfo.from_model(fiscal_year)

        remaining = self._entries.count_provisional(ctx, fiscal_year_id)
        if remaining:
            raise ProvisionalEntriesRemainError(fiscal_year.code, remaining)

        fiscal_year.is_closed = True
        fiscal_year.closed_at = self._clock.now()
        fiscal_year.closed_by_id = actor_id
        fiscal_year.updated_by_id = actor_id
        self.session.flush()

        self._audit.record(
            ctx, "FiscalYear", fiscal_year.id, AuditAction.FISCAL_YEAR_CLOSED, actor_id,
            {"code": fiscal_year.code},
        )
        logger.info("fiscal_year_closed", extra={"fiscal_year_code": fiscal_year.code})
        return FiscalYearInfo.from_model(fiscal_year)
