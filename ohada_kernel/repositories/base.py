"""
Module: ohada_kernel.repositories.base
Responsibility: Generic tenant-scoped data access.  Every query a repository
    issues starts from ``_scoped(ctx)``, the single place the company filter
    (and, for branch-scoped entities, the branch filter) is applied.
Architecture position: Kernel > Repositories.  May import from db/, models/
    and domain/.  MUST NOT import from services/.

Invariants enforced:
    - No query reaches the database without an explicit TenantContext.
    - A row of another company is indistinguishable from a missing row.
    - Repositories flush at most; they never commit.
"""

from collections.abc import Iterable
from typing import ClassVar, Generic, TypeVar
from uuid import UUID

from sqlalchemy import Select, or_, select
from sqlalchemy.orm import Session

from ohada_kernel.db.base import Base
from ohada_kernel.domain.tenant import TenantContext

ModelType = TypeVar("ModelType", bound=Base)


class TenantScopedRepository(Generic[ModelType]):
    """
    Base class for per-entity repositories.

    Subclasses set ``model``; those whose rows may belong to a branch set
    ``branch_scoped = True``.  Rows without a branch are company-wide and
    visible from every branch.
    """

    model: ClassVar[type]
    branch_scoped: ClassVar[bool] = False

    def __init__(self, session: Session):
        self.session = session

    def _scoped(self, ctx: TenantContext) -> Select:
        stmt = select(self.model).where(self.model.company_id == ctx.company_id)
        if self.branch_scoped and ctx.branch_id is not None:
            stmt = stmt.where(
                or_(
                    self.model.branch_id == ctx.branch_id,
                    self.model.branch_id.is_(None),
                )
            )
        return stmt

    def get(self, ctx: TenantContext, entity_id: UUID) -> ModelType | None:
        return self.session.execute(
            self._scoped(ctx).where(self.model.id == entity_id)
        ).unique().scalar_one_or_none()

    def get_for_update(self, ctx: TenantContext, entity_id: UUID) -> ModelType | None:
        """Lock the row (PostgreSQL) and refresh it from the database."""
        return self.session.execute(
            self._scoped(ctx)
            .where(self.model.id == entity_id)
            .with_for_update(of=self.model)
            .execution_options(populate_existing=True)
        ).unique().scalar_one_or_none()

    def get_many(self, ctx: TenantContext, entity_ids: Iterable[UUID]) -> dict[UUID, ModelType]:
        ids = set(entity_ids)
        if not ids:
            return {}
        rows = self.session.execute(
            self._scoped(ctx).where(self.model.id.in_(ids))
        ).unique().scalars()
        return {row.id: row for row in rows}

    def list(self, ctx: TenantContext) -> list[ModelType]:
        return list(self.session.execute(self._scoped(ctx)).unique().scalars())

    def add(self, ctx: TenantContext, entity: ModelType) -> ModelType:
        """Stamp the tenant on a new row and add it to the session."""
        entity.company_id = ctx.company_id
        if self.branch_scoped and getattr(entity, "branch_id", None) is None:
            entity.branch_id = ctx.branch_id
        self.session.add(entity)
        return entity
