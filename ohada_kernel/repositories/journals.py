"""Journal repository."""

from ohada_kernel.domain.tenant import TenantContext
from ohada_kernel.models.journal import Journal
from ohada_kernel.repositories.base import TenantScopedRepository


class JournalRepository(TenantScopedRepository[Journal]):
    model = Journal
    branch_scoped = True

    def get_by_code(self, ctx: TenantContext, code: str) -> Journal | None:
        return self.session.execute(
            self._scoped(ctx).where(Journal.code == code)
        ).scalar_one_or_none()
