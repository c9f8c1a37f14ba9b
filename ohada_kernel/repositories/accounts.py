"""Chart of accounts repository."""

from uuid import UUID

from sqlalchemy import func, select

from ohada_kernel.domain.tenant import TenantContext
from ohada_kernel.models.account import Account
from ohada_kernel.models.accounting_entry import EntryLine
from ohada_kernel.repositories.base import TenantScopedRepository


class AccountRepository(TenantScopedRepository[Account]):
    model = Account

    def get_by_code(self, ctx: TenantContext, code: str) -> Account | None:
        return self.session.execute(
            self._scoped(ctx).where(Account.code == code)
        ).scalar_one_or_none()

    def find_by_prefix(self, ctx: TenantContext, prefix: str) -> Account | None:
        """Shortest (then lowest) active account whose code starts with ``prefix``."""
        return self.session.execute(
            self._scoped(ctx)
            .where(Account.code.startswith(prefix, autoescape=True))
            .where(Account.is_active.is_(True))
            .order_by(Account.level, Account.code)
            .limit(1)
        ).scalar_one_or_none()

    def list_ordered(self, ctx: TenantContext) -> list[Account]:
        return list(
            self.session.execute(self._scoped(ctx).order_by(Account.code)).scalars()
        )

    def codes(self, ctx: TenantContext) -> dict[str, UUID]:
        rows = self.session.execute(
            select(Account.code, Account.id).where(Account.company_id == ctx.company_id)
        )
        return {code: account_id for code, account_id in rows}

    def line_count(self, ctx: TenantContext, account_id: UUID) -> int:
        return self.session.execute(
            select(func.count(EntryLine.id))
            .where(EntryLine.company_id == ctx.company_id)
            .where(EntryLine.account_id == account_id)
        ).scalar_one()
