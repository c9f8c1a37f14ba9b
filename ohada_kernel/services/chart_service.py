"""
ChartOfAccountsService -- account creation, bulk import and deletion.

Responsibility:
    Derives everything about an account from its code: class (first digit),
    level (code length), parent (longest existing shorter code that prefixes
    it), default type by class and normal balance by type.

Invariants enforced:
    - Class must be 1..8 (InvalidAccountClassError).
    - Code unique within the company (DuplicateAccountCodeError).
    - Accounts with entry lines are never deleted (AccountReferencedError,
      also guarded by the before_flush listener).
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from ohada_kernel.domain import ohada_rules
from ohada_kernel.domain.clock import Clock, SystemClock
from ohada_kernel.domain.dtos import AccountInfo
from ohada_kernel.domain.tenant import TenantContext
from ohada_kernel.domain.values import AccountType, NormalBalance
from ohada_kernel.exceptions import (
    AccountNotFoundError,
    AccountReferencedError,
    DuplicateAccountCodeError,
)
from ohada_kernel.logging_config import get_logger
from ohada_kernel.models.account import Account
from ohada_kernel.models.audit_record import AuditAction
from ohada_kernel.repositories.accounts import AccountRepository
from ohada_kernel.services.audit_service import AuditTrailService
from ohada_kernel.services.base import BaseService

logger = get_logger("services.chart")


@dataclass(frozen=True)
class ImportSummary:
    created: tuple[str, ...]
    skipped: tuple[str, ...]


class ChartOfAccountsService(BaseService[Account]):
    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._accounts = AccountRepository(session)
        self._audit = AuditTrailService(session, clock or SystemClock())

    def create_account(
        self,
        ctx: TenantContext,
        code: str,
        label: str,
        actor_id: UUID,
        account_type: AccountType | None = None,
        normal_balance: NormalBalance | None = None,
        is_reconcilable: bool = False,
        is_auxiliary: bool = False,
    ) -> AccountInfo:
        """
        Raises:
            InvalidAccountClassError: Code does not start with 1..8.
            DuplicateAccountCodeError: Code already exists for the company.
        """
        code = code.strip()
        account_class = ohada_rules.validate_account_class(code)
        if self._accounts.get_by_code(ctx, code) is not None:
            raise DuplicateAccountCodeError(code)

        account = self._new_account(
            ctx, code, label, account_class, actor_id,
            account_type, normal_balance, is_reconcilable, is_auxiliary,
            self._accounts.codes(ctx),
        )
        self.session.flush()
        self._audit.record(
            ctx, "Account", account.id, AuditAction.ACCOUNT_CREATED, actor_id,
            {"code": code, "label": label},
        )
        logger.info(
            "account_created",
            extra={"account_code": code, "account_class": account_class},
        )
        return AccountInfo.from_model(account)

    def import_accounts(
        self,
        ctx: TenantContext,
        rows: Iterable[Mapping[str, Any]],
        actor_id: UUID,
    ) -> ImportSummary:
        """
        Bulk-create accounts from parsed rows (``code``, ``label`` and
        optional ``account_type``/``normal_balance``).

        Rows are processed shortest code first so parents exist before their
        children.  Codes already present are skipped, not updated.

        Raises:
            InvalidAccountClassError: On the first row with an illegal class.
        """
        known = self._accounts.codes(ctx)
        created: list[str] = []
        skipped: list[str] = []

        for row in sorted(rows, key=lambda r: (len(str(r["code"]).strip()), str(r["code"]))):
            code = str(row["code"]).strip()
            if code in known:
                skipped.append(code)
                continue
            account_class = ohada_rules.validate_account_class(code)
            account_type = row.get("account_type")
            normal_balance = row.get("normal_balance")
            account = self._new_account(
                ctx,
                code,
                str(row["label"]).strip(),
                account_class,
                actor_id,
                AccountType(account_type) if account_type else None,
                NormalBalance(normal_balance) if normal_balance else None,
                bool(row.get("is_reconcilable", False)),
                bool(row.get("is_auxiliary", False)),
                known,
            )
            self.session.flush()
            known[code] = account.id
            created.append(code)

        logger.info(
            "accounts_imported",
            extra={"created_count": len(created), "skipped_count": len(skipped)},
        )
        return ImportSummary(created=tuple(created), skipped=tuple(skipped))

    def delete_account(self, ctx: TenantContext, account_id: UUID, actor_id: UUID) -> None:
        """
        Raises:
            AccountNotFoundError, AccountReferencedError.
        """
        account = self._accounts.get(ctx, account_id)
        if account is None:
            raise AccountNotFoundError(str(account_id))
        if self._accounts.line_count(ctx, account_id):
            raise AccountReferencedError(account.code)

        for child in list(account.children):
            child.parent = account.parent
        self.session.delete(account)
        self.session.flush()
        self._audit.record(
            ctx, "Account", account_id, AuditAction.ACCOUNT_DELETED, actor_id,
            {"code": account.code},
        )
        logger.info("account_deleted", extra={"account_code": account.code})

    def list_accounts(self, ctx: TenantContext) -> list[AccountInfo]:
        return [AccountInfo.from_model(a) for a in self._accounts.list_ordered(ctx)]

    def _new_account(
        self,
        ctx: TenantContext,
        code: str,
        label: str,
        account_class: int,
        actor_id: UUID,
        account_type: AccountType | None,
        normal_balance: NormalBalance | None,
        is_reconcilable: bool,
        is_auxiliary: bool,
        known_codes: dict[str, UUID],
    ) -> Account:
        account_type = account_type or ohada_rules.infer_account_type(account_class)
        parent_code = ohada_rules.find_parent_code(code, known_codes)
        account = Account(
            code=code,
            label=label,
            account_class=account_class,
            account_type=account_type,
            normal_balance=normal_balance or ohada_rules.normal_balance_for(account_type),
            level=len(code),
            parent_id=known_codes[parent_code] if parent_code else None,
            is_reconcilable=is_reconcilable,
            is_auxiliary=is_auxiliary,
            created_by_id=actor_id,
        )
        return self._accounts.add(ctx, account)
