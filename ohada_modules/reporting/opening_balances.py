"""
Opening balance providers for the six-column balance.

Carrying balances forward from a prior fiscal year is not derived from the
ledger.  ``ReportingService`` asks an ``OpeningBalanceProvider`` for each
account instead, and the default provider answers zero for every account.
Callers that keep carry-forward figures elsewhere plug in their own provider.
"""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal
from typing import Protocol, runtime_checkable
from uuid import UUID

from ohada_kernel.db.types import ZERO, money
from ohada_kernel.domain.tenant import TenantContext


@runtime_checkable
class OpeningBalanceProvider(Protocol):
    """Signed (debit-positive) opening balance of an account for a fiscal year."""

    def opening_balance(
        self, ctx: TenantContext, account_id: UUID, fiscal_year_id: UUID,
    ) -> Decimal: ...


class ZeroOpeningBalanceProvider:
    """Every account opens at zero."""

    def opening_balance(
        self, ctx: TenantContext, account_id: UUID, fiscal_year_id: UUID,
    ) -> Decimal:
        return ZERO


class StaticOpeningBalanceProvider:
    """Opening balances from a fixed ``{(fiscal_year_id, account_id): amount}`` map."""

    def __init__(self, balances: Mapping[tuple[UUID, UUID], Decimal]):
        self._balances = {key: money(value) for key, value in balances.items()}

    def opening_balance(
        self, ctx: TenantContext, account_id: UUID, fiscal_year_id: UUID,
    ) -> Decimal:
        return self._balances.get((fiscal_year_id, account_id), ZERO)
