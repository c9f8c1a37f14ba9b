"""
Module: ohada_kernel.models.account
Responsibility: ORM persistence for the OHADA chart of accounts, the target of
    every entry line.
Architecture position: Kernel > Models.  May import from db/ and domain/values.

Invariants enforced:
    - code is unique within a company (uq_account_company_code).
    - account_class is the leading digit of code (set by ChartOfAccountsService).
    - An account referenced by entry lines cannot be deleted
      (db/immutability.py before_flush check).

Audit relevance:
    account_class drives statement placement.  parent_id and level are
    derived from the code hierarchy, never entered by hand.
"""

from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ohada_kernel.db.base import TenantScoped, TrackedBase, UUIDString
from ohada_kernel.domain.values import AccountType, NormalBalance


class Account(TenantScoped, TrackedBase):
    """
    A node of the OHADA chart of accounts.

    Guarantees:
        - account_class in 1..8 for accounts accepted by the service layer.
        - normal_balance is consistent with account_type unless overridden.
    """

    __tablename__ = "accounts"

    __table_args__ = (
        UniqueConstraint("company_id", "code", name="uq_account_company_code"),
        Index("idx_account_class", "company_id", "account_class"),
    )

    code: Mapped[str] = mapped_column(String(20), nullable=False)

    label: Mapped[str] = mapped_column(String(255), nullable=False)

    account_class: Mapped[int] = mapped_column(Integer, nullable=False)

    account_type: Mapped[AccountType] = mapped_column(String(20), nullable=False)

    normal_balance: Mapped[NormalBalance] = mapped_column(String(10), nullable=False)

    # Code length: 2 for "41", 3 for "411", 6 for "411100"
    level: Mapped[int] = mapped_column(Integer, nullable=False)

    parent_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("accounts.id"),
        nullable=True,
    )

    is_reconcilable: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Auxiliary (third-party) accounts carry a counterparty on their lines
    is_auxiliary: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    parent: Mapped["Account | None"] = relationship(
        "Account",
        remote_side="Account.id",
        back_populates="children",
    )

    children: Mapped[list["Account"]] = relationship(
        "Account",
        back_populates="parent",
    )

    @property
    def is_balance_sheet(self) -> bool:
        return 1 <= self.account_class <= 5

    @property
    def is_profit_loss(self) -> bool:
        return self.account_class in (6, 7)

    @property
    def is_hao(self) -> bool:
        return self.account_class == 8

    def __repr__(self) -> str:
        return f"<Account {self.code}: {self.label}>"
