"""
Module: ohada_kernel.models.accounting_entry
Responsibility: ORM persistence for accounting entries (ledger transaction
    headers) and their debit/credit lines.
Architecture position: Kernel > Models.  May import from db/ and domain/values.

Invariants enforced:
    - reference_number is unique per company and journal
      (uq_entry_journal_reference); the reference embeds the year, so this is
      the per journal and year uniqueness the reference generator relies on.
    - VALIDATED entries and their lines are immutable
      (db/immutability.py before_update listeners).
    - Balance (sum of debits equals sum of credits) is checked by
      EntryService before a row becomes VALIDATED; is_balanced here is a
      read-side convenience only.

Failure modes:
    - IntegrityError on duplicate reference (translated by EntryService).
    - ImmutabilityViolationError on any update of a validated entry.

Audit relevance:
    deleted_at marks the trash state of a provisional entry; purge removes the
    row and cascades its lines.  Every transition writes an AuditRecord.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ohada_kernel.db.base import TenantScoped, TrackedBase, UUIDString
from ohada_kernel.db.types import BALANCE_TOLERANCE, ZERO, Money, Rate
from ohada_kernel.domain.values import EntryStatus, SourceDocumentType

if TYPE_CHECKING:
    from ohada_kernel.models.account import Account
    from ohada_kernel.models.fiscal_year import FiscalYear
    from ohada_kernel.models.journal import Journal
    from ohada_kernel.models.third_party import CostCenter, ThirdParty


class AccountingEntry(TenantScoped, TrackedBase):
    """
    Ledger transaction header.

    Guarantees:
        - status is PROVISIONAL or VALIDATED; VALIDATED is terminal.
        - Lines are owned (cascade delete-orphan) and loaded eagerly.
    """

    __tablename__ = "accounting_entries"

    __table_args__ = (
        UniqueConstraint(
            "company_id", "journal_id", "reference_number",
            name="uq_entry_journal_reference",
        ),
        Index("idx_entry_fiscal_year", "company_id", "fiscal_year_id"),
        Index("idx_entry_date", "entry_date"),
        Index("idx_entry_status", "status"),
    )

    journal_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("journals.id"),
        nullable=False,
    )

    fiscal_year_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("fiscal_years.id"),
        nullable=False,
    )

    reference_number: Mapped[str] = mapped_column(String(50), nullable=False)

    entry_date: Mapped[date] = mapped_column(nullable=False)

    description: Mapped[str | None] = mapped_column(String(500), nullable=True)

    currency: Mapped[str] = mapped_column(String(3), nullable=False)

    exchange_rate: Mapped[Rate] = mapped_column(nullable=False, default=Decimal("1"))

    status: Mapped[EntryStatus] = mapped_column(
        String(20),
        default=EntryStatus.PROVISIONAL,
        nullable=False,
    )

    validated_at: Mapped[datetime | None] = mapped_column(nullable=True)

    deleted_at: Mapped[datetime | None] = mapped_column(nullable=True)

    # Originating business document, if any
    source_type: Mapped[SourceDocumentType | None] = mapped_column(
        String(30), nullable=True
    )

    source_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    journal: Mapped["Journal"] = relationship("Journal", lazy="joined", innerjoin=True)

    fiscal_year: Mapped["FiscalYear"] = relationship("FiscalYear", lazy="joined", innerjoin=True)

    lines: Mapped[list["EntryLine"]] = relationship(
        "EntryLine",
        back_populates="entry",
        cascade="all, delete-orphan",
        order_by="EntryLine.line_seq",
        lazy="selectin",
    )

    @property
    def total_debit(self) -> Decimal:
        return sum((line.debit for line in self.lines), ZERO)

    @property
    def total_credit(self) -> Decimal:
        return sum((line.credit for line in self.lines), ZERO)

    @property
    def is_balanced(self) -> bool:
        return abs(self.total_debit - self.total_credit) <= BALANCE_TOLERANCE

    @property
    def is_trashed(self) -> bool:
        return self.deleted_at is not None

    def __repr__(self) -> str:
        return f"<AccountingEntry {self.reference_number} ({self.status})>"


class EntryLine(TenantScoped, TrackedBase):
    """
    One debit-or-credit movement of an entry.

    Amounts are kept both in the entry currency and in local currency
    (amount multiplied by the entry exchange rate).
    """

    __tablename__ = "entry_lines"

    __table_args__ = (
        Index("idx_entry_line_entry", "entry_id"),
        Index("idx_entry_line_account", "account_id"),
    )

    entry_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("accounting_entries.id", ondelete="CASCADE"),
        nullable=False,
    )

    account_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("accounts.id"),
        nullable=False,
    )

    third_party_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("third_parties.id"),
        nullable=True,
    )

    cost_center_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("cost_centers.id"),
        nullable=True,
    )

    line_seq: Mapped[int] = mapped_column(Integer, nullable=False)

    debit: Mapped[Money] = mapped_column(nullable=False, default=ZERO)

    credit: Mapped[Money] = mapped_column(nullable=False, default=ZERO)

    debit_local: Mapped[Money] = mapped_column(nullable=False, default=ZERO)

    credit_local: Mapped[Money] = mapped_column(nullable=False, default=ZERO)

    label: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Lettering: lines sharing a matching code settle each other
    matching_code: Mapped[str | None] = mapped_column(String(20), nullable=True)

    matching_date: Mapped[date | None] = mapped_column(nullable=True)

    entry: Mapped["AccountingEntry"] = relationship(
        "AccountingEntry",
        back_populates="lines",
    )

    account: Mapped["Account"] = relationship(
        "Account",
        lazy="joined",
        innerjoin=True,
    )

    third_party: Mapped["ThirdParty | None"] = relationship("ThirdParty")

    cost_center: Mapped["CostCenter | None"] = relationship("CostCenter")

    def __repr__(self) -> str:
        return f"<EntryLine {self.line_seq} D={self.debit} C={self.credit}>"
