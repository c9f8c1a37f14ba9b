"""
DTOs -- Immutable data crossing the service boundary.

Responsibility:
    Defines the drafts callers submit (EntryDraft, EntryLineDraft, EntryPatch),
    the records services return (EntryRecord, EntryLineRecord, AccountInfo,
    FiscalYearInfo) and the validator output (ValidationResult).

Architecture position:
    Kernel > Domain -- zero I/O.  ``from_model()`` converters are boundary
    helpers invoked only from the service layer.

Invariants enforced:
    - Line amounts are Decimal and never negative (EntryLineDraft).
    - Records are frozen: callers cannot mutate persisted state through them.

Data flow:
    EntryDraft -> (validator, entry service) -> AccountingEntry ORM -> EntryRecord
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from ohada_kernel.db.types import ZERO, money
from ohada_kernel.domain.values import (
    AccountType,
    EntryStatus,
    JournalType,
    NormalBalance,
    SourceDocumentType,
)

if TYPE_CHECKING:
    from ohada_kernel.models.account import Account as AccountModel
    from ohada_kernel.models.accounting_entry import (
        AccountingEntry as AccountingEntryModel,
        EntryLine as EntryLineModel,
    )
    from ohada_kernel.models.fiscal_year import FiscalYear as FiscalYearModel
    from ohada_kernel.models.journal import Journal as JournalModel


# ---------------------------------------------------------------------------
# Drafts (caller input)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EntryLineDraft:
    """One proposed debit-or-credit movement."""

    account_id: UUID
    debit: Decimal = ZERO
    credit: Decimal = ZERO
    label: str | None = None
    third_party_id: UUID | None = None
    cost_center_id: UUID | None = None
    matching_code: str | None = None
    matching_date: date | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "debit", money(self.debit))
        object.__setattr__(self, "credit", money(self.credit))
        if self.debit < ZERO or self.credit < ZERO:
            raise ValueError("Entry line amounts must not be negative")


@dataclass(frozen=True)
class EntryDraft:
    """A proposed accounting entry.

    ``reference_number`` is generated when omitted; ``currency`` defaults to
    the configured local currency.
    """

    journal_id: UUID
    fiscal_year_id: UUID
    entry_date: date
    lines: tuple[EntryLineDraft, ...]
    description: str | None = None
    status: EntryStatus = EntryStatus.PROVISIONAL
    reference_number: str | None = None
    currency: str | None = None
    exchange_rate: Decimal = Decimal("1")
    source_type: SourceDocumentType | None = None
    source_id: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "lines", tuple(self.lines))
        object.__setattr__(self, "exchange_rate", money(self.exchange_rate))
        if self.exchange_rate <= ZERO:
            raise ValueError("Exchange rate must be positive")
        if isinstance(self.entry_date, datetime):
            object.__setattr__(self, "entry_date", self.entry_date.date())

    @property
    def total_debit(self) -> Decimal:
        return sum((line.debit for line in self.lines), ZERO)

    @property
    def total_credit(self) -> Decimal:
        return sum((line.credit for line in self.lines), ZERO)


@dataclass(frozen=True)
class EntryPatch:
    """Mutable fields of a provisional entry.  None leaves a field unchanged."""

    journal_id: UUID | None = None
    fiscal_year_id: UUID | None = None
    entry_date: date | None = None
    description: str | None = None
    reference_number: str | None = None
    currency: str | None = None
    exchange_rate: Decimal | None = None
    lines: tuple[EntryLineDraft, ...] | None = None

    def __post_init__(self) -> None:
        if self.exchange_rate is not None:
            object.__setattr__(self, "exchange_rate", money(self.exchange_rate))
            if self.exchange_rate <= ZERO:
                raise ValueError("Exchange rate must be positive")


# ---------------------------------------------------------------------------
# Rule inputs and outputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LineFacts:
    """What the OHADA rules need to know about a line."""

    account_code: str
    debit: Decimal = ZERO
    credit: Decimal = ZERO


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()


# ---------------------------------------------------------------------------
# Records (service output)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AccountInfo:
    id: UUID
    code: str
    label: str
    account_class: int
    account_type: AccountType
    normal_balance: NormalBalance
    level: int
    parent_id: UUID | None = None

    @classmethod
    def from_model(cls, model: AccountModel) -> AccountInfo:
        return cls(
            id=model.id,
            code=model.code,
            label=model.label,
            account_class=model.account_class,
            account_type=AccountType(model.account_type),
            normal_balance=NormalBalance(model.normal_balance),
            level=model.level,
            parent_id=model.parent_id,
        )


@dataclass(frozen=True)
class FiscalYearInfo:
    id: UUID
    code: str
    start_date: date
    end_date: date
    is_closed: bool

    @classmethod
    def from_model(cls, model: FiscalYearModel) -> FiscalYearInfo:
        return cls(
            id=model.id,
            code=model.code,
            start_date=model.start_date,
            end_date=model.end_date,
            is_closed=model.is_closed,
        )


@dataclass(frozen=True)
class JournalInfo:
    id: UUID
    code: str
    label: str
    journal_type: JournalType

    @classmethod
    def from_model(cls, model: JournalModel) -> JournalInfo:
        return cls(
            id=model.id,
            code=model.code,
            label=model.label,
            journal_type=JournalType(model.journal_type),
        )


@dataclass(frozen=True)
class EntryLineRecord:
    id: UUID
    line_seq: int
    account_id: UUID
    debit: Decimal
    credit: Decimal
    debit_local: Decimal
    credit_local: Decimal
    label: str | None
    third_party_id: UUID | None
    cost_center_id: UUID | None
    matching_code: str | None
    matching_date: date | None

    @classmethod
    def from_model(cls, model: EntryLineModel) -> EntryLineRecord:
        return cls(
            id=model.id,
            line_seq=model.line_seq,
            account_id=model.account_id,
            debit=model.debit,
            credit=model.credit,
            debit_local=model.debit_local,
            credit_local=model.credit_local,
            label=model.label,
            third_party_id=model.third_party_id,
            cost_center_id=model.cost_center_id,
            matching_code=model.matching_code,
            matching_date=model.matching_date,
        )


@dataclass(frozen=True)
class EntryRecord:
    """Snapshot of a persisted accounting entry and its lines."""

    id: UUID
    company_id: UUID
    journal_id: UUID
    fiscal_year_id: UUID
    reference_number: str
    entry_date: date
    description: str | None
    currency: str
    exchange_rate: Decimal
    status: EntryStatus
    lines: tuple[EntryLineRecord, ...]
    validated_at: datetime | None = None
    deleted_at: datetime | None = None
    source_type: SourceDocumentType | None = None
    source_id: str | None = None

    @property
    def total_debit(self) -> Decimal:
        return sum((line.debit for line in self.lines), ZERO)

    @property
    def total_credit(self) -> Decimal:
        return sum((line.credit for line in self.lines), ZERO)

    @property
    def is_trashed(self) -> bool:
        return self.deleted_at is not None

    @classmethod
    def from_model(cls, model: AccountingEntryModel) -> EntryRecord:
        return cls(
            id=model.id,
            company_id=model.company_id,
            journal_id=model.journal_id,
            fiscal_year_id=model.fiscal_year_id,
            reference_number=model.reference_number,
            entry_date=model.entry_date,
            description=model.description,
            currency=model.currency,
            exchange_rate=model.exchange_rate,
            status=EntryStatus(model.status),
            lines=tuple(
                EntryLineRecord.from_model(line)
                for line in sorted(model.lines, key=lambda l: l.line_seq)
            ),
            validated_at=model.validated_at,
            deleted_at=model.deleted_at,
            source_type=(
                SourceDocumentType(model.source_type) if model.source_type else None
            ),
            source_id=model.source_id,
        )


@dataclass(frozen=True)
class EntryCreationResult:
    """A created entry plus the advisory warnings raised while validating it."""

    entry: EntryRecord
    warnings: tuple[str, ...] = field(default_factory=tuple)
