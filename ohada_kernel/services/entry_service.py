"""
EntryService -- the ledger entry engine.

Responsibility:
    Creates, updates, validates, trashes, restores and purges accounting
    entries, enforcing the ledger invariants before anything is written and
    re-checking the mutable state (entry status, fiscal year closure) under a
    row lock at write time.

Architecture position:
    Kernel > Services.  Uses the tenant-scoped repositories, OhadaValidator,
    ReferenceGenerator and AuditTrailService.  Flush-only: the caller owns
    the transaction.

Invariants enforced:
    - Balance: a VALIDATED entry has sum(debit) == sum(credit) within the
      balance tolerance (0.01), whether created VALIDATED or validated later.
    - Closed period: nothing is posted to, or mutated in, a closed fiscal year.
    - Immutability: VALIDATED is terminal; validated entries are never
      updated or trashed.
    - Atomicity: each mutating operation runs in a SAVEPOINT, so the header
      and all lines are written together or not at all.
    - Reference uniqueness: backed by uq_entry_journal_reference; generated
      references are retried on conflict, explicit ones are rejected.

State machine:
    PROVISIONAL -> VALIDATED            (validate, terminal)
    PROVISIONAL <-> TRASHED             (soft_delete / restore)
    any -> PURGED                       (purge, hard delete)

Failure modes:
    - InvalidFiscalYearError, ClosedPeriodError, JournalNotFoundError
    - UnbalancedEntryError, EntryValidationFailedError, DuplicateReferenceError
    - EntryNotFoundError, ValidatedEntryImmutableError, InvalidEntryStatusError

Audit relevance:
    Every transition writes an AuditRecord and logs a structured event.
"""

from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ohada_kernel.db.types import BALANCE_TOLERANCE, ZERO, to_local
from ohada_kernel.domain.clock import Clock, SystemClock
from ohada_kernel.domain.dtos import (
    EntryCreationResult,
    EntryDraft,
    EntryLineDraft,
    EntryPatch,
    EntryRecord,
)
from ohada_kernel.domain.tenant import TenantContext
from ohada_kernel.domain.values import EntryStatus
from ohada_kernel.exceptions import (
    ClosedPeriodError,
    DuplicateReferenceError,
    EntryNotFoundError,
    EntryValidationFailedError,
    InvalidEntryStatusError,
    InvalidFiscalYearError,
    JournalNotFoundError,
    UnbalancedEntryError,
    ValidatedEntryImmutableError,
)
from ohada_kernel.logging_config import LogContext, get_logger
from ohada_kernel.models.accounting_entry import AccountingEntry, EntryLine
from ohada_kernel.models.audit_record import AuditAction
from ohada_kernel.models.fiscal_year import FiscalYear
from ohada_kernel.repositories.entries import EntryRepository
from ohada_kernel.repositories.fiscal_years import FiscalYearRepository
from ohada_kernel.repositories.journals import JournalRepository
from ohada_kernel.services.audit_service import AuditTrailService
from ohada_kernel.services.base import BaseService
from ohada_kernel.services.ohada_validator import OhadaValidator
from ohada_kernel.services.reference_generator import (
    DEFAULT_SEQUENCE_WIDTH,
    ReferenceGenerator,
)

logger = get_logger("services.entry")

DEFAULT_LOCAL_CURRENCY = "CDF"
DEFAULT_REFERENCE_ATTEMPTS = 3

_REFERENCE_CONSTRAINT_MARKERS = (
    "uq_entry_journal_reference",
    "accounting_entries.reference_number",
)


def _is_reference_conflict(exc: IntegrityError) -> bool:
    message = str(exc.orig) if exc.orig is not None else str(exc)
    return any(marker in message for marker in _REFERENCE_CONSTRAINT_MARKERS)


class EntryService(BaseService[AccountingEntry]):
    """
    Ledger entry engine.

    Usage:
        service = EntryService(session, clock)
        result = service.create(ctx, draft, actor_id)
        service.validate(ctx, result.entry.id, actor_id)
        session.commit()
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        *,
        local_currency: str = DEFAULT_LOCAL_CURRENCY,
        balance_tolerance: Decimal = BALANCE_TOLERANCE,
        reference_sequence_width: int = DEFAULT_SEQUENCE_WIDTH,
        max_reference_attempts: int = DEFAULT_REFERENCE_ATTEMPTS,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._local_currency = local_currency
        self._tolerance = balance_tolerance
        self._max_reference_attempts = max_reference_attempts
        self._entries = EntryRepository(session)
        self._fiscal_years = FiscalYearRepository(session)
        self._journals = JournalRepository(session)
        self._validator = OhadaValidator(session)
        self._references = ReferenceGenerator(session, reference_sequence_width)
        self._audit = AuditTrailService(session, self._clock)

    # =========================================================================
    # Reads
    # =========================================================================

    def get(self, ctx: TenantContext, entry_id: UUID) -> EntryRecord:
        entry = self._entries.get(ctx, entry_id)
        if entry is None:
            raise EntryNotFoundError(str(entry_id))
        return EntryRecord.from_model(entry)

    def list_entries(
        self,
        ctx: TenantContext,
        fiscal_year_id: UUID | None = None,
        journal_id: UUID | None = None,
        status: EntryStatus | None = None,
    ) -> list[EntryRecord]:
        return [
            EntryRecord.from_model(entry)
            for entry in self._entries.list_live(ctx, fiscal_year_id, journal_id, status)
        ]

    def list_trashed(self, ctx: TenantContext) -> list[EntryRecord]:
        return [EntryRecord.from_model(entry) for entry in self._entries.list_trashed(ctx)]

    # =========================================================================
    # Create
    # =========================================================================

    def create(
        self, ctx: TenantContext, draft: EntryDraft, actor_id: UUID
    ) -> EntryCreationResult:
        """
        Persist a new entry with its lines.

        Preconditions:
            - The fiscal year and journal belong to ctx.company_id.
        Postconditions:
            - The entry is flushed with a unique reference and local amounts.
            - A VALIDATED draft was balanced within tolerance.

        Raises:
            InvalidFiscalYearError, ClosedPeriodError, JournalNotFoundError,
            UnbalancedEntryError, EntryValidationFailedError,
            DuplicateReferenceError.
        """
        with LogContext.bind_tenant(ctx, actor_id=actor_id):
            # Locking the year also serializes reference allocation within it
            fiscal_year = self._lock_fiscal_year(ctx, draft.fiscal_year_id)
            if fiscal_year.is_closed:
                raise ClosedPeriodError(fiscal_year.code, draft.entry_date.isoformat())

            journal = self._journals.get(ctx, draft.journal_id)
            if journal is None:
                raise JournalNotFoundError(str(draft.journal_id))

            if draft.status == EntryStatus.VALIDATED:
                self._require_balanced(draft.total_debit, draft.total_credit)

            result = self._validator.validate_entry(ctx, draft)
            if not result.is_valid:
                raise EntryValidationFailedError(result.errors, result.warnings)

            entry = self._insert_with_reference(ctx, draft, journal.code, actor_id)

            self._audit.record(
                ctx,
                "AccountingEntry",
                entry.id,
                AuditAction.ENTRY_CREATED,
                actor_id,
                self._snapshot(entry),
            )
            logger.info(
                "entry_created",
                extra={
                    "entry_id": str(entry.id),
                    "reference_number": entry.reference_number,
                    "status": EntryStatus(entry.status).value,
                    "line_count": len(entry.lines),
                    "warning_count": len(result.warnings),
                },
            )
            return EntryCreationResult(EntryRecord.from_model(entry), result.warnings)

    def _insert_with_reference(
        self, ctx: TenantContext, draft: EntryDraft, journal_code: str, actor_id: UUID
    ) -> AccountingEntry:
        explicit = draft.reference_number is not None
        attempt = 0
        while True:
            attempt += 1
            reference = draft.reference_number or self._references.next_reference(
                ctx, draft.journal_id, draft.entry_date
            )
            entry = self._build_entry(ctx, draft, reference, actor_id)
            try:
                with self.session.begin_nested():
                    self.session.add(entry)
                    self.session.flush()
                return entry
            except IntegrityError as exc:
                if not _is_reference_conflict(exc):
                    raise
                if explicit or attempt >= self._max_reference_attempts:
                    raise DuplicateReferenceError(reference, journal_code) from exc
                logger.warning(
                    "reference_conflict_retry",
                    extra={"reference_number": reference, "attempt": attempt},
                )

    def _build_entry(
        self, ctx: TenantContext, draft: EntryDraft, reference: str, actor_id: UUID
    ) -> AccountingEntry:
        validated = draft.status == EntryStatus.VALIDATED
        entry = AccountingEntry(
            company_id=ctx.company_id,
            branch_id=ctx.branch_id,
            journal_id=draft.journal_id,
            fiscal_year_id=draft.fiscal_year_id,
            reference_number=reference,
            entry_date=draft.entry_date,
            description=draft.description,
            currency=draft.currency or self._local_currency,
            exchange_rate=draft.exchange_rate,
            status=draft.status,
            validated_at=self._clock.now() if validated else None,
            source_type=draft.source_type,
            source_id=draft.source_id,
            created_by_id=actor_id,
        )
        entry.lines = self._build_lines(ctx, draft.lines, draft.exchange_rate, actor_id)
        return entry

    def _build_lines(
        self,
        ctx: TenantContext,
        lines: tuple[EntryLineDraft, ...],
        exchange_rate: Decimal,
        actor_id: UUID,
    ) -> list[EntryLine]:
        if exchange_rate <= ZERO:
            raise ValueError(f"Exchange rate must be positive, got {exchange_rate}")
        return [
            EntryLine(
                company_id=ctx.company_id,
                branch_id=ctx.branch_id,
                line_seq=seq,
                account_id=line.account_id,
                third_party_id=line.third_party_id,
                cost_center_id=line.cost_center_id,
                debit=line.debit,
                credit=line.credit,
                debit_local=to_local(line.debit, exchange_rate),
                credit_local=to_local(line.credit, exchange_rate),
                label=line.label,
                matching_code=line.matching_code,
                matching_date=line.matching_date,
                created_by_id=actor_id,
            )
            for seq, line in enumerate(lines, start=1)
        ]

    # =========================================================================
    # Update
    # =========================================================================

    def update(
        self, ctx: TenantContext, entry_id: UUID, patch: EntryPatch, actor_id: UUID
    ) -> EntryRecord:
        """
        Replace mutable fields of a PROVISIONAL entry.

        Lines, when given, replace the existing lines as a whole.  A new
        exchange rate recomputes local amounts.

        Raises:
            EntryNotFoundError, ValidatedEntryImmutableError,
            InvalidFiscalYearError, ClosedPeriodError, JournalNotFoundError,
            EntryValidationFailedError, DuplicateReferenceError.
        """
        with LogContext.bind_tenant(ctx, actor_id=actor_id, entry_id=entry_id):
            entry = self._lock_entry(ctx, entry_id)
            if entry.status == EntryStatus.VALIDATED:
                raise ValidatedEntryImmutableError(str(entry_id), "update")

            current_year = self._lock_fiscal_year(ctx, entry.fiscal_year_id)
            if current_year.is_closed:
                raise ClosedPeriodError(current_year.code, entry.entry_date.isoformat())
            target_year = current_year
            if patch.fiscal_year_id is not None and patch.fiscal_year_id != entry.fiscal_year_id:
                target_year = self._lock_fiscal_year(ctx, patch.fiscal_year_id)
                if target_year.is_closed:
                    raise ClosedPeriodError(target_year.code)

            journal_id = patch.journal_id or entry.journal_id
            journal = self._journals.get(ctx, journal_id)
            if journal is None:
                raise JournalNotFoundError(str(journal_id))

            exchange_rate = (
                patch.exchange_rate if patch.exchange_rate is not None else entry.exchange_rate
            )
            lines = patch.lines if patch.lines is not None else tuple(
                EntryLineDraft(
                    account_id=line.account_id,
                    debit=line.debit,
                    credit=line.credit,
                    label=line.label,
                    third_party_id=line.third_party_id,
                    cost_center_id=line.cost_center_id,
                    matching_code=line.matching_code,
                    matching_date=line.matching_date,
                )
                for line in entry.lines
            )
            merged = EntryDraft(
                journal_id=journal_id,
                fiscal_year_id=target_year.id,
                entry_date=patch.entry_date or entry.entry_date,
                lines=lines,
                description=patch.description if patch.description is not None else entry.description,
                status=EntryStatus.PROVISIONAL,
                reference_number=patch.reference_number or entry.reference_number,
                currency=patch.currency or entry.currency,
                exchange_rate=exchange_rate,
            )
            result = self._validator.validate_entry(ctx, merged)
            if not result.is_valid:
                raise EntryValidationFailedError(result.errors, result.warnings)

            changed = self._changed_fields(entry, merged, patch)
            try:
                with self.session.begin_nested():
                    entry.journal_id = merged.journal_id
                    entry.fiscal_year_id = merged.fiscal_year_id
                    entry.entry_date = merged.entry_date
                    entry.description = merged.description
                    entry.reference_number = merged.reference_number
                    entry.currency = merged.currency
                    entry.exchange_rate = merged.exchange_rate
                    entry.updated_by_id = actor_id
                    if patch.lines is not None or patch.exchange_rate is not None:
                        entry.lines = self._build_lines(
                            ctx, merged.lines, merged.exchange_rate, actor_id
                        )
                    self.session.flush()
            except IntegrityError as exc:
                if _is_reference_conflict(exc):
                    raise DuplicateReferenceError(merged.reference_number, journal.code) from exc
                raise

            self._audit.record(
                ctx,
                "AccountingEntry",
                entry.id,
                AuditAction.ENTRY_UPDATED,
                actor_id,
                {"changed": changed, "entry": self._snapshot(entry)},
            )
            logger.info(
                "entry_updated",
                extra={"entry_id": str(entry.id), "changed_fields": changed},
            )
            return EntryRecord.from_model(entry)

    @staticmethod
    def _changed_fields(entry: AccountingEntry, merged: EntryDraft, patch: EntryPatch) -> list[str]:
        changed = [
            name
            for name in (
                "journal_id",
                "fiscal_year_id",
                "entry_date",
                "description",
                "reference_number",
                "currency",
                "exchange_rate",
            )
            if getattr(entry, name) != getattr(merged, name)
        ]
        if patch.lines is not None:
            changed.append("lines")
        return changed

    # =========================================================================
    # Validate
    # =========================================================================

    def validate(self, ctx: TenantContext, entry_id: UUID, actor_id: UUID) -> EntryRecord:
        """
        Transition PROVISIONAL -> VALIDATED.  Irreversible.

        Status, balance and fiscal year closure are read under a row lock,
        so a concurrent validation or year close cannot slip through.

        Raises:
            EntryNotFoundError, InvalidEntryStatusError, ClosedPeriodError,
            UnbalancedEntryError.
        """
        with LogContext.bind_tenant(ctx, actor_id=actor_id, entry_id=entry_id):
            entry = self._lock_entry(ctx, entry_id)
            if entry.status != EntryStatus.PROVISIONAL:
                raise InvalidEntryStatusError(
                    str(entry_id),
                    EntryStatus(entry.status).value,
                    EntryStatus.PROVISIONAL.value,
                )

            fiscal_year = self._lock_fiscal_year(ctx, entry.fiscal_year_id)
            if fiscal_year.is_closed:
                raise ClosedPeriodError(fiscal_year.code, entry.entry_date.isoformat())

            self._require_balanced(entry.total_debit, entry.total_credit)

            with self.session.begin_nested():
                entry.status = EntryStatus.VALIDATED
                entry.validated_at = self._clock.now()
                entry.updated_by_id = actor_id
                self.session.flush()

            self._audit.record(
                ctx,
                "AccountingEntry",
                entry.id,
                AuditAction.ENTRY_VALIDATED,
                actor_id,
                {"reference_number": entry.reference_number},
            )
            logger.info(
                "entry_validated",
                extra={
                    "entry_id": str(entry.id),
                    "reference_number": entry.reference_number,
                },
            )
            return EntryRecord.from_model(entry)

    # =========================================================================
    # Trash / restore / purge
    # =========================================================================

    def soft_delete(self, ctx: TenantContext, entry_id: UUID, actor_id: UUID) -> EntryRecord:
        """
        Move a PROVISIONAL entry of an open year to the trash.

        Raises:
            EntryNotFoundError, ValidatedEntryImmutableError.
        """
        entry = self._lock_entry(ctx, entry_id)
        fiscal_year = self._lock_fiscal_year(ctx, entry.fiscal_year_id)
        if entry.status == EntryStatus.VALIDATED or fiscal_year.is_closed:
            raise ValidatedEntryImmutableError(str(entry_id), "delete")

        with self.session.begin_nested():
            entry.deleted_at = self._clock.now()
            entry.updated_by_id = actor_id
            self.session.flush()

        self._audit.record(
            ctx, "AccountingEntry", entry.id, AuditAction.ENTRY_SOFT_DELETED, actor_id,
            {"reference_number": entry.reference_number},
        )
        logger.info("entry_soft_deleted", extra={"entry_id": str(entry.id)})
        return EntryRecord.from_model(entry)

    def restore(self, ctx: TenantContext, entry_id: UUID, actor_id: UUID) -> EntryRecord:
        """
        Take an entry out of the trash.

        Raises:
            EntryNotFoundError: The entry is unknown or not in the trash.
        """
        entry = self._entries.get_trashed(ctx, entry_id)
        if entry is None:
            raise EntryNotFoundError(str(entry_id), "not in trash")

        with self.session.begin_nested():
            entry.deleted_at = None
            entry.updated_by_id = actor_id
            self.session.flush()

        self._audit.record(
            ctx, "AccountingEntry", entry.id, AuditAction.ENTRY_RESTORED, actor_id,
            {"reference_number": entry.reference_number},
        )
        logger.info("entry_restored", extra={"entry_id": str(entry.id)})
        return EntryRecord.from_model(entry)

    def purge(self, ctx: TenantContext, entry_id: UUID, actor_id: UUID) -> None:
        """
        Hard-delete an entry and its lines, whatever its status.

        Administrative escape hatch.  The audit record keeps a full snapshot.

        Raises:
            EntryNotFoundError
        """
        entry = self._entries.get_any(ctx, entry_id)
        if entry is None:
            raise EntryNotFoundError(str(entry_id))

        snapshot = self._snapshot(entry)
        with self.session.begin_nested():
            self.session.delete(entry)
            self.session.flush()

        self._audit.record(
            ctx, "AccountingEntry", entry_id, AuditAction.ENTRY_PURGED, actor_id, snapshot
        )
        logger.warning(
            "entry_purged",
            extra={
                "entry_id": str(entry_id),
                "reference_number": snapshot["reference_number"],
                "status": snapshot["status"],
            },
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _lock_entry(self, ctx: TenantContext, entry_id: UUID) -> AccountingEntry:
        entry = self._entries.get_for_update(ctx, entry_id)
        if entry is None:
            raise EntryNotFoundError(str(entry_id))
        return entry

    def _lock_fiscal_year(self, ctx: TenantContext, fiscal_year_id: UUID) -> FiscalYear:
        fiscal_year = self._fiscal_years.get_for_update(ctx, fiscal_year_id)
        if fiscal_year is None:
            raise InvalidFiscalYearError(str(fiscal_year_id))
        return fiscal_year

    def _require_balanced(self, total_debit: Decimal, total_credit: Decimal) -> None:
        if abs(total_debit - total_credit) > self._tolerance:
            raise UnbalancedEntryError(total_debit, total_credit)

    @staticmethod
    def _snapshot(entry: AccountingEntry) -> dict[str, Any]:
        return {
            "reference_number": entry.reference_number,
            "status": EntryStatus(entry.status).value,
            "entry_date": entry.entry_date,
            "journal_id": entry.journal_id,
            "fiscal_year_id": entry.fiscal_year_id,
            "currency": entry.currency,
            "exchange_rate": entry.exchange_rate,
            "lines": [
                {
                    "account_id": line.account_id,
                    "debit": line.debit,
                    "credit": line.credit,
                    "third_party_id": line.third_party_id,
                }
                for line in entry.lines
            ],
        }
