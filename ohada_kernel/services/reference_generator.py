"""
ReferenceGenerator -- sequential document references per journal and year.

Format: ``{journal_code}-{year}-{sequence}``, sequence zero-padded to four
digits by default (``VT-2026-0001``).  The next number continues from the
highest existing reference sharing the prefix, soft-deleted entries
included.  Nothing is persisted here: uniqueness is enforced by the
``uq_entry_journal_reference`` constraint and EntryService retries on a
conflict.
"""

from datetime import date
from uuid import UUID

from sqlalchemy.orm import Session

from ohada_kernel.domain.tenant import TenantContext
from ohada_kernel.exceptions import JournalNotFoundError
from ohada_kernel.logging_config import get_logger
from ohada_kernel.models.accounting_entry import AccountingEntry
from ohada_kernel.repositories.entries import EntryRepository
from ohada_kernel.repositories.journals import JournalRepository
from ohada_kernel.services.base import BaseService

logger = get_logger("services.reference_generator")

DEFAULT_SEQUENCE_WIDTH = 4


def reference_prefix(journal_code: str, year: int) -> str:
    return f"{journal_code}-{year}-"


def format_reference(
    journal_code: str, year: int, sequence: int, width: int = DEFAULT_SEQUENCE_WIDTH
) -> str:
    return f"{reference_prefix(journal_code, year)}{sequence:0{width}d}"


def highest_sequence(references: list[str], prefix: str) -> int:
    """Largest numeric suffix among ``references``; 0 when there is none.

    Compared numerically so VT-2026-10000 outranks VT-2026-9999.
    """
    highest = 0
    for reference in references:
        suffix = reference[len(prefix):]
        if suffix.isdigit():
            highest = max(highest, int(suffix))
    return highest


class ReferenceGenerator(BaseService[AccountingEntry]):
    def __init__(self, session: Session, sequence_width: int = DEFAULT_SEQUENCE_WIDTH):
        super().__init__(session)
        self._journals = JournalRepository(session)
        self._entries = EntryRepository(session)
        self._width = sequence_width

    def next_reference(self, ctx: TenantContext, journal_id: UUID, on_date: date) -> str:
        """
        Next free reference of ``journal_id`` for the year of ``on_date``.

        Raises:
            JournalNotFoundError: The journal does not belong to the company.
        """
        journal = self._journals.get(ctx, journal_id)
        if journal is None:
            raise JournalNotFoundError(str(journal_id))

        prefix = reference_prefix(journal.code, on_date.year)
        existing = self._entries.references_with_prefix(ctx, journal.id, prefix)
        reference = format_reference(
            journal.code, on_date.year, highest_sequence(existing, prefix) + 1, self._width
        )
        logger.debug(
            "reference_generated",
            extra={"journal_code": journal.code, "reference_number": reference},
        )
        return reference
