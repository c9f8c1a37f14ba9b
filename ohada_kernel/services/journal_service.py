"""JournalService -- registers posting channels for a company."""

from uuid import UUID

from ohada_kernel.domain.dtos import JournalInfo
from ohada_kernel.domain.tenant import TenantContext
from ohada_kernel.domain.values import JournalType
from ohada_kernel.exceptions import DuplicateJournalCodeError, JournalNotFoundError
from ohada_kernel.logging_config import get_logger
from ohada_kernel.models.journal import Journal
from ohada_kernel.repositories.journals import JournalRepository
from ohada_kernel.services.base import BaseService

logger = get_logger("services.journal")


class JournalService(BaseService[Journal]):
    def __init__(self, session):
        super().__init__(session)
        self._journals = JournalRepository(session)

    def create_journal(
        self,
        ctx: TenantContext,
        code: str,
        label: str,
        journal_type: JournalType,
        actor_id: UUID,
    ) -> JournalInfo:
        code = code.strip().upper()
        if self._journals.get_by_code(ctx, code) is not None:
            raise DuplicateJournalCodeError(code)
        journal = self._journals.add(
            ctx,
            Journal(code=code, label=label, journal_type=journal_type, created_by_id=actor_id),
        )
        self.session.flush()
        logger.info("journal_created", extra={"journal_code": code, "journal_type": journal_type.value})
        return JournalInfo.from_model(journal)

    def get_by_code(self, ctx: TenantContext, code: str) -> JournalInfo:
        journal = self._journals.get_by_code(ctx, code)
        if journal is None:
            raise JournalNotFoundError(code)
        return JournalInfo.from_model(journal)
