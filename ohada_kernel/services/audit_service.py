"""
AuditTrailService -- append-only record of ledger mutations.

Every entry transition (create, update, validate, soft-delete, restore,
purge) and every chart/fiscal-year change writes one AuditRecord carrying a
canonical JSON payload and its SHA-256 hash.  Timestamps come from the
injected Clock.
"""

from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ohada_kernel.domain.clock import Clock, SystemClock
from ohada_kernel.domain.tenant import TenantContext
from ohada_kernel.logging_config import get_logger
from ohada_kernel.models.audit_record import AuditAction, AuditRecord
from ohada_kernel.services.base import BaseService
from ohada_kernel.utils.hashing import hash_payload, to_json_payload

logger = get_logger("services.audit")


class AuditTrailService(BaseService[AuditRecord]):
    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()

    def record(
        self,
        ctx: TenantContext,
        entity_type: str,
        entity_id: UUID,
        action: AuditAction,
        actor_id: UUID,
        payload: dict[str, Any],
    ) -> AuditRecord:
        json_payload = to_json_payload(payload)
        record = AuditRecord(
            company_id=ctx.company_id,
            entity_type=entity_type,
            entity_id=entity_id,
            action=action,
            actor_id=actor_id,
            occurred_at=self._clock.now(),
            payload=json_payload,
            payload_hash=hash_payload(json_payload),
        )
        self.session.add(record)
        self.session.flush()
        logger.debug(
            "audit_recorded",
            extra={
                "entity_type": entity_type,
                "entity_id": str(entity_id),
                "action": action.value,
            },
        )
        return record

    def history(self, ctx: TenantContext, entity_id: UUID) -> list[AuditRecord]:
        return list(
            self.session.execute(
                select(AuditRecord)
                .where(AuditRecord.company_id == ctx.company_id)
                .where(AuditRecord.entity_id == entity_id)
                .order_by(AuditRecord.occurred_at, AuditRecord.id)
            ).scalars()
        )
