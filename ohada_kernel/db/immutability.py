"""
ORM-level immutability enforcement.

===============================================================================
WHY THIS EXISTS
===============================================================================

Service methods check entry status and fiscal year state before they write.
These listeners repeat the checks at flush time, so that code paths that
bypass the services (scripts, ad-hoc sessions, future modules) still cannot
rewrite validated history.

    session.flush()
         |
         v
    [before_flush]  --> account deletion check --> AccountReferencedError
    [before_update] --> _check_*_immutability() --> ImmutabilityViolationError
    [before_delete] --> _check_audit_record_delete()
         |
         v
    SQL sent to database (only if checks pass)

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity            | When Immutable                      | Allowed
------------------|-------------------------------------|---------------------------
AccountingEntry   | Once status = VALIDATED             | updated_at / updated_by_id
EntryLine         | When parent entry is VALIDATED      | nothing
AuditRecord       | Always                              | nothing
FiscalYear        | Once is_closed = True               | updated_at / updated_by_id
Account (delete)  | While referenced by entry lines     | -

Purge (hard delete) of an entry is not blocked; the service records it in the
audit trail.
"""

from sqlalchemy import event, func, inspect, select
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import get_history

from ohada_kernel.domain.values import EntryStatus
from ohada_kernel.exceptions import AccountReferencedError, ImmutabilityViolationError
from ohada_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

_AUDIT_FIELDS = ("updated_at", "updated_by_id")


def _changed_fields(target) -> list[str]:
    insp = inspect(target)
    return [
        attr.key
        for attr in insp.attrs
        if attr.key not in _AUDIT_FIELDS and attr.history.has_changes()
    ]


def _blocked(entity_type: str, entity_id, operation: str, reason: str, **extra):
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(entity_id),
            "operation": operation,
            **extra,
        },
    )
    return ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(entity_id),
        reason=reason,
    )


def _check_account_deletion_before_flush(session, flush_context, instances):
    """Accounts referenced by entry lines cannot be deleted."""
    from ohada_kernel.models.account import Account
    from ohada_kernel.models.accounting_entry import EntryLine

    for obj in list(session.deleted):
        if not isinstance(obj, Account):
            continue
        with session.no_autoflush:
            references = session.execute(
                select(func.count(EntryLine.id)).where(EntryLine.account_id == obj.id)
            ).scalar_one()
        if references:
            logger.error(
                "immutability_violation_blocked",
                extra={
                    "entity_type": "Account",
                    "entity_id": str(obj.id),
                    "operation": "DELETE",
                    "reason": "account_has_entry_lines",
                },
            )
            raise AccountReferencedError(obj.code)


def _check_entry_immutability(mapper, connection, target):
    """
    Prevent updates to validated entries.

    Logic:
        1. Status changing FROM validated: block.
        2. Status unchanged AND validated: block any non-audit change.
        3. Status changing TO validated (PROVISIONAL -> VALIDATED): allow.
    """
    status_history = get_history(target, "status")

    was_validated = False
    if status_history.deleted:
        was_validated = status_history.deleted[0] == EntryStatus.VALIDATED
    elif not status_history.added:
        was_validated = target.status == EntryStatus.VALIDATED

    if not was_validated:
        return

    changed = _changed_fields(target)
    # Relationship collections show up as changed when lines are touched;
    # line-level changes are caught by the EntryLine listener.
    changed = [name for name in changed if name != "lines"]
    if changed:
        raise _blocked(
            "AccountingEntry",
            target.id,
            "UPDATE",
            f"Cannot modify field '{changed[0]}' on a validated entry",
            field=changed[0],
        )


def _check_entry_line_immutability(mapper, connection, target):
    """Lines of a validated entry cannot change."""
    entry = target.entry
    if entry is None:
        return
    history = get_history(entry, "status")
    was_validated = (
        history.deleted[0] == EntryStatus.VALIDATED
        if history.deleted
        else entry.status == EntryStatus.VALIDATED
    )
    if was_validated:
        raise _blocked(
            "EntryLine",
            target.id,
            "UPDATE",
            "Entry lines cannot be modified once the entry is validated",
        )


def _check_entry_line_delete(mapper, connection, target):
    """Lines of a validated entry only go away with their entry (purge)."""
    entry = target.entry
    if entry is None or entry.status != EntryStatus.VALIDATED:
        return
    session = Session.object_session(target)
    if session is not None and entry in session.deleted:
        return
    raise _blocked(
        "EntryLine",
        target.id,
        "DELETE",
        "Entry lines cannot be removed from a validated entry",
    )


def _check_audit_record_immutability(mapper, connection, target):
    raise _blocked("AuditRecord", target.id, "UPDATE", "Audit records are append-only")


def _check_audit_record_delete(mapper, connection, target):
    raise _blocked("AuditRecord", target.id, "DELETE", "Audit records are append-only")


def _check_fiscal_year_immutability(mapper, connection, target):
    """Closing is one-way; a closed year's bounds cannot move."""
    closed_history = get_history(target, "is_closed")
    if closed_history.deleted and closed_history.deleted[0] is True:
        raise _blocked(
            "FiscalYear",
            target.id,
            "UPDATE",
            "A closed fiscal year cannot be reopened",
        )
    if closed_history.added and closed_history.added[0] is True:
        # The closing transition itself
        return
    if target.is_closed:
        changed = _changed_fields(target)
        if changed:
            raise _blocked(
                "FiscalYear",
                target.id,
                "UPDATE",
                f"Cannot modify field '{changed[0]}' on a closed fiscal year",
            )


def register_immutability_listeners():
    """
    Register all immutability listeners.  Idempotent.

    Called once at startup by create_tables() and by the test
    configuration, after the models are imported.
    """
    from ohada_kernel.models.accounting_entry import AccountingEntry, EntryLine
    from ohada_kernel.models.audit_record import AuditRecord
    from ohada_kernel.models.fiscal_year import FiscalYear

    _listen(Session, "before_flush", _check_account_deletion_before_flush)
    _listen(AccountingEntry, "before_update", _check_entry_immutability)
    _listen(EntryLine, "before_update", _check_entry_line_immutability)
    _listen(EntryLine, "before_delete", _check_entry_line_delete)
    _listen(AuditRecord, "before_update", _check_audit_record_immutability)
    _listen(AuditRecord, "before_delete", _check_audit_record_delete)
    _listen(FiscalYear, "before_update", _check_fiscal_year_immutability)


def _listen(target, event_name, listener_fn):
    if not event.contains(target, event_name, listener_fn):
        event.listen(target, event_name, listener_fn)
