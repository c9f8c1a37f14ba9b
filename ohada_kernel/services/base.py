"""
BaseService -- abstract base for all kernel services.

Responsibility:
    Common constructor and session contract.  Services persist through
    ``session.flush()`` and never commit or roll back the caller's
    transaction; the caller (HTTP layer, job, ``session_scope()``) owns it.

Invariants enforced:
    - Multi-row writes that must be all-or-nothing run inside a SAVEPOINT
      (``session.begin_nested()``), so a failure leaves the caller's
      transaction exactly as it was.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from ohada_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """Abstract base class for all kernel services."""

    def __init__(self, session: Session):
        self.session = session
