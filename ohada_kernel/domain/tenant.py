"""
TenantContext -- explicit tenant scope for every ledger operation.

Services and repositories receive the context as an argument.  Nothing in
the kernel reads the current company from ambient or thread-local state.
"""

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True)
class TenantContext:
    """The company (and optionally the branch) an operation acts for."""

    company_id: UUID
    branch_id: UUID | None = None
