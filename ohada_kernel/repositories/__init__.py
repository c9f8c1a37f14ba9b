"""Tenant-scoped repositories, one per entity."""

from ohada_kernel.repositories.accounts import AccountRepository
from ohada_kernel.repositories.base import TenantScopedRepository
from ohada_kernel.repositories.entries import EntryRepository
from ohada_kernel.repositories.fiscal_years import FiscalYearRepository
from ohada_kernel.repositories.journals import JournalRepository
from ohada_kernel.repositories.parties import CostCenterRepository, ThirdPartyRepository

__all__ = [
    "AccountRepository",
    "CostCenterRepository",
    "EntryRepository",
    "FiscalYearRepository",
    "JournalRepository",
    "TenantScopedRepository",
    "ThirdPartyRepository",
]
