"""ORM models for the OHADA ledger kernel."""

from ohada_kernel.models.account import Account
from ohada_kernel.models.accounting_entry import AccountingEntry, EntryLine
from ohada_kernel.models.audit_record import AuditAction, AuditRecord
from ohada_kernel.models.company import Branch, Company
from ohada_kernel.models.fiscal_year import FiscalYear
from ohada_kernel.models.journal import Journal
from ohada_kernel.models.third_party import CostCenter, ThirdParty, ThirdPartyKind

__all__ = [
    "Account",
    "AccountingEntry",
    "AuditAction",
    "AuditRecord",
    "Branch",
    "Company",
    "CostCenter",
    "EntryLine",
    "FiscalYear",
    "Journal",
    "ThirdParty",
    "ThirdPartyKind",
]
