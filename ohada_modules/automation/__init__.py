"""
Posting Automation Module (``ohada_modules.automation``).

Posts invoices, customer payments, purchase receptions, payslips and salary
payments to the ledger as VALIDATED entries, with a configurable failure
policy per flow.
"""

from ohada_modules.automation.config import (
    AccountPrefixes,
    AutomationConfig,
    AutomationFlow,
    FailurePolicy,
    JournalCodes,
)
from ohada_modules.automation.service import PostingAutomationService

__all__ = [
    "AccountPrefixes",
    "AutomationConfig",
    "AutomationFlow",
    "FailurePolicy",
    "JournalCodes",
    "PostingAutomationService",
]
