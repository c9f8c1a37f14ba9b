"""
Typed exception hierarchy for the OHADA ledger.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers (HTTP layer, background jobs, posting automation) must react to ledger
failures by type, never by parsing messages:

    try:
        entries.validate(ctx, entry_id, actor_id)
    except ClosedPeriodError as e:
        api_response(code=e.code, fiscal_year=e.fiscal_year_code)

Every exception carries:
  1. A class-level ``code`` (machine-readable, API-safe)
  2. Structured attributes (not just a message string)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    OhadaLedgerError (base)
    |
    +-- EntryError
    |   +-- EntryNotFoundError
    |   +-- UnbalancedEntryError
    |   +-- ValidatedEntryImmutableError
    |   +-- InvalidEntryStatusError
    |   +-- EntryValidationFailedError
    |   +-- DuplicateReferenceError
    |
    +-- PeriodError
    |   +-- ClosedPeriodError
    |   +-- OutOfPeriodError
    |   +-- InvalidFiscalYearError
    |   +-- FiscalYearOverlapError
    |   +-- ProvisionalEntriesRemainError
    |
    +-- AccountError
    |   +-- InvalidAccountClassError
    |   +-- AccountNotFoundError
    |   +-- DuplicateAccountCodeError
    |   +-- AccountReferencedError
    |
    +-- JournalError
    |   +-- JournalNotFoundError
    |   +-- DuplicateJournalCodeError
    |
    +-- AutomationError
    |   +-- SourceDocumentNotFoundError
    |   +-- SourceDocumentStateError
    |   +-- AutomationResolutionError
    |       +-- AccountResolutionError
    |       +-- JournalResolutionError
    |       +-- FiscalYearResolutionError
    |
    +-- ImmutabilityViolationError
    +-- ConfigurationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                          | When Raised
----------------|-------------------------------|---------------------------------------
Entry           | ENTRY_NOT_FOUND               | Unknown id, other tenant, wrong trash state
                | UNBALANCED_ENTRY              | Debits != credits on a VALIDATED entry
                | VALIDATED_ENTRY_IMMUTABLE     | Update/soft-delete of a validated entry
                | INVALID_ENTRY_STATUS          | Validate of a non-PROVISIONAL entry
                | ENTRY_VALIDATION_FAILED       | OHADA rule errors block persistence
                | DUPLICATE_REFERENCE           | Explicit reference already used
----------------|-------------------------------|---------------------------------------
Period          | CLOSED_PERIOD                 | Fiscal year is closed
                | OUT_OF_PERIOD                 | Entry date outside the fiscal year
                | INVALID_FISCAL_YEAR           | Fiscal year missing for the company
                | FISCAL_YEAR_OVERLAP           | New year overlaps an existing one
                | PROVISIONAL_ENTRIES_REMAIN    | Close attempted with draft entries
----------------|-------------------------------|---------------------------------------
Account         | INVALID_ACCOUNT_CLASS         | Leading digit not in 1..8
                | ACCOUNT_NOT_FOUND             | Unknown account for the company
                | DUPLICATE_ACCOUNT_CODE        | Code already exists for the company
                | ACCOUNT_REFERENCED            | Delete of an account used by lines
----------------|-------------------------------|---------------------------------------
Journal         | JOURNAL_NOT_FOUND             | Unknown journal for the company
                | DUPLICATE_JOURNAL_CODE        | Code already exists for the company
----------------|-------------------------------|---------------------------------------
Automation      | SOURCE_DOCUMENT_NOT_FOUND     | Invoice/payment/order/payslip missing
                | SOURCE_DOCUMENT_STATE         | Document not in a postable state
                | ACCOUNT_RESOLUTION_FAILED     | No account matches a required prefix
                | JOURNAL_RESOLUTION_FAILED     | Configured journal code missing
                | FISCAL_YEAR_RESOLUTION_FAILED | No open fiscal year covers the date
----------------|-------------------------------|---------------------------------------
Other           | IMMUTABILITY_VIOLATION        | ORM write to a protected row
                | CONFIGURATION_ERROR           | Invalid configuration file/section
"""

from decimal import Decimal


class OhadaLedgerError(Exception):
    """
    Base exception for all ledger errors.

    All subclasses define a ``code`` class attribute for machine-readable
    identification.
    """

    code: str = "OHADA_LEDGER_ERROR"


# Entry-related exceptions


class EntryError(OhadaLedgerError):
    """Base exception for accounting entry errors."""

    code: str = "ENTRY_ERROR"


class EntryNotFoundError(EntryError):
    """Entry does not exist for the tenant (or is not in the expected trash state)."""

    code: str = "ENTRY_NOT_FOUND"

    def __init__(self, entry_id: str, reason: str | None = None):
        self.entry_id = entry_id
        self.reason = reason
        message = f"Accounting entry not found: {entry_id}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class UnbalancedEntryError(EntryError):
    """Total debits differ from total credits beyond the tolerance."""

    code: str = "UNBALANCED_ENTRY"

    def __init__(self, debits: Decimal, credits: Decimal):
        self.debits = debits
        self.credits = credits
        super().__init__(
            f"Entry is unbalanced: debits={debits}, credits={credits}"
        )


class ValidatedEntryImmutableError(EntryError):
    """A validated entry (or an entry in a closed year) cannot be modified."""

    code: str = "VALIDATED_ENTRY_IMMUTABLE"

    def __init__(self, entry_id: str, operation: str):
        self.entry_id = entry_id
        self.operation = operation
        super().__init__(
            f"Cannot {operation} entry {entry_id}: entry is validated or its "
            f"fiscal year is closed"
        )


class InvalidEntryStatusError(EntryError):
    """The entry is not in the status the operation requires."""

    code: str = "INVALID_ENTRY_STATUS"

    def __init__(self, entry_id: str, current_status: str, required_status: str):
        self.entry_id = entry_id
        self.current_status = current_status
        self.required_status = required_status
        super().__init__(
            f"Entry {entry_id} has status {current_status}, "
            f"expected {required_status}"
        )


class EntryValidationFailedError(EntryError):
    """OHADA rule checks reported blocking errors."""

    code: str = "ENTRY_VALIDATION_FAILED"

    def __init__(self, errors: tuple[str, ...], warnings: tuple[str, ...] = ()):
        self.errors = tuple(errors)
        self.warnings = tuple(warnings)
        super().__init__("Entry validation failed: " + "; ".join(self.errors))


class DuplicateReferenceError(EntryError):
    """The reference number is already used in the journal."""

    code: str = "DUPLICATE_REFERENCE"

    def __init__(self, reference_number: str, journal_code: str):
        self.reference_number = reference_number
        self.journal_code = journal_code
        super().__init__(
            f"Reference {reference_number} already exists in journal {journal_code}"
        )


# Period-related exceptions


class PeriodError(OhadaLedgerError):
    """Base exception for fiscal year errors."""

    code: str = "PERIOD_ERROR"


class ClosedPeriodError(PeriodError):
    """Attempted to post or mutate in a closed fiscal year."""

    code: str = "CLOSED_PERIOD"

    def __init__(self, fiscal_year_code: str, entry_date: str | None = None):
        self.fiscal_year_code = fiscal_year_code
        self.entry_date = entry_date
        message = f"Fiscal year {fiscal_year_code} is closed"
        if entry_date:
            message = f"{message} (entry_date: {entry_date})"
        super().__init__(message)


class OutOfPeriodError(PeriodError):
    """Entry date falls outside the fiscal year bounds."""

    code: str = "OUT_OF_PERIOD"

    def __init__(
        self, fiscal_year_code: str, entry_date: str, start_date: str, end_date: str
    ):
        self.fiscal_year_code = fiscal_year_code
        self.entry_date = entry_date
        self.start_date = start_date
        self.end_date = end_date
        super().__init__(
            f"Entry date {entry_date} is outside fiscal year {fiscal_year_code} "
            f"({start_date} to {end_date})"
        )


class InvalidFiscalYearError(PeriodError):
    """Fiscal year does not exist for the company."""

    code: str = "INVALID_FISCAL_YEAR"

    def __init__(self, fiscal_year_id: str):
        self.fiscal_year_id = fiscal_year_id
        super().__init__(f"Fiscal year not found: {fiscal_year_id}")


class FiscalYearOverlapError(PeriodError):
    """A new fiscal year overlaps an existing one."""

    code: str = "FISCAL_YEAR_OVERLAP"

    def __init__(self, new_code: str, existing_code: str):
        self.new_code = new_code
        self.existing_code = existing_code
        super().__init__(
            f"Fiscal year {new_code} overlaps existing fiscal year {existing_code}"
        )


class ProvisionalEntriesRemainError(PeriodError):
    """A fiscal year cannot close while provisional entries remain."""

    code: str = "PROVISIONAL_ENTRIES_REMAIN"

    def __init__(self, fiscal_year_code: str, count: int):
        self.fiscal_year_code = fiscal_year_code
        self.count = count
        super().__init__(
            f"Cannot close fiscal year {fiscal_year_code}: "
            f"{count} provisional entries remain"
        )


# Account-related exceptions


class AccountError(OhadaLedgerError):
    """Base exception for chart-of-accounts errors."""

    code: str = "ACCOUNT_ERROR"


class InvalidAccountClassError(AccountError):
    """Account code does not start with an OHADA class digit 1..8."""

    code: str = "INVALID_ACCOUNT_CLASS"

    def __init__(self, account_code: str):
        self.account_code = account_code
        super().__init__(
            f"Invalid OHADA account class for code {account_code!r}: "
            f"leading digit must be 1 to 8"
        )


class AccountNotFoundError(AccountError):
    """Account does not exist for the company."""

    code: str = "ACCOUNT_NOT_FOUND"

    def __init__(self, account_ref: str):
        self.account_ref = account_ref
        super().__init__(f"Account not found: {account_ref}")


class DuplicateAccountCodeError(AccountError):
    code: str = "DUPLICATE_ACCOUNT_CODE"

    def __init__(self, account_code: str):
        self.account_code = account_code
        super().__init__(f"Account code already exists: {account_code}")


class AccountReferencedError(AccountError):
    """Account cannot be deleted while entry lines reference it."""

    code: str = "ACCOUNT_REFERENCED"

    def __init__(self, account_code: str):
        self.account_code = account_code
        super().__init__(
            f"Account {account_code} is referenced by entry lines and cannot be deleted"
        )


# Journal-related exceptions


class JournalError(OhadaLedgerError):
    code: str = "JOURNAL_ERROR"


class JournalNotFoundError(JournalError):
    """Journal does not exist for the company."""

    code: str = "JOURNAL_NOT_FOUND"

    def __init__(self, journal_ref: str):
        self.journal_ref = journal_ref
        super().__init__(f"Journal not found: {journal_ref}")


class DuplicateJournalCodeError(JournalError):
    code: str = "DUPLICATE_JOURNAL_CODE"

    def __init__(self, journal_code: str):
        self.journal_code = journal_code
        super().__init__(f"Journal code already exists: {journal_code}")


# Automation exceptions


class AutomationError(OhadaLedgerError):
    """Base exception for posting automation errors."""

    code: str = "AUTOMATION_ERROR"


class SourceDocumentNotFoundError(AutomationError):
    code: str = "SOURCE_DOCUMENT_NOT_FOUND"

    def __init__(self, document_type: str, document_id: str):
        self.document_type = document_type
        self.document_id = document_id
        super().__init__(f"{document_type} not found: {document_id}")


class SourceDocumentStateError(AutomationError):
    """The business document is not in a state that can be posted."""

    code: str = "SOURCE_DOCUMENT_STATE"

    def __init__(self, document_type: str, document_id: str, status: str, expected: str):
        self.document_type = document_type
        self.document_id = document_id
        self.status = status
        self.expected = expected
        super().__init__(
            f"{document_type} {document_id} has status {status}, expected {expected}"
        )


class AutomationResolutionError(AutomationError):
    """A posting target could not be resolved for the company."""

    code: str = "AUTOMATION_RESOLUTION_FAILED"


class AccountResolutionError(AutomationResolutionError):
    code: str = "ACCOUNT_RESOLUTION_FAILED"

    def __init__(self, prefix: str, company_id: str):
        self.prefix = prefix
        self.company_id = company_id
        super().__init__(
            f"No account with prefix {prefix} for company {company_id}"
        )


class JournalResolutionError(AutomationResolutionError):
    code: str = "JOURNAL_RESOLUTION_FAILED"

    def __init__(self, journal_code: str, company_id: str):
        self.journal_code = journal_code
        self.company_id = company_id
        super().__init__(
            f"No journal {journal_code} for company {company_id}"
        )


class FiscalYearResolutionError(AutomationResolutionError):
    code: str = "FISCAL_YEAR_RESOLUTION_FAILED"

    def __init__(self, on_date: str, company_id: str):
        self.on_date = on_date
        self.company_id = company_id
        super().__init__(
            f"No open fiscal year covers {on_date} for company {company_id}"
        )


# Infrastructure exceptions


class ImmutabilityViolationError(OhadaLedgerError):
    """ORM-level write to a protected row."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(f"Cannot modify {entity_type} {entity_id}: {reason}")


class ConfigurationError(OhadaLedgerError):
    code: str = "CONFIGURATION_ERROR"

    def __init__(self, section: str, message: str):
        self.section = section
        super().__init__(f"Invalid configuration [{section}]: {message}")
