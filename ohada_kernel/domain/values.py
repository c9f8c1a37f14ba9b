"""
Domain enumerations shared by models, services and reports.

All enums subclass ``str`` so they persist as readable strings and compare
equal to their values.
"""

from enum import Enum


class AccountType(str, Enum):
    ASSET = "asset"
    LIABILITY = "liability"
    EXPENSE = "expense"
    REVENUE = "revenue"


class NormalBalance(str, Enum):
    DEBIT = "debit"
    CREDIT = "credit"


class JournalType(str, Enum):
    """Posting channels.  OPENING holds the carried-forward opening balances."""

    SALE = "sale"
    PURCHASE = "purchase"
    BANK = "bank"
    CASH = "cash"
    PAYROLL = "payroll"
    STOCK = "stock"
    OD = "od"
    OPENING = "opening"


class EntryStatus(str, Enum):
    """
    Accounting entry lifecycle.

    PROVISIONAL -> VALIDATED (terminal).  Trash state is carried separately
    by the deletion timestamp, not by status.
    """

    PROVISIONAL = "provisional"
    VALIDATED = "validated"


class SourceDocumentType(str, Enum):
    INVOICE = "invoice"
    PAYMENT = "payment"
    PURCHASE_ORDER = "purchase_order"
    PAYSLIP = "payslip"


class PaymentMethod(str, Enum):
    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"
    CHECK = "check"
    MOBILE_MONEY = "mobile_money"

    @property
    def is_cash(self) -> bool:
        return self is PaymentMethod.CASH
