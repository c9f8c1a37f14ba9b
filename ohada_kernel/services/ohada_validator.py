"""
OhadaValidator -- OHADA rule checks against a proposed entry.

Responsibility:
    Loads the accounts and fiscal year a draft refers to (tenant scoped) and
    runs the pure rules of ``domain.ohada_rules``:

    - account class legality (fatal)
    - fiscal year open and entry date in range (fatal)
    - balance sheet / income statement combinations (warning)
    - VAT presence on revenue and expense (warning)

    ``validate_entry`` aggregates everything into a ValidationResult;
    ``is_valid=False`` blocks persistence, warnings never do.
"""

from collections.abc import Sequence
from datetime import date
from uuid import UUID

from sqlalchemy.orm import Session

from ohada_kernel.domain import ohada_rules
from ohada_kernel.domain.dtos import EntryDraft, FiscalYearInfo, LineFacts, ValidationResult
from ohada_kernel.domain.tenant import TenantContext
from ohada_kernel.exceptions import (
    ClosedPeriodError,
    InvalidAccountClassError,
    InvalidFiscalYearError,
    OutOfPeriodError,
)
from ohada_kernel.logging_config import get_logger
from ohada_kernel.repositories.accounts import AccountRepository
from ohada_kernel.repositories.fiscal_years import FiscalYearRepository
from ohada_kernel.repositories.parties import CostCenterRepository, ThirdPartyRepository

logger = get_logger("services.ohada_validator")


class OhadaValidator:
    def __init__(self, session: Session):
        self._accounts = AccountRepository(session)
        self._fiscal_years = FiscalYearRepository(session)
        self._third_parties = ThirdPartyRepository(session)
        self._cost_centers = CostCenterRepository(session)

    def validate_account_class(self, code: str) -> int:
        return ohada_rules.validate_account_class(code)

    def validate_period_open(
        self, ctx: TenantContext, fiscal_year_id: UUID, entry_date: date
    ) -> FiscalYearInfo:
        """
        Raises:
            InvalidFiscalYearError: Unknown fiscal year for the company.
            ClosedPeriodError: The fiscal year is closed.
            OutOfPeriodError: The date is outside the fiscal year.
        """
        model = self._fiscal_years.get(ctx, fiscal_year_id)
        if model is None:
            raise InvalidFiscalYearError(str(fiscal_year_id))
        fiscal_year = FiscalYearInfo.from_model(model)
        ohada_rules.check_period_open(fiscal_year, entry_date)
        return fiscal_year

    def validate_account_combinations(self, lines: Sequence[LineFacts]) -> list[str]:
        return ohada_rules.account_combination_warnings(lines)

    def validate_vat_logic(self, lines: Sequence[LineFacts]) -> list[str]:
        return ohada_rules.vat_warnings(lines)

    def line_facts(self, ctx: TenantContext, draft: EntryDraft) -> tuple[list[LineFacts], list[str]]:
        """
        Resolve each draft line's account code.

        Unknown accounts, and third parties or cost centers outside the
        company, become errors.
        """
        accounts = self._accounts.get_many(ctx, (line.account_id for line in draft.lines))
        third_parties = self._third_parties.get_many(
            ctx, (line.third_party_id for line in draft.lines if line.third_party_id)
        )
        cost_centers = self._cost_centers.get_many(
            ctx, (line.cost_center_id for line in draft.lines if line.cost_center_id)
        )
        facts: list[LineFacts] = []
        errors: list[str] = []
        for index, line in enumerate(draft.lines, start=1):
            if line.third_party_id and line.third_party_id not in third_parties:
                errors.append(f"Line {index}: third party {line.third_party_id} not found")
            if line.cost_center_id and line.cost_center_id not in cost_centers:
                errors.append(f"Line {index}: cost center {line.cost_center_id} not found")
            account = accounts.get(line.account_id)
            if account is None:
                errors.append(f"Line {index}: account {line.account_id} not found")
                continue
            facts.append(LineFacts(account.code, line.debit, line.credit))
        return facts, errors

    def validate_entry(self, ctx: TenantContext, draft: EntryDraft) -> ValidationResult:
        facts, errors = self.line_facts(ctx, draft)
        warnings: list[str] = []

        if facts or not draft.lines:
            errors.extend(ohada_rules.line_shape_errors(facts))

        for fact in facts:
            try:
                self.validate_account_class(fact.account_code)
            except InvalidAccountClassError as exc:
                errors.append(str(exc))

        try:
            self.validate_period_open(ctx, draft.fiscal_year_id, draft.entry_date)
        except (ClosedPeriodError, OutOfPeriodError, InvalidFiscalYearError) as exc:
            errors.append(str(exc))

        warnings.extend(self.validate_account_combinations(facts))
        warnings.extend(self.validate_vat_logic(facts))

        result = ValidationResult(
            is_valid=not errors,
            errors=tuple(errors),
            warnings=tuple(warnings),
        )
        if not result.is_valid:
            logger.info(
                "entry_validation_failed",
                extra={"tenant": ctx, "errors": list(result.errors)},
            )
        return result
