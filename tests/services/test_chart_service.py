"""Chart of accounts: derivations, bulk import, deletion guard."""

from decimal import Decimal

import pytest

from ohada_kernel.domain.values import AccountType, EntryStatus, NormalBalance
from ohada_kernel.exceptions import (
    AccountReferencedError,
    DuplicateAccountCodeError,
    InvalidAccountClassError,
)


class TestCreateAccount:
    def test_class_level_type_and_balance_derived(self, ctx, actor_id, chart_service):
        account = chart_service.create_account(ctx, "411000", "Customers", actor_id)
        assert account.account_class == 4
        assert account.level == 6
        assert account.account_type is AccountType.LIABILITY
        assert account.normal_balance is NormalBalance.CREDIT
        assert account.parent_id is None

    @pytest.mark.parametrize(
        "code, balance_sheet, profit_loss, hao",
        [
            ("521000", True, False, False),
            ("601000", False, True, False),
            ("701000", False, True, False),
            ("811000", False, False, True),
        ],
    )
    def test_statement_flags(
        self, ctx, actor_id, chart_service, code, balance_sheet, profit_loss, hao
    ):
        account = chart_service.create_account(ctx, code, "Flagged", actor_id)
        assert account.is_balance_sheet is balance_sheet
        assert account.is_profit_loss is profit_loss
        assert account.is_hao is hao

    def test_parent_is_longest_existing_prefix(self, ctx, actor_id, chart_service):
        root = chart_service.create_account(ctx, "41", "Customers and related", actor_id)
        group = chart_service.create_account(ctx, "411", "Customers", actor_id)
        leaf = chart_service.create_account(ctx, "411100", "Local customers", actor_id)
        assert group.parent_id == root.id
        assert leaf.parent_id == group.id

    def test_explicit_type_overrides_class_default(self, ctx, actor_id, chart_service):
        account = chart_service.create_account(
            ctx, "411000", "Customers", actor_id, account_type=AccountType.ASSET
        )
        assert account.normal_balance is NormalBalance.DEBIT

    @pytest.mark.parametrize("code", ["000100", "911000"])
    def test_illegal_class_rejected(self, ctx, actor_id, chart_service, code):
        with pytest.raises(InvalidAccountClassError):
            chart_service.create_account(ctx, code, "Off chart", actor_id)

    def test_duplicate_code_rejected(self, ctx, actor_id, chart_service):
        chart_service.create_account(ctx, "521000", "Bank", actor_id)
        with pytest.raises(DuplicateAccountCodeError):
            chart_service.create_account(ctx, "521000", "Bank again", actor_id)

    def test_same_code_in_two_companies(self, ctx, other_ctx, actor_id, chart_service):
        first = chart_service.create_account(ctx, "521000", "Bank", actor_id)
        second = chart_service.create_account(other_ctx, "521000", "Bank", actor_id)
        assert first.id != second.id


class TestImportAccounts:
    def test_parents_resolved_regardless_of_row_order(self, ctx, actor_id, chart_service):
        rows = [
            {"code": "601100", "label": "Purchases of goods, local"},
            {"code": "60", "label": "Purchases"},
            {"code": "601", "label": "Purchases of goods"},
        ]
        summary = chart_service.import_accounts(ctx, rows, actor_id)

        assert summary.created == ("60", "601", "601100")
        by_code = {a.code: a for a in chart_service.list_accounts(ctx)}
        assert by_code["601100"].parent_id == by_code["601"].id
        assert by_code["601"].parent_id == by_code["60"].id

    def test_existing_codes_skipped(self, ctx, actor_id, chart_service):
        chart_service.create_account(ctx, "571000", "Cash", actor_id)
        summary = chart_service.import_accounts(
            ctx,
            [{"code": "571000", "label": "Cash"}, {"code": "521000", "label": "Bank"}],
            actor_id,
        )
        assert summary.created == ("521000",)
        assert summary.skipped == ("571000",)


class TestDeleteAccount:
    def test_unused_account_deleted(self, ctx, actor_id, chart_service):
        account = chart_service.create_account(ctx, "571000", "Cash", actor_id)
        chart_service.delete_account(ctx, account.id, actor_id)
        assert chart_service.list_accounts(ctx) == []

    def test_children_reattached_to_grandparent(self, ctx, actor_id, chart_service):
        root = chart_service.create_account(ctx, "57", "Cash", actor_id)
        middle = chart_service.create_account(ctx, "571", "Head office cash", actor_id)
        leaf = chart_service.create_account(ctx, "571100", "Petty cash", actor_id)
        chart_service.delete_account(ctx, middle.id, actor_id)
        by_code = {a.code: a for a in chart_service.list_accounts(ctx)}
        assert by_code["571100"].parent_id == root.id
        assert leaf.id in {a.id for a in by_code.values()}

    def test_referenced_account_protected(
        self, ctx, actor_id, chart_service, post_entry, accounts
    ):
        post_entry("CA", [("571000", "10", 0), ("411000", 0, "10")])
        with pytest.raises(AccountReferencedError):
            chart_service.delete_account(ctx, accounts["571000"].id, actor_id)
