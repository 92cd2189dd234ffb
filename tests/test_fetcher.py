import asyncio
from datetime import date
from decimal import Decimal

import pytest

from budget_assistant.ai_feature import fetcher as fetcher_module
from budget_assistant.ai_feature.classifier import DataCategory
from budget_assistant.ai_feature.fetcher import previous_month

from conftest import seed_budget

ALL_FIELDS = {
    "recentTransactions",
    "transactionStats",
    "categories",
    "categorySpending",
    "currentMonthHistory",
    "previousMonthHistory",
    "currentYearHistory",
    "previousYearHistory",
    "userSettings",
}


def test_previous_month_rolls_over_january():
    assert previous_month(2026, 1) == (2025, 12)
    assert previous_month(2026, 10) == (2026, 9)


@pytest.mark.asyncio
async def test_transactions_fields(fetcher, budget_data):
    """Recent list (10, newest first) plus totals per type"""
    data = await fetcher.fetch({DataCategory.TRANSACTIONS}, budget_data.id)

    assert set(data.to_prompt_dict()) == {"recentTransactions", "transactionStats"}

    recent = data.recent_transactions
    assert len(recent) == 10
    assert all(tx.type == "expense" for tx in recent)
    assert [tx.date for tx in recent] == sorted(
        (tx.date for tx in recent), reverse=True
    )

    totals = {stat.type: stat.total for stat in data.transaction_stats}
    assert totals == {"expense": Decimal("145.50"), "income": Decimal("3000.00")}


@pytest.mark.asyncio
async def test_categories_fields(fetcher, budget_data):
    data = await fetcher.fetch({DataCategory.CATEGORIES}, budget_data.id)

    assert set(data.to_prompt_dict()) == {"categories", "categorySpending"}
    assert [c.name for c in data.categories] == ["Groceries", "Salary", "Transport"]

    spending = {(row.category, row.type): row.total for row in data.category_spending}
    assert spending == {
        ("Groceries", "expense"): Decimal("70.25"),
        ("Salary", "income"): Decimal("3000.00"),
        ("Transport", "expense"): Decimal("75.25"),
    }


@pytest.mark.asyncio
async def test_month_history_includes_previous_month_across_new_year(
    fetcher, db_session, test_user
):
    january = date(2026, 1, 15)
    await seed_budget(db_session, test_user.id, january)

    data = await fetcher.fetch({DataCategory.MONTH_HISTORY}, test_user.id, today=january)

    assert set(data.to_prompt_dict()) == {"currentMonthHistory", "previousMonthHistory"}
    assert [(m.year, m.month) for m in data.current_month_history] == [(2026, 1)]
    assert [(m.year, m.month) for m in data.previous_month_history] == [(2025, 12)]
    assert data.previous_month_history[0].expense == Decimal("900.00")


@pytest.mark.asyncio
async def test_year_history_includes_previous_year(fetcher, budget_data):
    today = date.today()
    data = await fetcher.fetch({DataCategory.YEAR_HISTORY}, budget_data.id)

    assert set(data.to_prompt_dict()) == {"currentYearHistory", "previousYearHistory"}
    assert [y.year for y in data.current_year_history] == [today.year]
    assert [y.year for y in data.previous_year_history] == [today.year - 1]


@pytest.mark.asyncio
async def test_user_settings(fetcher, budget_data):
    data = await fetcher.fetch({DataCategory.USER_SETTINGS}, budget_data.id)

    assert data.to_prompt_dict() == {
        "userSettings": {"currency": "EUR", "monthlyBudget": "1200.00"}
    }


@pytest.mark.asyncio
async def test_missing_settings_row_is_present_but_null(fetcher, test_user):
    data = await fetcher.fetch({DataCategory.USER_SETTINGS}, test_user.id)
    assert data.to_prompt_dict() == {"userSettings": None}


@pytest.mark.asyncio
async def test_summary_fetches_everything(fetcher, budget_data):
    data = await fetcher.fetch({DataCategory.SUMMARY}, budget_data.id)
    assert set(data.to_prompt_dict()) == ALL_FIELDS


@pytest.mark.asyncio
async def test_only_callers_records_are_returned(
    fetcher, db_session, budget_data, other_user
):
    await seed_budget(db_session, other_user.id, date.today())

    mine = await fetcher.fetch({DataCategory.SUMMARY}, budget_data.id)
    stranger = await fetcher.fetch({DataCategory.SUMMARY}, "no-such-user")

    totals = {stat.type: stat.total for stat in mine.transaction_stats}
    assert totals["expense"] == Decimal("145.50")
    assert len(mine.categories) == 3
    assert len(mine.current_month_history) == 1

    empty = stranger.to_prompt_dict()
    assert empty["recentTransactions"] == []
    assert empty["transactionStats"] == []
    assert empty["userSettings"] is None


@pytest.mark.asyncio
async def test_failed_query_leaves_only_its_field_absent(
    fetcher, budget_data, monkeypatch
):
    async def broken(db, user_id):
        raise RuntimeError("categories table is locked")

    monkeypatch.setattr(fetcher_module, "get_categories", broken)

    data = await fetcher.fetch({DataCategory.SUMMARY}, budget_data.id)
    fields = set(data.to_prompt_dict())

    assert "categories" not in fields
    assert fields == ALL_FIELDS - {"categories"}


@pytest.mark.asyncio
async def test_fetch_is_idempotent(fetcher, budget_data):
    first = await fetcher.fetch({DataCategory.SUMMARY}, budget_data.id)
    second = await fetcher.fetch({DataCategory.SUMMARY}, budget_data.id)
    assert first.to_prompt_dict() == second.to_prompt_dict()


@pytest.mark.asyncio
async def test_queries_run_concurrently(fetcher, budget_data, monkeypatch):
    """Every branch is in flight before any of them finishes"""
    expected = len(fetcher.plan({DataCategory.SUMMARY}, date.today()))
    started = 0
    all_started = asyncio.Event()

    original = fetcher._fill

    async def tracking_fill(*args, **kwargs):
        nonlocal started
        started += 1
        if started == expected:
            all_started.set()
        await asyncio.wait_for(all_started.wait(), timeout=5)
        return await original(*args, **kwargs)

    monkeypatch.setattr(fetcher, "_fill", tracking_fill)

    data = await fetcher.fetch({DataCategory.SUMMARY}, budget_data.id)
    assert started == expected == 9
    assert set(data.to_prompt_dict()) == ALL_FIELDS
