from datetime import date, datetime
from decimal import Decimal

import pytest

from models.expense import ExpenseCreate, ExpenseFilter, ExpenseQuery, ExpenseUpdate
from services import expenses_service
from services.errors import NotFoundError


async def _create(collection, **overrides):
    values = {"title": "Lunch", "amount": 12.5, "category": "Food"}
    values.update(overrides)
    return await expenses_service.create_expense(collection, ExpenseCreate(**values))


async def test_create_defaults_date_to_today_and_assigns_id(collection):
    expense = await _create(collection)

    assert expense.id
    assert expense.date == expenses_service.utc_today()
    assert expense.tags == []
    assert expense.description is None


async def test_concurrent_inserts_get_distinct_ids(collection):
    first = await _create(collection)
    second = await _create(collection)

    assert first.id != second.id


async def test_insert_then_get_round_trips(collection):
    created = await _create(collection, date="2024-02-10", description="Team lunch", tags=["work", "friday"])

    fetched = await expenses_service.get_expense(collection, created.id)

    assert fetched == created
    assert fetched.tags == ["work", "friday"]
    assert fetched.date == date(2024, 2, 10)


async def test_empty_update_leaves_record_unchanged(collection):
    created = await _create(collection)

    updated = await expenses_service.update_expense(collection, created.id, ExpenseUpdate())

    assert updated.model_dump() == created.model_dump()


async def test_update_applies_only_supplied_fields(collection):
    created = await _create(collection, description="Sandwich")

    updated = await expenses_service.update_expense(
        collection, created.id, ExpenseUpdate(amount="0", category="Other")
    )

    assert updated.amount == 0
    assert updated.category == "Other"
    assert updated.title == "Lunch"
    assert updated.description == "Sandwich"
    assert updated.updated_at >= created.updated_at


async def test_update_can_clear_description(collection):
    created = await _create(collection, description="Sandwich")

    updated = await expenses_service.update_expense(
        collection, created.id, ExpenseUpdate.model_validate({"description": None})
    )

    assert updated.description is None
    assert updated.title == "Lunch"


async def test_update_unknown_id_raises_not_found(collection):
    with pytest.raises(NotFoundError):
        await expenses_service.update_expense(collection, "65f000000000000000000000", ExpenseUpdate(title="x"))


async def test_delete_returns_record_and_removes_it(collection):
    created = await _create(collection)

    deleted = await expenses_service.delete_expense(collection, created.id)

    assert deleted.id == created.id
    with pytest.raises(NotFoundError):
        await expenses_service.get_expense(collection, created.id)


async def test_delete_unknown_id_has_no_side_effects(collection):
    await _create(collection)

    with pytest.raises(NotFoundError):
        await expenses_service.delete_expense(collection, "65f000000000000000000000")

    assert await collection.count_documents({}) == 1


async def test_malformed_id_is_not_found(collection):
    with pytest.raises(NotFoundError):
        await expenses_service.get_expense(collection, "not-an-object-id")


async def test_list_counts_and_filters_by_category(collection):
    await _create(collection, category="Food")
    await _create(collection, category="Transport", title="Bus")
    removed = await _create(collection, category="Food")
    await expenses_service.delete_expense(collection, removed.id)

    everything = await expenses_service.list_expenses(collection, ExpenseQuery())
    food = await expenses_service.list_expenses(collection, ExpenseQuery(category="Food"))

    assert everything.pagination.total == 2
    assert food.pagination.total == 1
    assert all(expense.category == "Food" for expense in food.items)


async def test_list_orders_by_date_descending_and_paginates(collection):
    for day in range(1, 6):
        await _create(collection, date=date(2024, 1, day), title=f"Day {day}")

    second_page = await expenses_service.list_expenses(collection, ExpenseQuery(page=2, limit=2))

    assert [expense.title for expense in second_page.items] == ["Day 3", "Day 2"]
    assert second_page.pagination.total == 5
    assert second_page.pagination.pages == 3
    assert second_page.pagination.page == 2


async def test_date_range_bounds_are_inclusive(collection):
    for day in (1, 10, 20, 31):
        await _create(collection, date=date(2024, 1, day))

    page = await expenses_service.list_expenses(
        collection, ExpenseQuery(start_date=date(2024, 1, 10), end_date=date(2024, 1, 20))
    )

    assert sorted(expense.date.day for expense in page.items) == [10, 20]


def test_build_query_translates_filter():
    query = expenses_service.build_query(
        ExpenseFilter(category="Bills", start_date=date(2024, 3, 1), end_date=date(2024, 3, 31))
    )

    assert query == {
        "category": "Bills",
        "date": {"$gte": datetime(2024, 3, 1), "$lt": datetime(2024, 4, 1)},
    }


def test_build_query_without_filters_matches_everything():
    assert expenses_service.build_query(ExpenseFilter()) == {}


async def test_stats_totals_and_category_breakdown(collection):
    await _create(collection, amount=10, category="Food")
    await _create(collection, amount=20, category="Food")
    await _create(collection, amount=5, category="Transport")

    stats = await expenses_service.get_expense_stats(collection, ExpenseFilter())

    assert stats.total_amount == 35
    assert stats.total_expenses == 3
    assert [(c.category, c.total, c.count) for c in stats.category_breakdown] == [
        ("Food", 30, 2),
        ("Transport", 5, 1),
    ]


async def test_stats_over_empty_store(collection):
    stats = await expenses_service.get_expense_stats(collection, ExpenseFilter())

    assert stats.total_amount == 0
    assert stats.category_breakdown == []
    assert stats.monthly_spending == []
    assert stats.total_expenses == 0


async def test_stats_monthly_spending_keeps_latest_twelve_months(collection):
    for offset in range(14):
        year, month = divmod(offset, 12)
        await _create(collection, date=date(2023 + year, month + 1, 15), amount=offset + 1)
    await _create(collection, date=date(2024, 2, 1), amount=1)

    stats = await expenses_service.get_expense_stats(collection, ExpenseFilter())

    months = [(m.year, m.month) for m in stats.monthly_spending]
    assert len(months) == 12
    assert months[0] == (2024, 2)
    assert months[-1] == (2023, 3)
    assert months == sorted(months, reverse=True)
    assert stats.monthly_spending[0].count == 2
    assert stats.monthly_spending[0].total == 15


async def test_stats_respect_date_range(collection):
    await _create(collection, date=date(2024, 1, 5), amount=10)
    await _create(collection, date=date(2024, 2, 5), amount=20)

    stats = await expenses_service.get_expense_stats(
        collection, ExpenseFilter(start_date=date(2024, 2, 1))
    )

    assert stats.total_amount == 20
    assert stats.total_expenses == 1


def test_summarize_rounds_half_up_on_decimal_values():
    docs = [{"amount": 1.005, "category": "Food", "date": datetime(2024, 1, 1)}]

    stats = expenses_service.summarize(docs)

    # The binary float 1.005 sits just below 1.005 and would round down
    assert stats.total_amount == 1.01
    assert stats.category_breakdown[0].total == 1.01


def test_money_values_accumulate_without_drift():
    total = sum((expenses_service.to_money(0.1) for _ in range(10)), Decimal(0))

    assert total == Decimal("1.0")
