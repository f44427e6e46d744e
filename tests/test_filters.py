from datetime import date

from client.filters import (
    DEFAULT_FILTERS,
    FilterState,
    apply_filters,
    clear_filters,
    has_active_filters,
    reset_view,
)
from factories import expense


def test_search_term_is_case_insensitive_substring():
    expenses = [expense(title="Coffee run"), expense(title="Bus")]

    result = apply_filters(expenses, FilterState(search_term="coffee"))

    assert [e.title for e in result] == ["Coffee run"]


def test_category_filter_is_exact():
    expenses = [expense(title="Bus", category="Transport"), expense(title="Pizza", category="Food")]

    result = apply_filters(expenses, FilterState(selected_category="Transport"))

    assert [e.title for e in result] == ["Bus"]


def test_sort_by_amount_ascending_is_non_decreasing():
    expenses = [expense(title=t, amount=a) for t, a in [("a", 30), ("b", 5), ("c", 12.5), ("d", 5)]]

    result = apply_filters(expenses, FilterState(sort_by="amount", sort_order="asc"))

    amounts = [e.amount for e in result]
    assert amounts == sorted(amounts)


def test_default_sort_is_newest_first():
    expenses = [
        expense(title="old", day=date(2023, 12, 1)),
        expense(title="new", day=date(2024, 2, 1)),
        expense(title="mid", day=date(2024, 1, 1)),
    ]

    result = apply_filters(expenses, DEFAULT_FILTERS)

    assert [e.title for e in result] == ["new", "mid", "old"]


def test_string_sorts_ignore_case():
    expenses = [expense(title="banana"), expense(title="Apple"), expense(title="cherry")]

    result = apply_filters(expenses, FilterState(sort_by="title", sort_order="asc"))

    assert [e.title for e in result] == ["Apple", "banana", "cherry"]


def test_equal_keys_keep_their_relative_order():
    expenses = [expense(title="first", category="Food"), expense(title="second", category="food")]

    result = apply_filters(expenses, FilterState(sort_by="category", sort_order="asc"))

    assert [e.title for e in result] == ["first", "second"]


def test_input_is_not_mutated():
    expenses = [expense(title="b", amount=2), expense(title="a", amount=1)]
    before = list(expenses)

    apply_filters(expenses, FilterState(sort_by="amount", sort_order="asc"))

    assert expenses == before


def test_clear_filters_restores_defaults_and_original_order():
    expenses = [expense(title="b"), expense(title="a")]
    active = FilterState(search_term="a", sort_by="title")

    assert has_active_filters(active)
    assert clear_filters() == DEFAULT_FILTERS
    assert not has_active_filters(clear_filters())
    assert reset_view(expenses) == expenses
    assert reset_view(expenses) is not expenses
