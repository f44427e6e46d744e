"""Filtering and sorting of an in-memory expense list."""
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Sequence

from models.expense import Expense

SORT_FIELDS = ("date", "amount", "title", "category")
SORT_ORDERS = ("asc", "desc")


@dataclass(frozen=True)
class FilterState:
    search_term: str = ""
    selected_category: str = ""
    sort_by: str = "date"
    sort_order: str = "desc"


DEFAULT_FILTERS = FilterState()

_SORT_KEYS: Dict[str, Callable[[Expense], Any]] = {
    "date": lambda expense: expense.date,
    "amount": lambda expense: expense.amount,
    "title": lambda expense: expense.title.lower(),
    "category": lambda expense: expense.category.lower(),
}


def apply_filters(expenses: Sequence[Expense], state: FilterState) -> List[Expense]:
    """
    Returns a new list: title search (case-insensitive substring), then exact
    category match, then a stable sort on `state.sort_by` in `state.sort_order`.
    The input sequence is left untouched.
    """
    filtered = list(expenses)

    if state.search_term:
        needle = state.search_term.lower()
        filtered = [expense for expense in filtered if needle in expense.title.lower()]

    if state.selected_category:
        filtered = [expense for expense in filtered if expense.category == state.selected_category]

    sort_key = _SORT_KEYS.get(state.sort_by, _SORT_KEYS["date"])
    filtered.sort(key=sort_key, reverse=state.sort_order == "desc")
    return filtered


def clear_filters() -> FilterState:
    return DEFAULT_FILTERS


def reset_view(expenses: Sequence[Expense]) -> List[Expense]:
    """The unfiltered view: every expense in its original order."""
    return list(expenses)


def has_active_filters(state: FilterState) -> bool:
    return state != DEFAULT_FILTERS
