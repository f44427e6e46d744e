"""
Client application state.

`AppState` is immutable; every user or network event is a pure function that
takes the current state and returns the next one. The filtered view is kept
alongside the source list so the list can change without losing the filters
the user applied.
"""
from dataclasses import dataclass, replace
from typing import Optional, Tuple

from client.filters import DEFAULT_FILTERS, FilterState, apply_filters, reset_view
from models.expense import Expense

TABS = ("expenses", "analytics")


@dataclass(frozen=True)
class AppState:
    expenses: Tuple[Expense, ...] = ()
    filtered_expenses: Tuple[Expense, ...] = ()
    filters: FilterState = DEFAULT_FILTERS
    loading: bool = False
    error: Optional[str] = None
    active_tab: str = "expenses"


def _with_expenses(state: AppState, expenses) -> AppState:
    # A changed list resets the view to the unfiltered list
    expenses = tuple(expenses)
    return replace(state, expenses=expenses, filtered_expenses=tuple(reset_view(expenses)))


def request_started(state: AppState) -> AppState:
    return replace(state, loading=True)


def expenses_loaded(state: AppState, expenses) -> AppState:
    return replace(_with_expenses(state, expenses), loading=False)


def expense_added(state: AppState, expense: Expense) -> AppState:
    return replace(_with_expenses(state, (expense,) + state.expenses), loading=False)


def expense_updated(state: AppState, expense: Expense) -> AppState:
    updated = tuple(expense if current.id == expense.id else current for current in state.expenses)
    return replace(_with_expenses(state, updated), loading=False)


def expense_removed(state: AppState, expense_id: str) -> AppState:
    remaining = tuple(expense for expense in state.expenses if expense.id != expense_id)
    return replace(_with_expenses(state, remaining), loading=False)


def request_failed(state: AppState, message: str) -> AppState:
    """Records a dismissible error; the expense list is left as it was."""
    return replace(state, loading=False, error=message)


def dismiss_error(state: AppState) -> AppState:
    return replace(state, error=None)


def filters_applied(state: AppState, filters: FilterState) -> AppState:
    return replace(state, filters=filters, filtered_expenses=tuple(apply_filters(state.expenses, filters)))


def filters_cleared(state: AppState) -> AppState:
    return replace(state, filters=DEFAULT_FILTERS, filtered_expenses=tuple(reset_view(state.expenses)))


def tab_selected(state: AppState, tab: str) -> AppState:
    if tab not in TABS:
        raise ValueError(f"Unknown tab: {tab}")
    return replace(state, active_tab=tab)
