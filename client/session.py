"""Wires the API client, the local cache and the pure state updates together."""
import logging
from typing import Optional

from client import state as app_state
from client.analytics import Analytics, compute_analytics
from client.api import ExpenseApiClient
from client.cache import JsonFileCache, LocalCache, TwoTierReader, save_cached_expenses
from client.filters import FilterState
from client.state import AppState
from config import Settings
from models.expense import ExpenseCreate, ExpenseUpdate
from services.errors import ExpenseError

logger = logging.getLogger(__name__)


class ClientSession:
    """
    Holds the current `AppState` for one user session.

    Writes go to the server first and are applied to the state only when they
    succeed; a failure leaves the list untouched and records an error message.
    Every successful change of the list is mirrored into the local cache.
    """

    def __init__(self, api: ExpenseApiClient, cache: LocalCache, initial: Optional[AppState] = None):
        self.api = api
        self.cache = cache
        self.reader = TwoTierReader(api.fetch_all, cache)
        self.state = initial or AppState()

    def _set_expenses(self, next_state: AppState) -> AppState:
        self.state = next_state
        save_cached_expenses(self.cache, list(next_state.expenses))
        return self.state

    @classmethod
    def from_settings(cls, settings: Settings) -> "ClientSession":
        """A session talking to `settings.api_base_url`, caching to `settings.cache_path`."""
        return cls(ExpenseApiClient(base_url=settings.api_base_url), JsonFileCache(settings.cache_path))

    def load(self) -> AppState:
        """Loads from the server, falling back to the cache. A server failure is still reported."""
        self.state = app_state.request_started(self.state)
        expenses, error = self.reader.read()
        next_state = app_state.expenses_loaded(self.state, expenses)
        if error is not None:
            next_state = app_state.request_failed(next_state, "Failed to fetch expenses from server")
        return self._set_expenses(next_state)

    def add_expense(self, expense_in: ExpenseCreate) -> AppState:
        self.state = app_state.request_started(self.state)
        try:
            expense = self.api.create_expense(expense_in)
        except ExpenseError as e:
            logger.error(f"Failed to save expense: {e}")
            self.state = app_state.request_failed(self.state, "Failed to save expense to server")
            return self.state
        return self._set_expenses(app_state.expense_added(self.state, expense))

    def update_expense(self, expense_id: str, expense_update: ExpenseUpdate) -> AppState:
        self.state = app_state.request_started(self.state)
        try:
            expense = self.api.update_expense(expense_id, expense_update)
        except ExpenseError as e:
            logger.error(f"Failed to update expense {expense_id}: {e}")
            self.state = app_state.request_failed(self.state, "Failed to update expense on server")
            return self.state
        return self._set_expenses(app_state.expense_updated(self.state, expense))

    def delete_expense(self, expense_id: str) -> AppState:
        self.state = app_state.request_started(self.state)
        try:
            self.api.delete_expense(expense_id)
        except ExpenseError as e:
            logger.error(f"Failed to delete expense {expense_id}: {e}")
            self.state = app_state.request_failed(self.state, "Failed to delete expense from server")
            return self.state
        return self._set_expenses(app_state.expense_removed(self.state, expense_id))

    def apply_filters(self, filters: FilterState) -> AppState:
        self.state = app_state.filters_applied(self.state, filters)
        return self.state

    def clear_filters(self) -> AppState:
        self.state = app_state.filters_cleared(self.state)
        return self.state

    def dismiss_error(self) -> AppState:
        self.state = app_state.dismiss_error(self.state)
        return self.state

    @property
    def analytics(self) -> Analytics:
        return compute_analytics(self.state.expenses)
