"""HTTP client for the expense API."""
import datetime as dt
import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx

from models.expense import Expense, ExpenseCreate, ExpenseStats, ExpenseUpdate, Pagination
from services.errors import NotFoundError, StoreError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0

_ERRORS_BY_STATUS = {400: ValidationError, 404: NotFoundError}


class ExpenseApiClient:
    """
    Thin wrapper over the /api/expenses endpoints.

    `http` may be any httpx.Client whose base URL points at the API root
    (FastAPI's TestClient works too). Transport failures and unexpected
    statuses raise StoreError; 400 and 404 map to ValidationError and
    NotFoundError. No request is retried.
    """

    def __init__(self, base_url: str = None, http: Optional[httpx.Client] = None, timeout: float = DEFAULT_TIMEOUT):
        if http is None:
            http = httpx.Client(base_url=base_url, timeout=timeout)
        self.http = http

    def close(self) -> None:
        self.http.close()

    def _request(self, method: str, url: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            response = self.http.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"{method} {url} failed: {e}")
            raise StoreError("Could not reach the expense server", detail=str(e))

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {"data": body}
        if response.is_success:
            return body

        message = body.get("message") or f"Request failed with status {response.status_code}"
        error_cls = _ERRORS_BY_STATUS.get(response.status_code, StoreError)
        logger.error(f"{method} {url} returned {response.status_code}: {message}")
        raise error_cls(message, detail=body.get("error"))

    def list_expenses(
        self,
        category: str = None,
        start_date: dt.date = None,
        end_date: dt.date = None,
        page: int = 1,
        limit: int = 50,
    ) -> Tuple[List[Expense], Pagination]:
        params = {"page": page, "limit": limit}
        if category:
            params["category"] = category
        if start_date:
            params["startDate"] = start_date.isoformat()
        if end_date:
            params["endDate"] = end_date.isoformat()
        body = self._request("GET", "/expenses", params=params)
        expenses = [Expense.model_validate(item) for item in body.get("data", [])]
        return expenses, Pagination.model_validate(body["pagination"])

    def fetch_all(self) -> List[Expense]:
        """The first page with the default window, as the list view loads it."""
        expenses, _ = self.list_expenses()
        return expenses

    def get_stats(self, category: str = None, start_date: dt.date = None, end_date: dt.date = None) -> ExpenseStats:
        params = {}
        if category:
            params["category"] = category
        if start_date:
            params["startDate"] = start_date.isoformat()
        if end_date:
            params["endDate"] = end_date.isoformat()
        body = self._request("GET", "/expenses/stats", params=params)
        return ExpenseStats.model_validate(body["data"])

    def get_expense(self, expense_id: str) -> Expense:
        body = self._request("GET", f"/expenses/{expense_id}")
        return Expense.model_validate(body["data"])

    def create_expense(self, expense_in: ExpenseCreate) -> Expense:
        payload = expense_in.model_dump(mode="json", exclude_none=True)
        body = self._request("POST", "/expenses", json=payload)
        return Expense.model_validate(body["data"])

    def update_expense(self, expense_id: str, expense_update: ExpenseUpdate) -> Expense:
        payload = expense_update.model_dump(mode="json", include=expense_update.model_fields_set)
        body = self._request("PUT", f"/expenses/{expense_id}", json=payload)
        return Expense.model_validate(body["data"])

    def delete_expense(self, expense_id: str) -> Expense:
        body = self._request("DELETE", f"/expenses/{expense_id}")
        return Expense.model_validate(body["data"])

