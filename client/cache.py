"""Local persisted copy of the expense list and the remote-then-cache read strategy."""
import json
import logging
from pathlib import Path
from typing import Callable, Dict, List, Optional, Protocol, Tuple

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from models.expense import Expense
from services.errors import StoreError

logger = logging.getLogger(__name__)

CACHE_KEY = "expenses"

_expense_list = TypeAdapter(List[Expense])


class LocalCache(Protocol):
    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...


class MemoryCache:
    def __init__(self, items: Optional[Dict[str, str]] = None):
        self.items = dict(items or {})

    def get_item(self, key: str) -> Optional[str]:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.items[key] = value


class JsonFileCache:
    """Key/value strings kept in a single JSON object on disk."""

    def __init__(self, path: str):
        self.path = Path(path)

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable cache file {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def get_item(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # Swap a finished sibling file in so a crash never leaves half a cache
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        tmp_path.write_text(json.dumps(data), encoding="utf-8")
        tmp_path.replace(self.path)


def load_cached_expenses(cache: LocalCache) -> List[Expense]:
    raw = cache.get_item(CACHE_KEY)
    if not raw:
        return []
    try:
        return _expense_list.validate_json(raw)
    except PydanticValidationError as e:
        logger.warning(f"Discarding invalid cached expenses: {e}")
        return []


def save_cached_expenses(cache: LocalCache, expenses: List[Expense]) -> None:
    cache.set_item(CACHE_KEY, _expense_list.dump_json(expenses, by_alias=True).decode("utf-8"))


class TwoTierReader:
    """
    Reads the expense list from the remote store and falls back to the local
    cache when the store fails or has nothing to offer. The store failure, if
    any, is returned next to the list so the caller can surface it.
    """

    def __init__(self, fetch_remote: Callable[[], List[Expense]], cache: LocalCache):
        self.fetch_remote = fetch_remote
        self.cache = cache

    def read(self) -> Tuple[List[Expense], Optional[StoreError]]:
        try:
            expenses = self.fetch_remote()
        except StoreError as e:
            logger.warning(f"Failed to load expenses from the server, using local cache: {e}")
            return load_cached_expenses(self.cache), e
        if expenses:
            return expenses, None
        logger.info("Server returned no expenses; reading local cache.")
        return load_cached_expenses(self.cache), None
