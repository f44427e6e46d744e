"""Application settings read from the environment (.env supported)."""
import os
from functools import lru_cache
from typing import List

from dotenv import load_dotenv

# load_dotenv searches the current dir and its parents
load_dotenv()


class Settings:
    def __init__(
        self,
        mongodb_uri: str,
        db_name: str,
        collection_name: str,
        port: int,
        cors_origins: List[str],
        rate_limit: str,
        rate_limit_enabled: bool,
        log_level: str,
        cache_path: str,
        api_base_url: str,
    ) -> None:
        self.mongodb_uri = mongodb_uri
        self.db_name = db_name
        self.collection_name = collection_name
        self.port = port
        self.cors_origins = cors_origins
        self.rate_limit = rate_limit
        self.rate_limit_enabled = rate_limit_enabled
        self.log_level = log_level
        self.cache_path = cache_path
        self.api_base_url = api_base_url


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    cors_origins = [
        origin.strip()
        for origin in os.getenv("CORS_ORIGINS", "*").split(",")
        if origin.strip()
    ]
    return Settings(
        mongodb_uri=os.getenv("MONGODB_URI", "mongodb://127.0.0.1:27017"),
        db_name=os.getenv("DB_NAME", "expense_tracker"),
        collection_name=os.getenv("EXPENSES_COLLECTION", "expenses"),
        port=int(os.getenv("PORT", "5000")),
        cors_origins=cors_origins or ["*"],
        rate_limit=os.getenv("RATE_LIMIT", "60/minute"),
        rate_limit_enabled=os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true",
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        cache_path=os.getenv("EXPENSES_CACHE_PATH", "./data/expenses.json"),
        api_base_url=os.getenv("API_BASE_URL", "http://localhost:5000/api"),
    )
