"""Runtime settings read from the environment."""

import os
from functools import lru_cache
from pathlib import Path


class Settings:
    def __init__(
        self,
        database_path: str,
        owner_id: str,
        log_level: str,
        query_timeout_secs: float,
    ) -> None:
        self.database_path = database_path
        self.owner_id = owner_id
        self.log_level = log_level
        self.query_timeout_secs = query_timeout_secs


def _default_database_path() -> str:
    db_dir = Path.home() / ".finovate"
    db_dir.mkdir(exist_ok=True)
    return str(db_dir / "finovate.db")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    database_path = os.getenv("FINOVATE_DB_PATH") or _default_database_path()
    owner_id = os.getenv("FINOVATE_OWNER", "local")
    log_level = os.getenv("FINOVATE_LOG_LEVEL", "WARNING")
    query_timeout_secs = float(os.getenv("FINOVATE_QUERY_TIMEOUT", "5"))
    return Settings(
        database_path=database_path,
        owner_id=owner_id,
        log_level=log_level,
        query_timeout_secs=query_timeout_secs,
    )
