"""Settings for the kvtable command-line front end.

Environment variables are loaded from a ``.env`` file using ``python-dotenv``
and exposed through a Pydantic settings object.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator

from kvtable.domain.errors import InvalidCollectionName
from kvtable.repositories.collections import validate_collection_name

# Load environment variables from a .env file if present
load_dotenv()

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
DEFAULT_DB_PATH = os.path.join("data", "kvtable.sqlite3")
DEFAULT_COLLECTION = "user_emails"
DEFAULT_LOG_LEVEL = "WARNING"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseModel):
    """Immutable settings object used across the application."""

    db_path: Path
    collection: str = DEFAULT_COLLECTION
    log_level: str = DEFAULT_LOG_LEVEL

    model_config = ConfigDict(frozen=True)

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, v: str) -> str:
        if v not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return v


def _build_settings() -> Settings:
    """Construct the ``Settings`` instance based on environment variables."""

    db_path = Path(os.getenv("KVTABLE_DB_PATH") or DEFAULT_DB_PATH)
    collection = os.getenv("KVTABLE_COLLECTION") or DEFAULT_COLLECTION
    log_level = (os.getenv("KVTABLE_LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper()

    try:
        validate_collection_name(collection)
    except InvalidCollectionName as exc:
        raise RuntimeError(f"KVTABLE_COLLECTION is not usable: {exc}") from exc

    return Settings(db_path=db_path, collection=collection, log_level=log_level)


# Public settings instance
settings = _build_settings()
