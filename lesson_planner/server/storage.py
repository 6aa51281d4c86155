# server/storage.py
"""
String-keyed local storage: one ``<key>.json`` file per entry under a
store directory. Values are opaque strings; callers serialize.
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .errors import StorageUnavailableError

# Base directory: .../lesson_planner/server
BASE_DIR = Path(__file__).resolve().parent
# repo root
ROOT_DIR = BASE_DIR.parent.parent


def default_store_dir() -> Path:
    """
    LESSON_PLANNER_STORE_DIR from the environment or .env, else
    .../lesson_planner/server/store. Read on every call so a .env
    loaded after import still counts.
    """
    load_dotenv(ROOT_DIR / ".env")
    load_dotenv()
    return Path(os.getenv("LESSON_PLANNER_STORE_DIR") or BASE_DIR / "store")


class LocalStorage:
    def __init__(self, store_dir: Optional[Path] = None):
        self._store_dir = Path(store_dir) if store_dir is not None else default_store_dir()

    @property
    def store_dir(self) -> Path:
        return self._store_dir

    def path_for(self, key: str) -> Path:
        """Return the JSON path for this key."""
        return self._store_dir / f"{key}.json"

    def get_item(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            print(f"[storage] Failed to read {path}: {e}")
            raise StorageUnavailableError() from e

    def set_item(self, key: str, value: str) -> None:
        """Overwrite the whole entry; written to a temp file then swapped in."""
        path = self.path_for(key)
        tmp = path.with_suffix(".json.tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(value, encoding="utf-8")
            os.replace(tmp, path)
        except OSError as e:
            print(f"[storage] Failed to write {path}: {e}")
            raise StorageUnavailableError() from e
