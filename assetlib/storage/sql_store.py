from __future__ import annotations

from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from .adapter import PersistenceError
from .kv_repo import KeyValueRepo
from .manager import DatabaseManager


class SqlStore:
    """ Key/value store on top of a SQLite file opened through the DatabaseManager. """

    def __init__(self, db: DatabaseManager):
        self.db = db
        self.repo = KeyValueRepo()

    def get(self, key: str) -> Optional[str]:
        try:
            with self.db.session() as s:
                row = self.repo.get(s, key)
                return row.value if row is not None else None
        except (SQLAlchemyError, RuntimeError) as e:
            raise PersistenceError(f"Could not read {key!r}: {e}") from e

    def set(self, key: str, blob: str) -> None:
        try:
            with self.db.session() as s:
                self.repo.put(s, key, blob)
        except (SQLAlchemyError, RuntimeError) as e:
            raise PersistenceError(f"Could not write {key!r}: {e}") from e
