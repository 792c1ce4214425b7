from __future__ import annotations
from typing import Optional

from sqlalchemy.orm import Session

from .models import KeyValueEntry


class KeyValueRepo:
    def get(self, s: Session, key: str) -> Optional[KeyValueEntry]:
        return s.get(KeyValueEntry, key)

    def put(self, s: Session, key: str, value: str) -> KeyValueEntry:
        """ Insert or overwrite the slot. """
        row = s.get(KeyValueEntry, key)
        if row is None:
            row = KeyValueEntry(key=key, value=value)
            s.add(row)
        else:
            row.value = value
        s.flush()
        return row
