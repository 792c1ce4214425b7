from __future__ import annotations

from typing import Optional, Protocol


class PersistenceError(Exception):
    """ Storage medium failed: unavailable, full, or refused the read/write. """


# ---------- Storage seam ----------
class PersistenceAdapter(Protocol):
    """ Synchronous key → text blob store. Failures are raised as PersistenceError. """

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, blob: str) -> None:
        ...


class MemoryStore:
    """ Dict-backed store. Can be told to fail reads or writes to exercise error paths. """

    def __init__(self, initial: dict[str, str] | None = None, *, fail_reads: bool = False,
                 fail_writes: bool = False) -> None:
        self.data: dict[str, str] = dict(initial or {})
        self.fail_reads = fail_reads
        self.fail_writes = fail_writes
        self.writes = 0

    def get(self, key: str) -> Optional[str]:
        if self.fail_reads:
            raise PersistenceError(f"read of {key!r} refused")
        return self.data.get(key)

    def set(self, key: str, blob: str) -> None:
        if self.fail_writes:
            raise PersistenceError(f"write of {key!r} refused")
        self.data[key] = blob
        self.writes += 1
