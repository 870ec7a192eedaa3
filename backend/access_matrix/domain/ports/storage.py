from __future__ import annotations

from typing import Protocol


class KeyValueStorage(Protocol):
    """Durable string key-value store backing the permission matrix.

    Implementations raise ``StorageError`` when the backend is unreachable.
    """

    def get(self, key: str) -> str | None:
        ...

    def set(self, key: str, value: str) -> None:
        ...
