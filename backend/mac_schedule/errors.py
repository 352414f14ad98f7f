from __future__ import annotations


class MalformedRemoteRecord(ValueError):
    """A feed row that cannot be turned into a record."""

    def __init__(self, row_number: int, reason: str) -> None:
        super().__init__(f"row {row_number}: {reason}")
        self.row_number = row_number
        self.reason = reason


class StorageCorrupt(ValueError):
    """Persisted device-local state that cannot be decoded."""

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(f"{key}: {reason}")
        self.key = key
        self.reason = reason
