from __future__ import annotations

from bisect import bisect_left
from threading import Lock
from typing import Iterable

from domain.rates import RateKey, RateRecord


class RateStore:
    """Ordered set of rate slots keyed by ``(valid_from, value_inc_vat)``.

    Inserting a record whose key is already present is a no-op, so merging
    overlapping pages is idempotent. There is no removal; a store only grows.
    """

    def __init__(self, records: Iterable[RateRecord] = ()) -> None:
        self._lock = Lock()
        self._keys: list[RateKey] = []
        self._records: list[RateRecord] = []
        self.merge_all(records)

    def insert(self, record: RateRecord) -> bool:
        key = record.key
        with self._lock:
            index = bisect_left(self._keys, key)
            if index < len(self._keys) and self._keys[index] == key:
                return False
            self._keys.insert(index, key)
            self._records.insert(index, record)
            return True

    def merge_all(self, records: Iterable[RateRecord]) -> int:
        return sum(1 for record in records if self.insert(record))

    def snapshot(self) -> tuple[RateRecord, ...]:
        with self._lock:
            return tuple(self._records)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __bool__(self) -> bool:
        return len(self) > 0


__all__ = ["RateStore"]
