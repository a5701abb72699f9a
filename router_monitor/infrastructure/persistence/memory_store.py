from __future__ import annotations

from typing import List, Optional, Sequence

from ...core.domain.records import RangeAggregate, TimeSeriesRecord


class InMemoryTimeSeriesStore:
    """Implementación sencilla en memoria del time-series store.

    - Un único escritor (el ciclo de polling).
    - Sin persistencia: se pierde al terminar el proceso.
    - Útil para tests.
    """

    def __init__(self) -> None:
        self._records: List[TimeSeriesRecord] = []

    def __len__(self) -> int:
        return len(self._records)

    @property
    def records(self) -> List[TimeSeriesRecord]:
        return sorted(self._records, key=lambda r: r.timestamp)

    def append(self, record: TimeSeriesRecord) -> None:
        self._records.append(record)

    def append_many(self, records: Sequence[TimeSeriesRecord]) -> None:
        self._records.extend(records)

    def latest_before(
        self, timestamp: int, with_lifetime: bool = False
    ) -> Optional[TimeSeriesRecord]:
        candidates = [
            r for r in self.records
            if r.timestamp < timestamp and (not with_lifetime or r.lifetime_bytes is not None)
        ]
        return candidates[-1] if candidates else None

    def range_min_max_aggregate(self, from_timestamp: int) -> Optional[RangeAggregate]:
        values = [
            r.aggregate_total for r in self._records
            if r.timestamp >= from_timestamp and not r.interpolated
        ]
        return _range(values)

    def range_min_max_lifetime(self, from_timestamp: int) -> Optional[RangeAggregate]:
        values = [
            r.lifetime_bytes for r in self._records
            if r.timestamp >= from_timestamp and r.lifetime_bytes is not None
        ]
        return _range(values)

    def last_n(self, n: int, real_only: bool = False) -> List[TimeSeriesRecord]:
        if n <= 0:
            return []
        records = [r for r in self.records if not (real_only and r.interpolated)]
        return records[-n:]

    def delete_older_than(self, cutoff_timestamp: int) -> int:
        before = len(self._records)
        self._records = [r for r in self._records if r.timestamp >= cutoff_timestamp]
        return before - len(self._records)


def _range(values: list) -> Optional[RangeAggregate]:
    if not values:
        return None
    return RangeAggregate(min_value=min(values), max_value=max(values), count=len(values))
