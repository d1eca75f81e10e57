"""
In-process delivery store with the same interface as ``DeliveryRepository``.

Used when state lives in memory (tests, single-process demos).  Reads hand
out deep copies, so an entity mutated by a failed transition never leaks
back into the store; ``save`` swaps the stored copy only if its status is
still the one the caller read.
"""

from __future__ import annotations

import copy
import itertools
from typing import Iterable, Optional

from tripdrop.domain.entities import DeliveryRequest
from tripdrop.domain.enums import DeliveryStatus
from tripdrop.domain.routing import pickup_cell


class InMemoryDeliveryRepository:
    def __init__(self) -> None:
        self._rows: dict[int, DeliveryRequest] = {}
        self._ids = itertools.count(1)

    async def add(self, delivery: DeliveryRequest) -> DeliveryRequest:
        stored = copy.deepcopy(delivery)
        stored.id = next(self._ids)
        if stored.pickup_cell is None:
            stored.pickup_cell = pickup_cell(stored.pickup.coordinate)
        self._rows[stored.id] = stored
        return copy.deepcopy(stored)

    async def get(self, delivery_id: int) -> Optional[DeliveryRequest]:
        row = self._rows.get(delivery_id)
        return copy.deepcopy(row) if row else None

    async def get_for_update(self, delivery_id: int) -> Optional[DeliveryRequest]:
        return await self.get(delivery_id)

    async def get_by_idempotency_key(self, key: str) -> Optional[DeliveryRequest]:
        for row in self._rows.values():
            if row.idempotency_key == key:
                return copy.deepcopy(row)
        return None

    async def list_pending(
        self, cells: Optional[Iterable[str]] = None
    ) -> list[DeliveryRequest]:
        wanted = set(cells) if cells is not None else None
        return [
            copy.deepcopy(row)
            for row in self._rows.values()
            if row.status == DeliveryStatus.PENDING
            and (wanted is None or row.pickup_cell in wanted)
        ]

    async def save(
        self, delivery: DeliveryRequest, expected_status: DeliveryStatus
    ) -> bool:
        # No await between the check and the swap: atomic on the event loop
        current = self._rows.get(delivery.id)
        if current is None or current.status != expected_status:
            return False
        self._rows[delivery.id] = copy.deepcopy(delivery)
        return True

    async def count_by_status(self) -> dict[DeliveryStatus, int]:
        counts = {status: 0 for status in DeliveryStatus}
        for row in self._rows.values():
            counts[row.status] += 1
        return counts
