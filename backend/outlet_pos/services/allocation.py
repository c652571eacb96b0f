# Overview: Batch selection (FEFO with FIFO fallback) for shelf and website replenishment.

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Sequence

from ..models import StockBatch
from .outcome import ErrorKind, Outcome

"""
Replenishment batch selection (authoritative)

Given an item's batches and a quantity to move:
1. Only batches with quantity_remaining > 0 take part.
   - with-expiry batches are ordered by expiry date (then purchase date, id)
   - without-expiry batches are ordered by purchase date (then id)
2. Near-expiry first (FEFO): with-expiry batches whose expiry is strictly
   before today + near_expiry_days, in expiry order, until the selected
   remaining quantity covers the request.
3. Then without-expiry batches in arrival order (FIFO).
4. Then the rest of the with-expiry batches in expiry order.
5. If the selection still cannot cover the request -> INSUFFICIENT_BATCH_STOCK.

Draining walks the selection in order, taking min(needed, remaining) from each.
"""

logger = logging.getLogger(__name__)

DEFAULT_NEAR_EXPIRY_DAYS = 30


@dataclass(frozen=True)
class BatchDraw:
    batch: StockBatch
    quantity: int

    def to_dict(self) -> dict:
        return {
            "batch_id": self.batch.id,
            "quantity": self.quantity,
            "quantity_remaining": self.batch.quantity_remaining,
            "expiry_date": self.batch.expiry_date.isoformat() if self.batch.expiry_date else None,
        }


def _expiry_key(batch: StockBatch):
    return (batch.expiry_date, batch.purchase_date, batch.id or 0)


def _arrival_key(batch: StockBatch):
    return (batch.purchase_date, batch.id or 0)


def select_batches(
    batches: Sequence[StockBatch],
    quantity: int,
    *,
    today: date,
    near_expiry_days: int = DEFAULT_NEAR_EXPIRY_DAYS,
) -> Outcome[List[StockBatch]]:
    available = [b for b in batches if b.quantity_remaining > 0]
    with_expiry = sorted((b for b in available if b.expiry_date is not None), key=_expiry_key)
    without_expiry = sorted((b for b in available if b.expiry_date is None), key=_arrival_key)
    threshold = today + timedelta(days=near_expiry_days)

    selected: List[StockBatch] = []
    covered = 0

    def satisfied() -> bool:
        return covered >= quantity

    for batch in with_expiry:
        if satisfied() or batch.expiry_date >= threshold:
            break
        selected.append(batch)
        covered += batch.quantity_remaining

    for batch in without_expiry:
        if satisfied():
            break
        selected.append(batch)
        covered += batch.quantity_remaining

    for batch in with_expiry:
        if satisfied():
            break
        if any(batch is chosen for chosen in selected):
            continue
        selected.append(batch)
        covered += batch.quantity_remaining

    if not satisfied():
        return Outcome.fail(
            ErrorKind.INSUFFICIENT_BATCH_STOCK,
            f"Insufficient stock in batches. Need {quantity} but only {covered} available.",
            requested_quantity=quantity,
            available_quantity=covered,
        )

    return Outcome.success(selected)


def drain_batches(selected: Sequence[StockBatch], quantity: int) -> List[BatchDraw]:
    """Take `quantity` units from the selected batches, in order, decrementing each."""
    draws: List[BatchDraw] = []
    needed = quantity
    for batch in selected:
        if needed == 0:
            break
        take = min(needed, batch.quantity_remaining)
        batch.reduce_stock(take)
        logger.info("Taking %d units from batch %s (expires %s)", take, batch.id, batch.expiry_date)
        draws.append(BatchDraw(batch=batch, quantity=take))
        needed -= take
    return draws
