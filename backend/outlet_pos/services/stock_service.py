# Overview: Service-layer operations for stock batches and channel pools.

"""
Stock Service

WHY: Stock arrives in supplier batches and is then moved onto the shelf
(counter sales) or into the website pool (online orders). Sales only ever
read the channel pools; batches are drained when stock is moved.

DESIGN:
- receive_stock() records a batch; it never touches a channel pool
- move_stock() drains batches near-expiry first, then oldest, and adds the
  full quantity to the destination pool in the same unit of work
- moving more than the batches hold fails with INSUFFICIENT_BATCH_STOCK and
  changes nothing
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import List

from sqlalchemy.orm import Session

from ..models import ChannelStock, StockBatch
from ..models.enums import Channel
from ..time_utils import today as current_date
from ..validation import parse_int
from .allocation import DEFAULT_NEAR_EXPIRY_DAYS, BatchDraw, drain_batches, select_batches
from .outcome import ErrorKind, Outcome
from .repositories import ChannelStockRepository, ItemRepository, StockBatchRepository
from .unit_of_work import DataStore, transact

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StockMovement:
    item_code: str
    channel: Channel
    quantity: int
    channel_quantity: int
    draws: List[BatchDraw]

    def to_dict(self) -> dict:
        return {
            "item_code": self.item_code,
            "channel": self.channel.value,
            "quantity": self.quantity,
            "channel_quantity": self.channel_quantity,
            "draws": [draw.to_dict() for draw in self.draws],
        }


def _item_not_found(code: str) -> Outcome:
    return Outcome.fail(ErrorKind.NOT_FOUND, f"Item not found: {code}", item_code=code)


def receive_stock(
    store: DataStore,
    item_code: str,
    quantity: int,
    purchase_date: date,
    expiry_date: date | None = None,
) -> Outcome[StockBatch]:
    """Record a new supplier batch for an existing item."""
    def _op(session: Session) -> Outcome[StockBatch]:
        item = ItemRepository(session).find_by_code(item_code)
        if item is None:
            return _item_not_found(item_code)

        batch = StockBatch(
            item=item,
            quantity_received=quantity,
            purchase_date=purchase_date,
            expiry_date=expiry_date,
        )
        StockBatchRepository(session).add(batch)
        logger.info(
            "Received batch %s: %d x %s (expires %s)",
            batch.id, batch.quantity_received, item.code, batch.expiry_date,
        )
        return Outcome.success(batch)

    return transact(store, _op)


def move_stock(
    store: DataStore,
    item_code: str,
    quantity: int,
    channel: Channel,
    *,
    today: date | None = None,
    near_expiry_days: int = DEFAULT_NEAR_EXPIRY_DAYS,
) -> Outcome[StockMovement]:
    """Move `quantity` units of an item from its batches into a channel pool."""
    channel = Channel(channel)
    as_of = today or current_date()

    def _op(session: Session) -> Outcome[StockMovement]:
        amount = parse_int(quantity, "quantity")
        if amount <= 0:
            return Outcome.fail(ErrorKind.INVALID_CONSTRUCTION, "Quantity must be positive", quantity=amount)

        item = ItemRepository(session).find_by_code(item_code)
        if item is None:
            return _item_not_found(item_code)

        batches = StockBatchRepository(session).list_for_item(item.id, lock=True)
        selected = select_batches(batches, amount, today=as_of, near_expiry_days=near_expiry_days)
        if not selected.ok:
            return selected

        draws = drain_batches(selected.value, amount)
        pool = ChannelStockRepository(session).get_or_create(item, channel, lock=True)
        pool.add_stock(amount)
        session.flush()

        logger.info("Moved %d x %s to %s (now %d)", amount, item.code, channel.value, pool.quantity)
        return Outcome.success(StockMovement(
            item_code=item.code,
            channel=channel,
            quantity=amount,
            channel_quantity=pool.quantity,
            draws=draws,
        ))

    return transact(store, _op, immediate=True)


def move_to_shelf(store: DataStore, item_code: str, quantity: int, **kwargs) -> Outcome[StockMovement]:
    return move_stock(store, item_code, quantity, Channel.SHELF, **kwargs)


def move_to_website(store: DataStore, item_code: str, quantity: int, **kwargs) -> Outcome[StockMovement]:
    return move_stock(store, item_code, quantity, Channel.WEBSITE, **kwargs)


def list_batches(store: DataStore, item_code: str | None = None) -> Outcome[List[StockBatch]]:
    def _op(session: Session) -> Outcome[List[StockBatch]]:
        repo = StockBatchRepository(session)
        if item_code is None:
            return Outcome.success(repo.list_all())
        item = ItemRepository(session).find_by_code(item_code)
        if item is None:
            return _item_not_found(item_code)
        return Outcome.success(repo.list_all(item_id=item.id))

    return transact(store, _op, read_only=True)


def list_channel_stock(store: DataStore, channel: Channel) -> Outcome[List[ChannelStock]]:
    channel = Channel(channel)
    return transact(
        store,
        lambda session: Outcome.success(ChannelStockRepository(session).list_for_channel(channel)),
        read_only=True,
    )
