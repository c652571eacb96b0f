# Overview: Service-layer operations for catalog items.

from __future__ import annotations

import logging
from typing import List

from sqlalchemy.orm import Session

from ..models import Item
from ..models.catalog import normalize_item_code
from .outcome import ErrorKind, Outcome
from .repositories import ItemRepository
from .unit_of_work import DataStore, transact

logger = logging.getLogger(__name__)

# Fields PATCH /api/items/<code> may change; the code itself is fixed.
UPDATABLE_FIELDS = ("name", "unit_price", "discount_percent", "reorder_level")


def create_item(
    store: DataStore,
    *,
    code: str,
    name: str,
    unit_price,
    discount_percent=0,
    reorder_level: int = 0,
) -> Outcome[Item]:
    def _op(session: Session) -> Outcome[Item]:
        items = ItemRepository(session)
        normalized = normalize_item_code(code)
        if items.exists_by_code(normalized):
            return Outcome.fail(ErrorKind.CONFLICT, f"Item code already exists: {normalized}", item_code=normalized)

        item = items.add(Item(
            code=normalized,
            name=name,
            unit_price=unit_price,
            discount_percent=discount_percent,
            reorder_level=reorder_level,
        ))
        logger.info("Created item %s (%s) at %s", item.code, item.name, item.unit_price)
        return Outcome.success(item)

    return transact(store, _op)


def update_item(store: DataStore, code: str, **changes) -> Outcome[Item]:
    """Apply field changes; every setter re-validates its value."""
    unknown = sorted(set(changes) - set(UPDATABLE_FIELDS))
    if unknown:
        return Outcome.fail(ErrorKind.INVALID_CONSTRUCTION, "Unknown or read-only fields", fields=unknown)

    def _op(session: Session) -> Outcome[Item]:
        item = ItemRepository(session).find_by_code(code)
        if item is None:
            return Outcome.fail(ErrorKind.NOT_FOUND, f"Item not found: {code}", item_code=code)
        for field, value in changes.items():
            setattr(item, field, value)
        session.flush()
        return Outcome.success(item)

    return transact(store, _op)


def get_item(store: DataStore, code: str) -> Outcome[Item]:
    def _op(session: Session) -> Outcome[Item]:
        item = ItemRepository(session).find_by_code(code)
        if item is None:
            return Outcome.fail(ErrorKind.NOT_FOUND, f"Item not found: {code}", item_code=code)
        return Outcome.success(item)

    return transact(store, _op, read_only=True)


def list_items(store: DataStore) -> Outcome[List[Item]]:
    return transact(store, lambda session: Outcome.success(ItemRepository(session).list_all()), read_only=True)
