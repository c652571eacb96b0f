# Overview: Session-bound data access for catalog items, stock pools, batches, and bills.

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session, joinedload, selectinload

from ..models import Bill, BillItem, BillSequence, ChannelStock, Customer, Item, StockBatch
from ..models.catalog import normalize_item_code
from ..models.enums import Channel, TransactionType
from .concurrency import lock_for_update

BILL_SEQUENCE_NAME = "BILL"


class ItemRepository:
    """Catalog lookups by normalized item code."""

    def __init__(self, session: Session):
        self.session = session

    def find_by_code(self, code: str) -> Optional[Item]:
        return self.session.query(Item).filter(Item.code == normalize_item_code(code)).first()

    def exists_by_code(self, code: str) -> bool:
        return self.find_by_code(code) is not None

    def list_all(self) -> List[Item]:
        return self.session.query(Item).order_by(Item.code).all()

    def add(self, item: Item) -> Item:
        self.session.add(item)
        self.session.flush()
        return item


class CustomerRepository:
    """Registered customers, looked up by id or phone."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, customer_id: int) -> Optional[Customer]:
        return self.session.get(Customer, customer_id)

    def find_by_phone(self, phone: str) -> Optional[Customer]:
        return self.session.query(Customer).filter(Customer.phone == str(phone).strip()).first()

    def list_all(self) -> List[Customer]:
        return self.session.query(Customer).order_by(Customer.name, Customer.id).all()

    def add(self, customer: Customer) -> Customer:
        self.session.add(customer)
        self.session.flush()
        return customer


class ChannelStockRepository:
    """Per-item quantities in the SHELF and WEBSITE pools."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, item_id: int, channel: Channel, *, lock: bool = False) -> Optional[ChannelStock]:
        query = self.session.query(ChannelStock).filter(
            ChannelStock.item_id == item_id,
            ChannelStock.channel == Channel(channel),
        )
        if lock:
            query = lock_for_update(query)
        return query.first()

    def get_or_create(self, item: Item, channel: Channel, *, lock: bool = False) -> ChannelStock:
        stock = self.get(item.id, channel, lock=lock)
        if stock is None:
            stock = ChannelStock(item=item, channel=channel, quantity=0)
            self.session.add(stock)
            self.session.flush()
        return stock

    def list_for_channel(self, channel: Channel) -> List[ChannelStock]:
        return (
            self.session.query(ChannelStock)
            .options(joinedload(ChannelStock.item))
            .filter(ChannelStock.channel == Channel(channel))
            .order_by(ChannelStock.item_id)
            .all()
        )

    def list_below_reorder_level(self, channel: Channel) -> List[ChannelStock]:
        return (
            self.session.query(ChannelStock)
            .join(Item, Item.id == ChannelStock.item_id)
            .options(joinedload(ChannelStock.item))
            .filter(
                ChannelStock.channel == Channel(channel),
                ChannelStock.quantity < Item.reorder_level,
            )
            .order_by(Item.code)
            .all()
        )


class StockBatchRepository:
    """Supplier batches, oldest purchase first."""

    def __init__(self, session: Session):
        self.session = session

    def list_for_item(self, item_id: int, *, lock: bool = False) -> List[StockBatch]:
        query = (
            self.session.query(StockBatch)
            .filter(StockBatch.item_id == item_id)
            .order_by(StockBatch.purchase_date.asc(), StockBatch.id.asc())
        )
        if lock:
            query = lock_for_update(query)
        return query.all()

    def list_all(self, item_id: int | None = None) -> List[StockBatch]:
        query = self.session.query(StockBatch).options(joinedload(StockBatch.item))
        if item_id is not None:
            query = query.filter(StockBatch.item_id == item_id)
        return query.order_by(StockBatch.item_id, StockBatch.purchase_date, StockBatch.id).all()

    def add(self, batch: StockBatch) -> StockBatch:
        self.session.add(batch)
        self.session.flush()
        return batch


class BillRepository:
    """Invoice store: persisting bills and reading them back with their lines."""

    def __init__(self, session: Session):
        self.session = session

    def _query(self):
        return self.session.query(Bill).options(
            selectinload(Bill.items).joinedload(BillItem.item)
        )

    def add(self, bill: Bill) -> Bill:
        """Persist a built bill; its identity is assigned by the flush."""
        self.session.add(bill)
        self.session.flush()
        return bill

    def get(self, bill_id: int) -> Optional[Bill]:
        return self._query().filter(Bill.id == bill_id).first()

    def find_by_serial(self, serial_number: str) -> Optional[Bill]:
        return self._query().filter(Bill.serial_number == serial_number).first()

    def list_between(
        self,
        start: datetime,
        end: datetime,
        transaction_type: TransactionType | None = None,
    ) -> List[Bill]:
        """Bills issued in [start, end)."""
        query = self._query().filter(Bill.issued_at >= start, Bill.issued_at < end)
        if transaction_type is not None:
            query = query.filter(Bill.transaction_type == TransactionType(transaction_type))
        return query.order_by(Bill.issued_at, Bill.id).all()

    def list_for_date(self, day: date, transaction_type: TransactionType | None = None) -> List[Bill]:
        start = datetime.combine(day, time.min)
        return self.list_between(start, start + timedelta(days=1), transaction_type)

    def next_sequence_number(self) -> int:
        """
        Atomically allocate the next bill sequence number.

        The UPDATE takes the row lock; the first call creates the counter row.
        """
        stmt = (
            update(BillSequence)
            .where(BillSequence.name == BILL_SEQUENCE_NAME)
            .values(next_number=BillSequence.next_number + 1)
        )
        result = self.session.execute(stmt)
        if result.rowcount:
            current = (
                self.session.query(BillSequence.next_number)
                .filter(BillSequence.name == BILL_SEQUENCE_NAME)
                .scalar()
            )
            return current - 1

        self.session.add(BillSequence(name=BILL_SEQUENCE_NAME, next_number=2))
        self.session.flush()
        return 1
