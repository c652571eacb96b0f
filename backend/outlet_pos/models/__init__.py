from .enums import Channel, TransactionType, PaymentMethod
from .catalog import Item
from .customers import Customer
from .inventory import StockBatch, ChannelStock
from .billing import Bill, BillItem, BillSequence, BillConstructionError

__all__ = [
    'Channel', 'TransactionType', 'PaymentMethod',
    'Item',
    'Customer',
    'StockBatch', 'ChannelStock',
    'Bill', 'BillItem', 'BillSequence', 'BillConstructionError',
]
