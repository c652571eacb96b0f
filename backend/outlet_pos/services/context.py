# Overview: Wiring of the store handle and sale collaborators for one Flask app.

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app

from .allocation import DEFAULT_NEAR_EXPIRY_DAYS
from .bill_printer import ConsoleBillPrinter
from .payment_gateway import MockPaymentGateway, PaymentGateway
from .serial_numbers import DatePrefixedSerialGenerator
from .unit_of_work import DataStore

EXTENSION_KEY = "outlet_pos"


@dataclass
class PosContext:
    """Everything a route or CLI command needs to call the services."""
    store: DataStore
    serial_generator: DatePrefixedSerialGenerator
    payment_gateway: PaymentGateway
    printer: ConsoleBillPrinter | None
    near_expiry_days: int = DEFAULT_NEAR_EXPIRY_DAYS

    def sale_collaborators(self) -> dict:
        return {
            "serial_generator": self.serial_generator,
            "payment_gateway": self.payment_gateway,
            "printer": self.printer,
        }


def build_context(config, engine) -> PosContext:
    return PosContext(
        store=DataStore.from_engine(engine),
        serial_generator=DatePrefixedSerialGenerator(),
        payment_gateway=MockPaymentGateway(approve=config.get("PAYMENT_GATEWAY_APPROVE", True)),
        printer=ConsoleBillPrinter(
            store_name=config.get("STORE_NAME", "OUTLET STORE"),
            store_location=config.get("STORE_LOCATION"),
            archive_dir=config.get("BILL_ARCHIVE_DIR"),
        ),
        near_expiry_days=config.get("NEAR_EXPIRY_DAYS", DEFAULT_NEAR_EXPIRY_DAYS),
    )


def current_context() -> PosContext:
    return current_app.extensions[EXTENSION_KEY]
