# Overview: Service-layer operations for the customer registry.

from __future__ import annotations

import logging
from typing import List

from sqlalchemy.orm import Session

from ..models import Customer
from ..validation import require_text
from .outcome import ErrorKind, Outcome
from .repositories import CustomerRepository
from .unit_of_work import DataStore, transact

logger = logging.getLogger(__name__)


def register_customer(store: DataStore, *, name: str, phone: str) -> Outcome[Customer]:
    """Register a customer; phone numbers are unique."""
    def _op(session: Session) -> Outcome[Customer]:
        customers = CustomerRepository(session)
        normalized_phone = require_text(phone, "Customer phone", max_length=32)
        if customers.find_by_phone(normalized_phone) is not None:
            return Outcome.fail(
                ErrorKind.CONFLICT,
                f"Customer phone already registered: {normalized_phone}",
                phone=normalized_phone,
            )

        customer = customers.add(Customer(name=name, phone=normalized_phone))
        logger.info("Registered customer %s (%s)", customer.id, customer.name)
        return Outcome.success(customer)

    return transact(store, _op)


def get_customer(store: DataStore, customer_id: int) -> Outcome[Customer]:
    def _op(session: Session) -> Outcome[Customer]:
        customer = CustomerRepository(session).get(customer_id)
        if customer is None:
            return Outcome.fail(ErrorKind.NOT_FOUND, "Customer not found", customer_id=customer_id)
        return Outcome.success(customer)

    return transact(store, _op, read_only=True)


def find_customer_by_phone(store: DataStore, phone: str) -> Outcome[Customer]:
    def _op(session: Session) -> Outcome[Customer]:
        customer = CustomerRepository(session).find_by_phone(phone)
        if customer is None:
            return Outcome.fail(ErrorKind.NOT_FOUND, "Customer not found", phone=phone)
        return Outcome.success(customer)

    return transact(store, _op, read_only=True)


def list_customers(store: DataStore) -> Outcome[List[Customer]]:
    return transact(
        store,
        lambda session: Outcome.success(CustomerRepository(session).list_all()),
        read_only=True,
    )
