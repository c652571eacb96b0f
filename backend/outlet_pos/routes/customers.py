# Overview: Flask API routes for the customer registry.

"""
Customer routes.

POST /api/customers               register {"name", "phone"}
GET  /api/customers               list (optional ?phone= for a single lookup)
GET  /api/customers/<id>          one customer
"""
from flask import Blueprint, current_app, request

from ..services import customer_service
from ..services.context import current_context
from ..validation import ValidationError
from .responses import json_body, outcome_response

customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.post("")
def register_customer_route():
    """Returns 201, 400 on invalid fields, 409 when the phone is already registered."""
    try:
        payload = json_body()
    except ValidationError as e:
        return {"error": str(e)}, 400

    missing = [field for field in ("name", "phone") if payload.get(field) is None]
    if missing:
        return {"error": f"Missing required fields: {', '.join(missing)}"}, 400

    try:
        outcome = customer_service.register_customer(
            current_context().store, name=payload["name"], phone=payload["phone"]
        )
    except Exception:
        current_app.logger.exception("Failed to register customer")
        return {"error": "Failed to register customer"}, 500

    return outcome_response(outcome, lambda customer: customer.to_dict(), status=201)


@customers_bp.get("")
def list_customers_route():
    store = current_context().store
    phone = request.args.get("phone")
    if phone:
        outcome = customer_service.find_customer_by_phone(store, phone)
        return outcome_response(outcome, lambda customer: {"customers": [customer.to_dict()]})

    outcome = customer_service.list_customers(store)
    return outcome_response(outcome, lambda customers: {"customers": [c.to_dict() for c in customers]})


@customers_bp.get("/<int:customer_id>")
def get_customer_route(customer_id: int):
    outcome = customer_service.get_customer(current_context().store, customer_id)
    return outcome_response(outcome, lambda customer: customer.to_dict())
