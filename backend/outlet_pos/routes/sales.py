# Overview: Flask API routes for sales; parses carts and returns bills as JSON.

"""
Sales routes.

A sale is one request: the cart, the payment and (for cash) the amount
tendered. Counter sales draw from the shelf, online sales from the website
pool; the transaction type decides which.

Error mapping:
- 404 item or bill not found
- 409 insufficient channel stock
- 400 invalid cart, discount above subtotal, insufficient cash
- 402 payment declined
"""
from flask import Blueprint, current_app, request

from ..models.enums import PaymentMethod, TransactionType
from ..money import Money
from ..services import sales_service
from ..services.context import current_context
from ..validation import ValidationError, parse_date, parse_int
from .responses import json_body, outcome_response

sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


def _parse_lines(payload: dict) -> list:
    raw_lines = payload.get("lines")
    if not isinstance(raw_lines, list) or not raw_lines:
        raise ValidationError("lines must be a non-empty list")
    lines = []
    for raw in raw_lines:
        if not isinstance(raw, dict):
            raise ValidationError("each line must be an object")
        lines.append(sales_service.CartLine(
            item_code=raw.get("item_code"),
            quantity=parse_int(raw.get("quantity"), "quantity", minimum=1),
        ))
    return lines


def _parse_money(payload: dict, field: str) -> Money | None:
    value = payload.get(field)
    if value is None:
        return None
    return Money.of(value)


def _parse_enum(enum_cls, value, field: str):
    try:
        return enum_cls(str(value).strip().upper())
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(f"{field} must be one of: {allowed}")


def _parse_sale_request(payload: dict) -> sales_service.SaleRequest:
    transaction_type = _parse_enum(
        TransactionType, payload.get("transaction_type", TransactionType.COUNTER.value), "transaction_type"
    )
    default_method = PaymentMethod.CASH if transaction_type is TransactionType.COUNTER else None
    raw_method = payload.get("payment_method") or (default_method.value if default_method else None)
    if raw_method is None:
        raise ValidationError("payment_method is required for online sales")

    customer_id = payload.get("customer_id")
    return sales_service.SaleRequest(
        lines=_parse_lines(payload),
        transaction_type=transaction_type,
        payment_method=_parse_enum(PaymentMethod, raw_method, "payment_method"),
        customer_name=payload.get("customer_name"),
        customer_id=parse_int(customer_id, "customer_id", minimum=1) if customer_id is not None else None,
        cash_tendered=_parse_money(payload, "cash_tendered"),
        discount=_parse_money(payload, "discount"),
    )


@sales_bp.post("")
def create_sale_route():
    """
    Process a sale.

    Body:
    {
      "transaction_type": "COUNTER" | "ONLINE",
      "payment_method": "CASH" | "CREDIT_CARD" | "PAYPAL",
      "lines": [{"item_code": "A1", "quantity": 2}],
      "cash_tendered"?: "200.00",
      "discount"?: "10.00",
      "customer_name"?: "...", "customer_id"?: 1
    }

    Returns 201 with {"bill", "printed", "print_error"}.
    """
    try:
        payload = json_body()
        sale_request = _parse_sale_request(payload)
    except ValidationError as e:
        return {"error": str(e)}, 400

    context = current_context()
    try:
        outcome = sales_service.process_sale(
            context.store, sale_request, **context.sale_collaborators()
        )
    except Exception:
        current_app.logger.exception("Failed to process sale")
        return {"error": "Failed to process sale"}, 500

    return outcome_response(outcome, lambda receipt: receipt.to_dict(), status=201)


@sales_bp.post("/preview")
def preview_sale_route():
    """Price a cart without selling it."""
    try:
        payload = json_body()
        lines = _parse_lines(payload)
        discount = _parse_money(payload, "discount")
    except ValidationError as e:
        return {"error": str(e)}, 400

    outcome = sales_service.preview_sale(current_context().store, lines, discount=discount)
    return outcome_response(outcome, lambda preview: preview.to_dict())


@sales_bp.get("/<int:bill_id>")
def get_sale_route(bill_id: int):
    outcome = sales_service.get_bill(current_context().store, bill_id)
    return outcome_response(outcome, lambda bill: bill.to_dict())


@sales_bp.get("/serial/<serial_number>")
def get_sale_by_serial_route(serial_number: str):
    outcome = sales_service.find_bill_by_serial(current_context().store, serial_number)
    return outcome_response(outcome, lambda bill: bill.to_dict())


@sales_bp.get("")
def list_sales_route():
    """
    List bills for one day.

    Query params:
    - date: YYYY-MM-DD (required)
    - type: COUNTER | ONLINE (optional)
    """
    try:
        day = parse_date(request.args.get("date"), "date")
        raw_type = request.args.get("type")
        transaction_type = _parse_enum(TransactionType, raw_type, "type") if raw_type else None
    except ValidationError as e:
        return {"error": str(e)}, 400

    outcome = sales_service.list_bills(current_context().store, day, transaction_type)
    return outcome_response(outcome, lambda bills: {"bills": [bill.to_dict() for bill in bills]})
