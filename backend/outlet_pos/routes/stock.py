# Overview: Flask API routes for stock batches and channel pools.

"""
Stock routes.

POST /api/stock/batches       receive a supplier batch
GET  /api/stock/batches       list batches (optional ?item_code=)
POST /api/stock/move          move batch stock onto the shelf or website
GET  /api/stock/channels/<ch> quantities in one channel (shelf | website)
"""
from flask import Blueprint, current_app, request

from ..models.enums import Channel
from ..services import stock_service
from ..services.context import current_context
from ..validation import ValidationError, parse_date, parse_int
from .responses import json_body, outcome_response

stock_bp = Blueprint("stock", __name__, url_prefix="/api/stock")


def _parse_channel(value) -> Channel:
    try:
        return Channel(str(value).strip().upper())
    except ValueError:
        raise ValidationError("channel must be SHELF or WEBSITE")


@stock_bp.post("/batches")
def receive_batch_route():
    """
    Receive a batch.

    Body: {"item_code", "quantity", "purchase_date": "YYYY-MM-DD", "expiry_date"?: "YYYY-MM-DD"}
    """
    try:
        payload = json_body()
        item_code = payload.get("item_code")
        quantity = parse_int(payload.get("quantity"), "quantity")
        purchase_date = parse_date(payload.get("purchase_date"), "purchase_date")
        expiry_date = parse_date(payload.get("expiry_date"), "expiry_date", required=False)
    except ValidationError as e:
        return {"error": str(e)}, 400

    if not item_code:
        return {"error": "item_code is required"}, 400

    try:
        outcome = stock_service.receive_stock(
            current_context().store, item_code, quantity, purchase_date, expiry_date
        )
    except Exception:
        current_app.logger.exception("Failed to receive stock")
        return {"error": "Failed to receive stock"}, 500

    return outcome_response(outcome, lambda batch: batch.to_dict(), status=201)


@stock_bp.get("/batches")
def list_batches_route():
    item_code = request.args.get("item_code") or None
    outcome = stock_service.list_batches(current_context().store, item_code)
    return outcome_response(outcome, lambda batches: {"batches": [b.to_dict() for b in batches]})


@stock_bp.post("/move")
def move_stock_route():
    """
    Move stock from batches into a channel pool.

    Body: {"item_code", "quantity", "channel": "SHELF" | "WEBSITE"}
    Returns 409 when the batches cannot cover the quantity.
    """
    try:
        payload = json_body()
        quantity = parse_int(payload.get("quantity"), "quantity", minimum=1)
        channel = _parse_channel(payload.get("channel", Channel.SHELF.value))
    except ValidationError as e:
        return {"error": str(e)}, 400

    item_code = payload.get("item_code")
    if not item_code:
        return {"error": "item_code is required"}, 400

    context = current_context()
    try:
        outcome = stock_service.move_stock(
            context.store,
            item_code,
            quantity,
            channel,
            near_expiry_days=context.near_expiry_days,
        )
    except Exception:
        current_app.logger.exception("Failed to move stock")
        return {"error": "Failed to move stock"}, 500

    return outcome_response(outcome, lambda movement: movement.to_dict())


@stock_bp.get("/channels/<channel>")
def channel_stock_route(channel: str):
    try:
        parsed = _parse_channel(channel)
    except ValidationError as e:
        return {"error": str(e)}, 400

    outcome = stock_service.list_channel_stock(current_context().store, parsed)
    return outcome_response(
        outcome,
        lambda rows: {"channel": parsed.value, "items": [row.to_dict() for row in rows]},
    )
