# Overview: Flask API routes for catalog items; parses input and returns JSON responses.

"""
Item catalog routes.

Codes are normalized (trimmed, upper-cased) by the service, so
GET /api/items/abc and GET /api/items/ABC address the same item.
"""
from flask import Blueprint, current_app

from ..services import catalog_service
from ..services.context import current_context
from ..services.catalog_service import UPDATABLE_FIELDS
from ..validation import ValidationError
from .responses import json_body, outcome_response

items_bp = Blueprint("items", __name__, url_prefix="/api/items")

REQUIRED_ON_CREATE = ("code", "name", "unit_price")


@items_bp.post("")
def create_item_route():
    """
    Create a catalog item.

    Body: {"code", "name", "unit_price", "discount_percent"?, "reorder_level"?}
    Returns 201, 400 on invalid fields, 409 when the code already exists.
    """
    try:
        payload = json_body()
    except ValidationError as e:
        return {"error": str(e)}, 400
    missing = [field for field in REQUIRED_ON_CREATE if payload.get(field) is None]
    if missing:
        return {"error": f"Missing required fields: {', '.join(missing)}"}, 400

    try:
        outcome = catalog_service.create_item(
            current_context().store,
            code=payload["code"],
            name=payload["name"],
            unit_price=payload["unit_price"],
            discount_percent=payload.get("discount_percent", 0),
            reorder_level=payload.get("reorder_level", 0),
        )
    except Exception:
        current_app.logger.exception("Failed to create item")
        return {"error": "Failed to create item"}, 500

    return outcome_response(outcome, lambda item: item.to_dict(), status=201)


@items_bp.get("")
def list_items_route():
    outcome = catalog_service.list_items(current_context().store)
    return outcome_response(outcome, lambda items: {"items": [item.to_dict() for item in items]})


@items_bp.get("/<code>")
def get_item_route(code: str):
    outcome = catalog_service.get_item(current_context().store, code)
    return outcome_response(outcome, lambda item: item.to_dict())


@items_bp.patch("/<code>")
def update_item_route(code: str):
    """Update name, price, discount or reorder level. The code cannot change."""
    try:
        payload = json_body()
    except ValidationError as e:
        return {"error": str(e)}, 400
    if not payload:
        return {"error": "No fields to update"}, 400
    if "code" in payload:
        return {"error": "Item code cannot be changed"}, 400

    unknown = sorted(set(payload) - set(UPDATABLE_FIELDS))
    if unknown:
        return {"error": f"Unknown fields: {', '.join(unknown)}"}, 400

    outcome = catalog_service.update_item(current_context().store, code, **payload)
    return outcome_response(outcome, lambda item: item.to_dict())
