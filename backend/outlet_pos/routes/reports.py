# Overview: Flask API routes for reports; parses query params and returns JSON responses.

"""
Reporting endpoints (read-only).

GET /api/reports/daily-sales?date=YYYY-MM-DD&type=COUNTER|ONLINE
GET /api/reports/reorder?channel=SHELF|WEBSITE
GET /api/reports/stock?as_of=YYYY-MM-DD
GET /api/reports/bills?start=YYYY-MM-DD&end=YYYY-MM-DD
"""
from flask import Blueprint, request

from ..models.enums import Channel, TransactionType
from ..services import reporting_service
from ..services.context import current_context
from ..time_utils import today
from ..validation import ValidationError, parse_date
from .responses import outcome_response

reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


def _optional_enum(enum_cls, name: str):
    raw = request.args.get(name)
    if not raw:
        return None
    try:
        return enum_cls(raw.strip().upper())
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(f"{name} must be one of: {allowed}")


@reports_bp.get("/daily-sales")
def daily_sales_report_route():
    try:
        day = parse_date(request.args.get("date"), "date", required=False) or today()
        transaction_type = _optional_enum(TransactionType, "type")
    except ValidationError as e:
        return {"error": str(e)}, 400

    outcome = reporting_service.daily_sales_report(
        current_context().store, day=day, transaction_type=transaction_type
    )
    return outcome_response(outcome, lambda report: report)


@reports_bp.get("/reorder")
def reorder_report_route():
    try:
        channel = _optional_enum(Channel, "channel") or Channel.SHELF
    except ValidationError as e:
        return {"error": str(e)}, 400

    outcome = reporting_service.reorder_report(current_context().store, channel=channel)
    return outcome_response(outcome, lambda report: report)


@reports_bp.get("/stock")
def stock_report_route():
    try:
        as_of = parse_date(request.args.get("as_of"), "as_of", required=False)
    except ValidationError as e:
        return {"error": str(e)}, 400

    outcome = reporting_service.stock_report(current_context().store, as_of=as_of)
    return outcome_response(outcome, lambda report: report)


@reports_bp.get("/bills")
def bill_report_route():
    try:
        start = parse_date(request.args.get("start"), "start", required=False)
        end = parse_date(request.args.get("end"), "end", required=False)
    except ValidationError as e:
        return {"error": str(e)}, 400

    outcome = reporting_service.bill_report(current_context().store, start=start, end=end)
    return outcome_response(outcome, lambda report: report)
