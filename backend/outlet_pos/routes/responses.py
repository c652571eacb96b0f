# Overview: Shared JSON shapes for service outcomes returned by the API routes.

from flask import request

from ..services.outcome import ErrorKind, Failure
from ..validation import ValidationError


FAILURE_STATUS = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.INSUFFICIENT_STOCK: 409,
    ErrorKind.INSUFFICIENT_BATCH_STOCK: 409,
    ErrorKind.CONFLICT: 409,
    ErrorKind.INVALID_CONSTRUCTION: 400,
    ErrorKind.INSUFFICIENT_CASH: 400,
    ErrorKind.PAYMENT_DECLINED: 402,
    ErrorKind.PERSISTENCE_FAILURE: 500,
}


def failure_response(failure: Failure):
    return failure.to_dict(), FAILURE_STATUS.get(failure.kind, 400)


def outcome_response(outcome, render, status: int = 200):
    """Render a successful outcome with `render(value)`, or map its failure to a status code."""
    if not outcome.ok:
        return failure_response(outcome.failure)
    return render(outcome.value), status


def json_body() -> dict:
    """The request's JSON object; a missing or unparsable body counts as empty."""
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload
