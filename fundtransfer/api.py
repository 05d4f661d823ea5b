"""HTTP interface for the transfer service."""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from http import HTTPStatus
from typing import Any

from flask import Flask, Response, request

from .models import AccountId
from .transfer import TransferUseCase

__all__ = ["TransferRequest", "create_app", "IDEMPOTENCY_HEADER"]

log = logging.getLogger(__name__)

IDEMPOTENCY_HEADER = "X-Idempotency-Key"


def _parse_uuid(value: Any, field: str) -> uuid.UUID:
    if not isinstance(value, str):
        raise ValueError(f"{field}: expected a UUID string")
    try:
        return uuid.UUID(value)
    except ValueError:
        raise ValueError(f"{field}: invalid UUID {value!r}") from None


def _parse_decimal(value: Any, field: str) -> Decimal:
    if isinstance(value, bool):
        raise ValueError(f"{field}: expected a number")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        result = Decimal(str(value))
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation:
            raise ValueError(f"{field}: invalid decimal {value!r}") from None
    else:
        raise ValueError(f"{field}: expected a number")
    if not result.is_finite():
        raise ValueError(f"{field}: invalid decimal {value!r}")
    return result


@dataclass(frozen=True)
class TransferRequest:
    """Body of a transfer request."""

    from_account: uuid.UUID
    to_account: uuid.UUID
    amount: Decimal

    @classmethod
    def from_json(cls, payload: Any) -> TransferRequest:
        """Build a request from decoded JSON, raising ValueError if it does not fit."""
        if not isinstance(payload, dict):
            raise ValueError("expected a JSON object")
        try:
            return cls(
                from_account=_parse_uuid(payload["from_account"], "from_account"),
                to_account=_parse_uuid(payload["to_account"], "to_account"),
                amount=_parse_decimal(payload["amount"], "amount"),
            )
        except KeyError as exc:
            raise ValueError(f"missing field `{exc.args[0]}`") from None


def _text(message: str, status: HTTPStatus) -> Response:
    return Response(message, status=status, mimetype="text/plain")


def _header_value(name: str) -> str | None:
    value = request.headers.get(name)
    if value is None or not all(c == "\t" or " " <= c <= "~" for c in value):
        return None
    return value


def create_app(service: TransferUseCase) -> Flask:
    """Build the web application serving ``POST /transfer``."""
    app = Flask(__name__)

    @app.post("/transfer")
    def transfer() -> Response:
        if not request.is_json:
            return _text(
                "Expected request with `Content-Type: application/json`",
                HTTPStatus.UNSUPPORTED_MEDIA_TYPE,
            )
        try:
            payload = json.loads(request.get_data(as_text=True), parse_float=Decimal)
        except ValueError as exc:
            return _text(
                f"Failed to parse the request body as JSON: {exc}", HTTPStatus.BAD_REQUEST
            )
        try:
            body = TransferRequest.from_json(payload)
        except ValueError as exc:
            return _text(
                f"Failed to deserialize the JSON body into the target type: {exc}",
                HTTPStatus.UNPROCESSABLE_ENTITY,
            )

        key = _header_value(IDEMPOTENCY_HEADER)
        if key is None:
            return _text(
                f"Missing header: {IDEMPOTENCY_HEADER}", HTTPStatus.INTERNAL_SERVER_ERROR
            )

        try:
            message = service.execute(
                key, AccountId(body.from_account), AccountId(body.to_account), body.amount
            )
        except Exception as exc:
            log.warning("Transfer failed: %s", exc)
            return _text(f"Transfer Failed: {exc}", HTTPStatus.INTERNAL_SERVER_ERROR)
        return Response(json.dumps(message), status=HTTPStatus.OK, mimetype="application/json")

    return app