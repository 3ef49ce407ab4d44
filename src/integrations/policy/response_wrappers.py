from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, ValidationError

from src.integrations.contracts.interfaces import PaymentStatus


class IntegrationResponseError(ValueError):
    def __init__(self, message: str, *, payload: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.payload = payload or {}


class TokenResponseModel(BaseModel):
    token: str
    expires_in: Optional[int] = Field(default=None, ge=0)


class CollectResponseModel(BaseModel):
    reference: str
    operator: Optional[str] = None
    ussd_code: Optional[str] = None
    raw: Dict[str, Any] = Field(default_factory=dict)


class StatusResponseModel(BaseModel):
    reference: str
    status: PaymentStatus
    amount: Optional[str] = None
    operator: Optional[str] = None
    operator_code: Optional[str] = None
    external_reference: Optional[str] = None
    raw: Dict[str, Any] = Field(default_factory=dict)


def normalize_token_response(raw: Dict[str, Any]) -> TokenResponseModel:
    token = _first_non_empty(raw, "token", "access_token")
    expires_in = _first_non_empty(raw, "expires_in", "expiresIn", default=0)
    try:
        lifetime = int(expires_in)
    except (TypeError, ValueError) as exc:
        raise IntegrationResponseError(f"Invalid token lifetime: {expires_in!r}", payload=raw) from exc
    return _build_model(
        TokenResponseModel,
        {"token": str(token), "expires_in": lifetime or None},
        raw,
    )


def normalize_collect_response(raw: Dict[str, Any]) -> CollectResponseModel:
    reference = _first_non_empty(raw, "reference", "transaction_reference", "transaction_id")
    operator = _first_non_empty(raw, "operator", default="") or None
    ussd_code = _first_non_empty(raw, "ussd_code", "ussdCode", default="") or None

    return _build_model(
        CollectResponseModel,
        {
            "reference": str(reference),
            "operator": operator,
            "ussd_code": ussd_code,
            "raw": raw,
        },
        raw,
    )


def normalize_status_response(raw: Dict[str, Any], *, fallback_reference: str) -> StatusResponseModel:
    reference = str(_first_non_empty(raw, "reference", "transaction_reference", default=fallback_reference))
    status = map_payment_status(_first_non_empty(raw, "status", "payment_status"))
    amount = _first_non_empty(raw, "amount", default="")
    operator = _first_non_empty(raw, "operator", default="") or None
    operator_code = _first_non_empty(raw, "code", "operator_code", default="") or None
    external_reference = _first_non_empty(raw, "external_reference", default="") or None

    return _build_model(
        StatusResponseModel,
        {
            "reference": reference,
            "status": status,
            "amount": str(amount) if amount != "" else None,
            "operator": operator,
            "operator_code": operator_code,
            "external_reference": external_reference,
            "raw": raw,
        },
        raw,
    )


def map_payment_status(raw_status: Any) -> PaymentStatus:
    value = str(raw_status or "").strip().upper()
    mapping = {
        "PENDING": PaymentStatus.PENDING,
        "PROCESSING": PaymentStatus.PENDING,
        "INITIATED": PaymentStatus.PENDING,
        "SUCCESSFUL": PaymentStatus.SUCCESSFUL,
        "SUCCESS": PaymentStatus.SUCCESSFUL,
        "COMPLETED": PaymentStatus.SUCCESSFUL,
        "FAILED": PaymentStatus.FAILED,
        "ERROR": PaymentStatus.FAILED,
        "CANCELLED": PaymentStatus.FAILED,
        "REJECTED": PaymentStatus.FAILED,
    }
    if value not in mapping:
        raise IntegrationResponseError(f"Unsupported payment status '{value}'.")
    return mapping[value]


def _first_non_empty(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        value = data.get(key)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    if default is not None:
        return default
    raise IntegrationResponseError(f"Missing required field. Checked keys: {', '.join(keys)}", payload=data)


def _build_model(model_type, payload: Dict[str, Any], raw: Dict[str, Any]):
    try:
        return model_type(**payload)
    except ValidationError as exc:
        raise IntegrationResponseError(f"Response validation failed: {exc}", payload=raw) from exc
