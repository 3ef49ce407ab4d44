import logging
import os
from dataclasses import dataclass
from typing import Any, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from src.error_handler import ErrorHandler
from src.integrations.clients.mocks.campay import CampayMockClient
from src.integrations.clients.real_http.campay import CampayClient
from src.integrations.contracts.errors import PaymentError
from src.integrations.contracts.interfaces import MobileMoneyProvider
from src.integrations.policy.payment_service import PaymentInitiator, PaymentStatusService
from src.integrations.policy.token_cache import TokenCache
from src.utils.config_loader import AppConfig

logger = logging.getLogger(__name__)

api = APIRouter()
payments_api = api

error_handler = ErrorHandler()


class PayRequest(BaseModel):
    # Fields stay optional so missing input is answered with the 400 body, not FastAPI's 422.
    model_config = ConfigDict(populate_by_name=True)

    amount: Any = None
    from_: Any = Field(default=None, alias="from")
    description: Any = None


@dataclass
class PaymentServices:
    provider: MobileMoneyProvider
    token_cache: TokenCache
    initiator: PaymentInitiator
    status: PaymentStatusService


def _should_use_real_integrations(config: AppConfig) -> bool:
    mode = os.getenv("INTEGRATIONS_MODE", "").strip().lower()
    if mode in {"real", "live"}:
        return True
    if mode in {"mock", "test"}:
        return False
    return config.campay.has_credentials()


def _select_provider(config: AppConfig) -> MobileMoneyProvider:
    if _should_use_real_integrations(config):
        campay = config.campay
        return CampayClient(
            base_url=campay.resolved_base_url(),
            username=os.getenv(campay.username_env, ""),
            password=os.getenv(campay.password_env, ""),
            timeout_seconds=campay.timeout_seconds,
        )
    logger.info("Campay credentials not configured; using CampayMockClient")
    return CampayMockClient()


def build_payment_services(
    db, token_store, config: AppConfig, provider: Optional[MobileMoneyProvider] = None
) -> PaymentServices:
    provider = provider or _select_provider(config)
    token_cache = TokenCache(
        provider.request_token,
        token_store,
        key=provider.provider.value,
        default_lifetime_seconds=config.campay.token_lifetime_seconds,
        refresh_margin_seconds=config.campay.token_refresh_margin_seconds,
    )
    initiator = PaymentInitiator(
        provider,
        token_cache,
        db,
        currency=config.campay.currency,
        country_code=config.campay.country_code,
        default_description=config.campay.default_description,
    )
    return PaymentServices(
        provider=provider,
        token_cache=token_cache,
        initiator=initiator,
        status=PaymentStatusService(provider, token_cache, db),
    )


# Set by src.api.main at import time.
payment_services: Optional[PaymentServices] = None


def get_payment_services() -> PaymentServices:
    if payment_services is None:
        raise RuntimeError("Payment services are not configured")
    return payment_services


@api.post("/pay", tags=["Payments"])
async def pay(request: PayRequest, services: PaymentServices = Depends(get_payment_services)):
    """Start a mobile money collection and return its provider reference."""
    try:
        result = await services.initiator.initiate(request.amount, request.from_, request.description)
    except PaymentError as e:
        status_code, body = error_handler.payment_error_response(e)
        return JSONResponse(status_code=status_code, content=body)
    except Exception as e:
        status_code, body = error_handler.internal_error_response(e, {"endpoint": "pay"})
        return JSONResponse(status_code=status_code, content=body)

    return {
        "success": True,
        "reference": result.reference,
        "external_reference": result.external_reference,
        "message": result.message,
    }


@api.get("/status/{reference}", tags=["Payments"])
async def payment_status(reference: str, services: PaymentServices = Depends(get_payment_services)):
    """Current status of a transaction; provider failures degrade to the ledger value or UNKNOWN."""
    try:
        status = await services.status.get_status(reference)
    except Exception as e:
        status_code, body = error_handler.internal_error_response(e, {"endpoint": "status", "reference": reference})
        return JSONResponse(status_code=status_code, content=body)

    return {"success": True, "status": status.value, "reference": reference}
