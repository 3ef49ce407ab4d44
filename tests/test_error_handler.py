from src.error_handler import INITIATION_FAILED_MESSAGE, ErrorHandler
from src.integrations.contracts.errors import (
    AuthenticationError,
    InitiationError,
    PaymentTimeoutError,
    PaymentValidationError,
    TransientQueryError,
)


def test_validation_error_is_a_400_with_its_message():
    eh = ErrorHandler()
    status, body = eh.payment_error_response(PaymentValidationError("amount is required"))
    assert status == 400
    assert body == {"success": False, "message": "amount is required"}


def test_provider_failures_hide_details():
    eh = ErrorHandler()
    for exc in (AuthenticationError("bad secret"), InitiationError("upstream 503")):
        status, body = eh.payment_error_response(exc)
        assert status == 500
        assert body["message"] == INITIATION_FAILED_MESSAGE
        assert "secret" not in body["message"]


def test_poll_errors_map_to_gateway_statuses():
    eh = ErrorHandler()
    assert eh.payment_error_response(PaymentTimeoutError("late"))[0] == 504
    assert eh.payment_error_response(TransientQueryError("down"))[0] == 502


def test_internal_error_returns_generic_payload():
    eh = ErrorHandler()
    status, body = eh.internal_error_response(Exception("boom"), context={"k": "v"})
    assert status == 500
    assert body["success"] is False
    assert "internal error" in body["message"].lower()
    assert "boom" not in body["message"]
