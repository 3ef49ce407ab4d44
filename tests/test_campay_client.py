import json

import httpx
import pytest

from src.integrations.clients.real_http.campay import CampayClient
from src.integrations.contracts.errors import AuthenticationError, InitiationError, TransientQueryError
from src.integrations.contracts.interfaces import PaymentRequest, PaymentStatus


def make_client(handler, **kwargs):
    kwargs.setdefault("username", "app-user")
    kwargs.setdefault("password", "app-pass")
    return CampayClient(base_url="https://campay.test/api", transport=httpx.MockTransport(handler), **kwargs)


def make_request():
    return PaymentRequest(
        amount="300",
        phone_number="237677000000",
        currency="XAF",
        description="Download resume",
        external_reference="ext-1",
    )


@pytest.mark.asyncio
async def test_request_token_posts_credentials():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"token": "t-1", "expires_in": 3600})

    token = await make_client(handler).request_token()

    assert token.token == "t-1"
    assert token.expires_in == 3600
    assert seen["url"] == "https://campay.test/api/token/"
    assert seen["body"] == {"username": "app-user", "password": "app-pass"}


@pytest.mark.asyncio
async def test_request_token_maps_rejection_to_authentication_error():
    client = make_client(lambda request: httpx.Response(401, json={"detail": "invalid"}))

    with pytest.raises(AuthenticationError) as exc_info:
        await client.request_token()
    assert exc_info.value.details["status_code"] == 401


@pytest.mark.asyncio
async def test_request_token_without_credentials_never_calls_provider():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json={"token": "t"})

    client = make_client(handler, username="", password="")
    with pytest.raises(AuthenticationError):
        await client.request_token()
    assert calls == []


@pytest.mark.asyncio
async def test_collect_sends_campay_body_with_token_header():
    seen = {}

    def handler(request):
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"reference": "abc123", "ussd_code": "*126#", "operator": "MTN"})

    response = await make_client(handler).collect(make_request(), "t-1")

    assert response.reference == "abc123"
    assert response.ussd_code == "*126#"
    assert seen["auth"] == "Token t-1"
    assert seen["body"] == {
        "amount": "300",
        "currency": "XAF",
        "from": "237677000000",
        "description": "Download resume",
        "external_reference": "ext-1",
    }


@pytest.mark.asyncio
async def test_collect_errors_become_initiation_errors():
    client = make_client(lambda request: httpx.Response(400, json={"message": "invalid number"}))
    with pytest.raises(InitiationError):
        await client.collect(make_request(), "t-1")

    client = make_client(lambda request: httpx.Response(200, json={"unexpected": True}))
    with pytest.raises(InitiationError):
        await client.collect(make_request(), "t-1")


@pytest.mark.asyncio
async def test_status_query_normalizes_provider_status():
    def handler(request):
        assert request.url.path == "/api/transaction/abc123/"
        return httpx.Response(
            200,
            json={"reference": "abc123", "status": "SUCCESSFUL", "amount": 300, "operator": "MTN", "code": "CP1"},
        )

    status = await make_client(handler).get_transaction_status("abc123", "t-1")

    assert status.status == PaymentStatus.SUCCESSFUL
    assert status.amount == "300"
    assert status.operator_code == "CP1"


@pytest.mark.asyncio
async def test_status_query_failure_is_transient():
    def handler(request):
        raise httpx.ConnectTimeout("slow", request=request)

    with pytest.raises(TransientQueryError):
        await make_client(handler).get_transaction_status("abc123", "t-1")

    client = make_client(lambda request: httpx.Response(401))
    with pytest.raises(TransientQueryError) as exc_info:
        await client.get_transaction_status("abc123", "t-1")
    assert exc_info.value.details["status_code"] == 401
