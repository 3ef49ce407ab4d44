import json

import httpx
import pytest

from src.integrations.clients.real_http.backend import ResumeBackendClient
from src.integrations.contracts.errors import InitiationError, PaymentValidationError, TransientQueryError
from src.integrations.contracts.interfaces import PaymentStatus
from src.integrations.policy.status_poller import PaymentStatusPoller, PollState


def make_client(handler):
    return ResumeBackendClient(base_url="http://backend.test/", transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_pay_posts_form_fields():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"success": True, "reference": "abc123", "message": "sent"})

    result = await make_client(handler).pay("300", "677000000", "Download resume")

    assert result.reference == "abc123"
    assert seen["path"] == "/api/pay"
    assert seen["body"] == {"amount": "300", "from": "677000000", "description": "Download resume"}


@pytest.mark.asyncio
async def test_pay_maps_error_statuses():
    client = make_client(lambda r: httpx.Response(400, json={"success": False, "message": "amount is required"}))
    with pytest.raises(PaymentValidationError, match="amount is required"):
        await client.pay("", "677000000")

    client = make_client(lambda r: httpx.Response(500, json={"success": False, "message": "Payment initiation failed."}))
    with pytest.raises(InitiationError):
        await client.pay("300", "677000000")


@pytest.mark.asyncio
async def test_get_status_parses_and_degrades():
    client = make_client(lambda r: httpx.Response(200, json={"success": True, "status": "failed", "reference": "x"}))
    assert await client.get_status("x") == PaymentStatus.FAILED

    client = make_client(lambda r: httpx.Response(200, json={"success": True, "status": "weird"}))
    assert await client.get_status("x") == PaymentStatus.UNKNOWN

    client = make_client(lambda r: httpx.Response(500, json={"success": False}))
    with pytest.raises(TransientQueryError):
        await client.get_status("x")


@pytest.mark.asyncio
async def test_backend_client_drives_poller(vtime):
    answers = iter(["PENDING", "SUCCESSFUL"])

    def handler(request):
        return httpx.Response(200, json={"success": True, "status": next(answers), "reference": "abc123"})

    poller = PaymentStatusPoller("abc123", make_client(handler), clock=vtime.clock, sleep=vtime.sleep)
    outcome = await poller.run()

    assert outcome.state == PollState.SUCCESSFUL
    assert outcome.elapsed_seconds == 6
