from urllib.parse import parse_qs

import httpx
import pytest

from app.integrations.africas_talking import AfricasTalkingClient, format_kenya_phone


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("0712 345 678", "+254712345678"),
        ("+254712345678", "+254712345678"),
        ("254712345678", "+254712345678"),
        ("712345678", "+254712345678"),
        ("+1 555 0100", "+15550100"),
    ],
)
def test_format_kenya_phone(raw, expected):
    assert format_kenya_phone(raw) == expected


def make_client(handler, sender_id="RENTCO") -> AfricasTalkingClient:
    return AfricasTalkingClient(
        api_key="key-123",
        username="sandbox",
        sender_id=sender_id,
        base_url="https://api.example.test/",
        transport=httpx.MockTransport(handler),
    )


def recipients_body(**recipient):
    return {"SMSMessageData": {"Message": "Sent to 1/1", "Recipients": [recipient]}}


@pytest.mark.asyncio
async def test_send_sms_posts_form_and_returns_message_id():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["headers"] = request.headers
        seen["form"] = parse_qs(request.content.decode())
        return httpx.Response(201, json=recipients_body(statusCode=101, status="Success", messageId="ATXid_1"))

    async with make_client(handler) as client:
        result = await client.send_sms("+254712345678", "Rent due")

    assert result.ok is True
    assert result.message_id == "ATXid_1"
    assert seen["path"] == "/version1/messaging"
    assert seen["headers"]["apiKey"] == "key-123"
    assert seen["headers"]["Accept"] == "application/json"
    assert seen["form"] == {
        "username": ["sandbox"],
        "to": ["+254712345678"],
        "message": ["Rent due"],
        "from": ["RENTCO"],
    }


@pytest.mark.asyncio
async def test_send_sms_omits_blank_sender_id():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["form"] = parse_qs(request.content.decode())
        return httpx.Response(201, json=recipients_body(statusCode=102, status="Queued", message_id="q-1"))

    async with make_client(handler, sender_id=None) as client:
        result = await client.send_sms("+254712345678", "Rent due")

    assert "from" not in seen["form"]
    assert result.ok is True
    assert result.message_id == "q-1"


@pytest.mark.asyncio
async def test_http_error_status_is_a_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"error": "bad key"})

    async with make_client(handler) as client:
        result = await client.send_sms("+254712345678", "Rent due")

    assert result.ok is False
    assert result.error == 'AT_HTTP_401: {"error": "bad key"}'


@pytest.mark.asyncio
async def test_rejected_recipient_is_a_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(201, json=recipients_body(statusCode=403, status="InvalidPhoneNumber"))

    async with make_client(handler) as client:
        result = await client.send_sms("+2547", "Rent due")

    assert result.ok is False
    assert result.error == "AT_RECIPIENT_403: InvalidPhoneNumber"


@pytest.mark.asyncio
async def test_unexpected_body_is_a_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"SMSMessageData": {"Recipients": []}})

    async with make_client(handler) as client:
        result = await client.send_sms("+254712345678", "Rent due")

    assert result.ok is False
    assert result.error.startswith("AT_BAD_RESPONSE: ")


@pytest.mark.asyncio
async def test_transport_error_is_a_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with make_client(handler) as client:
        result = await client.send_sms("+254712345678", "Rent due")

    assert result.ok is False
    assert result.error == "connection refused"


def test_configured_requires_key_and_username():
    assert AfricasTalkingClient(api_key="k", username="u").configured
    assert not AfricasTalkingClient(api_key="", username="u").configured
    assert not AfricasTalkingClient(api_key="k", username="").configured
