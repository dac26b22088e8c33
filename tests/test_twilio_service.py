from urllib.parse import parse_qs

import httpx
import pytest

from app.services.twilio_service import ConsoleSmsDispatcher, TwilioSmsDispatcher


def make_dispatcher(handler):
    return TwilioSmsDispatcher(
        account_sid="AC123",
        auth_token="secret",
        from_number="+15550000000",
        timeout=2.0,
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_send_posts_message():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(201, json={"sid": "SM42", "status": "queued"})

    result = await make_dispatcher(handler).send("+91 98765 43210", "Your confirmation code is AB12C")

    assert result == {"success": True, "message_sid": "SM42", "status": "queued"}
    request = requests[0]
    assert request.url.path == "/2010-04-01/Accounts/AC123/Messages.json"
    form = parse_qs(request.content.decode())
    assert form["To"] == ["+919876543210"]
    assert form["From"] == ["+15550000000"]
    assert form["Body"] == ["Your confirmation code is AB12C"]
    assert request.headers["Authorization"].startswith("Basic ")


@pytest.mark.asyncio
async def test_api_error_is_returned_not_raised():
    result = await make_dispatcher(lambda request: httpx.Response(400, json={"message": "bad"})).send(
        "+919876543210", "body"
    )

    assert result == {"success": False, "error": "Twilio API error: 400"}


@pytest.mark.asyncio
async def test_timeout_is_returned_not_raised():
    def handler(request):
        raise httpx.ReadTimeout("too slow", request=request)

    result = await make_dispatcher(handler).send("+919876543210", "body")

    assert result == {"success": False, "error": "Twilio API timeout"}


@pytest.mark.asyncio
async def test_connection_error_is_returned_not_raised():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    result = await make_dispatcher(handler).send("+919876543210", "body")

    assert result["success"] is False
    assert "refused" in result["error"]


@pytest.mark.asyncio
async def test_invalid_number_is_not_sent():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(201, json={})

    result = await make_dispatcher(handler).send("not a phone", "body")

    assert result == {"success": False, "error": "Invalid phone number"}
    assert calls == []


@pytest.mark.asyncio
async def test_console_dispatcher_records_messages():
    dispatcher = ConsoleSmsDispatcher()

    result = await dispatcher.send("+919876543210", "Your confirmation code is AB12C")

    assert result["success"] is True
    assert dispatcher.sent == [{"phone": "+919876543210", "body": "Your confirmation code is AB12C"}]
