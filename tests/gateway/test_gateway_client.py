import asyncio
import json
import pytest
import httpx

from paygate.gateway.client import GatewayClient, GatewayTransportError


def _client(handler, **kw):
    return GatewayClient("http://backend:3000", transport=httpx.MockTransport(handler), **kw)


def test_validate_user_posts_body_and_parses_details():
    seen = {}

    def handler(request: httpx.Request):
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={
            "success": True,
            "transaction": {"amount": 50, "billerName": "Acme", "description": "Invoice"},
        })

    reply = asyncio.run(_client(handler).validate_user("T1", "alice"))

    assert seen["url"] == "http://backend:3000/api/validate-user"
    assert seen["body"] == {"transactionId": "T1", "username": "alice"}
    assert reply.success is True
    assert reply.details.billerName == "Acme"


def test_complete_transaction_posts_pin():
    seen = {}

    def handler(request: httpx.Request):
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"success": True})

    reply = asyncio.run(_client(handler).complete_transaction("T1", "alice", "1234"))

    assert seen["url"] == "http://backend:3000/api/complete-transaction"
    assert seen["body"] == {"transactionId": "T1", "username": "alice", "pin": "1234"}
    assert reply.success is True


def test_non_2xx_with_json_body_is_a_normal_reply():
    def handler(request):
        return httpx.Response(401, json={"success": False, "message": "Invalid PIN"})

    reply = asyncio.run(_client(handler).complete_transaction("T1", "alice", "0000"))
    assert reply.success is False
    assert reply.message == "Invalid PIN"


def test_connection_failure_is_transport_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(GatewayTransportError, match="ConnectError"):
        asyncio.run(_client(handler).validate_user("T1", "alice"))


@pytest.mark.parametrize("response", [
    httpx.Response(502, text="<html>Bad Gateway</html>"),
    httpx.Response(200, json=["not", "an", "object"]),
    httpx.Response(200, json={"success": "maybe"}),
])
def test_unreadable_reply_is_transport_error(response):
    with pytest.raises(GatewayTransportError):
        asyncio.run(_client(lambda request: response).validate_user("T1", "alice"))


def test_custom_paths_and_absolute_urls():
    gw = GatewayClient(
        "http://backend:3000/",
        validate_user_path="v2/validate",
        complete_transaction_path="https://other.example.com/complete",
    )
    assert gw.validate_user_url == "http://backend:3000/v2/validate"
    assert gw.complete_transaction_url == "https://other.example.com/complete"
