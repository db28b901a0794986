import asyncio
import json
import httpx
import pytest
from managers.backend_manager import BackendConnectionManager, parse_response
from models.errors import NETWORK_ERROR_MESSAGE, BusinessError, TransportError
from models.subscription import CreateSubscriptionResponse


def test_singleton_is_bound_to_the_configured_backend():
    manager = BackendConnectionManager()
    assert manager is BackendConnectionManager()
    assert manager.base_url == "http://backend.test"


def test_request_returns_decoded_json_and_sends_bearer_token(backend):
    backend.add("GET", "/admin/dashboard", {"orders": []})

    data = asyncio.run(BackendConnectionManager().request("GET", "/admin/dashboard", token="tok_1"))

    assert data == {"orders": []}
    request = backend.called("GET", "/admin/dashboard")[0]
    assert request.headers["authorization"] == "Bearer tok_1"
    assert str(request.url) == "http://backend.test/admin/dashboard"


def test_json_body_is_sent(backend):
    backend.add("POST", "/create-subscription", {"subscriptionId": "sub_1", "clientSecret": "secret_1"})
    asyncio.run(BackendConnectionManager().request("POST", "/create-subscription", json={"plan": "yearly"}))
    assert json.loads(backend.calls[0].content) == {"plan": "yearly"}


def test_backend_message_is_kept_verbatim(backend):
    backend.add("POST", "/orders/checkout", {"message": "Submission already converted"}, status_code=409)

    with pytest.raises(BusinessError) as excinfo:
        asyncio.run(BackendConnectionManager().request("POST", "/orders/checkout", json={}))
    assert excinfo.value.message == "Submission already converted"
    assert excinfo.value.status_code == 409


def test_error_field_is_used_when_there_is_no_message(backend):
    backend.add("POST", "/admin/login", {"error": "Invalid credentials"}, status_code=401)

    with pytest.raises(BusinessError) as excinfo:
        asyncio.run(BackendConnectionManager().request("POST", "/admin/login", json={}))
    assert excinfo.value.message == "Invalid credentials"


def test_server_errors_surface_as_bad_gateway(backend):
    backend.add_handler("GET", "/data", lambda request: httpx.Response(500, text="boom"))

    with pytest.raises(BusinessError) as excinfo:
        asyncio.run(BackendConnectionManager().request("GET", "/data"))
    assert excinfo.value.status_code == 502
    assert excinfo.value.message == "Request failed with status 500"


def test_unreachable_backend_is_a_transport_error(backend):
    backend.fail("GET", "/data")

    with pytest.raises(TransportError) as excinfo:
        asyncio.run(BackendConnectionManager().request("GET", "/data"))
    assert excinfo.value.message == NETWORK_ERROR_MESSAGE


def test_parse_response_validates_the_body():
    parsed = parse_response(CreateSubscriptionResponse, {"subscriptionId": "sub_1", "clientSecret": "pi_1_secret_x"})
    assert parsed.subscriptionId == "sub_1"


@pytest.mark.parametrize(
    "body, message",
    [
        ({"success": False, "message": "Product not eligible"}, "Product not eligible"),
        ({"error": {"message": "Plan unavailable"}}, "Plan unavailable"),
        ({"success": False}, "Unexpected response from server"),
        (["not", "an", "object"], "Unexpected response from server"),
    ],
)
def test_malformed_body_becomes_a_business_error(body, message):
    with pytest.raises(BusinessError) as excinfo:
        parse_response(CreateSubscriptionResponse, body)
    assert excinfo.value.message == message
    assert excinfo.value.status_code == 400
