"""
Tests for the REST wire adapter.
"""
import json

import httpx
import pytest
import respx

from mite.exceptions import (
    ApiUnavailableError,
    InvalidArgumentError,
    MiteError,
    RuntimeApiError,
    UnsupportedMethodError,
)
from mite.rest import RestClient
from mite.types import Outcome

BASE_URL = "https://demo.mite.test"


@pytest.fixture
def rest_client():
    """Create a test REST client."""
    return RestClient(BASE_URL, "test_key", agent="mite-tests/1.0", timeout=5.0)


def test_headers_for_get(rest_client):
    """GET requests carry key and agent but no content type."""
    headers = rest_client.create_headers("GET")
    assert headers["X-MiteApiKey"] == "test_key"
    assert headers["User-Agent"] == "mite-tests/1.0"
    assert "Content-Type" not in headers


def test_headers_for_post(rest_client):
    """Mutating requests announce a JSON body."""
    headers = rest_client.create_headers("POST")
    assert headers["Content-Type"] == "application/json"


def test_headers_without_key():
    """No api key header when no key is configured."""
    client = RestClient(BASE_URL, "", agent="")
    headers = client.create_headers("DELETE")
    assert "X-MiteApiKey" not in headers
    assert "User-Agent" not in headers


def test_headers_merge_keeps_duplicates(rest_client):
    """A caller header with a generated name keeps both values."""
    headers = rest_client.create_headers(
        "PUT", {"Content-Type": "text/plain", "X-Trace": ["a", "b"]}
    )
    assert headers.get_list("Content-Type") == ["application/json", "text/plain"]
    assert headers.get_list("X-Trace") == ["a", "b"]


def test_unsupported_method(rest_client):
    """Unknown methods are rejected before anything is sent."""
    with pytest.raises(UnsupportedMethodError, match="Method TRACE not supported"):
        rest_client.create_headers("TRACE")

    # Method names are matched exactly
    with pytest.raises(InvalidArgumentError):
        rest_client.build_request("get", "/account.json")


def test_build_request_requires_path(rest_client):
    """An empty path is a caller error."""
    with pytest.raises(InvalidArgumentError, match="No Url provided"):
        rest_client.build_request("GET", "")


def test_build_get_request_uses_query(rest_client):
    """GET parameters end up in the query string."""
    request = rest_client.build_request(
        "GET", "/time_entries.json", {"customer_id": "1,2", "limit": 10}
    )
    assert request.url.path == "/time_entries.json"
    assert request.url.params["customer_id"] == "1,2"
    assert request.url.params["limit"] == "10"
    assert request.content == b""


def test_build_post_request_uses_json_body(rest_client):
    """POST parameters are sent as JSON."""
    request = rest_client.build_request(
        "POST", "/customers.json", {"customer": {"name": "Acme", "archived": "false"}}
    )
    assert request.url.params.get("customer") is None
    assert json.loads(request.content) == {
        "customer": {"name": "Acme", "archived": "false"}
    }


def test_interpret_json_success(rest_client):
    """Decoded JSON is returned as data."""
    response = httpx.Response(200, json={"customer": {"id": 1}})
    outcome = rest_client.interpret(response)
    assert outcome.ok is True
    assert outcome.data == {"customer": {"id": 1}}


def test_interpret_json_list(rest_client):
    """List payloads are valid data too."""
    outcome = rest_client.interpret(httpx.Response(200, json=[{"customer": {"id": 1}}]))
    assert outcome.data == [{"customer": {"id": 1}}]


def test_interpret_empty_json_body(rest_client):
    """Blank JSON bodies mean success."""
    response = httpx.Response(
        200, headers={"Content-Type": "application/json; charset=utf-8"}, content=b"  "
    )
    outcome = rest_client.interpret(response)
    assert outcome.ok is True
    assert outcome.data is True


def test_interpret_undecodable_json(rest_client):
    """A JSON content type with a non JSON body is an encoding error."""
    response = httpx.Response(
        200, headers={"Content-Type": "application/json"}, content=b"not json"
    )
    outcome = rest_client.interpret(response)
    assert outcome.ok is False
    assert outcome.code == 2001
    assert outcome.error.message == "Cannot decode data"
    assert outcome.error.response is response


def test_interpret_scalar_json(rest_client):
    """JSON scalars are not accepted as data."""
    response = httpx.Response(200, headers={"Content-Type": "application/json"}, content=b'"ok"')
    outcome = rest_client.interpret(response)
    assert outcome.code == 2001


def test_interpret_wrong_content_type(rest_client):
    """Unexpected content types are reported with both types."""
    response = httpx.Response(200, headers={"Content-Type": "text/html"}, content=b"<html/>")
    outcome = rest_client.interpret(response)
    assert outcome.code == 2001
    assert outcome.error.message == (
        "Wrong type of response, expected: application/json got: text/html"
    )


def test_interpret_expected_override(rest_client):
    """Non JSON bodies are returned raw when expected."""
    response = httpx.Response(200, headers={"Content-Type": "text/csv"}, content=b"a,b\n1,2")
    outcome = rest_client.interpret(response, expected="text/csv")
    assert outcome.ok is True
    assert outcome.data == "a,b\n1,2"


def test_interpret_forbidden(rest_client):
    """403 is an authentication error whatever the body."""
    response = httpx.Response(
        403, headers={"Content-Type": "application/json"}, content=b'{"error": "Access denied"}'
    )
    outcome = rest_client.interpret(response)
    assert outcome.code == 403
    assert outcome.error.message == '{"error": "Access denied"}'
    assert outcome.error.data is None

    outcome = rest_client.interpret(httpx.Response(403, text="Forbidden"))
    assert outcome.code == 403
    assert outcome.error.message == "Forbidden"


def test_interpret_json_error(rest_client):
    """JSON error bodies are kept as data with a generic message."""
    response = httpx.Response(422, json={"error": "Name can't be blank"})
    outcome = rest_client.interpret(response)
    assert outcome.code == 422
    assert outcome.error.message == "Mite Error"
    assert outcome.error.data == {"error": "Name can't be blank"}


def test_interpret_text_error(rest_client):
    """Plain text error bodies become the message."""
    response = httpx.Response(500, text="Internal Server Error")
    outcome = rest_client.interpret(response)
    assert outcome.code == 500
    assert outcome.error.message == "Internal Server Error"
    assert outcome.error.data is None
    assert outcome.error.response is response


def test_unwrap_raises_error(rest_client):
    """unwrap raises the failure."""
    outcome = rest_client.interpret(httpx.Response(500, text="boom"))
    with pytest.raises(RuntimeApiError, match="boom"):
        outcome.unwrap()


def test_unwrap_failure_without_error():
    """A failed outcome never unwraps to data."""
    with pytest.raises(MiteError, match="without an error"):
        Outcome(ok=False).unwrap()


@respx.mock
def test_call_sends_headers(rest_client):
    """A dispatched request carries the generated headers."""
    route = respx.get(f"{BASE_URL}/account.json").mock(
        return_value=httpx.Response(200, json={"account": {"name": "demo"}})
    )

    outcome = rest_client.call("GET", "/account.json")

    assert outcome.data == {"account": {"name": "demo"}}
    request = route.calls.last.request
    assert request.headers["X-MiteApiKey"] == "test_key"
    assert request.headers["User-Agent"] == "mite-tests/1.0"
    assert "Authorization" not in request.headers


@respx.mock
def test_call_uses_basic_auth_without_key():
    """Username and password are used when there is no api key."""
    client = RestClient(BASE_URL, "", username="user@example.com", password="secret")
    route = respx.get(f"{BASE_URL}/myself.json").mock(
        return_value=httpx.Response(200, json={"user": {"id": 1}})
    )

    client.call("GET", "/myself.json")

    request = route.calls.last.request
    assert request.headers["Authorization"].startswith("Basic ")
    assert "X-MiteApiKey" not in request.headers


@respx.mock
def test_call_timeout(rest_client):
    """Transport timeouts become ApiUnavailableError."""
    respx.get(f"{BASE_URL}/account.json").mock(side_effect=httpx.ReadTimeout)

    outcome = rest_client.call("GET", "/account.json")

    assert outcome.ok is False
    assert isinstance(outcome.error, ApiUnavailableError)


@respx.mock
def test_call_transport_error(rest_client):
    """Other transport failures become RuntimeApiError with the cause kept."""
    respx.get(f"{BASE_URL}/account.json").mock(side_effect=httpx.ConnectError)

    outcome = rest_client.call("GET", "/account.json")

    assert isinstance(outcome.error, RuntimeApiError)
    assert isinstance(outcome.error.previous, httpx.ConnectError)
    assert outcome.error.__cause__ is outcome.error.previous


@respx.mock
def test_call_does_not_retry(rest_client):
    """Failures are reported after a single attempt."""
    route = respx.get(f"{BASE_URL}/account.json").mock(
        return_value=httpx.Response(503, text="Service Unavailable")
    )

    outcome = rest_client.call("GET", "/account.json")

    assert outcome.code == 503
    assert route.call_count == 1
