"""Unit tests for APIClient and form param encoding."""

from urllib.parse import parse_qsl

import httpx
import pytest
import respx

from paylink.api import APIClient, encode_params
from paylink.core.config import Settings
from paylink.core.exceptions import (
    APIConnectionError,
    APIError,
    AuthenticationError,
    ErrorKind,
    ResponseError,
    classify_error,
)

BASE_URL = "https://api.test.local"


def form(request: httpx.Request) -> dict:
    return dict(parse_qsl(request.content.decode()))


class TestEncodeParams:
    def test_nested_and_lists(self):
        pairs = encode_params(
            {
                "credentials": {"consumer_session_client_secret": "cs"},
                "types": ["card", "bank_account"],
                "cookies": {"verification_session_client_secrets": ["sec"]},
            }
        )
        assert pairs == [
            ("credentials[consumer_session_client_secret]", "cs"),
            ("types[0]", "card"),
            ("types[1]", "bank_account"),
            ("cookies[verification_session_client_secrets][0]", "sec"),
        ]

    def test_none_dropped_and_bools_lowercase(self):
        assert encode_params({"a": None, "active": False, "n": 3}) == [
            ("active", "false"),
            ("n", "3"),
        ]

    def test_list_of_mappings(self):
        assert encode_params({"items": [{"id": "x"}]}) == [("items[0][id]", "x")]


class TestConstruction:
    def test_empty_key_rejected(self):
        with pytest.raises(ValueError, match="publishable_key cannot be empty"):
            APIClient(publishable_key="")

    async def test_from_settings(self):
        settings = Settings(api={"base_url": BASE_URL + "/", "publishable_key": "pk_live_x"})
        client = APIClient.from_settings(settings)
        assert client.base_url == BASE_URL
        assert client.publishable_key == "pk_live_x"
        assert not client.is_testmode
        await client.aclose()

    def test_from_settings_without_key(self):
        with pytest.raises(ValueError):
            APIClient.from_settings(Settings())

    async def test_testmode_from_key(self, api_client):
        assert api_client.is_testmode

    async def test_testmode_from_settings(self):
        settings = Settings(api={"publishable_key": "pk_live_x"}, testmode=True)
        client = APIClient.from_settings(settings)
        assert client.is_testmode
        await client.aclose()


class TestRequests:
    @respx.mock
    async def test_post_sends_form_and_bearer(self, api_client):
        route = respx.post(f"{BASE_URL}/v1/things").mock(
            return_value=httpx.Response(200, json={"id": "thing_1"})
        )

        data = await api_client.post("/v1/things", data={"card": {"last4": "4242"}})

        assert data == {"id": "thing_1"}
        request = route.calls.last.request
        assert request.headers["Authorization"] == "Bearer pk_test_merchant"
        assert form(request) == {"card[last4]": "4242"}

    @respx.mock
    async def test_api_key_overrides_merchant_key(self, api_client):
        route = respx.post(f"{BASE_URL}/v1/things").mock(
            return_value=httpx.Response(200, json={})
        )
        await api_client.post("/v1/things", api_key="pk_consumer")
        assert route.calls.last.request.headers["Authorization"] == "Bearer pk_consumer"

    @respx.mock
    async def test_get_sends_query(self, api_client):
        route = respx.get(f"{BASE_URL}/v1/items").mock(
            return_value=httpx.Response(200, json={"data": []})
        )
        await api_client.get("/v1/items", data={"id": "x", "client_secret": "s"})
        assert dict(route.calls.last.request.url.params) == {"id": "x", "client_secret": "s"}


class TestStatusMapping:
    @respx.mock
    async def test_202_is_processing(self, api_client):
        respx.post(f"{BASE_URL}/v1/results").mock(
            return_value=httpx.Response(202, json={}, headers={"Request-Id": "req_9"})
        )
        with pytest.raises(APIError) as exc_info:
            await api_client.post("/v1/results")

        assert exc_info.value.is_processing
        assert exc_info.value.request_id == "req_9"
        assert classify_error(exc_info.value) is ErrorKind.RETRYABLE_PROCESSING

    @respx.mock
    async def test_401_is_authentication_error(self, api_client):
        respx.post(f"{BASE_URL}/v1/secure").mock(
            return_value=httpx.Response(
                401, json={"error": {"message": "Session expired", "type": "invalid_request_error"}}
            )
        )
        with pytest.raises(AuthenticationError, match="Session expired") as exc_info:
            await api_client.post("/v1/secure")
        assert exc_info.value.status_code == 401

    @respx.mock
    async def test_authentication_error_type_on_other_status(self, api_client):
        respx.post(f"{BASE_URL}/v1/secure").mock(
            return_value=httpx.Response(
                403, json={"error": {"type": "authentication_error", "message": "bad key"}}
            )
        )
        with pytest.raises(AuthenticationError) as exc_info:
            await api_client.post("/v1/secure")
        assert exc_info.value.status_code == 403
        assert classify_error(exc_info.value) is ErrorKind.AUTHENTICATION_EXPIRED

    @respx.mock
    async def test_error_body_code_and_message(self, api_client):
        respx.post(f"{BASE_URL}/v1/missing").mock(
            return_value=httpx.Response(
                404, json={"error": {"code": "resource_missing", "message": "No such thing"}}
            )
        )
        with pytest.raises(APIError) as exc_info:
            await api_client.post("/v1/missing")

        error = exc_info.value
        assert not isinstance(error, AuthenticationError)
        assert error.status_code == 404
        assert error.code == "resource_missing"
        assert str(error) == "No such thing"
        assert classify_error(error) is ErrorKind.TERMINAL

    @respx.mock
    async def test_server_error_without_body(self, api_client):
        respx.post(f"{BASE_URL}/v1/boom").mock(return_value=httpx.Response(500))
        with pytest.raises(APIError) as exc_info:
            await api_client.post("/v1/boom")
        assert exc_info.value.code == "500"

    @respx.mock
    async def test_non_json_success_body(self, api_client):
        respx.post(f"{BASE_URL}/v1/html").mock(
            return_value=httpx.Response(200, text="<html></html>")
        )
        with pytest.raises(ResponseError, match="Malformed JSON"):
            await api_client.post("/v1/html")

    @respx.mock
    async def test_non_object_success_body(self, api_client):
        respx.post(f"{BASE_URL}/v1/list").mock(return_value=httpx.Response(200, json=[1, 2]))
        with pytest.raises(ResponseError, match="JSON object"):
            await api_client.post("/v1/list")

    @respx.mock
    async def test_timeout_is_connection_error(self, api_client):
        respx.post(f"{BASE_URL}/v1/slow").mock(side_effect=httpx.ReadTimeout("timed out"))
        with pytest.raises(APIConnectionError, match="timed out"):
            await api_client.post("/v1/slow")

    @respx.mock
    async def test_network_error_is_connection_error(self, api_client):
        respx.post(f"{BASE_URL}/v1/down").mock(side_effect=httpx.ConnectError("refused"))
        with pytest.raises(APIConnectionError, match="Connection failed"):
            await api_client.post("/v1/down")

    @respx.mock
    async def test_protocol_error_is_connection_error(self, api_client):
        respx.post(f"{BASE_URL}/v1/flaky").mock(
            side_effect=httpx.RemoteProtocolError("Server disconnected")
        )
        with pytest.raises(APIConnectionError, match="Server disconnected") as exc_info:
            await api_client.post("/v1/flaky")
        assert isinstance(exc_info.value.__cause__, httpx.RemoteProtocolError)

    @respx.mock
    async def test_unsupported_protocol_is_connection_error(self, api_client):
        respx.post(f"{BASE_URL}/v1/odd").mock(side_effect=httpx.UnsupportedProtocol("ftp"))
        with pytest.raises(APIConnectionError):
            await api_client.post("/v1/odd")
