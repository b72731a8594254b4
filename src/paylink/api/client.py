"""Async HTTP client for the payment platform API.

Wraps :class:`httpx.AsyncClient` and turns non-success responses into the
typed errors the retry helpers classify:

- 202 (or error code "202") → APIError with ``is_processing`` set
- 401 / ``authentication_error`` → AuthenticationError
- other 4xx/5xx → APIError
- timeouts and other transport failures → APIConnectionError
"""

from typing import Any, Dict, List, Mapping, Optional, Tuple

import httpx
import structlog

from paylink.core.config import Settings
from paylink.core.exceptions import (
    PROCESSING_CODE,
    APIConnectionError,
    APIError,
    AuthenticationError,
    ResponseError,
)

log = structlog.get_logger()


def encode_params(params: Mapping[str, Any], prefix: str = "") -> List[Tuple[str, str]]:
    """Flatten nested params into bracketed form fields.

    ``{"card": {"exp_month": 4}, "types": ["a"]}`` becomes
    ``[("card[exp_month]", "4"), ("types[0]", "a")]``. ``None`` values are
    dropped and booleans are sent as "true"/"false".
    """
    pairs: List[Tuple[str, str]] = []

    for key, value in params.items():
        name = f"{prefix}[{key}]" if prefix else str(key)
        if value is None:
            continue
        if isinstance(value, Mapping):
            pairs.extend(encode_params(value, name))
        elif isinstance(value, (list, tuple)):
            for index, item in enumerate(value):
                item_name = f"{name}[{index}]"
                if isinstance(item, Mapping):
                    pairs.extend(encode_params(item, item_name))
                else:
                    pairs.append((item_name, _scalar(item)))
        else:
            pairs.append((name, _scalar(value)))

    return pairs


def _scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class APIClient:
    """Shared client for all API bindings.

    Authenticates with the merchant publishable key unless a request passes
    ``api_key`` (the consumer account publishable key).
    """

    DEFAULT_BASE_URL = "https://api.stripe.com"
    DEFAULT_TIMEOUT = 30.0

    def __init__(
        self,
        publishable_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        testmode: bool = False,
    ) -> None:
        """Initialize the client.

        Args:
            publishable_key: Merchant publishable key.
            base_url: Base API URL.
            timeout: Total request timeout in seconds.
            transport: Optional httpx transport (tests).
            testmode: Treat the client as test mode even with a live key.

        Raises:
            ValueError: If publishable_key is empty.
        """
        if not publishable_key:
            raise ValueError("publishable_key cannot be empty")

        self._publishable_key = publishable_key
        self._testmode = testmode
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "APIClient":
        key = settings.api.publishable_key
        return cls(
            publishable_key=key.get_secret_value() if key else "",
            base_url=settings.api.base_url,
            timeout=settings.api.timeout,
            testmode=settings.testmode,
        )

    @property
    def publishable_key(self) -> str:
        return self._publishable_key

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def is_testmode(self) -> bool:
        """True for test keys, or when test mode is configured explicitly."""
        return self._testmode or self._publishable_key.startswith("pk_test_")

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "APIClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def request(
        self,
        method: str,
        path: str,
        data: Optional[Mapping[str, Any]] = None,
        api_key: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Send a request and return the decoded JSON body.

        Args:
            method: HTTP method.
            path: Path relative to the base URL.
            data: Params; sent as query string for GET, form body otherwise.
            api_key: Optional key overriding the merchant publishable key.

        Raises:
            APIError: Non-success or processing response.
            AuthenticationError: Credentials rejected.
            APIConnectionError: Transport failure or timeout.
            ResponseError: Body is not a JSON object.
        """
        method = method.upper()
        fields = encode_params(data or {})
        headers = {
            "Authorization": f"Bearer {api_key or self._publishable_key}",
            "Accept": "application/json",
        }

        log.debug("api_request", method=method, path=path)
        try:
            if method == "GET":
                response = await self._client.request(
                    method, path, params=fields, headers=headers
                )
            else:
                response = await self._client.request(
                    method, path, data=dict(fields), headers=headers
                )
        except httpx.TimeoutException as e:
            raise APIConnectionError(
                url=f"{self._base_url}{path}", message=f"Request to {path} timed out"
            ) from e
        except httpx.TransportError as e:
            raise APIConnectionError(
                url=f"{self._base_url}{path}", message=f"Connection failed: {e}"
            ) from e

        self._handle_response_error(response)
        return self._parse_response(response)

    async def get(self, path: str, **kw: Any) -> Dict[str, Any]:
        return await self.request("GET", path, **kw)

    async def post(self, path: str, **kw: Any) -> Dict[str, Any]:
        return await self.request("POST", path, **kw)

    async def delete(self, path: str, **kw: Any) -> Dict[str, Any]:
        return await self.request("DELETE", path, **kw)

    # Private helpers

    def _handle_response_error(self, response: httpx.Response) -> None:
        """Raise the typed error for a non-success response."""
        request_id = response.headers.get("Request-Id")

        if response.status_code == 202:
            raise APIError(
                202,
                code=PROCESSING_CODE,
                message="Result is still processing",
                request_id=request_id,
            )

        if response.is_success:
            return

        error: Dict[str, Any] = {}
        try:
            body = response.json()
            if isinstance(body, dict) and isinstance(body.get("error"), dict):
                error = body["error"]
        except ValueError:
            pass

        message = error.get("message") or response.text or None
        code = error.get("code")

        if response.status_code == 401 or error.get("type") == "authentication_error":
            log.warning("api_auth_error", status=response.status_code, request_id=request_id)
            raise AuthenticationError(
                message=message,
                request_id=request_id,
                status_code=response.status_code,
            )

        log.info(
            "api_error",
            status=response.status_code,
            code=code,
            request_id=request_id,
        )
        raise APIError(
            response.status_code,
            code=code,
            message=message,
            request_id=request_id,
        )

    def _parse_response(self, response: httpx.Response) -> Dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            raise ResponseError(reason=f"Malformed JSON: {e}")
        if not isinstance(data, dict):
            raise ResponseError(reason="Expected a JSON object")
        return data
