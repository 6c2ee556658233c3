"""
Wire adapter for the mite REST API.

Builds requests (auth header, user agent, content negotiation, query or
JSON body) and turns responses into :class:`~mite.types.Outcome` values.
Nothing here retries; a failed exchange is reported once.
"""
import json
import logging
import time
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple, Union

import httpx

from mite.config import settings
from mite.exceptions import (
    AUTHENTICATION_ERROR,
    ENCODING_ERROR,
    ApiUnavailableError,
    InvalidArgumentError,
    RuntimeApiError,
    UnsupportedMethodError,
)
from mite.types import QUERY_METHODS, SUPPORTED_METHODS, Outcome
from mite.utils.http import create_http_client

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"

HeadersInput = Union[Mapping[str, Any], Sequence[Tuple[str, str]], None]


class RestClient:
    """Connection settings for one mite account plus the request/response logic."""

    def __init__(
        self,
        url: Optional[str] = None,
        key: Optional[str] = None,
        *,
        username: Optional[str] = None,
        password: Optional[str] = None,
        agent: Optional[str] = None,
        verify: Optional[bool] = None,
        timeout: Optional[float] = None,
        expected_content_type: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.url = (url if url is not None else settings.MITE_URL).rstrip("/")
        self.key = key if key is not None else settings.MITE_API_KEY
        self.username = username if username is not None else settings.MITE_USERNAME
        self.password = password if password is not None else settings.MITE_PASSWORD
        self.agent = agent if agent is not None else settings.MITE_USER_AGENT
        self.verify = verify if verify is not None else settings.MITE_VERIFY_SSL
        self.timeout = timeout if timeout is not None else settings.MITE_TIMEOUT
        self.expected_content_type = (
            expected_content_type or settings.MITE_EXPECTED_CONTENT_TYPE
        )
        self.transport = transport

    def _auth(self) -> Optional[Tuple[str, str]]:
        """Basic auth credentials, only used when no api key is set."""
        if self.key:
            return None
        if self.username is not None and self.password is not None:
            return (self.username, self.password)
        return None

    def create_headers(self, method: str, headers: HeadersInput = None) -> httpx.Headers:
        """
        Headers for a request with ``method``.

        Caller headers are appended after the generated ones; a repeated
        name keeps every value.
        """
        if method not in SUPPORTED_METHODS:
            raise UnsupportedMethodError(f"Method {method} not supported")

        items = []
        if self.key:
            items.append(("X-MiteApiKey", self.key))
        if self.agent:
            items.append(("User-Agent", self.agent))
        if method not in QUERY_METHODS:
            items.append(("Content-Type", JSON_CONTENT_TYPE))

        if headers:
            pairs = headers.items() if isinstance(headers, Mapping) else headers
            for name, value in pairs:
                values = value if isinstance(value, (list, tuple)) else [value]
                items.extend((name, str(v)) for v in values)

        return httpx.Headers(items)

    def build_request(
        self,
        method: str,
        path: str,
        parameters: Optional[Dict[str, Any]] = None,
        headers: HeadersInput = None,
    ) -> httpx.Request:
        """Build the request; GET/DELETE send parameters as query, others as JSON."""
        if not path:
            raise InvalidArgumentError("No Url provided")

        request_headers = self.create_headers(method, headers)
        url = f"{self.url}{path}"
        parameters = parameters or {}
        extensions = {"timeout": httpx.Timeout(self.timeout, connect=10.0).as_dict()}

        if method in QUERY_METHODS:
            return httpx.Request(
                method,
                url,
                params=parameters,
                headers=request_headers,
                extensions=extensions,
            )

        return httpx.Request(
            method,
            url,
            headers=request_headers,
            content=json.dumps(parameters).encode("utf-8"),
            extensions=extensions,
        )

    def dispatch(self, request: httpx.Request, expected: Optional[str] = None) -> Outcome:
        """Send ``request`` and interpret the response."""
        start_time = time.time()
        try:
            with create_http_client(
                timeout=self.timeout,
                verify=self.verify,
                auth=self._auth(),
                transport=self.transport,
            ) as client:
                response = client.send(request)
        except httpx.TimeoutException as e:
            logger.warning(
                f"mite timeout: {request.method} {request.url.path}",
                extra={"method": request.method, "path": request.url.path},
            )
            return Outcome.failure(ApiUnavailableError(str(e) or "Request timed out", 0))
        except httpx.HTTPError as e:
            logger.error(
                f"mite API call failed: {e}",
                extra={"method": request.method, "path": request.url.path},
            )
            return Outcome.failure(RuntimeApiError(str(e), 0, previous=e))

        duration_ms = (time.time() - start_time) * 1000
        logger.debug(
            f"mite request: {request.method} {request.url.path} status={response.status_code}",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status": response.status_code,
                "duration_ms": round(duration_ms, 2),
            },
        )
        return self.interpret(response, expected)

    def interpret(self, response: httpx.Response, expected: Optional[str] = None) -> Outcome:
        """
        Map a response onto an outcome.

        Success bodies must match the expected content type. A blank JSON
        body is reported as ``True``. Errors carry the HTTP status as code,
        403 becomes an authentication error.
        """
        expected = expected or self.expected_content_type
        content_type = response.headers.get("Content-Type", "")
        is_json = content_type.startswith(JSON_CONTENT_TYPE)

        if response.is_success:
            if not content_type.startswith(expected):
                return Outcome.failure(
                    RuntimeApiError(
                        f"Wrong type of response, expected: {expected} got: {content_type}",
                        ENCODING_ERROR,
                        response,
                    )
                )

            if not is_json:
                return Outcome.success(response.text)

            # mite answers some PUT and DELETE calls with an empty body
            if not response.text.strip():
                return Outcome.success(True)

            try:
                data = response.json()
            except ValueError:
                data = None

            if not isinstance(data, (dict, list)):
                return Outcome.failure(
                    RuntimeApiError("Cannot decode data", ENCODING_ERROR, response)
                )
            return Outcome.success(data)

        if response.status_code == 403:
            return Outcome.failure(
                RuntimeApiError(response.text, AUTHENTICATION_ERROR, response)
            )

        if is_json:
            try:
                error_data = response.json()
            except ValueError:
                error_data = response.text
            return Outcome.failure(
                RuntimeApiError(error_data, response.status_code, response)
            )

        return Outcome.failure(
            RuntimeApiError(response.text, response.status_code, response)
        )

    def call(
        self,
        method: str,
        path: str,
        parameters: Optional[Dict[str, Any]] = None,
        *,
        headers: HeadersInput = None,
        expected: Optional[str] = None,
    ) -> Outcome:
        """Build, send and interpret one request."""
        request = self.build_request(method, path, parameters, headers)
        return self.dispatch(request, expected)
