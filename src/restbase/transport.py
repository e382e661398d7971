"""
Restbase - HTTP transport.

Every request carries the client's cookies. When the anti-forgery cookie is
present its URL-decoded value is echoed back as a header; when absent the
header is simply omitted.

Every outcome is normalized into a Result; nothing here raises for network
or HTTP failures.
"""

import logging
from typing import Any, Mapping, Sequence
from urllib.parse import unquote

import httpx

from restbase.config import RestbaseSettings
from restbase.encoding import EncodedBody
from restbase.models import Result

logger = logging.getLogger(__name__)


class _UseDefault:
    def __repr__(self) -> str:
        return "USE_DEFAULT"


USE_DEFAULT: Any = _UseDefault()


# =============================================================================
# Response normalization
# =============================================================================


def _truthy(value: Any) -> bool:
    # Empty containers still count as present (they carry shape information)
    return value is not None and value is not False and value != "" and value != 0


def parse_json_body(response: httpx.Response) -> Any:
    """Parse the body only when it is declared JSON; parse errors become None."""
    content_type = response.headers.get("content-type", "")
    if "application/json" not in content_type:
        return None
    try:
        return response.json()
    except ValueError:
        return None


def error_message(body: Any, response: httpx.Response) -> str:
    if isinstance(body, dict):
        nested = body.get("error")
        if isinstance(nested, dict) and _truthy(nested.get("message")):
            return str(nested["message"])
        if _truthy(body.get("message")):
            return str(body["message"])
    return response.reason_phrase or "Request failed"


def error_details(body: Any) -> Any:
    if isinstance(body, dict):
        nested = body.get("error")
        if isinstance(nested, dict) and _truthy(nested.get("details")):
            return nested["details"]
        if _truthy(body.get("details")):
            return body["details"]
    return body if _truthy(body) else None


def normalize_response(response: httpx.Response) -> Result:
    """Turn a received response into a Result."""
    body = parse_json_body(response)
    if response.is_success:
        return Result.success(body)
    return Result.failure(
        error_message(body, response),
        status=response.status_code,
        details=error_details(body),
    )


# =============================================================================
# Transport
# =============================================================================


class Transport:
    """
    Credentialed HTTP sender.

    Holds one httpx.AsyncClient; its cookie jar is the only state kept
    between calls.
    """

    def __init__(
        self,
        settings: RestbaseSettings,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.settings = settings
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            base_url=settings.api_origin,
            follow_redirects=True,
        )

    @property
    def cookies(self) -> httpx.Cookies:
        return self._http.cookies

    def xsrf_token(self) -> str | None:
        """URL-decoded anti-forgery cookie value, or None."""
        value = None
        # Iterate the jar: Cookies.get() raises when several domains set the name
        for cookie in self._http.cookies.jar:
            if cookie.name == self.settings.xsrf_cookie_name and cookie.value:
                value = cookie.value
        return unquote(value) if value else None

    def build_headers(
        self,
        headers: Mapping[str, str] | None = None,
        body: EncodedBody | None = None,
    ) -> dict[str, str]:
        merged = dict(headers or {})
        if body is not None:
            merged.update(body.headers)
        token = self.xsrf_token()
        if token:
            merged[self.settings.xsrf_header_name] = token
        return merged

    def _timeout(self, timeout: Any) -> httpx.Timeout:
        seconds = self.settings.request_timeout if timeout is USE_DEFAULT else timeout
        return httpx.Timeout(seconds)

    async def send(
        self,
        method: str,
        url: str,
        *,
        params: Sequence[tuple[str, str]] | None = None,
        body: EncodedBody | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = USE_DEFAULT,
    ) -> Result:
        """
        Send one request and normalize the outcome.

        Args:
            method: HTTP verb
            url: Absolute URL, or a path resolved against api_origin
            params: Query parameters, in order
            body: Encoded body (JSON or multipart), or None
            headers: Extra request headers
            timeout: Seconds before giving up; None waits forever

        Returns:
            Result with data on 2xx, otherwise error (status 0 if no response)
        """
        request_headers = self.build_headers(headers, body)
        kwargs = body.request_kwargs() if body is not None else {}

        logger.debug(f"{method} {url} params={list(params or [])}")
        try:
            response = await self._http.request(
                method,
                url,
                params=list(params) if params else None,
                headers=request_headers,
                timeout=self._timeout(timeout),
                **kwargs,
            )
        except httpx.RequestError as e:
            message = str(e) or type(e).__name__
            logger.warning(f"{method} {url} failed without a response: {message}")
            return Result.failure(message, status=0, details=None)

        result = normalize_response(response)
        if result.error is not None:
            logger.info(f"{method} {url} -> {result.error.status}: {result.error.message}")
        return result

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()
