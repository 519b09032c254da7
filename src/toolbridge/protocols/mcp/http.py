"""JsonRpcHttpTransport — single-shot JSON-RPC 2.0 over HTTP POST.

Each :meth:`JsonRpcHttpTransport.send` is one request/response exchange.
Transient failures (network errors, HTTP 429, HTTP 5xx) are retried with
exponential backoff via ``stamina``; anything else fails immediately.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx
import stamina

from toolbridge.config import ClientSettings
from toolbridge.protocols.errors import CorrelationError, ProtocolError, TransportError
from toolbridge.protocols.mcp.models import (
    JsonRpcErrorResponse,
    JsonRpcResponse,
    dump_message,
    ids_match,
    parse_message,
)
from toolbridge.utils.telemetry import ATTR_ATTEMPTS, ATTR_METHOD, ATTR_TRANSPORT, ATTR_URL, get_tracer

if TYPE_CHECKING:
    from toolbridge.protocols.mcp.models import JsonRpcRequest

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

_JSON_HEADERS = {"Content-Type": "application/json", "Accept": "application/json"}


class TransientTransportError(TransportError):
    """A transport failure worth retrying (network error, 429 or 5xx)."""


class JsonRpcHttpTransport:
    """POSTs JSON-RPC requests and unwraps the ``result`` of the reply.

    The underlying :class:`httpx.AsyncClient` is pooled across calls.  Pass
    *client* to share one owned elsewhere; otherwise the transport creates
    its own and closes it in :meth:`aclose`.

    Usage::

        async with JsonRpcHttpTransport(settings) as http:
            result = await http.send(url, tools_list_request("abc"))
    """

    def __init__(
        self,
        settings: ClientSettings | None = None,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or ClientSettings()
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> JsonRpcHttpTransport:
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the pooled client if this transport created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._settings.http_timeout)
        return self._client

    async def send(self, url: str, request: JsonRpcRequest) -> Any:
        """POST *request* to *url* and return the reply's ``result`` verbatim.

        Raises:
            TransportError: Network failure or non-2xx status (after retries
                for transient conditions).
            ProtocolError: Malformed body; :class:`JsonRpcServerError` when
                the server returned an ``error`` object;
                :class:`CorrelationError` when the reply id is foreign.
        """
        with _tracer.start_as_current_span("mcp.http.send") as span:
            span.set_attribute(ATTR_TRANSPORT, "http")
            span.set_attribute(ATTR_METHOD, request.method)
            span.set_attribute(ATTR_URL, url)

            response, attempts = await self._post_with_retry(url, dump_message(request))
            span.set_attribute(ATTR_ATTEMPTS, attempts)
            return self._unwrap(url, request, response)

    async def _post_with_retry(self, url: str, body: str) -> tuple[httpx.Response, int]:
        attempts = 0
        async for attempt in stamina.retry_context(
            on=TransientTransportError,
            attempts=self._settings.http_max_retries + 1,
            timeout=None,
            wait_initial=self._settings.http_backoff_initial,
            wait_max=self._settings.http_backoff_max,
            wait_jitter=0.0,
            wait_exp_base=2,
        ):
            with attempt:
                attempts += 1
                response = await self._post_once(url, body)
        return response, attempts

    async def _post_once(self, url: str, body: str) -> httpx.Response:
        try:
            response = await self._http().post(url, content=body, headers=_JSON_HEADERS)
        except (httpx.TimeoutException, httpx.NetworkError, httpx.RemoteProtocolError) as exc:
            logger.debug("POST %s failed: %s", url, exc)
            raise TransientTransportError(f"POST {url} failed: {exc}") from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise TransportError(f"POST {url} failed: {exc}") from exc

        status = response.status_code
        if status == 429 or status >= 500:
            logger.debug("POST %s -> %s (transient)", url, status)
            raise TransientTransportError(
                f"POST {url} -> HTTP {status}: {_snippet(response.text)}", status_code=status
            )
        if not response.is_success:
            logger.warning("POST %s -> %s: %s", url, status, _snippet(response.text))
            raise TransportError(
                f"POST {url} -> HTTP {status}: {_snippet(response.text)}", status_code=status
            )
        return response

    @staticmethod
    def _unwrap(url: str, request: JsonRpcRequest, response: httpx.Response) -> Any:
        try:
            message = parse_message(response.content)
        except ProtocolError as exc:
            raise ProtocolError(f"Invalid reply from {url}: {exc}") from exc

        if isinstance(message, JsonRpcErrorResponse):
            message.raise_error()
        if not isinstance(message, JsonRpcResponse):
            raise ProtocolError(f"Expected a JSON-RPC response from {url}, got a {message.kind}")
        if message.id is not None and not ids_match(request.id, message.id):
            raise CorrelationError(request.id, message.id)
        return message.result


def _snippet(text: str, limit: int = 200) -> str:
    return text if len(text) <= limit else text[: limit - 3] + "..."
