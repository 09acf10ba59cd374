from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable

import httpx

from sse_source._config import HttpMethod, http_debug_enabled


@dataclass(frozen=True, slots=True)
class HttpConfig:
    timeout_s: float | None = None


def _redact_headers(headers: dict[str, Any]) -> dict[str, Any]:
    out = dict(headers)
    for k in ("authorization", "Authorization"):
        if k in out:
            out[k] = "Bearer ***REDACTED***"
    return out


class SourceHttpClient:
    """
    Wrapper HTTPX ligero para abrir streams SSE:
    - GET/POST via httpx.AsyncClient.stream
    - Body JSON serializado para POST
    - Debug logging opcional (SSE_SOURCE_HTTP_DEBUG)
    """

    def __init__(
        self,
        *,
        config: HttpConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config or HttpConfig()
        self._debug_http = http_debug_enabled()

        async def _log_request(request: httpx.Request) -> None:
            if not self._debug_http:
                return
            logging.warning("HTTPX REQUEST %s %s", request.method, request.url)
            logging.warning("HTTPX REQUEST headers=%s", _redact_headers(dict(request.headers)))
            if request.content:
                try:
                    logging.warning("HTTPX REQUEST body=%s", request.content.decode("utf-8", "ignore"))
                except Exception:
                    logging.warning("HTTPX REQUEST body=(binary) len=%s", len(request.content))

        async def _log_response(response: httpx.Response) -> None:
            if not self._debug_http:
                return
            req = response.request
            logging.warning("HTTPX RESPONSE %s %s -> %s", req.method, req.url, response.status_code)
            logging.warning("HTTPX RESPONSE headers=%s", dict(response.headers))
            # El body del stream nunca se lee aquí: lo consume el Source.
            logging.warning("HTTPX RESPONSE body=(stream; not auto-logged)")

        hooks: dict[str, list[Callable[..., Any]]] = {
            "request": [_log_request],
            "response": [_log_response],
        }

        self._aclient = httpx.AsyncClient(
            timeout=httpx.Timeout(self._config.timeout_s),
            event_hooks=hooks,
            transport=transport,
        )

    @property
    def is_closed(self) -> bool:
        return self._aclient.is_closed

    async def aclose(self) -> None:
        await self._aclient.aclose()

    def stream(
        self,
        method: HttpMethod,
        url: str,
        *,
        headers: dict[str, str],
        body: Any | None = None,
    ) -> Any:
        """
        Retorna un httpx stream context manager asíncrono.

        Usage:
            async with client.stream("GET", url, headers=h) as r:
                async for text in r.aiter_text():
                    ...
        """
        content: str | None = None
        if method == "POST":
            content = json.dumps(body if body is not None else {})
        return self._aclient.stream(method, url, headers=headers, content=content)
