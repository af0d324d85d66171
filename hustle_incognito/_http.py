"""Thin HTTP layer: fixed headers, an injectable transport, and error mapping."""

from collections.abc import Callable, Iterator
import json
import logging
from typing import Any

import requests

from . import __version__
from ._exceptions import STATUS_MAP, APIError, NetworkError, RateLimitError

logger = logging.getLogger(__name__)

CHAT_PATH = "/api/chat"

# transport(url, *, data, headers, stream) -> response with the requests.Response API
Transport = Callable[..., Any]


def _raise_for_status(resp: Any, *, method: str = "", url: str = "") -> None:
    """Map an unsuccessful response to a typed SDK exception."""
    status_text = getattr(resp, "reason", None) or ""
    message = f"HTTP error: {resp.status_code} {status_text}".rstrip()

    kwargs: dict[str, Any] = {
        "status_code": resp.status_code,
        "status_text": status_text,
        "method": method,
        "url": url,
    }
    exc_cls = STATUS_MAP.get(resp.status_code, APIError)
    if exc_cls is RateLimitError:
        retry_after = (getattr(resp, "headers", None) or {}).get("Retry-After")
        try:
            kwargs["retry_after"] = float(retry_after) if retry_after else None
        except ValueError:
            logger.debug("Unparseable Retry-After header: %s", retry_after)

    resp.close()
    raise exc_cls(message, **kwargs)


def iter_body(resp: Any) -> Iterator[bytes]:
    """Yield body reads as they arrive, wrapping read failures as NetworkError."""
    try:
        yield from resp.iter_content(chunk_size=None)
    except (requests.RequestException, OSError) as e:
        raise NetworkError(f"Stream read failed: {e!s}") from e


class HTTPClient:
    """Issues the chat POST through the configured transport. No retries."""

    def __init__(
        self,
        base_url: str,
        user_key: str | None = None,
        user_secret: str | None = None,
        transport: Transport | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._headers = {
            "Content-Type": "application/json",
            "User-Agent": f"HustleIncognito-SDK/{__version__}",
        }
        # The API key travels in the JSON body, not in a header
        if user_key:
            self._headers["X-User-Key"] = user_key
            if user_secret:
                self._headers["X-User-Secret"] = user_secret

        self._session: requests.Session | None = None
        if transport is None:
            self._session = requests.Session()
            transport = self._session.post
        self._transport = transport

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def headers(self) -> dict[str, str]:
        return dict(self._headers)

    def stream(self, path: str, body: dict[str, Any]) -> Any:
        """POST a JSON body and return the open streaming response.

        Raises:
            NetworkError: The transport could not reach the server
            HustleError: Subclass from STATUS_MAP (or APIError) for non-2xx
        """
        url = f"{self._base_url}{path}"
        logger.debug("POST %s", url)
        try:
            resp = self._transport(
                url, data=json.dumps(body), headers=dict(self._headers), stream=True
            )
        except (requests.RequestException, OSError) as e:
            raise NetworkError(f"Network error: {e!s}", method="POST", url=url) from e

        if not 200 <= resp.status_code < 300:
            _raise_for_status(resp, method="POST", url=url)
        return resp

    def close(self) -> None:
        """Close the default session, if this client owns one."""
        if self._session is not None:
            self._session.close()
