"""Hustle Incognito client — chat with the Emblem Vault agent over a streaming endpoint."""

from __future__ import annotations

from collections.abc import Callable, Generator, Iterable, Mapping
import logging
import os
from typing import Any

from . import __version__
from ._cancel import CancelToken
from ._exceptions import ConfigurationError
from ._http import CHAT_PATH, HTTPClient, Transport, iter_body
from ._request import build_request_body, coerce_options
from ._streaming import ChatStream
from ._types import ChatMessage, ProcessedResponse, RequestOptions
from .streaming import ChunkPrefix, RawChunk, classify_line, iter_lines
from .streaming import process_chunks as _process_raw

logger = logging.getLogger(__name__)

API_ENDPOINTS = {
    "production": "https://api.emblemvault.ai",
    "staging": "https://staging-api.emblemvault.ai",
    "local": "http://localhost:3000",
}

# override(api_key, options) -> replacement for the whole data-producing pipeline
Override = Callable[[str, RequestOptions], Any]


class HustleIncognitoClient:
    """Client for the Emblem Vault Hustle Incognito agent API.

    Usage:
        client = HustleIncognitoClient(api_key="...")
        reply = client.chat([{"role": "user", "content": "gm"}], vault_id="123")
        print(reply.content)

        with client.chat_stream({"vault_id": "123", "messages": history}) as stream:
            for chunk in stream:
                print(chunk.type, chunk.value)

    Configuration (key, endpoint, user credentials, transport) is fixed at
    construction. Each call keeps its own decoding and aggregation state, so one
    client can serve concurrent calls.
    """

    def __init__(
        self,
        api_key: str | None = None,
        hustle_api_url: str | None = None,
        user_key: str | None = None,
        user_secret: str | None = None,
        transport: Transport | None = None,
        debug: bool = False,
    ):
        api_key = api_key or os.environ.get("HUSTLE_API_KEY")
        if not api_key:
            raise ConfigurationError(
                "API key is required. Pass api_key= or set HUSTLE_API_KEY env var."
            )

        self._api_key = api_key
        self._debug = debug
        base_url = hustle_api_url or os.environ.get("HUSTLE_API_URL") or API_ENDPOINTS["production"]
        self._http = HTTPClient(
            base_url=base_url, user_key=user_key, user_secret=user_secret, transport=transport
        )

        level = logging.INFO if debug else logging.DEBUG
        logger.log(level, "Emblem Vault Hustle Incognito SDK v%s", __version__)
        logger.log(level, "Using API endpoint: %s", self._http.base_url)

    @property
    def base_url(self) -> str:
        return self._http.base_url

    @property
    def debug(self) -> bool:
        return self._debug

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> HustleIncognitoClient:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()

    # -- pipeline ---------------------------------------------------------

    def _open(
        self,
        options: RequestOptions,
        override: Override | None,
        cancel_token: CancelToken | None,
    ) -> Iterable[Any]:
        """Resolve the data source: the override factory, or the HTTP pipeline.

        The request body is built here, before any generator starts, so a missing
        key raises ConfigurationError at call time rather than on first read.
        """
        if override is not None:
            return override(self._api_key, options)
        body = build_request_body(options, self._api_key)
        return self._network_stream(body, cancel_token)

    def _network_stream(
        self, body: dict[str, Any], cancel_token: CancelToken | None
    ) -> Generator[RawChunk, None, None]:
        if cancel_token is not None and cancel_token.cancelled:
            return

        resp = None
        try:
            resp = self._http.stream(CHAT_PATH, body)
            if cancel_token is not None:
                cancel_token.bind(resp)
            for line in iter_lines(iter_body(resp)):
                if cancel_token is not None and cancel_token.cancelled:
                    break
                yield classify_line(line)
        except Exception as e:
            if cancel_token is not None and cancel_token.cancelled:
                logger.debug("Stream ended after cancellation: %s", e)
                return
            level = logging.WARNING if self._debug else logging.DEBUG
            logger.log(level, "Error in raw stream: %s", e)
            # Let consumers observe the failure before it propagates
            yield RawChunk(prefix=ChunkPrefix.ERROR.value, data=str(e), raw=str(e))
            raise
        finally:
            if resp is not None:
                if cancel_token is not None:
                    cancel_token.unbind(resp)
                resp.close()

    # -- public entry points ---------------------------------------------

    def raw_stream(
        self,
        options: RequestOptions | Mapping[str, Any],
        *,
        override: Override | None = None,
        cancel_token: CancelToken | None = None,
    ) -> ChatStream:
        """Stream RawChunks exactly as classified from the wire.

        Args:
            options: Vault, messages and optional per-call settings
            override: Factory ``(api_key, options) -> iterable`` replacing the HTTP call
            cancel_token: Token that aborts the in-flight read when cancelled

        Raises:
            ConfigurationError: No API key resolves for this call
        """
        options = coerce_options(options)
        return ChatStream(self._open(options, override, cancel_token))

    def chat_stream(
        self,
        options: RequestOptions | Mapping[str, Any],
        *,
        process_chunks: bool = True,
        override: Override | None = None,
        cancel_token: CancelToken | None = None,
    ) -> ChatStream:
        """Stream typed StreamChunks (or RawChunks with ``process_chunks=False``).

        An override's output is passed through unchanged.
        """
        options = coerce_options(options)
        source = self._open(options, override, cancel_token)
        if override is None and process_chunks:
            source = _process_raw(source)
        return ChatStream(source)

    def chat(
        self,
        messages: Iterable[ChatMessage | Mapping[str, Any]],
        *,
        vault_id: str = "default",
        user_api_key: str | None = None,
        external_wallet_address: str | None = None,
        slippage_settings: dict[str, float] | None = None,
        safe_mode: bool | None = None,
        current_path: str | None = None,
        raw_response: bool = False,
        override: Override | None = None,
        cancel_token: CancelToken | None = None,
    ) -> ProcessedResponse | list[RawChunk]:
        """Send the conversation and return the complete reply.

        With raw_response=True the list of RawChunks is returned instead of the
        aggregate. Transport errors propagate; no partial response is returned.
        """
        options = RequestOptions(
            vault_id=vault_id,
            messages=list(messages),
            user_api_key=user_api_key,
            external_wallet_address=external_wallet_address,
            slippage_settings=slippage_settings,
            safe_mode=safe_mode,
            current_path=current_path,
        )
        if override is not None:
            return override(self._api_key, options)

        if raw_response:
            with self.raw_stream(options, cancel_token=cancel_token) as stream:
                return list(stream)

        with self.chat_stream(options, cancel_token=cancel_token) as stream:
            for _ in stream:
                pass
            return stream.response
