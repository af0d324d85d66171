"""Request body construction for the chat endpoint."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ._exceptions import ConfigurationError
from ._types import DEFAULT_SLIPPAGE_SETTINGS, RequestOptions


def coerce_options(options: RequestOptions | Mapping[str, Any]) -> RequestOptions:
    """Accept either a RequestOptions or a plain mapping of the same fields."""
    if isinstance(options, RequestOptions):
        return options
    return RequestOptions.from_dict(options)


def resolve_api_key(options: RequestOptions, default_api_key: str | None) -> str:
    """Per-call key first, then the client key. Raises if neither is usable."""
    api_key = options.user_api_key or default_api_key
    if not api_key or not isinstance(api_key, str):
        raise ConfigurationError("API key is required.")
    return api_key


def build_request_body(options: RequestOptions, default_api_key: str | None) -> dict[str, Any]:
    """Build the JSON body for ``POST /api/chat``.

    Pure: no I/O, and the same inputs always give an equal dict with the same
    key order, so the serialized body is byte-identical.
    """
    api_key = resolve_api_key(options, default_api_key)
    slippage = options.slippage_settings
    if slippage is None:
        slippage = DEFAULT_SLIPPAGE_SETTINGS

    return {
        "id": f"chat-{options.vault_id}",
        "messages": [m.to_dict() for m in options.messages],
        "apiKey": api_key,
        "vaultId": options.vault_id,
        "externalWalletAddress": options.external_wallet_address or "",
        "slippageSettings": dict(slippage),
        "safeMode": options.safe_mode is not False,
        "currentPath": options.current_path or None,
        "attachments": [],
    }
