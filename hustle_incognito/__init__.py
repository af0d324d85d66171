"""
hustle-incognito - Python SDK for the Emblem Vault Hustle Incognito agent API.

Chat with the agent and consume its prefix-tagged streaming replies as raw
chunks, typed chunks, or a single aggregated response.
"""

__version__ = "0.1.0"

from ._cancel import CancelToken
from ._client import API_ENDPOINTS, HustleIncognitoClient
from ._exceptions import (
    APIError,
    AuthenticationError,
    ConfigurationError,
    HustleError,
    NetworkError,
    NotFoundError,
    PermissionDeniedError,
    RateLimitError,
    ValidationError,
)
from ._request import build_request_body
from ._streaming import ChatStream
from ._types import (
    ChatMessage,
    MessagePart,
    ProcessedResponse,
    RequestOptions,
    ToolCall,
    ToolResult,
)
from .streaming import (
    ChunkProcessor,
    ChunkType,
    LineDecoder,
    RawChunk,
    ResponseAggregator,
    StreamChunk,
    aggregate,
    classify_line,
)

__all__ = [
    "API_ENDPOINTS",
    "APIError",
    "AuthenticationError",
    "CancelToken",
    "ChatMessage",
    "ChatStream",
    "ChunkProcessor",
    "ChunkType",
    "ConfigurationError",
    "HustleError",
    "HustleIncognitoClient",
    "LineDecoder",
    "MessagePart",
    "NetworkError",
    "NotFoundError",
    "PermissionDeniedError",
    "ProcessedResponse",
    "RateLimitError",
    "RawChunk",
    "RequestOptions",
    "ResponseAggregator",
    "StreamChunk",
    "ToolCall",
    "ToolResult",
    "ValidationError",
    "aggregate",
    "build_request_body",
    "classify_line",
]
