"""
Prefix-tagged line stream protocol.

The chat endpoint answers with newline-separated lines of the form
``<prefix>:<payload>`` where the single prefix character identifies the
payload kind and the payload is (usually) JSON::

    0:"Hello "
    9:{"toolCallId":"t1","toolName":"swap","args":{"amount":5}}
    a:{"toolCallId":"t1","result":{"ok":true}}
    f:{"messageId":"m1"}
    2:[{"type":"path_info","path":"PATH_1"}]
    e:{"finishReason":"stop","usage":{"promptTokens":10,"completionTokens":5}}

This module turns raw body bytes into lines, lines into ``RawChunk`` records,
raw chunks into typed ``StreamChunk`` events, and events into a single
``ProcessedResponse``.
"""

from __future__ import annotations

import codecs
from collections.abc import Generator, Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
import json
import logging
from typing import Any

from ._types import ProcessedResponse, ToolCall, ToolResult

logger = logging.getLogger(__name__)


class ChunkPrefix(str, Enum):
    """Line prefixes understood by the processor."""

    TEXT = "0"
    TOOL_CALL = "9"
    TOOL_RESULT = "a"
    MESSAGE_ID = "f"
    COMPLETION = "e"
    FINAL = "d"
    PATH_INFO = "2"

    # Synthetic prefix emitted by the client when the transport fails
    ERROR = "error"


class ChunkType(str, Enum):
    """Semantic stream event types."""

    TEXT = "text"
    TOOL_CALL = "tool_call"
    TOOL_CALL_DELTA = "tool_call_delta"
    TOOL_RESULT = "tool_result"
    MESSAGE_ID = "message_id"
    PATH_INFO = "path_info"
    FINISH = "finish"
    UNKNOWN = "unknown"
    ERROR = "error"


@dataclass
class RawChunk:
    """One classified wire line, before semantic processing."""

    prefix: str
    data: Any
    raw: str


@dataclass
class StreamChunk:
    """One semantic event derived from a raw chunk."""

    type: ChunkType
    value: Any


class LineDecoder:
    """
    Incremental bytes-to-lines decoder.

    Holds the unterminated tail of the previous read and prepends it to the next
    one, so a line split across two network reads comes out whole. Multi-byte
    UTF-8 sequences split across reads are reassembled by the incremental codec.
    Create one per response; instances are not shared between calls.
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._buffer = ""

    def feed(self, chunk: bytes | str) -> list[str]:
        """Consume one read and return every line it completed."""
        text = chunk if isinstance(chunk, str) else self._decoder.decode(chunk)
        if not text:
            return []
        self._buffer += text
        *complete, self._buffer = self._buffer.split("\n")
        return [line for line in map(self._clean, complete) if line is not None]

    def flush(self) -> list[str]:
        """Return the trailing unterminated line, if any, at end of stream."""
        remaining = self._buffer + self._decoder.decode(b"", final=True)
        self._buffer = ""
        line = self._clean(remaining)
        return [line] if line is not None else []

    @staticmethod
    def _clean(line: str) -> str | None:
        # Blank lines never reach the classifier; a CRLF "\r" stays on the line
        if not line.strip():
            return None
        return line


def iter_lines(chunks: Iterable[bytes | str]) -> Generator[str, None, None]:
    """Yield complete, non-blank lines from an iterable of body reads."""
    decoder = LineDecoder()
    for chunk in chunks:
        yield from decoder.feed(chunk)
    yield from decoder.flush()


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Invalid JSON constant: {name}")


def classify_line(line: str) -> RawChunk:
    """
    Split a wire line into prefix and payload.

    The payload is JSON-decoded when it is valid JSON; otherwise it is kept as
    the verbatim string. This never raises.

    Args:
        line: A single non-blank line, without its newline

    Returns:
        RawChunk whose ``raw`` is ``line`` unchanged
    """
    prefix = line[:1]
    payload = line[2:]
    try:
        data = json.loads(payload, parse_constant=_reject_constant)
    except (ValueError, RecursionError):
        logger.debug("Non-JSON payload for prefix %r: %s", prefix, payload[:200])
        data = payload
    return RawChunk(prefix=prefix, data=data, raw=line)


class ChunkProcessor:
    """Maps raw chunks onto semantic stream events."""

    @staticmethod
    def process(chunk: RawChunk) -> StreamChunk | None:
        """
        Convert one raw chunk into a StreamChunk.

        Returns None for lines that carry no event (a message-id line without a
        ``messageId`` field).
        """
        try:
            prefix: ChunkPrefix | None = ChunkPrefix(chunk.prefix)
        except ValueError:
            prefix = None

        data = chunk.data

        if prefix == ChunkPrefix.TEXT:
            return StreamChunk(type=ChunkType.TEXT, value=data)
        elif prefix == ChunkPrefix.TOOL_CALL:
            return StreamChunk(type=ChunkType.TOOL_CALL, value=data)
        elif prefix == ChunkPrefix.TOOL_RESULT:
            return StreamChunk(type=ChunkType.TOOL_RESULT, value=data)
        elif prefix == ChunkPrefix.MESSAGE_ID:
            if isinstance(data, Mapping) and "messageId" in data:
                return StreamChunk(type=ChunkType.MESSAGE_ID, value=data["messageId"])
            return None
        elif prefix in (ChunkPrefix.COMPLETION, ChunkPrefix.FINAL):
            # 'e' and 'd' are both treated as the end-of-reply summary
            details = data if isinstance(data, Mapping) else {}
            return StreamChunk(
                type=ChunkType.FINISH,
                value={
                    "reason": details.get("finishReason") or "stop",
                    "usage": details.get("usage"),
                },
            )
        elif prefix == ChunkPrefix.PATH_INFO:
            # Only the first entry of a list is kept
            if isinstance(data, list) and data:
                return StreamChunk(type=ChunkType.PATH_INFO, value=data[0])
            return StreamChunk(type=ChunkType.PATH_INFO, value=data)
        elif prefix == ChunkPrefix.ERROR:
            return StreamChunk(type=ChunkType.ERROR, value=data)

        return StreamChunk(type=ChunkType.UNKNOWN, value=chunk)


def process_chunks(chunks: Iterable[RawChunk]) -> Generator[StreamChunk, None, None]:
    """Lazily map a raw chunk sequence to StreamChunks, in order.

    Closing this generator also closes ``chunks`` when it is a generator, so an
    early stop releases the upstream HTTP response.
    """
    try:
        for chunk in chunks:
            event = ChunkProcessor.process(chunk)
            if event is not None:
                yield event
    finally:
        close = getattr(chunks, "close", None)
        if close is not None:
            close()


class ResponseAggregator:
    """
    Folds StreamChunks into a ProcessedResponse.

    Tool calls and results are recorded in arrival order; executing them is
    left to the caller.
    """

    def __init__(self) -> None:
        self.text_parts: list[str] = []
        self.message_id: str | None = None
        self.usage: dict | None = None
        self.path_info: Any = None
        self.tool_calls: list[ToolCall] = []
        self.tool_results: list[ToolResult] = []

    def process(self, chunk: StreamChunk | RawChunk) -> None:
        """Process a stream chunk and accumulate data."""
        if not isinstance(chunk, StreamChunk):
            return

        if chunk.type == ChunkType.TEXT:
            value = chunk.value
            self.text_parts.append(value if isinstance(value, str) else json.dumps(value))

        elif chunk.type == ChunkType.MESSAGE_ID:
            self.message_id = chunk.value

        elif chunk.type == ChunkType.FINISH:
            usage = chunk.value.get("usage") if isinstance(chunk.value, Mapping) else None
            if usage is not None:
                self.usage = usage

        elif chunk.type == ChunkType.PATH_INFO:
            self.path_info = chunk.value

        elif chunk.type == ChunkType.TOOL_CALL:
            self.tool_calls.append(ToolCall.from_value(chunk.value))

        elif chunk.type == ChunkType.TOOL_RESULT:
            self.tool_results.append(ToolResult.from_value(chunk.value))

        else:
            logger.debug("Ignoring %s chunk during aggregation", chunk.type.value)

    def get_text(self) -> str:
        """Get accumulated text."""
        return "".join(self.text_parts)

    def result(self) -> ProcessedResponse:
        """Snapshot of everything folded so far."""
        return ProcessedResponse(
            content=self.get_text(),
            message_id=self.message_id,
            usage=self.usage,
            path_info=self.path_info,
            tool_calls=list(self.tool_calls),
            tool_results=list(self.tool_results),
        )


def aggregate(chunks: Iterable[StreamChunk | RawChunk]) -> ProcessedResponse:
    """Consume a chunk sequence to completion and return the aggregate."""
    aggregator = ResponseAggregator()
    for chunk in chunks:
        aggregator.process(chunk)
    return aggregator.result()
