"""ChatStream handle wrapping the chunk pipeline with scoped response release."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import Any

from ._types import ProcessedResponse
from .streaming import ResponseAggregator


class ChatStream:
    """Iterable stream of chunks. Use as context manager or iterate directly.

    Usage:
        with client.chat_stream(options) as stream:
            for chunk in stream:
                print(chunk.type, chunk.value)
        print(stream.response.content)  # aggregate of everything consumed

    Leaving the ``with`` block (or calling ``close()``) releases the underlying
    HTTP response even when iteration stopped early.
    """

    def __init__(self, source: Iterable[Any]):
        self._source = source
        self._aggregator = ResponseAggregator()
        self._closed = False

    def close(self) -> None:
        """Stop the pipeline and close the underlying response (idempotent)."""
        if not self._closed:
            self._closed = True
            close = getattr(self._source, "close", None)
            if close is not None:
                close()

    def __iter__(self) -> Iterator[Any]:
        try:
            for chunk in self._source:
                self._aggregator.process(chunk)
                yield chunk
        finally:
            self.close()

    def __enter__(self) -> ChatStream:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def text(self) -> str:
        """Text accumulated from the chunks consumed so far."""
        return self._aggregator.get_text()

    @property
    def response(self) -> ProcessedResponse:
        """Aggregate of the chunks consumed so far."""
        return self._aggregator.result()
