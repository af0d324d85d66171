"""
Stream cancellation control.

A CancelToken can be handed to a streaming call and cancelled from any thread.
Cancelling closes the in-flight response, which unblocks a pending read, and
the stream then ends without raising.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

logger = logging.getLogger(__name__)


class CancelToken:
    """Thread-safe cancellation signal for streaming calls.

    Example:
        >>> token = CancelToken()
        >>> stream = client.chat_stream(options, cancel_token=token)
        >>> # elsewhere, e.g. a UI "stop" button handler
        >>> token.cancel()
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._responses: list[Any] = []
        self.reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str = "user_request") -> bool:
        """Request cancellation.

        Returns:
            True if cancellation was newly requested, False if already cancelled
        """
        with self._lock:
            if self._event.is_set():
                return False
            self.reason = reason
            self._event.set()
            responses = self._responses
            self._responses = []

        for resp in responses:
            resp.close()
        logger.debug("Stream cancelled (%s); closed %d response(s)", reason, len(responses))
        return True

    def bind(self, resp: Any) -> None:
        """Close ``resp`` when the token is cancelled (immediately if it already is)."""
        with self._lock:
            if not self._event.is_set():
                self._responses.append(resp)
                return
        resp.close()

    def unbind(self, resp: Any) -> None:
        with self._lock:
            if resp in self._responses:
                self._responses.remove(resp)

    def wait(self, timeout: float | None = None) -> bool:
        """Block until cancelled or ``timeout`` elapses."""
        return self._event.wait(timeout)
