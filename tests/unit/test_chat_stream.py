"""Tests for ChatStream resource release and stream cancellation."""

import threading

from hustle_incognito import CancelToken, HustleIncognitoClient
from hustle_incognito._streaming import ChatStream
from hustle_incognito.streaming import ChunkType, StreamChunk
from tests.utils.mocks import FakeStreamResponse, RecordingTransport


def _client(resp):
    return HustleIncognitoClient(api_key="k", transport=RecordingTransport(resp))


class TestChatStream:
    def test_iteration_yields_chunks(self):
        stream = ChatStream(iter([StreamChunk(ChunkType.TEXT, "Hi")]))
        assert list(stream) == [StreamChunk(ChunkType.TEXT, "Hi")]
        assert stream.closed

    def test_close_is_idempotent(self):
        source = iter([])
        stream = ChatStream(source)
        stream.close()
        stream.close()
        assert stream.closed

    def test_list_source_has_no_close(self):
        stream = ChatStream([StreamChunk(ChunkType.TEXT, "a")])
        with stream:
            assert stream.text == ""
            list(stream)
        assert stream.text == "a"

    def test_response_closed_after_full_iteration(self):
        resp = FakeStreamResponse([b'0:"a"\n0:"b"\n'])
        list(_client(resp).chat_stream({"vault_id": "v"}))
        assert resp.close_count == 1

    def test_response_closed_on_early_exit_from_with_block(self):
        resp = FakeStreamResponse([b'0:"a"\n', b'0:"b"\n', b'e:{}\n'])
        with _client(resp).chat_stream({"vault_id": "v"}) as stream:
            for chunk in stream:
                assert chunk.value == "a"
                break
        assert resp.closed
        assert resp.reads == 1

    def test_close_before_iteration_never_opens_request(self):
        transport = RecordingTransport(FakeStreamResponse([b'0:"a"\n']))
        client = HustleIncognitoClient(api_key="k", transport=transport)
        stream = client.raw_stream({"vault_id": "v"})
        stream.close()
        assert list(stream) == []
        assert transport.calls == []

    def test_request_is_lazy(self):
        transport = RecordingTransport(FakeStreamResponse([b'0:"a"\n']))
        client = HustleIncognitoClient(api_key="k", transport=transport)
        stream = client.chat_stream({"vault_id": "v"})
        assert transport.calls == []
        list(stream)
        assert len(transport.calls) == 1


class TestCancelToken:
    def test_cancel_once(self):
        token = CancelToken()
        assert token.cancel() is True
        assert token.cancel() is False
        assert token.cancelled
        assert token.reason == "user_request"

    def test_bind_after_cancel_closes_immediately(self):
        token = CancelToken()
        token.cancel()
        resp = FakeStreamResponse()
        token.bind(resp)
        assert resp.closed

    def test_cancel_closes_bound_response(self):
        token = CancelToken()
        resp = FakeStreamResponse()
        token.bind(resp)
        token.cancel("shutdown")
        assert resp.closed
        assert token.reason == "shutdown"

    def test_unbind(self):
        token = CancelToken()
        resp = FakeStreamResponse()
        token.bind(resp)
        token.unbind(resp)
        token.cancel()
        assert not resp.closed

    def test_wait(self):
        token = CancelToken()
        threading.Timer(0.01, token.cancel).start()
        assert token.wait(timeout=5)


class TestStreamCancellation:
    def test_pre_cancelled_token_skips_request(self):
        transport = RecordingTransport(FakeStreamResponse([b'0:"a"\n']))
        client = HustleIncognitoClient(api_key="k", transport=transport)
        token = CancelToken()
        token.cancel()
        assert list(client.chat_stream({"vault_id": "v"}, cancel_token=token)) == []
        assert transport.calls == []

    def test_cancel_mid_stream_ends_cleanly(self):
        resp = FakeStreamResponse([b'0:"a"\n', b'0:"b"\n', b'0:"c"\n'])
        token = CancelToken()
        seen = []
        for chunk in _client(resp).chat_stream({"vault_id": "v"}, cancel_token=token):
            seen.append(chunk.value)
            token.cancel()
        assert seen == ["a"]
        assert resp.closed

    def test_read_error_after_cancel_is_not_raised(self):
        """Closing the response from another thread makes the blocked read fail."""
        token = CancelToken()
        resp = FakeStreamResponse([b'0:"a"\n'], error=ValueError("I/O on closed file"))
        chunks = _client(resp).raw_stream({"vault_id": "v"}, cancel_token=token)
        seen = []
        for chunk in chunks:
            seen.append(chunk)
            token.cancel()
        assert [c.data for c in seen] == ["a"]

    def test_response_unbound_after_completion(self):
        resp = FakeStreamResponse([b'0:"a"\n'])
        token = CancelToken()
        list(_client(resp).chat_stream({"vault_id": "v"}, cancel_token=token))
        closes = resp.close_count
        token.cancel()
        assert resp.close_count == closes
