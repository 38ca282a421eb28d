"""Streaming contract tests.

Every exchange yields ``start``, ordered chunks and exactly one terminal
event. Scenarios: natural completion, pre-start rejection, cancellation
(controller, external token, before start, on close), deadline, transport
failures before and after the first chunk, upstream error frames, HTTP
failures and decode failures.
"""
from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from fastgpt_client.base.cancellation import CancellationToken, DeadlineExceeded
from fastgpt_client.base.errors import StreamErrorKind
from fastgpt_client.base.models import Configuration
from fastgpt_client.base.streaming import (
    AbortEvent,
    ChunkEvent,
    CompleteEvent,
    ErrorEvent,
    StartEvent,
    is_terminal,
)
from fastgpt_client.tests.helpers import fail_after, hang_after, sse_body, sse_frame

MESSAGES = [{"role": "user", "content": "hi"}]


def _sse_response(body) -> httpx.Response:
    return httpx.Response(200, headers={"content-type": "text/event-stream"}, content=body)


def _types(events):
    return [e.type for e in events]


def _assert_single_terminal_last(events):
    terminals = [e for e in events if is_terminal(e)]
    assert len(terminals) == 1 and events[-1] is terminals[0]  # nosec B101


@pytest.mark.asyncio
async def test_two_chunks_then_complete(make_client):
    seen = []

    def handler(request):
        seen.append(request)
        return _sse_response(sse_body(["Hello", " world"]))

    async with make_client(handler) as client:
        controller = client.stream_events(MESSAGES, conversation_id="chat-9")
        events = await controller.collect()

    assert _types(events) == ["start", "chunk", "chunk", "complete"]  # nosec B101
    start = events[0]
    assert isinstance(start, StartEvent) and start.exchange_id.startswith("msg_")  # nosec B101
    assert all(e.exchange_id == start.exchange_id for e in events)  # nosec B101
    assert [(e.data, e.index) for e in events[1:3]] == [("Hello", 0), (" world", 1)]  # nosec B101
    assert events[-1] == CompleteEvent(exchange_id=start.exchange_id, total_chunks=2)  # nosec B101
    assert controller.finished and controller.terminal_event is events[-1]  # nosec B101
    assert controller.exchange_id == start.exchange_id  # nosec B101

    request = seen[0]
    assert str(request.url) == "https://fastgpt.io/api/v1/chat/completions"  # nosec B101
    assert request.headers["Authorization"] == "Bearer fastgpt-secret-key"  # nosec B101
    assert request.headers["Accept"] == "text/event-stream"  # nosec B101
    body = json.loads(request.content)
    assert body == {  # nosec B101
        "chatId": "chat-9",
        "stream": True,
        "detail": False,
        "messages": MESSAGES,
    }


@pytest.mark.asyncio
async def test_metrics_track_chunks_and_malformed_frames(make_client):
    body = sse_frame("a") + b"data: {oops\n\n" + sse_frame("b") + b"data: [DONE]\n\n"

    async with make_client(lambda r: _sse_response(body)) as client:
        controller = client.stream_events(MESSAGES)
        events = await controller.collect()

    assert _types(events) == ["start", "chunk", "chunk", "complete"]  # nosec B101
    metrics = controller.metrics
    assert metrics.emitted == 2 and metrics.parse_failures == 1 and metrics.attempts == 1  # nosec B101
    assert metrics.time_to_first_chunk_ms is not None and metrics.total_duration_ms is not None  # nosec B101


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "cfg,messages,message",
    [
        (Configuration(endpoint="https://fastgpt.io", app_id="app", credential=""), MESSAGES, "API Key is required"),
        (Configuration(endpoint="fastgpt.io", app_id="app", credential="k"), MESSAGES, "Invalid Base URL format"),
        (None, [], None),
    ],
)
async def test_rejected_before_start_yields_single_error(make_client, cfg, messages, message):
    calls = []

    def handler(request):
        calls.append(request)
        return _sse_response(sse_body(["x"]))

    async with make_client(handler, cfg=cfg) as client:
        events = await client.stream_events(messages).collect()

    assert len(events) == 1 and calls == []  # nosec B101
    evt = events[0]
    assert isinstance(evt, ErrorEvent) and evt.exchange_id is None  # nosec B101
    assert evt.error.kind is StreamErrorKind.CONNECTION and evt.error.recoverable is False  # nosec B101
    if message is not None:
        assert evt.error.message == message  # nosec B101


@pytest.mark.asyncio
async def test_cancel_after_first_chunk_yields_single_abort(make_client):
    body = sse_frame("a") + sse_frame("b") + sse_frame("c")

    async with make_client(lambda r: _sse_response(hang_after(body))) as client:
        controller = client.stream_events(MESSAGES)
        events = []

        async def consume():
            async for event in controller:
                events.append(event)
                if isinstance(event, ChunkEvent):
                    controller.cancel("user stop")

        await asyncio.wait_for(consume(), timeout=5)

    assert _types(events) == ["start", "chunk", "abort"]  # nosec B101
    assert events[-1] == AbortEvent(exchange_id=events[0].exchange_id, reason="user stop")  # nosec B101
    assert controller.metrics.attempts == 1  # nosec B101


@pytest.mark.asyncio
async def test_external_token_aborts_in_flight_read(make_client):
    token = CancellationToken()

    async with make_client(lambda r: _sse_response(hang_after(sse_frame("a")))) as client:
        controller = client.stream_events(MESSAGES, cancellation_token=token)
        events = []

        async def consume():
            async for event in controller:
                events.append(event)
                if isinstance(event, ChunkEvent):
                    token.cancel("navigated away")

        await asyncio.wait_for(consume(), timeout=5)

    assert _types(events) == ["start", "chunk", "abort"]  # nosec B101
    assert events[-1].reason == "navigated away"  # nosec B101
    _assert_single_terminal_last(events)


@pytest.mark.asyncio
async def test_cancel_before_iteration_skips_transport(make_client):
    calls = []

    def handler(request):
        calls.append(request)
        return _sse_response(sse_body(["x"]))

    async with make_client(handler) as client:
        controller = client.stream_events(MESSAGES)
        controller.cancel()
        events = await controller.collect()

    assert _types(events) == ["start", "abort"]  # nosec B101
    assert calls == []  # nosec B101


@pytest.mark.asyncio
async def test_closing_controller_releases_stream(make_client):
    closed = []

    async def body():
        try:
            yield sse_frame("a")
            await asyncio.sleep(3600)
        finally:
            closed.append(True)

    async with make_client(lambda r: _sse_response(body())) as client:
        controller = client.stream_events(MESSAGES)
        async with controller:
            first = await controller.__anext__()
            second = await controller.__anext__()
        assert isinstance(first, StartEvent) and isinstance(second, ChunkEvent)  # nosec B101

    assert closed == [True]  # nosec B101
    assert controller.token.cancelled  # nosec B101
    assert [e async for e in controller] == []  # nosec B101


@pytest.mark.asyncio
async def test_deadline_yields_timeout_error(make_client):
    async with make_client(lambda r: _sse_response(hang_after(sse_frame("a")))) as client:
        controller = client.stream_events(MESSAGES, timeout=0.05)
        events = await asyncio.wait_for(controller.collect(), timeout=5)

    assert _types(events) == ["start", "chunk", "error"]  # nosec B101
    err = events[-1]
    assert err.error.kind is StreamErrorKind.TIMEOUT and err.error.recoverable is True  # nosec B101
    assert isinstance(err.exception, DeadlineExceeded)  # nosec B101


@pytest.mark.asyncio
async def test_connect_failure_is_retried_then_surfaces(make_client, recording_sleep):
    calls = []

    def handler(request):
        calls.append(request)
        raise httpx.ConnectError("refused", request=request)

    async with make_client(handler) as client:
        events = await client.stream_events(MESSAGES).collect()

    assert len(calls) == 4 and recording_sleep.delays == [1.0, 2.0, 4.0]  # nosec B101
    assert _types(events) == ["start", "error"]  # nosec B101
    err = events[-1]
    assert err.error.kind is StreamErrorKind.CONNECTION and err.error.recoverable is True  # nosec B101
    assert isinstance(err.exception, httpx.ConnectError)  # nosec B101


@pytest.mark.asyncio
async def test_failure_after_first_chunk_is_not_retried(make_client):
    calls = []

    def handler(request):
        calls.append(request)
        return _sse_response(fail_after(httpx.ReadError("reset"), sse_frame("a")))

    async with make_client(handler) as client:
        events = await client.stream_events(MESSAGES).collect()

    assert len(calls) == 1  # nosec B101
    assert _types(events) == ["start", "chunk", "error"]  # nosec B101
    assert events[-1].error.kind is StreamErrorKind.CONNECTION  # nosec B101
    assert events[-1].error.recoverable is True  # nosec B101


async def _pieces(*chunks):
    for chunk in chunks:
        yield chunk


RATE_LIMIT_FRAME = b'data: {"code":429,"statusText":"rateLimitExceeded","message":"slow down"}\n\n'


@pytest.mark.asyncio
@pytest.mark.parametrize("split", [False, True], ids=["one-read", "two-reads"])
async def test_retryable_error_frame_after_chunk_ends_exchange(make_client, split):
    calls = []

    def handler(request):
        calls.append(request)
        if split:
            return _sse_response(_pieces(sse_frame("a"), RATE_LIMIT_FRAME))
        return _sse_response(sse_frame("a") + RATE_LIMIT_FRAME)

    async with make_client(handler) as client:
        events = await client.stream_events(MESSAGES).collect()

    assert len(calls) == 1  # nosec B101
    assert _types(events) == ["start", "chunk", "error"]  # nosec B101
    assert "slow down" in events[-1].error.message  # nosec B101


@pytest.mark.asyncio
async def test_authentication_error_frame_is_not_recoverable(make_client):
    calls = []
    frame = b'data: {"code":403,"statusText":"authenticationFailed","message":"key revoked"}\n\n'

    def handler(request):
        calls.append(request)
        return _sse_response(frame)

    async with make_client(handler) as client:
        events = await client.stream_events(MESSAGES).collect()

    assert len(calls) == 1  # nosec B101
    err = events[-1]
    assert err.error.kind is StreamErrorKind.CONNECTION and err.error.recoverable is False  # nosec B101


@pytest.mark.asyncio
async def test_http_401_fails_fast(make_client):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(401, json={"message": "unauthorized"})

    async with make_client(handler) as client:
        events = await client.stream_events(MESSAGES).collect()

    assert len(calls) == 1  # nosec B101
    assert _types(events) == ["start", "error"]  # nosec B101
    err = events[-1]
    assert err.error.message == "Authentication failed: Invalid API key"  # nosec B101
    assert err.error.recoverable is False  # nosec B101


@pytest.mark.asyncio
async def test_http_503_then_success(make_client, recording_sleep):
    responses = [
        httpx.Response(503, json={"message": "busy"}),
        _sse_response(sse_body(["ok"])),
    ]

    async with make_client(lambda r: responses.pop(0)) as client:
        controller = client.stream_events(MESSAGES)
        events = await controller.collect()

    assert _types(events) == ["start", "chunk", "complete"]  # nosec B101
    assert controller.metrics.attempts == 2 and recording_sleep.delays == [1.0]  # nosec B101


@pytest.mark.asyncio
async def test_invalid_utf8_is_parsing_error(make_client):
    calls = []

    def handler(request):
        calls.append(request)
        return _sse_response(b"data: \xff\xfe\n\n")

    async with make_client(handler) as client:
        events = await client.stream_events(MESSAGES).collect()

    assert len(calls) == 1  # nosec B101
    err = events[-1]
    assert err.error.kind is StreamErrorKind.PARSING and err.error.recoverable is False  # nosec B101


@pytest.mark.asyncio
async def test_exchange_logging_omits_credential(make_client, log_capture):
    async with make_client(lambda r: _sse_response(sse_body(["a", "b"]))) as client:
        await client.stream_events(MESSAGES, conversation_id="c-1").collect()

    starts = log_capture.named("stream.exchange.start")
    ends = log_capture.named("stream.exchange.end")
    assert len(starts) == 1 and len(ends) == 1  # nosec B101
    end = ends[0]
    assert end["outcome"] == "complete" and end["emitted"] == 2  # nosec B101
    assert end["conversation_id"] == "c-1" and end["exchange_id"].startswith("msg_")  # nosec B101
    assert end["phase"] == "finalize" and end["parse_failures"] == 0  # nosec B101
    assert all("fastgpt-secret-key" not in r.getMessage() for r in log_capture.records)  # nosec B101


@pytest.mark.asyncio
async def test_cancel_after_producer_finished_still_ends_with_abort(make_client):
    async with make_client(lambda r: _sse_response(sse_body(["a", "b", "c"]))) as client:
        controller = client.stream_events(MESSAGES)
        events = []

        async def consume():
            async for event in controller:
                events.append(event)
                if isinstance(event, ChunkEvent):
                    # Let the producer drain the whole body first.
                    await asyncio.sleep(0.05)
                    controller.cancel("user stop")

        await asyncio.wait_for(consume(), timeout=5)

    assert [(e.type, getattr(e, "index", None)) for e in events] == [  # nosec B101
        ("start", None),
        ("chunk", 0),
        ("abort", None),
    ]
    assert events[-1].reason == "user stop"  # nosec B101
    assert controller.terminal_event is events[-1]  # nosec B101


@pytest.mark.asyncio
async def test_long_lived_token_does_not_accumulate_children(make_client):
    token = CancellationToken()
    responses = []

    def handler(request):
        # Some exchanges fail once and need a second attempt.
        responses.append(request)
        if len(responses) % 3 == 1:
            return httpx.Response(503, json={})
        return _sse_response(sse_body(["x"]))

    async with make_client(handler) as client:
        for _ in range(10):
            controller = client.stream_events(MESSAGES, cancellation_token=token)
            events = await controller.collect()
            assert events[-1].type == "complete"  # nosec B101
            assert controller.token.child_count == 0  # nosec B101

    assert token.child_count == 0  # nosec B101


@pytest.mark.asyncio
async def test_zero_timeout_is_an_immediate_deadline(make_client):
    async with make_client(lambda r: _sse_response(hang_after(sse_frame("a")))) as client:
        controller = client.stream_events(MESSAGES, timeout=0)
        events = await asyncio.wait_for(controller.collect(), timeout=5)

    assert events[0].type == "start" and events[-1].type == "error"  # nosec B101
    assert events[-1].error.kind is StreamErrorKind.TIMEOUT  # nosec B101
    _assert_single_terminal_last(events)
