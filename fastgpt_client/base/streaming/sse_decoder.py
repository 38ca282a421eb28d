"""Incremental SSE decoder for chat-completion streams.

Purpose:
    Turn raw byte chunks of a ``text/event-stream`` body into content deltas.
    Chunk boundaries are arbitrary: a frame, a line or a multi-byte UTF-8
    code point may be split across reads, and the produced deltas do not
    depend on where the splits fall.

Behavior:
    - Bytes are decoded with an incremental UTF-8 decoder; invalid bytes
      raise :class:`ResponseDecodeError`.
    - Text is appended to one buffer, split on ``\\n``; the trailing fragment
      stays buffered until the next chunk (or :meth:`SSEDecoder.flush`).
    - Only ``data:`` lines are considered; the ``[DONE]`` sentinel and empty
      lines are skipped.
    - A malformed JSON payload is logged (``stream.frame.malformed``),
      counted in ``ExchangeMetrics.parse_failures`` and skipped.
    - An upstream error object (``code``/``statusText``/``message``) raises
      :class:`ApiError`.

``decode_stream`` drives a decoder over an async byte source and releases the
source exactly once on every exit path.
"""
from __future__ import annotations

import codecs
import json
import logging
from typing import Any, AsyncIterator, Awaitable, Callable, List, Mapping, Optional

from ...config.defaults import SSE_DATA_PREFIX, SSE_DONE_SENTINEL
from ..cancellation import CancellationToken
from ..errors import ApiError, ResponseDecodeError, classify_stream_error_frame
from ..logging import LogContext, get_logger, log_event
from .streaming_metrics import ExchangeMetrics

logger = get_logger("fastgpt.stream")

_PREVIEW_CHARS = 120


def extract_delta_content(data: Any) -> Optional[str]:
    """Return ``choices[0].delta.content`` when it is a non-empty string."""
    if not isinstance(data, Mapping):
        return None
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, Mapping):
        return None
    delta = first.get("delta")
    if not isinstance(delta, Mapping):
        return None
    content = delta.get("content")
    return content if isinstance(content, str) and content else None


class SSEDecoder:
    """Stateful line decoder; one instance per transport attempt.

    A failure (invalid UTF-8, upstream error frame) never discards the deltas
    that precede it in the same chunk: those are returned first and the
    failure is raised by the next ``feed``/``flush`` call (or by
    :meth:`raise_pending`). The output therefore does not depend on where
    the chunk boundaries fall.
    """

    def __init__(
        self,
        *,
        metrics: Optional[ExchangeMetrics] = None,
        ctx: Optional[LogContext] = None,
    ) -> None:
        self._utf8 = codecs.getincrementaldecoder("utf-8")(errors="strict")
        self._buffer = ""
        self._metrics = metrics
        self._ctx = ctx
        self._pending: Optional[Exception] = None

    def feed(self, chunk: bytes) -> List[str]:
        """Consume one byte chunk and return the deltas it completes."""
        self.raise_pending()
        self._buffer += self._decode(chunk, final=False)
        lines = self._buffer.split("\n")
        self._buffer = lines.pop()
        return self._settle(self._process(lines))

    def flush(self) -> List[str]:
        """Process whatever remains buffered after end-of-data."""
        self.raise_pending()
        rest = self._buffer + self._decode(b"", final=True)
        self._buffer = ""
        return self._settle(self._process(rest.split("\n")))

    def raise_pending(self) -> None:
        """Raise a failure held back behind already returned deltas."""
        if self._pending is not None:
            exc, self._pending = self._pending, None
            raise exc

    def _settle(self, deltas: List[str]) -> List[str]:
        if not deltas:
            self.raise_pending()
        return deltas

    def _decode(self, chunk: bytes, *, final: bool) -> str:
        try:
            return self._utf8.decode(chunk, final)
        except UnicodeDecodeError as exc:
            error = ResponseDecodeError(f"Invalid UTF-8 in stream: {exc.reason}")
            error.__cause__ = exc
            self._pending = error
            # Text before the offending byte is still valid.
            return exc.object[: exc.start].decode("utf-8")

    def _process(self, lines: List[str]) -> List[str]:
        deltas: List[str] = []
        for line in lines:
            try:
                delta = self._parse_line(line)
            except ApiError as exc:
                self._pending = exc
                break
            if delta:
                deltas.append(delta)
        return deltas

    def _parse_line(self, line: str) -> Optional[str]:
        line = line.strip()
        if not line.startswith(SSE_DATA_PREFIX):
            return None
        payload = line[len(SSE_DATA_PREFIX):]
        if payload.startswith(" "):
            payload = payload[1:]
        if not payload or payload == SSE_DONE_SENTINEL:
            return None
        try:
            data = json.loads(payload)
        except ValueError as exc:
            self._malformed(payload, exc)
            return None
        if isinstance(data, Mapping):
            upstream = classify_stream_error_frame(data)
            if upstream is not None:
                raise upstream
        return extract_delta_content(data)

    def _malformed(self, payload: str, exc: ValueError) -> None:
        if self._metrics is not None:
            self._metrics.parse_failures += 1
        log_event(
            logger,
            "stream.frame.malformed",
            self._ctx,
            level=logging.WARNING,
            error=str(exc),
            preview=payload[:_PREVIEW_CHARS],
        )


class _ReleaseOnce:
    """Await-able wrapper that invokes ``release`` at most once."""

    def __init__(self, release: Optional[Callable[[], Awaitable[None]]]) -> None:
        self._release = release
        self.released = False

    async def __call__(self) -> None:
        if self.released or self._release is None:
            return
        self.released = True
        await self._release()


async def decode_stream(
    source: AsyncIterator[bytes],
    *,
    release: Optional[Callable[[], Awaitable[None]]] = None,
    token: Optional[CancellationToken] = None,
    metrics: Optional[ExchangeMetrics] = None,
    ctx: Optional[LogContext] = None,
) -> AsyncIterator[str]:
    """Yield content deltas decoded from ``source``.

    The token is polled between reads; ``release`` runs exactly once when
    the generator finishes, fails or is closed. Callers should close the
    generator explicitly (``contextlib.aclosing``) when they stop early.
    """
    decoder = SSEDecoder(metrics=metrics, ctx=ctx)
    release_once = _ReleaseOnce(release)
    try:
        async for chunk in source:
            if token is not None:
                token.raise_if_cancelled()
            for delta in decoder.feed(chunk):
                yield delta
        if token is not None:
            token.raise_if_cancelled()
        for delta in decoder.flush():
            yield delta
        decoder.raise_pending()
    finally:
        await release_once()


__all__ = ["SSEDecoder", "decode_stream", "extract_delta_content"]
