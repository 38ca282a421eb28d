"""Test helpers shared by the client test modules."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import AsyncIterator, Iterable, List


class FixedRandom:
    """Jitter source returning a constant value."""

    def __init__(self, value: float = 0.0) -> None:
        self.value = value

    def random(self) -> float:
        return self.value


class RecordingSleep:
    """Async sleep replacement that records requested delays."""

    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class ListHandler(logging.Handler):
    """Capture records; ``events`` parses the JSON payloads."""

    def __init__(self) -> None:
        super().__init__(level=logging.DEBUG)
        self.records: List[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)

    @property
    def events(self) -> List[dict]:
        out = []
        for rec in self.records:
            try:
                out.append(json.loads(rec.getMessage()))
            except ValueError:
                continue
        return out

    def named(self, event: str) -> List[dict]:
        return [e for e in self.events if e.get("event") == event]


def sse_frame(content: str) -> bytes:
    payload = {"choices": [{"delta": {"content": content}, "index": 0}]}
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n".encode("utf-8")


def sse_body(deltas: Iterable[str], *, done: bool = True) -> bytes:
    body = b"".join(sse_frame(d) for d in deltas)
    if done:
        body += b"data: [DONE]\n\n"
    return body


def completion_body(content: str) -> dict:
    return {
        "id": "cmpl-1",
        "model": "fastgpt",
        "usage": {"prompt_tokens": 3, "completion_tokens": 2, "total_tokens": 5},
        "choices": [
            {"message": {"role": "assistant", "content": content}, "finish_reason": "stop", "index": 0}
        ],
    }


async def hang_after(*chunks: bytes) -> AsyncIterator[bytes]:
    """Yield ``chunks`` and then block until cancelled."""
    for chunk in chunks:
        yield chunk
    await asyncio.sleep(3600)


async def fail_after(exc: BaseException, *chunks: bytes) -> AsyncIterator[bytes]:
    """Yield ``chunks`` and then raise ``exc``."""
    for chunk in chunks:
        yield chunk
    raise exc


# HTTP status -> attempts a call makes with three retries allowed.
STATUS_ATTEMPTS = [
    (400, 1),
    (401, 1),
    (403, 1),
    (404, 1),
    (408, 4),
    (429, 4),
    (500, 4),
    (502, 4),
    (503, 4),
    (504, 4),
    (418, 1),
    (599, 4),
]
