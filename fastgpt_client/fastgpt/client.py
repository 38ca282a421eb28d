"""FastGPT chat-completion client (OpenAI-compatible over HTTP).

Summary:
- Non-stream chat via ``httpx`` with centralized timeouts and the retry
  executor (``complete``, ``send_message``, ``send_messages``).
- Streaming via ``BaseStreamingAdapter`` and ``StreamController``
  (``stream_events``), with plain-text wrappers (``stream_message``,
  ``stream_messages``).
- ``test_connection`` probes configuration and credentials without raising
  for API errors.

Errors & Observability:
- Configuration is validated before every operation; failures never reach
  the network.
- HTTP failures are classified with ``classify_http_response``; structured
  ``chat.request.start``/``chat.request.end`` events are logged for
  non-stream calls and ``stream.exchange.*`` events for streams.

This module orchestrates I/O only; business logic lives in the base layer.
"""

from __future__ import annotations

import logging
import random
import time
from typing import Any, AsyncIterator, Dict, Mapping, Optional, Sequence, Union

import httpx

from ..base.cancellation import CancellationToken, CancelledError
from ..base.dto.chat import ChatCompletionDTO
from ..base.errors import ApiError, ErrorKind, classify_exception, classify_http_response
from ..base.http import build_async_client
from ..base.logging import LogContext, get_logger, log_event
from ..base.models import Configuration, ConnectionTestResult, ExchangeRequest, Message
from ..base.resilience.retry import RetryPolicy, SleepFunc, execute_with_retry
from ..base.streaming import (
    AbortEvent,
    BaseStreamingAdapter,
    ChunkEvent,
    ErrorEvent,
    StreamController,
)
from ..base.timeouts import TimeoutConfig, get_timeout_config
from ..base.validation import (
    build_api_url,
    build_headers,
    build_request,
    ensure_valid_config,
    validate_config,
)
from ..config.defaults import CONNECTION_TEST_PROMPT
from .stream_helpers import describe_error, parse_completion

MessagesInput = Union[ExchangeRequest, Sequence[Union[Message, Mapping[str, Any]]]]

_NETWORK_PROBE_MESSAGE = "Network error: Unable to connect to FastGPT server"


class FastGPTClient:
    """Client for one FastGPT application.

    Parameters:
        config: Endpoint, app id and credential. Never mutated.
        retry_policy: Backoff parameters; defaults to environment overrides
            on top of the built-in defaults.
        timeouts: Transport and exchange timeouts; defaults to
            :func:`get_timeout_config`.
        transport: Optional ``httpx`` transport (``httpx.MockTransport`` in
            tests).
        sleep, rng: Injectable backoff sleep and jitter source.

    The client owns one ``httpx.AsyncClient``; use it as an async context
    manager or call :meth:`aclose`.
    """

    def __init__(
        self,
        config: Configuration,
        *,
        retry_policy: Optional[RetryPolicy] = None,
        timeouts: Optional[TimeoutConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Optional[SleepFunc] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._config = config
        self._policy = retry_policy or RetryPolicy.from_env()
        self._timeouts = timeouts or get_timeout_config()
        self._http = build_async_client(timeout_cfg=self._timeouts, transport=transport)
        self._sleep = sleep
        self._rng = rng
        self._logger = get_logger("fastgpt.client")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **kwargs: Any) -> "FastGPTClient":
        """Build a client from ``FASTGPT_*`` environment variables."""
        return cls(Configuration.from_env(environ), **kwargs)

    @property
    def config(self) -> Configuration:
        return self._config

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._policy

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "FastGPTClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    # ---- Connection test ----
    async def test_connection(self) -> ConnectionTestResult:
        """Probe the endpoint with a minimal non-streaming request.

        Returns a failed result (never raises) for configuration, HTTP and
        network errors; retryable failures are retried first.
        """
        error = validate_config(self._config)
        if error is not None:
            return ConnectionTestResult(success=False, error=error.message, details="Configuration validation failed")
        request = ExchangeRequest.from_text(
            CONNECTION_TEST_PROMPT,
            conversation_id=f"test_{int(time.time() * 1000)}",
            streaming=False,
        )
        _, payload = build_request(request, streaming=False)
        ctx = self._ctx(request.conversation_id)
        try:
            await self._post(payload, ctx)
        except ApiError as exc:
            return ConnectionTestResult(success=False, error=exc.message, details=exc.kind.value)
        except (httpx.TransportError, OSError):
            return ConnectionTestResult(success=False, error=_NETWORK_PROBE_MESSAGE, details=ErrorKind.NETWORK.value)
        return ConnectionTestResult(success=True, details="Connection test successful")

    # ---- Non-stream ----
    async def complete(
        self,
        request: MessagesInput,
        *,
        conversation_id: Optional[str] = None,
        variables: Optional[Mapping[str, Any]] = None,
    ) -> ChatCompletionDTO:
        """Perform a non-streaming completion and return the parsed response.

        Raises:
            ApiError: configuration/request validation failures, and HTTP or
                transport failures after retries are exhausted (the original
                transport exception is re-raised unchanged).
            ResponseDecodeError: the body lacks ``choices[0].message``.
        """
        ensure_valid_config(self._config)
        req, payload = build_request(request, conversation_id=conversation_id, variables=variables, streaming=False)
        ctx = self._ctx(req.conversation_id)
        log_event(self._logger, "chat.request.start", ctx, streaming=False, messages=len(req.messages))
        t0 = time.perf_counter()
        try:
            response = await self._post(payload, ctx)
            completion = parse_completion(response.content)
        except Exception as exc:
            log_event(
                self._logger,
                "chat.request.end",
                ctx,
                level=logging.WARNING,
                ok=False,
                error_code=classify_exception(exc).kind.value,
                latency_ms=(time.perf_counter() - t0) * 1000.0,
            )
            raise
        log_event(
            self._logger,
            "chat.request.end",
            ctx,
            ok=True,
            latency_ms=(time.perf_counter() - t0) * 1000.0,
            finish_reason=completion.choices[0].finish_reason,
        )
        return completion

    async def send_message(
        self,
        text: str,
        *,
        conversation_id: Optional[str] = None,
        variables: Optional[Mapping[str, Any]] = None,
    ) -> str:
        """Send one user message and return the reply text."""
        return await self.send_messages(
            [{"role": "user", "content": text}],
            conversation_id=conversation_id,
            variables=variables,
        )

    async def send_messages(
        self,
        messages: MessagesInput,
        *,
        conversation_id: Optional[str] = None,
        variables: Optional[Mapping[str, Any]] = None,
    ) -> str:
        """Send a message history and return the reply text."""
        completion = await self.complete(messages, conversation_id=conversation_id, variables=variables)
        return completion.content

    # ---- Streaming ----
    def stream_events(
        self,
        request: MessagesInput,
        *,
        conversation_id: Optional[str] = None,
        variables: Optional[Mapping[str, Any]] = None,
        timeout: Optional[float] = None,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> StreamController:
        """Start a streamed exchange and return its event controller.

        Nothing happens until the controller is iterated. ``timeout`` is an
        exchange-wide deadline in seconds (defaults to the configured
        exchange timeout, if any); ``cancellation_token`` lets the caller
        abort from outside. Configuration or request problems surface as a
        single ``ErrorEvent``.
        """
        token = CancellationToken(parent=cancellation_token) if cancellation_token is not None else CancellationToken()
        if isinstance(request, ExchangeRequest):
            conversation_id = request.conversation_id
        payload: Dict[str, Any] = {}

        def preflight() -> None:
            ensure_valid_config(self._config)
            _, body = build_request(request, conversation_id=conversation_id, variables=variables, streaming=True)
            payload.update(body)

        async def starter(attempt_token: CancellationToken) -> httpx.Response:
            attempt_token.raise_if_cancelled()
            headers = build_headers(self._config)
            headers["Accept"] = "text/event-stream"
            http_request = self._http.build_request(
                "POST",
                build_api_url(self._config.endpoint),
                json=payload,
                headers=headers,
            )
            response = await self._http.send(http_request, stream=True)
            if response.is_error:
                try:
                    body = await response.aread()
                finally:
                    await response.aclose()
                raise classify_http_response(response, body)
            return response

        adapter = BaseStreamingAdapter(
            ctx=self._ctx(conversation_id),
            starter=starter,
            preflight=preflight,
            retry_policy=self._policy,
            timeout=timeout if timeout is not None else self._timeouts.exchange_timeout_seconds,
            logger=get_logger("fastgpt.stream"),
            sleep=self._sleep,
            rng=self._rng,
        )
        return StreamController(adapter, token)

    async def stream_messages(
        self,
        messages: MessagesInput,
        *,
        conversation_id: Optional[str] = None,
        variables: Optional[Mapping[str, Any]] = None,
        timeout: Optional[float] = None,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> AsyncIterator[str]:
        """Yield content deltas of a streamed reply.

        Raises the error that ended the exchange (``ApiError``, transport or
        decode errors, ``DeadlineExceeded``) and ``CancelledError`` when the
        exchange was aborted.
        """
        controller = self.stream_events(
            messages,
            conversation_id=conversation_id,
            variables=variables,
            timeout=timeout,
            cancellation_token=cancellation_token,
        )
        async with controller:
            async for event in controller:
                if isinstance(event, ChunkEvent):
                    yield event.data
                elif isinstance(event, ErrorEvent):
                    if event.exception is not None:
                        raise event.exception
                    raise ApiError(kind=ErrorKind.UNKNOWN, message=event.error.message)
                elif isinstance(event, AbortEvent):
                    raise CancelledError(event.reason or "operation cancelled")

    async def stream_message(
        self,
        text: str,
        *,
        conversation_id: Optional[str] = None,
        variables: Optional[Mapping[str, Any]] = None,
        timeout: Optional[float] = None,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> AsyncIterator[str]:
        """Single user message variant of :meth:`stream_messages`."""
        async for delta in self.stream_messages(
            [{"role": "user", "content": text}],
            conversation_id=conversation_id,
            variables=variables,
            timeout=timeout,
            cancellation_token=cancellation_token,
        ):
            yield delta

    describe_error = staticmethod(describe_error)

    # ---- Internals ----
    def _ctx(self, conversation_id: Optional[str]) -> LogContext:
        return LogContext(endpoint=self._config.endpoint, conversation_id=conversation_id)

    async def _post(self, payload: Dict[str, Any], ctx: LogContext) -> httpx.Response:
        url = build_api_url(self._config.endpoint)
        headers = build_headers(self._config)

        async def call() -> httpx.Response:
            response = await self._http.post(url, json=payload, headers=headers)
            if response.is_error:
                raise classify_http_response(response)
            return response

        return await execute_with_retry(call, self._policy, ctx=ctx, sleep=self._sleep, rng=self._rng)


__all__ = ["FastGPTClient", "MessagesInput"]
