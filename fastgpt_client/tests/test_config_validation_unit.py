"""Configuration validation and URL construction.

Covers check order, URL format rules, the ``/api`` segment insertion and
request validation through the pydantic wire model.
"""
from __future__ import annotations

import pytest

from fastgpt_client.base.errors import ApiError, ErrorKind
from fastgpt_client.base.models import Configuration, ExchangeRequest, Message
from fastgpt_client.base.validation import (
    build_api_url,
    build_headers,
    build_request,
    ensure_valid_config,
    validate_config,
)


@pytest.mark.parametrize(
    "endpoint,app_id,credential,expected",
    [
        ("", "", "", "Base URL is required"),
        ("   ", "app", "key", "Base URL is required"),
        ("https://fastgpt.io", "", "", "App ID is required"),
        ("https://fastgpt.io", "app", "", "API Key is required"),
        ("fastgpt.io", "app", "key", "Invalid Base URL format"),
        ("https://", "app", "key", "Invalid Base URL format"),
        ("http://[::1", "app", "key", "Invalid Base URL format"),
        ("ftp://fastgpt.io", "app", "key", "Base URL must use HTTP or HTTPS protocol"),
    ],
)
def test_validate_config_reports_first_failure(endpoint, app_id, credential, expected):
    error = validate_config(Configuration(endpoint=endpoint, app_id=app_id, credential=credential))
    assert error is not None  # nosec B101
    assert error.kind is ErrorKind.VALIDATION  # nosec B101
    assert error.message == expected  # nosec B101
    assert error.retryable is False  # nosec B101


@pytest.mark.parametrize("endpoint", ["https://fastgpt.io", "http://localhost:3000/api", "HTTPS://Example.org/"])
def test_validate_config_accepts_http_and_https(endpoint):
    assert validate_config(Configuration(endpoint=endpoint, app_id="a", credential="k")) is None  # nosec B101


def test_ensure_valid_config_raises():
    with pytest.raises(ApiError) as ei:
        ensure_valid_config(Configuration(endpoint="https://fastgpt.io", app_id="a", credential=""))
    assert ei.value.message == "API Key is required"  # nosec B101


def test_credential_not_in_repr(config):
    assert "fastgpt-secret-key" not in repr(config)  # nosec B101


@pytest.mark.parametrize(
    "endpoint,expected",
    [
        ("https://fastgpt.io/", "https://fastgpt.io/api/v1/chat/completions"),
        ("https://fastgpt.io", "https://fastgpt.io/api/v1/chat/completions"),
        ("https://fastgpt.io/api", "https://fastgpt.io/api/v1/chat/completions"),
        ("https://fastgpt.io/api/", "https://fastgpt.io/api/v1/chat/completions"),
        ("https://host.example/proxy", "https://host.example/proxy/api/v1/chat/completions"),
        ("https://api.fastgpt.io", "https://api.fastgpt.io/api/v1/chat/completions"),
        ("http://localhost:3000/fastgpt/api", "http://localhost:3000/fastgpt/api/v1/chat/completions"),
    ],
)
def test_build_api_url(endpoint, expected):
    assert build_api_url(endpoint) == expected  # nosec B101


def test_build_headers_uses_bearer(config):
    headers = build_headers(config)
    assert headers["Authorization"] == "Bearer fastgpt-secret-key"  # nosec B101
    assert headers["Content-Type"] == "application/json"  # nosec B101


def test_build_request_payload_shape():
    req, payload = build_request(
        [Message(role="system", content="be brief"), {"role": "user", "content": "hi"}],
        conversation_id="chat-1",
        variables={"lang": "en"},
        streaming=True,
    )
    assert isinstance(req, ExchangeRequest)  # nosec B101
    assert payload == {  # nosec B101
        "chatId": "chat-1",
        "stream": True,
        "detail": False,
        "messages": [
            {"role": "system", "content": "be brief"},
            {"role": "user", "content": "hi"},
        ],
        "variables": {"lang": "en"},
    }


def test_build_request_omits_unset_optionals():
    _, payload = build_request([{"role": "user", "content": "hi"}], streaming=False)
    assert "chatId" not in payload and "variables" not in payload  # nosec B101
    assert payload["stream"] is False  # nosec B101


def test_build_request_forces_mode_on_existing_request():
    req = ExchangeRequest.from_text("hi", conversation_id="c")
    forced, payload = build_request(req, streaming=False)
    assert forced.streaming is False and payload["stream"] is False  # nosec B101
    assert payload["chatId"] == "c"  # nosec B101


@pytest.mark.parametrize(
    "messages",
    [
        [],
        [{"role": "robot", "content": "hi"}],
        [{"role": "user", "content": "   "}],
        [{"role": "user"}],
        [42],
    ],
)
def test_build_request_rejects_invalid_messages(messages):
    with pytest.raises(ApiError) as ei:
        build_request(messages)
    assert ei.value.kind is ErrorKind.VALIDATION  # nosec B101
    assert ei.value.message.startswith("Invalid request")  # nosec B101
