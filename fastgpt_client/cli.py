"""FastGPT client CLI.

Sub-commands:

- ``check``: validate configuration and probe the endpoint
  (``test_connection``); prints the result as JSON.
- ``ask``: send one message and print the reply; ``--stream`` prints deltas
  as they arrive.

Configuration comes from the environment (``FASTGPT_BASE_URL``,
``FASTGPT_APP_ID``, ``FASTGPT_API_KEY``). Errors are written to stderr as
JSON.

Exit codes: 0 success, 1 request failure, 2 configuration error.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any, Dict, Mapping, Optional, Sequence, TextIO

import httpx

from .base.cancellation import CancelledError
from .base.errors import ApiError, ErrorKind, ResponseDecodeError
from .base.logging import configure_logger
from .base.models import Configuration
from .base.validation import validate_config
from .config.defaults import CLI_PROG_NAME
from .fastgpt.client import FastGPTClient

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG = 2


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog=CLI_PROG_NAME, description="FastGPT chat-completion client")
    p.add_argument("--log-level", default=None, help="Logging level (DEBUG, INFO, WARNING, ...)")
    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("check", help="Validate configuration and test the connection")

    ask = sub.add_parser("ask", help="Send a message and print the reply")
    ask.add_argument("text", nargs="+", help="Message text")
    ask.add_argument("--stream", action="store_true", help="Print the reply incrementally")
    ask.add_argument("--conversation-id", default=None, help="Conversation (chatId) to append to")
    ask.add_argument("--timeout", type=float, default=None, help="Exchange deadline in seconds (streaming)")
    return p


def _emit_error(err: TextIO, payload: Dict[str, Any]) -> None:
    err.write(json.dumps(payload, ensure_ascii=False) + "\n")


def _error_payload(exc: BaseException) -> Dict[str, Any]:
    if isinstance(exc, ApiError):
        return {
            "error": exc.message,
            "kind": exc.kind.value,
            "code": exc.code,
            "hint": FastGPTClient.describe_error(exc),
        }
    return {"error": str(exc) or exc.__class__.__name__, "kind": exc.__class__.__name__}


async def handle_check(client: FastGPTClient, out: TextIO) -> int:
    result = await client.test_connection()
    out.write(json.dumps({"success": result.success, "error": result.error, "details": result.details}) + "\n")
    return EXIT_OK if result.success else EXIT_FAILURE


async def handle_ask(client: FastGPTClient, args: argparse.Namespace, out: TextIO, err: TextIO) -> int:
    text = " ".join(args.text)
    try:
        if args.stream:
            async for delta in client.stream_message(
                text,
                conversation_id=args.conversation_id,
                timeout=args.timeout,
            ):
                out.write(delta)
                out.flush()
            out.write("\n")
        else:
            reply = await client.send_message(text, conversation_id=args.conversation_id)
            out.write(reply + "\n")
    except ApiError as exc:
        _emit_error(err, _error_payload(exc))
        return EXIT_CONFIG if exc.kind is ErrorKind.VALIDATION and exc.code is None else EXIT_FAILURE
    except (httpx.TransportError, OSError, ResponseDecodeError, CancelledError) as exc:
        _emit_error(err, _error_payload(exc))
        return EXIT_FAILURE
    return EXIT_OK


async def _run(args: argparse.Namespace, config: Configuration, out: TextIO, err: TextIO, **client_kwargs: Any) -> int:
    async with FastGPTClient(config, **client_kwargs) as client:
        if args.cmd == "check":
            return await handle_check(client, out)
        return await handle_ask(client, args, out, err)


def main(
    argv: Optional[Sequence[str]] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
    out: Optional[TextIO] = None,
    err: Optional[TextIO] = None,
    **client_kwargs: Any,
) -> int:
    """CLI entrypoint.

    Parameters
    ----------
    argv:
        Argument vector; ``None`` uses ``sys.argv[1:]``.
    environ:
        Environment mapping used for configuration (defaults to
        ``os.environ``).
    out, err:
        Output streams (default stdout/stderr).
    client_kwargs:
        Forwarded to :class:`FastGPTClient` (``transport`` in tests).

    Returns
    -------
    int
        Process exit code.
    """
    out = out or sys.stdout
    err = err or sys.stderr
    args = build_parser().parse_args(list(sys.argv[1:] if argv is None else argv))
    if args.log_level:
        configure_logger(level=args.log_level)

    config = Configuration.from_env(environ)
    problem = validate_config(config)
    if problem is not None:
        _emit_error(err, _error_payload(problem))
        return EXIT_CONFIG
    return asyncio.run(_run(args, config, out, err, **client_kwargs))


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
