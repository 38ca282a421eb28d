"""FastGPT adapter package."""

from .client import FastGPTClient
from .stream_helpers import describe_error, parse_completion

__all__ = ["FastGPTClient", "describe_error", "parse_completion"]
