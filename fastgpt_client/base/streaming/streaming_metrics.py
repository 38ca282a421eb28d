"""Streaming metrics data structures.

Isolated within the streaming package to keep orchestration code small.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional


@dataclass
class ExchangeMetrics:
    """Collected metrics for a single streamed exchange.

    Fields:
      emitted: chunk events emitted (across attempts)
      parse_failures: malformed SSE frames skipped by the decoder
      attempts: transport attempts made by the retry executor
      time_to_first_chunk_ms: latency from start to the first chunk
      total_duration_ms: latency from start to the terminal event
    """

    emitted: int = 0
    parse_failures: int = 0
    attempts: int = 0
    time_to_first_chunk_ms: Optional[float] = None
    total_duration_ms: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


__all__ = ["ExchangeMetrics"]
