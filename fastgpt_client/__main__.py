"""Allows running the CLI via ``python -m fastgpt_client``."""

from __future__ import annotations

from .cli import main


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
