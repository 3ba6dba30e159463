"""Identifier generation for lessons, tools, and model versions."""

import uuid
from collections.abc import Callable

IdFactory = Callable[[], str]


def new_id() -> str:
    return uuid.uuid4().hex


def sequential_ids(prefix: str = "id") -> IdFactory:
    """Deterministic id factory: ``prefix-1``, ``prefix-2``, ..."""
    counter = 0

    def _next() -> str:
        nonlocal counter
        counter += 1
        return f"{prefix}-{counter}"

    return _next
