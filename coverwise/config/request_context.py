"""Per-request correlation id shared by logs, Gemini calls and readouts."""
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)


def get_correlation_id() -> Optional[str]:
    """Current correlation id, or None outside a request."""
    return correlation_id_var.get()


@contextmanager
def correlation_scope(correlation_id: str) -> Iterator[str]:
    """
    Bind ``correlation_id`` for the enclosed block.

    Background tasks created inside the block keep the id, so a readout
    scheduled during a request is stored under that request's id.
    """
    token = correlation_id_var.set(correlation_id)
    try:
        yield correlation_id
    finally:
        correlation_id_var.reset(token)
