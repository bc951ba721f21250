"""Progress callbacks.

Operations push progress events to an optional listener and never block
on or fail because of it.
"""

from __future__ import annotations

import logging
from typing import Callable, TypeVar

logger = logging.getLogger(__name__)

E = TypeVar("E")


def emit(callback: Callable[[E], None] | None, event: E) -> None:
    """Deliver an event to a listener, logging and dropping listener errors.

    Args:
        callback: Listener, or None when nobody is listening.
        event: Event to deliver.
    """
    if callback is None:
        return
    try:
        callback(event)
    except Exception:
        logger.exception("Progress listener failed on %r", event)
