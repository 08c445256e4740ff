"""Visit correlation id for log records.

The orchestrator binds the visit being scored for the duration of one
invocation. ``VisitIdFilter`` sits on the root handlers installed by
``load_config`` and copies the bound id onto every record, so the shared
format renders ``%(visit_id)s`` for all loggers, including the ones in
storage and scoring that never see the visit directly.

Usage:
    with visit_context("visit-42"):
        logger.info("Scoring")  # "... [visit-42] INFO: Scoring"
"""

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

NO_VISIT = "-"

_visit_id: ContextVar[str] = ContextVar("visit_id", default=NO_VISIT)


def get_visit_id() -> str:
    return _visit_id.get()


@contextmanager
def visit_context(visit_id: str) -> Iterator[None]:
    """Bind visit_id to log records emitted inside the block."""
    token = _visit_id.set(visit_id)
    try:
        yield
    finally:
        _visit_id.reset(token)


class VisitIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.visit_id = _visit_id.get()  # type: ignore[attr-defined]
        return True


def install_visit_id_filter(logger: Optional[logging.Logger] = None) -> None:
    """Attach a VisitIdFilter to each handler of ``logger`` (root by default).

    Handler-level so records propagated from child loggers are stamped too.
    Safe to call repeatedly.
    """
    target = logger or logging.getLogger()
    for handler in target.handlers:
        if not any(isinstance(f, VisitIdFilter) for f in handler.filters):
            handler.addFilter(VisitIdFilter())
