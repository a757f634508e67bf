"""Run-scoped correlation IDs.

Every scheduled run (and every publish it triggers) executes inside a
:class:`CorrelationContext`, so log lines and outgoing webhook requests of
one run share an ID. The ID lives in a ContextVar and therefore follows the
run into the tasks it spawns.
"""

import contextvars
import uuid
from typing import Any

_current_run: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "health_run_correlation_id", default=None
)


def new_run_id() -> str:
    return f"run-{uuid.uuid4().hex[:12]}"


def get_correlation_id() -> str | None:
    """ID of the enclosing run, or None outside one."""
    return _current_run.get()


class CorrelationContext:
    """Makes ``correlation_id`` current until the block exits.

    Contexts nest: the outer ID is kept as ``parent_id`` and comes back
    into effect when the inner block ends.
    """

    def __init__(self, correlation_id: str | None = None):
        self.correlation_id = correlation_id or new_run_id()
        self.parent_id: str | None = None
        self._token: contextvars.Token[str | None] | None = None

    @property
    def active(self) -> bool:
        return self._token is not None

    def __enter__(self) -> "CorrelationContext":
        if self.active:
            raise RuntimeError(f"Correlation context {self.correlation_id} is already active")
        self.parent_id = _current_run.get()
        self._token = _current_run.set(self.correlation_id)
        return self

    def __exit__(self, *exc_info: Any) -> None:
        token, self._token = self._token, None
        if token is not None:
            _current_run.reset(token)


class CorrelationIDProcessor:
    """structlog processor stamping the current run's ID on each event.

    An ID already present in the event (passed explicitly to the logger)
    wins over the context one.
    """

    def __init__(self, key: str = "correlation_id"):
        self.key = key

    def __call__(
        self, logger: Any, method_name: str, event_dict: dict[str, Any]
    ) -> dict[str, Any]:
        run_id = _current_run.get()
        if run_id is not None and self.key not in event_dict:
            event_dict[self.key] = run_id
        return event_dict
