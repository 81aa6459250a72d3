# src/watchrun/runtime/cancellation.py

"""
Cooperative cancellation token shared by the watch controller and one run.
"""

import itertools

import structlog
from attrs import define, field

from watchrun.telemetry import StructLogger

log: StructLogger = structlog.get_logger("runtime.cancellation")

_token_ids = itertools.count(1)


@define(eq=False, slots=True)
class CancellationToken:
    """
    Per-run interruption flag.

    The controller sets `interrupted`; the run coordinator polls it between
    units of work. A token belongs to exactly one run and is never reused, so
    interrupting a token whose run has already settled changes nothing.
    """

    interrupted: bool = field(default=False)
    token_id: int = field(factory=lambda: next(_token_ids), init=False)

    def interrupt(self) -> None:
        """Requests that the owning run stop scheduling further work (idempotent)."""
        if self.interrupted:
            return
        self.interrupted = True
        log.debug("Cancellation requested", token_id=self.token_id)


# 🔼⚙️
