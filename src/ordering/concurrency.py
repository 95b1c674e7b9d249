"""Optimistic concurrency helpers.

Every aggregate carries a version. Writes that guard an invariant across
concurrent requests (stock covering a checkout, an order being unpaid) go
through ``conditional_update``: a single UPDATE keyed on the aggregate id,
the version that was loaded and the guard itself. On SQL databases that
statement is evaluated against the committed row under its row lock, so of
two racing writers exactly one matches. The loser gets ``ExpectedVersionError``
and its unit of work is rolled back; re-running the operation reloads fresh
state, so the guard is evaluated again against what the winner committed.

The in-memory provider commits a unit of work by replacing its whole store
with the session snapshot, so on that provider commands are applied one at
a time.
"""

import threading
from collections.abc import Callable
from contextlib import nullcontext
from typing import TypeVar

import structlog
from protean.exceptions import ExpectedVersionError
from protean.utils.globals import current_domain

logger = structlog.get_logger(__name__)

MAX_ATTEMPTS = 3

T = TypeVar("T")

_memory_writes = threading.RLock()


def conditional_update(dao, aggregate, conditions: dict | None = None, values: dict | None = None) -> None:
    """Write ``values`` to the stored row of ``aggregate`` only if it still
    holds the loaded version and matches ``conditions``.

    With no ``values`` the row is rewritten with its own version, which only
    claims it for the current unit of work. Raises ``ExpectedVersionError``
    when no row matched.
    """
    values = values or {"_version": aggregate._version}
    updated = dao.query.filter(
        id=aggregate.id, _version=aggregate._version, **(conditions or {})
    ).update_all(**values)
    if updated != 1:
        raise ExpectedVersionError(
            f"Conditional update missed: {type(aggregate).__name__}({aggregate.id}) "
            f"no longer at version {aggregate._version}"
        )


def retry_on_conflict(operation: Callable[[], T], attempts: int = MAX_ATTEMPTS) -> T:
    """Run ``operation``, re-running it when a concurrent write wins the race."""
    attempt = 1
    while True:
        try:
            return operation()
        except ExpectedVersionError as exc:
            if attempt >= attempts:
                logger.error("concurrent_update_retries_exhausted", attempts=attempt, error=str(exc))
                raise
            logger.info("concurrent_update_retrying", attempt=attempt, error=str(exc))
            attempt += 1


def serialized_writes():
    """Serialize writes on providers without transaction isolation."""
    provider = current_domain.providers["default"]
    if getattr(provider, "__database__", None) == "memory":
        return _memory_writes
    return nullcontext()


def process(command):
    """Process a command synchronously, retrying on version conflicts."""

    def run():
        with serialized_writes():
            return current_domain.process(command, asynchronous=False)

    return retry_on_conflict(run)
