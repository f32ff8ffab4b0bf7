"""Single-flight guard for non-idempotent submissions."""

import logging
import threading
from contextlib import contextmanager

from core.errors import SubmissionInProgressError

logger = logging.getLogger(__name__)


class SubmissionGuard:
    """
    Rejects a second submit while one is in flight.

    Creating an invoice, receipt or credit note is not idempotent, so a
    double click must not send two requests. The guard never waits: the
    second caller gets SubmissionInProgressError immediately and the first
    caller's outcome is the only one.

    Usage:
        with self._guard.submitting():
            created = self.client.post("/receipts", payload)
    """

    def __init__(self, name: str):
        self.name = name
        self._lock = threading.Lock()

    @property
    def in_flight(self) -> bool:
        return self._lock.locked()

    @contextmanager
    def submitting(self):
        if not self._lock.acquire(blocking=False):
            logger.warning(f"Rejected duplicate {self.name} submission while one is in flight")
            raise SubmissionInProgressError(f"A {self.name} submission is already in progress")
        try:
            yield
        finally:
            self._lock.release()
