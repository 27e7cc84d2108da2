"""Sample source contract and a thread-backed iterable implementation."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Optional, Protocol, Union

from .config import (
    SOURCE_DEFAULT_MAX_CACHE_AGE_MS,
    SOURCE_DEFAULT_TIMEOUT_MS,
    SOURCE_HIGH_ACCURACY,
)
from .errors import SampleSourceError
from .models import Sample

SampleCallback = Callable[[Sample], None]
ErrorCallback = Callable[[SampleSourceError], None]
SourceItem = Union[Sample, SampleSourceError]


class Accuracy(str, Enum):
    HIGH = "high"
    LOW = "low"


@dataclass(frozen=True, slots=True)
class SourceOptions:
    """Acquisition parameters handed to the sample source on activation."""

    desired_accuracy: Accuracy = Accuracy.HIGH if SOURCE_HIGH_ACCURACY else Accuracy.LOW
    timeout_ms: int = SOURCE_DEFAULT_TIMEOUT_MS
    max_cache_age_ms: int = SOURCE_DEFAULT_MAX_CACHE_AGE_MS


class SampleSource(Protocol):
    """External collaborator delivering samples or errors while active."""

    def activate(
        self,
        options: SourceOptions,
        on_sample: SampleCallback,
        on_error: ErrorCallback,
    ) -> None: ...

    def deactivate(self) -> None: ...


class IterableSampleSource:
    """Deliver items from an iterable on a daemon thread until deactivated.

    Items may be :class:`Sample` instances or :class:`SampleSourceError`
    instances; errors are routed to ``on_error`` and delivery continues.
    """

    def __init__(self, items: Iterable[SourceItem], pace_seconds: float = 0.0) -> None:
        self._items = items
        self._pace = max(0.0, pace_seconds)
        self._stop = threading.Event()
        self._finished = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.options: Optional[SourceOptions] = None
        self.delivered = 0
        self._log = logging.getLogger(self.__class__.__name__)

    @property
    def active(self) -> bool:
        if self._thread is None or self._stop.is_set():
            return False
        return not self._finished.is_set()

    def activate(
        self,
        options: SourceOptions,
        on_sample: SampleCallback,
        on_error: ErrorCallback,
    ) -> None:
        if self.active:
            raise RuntimeError("Sample source is already active")
        self.options = options
        self._stop.clear()
        self._finished.clear()
        self._thread = threading.Thread(
            target=self._deliver,
            args=(on_sample, on_error),
            name="route-tracker-source",
            daemon=True,
        )
        self._log.debug(
            "Activating source (accuracy=%s timeout=%sms max_age=%sms)",
            options.desired_accuracy.value,
            options.timeout_ms,
            options.max_cache_age_ms,
        )
        self._thread.start()

    def deactivate(self) -> None:
        self._stop.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=1.0)
        self._thread = None

    def wait_until_drained(self, timeout: float | None = None) -> bool:
        """Block until every item has been delivered (or delivery stopped)."""

        return self._finished.wait(timeout)

    def _deliver(self, on_sample: SampleCallback, on_error: ErrorCallback) -> None:
        try:
            for item in self._items:
                if self._stop.is_set():
                    break
                if isinstance(item, SampleSourceError):
                    on_error(item)
                else:
                    on_sample(item)
                    self.delivered += 1
                if self._pace and self._stop.wait(self._pace):
                    break
        except Exception as exc:
            self._log.error("Sample delivery aborted: %s", exc, exc_info=True)
            raise
        finally:
            self._finished.set()


__all__ = [
    "Accuracy",
    "IterableSampleSource",
    "SampleSource",
    "SourceItem",
    "SourceOptions",
]
