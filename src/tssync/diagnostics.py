"""Structured diagnostic events for logging and build-warning tooling."""

from dataclasses import dataclass
import logging
from typing import Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MissingTranslation:
    locale: str
    context: str
    source: str
    disambiguation: str = ""
    count: int | None = None

    level = logging.DEBUG

    def message(self) -> str:
        return f'[{self.locale}] No translation for "{self.source}" in context "{self.context}"'


@dataclass(frozen=True)
class FuzzyMatchApplied:
    locale: str
    context: str
    source: str
    previous_source: str
    score: float

    level = logging.INFO

    def message(self) -> str:
        return (
            f'[{self.locale}] Reused translation of "{self.previous_source}" for '
            f'"{self.source}" in context "{self.context}" (similarity {self.score:.2f})'
        )


@dataclass(frozen=True)
class EntryVanished:
    locale: str
    context: str
    source: str
    disambiguation: str = ""

    level = logging.WARNING

    def message(self) -> str:
        return f'[{self.locale}] Entry "{self.source}" in context "{self.context}" vanished'


Event = MissingTranslation | FuzzyMatchApplied | EntryVanished
Sink = Callable[[Event], None]


class Diagnostics:
    """Fan out events to the registered sinks and the module logger.

    A sink that raises is logged and skipped; the caller never sees it.
    """

    def __init__(self, *sinks: Sink):
        self._sinks: list[Sink] = list(sinks)

    def subscribe(self, sink: Sink) -> None:
        self._sinks.append(sink)

    def unsubscribe(self, sink: Sink) -> None:
        self._sinks.remove(sink)

    def emit(self, event: Event) -> None:
        logger.log(event.level, event.message())
        for sink in list(self._sinks):
            try:
                sink(event)
            except Exception:
                logger.exception(f"Diagnostic sink {sink!r} failed on {type(event).__name__}")


class Collector:
    """Sink that keeps every event, mostly useful for reports and tests."""

    def __init__(self):
        self.events: list[Event] = []

    def __call__(self, event: Event) -> None:
        self.events.append(event)

    def of_type(self, kind: type) -> list[Event]:
        return [event for event in self.events if isinstance(event, kind)]
