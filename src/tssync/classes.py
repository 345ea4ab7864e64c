from dataclasses import dataclass, field
from enum import Enum
import threading


class Status(str, Enum):
    UNFINISHED = "unfinished"
    FINISHED = "finished"
    OBSOLETE = "obsolete"
    VANISHED = "vanished"

    @property
    def active(self) -> bool:
        return self in (Status.UNFINISHED, Status.FINISHED)


@dataclass(frozen=True)
class Location:
    filename: str
    line: int | None = None


Key = tuple[str, str, str]
Translation = str | dict[int, str]
_IDENTITY = ("context", "source", "disambiguation")


@dataclass
class Entry:
    context: str
    source: str
    disambiguation: str = ""
    translator_comment: str = ""
    extracomment: str = ""
    translation: Translation = ""
    status: Status = Status.UNFINISHED
    locations: list[Location] = field(default_factory=list)
    numerus: bool = False
    previous_source: str = ""
    prior_status: Status | None = None
    obsoleted_by: str = ""
    lock: threading.RLock = field(
        default_factory=threading.RLock, init=False, repr=False, compare=False
    )

    def __setattr__(self, name: str, value) -> None:
        if name in _IDENTITY and name in self.__dict__:
            raise AttributeError(f"Entry {name} is part of its identity and cannot change")
        super().__setattr__(name, value)

    @property
    def key(self) -> Key:
        return (self.context, self.source, self.disambiguation)

    def forms(self) -> dict[int, str]:
        """Return the translation as a plural-index mapping."""
        if isinstance(self.translation, dict):
            return dict(self.translation) or {0: ""}
        return {0: self.translation} if self.translation else {0: ""}

    def has_translation(self) -> bool:
        if isinstance(self.translation, dict):
            return any(self.translation.values())
        return bool(self.translation)

    def copy(self) -> "Entry":
        with self.lock:
            return self._copy()

    def _copy(self) -> "Entry":
        translation = self.translation
        if isinstance(translation, dict):
            translation = dict(translation)
        return Entry(
            context=self.context,
            source=self.source,
            disambiguation=self.disambiguation,
            translator_comment=self.translator_comment,
            extracomment=self.extracomment,
            translation=translation,
            status=self.status,
            locations=list(self.locations),
            numerus=self.numerus,
            previous_source=self.previous_source,
            prior_status=self.prior_status,
            obsoleted_by=self.obsoleted_by,
        )


@dataclass
class Context:
    name: str
    entries: list[Entry] = field(default_factory=list)


@dataclass(frozen=True)
class Candidate:
    context: str
    source: str
    disambiguation: str = ""
    locations: tuple[Location, ...] = ()
    extracomment: str = ""
    numerus: bool = False

    @property
    def key(self) -> Key:
        return (self.context, self.source, self.disambiguation)


@dataclass
class Report:
    locale: str
    context: str
    context_warning: str = ""
    source: str = ""
    entry_warning: str = ""
