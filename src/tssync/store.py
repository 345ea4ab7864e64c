import logging
from typing import Iterator

from tssync.classes import Context, Entry, Key, Status
from tssync.errors import DuplicateIdentityError

logger = logging.getLogger(__name__)


class Catalog:
    """Ordered contexts and entries of one locale, indexed by identity key.

    Entries are looked up by their (context, source, disambiguation) key.
    With ``case_insensitive`` set, two keys that only differ by case are
    treated as a collision and rejected, unless the existing one has vanished.
    """

    def __init__(
        self,
        locale: str,
        *,
        source_language: str = "",
        case_insensitive: bool = False,
        version: int = 0,
    ):
        self.locale = locale
        self.source_language = source_language
        self.case_insensitive = case_insensitive
        self.version = version
        self._contexts: dict[str, Context] = {}
        self._index: dict[Key, Entry] = {}
        self._folded: dict[Key, Key] = {}

    def _fold(self, key: Key) -> Key:
        return tuple(part.casefold() for part in key)  # type: ignore[return-value]

    def _check_collision(self, key: Key, status: Status = Status.UNFINISHED) -> None:
        if status is Status.VANISHED:
            return
        existing = self.find_colliding(*key)
        if existing is not None and existing.status is not Status.VANISHED:
            raise DuplicateIdentityError(key, existing.key)

    def _unfold(self, key: Key) -> None:
        # A live case variant may have taken over the folded slot.
        folded = self._fold(key)
        if self._folded.get(folded) == key:
            del self._folded[folded]

    def _context(self, name: str) -> Context:
        context = self._contexts.get(name)
        if context is None:
            context = Context(name)
            self._contexts[name] = context
        return context

    def _register(self, entry: Entry) -> None:
        self._context(entry.context).entries.append(entry)
        self._index[entry.key] = entry
        if self.case_insensitive:
            folded = self._fold(entry.key)
            # Vanished entries never shadow a live case variant.
            if entry.status is not Status.VANISHED or folded not in self._folded:
                self._folded[folded] = entry.key

    def insert_or_get(self, context: str, source: str, disambiguation: str = "") -> Entry:
        if not context:
            raise ValueError("Context name must not be empty")
        if not source:
            raise ValueError("Source string must not be empty")
        key = (context, source, disambiguation or "")
        entry = self._index.get(key)
        if entry is not None:
            return entry
        self._check_collision(key)
        entry = Entry(context, source, disambiguation or "")
        self._register(entry)
        return entry

    def add(self, entry: Entry) -> Entry:
        if not entry.context:
            raise ValueError("Context name must not be empty")
        if not entry.source:
            raise ValueError("Source string must not be empty")
        if entry.key in self._index:
            raise DuplicateIdentityError(entry.key)
        self._check_collision(entry.key, entry.status)
        self._register(entry)
        return entry

    def find(self, context: str, source: str, disambiguation: str = "") -> Entry | None:
        return self._index.get((context, source, disambiguation or ""))

    def find_colliding(
        self, context: str, source: str, disambiguation: str = ""
    ) -> Entry | None:
        """Entry whose key differs from the given one only by case.

        Always ``None`` unless the catalog is case insensitive.
        """
        if not self.case_insensitive:
            return None
        key = (context, source, disambiguation or "")
        existing = self._folded.get(self._fold(key))
        if existing is None or existing == key:
            return None
        return self._index[existing]

    def all_entries(self, context: str | None = None) -> list[Entry]:
        if context is not None:
            contexts = [self._contexts[context]] if context in self._contexts else []
        else:
            contexts = list(self._contexts.values())
        return [
            entry
            for ctx in contexts
            for entry in ctx.entries
            if entry.status is not Status.VANISHED
        ]

    def vanished_entries(self) -> list[Entry]:
        return [entry for entry in self if entry.status is Status.VANISHED]

    def contexts(self) -> list[Context]:
        return list(self._contexts.values())

    def context_names(self) -> list[str]:
        return list(self._contexts)

    def discard(self, context: str, source: str, disambiguation: str = "") -> Entry:
        """Remove a single vanished entry."""
        key = (context, source, disambiguation or "")
        entry = self._index[key]
        if entry.status is not Status.VANISHED:
            raise ValueError(f'Entry "{source}" in context "{context}" has not vanished')
        self._contexts[context].entries.remove(entry)
        del self._index[key]
        self._unfold(key)
        return entry

    def prune(self) -> list[Entry]:
        """Drop vanished entries for good and return them."""
        removed = []
        for name, context in list(self._contexts.items()):
            kept = []
            for entry in context.entries:
                if entry.status is Status.VANISHED:
                    removed.append(entry)
                    del self._index[entry.key]
                    self._unfold(entry.key)
                else:
                    kept.append(entry)
            context.entries = kept
            if not kept:
                del self._contexts[name]
        if removed:
            logger.info(f"Pruned {len(removed)} vanished entries from {self.locale}")
        return removed

    def empty_copy(self) -> "Catalog":
        return Catalog(
            self.locale,
            source_language=self.source_language,
            case_insensitive=self.case_insensitive,
            version=self.version,
        )

    def copy(self) -> "Catalog":
        catalog = self.empty_copy()
        for entry in self:
            catalog._register(entry.copy())
        return catalog

    def __iter__(self) -> Iterator[Entry]:
        for context in self._contexts.values():
            yield from context.entries

    def __len__(self) -> int:
        return len(self._index)

    def __contains__(self, key: object) -> bool:
        return key in self._index

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Catalog):
            return NotImplemented
        return (
            self.locale == other.locale
            and self.source_language == other.source_language
            and self.contexts() == other.contexts()
        )

    def __repr__(self) -> str:
        return f"Catalog(locale={self.locale!r}, version={self.version}, entries={len(self)})"
