"""Reconcile a fresh source scan with an existing catalog."""

from dataclasses import dataclass
import hashlib
import json
import logging
from typing import Iterable

from tssync import status
from tssync.classes import Candidate, Entry, Key, Status
from tssync.diagnostics import Diagnostics, EntryVanished, FuzzyMatchApplied
from tssync.errors import ConfigurationError
from tssync.similarity import Similarity, sequence_ratio
from tssync.store import Catalog

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MergePolicy:
    """Fuzzy recovery settings.

    Without a ``fuzzy_threshold`` no fuzzy recovery is attempted.
    """

    fuzzy_threshold: float | None = None
    similarity: Similarity = sequence_ratio

    def __post_init__(self):
        threshold = self.fuzzy_threshold
        if threshold is None:
            return
        if isinstance(threshold, bool) or not isinstance(threshold, (int, float)):
            raise ConfigurationError(f"Fuzzy threshold must be a number, got {threshold!r}")
        if not 0 <= threshold <= 1:
            raise ConfigurationError(f"Fuzzy threshold {threshold} must be between 0 and 1")
        if not callable(self.similarity):
            raise ConfigurationError("Similarity strategy must be callable")


@dataclass
class MergeResult:
    catalog: Catalog
    scan: str
    kept: int = 0
    restored: int = 0
    new: int = 0
    fuzzy: int = 0
    obsoleted: int = 0
    vanished: int = 0

    def summary(self) -> str:
        return (
            f"{self.kept} kept, {self.restored} restored, {self.new} new, "
            f"{self.fuzzy} fuzzy, {self.obsoleted} obsolete, {self.vanished} vanished"
        )


def scan_digest(candidates: Iterable[Candidate]) -> str:
    """Fingerprint of a scan, so re-running the same scan can be recognised."""
    digest = hashlib.sha256()
    for candidate in candidates:
        row = [
            candidate.context,
            candidate.source,
            candidate.disambiguation,
            [[location.filename, location.line] for location in candidate.locations],
            candidate.extracomment,
            candidate.numerus,
        ]
        digest.update(json.dumps(row, ensure_ascii=False).encode("utf-8"))
        digest.update(b"\n")
    return digest.hexdigest()


def _group(candidates: list[Candidate]) -> dict[Key, Candidate]:
    # The same string may be extracted several times; its locations are merged.
    grouped: dict[Key, Candidate] = {}
    for candidate in candidates:
        if not candidate.context or not candidate.source:
            raise ValueError(f"Candidate without context or source: {candidate!r}")
        previous = grouped.get(candidate.key)
        if previous is None:
            grouped[candidate.key] = candidate
            continue
        grouped[candidate.key] = Candidate(
            candidate.context,
            candidate.source,
            candidate.disambiguation,
            previous.locations + candidate.locations,
            previous.extracomment or candidate.extracomment,
            previous.numerus or candidate.numerus,
        )
    return grouped


def _apply_scan(entry: Entry, candidate: Candidate) -> None:
    entry.locations = list(dict.fromkeys(candidate.locations))
    entry.extracomment = candidate.extracomment
    entry.numerus = candidate.numerus


def _add_locations(entry: Entry, candidate: Candidate) -> None:
    entry.locations = list(dict.fromkeys(entry.locations + list(candidate.locations)))


def _live(catalog: Catalog, entry: Entry | None) -> Entry | None:
    if entry is None or entry.status is not Status.VANISHED:
        return entry
    logger.info(f'Vanished entry "{entry.source}" extracted again, starting over')
    catalog.discard(*entry.key)
    return None


def _find_donor(
    candidate: Candidate, donors: list[Entry], policy: MergePolicy
) -> tuple[Entry | None, float]:
    best: Entry | None = None
    best_score = -1.0
    for donor in donors:
        if donor.context != candidate.context:
            continue
        if donor.disambiguation and donor.disambiguation != candidate.disambiguation:
            continue
        score = policy.similarity(candidate.source, donor.source)
        if score >= policy.fuzzy_threshold and score > best_score:
            best, best_score = donor, score
    return best, best_score


def merge(
    old: Catalog,
    candidates: Iterable[Candidate],
    policy: MergePolicy | None = None,
    diagnostics: Diagnostics | None = None,
) -> MergeResult:
    """Return a new catalog reflecting ``candidates``; ``old`` is left untouched."""
    policy = policy or MergePolicy()
    diagnostics = diagnostics or Diagnostics()
    candidates = list(candidates)
    scan = scan_digest(candidates)
    grouped = _group(candidates)

    catalog = old.copy()
    catalog.version = old.version + 1
    result = MergeResult(catalog, scan)
    logger.debug(f"Merging {len(grouped)} candidates into {old!r}")

    claimed: set[Key] = set()
    unmatched: list[Candidate] = []
    for key, candidate in grouped.items():
        entry = _live(catalog, catalog.find(*key))
        if entry is None:
            # Case insensitive locales treat a case variant as the same string.
            entry = _live(catalog, catalog.find_colliding(*key))
        if entry is not None and entry.key in claimed:
            _add_locations(entry, candidate)
            continue
        if entry is None:
            unmatched.append(candidate)
            continue
        if entry.status is Status.OBSOLETE:
            status.restore(entry)
            result.restored += 1
        else:
            result.kept += 1
        _apply_scan(entry, candidate)
        claimed.add(entry.key)

    donors = []
    if policy.fuzzy_threshold is not None:
        donors = [
            entry
            for entry in catalog
            if entry.key not in claimed
            and entry.status is not Status.VANISHED
            and entry.has_translation()
        ]

    for candidate in unmatched:
        entry = catalog.find_colliding(*candidate.key)
        if entry is not None and entry.key in claimed:
            _add_locations(entry, candidate)
            continue
        entry = catalog.insert_or_get(*candidate.key)
        _apply_scan(entry, candidate)
        claimed.add(entry.key)
        donor, score = _find_donor(candidate, donors, policy) if donors else (None, 0.0)
        if donor is None:
            result.new += 1
            continue
        donors.remove(donor)
        entry.translation = donor.copy().translation
        entry.translator_comment = donor.translator_comment
        entry.previous_source = donor.source
        result.fuzzy += 1
        diagnostics.emit(
            FuzzyMatchApplied(catalog.locale, entry.context, entry.source, donor.source, score)
        )

    for entry in catalog:
        if entry.key in claimed or entry.status is Status.VANISHED:
            continue
        if entry.status is Status.OBSOLETE:
            if entry.obsoleted_by == scan:
                continue
            status.vanish(entry)
        elif entry.has_translation():
            status.obsolete(entry, scan)
            result.obsoleted += 1
            continue
        else:
            status.vanish(entry)
        result.vanished += 1
        diagnostics.emit(
            EntryVanished(catalog.locale, entry.context, entry.source, entry.disambiguation)
        )

    logger.info(f"Merged {catalog.locale} to version {catalog.version}: {result.summary()}")
    return result
