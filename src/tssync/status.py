"""Entry status transitions.

Translator actions (``finish``, ``reopen``, ``set_translation``) and the
merge engine (``obsolete``, ``restore``, ``vanish``) are the only writers of
``Entry.status``. Every transition holds the entry's own lock, so edits to
one entry are serialized while different entries stay independent.
"""

import logging

from tssync.classes import Entry, Status, Translation
from tssync.errors import InvalidTransitionError

logger = logging.getLogger(__name__)


def _require(entry: Entry, target: Status, *allowed: Status) -> None:
    if entry.status not in allowed:
        raise InvalidTransitionError(entry.key, entry.status, target)


def finish(entry: Entry) -> None:
    """Mark a reviewed translation as finished."""
    with entry.lock:
        if entry.status is Status.FINISHED:
            return
        _require(entry, Status.FINISHED, Status.UNFINISHED)
        if not entry.has_translation():
            raise InvalidTransitionError(entry.key, entry.status, Status.FINISHED)
        entry.status = Status.FINISHED
        entry.previous_source = ""


def reopen(entry: Entry) -> None:
    with entry.lock:
        if entry.status is Status.UNFINISHED:
            return
        _require(entry, Status.UNFINISHED, Status.FINISHED)
        entry.status = Status.UNFINISHED


def set_translation(entry: Entry, translation: Translation) -> None:
    """Replace the translation; a finished entry needs review again."""
    with entry.lock:
        if entry.status is Status.VANISHED:
            raise InvalidTransitionError(entry.key, entry.status, entry.status)
        if isinstance(translation, dict):
            translation = dict(translation)
        if translation == entry.translation:
            return
        entry.translation = translation
        if entry.status is Status.FINISHED:
            logger.debug(f'Translation of "{entry.source}" changed, needs review')
            entry.status = Status.UNFINISHED
        elif entry.status is Status.OBSOLETE and entry.prior_status is Status.FINISHED:
            # Restored later as unfinished, the edit was never reviewed.
            entry.prior_status = Status.UNFINISHED


def obsolete(entry: Entry, scan: str) -> None:
    with entry.lock:
        _require(entry, Status.OBSOLETE, Status.UNFINISHED, Status.FINISHED)
        entry.prior_status = entry.status
        entry.status = Status.OBSOLETE
        entry.obsoleted_by = scan


def restore(entry: Entry) -> None:
    """Bring an obsolete entry back to the status it had before."""
    with entry.lock:
        _require(entry, Status.UNFINISHED, Status.OBSOLETE)
        entry.status = entry.prior_status or Status.UNFINISHED
        entry.prior_status = None
        entry.obsoleted_by = ""


def vanish(entry: Entry) -> None:
    # Active entries may only skip the obsolete stage when there is nothing to keep.
    with entry.lock:
        if not (entry.status.active and not entry.has_translation()):
            _require(entry, Status.VANISHED, Status.OBSOLETE)
        entry.status = Status.VANISHED
        entry.prior_status = None
