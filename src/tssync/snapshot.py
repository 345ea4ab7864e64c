"""Holders for the catalog snapshot an application currently reads from."""

import logging
import threading
from typing import Iterable

from tssync.classes import Candidate
from tssync.diagnostics import Diagnostics
from tssync.merge import MergePolicy, MergeResult, merge
from tssync.store import Catalog

logger = logging.getLogger(__name__)


class ActiveCatalog:
    """Reference to the current snapshot of one locale's catalog.

    Readers take ``current`` without locking; a merge builds a new snapshot
    and replaces the reference in one assignment, so readers see either the
    old or the new catalog, never a half-merged one. Writers are serialized.
    """

    def __init__(self, catalog: Catalog):
        self._current = catalog
        self._write_lock = threading.Lock()

    @property
    def current(self) -> Catalog:
        return self._current

    @property
    def locale(self) -> str:
        return self._current.locale

    def swap(self, catalog: Catalog) -> Catalog:
        """Install ``catalog`` and return the replaced snapshot."""
        if catalog.locale != self._current.locale:
            raise ValueError(
                f"Cannot replace {self._current.locale} catalog with one for {catalog.locale}"
            )
        with self._write_lock:
            previous, self._current = self._current, catalog
        logger.debug(f"Activated {catalog!r}")
        return previous

    def apply_merge(
        self,
        candidates: Iterable[Candidate],
        policy: MergePolicy | None = None,
        diagnostics: Diagnostics | None = None,
    ) -> MergeResult:
        with self._write_lock:
            result = merge(self._current, candidates, policy, diagnostics)
            self._current = result.catalog
        logger.debug(f"Activated {result.catalog!r}")
        return result


class CatalogRegistry:
    """Keeps at most one active catalog per locale."""

    def __init__(self):
        self._active: dict[str, ActiveCatalog] = {}
        self._lock = threading.Lock()

    def activate(self, catalog: Catalog) -> ActiveCatalog:
        with self._lock:
            holder = self._active.get(catalog.locale)
            if holder is None:
                holder = self._active[catalog.locale] = ActiveCatalog(catalog)
                logger.info(f"Registered catalog for {catalog.locale}")
                return holder
        holder.swap(catalog)
        return holder

    def get(self, locale: str) -> ActiveCatalog | None:
        return self._active.get(locale)

    def remove(self, locale: str) -> ActiveCatalog | None:
        with self._lock:
            return self._active.pop(locale, None)

    def locales(self) -> list[str]:
        return sorted(self._active)

    def __contains__(self, locale: object) -> bool:
        return locale in self._active
