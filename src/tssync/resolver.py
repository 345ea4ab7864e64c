"""Runtime lookup of translated strings."""

import logging

from tssync.classes import Entry, Key, Status
from tssync.diagnostics import Diagnostics, MissingTranslation
from tssync.plurals import SINGLE, PluralRules
from tssync.snapshot import ActiveCatalog
from tssync.store import Catalog

logger = logging.getLogger(__name__)

CompiledTable = dict[Key, str | tuple[str, ...]]


def compile_table(catalog: Catalog, *, include_obsolete: bool = True) -> CompiledTable:
    """Flatten a catalog into the table an application loads at runtime.

    Plural translations become a tuple indexed by plural form; a missing form
    is stored as an empty string so indexes stay aligned.
    """
    table: CompiledTable = {}
    for entry in catalog.all_entries():
        if not entry.has_translation():
            continue
        if entry.status is Status.OBSOLETE and not include_obsolete:
            continue
        if isinstance(entry.translation, dict):
            forms = entry.forms()
            table[entry.key] = tuple(forms.get(index, "") for index in range(max(forms) + 1))
        else:
            table[entry.key] = entry.translation
    logger.debug(f"Compiled {len(table)} translations for {catalog.locale}")
    return table


def _pick_form(forms: dict[int, str], index: int) -> str:
    # Degrade to the nearest lower form that has a translation.
    for candidate in range(index, -1, -1):
        text = forms.get(candidate)
        if text:
            return text
    return ""


def _find_live(catalog: Catalog, context: str, source: str, disambiguation: str) -> Entry | None:
    entry = catalog.find(context, source, disambiguation)
    if entry is None or entry.status is Status.VANISHED:
        entry = catalog.find_colliding(context, source, disambiguation)
    if entry is None or entry.status is Status.VANISHED:
        return None
    return entry


class Resolver:
    """Resolve translation requests against the active catalog snapshot.

    ``source`` may be a :class:`Catalog` or an :class:`ActiveCatalog`; with the
    latter each request reads whatever snapshot is current at call time.
    Resolving never raises for missing data, it falls back to the source text.
    """

    def __init__(
        self,
        source: Catalog | ActiveCatalog,
        plurals: PluralRules = SINGLE,
        diagnostics: Diagnostics | None = None,
    ):
        self._source = source
        self.plurals = plurals
        self.diagnostics = diagnostics or Diagnostics()

    @property
    def catalog(self) -> Catalog:
        if isinstance(self._source, ActiveCatalog):
            return self._source.current
        return self._source

    def lookup(self, context: str, source: str, disambiguation: str | None = None) -> Entry | None:
        return _find_live(self.catalog, context, source, disambiguation or "")

    def resolve(
        self,
        context: str,
        source: str,
        disambiguation: str | None = None,
        count: int | None = None,
    ) -> str:
        catalog = self.catalog
        entry = _find_live(catalog, context, source, disambiguation or "")
        text = ""
        if entry is not None:
            forms = entry.forms()
            index = self.plurals.index(count) if count is not None else 0
            text = _pick_form(forms, index)
        if not text:
            self.diagnostics.emit(
                MissingTranslation(catalog.locale, context, source, disambiguation or "", count)
            )
            text = source
        if count is not None:
            text = text.replace("%n", str(count))
        return text

    __call__ = resolve
