"""Conversion between catalogs and plain records.

Catalog file readers and writers live outside this package; they hand over
and receive documents shaped like::

    locale: fr_FR
    sourcelanguage: en
    contexts:
      - name: QObject
        messages:
          - source: Error
            translation: Erreur
            status: finished
            locations:
              - {filename: ../main.cpp, line: 85}

Plural translations are lists of forms, in plural category order.
"""

import logging
from typing import Any, Iterable, Mapping, Sequence

from tssync.classes import Candidate, Entry, Location, Status, Translation
from tssync.store import Catalog

logger = logging.getLogger(__name__)


def _location(raw: Any) -> Location:
    if isinstance(raw, Location):
        return raw
    if isinstance(raw, Mapping):
        line = raw.get("line")
        return Location(str(raw["filename"]), int(line) if line is not None else None)
    if isinstance(raw, Sequence) and not isinstance(raw, str):
        filename, line = (list(raw) + [None])[:2]
        return Location(str(filename), int(line) if line is not None else None)
    return Location(str(raw))


def _locations(raw: Any) -> list[Location]:
    return list(dict.fromkeys(_location(item) for item in raw or ()))


def _translation(raw: Any) -> Translation:
    if raw is None:
        return ""
    if isinstance(raw, Mapping):
        return {int(index): str(text or "") for index, text in raw.items()}
    if isinstance(raw, Sequence) and not isinstance(raw, str):
        return {index: str(text or "") for index, text in enumerate(raw)}
    return str(raw)


def _status(raw: Any, scope: str) -> Status | None:
    if raw is None or raw == "":
        return None
    try:
        return Status(str(raw).lower())
    except ValueError:
        raise ValueError(f"{scope}: unknown status {raw!r}") from None


def entry_from_record(context: str, record: Mapping[str, Any]) -> Entry:
    source = record.get("source")
    if not source:
        raise ValueError(f'Message without source in context "{context}"')
    scope = f'"{source}" in context "{context}"'
    return Entry(
        context=context,
        source=str(source),
        disambiguation=str(record.get("disambiguation") or record.get("comment") or ""),
        translator_comment=str(record.get("translatorcomment") or ""),
        extracomment=str(record.get("extracomment") or ""),
        translation=_translation(record.get("translation")),
        status=_status(record.get("status"), scope) or Status.UNFINISHED,
        locations=_locations(record.get("locations")),
        numerus=bool(record.get("numerus", False)),
        previous_source=str(record.get("oldsource") or ""),
        prior_status=_status(record.get("prior_status"), scope),
        obsoleted_by=str(record.get("obsoleted_by") or ""),
    )


def catalog_from_records(
    records: Mapping[str, Any] | Iterable[Mapping[str, Any]],
    locale: str | None = None,
    *,
    case_insensitive: bool = False,
) -> Catalog:
    """Build a catalog from a document or from its list of context records.

    Raises :class:`~tssync.errors.DuplicateIdentityError` when two messages
    share an identity key; nothing is returned in that case.
    """
    source_language = ""
    if isinstance(records, Mapping):
        locale = locale or records.get("locale")
        source_language = str(records.get("sourcelanguage") or "")
        contexts = records.get("contexts") or []
    else:
        contexts = records
    if not locale:
        raise ValueError("Catalog records do not name a locale")

    catalog = Catalog(
        str(locale), source_language=source_language, case_insensitive=case_insensitive
    )
    for context in contexts:
        name = context.get("name")
        if not name:
            raise ValueError("Context record without a name")
        for message in context.get("messages") or []:
            catalog.add(entry_from_record(str(name), message))
    logger.debug(f"Imported {len(catalog)} entries for {catalog.locale}")
    return catalog


def entry_to_record(entry: Entry) -> dict[str, Any]:
    record: dict[str, Any] = {"source": entry.source}
    if entry.disambiguation:
        record["disambiguation"] = entry.disambiguation
    if entry.translator_comment:
        record["translatorcomment"] = entry.translator_comment
    if entry.extracomment:
        record["extracomment"] = entry.extracomment
    if entry.previous_source:
        record["oldsource"] = entry.previous_source
    if isinstance(entry.translation, dict):
        forms = entry.forms()
        record["translation"] = [forms.get(index, "") for index in range(max(forms) + 1)]
    else:
        record["translation"] = entry.translation
    record["status"] = entry.status.value
    if entry.numerus:
        record["numerus"] = True
    if entry.prior_status is not None:
        record["prior_status"] = entry.prior_status.value
    if entry.obsoleted_by:
        record["obsoleted_by"] = entry.obsoleted_by
    record["locations"] = [
        {"filename": location.filename, "line": location.line}
        if location.line is not None
        else {"filename": location.filename}
        for location in entry.locations
    ]
    return record


def catalog_to_records(catalog: Catalog) -> dict[str, Any]:
    """Export a catalog; vanished entries are left out."""
    contexts = []
    for name in catalog.context_names():
        messages = [entry_to_record(entry) for entry in catalog.all_entries(name)]
        if messages:
            contexts.append({"name": name, "messages": messages})
    document: dict[str, Any] = {"locale": catalog.locale}
    if catalog.source_language:
        document["sourcelanguage"] = catalog.source_language
    document["contexts"] = contexts
    return document


def candidate_from_record(raw: Mapping[str, Any] | Sequence[Any]) -> Candidate:
    if isinstance(raw, Candidate):
        return raw
    if isinstance(raw, Mapping):
        context = raw.get("context")
        source = raw.get("source")
        disambiguation = raw.get("disambiguation") or raw.get("comment") or ""
        locations = raw.get("locations")
        extracomment = raw.get("extracomment") or ""
        numerus = bool(raw.get("numerus", False))
    else:
        context, source, disambiguation, locations = (list(raw) + ["", ()])[:4]
        extracomment, numerus = "", False
    if not context or not source:
        raise ValueError(f"Extracted string without context or source: {raw!r}")
    return Candidate(
        str(context),
        str(source),
        str(disambiguation or ""),
        tuple(_locations(locations)),
        str(extracomment),
        numerus,
    )


def candidates_from_records(records: Iterable[Any]) -> list[Candidate]:
    return [candidate_from_record(record) for record in records]
