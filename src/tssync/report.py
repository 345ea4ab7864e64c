import logging
import re
from collections import defaultdict

from tssync.classes import Entry, Report, Status
from tssync.plurals import SINGLE, PluralRules
from tssync.store import Catalog

logger = logging.getLogger(__name__)

param_regex = re.compile(r"%(?:[1-9][0-9]?|n)")


def _params(text: str) -> set[str]:
    return set(param_regex.findall(text))


def _entry_warnings(entry: Entry, plurals: PluralRules) -> list[str]:
    if entry.status is Status.OBSOLETE:
        return ["Obsolete, no longer found in the sources"]

    warnings = []
    if not entry.has_translation():
        warnings.append("Translation missing")
    elif entry.status is Status.UNFINISHED:
        if entry.previous_source:
            warnings.append(f'Translation reused from "{entry.previous_source}", needs review')
        else:
            warnings.append("Translation unfinished")

    forms = entry.forms()
    if entry.numerus and entry.has_translation() and len(forms) != len(plurals):
        warnings.append(f"Has {len(forms)} plural forms, but locale has {len(plurals)}")

    expected = _params(entry.source)
    for index, text in sorted(forms.items()):
        if not text:
            continue
        found = _params(text)
        # %n is optional in a singular form
        if entry.numerus:
            found.discard("%n")
            missing = expected - {"%n"} - found
        else:
            missing = expected - found
        if missing:
            suffix = f" (form {index})" if entry.numerus else ""
            warnings.append(f"Missing placeholders {', '.join(sorted(missing))}{suffix}")
        extra = found - expected
        if extra:
            warnings.append(f"Unknown placeholders {', '.join(sorted(extra))}")
    return warnings


def check(catalog: Catalog, plurals: PluralRules = SINGLE) -> dict[str, list[Report]]:
    """Collect build warnings for every context of the catalog."""
    reports: dict[str, list[Report]] = defaultdict(list)
    for name in catalog.context_names():
        entries = catalog.all_entries(name)
        if not entries:
            continue
        if all(entry.status is Status.OBSOLETE for entry in entries):
            reports[name].append(
                Report(catalog.locale, name, context_warning="Context is obsolete")
            )
            continue
        for entry in entries:
            for warning in _entry_warnings(entry, plurals):
                reports[name].append(
                    Report(catalog.locale, name, source=entry.source, entry_warning=warning)
                )

    if reports:
        issues = sum(len(problems) for problems in reports.values())
        logger.error(f"Found {issues} issues for {catalog.locale}")
    else:
        logger.info(f"No issues found for {catalog.locale}")
    return dict(reports)


def statistics(catalog: Catalog) -> dict[str, int]:
    counts = {status.value: 0 for status in Status}
    for entry in catalog:
        counts[entry.status.value] += 1
    return counts


def to_markdown(locale: str, reports: dict[str, list[Report]]) -> str:
    if not reports:
        return "No issues found"

    markdown = f"# {locale}\n\n"
    for context, problems in reports.items():
        markdown += f"## {context}\n"
        added_entry_warning = False
        for report in problems:
            if report.context_warning:
                markdown += f"**{report.context_warning}**\n"
            if report.entry_warning:
                if not added_entry_warning:
                    markdown += "| Source | Issue |\n| ------- | --------- |\n"
                    added_entry_warning = True
                source = report.source.replace("|", "\\|").replace("\n", " ")
                markdown += f"| `{source}` | {report.entry_warning} |\n"
        markdown += "\n"
    return markdown
