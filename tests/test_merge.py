"""Tests for merging a fresh source scan into an existing catalog."""

from __future__ import annotations

import pytest

from tssync import status
from tssync.classes import Candidate, Location, Status
from tssync.diagnostics import Collector, Diagnostics, EntryVanished, FuzzyMatchApplied
from tssync.errors import ConfigurationError
from tssync.merge import MergePolicy, merge, scan_digest
from tssync.similarity import token_ratio
from tssync.store import Catalog

FUZZY = MergePolicy(fuzzy_threshold=0.8)


def test_exact_match_keeps_translation_and_replaces_locations(error_catalog) -> None:
    result = merge(error_catalog, [Candidate("QObject", "Error", "", (Location("main.cpp", 85),))])

    entry = result.catalog.find("QObject", "Error")
    assert entry.translation == "Erreur"
    assert entry.status is Status.FINISHED
    assert entry.locations == [Location("main.cpp", 85)]
    assert result.kept == 1


def test_merge_leaves_the_old_catalog_untouched(error_catalog) -> None:
    before = error_catalog.copy()

    result = merge(error_catalog, [])

    assert error_catalog == before
    assert error_catalog.find("QObject", "Error").status is Status.FINISHED
    assert result.catalog.find("QObject", "Error").status is Status.OBSOLETE
    assert result.catalog.version == error_catalog.version + 1


def test_worked_example_runs_through_obsolete_to_vanished(error_catalog) -> None:
    first = merge(error_catalog, [Candidate("QObject", "Error", "", (Location("main.cpp", 85),))])
    second = merge(first.catalog, [])
    third = merge(second.catalog, [Candidate("QObject", "log file", "", (Location("main.cpp", 49),))])

    obsolete = second.catalog.find("QObject", "Error")
    assert obsolete.status is Status.OBSOLETE
    assert obsolete.translation == "Erreur"
    assert second.obsoleted == 1

    vanished = third.catalog.find("QObject", "Error")
    assert vanished.status is Status.VANISHED
    assert vanished not in third.catalog.all_entries()
    assert third.vanished == 1


def test_new_candidates_append_to_their_context(french) -> None:
    candidates = [
        Candidate(entry.context, entry.source, entry.disambiguation, tuple(entry.locations))
        for entry in french.all_entries()
    ]
    candidates.insert(0, Candidate("QObject", "Lists plugins installed and quits."))
    candidates.append(Candidate("MainWindow", "Quit"))

    result = merge(french, candidates)

    sources = [entry.source for entry in result.catalog.all_entries("QObject")]
    assert sources[:-1] == [entry.source for entry in french.all_entries()]
    assert sources[-1] == "Lists plugins installed and quits."
    assert result.catalog.context_names() == ["QObject", "MainWindow"]
    new = result.catalog.find("QObject", "Lists plugins installed and quits.")
    assert new.status is Status.UNFINISHED
    assert new.translation == ""
    assert result.new == 2


def test_obsolete_entry_is_restored_to_prior_status(error_catalog) -> None:
    obsolete = merge(error_catalog, []).catalog

    result = merge(obsolete, [Candidate("QObject", "Error")])

    entry = result.catalog.find("QObject", "Error")
    assert entry.status is Status.FINISHED
    assert entry.translation == "Erreur"
    assert result.restored == 1


def test_untranslated_unclaimed_entry_vanishes_at_once(french) -> None:
    result = merge(french, [Candidate("QObject", "Error")])

    entry = result.catalog.find("QObject", "GUI interface to SQLiteStudio, a SQLite manager.")
    assert entry.status is Status.VANISHED
    assert result.catalog.find("QObject", "file").status is Status.OBSOLETE


def test_merge_is_idempotent(french, scan_of) -> None:
    candidates = [
        candidate
        for candidate in scan_of(french)[2:]
        if candidate.source != "Database file to open"
    ]
    candidates.append(Candidate("QObject", "Database files to open"))
    candidates.append(Candidate("Dialog", "Cancel", "button"))

    first = merge(french, candidates, FUZZY)
    twice = merge(first.catalog, candidates, FUZZY).catalog

    assert first.fuzzy == 1
    assert twice == first.catalog


def test_identity_is_stable_across_merges(french, scan_of) -> None:
    result = merge(french, scan_of(french), FUZZY)

    for entry in french.all_entries():
        merged = result.catalog.find(*entry.key)
        assert merged.translation == entry.translation
        assert merged.status is entry.status
        assert merged.locations == entry.locations


def test_fuzzy_recovery_carries_translation_for_review(french, scan_of) -> None:
    collector = Collector()
    candidates = [
        candidate for candidate in scan_of(french) if candidate.source != "Database file to open"
    ]
    candidates.append(Candidate("QObject", "Database files to open", "", (Location("../main.cpp", 63),)))

    result = merge(french, candidates, FUZZY, Diagnostics(collector))

    recovered = result.catalog.find("QObject", "Database files to open")
    assert recovered.translation == "Fichier de la base de données à ouvrir"
    assert recovered.status is Status.UNFINISHED
    assert recovered.previous_source == "Database file to open"
    assert result.fuzzy == 1

    donor = result.catalog.find("QObject", "Database file to open")
    assert donor.status is Status.OBSOLETE

    events = collector.of_type(FuzzyMatchApplied)
    assert len(events) == 1
    assert events[0].previous_source == "Database file to open"


def test_fuzzy_recovery_is_off_without_threshold(french, scan_of) -> None:
    candidates = [
        candidate for candidate in scan_of(french) if candidate.source != "Database file to open"
    ]
    candidates.append(Candidate("QObject", "Database files to open"))

    result = merge(french, candidates)

    assert result.catalog.find("QObject", "Database files to open").translation == ""
    assert result.fuzzy == 0


def test_fuzzy_recovery_stays_within_context(french) -> None:
    result = merge(french, [Candidate("Other", "Database files to open")], FUZZY)

    assert result.catalog.find("Other", "Database files to open").translation == ""


def test_fuzzy_recovery_respects_disambiguation() -> None:
    catalog = Catalog("fr_FR")
    entry = catalog.insert_or_get("QObject", "Open file", "menu")
    entry.translation = "Ouvrir le fichier"

    other = merge(catalog, [Candidate("QObject", "Open files", "toolbar")], FUZZY)
    same = merge(catalog, [Candidate("QObject", "Open files", "menu")], FUZZY)

    assert other.catalog.find("QObject", "Open files", "toolbar").translation == ""
    assert same.catalog.find("QObject", "Open files", "menu").translation == "Ouvrir le fichier"


def test_donor_serves_a_single_candidate() -> None:
    catalog = Catalog("fr_FR")
    catalog.insert_or_get("QObject", "Open file").translation = "Ouvrir le fichier"

    result = merge(
        catalog,
        [Candidate("QObject", "Open files"), Candidate("QObject", "Open a file")],
        FUZZY,
    )

    assert result.fuzzy == 1
    assert result.new == 1


def test_pluggable_similarity_strategy() -> None:
    catalog = Catalog("fr_FR")
    catalog.insert_or_get("QObject", "save the file now").translation = "enregistrer"
    policy = MergePolicy(fuzzy_threshold=1.0, similarity=token_ratio)

    result = merge(catalog, [Candidate("QObject", "Now save the file")], policy)

    assert result.catalog.find("QObject", "Now save the file").translation == "enregistrer"


def test_vanished_diagnostic_is_emitted(error_catalog) -> None:
    collector = Collector()
    obsolete = merge(error_catalog, []).catalog

    merge(obsolete, [Candidate("QObject", "file")], diagnostics=Diagnostics(collector))

    events = collector.of_type(EntryVanished)
    assert [event.source for event in events] == ["Error"]


def test_rerunning_the_same_scan_does_not_vanish(error_catalog) -> None:
    once = merge(error_catalog, []).catalog
    twice = merge(once, []).catalog

    assert twice.find("QObject", "Error").status is Status.OBSOLETE


def test_vanished_entry_extracted_again_starts_over(error_catalog) -> None:
    catalog = merge(merge(error_catalog, []).catalog, [Candidate("QObject", "file")]).catalog

    result = merge(catalog, [Candidate("QObject", "Error")])

    entry = result.catalog.find("QObject", "Error")
    assert entry.status is Status.UNFINISHED
    assert entry.translation == ""
    assert result.catalog.all_entries()[-1] is entry


def test_duplicate_candidates_merge_locations(error_catalog) -> None:
    result = merge(
        error_catalog,
        [
            Candidate("QObject", "Error", "", (Location("main.cpp", 85),)),
            Candidate("QObject", "Error", "", (Location("main.cpp", 120),)),
        ],
    )

    assert result.catalog.find("QObject", "Error").locations == [
        Location("main.cpp", 85),
        Location("main.cpp", 120),
    ]


def test_translator_edits_survive_a_merge(error_catalog) -> None:
    entry = error_catalog.find("QObject", "Error")
    status.set_translation(entry, "Erreur !")

    result = merge(error_catalog, [Candidate("QObject", "Error")])

    merged = result.catalog.find("QObject", "Error")
    assert merged.translation == "Erreur !"
    assert merged.status is Status.UNFINISHED


@pytest.mark.parametrize("threshold", [-0.1, 1.5, "high", True])
def test_bad_threshold_is_a_configuration_error(threshold) -> None:
    with pytest.raises(ConfigurationError):
        MergePolicy(fuzzy_threshold=threshold)


def test_failed_merge_does_not_apply(error_catalog) -> None:
    def broken(left: str, right: str) -> float:
        raise RuntimeError("similarity backend unavailable")

    before = error_catalog.copy()
    policy = MergePolicy(fuzzy_threshold=0.5, similarity=broken)

    with pytest.raises(RuntimeError):
        merge(error_catalog, [Candidate("QObject", "Errors")], policy)

    assert error_catalog == before


def test_case_variant_of_a_vanished_entry_is_a_new_string() -> None:
    catalog = Catalog("tr_TR", case_insensitive=True)
    catalog.insert_or_get("QObject", "file").translation = "dosya"
    catalog = merge(catalog, [Candidate("QObject", "Error")]).catalog
    catalog = merge(catalog, [Candidate("QObject", "Warning")]).catalog
    assert catalog.find("QObject", "file").status is Status.VANISHED

    result = merge(catalog, [Candidate("QObject", "FILE")])

    entry = result.catalog.find("QObject", "FILE")
    assert entry.status is Status.UNFINISHED
    assert entry.translation == ""
    assert result.catalog.find("QObject", "file") is None
    assert result.new == 1


def test_case_variant_matches_an_active_entry() -> None:
    catalog = Catalog("tr_TR", case_insensitive=True)
    entry = catalog.insert_or_get("QObject", "file")
    entry.translation = "dosya"
    status.finish(entry)

    result = merge(catalog, [Candidate("QObject", "FILE", "", (Location("main.cpp", 12),))])

    kept = result.catalog.find("QObject", "file")
    assert kept.status is Status.FINISHED
    assert kept.locations == [Location("main.cpp", 12)]
    assert result.catalog.find("QObject", "FILE") is None
    assert result.kept == 1
    assert len(result.catalog) == 1


def test_case_variant_restores_an_obsolete_entry() -> None:
    catalog = Catalog("tr_TR", case_insensitive=True)
    catalog.insert_or_get("QObject", "file").translation = "dosya"
    catalog = merge(catalog, []).catalog

    result = merge(catalog, [Candidate("QObject", "File")])

    assert result.catalog.find("QObject", "file").status is Status.UNFINISHED
    assert result.restored == 1


def test_case_variants_in_one_scan_share_an_entry() -> None:
    catalog = Catalog("tr_TR", case_insensitive=True)

    result = merge(
        catalog,
        [
            Candidate("QObject", "File", "", (Location("main.cpp", 12),)),
            Candidate("QObject", "FILE", "", (Location("main.cpp", 40),)),
        ],
    )

    entry = result.catalog.find("QObject", "File")
    assert entry.locations == [Location("main.cpp", 12), Location("main.cpp", 40)]
    assert len(result.catalog) == 1


def test_scan_digest_depends_on_content() -> None:
    first = [Candidate("QObject", "Error", "", (Location("main.cpp", 85),))]
    moved = [Candidate("QObject", "Error", "", (Location("main.cpp", 86),))]

    assert scan_digest(first) == scan_digest(list(first))
    assert scan_digest(first) != scan_digest(moved)


def test_edit_while_obsolete_needs_review_after_restore(error_catalog) -> None:
    obsolete = merge(error_catalog, []).catalog
    status.set_translation(obsolete.find("QObject", "Error"), "Erreur inconnue")

    result = merge(obsolete, [Candidate("QObject", "Error")])

    entry = result.catalog.find("QObject", "Error")
    assert entry.status is Status.UNFINISHED
    assert entry.translation == "Erreur inconnue"
    assert result.restored == 1
