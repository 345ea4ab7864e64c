"""Test configuration utilities and shared fixtures."""

import sys
from pathlib import Path

# Make ``src`` importable when the suite runs without an editable install.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

import pytest  # noqa: E402

from tssync.classes import Candidate, Location, Status  # noqa: E402
from tssync.records import catalog_from_records  # noqa: E402
from tssync.store import Catalog  # noqa: E402

FRENCH_RECORDS = {
    "locale": "fr_FR",
    "contexts": [
        {
            "name": "QObject",
            "messages": [
                {
                    "source": "GUI interface to SQLiteStudio, a SQLite manager.",
                    "translatorcomment": "Interface GUI de SQLiteStudio un outil pour SQLite",
                    "translation": "",
                    "locations": [{"filename": "../main.cpp", "line": 43}],
                },
                {
                    "source": "Redirects debug messages into given file (forces debug mode).",
                    "translation": "",
                    "status": "unfinished",
                    "locations": [{"filename": "../main.cpp", "line": 49}],
                },
                {
                    "source": "database",
                    "translation": "Base de données",
                    "status": "finished",
                    "locations": [{"filename": "../main.cpp", "line": 52}],
                },
                {
                    "source": "file",
                    "translation": "Fichier",
                    "status": "finished",
                    "locations": [{"filename": "../main.cpp", "line": 62}],
                },
                {
                    "source": "Database file to open",
                    "translation": "Fichier de la base de données à ouvrir",
                    "status": "finished",
                    "locations": [{"filename": "../main.cpp", "line": 62}],
                },
                {
                    "source": "Error",
                    "translation": "Erreur",
                    "status": "finished",
                    "locations": [
                        {"filename": "main.cpp", "line": 85},
                        {"filename": "main.cpp", "line": 100},
                    ],
                },
            ],
        }
    ],
}


def _scan_of(catalog: Catalog) -> list[Candidate]:
    return [
        Candidate(
            entry.context,
            entry.source,
            entry.disambiguation,
            tuple(entry.locations),
            entry.extracomment,
            entry.numerus,
        )
        for entry in catalog.all_entries()
    ]


@pytest.fixture()
def scan_of():
    """Build candidates reproducing every active entry of a catalog as-is."""

    return _scan_of


@pytest.fixture()
def french() -> Catalog:
    """Catalog modelled on a small Qt Linguist French translation."""

    return catalog_from_records(FRENCH_RECORDS)


@pytest.fixture()
def error_catalog() -> Catalog:
    catalog = Catalog("fr_FR")
    entry = catalog.insert_or_get("QObject", "Error")
    entry.translation = "Erreur"
    entry.status = Status.FINISHED
    entry.locations = [Location("main.cpp", 85), Location("main.cpp", 100)]
    return catalog
