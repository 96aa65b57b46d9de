"""Shared fixtures: a temporary SQLite database holding a subset of Thaumcraft 4 aspects."""
from __future__ import annotations

from pathlib import Path
from typing import Iterator, List, Tuple

import pytest

from Connector.elements import Element, ElementHandle, Recipe
from Connector.store import SQLiteGraphStore

TC4_MOD = "Thaumcraft"

TC4_PRIMALS: List[str] = ["Aer", "Terra", "Ignis", "Aqua", "Ordo", "Perditio"]

# (product, component_a, component_b), listed so every component precedes its products
TC4_RECIPES: List[Tuple[str, str, str]] = [
    ("Vacuos", "Aer", "Perditio"),
    ("Lux", "Aer", "Ignis"),
    ("Tempestas", "Aer", "Aqua"),
    ("Motus", "Aer", "Ordo"),
    ("Gelum", "Ignis", "Perditio"),
    ("Vitreus", "Terra", "Ordo"),
    ("Victus", "Aqua", "Terra"),
    ("Venenum", "Aqua", "Perditio"),
    ("Potentia", "Ordo", "Ignis"),
    ("Permutatio", "Motus", "Aqua"),
    ("Metallum", "Terra", "Vitreus"),
    ("Mortuus", "Victus", "Perditio"),
    ("Volatus", "Aer", "Motus"),
    ("Tenebrae", "Vacuos", "Lux"),
    ("Spiritus", "Victus", "Mortuus"),
    ("Sano", "Victus", "Ordo"),
    ("Iter", "Motus", "Terra"),
    ("Alienis", "Vacuos", "Tenebrae"),
    ("Praecantatio", "Vacuos", "Potentia"),
    ("Auram", "Praecantatio", "Aer"),
    ("Vitium", "Praecantatio", "Perditio"),
    ("Limus", "Victus", "Aqua"),
    ("Herba", "Victus", "Terra"),
    ("Arbor", "Aer", "Herba"),
    ("Bestia", "Motus", "Victus"),
    ("Corpus", "Mortuus", "Bestia"),
    ("Exanimis", "Motus", "Mortuus"),
    ("Cognitio", "Ignis", "Spiritus"),
    ("Sensus", "Aer", "Spiritus"),
    ("Humanus", "Bestia", "Cognitio"),
    ("Messis", "Herba", "Humanus"),
    ("Perfodio", "Humanus", "Terra"),
    ("Instrumentum", "Humanus", "Ordo"),
    ("Meto", "Messis", "Instrumentum"),
    ("Telum", "Instrumentum", "Ignis"),
    ("Tutamen", "Instrumentum", "Terra"),
    ("Fames", "Victus", "Vacuos"),
    ("Lucrum", "Humanus", "Fames"),
    ("Fabrico", "Humanus", "Instrumentum"),
    ("Pannus", "Instrumentum", "Bestia"),
    ("Machina", "Motus", "Instrumentum"),
    ("Vinculum", "Motus", "Perditio"),
]

TC4_ALL: List[str] = TC4_PRIMALS + [product for product, _, _ in TC4_RECIPES]


def EH(name: str) -> ElementHandle:
    return ElementHandle(name)


def build_tc4_store(store: SQLiteGraphStore) -> SQLiteGraphStore:
    """Populate an initialized store with the TC4 fixture graph."""
    for name in TC4_ALL:
        store.add_element(Element(name=name, belongs_to_mod=TC4_MOD))
    for product, a, b in TC4_RECIPES:
        store.add_recipe(Recipe(EH(product), EH(a), EH(b)))
    return store


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def tc4_db(tmp_path: Path) -> Path:
    """Path to a freshly built TC4 database file (nothing held)."""
    db_path = tmp_path / "aspects.sqlite3"
    with SQLiteGraphStore(db_path, initialize=True) as store:
        build_tc4_store(store)
    return db_path


@pytest.fixture
def store(tc4_db: Path) -> Iterator[SQLiteGraphStore]:
    with SQLiteGraphStore(tc4_db) as s:
        yield s


@pytest.fixture
def empty_store() -> Iterator[SQLiteGraphStore]:
    """In-memory store with the schema but no rows."""
    with SQLiteGraphStore(":memory:", initialize=True) as s:
        yield s


@pytest.fixture
def tc4_names() -> List[str]:
    return list(TC4_ALL)
