"""
Graph store: the read side of the recipe database.

Provides the abstract ``GraphStore`` contract consumed by the search engine,
the SQLite backend holding the elements/recipes/holdings relations, and a
per-command memoizing wrapper.

Schema:
    elements (
        name TEXT PRIMARY KEY,
        belongs_to_mod TEXT,
        base_value REAL
    )
    recipes (name, component_a, component_b)   -- at most one row per name
    elements_holding (name, num)               -- at most one row per name
"""
from __future__ import annotations

import sqlite3
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple, Union

from .elements import (
    PRIMITIVE,
    Decomposed,
    Decomposition,
    Element,
    ElementHandle,
    Primitive,
    Recipe,
)
from .errors import DomainError, ElementNotFoundError, StoreError, StoreIntegrityError


class GraphStore(ABC):
    """Read access to element existence, recipes, base values and holdings."""

    @abstractmethod
    def exists(self, handle: ElementHandle) -> bool:
        """Whether the element is known to the store."""

    @abstractmethod
    def components(self, handle: ElementHandle) -> Decomposition:
        """The element's recipe components, or ``PRIMITIVE`` if it has no recipe."""

    @abstractmethod
    def products_using(self, handle: ElementHandle) -> FrozenSet[ElementHandle]:
        """Elements whose recipe uses ``handle`` as either component."""

    @abstractmethod
    def base_value(self, handle: ElementHandle) -> float:
        """Base value of the element. Raises ElementNotFoundError if unknown."""

    @abstractmethod
    def held_quantity(self, handle: ElementHandle) -> float:
        """Quantity currently held. Raises ElementNotFoundError if unknown."""

    @abstractmethod
    def set_held_quantity(self, handle: ElementHandle, quantity: float) -> None:
        """Overwrite the held quantity of a known element."""

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


class SQLiteGraphStore(GraphStore):
    """
    SQLite backend for the recipe graph.

    Every call issues its queries sequentially on a single connection; no
    call is retried. Any ``sqlite3.Error`` is re-raised as ``StoreError`` with
    the original exception as its cause, and an open write is rolled back.
    """

    _SCHEMA_SQL = """
        CREATE TABLE IF NOT EXISTS elements (
            name TEXT PRIMARY KEY,
            belongs_to_mod TEXT,
            base_value REAL NOT NULL DEFAULT 1.0
        );

        CREATE TABLE IF NOT EXISTS recipes (
            name TEXT,
            component_a TEXT,
            component_b TEXT,
            FOREIGN KEY (name) REFERENCES elements(name)
                ON UPDATE CASCADE ON DELETE CASCADE,
            FOREIGN KEY (component_a) REFERENCES elements(name)
                ON UPDATE CASCADE ON DELETE CASCADE,
            FOREIGN KEY (component_b) REFERENCES elements(name)
                ON UPDATE CASCADE ON DELETE CASCADE
        );

        CREATE TABLE IF NOT EXISTS elements_holding (
            name TEXT,
            num REAL NOT NULL DEFAULT 0.0,
            FOREIGN KEY (name) REFERENCES elements(name)
                ON UPDATE CASCADE ON DELETE CASCADE
        );
    """

    def __init__(self, db_path: Union[Path, str], initialize: bool = False):
        """
        Open the database.

        Parameters
        ----------
        db_path : Path | str
            SQLite file, or ``":memory:"``.
        initialize : bool
            Create the three relations if they are missing.
        """
        self._db_path = str(db_path)
        try:
            self._conn: Optional[sqlite3.Connection] = sqlite3.connect(self._db_path)
        except sqlite3.Error as exc:
            raise StoreError(self._db_path, str(exc)) from exc
        try:
            self._execute("PRAGMA foreign_keys = ON")
            if initialize:
                self.initialize_schema()
        except StoreError:
            self.close()
            raise

    @property
    def db_path(self) -> str:
        return self._db_path

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StoreError(self._db_path, "store is closed")
        return self._conn

    def _fail(self, exc: sqlite3.Error) -> StoreError:
        if self._conn is not None and self._conn.in_transaction:
            self._conn.rollback()
        return StoreError(self._db_path, str(exc))

    def _execute(self, sql: str, params: Sequence = ()) -> sqlite3.Cursor:
        conn = self._connection()
        try:
            return conn.execute(sql, params)
        except sqlite3.Error as exc:
            raise self._fail(exc) from exc

    def _query(self, sql: str, params: Sequence = ()) -> List[tuple]:
        conn = self._connection()
        try:
            return conn.execute(sql, params).fetchall()
        except sqlite3.Error as exc:
            raise self._fail(exc) from exc

    def _commit(self) -> None:
        conn = self._connection()
        try:
            conn.commit()
        except sqlite3.Error as exc:
            raise self._fail(exc) from exc

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def initialize_schema(self) -> None:
        conn = self._connection()
        try:
            conn.executescript(self._SCHEMA_SQL)
        except sqlite3.Error as exc:
            raise self._fail(exc) from exc
        self._commit()

    # -------------------------------------------------------------------------
    # Graph reads
    # -------------------------------------------------------------------------

    def exists(self, handle: ElementHandle) -> bool:
        rows = self._query("SELECT count(*) FROM elements WHERE name = ?", (handle.name,))
        count = rows[0][0]
        if count > 1:
            raise StoreIntegrityError("elements", f"{count} rows for name={handle.name}")
        return count == 1

    def components(self, handle: ElementHandle) -> Decomposition:
        rows = self._query(
            "SELECT component_a, component_b FROM recipes WHERE name = ?",
            (handle.name,),
        )
        if not rows:
            return PRIMITIVE
        if len(rows) > 1:
            raise StoreIntegrityError("recipes", f"{len(rows)} recipes for name={handle.name}")
        component_a, component_b = rows[0]
        return Decomposed(ElementHandle(component_a), ElementHandle(component_b))

    def products_using(self, handle: ElementHandle) -> FrozenSet[ElementHandle]:
        products = [
            name for (name,) in self._query(
                "SELECT name FROM recipes WHERE component_a = ?", (handle.name,)
            )
        ]
        products.extend(
            name for (name,) in self._query(
                "SELECT name FROM recipes WHERE component_b = ?", (handle.name,)
            )
        )
        return frozenset(ElementHandle(name) for name in products)

    def base_value(self, handle: ElementHandle) -> float:
        rows = self._query("SELECT base_value FROM elements WHERE name = ?", (handle.name,))
        if not rows:
            raise ElementNotFoundError(handle.name, "base value lookup")
        if len(rows) > 1:
            raise StoreIntegrityError("elements", f"name={handle.name}")
        return float(rows[0][0])

    def held_quantity(self, handle: ElementHandle) -> float:
        rows = self._query("SELECT num FROM elements_holding WHERE name = ?", (handle.name,))
        if len(rows) > 1:
            raise StoreIntegrityError("elements_holding", f"{len(rows)} rows for name={handle.name}")
        if rows:
            return float(rows[0][0])
        # A known element without a holdings row is simply not held.
        if not self.exists(handle):
            raise ElementNotFoundError(handle.name, "holding lookup")
        return 0.0

    # -------------------------------------------------------------------------
    # Mutations (used by the CLI and the importer, never by the search engine)
    # -------------------------------------------------------------------------

    def set_held_quantity(self, handle: ElementHandle, quantity: float) -> None:
        if not quantity >= 0:
            raise DomainError("[0, +inf)", quantity, what="held quantity")
        if not self.exists(handle):
            raise ElementNotFoundError(handle.name, "change holding")

        cursor = self._execute(
            "UPDATE elements_holding SET num = ? WHERE name = ?",
            (float(quantity), handle.name),
        )
        if cursor.rowcount > 1:
            self._connection().rollback()
            raise StoreIntegrityError("elements_holding", f"{cursor.rowcount} rows for name={handle.name}")
        if cursor.rowcount == 0:
            self._execute(
                "INSERT INTO elements_holding (name, num) VALUES (?, ?)",
                (handle.name, float(quantity)),
            )
        self._commit()

    def add_element(self, element: Element, holding: float = 0.0) -> None:
        """Insert an element together with its holdings row."""
        self._execute(
            "INSERT INTO elements (name, belongs_to_mod, base_value) VALUES (?, ?, ?)",
            (element.name, element.belongs_to_mod, float(element.base_value)),
        )
        self._execute(
            "INSERT INTO elements_holding (name, num) VALUES (?, ?)",
            (element.name, float(holding)),
        )
        self._commit()

    def add_recipe(self, recipe: Recipe) -> None:
        self._execute(
            "INSERT INTO recipes (name, component_a, component_b) VALUES (?, ?, ?)",
            (recipe.product.name, recipe.component_a.name, recipe.component_b.name),
        )
        self._commit()

    # -------------------------------------------------------------------------
    # Listings
    # -------------------------------------------------------------------------

    def list_elements(self) -> List[Element]:
        rows = self._query("SELECT name, belongs_to_mod, base_value FROM elements ORDER BY name")
        return [Element(name=n, belongs_to_mod=m, base_value=float(v)) for n, m, v in rows]

    def list_recipes(self) -> List[Recipe]:
        rows = self._query("SELECT name, component_a, component_b FROM recipes ORDER BY name")
        return [
            Recipe(ElementHandle(n), ElementHandle(a), ElementHandle(b))
            for n, a, b in rows
        ]

    def list_mods(self) -> List[str]:
        rows = self._query(
            "SELECT belongs_to_mod FROM elements WHERE belongs_to_mod IS NOT NULL "
            "GROUP BY belongs_to_mod ORDER BY belongs_to_mod"
        )
        return [mod for (mod,) in rows]

    def list_holdings(self) -> List[Tuple[ElementHandle, float]]:
        rows = self._query("SELECT name, num FROM elements_holding ORDER BY name")
        return [(ElementHandle(n), float(q)) for n, q in rows]

    def primary_elements(self) -> List[ElementHandle]:
        rows = self._query(
            "SELECT elements.name FROM elements "
            "LEFT JOIN recipes ON elements.name = recipes.name "
            "WHERE recipes.name IS NULL ORDER BY elements.name"
        )
        return [ElementHandle(n) for (n,) in rows]

    def is_primary(self, handle: ElementHandle) -> bool:
        return isinstance(self.components(handle), Primitive)


class CachingGraphStore(GraphStore):
    """
    Memoizing wrapper around another store.

    Intended to live for a single command: the backtracking search and tree
    weighting repeat the same reads many times. Holdings writes go through to
    the wrapped store and drop the cached quantity.
    """

    def __init__(self, inner: GraphStore):
        self._inner = inner
        self._exists: Dict[ElementHandle, bool] = {}
        self._components: Dict[ElementHandle, Decomposition] = {}
        self._products: Dict[ElementHandle, FrozenSet[ElementHandle]] = {}
        self._base_values: Dict[ElementHandle, float] = {}
        self._held: Dict[ElementHandle, float] = {}
        self.hits = 0
        self.misses = 0

    @property
    def inner(self) -> GraphStore:
        return self._inner

    def _lookup(self, cache: Dict, key: ElementHandle, fetch):
        if key in cache:
            self.hits += 1
            return cache[key]
        self.misses += 1
        value = fetch(key)
        cache[key] = value
        return value

    def exists(self, handle: ElementHandle) -> bool:
        return self._lookup(self._exists, handle, self._inner.exists)

    def components(self, handle: ElementHandle) -> Decomposition:
        return self._lookup(self._components, handle, self._inner.components)

    def products_using(self, handle: ElementHandle) -> FrozenSet[ElementHandle]:
        return self._lookup(self._products, handle, self._inner.products_using)

    def base_value(self, handle: ElementHandle) -> float:
        return self._lookup(self._base_values, handle, self._inner.base_value)

    def held_quantity(self, handle: ElementHandle) -> float:
        return self._lookup(self._held, handle, self._inner.held_quantity)

    def set_held_quantity(self, handle: ElementHandle, quantity: float) -> None:
        self._inner.set_held_quantity(handle, quantity)
        self._held.pop(handle, None)

    def close(self) -> None:
        self._inner.close()
