"""
Connector engine: the interface exposed to the command line and other front ends.

Wires a graph store, the holding curve and the logger together and exposes
the three operations callers need: ranked path search, cracking aspects into
primitives, and path validation.
"""
from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Tuple, Union

from .config import ConnectorConfig
from .connector_logging import ConnectorLogger
from .decompose import DEFAULT_MAX_TREE_DEPTH, DecompositionTree, decompose, leaf_multiset_for
from .elements import ElementHandle, Path, handle
from .errors import ConfigError, ElementNotFoundError
from .paths import search_paths
from .ranking import is_path_viable, rank_paths
from .store import CachingGraphStore, GraphStore, SQLiteGraphStore
from .weights import DEFAULT_TREE_RATE, SaturatingCurve

NameOrHandle = Union[str, ElementHandle]


class ConnectorEngine:
    """
    Path search and weighting over a read-only recipe graph.

    The engine never writes to the store.
    """

    def __init__(
        self,
        store: GraphStore,
        curve: Optional[SaturatingCurve] = None,
        tree_rate: float = DEFAULT_TREE_RATE,
        max_tree_depth: Optional[int] = DEFAULT_MAX_TREE_DEPTH,
        logger: Optional[ConnectorLogger] = None,
    ):
        """
        Parameters
        ----------
        store : GraphStore
            Source of elements, recipes and holdings.
        curve : SaturatingCurve, optional
            Holding curve; built once with the default alpha if omitted.
        tree_rate : float
            Share of a tree's weight taken from its root.
        max_tree_depth : int, optional
            Decomposition depth guard against recipe cycles.
        logger : ConnectorLogger, optional
            Receives search and ranking diagnostics.
        """
        self._store = store
        self._curve = curve or SaturatingCurve()
        self._tree_rate = tree_rate
        self._max_tree_depth = max_tree_depth
        self._logger = logger

    @classmethod
    def from_config(
        cls,
        config: ConnectorConfig,
        logger: Optional[ConnectorLogger] = None,
    ) -> "ConnectorEngine":
        """Open the configured database and build an engine over it."""
        if not config.database_path.exists():
            raise ConfigError(
                f"database {config.database_path} not found (create it with init-db)"
            )
        store: GraphStore = SQLiteGraphStore(config.database_path)
        if config.cache_store_queries:
            store = CachingGraphStore(store)
        if logger:
            logger.log_config(config)
        return cls(
            store,
            curve=SaturatingCurve(config.curve_alpha),
            tree_rate=config.tree_rate,
            max_tree_depth=config.max_tree_depth,
            logger=logger,
        )

    @property
    def store(self) -> GraphStore:
        return self._store

    @property
    def curve(self) -> SaturatingCurve:
        return self._curve

    def close(self) -> None:
        if self._logger and isinstance(self._store, CachingGraphStore):
            self._logger.log_store_stats(self._store.hits, self._store.misses)
        self._store.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    def require_element(self, name: NameOrHandle) -> ElementHandle:
        """Return the handle for ``name``, raising if the store doesn't know it."""
        ele = handle(name)
        if not self._store.exists(ele):
            raise ElementNotFoundError(ele.name)
        return ele

    def search(self, from_: NameOrHandle, to: NameOrHandle, steps_n: int) -> List[Path]:
        """Unranked paths with exactly ``steps_n`` intermediates."""
        start = self.require_element(from_)
        end = self.require_element(to)
        return search_paths(self._store, start, end, steps_n, logger=self._logger)

    def search_ranked(self, from_: NameOrHandle, to: NameOrHandle, steps_n: int) -> List[Path]:
        """
        Paths with exactly ``steps_n`` intermediates, best first.

        An empty list means the two aspects are not connected within
        ``steps_n`` steps.
        """
        paths = self.search(from_, to, steps_n)
        return rank_paths(
            self._store,
            paths,
            self._curve,
            rate=self._tree_rate,
            max_depth=self._max_tree_depth,
            logger=self._logger,
        )

    def decompose(self, ele: NameOrHandle) -> DecompositionTree:
        return decompose(
            self._store,
            self.require_element(ele),
            max_depth=self._max_tree_depth,
            logger=self._logger,
        )

    def leaf_multiset_for(
        self,
        requested: Iterable[Tuple[NameOrHandle, int]],
    ) -> Dict[ElementHandle, int]:
        """Primitive counts for a list of (aspect, quantity) requests."""
        checked = [(self.require_element(name), count) for name, count in requested]
        return leaf_multiset_for(
            self._store,
            checked,
            max_depth=self._max_tree_depth,
            logger=self._logger,
        )

    def is_path_viable(self, path: Path) -> bool:
        return is_path_viable(self._store, path)
