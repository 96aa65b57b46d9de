"""Scoring and ordering of found paths, plus independent path validation."""
from __future__ import annotations

from typing import Iterable, List, Optional

from .connector_logging import ConnectorLogger
from .decompose import DEFAULT_MAX_TREE_DEPTH, decompose
from .elements import Path
from .relatives import connected
from .store import GraphStore
from .weights import DEFAULT_TREE_RATE, SaturatingCurve, tree_weight


def path_weight(
    store: GraphStore,
    path: Path,
    curve: SaturatingCurve,
    rate: float = DEFAULT_TREE_RATE,
    max_depth: Optional[int] = DEFAULT_MAX_TREE_DEPTH,
    logger: Optional[ConnectorLogger] = None,
) -> float:
    """Sum of the tree weights of the intermediates; endpoints do not count."""
    accumulated = 0.0
    for ele in path.intermediates:
        tree = decompose(store, ele, max_depth=max_depth, logger=logger)
        accumulated += tree_weight(store, tree, curve, rate=rate, logger=logger)
    return accumulated


def rank_paths(
    store: GraphStore,
    paths: Iterable[Path],
    curve: SaturatingCurve,
    rate: float = DEFAULT_TREE_RATE,
    max_depth: Optional[int] = DEFAULT_MAX_TREE_DEPTH,
    logger: Optional[ConnectorLogger] = None,
) -> List[Path]:
    """
    Weight every path and order them best-first.

    Higher weight sorts first. Equal weights fall back to the names of the
    intermediates in ascending order, so the output is deterministic.
    """
    weighted = [
        path.with_weight(
            path_weight(store, path, curve, rate=rate, max_depth=max_depth, logger=logger)
        )
        for path in paths
    ]
    weighted.sort(key=lambda p: (-p.weight, [e.name for e in p.intermediates]))

    if logger:
        logger.log_ranked_paths(weighted)
    return weighted


def is_path_viable(store: GraphStore, path: Path) -> bool:
    """Re-check that each consecutive pair of the chain is one recipe apart."""
    chain = path.chain
    for x, y in zip(chain, chain[1:]):
        if not connected(store, x, y):
            return False
    return True
