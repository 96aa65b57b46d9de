"""One-hop adjacency over the recipe graph."""
from __future__ import annotations

from typing import FrozenSet, Optional

from .connector_logging import ConnectorLogger
from .elements import ElementHandle
from .store import GraphStore


def relatives(
    store: GraphStore,
    ele: ElementHandle,
    logger: Optional[ConnectorLogger] = None,
) -> FrozenSet[ElementHandle]:
    """
    Get the components that build ``ele`` and the elements it can build.

    A primitive contributes no components. Neither endpoint is validated
    against the store here; callers check existence beforehand.
    """
    relative_eles = set(store.components(ele))
    relative_eles.update(store.products_using(ele))
    result = frozenset(relative_eles)
    if logger:
        logger.log_relatives(ele, result)
    return result


def connected(
    store: GraphStore,
    a: ElementHandle,
    b: ElementHandle,
    logger: Optional[ConnectorLogger] = None,
) -> bool:
    """Whether ``a`` and ``b`` are one recipe apart (symmetric)."""
    return b in relatives(store, a, logger)
