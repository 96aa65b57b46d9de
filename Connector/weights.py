"""
Desirability weights for elements, decomposition trees and paths.

The held quantity of an element is mapped through a saturating curve: a
linear ramp up to 1000 held, then an exponential approach to 1. Holding
more of something is worth less and less at the margin.

    Weight(e)      = curve(held(e)) / base_value(e)
    TreeWeight(t)  = rate * Weight(root) + (1 - rate) / (1 + sum of Weight(n), n != root)
"""
from __future__ import annotations

import math
from typing import List, Optional

from .connector_logging import ConnectorLogger
from .decompose import DecompositionTree
from .elements import ElementHandle
from .errors import DegenerateCurveError, DomainError
from .store import GraphStore

DEFAULT_ALPHA = 0.7
DEFAULT_TREE_RATE = 0.7

# Held quantity at which the curve switches from linear to exponential
SATURATION_KNEE = 1000.0


class SaturatingCurve:
    """
    Maps a held quantity in [0, +inf) to a value in [0, 1).

    Parameters are validated once here, not on every evaluation.
    """

    def __init__(self, alpha: float = DEFAULT_ALPHA):
        a = SATURATION_KNEE * (1.0 - alpha)
        if abs(a) < 1e-12:
            raise DegenerateCurveError("1000 * (1 - alpha)", alpha)
        if not 0.0 < alpha < 1.0:
            raise DomainError("(0, 1)", alpha, what="alpha")
        self._alpha = alpha
        self._beta = alpha / a

    @property
    def alpha(self) -> float:
        return self._alpha

    @property
    def beta(self) -> float:
        return self._beta

    def __call__(self, x: float) -> float:
        if not x >= 0.0:
            raise DomainError("[0, +inf)", x, what="held quantity")
        if x < SATURATION_KNEE:
            return self._alpha * x / SATURATION_KNEE
        return self._alpha + (1.0 - self._alpha) * (
            1.0 - math.exp(-self._beta * (x - SATURATION_KNEE))
        )

    def __repr__(self) -> str:
        return f"SaturatingCurve(alpha={self._alpha})"


def element_weight(store: GraphStore, ele: ElementHandle, curve: SaturatingCurve) -> float:
    base_value = store.base_value(ele)
    held = store.held_quantity(ele)
    if base_value <= 0:
        raise DomainError("(0, +inf)", base_value, what=f"base value of {ele.name}")
    return curve(held) / base_value


def tree_weight(
    store: GraphStore,
    tree: DecompositionTree,
    curve: SaturatingCurve,
    rate: float = DEFAULT_TREE_RATE,
    logger: Optional[ConnectorLogger] = None,
) -> float:
    """
    Score a decomposition tree.

    Every node is weighted before anything is aggregated, so a failing
    store read leaves no partial score behind.
    """
    node_weights: List[float] = [
        element_weight(store, node.element, curve) for node in tree.nodes
    ]

    root_weight = node_weights[0]
    sub_weight = 1.0 + sum(node_weights[1:])
    weight = rate * root_weight + (1.0 - rate) * (1.0 / sub_weight)

    if logger:
        logger.log_tree_weight(tree.root, root_weight, sub_weight, weight)
    return weight

