"""Decomposition of an element into its recipe tree, down to primitives.

Provides:
1. Breadth-first construction of the binary decomposition tree
2. Leaf counting (how many of each primitive an element is made of)
3. "Crack": leaf counts for a whole list of requested elements and quantities
"""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from .connector_logging import ConnectorLogger
from .elements import ElementHandle, Primitive
from .errors import DomainError, StoreIntegrityError
from .store import GraphStore

# Recipes are acyclic; a tree deeper than this means the store has a cycle.
DEFAULT_MAX_TREE_DEPTH = 64


@dataclass
class TreeNode:
    """A node of a decomposition tree, stored in the tree's node arena."""
    element: ElementHandle
    parent: Optional[int]
    depth: int
    children: List[int] = field(default_factory=list)

    @property
    def is_leaf(self) -> bool:
        return not self.children


@dataclass
class DecompositionTree:
    """
    Binary tree of recipe components.

    ``nodes[0]`` is the root. Nodes are appended level by level, so the
    arena order is breadth-first order.
    """
    nodes: List[TreeNode]

    @property
    def root(self) -> ElementHandle:
        return self.nodes[0].element

    @property
    def depth(self) -> int:
        return max(node.depth for node in self.nodes)

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self) -> Iterator[TreeNode]:
        return iter(self.nodes)

    def children_of(self, index: int) -> List[TreeNode]:
        return [self.nodes[i] for i in self.nodes[index].children]

    def leaves(self) -> List[ElementHandle]:
        return [node.element for node in self.nodes if node.is_leaf]

    def leaf_counts(self) -> Dict[ElementHandle, int]:
        return dict(Counter(self.leaves()))


def decompose(
    store: GraphStore,
    root: ElementHandle,
    max_depth: Optional[int] = DEFAULT_MAX_TREE_DEPTH,
    logger: Optional[ConnectorLogger] = None,
) -> DecompositionTree:
    """
    Expand ``root`` breadth-first until a level adds no new nodes.

    Parameters
    ----------
    store : GraphStore
        Source of recipes.
    root : ElementHandle
        Element to decompose.
    max_depth : int, optional
        Abort with StoreIntegrityError if expansion would go deeper than this.
        ``None`` disables the guard.

    Returns
    -------
    DecompositionTree
        Single-node tree when ``root`` is primitive.
    """
    tree = DecompositionTree(nodes=[TreeNode(element=root, parent=None, depth=0)])
    level = [0]

    while level:
        new_level: List[int] = []
        for index in level:
            node = tree.nodes[index]
            decomposition = store.components(node.element)
            if isinstance(decomposition, Primitive):
                continue
            if max_depth is not None and node.depth >= max_depth:
                raise StoreIntegrityError(
                    "recipes",
                    f"decomposition of {root.name} deeper than {max_depth} levels, "
                    f"recipe cycle suspected at {node.element.name}",
                )
            for component in decomposition:
                tree.nodes.append(TreeNode(element=component, parent=index, depth=node.depth + 1))
                child_index = len(tree.nodes) - 1
                node.children.append(child_index)
                new_level.append(child_index)
        level = new_level

    if logger:
        logger.log_tree_built(tree)
    return tree


def leaf_multiset(
    store: GraphStore,
    root: ElementHandle,
    max_depth: Optional[int] = DEFAULT_MAX_TREE_DEPTH,
    logger: Optional[ConnectorLogger] = None,
) -> Dict[ElementHandle, int]:
    """Count the primitive leaves ``root`` decomposes into."""
    return decompose(store, root, max_depth=max_depth, logger=logger).leaf_counts()


def leaf_multiset_for(
    store: GraphStore,
    requested: Iterable[Tuple[ElementHandle, int]],
    max_depth: Optional[int] = DEFAULT_MAX_TREE_DEPTH,
    logger: Optional[ConnectorLogger] = None,
) -> Dict[ElementHandle, int]:
    """
    Crack a list of (element, quantity) requests into primitive counts.

    Repeated elements in ``requested`` are merged first, so each distinct
    element is decomposed once; leaf counts are scaled by the merged
    quantity and summed across elements.
    """
    merged: Dict[ElementHandle, int] = {}
    for ele, count in requested:
        if count < 0:
            raise DomainError("[0, +inf)", count, what=f"requested quantity of {ele.name}")
        merged[ele] = merged.get(ele, 0) + count

    totals: Counter = Counter()
    for ele, count in merged.items():
        if count == 0:
            continue
        for leaf, leaf_count in leaf_multiset(store, ele, max_depth=max_depth, logger=logger).items():
            totals[leaf] += leaf_count * count

    result = dict(totals)
    if logger:
        logger.log_crack(merged, result)
    return result
