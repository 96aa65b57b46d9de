"""
Search for chains of exactly N intermediate elements between two aspects.

N = 0, 1 and 2 are answered directly from relative sets. Larger N walks the
graph with an explicit depth-indexed stack of candidate lists:

    stack[0]   = [from]
    stack[d+1] = relatives(stack[d][-1])      (the last entry is the one chosen)

At depth N every candidate adjacent to ``to`` completes a path. Exhausted
levels are popped and the parent level advances to its next candidate; the
walk ends when level 0 is exhausted. Elements may repeat within a chain.
"""
from __future__ import annotations

from typing import List, Optional

from .connector_logging import ConnectorLogger
from .elements import ElementHandle, Path
from .errors import DomainError
from .relatives import connected, relatives
from .store import GraphStore


def _sorted_relatives(
    store: GraphStore,
    ele: ElementHandle,
    logger: Optional[ConnectorLogger] = None,
) -> List[ElementHandle]:
    return sorted(relatives(store, ele, logger))


def calc_path_steps_0(
    store: GraphStore,
    from_: ElementHandle,
    to: ElementHandle,
    logger: Optional[ConnectorLogger] = None,
) -> List[Path]:
    if connected(store, from_, to, logger):
        return [Path(from_, to)]
    return []


def calc_path_steps_1(
    store: GraphStore,
    from_: ElementHandle,
    to: ElementHandle,
    logger: Optional[ConnectorLogger] = None,
) -> List[Path]:
    a_rel = relatives(store, from_, logger)
    b_rel = relatives(store, to, logger)
    return [Path(from_, to, (inner,)) for inner in sorted(a_rel & b_rel)]


def calc_path_steps_2(
    store: GraphStore,
    from_: ElementHandle,
    to: ElementHandle,
    logger: Optional[ConnectorLogger] = None,
) -> List[Path]:
    """Every a ~ from, b ~ to with a ~ b; all |rel(from)| * |rel(to)| pairs are checked."""
    a_rel = _sorted_relatives(store, from_, logger)
    b_rel = _sorted_relatives(store, to, logger)

    ret: List[Path] = []
    for a in a_rel:
        for b in b_rel:
            if connected(store, a, b):
                ret.append(Path(from_, to, (a, b)))
    return ret


def backtrack_search(
    store: GraphStore,
    from_: ElementHandle,
    to: ElementHandle,
    steps_n: int,
    logger: Optional[ConnectorLogger] = None,
) -> List[Path]:
    """
    General chain search for any ``steps_n >= 1``.

    Candidate lists are kept in descending order so that ``pop()`` advances
    through them in ascending order; the result is in lexicographic chain order.
    """
    if steps_n < 1:
        raise ValueError(f"backtracking needs steps_n >= 1, got {steps_n}")

    end_relatives = relatives(store, to, logger)
    stack: List[List[ElementHandle]] = [[from_]]
    result_paths: List[Path] = []
    expansions = 0

    while stack:
        level = stack[-1]
        depth = len(stack) - 1

        if not level:
            # Level exhausted: drop it and advance the parent to its next candidate.
            stack.pop()
            if stack:
                stack[-1].pop()
            continue

        if depth < steps_n:
            chosen = level[-1]
            candidates = _sorted_relatives(store, chosen, logger)
            candidates.reverse()
            stack.append(candidates)
            expansions += 1
            if logger:
                logger.log_backtrack_step(depth + 1, chosen, len(candidates))
            continue

        # Last step: every remaining candidate that touches the end is a path.
        prefix = tuple(chosen_level[-1] for chosen_level in stack[1:-1])
        for candidate in reversed(level):
            if candidate in end_relatives:
                result_paths.append(Path(from_, to, prefix + (candidate,)))
        stack.pop()
        stack[-1].pop()

    if logger:
        logger.log_backtrack_summary(steps_n, expansions, len(result_paths))
    return result_paths


def search_paths(
    store: GraphStore,
    from_: ElementHandle,
    to: ElementHandle,
    steps_n: int,
    logger: Optional[ConnectorLogger] = None,
) -> List[Path]:
    """
    Find every chain from ``from_`` to ``to`` with exactly ``steps_n`` intermediates.

    Both endpoints must already be known to exist. The returned paths are
    unranked.
    """
    if steps_n < 0:
        raise DomainError("[0, +inf)", steps_n, what="steps_n")

    if logger:
        logger.log_search_start(from_, to, steps_n)

    if steps_n == 0:
        paths = calc_path_steps_0(store, from_, to, logger)
    elif steps_n == 1:
        paths = calc_path_steps_1(store, from_, to, logger)
    elif steps_n == 2:
        paths = calc_path_steps_2(store, from_, to, logger)
    else:
        paths = backtrack_search(store, from_, to, steps_n, logger)

    if logger:
        logger.log_paths_found(paths)
    return paths
