"""
Structured logging for the path search and weighting engine.

Verbosity levels:
    - MINIMAL: Errors only
    - SUMMARY: Search parameters, result counts, store changes
    - DETAILED: Ranking tables, crack breakdowns, backtracking totals
    - DEBUG: Decomposition trees and store cache statistics
    - TRACE: Every relative set and every backtracking step

Usage:
    from Connector.connector_logging import ConnectorLogger, LogLevel

    logger = ConnectorLogger(level=LogLevel.DETAILED)
    paths = search_paths(store, a, b, 3, logger=logger)
    ranked = rank_paths(store, paths, curve, logger=logger)

Records go to stderr by default so that command output on stdout stays clean.
"""
from __future__ import annotations

import sys
from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from io import StringIO
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, FrozenSet, List, Optional, Sequence, TextIO, Tuple, Union

if TYPE_CHECKING:
    from .config import ConnectorConfig
    from .decompose import DecompositionTree
    from .elements import ElementHandle
    from .elements import Path as ElementPath


class LogLevel(IntEnum):
    """Verbosity levels; a logger keeps records at or below its own level."""
    SILENT = 0
    MINIMAL = 10
    SUMMARY = 20
    DETAILED = 30
    DEBUG = 40
    TRACE = 50


@dataclass
class LogRecord:
    """One emitted line, kept for programmatic inspection."""
    level: LogLevel
    category: str
    message: str
    created: datetime = field(default_factory=datetime.now)

    def render(self, show_time: bool = True, show_level: bool = True) -> str:
        prefix = ""
        if show_time:
            prefix += self.created.strftime("%H:%M:%S.%f")[:-3] + " "
        if show_level:
            prefix += f"{self.level.name:<8} "
        return f"{prefix}[{self.category}] {self.message}"


@dataclass
class ConnectorLogger:
    """
    Leveled logger for the connector.

    Attributes
    ----------
    level : LogLevel
        Records more verbose than this are dropped before formatting
    output : TextIO | None
        Stream for rendered records (defaults to sys.stderr)
    log_to_file : Path | None
        Also append rendered records to this file
    records : list[LogRecord]
        Every record kept so far
    """
    level: LogLevel = LogLevel.SUMMARY
    output: Optional[TextIO] = None
    log_to_file: Optional[Path] = None
    show_time: bool = True
    show_level: bool = True
    records: List[LogRecord] = field(default_factory=list)
    _sink: Optional[TextIO] = field(default=None, repr=False)

    def __post_init__(self):
        if self.output is None:
            self.output = sys.stderr
        if self.log_to_file is not None:
            self._sink = Path(self.log_to_file).open("a", encoding="utf-8")

    def enabled(self, level: LogLevel) -> bool:
        return level != LogLevel.SILENT and level <= self.level

    def close(self) -> None:
        if self._sink is not None:
            self._sink.close()
            self._sink = None

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    def emit(self, level: LogLevel, category: str, message: str) -> None:
        if not self.enabled(level):
            return
        record = LogRecord(level=level, category=category, message=message)
        self.records.append(record)
        line = record.render(self.show_time, self.show_level) + "\n"
        for stream in (self.output, self._sink):
            if stream is not None:
                stream.write(line)
                stream.flush()

    def emit_table(self, level: LogLevel, category: str, title: str,
                   columns: Sequence[str], rows: Sequence[Sequence[Any]]) -> None:
        """Emit an aligned table, one record per line."""
        if not self.enabled(level):
            return
        cells = [[str(c) for c in columns]] + [[str(v) for v in row] for row in rows]
        widths = [max(len(r[i]) for r in cells) for i in range(len(columns))]

        def line(row: Sequence[str]) -> str:
            return "  ".join(v.ljust(w) for v, w in zip(row, widths)).rstrip()

        self.emit(level, category, title)
        self.emit(level, category, line(cells[0]))
        self.emit(level, category, "  ".join("-" * w for w in widths))
        for row in cells[1:]:
            self.emit(level, category, line(row))

    def error(self, message: str) -> None:
        self.emit(LogLevel.MINIMAL, "ERROR", message)

    # -------------------------------------------------------------------------
    # Configuration and store
    # -------------------------------------------------------------------------

    def log_config(self, config: "ConnectorConfig") -> None:
        self.emit(LogLevel.SUMMARY, "CONFIG", f"Database: {config.database_path}")
        self.emit(LogLevel.DETAILED, "CONFIG",
                  f"Curve alpha={config.curve_alpha:.3f}, tree rate={config.tree_rate:.3f}, "
                  f"max tree depth={config.max_tree_depth}, "
                  f"store cache={'on' if config.cache_store_queries else 'off'}")

    def log_store_change(self, message: str) -> None:
        self.emit(LogLevel.SUMMARY, "STORE", message)

    def log_store_stats(self, hits: int, misses: int) -> None:
        total = hits + misses
        ratio = hits / total if total else 0.0
        self.emit(LogLevel.DEBUG, "STORE",
                  f"Store cache: {hits} hits, {misses} misses ({ratio:.1%} hit rate)")

    # -------------------------------------------------------------------------
    # Path search
    # -------------------------------------------------------------------------

    def log_search_start(self, from_: "ElementHandle", to: "ElementHandle", steps_n: int) -> None:
        strategy = "direct" if steps_n <= 2 else "backtracking"
        self.emit(LogLevel.SUMMARY, "SEARCH",
                  f"Connecting {from_.name} -> {to.name} with {steps_n} steps ({strategy})")

    def log_relatives(self, ele: "ElementHandle", rel: FrozenSet["ElementHandle"]) -> None:
        if not self.enabled(LogLevel.TRACE):
            return
        names = ", ".join(sorted(e.name for e in rel))
        self.emit(LogLevel.TRACE, "RELATIVES", f"{ele.name}: {{{names}}}")

    def log_backtrack_step(self, depth: int, chosen: "ElementHandle", num_candidates: int) -> None:
        if self.enabled(LogLevel.TRACE):
            self.emit(LogLevel.TRACE, "BACKTRACK",
                      f"depth {depth}: expanding {chosen.name}, {num_candidates} candidates")

    def log_backtrack_summary(self, steps_n: int, expansions: int, found: int) -> None:
        self.emit(LogLevel.DETAILED, "BACKTRACK",
                  f"steps_n={steps_n}: {expansions} expansions, {found} paths")

    def log_paths_found(self, paths: Sequence["ElementPath"]) -> None:
        self.emit(LogLevel.SUMMARY, "SEARCH", f"Found {len(paths)} paths")
        if self.enabled(LogLevel.DEBUG):
            for p in paths:
                self.emit(LogLevel.DEBUG, "SEARCH", f"  {p.render(include_weight=False)}")

    def log_ranked_paths(self, paths: Sequence["ElementPath"], top_n: int = 20) -> None:
        if not paths or not self.enabled(LogLevel.DETAILED):
            return
        rows: List[List[Any]] = [[i + 1, f"{p.weight:.6f}", p.render(include_weight=False)]
                                 for i, p in enumerate(paths[:top_n])]
        if len(paths) > top_n:
            rows.append(["...", f"+{len(paths) - top_n}", ""])
        self.emit_table(LogLevel.DETAILED, "RANK", "Ranked Paths", ["#", "Weight", "Path"], rows)

    # -------------------------------------------------------------------------
    # Decomposition and weights
    # -------------------------------------------------------------------------

    def log_tree_built(self, tree: "DecompositionTree") -> None:
        if self.enabled(LogLevel.DEBUG):
            self.emit(LogLevel.DEBUG, "TREE",
                      f"{tree.root.name}: {len(tree)} nodes, depth {tree.depth}, "
                      f"{len(tree.leaves())} leaves")

    def log_tree_weight(self, root: "ElementHandle", root_weight: float,
                        sub_weight: float, weight: float) -> None:
        if self.enabled(LogLevel.TRACE):
            self.emit(LogLevel.TRACE, "WEIGHT",
                      f"{root.name}: root={root_weight:.6f}, sub={sub_weight:.6f}, "
                      f"tree={weight:.6f}")

    def log_crack(self, requested: Dict["ElementHandle", int],
                  result: Dict["ElementHandle", int]) -> None:
        self.emit(LogLevel.SUMMARY, "CRACK",
                  f"Cracked {len(requested)} aspects into {len(result)} primitives "
                  f"({sum(result.values())} total)")
        if result:
            rows = [[ele.name, count] for ele, count in sorted(result.items())]
            self.emit_table(LogLevel.DETAILED, "CRACK", "Primitive Breakdown",
                            ["Primitive", "Count"], rows)

    # -------------------------------------------------------------------------
    # Inspection
    # -------------------------------------------------------------------------

    def select(self, level: Optional[LogLevel] = None,
               category: Optional[str] = None) -> List[LogRecord]:
        """Records at or below ``level`` and/or in ``category``."""
        return [
            r for r in self.records
            if (level is None or r.level <= level)
            and (category is None or r.category == category)
        ]

    def dump(self, level: Optional[LogLevel] = None) -> str:
        return "\n".join(r.render(self.show_time, self.show_level)
                         for r in self.select(level=level))

    def reset(self) -> None:
        self.records.clear()


def parse_log_level(level: Union[LogLevel, str, int]) -> LogLevel:
    """Accept a LogLevel, its name (any case) or its integer value."""
    if isinstance(level, LogLevel):
        return level
    if isinstance(level, str):
        try:
            return LogLevel[level.strip().upper()]
        except KeyError:
            raise ValueError(f"unknown log level: {level!r}") from None
    return LogLevel(level)


def create_logger(
    level: Union[LogLevel, str, int] = LogLevel.SUMMARY,
    output: Optional[TextIO] = None,
    log_file: Optional[Path] = None,
) -> ConnectorLogger:
    """
    Build a ConnectorLogger.

    Parameters
    ----------
    level : LogLevel | str | int
        Verbosity, as an enum member, a level name or its numeric value.
    output : TextIO | None
        Stream for rendered records. Defaults to sys.stderr.
    log_file : Path | None
        File that also receives every record.
    """
    return ConnectorLogger(level=parse_log_level(level), output=output, log_to_file=log_file)


def create_string_logger(level: LogLevel = LogLevel.DETAILED) -> Tuple[ConnectorLogger, StringIO]:
    """Logger writing into an in-memory buffer; returns both."""
    buffer = StringIO()
    return ConnectorLogger(level=level, output=buffer), buffer
