#!/usr/bin/env python
"""CLI entry point for the aspect connector."""
from __future__ import annotations

import argparse
import sys
from dataclasses import replace
from pathlib import Path
from typing import Dict, List, Sequence, Tuple

from .config import ConnectorConfig, load_config
from .connector_logging import ConnectorLogger, LogLevel, create_logger, parse_log_level
from .elements import ElementHandle
from .engine import ConnectorEngine
from .errors import ConfigError, ConnectorError, DomainError
from .recipe_import import import_recipes
from .store import SQLiteGraphStore


def parse_crack_request(tokens: Sequence[str]) -> List[Tuple[str, int]]:
    """
    Turn ``Aer 3 Lux Motus 2`` into ``[("Aer", 3), ("Lux", 1), ("Motus", 2)]``.

    A quantity applies to the aspect right before it; aspects without one
    count once. A quantity with no aspect before it is rejected.
    """
    requested: List[Tuple[str, int]] = []
    pending_quantity = False
    for token in tokens:
        try:
            quantity = int(token)
        except ValueError:
            requested.append((token, 1))
            pending_quantity = True
            continue
        if not pending_quantity:
            raise DomainError("an aspect name before each quantity", token, what="crack arguments")
        requested[-1] = (requested[-1][0], quantity)
        pending_quantity = False
    return requested


def format_crack(result: Dict[ElementHandle, int]) -> str:
    return "\n".join(f"{ele.name}: {count}" for ele, count in sorted(result.items()))


def format_holdings(holdings: Sequence[Tuple[ElementHandle, float]]) -> str:
    lines = []
    for ele, quantity in holdings:
        shown = int(quantity) if float(quantity).is_integer() else quantity
        lines.append(f"Element: {ele.name} | Number: {shown}")
    return "\n".join(lines)


def _emit(text: str) -> None:
    if text:
        print(text)


def _open_store(config: ConnectorConfig) -> SQLiteGraphStore:
    if not config.database_path.exists():
        raise ConfigError(f"database {config.database_path} not found (create it with init-db)")
    return SQLiteGraphStore(config.database_path)


# ---------------------------------------------------------------------------
# Subcommands
# ---------------------------------------------------------------------------

def cmd_crack(args, config: ConnectorConfig, logger: ConnectorLogger) -> int:
    requested = parse_crack_request(args.tokens)
    with ConnectorEngine.from_config(config, logger=logger) as engine:
        result = engine.leaf_multiset_for(requested)
    _emit(format_crack(result))
    return 0


def cmd_try_connect(args, config: ConnectorConfig, logger: ConnectorLogger) -> int:
    with ConnectorEngine.from_config(config, logger=logger) as engine:
        paths = engine.search_ranked(args.from_, args.to, args.steps_n)
    if not paths:
        print("can't be connected", file=sys.stderr)
        return 1
    _emit("\n".join(str(p) for p in paths))
    return 0


def cmd_list_elements(args, config: ConnectorConfig, logger: ConnectorLogger) -> int:
    with _open_store(config) as store:
        elements = store.list_elements()
    _emit("\n".join(e.pretty_print() for e in elements))
    return 0


def cmd_list_recipes(args, config: ConnectorConfig, logger: ConnectorLogger) -> int:
    with _open_store(config) as store:
        recipes = store.list_recipes()
    _emit("\n".join(str(r) for r in recipes))
    return 0


def cmd_list_mods(args, config: ConnectorConfig, logger: ConnectorLogger) -> int:
    with _open_store(config) as store:
        mods = store.list_mods()
    _emit("\n".join(mods))
    return 0


def cmd_list_holdings(args, config: ConnectorConfig, logger: ConnectorLogger) -> int:
    with _open_store(config) as store:
        holdings = store.list_holdings()
    _emit(format_holdings(holdings))
    return 0


def cmd_list_primaries(args, config: ConnectorConfig, logger: ConnectorLogger) -> int:
    with _open_store(config) as store:
        primaries = store.primary_elements()
    _emit("\n".join(e.name for e in primaries))
    return 0


def cmd_change_holding(args, config: ConnectorConfig, logger: ConnectorLogger) -> int:
    with _open_store(config) as store:
        store.set_held_quantity(ElementHandle(args.name), args.quantity)
    logger.log_store_change(f"{args.name} holding set to {args.quantity}")
    return 0


def cmd_init_db(args, config: ConnectorConfig, logger: ConnectorLogger) -> int:
    config.database_path.parent.mkdir(parents=True, exist_ok=True)
    with SQLiteGraphStore(config.database_path, initialize=True):
        pass
    logger.log_store_change(f"Initialized {config.database_path}")
    return 0


def cmd_import_recipes(args, config: ConnectorConfig, logger: ConnectorLogger) -> int:
    with _open_store(config) as store:
        summary = import_recipes(store, args.csv)
    print(
        f"Imported {summary.elements} elements and {summary.recipes} recipes "
        f"({summary.skipped} already present)"
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="aspect-connector",
        description="Find and rank chains of related aspects in a recipe database.",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help="Path to config YAML (default: Connector/DefaultConnectorConfig.yaml)",
    )
    parser.add_argument(
        "-d",
        "--database",
        type=Path,
        default=None,
        help="SQLite database to use instead of the configured one",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=[level.name for level in LogLevel],
        help="Log verbosity on stderr (default: from config)",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    crack = sub.add_parser("crack", help="Break aspects down into primal counts")
    crack.add_argument("tokens", nargs="+", metavar="ASPECT [QTY]")
    crack.set_defaults(func=cmd_crack)

    connect = sub.add_parser("try-connect", help="Rank chains linking two aspects")
    connect.add_argument("from_", metavar="FROM")
    connect.add_argument("to", metavar="TO")
    connect.add_argument("steps_n", type=int, metavar="STEPS_N")
    connect.set_defaults(func=cmd_try_connect)

    sub.add_parser("list-elements", help="List every element").set_defaults(func=cmd_list_elements)
    sub.add_parser("list-recipes", help="List every recipe").set_defaults(func=cmd_list_recipes)
    sub.add_parser("list-mods", help="List mods owning elements").set_defaults(func=cmd_list_mods)
    sub.add_parser("list-holdings", help="List held quantities").set_defaults(func=cmd_list_holdings)
    sub.add_parser("list-primaries", help="List elements without a recipe").set_defaults(func=cmd_list_primaries)

    change = sub.add_parser("change-holding", help="Set the held quantity of an element")
    change.add_argument("name", metavar="NAME")
    change.add_argument("quantity", type=float, metavar="QUANTITY")
    change.set_defaults(func=cmd_change_holding)

    sub.add_parser("init-db", help="Create the database schema").set_defaults(func=cmd_init_db)

    importer = sub.add_parser("import-recipes", help="Load elements and recipes from CSV")
    importer.add_argument("csv", type=Path, metavar="CSV")
    importer.set_defaults(func=cmd_import_recipes)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logger = None
    try:
        config = load_config(args.config)
        if args.database is not None:
            config = replace(config, database_path=args.database)
        level = parse_log_level(args.log_level or config.log_level)
        logger = create_logger(level, log_file=config.log_file)
        return args.func(args, config, logger)
    except ConnectorError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    finally:
        if logger is not None:
            logger.close()


if __name__ == "__main__":
    sys.exit(main())
