"""Load, normalise, and save connector configuration from DefaultConnectorConfig.yaml."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .connector_logging import LogLevel
from .errors import ConfigError

CONNECTOR_DIR = Path(__file__).resolve().parent
DEFAULT_CONFIG_PATH = CONNECTOR_DIR / "DefaultConnectorConfig.yaml"
DEFAULT_DATABASE_NAME = "aspects.sqlite3"


@dataclass
class ConnectorConfig:
    database_path: Path = Path(DEFAULT_DATABASE_NAME)
    curve_alpha: float = 0.7  # saturation point of the holding curve, in (0, 1)
    tree_rate: float = 0.7  # share of a tree's weight taken from its root element
    max_tree_depth: int = 64  # decomposition deeper than this means a recipe cycle
    cache_store_queries: bool = True  # memoize store reads for the duration of a command
    log_level: str = "SUMMARY"
    log_file: Optional[Path] = None


def _section(raw: Dict[str, Any], key: str) -> Dict[str, Any]:
    block = raw.get(key, {})
    if block is None:
        return {}
    if not isinstance(block, dict):
        raise ConfigError(f"section {key!r} must be a mapping, got {type(block).__name__}")
    return block


def _as_float(value: Any, key: str) -> float:
    if isinstance(value, bool):
        raise ConfigError(f"{key} must be a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{key} must be a number, got {value!r}") from None


def _as_int(value: Any, key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ConfigError(f"{key} must be an integer, got {value!r}")
    try:
        return int(value)
    except ValueError:
        raise ConfigError(f"{key} must be an integer, got {value!r}") from None


def _resolve(path_value: Any, base_dir: Path) -> Path:
    path = Path(str(path_value)).expanduser()
    if not path.is_absolute():
        path = base_dir / path
    return path


def load_config(path: Optional[Path] = None) -> ConnectorConfig:
    """Load and normalise configuration YAML into ConnectorConfig dataclass."""
    cfg_path = path or DEFAULT_CONFIG_PATH
    if not cfg_path.exists():
        return ConnectorConfig()

    try:
        with cfg_path.open("r", encoding="utf-8") as fh:
            raw = yaml.safe_load(fh) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in {cfg_path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError(f"{cfg_path} must contain a mapping at the top level")

    base_dir = cfg_path.resolve().parent

    database = raw.get("database", DEFAULT_DATABASE_NAME)
    database_path = _resolve(database, base_dir)

    curve_raw = _section(raw, "curve")
    weights_raw = _section(raw, "weights")
    search_raw = _section(raw, "search")
    logging_raw = _section(raw, "logging")

    curve_alpha = _as_float(curve_raw.get("alpha", 0.7), "curve.alpha")
    tree_rate = _as_float(weights_raw.get("treeRate", 0.7), "weights.treeRate")
    if not 0.0 <= tree_rate <= 1.0:
        raise ConfigError(f"weights.treeRate must be within [0, 1], got {tree_rate}")

    max_tree_depth = _as_int(search_raw.get("maxTreeDepth", 64), "search.maxTreeDepth")
    if max_tree_depth < 1:
        raise ConfigError(f"search.maxTreeDepth must be positive, got {max_tree_depth}")
    cache_store_queries = bool(search_raw.get("cacheStoreQueries", True))

    log_level = str(logging_raw.get("level", "SUMMARY")).upper()
    if log_level not in LogLevel.__members__:
        raise ConfigError(f"logging.level must be one of {', '.join(LogLevel.__members__)}, got {log_level!r}")
    log_file_raw = logging_raw.get("file")
    log_file = _resolve(log_file_raw, base_dir) if log_file_raw else None

    return ConnectorConfig(
        database_path=database_path,
        curve_alpha=curve_alpha,
        tree_rate=tree_rate,
        max_tree_depth=max_tree_depth,
        cache_store_queries=cache_store_queries,
        log_level=log_level,
        log_file=log_file,
    )


def save_config(config: ConnectorConfig, path: Optional[Path] = None) -> None:
    """
    Save ConnectorConfig back to YAML file.

    Parameters
    ----------
    config : ConnectorConfig
        The configuration to save
    path : Path, optional
        Path to save to. Defaults to DefaultConnectorConfig.yaml
    """
    cfg_path = path or DEFAULT_CONFIG_PATH

    data: Dict[str, Any] = {
        "database": str(config.database_path),
        "curve": {"alpha": config.curve_alpha},
        "weights": {"treeRate": config.tree_rate},
        "search": {
            "maxTreeDepth": config.max_tree_depth,
            "cacheStoreQueries": config.cache_store_queries,
        },
        "logging": {"level": config.log_level},
    }
    if config.log_file is not None:
        data["logging"]["file"] = str(config.log_file)

    with cfg_path.open("w", encoding="utf-8") as fh:
        yaml.dump(data, fh, default_flow_style=False, allow_unicode=True, sort_keys=False)
