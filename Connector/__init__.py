"""Aspect connector: find and rank chains of related aspects in a recipe graph."""
from .config import load_config, ConnectorConfig
from .elements import ElementHandle, Element, Recipe, Decomposed, Primitive, PRIMITIVE, Path
from .errors import (
    ConnectorError,
    ElementNotFoundError,
    StoreIntegrityError,
    StoreError,
    DomainError,
    DegenerateCurveError,
    RecipeParseError,
    ConfigError,
)
from .store import GraphStore, SQLiteGraphStore, CachingGraphStore
from .relatives import relatives, connected
from .paths import search_paths
from .decompose import DecompositionTree, decompose, leaf_multiset_for
from .weights import SaturatingCurve, element_weight, tree_weight
from .ranking import path_weight, rank_paths, is_path_viable
from .engine import ConnectorEngine
from .connector_logging import LogLevel, ConnectorLogger, create_logger, create_string_logger

__all__ = [
    "load_config",
    "ConnectorConfig",
    "ElementHandle",
    "Element",
    "Recipe",
    "Decomposed",
    "Primitive",
    "PRIMITIVE",
    "Path",
    # Errors
    "ConnectorError",
    "ElementNotFoundError",
    "StoreIntegrityError",
    "StoreError",
    "DomainError",
    "DegenerateCurveError",
    "RecipeParseError",
    "ConfigError",
    # Store
    "GraphStore",
    "SQLiteGraphStore",
    "CachingGraphStore",
    # Core
    "relatives",
    "connected",
    "search_paths",
    "DecompositionTree",
    "decompose",
    "leaf_multiset_for",
    "SaturatingCurve",
    "element_weight",
    "tree_weight",
    "path_weight",
    "rank_paths",
    "is_path_viable",
    "ConnectorEngine",
    "LogLevel",
    "ConnectorLogger",
    "create_logger",
    "create_string_logger",
]
