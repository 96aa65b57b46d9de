"""Bulk-load elements and recipes from a CSV file into the SQLite store.

Expected columns (header row required):

    name,component_a,component_b,mod,base_value
    Aer,,,,1
    Lux,Aer,Ignis,Thaumcraft,1

Components are left blank for primitive elements; ``mod`` and ``base_value``
are optional (``base_value`` defaults to 1).
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .elements import Element, ElementHandle, Recipe
from .errors import RecipeParseError
from .store import SQLiteGraphStore

REQUIRED_COLUMNS: tuple[str, ...] = ("name", "component_a", "component_b")
OPTIONAL_COLUMNS: tuple[str, ...] = ("mod", "base_value")

# Data rows start on line 2 of the file, after the header.
FIRST_DATA_LINE = 2


class RecipeRow(BaseModel):
    """One validated CSV row."""
    name: str = Field(min_length=1)
    component_a: Optional[str] = None
    component_b: Optional[str] = None
    mod: Optional[str] = None
    base_value: float = Field(default=1.0, gt=0)

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("component_a", "component_b", "mod", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @model_validator(mode="after")
    def _both_components_or_neither(self) -> "RecipeRow":
        if (self.component_a is None) != (self.component_b is None):
            raise ValueError("a recipe needs exactly two components")
        if self.component_a is not None and self.name in (self.component_a, self.component_b):
            raise ValueError("an element cannot be its own component")
        return self

    @property
    def has_recipe(self) -> bool:
        return self.component_a is not None


@dataclass(frozen=True)
class ImportSummary:
    elements: int
    recipes: int
    skipped: int = 0


def _line_from_parser_error(exc: Exception) -> int:
    match = re.search(r"line (\d+)", str(exc))
    return int(match.group(1)) if match else 1


def read_recipe_frame(path: Path) -> pd.DataFrame:
    """Read the CSV as strings, blank cells kept as empty strings."""
    try:
        frame = pd.read_csv(path, dtype=str, keep_default_na=False, skipinitialspace=True)
    except pd.errors.EmptyDataError:
        raise RecipeParseError(1, "file is empty") from None
    except pd.errors.ParserError as exc:
        raise RecipeParseError(_line_from_parser_error(exc), str(exc)) from exc
    except UnicodeDecodeError as exc:
        raise RecipeParseError(1, f"not valid UTF-8: {exc.reason} at byte {exc.start}") from exc
    except OSError as exc:
        raise RecipeParseError(1, f"cannot read {path}: {exc.strerror or exc}") from exc

    frame.columns = [str(c).strip() for c in frame.columns]
    missing = [c for c in REQUIRED_COLUMNS if c not in frame.columns]
    if missing:
        raise RecipeParseError(1, f"missing columns: {', '.join(missing)}")
    return frame


def parse_recipe_rows(frame: pd.DataFrame) -> List[RecipeRow]:
    """
    Validate every row before anything is written.

    Raises
    ------
    RecipeParseError
        On the first invalid row, naming its line in the file.
    """
    rows: List[RecipeRow] = []
    seen: Set[str] = set()
    columns = [c for c in REQUIRED_COLUMNS + OPTIONAL_COLUMNS if c in frame.columns]

    for offset, record in enumerate(frame[columns].to_dict("records")):
        line_number = FIRST_DATA_LINE + offset
        # Blank optional cells fall back to the model defaults.
        data: Dict[str, Any] = {k: v for k, v in record.items() if not (k in OPTIONAL_COLUMNS and v == "")}
        try:
            row = RecipeRow.model_validate(data)
        except ValidationError as exc:
            first = exc.errors()[0]
            field_name = ".".join(str(p) for p in first.get("loc", ())) or "row"
            raise RecipeParseError(line_number, f"{field_name}: {first.get('msg')}") from exc
        if row.name in seen:
            raise RecipeParseError(line_number, f"duplicate element {row.name!r}")
        seen.add(row.name)
        rows.append(row)
    return rows


def import_recipes(store: SQLiteGraphStore, path: Path) -> ImportSummary:
    """
    Import a recipe CSV into ``store``.

    Elements already present in the store are skipped together with their
    recipe rows. Every component must be declared in the file or already
    exist in the store.
    """
    rows = parse_recipe_rows(read_recipe_frame(path))

    declared = {row.name for row in rows}
    new_rows: List[RecipeRow] = []
    skipped = 0
    for row in rows:
        if store.exists(ElementHandle(row.name)):
            skipped += 1
        else:
            new_rows.append(row)

    for offset, row in enumerate(rows):
        if not row.has_recipe:
            continue
        for component in (row.component_a, row.component_b):
            if component not in declared and not store.exists(ElementHandle(component)):
                raise RecipeParseError(
                    FIRST_DATA_LINE + offset,
                    f"component {component!r} of {row.name!r} is not declared",
                )

    for row in new_rows:
        store.add_element(Element(name=row.name, belongs_to_mod=row.mod, base_value=row.base_value))

    recipes = 0
    for row in new_rows:
        if row.has_recipe:
            store.add_recipe(Recipe(
                ElementHandle(row.name),
                ElementHandle(row.component_a),
                ElementHandle(row.component_b),
            ))
            recipes += 1

    return ImportSummary(elements=len(new_rows), recipes=recipes, skipped=skipped)
