"""Tests for importing elements and recipes from CSV."""
from __future__ import annotations

from pathlib import Path

import pytest

from Connector.elements import Decomposed, ElementHandle
from Connector.errors import RecipeParseError
from Connector.recipe_import import ImportSummary, import_recipes

EH = ElementHandle

HEADER = "name,component_a,component_b,mod,base_value\n"


def write_csv(tmp_path: Path, body: str, header: str = HEADER) -> Path:
    path = tmp_path / "recipes.csv"
    path.write_text(header + body, encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Tests: Successful imports
# ---------------------------------------------------------------------------

class TestImport:

    def test_primitives_and_recipes(self, empty_store, tmp_path):
        path = write_csv(tmp_path, (
            "Aer,,,Thaumcraft,1\n"
            "Ignis,,,Thaumcraft,1\n"
            "Lux,Aer,Ignis,Thaumcraft,2.5\n"
        ))
        summary = import_recipes(empty_store, path)

        assert summary == ImportSummary(elements=3, recipes=1, skipped=0)
        assert empty_store.components(EH("Lux")) == Decomposed(EH("Aer"), EH("Ignis"))
        assert empty_store.base_value(EH("Lux")) == 2.5
        assert empty_store.held_quantity(EH("Lux")) == 0.0
        assert [h.name for h, _ in empty_store.list_holdings()] == ["Aer", "Ignis", "Lux"]

    def test_products_may_precede_components(self, empty_store, tmp_path):
        path = write_csv(tmp_path, (
            "Lux,Aer,Ignis,,\n"
            "Aer,,,,\n"
            "Ignis,,,,\n"
        ))
        import_recipes(empty_store, path)
        assert empty_store.is_primary(EH("Aer"))
        assert not empty_store.is_primary(EH("Lux"))

    def test_optional_columns(self, empty_store, tmp_path):
        path = write_csv(tmp_path, "Aer,,\nIgnis,,\nLux,Aer,Ignis\n",
                         header="name,component_a,component_b\n")
        import_recipes(empty_store, path)
        assert empty_store.base_value(EH("Lux")) == 1.0
        assert empty_store.list_mods() == []

    def test_whitespace_tolerated(self, empty_store, tmp_path):
        path = write_csv(tmp_path, "Aer, , ,Thaumcraft, 1\nIgnis,,,,\nLux, Aer, Ignis,,\n")
        import_recipes(empty_store, path)
        assert empty_store.components(EH("Lux")) == Decomposed(EH("Aer"), EH("Ignis"))

    def test_existing_elements_skipped(self, store, tmp_path):
        path = write_csv(tmp_path, (
            "Aer,,,Thaumcraft,1\n"
            "Gula,Fames,Vacuos,ForbiddenMagic,1\n"
        ))
        summary = import_recipes(store, path)

        assert summary == ImportSummary(elements=1, recipes=1, skipped=1)
        assert store.components(EH("Gula")) == Decomposed(EH("Fames"), EH("Vacuos"))
        assert EH("Gula") in store.products_using(EH("Fames"))
        assert store.list_mods() == ["ForbiddenMagic", "Thaumcraft"]


# ---------------------------------------------------------------------------
# Tests: Rejected files
# ---------------------------------------------------------------------------

class TestImportErrors:
    """Errors carry the 1-based file line (the header is line 1)."""

    def test_missing_column(self, empty_store, tmp_path):
        path = write_csv(tmp_path, "Aer,\n", header="name,component_a\n")
        with pytest.raises(RecipeParseError) as exc_info:
            import_recipes(empty_store, path)
        assert exc_info.value.line_number == 1

    def test_single_component(self, empty_store, tmp_path):
        path = write_csv(tmp_path, "Aer,,,,\nLux,Aer,,,\n")
        with pytest.raises(RecipeParseError) as exc_info:
            import_recipes(empty_store, path)
        assert exc_info.value.line_number == 3

    def test_bad_base_value(self, empty_store, tmp_path):
        path = write_csv(tmp_path, "Aer,,,,heavy\n")
        with pytest.raises(RecipeParseError) as exc_info:
            import_recipes(empty_store, path)
        assert exc_info.value.line_number == 2
        assert "base_value" in str(exc_info.value)

    def test_non_positive_base_value(self, empty_store, tmp_path):
        path = write_csv(tmp_path, "Aer,,,,1\nIgnis,,,,0\n")
        with pytest.raises(RecipeParseError) as exc_info:
            import_recipes(empty_store, path)
        assert exc_info.value.line_number == 3

    def test_blank_name(self, empty_store, tmp_path):
        path = write_csv(tmp_path, "Aer,,,,\n,,,,\n")
        with pytest.raises(RecipeParseError) as exc_info:
            import_recipes(empty_store, path)
        assert exc_info.value.line_number == 3

    def test_duplicate_name(self, empty_store, tmp_path):
        path = write_csv(tmp_path, "Aer,,,,\nIgnis,,,,\nAer,,,,\n")
        with pytest.raises(RecipeParseError) as exc_info:
            import_recipes(empty_store, path)
        assert exc_info.value.line_number == 4

    def test_self_component(self, empty_store, tmp_path):
        path = write_csv(tmp_path, "Aer,,,,\nLux,Lux,Aer,,\n")
        with pytest.raises(RecipeParseError):
            import_recipes(empty_store, path)

    def test_undeclared_component(self, empty_store, tmp_path):
        path = write_csv(tmp_path, "Aer,,,,\nLux,Aer,Ignis,,\n")
        with pytest.raises(RecipeParseError) as exc_info:
            import_recipes(empty_store, path)
        assert exc_info.value.line_number == 3
        assert "Ignis" in str(exc_info.value)

    def test_nothing_written_on_error(self, empty_store, tmp_path):
        path = write_csv(tmp_path, "Aer,,,,\nIgnis,,,,\nLux,Aer,Nox,,\n")
        with pytest.raises(RecipeParseError):
            import_recipes(empty_store, path)
        assert empty_store.list_elements() == []

    def test_empty_file(self, empty_store, tmp_path):
        path = write_csv(tmp_path, "", header="")
        with pytest.raises(RecipeParseError) as exc_info:
            import_recipes(empty_store, path)
        assert exc_info.value.line_number == 1

    def test_invalid_utf8(self, empty_store, tmp_path):
        path = tmp_path / "recipes.csv"
        path.write_bytes(b"name,component_a,component_b\n\xff\xfe,,\n")
        with pytest.raises(RecipeParseError) as exc_info:
            import_recipes(empty_store, path)
        assert exc_info.value.line_number == 1
        assert isinstance(exc_info.value.__cause__, UnicodeDecodeError)
        assert empty_store.list_elements() == []

    def test_missing_file(self, empty_store, tmp_path):
        with pytest.raises(RecipeParseError) as exc_info:
            import_recipes(empty_store, tmp_path / "absent.csv")
        assert isinstance(exc_info.value.__cause__, FileNotFoundError)
