"""Tests for the command line interface."""
from __future__ import annotations

from pathlib import Path

import pytest

from Connector.errors import DomainError
from Connector.run_connector import main, parse_crack_request


def run(capsys, db: Path, *args: str):
    code = main(["-d", str(db), "--log-level", "SILENT", *args])
    captured = capsys.readouterr()
    return code, captured.out, captured.err


# ---------------------------------------------------------------------------
# Tests: Argument parsing
# ---------------------------------------------------------------------------

class TestCrackArguments:

    def test_quantities_optional(self):
        assert parse_crack_request(["Aer", "3", "Lux", "Motus", "2"]) == [
            ("Aer", 3), ("Lux", 1), ("Motus", 2),
        ]

    def test_first_token_must_be_aspect(self):
        with pytest.raises(DomainError):
            parse_crack_request(["3", "Aer"])

    def test_two_quantities_in_a_row(self):
        with pytest.raises(DomainError):
            parse_crack_request(["Aer", "3", "4"])


# ---------------------------------------------------------------------------
# Tests: Search commands
# ---------------------------------------------------------------------------

class TestSearchCommands:

    def test_crack(self, capsys, tc4_db):
        code, out, err = run(capsys, tc4_db, "crack", "Lux", "2", "Aer")
        assert code == 0
        assert out.splitlines() == ["Aer: 3", "Ignis: 2"]

    def test_crack_unknown_aspect(self, capsys, tc4_db):
        code, out, err = run(capsys, tc4_db, "crack", "Lux", "Nonexistent")
        assert code == 2
        assert out == ""
        assert "Nonexistent" in err

    def test_crack_leading_quantity(self, capsys, tc4_db):
        code, out, err = run(capsys, tc4_db, "crack", "2", "Lux")
        assert code == 2
        assert out == ""

    def test_try_connect(self, capsys, tc4_db):
        code, out, err = run(capsys, tc4_db, "try-connect", "Humanus", "Ignis", "2")
        assert code == 0
        lines = out.splitlines()
        assert len(lines) == 1
        assert lines[0].startswith("Humanus->Instrumentum->Telum->Ignis: weight ")

    def test_try_connect_ranked(self, capsys, tc4_db):
        run(capsys, tc4_db, "change-holding", "Victus", "1000")
        code, out, err = run(capsys, tc4_db, "try-connect", "Bestia", "Spiritus", "2")
        assert code == 0
        assert [line.split(":")[0] for line in out.splitlines()] == [
            "Bestia->Victus->Mortuus->Spiritus",
            "Bestia->Corpus->Mortuus->Spiritus",
            "Bestia->Humanus->Cognitio->Spiritus",
        ]

    def test_try_connect_not_connected(self, capsys, tc4_db):
        code, out, err = run(capsys, tc4_db, "try-connect", "Aer", "Ignis", "2")
        assert code == 1
        assert out == ""
        assert "can't be connected" in err

    def test_try_connect_unknown(self, capsys, tc4_db):
        code, out, err = run(capsys, tc4_db, "try-connect", "Aer", "Nonexistent", "1")
        assert code == 2
        assert "doesn't exist" in err

    def test_try_connect_negative_steps(self, capsys, tc4_db):
        code, out, err = run(capsys, tc4_db, "try-connect", "Aer", "Ignis", "-1")
        assert code == 2
        assert out == ""


# ---------------------------------------------------------------------------
# Tests: Listing and holdings
# ---------------------------------------------------------------------------

class TestListCommands:

    def test_list_elements(self, capsys, tc4_db):
        code, out, _ = run(capsys, tc4_db, "list-elements")
        assert code == 0
        assert out.splitlines()[0] == "Aer,Thaumcraft,1.0"
        assert len(out.splitlines()) == 48

    def test_list_recipes(self, capsys, tc4_db):
        _, out, _ = run(capsys, tc4_db, "list-recipes")
        assert "Humanus = Bestia + Cognitio" in out.splitlines()

    def test_list_mods(self, capsys, tc4_db):
        _, out, _ = run(capsys, tc4_db, "list-mods")
        assert out == "Thaumcraft\n"

    def test_list_primaries(self, capsys, tc4_db):
        _, out, _ = run(capsys, tc4_db, "list-primaries")
        assert out.splitlines() == ["Aer", "Aqua", "Ignis", "Ordo", "Perditio", "Terra"]

    def test_change_and_list_holdings(self, capsys, tc4_db):
        code, _, _ = run(capsys, tc4_db, "change-holding", "Aer", "12")
        assert code == 0
        _, out, _ = run(capsys, tc4_db, "list-holdings")
        assert "Element: Aer | Number: 12" in out.splitlines()
        assert "Element: Lux | Number: 0" in out.splitlines()

    def test_change_holding_negative(self, capsys, tc4_db):
        code, _, err = run(capsys, tc4_db, "change-holding", "Aer", "-5")
        assert code == 2
        assert "held quantity" in err

    def test_change_holding_unknown(self, capsys, tc4_db):
        code, _, err = run(capsys, tc4_db, "change-holding", "Nonexistent", "5")
        assert code == 2


# ---------------------------------------------------------------------------
# Tests: Database setup
# ---------------------------------------------------------------------------

class TestDatabaseCommands:

    def test_missing_database(self, capsys, tmp_path):
        code, out, err = run(capsys, tmp_path / "absent.sqlite3", "list-elements")
        assert code == 2
        assert "init-db" in err

    def test_init_and_import(self, capsys, tmp_path):
        db = tmp_path / "new" / "aspects.sqlite3"
        csv_path = tmp_path / "recipes.csv"
        csv_path.write_text(
            "name,component_a,component_b,mod,base_value\n"
            "Aer,,,Thaumcraft,1\n"
            "Ignis,,,Thaumcraft,1\n"
            "Lux,Aer,Ignis,Thaumcraft,1\n",
            encoding="utf-8",
        )

        assert run(capsys, db, "init-db")[0] == 0
        assert db.exists()

        code, out, _ = run(capsys, db, "import-recipes", str(csv_path))
        assert code == 0
        assert "Imported 3 elements and 1 recipes" in out

        _, out, _ = run(capsys, db, "list-recipes")
        assert out == "Lux = Aer + Ignis\n"

    def test_import_parse_error(self, capsys, tmp_path):
        db = tmp_path / "aspects.sqlite3"
        csv_path = tmp_path / "recipes.csv"
        csv_path.write_text("name,component_a,component_b\nLux,Aer,\n", encoding="utf-8")
        run(capsys, db, "init-db")

        code, out, err = run(capsys, db, "import-recipes", str(csv_path))
        assert code == 2
        assert "line 2" in err

    def test_import_invalid_utf8(self, capsys, tc4_db, tmp_path):
        csv_path = tmp_path / "recipes.csv"
        csv_path.write_bytes(b"name,component_a,component_b\n\xff\xfe,,\n")
        code, out, err = run(capsys, tc4_db, "import-recipes", str(csv_path))
        assert code == 2
        assert out == ""
        assert err.startswith("error: ")
        assert "UTF-8" in err

    def test_import_missing_csv(self, capsys, tc4_db, tmp_path):
        code, out, err = run(capsys, tc4_db, "import-recipes", str(tmp_path / "absent.csv"))
        assert code == 2
        assert err.startswith("error: ")
        assert "absent.csv" in err

    def test_not_a_database(self, capsys, tmp_path):
        bad = tmp_path / "bad.sqlite3"
        bad.write_text("these are not the pages you are looking for\n" * 20, encoding="utf-8")
        code, out, err = run(capsys, bad, "list-elements")
        assert code == 2
        assert out == ""
        assert err.startswith("error: database ")
