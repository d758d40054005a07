import json
import logging
from pathlib import Path
import pytest
from bog.core.logging import logger
from bog.interfaces.cli import main


@pytest.fixture()
def root(tmp_path, monkeypatch):
    for sub in ("notes", "citekey-files", "stage", "bibs"):
        (tmp_path / sub).mkdir()
    (tmp_path / "notes" / "a.org").write_text("* jones1999theory\nSee doe2001study.\n")
    (tmp_path / "citekey-files" / "jones1999theory.pdf").write_bytes(b"%PDF-1.4")
    (tmp_path / "citekey-files" / "jones1999theory-supp.pdf").write_bytes(b"%PDF-1.4")
    monkeypatch.setenv("BOG_ROOT_DIRECTORY", str(tmp_path))
    return tmp_path


def test_cli_files(root, capsys):
    assert main(["files", "jones1999theory"]) == 0
    out = capsys.readouterr().out.splitlines()
    assert out == [
        str(root / "citekey-files" / "jones1999theory-supp.pdf"),
        str(root / "citekey-files" / "jones1999theory.pdf"),
    ]


def test_cli_reports_errors(root, capsys):
    assert main(["files", "nobody2000none"]) == 1
    assert "error: No file found for nobody2000none" in capsys.readouterr().err
    assert main(["web", "NotACitekey"]) == 1


def test_cli_web_and_orphans(root, capsys):
    assert main(["web", "jones1999theory"]) == 0
    assert capsys.readouterr().out.strip() == "http://scholar.google.com/scholar?q=jones+1999+theory"
    assert main(["orphans"]) == 0
    out = capsys.readouterr().out
    assert "doe2001study" in out and "jones1999theory" not in out


def test_cli_heading_and_at(root, capsys):
    assert main(["heading", "jones1999theory"]) == 0
    assert capsys.readouterr().out.strip().endswith("a.org:1: jones1999theory")
    assert main(["at", str(root / "notes" / "a.org"), "20"]) == 0
    assert capsys.readouterr().out.strip() == "jones1999theory"


def test_cli_rename_staged_prompts(root, capsys, monkeypatch):
    (root / "stage" / "paper.pdf").write_bytes(b"%PDF-1.4")
    answers = iter(["jones1999theory", "jones1999theory-appendix.pdf"])
    monkeypatch.setattr("builtins.input", lambda prompt="": next(answers))
    assert main(["rename-staged"]) == 0
    assert (root / "citekey-files" / "jones1999theory-appendix.pdf").exists()
    assert not (root / "stage" / "paper.pdf").exists()
    assert "paper.pdf ->" in capsys.readouterr().out


def test_cli_config_prints_settings(root, capsys):
    assert main(["config"]) == 0
    settings = json.loads(capsys.readouterr().out)
    assert settings["root_directory"] == str(root)
    assert settings["citekey_property"] == "CUSTOM_ID"
    assert settings["note_directory"] is None


def test_cli_log_level_from_dotenv(root, monkeypatch):
    # registers the variable for removal after the test; load_dotenv sets it
    monkeypatch.setenv("BOG_LOG_LEVEL", "WARNING")
    monkeypatch.delenv("BOG_LOG_LEVEL")
    (root / ".env").write_text("BOG_LOG_LEVEL=debug\n")
    monkeypatch.chdir(root)
    level = logger.level
    try:
        assert main(["config"]) == 0
        assert logger.level == logging.DEBUG
    finally:
        logger.setLevel(level)
