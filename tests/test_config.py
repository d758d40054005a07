import logging
from pathlib import Path
import pytest
from bog.core import BogConfig, MissingConfigurationError
from bog.core.config import require_path
from bog.core.files import staged_files
from bog.core.logging import logger, configure
from bog.core.notes import NoteLoader


def test_config_override_env(monkeypatch):
    monkeypatch.setenv("BOG_USE_CACHE", "yes")
    monkeypatch.setenv("BOG_WEB_SEARCH_GROUPS", "1,year")
    monkeypatch.setenv("BOG_ROOT_DIRECTORY", "/tmp/research")
    cfg = BogConfig.from_env()
    assert cfg.use_cache is True
    assert cfg.web_search_groups == [1, "year"]
    assert cfg.resolved("note_directory") == Path("/tmp/research/notes")


def test_explicit_directory_wins_over_root():
    cfg = BogConfig(root_directory=Path("/r"), file_directory=Path("/elsewhere/pdfs"))
    assert cfg.resolved("file_directory") == Path("/elsewhere/pdfs")
    assert cfg.resolved("stage_directory") == Path("/r/stage")
    assert cfg.resolved("bib_file") is None


def test_require_reports_missing_setting(tmp_path):
    cfg = BogConfig(root_directory=tmp_path)
    with pytest.raises(MissingConfigurationError):
        cfg.require("stage_directory")
    (tmp_path / "stage").mkdir()
    assert cfg.require("stage_directory") == tmp_path / "stage"
    with pytest.raises(MissingConfigurationError) as exc:
        cfg.require("bib_file")
    assert exc.value.setting == "bib_file"


def test_case_insensitive_pattern_rejected():
    cfg = BogConfig(citekey_pattern=r"(?i)\b([a-z]+)([0-9]{4})\b")
    with pytest.raises(ValueError):
        cfg.citekey_format


def test_one_check_for_every_configured_path(tmp_path):
    cfg = BogConfig(root_directory=tmp_path, bib_file=tmp_path)
    with pytest.raises(MissingConfigurationError) as exc:
        cfg.require("bib_file")
    assert "not found" in str(exc.value)
    with pytest.raises(MissingConfigurationError) as exc:
        NoteLoader(cfg.resolved("note_directory")).note_files()
    assert exc.value.setting == "note_directory"
    with pytest.raises(MissingConfigurationError) as exc:
        staged_files(cfg.resolved("stage_directory"))
    assert exc.value.setting == "stage_directory"
    assert require_path(tmp_path, "root_directory") == tmp_path


def test_configure_rereads_log_environment(monkeypatch):
    level = logger.level
    monkeypatch.setenv("BOG_LOG_LEVEL", "debug")
    try:
        configure()
        assert logger.level == logging.DEBUG
        configure("ERROR")
        assert logger.level == logging.ERROR
    finally:
        logger.setLevel(level)
