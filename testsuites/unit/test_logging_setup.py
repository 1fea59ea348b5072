import pytest
from loguru import logger

from e2e_toolkit.common import Settings, init_logger
from e2e_toolkit.common.logging_setup import reset_logger


@pytest.fixture
def fresh_logger():
    reset_logger()
    yield
    reset_logger()
    init_logger(Settings.load())


def test_log_file_adds_rotating_and_error_only_sinks(fresh_logger, tmp_path):
    log_file = tmp_path / "logs" / "e2e.log"

    init_logger(Settings(log_file=str(log_file), log_level="WARNING"))
    logger.debug("filling #name")
    logger.error("Critical Error: UI_ACTION_ERROR - click failed")
    logger.complete()

    full_log = log_file.read_text(encoding="utf-8")
    error_log = (tmp_path / "logs" / "e2e-error.log").read_text(encoding="utf-8")
    assert "filling #name" in full_log
    assert "click failed" in full_log
    assert "click failed" in error_log
    assert "filling #name" not in error_log


def test_init_is_idempotent_until_reset(fresh_logger, tmp_path):
    init_logger(Settings(log_file=str(tmp_path / "first" / "run.log")))
    init_logger(Settings(log_file=str(tmp_path / "second" / "run.log")))

    assert (tmp_path / "first").is_dir()
    assert not (tmp_path / "second").exists()

    reset_logger()
    init_logger(Settings(log_file=str(tmp_path / "second" / "run.log")))

    assert (tmp_path / "second").is_dir()


def test_explicit_level_overrides_settings(capsys, fresh_logger):
    init_logger(Settings(log_level="DEBUG"), level="error")
    logger.info("waiting for #heading")
    logger.error("element detached")

    stderr = capsys.readouterr().err
    assert "element detached" in stderr
    assert "waiting for #heading" not in stderr
