import logging

import pytest

from sprintly.logger import get_logger, log_corruption, setup_logging


@pytest.fixture
def sprintly_logger():
    logger = logging.getLogger("sprintly")
    yield logger
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def test_setup_writes_system_and_error_logs(tmp_path, sprintly_logger):
    setup_logging(logs_dir=tmp_path)

    get_logger("service").info("goal created")
    get_logger("storage").error("disk full")
    for handler in sprintly_logger.handlers:
        handler.flush()

    system_log = (tmp_path / "system.log").read_text(encoding="utf-8")
    error_log = (tmp_path / "error.log").read_text(encoding="utf-8")
    assert "sprintly.service | goal created" in system_log
    assert "disk full" in system_log
    assert "disk full" in error_log
    assert "goal created" not in error_log


def test_repeated_setup_does_not_duplicate_handlers(tmp_path, sprintly_logger):
    setup_logging(logs_dir=tmp_path)
    setup_logging(logs_dir=tmp_path, console_level=logging.DEBUG)

    assert len(sprintly_logger.handlers) == 3
    console = [h for h in sprintly_logger.handlers if type(h) is logging.StreamHandler]
    assert console[0].level == logging.DEBUG


def test_logs_dir_from_environment(tmp_path, monkeypatch, sprintly_logger):
    monkeypatch.setenv("SPRINTLY_LOGS_DIR", str(tmp_path / "custom"))

    setup_logging()

    assert (tmp_path / "custom" / "system.log").exists()


def test_log_corruption_truncates_long_dumps(tmp_path):
    dump_path = log_corruption("sprintly-data.json", "x" * 5000, "Expecting value", logs_dir=tmp_path)

    text = dump_path.read_text(encoding="utf-8")
    assert "sprintly-data.json: Expecting value" in text
    assert "x" * 2000 + "..." in text
    assert "x" * 2001 not in text
