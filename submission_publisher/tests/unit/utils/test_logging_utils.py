import logging
from pathlib import Path

from submission_publisher.utils.logging_utils import DEFAULT_LOGGING_CONFIG_PATH, setup_logging


def test_default_config_file_exists():
    assert DEFAULT_LOGGING_CONFIG_PATH.exists()


def test_setup_logging_applies_level_override():
    setup_logging(DEFAULT_LOGGING_CONFIG_PATH, level="DEBUG")

    assert logging.getLogger("submission_publisher").level == logging.DEBUG


def test_setup_logging_falls_back_when_file_missing(tmp_path: Path):
    setup_logging(tmp_path / "missing.yaml", level="WARNING")

    assert logging.getLogger().level == logging.WARNING
