import io
import json
import logging

import pytest

from lockup import NoLockupFound
from lockup.config import DEFAULT_MAX_VESTING_DURATION, ConfigurationError, load_config
from lockup.logging_config import setup_logging

from conftest import BENEFICIARY, OWNER, TOTAL_AMOUNT, VESTING_DURATION


class TestLoadConfig:
    def test_defaults(self, monkeypatch):
        for var in ("LOCKUP_MAX_VESTING_DURATION", "LOCKUP_LOG_LEVEL", "LOCKUP_LOG_FILE", "LOCKUP_ENVIRONMENT"):
            monkeypatch.delenv(var, raising=False)
        config = load_config()
        assert config.max_vesting_duration == DEFAULT_MAX_VESTING_DURATION == 315_360_000
        assert config.log_level == "INFO"
        assert config.log_file is None
        assert config.environment == "production"

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("LOCKUP_MAX_VESTING_DURATION", "86400")
        monkeypatch.setenv("LOCKUP_LOG_LEVEL", "debug")
        monkeypatch.setenv("LOCKUP_ENVIRONMENT", "staging")
        config = load_config()
        assert config.max_vesting_duration == 86400
        assert config.log_level == "DEBUG"
        assert config.environment == "staging"

    @pytest.mark.parametrize("value", ["abc", "0", "-5"])
    def test_invalid_max_duration(self, monkeypatch, value):
        monkeypatch.setenv("LOCKUP_MAX_VESTING_DURATION", value)
        with pytest.raises(ConfigurationError):
            load_config()

    def test_invalid_log_level(self, monkeypatch):
        monkeypatch.setenv("LOCKUP_LOG_LEVEL", "LOUD")
        with pytest.raises(ConfigurationError):
            load_config()


class TestStructuredLogging:
    def test_engine_events_are_json(self, lockup):
        stream = io.StringIO()
        logger = setup_logging(name="lockup", level="INFO", environment="test", stream=stream)
        try:
            lockup.create_lockup(OWNER, BENEFICIARY, TOTAL_AMOUNT, 0, VESTING_DURATION, True)
        finally:
            logger.handlers = []
            logger.setLevel(logging.NOTSET)

        lines = [json.loads(line) for line in stream.getvalue().splitlines()]
        created = [line for line in lines if line.get("event") == "lockup.created"]
        assert len(created) == 1
        assert created[0]["amount"] == TOTAL_AMOUNT
        assert created[0]["environment"] == "test"
        assert created[0]["service"] == "lockup"
        assert created[0]["level"] == "info"

    def test_rejections_logged_as_warnings(self, lockup):
        stream = io.StringIO()
        logger = setup_logging(name="lockup", level="WARNING", stream=stream)
        try:
            with pytest.raises(NoLockupFound):
                lockup.release(BENEFICIARY)
        finally:
            logger.handlers = []
            logger.setLevel(logging.NOTSET)

        lines = [json.loads(line) for line in stream.getvalue().splitlines()]
        assert lines[-1]["event"] == "lockup.release_rejected"
        assert lines[-1]["error_type"] == "NoLockupFound"

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "logs" / "lockup.json"
        logger = setup_logging(name="lockup.test_file", log_file=str(log_file), enable_console=False)
        logger.info("hello", extra={"event": "test.hello"})
        for handler in logger.handlers:
            handler.flush()
        record = json.loads(log_file.read_text().splitlines()[0])
        assert record["event"] == "test.hello"
        for handler in logger.handlers:
            handler.close()
        logger.handlers = []
