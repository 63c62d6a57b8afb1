import sys

import pytest
import yaml
from loguru import logger

import config as config_module
from config import ConfigLoader, ServiceConfigError, get_environment, setup_logger


@pytest.fixture
def restore_logger():
    yield
    # stop file sinks (flushes the enqueue threads) and put the console back
    logger.remove()
    logger.add(sys.stderr)


def write_yaml(path, data):
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return str(path)


def test_environment_defaults_to_production(monkeypatch):
    monkeypatch.delenv("SERVICE_ENVIRONMENT", raising=False)
    assert get_environment() == "production"
    monkeypatch.setenv("SERVICE_ENVIRONMENT", "")
    assert get_environment() == "production"
    monkeypatch.setenv("SERVICE_ENVIRONMENT", "staging")
    assert get_environment() == "staging"


def test_environment_file_overrides_base(tmp_path, monkeypatch):
    monkeypatch.setenv("SERVICE_ENVIRONMENT", "development")
    path = write_yaml(tmp_path / "config.yml", {
        "service": {"debug": False, "interval_ms": 1000, "execution_window": "09:00-17:00"},
        "logging": {"dir": "logs"},
    })
    write_yaml(tmp_path / "config.development.yml", {"service": {"debug": True}})
    write_yaml(tmp_path / "config.production.yml", {"service": {"interval_ms": 1}})

    cfg = ConfigLoader(path)

    assert cfg.environment == "development"
    assert cfg.is_debug() is True
    assert cfg.get_interval_ms() == 1000
    assert cfg.get_execution_window() == "09:00-17:00"
    assert cfg.get_logging_config() == {"dir": "logs"}
    assert cfg.loaded_files == [path, str(tmp_path / "config.development.yml")]


def test_missing_files_give_defaults(tmp_path):
    cfg = ConfigLoader(str(tmp_path / "absent.yml"), environment="production")

    assert cfg.config == {}
    assert cfg.is_debug() is False
    assert cfg.get_execution_window() is None
    assert cfg.get_interval_ms() == 1000
    assert cfg.get_service_module() is None
    assert cfg.loaded_files == []


def test_empty_file_is_empty_config(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text("", encoding="utf-8")
    assert ConfigLoader(str(path), environment="production").config == {}


def test_broken_yaml_is_raised(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text("service: [unclosed", encoding="utf-8")
    with pytest.raises(yaml.YAMLError):
        ConfigLoader(str(path), environment="production")


@pytest.mark.parametrize("interval", [0, -5, "fast", 2.5, True])
def test_invalid_interval(tmp_path, interval):
    path = write_yaml(tmp_path / "config.yml", {"service": {"interval_ms": interval}})
    with pytest.raises(ServiceConfigError):
        ConfigLoader(path, environment="production").get_interval_ms()


def test_setup_logger_general_file_only(tmp_path, monkeypatch, restore_logger):
    monkeypatch.setattr(config_module.socket, "gethostname", lambda: "worker-host-0042.example")
    path = write_yaml(tmp_path / "config.yml", {"logging": {"dir": str(tmp_path / "logs")}})

    log_files = setup_logger(ConfigLoader(path, environment="production"))
    logger.info("info line")
    logger.debug("debug line")
    logger.remove()

    assert log_files == [str(tmp_path / "logs" / "log-worker-host-.log")]
    content = (tmp_path / "logs" / "log-worker-host-.log").read_text(encoding="utf-8")
    assert "INFO info line" in content
    assert "debug line" not in content


def test_setup_logger_debug_file(tmp_path, monkeypatch, restore_logger):
    monkeypatch.setattr(config_module.socket, "gethostname", lambda: "box")
    path = write_yaml(tmp_path / "config.yml", {
        "service": {"debug": True},
        "logging": {"dir": str(tmp_path / "logs")},
    })

    log_files = setup_logger(ConfigLoader(path, environment="production"))
    logger.debug("debug line")
    logger.info("info line")
    logger.remove()

    general, debug = log_files
    assert debug.endswith("log-box-debug.log")
    general_text = (tmp_path / "logs" / "log-box.log").read_text(encoding="utf-8")
    debug_text = (tmp_path / "logs" / "log-box-debug.log").read_text(encoding="utf-8")
    assert "debug line" not in general_text
    assert "DEBUG debug line" in debug_text
    assert "INFO info line" in debug_text
