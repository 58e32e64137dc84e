import json

import pytest

from bodyosc.core.config_loader import (
    DictConfig,
    apply_env_overrides,
    get_config,
    load_config,
    parse_ip_addresses,
    read_ip_address_csv,
)
from bodyosc.core.constants import Constants


def _write_config(tmp_path, data, name="system_config.json"):
    path = tmp_path / name
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def test_missing_sections_get_defaults(tmp_path):
    config = load_config(_write_config(tmp_path, {"network": {"port": 9000}}))

    assert config.network.port == 9000
    assert config.network.bundle is True
    assert config.network.address_prefix == Constants.DEFAULT_ADDRESS_PREFIX
    assert config.tracking.reference_joint == "SpineBase"
    assert config.sensor.driver == "mock"
    assert config.timer.window_seconds == Constants.FPS_WINDOW_SECONDS


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.json")


def test_malformed_json_raises(tmp_path):
    path = tmp_path / "system_config.json"
    path.write_text("{ not json", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(path)


def test_non_object_root_raises(tmp_path):
    with pytest.raises(ValueError):
        load_config(_write_config(tmp_path, [1, 2, 3]))


def test_config_path_from_environment(tmp_path, monkeypatch):
    path = _write_config(tmp_path, {"network": {"port": 7000}}, name="custom.json")
    monkeypatch.setenv("BODYOSC_CONFIG", str(path))
    assert load_config().network.port == 7000


def test_get_config_reload(tmp_path):
    path = _write_config(tmp_path, {"network": {"port": 7100}})
    try:
        config = get_config(config_path=path, reload=True)
        assert config.network.port == 7100
        assert get_config() is config
    finally:
        get_config(reload=True)


def test_ip_address_file_resolved_next_to_config(tmp_path):
    config = load_config(_write_config(tmp_path, {}))
    assert config.resolve_ip_address_file() is None

    ip_file = tmp_path / Constants.IP_ADDRESS_FILE_NAME
    ip_file.write_text("10.0.0.1,10.0.0.2\n", encoding="utf-8")
    assert config.resolve_ip_address_file() == ip_file


def test_read_ip_address_csv_first_line_only(tmp_path):
    ip_file = tmp_path / "ip_address.txt"
    ip_file.write_text("  10.0.0.1, 10.0.0.2  \n192.168.1.1\n", encoding="utf-8")
    assert read_ip_address_csv(ip_file) == "10.0.0.1, 10.0.0.2"


def test_read_ip_address_csv_fallbacks(tmp_path):
    assert read_ip_address_csv(None) == Constants.DEFAULT_IP_ADDRESS_CSV
    assert read_ip_address_csv(tmp_path / "missing.txt", default_csv="10.1.1.1") == "10.1.1.1"

    empty = tmp_path / "empty.txt"
    empty.write_text("", encoding="utf-8")
    assert read_ip_address_csv(empty) == Constants.DEFAULT_IP_ADDRESS_CSV

    blank = tmp_path / "blank.txt"
    blank.write_text("   \n10.0.0.9\n", encoding="utf-8")
    assert read_ip_address_csv(blank) == Constants.DEFAULT_IP_ADDRESS_CSV


def test_parse_ip_addresses():
    assert parse_ip_addresses("127.0.0.1") == ["127.0.0.1"]
    assert parse_ip_addresses(" 10.0.0.1 ,10.0.0.2,,10.0.0.1 ") == ["10.0.0.1", "10.0.0.2"]
    assert parse_ip_addresses("") == []


def test_env_overrides(tmp_path, monkeypatch):
    config = load_config(_write_config(tmp_path, {}))
    monkeypatch.setenv("BODYOSC_LOG_LEVEL", "debug")
    monkeypatch.setenv("BODYOSC_OSC_PORT", "9001")
    monkeypatch.setenv("BODYOSC_SENSOR", "none")

    apply_env_overrides(config)
    assert config.logging.level == "DEBUG"
    assert config.network.port == 9001
    assert config.sensor.driver == "none"


def test_invalid_port_override_is_ignored(tmp_path, monkeypatch):
    config = load_config(_write_config(tmp_path, {"network": {"port": 8000}}))
    monkeypatch.setenv("BODYOSC_OSC_PORT", "not-a-port")
    apply_env_overrides(config)
    assert config.network.port == 8000


def test_dict_config_access():
    config = DictConfig(network={"port": 1}, hosts=[{"name": "a"}], level="INFO")
    assert config.network.port == 1
    assert config["level"] == "INFO"
    assert config.get("missing", 5) == 5
    assert config.hosts[0].name == "a"
    assert config.to_dict() == {"network": {"port": 1}, "hosts": [{"name": "a"}], "level": "INFO"}
