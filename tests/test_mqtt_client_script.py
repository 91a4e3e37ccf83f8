"""
Tests for the scripts/mqtt_client.py entry point.
"""

import importlib.util
import json
from pathlib import Path
from unittest.mock import patch

import pytest

SCRIPT = Path(__file__).resolve().parent.parent / "scripts" / "mqtt_client.py"


@pytest.fixture
def script():
    spec = importlib.util.spec_from_file_location("mqtt_client_script", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


ENV_NAMES = (
    "MQTT_SERVER", "MQTT_USERNAME", "MQTT_PASSWORD", "UPS_IP", "UPS_HTTP_PORT", "UPS_HTTP_TIMEOUT_MS",
    "UPS_TOPIC", "DISCOVERY_TOPIC_PREFIX", "UPS_STATUS_PATH", "UPS_SYSTEM_PATH", "UPS_INFO_PATH",
    "HA_DEVICE_ID", "HA_DEVICE_NAME", "UPS_CONFIG_URL", "POLL_INTERVAL_SECONDS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Run from an empty directory with none of the bridge settings in the environment.

    setenv before delenv makes monkeypatch remove anything load_dotenv() sets.
    """
    for name in ENV_NAMES:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)


def test_once_dry_run_prints_batch(script, pages, capsys):
    with patch("netagent_ups.monitor.fetch_all_pages", return_value=pages):
        assert script.main(["--once", "--dry-run", "--ups-host", "10.0.0.5"]) == 0

    lines = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
    by_topic = {line["topic"]: line for line in lines}
    assert by_topic["ups-netagent/status/output/load_percentage"] == {
        "topic": "ups-netagent/status/output/load_percentage",
        "payload": "42",
        "retain": True,
    }
    config_payload = json.loads(by_topic["homeassistant/sensor/ups-netagent/temperature/config"]["payload"])
    assert config_payload["unit_of_measurement"] == "°C"


def test_once_failure_exit_code(script):
    with patch("netagent_ups.monitor.fetch_all_pages", side_effect=OSError("unreachable")):
        assert script.main(["--once", "--dry-run"]) == 1


def test_invalid_configuration_exit_code(script):
    assert script.main(["--once", "--mqtt-server", "http://broker"]) == 2


def test_env_file_settings_reach_config(script, pages, tmp_path, capsys):
    (tmp_path / ".env").write_text("UPS_IP=10.9.9.9\nUPS_TOPIC=dotenv-ups\n")
    with patch("netagent_ups.monitor.fetch_all_pages", return_value=pages) as fetch:
        assert script.main(["--once", "--dry-run"]) == 0

    assert fetch.call_args[0][0] == "10.9.9.9"
    topics = [json.loads(line)["topic"] for line in capsys.readouterr().out.splitlines()]
    assert "dotenv-ups/status/output/load_percentage" in topics
    assert "homeassistant/sensor/dotenv-ups/upsLoadPercentage/config" in topics


def test_environment_wins_over_env_file(script, pages, tmp_path, monkeypatch):
    (tmp_path / "bridge.env").write_text("UPS_IP=10.9.9.9\n")
    monkeypatch.setenv("UPS_IP", "10.0.0.7")
    with patch("netagent_ups.monitor.fetch_all_pages", return_value=pages) as fetch:
        assert script.main(["--once", "--dry-run", "--env-file", str(tmp_path / "bridge.env")]) == 0
    assert fetch.call_args[0][0] == "10.0.0.7"
