"""
Tests for the UPSPoller cycle and its overlap guard.
"""

import logging
import threading
import time
from unittest.mock import MagicMock, patch

import pytest

from netagent_ups.config import PollerConfig
from netagent_ups.monitor import UPSPoller


@pytest.fixture
def fetcher(pages):
    return MagicMock(return_value=pages)


def test_poll_once_publishes_full_batch(config, fetcher):
    sink = MagicMock()
    poller = UPSPoller(config, fetcher=fetcher, sink=sink)
    messages = poller.poll_once()

    fetcher.assert_called_once_with("10.0.0.5", 80, config.page_paths, 5.0)
    sink.assert_called_once_with(messages)
    topics = [msg.topic for msg in messages]
    assert "ups-netagent/status/output/load_percentage" in topics
    assert "ups-netagent/system/network/ip" in topics
    first_config = next(i for i, t in enumerate(topics) if t.endswith("/config"))
    assert all(not t.endswith("/config") for t in topics[:first_config])
    assert all(t.endswith("/config") for t in topics[first_config:])


def test_collect_fields_merges_pages(config, fetcher):
    fields = UPSPoller(config, fetcher=fetcher, sink=MagicMock()).collect_fields()
    assert fields["upsLoadPercentage"] == 42
    assert fields["systemName"] == "Rack UPS"
    assert fields["upsModel"] == "SMK-1500A"
    assert fields["ipAddress"] == "192.168.1.50"


def test_run_cycle_fetch_failure_publishes_nothing(config, caplog):
    sink = MagicMock()
    fetcher = MagicMock(side_effect=TimeoutError("UPS request timed out"))
    poller = UPSPoller(config, fetcher=fetcher, sink=sink)

    with caplog.at_level(logging.ERROR):
        assert poller.run_cycle() is False
    sink.assert_not_called()
    assert "Failed to update UPS data" in caplog.text
    assert poller.get_status()["last_error"] == "UPS request timed out"


def test_run_cycle_success_clears_error(config, fetcher):
    sink = MagicMock(side_effect=[ConnectionError("broker down"), None])
    poller = UPSPoller(config, fetcher=fetcher, sink=sink)

    assert poller.run_cycle() is False
    assert poller.get_status()["last_error"] == "broker down"
    assert poller.run_cycle() is True
    status = poller.get_status()
    assert status["last_error"] is None
    assert status["last_success_ts"] is not None
    assert status["in_flight"] is False


def test_overlapping_tick_is_skipped(config, fetcher, caplog):
    started = threading.Event()
    release = threading.Event()

    def slow_sink(messages):
        started.set()
        release.wait(5)

    poller = UPSPoller(config, fetcher=fetcher, sink=slow_sink)
    worker = threading.Thread(target=poller.run_cycle)
    worker.start()
    try:
        assert started.wait(5)
        with caplog.at_level(logging.WARNING):
            assert poller.run_cycle() is False
        assert "Previous poll still running" in caplog.text
        assert poller.get_status()["skipped_ticks"] == 1
        assert fetcher.call_count == 1
    finally:
        release.set()
        worker.join(5)
    assert poller.get_status()["in_flight"] is False


def test_default_sink_is_mqtt_publisher(config):
    with patch("netagent_ups.monitor.MQTTPublisher") as publisher_class:
        UPSPoller(config)
    publisher_class.assert_called_once_with(
        host="broker.local",
        port=1883,
        username=None,
        password=None,
        client_id="ups_netagent_poller",
    )


def test_scheduler_start_stop(config, fetcher):
    ticked = threading.Event()
    fast = PollerConfig(mqtt_host="broker.local", ups_host="10.0.0.5", poll_interval=0.01)
    poller = UPSPoller(fast, fetcher=fetcher, sink=lambda messages: ticked.set())
    poller.start()
    try:
        assert ticked.wait(5)
    finally:
        poller.stop()


def test_stop_waits_for_cycle_in_flight(fetcher):
    started = threading.Event()
    done = threading.Event()

    def slow_sink(messages):
        started.set()
        time.sleep(0.2)
        done.set()

    fast = PollerConfig(mqtt_host="broker.local", ups_host="10.0.0.5", poll_interval=0.01)
    poller = UPSPoller(fast, fetcher=fetcher, sink=slow_sink)
    poller.start()
    assert started.wait(5)
    poller.stop()
    assert done.is_set()
    assert poller.get_status()["in_flight"] is False
