# UPS NetAgent Bridge - Poller
# Author: IntelligentToasters
# License: GNU General Public License v3.0
#
# Provides the UPSPoller class: fetches the UPS network agent's pages on a
# fixed interval, parses them into a field set and publishes state and
# discovery messages to MQTT, never running two cycles at once.
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""netagent_ups.monitor

UPSPoller: drives the fetch -> parse -> publish cycle.

High-level responsibilities
- Fetch the status, system and info pages (concurrently) for each cycle.
- Parse and merge them, build the message batch and hand it to the
  publisher. The batch is complete before anything is sent, so a failed
  cycle publishes nothing and the broker keeps the last retained values.
- Schedule cycles every `poll_interval` seconds on a background thread.

Primary types / functions
- class UPSPoller
    - collect_fields(): fetch and parse, returns the merged field set
    - build_messages(): collect_fields() plus message construction
    - poll_once(): one full cycle, raises on failure
    - run_cycle(): poll_once() behind the overlap guard, logs failures
    - start/stop/run: manage the scheduler; stop() waits for a cycle
      in flight so a batch is not cut off mid-publish

Design notes and thread safety
- `_cycle_lock` is acquired without blocking; a tick that finds a cycle in
  flight is skipped and logged, not queued.
- Status fields (`_last_error`, `_last_success_ts`) are guarded by `_lock`.
"""
from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Dict, List, Mapping, Optional

from .config import PollerConfig
from .discovery import OutboundMessage, build_publish_batch
from .fetch import fetch_all_pages
from .parser import merge_field_sets, parse_info_page, parse_status_page, parse_system_page
from .publisher import MQTTPublisher

log = logging.getLogger(__name__)

PageFetcher = Callable[[str, int, Mapping[str, str], float], Dict[str, str]]
Sink = Callable[[List[OutboundMessage]], None]


class UPSPoller:
    """Poll a UPS network agent and republish its telemetry over MQTT.

    - `fetcher` returns {"status": html, "system": html, "info": html}.
    - `sink` receives each cycle's complete message batch; defaults to an
      MQTTPublisher built from the configuration.
    """

    def __init__(self, config: PollerConfig, fetcher: Optional[PageFetcher] = None, sink: Optional[Sink] = None):
        self.config = config
        self._fetcher = fetcher or fetch_all_pages
        if sink is None:
            publisher = MQTTPublisher(
                host=config.mqtt_host,
                port=config.mqtt_port,
                username=config.mqtt_username,
                password=config.mqtt_password,
                client_id=f"{config.device_id}_poller",
            )
            sink = publisher.publish_messages
        self._sink = sink

        self._cycle_lock = threading.Lock()
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._cycle_threads: List[threading.Thread] = []

        self._last_error: Optional[str] = None
        self._last_success_ts: Optional[float] = None
        self._skipped_ticks = 0

    def collect_fields(self) -> Dict[str, Any]:
        cfg = self.config
        pages = self._fetcher(cfg.ups_host, cfg.ups_port, cfg.page_paths, cfg.timeout)
        status = parse_status_page(pages["status"])
        system = parse_system_page(pages["system"], cfg.ups_host)
        info = parse_info_page(pages["info"])
        log.debug("parsed %d status, %d system, %d info fields", len(status), len(system), len(info))
        return merge_field_sets(status, system, info, cfg.ups_host)

    def build_messages(self) -> List[OutboundMessage]:
        return build_publish_batch(self.collect_fields(), self.config)

    def poll_once(self) -> List[OutboundMessage]:
        """Run one fetch/parse/publish cycle. Exceptions propagate."""
        messages = self.build_messages()
        self._sink(messages)
        log.debug("cycle complete: %d messages", len(messages))
        return messages

    def run_cycle(self) -> bool:
        """Run one cycle unless another is still in flight.

        Returns True on success, False if the cycle failed or was skipped.
        """
        if not self._cycle_lock.acquire(blocking=False):
            log.warning("Previous poll still running, skipping this interval")
            with self._lock:
                self._skipped_ticks += 1
            return False
        try:
            self.poll_once()
        except Exception as exc:
            log.error("Failed to update UPS data: %s", exc, exc_info=True)
            with self._lock:
                self._last_error = str(exc)
            return False
        finally:
            self._cycle_lock.release()
        with self._lock:
            self._last_error = None
            self._last_success_ts = time.time()
        return True

    def get_status(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "last_error": self._last_error,
                "last_success_ts": self._last_success_ts,
                "skipped_ticks": self._skipped_ticks,
                "in_flight": self._cycle_lock.locked(),
            }

    def _schedule_loop(self) -> None:
        interval = self.config.poll_interval
        while not self._stop_event.wait(interval):
            # run_cycle() skips the tick if the previous cycle is still running
            th = threading.Thread(target=self.run_cycle, daemon=True, name="ups-cycle")
            with self._lock:
                self._cycle_threads = [t for t in self._cycle_threads if t.is_alive()]
                self._cycle_threads.append(th)
                th.start()

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._schedule_loop, daemon=True, name="ups-scheduler")
        self._thread.start()
        log.debug("UPSPoller scheduler started (every %.1fs)", self.config.poll_interval)

    def stop(self, timeout: float = 10.0) -> None:
        """Stop scheduling and wait up to `timeout` seconds for a running cycle."""
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=2.0)
        with self._lock:
            cycles = [t for t in self._cycle_threads if t is not threading.current_thread()]
        deadline = time.monotonic() + timeout
        for cycle in cycles:
            cycle.join(timeout=max(0.0, deadline - time.monotonic()))
            if cycle.is_alive():
                log.warning("UPS poll cycle still running after %.1fs; exiting anyway", timeout)
        log.debug("UPSPoller stopped")

    def run(self) -> None:
        """Poll immediately, then every interval until stop() is called."""
        log.info("starting with configuration: %s", self.config.describe_json())
        self.run_cycle()
        if self._stop_event.is_set():
            return
        self.start()
        try:
            while not self._stop_event.wait(1.0):
                pass
        finally:
            self.stop()
