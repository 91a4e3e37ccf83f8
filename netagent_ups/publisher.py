# UPS NetAgent Bridge - MQTT Publisher
# Author: IntelligentToasters
# License: GNU General Public License v3.0
#
# Publishes one poll cycle's message batch to the MQTT broker over a
# short-lived paho-mqtt connection with acknowledged (QoS 1) delivery.
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

"""MQTT batch publisher.

`MQTTPublisher.publish_messages()` opens a connection, publishes every
message with QoS 1 and its retain flag, waits for each acknowledgement and
disconnects. The first failure tears the connection down and raises
`MQTTPublishError`.
"""
from __future__ import annotations

import logging
import threading
from typing import Optional, Sequence

import paho.mqtt.client as mqtt

from .discovery import OutboundMessage

log = logging.getLogger(__name__)


class MQTTPublishError(ConnectionError):
    """Connecting to the broker or publishing a message failed."""


class MQTTPublisher:
    def __init__(self, host: str, port: int = 1883, username: Optional[str] = None,
                 password: Optional[str] = None, client_id: str = "ups_netagent_poller",
                 timeout: float = 10.0):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.client_id = client_id
        self.timeout = timeout

    def _create_client(self) -> mqtt.Client:
        client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2, client_id=self.client_id)
        if self.username:
            client.username_pw_set(self.username, self.password)
        return client

    def publish_messages(self, messages: Sequence[OutboundMessage]) -> None:
        """Publish a batch; returns once every message is acknowledged."""
        if not messages:
            log.debug("nothing to publish")
            return

        client = self._create_client()
        connected = threading.Event()
        connect_result = {}

        def on_connect(client, userdata, connect_flags, reason_code, properties):
            connect_result["reason_code"] = reason_code
            connected.set()

        client.on_connect = on_connect

        log.debug("Connecting to MQTT broker at %s:%s...", self.host, self.port)
        try:
            client.connect(self.host, self.port, keepalive=60)
        except OSError as exc:
            raise MQTTPublishError(f"Failed to connect to MQTT broker: {exc}") from exc

        client.loop_start()
        try:
            if not connected.wait(self.timeout):
                raise MQTTPublishError(f"Timed out connecting to MQTT broker at {self.host}:{self.port}")
            reason_code = connect_result["reason_code"]
            if reason_code != 0:
                raise MQTTPublishError(f"MQTT broker refused connection: {reason_code}")

            pending = []
            for msg in messages:
                info = client.publish(msg.topic, msg.encode(), qos=1, retain=msg.retain)
                if info.rc != mqtt.MQTT_ERR_SUCCESS:
                    raise MQTTPublishError(f"Failed to publish {msg.topic}: {mqtt.error_string(info.rc)}")
                pending.append((msg.topic, info))

            for topic, info in pending:
                try:
                    info.wait_for_publish(timeout=self.timeout)
                except (RuntimeError, ValueError) as exc:
                    raise MQTTPublishError(f"Failed to publish {topic}: {exc}") from exc
                if not info.is_published():
                    raise MQTTPublishError(f"Timed out waiting for acknowledgement of {topic}")
                log.debug("Published %s", topic)
        finally:
            client.disconnect()
            client.loop_stop()

        log.debug("Published %d messages", len(messages))
