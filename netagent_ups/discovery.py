# UPS NetAgent Bridge - Message Builders
# Author: IntelligentToasters
# License: GNU General Public License v3.0
#
# Turns a normalized UPS field set into retained MQTT state messages and
# HomeAssistant discovery config messages, including glitch filtering and
# the device identity block shared by every discovery payload.
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

"""State and discovery message construction.

Key functions
- remove_glitchy_values(fields) -> dict
    Drop readings this appliance family is known to misreport.
- build_device_info(fields, config) -> dict
    HomeAssistant `device` block for discovery payloads.
- prepare_state_messages / prepare_discovery_messages
    One retained message per field that has a sensor definition.
- build_publish_batch(fields, config) -> list[OutboundMessage]
    State messages first, then discovery messages.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Union

from .config import PollerConfig
from .sensors import SENSOR_DEFINITIONS, SensorDefinition

# Readings below these values are sensor misreads, not real measurements.
GLITCH_THRESHOLDS = {
    "batteryVoltage": 10,
    "batteryCapacityPercentage": 5,
}


@dataclass(frozen=True)
class OutboundMessage:
    topic: str
    payload: Union[str, Dict[str, Any], int, float]
    retain: bool = True

    def encode(self) -> str:
        """Payload as sent on the wire: text as-is, anything else as JSON."""
        if isinstance(self.payload, str):
            return self.payload
        return json.dumps(self.payload, ensure_ascii=False)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def remove_glitchy_values(fields: Dict[str, Any]) -> Dict[str, Any]:
    out = {}
    for key, value in fields.items():
        threshold = GLITCH_THRESHOLDS.get(key)
        if threshold is not None and _is_number(value) and value < threshold:
            continue
        out[key] = value
    return out


def build_device_info(fields: Dict[str, Any], config: PollerConfig) -> Dict[str, Any]:
    """Build the HomeAssistant device block from system and inventory fields."""
    device: Dict[str, Any] = {"identifiers": [config.device_id]}

    name = config.device_name or fields.get("systemName")
    if name:
        device["name"] = name
    device["configuration_url"] = config.configuration_url

    if fields.get("upsManufacturer"):
        device["manufacturer"] = fields["upsManufacturer"]
    if fields.get("upsModel"):
        device["model"] = fields["upsModel"]
    sw_version = fields.get("upsFirmwareVersion") or fields.get("systemFirmwareVersion")
    if sw_version:
        device["sw_version"] = sw_version
    if fields.get("hardwareVersion"):
        device["hw_version"] = fields["hardwareVersion"]
    if fields.get("serialNumber"):
        device["serial_number"] = fields["serialNumber"]
    if fields.get("location"):
        device["suggested_area"] = fields["location"]
    if fields.get("macAddress"):
        device["connections"] = [["mac", fields["macAddress"].lower()]]

    return device


def build_state_topic(key: str, ups_topic: str,
                      definitions: Mapping[str, SensorDefinition] = SENSOR_DEFINITIONS) -> Optional[str]:
    definition = definitions.get(key)
    if definition is None:
        return None
    return f"{ups_topic}/{definition.topic_suffix or key}"


def prepare_state_messages(fields: Dict[str, Any], config: PollerConfig) -> List[OutboundMessage]:
    messages = []
    for key, value in fields.items():
        topic = build_state_topic(key, config.ups_topic)
        if topic is None:
            continue
        messages.append(OutboundMessage(topic=topic, payload=value, retain=True))
    return messages


def _discovery_payload(key: str, definition: SensorDefinition, device: Dict[str, Any],
                       config: PollerConfig) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "name": definition.name,
        "state_topic": build_state_topic(key, config.ups_topic),
        "unique_id": f"{config.device_id}_{key}",
        "device": device,
    }
    if definition.unit:
        payload["unit_of_measurement"] = definition.unit
    if definition.device_class:
        payload["device_class"] = definition.device_class
    if definition.state_class:
        payload["state_class"] = definition.state_class
    if definition.entity_category:
        payload["entity_category"] = definition.entity_category
    if definition.icon:
        payload["icon"] = definition.icon
    if definition.suggested_precision is not None:
        payload["suggested_display_precision"] = definition.suggested_precision
    return payload


def prepare_discovery_messages(fields: Dict[str, Any], device: Dict[str, Any],
                               config: PollerConfig) -> List[OutboundMessage]:
    messages = []
    for key in fields:
        definition = SENSOR_DEFINITIONS.get(key)
        if definition is None:
            continue
        messages.append(OutboundMessage(
            topic=f"{config.discovery_topic_prefix}/{key}/config",
            payload=_discovery_payload(key, definition, device, config),
            retain=True,
        ))
    return messages


def build_publish_batch(fields: Dict[str, Any], config: PollerConfig) -> List[OutboundMessage]:
    """Build one poll cycle's messages from the merged field set.

    Discovery covers every defined field so an entity stays registered while
    a glitchy reading is held back; state uses the filtered set.
    """
    device = build_device_info(fields, config)
    discovery = prepare_discovery_messages(fields, device, config)
    state = prepare_state_messages(remove_glitchy_values(fields), config)
    return state + discovery
