# UPS NetAgent Bridge - UPS to MQTT Library
# Author: IntelligentToasters
# License: GNU General Public License v3.0
#
# This module provides a lightweight bridge that scrapes a UPS network
# agent's embedded web pages and republishes the telemetry to MQTT with
# HomeAssistant discovery metadata.
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

"""UPS NetAgent bridge package

This package polls the status, system and inventory pages of a UPS network
agent card over HTTP and republishes the readings as retained MQTT messages
for HomeAssistant. It exposes:

- `UPSPoller`: fetches, parses and publishes on a fixed interval, skipping a
  tick while the previous cycle is still running.
- `parse_status_page`, `parse_system_page`, `parse_info_page`: page parsers
  returning clean, typed field sets.
- `build_publish_batch`: turns a field set into state and discovery messages.
- `PollerConfig`, `load_config`: startup configuration.
"""

from .config import PollerConfig, load_config
from .discovery import OutboundMessage, build_publish_batch
from .monitor import UPSPoller
from .parser import parse_info_page, parse_status_page, parse_system_page
from .sensors import SENSOR_DEFINITIONS

__all__ = [
    "UPSPoller",
    "PollerConfig",
    "load_config",
    "OutboundMessage",
    "build_publish_batch",
    "parse_status_page",
    "parse_system_page",
    "parse_info_page",
    "SENSOR_DEFINITIONS",
]
__version__ = "0.1.0"
