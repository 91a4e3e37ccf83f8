# UPS NetAgent Bridge - Sensor Definitions
# Author: IntelligentToasters
# License: GNU General Public License v3.0
#
# Static Home Assistant presentation metadata for every field the bridge
# publishes: display name, unit, device/state class, category, icon,
# precision and the state topic suffix.
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

"""Sensor definition table.

Fields without an entry here are never published, neither as state nor as
discovery config.
"""
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional


@dataclass(frozen=True)
class SensorDefinition:
    name: str
    topic_suffix: Optional[str] = None
    unit: Optional[str] = None
    device_class: Optional[str] = None
    state_class: Optional[str] = None
    entity_category: Optional[str] = None
    icon: Optional[str] = None
    suggested_precision: Optional[int] = None


DIAGNOSTIC = "diagnostic"

SENSOR_DEFINITIONS: Mapping[str, SensorDefinition] = MappingProxyType({
    # Live status
    "upsStatus": SensorDefinition(
        "UPS Status", "status/general/ups_status", icon="mdi:power-plug-battery"),
    "acStatus": SensorDefinition(
        "AC Status", "status/general/ac_status", icon="mdi:connection"),
    "inputVoltage": SensorDefinition(
        "Input Voltage", "status/input/line_voltage",
        unit="V", device_class="voltage", state_class="measurement"),
    "inputMaxVoltage": SensorDefinition(
        "Input Max Voltage", "status/input/max_voltage",
        unit="V", device_class="voltage", state_class="measurement", entity_category=DIAGNOSTIC),
    "inputMinVoltage": SensorDefinition(
        "Input Min Voltage", "status/input/min_voltage",
        unit="V", device_class="voltage", state_class="measurement", entity_category=DIAGNOSTIC),
    "inputFrequency": SensorDefinition(
        "Input Frequency", "status/input/frequency",
        unit="Hz", device_class="frequency", state_class="measurement", suggested_precision=1),
    "outputVoltage": SensorDefinition(
        "Output Voltage", "status/output/voltage",
        unit="V", device_class="voltage", state_class="measurement", entity_category=DIAGNOSTIC),
    "outputStatus": SensorDefinition(
        "Output Status", "status/output/status", entity_category=DIAGNOSTIC),
    "upsLoadPercentage": SensorDefinition(
        "UPS Load", "status/output/load_percentage",
        unit="%", state_class="measurement", entity_category=DIAGNOSTIC, icon="mdi:gauge"),
    "temperature": SensorDefinition(
        "Temperature", "status/battery/temperature",
        unit="°C", device_class="temperature", state_class="measurement", entity_category=DIAGNOSTIC),
    "batteryStatus": SensorDefinition(
        "Battery Status", "status/battery/status", entity_category=DIAGNOSTIC),
    "batteryCapacityPercentage": SensorDefinition(
        "Battery Capacity", "status/battery/capacity_percentage",
        unit="%", device_class="battery", state_class="measurement", icon="mdi:battery"),
    "batteryVoltage": SensorDefinition(
        "Battery Voltage", "status/battery/voltage",
        unit="V", device_class="voltage", state_class="measurement", suggested_precision=2),
    "timeOnBatterySeconds": SensorDefinition(
        "Time on Battery", "status/battery/time_on_battery_seconds",
        unit="s", device_class="duration", state_class="total_increasing", entity_category=DIAGNOSTIC),
    "estimatedTimeRemainingSeconds": SensorDefinition(
        "Estimated Time Remaining", "status/battery/estimated_time_remaining_seconds",
        unit="s", device_class="duration", entity_category=DIAGNOSTIC),
    "upsLastSelfTest": SensorDefinition(
        "UPS Last Self Test", "status/self_test/last", entity_category=DIAGNOSTIC),
    "upsNextSelfTest": SensorDefinition(
        "UPS Next Self Test", "status/self_test/next", entity_category=DIAGNOSTIC),

    # Network agent system page
    "hardwareVersion": SensorDefinition(
        "Hardware Version", "system/info/hardware_version", entity_category=DIAGNOSTIC),
    "systemFirmwareVersion": SensorDefinition(
        "System Firmware Version", "system/info/system_firmware_version", entity_category=DIAGNOSTIC),
    "serialNumber": SensorDefinition(
        "Serial Number", "system/info/serial_number", entity_category=DIAGNOSTIC),
    "systemName": SensorDefinition(
        "System Name", "system/info/system_name", entity_category=DIAGNOSTIC),
    "location": SensorDefinition(
        "Location", "system/info/location", entity_category=DIAGNOSTIC),
    "systemTime": SensorDefinition(
        "System Time", "system/info/system_time", entity_category=DIAGNOSTIC),
    "uptimeSeconds": SensorDefinition(
        "UPS Uptime", "system/info/uptime_seconds",
        unit="s", device_class="duration", state_class="total_increasing", entity_category=DIAGNOSTIC),
    "macAddress": SensorDefinition(
        "MAC Address", "system/network/mac", entity_category=DIAGNOSTIC),
    "ipAddress": SensorDefinition(
        "IP Address", "system/network/ip", entity_category=DIAGNOSTIC),
    "emailServer": SensorDefinition(
        "Email Server", "system/network/email_server", entity_category=DIAGNOSTIC),
    "primaryDns": SensorDefinition(
        "Primary DNS", "system/network/primary_dns", entity_category=DIAGNOSTIC),
    "secondaryDns": SensorDefinition(
        "Secondary DNS", "system/network/secondary_dns", entity_category=DIAGNOSTIC),
    "pppoeIp": SensorDefinition(
        "PPPoE IP", "system/network/pppoe_ip", entity_category=DIAGNOSTIC),

    # UPS inventory
    "upsManufacturer": SensorDefinition(
        "UPS Manufacturer", "device/info/manufacturer", entity_category=DIAGNOSTIC),
    "upsFirmwareVersion": SensorDefinition(
        "UPS Firmware Version", "device/info/ups_firmware_version", entity_category=DIAGNOSTIC),
    "upsModel": SensorDefinition(
        "UPS Model", "device/info/model", entity_category=DIAGNOSTIC),
    "batteryReplacementDate": SensorDefinition(
        "Battery Replacement Date", "device/battery/replacement_date", entity_category=DIAGNOSTIC),
    "batteryCount": SensorDefinition(
        "Battery Count", "device/battery/count", unit="pcs", entity_category=DIAGNOSTIC),
    # batteryChargeVoltage is parsed but not published.
    "batteryVoltageRating": SensorDefinition(
        "Battery Voltage Rating", "device/battery/voltage_rating",
        unit="V", device_class="voltage", entity_category=DIAGNOSTIC),
})
