# UPS NetAgent Bridge - Page Parser
# Author: IntelligentToasters
# License: GNU General Public License v3.0
#
# Provides deterministic helpers for translating the semi-structured HTML
# pages served by a UPS network agent into Python native values, including
# label/value extraction and field normalization.
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

"""Parsing helpers for UPS network agent pages.

The agent renders its telemetry as loosely structured HTML: every reading is
a bold label followed by inline text up to the next line break, e.g.

    <b>Input Frequency:</b> 59.9 Hz<br>

Key functions
- build_label_value_map(soup) -> dict[str, str]
    Map each bold label (trailing colon stripped) to its inline value text.

- parse_status_page(html), parse_system_page(html, ups_host),
  parse_info_page(html) -> dict[str, Any]
    Build the named field set for each page. Missing or malformed fields are
    dropped, never raised.

Normalizers
- sanitize_whitespace, extract_first_number, parse_duration_to_seconds,
  to_iso_timestamp. All return None on input they cannot make sense of.

Notes and conventions
- Field keys are camel-case (`inputVoltage`) because they double as the
  discovery object ids already registered in Home Assistant.
- Numbers without a fractional part are returned as ints so they publish as
  `42` rather than `42.0`.
"""
from __future__ import annotations

import math
import re
from typing import Any, Dict, Optional, Union

from bs4 import BeautifulSoup, Comment, NavigableString, Tag

Number = Union[int, float]

_NUMBER_RE = re.compile(r"-?[0-9]+(?:\.[0-9]+)?")
_WHITESPACE_RE = re.compile(r"\s+")
PLACEHOLDER = "--"


def sanitize_whitespace(value: Optional[str] = "") -> str:
    """Convert non-breaking spaces, collapse whitespace runs and trim."""
    if not value:
        return ""
    return _WHITESPACE_RE.sub(" ", value.replace("\u00a0", " ")).strip()


def _as_number(value: float) -> Number:
    if math.isfinite(value) and value.is_integer():
        return int(value)
    return value


def _part_number(text: str) -> float:
    text = text.strip()
    return float(text) if text else 0.0


def _round_half_away(value: float, precision: int) -> float:
    factor = 10 ** precision
    scaled = abs(value) * factor
    rounded = math.floor(scaled + 0.5) / factor
    return -rounded if value < 0 else rounded


def extract_first_number(value: Optional[str], precision: Optional[int] = None) -> Optional[Number]:
    """Return the first signed integer/decimal found in `value`.

    If `precision` is given the number is rounded to that many decimal
    digits, halves rounding away from zero.
    """
    if value is None:
        return None
    match = _NUMBER_RE.search(value)
    if not match:
        return None
    number = float(match.group(0))
    if precision is not None:
        number = _round_half_away(number, precision)
    return _as_number(number)


def parse_duration_to_seconds(value: Optional[str]) -> Optional[int]:
    """Convert an `HH:MM:SS` duration into seconds.

    Returns None for empty text, the `--` placeholder, anything that does not
    split into exactly three parts, or non-numeric parts. A blank part counts
    as zero (`"01::03"` is 3603 seconds).
    """
    if not value or PLACEHOLDER in value:
        return None
    parts = value.split(":")
    if len(parts) != 3:
        return None
    try:
        hours, minutes, seconds = (_part_number(part) for part in parts)
    except ValueError:
        return None
    total = hours * 3600 + minutes * 60 + seconds
    if not math.isfinite(total):
        return None
    return _as_number(total)


def to_iso_timestamp(value: Optional[str]) -> Optional[str]:
    """Turn the agent's `YYYY/MM/DD hh:mm:ss` into `YYYY-MM-DD hh:mm:ss`.

    The date is not validated; only the separators are rewritten.
    """
    if not value:
        return None
    trimmed = value.strip()
    if not trimmed or trimmed == PLACEHOLDER:
        return None
    return trimmed.replace("/", "-")


def _collect_value_after_label(label: Tag) -> Optional[str]:
    # Walk the label's following siblings up to the line break. Hidden inputs
    # carry machine values and are read separately by name.
    parts = []
    for node in label.next_siblings:
        if isinstance(node, Tag):
            if node.name == "br":
                break
            if node.name == "input":
                continue
            parts.append(node.get_text())
        elif isinstance(node, NavigableString) and not isinstance(node, Comment):
            if node:
                parts.append(str(node))
    value = sanitize_whitespace(" ".join(parts))
    return value or None


def build_label_value_map(soup: BeautifulSoup) -> Dict[str, str]:
    """Map bold label text to the inline value that follows it.

    A repeated label keeps its last value.
    """
    labels: Dict[str, str] = {}
    for bold in soup.find_all("b"):
        label_text = re.sub(r":$", "", sanitize_whitespace(bold.get_text()))
        if not label_text:
            continue
        value = _collect_value_after_label(bold)
        if value is not None:
            labels[label_text] = value
    return labels


def get_label(labels: Dict[str, str], name: str) -> Optional[str]:
    """Look up a label exactly, falling back to a case-insensitive match."""
    if name in labels:
        return labels[name]
    wanted = name.casefold()
    for key, value in labels.items():
        if key.casefold() == wanted:
            return value
    return None


def filter_empty_values(data: Dict[str, Any]) -> Dict[str, Any]:
    """Drop None, blank strings and NaN from a field set."""
    out: Dict[str, Any] = {}
    for key, value in data.items():
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        if isinstance(value, float) and math.isnan(value):
            continue
        out[key] = value
    return out


def make_soup(html: str) -> BeautifulSoup:
    """Parse a page with HTML5 rules, so a stray `</br>` still breaks the line."""
    return BeautifulSoup(html, "html5lib")


def _hidden_input_value(soup: BeautifulSoup, name: str) -> Optional[str]:
    node = soup.find("input", attrs={"name": name})
    if node is None:
        return None
    return node.get("value")


def _parse_uptime_hidden(value: Optional[str]) -> Optional[Number]:
    if not value:
        return None
    try:
        return _as_number(_part_number(value))
    except ValueError:
        return None


def parse_status_page(html: str) -> Dict[str, Any]:
    """Parse the live status page (input/output/battery readings)."""
    labels = build_label_value_map(make_soup(html))

    def label(name: str) -> Optional[str]:
        return get_label(labels, name)

    return filter_empty_values({
        "upsStatus": label("UPS Status"),
        "acStatus": label("AC Status"),
        "inputVoltage": extract_first_number(label("Input Line Voltage")),
        "inputMaxVoltage": extract_first_number(label("Input Max. Line Voltage")),
        "inputMinVoltage": extract_first_number(label("Input Min. Line Voltage")),
        "inputFrequency": extract_first_number(label("Input Frequency"), 1),
        "outputVoltage": extract_first_number(label("Output Voltage")),
        "outputStatus": label("Output Status"),
        "upsLoadPercentage": extract_first_number(label("UPS load")),
        "temperature": extract_first_number(label("Temperature"), 1),
        "batteryStatus": label("Battery Status"),
        "batteryCapacityPercentage": extract_first_number(label("Battery Capacity")),
        "batteryVoltage": extract_first_number(label("Battery Voltage"), 2),
        "timeOnBatterySeconds": parse_duration_to_seconds(label("Time on Battery")),
        "estimatedTimeRemainingSeconds": parse_duration_to_seconds(label("Estimated Battery Remaining Time")),
        "upsLastSelfTest": label("UPS Last Self Test"),
        "upsNextSelfTest": label("UPS Next Self Test"),
    })


def parse_system_page(html: str, ups_host: Optional[str] = None) -> Dict[str, Any]:
    """Parse the network agent's own system/network page.

    `ups_host` is the configured UPS address, used when the page does not
    report an IP address itself.
    """
    soup = make_soup(html)
    labels = build_label_value_map(soup)

    def label(name: str) -> Optional[str]:
        return get_label(labels, name)

    # System time: displayed clock, then the hidden field, then the label.
    sys_time_node = soup.find(id="sys_time")
    system_time_display = sanitize_whitespace(sys_time_node.get_text()) if sys_time_node else ""
    system_time_hidden = _hidden_input_value(soup, "$year_date_time")
    system_time = system_time_display or system_time_hidden or label("System Time")

    uptime_hidden = _hidden_input_value(soup, "$up_time_hidden")
    if uptime_hidden:
        uptime_seconds = _parse_uptime_hidden(uptime_hidden)
    else:
        uptime_seconds = parse_duration_to_seconds(label("Uptime"))

    return filter_empty_values({
        "hardwareVersion": label("Hardware Version"),
        "systemFirmwareVersion": label("Firmware Version"),
        "serialNumber": label("Serial Number"),
        "systemName": label("System Name"),
        "location": label("Location"),
        "systemTime": to_iso_timestamp(system_time),
        "uptimeSeconds": uptime_seconds,
        "upsLastSelfTest": label("UPS Last Self Test"),
        "upsNextSelfTest": label("UPS Next Self Test"),
        "macAddress": label("MAC Address"),
        "ipAddress": label("IP Address") or ups_host,
        "emailServer": label("Email Server"),
        "primaryDns": label("Primary DNS Server"),
        "secondaryDns": label("Secondary DNS Server"),
        "pppoeIp": label("PPPoE IP"),
    })


def parse_info_page(html: str) -> Dict[str, Any]:
    """Parse the UPS inventory page (manufacturer, model, battery pack)."""
    labels = build_label_value_map(make_soup(html))

    def label(name: str) -> Optional[str]:
        return get_label(labels, name)

    battery_count = extract_first_number(label("Number of Batteries"))
    if battery_count is not None:
        battery_count = int(battery_count)

    return filter_empty_values({
        "upsManufacturer": label("UPS Manufacturer"),
        "upsFirmwareVersion": label("UPS Firmware Version"),
        "upsModel": label("UPS Model"),
        "batteryReplacementDate": label("Date of last battery replacement"),
        "batteryCount": battery_count,
        "batteryChargeVoltage": extract_first_number(label("Battery Charge Voltage")),
        "batteryVoltageRating": extract_first_number(label("Battery Voltage Rating")),
    })


def merge_field_sets(
    status: Dict[str, Any],
    system: Dict[str, Any],
    info: Dict[str, Any],
    ups_host: Optional[str] = None,
) -> Dict[str, Any]:
    """Merge the three page field sets; status overrides system overrides info.

    `ipAddress` falls back to the configured UPS address.
    """
    merged = {**info, **system, **status}
    merged["ipAddress"] = system.get("ipAddress") or ups_host
    return filter_empty_values(merged)
