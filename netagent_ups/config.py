# UPS NetAgent Bridge - Configuration
# Author: IntelligentToasters
# License: GNU General Public License v3.0
#
# Resolves the bridge configuration once at startup from environment
# variables and command-line overrides into a single immutable structure.
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

"""Bridge configuration.

`PollerConfig` is frozen; build it once with `load_config()` and pass it to
the poller. Environment variables (optionally loaded from a `.env` file by
the script) provide the defaults, matching command-line flags override them.
"""
from __future__ import annotations

import argparse
import json
import os
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Sequence
from urllib.parse import urlsplit

DEFAULT_MQTT_HOST = "192.168.1.1"
DEFAULT_MQTT_SERVER = f"mqtt://{DEFAULT_MQTT_HOST}"
DEFAULT_MQTT_PORT = 1883
DEFAULT_UPS_IP = "192.168.1.2"
DEFAULT_UPS_PORT = 80
DEFAULT_TIMEOUT_MS = 5000
DEFAULT_POLL_INTERVAL = 20.0
DEFAULT_UPS_TOPIC = "ups-netagent"
DEFAULT_DEVICE_ID = "ups_netagent"
DEFAULT_PAGE_PATHS = {
    "status": "/pda/status-1.htm",
    "system": "/pda/sys_status.htm",
    "info": "/pda/UPS.htm",
}

_MQTT_SCHEMES = ("mqtt", "tcp")


@dataclass(frozen=True)
class PollerConfig:
    mqtt_host: str = DEFAULT_MQTT_HOST
    mqtt_port: int = DEFAULT_MQTT_PORT
    mqtt_username: Optional[str] = None
    mqtt_password: Optional[str] = None
    ups_host: str = DEFAULT_UPS_IP
    ups_port: int = DEFAULT_UPS_PORT
    timeout: float = DEFAULT_TIMEOUT_MS / 1000.0
    poll_interval: float = DEFAULT_POLL_INTERVAL
    ups_topic: str = DEFAULT_UPS_TOPIC
    discovery_prefix: Optional[str] = None
    page_paths: Mapping[str, str] = field(default_factory=lambda: dict(DEFAULT_PAGE_PATHS))
    device_id: str = DEFAULT_DEVICE_ID
    device_name: Optional[str] = None
    config_url: Optional[str] = None

    def __post_init__(self):
        if self.timeout <= 0:
            raise ValueError("timeout must be > 0")
        if self.poll_interval <= 0:
            raise ValueError("poll_interval must be > 0")
        missing = set(DEFAULT_PAGE_PATHS) - set(self.page_paths)
        if missing:
            raise ValueError(f"missing page paths: {', '.join(sorted(missing))}")

    @property
    def discovery_topic_prefix(self) -> str:
        return self.discovery_prefix or f"homeassistant/sensor/{self.ups_topic}"

    @property
    def configuration_url(self) -> str:
        if self.config_url:
            return self.config_url
        if self.ups_port == 80:
            return f"http://{self.ups_host}"
        return f"http://{self.ups_host}:{self.ups_port}"

    def describe(self) -> Dict[str, object]:
        """Configuration summary for the startup log (no credentials)."""
        return {
            "mqttServer": f"mqtt://{self.mqtt_host}:{self.mqtt_port}",
            "upsIp": self.ups_host,
            "upsPort": self.ups_port,
            "upsTimeoutMs": int(self.timeout * 1000),
            "pollIntervalMs": int(self.poll_interval * 1000),
            "upsTopic": self.ups_topic,
            "discoveryTopicPrefix": self.discovery_topic_prefix,
            "statusPath": self.page_paths["status"],
            "systemPath": self.page_paths["system"],
            "infoPath": self.page_paths["info"],
        }

    def describe_json(self) -> str:
        return json.dumps(self.describe())


def parse_mqtt_server(url: str):
    """Split `mqtt://[user:pass@]host[:port]` into (host, port, user, password)."""
    if "://" not in url:
        url = f"mqtt://{url}"
    parts = urlsplit(url)
    if parts.scheme not in _MQTT_SCHEMES:
        raise ValueError(f"unsupported MQTT scheme: {parts.scheme!r}")
    if not parts.hostname:
        raise ValueError(f"MQTT server has no host: {url!r}")
    return parts.hostname, parts.port or DEFAULT_MQTT_PORT, parts.username, parts.password


def _env_number(environ: Mapping[str, str], name: str, default, cast=float):
    raw = environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return cast(raw)
    except ValueError as exc:
        raise ValueError(f"invalid value for {name}: {raw!r}") from exc


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Publish UPS network agent telemetry to MQTT for HomeAssistant")
    parser.add_argument("--mqtt-server", help="MQTT broker URL, e.g. mqtt://192.168.1.1:1883 (env MQTT_SERVER)")
    parser.add_argument("--ups-host", help="UPS network agent hostname or IP (env UPS_IP)")
    parser.add_argument("--ups-port", type=int, help="UPS web port (env UPS_HTTP_PORT, default: 80)")
    parser.add_argument("--timeout-ms", type=int, help="HTTP timeout per page in ms (env UPS_HTTP_TIMEOUT_MS)")
    parser.add_argument("--interval", type=float, help="Poll interval in seconds (env POLL_INTERVAL_SECONDS, default: 20)")
    parser.add_argument("--topic", help="State topic root (env UPS_TOPIC)")
    parser.add_argument("--discovery-prefix", help="Discovery topic prefix (env DISCOVERY_TOPIC_PREFIX)")
    parser.add_argument("--device-id", help="HomeAssistant device id (env HA_DEVICE_ID)")
    parser.add_argument("--device-name", help="HomeAssistant device name override (env HA_DEVICE_NAME)")
    parser.add_argument("--config-url", help="Device configuration URL override (env UPS_CONFIG_URL)")
    parser.add_argument("--env-file", default=".env", help="Environment file to load before reading settings (default: .env)")
    parser.add_argument("--once", action="store_true", help="Run a single poll cycle and exit")
    parser.add_argument("--dry-run", action="store_true", help="Print the message batch instead of publishing")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose (DEBUG) logging")
    return parser


def load_config(args: Optional[argparse.Namespace] = None, environ: Optional[Mapping[str, str]] = None) -> PollerConfig:
    """Resolve a PollerConfig from parsed arguments and the environment."""
    env = os.environ if environ is None else environ
    if args is None:
        args = build_arg_parser().parse_args([])

    mqtt_server = args.mqtt_server or env.get("MQTT_SERVER") or DEFAULT_MQTT_SERVER
    mqtt_host, mqtt_port, url_user, url_password = parse_mqtt_server(mqtt_server)

    ups_port = args.ups_port if args.ups_port is not None else _env_number(env, "UPS_HTTP_PORT", DEFAULT_UPS_PORT, int)
    timeout_ms = args.timeout_ms if args.timeout_ms is not None else _env_number(env, "UPS_HTTP_TIMEOUT_MS", DEFAULT_TIMEOUT_MS)
    interval = args.interval if args.interval is not None else _env_number(env, "POLL_INTERVAL_SECONDS", DEFAULT_POLL_INTERVAL)

    return PollerConfig(
        mqtt_host=mqtt_host,
        mqtt_port=mqtt_port,
        mqtt_username=env.get("MQTT_USERNAME") or url_user,
        mqtt_password=env.get("MQTT_PASSWORD") or url_password,
        ups_host=args.ups_host or env.get("UPS_IP") or DEFAULT_UPS_IP,
        ups_port=int(ups_port),
        timeout=float(timeout_ms) / 1000.0,
        poll_interval=float(interval),
        ups_topic=args.topic or env.get("UPS_TOPIC") or DEFAULT_UPS_TOPIC,
        discovery_prefix=args.discovery_prefix or env.get("DISCOVERY_TOPIC_PREFIX") or None,
        page_paths={
            "status": env.get("UPS_STATUS_PATH") or DEFAULT_PAGE_PATHS["status"],
            "system": env.get("UPS_SYSTEM_PATH") or DEFAULT_PAGE_PATHS["system"],
            "info": env.get("UPS_INFO_PATH") or DEFAULT_PAGE_PATHS["info"],
        },
        device_id=args.device_id or env.get("HA_DEVICE_ID") or DEFAULT_DEVICE_ID,
        device_name=args.device_name or env.get("HA_DEVICE_NAME") or None,
        config_url=args.config_url or env.get("UPS_CONFIG_URL") or None,
    )
