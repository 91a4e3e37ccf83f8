#!/usr/bin/env python3
# UPS NetAgent Bridge - MQTT Client
# Author: IntelligentToasters
# License: GNU General Public License v3.0
#
# Polls a UPS network agent card's web pages and publishes the readings to
# an MQTT broker for HomeAssistant integration, including discovery config.
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
"""
MQTT Client for UPS network agent cards
Publishes UPS status data for HomeAssistant integration

Every interval the client fetches the status, system and info pages from the
card, parses them and publishes one retained state topic per reading plus a
HomeAssistant discovery config per sensor.

Configuration comes from environment variables (MQTT_SERVER, UPS_IP, ...),
which may also be set in a .env file; command-line flags override them.

Usage:
    scripts/mqtt_client.py --ups-host 192.168.1.2 --mqtt-server mqtt://192.168.1.1 --interval 20
    scripts/mqtt_client.py --once --dry-run
"""

import json
import signal
import sys
import logging

from dotenv import load_dotenv

from netagent_ups import UPSPoller, load_config
from netagent_ups.config import build_arg_parser

log = logging.getLogger(__name__)


def print_messages(messages):
    """Dry-run sink: one JSON line per message on stdout"""
    for msg in messages:
        print(json.dumps({"topic": msg.topic, "payload": msg.encode(), "retain": msg.retain}, ensure_ascii=False))


def main(argv=None):
    """Main entry point"""
    args = build_arg_parser().parse_args(argv)

    # Configure logging with timestamp
    log_level = logging.DEBUG if args.verbose else logging.WARNING
    log_format = '[%(asctime)s] %(levelname)s: %(message)s'
    logging.basicConfig(level=log_level, format=log_format, datefmt='%H:%M:%S')

    # Settings from .env fill in anything not already in the environment
    load_dotenv(args.env_file)

    try:
        config = load_config(args)
    except ValueError as e:
        log.error(f"Invalid configuration: {e}")
        return 2

    poller = UPSPoller(config, sink=print_messages if args.dry_run else None)

    if args.once:
        return 0 if poller.run_cycle() else 1

    def signal_handler(sig, frame):
        """Handle termination signals gracefully (SIGINT from Ctrl+C, SIGTERM from kill)"""
        log.info("Shutting down...")
        poller.stop()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    poller.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
