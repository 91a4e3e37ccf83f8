# UPS NetAgent Bridge - Page Fetcher
# Author: IntelligentToasters
# License: GNU General Public License v3.0
#
# Minimal raw-socket HTTP GET for the UPS network agent's embedded web
# server, plus a helper that fetches the status, system and info pages
# concurrently.
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

"""Raw HTTP page fetcher.

Pages are fetched with a hand-written `GET` over a plain socket. The body
is everything after the first blank line; the status code is not inspected.
"""
from __future__ import annotations

import logging
import socket
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Mapping

log = logging.getLogger(__name__)

HEADER_SEPARATOR = b"\r\n\r\n"


class UPSFetchError(ConnectionError):
    """The UPS returned something that is not an HTTP response."""


def fetch_ups_page(host: str, port: int, path: str, timeout: float) -> str:
    """GET `path` from the UPS and return the response body as text.

    Raises TimeoutError when the connection stalls for longer than `timeout`,
    UPSFetchError on a response without a header/body separator and OSError
    for any other socket failure.
    """
    request = "\r\n".join([
        f"GET {path} HTTP/1.1",
        f"Host: {host}",
        "Connection: close",
        "",
        "",
    ]).encode("ascii")

    log.debug("fetching http://%s:%s%s", host, port, path)
    chunks = []
    try:
        with socket.create_connection((host, port), timeout=timeout) as s:
            s.settimeout(timeout)
            s.sendall(request)
            while True:
                chunk = s.recv(4096)
                if not chunk:
                    break
                chunks.append(chunk)
    except socket.timeout as exc:
        raise TimeoutError("UPS request timed out") from exc

    raw = b"".join(chunks)
    separator = raw.find(HEADER_SEPARATOR)
    if separator == -1:
        raise UPSFetchError("Invalid HTTP response from UPS")
    body = raw[separator + len(HEADER_SEPARATOR):]
    log.debug("fetched %s (%d bytes)", path, len(body))
    return body.decode("utf-8", errors="replace")


def fetch_all_pages(host: str, port: int, paths: Mapping[str, str], timeout: float) -> Dict[str, str]:
    """Fetch every page in `paths` concurrently; any failure propagates."""
    with ThreadPoolExecutor(max_workers=len(paths) or 1, thread_name_prefix="ups-fetch") as pool:
        futures = {
            name: pool.submit(fetch_ups_page, host, port, path, timeout)
            for name, path in paths.items()
        }
        return {name: future.result() for name, future in futures.items()}
