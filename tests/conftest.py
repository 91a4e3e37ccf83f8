"""
Shared fixtures: sample pages as served by a UPS network agent card.
"""

import pytest

from netagent_ups.config import PollerConfig


STATUS_HTML = """<html><head><title>UPS Status</title></head><body>
<font size="2">
<b>UPS Status:</b> Normal<br>
<b>AC Status:</b> Normal<br>
<b>Input Line Voltage:</b> 121.5 V<br>
<b>Input Max. Line Voltage:</b> 123.0 V<br>
<b>Input Min. Line Voltage:</b> 119.0 V<br>
<b>Input Frequency:</b> 59.94 Hz<br>
<b>Output Voltage:</b> 120.0 V<br>
<b>Output Status:</b> Normal<br>
<b>UPS load:</b> 42 %<br>
<b>Temperature:</b> 25.06 &deg;C<br>
<b>Battery Status:</b> Battery Normal<br>
<b>Battery Capacity:</b> 100 %<br>
<b>Battery Voltage:</b> 27.346 V<br>
<b>Time on Battery:</b> 00:00:00<br>
<b>Estimated Battery Remaining Time:</b> 01:02:03<br>
<b>UPS Last Self Test:</b> 2024/01/01<br>
<b>UPS Next Self Test:</b> 2024/02/01<br>
</font>
</body></html>
"""

SYSTEM_HTML = """<html><body>
<b>Hardware Version:</b> HW 1.0<br>
<b>Firmware Version:</b> 2.43.NA<br>
<b>Serial Number:</b> 3915123456<br>
<b>System Name:</b> Rack UPS<br>
<b>Location:</b> Server Room<br>
<b>System Time:</b> <span id="sys_time">2024/01/02&nbsp;03:04:05</span>
<input type="hidden" name="$year_date_time" value="2024/01/02 03:04:00"><br>
<b>Uptime:</b> 10:00:00 <input type="hidden" name="$up_time_hidden" value="36005"><br>
<b>MAC Address:</b> 00:03:EA:12:34:56<br>
<b>IP Address:</b> 192.168.1.50<br>
<b>Email Server:</b> mail.example.com<br>
<b>Primary DNS Server:</b> 192.168.1.1<br>
<b>Secondary DNS Server:</b> 8.8.8.8<br>
<b>PPPoE IP:</b> 0.0.0.0<br>
</body></html>
"""

INFO_HTML = """<html><body>
<b>UPS Manufacturer:</b> PowerCom<br>
<b>UPS Firmware Version:</b> 3.1<br>
<b>UPS Model:</b> SMK-1500A<br>
<b>Date of last battery replacement:</b> 2023/05/06<br>
<b>Number of Batteries:</b> 2<br>
<b>Battery Charge Voltage:</b> 27.4 V<br>
<b>Battery Voltage Rating:</b> 24 V<br>
</body></html>
"""


@pytest.fixture
def pages():
    return {"status": STATUS_HTML, "system": SYSTEM_HTML, "info": INFO_HTML}


@pytest.fixture
def config():
    return PollerConfig(
        mqtt_host="broker.local",
        ups_host="10.0.0.5",
        ups_topic="ups-netagent",
        device_id="ups_netagent",
    )
