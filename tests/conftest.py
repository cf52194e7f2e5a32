#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

from __future__ import annotations

import pytest

from roku_ecp.internal_types import *
from roku_ecp import EcpResponse, RokuDevice, RokuEcpClient, EcpTransportError

BASE_URL = "http://192.168.1.162:8060/"

DEVICE_INFO_XML = b"""<?xml version="1.0" encoding="UTF-8" ?>
<device-info>
    <udn>29780010-2c08-10c0-80c0-c83a6b8f22d1</udn>
    <serial-number>X0040000000000</serial-number>
    <device-id>S00000000000</device-id>
    <vendor-name>TCL</vendor-name>
    <model-name>7105X</model-name>
    <friendly-model-name>TCL Roku TV</friendly-model-name>
    <wifi-mac>d8:31:34:00:00:00</wifi-mac>
    <user-device-name>Living Room TV</user-device-name>
    <user-device-location>Living Room</user-device-location>
    <is-tv>true</is-tv>
    <is-stick>false</is-stick>
    <ui-resolution>1080p</ui-resolution>
    <supports-private-listening>true</supports-private-listening>
    <headphones-connected>false</headphones-connected>
    <software-version>11.0.0</software-version>
    <power-mode>PowerOn</power-mode>
    <developer-enabled>false</developer-enabled>
    <search-enabled>true</search-enabled>
    <ecp-setting-mode>enabled</ecp-setting-mode>
</device-info>
"""

TV_CHANNELS_XML = b"""<?xml version="1.0" encoding="UTF-8" ?>
<tv-channels>
    <channel>
        <number>3.1</number>
        <channel-id>3.1</channel-id>
        <name>WTMJ-HD</name>
        <type>air-digital</type>
        <user-hidden>false</user-hidden>
        <user-favorite>true</user-favorite>
        <physical-channel>28</physical-channel>
        <physical-frequency>557000</physical-frequency>
    </channel>
    <channel>
        <channel-id>4.1</channel-id>
        <name>KAAA</name>
        <type>air-digital</type>
        <broadcast-network-label>NBC</broadcast-network-label>
        <user-hidden>true</user-hidden>
        <user-favorite>false</user-favorite>
        <physical-channel>36</physical-channel>
        <physical-frequency>609000</physical-frequency>
    </channel>
</tv-channels>
"""

ACTIVE_CHANNEL_XML = b"""<?xml version="1.0" encoding="UTF-8" ?>
<tv-channel>
    <channel>
        <number>4.1</number>
        <channel-id>4.1</channel-id>
        <name>KAAA</name>
        <type>air-digital</type>
        <physical-channel>36</physical-channel>
        <physical-frequency>609000</physical-frequency>
        <active-input>true</active-input>
        <signal-state>valid</signal-state>
        <signal-mode>1080i</signal-mode>
        <signal-quality>100</signal-quality>
        <signal-strength>-49</signal-strength>
        <program-title>Evening News</program-title>
        <program-description>Local and national news.</program-description>
        <program-ratings>TV-PG</program-ratings>
        <program-has-cc>true</program-has-cc>
    </channel>
</tv-channel>
"""

APPS_XML = b"""<?xml version="1.0" encoding="UTF-8" ?>
<apps>
    <app id="tvinput.dtv" type="tvin" version="1.0.0">Antenna TV</app>
    <app id="12" subtype="ndka" type="appl" version="4.2.81179021">Netflix</app>
    <app id="837" subtype="ndka" type="appl" version="2.18.17">YouTube</app>
</apps>
"""

ACTIVE_APP_XML = b"""<?xml version="1.0" encoding="UTF-8" ?>
<active-app>
    <app id="12" subtype="ndka" type="appl" version="4.2.81179021">Netflix</app>
</active-app>
"""

class FakeTransport:
    """Records every request and answers from a table of (method, path) -> response."""

    requests: List[Tuple[str, str]]
    responses: Dict[Tuple[str, str], Tuple[int, bytes, Dict[str, str]]]
    default_status: int
    fail_paths: Dict[str, int]
    """Paths (or path prefixes) that fail with a status code."""

    raise_transport_error: bool

    def __init__(self, default_status: int=200) -> None:
        self.requests = []
        self.responses = {}
        self.default_status = default_status
        self.fail_paths = {}
        self.raise_transport_error = False

    def add(self, method: str, path: str, content: bytes=b'', status_code: int=200, headers: Optional[Dict[str, str]]=None) -> None:
        self.responses[(method, path)] = (status_code, content, {} if headers is None else headers)

    def fail(self, path: str, status_code: int) -> None:
        self.fail_paths[path] = status_code

    @property
    def paths(self) -> List[str]:
        return [ url[len(BASE_URL) - 1:] for _, url in self.requests ]

    def send(self, method: str, url: str) -> EcpResponse:
        self.requests.append((method, url))
        if self.raise_transport_error:
            raise EcpTransportError(f"{method} {url} failed: connection refused")
        assert url.startswith(BASE_URL[:-1])
        path = url[len(BASE_URL) - 1:]
        if path in self.fail_paths:
            return EcpResponse(url, method, self.fail_paths[path])
        status_code, content, headers = self.responses.get((method, path), (self.default_status, b'', {}))
        return EcpResponse(url, method, status_code, content, headers=headers)

def make_device(**kwargs: Any) -> RokuDevice:
    values: Dict[str, Any] = dict(
        url=BASE_URL,
        name="Living Room TV",
        is_tv=True,
        is_on=True,
        has_search_support=True,
      )
    values.update(kwargs)
    return RokuDevice(**values)

@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()

@pytest.fixture
def client(transport: FakeTransport) -> RokuEcpClient:
    return RokuEcpClient(transport=transport)  # type: ignore[arg-type]

@pytest.fixture
def tv() -> RokuDevice:
    return make_device()

@pytest.fixture
def player() -> RokuDevice:
    return make_device(name="Bedroom Roku", is_tv=False)

@pytest.fixture
def limited_tv() -> RokuDevice:
    return make_device(is_limited=True)
