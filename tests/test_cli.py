#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

import json

import pytest

from roku_ecp import RokuEcpClient, __version__
import roku_ecp.__main__ as cli

from conftest import BASE_URL, DEVICE_INFO_XML, APPS_XML, FakeTransport

PLAYER_INFO_XML = DEVICE_INFO_XML.replace(b"<is-tv>true</is-tv>", b"<is-tv>false</is-tv>")

@pytest.fixture
def fake_transport(monkeypatch) -> FakeTransport:
    transport = FakeTransport()
    monkeypatch.setattr(cli, "RokuEcpClient", lambda timeout: RokuEcpClient(transport=transport))  # type: ignore[arg-type]
    return transport

def test_version(capsys):
    assert cli.run([ "version" ]) == 0
    assert capsys.readouterr().out.strip() == __version__

def test_no_command(capsys):
    assert cli.run([]) == 1
    assert "A command is required" in capsys.readouterr().err

def test_bad_arguments():
    assert cli.run([ "key" ]) == 2

def test_info(fake_transport, capsys):
    fake_transport.add("GET", "/query/device-info", DEVICE_INFO_XML)
    assert cli.run([ "info", BASE_URL ]) == 0
    info = json.loads(capsys.readouterr().out)
    assert info["name"] == "Living Room TV"
    assert info["is_tv"] is True

def test_apps(fake_transport, capsys):
    fake_transport.add("GET", "/query/apps", APPS_XML)
    fake_transport.add("GET", "/query/device-info", DEVICE_INFO_XML)
    assert cli.run([ "apps", BASE_URL, "--max-apps", "2" ]) == 0
    apps = json.loads(capsys.readouterr().out)
    assert [ a["id"] for a in apps ] == [ "tvinput.dtv", "12" ]

def test_type(fake_transport):
    fake_transport.add("GET", "/query/device-info", DEVICE_INFO_XML)
    assert cli.run([ "type", BASE_URL, "Hi!" ]) == 0
    assert fake_transport.paths[1:] == [ "/keypress/Lit_H", "/keypress/Lit_i", "/keypress/Lit_%21" ]

def test_search(fake_transport):
    fake_transport.add("GET", "/query/device-info", DEVICE_INFO_XML)
    assert cli.run([ "search", BASE_URL, "Friends", "--type", "show" ]) == 0
    assert fake_transport.paths[1:] == [ "/search/browse?keyword=Friends&type=tv-show" ]

def test_launch_with_params(fake_transport):
    fake_transport.add("GET", "/query/device-info", DEVICE_INFO_XML)
    assert cli.run([ "launch", BASE_URL, "12", "--content-id", "80", "--media-type", "episode", "-p", "a=b" ]) == 0
    assert fake_transport.paths[1:] == [ "/launch/12?contentId=80&MediaType=episode&a=b" ]

def test_capability_error_exit_code(fake_transport, capsys):
    fake_transport.add("GET", "/query/device-info", PLAYER_INFO_XML)
    assert cli.run([ "key", BASE_URL, "PowerOff" ]) == 6
    assert "roku-ecp: error:" in capsys.readouterr().err
    assert fake_transport.paths == [ "/query/device-info" ]

def test_unauthorized_exit_code(fake_transport):
    fake_transport.fail("/query/device-info", 403)
    assert cli.run([ "info", BASE_URL ]) == 2

def test_traceback_reraises(fake_transport):
    fake_transport.fail("/query/device-info", 500)
    with pytest.raises(Exception):
        cli.run([ "--traceback", "info", BASE_URL ])

def test_discover_with_info(fake_transport, monkeypatch, capsys):
    async def fake_find(max_devices: int, interface=None, wait_time: float=5.0):
        assert max_devices == 2
        return [ BASE_URL ]
    monkeypatch.setattr(cli, "async_find_roku_devices", fake_find)
    fake_transport.add("GET", "/query/device-info", DEVICE_INFO_XML)
    assert cli.run([ "discover", "--max-devices", "2", "--info" ]) == 0
    devices = json.loads(capsys.readouterr().out)
    assert [ d["name"] for d in devices ] == [ "Living Room TV" ]
    assert devices[0]["url"] == BASE_URL
