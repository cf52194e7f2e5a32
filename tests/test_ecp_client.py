#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

import logging

import pytest

from roku_ecp import (
    RokuEcpClient,
    RokuApp,
    RokuTVChannel,
    RokuSearchParams,
    RokuAppLaunchParams,
    SearchType,
    MediaType,
    TypingPolicy,
    EcpError,
    EcpTransportError,
    EcpUnauthorizedError,
    EcpProtocolError,
    EcpCapabilityError,
    EcpLimitedModeError,
    EcpNotATvError,
    EcpInvalidKeyError,
    EcpSearchUnsupportedError,
    EcpEmptyKeywordError,
    EcpParseError,
    EcpEmptyDocumentError,
    ResultCode,
  )

from conftest import (
    BASE_URL,
    DEVICE_INFO_XML,
    TV_CHANNELS_XML,
    ACTIVE_CHANNEL_XML,
    APPS_XML,
    ACTIVE_APP_XML,
    make_device,
  )

# ======================= queries

def test_get_device(client, transport):
    transport.add("GET", "/query/device-info", DEVICE_INFO_XML)
    device = client.get_device(BASE_URL)
    assert transport.requests == [ ("GET", "http://192.168.1.162:8060/query/device-info") ]
    assert device.url == BASE_URL
    assert device.name == "Living Room TV"
    assert device.is_tv

def test_get_device_unauthorized(client, transport):
    transport.fail("/query/device-info", 403)
    with pytest.raises(EcpUnauthorizedError) as exc_info:
        client.get_device(BASE_URL)
    assert exc_info.value.status_code == 403
    assert exc_info.value.result_code == ResultCode.UNAUTHORIZED

def test_get_device_server_error(client, transport):
    transport.fail("/query/device-info", 500)
    with pytest.raises(EcpProtocolError):
        client.get_device(BASE_URL)

def test_get_device_malformed(client, transport):
    transport.add("GET", "/query/device-info", b"<device-info>")
    with pytest.raises(EcpParseError):
        client.get_device(BASE_URL)

def test_get_device_transport_error(client, transport):
    transport.raise_transport_error = True
    with pytest.raises(EcpTransportError):
        client.get_device(BASE_URL)

def test_get_tv_channels(client, transport, tv):
    transport.add("GET", "/query/tv-channels", TV_CHANNELS_XML)
    channels = client.get_tv_channels(tv)
    assert [ c.id for c in channels ] == [ "3.1", "4.1" ]
    assert channels[1].frequency == 609000000

def test_get_tv_channels_requires_tv(client, transport, player, limited_tv):
    with pytest.raises(EcpNotATvError):
        client.get_tv_channels(player)
    with pytest.raises(EcpLimitedModeError):
        client.get_tv_channels(limited_tv)
    assert transport.requests == []

def test_not_a_tv_is_checked_before_limited_mode(client, transport):
    with pytest.raises(EcpNotATvError):
        client.get_active_tv_channel(make_device(is_tv=False, is_limited=True))
    assert transport.requests == []

def test_get_active_tv_channel(client, transport, tv):
    transport.add("GET", "/query/tv-active-channel", ACTIVE_CHANNEL_XML)
    ext = client.get_active_tv_channel(tv)
    assert ext.is_active
    assert ext.program.title == "Evening News"

def test_get_apps(client, transport, player):
    transport.add("GET", "/query/apps", APPS_XML)
    assert [ a.name for a in client.get_apps(player) ] == [ "Antenna TV", "Netflix", "YouTube" ]
    assert [ a.name for a in client.get_apps(player, max_apps=1) ] == [ "Antenna TV" ]

def test_get_apps_limited(client, transport, limited_tv):
    with pytest.raises(EcpLimitedModeError):
        client.get_apps(limited_tv)
    assert transport.requests == []

def test_get_active_app_allowed_in_limited_mode(client, transport, limited_tv):
    transport.add("GET", "/query/active-app", ACTIVE_APP_XML)
    assert client.get_active_app(limited_tv).name == "Netflix"

def test_get_active_app_without_app_element(client, transport, tv):
    transport.add("GET", "/query/active-app", b"<active-app/>")
    with pytest.raises(EcpEmptyDocumentError) as exc_info:
        client.get_active_app(tv)
    assert exc_info.value.result_code == ResultCode.EMPTY_DOCUMENT
    assert int(exc_info.value.result_code) == -5

def test_get_app_icon(client, transport, tv):
    transport.add("GET", "/query/icon/12", b"\x89PNG\r\n", headers={ "Content-Type": "image/png" })
    icon = client.get_app_icon(tv, RokuApp(id="12", name="Netflix"))
    assert icon.data == b"\x89PNG\r\n"
    assert icon.size == 6
    assert icon.content_type == "image/png"
    assert icon.ok
    icon.raise_for_status()

def test_get_app_icon_keeps_body_on_error_status(client, transport, tv):
    transport.add("GET", "/query/icon/999", b"not found", status_code=404)
    icon = client.get_app_icon(tv, "999")
    assert icon.data == b"not found"
    assert not icon.ok
    with pytest.raises(EcpProtocolError):
        icon.raise_for_status()

def test_get_app_icon_limited(client, transport, limited_tv):
    with pytest.raises(EcpLimitedModeError):
        client.get_app_icon(limited_tv, "12")
    assert transport.requests == []

# ======================= commands

def test_send_key(client, transport, player):
    client.send_key(player, "Home")
    assert transport.requests == [ ("POST", "http://192.168.1.162:8060/keypress/Home") ]

def test_tv_only_key_on_player_sends_nothing(client, transport, player):
    with pytest.raises(EcpInvalidKeyError) as exc_info:
        client.send_key(player, "PowerOff")
    assert isinstance(exc_info.value, EcpCapabilityError)
    assert exc_info.value.result_code == ResultCode.CAPABILITY_ERROR
    assert transport.requests == []

def test_tv_only_key_on_tv(client, transport, tv):
    client.send_key(tv, "PowerOff")
    assert transport.paths == [ "/keypress/PowerOff" ]

def test_send_key_limited(client, transport, limited_tv):
    with pytest.raises(EcpLimitedModeError):
        client.send_key(limited_tv, "Home")
    assert transport.requests == []

def test_send_key_unauthorized(client, transport, tv):
    transport.fail("/keypress/Home", 401)
    with pytest.raises(EcpUnauthorizedError):
        client.send_key(tv, "Home")

def test_launch_app(client, transport, player):
    client.launch_app(player, "12")
    client.launch_app(player, RokuAppLaunchParams("12", content_id="80", media_type=MediaType.FILM))
    assert transport.paths == [ "/launch/12", "/launch/12?contentId=80&MediaType=movie" ]
    assert all(method == "POST" for method, _ in transport.requests)

def test_launch_tv_channel(client, transport, tv, player):
    client.launch_tv_channel(tv, RokuTVChannel(id="4.1"))
    assert transport.paths == [ "/launch/tvinput.dtv?chan=4.1&lcn=4.1&ch=4.1" ]
    with pytest.raises(EcpNotATvError):
        client.launch_tv_channel(player, "4.1")
    assert len(transport.requests) == 1

def test_send_input(client, transport, tv, limited_tv):
    client.send_input(tv, [ ("a", "1"), ("b", "x y") ])
    assert transport.paths == [ "/input?a=1&b=x%20y" ]
    with pytest.raises(EcpLimitedModeError):
        client.send_input(limited_tv, { "a": "1" })
    assert len(transport.requests) == 1

def test_search(client, transport, tv):
    client.search(tv, "Friends", RokuSearchParams(type=SearchType.SHOW))
    assert transport.requests == [ ("POST", "http://192.168.1.162:8060/search/browse?keyword=Friends&type=tv-show") ]

def test_search_preconditions(client, transport, tv, limited_tv):
    with pytest.raises(EcpEmptyKeywordError):
        client.search(tv, "")
    with pytest.raises(EcpSearchUnsupportedError):
        client.search(make_device(has_search_support=False), "Friends")
    with pytest.raises(EcpLimitedModeError):
        client.search(limited_tv, "")
    assert transport.requests == []

def test_type_text(client, transport, tv):
    assert client.type_text(tv, "Hi!") == 3
    assert transport.paths == [ "/keypress/Lit_H", "/keypress/Lit_i", "/keypress/Lit_%21" ]

def test_type_text_skips_unencodable_characters(client, transport, tv):
    assert client.type_text(tv, "a€b", encoding="latin-1") == 2
    assert transport.paths == [ "/keypress/Lit_a", "/keypress/Lit_b" ]

def test_type_text_limited(client, transport, limited_tv):
    with pytest.raises(EcpLimitedModeError):
        client.type_text(limited_tv, "abc")
    assert transport.requests == []

def test_type_text_stops_when_unauthorized(client, transport, tv):
    transport.fail("/keypress/Lit_b", 403)
    with pytest.raises(EcpUnauthorizedError):
        client.type_text(tv, "abc", policy=TypingPolicy.FIRST_FAILURE)
    assert transport.paths == [ "/keypress/Lit_a", "/keypress/Lit_b" ]

def test_type_text_last_wins_drops_earlier_failures(client, transport, tv, caplog):
    transport.fail("/keypress/Lit_a", 500)
    with caplog.at_level(logging.WARNING, logger="roku_ecp"):
        assert client.type_text(tv, "abc") == 3
    assert len(transport.requests) == 3
    assert "Dropping keypress failure" in caplog.text

def test_type_text_last_wins_reports_last_failure(client, transport, tv):
    transport.fail("/keypress/Lit_c", 500)
    with pytest.raises(EcpProtocolError):
        client.type_text(tv, "abc")
    assert len(transport.requests) == 3

def test_type_text_first_failure(client, transport, tv):
    transport.fail("/keypress/Lit_a", 500)
    transport.fail("/keypress/Lit_b", 503)
    with pytest.raises(EcpProtocolError) as exc_info:
        client.type_text(tv, "abc", policy=TypingPolicy.FIRST_FAILURE)
    assert exc_info.value.status_code == 500
    assert len(transport.requests) == 3

def test_type_text_fail_fast(client, transport, tv):
    transport.fail("/keypress/Lit_a", 500)
    with pytest.raises(EcpProtocolError):
        client.type_text(tv, "abc", policy=TypingPolicy.FAIL_FAST)
    assert len(transport.requests) == 1

def test_no_state_between_calls(transport):
    client = RokuEcpClient(transport=transport)  # type: ignore[arg-type]
    transport.add("GET", "/query/device-info", DEVICE_INFO_XML)
    first = client.get_device(BASE_URL)
    second = client.get_device(BASE_URL)
    assert first == second
    assert len(transport.requests) == 2

def test_every_error_is_an_ecp_error(client, transport, player):
    transport.default_status = 500
    with pytest.raises(EcpError):
        client.send_key(player, "Home")
