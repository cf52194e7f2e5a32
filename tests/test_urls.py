#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

import pytest

from roku_ecp import RokuAppLaunchParams, RokuSearchParams, MediaType, SearchType
from roku_ecp.urls import (
    device_url,
    is_tv_only_key,
    keypress_path,
    icon_path,
    launch_path,
    tv_channel_launch_params,
    input_path,
    search_path,
    encode_literal_key,
  )

def test_device_url_strips_trailing_slashes():
    assert device_url("http://192.168.1.162:8060/", "/query/apps") == "http://192.168.1.162:8060/query/apps"
    assert device_url("http://192.168.1.162:8060", "/query/apps") == "http://192.168.1.162:8060/query/apps"
    assert device_url("http://192.168.1.162:8060//", "/query/apps") == "http://192.168.1.162:8060/query/apps"

def test_tv_only_keys():
    assert is_tv_only_key("PowerOff")
    assert is_tv_only_key("InputHDMI1")
    assert not is_tv_only_key("Home")
    assert not is_tv_only_key("poweroff")

def test_simple_paths():
    assert keypress_path("Home") == "/keypress/Home"
    assert keypress_path("Lit_%21") == "/keypress/Lit_%21"
    assert icon_path("12") == "/query/icon/12"

def test_launch_path():
    assert launch_path(RokuAppLaunchParams("12")) == "/launch/12"
    assert launch_path(RokuAppLaunchParams("12", content_id="80000000 a/b")) == "/launch/12?contentId=80000000%20a%2Fb"
    assert launch_path(RokuAppLaunchParams("12", media_type=MediaType.EPISODE)) == "/launch/12?MediaType=episode"
    assert launch_path(RokuAppLaunchParams(
        "12",
        content_id="81",
        media_type=MediaType.SHORT_FORM_VIDEO,
        extra_params={ "a b": "c&d" },
      )) == "/launch/12?contentId=81&MediaType=shortFormVideo&a%20b=c%26d"

def test_launch_extra_params_keep_order():
    params = RokuAppLaunchParams("12", extra_params=[ ("z", "1"), ("a", "2") ])
    assert params.extra_params == (("z", "1"), ("a", "2"))
    assert launch_path(params) == "/launch/12?z=1&a=2"

def test_tv_channel_launch():
    assert launch_path(tv_channel_launch_params("4.1")) == "/launch/tvinput.dtv?chan=4.1&lcn=4.1&ch=4.1"

def test_input_path():
    assert input_path([ ("touch.0.x", "200.0"), ("acceleration.x", "0.0") ]) == "/input?touch.0.x=200.0&acceleration.x=0.0"
    assert input_path({ "msg": "hi there" }) == "/input?msg=hi%20there"

def test_search_path_defaults():
    assert search_path("Friends") == "/search/browse?keyword=Friends"
    assert search_path("the office") == "/search/browse?keyword=the%20office"

def test_search_path_type():
    assert search_path("Friends", RokuSearchParams(type=SearchType.SHOW)) == "/search/browse?keyword=Friends&type=tv-show"

def test_search_path_all_params():
    params = RokuSearchParams(
        type=SearchType.MOVIE,
        include_unavailable=True,
        tms_id="MV000000000000",
        season=2,
        auto_select=True,
        auto_launch=True,
        provider_ids=("12", "13"),
      )
    assert search_path("x", params) == (
        "/search/browse?keyword=x&type=movie&show-unavailable=true&launch=true&match-any=true"
        "&season=2&tmsid=MV000000000000&provider-id=12,13"
      )

def test_search_provider_ids_need_first_entry():
    assert search_path("x", RokuSearchParams(provider_ids=("", "12"))) == "/search/browse?keyword=x"
    assert search_path("x", RokuSearchParams(provider_ids=("12", "", "13"))) == "/search/browse?keyword=x&provider-id=12,13"

def test_literal_keys():
    assert [ encode_literal_key(c) for c in "Hi!" ] == [ "Lit_H", "Lit_i", "Lit_%21" ]
    assert encode_literal_key(" ") == "Lit_%20"
    assert encode_literal_key("é") == "Lit_%C3%A9"
    assert encode_literal_key("é", "latin-1") == "Lit_%E9"
    assert encode_literal_key("€", "latin-1") is None

def test_literal_key_needs_one_character():
    with pytest.raises(ValueError):
        encode_literal_key("ab")
    with pytest.raises(ValueError):
        encode_literal_key("")
