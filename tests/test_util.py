#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

from roku_ecp.util import (
    parse_http_headers,
    split_bytes_at_lf_or_crlf,
    parse_decimal,
    uri_escape,
    join_query_params,
    strip_trailing_slashes,
  )

def test_parse_headers_relaxed_line_endings():
    headers, body = parse_http_headers(b"ST: roku:ecp\nLocation: http://10.0.0.2:8060/\r\n\r\nbody")
    assert headers["st"] == "roku:ecp"
    assert headers["LOCATION"] == "http://10.0.0.2:8060/"
    assert body == b"body"

def test_split_lines():
    assert split_bytes_at_lf_or_crlf(b"a\r\nb\nc", 1) == [ b"a", b"b\nc" ]

def test_parse_decimal_like_strtoul():
    assert parse_decimal("609000") == 609000
    assert parse_decimal("  28abc") == 28
    assert parse_decimal("") == 0
    assert parse_decimal("abc") == 0
    assert parse_decimal("-49") == 0
    assert parse_decimal("-49", signed=True) == -49
    assert parse_decimal("+7", signed=True) == 7

def test_uri_escape():
    assert uri_escape("a b/c") == "a%20b%2Fc"
    assert uri_escape("Az09-._~") == "Az09-._~"
    assert uri_escape(b"\xc3\xa9") == "%C3%A9"

def test_query_params_keep_order():
    assert join_query_params([ ("b", "1"), ("a", "x&y") ]) == "b=1&a=x%26y"
    assert join_query_params({}) == ""

def test_strip_trailing_slashes():
    assert strip_trailing_slashes("http://10.0.0.2:8060/") == "http://10.0.0.2:8060"
    assert strip_trailing_slashes("http://10.0.0.2:8060") == "http://10.0.0.2:8060"
