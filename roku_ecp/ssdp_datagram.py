#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Abstraction of a Datagram packet used in the SSDP protocol.
"""

from __future__ import annotations

import re

from .internal_types import *
from .pkg_logging import logger

from .constants import SSDP_MULTICAST_ADDRESS, SSDP_PORT, SSDP_MX

from .util import (
    CaseInsensitiveDict,
    split_bytes_at_lf_or_crlf,
    parse_http_headers,
    encode_http_header,
)

_max_age_re = re.compile(r'max-age *= *(?P<max_age>[0-9]+)', re.IGNORECASE)

class SsdpDatagram(MutableMapping[str, str]):
    """Wrapper for a raw SSDP datagram.

    This class provides parsing and formatting of the HTTP-like packets, a dict-like
    interface to the headers, and a few other convenient properties.
    """

    _raw_data: bytes
    """The raw UDP datagram contents"""

    _statement_line: str
    """The first line of the datagram; e.g., "HTTP/1.1 200 OK",
       "M-SEARCH * HTTP/1.1", "NOTIFY * HTTP/1.1", etc."""

    _headers: CaseInsensitiveDict[str]
    """The headers as a CaseInsensitiveDict[str]."""

    _body: bytes
    """The body of the datagram, if any. If there is no body, b'' is returned."""

    def __init__(
            self,
            statement: Optional[str]=None,
            headers: Optional[Mapping[str, Optional[str]]]=None,
            body: Optional[bytes]=None,
            raw_data: Optional[bytes]=None,
          ):
        self._headers = CaseInsensitiveDict()
        if raw_data is None:
            if statement is None:
                raise ValueError("Either statement or raw_data must be provided")
            assert isinstance(statement, str)
            self._statement_line = statement
            self._body = b'' if body is None else body
            if not headers is None:
                for name, value in headers.items():
                    if value is not None:
                        self._headers[name] = value
            self._rebuild_raw_data()
        else:
            assert isinstance(raw_data, bytes)
            if not (statement is None and headers is None and body is None):
                raise ValueError("If raw_data is provided, statement, headers, and body must be None")
            self.raw_data = raw_data
            # derived attributes are set by the setter for raw_data

    def __str__(self) -> str:
        return f"SsdpDatagram('{self._statement_line}', headers={self._headers}, body={self._body!r})"

    def __repr__(self) -> str:
        return str(self)

    @property
    def raw_data(self) -> bytes:
        """The raw UDP datagram contents"""
        return self._raw_data

    @raw_data.setter
    def raw_data(self, value: bytes) -> None:
        """Set the raw UDP datagram contents, and recompute headers."""
        assert isinstance(value, bytes)
        self._raw_data = value
        statement_and_remainder = split_bytes_at_lf_or_crlf(self.raw_data, 1)
        self._statement_line = statement_and_remainder[0].decode('utf-8')
        headers_and_body = b'' if len(statement_and_remainder) < 2 else statement_and_remainder[1]
        self._headers, self._body = parse_http_headers(headers_and_body)

    @property
    def statement_line(self) -> str:
        """The first line of the datagram; e.g., "HTTP/1.1 200 OK"."""
        return self._statement_line

    @property
    def body(self) -> bytes:
        """The body of the datagram, if any. If there is no body, b'' is returned."""
        return self._body

    @property
    def headers(self) -> CaseInsensitiveDict[str]:
        return self._headers

    def set_header(self, name: str, value: Optional[str]) -> None:
        """Set a header value. If value is None, the header is removed.

           `name` is case-insensitive, but the case of the header name is preserved
           and updated to reflect the provided value.

           The raw packet byte string is updated to reflect the new header value.
        """
        if value is None:
            self._headers.pop(name, None)
        else:
            assert isinstance(value, str)
            self._headers[name] = value
        self._rebuild_raw_data()

    @property
    def hdr_location(self) -> Optional[str]:
        """Returns the "LOCATION" header; for Roku devices, the ECP base URL."""
        return self._headers.get("Location")

    @property
    def hdr_st(self) -> Optional[str]:
        """Returns the "ST" (search target) header."""
        return self._headers.get("ST")

    @property
    def hdr_usn(self) -> Optional[str]:
        """Returns the "USN" (unique service name) header, e.g. "uuid:roku:ecp:P0A070000007"."""
        return self._headers.get("USN")

    @property
    def hdr_max_age(self) -> Optional[int]:
        """Returns the max-age directive of the "Cache-Control" header as an int.

        Returns None if there is no valid max-age directive.
        """
        cache_control = self._headers.get("Cache-Control")
        if cache_control is None:
            return None
        m = _max_age_re.search(cache_control)
        if m is None:
            return None
        return int(m.group('max_age'))

    def __setitem__(self, key: str, value: Optional[str]) -> None:
        self.set_header(key, value)

    def __getitem__(self, key: str) -> str:
        return self._headers[key]

    def __delitem__(self, key: str) -> None:
        if key not in self._headers:
            raise KeyError(key)
        self.set_header(key, None)

    def __iter__(self):
        return iter(self._headers)

    def __len__(self):
        return len(self._headers)

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, SsdpDatagram):
            return False
        return (self._statement_line == other._statement_line and
                self._headers == other._headers and
                self._body == other._body)

    def _rebuild_raw_data(self) -> None:
        """Rebuild the raw data from the statement line, headers, and body."""
        raw_data = self.statement_line.encode('utf-8') + b'\r\n'
        for k, v in self._headers.items():
            raw_data += encode_http_header(k, v)
        raw_data += b"\r\n"
        raw_data += self.body
        self._raw_data = raw_data

def make_search_datagram(
        search_target: str,
        mx: int=SSDP_MX,
        multicast_address: str=SSDP_MULTICAST_ADDRESS,
        multicast_port: int=SSDP_PORT,
      ) -> SsdpDatagram:
    """Returns an M-SEARCH request for a search target (e.g. "roku:ecp")."""
    datagram = SsdpDatagram(
        "M-SEARCH * HTTP/1.1",
        headers={
            "Host": f"{multicast_address}:{multicast_port}",
            "Man": '"ssdp:discover"',
            "ST": search_target,
            "MX": str(mx),
          }
      )
    logger.debug(f"Built search datagram: {datagram}")
    return datagram
