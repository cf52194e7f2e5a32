#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
SsdpClient -- An SSDP client that can:

  1. Send an M-SEARCH request to the SSDP multicast address (239.255.255.250:1900)
  2. Receive and decode the unicast "HTTP/1.1 200 OK" responses from remote nodes
  3. Collect and return responses received within a configurable timeout period
"""

from __future__ import annotations

import asyncio
import socket
import sys
import re
import time

from .internal_types import *
from .pkg_logging import logger
from .constants import SSDP_MULTICAST_ADDRESS, SSDP_PORT, SSDP_MX, DISCOVERY_WAIT_TIME

from .ssdp_datagram import SsdpDatagram, make_search_datagram
from .ssdp_socket import SsdpSocket, SsdpSocketBinding, SsdpDatagramSubscriber
from .util import get_local_ip_addresses, CaseInsensitiveDict

MULTICAST_TTL = 2
"""The IP TTL of outgoing M-SEARCH requests; enough to cross one local router."""

class SsdpResponseInfo:
    socket_binding: SsdpSocketBinding
    """The socket binding on which the response was received"""

    src_addr: HostAndPort
    """The source address of the response"""

    datagram: SsdpDatagram
    """The response datagram"""

    http_version: str
    """The HTTP version string in the statement line (e.g. "1.1")"""

    status_code: int
    """The status code in the statement line (e.g. 200)"""

    status: str
    """The status string in the statement line (e.g. "OK")"""

    monotonic_time: float
    """The local time at which the response was received, as returned by time.monotonic()."""

    def __init__(
            self,
            socket_binding: SsdpSocketBinding,
            src_addr: HostAndPort,
            datagram: SsdpDatagram,
            http_version: str,
            status_code: int,
            status: str
          ) -> None:
        self.socket_binding = socket_binding
        self.src_addr = src_addr
        self.datagram = datagram
        self.http_version = http_version
        self.status_code = status_code
        self.status = status
        self.monotonic_time = time.monotonic()

    @property
    def location(self) -> Optional[str]:
        return self.datagram.hdr_location

    def __str__(self) -> str:
        return f"SsdpResponseInfo(from={self.src_addr}, status={self.status_code}, location={self.location})"

    def __repr__(self) -> str:
        return str(self)

_response_statement_re = re.compile(r'^HTTP/(?P<version_major>[0-9]+)\.(?P<version_minor>[0-9]+) +(?P<status_code>[0-9]+) *(?P<status>.*?) *$')

def parse_response_statement(statement_line: str) -> Optional[Tuple[str, int, str]]:
    """Parses an HTTP response status line (e.g. "HTTP/1.1 200 OK").

    Returns (http_version, status_code, status), or None if the line is not a response
    status line. M-SEARCH and NOTIFY requests from other clients return None.
    """
    m = _response_statement_re.match(statement_line)
    if m is None:
        return None
    http_version = f"{m.group('version_major')}.{m.group('version_minor')}"
    return http_version, int(m.group('status_code')), m.group('status')

class SsdpSearchRequest(
        AsyncContextManager['SsdpSearchRequest'],
        AsyncIterable[SsdpResponseInfo]
      ):
    """An object that manages a single search request on an SsdpClient and all of the received responses
       within an AsyncContextManager/AsyncIterable interface."""

    ssdp_client: SsdpClient
    search_target: str
    include_error_responses: bool

    dg_subscriber: SsdpDatagramSubscriber
    response_wait_time: float
    max_responses: int
    end_time: float = 0.0
    filter_headers: Optional[CaseInsensitiveDict[str]] = None

    def __init__(
            self,
            ssdp_client: SsdpClient,
            search_target: Optional[str]=None,
            response_wait_time: Optional[float]=None,
            max_responses: int=0,
            include_error_responses: bool=False,
            filter_headers: Optional[Mapping[str, str]]=None
          ):
        """Create an async context manager/iterable that sends a multicast M-SEARCH request and returns
        the responses as they arrive.

        Parameters:
            ssdp_client:             The SsdpClient instance to use for sending the search request and receiving responses.
            search_target:           The ST header to search for. Defaults to ssdp_client.search_target.
            response_wait_time:      The amount of time (in seconds) to wait for responses to come in. Defaults to
                                        ssdp_client.response_wait_time.
            max_responses:           The maximum number of responses to return. If 0 (the default), all responses received
                                        within response_wait_time will be returned.
            include_error_responses: If True, responses with a non-200 status code will be included in the results.
                                        Defaults to False.
            filter_headers:          A mapping of headers to values. If specified, only responses that have all of the
                                        specified headers with the specified values will be included in the results.

        Usage:
            async with SsdpSearchRequest(ssdp_client, ...) as search_request:
                async for response in search_request:
                    print(response.datagram.headers)
                    # It is possible to break out of the loop early if desired
        """
        self.ssdp_client = ssdp_client
        self.search_target = ssdp_client.search_target if search_target is None else search_target
        self.response_wait_time = ssdp_client.response_wait_time if response_wait_time is None else response_wait_time
        self.max_responses = max_responses
        self.include_error_responses = include_error_responses
        self.dg_subscriber = SsdpDatagramSubscriber(self.ssdp_client)
        self.filter_headers = None if filter_headers is None else CaseInsensitiveDict(filter_headers)

    async def __aenter__(self) -> SsdpSearchRequest:
        # The subscriber must be started before the request is sent so that no response is missed.
        await self.dg_subscriber.__aenter__()
        try:
            search_datagram = make_search_datagram(
                self.search_target,
                mx=self.ssdp_client.mx,
                multicast_address=self.ssdp_client.multicast_address,
                multicast_port=self.ssdp_client.multicast_port,
              )
            for socket_binding in self.ssdp_client.socket_bindings:
                if socket_binding.closed:
                    continue
                socket_binding.sendto(search_datagram, (self.ssdp_client.multicast_address, self.ssdp_client.multicast_port))
            self.end_time = time.monotonic() + self.response_wait_time
        except BaseException as e:
            # __aexit__ is not called if __aenter__ raises, so the subscriber is cleaned up here.
            await self.dg_subscriber.__aexit__(type(e), e, e.__traceback__)
            raise
        return self

    async def __aexit__(
            self,
            exc_type: Optional[Type[BaseException]],
            exc: Optional[BaseException],
            tb: Optional[TracebackType]
      ) -> bool:
        return await self.dg_subscriber.__aexit__(exc_type, exc, tb)

    def _accepts(self, datagram: SsdpDatagram, status_code: int) -> bool:
        if not self.include_error_responses and status_code != 200:
            return False
        if self.filter_headers is None:
            return True
        return all(datagram.headers.get(key, None) == value for key, value in self.filter_headers.items())

    async def iter_responses(self) -> AsyncIterator[SsdpResponseInfo]:
        n = 0
        while True:
            if self.max_responses > 0 and n >= self.max_responses:
                break
            remaining_time = self.end_time - time.monotonic()
            if remaining_time <= 0.0:
                break
            try:
                resp_tuple = await asyncio.wait_for(self.dg_subscriber.receive(), remaining_time)
            except asyncio.TimeoutError:
                break
            if resp_tuple is None:
                break
            socket_binding, addr, datagram = resp_tuple
            parsed = parse_response_statement(datagram.statement_line)
            if parsed is None:
                logger.debug(f"Ignoring non-response datagram from {addr}: {datagram.statement_line!r}")
                continue
            http_version, status_code, status = parsed
            info = SsdpResponseInfo(socket_binding, addr, datagram, http_version, status_code, status)
            logger.debug(f"Received SSDP response from {addr} on {socket_binding}: status_code={status_code}, headers={datagram.headers}")
            if self._accepts(datagram, status_code):
                n += 1
                yield info

    def __aiter__(self) -> AsyncIterator[SsdpResponseInfo]:
        return self.iter_responses()


class SsdpClient(SsdpSocket, AsyncContextManager['SsdpClient']):
    """
    An SSDP client that can:

      1. Send an M-SEARCH request to the SSDP multicast address (typically 239.255.255.250:1900)
      2. Receive and decode the responses from remote nodes
      3. Collect and return responses received within a configurable timeout period

    Must be created while an event loop is running.
    """
    search_target: str
    """The default ST header of search requests."""

    response_wait_time: float
    """The amount of time (in seconds) to wait for all responses to come in."""

    mx: int
    """The MX header of search requests; the maximum delay (in seconds) a responder may wait before answering."""

    multicast_address: str = SSDP_MULTICAST_ADDRESS
    multicast_port: int = SSDP_PORT

    bind_addresses: List[str]
    """The local IPv4 addresses to bind to; one socket is bound to each."""

    include_loopback: bool = False
    """If True, loopback addresses will be included in the default list of local IP addresses to bind to."""

    def __init__(
            self,
            search_target: str="ssdp:all",
            response_wait_time: float=DISCOVERY_WAIT_TIME,
            mx: int=SSDP_MX,
            multicast_address: str=SSDP_MULTICAST_ADDRESS,
            multicast_port: int=SSDP_PORT,
            bind_addresses: Optional[Iterable[str]]=None,
            include_loopback: bool = False
          ) -> None:
        super().__init__()
        self.search_target = search_target
        self.response_wait_time = response_wait_time
        self.mx = mx
        self.multicast_address = multicast_address
        self.multicast_port = multicast_port
        self.include_loopback = include_loopback
        if bind_addresses is None:
            bind_addresses = get_local_ip_addresses(include_loopback=self.include_loopback)
        self.bind_addresses = list(bind_addresses)

    #@override
    async def add_socket_bindings(self) -> None:
        """Creates one UDP socket for each bind address, on an ephemeral port."""
        logger.debug(f"Creating socket bindings to {self.bind_addresses}")
        for bind_address in self.bind_addresses:
            sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
            try:
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
                if sys.platform not in ( 'win32', 'cygwin' ):
                    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEPORT, 1)
                sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_TTL, MULTICAST_TTL)
                sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_IF, socket.inet_aton(bind_address))
                sock.bind((bind_address, 0))
            except BaseException:
                sock.close()
                raise
            socket_binding = SsdpSocketBinding(sock, unicast_addr=sock.getsockname())
            self.add_socket_binding(socket_binding)

    def search(
            self,
            search_target: Optional[str]=None,
            response_wait_time: Optional[float]=None,
            max_responses: int=0,
            include_error_responses: bool=False,
            filter_headers: Optional[Mapping[str, str]]=None,
          ) -> SsdpSearchRequest:
        """Create an async context manager/iterable that sends a multicast M-SEARCH request and returns the
           responses as they arrive. See SsdpSearchRequest for the parameters.

        Usage:
            async with ssdp_client.search(...) as search_request:
                async for response in search_request:
                    print(response.datagram.headers)
        """
        return SsdpSearchRequest(
                self,
                search_target=search_target,
                response_wait_time=response_wait_time,
                max_responses=max_responses,
                include_error_responses=include_error_responses,
                filter_headers=filter_headers,
              )

    async def __aenter__(self) -> SsdpClient:
        await super().__aenter__()
        return self
