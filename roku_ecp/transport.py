#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
EcpTransport -- the HTTP collaborator used by RokuEcpClient.

Each request is sent on a fresh requests session that is closed when the request
completes; nothing is pooled or reused between calls, and nothing is retried.
"""

from __future__ import annotations

import time

import requests
from requests.structures import CaseInsensitiveDict

from .internal_types import *
from .pkg_logging import logger
from .constants import DEFAULT_HTTP_TIMEOUT
from .exceptions import EcpTransportError, http_status_error

class EcpResponse:
    """The status, headers and body of one HTTP response."""

    url: str
    method: str
    status_code: int
    content: bytes
    headers: Mapping[str, str]
    elapsed: float
    """Seconds between sending the request and receiving the full response."""

    def __init__(
            self,
            url: str,
            method: str,
            status_code: int,
            content: bytes=b'',
            headers: Optional[Mapping[str, str]]=None,
            elapsed: float=0.0,
          ) -> None:
        self.url = url
        self.method = method
        self.status_code = status_code
        self.content = content
        self.headers = {} if headers is None else headers
        self.elapsed = elapsed

    def raise_for_status(self) -> None:
        """Raises EcpUnauthorizedError for 401/403 and EcpProtocolError for any other
           non-success status."""
        error = http_status_error(self.status_code, self.url, self.content)
        if error is not None:
            raise error

    def __str__(self) -> str:
        return f"EcpResponse({self.method} {self.url} -> {self.status_code}, {len(self.content)} bytes)"

    def __repr__(self) -> str:
        return str(self)

class EcpTransport:
    """Sends ECP requests with the requests library.

    Any object with a compatible send() method can be passed to RokuEcpClient in
    place of this class.
    """

    timeout: float
    """The timeout (in seconds) applied to connecting and to reading the response."""

    def __init__(self, timeout: float=DEFAULT_HTTP_TIMEOUT) -> None:
        self.timeout = timeout

    def send(self, method: str, url: str) -> EcpResponse:
        """Sends one request and returns the response, whatever its status.

        Raises EcpTransportError if no HTTP status could be obtained.
        """
        start_time = time.monotonic()
        logger.debug(f"Sending {method} {url}")
        try:
            with requests.Session() as session:
                resp = session.request(method, url, timeout=self.timeout)
                content = resp.content
        except requests.RequestException as e:
            logger.info(f"{method} {url} failed: {e}")
            raise EcpTransportError(f"{method} {url} failed: {e}") from e
        response = EcpResponse(
            url,
            method,
            resp.status_code,
            content,
            headers=CaseInsensitiveDict(resp.headers),
            elapsed=time.monotonic() - start_time
          )
        logger.debug(f"Received {response} in {int(response.elapsed * 1000)} ms")
        return response

    def __repr__(self) -> str:
        return f"EcpTransport(timeout={self.timeout})"
