#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Exceptions defined by this package, and the result codes they map to.

Every failure of an ECP operation is raised as a subclass of EcpError. Each class
carries a stable signed result code, so callers that prefer a single integer result
per operation can use result_of() instead of handling exceptions.
"""

from __future__ import annotations

from enum import IntEnum

from .internal_types import *

class ResultCode(IntEnum):
    """The signed result code space shared by all operations. Success is zero;
       every failure is negative."""
    OK = 0
    TRANSPORT_ERROR = -1
    UNAUTHORIZED = -2
    PROTOCOL_ERROR = -3
    PARSE_ERROR = -4
    EMPTY_DOCUMENT = -5
    CAPABILITY_ERROR = -6
    DISCOVERY_ERROR = -7

class EcpError(Exception):
  """Base class for all error exceptions defined by this package."""
  result_code: ResultCode = ResultCode.TRANSPORT_ERROR

class EcpTransportError(EcpError):
  """The request failed before any HTTP status was received (DNS, connection, timeout)."""
  result_code = ResultCode.TRANSPORT_ERROR

class EcpHttpStatusError(EcpError):
  """The device answered with a non-success HTTP status."""
  result_code = ResultCode.PROTOCOL_ERROR
  status_code: int
  body: bytes

  def __init__(self, msg: str, status_code: int, body: bytes=b''):
      super().__init__(msg)
      self.status_code = status_code
      self.body = body

class EcpUnauthorizedError(EcpHttpStatusError):
  """The device rejected the request as unauthorized/forbidden; remote control is disabled on it."""
  result_code = ResultCode.UNAUTHORIZED

class EcpProtocolError(EcpHttpStatusError):
  """The device answered with some other non-success HTTP status."""
  result_code = ResultCode.PROTOCOL_ERROR

class EcpParseError(EcpError):
  """The response body is not well-formed XML."""
  result_code = ResultCode.PARSE_ERROR

class EcpEmptyDocumentError(EcpError):
  """The response parsed, but lacks the expected root or child element."""
  result_code = ResultCode.EMPTY_DOCUMENT

class EcpCapabilityError(EcpError):
  """A precondition failed locally; no request was sent to the device."""
  result_code = ResultCode.CAPABILITY_ERROR

class EcpLimitedModeError(EcpCapabilityError):
  """The device is in limited control mode."""
  pass

class EcpNotATvError(EcpCapabilityError):
  """The operation requires a Roku TV."""
  pass

class EcpInvalidKeyError(EcpCapabilityError):
  """The key is not valid for the device class (a TV-only key sent to a non-TV device)."""
  pass

class EcpSearchUnsupportedError(EcpCapabilityError):
  """The device does not advertise search support."""
  pass

class EcpEmptyKeywordError(EcpCapabilityError):
  """A search was requested with an empty keyword."""
  pass

class EcpDiscoveryError(EcpError):
  """The discovery session could not be set up (e.g., could not bind to the network interface)."""
  result_code = ResultCode.DISCOVERY_ERROR

class EcpResult:
    """The outcome of one operation, expressed as a result code plus the returned value."""

    code: ResultCode
    """ResultCode.OK on success; otherwise the result code of the error."""

    value: Any
    """The value returned by the operation, or None if it failed."""

    error: Optional[EcpError]
    """The exception raised by the operation, or None if it succeeded."""

    def __init__(self, code: ResultCode, value: Any=None, error: Optional[EcpError]=None):
        self.code = code
        self.value = value
        self.error = error

    @property
    def ok(self) -> bool:
        return self.code == ResultCode.OK

    def __int__(self) -> int:
        return int(self.code)

    def __str__(self) -> str:
        if self.error is None:
            return f"EcpResult({self.code.name})"
        return f"EcpResult({self.code.name}: {self.error})"

    def __repr__(self) -> str:
        return str(self)

def result_of(func: Callable[..., Any], *args: Any, **kwargs: Any) -> EcpResult:
    """Runs an operation and returns its EcpResult instead of raising EcpError.

    Exceptions that are not EcpError (programming errors such as TypeError) still propagate.
    """
    try:
        value = func(*args, **kwargs)
    except EcpError as e:
        return EcpResult(e.result_code, error=e)
    return EcpResult(ResultCode.OK, value=value)

UNAUTHORIZED_STATUS_CODES = (401, 403)
"""HTTP statuses with which a device reports that remote control is disabled."""

def is_success_status(status_code: int) -> bool:
    return 200 <= status_code < 300

def http_status_error(status_code: int, url: str, body: bytes=b'') -> Optional[EcpHttpStatusError]:
    """Returns the exception that corresponds to an HTTP status, or None if the status is a success."""
    if is_success_status(status_code):
        return None
    if status_code in UNAUTHORIZED_STATUS_CODES:
        return EcpUnauthorizedError(
            f"Device refused {url} with HTTP {status_code}; remote control is disabled on the device",
            status_code,
            body
          )
    return EcpProtocolError(f"Device answered {url} with HTTP {status_code}", status_code, body)
