#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Package roku_ecp is a client for Roku's External Control Protocol (ECP).

ECP is a simple HTTP protocol served by Roku streaming players and Roku TVs on port 8060.
Devices are found on the local network with SSDP (search target "roku:ecp"); each
device can then be queried for its identity, installed apps, and tuner channels, and
controlled by sending keypresses, launching apps or channels, running searches, and
typing text.

Usage:
    from roku_ecp import find_roku_devices, RokuEcpClient

    client = RokuEcpClient()
    for url in find_roku_devices(max_devices=4):
        device = client.get_device(url)
        print(device.name, [app.name for app in client.get_apps(device)])
"""

from .version import __version__

from .internal_types import Jsonable, JsonableDict

from .exceptions import (
    ResultCode,
    EcpError,
    EcpTransportError,
    EcpHttpStatusError,
    EcpUnauthorizedError,
    EcpProtocolError,
    EcpParseError,
    EcpEmptyDocumentError,
    EcpCapabilityError,
    EcpLimitedModeError,
    EcpNotATvError,
    EcpInvalidKeyError,
    EcpSearchUnsupportedError,
    EcpEmptyKeywordError,
    EcpDiscoveryError,
    EcpResult,
    result_of,
  )
from .fields import ExtractMode, FieldMapping, fill_from_xml
from .models import (
    RokuDevice,
    RokuTVChannel,
    RokuTVProgram,
    RokuExtTVChannel,
    RokuApp,
    RokuAppIcon,
    SearchType,
    MediaType,
    TypingPolicy,
    RokuSearchParams,
    RokuAppLaunchParams,
  )
from .transport import EcpTransport, EcpResponse
from .ecp_client import RokuEcpClient
from .ssdp_datagram import SsdpDatagram
from .ssdp_socket import SsdpSocket, SsdpSocketBinding, SsdpDatagramSubscriber
from .ssdp_client import SsdpClient, SsdpSearchRequest, SsdpResponseInfo
from .discovery import find_roku_devices, async_find_roku_devices
from .util import CaseInsensitiveDict
from .constants import (
    SSDP_MULTICAST_ADDRESS,
    SSDP_PORT,
    ROKU_ECP_SEARCH_TARGET,
    ECP_PORT,
    DISCOVERY_WAIT_TIME,
    DEFAULT_HTTP_TIMEOUT,
  )

__all__ = [
    '__version__',
    'Jsonable', 'JsonableDict',
    'ResultCode', 'EcpError', 'EcpTransportError', 'EcpHttpStatusError', 'EcpUnauthorizedError',
    'EcpProtocolError', 'EcpParseError', 'EcpEmptyDocumentError', 'EcpCapabilityError',
    'EcpLimitedModeError', 'EcpNotATvError', 'EcpInvalidKeyError', 'EcpSearchUnsupportedError',
    'EcpEmptyKeywordError', 'EcpDiscoveryError', 'EcpResult', 'result_of',
    'ExtractMode', 'FieldMapping', 'fill_from_xml',
    'RokuDevice', 'RokuTVChannel', 'RokuTVProgram', 'RokuExtTVChannel', 'RokuApp', 'RokuAppIcon',
    'SearchType', 'MediaType', 'TypingPolicy', 'RokuSearchParams', 'RokuAppLaunchParams',
    'EcpTransport', 'EcpResponse',
    'RokuEcpClient',
    'SsdpDatagram',
    'SsdpSocket', 'SsdpSocketBinding', 'SsdpDatagramSubscriber',
    'SsdpClient', 'SsdpSearchRequest', 'SsdpResponseInfo',
    'find_roku_devices', 'async_find_roku_devices',
    'CaseInsensitiveDict',
    'SSDP_MULTICAST_ADDRESS', 'SSDP_PORT', 'ROKU_ECP_SEARCH_TARGET', 'ECP_PORT',
    'DISCOVERY_WAIT_TIME', 'DEFAULT_HTTP_TIMEOUT',
]
