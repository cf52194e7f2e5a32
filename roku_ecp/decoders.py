#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Decoding of ECP query responses into records.

Each decode_* function takes the raw response body and returns a record. Every
field goes through fill_from_xml(), so any field may be missing from the document
and is then empty (or zero/False for derived values).
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from xml.etree.ElementTree import Element

from .internal_types import *
from .pkg_logging import logger
from .constants import (
    POWER_ON_SENTINEL,
    TRUE_SENTINEL,
    LIMITED_MODE_SENTINEL,
    NO_SIGNAL_SENTINEL,
  )
from .exceptions import EcpParseError, EcpEmptyDocumentError
from .fields import ExtractMode, FieldMapping, fill_from_xml, record_mapping, element_text, truncate_text, capacity_of
from .models import (
    RokuDevice,
    RokuTVChannel,
    RokuTVProgram,
    RokuExtTVChannel,
    RokuApp,
  )
from .util import parse_decimal

# Capacities of values that are only compared against sentinels or parsed as numbers.
_BOOL_CAPACITY = 5
_POWER_MODE_CAPACITY = 8
_ECP_MODE_CAPACITY = 8
_PHYSICAL_CHANNEL_CAPACITY = 3
_FREQUENCY_CAPACITY = 7
_ACTIVE_INPUT_CAPACITY = 6
_USER_FLAG_CAPACITY = 6
_SIGNAL_STATE_CAPACITY = 5
_SIGNAL_QUALITY_CAPACITY = 4
_SIGNAL_STRENGTH_CAPACITY = 5

KHZ_TO_HZ = 1000

_device_info_mappings: List[FieldMapping] = [
    record_mapping(RokuDevice, "user-device-name", "name"),
    record_mapping(RokuDevice, "user-device-location", "location"),
    record_mapping(RokuDevice, "friendly-model-name", "model"),
    record_mapping(RokuDevice, "serial-number", "serial"),
    record_mapping(RokuDevice, "ui-resolution", "resolution"),
    record_mapping(RokuDevice, "wifi-mac", "mac_address"),
    record_mapping(RokuDevice, "software-version", "software_version"),
    FieldMapping("power-mode", "power_mode", _POWER_MODE_CAPACITY),
    FieldMapping("is-tv", "is_tv", _BOOL_CAPACITY),
    FieldMapping("ecp-setting-mode", "ecp_setting_mode", _ECP_MODE_CAPACITY),
    FieldMapping("developer-enabled", "developer_enabled", _BOOL_CAPACITY),
    FieldMapping("search-enabled", "search_enabled", _BOOL_CAPACITY),
    FieldMapping("supports-private-listening", "supports_private_listening", _BOOL_CAPACITY),
    FieldMapping("headphones-connected", "headphones_connected", _BOOL_CAPACITY),
  ]

_channel_mappings: List[FieldMapping] = [
    record_mapping(RokuTVChannel, "channel-id", "id"),
    record_mapping(RokuTVChannel, "broadcast-network-label", "network"),
    record_mapping(RokuTVChannel, "name", "name"),
    record_mapping(RokuTVChannel, "type", "type"),
    FieldMapping("physical-channel", "physical_channel", _PHYSICAL_CHANNEL_CAPACITY),
    FieldMapping("physical-frequency", "frequency", _FREQUENCY_CAPACITY),
    FieldMapping("user-hidden", "user_hidden", _USER_FLAG_CAPACITY),
    FieldMapping("user-favorite", "user_favorite", _USER_FLAG_CAPACITY),
  ]

_active_input_mappings: List[FieldMapping] = [
    FieldMapping("active-input", "active_input", _ACTIVE_INPUT_CAPACITY),
  ]

_active_channel_mappings: List[FieldMapping] = [
    record_mapping(RokuTVProgram, "program-title", "title"),
    record_mapping(RokuTVProgram, "program-description", "description"),
    record_mapping(RokuTVProgram, "program-ratings", "rating"),
    FieldMapping("program-has-cc", "has_cc", _BOOL_CAPACITY),
    record_mapping(RokuExtTVChannel, "signal-mode", "resolution"),
    FieldMapping("signal-state", "signal_state", _SIGNAL_STATE_CAPACITY),
    FieldMapping("signal-quality", "signal_quality", _SIGNAL_QUALITY_CAPACITY),
    FieldMapping("signal-strength", "signal_strength", _SIGNAL_STRENGTH_CAPACITY),
  ]

_app_attribute_mappings: List[FieldMapping] = [
    record_mapping(RokuApp, "id", "id"),
    record_mapping(RokuApp, "type", "type"),
    record_mapping(RokuApp, "version", "version"),
  ]

def parse_document(content: bytes, document_name: str) -> Element:
    """Parses an ECP response body and returns its root element.

    Raises EcpEmptyDocumentError if the body is empty, or EcpParseError if it is not
    well-formed XML.
    """
    if len(content.strip()) == 0:
        raise EcpEmptyDocumentError(f"{document_name}: response body is empty")
    try:
        root = ET.fromstring(content)
    except ET.ParseError as e:
        raise EcpParseError(f"{document_name}: malformed XML: {e}") from e
    return root

def first_element_child(element: Element, document_name: str) -> Element:
    """Returns the first child element, or raises EcpEmptyDocumentError if there is none."""
    for child in element:
        return child
    raise EcpEmptyDocumentError(f"{document_name}: <{element.tag}> has no child element")

def _check_max_items(max_items: Optional[int]) -> None:
    if max_items is not None and max_items < 0:
        raise ValueError(f"Maximum item count must not be negative, got {max_items}")

def decode_device_info(content: bytes, url: str) -> RokuDevice:
    """Decodes a /query/device-info response for the device at url."""
    root = parse_document(content, "device-info")
    values = fill_from_xml(root, ExtractMode.CHILD_ELEMENT, _device_info_mappings)
    device = RokuDevice(
        url=url,
        name=values['name'],
        location=values['location'],
        model=values['model'],
        serial=values['serial'],
        resolution=values['resolution'],
        mac_address=values['mac_address'],
        software_version=values['software_version'],
        is_tv=values['is_tv'] == TRUE_SENTINEL,
        is_on=values['power_mode'] == POWER_ON_SENTINEL,
        is_limited=values['ecp_setting_mode'] == LIMITED_MODE_SENTINEL,
        developer_mode=values['developer_enabled'] == TRUE_SENTINEL,
        has_search_support=values['search_enabled'] == TRUE_SENTINEL,
        has_headphone_support=values['supports_private_listening'] == TRUE_SENTINEL,
        headphones_connected=values['headphones_connected'] == TRUE_SENTINEL,
      )
    logger.debug(f"Decoded device-info: {device}")
    return device

def decode_channel_element(element: Element) -> RokuTVChannel:
    """Decodes one <channel> element of a tv-channels or tv-active-channel document."""
    values = fill_from_xml(element, ExtractMode.CHILD_ELEMENT, _channel_mappings)
    return RokuTVChannel(
        id=values['id'],
        name=values['name'],
        type=values['type'],
        network=values['network'],
        physical_channel=parse_decimal(values['physical_channel']),
        frequency=parse_decimal(values['frequency']) * KHZ_TO_HZ,
        is_hidden=values['user_hidden'] == TRUE_SENTINEL,
        is_favorite=values['user_favorite'] == TRUE_SENTINEL,
      )

def decode_tv_channels(content: bytes, max_channels: Optional[int]=None) -> List[RokuTVChannel]:
    """Decodes a /query/tv-channels response. At most max_channels channels are returned
       if max_channels is not None. An empty channel list is not an error."""
    _check_max_items(max_channels)
    root = parse_document(content, "tv-channels")
    channels: List[RokuTVChannel] = []
    for element in root:
        if max_channels is not None and len(channels) >= max_channels:
            break
        channels.append(decode_channel_element(element))
    return channels

def decode_active_tv_channel(content: bytes) -> RokuExtTVChannel:
    """Decodes a /query/tv-active-channel response.

    Program and signal fields are only read if the channel's active-input is "true";
    otherwise they are left at their zero/empty values, whatever the document contains.
    """
    root = parse_document(content, "tv-active-channel")
    element = first_element_child(root, "tv-active-channel")
    channel = decode_channel_element(element)
    is_active = fill_from_xml(element, ExtractMode.CHILD_ELEMENT, _active_input_mappings)['active_input'] == TRUE_SENTINEL
    if not is_active:
        return RokuExtTVChannel(channel=channel, is_active=False)
    values = fill_from_xml(element, ExtractMode.CHILD_ELEMENT, _active_channel_mappings)
    program = RokuTVProgram(
        title=values['title'],
        description=values['description'],
        rating=values['rating'],
        has_cc=values['has_cc'] == TRUE_SENTINEL,
      )
    return RokuExtTVChannel(
        channel=channel,
        is_active=True,
        program=program,
        signal_received=values['signal_state'] != NO_SIGNAL_SENTINEL,
        resolution=values['resolution'],
        signal_quality=parse_decimal(values['signal_quality']),
        signal_strength=parse_decimal(values['signal_strength'], signed=True),
      )

def decode_app_element(element: Element) -> RokuApp:
    """Decodes one <app> element. The name is the element's text; the rest are attributes."""
    values = fill_from_xml(element, ExtractMode.ATTRIBUTE, _app_attribute_mappings)
    return RokuApp(
        id=values['id'],
        name=truncate_text(element_text(element), capacity_of(RokuApp, 'name')),
        type=values['type'],
        version=values['version'],
      )

def decode_apps(content: bytes, max_apps: Optional[int]=None) -> List[RokuApp]:
    """Decodes a /query/apps response. At most max_apps apps are returned if max_apps is
       not None. An empty app list is not an error."""
    _check_max_items(max_apps)
    root = parse_document(content, "apps")
    apps: List[RokuApp] = []
    for element in root:
        if max_apps is not None and len(apps) >= max_apps:
            break
        apps.append(decode_app_element(element))
    return apps

def decode_active_app(content: bytes) -> RokuApp:
    """Decodes a /query/active-app response. When no app is running, the device reports Home."""
    root = parse_document(content, "active-app")
    return decode_app_element(first_element_child(root, "active-app"))
