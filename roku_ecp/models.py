#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Records exchanged with Roku devices over ECP.

All records are immutable value types. None of them hold a network connection or
refer back to the device they came from; re-query the device to refresh them.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import Enum

from .internal_types import *
from .constants import MAX_SEARCH_PROVIDERS
from .exceptions import http_status_error, is_success_status
from .fields import BoundedRecord, bounded_field

MAX_PROVIDER_ID_LENGTH = 13

@dataclass(frozen=True)
class RokuDevice(BoundedRecord):
    """Identity and capability snapshot of one Roku device, as reported by /query/device-info."""

    url: str = bounded_field(29)
    """The ECP base URL of the device, e.g. "http://192.168.1.162:8060/"."""

    name: str = bounded_field(120)
    """The user-assigned device name."""

    location: str = bounded_field(60)
    """The user-assigned location label, e.g. "Bedroom"."""

    model: str = bounded_field(31)
    """The friendly model name."""

    serial: str = bounded_field(13)

    resolution: str = bounded_field(7)
    """The UI resolution, e.g. "1080p"."""

    mac_address: str = bounded_field(17)

    software_version: str = bounded_field(9)

    is_tv: bool = False
    is_on: bool = False
    is_limited: bool = False
    """True if the device is in limited control mode; most control operations are refused locally."""

    developer_mode: bool = False
    has_search_support: bool = False
    has_headphone_support: bool = False
    """True if the device supports private listening."""

    headphones_connected: bool = False
    """True if the device is currently in private listening mode."""

@dataclass(frozen=True)
class RokuTVChannel(BoundedRecord):
    """A tuner channel on a Roku TV."""

    id: str = bounded_field(7)
    """The channel id, usually the channel number (e.g. "3.1")."""

    name: str = bounded_field(7)
    type: str = bounded_field(13)
    """The channel type, e.g. "air-digital"."""

    network: str = bounded_field(31)
    """The broadcast network label."""

    physical_channel: int = 0
    """The physical RF channel number (2-69), or 0 if not reported."""

    frequency: int = 0
    """The channel frequency in Hz, or 0 if not reported."""

    is_hidden: bool = False
    is_favorite: bool = False

@dataclass(frozen=True)
class RokuTVProgram(BoundedRecord):
    """The program playing on an active tuner channel."""

    title: str = bounded_field(111)
    description: str = bounded_field(255)
    rating: str = bounded_field(14)
    """The program rating, e.g. "TV-14"."""

    has_cc: bool = False

@dataclass(frozen=True)
class RokuExtTVChannel(BoundedRecord):
    """A tuner channel plus the state that is only known while it is playing.

    If is_active is False, only the channel is populated; every other field has its
    zero/empty value.
    """

    channel: RokuTVChannel = dataclasses.field(default_factory=RokuTVChannel)
    is_active: bool = False
    program: RokuTVProgram = dataclasses.field(default_factory=RokuTVProgram)
    signal_received: bool = False
    resolution: str = bounded_field(7)
    """The signal mode, e.g. "1080i"."""

    signal_quality: int = 0
    """Signal quality from 0 to 100."""

    signal_strength: int = 0
    """Signal strength in dB."""

@dataclass(frozen=True)
class RokuApp(BoundedRecord):
    """An app (channel, in Roku's terms) installed on a device."""

    id: str = bounded_field(13)
    name: str = bounded_field(30)
    type: str = bounded_field(4)
    """The app type; usually "appl"."""

    version: str = bounded_field(21)

@dataclass(frozen=True)
class RokuAppIcon:
    """An app icon as returned by the device.

    data is an owned copy of the response body. It holds whatever the device sent,
    even if the status was not a success; check ok or call raise_for_status().
    """

    data: bytes = b''
    content_type: str = ''
    status_code: int = 200
    url: str = ''
    """The URL from which the icon was requested."""

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def ok(self) -> bool:
        return is_success_status(self.status_code)

    def raise_for_status(self) -> None:
        """Raises EcpUnauthorizedError or EcpProtocolError if the icon request did not succeed."""
        error = http_status_error(self.status_code, self.url, self.data)
        if error is not None:
            raise error

class SearchType(Enum):
    """Search result filter. The value is the wire value of the "type" parameter."""
    MOVIE = "movie"
    SHOW = "tv-show"
    PERSON = "person"
    APP = "channel"
    GAME = "game"
    NONE = ""

class MediaType(Enum):
    """Media type of the content passed to an app launch. The value is the wire value of
       the "MediaType" parameter."""
    NONE = ""
    FILM = "movie"
    SERIES = "series"
    SEASON = "season"
    EPISODE = "episode"
    SHORT_FORM_VIDEO = "shortFormVideo"
    TV_SPECIAL = "tvSpecial"

class TypingPolicy(Enum):
    """How type_text() reports keypress failures other than "remote control disabled",
       which always stops typing immediately."""

    LAST_WINS = "last-wins"
    """Type every character; report only the result of the last keypress. Earlier failures are logged."""

    FIRST_FAILURE = "first-failure"
    """Type every character; report the first failure, if any."""

    FAIL_FAST = "fail-fast"
    """Stop at, and report, the first failure."""

@dataclass(frozen=True)
class RokuSearchParams(BoundedRecord):
    """Optional parameters of a search. Every field that has its default value is left out
       of the request."""

    type: SearchType = SearchType.NONE
    include_unavailable: bool = False
    """Include results that are not available in the device's region."""

    tms_id: str = bounded_field(14)
    """The TMS id of the movie or show to search for."""

    season: int = 0
    auto_select: bool = False
    """Automatically select the first result."""

    auto_launch: bool = False
    """Automatically launch the first provider in provider_ids that has a result."""

    provider_ids: Tuple[str, ...] = ()
    """App ids of providers to look for results from (e.g. "12" for Netflix), at most 8."""

    def __post_init__(self) -> None:
        super().__post_init__()
        provider_ids = tuple(self.provider_ids)
        if len(provider_ids) > MAX_SEARCH_PROVIDERS:
            raise ValueError(f"At most {MAX_SEARCH_PROVIDERS} provider ids may be given, got {len(provider_ids)}")
        object.__setattr__(self, 'provider_ids', tuple(p[:MAX_PROVIDER_ID_LENGTH] for p in provider_ids))
        if self.season < 0:
            raise ValueError(f"Season must not be negative, got {self.season}")

@dataclass(frozen=True)
class RokuAppLaunchParams:
    """Parameters of an app launch."""

    app_id: str
    content_id: str = ''
    media_type: MediaType = MediaType.NONE
    extra_params: Tuple[Tuple[str, str], ...] = ()
    """Additional name/value parameters, sent in order after contentId and MediaType."""

    def __post_init__(self) -> None:
        extra_params = self.extra_params
        if isinstance(extra_params, Mapping):
            extra_params = extra_params.items()
        object.__setattr__(self, 'extra_params', tuple((name, value) for name, value in extra_params))
