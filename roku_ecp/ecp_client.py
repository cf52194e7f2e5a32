#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
RokuEcpClient -- queries and commands for a single Roku device:

  1. Fetch device-info, the tuner channel list, the active tuner channel, the app list,
     the active app, and app icons
  2. Send keypresses, launch apps and tuner channels, run searches, send custom input,
     and type text

Every operation takes the RokuDevice it targets (get_device() takes the base URL).
Capability preconditions (limited control mode, TV-only operations and keys, search
support, empty keywords) are checked before anything is sent, and raise a subclass of
EcpCapabilityError. Transport and HTTP failures raise the other EcpError subclasses.
The client keeps no state between calls.
"""

from __future__ import annotations

from .internal_types import *
from .pkg_logging import logger
from .constants import (
    DEFAULT_HTTP_TIMEOUT,
    DEVICE_INFO_PATH,
    TV_CHANNELS_PATH,
    TV_ACTIVE_CHANNEL_PATH,
    APPS_PATH,
    ACTIVE_APP_PATH,
  )
from .exceptions import (
    EcpError,
    EcpUnauthorizedError,
    EcpLimitedModeError,
    EcpNotATvError,
    EcpInvalidKeyError,
    EcpSearchUnsupportedError,
    EcpEmptyKeywordError,
  )
from .models import (
    RokuDevice,
    RokuTVChannel,
    RokuExtTVChannel,
    RokuApp,
    RokuAppIcon,
    RokuSearchParams,
    RokuAppLaunchParams,
    TypingPolicy,
  )
from .transport import EcpTransport, EcpResponse
from .decoders import (
    decode_device_info,
    decode_tv_channels,
    decode_active_tv_channel,
    decode_apps,
    decode_active_app,
  )
from .urls import (
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

class RokuEcpClient:
    """Sends ECP queries and commands to Roku devices."""

    transport: EcpTransport
    """The HTTP collaborator. Anything with a compatible send(method, url) method will do."""

    def __init__(self, transport: Optional[EcpTransport]=None, timeout: float=DEFAULT_HTTP_TIMEOUT) -> None:
        """Create a client.

        Parameters:
            transport:  The transport used to send requests. Defaults to an EcpTransport
                        with the given timeout.
            timeout:    The per-request timeout (in seconds) of the default transport. Ignored
                        if transport is provided.
        """
        self.transport = EcpTransport(timeout=timeout) if transport is None else transport

    # ======================= Preconditions

    @staticmethod
    def _require_not_limited(device: RokuDevice, operation: str) -> None:
        if device.is_limited:
            raise EcpLimitedModeError(f"{operation}: device {device.url} is in limited control mode")

    @staticmethod
    def _require_tv(device: RokuDevice, operation: str) -> None:
        if not device.is_tv:
            raise EcpNotATvError(f"{operation}: device {device.url} is not a Roku TV")

    # ======================= Requests

    def _send(self, method: str, base_url: str, path: str) -> EcpResponse:
        url = device_url(base_url, path)
        response = self.transport.send(method, url)
        response.raise_for_status()
        return response

    def _get_content(self, base_url: str, path: str) -> bytes:
        return self._send("GET", base_url, path).content

    def _post(self, base_url: str, path: str) -> None:
        self._send("POST", base_url, path)

    # ======================= Queries

    def get_device(self, url: str) -> RokuDevice:
        """Fetches /query/device-info from the device at url (e.g. "http://192.168.1.162:8060/")."""
        content = self._get_content(url, DEVICE_INFO_PATH)
        return decode_device_info(content, url)

    def get_tv_channels(self, device: RokuDevice, max_channels: Optional[int]=None) -> List[RokuTVChannel]:
        """Lists the tuner channels of a Roku TV. At most max_channels channels are returned if
           it is not None. An empty list means no channels were found."""
        self._require_tv(device, "get_tv_channels")
        self._require_not_limited(device, "get_tv_channels")
        content = self._get_content(device.url, TV_CHANNELS_PATH)
        channels = decode_tv_channels(content, max_channels)
        logger.debug(f"Found {len(channels)} TV channels on {device.url}")
        return channels

    def get_active_tv_channel(self, device: RokuDevice) -> RokuExtTVChannel:
        """Returns the current (or last active) tuner channel of a Roku TV."""
        self._require_tv(device, "get_active_tv_channel")
        self._require_not_limited(device, "get_active_tv_channel")
        content = self._get_content(device.url, TV_ACTIVE_CHANNEL_PATH)
        return decode_active_tv_channel(content)

    def get_apps(self, device: RokuDevice, max_apps: Optional[int]=None) -> List[RokuApp]:
        """Lists the apps installed on a device. At most max_apps apps are returned if it is
           not None. An empty list means no apps were found."""
        self._require_not_limited(device, "get_apps")
        content = self._get_content(device.url, APPS_PATH)
        apps = decode_apps(content, max_apps)
        logger.debug(f"Found {len(apps)} apps on {device.url}")
        return apps

    def get_active_app(self, device: RokuDevice) -> RokuApp:
        """Returns the app in the foreground; Home if no app is running."""
        content = self._get_content(device.url, ACTIVE_APP_PATH)
        return decode_active_app(content)

    def get_app_icon(self, device: RokuDevice, app: Union[RokuApp, str]) -> RokuAppIcon:
        """Downloads an app's icon.

        The returned icon holds the response body even if the HTTP status is not a success;
        call raise_for_status() on it to turn such a status into an exception. Only transport
        failures and capability errors are raised directly.
        """
        self._require_not_limited(device, "get_app_icon")
        app_id = app.id if isinstance(app, RokuApp) else app
        url = device_url(device.url, icon_path(app_id))
        response = self.transport.send("GET", url)
        return RokuAppIcon(
            data=bytes(response.content),
            content_type=response.headers.get('Content-Type', ''),
            status_code=response.status_code,
            url=url,
          )

    # ======================= Commands

    def send_key(self, device: RokuDevice, key: str) -> None:
        """Sends a keypress, as if a button on the remote was pressed.

        Raises EcpInvalidKeyError if a TV-only key (e.g. "PowerOff") is sent to a device that
        is not a TV.
        """
        if not device.is_tv and is_tv_only_key(key):
            raise EcpInvalidKeyError(f"Key {key!r} is only valid for Roku TVs; {device.url} is not a TV")
        self._require_not_limited(device, "send_key")
        self._post(device.url, keypress_path(key))

    def launch_app(self, device: RokuDevice, params: Union[RokuAppLaunchParams, str]) -> None:
        """Launches an app, optionally with a content id, media type and extra parameters.
           A bare app id may be passed instead of RokuAppLaunchParams."""
        if isinstance(params, str):
            params = RokuAppLaunchParams(app_id=params)
        logger.info(f"Launching {params.app_id} on {device.url}")
        self._post(device.url, launch_path(params))

    def launch_tv_channel(self, device: RokuDevice, channel: Union[RokuTVChannel, str]) -> None:
        """Tunes a Roku TV to a channel (a RokuTVChannel or a channel id such as "3.1")."""
        self._require_tv(device, "launch_tv_channel")
        channel_id = channel.id if isinstance(channel, RokuTVChannel) else channel
        self.launch_app(device, tv_channel_launch_params(channel_id))

    def send_input(self, device: RokuDevice, params: NameValuePairs) -> None:
        """Sends custom name/value input to the active app. Parameters are sent in order."""
        self._require_not_limited(device, "send_input")
        self._post(device.url, input_path(params))

    def search(self, device: RokuDevice, keyword: str, params: Optional[RokuSearchParams]=None) -> None:
        """Searches for a movie, show, person, app or game, and either displays the results or
           launches the first one, depending on params."""
        self._require_not_limited(device, "search")
        if not device.has_search_support:
            raise EcpSearchUnsupportedError(f"Device {device.url} does not support search")
        if keyword == '':
            raise EcpEmptyKeywordError("Search keyword must not be empty")
        self._post(device.url, search_path(keyword, params))

    def type_text(
            self,
            device: RokuDevice,
            text: str,
            policy: TypingPolicy=TypingPolicy.LAST_WINS,
            encoding: str='utf-8',
          ) -> int:
        """Types text on the device, one literal keypress per character.

        Characters that cannot be represented in encoding are skipped. If the device reports
        that remote control is disabled, typing stops and EcpUnauthorizedError is raised.
        Other keypress failures are handled according to policy (see TypingPolicy).

        Returns the number of keypresses sent.
        """
        self._require_not_limited(device, "type_text")
        n = 0
        reported_error: Optional[EcpError] = None
        for char in text:
            key = encode_literal_key(char, encoding)
            if key is None:
                logger.debug(f"Skipping character {char!r}; it cannot be encoded in {encoding}")
                continue
            n += 1
            try:
                self.send_key(device, key)
            except EcpUnauthorizedError:
                raise
            except EcpError as e:
                if policy == TypingPolicy.FAIL_FAST:
                    raise
                if policy == TypingPolicy.FIRST_FAILURE:
                    if reported_error is None:
                        reported_error = e
                    else:
                        logger.warning(f"Keypress {key} failed after an earlier failure: {e}")
                    continue
                if reported_error is not None:
                    logger.warning(f"Dropping keypress failure superseded by a later keypress: {reported_error}")
                reported_error = e
                continue
            if policy == TypingPolicy.LAST_WINS:
                if reported_error is not None:
                    logger.warning(f"Dropping keypress failure superseded by a later keypress: {reported_error}")
                reported_error = None
        if reported_error is not None:
            raise reported_error
        return n

    def __repr__(self) -> str:
        return f"RokuEcpClient(transport={self.transport!r})"
