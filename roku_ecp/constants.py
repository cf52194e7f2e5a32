# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Constants used by this package"""

SSDP_MULTICAST_ADDRESS = "239.255.255.250"
"""The multicast address used by SSDP for UDP multicast."""

SSDP_PORT = 1900
"""The port number used by SSDP for UDP multicast."""

ROKU_ECP_SEARCH_TARGET = "roku:ecp"
"""The SSDP search target (ST) advertised by devices that speak ECP."""

ECP_PORT = 8060
"""The TCP port on which Roku devices serve ECP."""

DISCOVERY_WAIT_TIME = 5.0
"""The amount of time (in seconds) that discovery waits for devices to respond."""

SSDP_MX = 3
"""The MX header sent with M-SEARCH requests; the maximum response delay requested of devices."""

DEFAULT_HTTP_TIMEOUT = 10.0
"""The default timeout (in seconds) for a single ECP HTTP request."""

# ECP endpoint paths
DEVICE_INFO_PATH = "/query/device-info"
TV_CHANNELS_PATH = "/query/tv-channels"
TV_ACTIVE_CHANNEL_PATH = "/query/tv-active-channel"
APPS_PATH = "/query/apps"
ACTIVE_APP_PATH = "/query/active-app"
ICON_PATH = "/query/icon/"
KEYPRESS_PATH = "/keypress/"
LAUNCH_PATH = "/launch/"
INPUT_PATH = "/input"
SEARCH_PATH = "/search/browse"

TV_INPUT_APP_ID = "tvinput.dtv"
"""The app id of the built-in TV tuner."""

TV_CHANNEL_PARAM_NAMES = ("chan", "lcn", "ch")
"""Parameter names under which a channel id is passed to the tuner app. All three are sent;
   firmware versions differ in which one they honor."""

LITERAL_KEY_PREFIX = "Lit_"
"""Prefix of the keypress name that types a single literal character."""

# Sentinel values found in device-info and tv-active-channel documents
POWER_ON_SENTINEL = "PowerOn"
TRUE_SENTINEL = "true"
LIMITED_MODE_SENTINEL = "limited"
NO_SIGNAL_SENTINEL = "none"

TV_ONLY_KEYS = frozenset([
    "VolumeUp",
    "VolumeDown",
    "VolumeMute",
    "PowerOff",
    "ChannelUp",
    "ChannelDown",
    "InputTuner",
    "InputHDMI1",
    "InputHDMI2",
    "InputHDMI3",
    "InputHDMI4",
    "InputAV1",
  ])
"""Keys that are only accepted by Roku TVs."""

MAX_SEARCH_PROVIDERS = 8
"""The maximum number of provider ids that may be passed to a search."""
