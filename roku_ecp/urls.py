#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
URL and parameter encoding for ECP commands.

These are pure functions; they build the path and query string of a request and
never talk to a device.
"""

from __future__ import annotations

from .internal_types import *
from .constants import (
    KEYPRESS_PATH,
    LAUNCH_PATH,
    INPUT_PATH,
    SEARCH_PATH,
    ICON_PATH,
    TV_ONLY_KEYS,
    TV_INPUT_APP_ID,
    TV_CHANNEL_PARAM_NAMES,
    LITERAL_KEY_PREFIX,
  )
from .models import RokuAppLaunchParams, RokuSearchParams, MediaType, SearchType
from .util import uri_escape, join_query_params, strip_trailing_slashes

def device_url(base_url: str, path: str) -> str:
    """Joins a device's ECP base URL (which usually ends in '/') and an absolute path."""
    return strip_trailing_slashes(base_url) + path

def is_tv_only_key(key: str) -> bool:
    return key in TV_ONLY_KEYS

def keypress_path(key: str) -> str:
    """The key is used verbatim; literal keys are already escaped by encode_literal_key()."""
    return KEYPRESS_PATH + key

def icon_path(app_id: str) -> str:
    return ICON_PATH + app_id

def launch_path(params: RokuAppLaunchParams) -> str:
    """Builds /launch/{appID} followed by contentId, MediaType and the extra parameters,
       in that order. Each group is present only if it is non-empty."""
    query_parts: List[str] = []
    if params.content_id != '':
        query_parts.append(f"contentId={uri_escape(params.content_id)}")
    if params.media_type != MediaType.NONE:
        query_parts.append(f"MediaType={params.media_type.value}")
    if len(params.extra_params) > 0:
        query_parts.append(join_query_params(params.extra_params))
    path = LAUNCH_PATH + params.app_id
    if len(query_parts) > 0:
        path += '?' + '&'.join(query_parts)
    return path

def tv_channel_launch_params(channel_id: str) -> RokuAppLaunchParams:
    """Launch parameters that tune the built-in TV tuner app to a channel."""
    return RokuAppLaunchParams(
        app_id=TV_INPUT_APP_ID,
        extra_params=tuple((name, channel_id) for name in TV_CHANNEL_PARAM_NAMES),
      )

def input_path(params: NameValuePairs) -> str:
    """Builds /input?name=value&... with names and values escaped, in caller order."""
    return INPUT_PATH + '?' + join_query_params(params)

def search_path(keyword: str, params: Optional[RokuSearchParams]=None) -> str:
    """Builds /search/browse?keyword=... followed by every search parameter that differs
       from its default.

    The keyword must not be empty; callers check that before building the path.
    """
    if params is None:
        params = RokuSearchParams()
    path = SEARCH_PATH + "?keyword=" + uri_escape(keyword)
    if params.type != SearchType.NONE:
        path += f"&type={params.type.value}"
    if params.include_unavailable:
        path += "&show-unavailable=true"
    if params.auto_launch:
        path += "&launch=true"
    if params.auto_select:
        path += "&match-any=true"
    if params.season != 0:
        path += f"&season={params.season}"
    if params.tms_id != '':
        path += f"&tmsid={uri_escape(params.tms_id)}"
    # The provider list is only sent if the first entry is set; later empty entries are skipped.
    if len(params.provider_ids) > 0 and params.provider_ids[0] != '':
        provider_ids = [ p for p in params.provider_ids if p != '' ]
        path += "&provider-id=" + ','.join(uri_escape(p) for p in provider_ids)
    return path

def encode_literal_key(char: str, encoding: str='utf-8') -> Optional[str]:
    """Returns the keypress name that types a single character, e.g. "Lit_a" or "Lit_%21".

    The character is encoded with the given encoding and every byte that is not an
    unreserved URI character is percent-escaped. Returns None if the character cannot
    be represented in the encoding.
    """
    if len(char) != 1:
        raise ValueError(f"Expected a single character, got {char!r}")
    try:
        encoded = char.encode(encoding)
    except UnicodeEncodeError:
        return None
    return LITERAL_KEY_PREFIX + uri_escape(encoded)
