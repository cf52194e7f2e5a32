#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Discovery of Roku devices on the local network.

An SSDP M-SEARCH for "roku:ecp" is multicast from every local IPv4 address (or from
the addresses of one named interface), and the LOCATION header of each response is
collected. Collection ends when max_devices distinct locations have been seen or the
wait time has elapsed, whichever comes first. The locations are the ECP base URLs
accepted by RokuEcpClient.get_device().
"""

from __future__ import annotations

import asyncio

from .internal_types import *
from .pkg_logging import logger
from .constants import ROKU_ECP_SEARCH_TARGET, DISCOVERY_WAIT_TIME
from .exceptions import EcpDiscoveryError
from .fields import truncate_text, capacity_of
from .models import RokuDevice
from .ssdp_client import SsdpClient, SsdpResponseInfo
from .util import get_local_ip_addresses, get_interface_ip_addresses

async def collect_locations(responses: AsyncIterable[SsdpResponseInfo], max_devices: int) -> List[str]:
    """Returns the distinct LOCATION values of responses, in arrival order.

    Iteration stops as soon as max_devices locations have been collected. Responses without
    a LOCATION header are ignored. Locations are bounded to the length of RokuDevice.url.
    """
    locations: List[str] = []
    if max_devices <= 0:
        return locations
    url_capacity = capacity_of(RokuDevice, 'url')
    async for response in responses:
        location = response.location
        if location is None or location == '':
            logger.debug(f"Ignoring response without LOCATION from {response.src_addr}")
            continue
        location = truncate_text(location, url_capacity)
        if location in locations:
            continue
        logger.debug(f"Found Roku device at {location} (from {response.src_addr})")
        locations.append(location)
        if len(locations) >= max_devices:
            break
    return locations

def get_bind_addresses(interface: Optional[str]=None) -> List[str]:
    """The local IPv4 addresses to search from: all non-loopback addresses, or those of one interface."""
    if interface is None:
        return get_local_ip_addresses(include_loopback=False)
    return get_interface_ip_addresses(interface)

async def async_find_roku_devices(
        max_devices: int,
        interface: Optional[str]=None,
        wait_time: float=DISCOVERY_WAIT_TIME,
      ) -> List[str]:
    """Searches the local network for Roku devices and returns their ECP base URLs
    (e.g. "http://192.168.1.162:8060/").

    Parameters:
        max_devices:  The number of distinct devices after which the search ends early.
        interface:    The name of the network interface to search on (e.g. "eth0"). If None,
                        all non-loopback IPv4 addresses are used.
        wait_time:    The maximum time (in seconds) to wait for responses.

    An empty list means no devices answered. Raises EcpDiscoveryError if the search could not
    be started (e.g., there is no such interface or a socket could not be bound), or if every
    socket failed while searching. A socket that fails while others remain does not end the search.
    """
    if max_devices < 0:
        raise ValueError(f"max_devices must not be negative, got {max_devices}")
    if max_devices == 0:
        return []
    try:
        bind_addresses = get_bind_addresses(interface)
    except ValueError as e:
        raise EcpDiscoveryError(f"Cannot search on interface {interface!r}: {e}") from e
    if len(bind_addresses) == 0:
        where = "any network interface" if interface is None else f"interface {interface!r}"
        raise EcpDiscoveryError(f"No IPv4 address is assigned to {where}")

    client = SsdpClient(
        search_target=ROKU_ECP_SEARCH_TARGET,
        response_wait_time=wait_time,
        bind_addresses=bind_addresses
      )
    try:
        await client.start()
    except OSError as e:
        raise EcpDiscoveryError(f"Unable to start SSDP search on {bind_addresses}: {e}") from e
    try:
        try:
            async with client.search(filter_headers={"ST": ROKU_ECP_SEARCH_TARGET}) as search_request:
                locations = await collect_locations(search_request, max_devices)
        finally:
            client.set_final_result()
            await client.wait_for_done()
    except OSError as e:
        raise EcpDiscoveryError(f"SSDP search failed on {bind_addresses}: {e}") from e
    logger.info(f"Discovery found {len(locations)} Roku device(s)")
    return locations

def find_roku_devices(
        max_devices: int,
        interface: Optional[str]=None,
        wait_time: float=DISCOVERY_WAIT_TIME,
      ) -> List[str]:
    """Blocking version of async_find_roku_devices(). Runs its own event loop, so it must not be
       called from a running event loop."""
    loop = asyncio.new_event_loop()
    try:
        asyncio.set_event_loop(loop)
        result = loop.run_until_complete(async_find_roku_devices(max_devices, interface=interface, wait_time=wait_time))
    finally:
        asyncio.set_event_loop(None)
        loop.close()
    return result
