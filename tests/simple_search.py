#!/usr/bin/env python3

import logging
import asyncio
import roku_ecp

#logging.basicConfig(level=logging.DEBUG)

async def amain():
    # all parameters to SsdpClient are optional; they allow you to set the IP addresses to bind to, etc.
    async with roku_ecp.SsdpClient(search_target=roku_ecp.ROKU_ECP_SEARCH_TARGET) as client:
        # Entering the client.search() context manager sends the M-SEARCH multicast request and reliably collects responses.
        async with client.search() as search_request:
            # search_request.iter_responses() is an async generator that yields SsdpResponseInfo objects
            # as they come in until the max wait time has elapsed or the max number of responses has been received.
            async for response_info in search_request.iter_responses():
                print(response_info.datagram)
                if response_info.location is not None:
                    # The ECP client is synchronous; query each device as it is found.
                    device = roku_ecp.RokuEcpClient().get_device(response_info.location)
                    print(f"  {device.name} ({device.model}), tv={device.is_tv}, limited={device.is_limited}")

loop = asyncio.new_event_loop()
try:
    asyncio.set_event_loop(loop)
    loop.run_until_complete(amain())
finally:
    loop.close()
