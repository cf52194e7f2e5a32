#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
SsdpSocket -- An abstract base class for an SSDP socket that can:

  1. Receive and decode SsdpDatagrams from remote nodes and deliver them to any number of async subscribers
  2. Send SsdpDatagrams to a remote multicast or unicast address

  The subscriber interface is a simple async iterator that returns a sequence of
  (SsdpSocketBinding, HostAndPort, SsdpDatagram) tuples until the socket is closed.

  Subclasses must implement the add_socket_bindings() method to create and bind the sockets that
  will be used to receive and send datagrams.

  Instances must be created while an event loop is running.
"""

from __future__ import annotations

import asyncio
from asyncio import Future
import socket
from abc import ABC, abstractmethod

from .internal_types import *
from .pkg_logging import logger
from .exceptions import EcpDiscoveryError
from .ssdp_datagram import SsdpDatagram

MAX_QUEUE_SIZE = 1000

class SsdpSocketBinding:
    """
    An encapsulation of the binding of an SsdpSocket to a single low-level
    bound datagram socket. There is one instance of this class created for each
    low-level socket that is in use (typically one per network interface).

    Instances of this class are created prior to loop.create_datagram_endpoint,
    and are later bound to the _SsdpSocketProtocol instance that is created by
    loop.create_datagram_endpoint.
    """

    ssdp_socket: Optional[SsdpSocket] = None
    """The SsdpSocket that is bound to this low-level socket. """

    index: int = -1
    """The index of this socket binding within SsdpSocket. Set to -1 until this socket binding is added."""

    sock: Optional[socket.socket] = None
    """The low-level socket that is bound to this SsdpSocket."""

    closed: bool = False
    """True once this binding has failed or its connection has been lost. Closed bindings are not sent to."""

    _protocol: Optional[_SsdpSocketProtocol] = None
    _transport: Optional[asyncio.DatagramTransport] = None

    unicast_addr: HostAndPort
    """The local ip address and port associated with this binding."""

    sockname: str
    """The name of the socket as it should be displayed in logs, etc"""

    def __init__(self, sock: socket.socket, unicast_addr: Optional[HostAndPort]=None, sockname: Optional[str]=None):
        self.sock = sock
        if unicast_addr is None:
            unicast_addr = sock.getsockname()
            assert isinstance(unicast_addr, tuple)
        self.unicast_addr = unicast_addr
        if sockname is None:
            sockname = str(unicast_addr)
        self.sockname = sockname

    def attach_to_ssdp_socket(self, ssdp_socket: SsdpSocket, index: int) -> None:
        if self.index >= 0:
            raise EcpDiscoveryError(f"Attempt to reattach SsdpSocketBinding: {self}")
        assert self.ssdp_socket is None or self.ssdp_socket == ssdp_socket
        self.ssdp_socket = ssdp_socket
        self.index = index

    @property
    def transport(self) -> Optional[asyncio.DatagramTransport]:
        return self._transport

    @transport.setter
    def transport(self, transport: Optional[asyncio.DatagramTransport]) -> None:
        if transport != self._transport:
            assert self._transport is None or transport is None
        self._transport = transport

    @property
    def protocol(self) -> Optional[_SsdpSocketProtocol]:
        return self._protocol

    @protocol.setter
    def protocol(self, protocol: _SsdpSocketProtocol) -> None:
        if protocol != self._protocol:
            assert self._protocol is None
        self._protocol = protocol

    def sendto(self, datagram: SsdpDatagram, addr: HostAndPort) -> None:
        logger.debug(f"Sending SsdpDatagram via {self} to {addr}: {datagram}")
        assert not self.transport is None
        self.transport.sendto(datagram.raw_data, addr)

    def __str__(self) -> str:
        return f"SsdpSocketBinding({self.index}: {self.sockname})"

    def __repr__(self) -> str:
        return str(self)

class _SsdpSocketProtocol(asyncio.DatagramProtocol, ABC):
    """An adapter between the asyncio transport and SsdpSocket. There is one instance of this class
       created for each low-level socket."""
    socket_binding: SsdpSocketBinding

    def __init__(self, socket_binding: SsdpSocketBinding):
        self.socket_binding = socket_binding
        socket_binding.protocol = self

    @property
    def ssdp_socket(self) -> SsdpSocket:
        assert self.socket_binding.ssdp_socket is not None
        return self.socket_binding.ssdp_socket

    @property
    def transport(self) -> Optional[asyncio.DatagramTransport]:
        return self.socket_binding.transport

    @transport.setter
    def transport(self, transport: Optional[asyncio.DatagramTransport]) -> None:
        self.socket_binding.transport = transport

    def connection_made(self, transport: asyncio.BaseTransport):
        # asyncio datagram transports do not inherit from asyncio.DatagramTransport, so
        # the type is not asserted here.
        assert self.transport is None
        try:
            self.transport = transport # type: ignore[assignment]
            self.ssdp_socket.connection_made(self.socket_binding)
        except BaseException as e:
            self.ssdp_socket.set_final_exception(e)
            raise

    def datagram_received(self, data: bytes, addr: Tuple[str, int]):
        try:
            self.ssdp_socket.datagram_received(self.socket_binding, addr, data)
        except BaseException as e:
            self.ssdp_socket.set_final_exception(e)
            raise

    def error_received(self, exc: Exception):
        """Called when a send or receive operation raises an OSError.

        (Other than BlockingIOError or InterruptedError.)
        """
        try:
            self.ssdp_socket.error_received(self.socket_binding, exc)
        except BaseException as e:
            self.ssdp_socket.set_final_exception(e)
            raise

    def connection_lost(self, exc: Optional[Exception]) -> None:
        try:
            self.ssdp_socket.connection_lost(self.socket_binding, exc)
        except BaseException as e:
            self.ssdp_socket.set_final_exception(e)
            raise
        self.transport = None


class SsdpDatagramSubscriber(AsyncContextManager['SsdpDatagramSubscriber']):
    """A queue of the datagrams received by an SsdpSocket while the subscriber is attached."""

    ssdp_socket: SsdpSocket
    queue: asyncio.Queue[Optional[Tuple[SsdpSocketBinding, HostAndPort, SsdpDatagram]]]
    final_result: Future[None]
    eos: bool = False
    eos_exc: Optional[Exception] = None

    def __init__(self, ssdp_socket: SsdpSocket, max_queue_size: int=MAX_QUEUE_SIZE):
        self.ssdp_socket = ssdp_socket
        self.queue = asyncio.Queue(max_queue_size)
        self.final_result = asyncio.get_running_loop().create_future()

    async def __aenter__(self) -> SsdpDatagramSubscriber:
        self.ssdp_socket.add_subscriber(self)
        return self

    async def __aexit__(
            self,
            exc_type: Optional[Type[BaseException]],
            exc: Optional[BaseException],
            tb: Optional[TracebackType]
      ) -> bool:
        self.ssdp_socket.remove_subscriber(self)
        self.set_final_result()
        try:
            # ensure that final_result has been awaited
            await self.final_result
        except Exception as e:
            logger.debug(f"Subscriber ended with exception: {e}")
        return False

    def _wake_waiters(self) -> None:
        try:
            self.queue.put_nowait(None)
        except asyncio.QueueFull:
            # queue is full so waiters will wake up soon
            pass

    def set_final_result(self) -> None:
        if not self.final_result.done():
            self.final_result.set_result(None)
            self._wake_waiters()
            self.eos = True
            self.eos_exc = None

    def set_final_exception(self, e: BaseException) -> None:
        if not self.final_result.done():
            self.final_result.set_exception(e)
            self._wake_waiters()
            self.eos = True
            self.eos_exc = None

    def _finish_eos(self) -> None:
        if self.eos_exc is None:
            self.set_final_result()
        else:
            self.set_final_exception(self.eos_exc)

    async def receive(self) -> Optional[Tuple[SsdpSocketBinding, HostAndPort, SsdpDatagram]]:
        """Returns the next datagram, or None once the stream has ended."""
        if self.final_result.done():
            await self.final_result
            return None
        if self.eos and self.queue.empty():
            self._finish_eos()
            await self.final_result
            return None
        try:
            result = await self.queue.get()
            self.queue.task_done()
            if result is None:
                if not self.final_result.done():
                    assert self.eos
                    self._finish_eos()
                await self.final_result
                return None
        except asyncio.CancelledError:
            # a timed-out receive does not end the stream
            raise
        except BaseException as e:
            self.set_final_exception(e)
            raise
        return result

    def on_datagram(self, socket_binding: SsdpSocketBinding, addr: HostAndPort, datagram: SsdpDatagram) -> None:
        if not self.eos and not self.final_result.done():
            try:
                self.queue.put_nowait((socket_binding, addr, datagram))
            except asyncio.QueueFull:
                logger.warning(f"Queue full, dropping datagram from {socket_binding} {addr}: {datagram}")

    def on_end_of_stream(self, exc: Optional[Exception]=None) -> None:
        if not self.eos and not self.final_result.done():
            self.eos = True
            self.eos_exc = exc
            self._wake_waiters()

class SsdpSocket(AsyncContextManager['SsdpSocket']):
    """
    An abstract async SSDP socket that can:

      1. Receive and decode SsdpDatagrams from remote nodes and deliver them to any number of async subscribers
      2. Send SsdpDatagrams to a remote multicast or unicast address

      Subclasses must implement the add_socket_bindings() method.
    """

    socket_bindings: List[SsdpSocketBinding]
    """A list of SsdpSocketBinding instances, one for each low-level socket that is in use."""

    final_result: Future[None]
    """A future that is set when the ssdp_socket is stopped."""

    datagram_subscribers: Set[SsdpDatagramSubscriber]
    """The subscribers that receive incoming SSDP datagrams."""

    def __init__(self):
        self.final_result = asyncio.get_running_loop().create_future()
        self.socket_bindings = []
        self.datagram_subscribers = set()

    def add_subscriber(self, subscriber: SsdpDatagramSubscriber) -> None:
        self.datagram_subscribers.add(subscriber)

    def remove_subscriber(self, subscriber: SsdpDatagramSubscriber) -> None:
        self.datagram_subscribers.discard(subscriber)

    def add_socket_binding(self, socket_binding: SsdpSocketBinding) -> None:
        if socket_binding.index >= 0:
            raise EcpDiscoveryError(f"Attempt to reattach SsdpSocketBinding: {socket_binding}")
        i = len(self.socket_bindings)
        self.socket_bindings.append(socket_binding)
        socket_binding.attach_to_ssdp_socket(self, i)
        logger.debug(f"Added socket binding {i}: {socket_binding}")

    @abstractmethod
    async def add_socket_bindings(self) -> None:
        """Creates and binds the sockets that will be used to receive and send datagrams
           (typically one per interface), and adds them with self.add_socket_binding().
           Must be overridden by subclasses."""
        raise NotImplementedError()

    async def start(self) -> None:
        try:
            loop = asyncio.get_running_loop()
            await self.add_socket_bindings()
            if len(self.socket_bindings) == 0:
                raise EcpDiscoveryError("No datagram sockets were added to SsdpSocket")

            for socket_binding in self.socket_bindings:
                untyped_transport, protocol = await loop.create_datagram_endpoint(
                    lambda: _SsdpSocketProtocol(socket_binding),
                    sock=socket_binding.sock
                  )
                transport: asyncio.DatagramTransport = untyped_transport # type: ignore[assignment]
                assert isinstance(protocol, _SsdpSocketProtocol)
                logger.debug(f"Created datagram endpoint for {socket_binding}. transport={transport}, protocol={protocol}")
                socket_binding.protocol = protocol
                socket_binding.transport = transport

        except BaseException as e:
            self.set_final_exception(e)
            try:
                await self.wait_for_done()
            except BaseException:
                # the original exception is re-raised below
                pass
            raise

    async def wait_for_done(self) -> None:
        await self.final_result

    def connection_made(self, socket_binding: SsdpSocketBinding) -> None:
        logger.debug(f"Connection made: {socket_binding}")

    def datagram_received(self, socket_binding: SsdpSocketBinding, addr: HostAndPort, data: bytes):
        """Parses a received datagram and hands it to every subscriber. Unparseable datagrams
           are logged and dropped."""
        try:
            datagram = SsdpDatagram(raw_data=data)
        except Exception as e:
            logger.warning(f"Error parsing datagram from {addr}, raw=[{data!r}]: {e}")
            return
        logger.debug(f"Received datagram from {socket_binding} {addr}: {datagram}")
        for subscriber in list(self.datagram_subscribers):
            try:
                subscriber.on_datagram(socket_binding, addr, datagram)
            except Exception as e:
                logger.warning(f"Subscriber raised exception processing datagram {datagram}: {e}")

    def _end_subscriber_streams(self, exc: Optional[Exception]) -> None:
        for subscriber in list(self.datagram_subscribers):
            try:
                subscriber.on_end_of_stream(exc)
            except Exception as e:
                logger.warning(f"Subscriber raised exception processing end of stream: {e}")

    def all_bindings_closed(self) -> bool:
        return all(socket_binding.closed for socket_binding in self.socket_bindings)

    def error_received(self, socket_binding: SsdpSocketBinding, exc: Exception) -> None:
        """Called when a send or receive operation raises an OSError.

        (Other than BlockingIOError or InterruptedError.)

        Only the failing binding is closed; the others keep receiving. Once every binding
        has failed, subscriber streams end with exc and it becomes the final exception.
        """
        logger.warning(f"Error received from transport {socket_binding}, closing it: {exc}")
        self._close_binding(socket_binding)
        if self.all_bindings_closed():
            self._end_subscriber_streams(exc)
            self.set_final_exception(exc)

    def connection_lost(self, socket_binding: SsdpSocketBinding, exc: Optional[Exception]) -> None:
        logger.debug(f"Connection to transport lost on {socket_binding}, exc={exc}")
        socket_binding.closed = True
        if self.final_result.done() or not self.all_bindings_closed():
            return
        self._end_subscriber_streams(exc)
        if exc is None:
            self.set_final_result()
        else:
            self.set_final_exception(exc)

    def _close_binding(self, socket_binding: SsdpSocketBinding) -> None:
        socket_binding.closed = True
        if not socket_binding.transport is None:
            try:
                socket_binding.transport.close()
            except Exception as e:
                logger.error(f"Error closing transport on {socket_binding}: {e}")
            socket_binding.transport = None
        if not socket_binding.sock is None:
            try:
                socket_binding.sock.close()
                socket_binding.sock = None
            except OSError as e:
                logger.error(f"Error closing socket on {socket_binding}: {e}")

    def _close_all_transports(self) -> None:
        for socket_binding in self.socket_bindings:
            if not socket_binding.transport is None:
                try:
                    socket_binding.transport.close()
                except Exception as e:
                    logger.error(f"Error closing transport on {socket_binding}: {e}")
                socket_binding.transport = None

    def _close_all_socks(self) -> None:
        for socket_binding in self.socket_bindings:
            if not socket_binding.sock is None:
                try:
                    socket_binding.sock.close()
                    socket_binding.sock = None
                except OSError as e:
                    logger.error(f"Error closing socket on {socket_binding}: {e}")

    def set_final_exception(self, exc: BaseException) -> None:
        assert not exc is None
        if not self.final_result.done():
            logger.debug(f"SsdpSocket: Setting final exception: {exc}")
            self.final_result.set_exception(exc)
            self._close_all_transports()
            self._close_all_socks()

    def set_final_result(self) -> None:
        if not self.final_result.done():
            logger.debug("SsdpSocket: Setting final result to success")
            self.final_result.set_result(None)
            self._close_all_transports()
            self._close_all_socks()

    async def __aenter__(self) -> Self:
        await self.start()
        return self

    async def __aexit__(
            self,
            exc_type: Optional[Type[BaseException]],
            exc: Optional[BaseException],
            tb: Optional[TracebackType]
      ) -> bool:
        if exc is None:
            self.set_final_result()
        else:
            self.set_final_exception(exc)
        try:
            # ensure that final_result has been awaited
            await self.wait_for_done()
        except Exception as e:
            logger.debug(f"SsdpSocket ended with exception: {e}")
        return False
