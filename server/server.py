"""UDP server hosting a TeamConnect directory."""

from typing import Any, Optional, Tuple
import asyncio

from config.settings import ServerConfig
from protocol.constants import MAX_SEGMENT_SIZE
from server.directory import Directory
from server.dispatcher import RequestDispatcher
from utils.logging import get_logger

logger = get_logger(__name__)


class TeamConnectProtocol(asyncio.DatagramProtocol):
    """
    Datagram endpoint that answers every client datagram.

    datagram_received never awaits, so requests are handled one at a time
    in arrival order on the event loop.
    """

    def __init__(self, dispatcher: RequestDispatcher):
        self._dispatcher = dispatcher
        self._transport: Optional[asyncio.DatagramTransport] = None

    def connection_made(self, transport: asyncio.DatagramTransport) -> None:
        self._transport = transport

    def datagram_received(self, data: bytes, addr: Tuple[str, int]) -> None:
        logger.debug(f"Received {len(data)}b packet from {addr[0]}:{addr[1]}")

        try:
            reply = self._dispatcher.handle(data, addr)
        except Exception as e:
            logger.error(f"Error handling packet from {addr}: {e}", exc_info=True)
            return

        packet = reply.serialize()
        if len(packet) > MAX_SEGMENT_SIZE:
            logger.error(f"Reply of {len(packet)} bytes exceeds segment size, dropped")
            return

        # Unreliable transmission: send once, a failure only affects this reply
        try:
            self._transport.sendto(packet, addr)
            logger.debug(
                f"Sent {len(packet)}b packet of type {reply.type_name} to {addr[0]}:{addr[1]}"
            )
        except OSError as e:
            logger.warning(f"Failed to send reply to {addr}: {e}")

    def error_received(self, exc: Exception) -> None:
        logger.warning(f"Transport error: {exc}")

    def connection_lost(self, exc: Optional[Exception]) -> None:
        if exc:
            logger.warning(f"Endpoint closed with error: {exc}")


class Server:
    """Server class owning the directory and its UDP endpoint."""

    def __init__(self, config: ServerConfig):
        """
        Initialize server with configuration.

        The directory and the server description are built here, before any
        request can arrive.

        Args:
            config: Server configuration
        """
        self._config: ServerConfig = config
        self._directory = Directory(config.team_names, config.status_names)
        self._dispatcher = RequestDispatcher(
            self._directory,
            dedupe_registrations=config.dedupe_registrations,
        )
        self._transport: Optional[asyncio.DatagramTransport] = None

        logger.info(
            f"Server initialized with {len(config.team_names)} teams "
            f"and {len(config.status_names)} statuses"
        )

    @property
    def directory(self) -> Directory:
        return self._directory

    @property
    def dispatcher(self) -> RequestDispatcher:
        return self._dispatcher

    @property
    def address(self) -> Optional[Tuple[Any, ...]]:
        """Bound (host, port), available once started."""
        if self._transport is None:
            return None
        return self._transport.get_extra_info('sockname')

    async def start(self) -> None:
        """
        Bind the UDP endpoint and begin answering requests.

        Raises:
            OSError: If the socket cannot be bound
        """
        logger.info(f"Starting server on {self._config.host}:{self._config.port}...")

        loop = asyncio.get_running_loop()
        try:
            self._transport, _ = await loop.create_datagram_endpoint(
                lambda: TeamConnectProtocol(self._dispatcher),
                local_addr=(self._config.host, self._config.port),
            )
        except OSError as e:
            logger.error(f"Failed to start server: {e}", exc_info=True)
            raise

        host, port = self.address[:2]
        logger.info(f"Successfully set up TeamConnect server on {host}:{port}")

    async def stop(self) -> None:
        """Close the endpoint. Directory state is discarded with the process."""
        logger.info("Stopping server...")

        if self._transport is not None:
            self._transport.close()
            self._transport = None

        logger.info("Server stopped successfully")
