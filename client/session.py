"""Client side of the TeamConnect protocol: request/response pairing with retry."""

from typing import Callable, List, Optional, Tuple
import asyncio

from config.settings import ClientConfig
from protocol.commands import ClientMessageType, ServerMessageType, type_name
from protocol.constants import (
    EMPTY_BODY,
    INACTIVE_STATUS,
    NETWORK_ID_LIMIT,
    TEAM_WILDCARD,
    TEXT_ENCODING,
)
from protocol.messages import ClientMessage, ServerMessage
from utils.exceptions import (
    MalformedMessageError,
    RequestRejectedError,
    RequestTimeoutError,
    SessionClosedError,
)
from utils.logging import get_logger

logger = get_logger(__name__)


class _ReplyProtocol(asyncio.DatagramProtocol):
    """Queues every datagram received on the client's endpoint."""

    def __init__(self):
        self.replies: asyncio.Queue = asyncio.Queue()

    def datagram_received(self, data: bytes, addr) -> None:
        self.replies.put_nowait(data)

    def error_received(self, exc: Exception) -> None:
        # e.g. ICMP port unreachable while the server is down; the retry covers it
        logger.debug(f"Transport error: {exc}")


class ClientSession:
    """
    A client's conversation with one server.

    The session keeps the header state the server expects on every request
    (network ID, team, status) and pairs each request with its reply. Since
    the transport may drop, duplicate or reorder datagrams, a request is
    resent verbatim until a reply of the expected type arrives.
    """

    def __init__(
        self,
        server_host: str,
        server_port: int,
        timeout: float = 1.0,
        max_attempts: Optional[int] = None,
        network_id: int = NETWORK_ID_LIMIT,
        on_error: Optional[Callable[[str], None]] = None,
    ):
        """
        Args:
            server_host: Server address
            server_port: Server port
            timeout: Seconds to wait for a reply before resending
            max_attempts: Sends per request before giving up, None for no limit
            network_id: Previously assigned network ID, or NETWORK_ID_LIMIT
                if this client has not registered yet
            on_error: Called with the text of every ERROR reply
        """
        self._server = (server_host, server_port)
        self._timeout = timeout
        self._max_attempts = max_attempts
        self._on_error = on_error

        self.network_id = network_id
        self.team_id = TEAM_WILDCARD
        self.status = INACTIVE_STATUS
        self.display_name: Optional[str] = None
        self.team_names: List[str] = []
        self.status_names: List[str] = []

        self._transport: Optional[asyncio.DatagramTransport] = None
        self._protocol: Optional[_ReplyProtocol] = None

    @classmethod
    def from_config(cls, config: ClientConfig, **kwargs) -> 'ClientSession':
        network_id = NETWORK_ID_LIMIT if config.network_id is None else config.network_id
        return cls(
            config.server_host,
            config.server_port,
            timeout=config.timeout,
            max_attempts=config.max_attempts,
            network_id=network_id,
            **kwargs,
        )

    @property
    def is_registered(self) -> bool:
        return self.network_id != NETWORK_ID_LIMIT

    async def open(self) -> None:
        """Open a UDP endpoint on a free local port."""
        loop = asyncio.get_running_loop()
        self._transport, self._protocol = await loop.create_datagram_endpoint(
            _ReplyProtocol,
            remote_addr=self._server,
        )
        logger.info(f"Client endpoint open, server at {self._server[0]}:{self._server[1]}")

    async def close(self) -> None:
        """Close the endpoint. Safe to call more than once."""
        if self._transport is not None:
            self._transport.close()
            self._transport = None
            self._protocol = None
            logger.debug("Client endpoint closed")

    async def __aenter__(self) -> 'ClientSession':
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _build_request(
        self,
        message_type: int,
        body: bytes,
        team_id: Optional[int] = None,
        status: Optional[int] = None,
    ) -> bytes:
        return ClientMessage(
            message_type=message_type,
            network_id=self.network_id,
            team_id=self.team_id if team_id is None else team_id,
            status=self.status if status is None else status,
            body=body,
        ).serialize()

    def _drain_stale_replies(self) -> None:
        # Late or duplicated replies to earlier requests
        while not self._protocol.replies.empty():
            self._protocol.replies.get_nowait()

    def _send(self, packet: bytes) -> None:
        try:
            self._transport.sendto(packet)
        except OSError as e:
            logger.debug(f"Send failed, will retry: {e}")

    async def request_until_acknowledged(
        self,
        message_type: int,
        body: bytes,
        expected_type: int,
        team_id: Optional[int] = None,
        status: Optional[int] = None,
        give_up_on_error: bool = False,
    ) -> ServerMessage:
        """
        Send a request until a reply of the expected type arrives.

        Each attempt waits up to the session timeout. A reply of any other
        type, including ERROR, counts as a failed attempt; ERROR text is
        logged and passed to on_error. The identical request is resent after
        every failed attempt, with no backoff.

        Args:
            message_type: ClientMessageType of the request
            body: Request body, at least one byte
            expected_type: ServerMessageType that completes the request
            team_id: Header team ID. Default: the session's team
            status: Header status. Default: the session's status
            give_up_on_error: Raise on the first ERROR reply instead of resending

        Returns:
            The matching reply

        Raises:
            SessionClosedError: If the session is not open
            RequestTimeoutError: If max_attempts sends went unanswered
            RequestRejectedError: If give_up_on_error is set and the server
                answered with an ERROR
        """
        if self._transport is None:
            raise SessionClosedError("Session is not open. Call open() first")

        packet = self._build_request(message_type, body, team_id, status)
        self._drain_stale_replies()
        attempt = 0

        while self._max_attempts is None or attempt < self._max_attempts:
            attempt += 1
            self._send(packet)
            logger.debug(
                f"Sent {type_name(ClientMessageType, message_type)} (attempt {attempt})"
            )

            try:
                data = await asyncio.wait_for(self._protocol.replies.get(), self._timeout)
            except asyncio.TimeoutError:
                logger.debug(f"No reply within {self._timeout}s, resending")
                continue

            try:
                reply = ServerMessage.parse(data)
            except MalformedMessageError as e:
                logger.warning(f"Discarding malformed reply: {e}")
                continue

            if reply.message_type == expected_type:
                return reply

            if reply.message_type == ServerMessageType.ERROR:
                logger.warning(f"Server error: {reply.text}")
                if self._on_error is not None:
                    self._on_error(reply.text)
                if give_up_on_error:
                    raise RequestRejectedError(reply.text)
            else:
                logger.debug(f"Ignoring unexpected {reply.type_name} reply")

        raise RequestTimeoutError(
            f"No {type_name(ServerMessageType, expected_type)} reply "
            f"after {attempt} attempts"
        )

    async def register(self, display_name: str) -> int:
        """Obtain a network ID for display_name and adopt it for this session."""
        reply = await self.request_until_acknowledged(
            ClientMessageType.NET_ID_REQUEST,
            display_name.encode(TEXT_ENCODING),
            ServerMessageType.ACK_NEW_USER,
        )
        self.network_id = reply.network_id
        self.display_name = display_name
        logger.info(f"Registered as {display_name!r} with network ID {self.network_id}")
        return self.network_id

    async def fetch_server_description(self) -> Tuple[List[str], List[str]]:
        """Teams and statuses supported by the server."""
        reply = await self.request_until_acknowledged(
            ClientMessageType.SERVER_DESCRIPTION_REQUEST,
            EMPTY_BODY,
            ServerMessageType.SERVER_DESCRIPTION,
        )
        self.team_names = reply.team_names
        self.status_names = reply.status_names
        return self.team_names, self.status_names

    async def _push_state(self, team_id: int, status: int, give_up_on_error: bool) -> None:
        # The session only takes on the new values once the server has them
        await self.request_until_acknowledged(
            ClientMessageType.STATUS_UPDATE,
            EMPTY_BODY,
            ServerMessageType.ACK_STATUS_UPDATE,
            team_id=team_id,
            status=status,
            give_up_on_error=give_up_on_error,
        )
        self.team_id = team_id
        self.status = status

    async def update_status(self, status: int, give_up_on_error: bool = False) -> None:
        await self._push_state(self.team_id, status, give_up_on_error)

    async def change_team(self, team_id: int, give_up_on_error: bool = False) -> None:
        """
        Move to another team, keeping the current status.

        A full team answers with an ERROR, which by default is retried until
        a slot frees up. With give_up_on_error the first ERROR raises
        RequestRejectedError and the session stays on its current team.
        """
        await self._push_state(team_id, self.status, give_up_on_error)

    async def team_status(self, team_id: Optional[int] = None) -> List[Tuple[str, int]]:
        """
        Members of a team and their statuses, vacant slots left out.

        Args:
            team_id: Team to ask about. Default: this session's team
        """
        reply = await self.request_until_acknowledged(
            ClientMessageType.TEAM_STATUS_REQUEST,
            EMPTY_BODY,
            ServerMessageType.TEAM_STATUS,
            team_id=team_id,
        )
        return [
            (name, status)
            for name, status in zip(reply.usernames, reply.status_vector)
            if name
        ]

    async def leave(self) -> None:
        """Tell the server this user is off every team and inactive."""
        await self._push_state(TEAM_WILDCARD, INACTIVE_STATUS, give_up_on_error=False)
