"""Maps each inbound client datagram to a directory operation and a reply."""

from typing import Any, Dict, Optional, Tuple

from protocol.commands import ClientMessageType, ServerMessageType
from protocol.constants import EMPTY_BODY, TEXT_ENCODING
from protocol.encoding import pack_server_description, pack_team_status
from protocol.messages import ClientMessage, ServerMessage
from server.directory import Directory
from utils.exceptions import (
    InvalidNetworkIDError,
    MalformedMessageError,
    TeamConnectError,
    UnknownMessageTypeError,
)
from utils.logging import get_logger

logger = get_logger(__name__)

MALFORMED_MESSAGE_REASON = "Failed to parse malformed message"
UNKNOWN_TYPE_REASON = "Could not process request - Invalid client message type"

# Sender addresses whose last registration is remembered
REGISTRATION_MEMORY = 1024


class RequestDispatcher:
    """
    Server-side request handling.

    Holds no state of its own beyond the directory, the prebuilt server
    description and the registration memo used to absorb retransmitted
    NET_ID_REQUESTs. The memo holds the registration_memory most recently
    registering addresses; a sender evicted from it that retransmits gets a
    second user. Each call to handle() runs to completion without yielding,
    so a single event loop serializes every directory mutation.
    """

    def __init__(
        self,
        directory: Directory,
        dedupe_registrations: bool = True,
        registration_memory: int = REGISTRATION_MEMORY,
    ):
        self._directory = directory
        self._dedupe_registrations = dedupe_registrations
        self._registration_memory = registration_memory
        # Last registration seen from each sender address: (name, network ID)
        self._registrations: Dict[Any, Tuple[str, int]] = {}

        # The set of teams and statuses never changes, so the reply is built once
        team_names, status_names = directory.static_description()
        self._server_description = ServerMessage(
            ServerMessageType.SERVER_DESCRIPTION,
            pack_server_description(team_names, status_names),
        )

        self._handlers = {
            ClientMessageType.NET_ID_REQUEST: self._service_net_id_request,
            ClientMessageType.STATUS_UPDATE: self._service_status_update,
            ClientMessageType.TEAM_STATUS_REQUEST: self._service_team_status_request,
            ClientMessageType.SERVER_DESCRIPTION_REQUEST: self._service_server_description_request,
        }

    @property
    def directory(self) -> Directory:
        return self._directory

    @property
    def server_description(self) -> ServerMessage:
        return self._server_description

    def handle(self, data: bytes, addr: Optional[Any] = None) -> ServerMessage:
        """
        Produce the reply to one inbound datagram.

        Every datagram gets exactly one reply: an ACK, the requested
        information, or an ERROR carrying the reason.

        Args:
            data: Raw datagram bytes
            addr: Sender address, used to recognise retransmitted registrations

        Returns:
            The message to send back to the sender
        """
        try:
            message = ClientMessage.parse(data)
        except MalformedMessageError as e:
            logger.warning(f"Malformed datagram from {addr}: {e}")
            return ServerMessage.error(MALFORMED_MESSAGE_REASON)

        logger.debug(
            f"Extracted client message of type {message.type_name} from {addr} "
            f"(net_id={message.network_id}, team={message.team_id}, status={message.status})"
        )

        try:
            handler = self._handlers.get(message.message_type)
            if handler is None:
                raise UnknownMessageTypeError(UNKNOWN_TYPE_REASON)
            return handler(message, addr)
        except TeamConnectError as e:
            logger.info(f"Rejected {message.type_name} from {addr}: {e}")
            return ServerMessage.error(str(e))

    def _service_net_id_request(self, message: ClientMessage, addr: Any) -> ServerMessage:
        display_name = message.user_name

        previous = self._registrations.get(addr) if self._dedupe_registrations else None
        if previous is not None and previous[0] == display_name:
            network_id = previous[1]
            self._remember_registration(addr, display_name, network_id)
            logger.info(f"Repeated registration of {display_name!r} from {addr}, reusing ID {network_id}")
        else:
            network_id = self._directory.create_user(display_name).network_id
            if self._dedupe_registrations and addr is not None:
                self._remember_registration(addr, display_name, network_id)

        return ServerMessage(
            ServerMessageType.ACK_NEW_USER,
            str(network_id).encode(TEXT_ENCODING),
        )

    def _remember_registration(self, addr: Any, display_name: str, network_id: int) -> None:
        # Dict order doubles as recency order: oldest sender first
        self._registrations.pop(addr, None)
        self._registrations[addr] = (display_name, network_id)
        while len(self._registrations) > self._registration_memory:
            del self._registrations[next(iter(self._registrations))]

    def _service_status_update(self, message: ClientMessage, addr: Any) -> ServerMessage:
        user = self._directory.lookup_user(message.network_id)
        if user is None:
            raise InvalidNetworkIDError(
                f"Cannot resolve invalid user ID: {message.network_id}"
            )

        self._directory.set_user_status_and_team(user, message.status, message.team_id)
        return ServerMessage(ServerMessageType.ACK_STATUS_UPDATE, EMPTY_BODY)

    def _service_team_status_request(self, message: ClientMessage, addr: Any) -> ServerMessage:
        names, statuses = self._directory.team_status_view(message.team_id)
        return ServerMessage(ServerMessageType.TEAM_STATUS, pack_team_status(names, statuses))

    def _service_server_description_request(self, message: ClientMessage, addr: Any) -> ServerMessage:
        return self._server_description
