"""Message structure definitions.

ClientMessage header (6 bytes):
    type (1B) | network ID (3B big-endian) | team ID (1B) | status (1B)

ServerMessage header (1 byte):
    type (1B)

Both carry a body of at least one byte after the header, and a whole
message never exceeds MAX_SEGMENT_SIZE.
"""

from dataclasses import dataclass
from typing import List
import struct

from protocol.commands import ClientMessageType, ServerMessageType, type_name
from protocol.constants import (
    CLIENT_HEADER_FORMAT,
    CLIENT_HEADER_SIZE,
    CLIENT_MAX_BODY_SIZE,
    EMPTY_BODY,
    INACTIVE_STATUS,
    MAX_SEGMENT_SIZE,
    NETWORK_ID_LIMIT,
    SERVER_HEADER_FORMAT,
    SERVER_HEADER_SIZE,
    SERVER_MAX_BODY_SIZE,
    STATUSES_DELIMITER,
    TEAMS_DELIMITER,
    TEAM_WILDCARD,
    TEXT_ENCODING,
)
from protocol.encoding import (
    trim_trailing_null,
    unpack_identifiers_by_delimiter,
    unpack_team_status,
)
from utils.exceptions import (
    InvalidBodyError,
    InvalidHeaderValueError,
    MalformedMessageError,
    UnexpectedMessageTypeError,
)


def _check_datagram(data: bytes, header_size: int) -> None:
    if data is None or len(data) < header_size + 1 or len(data) > MAX_SEGMENT_SIZE:
        raise MalformedMessageError(
            f"Cannot read malformed message of {0 if data is None else len(data)} bytes"
        )


def _check_body(body: bytes, max_body_size: int) -> None:
    if not isinstance(body, (bytes, bytearray)) or not 1 <= len(body) <= max_body_size:
        raise InvalidBodyError(
            f"Message body must be between 1 and {max_body_size} bytes"
        )


def _check_byte(name: str, value: int) -> None:
    if not isinstance(value, int) or not 0 <= value <= 0xFF:
        raise InvalidHeaderValueError(f"Header field {name}={value!r} does not fit in a byte")


@dataclass(frozen=True)
class ClientMessage:
    """Request sent by a client to the server."""

    message_type: int
    network_id: int = NETWORK_ID_LIMIT
    team_id: int = TEAM_WILDCARD
    status: int = INACTIVE_STATUS
    body: bytes = EMPTY_BODY

    def __post_init__(self):
        _check_byte('message_type', self.message_type)
        _check_byte('team_id', self.team_id)
        _check_byte('status', self.status)
        if not isinstance(self.network_id, int) or not 0 <= self.network_id <= NETWORK_ID_LIMIT:
            raise InvalidHeaderValueError(f"Invalid network ID: {self.network_id!r}")
        _check_body(self.body, CLIENT_MAX_BODY_SIZE)
        object.__setattr__(self, 'body', bytes(self.body))

    @classmethod
    def parse(cls, data: bytes) -> 'ClientMessage':
        """
        Parse a client message from a received datagram.

        Args:
            data: Raw datagram bytes

        Returns:
            Parsed ClientMessage instance

        Raises:
            MalformedMessageError: If the datagram is too short or too long
        """
        _check_datagram(data, CLIENT_HEADER_SIZE)
        message_type, network_id, team_id, status = struct.unpack(
            CLIENT_HEADER_FORMAT, data[:CLIENT_HEADER_SIZE]
        )
        return cls(
            message_type=message_type,
            network_id=int.from_bytes(network_id, byteorder='big', signed=False),
            team_id=team_id,
            status=status,
            body=data[CLIENT_HEADER_SIZE:],
        )

    def serialize(self) -> bytes:
        """Serialize header and body into a single datagram."""
        header = struct.pack(
            CLIENT_HEADER_FORMAT,
            self.message_type,
            self.network_id.to_bytes(3, byteorder='big', signed=False),
            self.team_id,
            self.status,
        )
        return header + self.body

    @property
    def type_name(self) -> str:
        return type_name(ClientMessageType, self.message_type)

    @property
    def text(self) -> str:
        """Body decoded as text with trailing zero bytes removed."""
        return trim_trailing_null(self.body).decode(TEXT_ENCODING)

    @property
    def user_name(self) -> str:
        """Display name carried by a NET_ID_REQUEST."""
        _assert_type(self, ClientMessageType.NET_ID_REQUEST)
        return self.text


@dataclass(frozen=True)
class ServerMessage:
    """Reply sent by the server to a client."""

    message_type: int
    body: bytes = EMPTY_BODY

    def __post_init__(self):
        _check_byte('message_type', self.message_type)
        _check_body(self.body, SERVER_MAX_BODY_SIZE)
        object.__setattr__(self, 'body', bytes(self.body))

    @classmethod
    def parse(cls, data: bytes) -> 'ServerMessage':
        """
        Parse a server message from a received datagram.

        Raises:
            MalformedMessageError: If the datagram is too short or too long
        """
        _check_datagram(data, SERVER_HEADER_SIZE)
        (message_type,) = struct.unpack(SERVER_HEADER_FORMAT, data[:SERVER_HEADER_SIZE])
        return cls(message_type=message_type, body=data[SERVER_HEADER_SIZE:])

    @classmethod
    def error(cls, reason: str) -> 'ServerMessage':
        """Build an ERROR reply carrying a human-readable reason."""
        body = reason.encode(TEXT_ENCODING, errors='replace')[:SERVER_MAX_BODY_SIZE] or EMPTY_BODY
        return cls(ServerMessageType.ERROR, body)

    def serialize(self) -> bytes:
        """Serialize header and body into a single datagram."""
        return struct.pack(SERVER_HEADER_FORMAT, self.message_type) + self.body

    @property
    def type_name(self) -> str:
        return type_name(ServerMessageType, self.message_type)

    @property
    def text(self) -> str:
        """Body decoded as text with trailing zero bytes removed."""
        return trim_trailing_null(self.body).decode(TEXT_ENCODING)

    @property
    def network_id(self) -> int:
        """Network ID assigned by an ACK_NEW_USER."""
        _assert_type(self, ServerMessageType.ACK_NEW_USER)
        try:
            return int(self.text)
        except ValueError as e:
            raise MalformedMessageError(f"Invalid network ID in reply: {self.text!r}") from e

    @property
    def team_names(self) -> List[str]:
        _assert_type(self, ServerMessageType.SERVER_DESCRIPTION)
        return unpack_identifiers_by_delimiter(self.body, TEAMS_DELIMITER)

    @property
    def status_names(self) -> List[str]:
        _assert_type(self, ServerMessageType.SERVER_DESCRIPTION)
        return unpack_identifiers_by_delimiter(self.body, STATUSES_DELIMITER)

    @property
    def usernames(self) -> List[str]:
        """Names in each roster slot of a TEAM_STATUS, '' for vacant slots."""
        _assert_type(self, ServerMessageType.TEAM_STATUS)
        return unpack_team_status(self.body)[0]

    @property
    def status_vector(self) -> List[int]:
        """Status byte of each roster slot of a TEAM_STATUS."""
        _assert_type(self, ServerMessageType.TEAM_STATUS)
        return unpack_team_status(self.body)[1]


def _assert_type(message, expected: int) -> None:
    if message.message_type != expected:
        raise UnexpectedMessageTypeError(
            f"Attempted to read type {message.message_type} message "
            f"as type {int(expected)} message."
        )
