"""Message type definitions for both directions of the protocol."""

from enum import IntEnum


class ClientMessageType(IntEnum):
    """Message types a client sends to the server."""

    NET_ID_REQUEST = 1              # Register a display name, get a network ID
    STATUS_UPDATE = 2               # Set own status and team
    TEAM_STATUS_REQUEST = 3         # Names and statuses of a team's members
    SERVER_DESCRIPTION_REQUEST = 4  # Teams and statuses the server supports


class ServerMessageType(IntEnum):
    """Message types the server sends back to a client."""

    ERROR = 1
    ACK_NEW_USER = 2
    SERVER_DESCRIPTION = 3
    TEAM_STATUS = 4
    ACK_STATUS_UPDATE = 5


def type_name(enum_cls, value: int) -> str:
    """Readable name of a message type byte, or UNKNOWN."""
    try:
        return enum_cls(value).name
    except ValueError:
        return 'UNKNOWN'
