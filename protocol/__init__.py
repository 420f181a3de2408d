"""Protocol module for message framing, identifier lists and message types."""

from protocol.constants import (
    MAX_SEGMENT_SIZE,
    MAX_IDENTIFIER_SIZE,
    TEAM_WILDCARD,
    INACTIVE_STATUS,
    NETWORK_ID_LIMIT,
    EMPTY_BODY,
)
from protocol.commands import ClientMessageType, ServerMessageType
from protocol.encoding import (
    is_valid_identifier,
    pack_identifier_list,
    unpack_identifiers_by_delimiter,
    pack_server_description,
    pack_team_status,
    unpack_team_status,
)
from protocol.messages import ClientMessage, ServerMessage

__all__ = [
    'MAX_SEGMENT_SIZE',
    'MAX_IDENTIFIER_SIZE',
    'TEAM_WILDCARD',
    'INACTIVE_STATUS',
    'NETWORK_ID_LIMIT',
    'EMPTY_BODY',
    'ClientMessageType',
    'ServerMessageType',
    'is_valid_identifier',
    'pack_identifier_list',
    'unpack_identifiers_by_delimiter',
    'pack_server_description',
    'pack_team_status',
    'unpack_team_status',
    'ClientMessage',
    'ServerMessage',
]
