import pytest

from protocol.commands import ClientMessageType, ServerMessageType
from protocol.constants import (
    CLIENT_MAX_BODY_SIZE,
    EMPTY_BODY,
    INACTIVE_STATUS,
    MAX_SEGMENT_SIZE,
    NETWORK_ID_LIMIT,
    SERVER_MAX_BODY_SIZE,
    TEAM_WILDCARD,
)
from protocol.encoding import pack_server_description, pack_team_status
from protocol.messages import ClientMessage, ServerMessage
from utils.exceptions import (
    InvalidBodyError,
    InvalidHeaderValueError,
    MalformedMessageError,
    UnexpectedMessageTypeError,
)


def test_client_header_layout():
    message = ClientMessage(ClientMessageType.STATUS_UPDATE, 0x0A0B0C, 3, 7, EMPTY_BODY)
    assert message.serialize() == bytes([2, 0x0A, 0x0B, 0x0C, 3, 7]) + b"&"


def test_client_message_round_trip():
    message = ClientMessage(
        ClientMessageType.NET_ID_REQUEST,
        network_id=NETWORK_ID_LIMIT,
        team_id=TEAM_WILDCARD,
        status=INACTIVE_STATUS,
        body=b"Alice",
    )
    parsed = ClientMessage.parse(message.serialize())

    assert parsed == message
    assert parsed.user_name == "Alice"
    assert parsed.type_name == "NET_ID_REQUEST"


def test_client_message_keeps_unknown_type():
    parsed = ClientMessage.parse(bytes([9, 0, 0, 1, 0, 0]) + b"&")
    assert parsed.message_type == 9
    assert parsed.network_id == 1
    assert parsed.type_name == "UNKNOWN"


def test_server_message_round_trip():
    message = ServerMessage(ServerMessageType.ACK_NEW_USER, b"42")
    parsed = ServerMessage.parse(message.serialize())

    assert parsed == message
    assert parsed.network_id == 42


@pytest.mark.parametrize("size", [0, 1, 6])
def test_client_parse_rejects_short_datagrams(size):
    with pytest.raises(MalformedMessageError):
        ClientMessage.parse(b"\x01" * size)


def test_parse_rejects_oversized_datagrams():
    with pytest.raises(MalformedMessageError):
        ClientMessage.parse(b"\x01" * (MAX_SEGMENT_SIZE + 1))
    with pytest.raises(MalformedMessageError):
        ServerMessage.parse(b"\x01" * (MAX_SEGMENT_SIZE + 1))
    with pytest.raises(MalformedMessageError):
        ServerMessage.parse(b"\x01")


def test_parse_accepts_full_segment():
    assert len(ClientMessage.parse(b"\x01" * MAX_SEGMENT_SIZE).body) == CLIENT_MAX_BODY_SIZE
    assert len(ServerMessage.parse(b"\x01" * MAX_SEGMENT_SIZE).body) == SERVER_MAX_BODY_SIZE


@pytest.mark.parametrize(
    "fields",
    [
        dict(message_type=256),
        dict(message_type=-1),
        dict(team_id=300),
        dict(status=256),
        dict(network_id=NETWORK_ID_LIMIT + 1),
        dict(network_id=-1),
    ],
)
def test_client_message_rejects_header_values(fields):
    kwargs = dict(message_type=1, network_id=0, team_id=0, status=0, body=b"x")
    kwargs.update(fields)
    with pytest.raises(InvalidHeaderValueError):
        ClientMessage(**kwargs)


def test_message_body_bounds():
    with pytest.raises(InvalidBodyError):
        ClientMessage(1, body=b"")
    with pytest.raises(InvalidBodyError):
        ClientMessage(1, body=b"x" * (CLIENT_MAX_BODY_SIZE + 1))
    with pytest.raises(InvalidBodyError):
        ServerMessage(1, b"")
    with pytest.raises(InvalidBodyError):
        ServerMessage(1, b"x" * (SERVER_MAX_BODY_SIZE + 1))
    with pytest.raises(InvalidHeaderValueError):
        ServerMessage(256, b"x")


def test_error_reply_text():
    reply = ServerMessage.error("Invalid Team ID: 99")
    assert reply.message_type == ServerMessageType.ERROR
    assert reply.text == "Invalid Team ID: 99"


def test_server_description_accessors():
    reply = ServerMessage(
        ServerMessageType.SERVER_DESCRIPTION,
        pack_server_description(["Red", "Blue"], ["Busy", "Free"]),
    )
    assert reply.team_names == ["Red", "Blue"]
    assert reply.status_names == ["Busy", "Free"]


def test_team_status_accessors():
    reply = ServerMessage(
        ServerMessageType.TEAM_STATUS,
        pack_team_status(["", "Alice"], [INACTIVE_STATUS, 1]),
    )
    assert reply.usernames == ["", "Alice"]
    assert reply.status_vector == [INACTIVE_STATUS, 1]


def test_reading_wrong_type_raises():
    with pytest.raises(UnexpectedMessageTypeError):
        ServerMessage(ServerMessageType.ERROR, b"oops").team_names
    with pytest.raises(UnexpectedMessageTypeError):
        ServerMessage(ServerMessageType.ACK_STATUS_UPDATE).network_id
    with pytest.raises(UnexpectedMessageTypeError):
        ClientMessage(ClientMessageType.STATUS_UPDATE).user_name


def test_non_numeric_network_id_reply():
    with pytest.raises(MalformedMessageError):
        ServerMessage(ServerMessageType.ACK_NEW_USER, b"abc").network_id
