from protocol.commands import ClientMessageType, ServerMessageType
from protocol.constants import EMPTY_BODY, INACTIVE_STATUS, TEAM_WILDCARD
from protocol.messages import ClientMessage, ServerMessage
from server.directory import Directory
from server.dispatcher import RequestDispatcher

ALICE_ADDR = ("127.0.0.1", 5001)
BOB_ADDR = ("127.0.0.1", 5002)


def request(dispatcher, message_type, body=EMPTY_BODY, addr=ALICE_ADDR, **header):
    packet = ClientMessage(message_type, body=body, **header).serialize()
    reply = dispatcher.handle(packet, addr)
    # Every reply must survive the trip over the wire
    return ServerMessage.parse(reply.serialize())


def register(dispatcher, name, addr):
    return request(dispatcher, ClientMessageType.NET_ID_REQUEST, name.encode(), addr=addr)


def test_registration_assigns_sequential_ids(dispatcher):
    alice = register(dispatcher, "Alice", ALICE_ADDR)
    bob = register(dispatcher, "Bob", BOB_ADDR)

    assert alice.message_type == ServerMessageType.ACK_NEW_USER
    assert alice.body == b"0"
    assert bob.body == b"1"


def test_registration_with_invalid_name(dispatcher):
    reply = register(dispatcher, "Al!ce", ALICE_ADDR)

    assert reply.message_type == ServerMessageType.ERROR
    assert "not a valid username" in reply.text
    assert dispatcher.directory.user_count == 0


def test_status_update_then_team_status(dispatcher):
    register(dispatcher, "Alice", ALICE_ADDR)
    register(dispatcher, "Bob", BOB_ADDR)

    ack = request(dispatcher, ClientMessageType.STATUS_UPDATE, network_id=0, team_id=0, status=1)
    assert ack.message_type == ServerMessageType.ACK_STATUS_UPDATE
    assert ack.body == EMPTY_BODY

    reply = request(dispatcher, ClientMessageType.TEAM_STATUS_REQUEST, network_id=1, team_id=0)
    assert reply.message_type == ServerMessageType.TEAM_STATUS
    index = reply.usernames.index("Alice")
    assert reply.status_vector[index] == 1
    assert "Bob" not in reply.usernames


def test_duplicate_status_update_is_idempotent(dispatcher):
    register(dispatcher, "Alice", ALICE_ADDR)
    for _ in range(2):
        ack = request(dispatcher, ClientMessageType.STATUS_UPDATE, network_id=0, team_id=1, status=0)
        assert ack.message_type == ServerMessageType.ACK_STATUS_UPDATE

    reply = request(dispatcher, ClientMessageType.TEAM_STATUS_REQUEST, team_id=1)
    assert [name for name in reply.usernames if name] == ["Alice"]


def test_status_update_for_unknown_user(dispatcher):
    reply = request(dispatcher, ClientMessageType.STATUS_UPDATE, network_id=5, team_id=0, status=0)

    assert reply.message_type == ServerMessageType.ERROR
    assert reply.text == "Cannot resolve invalid user ID: 5"


def test_status_update_with_invalid_values(dispatcher):
    register(dispatcher, "Alice", ALICE_ADDR)

    bad_status = request(dispatcher, ClientMessageType.STATUS_UPDATE, network_id=0, team_id=0, status=20)
    bad_team = request(dispatcher, ClientMessageType.STATUS_UPDATE, network_id=0, team_id=7, status=0)

    assert bad_status.text == "Invalid status: 20"
    assert bad_team.text == "Invalid team ID: 7"
    user = dispatcher.directory.lookup_user(0)
    assert (user.status, user.team_id) == (INACTIVE_STATUS, TEAM_WILDCARD)


def test_status_update_accepts_any_status_below_limit(dispatcher):
    register(dispatcher, "Alice", ALICE_ADDR)

    # Only two statuses are named, but the header range is 0..19
    for status in (5, 7, 19):
        ack = request(dispatcher, ClientMessageType.STATUS_UPDATE, network_id=0, team_id=0, status=status)
        assert ack.message_type == ServerMessageType.ACK_STATUS_UPDATE

    assert dispatcher.directory.lookup_user(0).status == 19


def test_leaving_resets_user_but_keeps_identity(dispatcher):
    register(dispatcher, "Alice", ALICE_ADDR)
    request(dispatcher, ClientMessageType.STATUS_UPDATE, network_id=0, team_id=0, status=1)
    request(dispatcher, ClientMessageType.STATUS_UPDATE, network_id=0)

    reply = request(dispatcher, ClientMessageType.TEAM_STATUS_REQUEST, team_id=0)
    assert not any(reply.usernames)
    assert dispatcher.directory.lookup_user(0).display_name == "Alice"
    assert register(dispatcher, "Bob", BOB_ADDR).body == b"1"


def test_team_status_for_unknown_team(dispatcher):
    reply = request(dispatcher, ClientMessageType.TEAM_STATUS_REQUEST, team_id=99)

    assert reply.message_type == ServerMessageType.ERROR
    assert "Invalid Team ID: 99" in reply.text


def test_server_description(dispatcher):
    reply = request(dispatcher, ClientMessageType.SERVER_DESCRIPTION_REQUEST)

    assert reply.message_type == ServerMessageType.SERVER_DESCRIPTION
    assert reply.team_names == ["Red", "Blue"]
    assert reply.status_names == ["Busy", "Free"]
    assert dispatcher.handle(ClientMessage(4).serialize()) is dispatcher.server_description


def test_unknown_message_type(dispatcher):
    reply = request(dispatcher, 42)

    assert reply.message_type == ServerMessageType.ERROR
    assert "Invalid client message type" in reply.text


def test_malformed_datagram_then_valid_request(dispatcher):
    reply = ServerMessage.parse(dispatcher.handle(b"\x01\x00", ALICE_ADDR).serialize())
    assert reply.message_type == ServerMessageType.ERROR
    assert reply.text == "Failed to parse malformed message"

    assert register(dispatcher, "Alice", ALICE_ADDR).body == b"0"


def test_retransmitted_registration_reuses_id(dispatcher):
    first = register(dispatcher, "Alice", ALICE_ADDR)
    retry = register(dispatcher, "Alice", ALICE_ADDR)

    assert first.body == retry.body == b"0"
    assert dispatcher.directory.user_count == 1


def test_same_name_from_another_address_is_a_new_user(dispatcher):
    register(dispatcher, "Alice", ALICE_ADDR)
    assert register(dispatcher, "Alice", BOB_ADDR).body == b"1"


def test_deduplication_can_be_disabled():
    dispatcher = RequestDispatcher(Directory(["Red"], ["Busy"]), dedupe_registrations=False)

    assert register(dispatcher, "Alice", ALICE_ADDR).body == b"0"
    assert register(dispatcher, "Alice", ALICE_ADDR).body == b"1"


def test_registration_memory_forgets_least_recent_sender():
    dispatcher = RequestDispatcher(Directory(["Red"], ["Busy"]), registration_memory=2)
    carol_addr = ("127.0.0.1", 5003)

    assert register(dispatcher, "Alice", ALICE_ADDR).body == b"0"
    assert register(dispatcher, "Bob", BOB_ADDR).body == b"1"
    # A retransmission counts as recent activity for Alice
    assert register(dispatcher, "Alice", ALICE_ADDR).body == b"0"
    assert register(dispatcher, "Carol", carol_addr).body == b"2"

    assert register(dispatcher, "Alice", ALICE_ADDR).body == b"0"
    assert register(dispatcher, "Bob", BOB_ADDR).body == b"3"
    assert dispatcher.directory.user_count == 4
