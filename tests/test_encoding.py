import random
import string

import pytest

from protocol.constants import INACTIVE_STATUS, MAX_IDENTIFIER_SIZE, MAX_TEAM_SIZE
from protocol.encoding import (
    is_valid_identifier,
    pack_identifier_list,
    pack_server_description,
    pack_team_status,
    trim_trailing_null,
    unpack_identifiers_by_delimiter,
    unpack_team_status,
)
from utils.exceptions import InvalidIdentifierError, MalformedMessageError

VALID_CHARS = string.ascii_letters + string.digits + " "


@pytest.mark.parametrize("identifier", ["a", "Alice", "The A Team", "x" * 16, "0123456789", " "])
def test_valid_identifiers(identifier):
    assert is_valid_identifier(identifier)


@pytest.mark.parametrize(
    "identifier",
    ["", "x" * 17, "Bob!", "#TEAMS", "tab\there", "new\n", "café", "under_score"],
)
def test_invalid_identifiers(identifier):
    assert not is_valid_identifier(identifier)


def test_identifier_validity_matches_rule_on_random_strings():
    rng = random.Random(1234)
    alphabet = VALID_CHARS + "#!_-.\x00é"
    for _ in range(500):
        s = "".join(rng.choice(alphabet) for _ in range(rng.randint(0, 20)))
        expected = 1 <= len(s) <= 16 and all(c in VALID_CHARS for c in s)
        assert is_valid_identifier(s) == expected, repr(s)


def test_trim_trailing_null():
    assert trim_trailing_null(b"abc\x00\x00") == b"abc"
    assert trim_trailing_null(b"\x00\x00") == b""
    assert trim_trailing_null(b"a\x00b") == b"a\x00b"


def test_pack_identifier_list_layout():
    packed = pack_identifier_list([("#TEAMS", ["Red", "Blue"])])

    assert len(packed) == 3 * MAX_IDENTIFIER_SIZE + 1
    assert packed[:16] == b"#TEAMS" + b"\x00" * 10
    assert packed[16:32] == b"Red" + b"\x00" * 13
    assert packed[32:48] == b"Blue" + b"\x00" * 12
    assert packed[-1:] == b"#"


def test_pack_without_terminator():
    packed = pack_identifier_list([("#USERS", ["Alice"])], terminate=False)
    assert len(packed) == 2 * MAX_IDENTIFIER_SIZE


def test_pack_rejects_oversized_and_misplaced_entries():
    with pytest.raises(InvalidIdentifierError):
        pack_identifier_list([("#TEAMS", ["x" * 17])])
    with pytest.raises(InvalidIdentifierError):
        pack_identifier_list([("TEAMS", ["Red"])])
    with pytest.raises(InvalidIdentifierError):
        pack_identifier_list([("#TEAMS", ["#Red"])])


def test_unpack_returns_each_category_in_order():
    rng = random.Random(99)
    for _ in range(50):
        categories = []
        for delimiter in ("#TEAMS", "#STATUSES", "#USERS"):
            names = [
                "".join(rng.choice(VALID_CHARS) for _ in range(rng.randint(1, 16)))
                for _ in range(rng.randint(0, 8))
            ]
            categories.append((delimiter, names))

        body = pack_identifier_list(categories)
        for delimiter, names in categories:
            assert unpack_identifiers_by_delimiter(body, delimiter) == names


def test_unpack_missing_delimiter_raises():
    body = pack_identifier_list([("#TEAMS", ["Red"])])
    with pytest.raises(MalformedMessageError):
        unpack_identifiers_by_delimiter(body, "#STATUSES")


def test_unpack_stops_at_end_of_body_without_terminator():
    body = pack_identifier_list([("#USERS", ["Alice", "Bob"])], terminate=False)
    assert unpack_identifiers_by_delimiter(body, "#USERS") == ["Alice", "Bob"]


def test_server_description_lists():
    body = pack_server_description(["Red", "Blue"], ["Busy", "Free"])

    assert unpack_identifiers_by_delimiter(body, "#TEAMS") == ["Red", "Blue"]
    assert unpack_identifiers_by_delimiter(body, "#STATUSES") == ["Busy", "Free"]
    assert body.endswith(b"#")


def test_team_status_round_trip_keeps_vacant_slots():
    names = [""] * MAX_TEAM_SIZE
    statuses = [INACTIVE_STATUS] * MAX_TEAM_SIZE
    names[3], statuses[3] = "Alice", 1
    names[7], statuses[7] = "Bob", 0

    body = pack_team_status(names, statuses)

    assert len(body) == MAX_IDENTIFIER_SIZE + MAX_TEAM_SIZE * (MAX_IDENTIFIER_SIZE + 1)
    assert unpack_team_status(body) == (names, statuses)


def test_team_status_status_byte_equal_to_hash_is_not_a_delimiter():
    body = pack_team_status(["Alice"], [ord("#")])
    assert unpack_team_status(body) == (["Alice"], [ord("#")])


def test_team_status_requires_parallel_lists():
    with pytest.raises(ValueError):
        pack_team_status(["Alice"], [])


def test_unpack_team_status_rejects_bad_length():
    body = pack_team_status(["Alice", "Bob"], [0, 1])
    with pytest.raises(MalformedMessageError):
        unpack_team_status(body[:-1])
    with pytest.raises(MalformedMessageError):
        unpack_team_status(b"#USERS")
