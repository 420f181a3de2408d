"""Padded identifier list encoding and decoding functions.

A description body is a run of fixed MAX_IDENTIFIER_SIZE byte slots. Each
slot holds one identifier, left-justified and padded with zero bytes. A slot
whose text starts with '#' is a delimiter that opens a named sub-list, which
runs until the next delimiter slot or the end of the body.
"""

from typing import Iterable, List, Sequence, Tuple
import re

from protocol.constants import (
    DELIMITER_PREFIX,
    MAX_IDENTIFIER_SIZE,
    STATUSES_DELIMITER,
    TEAMS_DELIMITER,
    TEXT_ENCODING,
    USERS_DELIMITER,
)
from utils.exceptions import InvalidIdentifierError, MalformedMessageError

_IDENTIFIER_RE = re.compile(rf'[A-Za-z0-9 ]{{1,{MAX_IDENTIFIER_SIZE}}}')
_TERMINATOR = DELIMITER_PREFIX.encode(TEXT_ENCODING)


def is_valid_identifier(identifier: str) -> bool:
    """
    Check whether a team name, user name or status name is acceptable.

    To be valid it must contain 1 to MAX_IDENTIFIER_SIZE letters, digits
    and spaces.
    """
    return isinstance(identifier, str) and _IDENTIFIER_RE.fullmatch(identifier) is not None


def trim_trailing_null(data: bytes) -> bytes:
    """Return data with any trailing zero bytes removed."""
    return data.rstrip(b'\x00')


def _pad_slot(entry: str) -> bytes:
    raw = entry.encode(TEXT_ENCODING)
    if len(raw) > MAX_IDENTIFIER_SIZE:
        raise InvalidIdentifierError(
            f"Entry {entry!r} does not fit in a {MAX_IDENTIFIER_SIZE} byte slot"
        )
    return raw.ljust(MAX_IDENTIFIER_SIZE, b'\x00')


def pack_identifier_list(
    categories: Iterable[Tuple[str, Sequence[str]]],
    terminate: bool = True,
) -> bytes:
    """
    Pack named lists of identifiers into fixed-size slots.

    Args:
        categories: Ordered (delimiter, identifiers) pairs. Every delimiter
            must start with '#'; identifiers must not. An empty identifier
            becomes an all-zero slot.
        terminate: Append a single '#' byte after the last slot. Left off
            when a raw byte vector follows the list.

    Returns:
        The padded description bytes

    Raises:
        InvalidIdentifierError: If an entry does not fit its slot or uses
            the delimiter prefix in the wrong place
    """
    slots = []
    for delimiter, identifiers in categories:
        if not delimiter.startswith(DELIMITER_PREFIX):
            raise InvalidIdentifierError(f"Delimiter {delimiter!r} must start with '#'")
        slots.append(_pad_slot(delimiter))
        for identifier in identifiers:
            if identifier.startswith(DELIMITER_PREFIX):
                raise InvalidIdentifierError(
                    f"Identifier {identifier!r} may not start with '#'"
                )
            slots.append(_pad_slot(identifier))

    if terminate:
        slots.append(_TERMINATOR)
    return b''.join(slots)


def _slot_text(body: bytes, offset: int) -> str:
    return trim_trailing_null(body[offset:offset + MAX_IDENTIFIER_SIZE]).decode(TEXT_ENCODING)


def unpack_identifiers_by_delimiter(body: bytes, delimiter: str) -> List[str]:
    """
    Extract the identifiers following the first slot equal to delimiter.

    Only whole slots are read. Collection stops at the next slot starting
    with '#' or at the end of the body. Vacant slots come back as ''.

    Raises:
        MalformedMessageError: If no slot holds the delimiter
    """
    offset = 0
    end = len(body) - MAX_IDENTIFIER_SIZE

    while offset <= end and _slot_text(body, offset) != delimiter:
        offset += MAX_IDENTIFIER_SIZE
    if offset > end:
        raise MalformedMessageError(f"Delimiter {delimiter} not found in description")
    offset += MAX_IDENTIFIER_SIZE

    identifiers = []
    while offset <= end:
        text = _slot_text(body, offset)
        if text.startswith(DELIMITER_PREFIX):
            break
        identifiers.append(text)
        offset += MAX_IDENTIFIER_SIZE
    return identifiers


def pack_server_description(team_names: Sequence[str], status_names: Sequence[str]) -> bytes:
    """Body of a SERVER_DESCRIPTION message."""
    return pack_identifier_list(
        [(TEAMS_DELIMITER, team_names), (STATUSES_DELIMITER, status_names)]
    )


def pack_team_status(names: Sequence[str], statuses: Sequence[int]) -> bytes:
    """
    Body of a TEAM_STATUS message.

    The padded '#USERS' list is followed directly by one status byte per
    roster slot, so names and statuses must be the same length.
    """
    if len(names) != len(statuses):
        raise ValueError(
            f"Got {len(names)} names but {len(statuses)} statuses"
        )
    return pack_identifier_list([(USERS_DELIMITER, names)], terminate=False) + bytes(statuses)


def unpack_team_status(body: bytes) -> Tuple[List[str], List[int]]:
    """
    Split a TEAM_STATUS body into parallel name and status lists.

    The body is one delimiter slot plus, per roster slot, a padded name and
    a status byte, so its length fixes the roster size.

    Raises:
        MalformedMessageError: If the length does not match that layout
    """
    roster_size, remainder = divmod(len(body) - MAX_IDENTIFIER_SIZE, MAX_IDENTIFIER_SIZE + 1)
    if roster_size < 0 or remainder:
        raise MalformedMessageError(f"Team status body of {len(body)} bytes is malformed")

    names_end = MAX_IDENTIFIER_SIZE * (roster_size + 1)
    names = unpack_identifiers_by_delimiter(body[:names_end], USERS_DELIMITER)
    if len(names) != roster_size:
        raise MalformedMessageError(
            f"Team status lists {len(names)} names for {roster_size} slots"
        )
    return names, list(body[names_end:])
