"""Protocol constants for message handling.

These are protocol-level constants that should not be changed
without updating both client and server implementations.
"""

import struct

# Maximum datagram size in bytes; messages are never fragmented
MAX_SEGMENT_SIZE = 1 << 10

# Team names, user names and statuses occupy one fixed slot of this many bytes
MAX_IDENTIFIER_SIZE = 16

# Sigil for "no team" in the team byte of a client header
TEAM_WILDCARD = 0xFF

# Sigil for "no status" in the status byte of a client header
INACTIVE_STATUS = 0xFF

# Network IDs must stay below this value; the value itself means "not assigned"
NETWORK_ID_LIMIT = 0xFFFFFF

# Message bodies are at least one byte long, so this stands in for "no content"
EMPTY_BODY = b'&'

# Text carried in bodies (identifiers, decimal IDs, error reasons)
TEXT_ENCODING = 'latin-1'

# Client header: type (1B), network ID (3B big-endian), team (1B), status (1B)
CLIENT_HEADER_FORMAT = '>B3sBB'
CLIENT_HEADER_SIZE = struct.calcsize(CLIENT_HEADER_FORMAT)
CLIENT_MAX_BODY_SIZE = MAX_SEGMENT_SIZE - CLIENT_HEADER_SIZE

# Server header: type (1B)
SERVER_HEADER_FORMAT = '>B'
SERVER_HEADER_SIZE = struct.calcsize(SERVER_HEADER_FORMAT)
SERVER_MAX_BODY_SIZE = MAX_SEGMENT_SIZE - SERVER_HEADER_SIZE

# Delimiter slots that open a named sub-list in a padded description
DELIMITER_PREFIX = '#'
TEAMS_DELIMITER = '#TEAMS'
STATUSES_DELIMITER = '#STATUSES'
USERS_DELIMITER = '#USERS'

# Team IDs and statuses must fit in a byte below their 0xff sigils
MAX_TEAM_COUNT = 20
MAX_STATUS_COUNT = 20

# Roster slots per team; one status byte per slot in a TEAM_STATUS body
MAX_TEAM_SIZE = 50
