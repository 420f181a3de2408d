"""In-memory registry of the teams and users hosted by a server."""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from protocol.constants import (
    INACTIVE_STATUS,
    MAX_IDENTIFIER_SIZE,
    MAX_STATUS_COUNT,
    MAX_TEAM_COUNT,
    MAX_TEAM_SIZE,
    NETWORK_ID_LIMIT,
    TEAM_WILDCARD,
)
from protocol.encoding import is_valid_identifier
from utils.exceptions import (
    CapacityExceededError,
    ConfigurationError,
    InvalidIdentifierError,
    InvalidStatusError,
    InvalidTeamIDError,
    TeamFullError,
)
from utils.logging import get_logger

logger = get_logger(__name__)

# The userbase starts with room for this many users and doubles when full
INITIAL_USERBASE_SIZE = 16


@dataclass
class User:
    """A registered user. network_id doubles as the user's directory index."""

    network_id: int
    display_name: str
    status: int = INACTIVE_STATUS
    team_id: int = TEAM_WILDCARD


class Team:
    """
    Fixed-capacity roster of users.

    Membership is presence in a slot; the slot index carries no other meaning.
    """

    def __init__(self, team_id: int, name: str, capacity: int = MAX_TEAM_SIZE):
        self.team_id = team_id
        self.name = name
        self._slots: List[Optional[User]] = [None] * capacity

    @property
    def capacity(self) -> int:
        return len(self._slots)

    def __contains__(self, user: User) -> bool:
        return self.index_of(user.network_id) is not None

    def index_of(self, network_id: int) -> Optional[int]:
        for i, member in enumerate(self._slots):
            if member is not None and member.network_id == network_id:
                return i
        return None

    def has_room(self) -> bool:
        return any(member is None for member in self._slots)

    def add_user(self, user: User) -> Optional[int]:
        """
        Put a user in the first free slot.

        Returns:
            The slot index, or None if the user was already present or the
            roster is full
        """
        free_index = None
        for i, member in enumerate(self._slots):
            if member is not None and member.network_id == user.network_id:
                return None
            if free_index is None and member is None:
                free_index = i

        if free_index is not None:
            self._slots[free_index] = user
        return free_index

    def remove_user(self, user: User) -> bool:
        """Clear the slot holding the user. Returns whether one was found."""
        index = self.index_of(user.network_id)
        if index is None:
            return False
        self._slots[index] = None
        return True

    def members(self) -> List[User]:
        return [member for member in self._slots if member is not None]

    def user_names(self) -> List[str]:
        """Display name of each slot, '' for vacant slots."""
        return ['' if member is None else member.display_name for member in self._slots]

    def status_vector(self) -> List[int]:
        """Status of each slot, INACTIVE_STATUS for vacant slots."""
        return [INACTIVE_STATUS if member is None else member.status for member in self._slots]


class Directory:
    """
    Registry of teams and users owned by a single server.

    The set of teams and statuses is fixed at construction. Users are only
    ever added, and a user's network ID is never reused. All mutation must
    happen from one owner; the directory itself does no locking.
    """

    def __init__(
        self,
        team_names: Sequence[str],
        status_names: Sequence[str],
        team_capacity: int = MAX_TEAM_SIZE,
        network_id_limit: int = NETWORK_ID_LIMIT,
    ):
        """
        Create a directory hosting the given teams and statuses.

        Args:
            team_names: Names of all teams, 1 to MAX_TEAM_COUNT
            status_names: Supported statuses, 1 to MAX_STATUS_COUNT
            team_capacity: Roster slots per team
            network_id_limit: First network ID that may not be assigned

        Raises:
            ConfigurationError: If a list is empty or too long
            InvalidIdentifierError: If any name is not a valid identifier
        """
        if not 1 <= len(team_names) <= MAX_TEAM_COUNT:
            raise ConfigurationError(
                f"Server supports between 1 and {MAX_TEAM_COUNT} teams, "
                f"{len(team_names)} team names were given"
            )
        if not 1 <= len(status_names) <= MAX_STATUS_COUNT:
            raise ConfigurationError(
                f"Server supports between 1 and {MAX_STATUS_COUNT} statuses, "
                f"{len(status_names)} statuses were given"
            )
        for kind, names in (("Team names", team_names), ("Statuses", status_names)):
            for name in names:
                if not is_valid_identifier(name):
                    raise InvalidIdentifierError(
                        f"{kind} should consist of 1 to {MAX_IDENTIFIER_SIZE} letters, "
                        f"numbers, and spaces. The name \"{name}\" is invalid."
                    )

        self._team_names: Tuple[str, ...] = tuple(team_names)
        self._status_names: Tuple[str, ...] = tuple(status_names)
        self._teams: Tuple[Team, ...] = tuple(
            Team(team_id, name, team_capacity) for team_id, name in enumerate(team_names)
        )
        self._network_id_limit = network_id_limit
        self._userbase: List[Optional[User]] = [None] * INITIAL_USERBASE_SIZE
        self._next_network_id = 0

        logger.debug(
            f"Directory created with {len(self._teams)} teams "
            f"and {len(self._status_names)} statuses"
        )

    @property
    def teams(self) -> Tuple[Team, ...]:
        return self._teams

    @property
    def user_count(self) -> int:
        return self._next_network_id

    @property
    def userbase_capacity(self) -> int:
        return len(self._userbase)

    def users(self) -> List[User]:
        return self._userbase[:self._next_network_id]

    def create_user(self, display_name: str) -> User:
        """
        Register a new user with the next sequential network ID.

        The user starts on no team with inactive status.

        Raises:
            CapacityExceededError: If no assignable network ID is left
            InvalidIdentifierError: If display_name is not a valid identifier
        """
        if self._next_network_id >= self._network_id_limit:
            raise CapacityExceededError(
                "Could not create new user, this server has reached its limit of users supported"
            )
        if not is_valid_identifier(display_name):
            raise InvalidIdentifierError(
                f"Usernames must be between 1 and {MAX_IDENTIFIER_SIZE} letters, numbers "
                f"and spaces. \"{display_name}\" is not a valid username."
            )

        if self._next_network_id >= len(self._userbase):
            self._userbase.extend([None] * len(self._userbase))
            logger.debug(f"Userbase grown to {len(self._userbase)} entries")

        user = User(network_id=self._next_network_id, display_name=display_name)
        self._userbase[user.network_id] = user
        self._next_network_id += 1

        logger.info(f"Created user {user.network_id} ({display_name})")
        return user

    def lookup_user(self, network_id: int) -> Optional[User]:
        """Return the user with the given network ID, or None if there is none."""
        if network_id < 0 or network_id >= self._next_network_id:
            return None
        return self._userbase[network_id]

    def is_valid_status(self, status: int) -> bool:
        return 0 <= status < MAX_STATUS_COUNT or status == INACTIVE_STATUS

    def is_valid_team(self, team_id: int) -> bool:
        return 0 <= team_id < len(self._teams) or team_id == TEAM_WILDCARD

    def set_user_status_and_team(self, user: User, status: int, team_id: int) -> None:
        """
        Record a user's status and move them to a team.

        Moving to TEAM_WILDCARD takes the user off their current team.
        Repeating the same update leaves the directory unchanged.

        Raises:
            InvalidStatusError: If status is outside 0..MAX_STATUS_COUNT-1 and not inactive
            InvalidTeamIDError: If team_id is neither a team nor the wildcard
            TeamFullError: If the new team has no free slot
        """
        if not self.is_valid_status(status):
            raise InvalidStatusError(f"Invalid status: {status}")
        if not self.is_valid_team(team_id):
            raise InvalidTeamIDError(f"Invalid team ID: {team_id}")

        old_team_id = user.team_id
        if team_id != old_team_id and team_id != TEAM_WILDCARD:
            new_team = self._teams[team_id]
            if user not in new_team and not new_team.has_room():
                raise TeamFullError(f"Team {team_id} is full")

        if team_id != old_team_id and old_team_id != TEAM_WILDCARD:
            self._teams[old_team_id].remove_user(user)
        if team_id != old_team_id and team_id != TEAM_WILDCARD:
            self._teams[team_id].add_user(user)

        user.status = status
        user.team_id = team_id
        logger.debug(f"User {user.network_id}: status={status}, team={team_id}")

    def team_status_view(self, team_id: int) -> Tuple[List[str], List[int]]:
        """
        Names and statuses of every roster slot of a team.

        Raises:
            InvalidTeamIDError: If team_id does not name a team
        """
        if not 0 <= team_id < len(self._teams):
            raise InvalidTeamIDError(f"Invalid Team ID: {team_id}")
        team = self._teams[team_id]
        return team.user_names(), team.status_vector()

    def static_description(self) -> Tuple[Tuple[str, ...], Tuple[str, ...]]:
        """Team names and status names, fixed for the directory's lifetime."""
        return self._team_names, self._status_names
