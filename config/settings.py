"""Configuration management for the TeamConnect server and client."""

from dataclasses import dataclass
from typing import List, Optional
import os
from pathlib import Path

from dotenv import load_dotenv

from protocol.constants import (
    MAX_IDENTIFIER_SIZE,
    MAX_STATUS_COUNT,
    MAX_TEAM_COUNT,
    NETWORK_ID_LIMIT,
)
from protocol.encoding import is_valid_identifier
from utils.exceptions import ConfigurationError


# Load .env file from project root
# This is called at module import time to ensure env vars are available
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(dotenv_path=env_path, override=False)

# Separator for team and status lists; names themselves may contain spaces
LIST_SEPARATOR = '/'

DEFAULT_PORT = 2000
DEFAULT_TIMEOUT = 1.0


def _validate_port(name: str, port: int) -> None:
    if not isinstance(port, int) or port < 1 or port > 65535:
        raise ConfigurationError(f"{name} must be between 1 and 65535")


def _validate_identifiers(kind: str, names: List[str], max_count: int) -> None:
    if not 1 <= len(names) <= max_count:
        raise ConfigurationError(
            f"Server supports between 1 and {max_count} {kind}, "
            f"{len(names)} were given"
        )
    for name in names:
        if not is_valid_identifier(name):
            raise ConfigurationError(
                f"{kind.capitalize()} should consist of 1 to {MAX_IDENTIFIER_SIZE} "
                f"letters, numbers, and spaces. The name \"{name}\" is invalid."
            )


def _parse_list(value: str) -> List[str]:
    return [item for item in value.split(LIST_SEPARATOR) if item]


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ('1', 'true', 'yes', 'on'):
        return True
    if lowered in ('0', 'false', 'no', 'off'):
        return False
    raise ConfigurationError(f"{name} must be a boolean, got: {value}")


def _parse_int(name: str, value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(f"{name} must be a valid integer, got: {value}")


@dataclass
class ServerConfig:
    """Configuration for the directory server."""

    team_names: List[str]
    status_names: List[str]
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    dedupe_registrations: bool = True

    def validate(self) -> None:
        """Validate server configuration parameters."""
        if not self.host:
            raise ConfigurationError("Server host is required")
        _validate_port("Server port", self.port)
        _validate_identifiers("teams", self.team_names, MAX_TEAM_COUNT)
        _validate_identifiers("statuses", self.status_names, MAX_STATUS_COUNT)


@dataclass
class ClientConfig:
    """Configuration for a client session."""

    display_name: str
    server_host: str = "127.0.0.1"
    server_port: int = DEFAULT_PORT
    network_id: Optional[int] = None
    timeout: float = DEFAULT_TIMEOUT
    max_attempts: Optional[int] = None

    def validate(self) -> None:
        """Validate client configuration parameters."""
        if not is_valid_identifier(self.display_name):
            raise ConfigurationError(
                f"User names should consist of 1 to {MAX_IDENTIFIER_SIZE} letters, "
                f"numbers, and spaces. The name \"{self.display_name}\" is invalid."
            )
        if not self.server_host:
            raise ConfigurationError("Server host is required")
        _validate_port("Server port", self.server_port)
        if self.network_id is not None and not 0 <= self.network_id < NETWORK_ID_LIMIT:
            raise ConfigurationError(f"Invalid network ID: {self.network_id}")
        if self.timeout <= 0:
            raise ConfigurationError("Timeout must be positive")
        if self.max_attempts is not None and self.max_attempts < 1:
            raise ConfigurationError("Max attempts must be at least 1")


class Config:
    """Main configuration loader and manager."""

    def __init__(self):
        """Initialize configuration manager."""
        self.client: Optional[ClientConfig] = None
        self.server: Optional[ServerConfig] = None

    def load_server_config(self) -> ServerConfig:
        """
        Load server configuration from environment variables.

        Environment variables:
            SERVER_TEAMS: '/'-separated team names (required)
            SERVER_STATUSES: '/'-separated status names (required)
            SERVER_HOST: Bind host (default: 0.0.0.0)
            SERVER_PORT: Bind port (default: 2000)
            SERVER_DEDUPE_REGISTRATIONS: Reuse the ID of a repeated
                registration from the same address (default: true)

        Returns:
            Validated ServerConfig instance

        Raises:
            ConfigurationError: If required configuration is missing or invalid
        """
        teams = os.getenv('SERVER_TEAMS')
        statuses = os.getenv('SERVER_STATUSES')
        if not teams or not statuses:
            raise ConfigurationError(
                "SERVER_TEAMS and SERVER_STATUSES environment variables are required. "
                "Example: SERVER_TEAMS=\"The A Team/The B Team\" "
                "SERVER_STATUSES=\"Busy/Asleep/Working Hard\""
            )

        config = ServerConfig(
            team_names=_parse_list(teams),
            status_names=_parse_list(statuses),
            host=os.getenv('SERVER_HOST', '0.0.0.0'),
            port=_parse_int('SERVER_PORT', os.getenv('SERVER_PORT', str(DEFAULT_PORT))),
            dedupe_registrations=_parse_bool(
                'SERVER_DEDUPE_REGISTRATIONS',
                os.getenv('SERVER_DEDUPE_REGISTRATIONS', 'true'),
            ),
        )
        config.validate()
        self.server = config
        return config

    def load_client_config(self) -> ClientConfig:
        """
        Load client configuration from environment variables.

        Environment variables:
            CLIENT_DISPLAY_NAME: Display name to register with (required)
            CLIENT_SERVER_HOST: Server address (default: 127.0.0.1)
            CLIENT_SERVER_PORT: Server port (default: 2000)
            CLIENT_NETWORK_ID: Previously assigned network ID to reuse
            CLIENT_TIMEOUT: Seconds to wait for each reply (default: 1.0)
            CLIENT_MAX_ATTEMPTS: Give up after this many sends (default: never)

        Returns:
            Validated ClientConfig instance

        Raises:
            ConfigurationError: If required configuration is missing or invalid
        """
        display_name = os.getenv('CLIENT_DISPLAY_NAME')
        if not display_name:
            raise ConfigurationError(
                "CLIENT_DISPLAY_NAME environment variable is required. "
                "Example: CLIENT_DISPLAY_NAME=\"JohnnyCash\""
            )

        network_id = os.getenv('CLIENT_NETWORK_ID')
        max_attempts = os.getenv('CLIENT_MAX_ATTEMPTS')
        timeout = os.getenv('CLIENT_TIMEOUT', str(DEFAULT_TIMEOUT))
        try:
            timeout_seconds = float(timeout)
        except ValueError:
            raise ConfigurationError(f"CLIENT_TIMEOUT must be a number, got: {timeout}")

        config = ClientConfig(
            display_name=display_name,
            server_host=os.getenv('CLIENT_SERVER_HOST', '127.0.0.1'),
            server_port=_parse_int(
                'CLIENT_SERVER_PORT', os.getenv('CLIENT_SERVER_PORT', str(DEFAULT_PORT))
            ),
            network_id=_parse_int('CLIENT_NETWORK_ID', network_id) if network_id else None,
            timeout=timeout_seconds,
            max_attempts=_parse_int('CLIENT_MAX_ATTEMPTS', max_attempts) if max_attempts else None,
        )
        config.validate()
        self.client = config
        return config
