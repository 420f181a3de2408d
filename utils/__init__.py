"""Utility modules for logging and exception handling."""

from utils.logging import setup_logging, get_logger
from utils.exceptions import (
    TeamConnectError,
    MalformedMessageError,
    InvalidHeaderValueError,
    InvalidBodyError,
    InvalidIdentifierError,
    InvalidNetworkIDError,
    InvalidTeamIDError,
    InvalidStatusError,
    CapacityExceededError,
    TeamFullError,
    UnknownMessageTypeError,
    UnexpectedMessageTypeError,
    RequestTimeoutError,
    RequestRejectedError,
    SessionClosedError,
    ConfigurationError,
)

__all__ = [
    'setup_logging',
    'get_logger',
    'TeamConnectError',
    'MalformedMessageError',
    'InvalidHeaderValueError',
    'InvalidBodyError',
    'InvalidIdentifierError',
    'InvalidNetworkIDError',
    'InvalidTeamIDError',
    'InvalidStatusError',
    'CapacityExceededError',
    'TeamFullError',
    'UnknownMessageTypeError',
    'UnexpectedMessageTypeError',
    'RequestTimeoutError',
    'RequestRejectedError',
    'SessionClosedError',
    'ConfigurationError',
]
