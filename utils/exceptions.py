"""Custom exception classes for the TeamConnect system."""


class TeamConnectError(Exception):
    """Base exception class for all TeamConnect errors."""
    pass


class MalformedMessageError(TeamConnectError):
    """Exception raised when a datagram does not follow the wire format."""
    pass


class InvalidHeaderValueError(TeamConnectError):
    """Exception raised when a header field does not fit its byte width."""
    pass


class InvalidBodyError(TeamConnectError):
    """Exception raised when a message body is empty or too large."""
    pass


class InvalidIdentifierError(TeamConnectError):
    """Exception raised when a name is not 1-16 letters, digits and spaces."""
    pass


class InvalidNetworkIDError(TeamConnectError):
    """Exception raised when a network ID does not resolve to a user."""
    pass


class InvalidTeamIDError(TeamConnectError):
    """Exception raised when a team ID is out of range."""
    pass


class InvalidStatusError(TeamConnectError):
    """Exception raised when a status code is out of range."""
    pass


class CapacityExceededError(TeamConnectError):
    """Exception raised when the directory cannot hold another user."""
    pass


class TeamFullError(CapacityExceededError):
    """Exception raised when every roster slot of a team is taken."""
    pass


class UnknownMessageTypeError(TeamConnectError):
    """Exception raised for a message type byte the receiver does not handle."""
    pass


class UnexpectedMessageTypeError(TeamConnectError):
    """Exception raised when a message is read as a type it is not."""
    pass


class RequestTimeoutError(TeamConnectError):
    """Exception raised when a request runs out of retry attempts."""
    pass


class RequestRejectedError(TeamConnectError):
    """Exception raised when the server answers a request with an ERROR."""
    pass


class SessionClosedError(TeamConnectError):
    """Exception raised when using a client session that is not open."""
    pass


class ConfigurationError(TeamConnectError, ValueError):
    """Exception raised when configuration is invalid or missing."""
    pass
