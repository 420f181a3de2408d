"""Server module: the team directory, request dispatch and UDP endpoint."""

from server.directory import Directory, Team, User
from server.dispatcher import RequestDispatcher
from server.server import Server, TeamConnectProtocol

__all__ = [
    'Directory',
    'Team',
    'User',
    'RequestDispatcher',
    'Server',
    'TeamConnectProtocol',
]
