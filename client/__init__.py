"""Client module: request/response sessions against a TeamConnect server."""

from client.session import ClientSession

__all__ = [
    'ClientSession',
]
