import pytest

from server.directory import Directory
from server.dispatcher import RequestDispatcher

TEAMS = ["Red", "Blue"]
STATUSES = ["Busy", "Free"]


@pytest.fixture
def directory():
    return Directory(TEAMS, STATUSES)


@pytest.fixture
def dispatcher(directory):
    return RequestDispatcher(directory)
