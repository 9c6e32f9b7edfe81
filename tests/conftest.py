import pytest

from fakes import FakeSession, RobloxStub, SleepRecorder
from roblox_inventory.data.roblox_client import RobloxClient


@pytest.fixture
def roblox():
    """Scriptable fake of the Roblox endpoints."""
    return RobloxStub()


@pytest.fixture
def session(roblox):
    return FakeSession(roblox)


@pytest.fixture
def client(session):
    return RobloxClient(session=session)


@pytest.fixture
def sleeper():
    return SleepRecorder()
