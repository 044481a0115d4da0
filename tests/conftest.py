"""Pytest configuration and fixtures for client tests."""

import pytest

from tempoiq.client import Client
from tempoiq.models.device import Device, Sensor
from tempoiq.session.stubbed import StubbedSession

# Key prefix for test devices, unlikely to clash with real ones
DEVICE_PREFIX = "b90467087145fd06"


@pytest.fixture
def session() -> StubbedSession:
    """In-memory session with no routes stubbed."""
    return StubbedSession()


@pytest.fixture
def client(session: StubbedSession) -> Client:
    """Client wired to the stubbed session."""
    return Client("stubbed_key", "stubbed_secret", "stubbed_host", secure=False, session=session)


@pytest.fixture
def device() -> Device:
    """Device with two sensors, as returned by the API."""
    return Device(
        key=DEVICE_PREFIX + "device1",
        name="My Awesome Device",
        attributes={"building": "1234", DEVICE_PREFIX: DEVICE_PREFIX},
        sensors=[
            Sensor("sensor1", name="My Sensor", attributes={"unit": "F"}),
            Sensor("sensor2", name="My Sensor2", attributes={"unit": "C"}),
        ],
    )
