"""
Shared pytest fixtures for the matching test suite
"""

import os

import pytest

from sociodent import config
from sociodent.api import matching_routes
from sociodent.config import MatchingSettings
from sociodent.services.matching import DoctorMatcher
from sociodent.services.notifications import InMemoryNotificationBackend, NotificationService
from sociodent.storage import InMemoryAppointmentStore

from tests.fixtures import fixed_clock


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Drop cached settings and module-level stores between tests"""
    for key in list(os.environ):
        if key.startswith('SOCIODENT_'):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setattr(config, '_settings', None)
    monkeypatch.setattr(matching_routes, '_memory_store', None)
    monkeypatch.setattr(matching_routes, '_memory_notifications', None)
    yield


@pytest.fixture
def settings():
    return MatchingSettings(_env_file=None)


@pytest.fixture
def store():
    return InMemoryAppointmentStore()


@pytest.fixture
def notification_backend():
    return InMemoryNotificationBackend()


@pytest.fixture
def matcher(store, notification_backend, settings):
    return DoctorMatcher(
        store,
        notifications=NotificationService(notification_backend),
        settings=settings,
        clock=fixed_clock,
    )
