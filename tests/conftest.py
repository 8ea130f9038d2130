"""
Pytest Configuration and Shared Fixtures

In-memory SQLite stands in for the relational store and an
``httpx.MockTransport`` plays the DEP server.
"""

import json

import httpx
import pytest

from mdm_management import create_app, shutdown
from mdm_management.config import Config
from mdm_management.db import Database
from mdm_management.device_store import DeviceStore
from mdm_management.enrollment import DEPCredentials, EnrollmentClient
from mdm_management.profile_store import ProfileStore
from mdm_management.service import ManagementService

DEP_URL = "https://dep.test"

CREDENTIALS = {
    "consumer_key": "CK_test_consumer_key",
    "consumer_secret": "CS_test_consumer_secret",
    "access_token": "AT_test_access_token",
    "access_secret": "AS_test_access_secret",
}


def dep_device(serial, **extra):
    record = {
        "serial_number": serial,
        "model": "iPad Air",
        "description": "IPAD AIR WI-FI 64GB",
        "color": "SPACE GRAY",
        "asset_tag": None,
        "profile_status": "empty",
        "os": "iOS",
        "device_family": "iPad",
        "device_assigned_date": "2016-05-24T19:34:27Z",
        "device_assigned_by": "admin@example.com",
    }
    record.update(extra)
    return record


class FakeDEP:
    """Request handler for httpx.MockTransport that mimics the DEP API."""

    def __init__(self, devices=None, page_size=2):
        self.devices = list(devices or [])
        self.page_size = page_size
        self.session_calls = 0
        self.page_calls = 0
        self.fail_page = None
        self.fail_status = 500
        self.raise_on_page = None
        self.reject_next_session = False
        self.session_headers = []

    def __call__(self, request):
        if request.url.path == "/session":
            self.session_calls += 1
            self.session_headers.append(request.headers.get("Authorization", ""))
            return httpx.Response(200, json={"auth_session_token": f"session-{self.session_calls}"})

        if request.url.path == "/server/devices":
            self.page_calls += 1
            if self.reject_next_session:
                self.reject_next_session = False
                return httpx.Response(401, text="UNAUTHORIZED")
            if request.headers.get("X-ADM-Auth-Session") != f"session-{self.session_calls}":
                return httpx.Response(403, text="FORBIDDEN")
            if self.raise_on_page == self.page_calls:
                raise httpx.ReadTimeout("read timed out", request=request)
            if self.fail_page == self.page_calls:
                return httpx.Response(self.fail_status, text="boom")

            body = json.loads(request.content)
            start = int(body.get("cursor") or 0)
            chunk = self.devices[start:start + self.page_size]
            end = start + len(chunk)
            return httpx.Response(200, json={
                "devices": chunk,
                "cursor": str(end),
                "more_to_follow": end < len(self.devices),
                "fetched_until": "2016-07-12T17:54:30Z",
            })

        return httpx.Response(404)


@pytest.fixture
def db():
    database = Database("sqlite://").open()
    yield database
    database.close()


@pytest.fixture
def profile_store(db):
    return ProfileStore(db)


@pytest.fixture
def device_store(db):
    return DeviceStore(db)


@pytest.fixture
def make_dep_device():
    return dep_device


@pytest.fixture
def fake_dep():
    return FakeDEP(devices=[dep_device("C02Q7402GFWM"), dep_device("C02Q7403GFWM"),
                            dep_device("DMQVGC0DHLF0")])


@pytest.fixture
def enrollment_client(fake_dep):
    client = EnrollmentClient(
        DEPCredentials(**CREDENTIALS),
        server_url=DEP_URL,
        timeout=5.0,
        page_limit=2,
        transport=httpx.MockTransport(fake_dep),
    )
    yield client
    client.close()


@pytest.fixture
def service(profile_store, device_store, enrollment_client):
    return ManagementService(profile_store, device_store, enrollment_client)


@pytest.fixture
def service_without_dep(profile_store, device_store):
    return ManagementService(profile_store, device_store)


def make_config(transport=None):
    class TestConfig(Config):
        TESTING = True
        DATABASE_URL = "sqlite://"
        LOG_LEVEL = "DEBUG"
        DEP_SERVER_URL = DEP_URL if transport else ""
        DEP_CONSUMER_KEY = CREDENTIALS["consumer_key"] if transport else ""
        DEP_CONSUMER_SECRET = CREDENTIALS["consumer_secret"] if transport else ""
        DEP_ACCESS_TOKEN = CREDENTIALS["access_token"] if transport else ""
        DEP_ACCESS_SECRET = CREDENTIALS["access_secret"] if transport else ""
        DEP_TIMEOUT = 5.0
        DEP_PAGE_LIMIT = 2
        DEP_TRANSPORT = transport

    return TestConfig


@pytest.fixture
def app(fake_dep):
    application = create_app(make_config(httpx.MockTransport(fake_dep)))
    yield application
    shutdown(application)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def client_without_dep():
    application = create_app(make_config())
    yield application.test_client()
    shutdown(application)


@pytest.fixture
def app_config():
    return make_config()
