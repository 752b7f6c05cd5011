"""Test configuration and shared fixtures"""

import os
import sys
import traceback
from decimal import Decimal

import pytest
import requests
from fastapi.testclient import TestClient
from ledger.app import app
from ledger.config import Config, get_config
from ledger.db import DatabaseConnection
from ledger.dependencies.services import ServiceContainer
from ledger.services.price import PriceQuote, TokenPriceService, VolatilityReading
from ledger.uow import UnitOfWork

_original_request = TestClient.request


def logging_request(self, *args, **kwargs):
    try:
        response = _original_request(self, *args, **kwargs)
    except Exception:
        # Print request details on exception
        print("\n=== Exception in TestClient.request ===")
        print("Request args:", args)
        print("Request kwargs:", kwargs)
        traceback.print_exc(file=sys.stdout)
        raise

    # Optionally, if the response indicates an error, log details
    if response.status_code >= 400:
        req = response.request
        print("\n=== HTTP Error Response Captured ===")
        print(f"Method: {req.method} URL: {req.url}")
        print("Request Content:", req.content)
        print("Response Status:", response.status_code)
        print("Response Body:", response.text)
    return response


# Patch TestClient.request globally
TestClient.request = logging_request


@pytest.fixture(scope="class")
def test_config():
    # overwrite application name so it will use another database file
    return Config(app_name="ledger-test")


# each test class have it's own empty database
@pytest.fixture(scope="class")
def test_app(test_config: Config):
    app.dependency_overrides = {get_config: lambda: test_config}

    # trigger table creation
    DatabaseConnection(config=test_config)

    client = TestClient(app)
    yield client
    app.dependency_overrides = {}
    # clean up test database file after tests
    DatabaseConnection.dispose(test_config)
    if os.path.exists(test_config.database_path):
        os.remove(test_config.database_path)


@pytest.fixture
def make_container(test_app: TestClient, test_config: Config):
    """Service container on a fresh session, the way background tasks build one.

    Each call opens its own session, so containers from different threads do
    not share a connection.
    """
    sessions = []

    def f(config: Config | None = None) -> ServiceContainer:
        config = config or test_config
        session = DatabaseConnection(config).get_session()
        sessions.append(session)
        return ServiceContainer(UnitOfWork(session), config)

    yield f
    for session in sessions:
        session.close()


@pytest.fixture(autouse=True)
def no_network(monkeypatch):
    """Price APIs are never reached from tests unless a test mocks them."""

    def refuse(*args, **kwargs):
        raise requests.ConnectionError("network disabled in tests")

    monkeypatch.setattr("ledger.services.price.requests.get", refuse)
    TokenPriceService.clear_cache()
    yield
    TokenPriceService.clear_cache()


@pytest.fixture
def pin_price(monkeypatch):
    """Pin the oracle to a price and a volatility reading."""

    def f(price="0.10", change="0", source="dexscreener"):
        quote = PriceQuote(price=Decimal(price), source=source)
        reading = VolatilityReading(
            change_percent=Decimal(change),
            sample_count=2,
            recommendation="Price stable",
        )
        monkeypatch.setattr(
            TokenPriceService, "get_current_price", lambda self: quote
        )
        monkeypatch.setattr(
            TokenPriceService, "check_volatility", lambda self: reading
        )
        return quote

    f()
    return f
