"""
PayLink Test Configuration

Shared pytest fixtures and configuration for all test types.
"""

import os
from typing import Any, Dict, Generator

import pytest

from paylink.api import APIClient, ConsumerSessionAPI, InMemoryCookieStore
from paylink.core.config import reset_settings
from paylink.polling import PollRegistry

BASE_URL = "https://api.test.local"


# Configure pytest collection
def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for test categorization."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "timing: Tests that measure wall-clock delays")


@pytest.fixture(autouse=True)
def clean_settings() -> Generator[None, None, None]:
    """Reset settings singleton and PAYLINK_ environment around each test."""
    reset_settings()
    for key in list(os.environ.keys()):
        if key.startswith("PAYLINK_"):
            del os.environ[key]
    yield
    reset_settings()
    for key in list(os.environ.keys()):
        if key.startswith("PAYLINK_"):
            del os.environ[key]


@pytest.fixture
def session_payload() -> Dict[str, Any]:
    """Consumer session as returned by lookup and sign up."""
    return {
        "client_secret": "cs_secret_1",
        "email_address": "jane@example.com",
        "redacted_phone_number": "+1********23",
        "verification_sessions": [{"type": "sms", "state": "verified"}],
        "support_payment_details_types": ["card", "bank_account"],
    }


@pytest.fixture
def refreshed_session_payload(session_payload) -> Dict[str, Any]:
    payload = dict(session_payload)
    payload["client_secret"] = "cs_secret_2"
    return payload


@pytest.fixture
def card_details_payload() -> Dict[str, Any]:
    return {
        "id": "csmrpd_card",
        "type": "CARD",
        "is_default": True,
        "card": {"last4": "4242", "brand": "visa"},
    }


@pytest.fixture
def cookie_store() -> InMemoryCookieStore:
    return InMemoryCookieStore()


@pytest.fixture
async def api_client() -> APIClient:
    client = APIClient(publishable_key="pk_test_merchant", base_url=BASE_URL)
    yield client
    await client.aclose()


@pytest.fixture
def consumer_api(api_client, cookie_store) -> ConsumerSessionAPI:
    return ConsumerSessionAPI(api_client, cookie_store=cookie_store)


@pytest.fixture
def registry() -> PollRegistry:
    return PollRegistry()
