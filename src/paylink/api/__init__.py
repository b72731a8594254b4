"""API bindings for PayLink."""

from .client import APIClient, encode_params
from .consumer_session import ConsumerSessionAPI
from .cookie_store import InMemoryCookieStore
from .financial_connections import FinancialConnectionsAPI

__all__ = [
    "APIClient",
    "ConsumerSessionAPI",
    "FinancialConnectionsAPI",
    "InMemoryCookieStore",
    "encode_params",
]
