"""HTTP adapters for the admin backend."""

from __future__ import annotations

from .client import BackendClient, default_client_factory, raise_for_response
from .parser import HttpDomainParser
from .registry import HttpCompanyProfileLookup, HttpRegistry

__all__ = [
    "BackendClient",
    "HttpCompanyProfileLookup",
    "HttpDomainParser",
    "HttpRegistry",
    "default_client_factory",
    "raise_for_response",
]
