"""
Adapters package for the Countries gateway.

Contains the HTTP client for the upstream REST Countries provider. The
adapter encapsulates the base URL, request shapes, the full-text fallback
and the mapping of transport failures onto shared errors.
"""

from .countries_client import CountriesClient

__all__ = [
    "CountriesClient",
]
