"""
Adapters layer - External integrations (marketplace API, mock data, token storage).
"""

from .marketplace_client import MarketplaceClient
from .mock_store import MockMarketplaceStore
from .token_store import TokenStore

__all__ = ["MarketplaceClient", "MockMarketplaceStore", "TokenStore"]
