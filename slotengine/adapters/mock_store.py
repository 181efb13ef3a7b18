"""
Mock marketplace store for trying the engine without a backend.
"""

import json
import logging
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from ..domain.exceptions import AvailabilityUnavailable
from ..domain.models import Booking, ProviderAvailability
from .payloads import bookings_on, parse_bookings, parse_provider_availability

logger = logging.getLogger(__name__)

DEFAULT_DATA_FILE = Path(__file__).parent / "mock_marketplace_data.json"


class MockMarketplaceStore:
    """
    Store that serves provider availability and bookings from local data.

    The data uses the same JSON shapes as the marketplace API:
    {"providers": [<availability document>, ...], "bookings": [<booking>, ...]}
    By default it is loaded from mock_marketplace_data.json next to this module.
    """

    def __init__(
        self,
        data: Optional[Mapping[str, Any]] = None,
        data_file: Optional[Path] = None,
        day_first: bool = True,
    ):
        """
        Initialize the mock store.

        Args:
            data: In-memory data; takes precedence over ``data_file``
            data_file: JSON file to load when no data is given
            day_first: How slash-delimited dates in the data are read
        """
        self.day_first = day_first
        self.data_file = data_file or DEFAULT_DATA_FILE
        self._raw = dict(data) if data is not None else self._load_data_file()
        self._providers = self._index_providers(self._raw.get("providers", []))
        self._bookings = parse_bookings(self._raw.get("bookings", []), day_first=day_first)

    def _load_data_file(self) -> Dict[str, Any]:
        """Load mock marketplace data from the JSON file."""
        if not self.data_file.exists():
            logger.warning("Mock data file %s not found; starting empty", self.data_file)
            return {}

        with open(self.data_file, "r", encoding="utf-8") as f:
            data = json.load(f)

        if not isinstance(data, dict):
            raise ValueError(f"Mock data file {self.data_file} must contain a JSON object")
        return data

    @staticmethod
    def _index_providers(documents: List[Mapping[str, Any]]) -> Dict[str, Mapping[str, Any]]:
        indexed: Dict[str, Mapping[str, Any]] = {}
        for document in documents:
            provider_id = str(document.get("providerId", ""))
            if provider_id:
                indexed[provider_id] = document
        return indexed

    @property
    def provider_ids(self) -> List[str]:
        return sorted(self._providers)

    def fetch_weekly_schedule(self, provider_id: str) -> ProviderAvailability:
        """
        Return the availability of a provider from the mock data.

        Raises:
            AvailabilityUnavailable: If the provider has no usable availability document
        """
        document = self._providers.get(provider_id)
        if document is None:
            raise AvailabilityUnavailable(f"No availability configured for provider {provider_id}")

        try:
            return parse_provider_availability(document, provider_id, day_first=self.day_first)
        except (TypeError, ValueError) as exc:
            raise AvailabilityUnavailable(
                f"Unusable availability document for provider {provider_id}: {exc}"
            ) from exc

    def fetch_bookings_for_provider_date(self, provider_id: str, target: date) -> List[Booking]:
        return bookings_on(self._bookings, provider_id, target)

    def fetch_bookings_for_provider(self, provider_id: str) -> List[Booking]:
        return [booking for booking in self._bookings if booking.provider_id == provider_id]
