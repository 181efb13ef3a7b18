"""
Marketplace REST API client for fetching provider schedules and bookings.
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional

import requests

from ..domain.exceptions import AvailabilityUnavailable
from ..domain.models import Booking, ProviderAvailability
from ..domain.timeutils import format_calendar_date
from .payloads import bookings_on, parse_bookings, parse_provider_availability

logger = logging.getLogger(__name__)

BOOKINGS_QUERIES = ("provider_date", "provider")


class MarketplaceClient:
    """
    Read-only client for the marketplace backend.

    Uses /providers/{id}/availability for schedules and /provider-bookings
    for existing bookings. Every call is a single request with a timeout and
    no retries; any failure surfaces as AvailabilityUnavailable.
    """

    def __init__(
        self,
        base_url: str,
        access_token: Optional[str] = None,
        timeout: float = 10.0,
        day_first: bool = True,
        bookings_query: str = "provider_date",
    ):
        """
        Initialize the marketplace client.

        Args:
            base_url: Root URL of the marketplace API
            access_token: Opaque bearer token issued by the auth service, if any
            timeout: Seconds to wait for each request
            day_first: How slash-delimited dates in payloads are read
            bookings_query: "provider_date" to let the server filter bookings
                by date, "provider" to fetch all and filter locally
        """
        if bookings_query not in BOOKINGS_QUERIES:
            raise ValueError(f"bookings_query must be one of {BOOKINGS_QUERIES}, got '{bookings_query}'")

        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.day_first = day_first
        self.bookings_query = bookings_query
        self.headers = {"Accept": "application/json"}
        if access_token:
            self.headers["Authorization"] = f"Bearer {access_token}"

    def fetch_weekly_schedule(self, provider_id: str) -> ProviderAvailability:
        """
        Get weekly schedule, date exceptions and settings of a provider.

        Raises:
            AvailabilityUnavailable: If the request fails or the payload is unusable
        """
        data = self._get_json(f"/providers/{provider_id}/availability")

        try:
            return parse_provider_availability(data, provider_id, day_first=self.day_first)
        except (TypeError, ValueError) as exc:
            raise AvailabilityUnavailable(
                f"Unusable availability payload for provider {provider_id}: {exc}"
            ) from exc

    def fetch_bookings_for_provider_date(self, provider_id: str, target: date) -> List[Booking]:
        """
        Get the provider's bookings on one date.

        The server is asked to filter by date; results are filtered again
        locally in case it ignores the parameter.
        """
        if self.bookings_query == "provider":
            return bookings_on(self.fetch_bookings_for_provider(provider_id), provider_id, target)

        data = self._get_json(
            "/provider-bookings",
            params={"providerId": provider_id, "date": format_calendar_date(target)},
        )
        return bookings_on(self._parse_bookings(data, provider_id), provider_id, target)

    def fetch_bookings_for_provider(self, provider_id: str) -> List[Booking]:
        """Get all bookings of a provider."""
        data = self._get_json("/provider-bookings", params={"providerId": provider_id})
        return self._parse_bookings(data, provider_id)

    def _parse_bookings(self, data: Any, provider_id: str) -> List[Booking]:
        try:
            return parse_bookings(data, provider_id, day_first=self.day_first)
        except ValueError as exc:
            raise AvailabilityUnavailable(
                f"Unusable bookings payload for provider {provider_id}: {exc}"
            ) from exc

    def _get_json(self, path: str, params: Optional[Dict[str, str]] = None) -> Any:
        url = f"{self.base_url}{path}"
        logger.debug("GET %s params=%s", url, params)

        try:
            response = requests.get(
                url,
                headers=self.headers,
                params=params,
                timeout=self.timeout
            )
            response.raise_for_status()
            data = response.json()

        except requests.exceptions.Timeout as e:
            raise AvailabilityUnavailable(f"Marketplace API timed out after {self.timeout}s: {url}") from e
        except requests.exceptions.RequestException as e:
            raise AvailabilityUnavailable(f"Failed to fetch {url}: {e}") from e
        except ValueError as e:
            raise AvailabilityUnavailable(f"Marketplace API returned non-JSON response for {url}") from e

        # Backend reports application errors as {"err": "..."} with status 200
        if isinstance(data, dict) and data.get("err"):
            raise AvailabilityUnavailable(f"Marketplace API error for {url}: {data['err']}")

        return data
