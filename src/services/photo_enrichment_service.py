"""
Photo Enrichment Service for the Trip Generator

Looks up a handful of destination photos on Unsplash for a new trip.
Image enrichment is non-critical: every failure mode degrades to an empty
list and is only logged.
"""

import logging
from typing import Any, List, Optional
import httpx

from src.models.request_models import TripRequest


class PhotoEnrichmentService:
    """Service for fetching trip cover photos from Unsplash search."""

    MAX_PHOTOS_PER_TRIP = 3
    SEARCH_PATH = "/search/photos"

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = "https://api.unsplash.com",
        timeout_seconds: float = 10.0,
        max_photos: int = MAX_PHOTOS_PER_TRIP,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.max_photos = max_photos
        self.logger = logging.getLogger(__name__)
        self.http_client = http_client or httpx.AsyncClient(
            timeout=timeout_seconds,
            limits=httpx.Limits(max_keepalive_connections=10, max_connections=20)
        )
        self.searches_made = 0
        self.searches_degraded = 0

    async def close(self):
        """Close HTTP client connections."""
        await self.http_client.aclose()

    @staticmethod
    def build_query(request: TripRequest) -> str:
        """Country, every interest, then travel style, joined by single spaces."""
        return " ".join([request.country, *request.interests, request.travel_style])

    async def search(self, query: str) -> List[str]:
        """
        Search Unsplash and return up to ``max_photos`` regular-size photo URLs.

        Never raises: a missing key, transport error, non-success status or an
        unexpected payload all yield an empty list.
        """
        if not self.api_key:
            self.logger.warning("[photos] UNSPLASH_ACCESS_KEY not configured; skipping image search")
            return self._degraded(query, "missing_api_key")

        self.searches_made += 1
        try:
            response = await self.http_client.get(
                f"{self.base_url}{self.SEARCH_PATH}",
                params={"query": query, "client_id": self.api_key},
            )
        except httpx.HTTPError as e:
            self.logger.error(f"[photos] Unsplash request failed: {str(e)}", extra={"query": query})
            return self._degraded(query, "transport_error")

        if not response.is_success:
            self.logger.error(
                f"[photos] Unsplash API error: {response.status_code}",
                extra={"query": query, "status_code": response.status_code},
            )
            return self._degraded(query, f"http_{response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            self.logger.error(f"[photos] Unsplash returned invalid JSON: {str(e)}", extra={"query": query})
            return self._degraded(query, "invalid_json")

        urls = self._extract_photo_urls(payload)
        self.logger.info("[photos] Image search complete", extra={"query": query, "photos": len(urls)})
        return urls

    def _extract_photo_urls(self, payload: Any) -> List[str]:
        """Pull ``results[].urls.regular`` out of a search payload, in order."""
        results = payload.get("results") if isinstance(payload, dict) else None
        if not isinstance(results, list):
            self.logger.warning("[photos] Unsplash payload has no results list")
            self.searches_degraded += 1
            return []

        urls: List[str] = []
        for result in results[: self.max_photos]:
            if not isinstance(result, dict):
                continue
            photo_urls = result.get("urls")
            regular = photo_urls.get("regular") if isinstance(photo_urls, dict) else None
            if isinstance(regular, str) and regular:
                urls.append(regular)
        return urls

    def _degraded(self, query: str, reason: str) -> List[str]:
        self.searches_degraded += 1
        self.logger.warning("[photos] Continuing without images", extra={"query": query, "reason": reason})
        return []
