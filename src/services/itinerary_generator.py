import asyncio
import logging
from typing import Any, Dict, List, Optional, Tuple
from datetime import datetime

from src.models.request_models import TripRequest
from src.models.response_models import Itinerary, TripCreationResult
from src.prompts.system_prompts import build_trip_prompt
from src.services.gemini_service import GeminiService
from src.services.photo_enrichment_service import PhotoEnrichmentService
from src.utils.errors import TripPipelineError, TripValidationError
from src.utils.firestore_manager import FirestoreManager
from src.utils.itinerary_parser import ItineraryParser
from src.utils.validators import TripRequestValidator

GENERIC_FAILURE_MESSAGE = "Failed to generate trip"

class ItineraryGeneratorService:
    """Create-trip pipeline: validate, generate, parse, enrich, persist.

    Every collaborator is injected, so tests can swap in fakes. Image search
    failures never fail a request; any other stage failure does.
    """

    def __init__(
        self,
        gemini_service: GeminiService,
        photo_service: PhotoEnrichmentService,
        store: FirestoreManager,
        parser: Optional[ItineraryParser] = None,
        max_days: int = 10,
        concurrent_image_search: bool = True,
    ):
        self.gemini_service = gemini_service
        self.photo_service = photo_service
        self.store = store
        self.parser = parser or ItineraryParser()
        self.max_days = max_days
        self.concurrent_image_search = concurrent_image_search
        self.logger = logging.getLogger(__name__)

    async def create_trip(self, payload: Any, verified_user_id: Optional[str] = None) -> TripCreationResult:
        """Run the pipeline for one create-trip body and map the outcome to a response."""
        start_time = datetime.utcnow()

        try:
            request = self.validate(payload, verified_user_id)
        except TripValidationError as e:
            self.logger.warning(
                "[create-trip] Request rejected",
                extra={"errors": e.errors, "stage": e.stage.value}
            )
            return TripCreationResult(status_code=400, body={"error": e.message}, failure_stage=e.stage)

        self.logger.info(
            "[create-trip] Request received",
            extra={
                "country": request.country,
                "days": request.number_of_days,
                "style": request.travel_style,
                "interests": request.interests,
                "group_type": request.group_type,
                "user_id": request.user_id,
            }
        )

        try:
            itinerary, image_urls = await self._generate_and_enrich(request)
            trip_id = await self.store.save_trip(itinerary, image_urls, request.user_id)
        except TripPipelineError as e:
            self.logger.error(
                f"[create-trip] {e.stage.value} failed: {e.message}",
                extra={"stage": e.stage.value, "user_id": request.user_id}
            )
            return TripCreationResult(
                status_code=500,
                body={"error": e.message or GENERIC_FAILURE_MESSAGE},
                failure_stage=e.stage,
            )
        except Exception as e:
            self.logger.exception("[create-trip] Unexpected pipeline error")
            return TripCreationResult(status_code=500, body={"error": str(e) or GENERIC_FAILURE_MESSAGE})

        elapsed = (datetime.utcnow() - start_time).total_seconds()
        self.logger.info(
            "[create-trip] Trip created",
            extra={"trip_id": trip_id, "images": len(image_urls), "elapsed_s": round(elapsed, 2)}
        )
        return TripCreationResult(status_code=200, body={"id": trip_id}, trip_id=trip_id, image_urls=image_urls)

    def validate(self, payload: Any, verified_user_id: Optional[str] = None) -> TripRequest:
        """Check the raw body before any outbound call is made."""
        if verified_user_id and isinstance(payload, dict):
            payload = {**payload, "userId": verified_user_id}
        result: Dict[str, Any] = TripRequestValidator.validate_create_request(payload, self.max_days)
        if not result['valid']:
            raise TripValidationError(result['message'], errors=result['errors'])
        return result['request']

    async def _generate_and_enrich(self, request: TripRequest) -> Tuple[Itinerary, List[str]]:
        prompt = build_trip_prompt(request)
        query = PhotoEnrichmentService.build_query(request)

        if not self.concurrent_image_search:
            itinerary = await self._generate_itinerary(request, prompt)
            image_urls = await self._search_images(query)
            return itinerary, image_urls

        # Image search does not depend on the itinerary; overlap it with generation
        image_task = asyncio.create_task(self._search_images(query))
        try:
            itinerary = await self._generate_itinerary(request, prompt)
            image_urls = await image_task
        finally:
            if not image_task.done():
                image_task.cancel()
        return itinerary, image_urls

    async def _search_images(self, query: str) -> List[str]:
        try:
            return await self.photo_service.search(query)
        except Exception as e:
            self.logger.warning(
                "[create-trip] Image search failed; continuing without images",
                extra={"query": query, "error": str(e)}
            )
            return []

    async def _generate_itinerary(self, request: TripRequest, prompt: str) -> Itinerary:
        self.logger.info("[create-trip] Invoking Gemini for itinerary", extra={"prompt_len": len(prompt)})
        raw_text = await self.gemini_service.generate_text(prompt)
        itinerary = self.parser.parse(raw_text)

        if itinerary.duration != request.number_of_days or itinerary.day_count != request.number_of_days:
            self.logger.warning(
                "[create-trip] Itinerary length differs from requested days",
                extra={
                    "requested_days": request.number_of_days,
                    "duration": itinerary.duration,
                    "itinerary_days": itinerary.day_count,
                }
            )
        return itinerary
