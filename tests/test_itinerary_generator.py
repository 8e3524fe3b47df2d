import asyncio
import json

import pytest

from src.services.itinerary_generator import ItineraryGeneratorService
from src.utils.errors import FailureStage, PersistenceError, UpstreamGenerationError
from src.utils.firestore_manager import FirestoreManager
from src.utils.validators import REQUIRED_FIELDS
from tests.conftest import FakeFirestoreClient, FakeGeminiService, FakePhotoService, make_itinerary, make_payload


@pytest.mark.asyncio
async def test_successful_run_returns_persisted_id(generator, gemini, photos, firestore_client):
    result = await generator.create_trip(make_payload())

    docs = firestore_client.collection("trips").docs
    assert result.status_code == 200
    assert list(result.body) == ["id"]
    assert list(docs) == [result.body["id"]]
    assert result.failure_stage is None
    assert len(gemini.prompts) == 1
    assert photos.queries == ["Japan food temples Luxury"]

    stored = docs[result.body["id"]]
    assert stored["userId"] == "user-123"
    assert len(stored["imageUrls"]) == 3


@pytest.mark.asyncio
@pytest.mark.parametrize("field", REQUIRED_FIELDS)
async def test_missing_field_short_circuits_without_outbound_calls(generator, gemini, photos, firestore_client, field):
    payload = make_payload()
    del payload[field]

    result = await generator.create_trip(payload)

    assert result.status_code == 400
    assert result.body == {"error": "Missing required fields"}
    assert result.failure_stage == FailureStage.VALIDATION
    assert gemini.prompts == []
    assert photos.queries == []
    assert firestore_client.collection("trips").docs == {}


@pytest.mark.asyncio
async def test_out_of_range_days_is_rejected_before_generation(generator, gemini):
    result = await generator.create_trip(make_payload(numberOfDays=14))

    assert result.status_code == 400
    assert result.body == {"error": "Missing required fields"}
    assert result.failure_stage == FailureStage.VALIDATION
    assert gemini.prompts == []


@pytest.mark.asyncio
async def test_string_and_single_item_interests_behave_identically(store):
    as_string = (FakeGeminiService(), FakePhotoService())
    as_list = (FakeGeminiService(), FakePhotoService())

    await ItineraryGeneratorService(*as_string, store).create_trip(make_payload(interests="food"))
    await ItineraryGeneratorService(*as_list, store).create_trip(make_payload(interests=["food"]))

    assert as_string[0].prompts == as_list[0].prompts
    assert as_string[1].queries == as_list[1].queries == ["Japan food Luxury"]


@pytest.mark.asyncio
@pytest.mark.parametrize("concurrent", [True, False])
async def test_image_failure_still_persists_with_no_images(gemini, store, firestore_client, concurrent):
    generator = ItineraryGeneratorService(gemini, FakePhotoService(urls=[]), store, concurrent_image_search=concurrent)

    result = await generator.create_trip(make_payload())

    assert result.status_code == 200
    assert firestore_client.collection("trips").docs[result.trip_id]["imageUrls"] == []


@pytest.mark.asyncio
async def test_generation_failure_is_500_and_nothing_is_stored(failing_gemini, photos, store, firestore_client):
    generator = ItineraryGeneratorService(failing_gemini, photos, store)

    result = await generator.create_trip(make_payload())

    assert result.status_code == 500
    assert result.failure_stage == FailureStage.GENERATION
    assert result.body == {"error": "Gemini generation failed: 503 Service Unavailable"}
    assert firestore_client.collection("trips").docs == {}


@pytest.mark.asyncio
async def test_unparseable_model_output_is_500(photos, store, firestore_client):
    generator = ItineraryGeneratorService(FakeGeminiService(text="Sorry, I cannot help with that."), photos, store)

    result = await generator.create_trip(make_payload())

    assert result.status_code == 500
    assert result.failure_stage == FailureStage.PARSE
    assert set(result.body) == {"error"}
    assert firestore_client.collection("trips").docs == {}


@pytest.mark.asyncio
async def test_persistence_failure_is_500(gemini, photos):
    store = FirestoreManager(client=FakeFirestoreClient(fail_writes=True))
    generator = ItineraryGeneratorService(gemini, photos, store)

    result = await generator.create_trip(make_payload())

    assert result.status_code == 500
    assert result.failure_stage == FailureStage.PERSISTENCE
    assert result.trip_id is None


@pytest.mark.asyncio
async def test_unexpected_error_falls_back_to_generic_message(gemini, photos):
    class BrokenStore:
        async def save_trip(self, itinerary, image_urls, user_id):
            raise KeyError()

    result = await ItineraryGeneratorService(gemini, photos, BrokenStore()).create_trip(make_payload())

    assert result.status_code == 500
    assert result.body == {"error": "Failed to generate trip"}
    assert result.failure_stage is None


@pytest.mark.asyncio
async def test_ten_day_trip_is_persisted_verbatim(photos, store, firestore_client):
    document = make_itinerary(days=10)
    gemini = FakeGeminiService(text=f"```json\n{json.dumps(document)}\n```")
    generator = ItineraryGeneratorService(gemini, photos, store)

    result = await generator.create_trip(make_payload(numberOfDays=10))

    details = json.loads(firestore_client.collection("trips").docs[result.trip_id]["tripDetails"])
    assert details["duration"] == 10
    assert len(details["itinerary"]) == 10
    assert details == document


@pytest.mark.asyncio
async def test_verified_user_id_replaces_body_user(generator, firestore_client):
    payload = make_payload()
    del payload["userId"]

    result = await generator.create_trip(payload, verified_user_id="firebase-uid-7")

    assert result.status_code == 200
    assert firestore_client.collection("trips").docs[result.trip_id]["userId"] == "firebase-uid-7"


@pytest.mark.asyncio
async def test_persistence_error_message_reaches_caller(gemini, photos):
    class RejectingStore:
        async def save_trip(self, itinerary, image_urls, user_id):
            raise PersistenceError("Failed to save trip: Invalid document structure")

    result = await ItineraryGeneratorService(gemini, photos, RejectingStore()).create_trip(make_payload())

    assert result.body == {"error": "Failed to save trip: Invalid document structure"}


class RaisingPhotoService:
    def __init__(self):
        self.queries = []

    async def search(self, query):
        self.queries.append(query)
        raise RuntimeError("boom")


@pytest.mark.asyncio
@pytest.mark.parametrize("concurrent", [True, False])
async def test_photo_service_exception_does_not_fail_the_trip(gemini, store, firestore_client, concurrent):
    photos = RaisingPhotoService()
    generator = ItineraryGeneratorService(gemini, photos, store, concurrent_image_search=concurrent)

    result = await generator.create_trip(make_payload())

    assert result.status_code == 200
    assert result.failure_stage is None
    assert photos.queries == ["Japan food temples Luxury"]
    assert firestore_client.collection("trips").docs[result.trip_id]["imageUrls"] == []


class HangingPhotoService:
    """Blocks until cancelled and records the cancellation."""

    def __init__(self):
        self.started = asyncio.Event()
        self.cancelled = asyncio.Event()

    async def search(self, query):
        self.started.set()
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            self.cancelled.set()
            raise
        return []


class GeminiFailingAfterPhotosStart:
    def __init__(self, photos):
        self.photos = photos

    async def generate_text(self, prompt):
        await self.photos.started.wait()
        raise UpstreamGenerationError("Gemini generation failed: quota exceeded")


@pytest.mark.asyncio
async def test_generation_failure_cancels_pending_image_search(store, firestore_client):
    photos = HangingPhotoService()
    generator = ItineraryGeneratorService(GeminiFailingAfterPhotosStart(photos), photos, store)

    result = await generator.create_trip(make_payload())
    await asyncio.wait_for(photos.cancelled.wait(), timeout=1)

    assert result.status_code == 500
    assert result.failure_stage == FailureStage.GENERATION
    assert photos.cancelled.is_set()
    assert firestore_client.collection("trips").docs == {}


@pytest.mark.asyncio
async def test_parse_failure_cancels_pending_image_search(store, firestore_client):
    photos = HangingPhotoService()

    class UnparseableGemini:
        async def generate_text(self, prompt):
            await photos.started.wait()
            return "Sorry, I cannot help with that."

    generator = ItineraryGeneratorService(UnparseableGemini(), photos, store)

    result = await generator.create_trip(make_payload())
    await asyncio.wait_for(photos.cancelled.wait(), timeout=1)

    assert result.failure_stage == FailureStage.PARSE
    assert firestore_client.collection("trips").docs == {}
