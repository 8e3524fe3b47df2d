import json
import uuid
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest

from src.services.itinerary_generator import ItineraryGeneratorService
from src.utils.errors import UpstreamGenerationError
from src.utils.firestore_manager import FirestoreManager


def make_itinerary(days: int = 3, country: str = "Japan") -> Dict[str, Any]:
    return {
        "name": f"{days} Days of {country}",
        "description": "Temples, food markets and mountain views.",
        "estimatedPrice": "$2400",
        "duration": days,
        "budget": "Premium",
        "travelStyle": "Luxury",
        "country": country,
        "interests": ["food", "temples"],
        "groupType": "Couple",
        "bestTimeToVisit": ["🌸 Spring", "☀️ Summer", "🍁 Autumn", "❄️ Winter"],
        "weatherInfo": ["☀️ 25-30°C", "🌦️ 18-24°C", "🌧️ 15-20°C", "❄️ 0-8°C"],
        "location": {
            "city": "Kyoto",
            "coordinates": [35.0116, 135.7681],
            "openStreetMap": "https://www.openstreetmap.org/#map=12/35.0116/135.7681",
        },
        "itinerary": [
            {
                "day": d,
                "location": "Kyoto",
                "activities": [
                    {"time": "Morning", "description": "⛩️ Fushimi Inari"},
                    {"time": "Afternoon", "description": "🍵 Tea ceremony"},
                    {"time": "Evening", "description": "🍣 Kaiseki dinner"},
                ],
            }
            for d in range(1, days + 1)
        ],
    }


def make_payload(**overrides) -> Dict[str, Any]:
    payload = {
        "country": "Japan",
        "numberOfDays": 3,
        "travelStyle": "Luxury",
        "interests": ["food", "temples"],
        "budget": "Premium",
        "groupType": "Couple",
        "userId": "user-123",
    }
    payload.update(overrides)
    return payload


class FakeGeminiService:
    """Records prompts; returns canned text or raises."""

    def __init__(self, text: Optional[str] = None, error: Optional[Exception] = None):
        self.text = text if text is not None else json.dumps(make_itinerary())
        self.error = error
        self.prompts: List[str] = []

    async def generate_text(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.text


class FakePhotoService:
    """Records queries; returns canned URLs (an empty list mimics degradation)."""

    def __init__(self, urls: Optional[List[str]] = None):
        self.urls = urls if urls is not None else [
            "https://images.unsplash.com/photo-1",
            "https://images.unsplash.com/photo-2",
            "https://images.unsplash.com/photo-3",
        ]
        self.queries: List[str] = []

    async def search(self, query: str) -> List[str]:
        self.queries.append(query)
        return list(self.urls)


# --- In-memory stand-in for the google-cloud-firestore client surface we use ---

class FakeSnapshot:
    def __init__(self, doc_id: str, data: Optional[Dict[str, Any]]):
        self.id = doc_id
        self._data = data

    @property
    def exists(self) -> bool:
        return self._data is not None

    def to_dict(self):
        return dict(self._data) if self._data is not None else None


class FakeDocumentRef:
    def __init__(self, collection: "FakeCollection", doc_id: str):
        self._collection = collection
        self.id = doc_id

    def create(self, data: Dict[str, Any]):
        if self._collection.client.fail_writes:
            raise RuntimeError("503 Firestore unavailable")
        if self.id in self._collection.docs:
            raise RuntimeError(f"409 Document already exists: {self.id}")
        self._collection.docs[self.id] = dict(data)

    def get(self):
        return FakeSnapshot(self.id, self._collection.docs.get(self.id))

    def delete(self):
        self._collection.docs.pop(self.id, None)


class FakeQuery:
    def __init__(self, collection: "FakeCollection", filters=None, order=None, skip=0, take=None):
        self._collection = collection
        self._filters = filters or []
        self._order = order
        self._skip = skip
        self._take = take

    def _copy(self, **changes):
        state = dict(filters=self._filters, order=self._order, skip=self._skip, take=self._take)
        state.update(changes)
        return FakeQuery(self._collection, **state)

    def where(self, filter=None):
        return self._copy(filters=self._filters + [(filter.field_path, filter.op_string, filter.value)])

    def order_by(self, field, direction="ASCENDING"):
        return self._copy(order=(field, direction))

    def offset(self, n):
        return self._copy(skip=n)

    def limit(self, n):
        return self._copy(take=n)

    def _matching(self):
        items = [
            (doc_id, data) for doc_id, data in self._collection.docs.items()
            if all(op == "==" and data.get(field) == value for field, op, value in self._filters)
        ]
        if self._order:
            field, direction = self._order
            items.sort(key=lambda item: item[1].get(field) or "", reverse=direction == "DESCENDING")
        return items

    def stream(self):
        items = self._matching()[self._skip:]
        if self._take is not None:
            items = items[: self._take]
        for doc_id, data in items:
            yield FakeSnapshot(doc_id, data)

    def count(self):
        total = len(self._matching())
        return SimpleNamespace(get=lambda: [[SimpleNamespace(value=total)]])


class FakeCollection(FakeQuery):
    def __init__(self, client: "FakeFirestoreClient"):
        self.client = client
        self.docs: Dict[str, Dict[str, Any]] = {}
        super().__init__(self)

    def document(self, doc_id: Optional[str] = None):
        return FakeDocumentRef(self, doc_id or uuid.uuid4().hex[:20])


class FakeFirestoreClient:
    def __init__(self, fail_writes: bool = False):
        self.fail_writes = fail_writes
        self.collections: Dict[str, FakeCollection] = {}

    def collection(self, name: str) -> FakeCollection:
        if name not in self.collections:
            self.collections[name] = FakeCollection(self)
        return self.collections[name]


@pytest.fixture
def firestore_client():
    return FakeFirestoreClient()


@pytest.fixture
def store(firestore_client):
    return FirestoreManager(client=firestore_client)


@pytest.fixture
def gemini():
    return FakeGeminiService()


@pytest.fixture
def photos():
    return FakePhotoService()


@pytest.fixture
def generator(gemini, photos, store):
    return ItineraryGeneratorService(gemini, photos, store)


@pytest.fixture
def failing_gemini():
    return FakeGeminiService(error=UpstreamGenerationError("Gemini generation failed: 503 Service Unavailable"))
