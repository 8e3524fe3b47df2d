import json
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationError
from typing import List, Optional, Dict, Any, Union

from src.utils.errors import FailureStage

class ActivityResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    time: Optional[str] = None  # Morning, Afternoon, Evening
    description: Optional[str] = None

class DayItineraryResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    day: Optional[int] = None
    location: Optional[str] = None
    activities: List[ActivityResponse] = Field(default_factory=list)

class TripLocationResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    city: Optional[str] = None
    coordinates: Optional[List[float]] = None  # [latitude, longitude]
    openStreetMap: Optional[str] = None

class Itinerary(BaseModel):
    """Structured trip plan returned by the model.

    Every field is optional: the model is asked for this shape but nothing
    guarantees it. The JSON object exactly as the model produced it is kept
    in ``raw`` and is what gets persisted.
    """

    model_config = ConfigDict(extra="allow")

    name: Optional[str] = None
    description: Optional[str] = None
    estimatedPrice: Optional[Union[str, float]] = None
    duration: Optional[int] = None
    budget: Optional[str] = None
    travelStyle: Optional[str] = None
    country: Optional[str] = None
    interests: Optional[List[str]] = None
    groupType: Optional[str] = None
    bestTimeToVisit: Optional[List[str]] = None
    weatherInfo: Optional[List[str]] = None
    location: Optional[TripLocationResponse] = None
    itinerary: Optional[List[DayItineraryResponse]] = None

    _raw: Dict[str, Any] = PrivateAttr(default_factory=dict)
    _schema_errors: List[str] = PrivateAttr(default_factory=list)

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "Itinerary":
        """Build the typed view of a model document without rejecting it.

        Fields with unexpected types are left unvalidated and reported in
        ``schema_errors``.
        """
        try:
            itinerary = cls.model_validate(document)
        except ValidationError as e:
            itinerary = cls.model_construct(**document)
            itinerary._schema_errors = [
                ".".join(str(p) for p in err.get("loc", ())) or "<root>" for err in e.errors()
            ]
        itinerary._raw = document
        return itinerary

    @property
    def raw(self) -> Dict[str, Any]:
        return self._raw

    @property
    def schema_errors(self) -> List[str]:
        return list(self._schema_errors)

    @property
    def day_count(self) -> int:
        days = self._raw.get("itinerary")
        return len(days) if isinstance(days, list) else 0

    def to_json(self) -> str:
        """Serialize the document for the tripDetails attribute."""
        return json.dumps(self._raw, ensure_ascii=False)

class CreateTripResponse(BaseModel):
    id: str

class ErrorResponse(BaseModel):
    error: str

class TripDetailResponse(BaseModel):
    id: str
    tripDetails: Dict[str, Any] = Field(default_factory=dict)
    createdAt: Optional[str] = None
    imageUrls: List[str] = Field(default_factory=list)
    userId: Optional[str] = None

class TripListResponse(BaseModel):
    trips: List[TripDetailResponse] = Field(default_factory=list)
    total: int = 0
    limit: int
    offset: int

class UserResponse(BaseModel):
    id: str
    accountId: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    imageUrl: Optional[str] = None
    joinedAt: Optional[str] = None
    status: Optional[str] = None

class UserListResponse(BaseModel):
    users: List[UserResponse] = Field(default_factory=list)
    total: int = 0
    limit: int
    offset: int

class TripCreationResult(BaseModel):
    """Outcome of one create-trip pipeline run.

    ``failure_stage`` is internal; the HTTP body only carries ``error``.
    """

    status_code: int
    body: Dict[str, Any]
    trip_id: Optional[str] = None
    failure_stage: Optional[FailureStage] = None
    image_urls: List[str] = Field(default_factory=list)
