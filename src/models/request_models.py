from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, List, Union


def normalize_interests(value: Any) -> List[str]:
    """Accept interests as a single string or a sequence of strings."""
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    return [str(value)]


class TripRequest(BaseModel):
    """Validated trip creation form (camelCase on the wire)."""

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "country": "Japan",
                    "numberOfDays": 5,
                    "travelStyle": "Luxury",
                    "interests": ["food", "temples"],
                    "budget": "Premium",
                    "groupType": "Couple",
                    "userId": "6650f0c2e1b3a7d9f2a1"
                }
            ]
        },
    )

    country: str = Field(..., min_length=1)
    number_of_days: int = Field(..., ge=1, alias="numberOfDays")
    travel_style: str = Field(..., min_length=1, alias="travelStyle")
    interests: List[str] = Field(..., min_length=1)
    budget: str = Field(..., min_length=1)
    group_type: str = Field(..., min_length=1, alias="groupType")
    user_id: str = Field(..., min_length=1, alias="userId")

    @field_validator("interests", mode="before")
    @classmethod
    def _normalize_interests(cls, v: Union[str, List[str]]) -> List[str]:
        return normalize_interests(v)
