import json
import logging
from datetime import datetime, timezone
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class TripRecord(BaseModel):
    """Trip document as stored in the trips collection.

    Written once per successful generation and never updated.
    """

    tripDetails: str
    createdAt: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    imageUrls: List[str] = Field(default_factory=list)
    userId: str

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump()

    @staticmethod
    def parse_trip_details(value: Any) -> Dict[str, Any]:
        """Decode the stored tripDetails string; tolerate legacy or bad data."""
        if isinstance(value, dict):
            return value
        if not isinstance(value, str) or not value:
            return {}
        try:
            decoded = json.loads(value)
        except json.JSONDecodeError as e:
            logger.warning("Stored tripDetails is not valid JSON", extra={"error": str(e)})
            return {}
        return decoded if isinstance(decoded, dict) else {}


class UserRecord(BaseModel):
    """User document from the users collection (written by the auth flow)."""

    accountId: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    imageUrl: Optional[str] = None
    joinedAt: Optional[str] = None
    status: Optional[str] = None
