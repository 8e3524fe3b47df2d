import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter
from google.oauth2 import service_account

from src.models.database_models import TripRecord, UserRecord
from src.models.response_models import Itinerary
from src.utils.config import get_settings
from src.utils.errors import PersistenceError


class FirestoreManager:
    """Lightweight wrapper around Firestore for trip and user documents."""

    def __init__(self, client: Any = None):
        self.settings = get_settings()
        self.logger = logging.getLogger(__name__)
        self.collection_name = self.settings.FIRESTORE_TRIPS_COLLECTION or "trips"
        self.users_collection_name = self.settings.FIRESTORE_USERS_COLLECTION or "users"

        if client is not None:
            self.client = client
            return

        project_id = self.settings.FIRESTORE_PROJECT_ID or self.settings.GOOGLE_CLOUD_PROJECT
        try:
            # Prefer explicit Firestore credentials if provided (split-project support)
            credentials = None
            if self.settings.FIRESTORE_CREDENTIALS:
                credentials = service_account.Credentials.from_service_account_file(
                    self.settings.FIRESTORE_CREDENTIALS
                )
            database = self.settings.FIRESTORE_DATABASE_ID or None  # default DB if None
            # Use explicit creds or fall back to ADC
            self.client = firestore.Client(project=project_id, credentials=credentials, database=database)
            self.logger.info("Initialized Firestore client", extra={"project": project_id, "collection": self.collection_name, "database": database or "(default)"})
        except Exception:
            self.logger.exception("Failed to initialize Firestore client")
            raise

    def _collection(self):
        return self.client.collection(self.collection_name)

    def _users(self):
        return self.client.collection(self.users_collection_name)

    async def save_trip(self, itinerary: Itinerary, image_urls: Sequence[str], user_id: str) -> str:
        """Create one trip document under a store-generated id and return the id.

        ``create`` refuses to overwrite, so an id collision surfaces as an
        error instead of replacing another trip.
        """
        record = TripRecord(
            tripDetails=itinerary.to_json(),
            imageUrls=list(image_urls),
            userId=user_id,
        )
        loop = asyncio.get_running_loop()
        try:
            trip_id = await loop.run_in_executor(None, self._create_trip_document, record)
        except Exception as e:
            self.logger.error(f"Firestore save failed: {e}", extra={"user_id": user_id})
            raise PersistenceError(f"Failed to save trip: {str(e)}") from e

        self.logger.info(f"Saved trip {trip_id} to Firestore", extra={"user_id": user_id, "images": len(record.imageUrls)})
        return trip_id

    async def get_trip(self, trip_id: str) -> Optional[Dict[str, Any]]:
        loop = asyncio.get_running_loop()
        try:
            doc = await loop.run_in_executor(None, self._collection().document(trip_id).get)
        except Exception as e:
            self.logger.error(f"Firestore get failed for {trip_id}: {e}")
            raise PersistenceError(f"Failed to load trip {trip_id}") from e
        if not doc.exists:
            return None
        return self._trip_from_snapshot(doc)

    async def list_trips(self, limit: int = 20, offset: int = 0, user_id: Optional[str] = None) -> Tuple[List[Dict[str, Any]], int]:
        """Page through trips, newest first, optionally for a single user."""
        loop = asyncio.get_running_loop()
        try:
            trips, total = await loop.run_in_executor(None, self._page_trips, limit, offset, user_id)
        except Exception as e:
            self.logger.error(f"Firestore trip listing failed: {e}", extra={"user_id": user_id})
            raise PersistenceError("Failed to list trips") from e
        return trips, total

    async def delete_trip(self, trip_id: str) -> bool:
        loop = asyncio.get_running_loop()
        try:
            deleted = await loop.run_in_executor(None, self._delete_trip_document, trip_id)
        except Exception as e:
            self.logger.error(f"Firestore delete failed for {trip_id}: {e}")
            raise PersistenceError(f"Failed to delete trip {trip_id}") from e
        if deleted:
            self.logger.info(f"Deleted trip {trip_id} from Firestore")
        return deleted

    async def list_users(self, limit: int = 20, offset: int = 0) -> Tuple[List[Dict[str, Any]], int]:
        """Page through registered users, most recently joined first."""
        loop = asyncio.get_running_loop()
        try:
            users, total = await loop.run_in_executor(None, self._page_users, limit, offset)
        except Exception as e:
            self.logger.error(f"Firestore user listing failed: {e}")
            raise PersistenceError("Failed to list users") from e
        return users, total

    # Blocking Firestore calls; run on the default executor
    def _create_trip_document(self, record: TripRecord) -> str:
        doc_ref = self._collection().document()
        doc_ref.create(record.to_document())
        return doc_ref.id

    def _delete_trip_document(self, trip_id: str) -> bool:
        doc_ref = self._collection().document(trip_id)
        if not doc_ref.get().exists:
            return False
        doc_ref.delete()
        return True

    def _page_trips(self, limit: int, offset: int, user_id: Optional[str]) -> Tuple[List[Dict[str, Any]], int]:
        query = self._collection()
        if user_id:
            query = query.where(filter=FieldFilter("userId", "==", user_id))
        total = self._count(query)
        docs = (
            query.order_by("createdAt", direction=firestore.Query.DESCENDING)
            .offset(offset)
            .limit(limit)
            .stream()
        )
        return [self._trip_from_snapshot(doc) for doc in docs], total

    def _page_users(self, limit: int, offset: int) -> Tuple[List[Dict[str, Any]], int]:
        query = self._users()
        total = self._count(query)
        docs = (
            query.order_by("joinedAt", direction=firestore.Query.DESCENDING)
            .offset(offset)
            .limit(limit)
            .stream()
        )
        users = []
        for doc in docs:
            user = UserRecord.model_validate(doc.to_dict() or {}).model_dump()
            user["id"] = doc.id
            users.append(user)
        return users, total

    def _count(self, query) -> int:
        results = query.count().get()
        return int(results[0][0].value) if results and results[0] else 0

    def _trip_from_snapshot(self, doc) -> Dict[str, Any]:
        data = doc.to_dict() or {}
        return {
            "id": doc.id,
            "tripDetails": TripRecord.parse_trip_details(data.get("tripDetails")),
            "createdAt": data.get("createdAt"),
            "imageUrls": list(data.get("imageUrls") or []),
            "userId": data.get("userId"),
        }
