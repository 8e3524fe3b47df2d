from fastapi import FastAPI, HTTPException, Depends, Header, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
from datetime import datetime
from typing import Optional

from src.models.response_models import (
    CreateTripResponse,
    ErrorResponse,
    TripDetailResponse,
    TripListResponse,
    UserListResponse,
)
from src.services.gemini_service import GeminiService
from src.services.itinerary_generator import ItineraryGeneratorService
from src.services.photo_enrichment_service import PhotoEnrichmentService
from src.utils.config import get_settings, validate_settings
from src.utils.errors import PersistenceError
from src.utils.firestore_manager import FirestoreManager
from src.utils.firebase_auth import initialize_firebase_admin, verify_firebase_token, is_firebase_initialized

# Configure logging
logging.basicConfig(
    level=get_settings().LOG_LEVEL.upper(),
    format=get_settings().LOG_FORMAT
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="AI Trip Generator API",
    description="Generate travel itineraries with Gemini, illustrate them with Unsplash photos and store them in Firestore",
    version=get_settings().API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Global services (initialized on startup)
gemini_service: Optional[GeminiService] = None
photo_service: Optional[PhotoEnrichmentService] = None
fs_manager: Optional[FirestoreManager] = None
itinerary_generator: Optional[ItineraryGeneratorService] = None

@app.on_event("startup")
async def startup_event():
    """Initialize services on startup"""
    global gemini_service, photo_service, fs_manager, itinerary_generator

    settings = get_settings()
    if not validate_settings():
        logger.error("Invalid settings configuration")
        raise RuntimeError("Invalid settings configuration")

    logger.info("Initializing services...")
    gemini_service = GeminiService(
        api_key=settings.GEMINI_API_KEY,
        model_name=settings.GEMINI_MODEL,
        project_id=settings.GOOGLE_CLOUD_PROJECT,
        location=settings.GOOGLE_CLOUD_LOCATION,
        temperature=settings.GEMINI_TEMPERATURE,
        timeout_seconds=settings.GEMINI_TIMEOUT_SECONDS,
    )
    photo_service = PhotoEnrichmentService(
        api_key=settings.UNSPLASH_ACCESS_KEY,
        base_url=settings.UNSPLASH_API_URL,
        timeout_seconds=settings.IMAGE_SEARCH_TIMEOUT_SECONDS,
        max_photos=settings.MAX_TRIP_IMAGES,
    )

    try:
        fs_manager = FirestoreManager()
    except Exception as fe:
        logger.warning("Firestore initialization failed; trip endpoints unavailable", extra={"error": str(fe)})

    if fs_manager is not None:
        itinerary_generator = ItineraryGeneratorService(
            gemini_service,
            photo_service,
            fs_manager,
            max_days=settings.MAX_TRIP_DURATION_DAYS,
            concurrent_image_search=settings.CONCURRENT_IMAGE_SEARCH,
        )

    if settings.REQUIRE_VERIFIED_USER:
        # Without Firebase Admin no token can be verified, so refuse to start
        initialize_firebase_admin()

    logger.info(
        "Services initialized",
        extra={"firestore": fs_manager is not None, "verified_users": settings.REQUIRE_VERIFIED_USER}
    )

@app.on_event("shutdown")
async def shutdown_event():
    """Clean up resources on shutdown"""
    if photo_service is not None:
        await photo_service.close()

# Dependencies
def get_itinerary_generator() -> ItineraryGeneratorService:
    if itinerary_generator is None:
        raise HTTPException(status_code=503, detail="Trip generation not available (Firestore not configured)")
    return itinerary_generator

def get_trip_store() -> FirestoreManager:
    if fs_manager is None:
        raise HTTPException(status_code=503, detail="Firestore not available")
    return fs_manager

async def get_verified_user_id(authorization: Optional[str] = Header(None)) -> Optional[str]:
    """Firebase uid of the caller when REQUIRE_VERIFIED_USER is on, else None."""
    if not get_settings().REQUIRE_VERIFIED_USER:
        return None

    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(status_code=401, detail="Missing bearer token")
    try:
        claims = await verify_firebase_token(token.strip())
    except ValueError as e:
        raise HTTPException(status_code=401, detail=str(e))
    return claims["uid"]

@app.post(
    "/api/create-trip",
    response_model=CreateTripResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def create_trip(
    request: Request,
    generator: ItineraryGeneratorService = Depends(get_itinerary_generator),
    verified_user_id: Optional[str] = Depends(get_verified_user_id),
):
    """
    Generate an AI itinerary for the submitted form, attach destination
    photos and store it. Responds with the new trip id.
    """
    try:
        payload = await request.json()
    except ValueError:
        logger.warning("[create-trip] Request body is not valid JSON")
        payload = None

    if verified_user_id and isinstance(payload, dict):
        claimed = payload.get("userId")
        if claimed and claimed != verified_user_id:
            logger.warning("[create-trip] userId does not match verified token", extra={"user_id": verified_user_id})
            return JSONResponse(status_code=403, content={"error": "userId does not match the signed-in account"})

    result = await generator.create_trip(payload, verified_user_id=verified_user_id)
    return JSONResponse(status_code=result.status_code, content=result.body)

@app.get("/api/trips", response_model=TripListResponse)
async def list_trips(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user_id: Optional[str] = Query(None, alias="userId"),
    store: FirestoreManager = Depends(get_trip_store),
):
    """List stored trips, newest first"""
    try:
        trips, total = await store.list_trips(limit=limit, offset=offset, user_id=user_id)
    except PersistenceError as e:
        raise HTTPException(status_code=500, detail=e.message)
    return TripListResponse(trips=trips, total=total, limit=limit, offset=offset)

@app.get("/api/trips/{trip_id}", response_model=TripDetailResponse)
async def get_trip(trip_id: str, store: FirestoreManager = Depends(get_trip_store)):
    """Retrieve a stored trip with its parsed itinerary"""
    try:
        trip = await store.get_trip(trip_id)
    except PersistenceError as e:
        raise HTTPException(status_code=500, detail=e.message)
    if trip is None:
        raise HTTPException(status_code=404, detail="Trip not found")
    return TripDetailResponse(**trip)

@app.delete("/api/trips/{trip_id}")
async def delete_trip(trip_id: str, store: FirestoreManager = Depends(get_trip_store)):
    """Delete a trip (administrative action)"""
    try:
        deleted = await store.delete_trip(trip_id)
    except PersistenceError as e:
        raise HTTPException(status_code=500, detail=e.message)
    if not deleted:
        raise HTTPException(status_code=404, detail="Trip not found")
    return {"message": f"Trip {trip_id} deleted successfully"}

@app.get("/api/users", response_model=UserListResponse)
async def list_users(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    store: FirestoreManager = Depends(get_trip_store),
):
    """List registered users, most recently joined first"""
    try:
        users, total = await store.list_users(limit=limit, offset=offset)
    except PersistenceError as e:
        raise HTTPException(status_code=500, detail=e.message)
    return UserListResponse(users=users, total=total, limit=limit, offset=offset)

@app.get("/health")
async def health_check():
    """Health check endpoint"""
    services = {
        "gemini": gemini_service is not None,
        "photos": photo_service is not None,
        "firestore": fs_manager is not None,
        "itinerary_generator": itinerary_generator is not None,
        "firebase_auth": is_firebase_initialized(),
    }
    core_ready = services["gemini"] and services["firestore"] and services["itinerary_generator"]
    health = {
        "status": "healthy" if core_ready else "degraded",
        "timestamp": datetime.utcnow().isoformat(),
        "services": services,
        "version": get_settings().API_VERSION
    }
    if photo_service is not None:
        health["image_search"] = {
            "searches": photo_service.searches_made,
            "degraded": photo_service.searches_degraded,
        }
    return health

@app.get("/")
async def root():
    """Root endpoint with API information"""
    return {
        "message": "AI Trip Generator API",
        "version": get_settings().API_VERSION,
        "description": "Generate AI travel itineraries",
        "docs": "/docs",
        "health": "/health"
    }

# ============================================================================
# Error Handlers
# ============================================================================
@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc):
    """Handle HTTP exceptions"""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.detail,
            "timestamp": datetime.utcnow().isoformat(),
            "path": str(request.url)
        }
    )

@app.exception_handler(Exception)
async def general_exception_handler(request, exc):
    """Handle general exceptions"""
    logger.error(f"Unhandled exception: {str(exc)}")
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "timestamp": datetime.utcnow().isoformat(),
            "path": str(request.url)
        }
    )
