from pydantic_settings import BaseSettings
from typing import List, Optional

class Settings(BaseSettings):
    # Gemini (text generation)
    GEMINI_API_KEY: Optional[str] = None
    GEMINI_MODEL: str = "gemini-2.5-flash-lite"
    GEMINI_TEMPERATURE: float = 0.7
    GEMINI_TIMEOUT_SECONDS: float = 120.0

    # Google Cloud (Vertex AI mode when no GEMINI_API_KEY is set)
    GOOGLE_CLOUD_PROJECT: Optional[str] = None
    GOOGLE_CLOUD_LOCATION: str = "us-central1"

    # Unsplash (image enrichment)
    UNSPLASH_ACCESS_KEY: Optional[str] = None
    UNSPLASH_API_URL: str = "https://api.unsplash.com"
    IMAGE_SEARCH_TIMEOUT_SECONDS: float = 10.0
    MAX_TRIP_IMAGES: int = 3

    # Firestore Configuration
    FIRESTORE_PROJECT_ID: Optional[str] = None
    FIRESTORE_CREDENTIALS: Optional[str] = None  # path to Firestore service account json
    FIRESTORE_DATABASE_ID: Optional[str] = None  # defaults to '(default)'
    FIRESTORE_TRIPS_COLLECTION: str = "trips"
    FIRESTORE_USERS_COLLECTION: str = "users"

    # Firebase Auth
    FIREBASE_SERVICE_ACCOUNT_PATH: Optional[str] = None
    REQUIRE_VERIFIED_USER: bool = False

    # API Configuration
    API_VERSION: str = "1.0.0"
    DEBUG_MODE: bool = False
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    CORS_ORIGINS: List[str] = ["*"]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # Trip Generation
    MAX_TRIP_DURATION_DAYS: int = 10
    CONCURRENT_IMAGE_SEARCH: bool = True

    model_config = {"env_file": ".env", "case_sensitive": True}

# Global settings instance
settings = Settings()

def get_settings() -> Settings:
    """Get the global settings instance"""
    return settings

def validate_settings() -> bool:
    """Validate that all required settings are configured"""
    missing_settings = []

    # Either an API key (Gemini Developer API) or a project (Vertex AI) is needed
    if not settings.GEMINI_API_KEY and not settings.GOOGLE_CLOUD_PROJECT:
        missing_settings.append("GEMINI_API_KEY or GOOGLE_CLOUD_PROJECT")

    if missing_settings:
        print(f"Missing or invalid settings: {', '.join(missing_settings)}")
        print("Please configure these settings in your .env file or environment variables")
        return False

    if not settings.UNSPLASH_ACCESS_KEY:
        print("UNSPLASH_ACCESS_KEY not set; trips will be saved without images")

    # If FIRESTORE_PROJECT_ID not set, fallback to GOOGLE_CLOUD_PROJECT (but allow split-projects)
    if not settings.FIRESTORE_PROJECT_ID:
        settings.FIRESTORE_PROJECT_ID = settings.GOOGLE_CLOUD_PROJECT

    return True
