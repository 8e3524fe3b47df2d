"""
Firebase Authentication Utilities.

Verifies Firebase ID tokens so trip creation can be bound to the signed-in
account instead of a caller-supplied userId (enabled by REQUIRE_VERIFIED_USER).
"""

import logging
import os
from typing import Dict, Any
import firebase_admin
from firebase_admin import credentials, auth
from src.utils.config import get_settings

logger = logging.getLogger(__name__)

# Global Firebase app instance
_firebase_app = None


def initialize_firebase_admin() -> None:
    """
    Initialize Firebase Admin SDK for authentication.

    Uses the service account JSON file from FIREBASE_SERVICE_ACCOUNT_PATH
    (falling back to FIRESTORE_CREDENTIALS, then ADC). If already initialized,
    does nothing.
    """
    global _firebase_app

    if _firebase_app is not None:
        logger.debug("[firebase-auth] Firebase Admin already initialized")
        return

    settings = get_settings()
    service_account_path = settings.FIREBASE_SERVICE_ACCOUNT_PATH or settings.FIRESTORE_CREDENTIALS
    project_id = settings.FIRESTORE_PROJECT_ID or settings.GOOGLE_CLOUD_PROJECT

    cred = None
    if service_account_path:
        service_account_path = os.path.abspath(os.path.expanduser(service_account_path))
        if os.path.exists(service_account_path):
            cred = credentials.Certificate(service_account_path)
            logger.info(f"[firebase-auth] Using explicit service account: {service_account_path}")
        else:
            logger.warning(f"[firebase-auth] Service account file not found: {service_account_path}; falling back to ADC")
    else:
        logger.info("[firebase-auth] No service account path provided; using ADC (Application Default Credentials)")

    try:
        if cred:
            _firebase_app = firebase_admin.initialize_app(cred, {'projectId': project_id})
        else:
            _firebase_app = firebase_admin.initialize_app(options={'projectId': project_id})
    except Exception as e:
        logger.error(f"[firebase-auth] Failed to initialize Firebase Admin SDK: {str(e)}")
        raise

    logger.info("[firebase-auth] Firebase Admin SDK initialized successfully")


async def verify_firebase_token(token: str) -> Dict[str, Any]:
    """
    Verify a Firebase ID token and return the decoded claims (``uid``,
    ``email``, ``auth_time``, ...).

    Raises:
        ValueError: If token is invalid, expired, revoked or malformed
    """
    if not token or not token.strip():
        raise ValueError("Token is empty or missing")

    try:
        decoded_token = auth.verify_id_token(token)
    except auth.ExpiredIdTokenError as e:
        logger.warning(f"[firebase-auth] Expired ID token: {str(e)}")
        raise ValueError("Firebase ID token has expired. Please sign in again.") from e
    except auth.RevokedIdTokenError as e:
        logger.warning(f"[firebase-auth] Revoked ID token: {str(e)}")
        raise ValueError("Firebase ID token has been revoked. Please sign in again.") from e
    except auth.InvalidIdTokenError as e:
        logger.warning(f"[firebase-auth] Invalid ID token: {str(e)}")
        raise ValueError(f"Invalid Firebase ID token: {str(e)}") from e
    except auth.CertificateFetchError as e:
        logger.error(f"[firebase-auth] Certificate fetch error: {str(e)}")
        raise ValueError("Unable to verify token: certificate error") from e

    user_id = decoded_token.get('uid', 'unknown')
    logger.info(f"[firebase-auth] Token verified successfully for user: {user_id[:12]}...")
    return decoded_token


def is_firebase_initialized() -> bool:
    """Check if Firebase Admin SDK is initialized."""
    return _firebase_app is not None
