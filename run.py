#!/usr/bin/env python3
"""Serve the AI Trip Generator API with uvicorn."""

import logging

import uvicorn

from src.utils.config import get_settings, validate_settings


def main() -> int:
    settings = get_settings()
    logging.basicConfig(level=settings.LOG_LEVEL.upper(), format=settings.LOG_FORMAT)
    logger = logging.getLogger("trip_generator")

    if not validate_settings():
        logger.error("Set GEMINI_API_KEY, or GOOGLE_CLOUD_PROJECT to use Gemini through Vertex AI")
        return 1

    logger.info(
        f"Serving trip generator v{settings.API_VERSION} on {settings.API_HOST}:{settings.API_PORT} "
        f"(model={settings.GEMINI_MODEL}, reload={settings.DEBUG_MODE})"
    )
    try:
        uvicorn.run(
            "src.api.main:app",
            host=settings.API_HOST,
            port=settings.API_PORT,
            reload=settings.DEBUG_MODE,
            log_level=settings.LOG_LEVEL.lower(),
        )
    except KeyboardInterrupt:
        logger.info("Stopped")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
