import json
import logging
import re
from typing import Any

from src.models.response_models import Itinerary
from src.utils.errors import MalformedItineraryError

# ```json or ```; the language tag is optional
_OPENING_FENCE = re.compile(r"\A```[A-Za-z0-9_+-]*[ \t]*")
_CLOSING_FENCE = re.compile(r"\s*```\s*\Z")


class ItineraryParser:
    """Turns raw model text into an Itinerary.

    Only syntactic JSON validity is enforced; a document missing expected
    fields is still accepted.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    @staticmethod
    def strip_code_fences(text: str) -> str:
        """Drop a leading and a trailing fence marker, leaving the JSON body.

        Backticks inside the document are kept: only a fence at the very start
        and the last fence in the text are removed.
        """
        cleaned = text.strip()
        if not cleaned.startswith(("```", "{", "[")):
            # prose before the block
            start = cleaned.find("```")
            if start == -1:
                return cleaned
            cleaned = cleaned[start:]

        body = _OPENING_FENCE.sub("", cleaned, count=1)
        opened = len(body) != len(cleaned)
        stripped = _CLOSING_FENCE.sub("", body, count=1)
        if opened and stripped == body:
            # closing fence followed by prose, or missing (truncated reply)
            end = body.rfind("```")
            if end != -1:
                stripped = body[:end]
        return stripped.strip()

    def parse(self, raw_text: str) -> Itinerary:
        if not raw_text or not raw_text.strip():
            raise MalformedItineraryError("Model returned an empty itinerary")

        cleaned = self.strip_code_fences(raw_text)
        try:
            document: Any = json.loads(cleaned)
        except json.JSONDecodeError as e:
            preview = cleaned[:200] + "…" if len(cleaned) > 200 else cleaned
            self.logger.error("[parser] JSON parse failed", extra={"error": str(e), "preview": preview})
            raise MalformedItineraryError(f"Failed to parse itinerary JSON: {e.msg}") from e

        if not isinstance(document, dict):
            self.logger.error("[parser] JSON is not an object", extra={"type": type(document).__name__})
            raise MalformedItineraryError("Itinerary JSON must be an object")

        itinerary = Itinerary.from_document(document)
        if itinerary.schema_errors:
            self.logger.warning(
                "[parser] Itinerary accepted with unexpected field types",
                extra={"fields": itinerary.schema_errors[:20]},
            )

        keys: list = list(document.keys())
        self.logger.info(
            "[parser] parsed JSON successfully",
            extra={"top_level_keys": keys[:20], "key_count": len(keys), "days": itinerary.day_count},
        )
        return itinerary

