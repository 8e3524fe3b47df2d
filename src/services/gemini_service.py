import logging
from typing import Any, Optional

from google import genai
from google.genai import types

from src.utils.errors import UpstreamGenerationError

class GeminiService:
    """Thin async wrapper around a Gemini model for itinerary text generation.

    Uses the Gemini Developer API when an API key is given, otherwise Vertex AI
    with application default credentials. One call per prompt, no retries.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: str = "gemini-2.5-flash-lite",
        project_id: Optional[str] = None,
        location: str = "us-central1",
        temperature: float = 0.7,
        timeout_seconds: float = 120.0,
        client: Any = None,
    ):
        self.model_name = model_name
        self.temperature = temperature
        self.logger = logging.getLogger(__name__)

        if client is not None:
            self.client = client
            return

        http_options = types.HttpOptions(timeout=int(timeout_seconds * 1000))
        try:
            if api_key:
                self.client = genai.Client(api_key=api_key, http_options=http_options)
                mode = "gemini-api"
            else:
                self.client = genai.Client(
                    vertexai=True, project=project_id, location=location, http_options=http_options
                )
                mode = "vertex-ai"
            self.logger.info(
                f"Gemini client initialized for model {model_name}",
                extra={"mode": mode, "project": project_id, "location": location},
            )
        except Exception as e:
            self.logger.error(f"Failed to initialize Gemini client: {str(e)}")
            raise

    async def generate_text(self, prompt: str) -> str:
        """Send the prompt to the model and return its raw text reply.

        Raises UpstreamGenerationError when the service is unreachable,
        answers with an error status, times out, or returns no text.
        """
        self.logger.debug("[gemini] generate_text called", extra={"prompt_len": len(prompt)})
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model_name,
                contents=[prompt],
                config=types.GenerateContentConfig(
                    temperature=self.temperature,
                    candidate_count=1,
                ),
            )
        except Exception as e:
            self.logger.error(f"[gemini] generate_content failed: {e}", exc_info=True)
            raise UpstreamGenerationError(f"Gemini generation failed: {str(e)}") from e

        text = self._extract_response_text(response)
        if not text:
            self.logger.warning("[gemini] Empty response from model", extra={"model": self.model_name})
            raise UpstreamGenerationError("Gemini returned an empty response")

        usage = getattr(response, "usage_metadata", None)
        self.logger.info(
            "[gemini] model response received",
            extra={
                "model": self.model_name,
                "length": len(text),
                "total_tokens": getattr(usage, "total_token_count", None) if usage else None,
            },
        )
        return text

    def _extract_response_text(self, response: Any) -> Optional[str]:
        """Extract text from a Gemini response, handling multi-part candidates."""
        try:
            text_attr = response.text
        except (AttributeError, ValueError):
            text_attr = None
        if isinstance(text_attr, str) and text_attr.strip():
            return text_attr

        parts_text: list[str] = []
        for cand in getattr(response, "candidates", None) or []:
            content = getattr(cand, "content", None)
            for part in getattr(content, "parts", None) or []:
                t = getattr(part, "text", None)
                if t:
                    parts_text.append(t)

        combined = "\n".join(parts_text).strip()
        return combined or None
