import json
import logging
from typing import Optional, Type, TypeVar
from datetime import datetime, timezone
from pydantic import BaseModel, ValidationError
from google import genai
from google.genai import types

from ..settings import settings

logger = logging.getLogger("chefgpt.ai")

T = TypeVar("T", bound=BaseModel)


class AIClient:
    _instance = None

    def __init__(self):
        self.api_key = settings.gemini_api_key
        self.mode = settings.ai_mode  # "mock" or "gemini"
        self._client: Optional[genai.Client] = None
        self.last_error: Optional[str] = None
        self.last_error_at: Optional[datetime] = None

        if self.mode == "gemini" and self.api_key:
            self._client = genai.Client(api_key=self.api_key)
        elif self.mode == "gemini":
            logger.warning("AI_MODE=gemini but GEMINI_API_KEY is not configured; AI calls will fail")

    @classmethod
    def get_instance(cls):
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def is_available(self) -> bool:
        return self.mode == "gemini" and self._client is not None

    def _record_error(self, message: str) -> None:
        self.last_error = message
        self.last_error_at = datetime.now(timezone.utc)

    async def generate_json(
        self,
        prompt: str,
        response_model: Type[T],
        *,
        system_instruction: Optional[str] = None,
        images: Optional[list[tuple[bytes, str]]] = None,
        model: Optional[str] = None,
    ) -> Optional[T]:
        """
        Ask Gemini (async client) for a JSON document and validate it against `response_model`.
        `images` is a list of (bytes, mime_type) sent alongside the prompt.
        Returns None if AI is unavailable, the call fails or the JSON does not validate.
        """
        if not self.is_available():
            logger.warning("AI is not available (mode=%s), skipping generation", self.mode)
            return None

        model_id = model or settings.gemini_text_model
        contents: list = [prompt]
        for data, mime_type in images or []:
            contents.append(types.Part.from_bytes(data=data, mime_type=mime_type))

        config = types.GenerateContentConfig(
            response_mime_type="application/json",
            system_instruction=system_instruction,
        )

        try:
            logger.info("Gemini request model=%s prompt='%s...'", model_id, prompt[:60])
            response = await self._client.aio.models.generate_content(
                model=model_id,
                contents=contents,
                config=config,
            )
        except Exception as e:
            self._record_error(f"{e.__class__.__name__}: {e}")
            logger.error("Gemini generation failed: %s", e)
            return None

        text = response.text
        if not text:
            logger.warning("Gemini returned empty response")
            return None

        try:
            return response_model.model_validate_json(text)
        except ValidationError as e:
            self._record_error(f"ValidationError: {e.error_count()} errors")
            logger.error("Gemini JSON did not match %s: %s", response_model.__name__, e)
            logger.debug("Raw Gemini output: %s", json.dumps(text)[:500])
            return None

    def status(self) -> dict:
        return {
            "mode": self.mode,
            "available": self.is_available(),
            "model": settings.gemini_text_model,
            "last_error": self.last_error,
            "last_error_at": self.last_error_at.isoformat() if self.last_error_at else None,
        }


# Singleton instance access
ai_client = AIClient.get_instance()
