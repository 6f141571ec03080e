"""
AI-powered extraction of a daily plan from a planner photo.
Sends the image to Gemini (REST) or Anthropic Claude and returns the raw text
answer; turning that text into plan fields is services.extraction's job.
"""
import base64
import logging
import os
from typing import Optional

import anthropic
import requests

from daybook.errors import ExtractionError
from daybook.services.extraction import EXTRACTION_PROMPT

logger = logging.getLogger(__name__)

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

PROVIDERS = {
    "gemini": {
        "api_key_env": "GEMINI_API_KEY",
        "model_env": "GEMINI_MODEL",
        "default_model": "gemini-2.0-flash",
    },
    "anthropic": {
        "api_key_env": "ANTHROPIC_API_KEY",
        "model_env": "ANTHROPIC_MODEL",
        "default_model": "claude-3-7-sonnet-20250219",
    },
}


class PlannerImageExtractor:
    """Reads a handwritten planner page through a vision-capable model."""

    def __init__(self, provider: Optional[str] = None):
        provider = (provider or os.getenv("EXTRACTION_PROVIDER", "gemini")).lower()
        if provider not in PROVIDERS:
            raise ExtractionError(f"Unknown extraction provider: {provider}")
        info = PROVIDERS[provider]

        api_key = os.getenv(info["api_key_env"])
        if not api_key:
            raise ExtractionError(f"{info['api_key_env']} environment variable not set")

        self.provider = provider
        self.api_key = api_key
        self.model = os.getenv(info["model_env"], info["default_model"])
        self.timeout = float(os.getenv("EXTRACTION_TIMEOUT_SECONDS", "60"))
        self.client = None
        if provider == "anthropic":
            self.client = anthropic.Anthropic(api_key=api_key, timeout=self.timeout)

    def extract(self, image_bytes: bytes, mime_type: str) -> str:
        """
        Send the planner photo with the extraction prompt.

        Args:
            image_bytes: Raw image file contents
            mime_type: Image content type, e.g. "image/jpeg"

        Returns:
            The model's text answer, expected to embed a JSON object.

        Raises:
            ExtractionError when the service cannot be reached or rejects the call.
        """
        if not image_bytes:
            raise ExtractionError("Please select an image first.")
        encoded = base64.b64encode(image_bytes).decode("ascii")

        if self.provider == "anthropic":
            return self._extract_anthropic(encoded, mime_type)
        return self._extract_gemini(encoded, mime_type)

    def _extract_gemini(self, encoded: str, mime_type: str) -> str:
        body = {
            "contents": [
                {
                    "parts": [
                        {"text": EXTRACTION_PROMPT},
                        {"inline_data": {"mime_type": mime_type, "data": encoded}},
                    ]
                }
            ]
        }
        try:
            response = requests.post(
                GEMINI_URL.format(model=self.model),
                headers={"x-goog-api-key": self.api_key},
                json=body,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error("Gemini request failed: %s", e)
            raise ExtractionError(f"Failed to process image: {e}") from e

        if not response.ok:
            try:
                message = response.json().get("error", {}).get("message", "Unknown error")
            except (ValueError, AttributeError):
                message = "Unknown error"
            logger.error("Gemini API error %s: %s", response.status_code, message)
            raise ExtractionError(
                f"API error: {response.status_code} {response.reason} - {message}"
            )

        try:
            data = response.json()
            candidates = data.get("candidates") or [{}]
            parts = (candidates[0].get("content") or {}).get("parts") or []
            return "".join(part.get("text") or "" for part in parts)
        except (ValueError, AttributeError, TypeError, IndexError, KeyError) as e:
            logger.error("Unexpected Gemini response: %s", e)
            raise ExtractionError("Unexpected response from extraction service") from e

    def _extract_anthropic(self, encoded: str, mime_type: str) -> str:
        try:
            response = self.client.messages.create(
                model=self.model,
                max_tokens=2000,
                messages=[{
                    "role": "user",
                    "content": [
                        {
                            "type": "image",
                            "source": {
                                "type": "base64",
                                "media_type": mime_type,
                                "data": encoded,
                            },
                        },
                        {"type": "text", "text": EXTRACTION_PROMPT},
                    ],
                }],
            )
        except anthropic.APIError as e:
            logger.error("Anthropic request failed: %s", e)
            raise ExtractionError(f"Failed to process image: {e}") from e

        text = ""
        for block in response.content:
            if block.type == "text":
                text += block.text
        return text


def get_extractor() -> PlannerImageExtractor:
    """FastAPI dependency; tests override it with a stub."""
    return PlannerImageExtractor()
