"""Vision provider abstraction for connect card extraction.

The provider only returns the raw JSON object the model produced. Callers
run it through extraction_service.normalize_extraction before use.
"""

import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Any

import httpx

from app.core.config import settings
from app.core.errors import TransientError

logger = logging.getLogger(__name__)


EXTRACTION_PROMPT = """You are analyzing a church connect card to extract VISITOR INFORMATION ONLY.

IMPORTANT: Only extract information written or checked BY THE VISITOR. Ignore all pre-printed form content, church branding, logos, social media icons, website URLs, and form titles.

Extract these visitor-specific fields:
- Full name (handwritten or typed by visitor)
- Email address (visitor's email)
- Phone number (visitor's phone)
- Prayer request or prayer needs (visitor's written request)
- Visit status checkbox text (e.g. "First time", "Returning guest", "Member")
- Whether this is a first-time visitor (checkbox marked by visitor)
- Interests or ministries they checked or wrote
- Standalone campaign keywords the visitor wrote (e.g. "next steps")
- Address (if visitor filled it in)
- Age or age group (if visitor indicated)
- Family information (spouse, children - only if visitor wrote this)

Return ONLY a JSON object with this structure:
{
  "name": "extracted name or null",
  "email": "extracted email or null",
  "phone": "extracted phone or null",
  "prayer_request": "extracted prayer request or null",
  "visit_status": "checked visit status text or null",
  "first_time_visitor": true/false/null,
  "interests": ["array", "of", "interests"] or null,
  "keywords": ["array", "of", "keywords"] or null,
  "address": "extracted address or null",
  "age_group": "extracted age group or null",
  "family_info": "extracted family info or null",
  "additional_notes": "any other visitor-specific information or null"
}

If a field is not present or cannot be read, set it to null.
Be thorough with handwritten content, even if messy, but strict about ignoring pre-printed form content."""


def _strip_code_fences(text: str) -> str:
    content = text.strip()
    if content.startswith("```"):
        lines = content.splitlines()
        if lines:
            lines = lines[1:]
        if lines and lines[-1].strip() == "```":
            lines = lines[:-1]
        content = "\n".join(lines).strip()
    return content


def parse_json_object(text: str) -> dict | None:
    """Parse the first JSON object in a model reply (fenced or embedded in prose)."""
    content = _strip_code_fences(text)
    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        match = re.search(r"\{[\s\S]*\}", content)
        if not match:
            logger.warning(f"Failed to parse JSON object: {exc}")
            return None
        try:
            data = json.loads(match.group(0))
        except json.JSONDecodeError as inner_exc:
            logger.warning(f"Failed to parse JSON object: {inner_exc}")
            return None
    return data if isinstance(data, dict) else None


class VisionProvider(ABC):
    """Abstract base class for image-to-JSON extraction providers."""

    @abstractmethod
    async def extract(self, image_base64: str, media_type: str) -> dict[str, Any]:
        """
        Extract visitor fields from a card image.

        Raises:
            TransientError: Upstream failure or unparseable reply (safe to retry)
        """
        pass


class AnthropicVisionProvider(VisionProvider):
    """Anthropic Messages API provider."""

    def __init__(
        self,
        api_key: str,
        default_model: str = "claude-sonnet-4-5-20250929",
        timeout: float = 60.0,
        max_tokens: int = 1024,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self.default_model = default_model
        self.timeout = timeout
        self.max_tokens = max_tokens
        self.base_url = "https://api.anthropic.com/v1"
        self._transport = transport

    async def extract(self, image_base64: str, media_type: str) -> dict[str, Any]:
        request_body = {
            "model": self.default_model,
            "max_tokens": self.max_tokens,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {
                            "type": "image",
                            "source": {
                                "type": "base64",
                                "media_type": media_type,
                                "data": image_base64,
                            },
                        },
                        {"type": "text", "text": EXTRACTION_PROMPT},
                    ],
                }
            ],
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    f"{self.base_url}/messages",
                    headers={
                        "x-api-key": self.api_key,
                        "anthropic-version": "2023-06-01",
                        "Content-Type": "application/json",
                    },
                    json=request_body,
                )
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            logger.warning(f"Vision extraction failed status={e.response.status_code}")
            raise TransientError("Card extraction failed. Please try again.") from e
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Vision extraction request error: {type(e).__name__}")
            raise TransientError("Card extraction failed. Please try again.") from e

        if not isinstance(data, dict):
            raise TransientError("Card extraction returned no text. Please try again.")

        text = next(
            (
                block.get("text", "")
                for block in data.get("content", [])
                if isinstance(block, dict) and block.get("type") == "text"
            ),
            None,
        )
        if not text:
            raise TransientError("Card extraction returned no text. Please try again.")

        parsed = parse_json_object(text)
        if parsed is None:
            raise TransientError("Could not read card extraction result. Please try again.")
        return parsed


def get_vision_provider() -> VisionProvider:
    """Configured provider (FastAPI dependency; override in tests)."""
    if not settings.ANTHROPIC_API_KEY:
        raise TransientError("Card extraction is not configured.")
    return AnthropicVisionProvider(
        api_key=settings.ANTHROPIC_API_KEY,
        default_model=settings.VISION_MODEL,
        timeout=settings.VISION_TIMEOUT_SECONDS,
        max_tokens=settings.VISION_MAX_TOKENS,
    )
