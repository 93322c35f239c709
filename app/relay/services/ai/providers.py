"""
Generative model providers that read an assignment table out of a PDF.

Each provider sends the fixed extraction instruction together with the raw
PDF bytes and returns the model's answer as plain text. Parsing that text is
left to the parsing module.
"""

import base64
import logging
from abc import ABC, abstractmethod
from typing import Any

from ...config import Settings
from ..exceptions import UpstreamExtractionError
from .retry import retry_model_call

logger = logging.getLogger(__name__)


PDF_MIME_TYPE = "application/pdf"

EXTRACTION_PROMPT = """From the PDF below, extract all data under the headers 'Assigned To' and 'IMEI'.
Return it in this exact JSON format (no explanation):
[
  { "name": "Narok", "imei": "355234850433208" },
  ...
]"""


class ModelProvider(ABC):
    """A generative model that turns a PDF into free text."""

    name: str = "model"

    def __init__(self, max_retries: int = 0, retry_base_delay: float = 2.0, retry_max_delay: float = 60.0):
        self.max_retries = max_retries
        self.retry_base_delay = retry_base_delay
        self.retry_max_delay = retry_max_delay

    async def extract_text(self, pdf_bytes: bytes) -> str:
        """
        Ask the model for the assignment table in the PDF.

        Raises:
            UpstreamExtractionError: If the call fails or no text comes back.
        """
        try:
            text = await retry_model_call(
                lambda: self._generate(pdf_bytes),
                max_retries=self.max_retries,
                base_delay=self.retry_base_delay,
                max_delay=self.retry_max_delay,
            )
        except UpstreamExtractionError:
            raise
        except Exception as e:
            logger.exception("%s extraction call failed", self.name)
            raise UpstreamExtractionError(f"{self.name} request failed: {e}") from e

        if not text or not text.strip():
            raise UpstreamExtractionError(f"No valid response from {self.name}.")
        return text

    @abstractmethod
    async def _generate(self, pdf_bytes: bytes) -> str | None:
        """Send one request and return the raw answer text."""


class GeminiProvider(ModelProvider):
    """Google Gemini via the google-genai SDK, PDF sent as inline data."""

    name = "Gemini"

    def __init__(self, api_key: str | None, model: str = "gemini-1.5-pro", **kwargs: Any):
        super().__init__(**kwargs)
        self.api_key = api_key
        self.model = model
        self._client = None

    @property
    def client(self):
        """Lazy-load the Gemini client."""
        if self._client is None:
            if not self.api_key:
                raise UpstreamExtractionError(
                    "Gemini API key not provided. Set GEMINI_API_KEY environment variable."
                )
            from google import genai

            self._client = genai.Client(api_key=self.api_key)
        return self._client

    async def _generate(self, pdf_bytes: bytes) -> str | None:
        from google.genai import types

        logger.info("Calling %s (%s) with %d byte PDF", self.name, self.model, len(pdf_bytes))
        response = await self.client.aio.models.generate_content(
            model=self.model,
            contents=[
                EXTRACTION_PROMPT,
                types.Part.from_bytes(data=pdf_bytes, mime_type=PDF_MIME_TYPE),
            ],
        )
        return response.text


class OpenAIProvider(ModelProvider):
    """OpenAI chat completions with the PDF attached as a file part."""

    name = "OpenAI"

    def __init__(self, api_key: str | None, model: str = "gpt-4.1", **kwargs: Any):
        super().__init__(**kwargs)
        self.api_key = api_key
        self.model = model
        self._client = None

    @property
    def client(self):
        """Lazy-load the OpenAI client."""
        if self._client is None:
            if not self.api_key:
                raise UpstreamExtractionError(
                    "OpenAI API key not provided. Set OPENAI_API_KEY environment variable."
                )
            from openai import AsyncOpenAI

            self._client = AsyncOpenAI(api_key=self.api_key)
        return self._client

    async def _generate(self, pdf_bytes: bytes) -> str | None:
        encoded = base64.b64encode(pdf_bytes).decode("utf-8")
        logger.info("Calling %s (%s) with %d byte PDF", self.name, self.model, len(pdf_bytes))
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": EXTRACTION_PROMPT},
                        {
                            "type": "file",
                            "file": {
                                "filename": "document.pdf",
                                "file_data": f"data:{PDF_MIME_TYPE};base64,{encoded}",
                            },
                        },
                    ],
                },
            ],
        )
        if not response.choices:
            return None
        return response.choices[0].message.content


def build_provider(settings: Settings) -> ModelProvider:
    """Create the provider selected by settings.ai_provider."""
    retry_kwargs = {
        "max_retries": settings.ai_max_retries,
        "retry_base_delay": settings.ai_retry_base_delay,
        "retry_max_delay": settings.ai_retry_max_delay,
    }
    if settings.ai_provider == "openai":
        return OpenAIProvider(settings.openai_api_key, settings.openai_model, **retry_kwargs)
    return GeminiProvider(settings.gemini_api_key, settings.gemini_model, **retry_kwargs)
