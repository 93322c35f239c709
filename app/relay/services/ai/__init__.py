"""
AI package for reading device assignments out of PDFs.

This package provides modular AI functionality split into:
- providers: Gemini / OpenAI clients that return the model's raw text
- parsing: Coercion of that text into records (ParseOk / ParseErr)
- retry: Optional backoff for rate-limited model calls
"""

from .parsing import (
    ParseErr,
    ParseOk,
    ParseOutcome,
    parse_model_response,
    repair_json,
    slice_array,
    strip_code_fence,
)
from .providers import (
    EXTRACTION_PROMPT,
    GeminiProvider,
    ModelProvider,
    OpenAIProvider,
    build_provider,
)
from .retry import retry_model_call

__all__ = [
    "EXTRACTION_PROMPT",
    "GeminiProvider",
    "ModelProvider",
    "OpenAIProvider",
    "ParseErr",
    "ParseOk",
    "ParseOutcome",
    "build_provider",
    "parse_model_response",
    "repair_json",
    "retry_model_call",
    "slice_array",
    "strip_code_fence",
]
