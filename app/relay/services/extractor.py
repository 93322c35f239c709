"""
Extractor: turns a PDF or a manual list into validated records.
"""

import logging
from typing import Any, Sequence

from pydantic import ValidationError

from ..config import Settings, get_settings
from ..models import ManualEntry, Record
from .ai import ModelProvider, ParseErr, build_provider, parse_model_response
from .exceptions import InvalidInputError, MalformedResponseError
from .pdf_service import decode_base64_pdf

logger = logging.getLogger(__name__)


class Extractor:
    """
    Produces the ordered record list for one request.

    Exactly one input is used: a base64 PDF, which is sent to the model
    provider, or a list of manual entries. Order and duplicates are kept.
    """

    def __init__(self, settings: Settings, provider: ModelProvider):
        self.settings = settings
        self.provider = provider

    async def extract(
        self,
        document: str | None = None,
        manual_entries: Sequence[Any] | None = None,
    ) -> list[Record]:
        """
        Build records from whichever input was supplied.

        Raises:
            InvalidInputError: Neither or both inputs present, or a manual
                entry is invalid.
            UpstreamExtractionError: The model call failed.
            MalformedResponseError: The model's answer could not be parsed.
        """
        if document and manual_entries:
            raise InvalidInputError("Provide either base64 PDF data or an IMEI list, not both.")
        if document:
            return await self.extract_from_pdf(document)
        if manual_entries:
            return self.normalize_manual_entries(manual_entries)
        raise InvalidInputError("Missing base64 PDF data or IMEI list.")

    async def extract_from_pdf(self, document: str) -> list[Record]:
        pdf_bytes = decode_base64_pdf(document, validate_header=self.settings.validate_pdf_header)
        text = await self.provider.extract_text(pdf_bytes)

        outcome = parse_model_response(text)
        if isinstance(outcome, ParseErr):
            logger.error(
                "Could not parse model response (%s): %s",
                outcome.reason,
                outcome.snippet,
            )
            raise MalformedResponseError(
                f"Malformed model response: {outcome.reason}",
                raw_text=outcome.raw,
            )

        logger.info("Extracted %d record(s) from PDF", len(outcome.records))
        return outcome.records

    def normalize_manual_entries(self, entries: Sequence[Any]) -> list[Record]:
        """
        Validate manual entries.

        Bare strings are accepted only when allow_bare_imeis is set and get
        the configured manual_entry_name. Objects need a non-blank imei and
        name; both are trimmed.
        """
        records: list[Record] = []
        for index, entry in enumerate(entries):
            if isinstance(entry, str):
                records.append(self._from_bare_imei(entry, index))
                continue

            if isinstance(entry, dict):
                try:
                    entry = ManualEntry.model_validate(entry)
                except ValidationError as e:
                    raise InvalidInputError(f"Invalid entry at index {index}: {e}") from e
            if not isinstance(entry, ManualEntry):
                raise InvalidInputError(
                    f"Invalid entry at index {index}: expected an IMEI string or an object with imei and name"
                )

            imei = (entry.imei or "").strip()
            name = (entry.name or "").strip()
            if not imei or not name:
                raise InvalidInputError(
                    f"Invalid entry at index {index}: both imei and name are required"
                )
            records.append(Record(imei=imei, name=name))

        logger.info("Accepted %d manual record(s)", len(records))
        return records

    def _from_bare_imei(self, value: str, index: int) -> Record:
        if not self.settings.allow_bare_imeis:
            raise InvalidInputError(
                f"Invalid entry at index {index}: each entry must be an object with imei and name"
            )
        imei = value.strip()
        if not imei:
            raise InvalidInputError(f"Invalid entry at index {index}: empty IMEI")
        return Record(imei=imei, name=self.settings.manual_entry_name)


# =============================================================================
# Singleton Factory
# =============================================================================

_extractor: Extractor | None = None


def get_extractor() -> Extractor:
    """Get or create the extractor singleton."""
    global _extractor
    if _extractor is None:
        settings = get_settings()
        _extractor = Extractor(settings, build_provider(settings))
    return _extractor
