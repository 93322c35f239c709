"""
PDF payload handling.

Clients send the document as base64 text inside a JSON body; this module
turns it back into bytes and checks that it looks like a PDF before any
model call is made.
"""

import base64
import binascii
import logging

from .exceptions import InvalidInputError

logger = logging.getLogger(__name__)

PDF_MAGIC = b"%PDF"


def _strip_data_url(payload: str) -> str:
    # Browsers built with FileReader.readAsDataURL send "data:application/pdf;base64,...."
    if payload.startswith("data:") and "," in payload:
        return payload.split(",", 1)[1]
    return payload


def decode_base64_pdf(payload: str, validate_header: bool = True) -> bytes:
    """
    Decode a base64 PDF payload.

    Args:
        payload: Base64 text, optionally prefixed with a data URL header.
        validate_header: Require the decoded bytes to start with %PDF.

    Returns:
        The raw PDF bytes.

    Raises:
        InvalidInputError: If the payload is empty, not base64, or not a PDF.
    """
    if not payload or not payload.strip():
        raise InvalidInputError("Missing base64 PDF data.")

    cleaned = "".join(_strip_data_url(payload.strip()).split())
    try:
        pdf_bytes = base64.b64decode(cleaned, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidInputError(f"Invalid base64 PDF data: {e}") from e

    if not pdf_bytes:
        raise InvalidInputError("Empty PDF file provided")

    if validate_header and pdf_bytes[:4] != PDF_MAGIC:
        raise InvalidInputError("Invalid PDF file: does not start with PDF header")

    logger.info("Decoded PDF payload (%d bytes)", len(pdf_bytes))
    return pdf_bytes
