"""
Services package for the IMEI relay.

Contains:
- extractor: PDF / manual input to records
- dispatcher: record fan-out to the spreadsheet webhook
- pdf_service: base64 PDF decoding and validation
- ai: generative model providers and response parsing
"""

from .dispatcher import Dispatcher, get_dispatcher, parse_destinations
from .extractor import Extractor, get_extractor

__all__ = ["Dispatcher", "Extractor", "get_dispatcher", "get_extractor", "parse_destinations"]
