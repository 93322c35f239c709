"""
Router for the extract-and-assign endpoint.

Handles:
- PDF extraction through the generative model
- Manual IMEI lists
- Fan-out of every record to the requested sheets
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from ..models import ExtractAndAssignRequest, ExtractAndAssignResponse
from ..services.dispatcher import Dispatcher, get_dispatcher, parse_destinations
from ..services.exceptions import InvalidInputError
from ..services.extractor import Extractor, get_extractor

logger = logging.getLogger(__name__)

router = APIRouter(prefix="", tags=["assign"])


@router.post("/extract-and-assign", response_model=ExtractAndAssignResponse)
async def extract_and_assign(
    request: ExtractAndAssignRequest,
    extractor: Annotated[Extractor, Depends(get_extractor)],
    dispatcher: Annotated[Dispatcher, Depends(get_dispatcher)],
) -> ExtractAndAssignResponse:
    """
    Extract (name, IMEI) pairs and record them in the target sheets.

    Takes either a base64 PDF or a manual IMEI list. Each record is sent to
    every sheet named in the comma-separated sheetName (or the webhook's
    default sheet when none is given). Pipeline errors are rendered by the
    exception handlers registered in main.
    """
    if not request.base64pdf and not request.imeis:
        raise InvalidInputError("Missing base64 PDF data or IMEI list.")
    if request.base64pdf and request.imeis:
        raise InvalidInputError("Provide either base64 PDF data or an IMEI list, not both.")

    destinations = parse_destinations(request.sheetName)
    logger.info(
        "extract-and-assign: source=%s, destinations=%s, overwrite=%s",
        "pdf" if request.base64pdf else "manual",
        destinations,
        request.overwrite,
    )

    records = await extractor.extract(
        document=request.base64pdf,
        manual_entries=request.imeis,
    )
    results = await dispatcher.dispatch(records, destinations, overwrite=request.overwrite)

    return ExtractAndAssignResponse(status="success", results=results)
