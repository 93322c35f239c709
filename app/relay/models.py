"""
Pydantic models for the extract-and-assign pipeline.

Defines the request body accepted from clients, the records that flow
from extraction to dispatch, and the response payloads.
"""

from pydantic import BaseModel, ConfigDict, Field


class Record(BaseModel):
    """
    A single device assignment to be written to a sheet.

    Attributes:
        imei: Device identifier (numeric in practice, length not enforced).
        name: Label of the person or site the device is assigned to.
    """

    imei: str
    name: str


class ManualEntry(BaseModel):
    """
    A manually supplied assignment.

    Fields are optional here so that incomplete entries reach the extractor,
    which reports the offending element by position.
    """

    imei: str | None = None
    name: str | None = None


class ExtractAndAssignRequest(BaseModel):
    """Request body for POST /extract-and-assign."""

    base64pdf: str | None = Field(
        default=None,
        description="Base64-encoded PDF to extract assignments from",
    )
    imeis: list[str | ManualEntry] | None = Field(
        default=None,
        description="Manual entries, either bare IMEIs or {imei, name} objects",
    )
    sheetName: str | None = Field(
        default=None,
        description="Comma-separated target sheets; empty means the default sheet",
        examples=["Sales", "Sales, Returns"],
    )
    overwrite: bool = Field(
        default=False,
        description="Passed through to the webhook unchanged",
    )


class DispatchResult(BaseModel):
    """Outcome of one webhook write for a (record, destination) pair."""

    model_config = ConfigDict(populate_by_name=True)

    imei: str
    name: str
    sheet_name: str = Field(alias="sheetName")
    status: str = Field(
        ...,
        description="Raw webhook reply text, or an error description",
    )
    ok: bool = True


class ExtractAndAssignResponse(BaseModel):
    """Successful response for POST /extract-and-assign."""

    status: str = "success"
    results: list[DispatchResult] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """Error payload returned for any pipeline failure."""

    status: str = "error"
    message: str


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(default="healthy")
    message: str = Field(default="")
    version: str = Field(default="1.0.0")
