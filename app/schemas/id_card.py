from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field


class ParseFailureKind(str, Enum):
    """Why an ID card transcript was rejected."""

    UNREADABLE_IMAGE = "unreadable_image"
    WRONG_INSTITUTION = "wrong_institution"
    LOW_CONFIDENCE = "low_confidence"
    ROLL_NUMBER_NOT_FOUND = "roll_number_not_found"
    GRADUATED_OR_FUTURE_BATCH = "graduated_or_future_batch"
    NAME_NOT_FOUND = "name_not_found"
    PROCESSING_ERROR = "processing_error"


class RawScan(BaseModel):
    """OCR transcript of one uploaded card image."""

    text: str = ""
    confidence: float = Field(0.0, ge=0, le=100)


class ExtractedData(BaseModel):
    """Fields recovered from a student ID card.

    Values are not constrained here: records may arrive from untrusted callers
    and are checked by the validator instead.
    """

    name: str
    roll_no: str
    department: str
    batch: str
    degree_program: str
    university_header: str
    card_type: str


class ParseFailure(BaseModel):
    """Rejected transcript with a human-readable reason."""

    success: Literal[False] = False
    kind: ParseFailureKind
    error: str


ParseResult = ExtractedData | ParseFailure


class ValidationResult(BaseModel):
    """Outcome of re-checking an extracted record; lists every violated rule."""

    valid: bool
    errors: list[str] = []


class IDCardParseRequest(BaseModel):
    """Schema for parsing an already-recognised transcript."""

    text: str
    confidence: float = Field(..., ge=0, le=100)


class IDCardParseResponse(BaseModel):
    """Schema for a parse outcome."""

    success: bool
    data: ExtractedData | None = None
    error: str | None = None
    kind: ParseFailureKind | None = None

    @classmethod
    def from_result(cls, result: ParseResult) -> "IDCardParseResponse":
        if isinstance(result, ParseFailure):
            return cls(success=False, error=result.error, kind=result.kind)
        return cls(success=True, data=result)


class IDCardAnalysisResponse(IDCardParseResponse):
    """Schema for OCR + parse + validation of an uploaded card image."""

    confidence: float = 0.0
    validation_errors: list[str] = []
