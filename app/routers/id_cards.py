import logging

from fastapi import APIRouter, Body, File, HTTPException, UploadFile, status

from app.schemas.id_card import (
    ExtractedData,
    IDCardAnalysisResponse,
    IDCardParseRequest,
    IDCardParseResponse,
    ValidationResult,
)
from app.services.id_card_extraction import id_card_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/id-cards", tags=["id-cards"])


@router.post("/parse", response_model=IDCardParseResponse, status_code=status.HTTP_200_OK)
async def parse_id_card(request: IDCardParseRequest) -> IDCardParseResponse:
    """Parse an OCR transcript that was recognised elsewhere (e.g. in the browser)."""
    result = id_card_service.parse_text(request.text, request.confidence)
    return IDCardParseResponse.from_result(result)


@router.post("/validate", response_model=ValidationResult, status_code=status.HTTP_200_OK)
async def validate_id_card(data: ExtractedData | None = Body(None)) -> ValidationResult:
    """Re-check extracted ID card data supplied by the caller."""
    return id_card_service.validate(data)


@router.post("/analyze", response_model=IDCardAnalysisResponse, status_code=status.HTTP_200_OK)
async def analyze_id_card(file: UploadFile = File(...)) -> IDCardAnalysisResponse:
    """Upload an ID card image; run OCR, parse the fields and validate them."""
    content = await file.read()

    is_valid, error_message = id_card_service.validate_upload(content, file.content_type)
    if not is_valid:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error_message)

    logger.info(f"Analyzing ID card upload ({len(content)} bytes, type={file.content_type})")
    return await id_card_service.analyze_image(content)
