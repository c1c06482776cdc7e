import logging

from app.config import settings
from app.schemas.id_card import (
    ExtractedData,
    IDCardAnalysisResponse,
    ParseFailure,
    ParseResult,
    ValidationResult,
)
from app.services.card_text_extractor import CardTextExtractor, TesseractCardTextExtractor
from app.services.id_card_parser import IDCardParser, id_card_parser
from app.services.id_card_validator import ExtractedDataValidator, extracted_data_validator

logger = logging.getLogger(__name__)


class IDCardExtractionService:
    """Service for reading student ID cards: OCR, field parsing and validation."""

    def __init__(
        self,
        extractor: CardTextExtractor | None = None,
        parser: IDCardParser | None = None,
        validator: ExtractedDataValidator | None = None,
    ):
        self.extractor = extractor or TesseractCardTextExtractor()
        self.parser = parser or id_card_parser
        self.validator = validator or extracted_data_validator

    @staticmethod
    def validate_upload(content: bytes, mime_type: str | None) -> tuple[bool, str | None]:
        """
        Check an uploaded card image before running OCR.

        Returns:
            tuple[bool, str | None]: (is_valid, error_message)
        """
        if mime_type not in settings.id_card_allowed_mime_types:
            return False, (
                f"Unsupported file type. Allowed types: {', '.join(settings.id_card_allowed_mime_types)}"
            )
        if not content:
            return False, "Uploaded file is empty"
        if len(content) > settings.id_card_upload_max_size:
            max_size_mb = settings.id_card_upload_max_size / (1024 * 1024)
            return False, f"File size must be less than {max_size_mb:.0f}MB"
        return True, None

    def parse_text(self, text: str, confidence: float, current_year: int | None = None) -> ParseResult:
        return self.parser.parse(text, confidence, current_year=current_year)

    def validate(self, data: ExtractedData | None, current_year: int | None = None) -> ValidationResult:
        return self.validator.validate(data, current_year=current_year)

    async def analyze_image(self, image_data: bytes, current_year: int | None = None) -> IDCardAnalysisResponse:
        """
        OCR an ID card image, parse the transcript and re-validate the record.
        Returns the analysis; failures are reported in the body, never raised.
        """
        scan = await self.extractor.extract(image_data)
        result = self.parser.parse(scan.text, scan.confidence, current_year=current_year)

        if isinstance(result, ParseFailure):
            return IDCardAnalysisResponse(
                success=False,
                confidence=scan.confidence,
                error=result.error,
                kind=result.kind,
            )

        validation = self.validator.validate(result, current_year=current_year)
        if not validation.valid:
            logger.warning(f"Parsed ID card {result.roll_no} failed validation: {', '.join(validation.errors)}")
            return IDCardAnalysisResponse(
                success=False,
                confidence=scan.confidence,
                error=", ".join(validation.errors),
                validation_errors=validation.errors,
            )

        return IDCardAnalysisResponse(success=True, confidence=scan.confidence, data=result)


# Global ID card service instance
id_card_service = IDCardExtractionService()
