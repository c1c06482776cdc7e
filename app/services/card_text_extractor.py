import io
import logging
from abc import ABC, abstractmethod

import pytesseract
from PIL import Image

from app.config import settings
from app.schemas.id_card import RawScan

logger = logging.getLogger(__name__)


class CardTextExtractor(ABC):
    """Abstract OCR capability: image bytes in, transcript and confidence out."""

    @abstractmethod
    async def extract(self, image_data: bytes) -> RawScan:
        """
        Recognise the text on a card image.

        Args:
            image_data: Encoded image (JPEG, PNG, ...)

        Returns:
            RawScan with the transcript and an overall confidence in [0, 100]
        """
        pass


def average_word_confidence(ocr_data: dict) -> float:
    """Mean of Tesseract word confidences, ignoring the -1 entries for non-word boxes."""
    confidences = []
    for conf in ocr_data.get("conf", []):
        try:
            value = float(conf)
        except (TypeError, ValueError):
            continue
        if value >= 0:
            confidences.append(value)
    if not confidences:
        return 0.0
    return min(100.0, sum(confidences) / len(confidences))


class TesseractCardTextExtractor(CardTextExtractor):
    """Extract card text with Tesseract."""

    def __init__(self, lang: str | None = None, config: str | None = None):
        self.lang = lang or settings.id_card_ocr_lang
        self.config = config or settings.id_card_tesseract_config

    async def extract(self, image_data: bytes) -> RawScan:
        """
        Run OCR over the whole card.
        Returns an empty RawScan (confidence 0.0) if OCR is disabled or fails.
        """
        if not settings.id_card_ocr_enabled:
            logger.warning("ID card OCR is disabled")
            return RawScan()

        try:
            logger.debug("Starting ID card OCR")
            image = Image.open(io.BytesIO(image_data)).convert("RGB")

            ocr_data = pytesseract.image_to_data(
                image, lang=self.lang, config=self.config, output_type=pytesseract.Output.DICT
            )
            text = pytesseract.image_to_string(image, lang=self.lang, config=self.config)
            confidence = average_word_confidence(ocr_data)

            logger.info(f"ID card OCR completed: extracted {len(text)} characters, confidence={confidence:.2f}")
            return RawScan(text=text, confidence=confidence)
        except Exception as e:
            logger.error(f"ID card OCR failed: {e}", exc_info=True)
            return RawScan()
