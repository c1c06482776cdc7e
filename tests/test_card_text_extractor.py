import asyncio
import io

from PIL import Image

from app.config import settings
from app.services import card_text_extractor
from app.services.card_text_extractor import TesseractCardTextExtractor, average_word_confidence


def png_bytes() -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (40, 20), "white").save(buffer, format="PNG")
    return buffer.getvalue()


def test_average_word_confidence_ignores_non_words():
    assert average_word_confidence({"conf": ["-1", "90", 80, "x", -1]}) == 85.0


def test_average_word_confidence_without_words():
    assert average_word_confidence({"conf": ["-1"]}) == 0.0
    assert average_word_confidence({}) == 0.0


def test_extract_returns_text_and_confidence(monkeypatch):
    monkeypatch.setattr(
        card_text_extractor.pytesseract, "image_to_data", lambda *args, **kwargs: {"conf": ["-1", "92", "88"]}
    )
    monkeypatch.setattr(
        card_text_extractor.pytesseract, "image_to_string", lambda *args, **kwargs: "UNIVERSITY OF SINDH\n"
    )

    scan = asyncio.run(TesseractCardTextExtractor().extract(png_bytes()))

    assert scan.text == "UNIVERSITY OF SINDH\n"
    assert scan.confidence == 90.0


def test_extract_failure_returns_empty_scan(monkeypatch):
    def fail(*args, **kwargs):
        raise RuntimeError("tesseract is not installed")

    monkeypatch.setattr(card_text_extractor.pytesseract, "image_to_data", fail)

    scan = asyncio.run(TesseractCardTextExtractor().extract(png_bytes()))

    assert scan.text == ""
    assert scan.confidence == 0.0


def test_undecodable_image_returns_empty_scan():
    scan = asyncio.run(TesseractCardTextExtractor().extract(b"not an image"))
    assert scan.text == ""
    assert scan.confidence == 0.0


def test_extract_disabled(monkeypatch):
    monkeypatch.setattr(settings, "id_card_ocr_enabled", False)
    scan = asyncio.run(TesseractCardTextExtractor().extract(png_bytes()))
    assert scan.text == ""
