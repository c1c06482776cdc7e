from datetime import datetime

from fastapi.testclient import TestClient

from app.main import app
from app.schemas.id_card import RawScan
from app.services.card_text_extractor import CardTextExtractor
from app.services.id_card_extraction import id_card_service

client = TestClient(app)

BATCH = f"2K{datetime.now().year % 100:02d}"
CARD_TEXT = f"UNIVERSITY OF SINDH\nSTUDENT IDENTITY CARD\nNAME: ALI KHAN\n{BATCH}/CSE/87\nBS (COMPUTER SCIENCE)"


class FakeExtractor(CardTextExtractor):
    def __init__(self, text: str, confidence: float):
        self.scan = RawScan(text=text, confidence=confidence)

    async def extract(self, image_data: bytes) -> RawScan:
        return self.scan


def test_parse_card_text():
    response = client.post("/api/v1/id-cards/parse", json={"text": CARD_TEXT, "confidence": 88})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"]["name"] == "Ali Khan"
    assert body["data"]["roll_no"] == f"{BATCH}/CSE/87"
    assert body["data"]["batch"] == BATCH


def test_parse_reports_failure_kind():
    response = client.post(
        "/api/v1/id-cards/parse",
        json={"text": "NATIONAL IDENTITY CARD OF PAKISTAN", "confidence": 95},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is False
    assert body["kind"] == "wrong_institution"
    assert body["data"] is None


def test_parse_rejects_out_of_range_confidence():
    response = client.post("/api/v1/id-cards/parse", json={"text": CARD_TEXT, "confidence": 150})
    assert response.status_code == 422


def test_validate_without_body():
    response = client.post("/api/v1/id-cards/validate")
    assert response.status_code == 200
    assert response.json() == {"valid": False, "errors": ["No data extracted"]}


def test_validate_record():
    record = {
        "name": "Ali Khan",
        "roll_no": f"{BATCH}/CSE/87",
        "department": "Computer Science",
        "batch": BATCH,
        "degree_program": "BS (COMPUTER SCIENCE)",
        "university_header": "UNIVERSITY OF SINDH",
        "card_type": "STUDENT IDENTITY CARD",
    }
    response = client.post("/api/v1/id-cards/validate", json=record)
    assert response.status_code == 200
    assert response.json() == {"valid": True, "errors": []}


def test_analyze_card_image(monkeypatch):
    monkeypatch.setattr(id_card_service, "extractor", FakeExtractor(CARD_TEXT, 91.5))
    response = client.post(
        "/api/v1/id-cards/analyze",
        files={"file": ("card.png", b"\x89PNG fake", "image/png")},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["confidence"] == 91.5
    assert body["data"]["department"] == "Computer Science"
    assert body["validation_errors"] == []


def test_analyze_low_confidence(monkeypatch):
    monkeypatch.setattr(id_card_service, "extractor", FakeExtractor(CARD_TEXT, 35))
    response = client.post(
        "/api/v1/id-cards/analyze",
        files={"file": ("card.jpg", b"fake jpeg", "image/jpeg")},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is False
    assert body["kind"] == "low_confidence"
    assert "(35% confidence)" in body["error"]


def test_analyze_rejects_unsupported_type():
    response = client.post(
        "/api/v1/id-cards/analyze",
        files={"file": ("card.txt", b"UNIVERSITY OF SINDH", "text/plain")},
    )
    assert response.status_code == 400
    assert "Unsupported file type" in response.json()["detail"]


def test_analyze_rejects_empty_upload():
    response = client.post(
        "/api/v1/id-cards/analyze",
        files={"file": ("card.png", b"", "image/png")},
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Uploaded file is empty"
