from app.core.card_profile import IDCardPolicy
from app.schemas.id_card import ExtractedData
from app.services.id_card_parser import IDCardParser
from app.services.id_card_validator import ExtractedDataValidator

validator = ExtractedDataValidator(IDCardPolicy())


def record(**overrides) -> ExtractedData:
    values = {
        "name": "Ali Khan",
        "roll_no": "2K25/CSE/87",
        "department": "Computer Science",
        "batch": "2K25",
        "degree_program": "BS (COMPUTER SCIENCE)",
        "university_header": "UNIVERSITY OF SINDH",
        "card_type": "STUDENT IDENTITY CARD",
    }
    values.update(overrides)
    return ExtractedData(**values)


def test_missing_data_yields_single_error():
    result = validator.validate(None)
    assert result.valid is False
    assert result.errors == ["No data extracted"]


def test_valid_record():
    result = validator.validate(record(), current_year=2025)
    assert result.valid is True
    assert result.errors == []


def test_separator_variants_are_not_canonical():
    result = validator.validate(record(roll_no="2K25-CSE-87"), current_year=2025)
    assert result.valid is False
    assert result.errors == ["Invalid roll number format. Expected format: 2K25/CSE/87"]


def test_all_violations_are_reported():
    result = validator.validate(
        record(roll_no="25/CSE/87", name="", university_header="", card_type="STAFF CARD"),
        current_year=2025,
    )
    assert result.valid is False
    assert len(result.errors) == 4
    assert "Student name is required" in result.errors
    assert "This appears to be a staff card, not a student card" in result.errors


def test_graduated_batch():
    result = validator.validate(record(roll_no="2K18/CSE/87", batch="2K18"), current_year=2025)
    assert result.errors == ["This student has likely graduated. Only current students can register."]


def test_oldest_batch_in_window_is_valid():
    result = validator.validate(record(roll_no="2K19/CSE/87", batch="2K19"), current_year=2025)
    assert result.valid is True


def test_future_batch():
    result = validator.validate(record(roll_no="2K26/CSE/87", batch="2K26"), current_year=2025)
    assert result.errors == ["Invalid batch year. Cannot register future students."]


def test_batch_must_agree_with_roll_number():
    result = validator.validate(record(roll_no="2K24/CSE/87", batch="2K25"), current_year=2025)
    assert result.errors == ["Batch does not match the roll number"]


def test_malformed_batch():
    result = validator.validate(record(batch="BATCH 25"), current_year=2025)
    assert result.errors == ["Invalid batch format. Expected format: 2K25"]


def test_short_name():
    result = validator.validate(record(name="Al"), current_year=2025)
    assert result.errors == ["Student name is required"]


def test_parser_output_passes_validation():
    parsed = IDCardParser(IDCardPolicy()).parse(
        "UNIVERSITY OF SINDH\nSTUDENT IDENTITY CARD\nNAME: ALI KHAN\n2K21/EE/9", 88, current_year=2025
    )
    assert isinstance(parsed, ExtractedData)
    assert validator.validate(parsed, current_year=2025).valid is True
