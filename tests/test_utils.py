import pytest

from app.utils import batch_label, batch_year, format_name, normalize_whitespace, split_lines


@pytest.mark.parametrize("value", ["Ali Khan", "ALI KHAN", "ali   khan", "  MUHAMMAD  ali\tKHAN "])
def test_format_name_is_idempotent(value):
    formatted = format_name(value)
    assert format_name(formatted) == formatted


def test_format_name_title_cases_each_word():
    assert format_name("SARA  AHMED") == "Sara Ahmed"
    assert format_name("zain junejo") == "Zain Junejo"
    assert format_name("") == ""


def test_normalize_whitespace():
    assert normalize_whitespace("  University of\n\tSindh  ") == "UNIVERSITY OF SINDH"
    assert normalize_whitespace("\n\n") == ""


def test_split_lines_drops_blank_lines():
    text = "UNIVERSITY OF SINDH\r\n\n   NAME: ALI KHAN  \n\n2K25/CSE/87\n   \n"
    assert split_lines(text) == ["UNIVERSITY OF SINDH", "NAME: ALI KHAN", "2K25/CSE/87"]


def test_batch_label():
    assert batch_label(2025) == "2K25"
    assert batch_label(2005) == "2K05"


def test_batch_year():
    assert batch_year("2K19") == 2019
    assert batch_year("2k07") == 2007
    assert batch_year("BATCH 25") is None
