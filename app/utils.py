import re


def normalize_whitespace(text: str) -> str:
    """Uppercase text and collapse all whitespace runs to single spaces."""
    return re.sub(r"\s+", " ", text.upper()).strip()


def split_lines(text: str) -> list[str]:
    """Split an OCR transcript into trimmed, non-empty lines."""
    return [line.strip() for line in re.split(r"[\n\r]+", text) if line.strip()]


def format_name(value: str) -> str:
    """
    Title-case a name word by word.

    Examples:
        >>> format_name("ALI  KHAN")
        'Ali Khan'
        >>> format_name("Ali Khan")
        'Ali Khan'
    """
    return " ".join(word[0].upper() + word[1:].lower() for word in value.split())


def batch_label(year: int) -> str:
    """Render a calendar year as a batch label, e.g. 2025 -> '2K25'."""
    return f"2K{year % 100:02d}"


def batch_year(label: str) -> int | None:
    """Return the full admission year for a label such as '2K25', or None if malformed."""
    match = re.search(r"2K(\d{2})", label or "", re.IGNORECASE)
    if not match:
        return None
    return 2000 + int(match.group(1))
