import logging
import math
import re
from collections.abc import Callable
from datetime import datetime

from app.core.card_profile import IDCardPolicy, get_default_policy
from app.schemas.id_card import ExtractedData, ParseFailure, ParseFailureKind, ParseResult
from app.utils import batch_label, batch_year, format_name, normalize_whitespace, split_lines

logger = logging.getLogger(__name__)

NameStrategy = Callable[[str, list[str], IDCardPolicy], str | None]

NAME_WORD = re.compile(r"[A-Z][A-Za-z]*")
TRAILING_WORD = re.compile(r"[A-Z][A-Za-z]+")
ID_LIKE_VALUE = re.compile(r"^(?:ID\b|#|\d)", re.IGNORECASE)
PARENTHESIZED = re.compile(r"\(([^)]+)\)")


def clean_name(value: str) -> str:
    """Drop everything but letters and collapse whitespace."""
    return re.sub(r"\s+", " ", re.sub(r"[^A-Za-z\s]", " ", value)).strip()


def is_plausible_name(value: str, policy: IDCardPolicy) -> bool:
    """1-4 alphabetic words of 2-15 letters, 3-50 characters, no institutional wording."""
    clean = clean_name(value)
    if not 3 <= len(clean) <= 50:
        return False
    if policy.is_keyword_line(value):
        return False
    words = clean.split()
    return 1 <= len(words) <= 4 and all(2 <= len(word) <= 15 for word in words)


def name_from_label(text: str, lines: list[str], policy: IDCardPolicy) -> str | None:
    """Take the value after a "Name:" label, or the following line when the label stands alone."""
    for index, line in enumerate(lines):
        match = policy.name_label_regex.match(line)
        if not match:
            continue
        prefix = match.group("prefix").upper()
        if any(word in prefix for word in policy.guardian_label_words):
            continue

        # A roll number printed on the same line belongs to another field
        value = policy.roll_year_regex.split(match.group("value"))[0].strip()
        if value and not ID_LIKE_VALUE.match(value) and is_plausible_name(value, policy):
            return format_name(clean_name(value))

        if index + 1 < len(lines) and is_plausible_name(lines[index + 1], policy):
            return format_name(clean_name(lines[index + 1]))
    return None


def name_from_line_scan(text: str, lines: list[str], policy: IDCardPolicy) -> str | None:
    """First line made only of 1-4 capitalised words."""
    for line in lines:
        if policy.is_keyword_line(line):
            continue
        if not 3 <= len(line) <= 50:
            continue
        words = line.split()
        if not 1 <= len(words) <= 4:
            continue
        if all(NAME_WORD.fullmatch(word) and 2 <= len(word) <= 15 for word in words):
            return format_name(line)
    return None


def name_before_roll_number(text: str, lines: list[str], policy: IDCardPolicy) -> str | None:
    """Trailing run of capitalised words directly in front of the roll number."""
    roll = policy.roll_year_regex.search(text)
    if not roll:
        return None
    # Last non-blank line in front of the roll number
    tail = text[: roll.start()].rstrip(" \t\r\n:,-").rsplit("\n", 1)[-1]
    words: list[str] = []
    for word in reversed(tail.split()):
        if len(words) == 4 or not TRAILING_WORD.fullmatch(word):
            break
        words.append(word)
    if not words:
        return None
    candidate = " ".join(reversed(words))
    if policy.is_keyword_line(candidate) or not 3 <= len(candidate) <= 50:
        return None
    return format_name(candidate)


NAME_STRATEGIES: list[tuple[str, NameStrategy]] = [
    ("labeled", name_from_label),
    ("line_scan", name_from_line_scan),
    ("before_roll_number", name_before_roll_number),
]


class IDCardParser:
    """Recover student fields from the OCR transcript of a University of Sindh ID card.

    Gates run in a fixed order and the first failing one decides the outcome:
    length, institution, confidence, roll number, batch window, name. Degree
    program and department never fail; they fall back to derived values.
    """

    def __init__(self, policy: IDCardPolicy | None = None):
        self.policy = policy or get_default_policy()

    def parse(self, text: str, confidence: float, current_year: int | None = None) -> ParseResult:
        """
        Parse a transcript into ExtractedData, or return a ParseFailure.

        Args:
            text: Raw OCR transcript (any casing, arbitrary line breaks)
            confidence: OCR engine confidence, 0-100
            current_year: Year used for the batch window; defaults to today

        Returns:
            ExtractedData on success, ParseFailure otherwise. Never raises.
        """
        try:
            return self._parse(text or "", confidence, current_year or datetime.now().year)
        except Exception as e:
            logger.error(f"ID card parsing failed: {e}", exc_info=True)
            return ParseFailure(
                kind=ParseFailureKind.PROCESSING_ERROR,
                error="An error occurred while processing the ID card. Please try again with a clearer image.",
            )

    def _parse(self, text: str, confidence: float, current_year: int) -> ParseResult:
        logger.debug(f"Parsing ID card transcript ({len(text)} characters, confidence={confidence})")

        failure = self._check_length(text) or self._check_institution(text) or self._check_confidence(confidence)
        if failure:
            return failure

        roll = self._extract_roll_number(text)
        if roll is None:
            return self._reject(
                ParseFailureKind.ROLL_NUMBER_NOT_FOUND,
                "Could not find a valid student roll number on this card. "
                "Please ensure the roll number (e.g., 2K25/CSE/87) is clearly visible.",
            )
        year_digits, abbreviation, roll_no = roll
        batch = f"2K{year_digits}"

        failure = self._check_batch(batch, current_year)
        if failure:
            return failure

        lines = split_lines(text)
        name = self._extract_name(text, lines)
        if not name:
            return self._reject(
                ParseFailureKind.NAME_NOT_FOUND,
                "Could not extract student name from the ID card. "
                "Please ensure the name is clearly visible and not obscured.",
            )

        degree_program = self._extract_degree_program(text, lines)
        department = self._normalize_department(abbreviation, degree_program)
        if not degree_program:
            degree_program = f"BS ({department})"

        logger.info(f"ID card parsed: roll_no={roll_no}, batch={batch}, department={department}")
        return ExtractedData(
            name=name,
            roll_no=roll_no,
            department=department,
            batch=batch,
            degree_program=degree_program,
            university_header=self.policy.university_header,
            card_type=self.policy.card_type,
        )

    @staticmethod
    def _reject(kind: ParseFailureKind, error: str) -> ParseFailure:
        logger.info(f"ID card rejected: {kind.value}", extra={"gate": kind.value, "reason": error})
        return ParseFailure(kind=kind, error=error)

    def _check_length(self, text: str) -> ParseFailure | None:
        if len(text) >= self.policy.min_text_length:
            return None
        return self._reject(
            ParseFailureKind.UNREADABLE_IMAGE,
            f"Unable to read the uploaded image. Please upload a clear photo of your "
            f"{self.policy.institution_short_name} Student ID card.",
        )

    def _check_institution(self, text: str) -> ParseFailure | None:
        # Runs before the confidence gate
        normalized = normalize_whitespace(text)
        if any(regex.search(normalized) for regex in self.policy.institution_regexes):
            logger.debug("Institution name found")
            return None
        return self._reject(
            ParseFailureKind.WRONG_INSTITUTION,
            f"This does not appear to be a {self.policy.institution_name} ID card. "
            f"Please upload your valid {self.policy.institution_short_name} Student ID card.",
        )

    def _check_confidence(self, confidence: float) -> ParseFailure | None:
        if math.isfinite(confidence) and confidence >= self.policy.min_confidence:
            return None
        shown = round(confidence) if math.isfinite(confidence) else 0
        return self._reject(
            ParseFailureKind.LOW_CONFIDENCE,
            f"Image quality is too low ({shown}% confidence). Please upload a clearer photo with better lighting.",
        )

    def _extract_roll_number(self, text: str) -> tuple[str, str, str] | None:
        """Return (year digits, department abbreviation, canonical roll number)."""
        for regex in self.policy.roll_number_regexes:
            match = regex.search(text)
            if match:
                year_digits, abbreviation, number = match.group(1), match.group(2).upper(), match.group(3)
                roll_no = f"2K{year_digits}/{abbreviation}/{number}"
                logger.debug(f"Roll number {roll_no} matched by {regex.pattern!r}")
                return year_digits, abbreviation, roll_no
        return None

    def _check_batch(self, batch: str, current_year: int) -> ParseFailure | None:
        admitted = batch_year(batch)
        window = self.policy.graduation_window_years
        if current_year - admitted > window:
            return self._reject(
                ParseFailureKind.GRADUATED_OR_FUTURE_BATCH,
                f"This student appears to have graduated. Only current students "
                f"(batch {batch_label(current_year - window)} onwards) can register.",
            )
        if admitted > current_year:
            return self._reject(
                ParseFailureKind.GRADUATED_OR_FUTURE_BATCH,
                f"Invalid batch year {batch}. Cannot register future students.",
            )
        return None

    def _extract_name(self, text: str, lines: list[str]) -> str | None:
        for strategy_name, strategy in NAME_STRATEGIES:
            candidate = strategy(text, lines, self.policy)
            if candidate and len(candidate) >= 3:
                logger.debug(f"Name found by {strategy_name} strategy")
                return candidate
            logger.debug(f"Name strategy {strategy_name} found nothing")
        return None

    def _extract_degree_program(self, text: str, lines: list[str]) -> str | None:
        # Only lines that start with a degree token; names like MASHOOD never qualify
        for line in lines:
            if not self.policy.degree_line_regex.search(line):
                continue
            if not 4 < len(line) < 60 or self.policy.roll_year_regex.search(line):
                continue
            return normalize_whitespace(line)

        match = self.policy.degree_in_text_regex.search(text)
        if match:
            return normalize_whitespace(match.group(0))
        return None

    def _normalize_department(self, abbreviation: str, degree_program: str | None) -> str:
        if degree_program:
            parenthesized = PARENTHESIZED.search(degree_program)
            if parenthesized:
                # Unrecognised bracket content (years, stray dots) is OCR noise
                inner = parenthesized.group(1).strip()
                mapped = self.policy.department_for_abbreviation(inner)
                if mapped:
                    return mapped
            named = self.policy.department_name_regex.search(degree_program)
            if named:
                return format_name(named.group(1))
        return self.policy.department_for_abbreviation(abbreviation) or abbreviation


# Global parser instance
id_card_parser = IDCardParser()
