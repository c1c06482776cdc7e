"""University of Sindh student ID card profile: lookup tables and parsing policy."""
import re
from functools import cached_property

from pydantic import BaseModel, ConfigDict, Field

from app.config import settings


UNIVERSITY_HEADER = "UNIVERSITY OF SINDH"
CARD_TYPE = "STUDENT IDENTITY CARD"

# Department abbreviations as printed in roll numbers, mapped to full names
DEPARTMENT_ABBREVIATIONS: dict[str, str] = {
    "CSE": "Computer Science",
    "CSM": "Computer Science",
    "CS": "Computer Science",
    "SE": "Software Engineering",
    "SWE": "Software Engineering",
    "IT": "Information Technology",
    "EE": "Electrical Engineering",
    "ME": "Mechanical Engineering",
    "CE": "Civil Engineering",
    "BBA": "Business Administration",
    "MBA": "Business Administration",
    "ECON": "Economics",
    "MATH": "Mathematics",
    "PHY": "Physics",
    "CHEM": "Chemistry",
    "BIO": "Biology",
}

# Full department names recognised inside a degree program line (longest first)
DEPARTMENT_NAMES: list[str] = [
    "BUSINESS ADMINISTRATION",
    "ELECTRICAL ENGINEERING",
    "MECHANICAL ENGINEERING",
    "INFORMATION TECHNOLOGY",
    "SOFTWARE ENGINEERING",
    "CIVIL ENGINEERING",
    "COMPUTER SCIENCE",
    "MATHEMATICS",
    "ENGINEERING",
    "ECONOMICS",
    "CHEMISTRY",
    "BIOLOGY",
    "PHYSICS",
]

# Field-of-study words that may follow a degree token anywhere in the transcript
FIELDS_OF_STUDY: list[str] = DEPARTMENT_NAMES + ["COMMERCE", "SCIENCE", "ARTS", "CS"]

DEGREE_TOKENS: list[str] = [
    r"BBA",
    r"MBA",
    r"BS",
    r"MS",
    r"BA",
    r"MA",
    r"B\.S",
    r"M\.S",
    r"B\.?COM",
    r"M\.?COM",
    r"BACHELORS?",
    r"MASTERS?",
]

# Words that mark a line as institutional text rather than a person's name.
# Matched on word boundaries, so "JUNEJO" is not excluded by "JUNE".
INSTITUTIONAL_KEYWORDS: list[str] = [
    "UNIVERSITY",
    "SINDH",
    "JAMSHORO",
    "PAKISTAN",
    "STUDENT",
    "IDENTITY",
    "CARD",
    "CAMPUS",
    "FATHER",
    "GUARDIAN",
    "NAME",
    "ROLL",
    "DEPARTMENT",
    "DEPT",
    "FACULTY",
    "INSTITUTE",
    "BACHELOR",
    "BACHELORS",
    "MASTER",
    "MASTERS",
    "PROGRAM",
    "PROGRAMME",
    "DIRECTOR",
    "ADMISSIONS",
    "REGISTRAR",
    "SIGNATURE",
    "VALID",
    "UPTO",
    "ISSUED",
    "EXPIRY",
    "BATCH",
    "SESSION",
    "ACADEMIC",
    "PRE-ENGINEERING",
    "FIRST YEAR",
    "SECOND YEAR",
    "THIRD YEAR",
    "FINAL YEAR",
    "ALLAMA",
    "KAZI",
    "JANUARY",
    "FEBRUARY",
    "MARCH",
    "APRIL",
    "MAY",
    "JUNE",
    "JULY",
    "AUGUST",
    "SEPTEMBER",
    "OCTOBER",
    "NOVEMBER",
    "DECEMBER",
]

# Whole-line shapes that are never a name
EXCLUDED_LINE_PATTERNS: list[str] = [
    r"2K\d{2}",  # roll number year
    r"^\d+$",
    r"^ID\s*[#:]?\s*\d+",
    r"^(?:BS|MS|BA|MA|BBA|MBA)\b",
]

# Institution name, tolerant of OCR reordering
INSTITUTION_PATTERNS: list[str] = [
    r"UNIVERSITY.*SINDH",
    r"SINDH.*UNIVERSITY",
    r"UNI.*SINDH",
]

# Tried in order; groups are (year, department, number)
ROLL_NUMBER_PATTERNS: list[str] = [
    r"2K(\d{2})\s*[/\-\s]\s*([A-Z]{2,4})\s*[/\-\s]\s*(\d+)",
    r"2K(\d{2})([A-Z]{2,4})(\d+)",
]

# Label preceding the holder's name; the leading N is often dropped by OCR
NAME_LABEL_PATTERN = r"(?P<prefix>.*?)(?:\bNAME(?![A-Z])\s*[:;]?|(?<![A-Z])AME\s*[:;])\s*(?P<value>.*)"
GUARDIAN_LABEL_WORDS: list[str] = ["FATHER", "GUARDIAN", "HUSBAND", "S/O", "D/O"]


class IDCardPolicy(BaseModel):
    """Tunables and lookup tables the ID card parser and validator share."""

    model_config = ConfigDict(frozen=True)

    min_text_length: int = 20
    min_confidence: float = 70.0
    graduation_window_years: int = 6
    institution_name: str = "University of Sindh"
    institution_short_name: str = "UOS"
    university_header: str = UNIVERSITY_HEADER
    card_type: str = CARD_TYPE
    department_abbreviations: dict[str, str] = Field(default_factory=lambda: dict(DEPARTMENT_ABBREVIATIONS))
    department_names: list[str] = Field(default_factory=lambda: list(DEPARTMENT_NAMES))
    fields_of_study: list[str] = Field(default_factory=lambda: list(FIELDS_OF_STUDY))
    degree_tokens: list[str] = Field(default_factory=lambda: list(DEGREE_TOKENS))
    institutional_keywords: list[str] = Field(default_factory=lambda: list(INSTITUTIONAL_KEYWORDS))
    excluded_line_patterns: list[str] = Field(default_factory=lambda: list(EXCLUDED_LINE_PATTERNS))
    institution_patterns: list[str] = Field(default_factory=lambda: list(INSTITUTION_PATTERNS))
    roll_number_patterns: list[str] = Field(default_factory=lambda: list(ROLL_NUMBER_PATTERNS))
    name_label_pattern: str = NAME_LABEL_PATTERN
    guardian_label_words: list[str] = Field(default_factory=lambda: list(GUARDIAN_LABEL_WORDS))

    @classmethod
    def from_settings(cls) -> "IDCardPolicy":
        """Build the default policy with thresholds taken from application settings."""
        return cls(
            min_text_length=settings.id_card_min_text_length,
            min_confidence=settings.id_card_min_confidence,
            graduation_window_years=settings.id_card_graduation_window_years,
        )

    @cached_property
    def institution_regexes(self) -> list[re.Pattern[str]]:
        return [re.compile(p, re.IGNORECASE) for p in self.institution_patterns]

    @cached_property
    def roll_number_regexes(self) -> list[re.Pattern[str]]:
        return [re.compile(p, re.IGNORECASE) for p in self.roll_number_patterns]

    @cached_property
    def roll_year_regex(self) -> re.Pattern[str]:
        return re.compile(r"2K\d{2}", re.IGNORECASE)

    @cached_property
    def keyword_regex(self) -> re.Pattern[str]:
        alternatives = "|".join(re.escape(kw) for kw in self.institutional_keywords)
        return re.compile(rf"(?<![A-Z])(?:{alternatives})(?![A-Z])", re.IGNORECASE)

    @cached_property
    def excluded_line_regexes(self) -> list[re.Pattern[str]]:
        return [re.compile(p, re.IGNORECASE) for p in self.excluded_line_patterns]

    @cached_property
    def name_label_regex(self) -> re.Pattern[str]:
        return re.compile(self.name_label_pattern, re.IGNORECASE)

    @cached_property
    def degree_line_regex(self) -> re.Pattern[str]:
        tokens = "|".join(self.degree_tokens)
        return re.compile(rf"^(?:{tokens})\b", re.IGNORECASE)

    @cached_property
    def degree_in_text_regex(self) -> re.Pattern[str]:
        tokens = "|".join(self.degree_tokens)
        fields = "|".join(re.escape(f) for f in self.fields_of_study)
        return re.compile(
            rf"\b(?:{tokens})\.?[ \t]+(?:(?:OF|IN)[ \t]+)?\(?(?:{fields})\b\)?",
            re.IGNORECASE,
        )

    @cached_property
    def department_name_regex(self) -> re.Pattern[str]:
        names = "|".join(re.escape(n) for n in self.department_names)
        return re.compile(rf"\b({names})\b", re.IGNORECASE)

    def is_keyword_line(self, line: str) -> bool:
        """True when the line carries institutional wording or a non-name shape."""
        stripped = line.strip()
        if self.keyword_regex.search(stripped):
            return True
        return any(regex.search(stripped) for regex in self.excluded_line_regexes)

    def department_for_abbreviation(self, abbreviation: str) -> str | None:
        return self.department_abbreviations.get(abbreviation.strip().upper())


def get_default_policy() -> IDCardPolicy:
    return IDCardPolicy.from_settings()
