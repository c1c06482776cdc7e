"""Service for re-checking extracted ID card data before registration."""

import logging
import re
from datetime import datetime

from app.core.card_profile import IDCardPolicy, get_default_policy
from app.schemas.id_card import ExtractedData, ValidationResult

logger = logging.getLogger(__name__)

ROLL_NUMBER_FORMAT = re.compile(r"^2K(\d{2})/[A-Z]{2,4}/\d+$")
BATCH_FORMAT = re.compile(r"^2K(\d{2})$")


class ExtractedDataValidator:
    """Second, independent gate over an ExtractedData record.

    Records may come from a client that ran its own extraction, so nothing
    the parser guaranteed is trusted here; the batch window is re-derived.
    """

    def __init__(self, policy: IDCardPolicy | None = None):
        self.policy = policy or get_default_policy()

    def validate(self, data: ExtractedData | None, current_year: int | None = None) -> ValidationResult:
        """
        Validate an extracted record against every registration rule.

        Rules:
        - Roll number in canonical 2KYY/DEPT/NUM form
        - Batch well formed, agreeing with the roll number, inside the graduation window and not in the future
        - Name present (at least 3 characters)
        - University header and student card type markers present

        Args:
            data: Record to check, or None when nothing was extracted
            current_year: Year used for the batch window; defaults to today

        Returns:
            ValidationResult listing all violated rules
        """
        if data is None:
            return ValidationResult(valid=False, errors=["No data extracted"])

        errors: list[str] = []
        year = current_year or datetime.now().year

        # Check roll number format
        roll_match = ROLL_NUMBER_FORMAT.match(data.roll_no or "")
        if not roll_match:
            errors.append("Invalid roll number format. Expected format: 2K25/CSE/87")

        # Check batch year
        batch_match = BATCH_FORMAT.match((data.batch or "").strip().upper())
        if not batch_match:
            errors.append("Invalid batch format. Expected format: 2K25")
        else:
            if roll_match and roll_match.group(1) != batch_match.group(1):
                errors.append("Batch does not match the roll number")

            batch_year = 2000 + int(batch_match.group(1))
            if year - batch_year > self.policy.graduation_window_years:
                errors.append("This student has likely graduated. Only current students can register.")
            if batch_year > year:
                errors.append("Invalid batch year. Cannot register future students.")

        # Check name
        if not data.name or len(data.name.strip()) < 3:
            errors.append("Student name is required")

        # Check card provenance markers
        if self.policy.university_header not in (data.university_header or "").upper():
            errors.append(f"This does not appear to be a {self.policy.institution_name} ID card")

        if "STUDENT" not in (data.card_type or "").upper():
            errors.append("This appears to be a staff card, not a student card")

        if errors:
            logger.info(f"Extracted data failed validation with {len(errors)} error(s)", extra={"errors": errors})

        return ValidationResult(valid=len(errors) == 0, errors=errors)


# Global validator instance
extracted_data_validator = ExtractedDataValidator()
