"""
DEA registration number validation.

Format: two letters followed by seven digits (e.g. AB1234563).

- First letter: registrant type (see REGISTRANT_TYPES)
- Second letter: first letter of the registrant's last name. Mid-level
  practitioners (type M) commonly carry the supervising physician's initial
  instead, so a mismatch is reported as a warning for them, not an error.
- Seventh digit: check digit,
  (d1 + d3 + d5 + 2 * (d2 + d4 + d6)) % 10

This is an offline structural check. It says nothing about whether the
registration is active; that requires the DEA's registration validation
service, which is outside this module.
"""
import re
from typing import List, Optional

from pydantic import BaseModel, Field

from app.utils.logger import get_logger

logger = get_logger(__name__)

REGISTRANT_TYPES = {
    "A": "Deprecated (replaced by F)",
    "B": "Hospital/Clinic",
    "C": "Practitioner (Physician, Dentist, Veterinarian, Podiatrist)",
    "D": "Teaching Institution",
    "E": "Manufacturer",
    "F": "Distributor",
    "G": "Researcher",
    "H": "Analytical Lab",
    "J": "Importer",
    "K": "Exporter",
    "L": "Reverse Distributor",
    "M": "Mid-Level Practitioner (NP, PA, Optometrist)",
    "P": "Narcotic Treatment Program",
    "R": "Narcotic Treatment Program",
    "S": "Narcotic Treatment Program",
    "T": "Narcotic Treatment Program",
    "U": "Narcotic Treatment Program",
    "X": "Suboxone/Subutex Prescribing Program",
}

MID_LEVEL_REGISTRANT = "M"
SUBOXONE_REGISTRANT = "X"

DEA_PATTERN = re.compile(r"^[A-Z]{2}\d{7}$")

# Credentials that prescribe controlled substances
DEA_REQUIRED_CREDENTIALS = frozenset(
    {"MD", "DO", "PMHNP", "APRN", "NP", "PA", "PA-C", "DDS", "DMD", "DVM", "DPM", "OD"}
)
# Licensed therapists and psychologists do not prescribe
DEA_NOT_REQUIRED_CREDENTIALS = frozenset(
    {"LCSW", "LMFT", "LPC", "LPCC", "LCPC", "LMHC", "PSYD"}
)

_CREDENTIAL_SPLIT = re.compile(r"[^A-Z-]+")


class DEAValidationResult(BaseModel):
    """Outcome of a DEA structural check. Errors accumulate; warnings never fail."""

    valid: bool
    dea_number: str
    registrant_type: Optional[str] = None
    registrant_type_description: Optional[str] = None
    last_name_initial: Optional[str] = None
    check_digit_valid: bool = False
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


def validate_dea_number(dea_number: str, last_name: Optional[str] = None) -> DEAValidationResult:
    """
    Validate a DEA number's structure and check digit.

    Input is trimmed and upper-cased first. A format failure returns
    immediately with a single error; otherwise every failing check adds its
    own error.

    Args:
        dea_number: DEA registration number
        last_name: Registrant's last name; the second-letter check is skipped
            when not provided

    Returns:
        DEAValidationResult
    """
    normalized = (dea_number or "").strip().upper()
    result = DEAValidationResult(valid=False, dea_number=normalized)

    if not DEA_PATTERN.match(normalized):
        result.errors.append(
            "Invalid DEA format. Must be 2 letters followed by 7 digits (e.g., AB1234563)"
        )
        return result

    registrant_type = normalized[0]
    second_letter = normalized[1]
    digits = [int(char) for char in normalized[2:]]

    result.registrant_type = registrant_type
    result.last_name_initial = second_letter
    result.registrant_type_description = REGISTRANT_TYPES.get(registrant_type)
    if result.registrant_type_description is None:
        result.errors.append(f"Invalid registrant type: {registrant_type}")

    last_initial = (last_name or "").strip()[:1].upper()
    if last_initial and second_letter != last_initial:
        message = (
            f"Second letter ({second_letter}) should match first letter of last name "
            f"({last_initial})"
        )
        if registrant_type == MID_LEVEL_REGISTRANT:
            result.warnings.append(
                f"{message}; accepted for mid-level practitioner registered under a "
                "supervising physician"
            )
        else:
            result.errors.append(message)

    odd_sum = digits[0] + digits[2] + digits[4]
    even_sum = digits[1] + digits[3] + digits[5]
    expected = (odd_sum + 2 * even_sum) % 10
    result.check_digit_valid = expected == digits[6]
    if not result.check_digit_valid:
        result.errors.append(f"Invalid check digit. Expected {expected}, got {digits[6]}")

    result.valid = not result.errors
    return result


def get_registrant_type_description(dea_number: str) -> Optional[str]:
    """Registrant type description for a DEA number, or None if unknown."""
    if not dea_number:
        return None
    return REGISTRANT_TYPES.get(dea_number.strip()[:1].upper())


def is_mid_level_practitioner(dea_number: str) -> bool:
    return bool(dea_number) and dea_number.strip()[:1].upper() == MID_LEVEL_REGISTRANT


def is_suboxone_waiver(dea_number: str) -> bool:
    return bool(dea_number) and dea_number.strip()[:1].upper() == SUBOXONE_REGISTRANT


def is_dea_required(license_type: Optional[str]) -> bool:
    """
    Whether a license type prescribes controlled substances.

    The license string is split into credential tokens ("MD, FACP" ->
    MD, FACP; "PMHNP-BC" -> PMHNP-BC, PMHNP) and each token is compared
    exactly. Required credentials win over non-required ones; anything
    unrecognized defaults to not required.
    """
    if not license_type:
        return False

    tokens = set()
    for token in _CREDENTIAL_SPLIT.split(license_type.upper()):
        token = token.strip("-")
        if not token:
            continue
        tokens.add(token)
        tokens.add(token.split("-")[0])

    required = bool(tokens & DEA_REQUIRED_CREDENTIALS)
    if not required and not tokens & DEA_NOT_REQUIRED_CREDENTIALS:
        logger.debug("Unrecognized license type, DEA not required", license_type=license_type)
    return required
