"""Tests for DEA number validation."""
import pytest

from app.services.credentialing.dea import (
    get_registrant_type_description,
    is_dea_required,
    is_mid_level_practitioner,
    is_suboxone_waiver,
    validate_dea_number,
)


@pytest.mark.unit
class TestValidateDEANumber:
    """Tests for validate_dea_number."""

    def test_valid_number_with_matching_last_name(self):
        result = validate_dea_number("AB1234563", "Brown")

        assert result.valid is True
        assert result.errors == []
        assert result.check_digit_valid is True
        assert result.registrant_type == "A"
        assert result.registrant_type_description == "Deprecated (replaced by F)"
        assert result.last_name_initial == "B"

    def test_input_is_trimmed_and_uppercased(self):
        result = validate_dea_number("  cb1234563 ", "brown")

        assert result.valid is True
        assert result.dea_number == "CB1234563"

    def test_format_error_is_the_only_error(self):
        result = validate_dea_number("A1234567")

        assert result.valid is False
        assert result.errors == [
            "Invalid DEA format. Must be 2 letters followed by 7 digits (e.g., AB1234563)"
        ]
        assert result.registrant_type is None

    @pytest.mark.parametrize("value", ["", None, "AB12345678", "1B1234563", "AB123456X"])
    def test_malformed_numbers(self, value):
        result = validate_dea_number(value)

        assert result.valid is False
        assert len(result.errors) == 1

    def test_wrong_check_digit(self):
        result = validate_dea_number("AB1234564", "Brown")

        assert result.valid is False
        assert result.check_digit_valid is False
        assert result.errors == ["Invalid check digit. Expected 3, got 4"]

    def test_unknown_registrant_type(self):
        result = validate_dea_number("ZB1234563", "Brown")

        assert result.valid is False
        assert "Invalid registrant type: Z" in result.errors
        assert result.registrant_type_description is None

    def test_last_name_mismatch(self):
        result = validate_dea_number("CB1234563", "Smith")

        assert result.valid is False
        assert result.errors == ["Second letter (B) should match first letter of last name (S)"]

    def test_last_name_check_skipped_without_name(self):
        assert validate_dea_number("CB1234563").valid is True

    def test_errors_accumulate(self):
        result = validate_dea_number("ZB1234564", "Smith")

        assert len(result.errors) == 3

    def test_mid_level_mismatch_is_a_warning(self):
        result = validate_dea_number("MB1234563", "Smith")

        assert result.valid is True
        assert result.errors == []
        assert len(result.warnings) == 1
        assert result.warnings[0].startswith(
            "Second letter (B) should match first letter of last name (S)"
        )


@pytest.mark.unit
class TestRegistrantHelpers:
    """Tests for registrant type helpers."""

    def test_description(self):
        assert get_registrant_type_description("MB1234563").startswith("Mid-Level Practitioner")
        assert get_registrant_type_description("ZB1234563") is None
        assert get_registrant_type_description("") is None

    def test_mid_level(self):
        assert is_mid_level_practitioner("mb1234563") is True
        assert is_mid_level_practitioner("CB1234563") is False
        assert is_mid_level_practitioner("") is False

    def test_suboxone(self):
        assert is_suboxone_waiver("XB1234563") is True
        assert is_suboxone_waiver("CB1234563") is False


@pytest.mark.unit
class TestIsDEARequired:
    """Tests for is_dea_required."""

    @pytest.mark.parametrize("license_type", ["MD", "DO", "PMHNP", "PMHNP-BC", "NP", "PA-C", "md, facp"])
    def test_prescribers(self, license_type):
        assert is_dea_required(license_type) is True

    @pytest.mark.parametrize("license_type", ["LCSW", "LMFT", "LPC", "PsyD"])
    def test_non_prescribers(self, license_type):
        assert is_dea_required(license_type) is False

    def test_substring_does_not_match(self):
        # "MD" inside another credential is not a match
        assert is_dea_required("LMDX") is False

    @pytest.mark.parametrize("license_type", [None, "", "RN", "Unknown"])
    def test_unknown_defaults_to_not_required(self, license_type):
        assert is_dea_required(license_type) is False
