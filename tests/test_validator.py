"""Tests for data validation module."""

import pytest
from intake_ocr.models.schema import (
    CarrierIdErrorKind,
    CarrierIdType,
    IntakeRecord,
)
from intake_ocr.validation.validator import DataValidator


class TestDataValidator:
    """Test suite for DataValidator class."""

    @pytest.fixture
    def validator(self):
        """Fixture to provide DataValidator instance."""
        return DataValidator()

    @pytest.fixture
    def complete_record(self):
        """Fixture to provide a fully populated valid record."""
        return IntakeRecord(
            company_name="MILES X LLC",
            carrier_id_type=CarrierIdType.DOT,
            carrier_id_num="3916245",
            unit_number="42",
            license_plate="7XYZ123",
            license_region="CA",
            vin="1HGCM82633A004352",
            year="2003",
            make="HONDA",
            model="Accord",
            odometer="34672",
        )

    def test_dot_length_boundaries(self, validator):
        """Test DOT numbers must be exactly 7 digits."""
        assert validator.validate_carrier_id(CarrierIdType.DOT, "3916245").valid

        for number in ["391624", "39162451"]:
            result = validator.validate_carrier_id(CarrierIdType.DOT, number)
            assert not result.valid
            assert result.error_kind == CarrierIdErrorKind.LENGTH_MISMATCH
            assert result.error_detail == "DOT# must be exactly 7 digits"

    def test_mc_length_boundaries(self, validator):
        """Test MC numbers must be 5 to 7 digits."""
        for number in ["14471", "144716", "1447160"]:
            assert validator.validate_carrier_id(CarrierIdType.MC, number).valid

        for number in ["1447", "14471600"]:
            result = validator.validate_carrier_id(CarrierIdType.MC, number)
            assert not result.valid
            assert result.error_kind == CarrierIdErrorKind.LENGTH_MISMATCH
            assert result.error_detail == "MC# must be 5-7 digits"

    def test_ca_has_no_length_rule(self, validator):
        """Test CA numbers only need to be digits."""
        for number in ["1", "123456789012"]:
            assert validator.validate_carrier_id(CarrierIdType.CA, number).valid

        assert not validator.validate_carrier_id(CarrierIdType.CA, "CA123").valid

    def test_non_digit_characters(self, validator):
        """Test letters and inner spaces are rejected before length."""
        for number in ["39162a5", "391 6245", "３９１６２４５"]:
            result = validator.validate_carrier_id(CarrierIdType.DOT, number)
            assert not result.valid
            assert result.error_kind == CarrierIdErrorKind.NON_DIGIT_CHARACTER
            assert result.error_detail == "Use only digits (no letters or spaces)"

    def test_empty_number_is_valid(self, validator):
        """Test that a missing carrier ID is not an error."""
        for kind in CarrierIdType:
            assert validator.validate_carrier_id(kind, "").valid
            assert validator.validate_carrier_id(kind, None).valid

    def test_type_given_as_string(self, validator):
        """Test that string types are accepted case-insensitively."""
        assert not validator.validate_carrier_id("DOT", "391624").valid
        assert validator.validate_carrier_id("mc", "144716").valid

    def test_unknown_type_has_no_length_rule(self, validator):
        """Test that an unrecognized type only checks digits."""
        assert validator.validate_carrier_id("ff", "12").valid
        assert not validator.validate_carrier_id("ff", "1x").valid

    def test_validate_complete_record(self, validator, complete_record):
        """Test validation of a complete valid record."""
        result = validator.validate(complete_record)

        assert result.is_valid
        assert result.errors == []
        assert result.warnings == []
        assert result.field_errors == {}

    def test_validate_invalid_vin(self, validator, complete_record):
        """Test that a VIN check digit mismatch is reported on the field."""
        record = complete_record.updated(vin="1HGCM82653A004352")
        result = validator.validate(record)

        assert not result.is_valid
        assert "vin" in result.field_errors
        assert "Check digit invalid" in result.field_errors["vin"]

    def test_validate_invalid_carrier_id(self, validator, complete_record):
        """Test that a carrier ID format error is reported on the field."""
        record = complete_record.updated(carrier_id_num="391624")
        result = validator.validate(record)

        assert not result.is_valid
        assert result.field_errors["carrier_id_num"] == "DOT# must be exactly 7 digits"

    def test_validate_invalid_odometer(self, validator, complete_record):
        """Test that a non-digit odometer is an error."""
        record = complete_record.updated(odometer="34,672")
        result = validator.validate(record)

        assert not result.is_valid
        assert result.field_errors["odometer"] == "Odometer must contain digits only"

    def test_validate_region_warning(self, validator, complete_record):
        """Test that a malformed region is only a warning."""
        record = complete_record.updated(license_region="Texas")
        result = validator.validate(record)

        assert result.is_valid
        assert any("two-letter" in w for w in result.warnings)

    def test_validate_missing_important_fields(self, validator):
        """Test warning for an empty record."""
        result = validator.validate(IntakeRecord.empty())

        assert result.is_valid
        assert "Missing important fields: company_name, vin, unit_number" in result.warnings

    def test_completeness_score(self, validator, complete_record):
        """Test completeness score calculation."""
        assert validator.validate_completeness(complete_record) == 1.0
        assert validator.validate_completeness(IntakeRecord.empty()) == 0.0

        partial = IntakeRecord(company_name="MILES X LLC", vin="1HGCM82633A004352")
        assert validator.validate_completeness(partial) == 0.2
