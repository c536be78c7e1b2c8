"""Data validation utilities.

This module validates intake records before submission: format rules
for the carrier identifier, VIN and odometer, plus completeness checks.
Every failure carries one message per error kind so the form can show
it next to the field.
"""

import logging
import re
from typing import List, Optional, Union

from ..extraction.patterns import DOT_LENGTH, MC_MAX_LENGTH, MC_MIN_LENGTH
from ..models.schema import (
    CarrierIdErrorKind,
    CarrierIdType,
    CarrierIdValidationResult,
    IntakeRecord,
    ValidationResult,
)
from .vin import VinValidator

logger = logging.getLogger(__name__)


class DataValidator:
    """
    Validates intake records.

    Performs:
    - Carrier ID format checks (DOT exactly 7 digits, MC 5-7 digits)
    - VIN checks (length, character set, check digit)
    - Odometer and region format checks
    - Completeness checks (identity fields present)
    """

    IMPORTANT_FIELDS = ['company_name', 'vin', 'unit_number']

    COMPLETENESS_FIELDS = [
        'company_name', 'carrier_id_num', 'unit_number', 'license_plate',
        'license_region', 'vin', 'year', 'make', 'model', 'odometer',
    ]

    def __init__(self, vin_validator: Optional[VinValidator] = None):
        """
        Initialize the validator.

        Args:
            vin_validator: VIN validator used for the VIN field
        """
        self.vin_validator = vin_validator or VinValidator()
        self.logger = logging.getLogger(self.__class__.__name__)

    def validate_carrier_id(
        self,
        carrier_id_type: Union[CarrierIdType, str],
        number: Optional[str]
    ) -> CarrierIdValidationResult:
        """
        Validate a carrier ID number against its type.

        An empty number is valid: the user can fill it in later.

        Args:
            carrier_id_type: 'dot', 'mc' or 'ca'
            number: Carrier ID number

        Returns:
            CarrierIdValidationResult
        """
        value = (number or '').strip()
        if not value:
            return CarrierIdValidationResult(valid=True)

        if not value.isdigit() or not value.isascii():
            return CarrierIdValidationResult(
                valid=False,
                error_kind=CarrierIdErrorKind.NON_DIGIT_CHARACTER,
                error_detail='Use only digits (no letters or spaces)',
            )

        kind = self._carrier_id_type(carrier_id_type)
        if kind == CarrierIdType.DOT and len(value) != DOT_LENGTH:
            return CarrierIdValidationResult(
                valid=False,
                error_kind=CarrierIdErrorKind.LENGTH_MISMATCH,
                error_detail=f'DOT# must be exactly {DOT_LENGTH} digits',
            )
        if kind == CarrierIdType.MC and not MC_MIN_LENGTH <= len(value) <= MC_MAX_LENGTH:
            return CarrierIdValidationResult(
                valid=False,
                error_kind=CarrierIdErrorKind.LENGTH_MISMATCH,
                error_detail=f'MC# must be {MC_MIN_LENGTH}-{MC_MAX_LENGTH} digits',
            )

        return CarrierIdValidationResult(valid=True)

    def _carrier_id_type(self, value: Union[CarrierIdType, str]) -> Optional[CarrierIdType]:
        if isinstance(value, CarrierIdType):
            return value
        try:
            return CarrierIdType((value or '').strip().lower())
        except ValueError:
            # Unknown types carry no format rule, like CA
            self.logger.warning(f"Unknown carrier ID type: {value!r}")
            return None

    def validate(self, record: IntakeRecord) -> ValidationResult:
        """
        Validate an intake record.

        Args:
            record: Intake record to check

        Returns:
            ValidationResult with validation status and messages
        """
        self.logger.debug("Starting record validation")

        warnings: List[str] = []
        errors: List[str] = []
        field_errors = {}

        if record.vin:
            verdict = self.vin_validator.validate(record.vin)
            if not verdict.valid:
                field_errors['vin'] = verdict.error_detail
                errors.append(f"VIN: {verdict.error_detail}")

        carrier = self.validate_carrier_id(record.carrier_id_type, record.carrier_id_num)
        if not carrier.valid:
            field_errors['carrier_id_num'] = carrier.error_detail
            errors.append(f"Carrier ID: {carrier.error_detail}")

        if record.odometer and not re.fullmatch(r'\d+', record.odometer):
            field_errors['odometer'] = 'Odometer must contain digits only'
            errors.append(f"Odometer: {field_errors['odometer']}")

        if record.license_region and not re.fullmatch(r'[A-Za-z]{2}', record.license_region):
            warnings.append(
                f"License region '{record.license_region}' is not a two-letter code"
            )

        missing = [f for f in self.IMPORTANT_FIELDS if not getattr(record, f)]
        if missing:
            warnings.append(f"Missing important fields: {', '.join(missing)}")

        result = ValidationResult(
            is_valid=not errors,
            warnings=warnings,
            errors=errors,
            field_errors=field_errors,
        )

        self.logger.info(
            f"Validation complete: valid={result.is_valid}, "
            f"warnings={len(warnings)}, errors={len(errors)}"
        )

        for warning in warnings:
            self.logger.warning(f"Validation warning: {warning}")

        for error in errors:
            self.logger.error(f"Validation error: {error}")

        return result

    def validate_completeness(self, record: IntakeRecord) -> float:
        """
        Calculate completeness score (0-1).

        Args:
            record: Intake record

        Returns:
            Fraction of non-empty identity fields
        """
        filled = sum(1 for f in self.COMPLETENESS_FIELDS if getattr(record, f))
        completeness = filled / len(self.COMPLETENESS_FIELDS)

        self.logger.debug(
            f"Completeness score: {completeness:.2%} ({filled}/{len(self.COMPLETENESS_FIELDS)})"
        )

        return completeness
