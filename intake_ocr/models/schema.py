"""Pydantic models for the intake record and validation verdicts.

This module defines the structured intake record that OCR reconciliation
fills in, together with the enums and verdict models shared by the
validation, extraction and reconciliation layers.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


class CarrierIdType(str, Enum):
    """Carrier identifier kinds accepted by the job file."""

    DOT = "dot"
    CA = "ca"
    MC = "mc"


class FieldId(str, Enum):
    """Photographed documents, in wizard step order."""

    LICENSE = "license"
    COMPANY = "company"
    DOTMC = "dotmc"
    VIN = "vin"
    UNIT = "unit"
    ODOMETER = "odometer"


class SessionState(str, Enum):
    """Where a capture session stands when reconciliation is requested."""

    FRESH = "fresh"
    AWAITING_ODOMETER_FOR_EXISTING_UNIT = "awaiting_odometer_for_existing_unit"
    FULL_CAPTURE = "full_capture"


class SessionOutcome(str, Enum):
    """Screen the caller should show after a reconciliation pass."""

    REVIEW = "review"
    CONFIRM_EXISTING_UNIT = "confirm_existing_unit"
    CONTINUE_CAPTURE = "continue_capture"


class VinErrorKind(str, Enum):
    LENGTH_MISMATCH = "LengthMismatch"
    EXCLUDED_CHARACTER = "ExcludedCharacter"
    INVALID_CHARACTER = "InvalidCharacter"
    CHECK_DIGIT_MISMATCH = "CheckDigitMismatch"


class CarrierIdErrorKind(str, Enum):
    NON_DIGIT_CHARACTER = "NonDigitCharacter"
    LENGTH_MISMATCH = "LengthMismatch"


def number_to_text(v: Any) -> Any:
    """Stringify JSON numbers; integral floats lose their '.0' (34672.0 -> '34672')."""
    if isinstance(v, bool):
        return v
    if isinstance(v, float) and v.is_integer():
        return str(int(v))
    if isinstance(v, (int, float)):
        return str(v)
    return v


_STRING_FIELDS = (
    'company_name', 'carrier_id_num', 'unit_number', 'license_plate',
    'license_region', 'vin', 'year', 'make', 'model', 'odometer',
)


class IntakeRecord(BaseModel):
    """
    Structured identity fields for one in-progress capture session.

    Absent values are always empty strings so the record stays flat,
    serializable and diffable.

    Attributes:
        company_name: Carrier/customer company name
        carrier_id_type: Kind of carrier identifier (dot, ca or mc)
        carrier_id_num: Carrier identifier digits
        unit_number: Fleet unit number
        license_plate: License plate number
        license_region: Two-letter plate region code
        vin: 17-character vehicle identification number
        year: Model year (derived from VIN)
        make: Vehicle make (derived from VIN)
        model: Vehicle model (derived from VIN)
        odometer: Odometer reading, digits only
    """

    company_name: str = Field("", alias="companyName", description="Company name")
    carrier_id_type: CarrierIdType = Field(
        CarrierIdType.DOT, alias="carrierIdType", description="DOT, CA or MC"
    )
    carrier_id_num: str = Field("", alias="carrierIdNum", description="Carrier ID digits")
    unit_number: str = Field("", alias="unitNumber", description="Unit number")
    license_plate: str = Field("", alias="licensePlate", description="License plate")
    license_region: str = Field("", alias="licenseRegion", description="Plate region code")
    vin: str = Field("", alias="vin", description="Vehicle identification number")
    year: str = Field("", alias="year", description="Model year")
    make: str = Field("", alias="make", description="Vehicle make")
    model: str = Field("", alias="model", description="Vehicle model")
    odometer: str = Field("", alias="odometer", description="Odometer reading, digits only")

    @field_validator(*_STRING_FIELDS, mode='before')
    @classmethod
    def coerce_to_string(cls, v):
        """Represent absence as an empty string and stringify numbers."""
        if v is None:
            return ""
        return number_to_text(v)

    @field_validator('carrier_id_type', mode='before')
    @classmethod
    def default_carrier_id_type(cls, v):
        """Fall back to DOT when the type is missing."""
        if v is None or v == "":
            return CarrierIdType.DOT
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @classmethod
    def empty(cls) -> "IntakeRecord":
        """Create the all-empty record a new session starts from."""
        return cls()

    @classmethod
    def field_name(cls, key: str) -> str:
        """
        Resolve an attribute name or camelCase alias to the attribute name.

        Raises:
            KeyError: If the key names no record field
        """
        if key in cls.model_fields:
            return key
        for name, info in cls.model_fields.items():
            if info.alias == key:
                return name
        raise KeyError(f"Unknown intake field: {key}")

    def updated(self, **changes: Any) -> "IntakeRecord":
        """Return a validated copy with the given attributes replaced."""
        data = self.model_dump()
        data.update(changes)
        return type(self).model_validate(data)

    def apply_edit(self, key: str, value: Any) -> "IntakeRecord":
        """Apply a user edit to one field (last write wins)."""
        return self.updated(**{self.field_name(key): value})

    def to_submission(self) -> Dict[str, str]:
        """Flat camelCase field-value map for the job submission call."""
        return self.model_dump(mode='json', by_alias=True)

    class Config:
        """Pydantic configuration."""
        populate_by_name = True
        validate_assignment = True


class VinValidationResult(BaseModel):
    """
    Verdict of VIN validation.

    Attributes:
        valid: Whether the VIN passed every check
        error_kind: Which check failed
        error_detail: Human-readable message for the failed check
        expected: Expected value (length or check character)
        actual: Actual value found
    """

    valid: bool = Field(..., description="Overall validation status")
    error_kind: Optional[VinErrorKind] = Field(None, description="Failed check")
    error_detail: Optional[str] = Field(None, description="User-facing message")
    expected: Optional[str] = Field(None, description="Expected value")
    actual: Optional[str] = Field(None, description="Actual value")


class CarrierIdValidationResult(BaseModel):
    """Verdict of carrier-ID validation."""

    valid: bool = Field(..., description="Overall validation status")
    error_kind: Optional[CarrierIdErrorKind] = Field(None, description="Failed check")
    error_detail: Optional[str] = Field(None, description="User-facing message")


class ParsedCarrierId(BaseModel):
    """
    Best-effort DOT/MC classification of free text.

    Attributes:
        dot: DOT number when one was found
        mc: MC number when one was found
        preferred_type: Identifier type to put on the record
        preferred_num: Identifier number to put on the record
    """

    dot: Optional[str] = Field(None, description="DOT number")
    mc: Optional[str] = Field(None, description="MC number")
    preferred_type: CarrierIdType = Field(CarrierIdType.DOT, description="Preferred type")
    preferred_num: str = Field("", description="Preferred number")


class ValidationResult(BaseModel):
    """
    Result of validating a whole intake record.

    Attributes:
        is_valid: Whether validation passed
        warnings: List of non-critical issues
        errors: List of critical validation failures
        field_errors: Error message per record attribute
    """

    is_valid: bool = Field(..., description="Overall validation status")
    warnings: List[str] = Field(default_factory=list, description="Non-critical issues")
    errors: List[str] = Field(default_factory=list, description="Critical validation errors")
    field_errors: Dict[str, str] = Field(default_factory=dict, description="Errors by field")
