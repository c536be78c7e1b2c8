"""Data models for intake OCR reconciliation."""

from .schema import (
    IntakeRecord,
    CarrierIdType,
    FieldId,
    SessionState,
    SessionOutcome,
    VinErrorKind,
    CarrierIdErrorKind,
    VinValidationResult,
    CarrierIdValidationResult,
    ParsedCarrierId,
    ValidationResult,
)
from .ocr_results import (
    PlateResult,
    VinResult,
    CarrierIdResult,
    OdometerResult,
    CompanyResult,
    GenericTextResult,
    OcrFailure,
    OcrAttempt,
    VinReference,
    EquipmentMatch,
)
from .reconciliation import FieldReconciliation, SessionResult

__all__ = [
    "IntakeRecord",
    "CarrierIdType",
    "FieldId",
    "SessionState",
    "SessionOutcome",
    "VinErrorKind",
    "CarrierIdErrorKind",
    "VinValidationResult",
    "CarrierIdValidationResult",
    "ParsedCarrierId",
    "ValidationResult",
    "PlateResult",
    "VinResult",
    "CarrierIdResult",
    "OdometerResult",
    "CompanyResult",
    "GenericTextResult",
    "OcrFailure",
    "OcrAttempt",
    "VinReference",
    "EquipmentMatch",
    "FieldReconciliation",
    "SessionResult",
]
