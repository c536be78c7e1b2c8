"""Field extraction, validation and reconciliation for vehicle intake OCR."""

from .models.schema import IntakeRecord, CarrierIdType
from .validation.vin import VinValidator
from .extraction.carrier_id import CarrierIdParser
from .normalization.normalizer import DataNormalizer
from .validation.validator import DataValidator
from .reconciliation.reconciler import FieldReconciler
from .reconciliation.session import SessionReconciler

__version__ = "1.0.0"

__all__ = [
    "IntakeRecord",
    "CarrierIdType",
    "VinValidator",
    "CarrierIdParser",
    "DataNormalizer",
    "DataValidator",
    "FieldReconciler",
    "SessionReconciler",
]
