"""Field extraction from OCR text."""

from .carrier_id import CarrierIdParser

__all__ = ["CarrierIdParser"]
