"""Adapters from vendor OCR responses to typed results.

OCR vendors and the intake backend answer with loosely-shaped JSON: the
same value may sit at the top level, under ``data``, or in the first
element of ``results``/``predictions``. This module maps those shapes to
the typed result models so reconciliation never sees a raw dict.
"""

import logging
from typing import Any, Callable, Dict, Optional

from ..models.ocr_results import (
    CarrierIdResult,
    CompanyResult,
    EquipmentMatch,
    GenericTextResult,
    OcrFailure,
    OdometerResult,
    PlateResult,
    VinReference,
    VinResult,
)
from .cleaner import TextCleaner

logger = logging.getLogger(__name__)

# vPIC reports absent attributes with this placeholder
NOT_APPLICABLE = "Not Applicable"


def _first(data: Dict[str, Any], *keys: str) -> Any:
    """Return the first non-empty value among keys."""
    for key in keys:
        value = data.get(key)
        if value is not None and str(value).strip():
            return value
    return None


def _first_item(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    items = data.get(key)
    if isinstance(items, list) and items and isinstance(items[0], dict):
        return items[0]
    return {}


class PayloadReader:
    """
    Maps raw OCR payloads to typed OCR results.

    Every reader accepts ``None`` and returns an empty result for it, so a
    collaborator that answered with nothing is simply "no value".
    """

    def __init__(self, cleaner: Optional[TextCleaner] = None):
        """
        Initialize the payload reader.

        Args:
            cleaner: Text cleaner used for generic OCR payloads
        """
        self.cleaner = cleaner or TextCleaner()
        self.logger = logging.getLogger(self.__class__.__name__)
        self._readers: Dict[str, Callable[[Any], Any]] = {
            'plate': self.read_plate,
            'vin': self.read_vin,
            'carrier_id': self.read_carrier_id,
            'odometer': self.read_odometer,
            'company': self.read_company,
            'text': self.read_text,
            'failure': self.read_failure,
        }

    def read(self, kind: str, payload: Any):
        """
        Read a payload of the given result kind.

        Args:
            kind: Result kind ('plate', 'vin', 'carrier_id', 'odometer',
                'company', 'text' or 'failure')
            payload: Raw payload

        Returns:
            Typed OCR result

        Raises:
            ValueError: If the kind is unknown or the payload is not an object
        """
        if kind not in self._readers:
            raise ValueError(f"Unknown OCR result kind: {kind}")
        if payload is not None and kind != 'text' and not isinstance(payload, dict):
            raise ValueError(f"Payload for '{kind}' must be an object, got {type(payload).__name__}")
        return self._readers[kind](payload)

    def read_plate(self, payload: Optional[Dict[str, Any]]) -> PlateResult:
        """
        Read a plate recognition payload.

        Handles the plate-reader shape (``results[0].plate`` with a
        ``region.code`` such as ``us-ca``) and the flat backend shape
        (``licensePlate``/``licensePlateNumber`` + ``licenseRegion``).
        """
        if not payload:
            return PlateResult()

        result = _first_item(payload, 'results')
        if result:
            plate = str(result.get('plate') or '').upper()
            region = result.get('region') or {}
            code = str(region.get('code') or '') if isinstance(region, dict) else str(region)
            parts = code.split('-')
            state = parts[1].upper() if len(parts) >= 2 else ''
            return PlateResult(plate_number=plate, region=state)

        region = _first(payload, 'licenseRegion', 'region')
        if isinstance(region, dict):
            region = region.get('code')
        return PlateResult(
            plate_number=_first(payload, 'licensePlate', 'licensePlateNumber', 'plate_number', 'plate'),
            region=region,
        )

    def read_vin(self, payload: Optional[Dict[str, Any]]) -> VinResult:
        """Read a VIN recognition payload, top-level or nested under ``data``."""
        if not payload:
            return VinResult()

        nested = payload.get('data') if isinstance(payload.get('data'), dict) else {}

        def pick(key: str):
            value = payload.get(key)
            return value if value is not None else nested.get(key)

        vin = pick('vin')
        return VinResult(
            vin=str(vin).upper() if vin is not None else None,
            year=pick('year'),
            make=pick('make'),
            model=pick('model'),
        )

    def read_carrier_id(self, payload: Optional[Dict[str, Any]]) -> CarrierIdResult:
        """
        Read a DOT/MC recognition payload.

        Structured values are looked up at the top level, then in
        ``results[0]`` and ``predictions[0]``. A combined ``dotOrMc``
        string is kept as raw text for the parser.
        """
        if not payload:
            return CarrierIdResult()

        sources = [payload, _first_item(payload, 'results'), _first_item(payload, 'predictions')]
        dot = mc = None
        for source in sources:
            dot = dot or _first(source, 'USDOT', 'usdot', 'dot')
            mc = mc or _first(source, 'MC', 'mc')

        return CarrierIdResult(
            dot=dot,
            mc=mc,
            raw_text=_first(payload, 'dotOrMc', 'raw_text', 'rawText'),
        )

    def read_odometer(self, payload: Optional[Dict[str, Any]]) -> OdometerResult:
        """Read an odometer payload (``odometer`` + optional ``croppedImage``)."""
        if not payload:
            return OdometerResult()
        return OdometerResult(
            value=_first(payload, 'odometer', 'value'),
            refined_image=_first(payload, 'croppedImage', 'refined_image'),
        )

    def read_company(self, payload: Optional[Dict[str, Any]]) -> CompanyResult:
        """Read a company name payload."""
        if not payload:
            return CompanyResult()
        return CompanyResult(name=_first(payload, 'companyName', 'name'))

    def read_text(self, payload: Any) -> GenericTextResult:
        """
        Read a generic OCR payload.

        Raises:
            ValueError: If the payload has no recognizable text structure
        """
        return GenericTextResult(text=self.cleaner.clean(payload))

    def read_failure(self, payload: Optional[Dict[str, Any]]) -> OcrFailure:
        """Read a recorded collaborator failure."""
        payload = payload or {}
        return OcrFailure(
            source=str(payload.get('source') or 'unknown'),
            message=str(payload.get('message') or ''),
        )

    def read_vin_reference(self, payload: Optional[Dict[str, Any]]) -> Optional[VinReference]:
        """
        Read a vPIC ``DecodeVinValues`` response.

        Args:
            payload: Response JSON with a ``Results`` list

        Returns:
            Decoded year/make/model, or None when the response has no result
        """
        if not payload:
            return None
        result = _first_item(payload, 'Results')
        if not result:
            return None

        def get(*keys: str):
            for key in keys:
                value = result.get(key)
                if value and str(value).strip() and str(value) != NOT_APPLICABLE:
                    return str(value).strip()
            return None

        reference = VinReference(
            year=get('ModelYear', 'Year'),
            make=get('Make', 'Manufacturer'),
            model=get('Model'),
        )
        self.logger.debug(f"Decoded VIN reference: {reference}")
        return reference

    def read_equipment_match(self, payload: Optional[Dict[str, Any]]) -> EquipmentMatch:
        """Read an equipment lookup response (``equipment`` + ``customer``)."""
        if not payload:
            return EquipmentMatch()
        return EquipmentMatch(
            equipment=payload.get('equipment') or None,
            customer=payload.get('customer') or None,
        )
