"""Per-field reconciliation of OCR attempts.

Each photographed document may come back from several OCR strategies: a
dedicated recognizer (plate, VIN, DOT/MC, odometer, company) and generic
free-text OCR. This module decides which result is trusted for each
field. Precedence is expressed as an ordered chain of strategy functions
per field, evaluated until one produces a value.
"""

import logging
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Type, TypeVar, Union

from pydantic import TypeAdapter

from ..config import Config
from ..extraction.carrier_id import CarrierIdParser
from ..models.ocr_results import (
    CarrierIdResult,
    CompanyResult,
    GenericTextResult,
    OcrAttempt,
    OcrFailure,
    OdometerResult,
    PlateResult,
    VinReference,
    VinResult,
)
from ..models.reconciliation import FieldReconciliation
from ..models.schema import CarrierIdType, FieldId, IntakeRecord
from ..normalization.normalizer import DataNormalizer
from ..preprocessing.cleaner import TextCleaner
from ..validation.vin import VinValidator

logger = logging.getLogger(__name__)

T = TypeVar('T')

# A strategy reads the attempts and returns record updates, or None to defer
Strategy = Callable[[Sequence[Any], List[str]], Optional[Dict[str, Any]]]

VinDecoder = Callable[[str], Optional[VinReference]]

# Attempts may arrive in their kind-tagged dict form
ATTEMPT_ADAPTER: TypeAdapter = TypeAdapter(OcrAttempt)

# Record attributes each document owns; they are replaced together
FIELD_ATTRIBUTES: Dict[FieldId, Dict[str, Any]] = {
    FieldId.LICENSE: {'license_plate': '', 'license_region': ''},
    FieldId.COMPANY: {'company_name': ''},
    FieldId.DOTMC: {'carrier_id_type': CarrierIdType.DOT, 'carrier_id_num': ''},
    FieldId.VIN: {'vin': '', 'year': '', 'make': '', 'model': ''},
    FieldId.UNIT: {'unit_number': ''},
    FieldId.ODOMETER: {'odometer': ''},
}

PRIMARY_ATTRIBUTE: Dict[FieldId, str] = {
    FieldId.LICENSE: 'license_plate',
    FieldId.COMPANY: 'company_name',
    FieldId.DOTMC: 'carrier_id_num',
    FieldId.VIN: 'vin',
    FieldId.UNIT: 'unit_number',
    FieldId.ODOMETER: 'odometer',
}


def _results(attempts: Sequence[Any], result_type: Type[T]) -> Iterator[T]:
    return (a for a in attempts if isinstance(a, result_type))


class FieldReconciler:
    """
    Chooses one value per field from its OCR attempts.

    Precedence per field:
    - license: dedicated plate OCR only
    - vin: dedicated VIN OCR only, corrected; year/make/model from the
      OCR result, else from the VIN decoder
    - dotmc: structured DOT/MC pair, then DOT/MC raw text, then generic text
    - odometer: dedicated odometer OCR only, normalized
    - company: dedicated company OCR, then generic text
    - unit: generic text only

    Plates and VINs never fall back to generic text: free-text OCR picks
    up unrelated numbers from the background.

    The reconciler holds no per-call state and never mutates the record
    it is given, so one instance can serve concurrent sessions.
    """

    # Fields that define a generic free-text fallback
    GENERIC_FALLBACK_FIELDS = frozenset({FieldId.COMPANY, FieldId.DOTMC, FieldId.UNIT})

    def __init__(
        self,
        parser: Optional[CarrierIdParser] = None,
        vin_validator: Optional[VinValidator] = None,
        normalizer: Optional[DataNormalizer] = None,
        cleaner: Optional[TextCleaner] = None,
        vin_decoder: Optional[VinDecoder] = None,
    ):
        """
        Initialize the field reconciler.

        Args:
            parser: Carrier ID parser
            vin_validator: VIN validator/corrector
            normalizer: Value normalizer
            cleaner: Free-text cleaner
            vin_decoder: Reference lookup of year/make/model by VIN
        """
        self.normalizer = normalizer or DataNormalizer()
        self.parser = parser or CarrierIdParser()
        self.vin_validator = vin_validator or VinValidator(self.normalizer)
        self.cleaner = cleaner or TextCleaner()
        self.vin_decoder = vin_decoder
        self.logger = logging.getLogger(self.__class__.__name__)

        self.strategies: Dict[FieldId, List[Strategy]] = {
            FieldId.LICENSE: [self.plate_from_dedicated],
            FieldId.VIN: [self.vin_from_dedicated],
            FieldId.DOTMC: [
                self.carrier_id_from_pair,
                self.carrier_id_from_raw_text,
                self.carrier_id_from_generic_text,
            ],
            FieldId.ODOMETER: [self.odometer_from_dedicated],
            FieldId.COMPANY: [self.company_from_dedicated, self.company_from_generic_text],
            FieldId.UNIT: [self.unit_from_generic_text],
        }

    def reconcile_field(
        self,
        field_id: Union[FieldId, str],
        attempts: Sequence[Union[OcrAttempt, Dict[str, Any], None]],
        previous: Optional[IntakeRecord] = None
    ) -> FieldReconciliation:
        """
        Reconcile one field from its OCR attempts.

        The field's attributes are replaced as a unit. When no strategy
        produces a value they are reset to empty, and if one of the
        attempts was a failed OCR call a session diagnostic is attached.

        Args:
            field_id: Document the attempts belong to
            attempts: OCR results in the order they were obtained, as
                models or kind-tagged dicts; None entries are ignored
            previous: Record to update (the empty record when omitted)

        Returns:
            FieldReconciliation with the updated record

        Raises:
            ValueError: If field_id names no document or an attempt dict
                has an unknown kind
        """
        field = FieldId(field_id)
        previous = previous if previous is not None else IntakeRecord.empty()
        attempts = [
            ATTEMPT_ADAPTER.validate_python(a) if isinstance(a, dict) else a
            for a in attempts if a is not None
        ]
        notes: List[str] = []

        updates = None
        source = None
        for strategy in self.strategies[field]:
            updates = strategy(attempts, notes)
            if updates:
                source = strategy.__name__
                break

        found = bool(updates)
        if not found:
            updates = dict(FIELD_ATTRIBUTES[field])
            self.logger.debug(f"No value for '{field.value}' from {len(attempts)} attempt(s)")

        record = previous.updated(**updates)

        failures = list(_results(attempts, OcrFailure))
        diagnostic = None
        if failures and not found:
            diagnostic = Config.OCR_FAILURE_MESSAGE
            for failure in failures:
                self.logger.warning(f"'{field.value}' left empty after {failure.source} failed: {failure.message}")

        if field == FieldId.VIN and record.vin:
            verdict = self.vin_validator.validate(record.vin)
            if not verdict.valid:
                notes.append(f"VIN could not be auto-corrected: {verdict.error_detail}")

        refined_image = None
        if field == FieldId.ODOMETER:
            refined_image = next(
                (r.refined_image for r in _results(attempts, OdometerResult) if r.refined_image),
                None,
            )

        value = getattr(record, PRIMARY_ATTRIBUTE[field])
        self.logger.info(f"Reconciled '{field.value}': value={value!r}, source={source}")

        return FieldReconciliation(
            field_id=field,
            record=record,
            value=value,
            found=found,
            source=source,
            diagnostic=diagnostic,
            notes=notes,
            refined_image=refined_image,
        )

    def plate_from_dedicated(self, attempts: Sequence[Any], notes: List[str]) -> Optional[Dict[str, Any]]:
        """Plate number and region from the plate recognizer."""
        for result in _results(attempts, PlateResult):
            plate = self.normalizer.normalize_plate(result.plate_number)
            region = self.normalizer.normalize_region(result.region)
            if plate or region:
                return {'license_plate': plate, 'license_region': region}
        return None

    def vin_from_dedicated(self, attempts: Sequence[Any], notes: List[str]) -> Optional[Dict[str, Any]]:
        """
        Corrected VIN from the VIN recognizer, with year/make/model.

        The decoder is consulted only when the recognizer did not supply
        all of year, make and model, and only fills the missing ones.
        """
        for result in _results(attempts, VinResult):
            if not result.vin:
                continue

            vin = self.vin_validator.correct(result.vin)
            description = {
                'year': result.year or '',
                'make': result.make or '',
                'model': result.model or '',
            }

            if not result.has_full_description():
                reference = self._decode_vin(vin, notes)
                if reference is not None:
                    for key in description:
                        if not description[key]:
                            description[key] = getattr(reference, key) or ''

            return {'vin': vin, **description}
        return None

    def carrier_id_from_pair(self, attempts: Sequence[Any], notes: List[str]) -> Optional[Dict[str, Any]]:
        """Structured DOT/MC pair from the DOT/MC recognizer, DOT preferred."""
        for result in _results(attempts, CarrierIdResult):
            if result.dot or result.mc:
                parsed = self.parser.from_pair(result.dot, result.mc)
                if parsed.preferred_num:
                    return {'carrier_id_type': parsed.preferred_type, 'carrier_id_num': parsed.preferred_num}
        return None

    def carrier_id_from_raw_text(self, attempts: Sequence[Any], notes: List[str]) -> Optional[Dict[str, Any]]:
        """Unlabeled or labeled text returned by the DOT/MC recognizer."""
        for result in _results(attempts, CarrierIdResult):
            parsed = self.parser.parse(result.raw_text)
            if parsed.preferred_num:
                return {'carrier_id_type': parsed.preferred_type, 'carrier_id_num': parsed.preferred_num}
        return None

    def carrier_id_from_generic_text(self, attempts: Sequence[Any], notes: List[str]) -> Optional[Dict[str, Any]]:
        """DOT/MC parsed from generic free-text OCR."""
        for result in _results(attempts, GenericTextResult):
            parsed = self.parser.parse(self.cleaner.join_lines(result.text))
            if parsed.preferred_num:
                return {'carrier_id_type': parsed.preferred_type, 'carrier_id_num': parsed.preferred_num}
        return None

    def odometer_from_dedicated(self, attempts: Sequence[Any], notes: List[str]) -> Optional[Dict[str, Any]]:
        """Digits-only reading from the odometer recognizer."""
        for result in _results(attempts, OdometerResult):
            reading = self.normalizer.normalize_odometer_text(result.value)
            if reading:
                return {'odometer': reading}
        return None

    def company_from_dedicated(self, attempts: Sequence[Any], notes: List[str]) -> Optional[Dict[str, Any]]:
        """Company name from the company recognizer."""
        for result in _results(attempts, CompanyResult):
            name = self.normalizer.normalize_string(result.name)
            if name:
                return {'company_name': name}
        return None

    def company_from_generic_text(self, attempts: Sequence[Any], notes: List[str]) -> Optional[Dict[str, Any]]:
        """All lines of generic free text, joined."""
        for result in _results(attempts, GenericTextResult):
            name = self.cleaner.join_lines(result.text)
            if name:
                return {'company_name': name}
        return None

    def unit_from_generic_text(self, attempts: Sequence[Any], notes: List[str]) -> Optional[Dict[str, Any]]:
        """First line of generic free text."""
        for result in _results(attempts, GenericTextResult):
            unit = self.cleaner.first_line(result.text)
            if unit:
                return {'unit_number': unit}
        return None

    def _decode_vin(self, vin: str, notes: List[str]) -> Optional[VinReference]:
        if self.vin_decoder is None or len(vin) < Config.VIN_DECODE_MIN_LENGTH:
            return None
        try:
            return self.vin_decoder(vin)
        except Exception as e:
            self.logger.warning(f"VIN reference decode failed for {vin}: {e}", exc_info=True)
            notes.append("Year, make and model could not be looked up; enter them manually")
            return None
