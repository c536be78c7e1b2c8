"""Session-level reconciliation policy.

A capture session photographs some subset of the documents in wizard
order. This module runs the OCR collaborators for the captured documents
and folds their results into one intake record, including the
plate-lookup shortcut for units that already exist.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Protocol, Union

from ..config import Config
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
from ..models.reconciliation import FieldReconciliation, SessionResult
from ..models.schema import (
    CarrierIdType,
    FieldId,
    IntakeRecord,
    SessionOutcome,
    SessionState,
    number_to_text,
)
from .reconciler import FieldReconciler

logger = logging.getLogger(__name__)


class IntakeCollaborators(Protocol):
    """OCR and reference-data calls the session depends on."""

    def run_plate_ocr(self, image: Any) -> Optional[PlateResult]: ...

    def run_vin_ocr(self, image: Any) -> Optional[VinResult]: ...

    def run_carrier_id_ocr(self, image: Any) -> Optional[CarrierIdResult]: ...

    def run_odometer_ocr(self, image: Any) -> Optional[OdometerResult]: ...

    def run_company_ocr(self, image: Any) -> Optional[CompanyResult]: ...

    def run_generic_text_ocr(self, image: Any) -> Optional[str]: ...

    def lookup_equipment_by_plate_or_vin(
        self,
        vin: str,
        plate: str,
        region: str,
        company: str,
    ) -> Optional[EquipmentMatch]: ...

    def decode_vin_reference(self, vin: str) -> Optional[VinReference]: ...


def _returned_nothing(result: Any) -> bool:
    return result is None or isinstance(result, OcrFailure) or result.is_empty()


def _text(source: Optional[Dict[str, Any]], key: str) -> str:
    value = number_to_text((source or {}).get(key))
    return str(value).strip() if value is not None else ''


class SessionReconciler:
    """
    Reconciles all documents captured in a session.

    The policy depends on the explicit session state:
    - no documents: the record resets to empty and the session goes to review
    - fresh session with only the plate photographed: recognize the plate,
      look up the unit and either confirm the existing unit or continue
      the capture flow with the next document
    - existing unit awaiting its odometer: only the odometer is updated
    - otherwise: every captured document is reconciled in wizard order

    A failed OCR call never aborts the pass; the field stays empty and
    the session diagnostic is attached.
    """

    def __init__(
        self,
        collaborators: IntakeCollaborators,
        field_reconciler: Optional[FieldReconciler] = None
    ):
        """
        Initialize the session reconciler.

        Args:
            collaborators: OCR and reference-data calls
            field_reconciler: Per-field reconciler; by default one that
                decodes VINs through the collaborators
        """
        self.collaborators = collaborators
        self.field_reconciler = field_reconciler or FieldReconciler(
            vin_decoder=collaborators.decode_vin_reference
        )
        self.logger = logging.getLogger(self.__class__.__name__)

        self._dedicated: Dict[FieldId, Callable[[Any], Any]] = {
            FieldId.LICENSE: collaborators.run_plate_ocr,
            FieldId.COMPANY: collaborators.run_company_ocr,
            FieldId.DOTMC: collaborators.run_carrier_id_ocr,
            FieldId.VIN: collaborators.run_vin_ocr,
            FieldId.ODOMETER: collaborators.run_odometer_ocr,
        }

    def reconcile(
        self,
        documents: Dict[Union[FieldId, str], Any],
        state: SessionState = SessionState.FRESH,
        previous: Optional[IntakeRecord] = None
    ) -> SessionResult:
        """
        Run one reconciliation pass.

        Args:
            documents: Captured images keyed by document; empty images
                count as not captured
            state: Current session state
            previous: Record built so far (empty when omitted)

        Returns:
            SessionResult with the record, next state and next screen
        """
        captured = {FieldId(k): v for k, v in documents.items() if v}
        previous = previous if previous is not None else IntakeRecord.empty()
        state = SessionState(state)

        self.logger.info(
            f"Reconciling session: state={state.value}, "
            f"documents={[f.value for f in FieldId if f in captured]}"
        )

        if state == SessionState.AWAITING_ODOMETER_FOR_EXISTING_UNIT:
            if FieldId.ODOMETER in captured:
                return self._reconcile_odometer_only(captured[FieldId.ODOMETER], previous)
            return SessionResult(record=previous, state=state, outcome=SessionOutcome.REVIEW)

        if not captured:
            return SessionResult(record=IntakeRecord.empty(), state=state, outcome=SessionOutcome.REVIEW)

        if state == SessionState.FRESH and set(captured) == {FieldId.LICENSE}:
            return self._reconcile_lookup_first(captured[FieldId.LICENSE])

        return self._reconcile_full_capture(captured, previous)

    def reconcile_document(self, field_id: FieldId, image: Any, record: IntakeRecord) -> FieldReconciliation:
        """
        Run the OCR chain for one document and reconcile its field.

        Generic text OCR is requested only when the field has a generic
        fallback and the dedicated recognizer returned nothing at all. A
        dedicated result with unusable content (raw DOT/MC text without
        digits) does not trigger the fallback.
        """
        attempts: List[Any] = []

        dedicated = self._dedicated.get(field_id)
        if dedicated is not None:
            result = self._call(field_id.value, dedicated, image)
            attempts.append(result)
            if field_id not in FieldReconciler.GENERIC_FALLBACK_FIELDS or not _returned_nothing(result):
                return self.field_reconciler.reconcile_field(field_id, attempts, record)

        attempts.append(self._call_generic_text(image))
        return self.field_reconciler.reconcile_field(field_id, attempts, record)

    def _reconcile_lookup_first(self, image: Any) -> SessionResult:
        plate_outcome = self.reconcile_document(FieldId.LICENSE, image, IntakeRecord.empty())
        record = plate_outcome.record
        diagnostic = plate_outcome.diagnostic

        match = None
        if record.license_plate:
            try:
                match = self.collaborators.lookup_equipment_by_plate_or_vin(
                    '', record.license_plate, record.license_region, ''
                )
            except Exception as e:
                self.logger.warning(f"Equipment lookup failed: {e}", exc_info=True)
                diagnostic = Config.OCR_FAILURE_MESSAGE

        if match is not None and match.found:
            self.logger.info(f"Existing unit found for plate {record.license_plate}")
            return SessionResult(
                record=self._record_from_match(record, match),
                state=SessionState.AWAITING_ODOMETER_FOR_EXISTING_UNIT,
                outcome=SessionOutcome.CONFIRM_EXISTING_UNIT,
                existing_unit=match,
                diagnostic=diagnostic,
                notes=self._notes([plate_outcome]),
            )

        self.logger.info("No existing unit matched; continuing capture")
        return SessionResult(
            record=record,
            state=SessionState.FULL_CAPTURE,
            outcome=SessionOutcome.CONTINUE_CAPTURE,
            next_field=FieldId.COMPANY,
            diagnostic=diagnostic,
            notes=self._notes([plate_outcome]),
        )

    def _reconcile_odometer_only(self, image: Any, previous: IntakeRecord) -> SessionResult:
        outcome = self.reconcile_document(FieldId.ODOMETER, image, previous)
        return SessionResult(
            record=outcome.record,
            state=SessionState.AWAITING_ODOMETER_FOR_EXISTING_UNIT,
            outcome=SessionOutcome.REVIEW,
            diagnostic=outcome.diagnostic,
            odometer_refined_image=outcome.refined_image,
            notes=self._notes([outcome]),
        )

    def _reconcile_full_capture(self, captured: Dict[FieldId, Any], previous: IntakeRecord) -> SessionResult:
        record = previous
        outcomes: List[FieldReconciliation] = []

        for field_id in FieldId:
            if field_id not in captured:
                continue
            outcome = self.reconcile_document(field_id, captured[field_id], record)
            record = outcome.record
            outcomes.append(outcome)

        diagnostic = next((o.diagnostic for o in outcomes if o.diagnostic), None)
        refined_image = next((o.refined_image for o in outcomes if o.refined_image), None)

        self.logger.info(
            f"Full capture reconciled {len(outcomes)} document(s), "
            f"{sum(1 for o in outcomes if o.found)} with values"
        )

        return SessionResult(
            record=record,
            state=SessionState.FULL_CAPTURE,
            outcome=SessionOutcome.REVIEW,
            diagnostic=diagnostic,
            odometer_refined_image=refined_image,
            notes=self._notes(outcomes),
        )

    def _record_from_match(self, record: IntakeRecord, match: EquipmentMatch) -> IntakeRecord:
        """Pre-populate the whole record from a matched unit and its customer."""
        equipment = match.equipment or {}
        customer = match.customer or {}

        carrier_id_type = _text(customer, 'carrierIdType').lower()
        if carrier_id_type not in {t.value for t in CarrierIdType}:
            carrier_id_type = CarrierIdType.DOT

        return IntakeRecord(
            company_name=_text(customer, 'name'),
            carrier_id_type=carrier_id_type,
            carrier_id_num=_text(customer, 'carrierIdNum'),
            unit_number=_text(equipment, 'unit'),
            license_plate=record.license_plate or _text(equipment, 'licensePlateNumber'),
            license_region=record.license_region or _text(equipment, 'licenseRegion'),
            vin=_text(equipment, 'vin'),
            year=_text(equipment, 'year'),
            make=_text(equipment, 'make'),
            model=_text(equipment, 'model'),
            odometer='',
        )

    def _call(self, source: str, call: Callable[[Any], Any], image: Any) -> Any:
        """Invoke one OCR collaborator; a raised error becomes an OcrFailure."""
        try:
            return call(image)
        except Exception as e:
            self.logger.warning(f"OCR for '{source}' failed: {e}", exc_info=True)
            return OcrFailure(source=source, message=str(e))

    def _call_generic_text(self, image: Any) -> Any:
        result = self._call('text', self.collaborators.run_generic_text_ocr, image)
        if isinstance(result, OcrFailure) or result is None:
            return result
        return GenericTextResult(text=result)

    def _notes(self, outcomes: List[FieldReconciliation]) -> Dict[str, List[str]]:
        return {o.field_id.value: o.notes for o in outcomes if o.notes}
