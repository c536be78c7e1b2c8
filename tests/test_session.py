"""Tests for session-level reconciliation policy."""

import logging

import pytest
from intake_ocr.config import Config
from intake_ocr.models.ocr_results import (
    CarrierIdResult,
    CompanyResult,
    EquipmentMatch,
    OdometerResult,
    PlateResult,
    VinReference,
    VinResult,
)
from intake_ocr.models.schema import (
    CarrierIdType,
    FieldId,
    IntakeRecord,
    SessionOutcome,
    SessionState,
)
from intake_ocr.reconciliation.session import SessionReconciler

VALID_VIN = "1HGCM82633A004352"


class FakeCollaborators:
    """Canned collaborator responses; an Exception response is raised."""

    def __init__(self, **responses):
        self.responses = responses
        self.calls = []

    def _respond(self, name, *args):
        self.calls.append((name, args))
        response = self.responses.get(name)
        if isinstance(response, Exception):
            raise response
        return response

    def called(self, name):
        return [args for call, args in self.calls if call == name]

    def run_plate_ocr(self, image):
        return self._respond('run_plate_ocr', image)

    def run_vin_ocr(self, image):
        return self._respond('run_vin_ocr', image)

    def run_carrier_id_ocr(self, image):
        return self._respond('run_carrier_id_ocr', image)

    def run_odometer_ocr(self, image):
        return self._respond('run_odometer_ocr', image)

    def run_company_ocr(self, image):
        return self._respond('run_company_ocr', image)

    def run_generic_text_ocr(self, image):
        return self._respond('run_generic_text_ocr', image)

    def lookup_equipment_by_plate_or_vin(self, vin, plate, region, company):
        return self._respond('lookup_equipment_by_plate_or_vin', vin, plate, region, company)

    def decode_vin_reference(self, vin):
        return self._respond('decode_vin_reference', vin)


class TestSessionReconciler:
    """Test suite for SessionReconciler class."""

    @pytest.fixture
    def match(self):
        """Fixture to provide an equipment lookup hit."""
        return EquipmentMatch(
            equipment={
                "unit": "42",
                "licensePlateNumber": "7XYZ123",
                "licenseRegion": "CA",
                "vin": VALID_VIN,
                "year": 2003,
                "make": "HONDA",
                "model": "ACCORD",
            },
            customer={"name": "MILES X LLC", "carrierIdType": "MC", "carrierIdNum": "144716"},
        )

    def test_no_documents(self):
        """Test an empty session resets to an empty record."""
        collaborators = FakeCollaborators()
        previous = IntakeRecord(company_name="OLD CO")

        result = SessionReconciler(collaborators).reconcile({}, previous=previous)

        assert result.record == IntakeRecord.empty()
        assert result.outcome == SessionOutcome.REVIEW
        assert result.state == SessionState.FRESH
        assert result.diagnostic is None
        assert collaborators.calls == []

    def test_empty_images_count_as_missing(self):
        """Test documents without an image are not captured."""
        collaborators = FakeCollaborators()

        result = SessionReconciler(collaborators).reconcile({"license": None, "vin": b""})

        assert result.record == IntakeRecord.empty()
        assert collaborators.calls == []

    def test_license_only_existing_unit(self, match):
        """Test a plate lookup hit pre-populates the record."""
        collaborators = FakeCollaborators(
            run_plate_ocr=PlateResult(plate_number="7xyz123", region="us-ca"),
            lookup_equipment_by_plate_or_vin=match,
        )

        result = SessionReconciler(collaborators).reconcile({FieldId.LICENSE: b"plate"})

        assert collaborators.called('lookup_equipment_by_plate_or_vin') == [("", "7XYZ123", "CA", "")]
        assert result.outcome == SessionOutcome.CONFIRM_EXISTING_UNIT
        assert result.state == SessionState.AWAITING_ODOMETER_FOR_EXISTING_UNIT
        assert result.existing_unit == match

        record = result.record
        assert record.company_name == "MILES X LLC"
        assert record.carrier_id_type == CarrierIdType.MC
        assert record.carrier_id_num == "144716"
        assert record.unit_number == "42"
        assert record.license_plate == "7XYZ123"
        assert record.vin == VALID_VIN
        assert record.year == "2003"
        assert record.odometer == ""

    def test_license_only_unknown_carrier_type(self, match):
        """Test an unrecognized customer carrier type falls back to DOT."""
        match.customer["carrierIdType"] = "intrastate"
        collaborators = FakeCollaborators(
            run_plate_ocr=PlateResult(plate_number="7XYZ123", region="CA"),
            lookup_equipment_by_plate_or_vin=match,
        )

        result = SessionReconciler(collaborators).reconcile({"license": b"plate"})

        assert result.record.carrier_id_type == CarrierIdType.DOT

    def test_license_only_no_match(self):
        """Test a lookup miss continues the capture flow."""
        collaborators = FakeCollaborators(
            run_plate_ocr=PlateResult(plate_number="7XYZ123", region="CA"),
            lookup_equipment_by_plate_or_vin=EquipmentMatch(),
        )

        result = SessionReconciler(collaborators).reconcile({"license": b"plate"})

        assert result.outcome == SessionOutcome.CONTINUE_CAPTURE
        assert result.state == SessionState.FULL_CAPTURE
        assert result.next_field == FieldId.COMPANY
        assert result.record.license_plate == "7XYZ123"
        assert result.existing_unit is None

    def test_license_only_plate_ocr_fails(self):
        """Test a failed plate read skips the lookup and reports it."""
        collaborators = FakeCollaborators(run_plate_ocr=RuntimeError("camera blur"))

        result = SessionReconciler(collaborators).reconcile({"license": b"plate"})

        assert result.outcome == SessionOutcome.CONTINUE_CAPTURE
        assert result.diagnostic == Config.OCR_FAILURE_MESSAGE
        assert result.record.license_plate == ""
        assert collaborators.called('lookup_equipment_by_plate_or_vin') == []
        assert collaborators.called('run_generic_text_ocr') == []

    def test_license_only_lookup_fails(self):
        """Test a failed lookup still continues the capture flow."""
        collaborators = FakeCollaborators(
            run_plate_ocr=PlateResult(plate_number="7XYZ123", region="CA"),
            lookup_equipment_by_plate_or_vin=ConnectionError("backend unavailable"),
        )

        result = SessionReconciler(collaborators).reconcile({"license": b"plate"})

        assert result.outcome == SessionOutcome.CONTINUE_CAPTURE
        assert result.diagnostic == Config.OCR_FAILURE_MESSAGE
        assert result.record.license_plate == "7XYZ123"

    def test_awaiting_odometer(self, match):
        """Test only the odometer changes for an existing unit."""
        previous = IntakeRecord(unit_number="42", vin=VALID_VIN, odometer="")
        collaborators = FakeCollaborators(
            run_odometer_ocr=OdometerResult(value="34,672 km", refined_image="aGVsbG8="),
        )

        result = SessionReconciler(collaborators).reconcile(
            {"license": b"plate", "odometer": b"odo"},
            state=SessionState.AWAITING_ODOMETER_FOR_EXISTING_UNIT,
            previous=previous,
        )

        assert result.record.odometer == "34672"
        assert result.record.unit_number == "42"
        assert result.record.vin == VALID_VIN
        assert result.odometer_refined_image == "aGVsbG8="
        assert result.outcome == SessionOutcome.REVIEW
        assert result.state == SessionState.AWAITING_ODOMETER_FOR_EXISTING_UNIT
        assert collaborators.called('run_plate_ocr') == []

    def test_awaiting_without_odometer(self):
        """Test an existing unit keeps its record until the odometer arrives."""
        previous = IntakeRecord(unit_number="42")
        collaborators = FakeCollaborators()

        result = SessionReconciler(collaborators).reconcile(
            {}, state="awaiting_odometer_for_existing_unit", previous=previous
        )

        assert result.record == previous
        assert result.outcome == SessionOutcome.REVIEW
        assert collaborators.calls == []

    def test_full_capture(self):
        """Test every captured document is reconciled in order."""
        collaborators = FakeCollaborators(
            run_plate_ocr=PlateResult(plate_number="7XYZ123", region="CA"),
            run_company_ocr=CompanyResult(name="MILES X LLC"),
            run_carrier_id_ocr=CarrierIdResult(dot="3916245", mc="144716"),
            run_vin_ocr=VinResult(vin=VALID_VIN),
            run_generic_text_ocr="UNIT 42\nFLEET",
            run_odometer_ocr=OdometerResult(value="53193"),
            decode_vin_reference=VinReference(year="2003", make="HONDA", model="ACCORD"),
        )
        documents = {
            "odometer": b"odo",
            "unit": b"unit",
            "vin": b"vin",
            "dotmc": b"dotmc",
            "company": b"company",
            "license": b"plate",
        }

        result = SessionReconciler(collaborators).reconcile(documents, state=SessionState.FULL_CAPTURE)

        record = result.record
        assert record.license_plate == "7XYZ123"
        assert record.company_name == "MILES X LLC"
        assert record.carrier_id_type == CarrierIdType.DOT
        assert record.carrier_id_num == "3916245"
        assert record.vin == VALID_VIN
        assert record.make == "HONDA"
        assert record.unit_number == "UNIT 42"
        assert record.odometer == "53193"
        assert result.outcome == SessionOutcome.REVIEW
        assert result.state == SessionState.FULL_CAPTURE
        assert result.diagnostic is None

        ordered = [name for name, _ in collaborators.calls if name != 'decode_vin_reference']
        assert ordered == [
            'run_plate_ocr', 'run_company_ocr', 'run_carrier_id_ocr',
            'run_vin_ocr', 'run_generic_text_ocr', 'run_odometer_ocr',
        ]

    def test_generic_text_only_when_needed(self):
        """Test free-text OCR runs only after an empty dedicated result."""
        collaborators = FakeCollaborators(
            run_company_ocr=CompanyResult(),
            run_generic_text_ocr="MILES X\nLLC",
        )

        result = SessionReconciler(collaborators).reconcile(
            {"company": b"company"}, state=SessionState.FULL_CAPTURE
        )

        assert result.record.company_name == "MILES X LLC"
        assert collaborators.called('run_generic_text_ocr') == [(b"company",)]

    def test_generic_text_never_used_for_vin(self):
        """Test an empty VIN read does not fall back to free text."""
        collaborators = FakeCollaborators(run_vin_ocr=VinResult(), run_generic_text_ocr=VALID_VIN)

        result = SessionReconciler(collaborators).reconcile(
            {"vin": b"vin"}, state=SessionState.FULL_CAPTURE
        )

        assert result.record.vin == ""
        assert collaborators.called('run_generic_text_ocr') == []

    def test_vin_ocr_failure(self):
        """Test a failed VIN read leaves the field empty with a diagnostic."""
        collaborators = FakeCollaborators(
            run_vin_ocr=TimeoutError("vin service timeout"),
            run_odometer_ocr=OdometerResult(value="120455"),
        )
        previous = IntakeRecord(vin=VALID_VIN, company_name="MILES X LLC")

        result = SessionReconciler(collaborators).reconcile(
            {"vin": b"vin", "odometer": b"odo"},
            state=SessionState.FULL_CAPTURE,
            previous=previous,
        )

        assert result.record.vin == ""
        assert result.record.company_name == "MILES X LLC"
        assert result.record.odometer == "120455"
        assert result.diagnostic == Config.OCR_FAILURE_MESSAGE

    def test_fresh_with_several_documents(self):
        """Test the lookup shortcut applies only to a lone plate photo."""
        collaborators = FakeCollaborators(
            run_plate_ocr=PlateResult(plate_number="7XYZ123", region="CA"),
            run_odometer_ocr=OdometerResult(value="100"),
        )

        result = SessionReconciler(collaborators).reconcile({"license": b"plate", "odometer": b"odo"})

        assert result.outcome == SessionOutcome.REVIEW
        assert result.state == SessionState.FULL_CAPTURE
        assert collaborators.called('lookup_equipment_by_plate_or_vin') == []
        assert result.record.odometer == "100"

    def test_notes_collected_per_field(self):
        """Test field notes surface on the session result."""
        collaborators = FakeCollaborators(
            run_vin_ocr=VinResult(vin=VALID_VIN),
            decode_vin_reference=RuntimeError("reference service down"),
        )

        result = SessionReconciler(collaborators).reconcile(
            {"vin": b"vin"}, state=SessionState.FULL_CAPTURE
        )

        assert result.record.vin == VALID_VIN
        assert result.notes == {
            "vin": ["Year, make and model could not be looked up; enter them manually"]
        }

    def test_existing_unit_float_year(self, match):
        """Test numeric equipment values are copied without a fraction."""
        match.equipment["year"] = 2003.0
        collaborators = FakeCollaborators(
            run_plate_ocr=PlateResult(plate_number="7XYZ123", region="CA"),
            lookup_equipment_by_plate_or_vin=match,
        )

        result = SessionReconciler(collaborators).reconcile({"license": b"plate"})

        assert result.record.year == "2003"

    def test_carrier_id_raw_text_without_digits(self):
        """Test unusable raw DOT/MC text does not trigger free-text OCR."""
        collaborators = FakeCollaborators(
            run_carrier_id_ocr=CarrierIdResult(raw_text="N/A"),
            run_generic_text_ocr="US DOT 3916245",
        )

        result = SessionReconciler(collaborators).reconcile(
            {"dotmc": b"dotmc"}, state=SessionState.FULL_CAPTURE
        )

        assert result.record.carrier_id_num == ""
        assert collaborators.called('run_generic_text_ocr') == []

    def test_carrier_id_empty_result_falls_back(self):
        """Test an empty or failed DOT/MC read falls back to free text."""
        for response in [CarrierIdResult(), None, RuntimeError("timeout")]:
            collaborators = FakeCollaborators(
                run_carrier_id_ocr=response,
                run_generic_text_ocr="MILES X LLC\nUS DOT 3916245",
            )

            result = SessionReconciler(collaborators).reconcile(
                {"dotmc": b"dotmc"}, state=SessionState.FULL_CAPTURE
            )

            assert result.record.carrier_id_type == CarrierIdType.DOT
            assert result.record.carrier_id_num == "3916245"
            assert result.diagnostic is None
            assert collaborators.called('run_generic_text_ocr') == [(b"dotmc",)]

    def test_fallback_field_reconciled_once(self, caplog):
        """Test a document with a free-text fallback is reconciled in one pass."""
        collaborators = FakeCollaborators(
            run_company_ocr=RuntimeError("timeout"),
            run_generic_text_ocr="MILES X LLC",
        )

        with caplog.at_level(logging.DEBUG):
            result = SessionReconciler(collaborators).reconcile(
                {"company": b"company"}, state=SessionState.FULL_CAPTURE
            )

        assert result.record.company_name == "MILES X LLC"
        reconciled = [r for r in caplog.records if r.getMessage().startswith("Reconciled 'company'")]
        assert len(reconciled) == 1
