"""Pydantic models for reconciliation outcomes."""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from .ocr_results import EquipmentMatch
from .schema import FieldId, IntakeRecord, SessionOutcome, SessionState


class FieldReconciliation(BaseModel):
    """
    Outcome of reconciling one photographed document.

    Attributes:
        field_id: Document that was reconciled
        record: Record with this field's attributes replaced
        value: Primary value of the field after reconciliation
        found: Whether any strategy produced a value
        source: Name of the strategy that produced the value
        diagnostic: Session-level message when an OCR call failed
        notes: Field-level remarks (e.g. VIN left uncorrected)
        refined_image: Cropped reading image returned with an odometer result
    """

    field_id: FieldId = Field(..., description="Reconciled document")
    record: IntakeRecord = Field(..., description="Updated record")
    value: str = Field("", description="Primary field value")
    found: bool = Field(False, description="Whether a value was produced")
    source: Optional[str] = Field(None, description="Winning strategy")
    diagnostic: Optional[str] = Field(None, description="Session diagnostic")
    notes: List[str] = Field(default_factory=list, description="Field remarks")
    refined_image: Optional[str] = Field(None, description="Odometer crop (base64)")


class SessionResult(BaseModel):
    """
    Outcome of a session-level reconciliation pass.

    Attributes:
        record: Reconciled intake record
        state: Session state to carry into the next pass
        outcome: Screen the caller should show next
        next_field: First document still to capture when continuing
        diagnostic: Message to show when some OCR calls failed
        existing_unit: Equipment matched by the plate lookup
        odometer_refined_image: Cropped odometer image for display
        notes: Field remarks keyed by document
    """

    record: IntakeRecord = Field(..., description="Reconciled record")
    state: SessionState = Field(..., description="Next session state")
    outcome: SessionOutcome = Field(..., description="Next screen")
    next_field: Optional[FieldId] = Field(None, description="Next document to capture")
    diagnostic: Optional[str] = Field(None, description="Session diagnostic")
    existing_unit: Optional[EquipmentMatch] = Field(None, description="Matched unit")
    odometer_refined_image: Optional[str] = Field(None, description="Odometer crop (base64)")
    notes: Dict[str, List[str]] = Field(default_factory=dict, description="Remarks by document")
