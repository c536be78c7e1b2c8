"""Typed OCR results and reference data consumed by reconciliation.

Each OCR collaborator returns its own result shape. They are tagged with
a ``kind`` literal so a list of attempts for one field can be a single
discriminated union.
"""

from typing import Annotated, Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator

from .schema import number_to_text


class _OcrResultBase(BaseModel):
    """Common coercion for loosely-typed vendor values."""

    @field_validator('*', mode='before')
    @classmethod
    def stringify(cls, v):
        v = number_to_text(v)
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    def is_empty(self) -> bool:
        """Whether the recognizer returned no value at all."""
        return not any(v for k, v in self if k != 'kind')


class PlateResult(_OcrResultBase):
    """Dedicated license plate recognition result."""

    kind: Literal["plate"] = "plate"
    plate_number: Optional[str] = Field(None, description="Plate number")
    region: Optional[str] = Field(None, description="Plate region code")


class VinResult(_OcrResultBase):
    """Dedicated VIN recognition result, optionally with year/make/model."""

    kind: Literal["vin"] = "vin"
    vin: Optional[str] = Field(None, description="Recognized VIN")
    year: Optional[str] = Field(None, description="Model year")
    make: Optional[str] = Field(None, description="Vehicle make")
    model: Optional[str] = Field(None, description="Vehicle model")

    def has_full_description(self) -> bool:
        """Whether year, make and model were all supplied."""
        return bool(self.year and self.make and self.model)


class CarrierIdResult(_OcrResultBase):
    """Dedicated DOT/MC recognition result: structured pair or raw text."""

    kind: Literal["carrier_id"] = "carrier_id"
    dot: Optional[str] = Field(None, description="DOT number")
    mc: Optional[str] = Field(None, description="MC number")
    raw_text: Optional[str] = Field(None, description="Unstructured DOT/MC text")


class OdometerResult(_OcrResultBase):
    """Dedicated odometer recognition result."""

    kind: Literal["odometer"] = "odometer"
    value: Optional[str] = Field(None, description="Odometer reading text")
    refined_image: Optional[str] = Field(None, description="Cropped reading image (base64)")


class CompanyResult(_OcrResultBase):
    """Dedicated company name recognition result."""

    kind: Literal["company"] = "company"
    name: Optional[str] = Field(None, description="Company name")


class GenericTextResult(_OcrResultBase):
    """Free-text OCR of a whole photo."""

    kind: Literal["text"] = "text"
    text: Optional[str] = Field(None, description="Recognized text")


class OcrFailure(BaseModel):
    """An OCR collaborator raised instead of returning a result."""

    kind: Literal["failure"] = "failure"
    source: str = Field(..., description="Collaborator that failed")
    message: str = Field("", description="Failure message")


OcrAttempt = Annotated[
    Union[
        PlateResult,
        VinResult,
        CarrierIdResult,
        OdometerResult,
        CompanyResult,
        GenericTextResult,
        OcrFailure,
    ],
    Field(discriminator='kind'),
]


class VinReference(_OcrResultBase):
    """Year/make/model decoded from a VIN by reference data."""

    year: Optional[str] = Field(None, description="Model year")
    make: Optional[str] = Field(None, description="Vehicle make")
    model: Optional[str] = Field(None, description="Vehicle model")


class EquipmentMatch(BaseModel):
    """
    Existing unit found by the equipment lookup.

    Attributes:
        equipment: Equipment document (unit, vin, plate, year/make/model)
        customer: Owning customer document (name, carrier ID)
    """

    equipment: Optional[Dict[str, Any]] = Field(None, description="Matched equipment")
    customer: Optional[Dict[str, Any]] = Field(None, description="Matched customer")

    @property
    def found(self) -> bool:
        return bool(self.equipment)
