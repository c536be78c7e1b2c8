"""VIN and intake record validation."""

from .vin import VinValidator
from .validator import DataValidator

__all__ = ["VinValidator", "DataValidator"]
