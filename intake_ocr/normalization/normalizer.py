"""Data normalization utilities.

This module handles normalization of raw OCR readings into the plain
string formats stored on the intake record. Every function is total:
``None`` and empty input yield an empty string.
"""

import re
import logging
from typing import Optional

from ..extraction.patterns import COMPILED_PATTERNS

logger = logging.getLogger(__name__)


class DataNormalizer:
    """
    Normalizes raw OCR readings into standardized formats.

    Handles:
    - Odometer readings (unit suffixes, thousands separators)
    - VIN and license plate text (case, whitespace)
    - Region codes and generic strings
    """

    def __init__(self):
        """Initialize the data normalizer."""
        self.patterns = COMPILED_PATTERNS
        self.logger = logging.getLogger(self.__class__.__name__)

    def normalize_odometer_text(self, raw: Optional[str]) -> str:
        """
        Normalize an odometer reading to digits only.

        Handles:
        - Unit suffix removal (34672 km -> 34672, 1200 Miles -> 1200)
        - Comma removal (34,672 -> 34672)
        - Label and noise removal (ODO 53193 -> 53193)

        Args:
            raw: Raw odometer reading

        Returns:
            Digits-only reading, or empty string
        """
        if not raw or not isinstance(raw, str):
            return ''

        text = raw
        for pattern in self.patterns['odometer_unit']:
            text = pattern.sub('', text)

        text = re.sub(r'[^\d,]', '', text)
        normalized = text.replace(',', '').strip()

        self.logger.debug(f"Normalized odometer: {raw!r} -> {normalized!r}")
        return normalized

    def normalize_vin_text(self, raw: Optional[str]) -> str:
        """Trim, uppercase and strip all whitespace from a VIN reading."""
        if not raw or not isinstance(raw, str):
            return ''
        return re.sub(r'\s+', '', raw.strip().upper())

    def normalize_plate(self, raw: Optional[str]) -> str:
        """
        Normalize a license plate.

        Args:
            raw: Raw plate reading

        Returns:
            Uppercase plate with whitespace removed
        """
        if not raw:
            return ''
        return re.sub(r'\s+', '', str(raw).upper())

    def normalize_region(self, raw: Optional[str]) -> str:
        """
        Normalize a plate region to its two-letter code.

        Accepts bare codes ("ca") and vendor codes ("us-ca"). Anything
        that does not reduce to two letters is dropped.
        """
        if not raw:
            return ''
        code = str(raw).strip().upper().split('-')[-1]
        if re.fullmatch(r'[A-Z]{2}', code):
            return code
        self.logger.debug(f"Discarding region {raw!r}")
        return ''

    def normalize_string(self, value: Optional[str]) -> str:
        """
        Normalize generic string field.

        Removes extra whitespace but preserves single spaces.

        Args:
            value: Raw string value

        Returns:
            Normalized string, or empty string
        """
        if not value:
            return ''
        return re.sub(r'\s+', ' ', str(value).strip())
