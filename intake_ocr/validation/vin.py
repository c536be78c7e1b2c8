"""VIN validation and OCR error correction.

This module implements the ISO 3779 check-digit rules for 17-character
vehicle identification numbers, and a bounded single-character search
that repairs the typical OCR misread of a VIN photo.
"""

import logging
from typing import Dict, List, Optional

from ..extraction.patterns import COMPILED_PATTERNS
from ..models.schema import VinErrorKind, VinValidationResult
from ..normalization.normalizer import DataNormalizer

logger = logging.getLogger(__name__)

VIN_LENGTH = 17
CHECK_DIGIT_POSITION = 8

# ISO 3779 transliteration; I, O and Q never appear in a VIN
TRANSLITERATION: Dict[str, int] = {
    **{str(digit): digit for digit in range(10)},
    'A': 1, 'B': 2, 'C': 3, 'D': 4, 'E': 5, 'F': 6, 'G': 7, 'H': 8,
    'J': 1, 'K': 2, 'L': 3, 'M': 4, 'N': 5, 'P': 7, 'R': 9,
    'S': 2, 'T': 3, 'U': 4, 'V': 5, 'W': 6, 'X': 7, 'Y': 8, 'Z': 9,
}

# Position weights; the check digit position weighs 0
WEIGHTS = (8, 7, 6, 5, 4, 3, 2, 10, 0, 9, 8, 7, 6, 5, 4, 3, 2)

# Common OCR confusions, letter to digit and digit to letter
CONFUSABLES: Dict[str, str] = {
    'I': '1', '1': 'I',
    'O': '0', '0': 'O',
    'Q': '0',
    'S': '5', '5': 'S',
    'B': '8', '8': 'B',
    'Z': '2', '2': 'Z',
    'G': '6', '6': 'G',
}

CHECK_CHARACTERS = tuple('0123456789X')


class VinValidator:
    """
    Validates and corrects VINs.

    Neither operation raises: validation returns a verdict carrying a
    user-facing message, correction returns a best-effort string.
    """

    def __init__(self, normalizer: Optional[DataNormalizer] = None):
        """
        Initialize the VIN validator.

        Args:
            normalizer: Normalizer used to clean raw VIN text
        """
        self.normalizer = normalizer or DataNormalizer()
        self.patterns = COMPILED_PATTERNS
        self.logger = logging.getLogger(self.__class__.__name__)

    def compute_check_digit(self, vin: str) -> Optional[str]:
        """
        Compute the expected check character of a 17-character VIN.

        Args:
            vin: Uppercase 17-character VIN

        Returns:
            '0'-'9' or 'X', or None if the VIN has the wrong length or
            an untransliterable character
        """
        if not vin or len(vin) != VIN_LENGTH:
            return None

        total = 0
        for position, char in enumerate(vin):
            if position == CHECK_DIGIT_POSITION:
                continue
            value = TRANSLITERATION.get(char)
            if value is None:
                return None
            total += value * WEIGHTS[position]

        remainder = total % 11
        return 'X' if remainder == 10 else str(remainder)

    def validate(self, raw: Optional[str]) -> VinValidationResult:
        """
        Validate a VIN.

        Checks, in order: length, excluded characters (I/O/Q), character
        set, check digit.

        Args:
            raw: VIN text in any case, possibly with whitespace

        Returns:
            VinValidationResult with the first failed check, if any
        """
        vin = self.normalizer.normalize_vin_text(raw)

        if len(vin) != VIN_LENGTH:
            detail = (
                'VIN is required' if not vin
                else f'VIN must be {VIN_LENGTH} characters (got {len(vin)})'
            )
            return VinValidationResult(
                valid=False,
                error_kind=VinErrorKind.LENGTH_MISMATCH,
                error_detail=detail,
                expected=str(VIN_LENGTH),
                actual=str(len(vin)),
            )

        excluded = self.patterns['vin_excluded'][0].search(vin)
        if excluded:
            return VinValidationResult(
                valid=False,
                error_kind=VinErrorKind.EXCLUDED_CHARACTER,
                error_detail='VIN cannot contain I, O, or Q',
                actual=excluded.group(0),
            )

        if not self.patterns['vin_charset'][0].match(vin):
            bad = next(c for c in vin if c not in TRANSLITERATION)
            return VinValidationResult(
                valid=False,
                error_kind=VinErrorKind.INVALID_CHARACTER,
                error_detail='VIN can only contain letters A-H, J-N, P-R, S-Z and digits 0-9',
                actual=bad,
            )

        expected = self.compute_check_digit(vin)
        actual = vin[CHECK_DIGIT_POSITION]
        if actual != expected:
            return VinValidationResult(
                valid=False,
                error_kind=VinErrorKind.CHECK_DIGIT_MISMATCH,
                error_detail=f'Check digit invalid (expected {expected}, got {actual}). Please verify.',
                expected=expected,
                actual=actual,
            )

        return VinValidationResult(valid=True)

    def is_valid(self, raw: Optional[str]) -> bool:
        return self.validate(raw).valid

    def correct(self, raw: Optional[str]) -> str:
        """
        Repair common OCR errors in a VIN.

        1. Blanket substitution I->1, O->0, Q->0.
        2. Single-character substitution at each position from the
           confusable table; at the check digit position every check
           character is tried as well.

        Args:
            raw: VIN text as recognized

        Returns:
            The first candidate that validates, otherwise the normalized
            input unchanged. Inputs that are not 17 characters long are
            returned normalized without any attempt.
        """
        vin = self.normalizer.normalize_vin_text(raw)
        if len(vin) != VIN_LENGTH:
            return vin

        replaced = vin.replace('I', '1').replace('O', '0').replace('Q', '0')
        if self.is_valid(replaced):
            if replaced != vin:
                self.logger.debug(f"Corrected VIN by substitution: {vin} -> {replaced}")
            return replaced

        bases = [vin] if replaced == vin else [vin, replaced]
        for position in range(VIN_LENGTH):
            for base in bases:
                fixed = self._correct_at(base, position)
                if fixed:
                    self.logger.debug(f"Corrected VIN at position {position}: {vin} -> {fixed}")
                    return fixed

        self.logger.info(f"Could not auto-correct VIN {vin}")
        return vin

    def _correct_at(self, vin: str, position: int) -> Optional[str]:
        """Try each substitution at one position; return the first valid VIN."""
        for alternative in self._alternatives(vin[position], position):
            candidate = vin[:position] + alternative + vin[position + 1:]
            if self.is_valid(candidate):
                return candidate
        return None

    def _alternatives(self, char: str, position: int) -> List[str]:
        alternatives = []
        if char in CONFUSABLES:
            alternatives.append(CONFUSABLES[char])
        if position == CHECK_DIGIT_POSITION:
            alternatives.extend(c for c in CHECK_CHARACTERS if c != char and c not in alternatives)
        return alternatives
