"""DOT/MC carrier identifier extraction.

This module classifies free OCR text into a DOT or MC number. Carrier
documents print these in inconsistent ways: labeled ("US DOT 3916245
MC 1447165"), bare digits, or two numbers run together when OCR reads
adjacent stickers as one token.
"""

import logging
import re
from typing import Optional

from ..models.schema import CarrierIdType, ParsedCarrierId
from .patterns import COMPILED_PATTERNS, DOT_LENGTH, MC_MAX_LENGTH, MC_MIN_LENGTH

logger = logging.getLogger(__name__)


def _digits(value: Optional[str]) -> str:
    return re.sub(r'\D', '', value or '')


class CarrierIdParser:
    """
    Extracts and classifies DOT/MC numbers from OCR text.

    Strategies run in decreasing order of reliability:
    1. Labeled extraction (explicit "DOT"/"MC" labels)
    2. Digit-length heuristic on the bare digit run

    When both numbers are present DOT is preferred, as it is the
    canonical carrier identifier.
    """

    def __init__(self):
        """Initialize the carrier ID parser."""
        self.patterns = COMPILED_PATTERNS
        self.logger = logging.getLogger(self.__class__.__name__)

    def parse(self, raw_text: Optional[str]) -> ParsedCarrierId:
        """
        Parse DOT and MC numbers from free text.

        Args:
            raw_text: OCR text, e.g. "MILES X LLC US DOT 3916245 MC 1447165"
                or "39162451447165"

        Returns:
            ParsedCarrierId with the preferred type and number
        """
        if not raw_text or not isinstance(raw_text, str):
            return ParsedCarrierId()

        text = raw_text.strip()
        labeled = self.parse_labeled(text)
        if labeled is not None:
            return labeled

        return self.parse_digits(text)

    def parse_labeled(self, text: str) -> Optional[ParsedCarrierId]:
        """
        Extract numbers that follow explicit DOT/MC labels.

        Args:
            text: OCR text

        Returns:
            ParsedCarrierId, or None if no labeled number was found
        """
        dot = self.normalize_dot(self._search('dot_label', text))
        mc = self.normalize_mc(self._search('mc_label', text))

        if dot:
            self.logger.debug(f"Labeled DOT {dot}" + (f", MC {mc}" if mc else ""))
            return ParsedCarrierId(
                dot=dot,
                mc=mc or None,
                preferred_type=CarrierIdType.DOT,
                preferred_num=dot,
            )
        if mc:
            self.logger.debug(f"Labeled MC {mc}")
            return ParsedCarrierId(mc=mc, preferred_type=CarrierIdType.MC, preferred_num=mc)

        return None

    def parse_digits(self, text: Optional[str]) -> ParsedCarrierId:
        """
        Classify an unlabeled digit run by its length.

        A 7-digit run is a DOT number, 5-6 digits an MC number. Runs of
        12-15 digits are read as DOT followed by MC. This assumes the DOT
        number comes first, which is a heuristic: documents that print MC
        before DOT will be split wrongly.

        Args:
            text: Digits or mixed text; non-digits are ignored

        Returns:
            ParsedCarrierId (empty preferred number when there are no digits)
        """
        digits = _digits(text)
        length = len(digits)

        if not digits:
            return ParsedCarrierId()

        if length == DOT_LENGTH:
            return ParsedCarrierId(dot=digits, preferred_type=CarrierIdType.DOT, preferred_num=digits)

        if MC_MIN_LENGTH <= length <= MC_MAX_LENGTH:
            return ParsedCarrierId(mc=digits, preferred_type=CarrierIdType.MC, preferred_num=digits)

        if 12 <= length <= 15:
            dot = digits[:DOT_LENGTH]
            rest = digits[DOT_LENGTH:]
            self.logger.debug(f"Split {length}-digit run into DOT {dot} and MC {rest}")
            return ParsedCarrierId(
                dot=dot,
                mc=rest or None,
                preferred_type=CarrierIdType.DOT,
                preferred_num=dot,
            )

        self.logger.debug(f"Unclassifiable {length}-digit run, keeping first {DOT_LENGTH} digits")
        return ParsedCarrierId(preferred_type=CarrierIdType.DOT, preferred_num=digits[:DOT_LENGTH])

    def from_pair(self, dot: Optional[str], mc: Optional[str]) -> ParsedCarrierId:
        """
        Apply the DOT-preferred policy to a structured DOT/MC pair.

        Args:
            dot: DOT value from a structured OCR response
            mc: MC value from a structured OCR response

        Returns:
            ParsedCarrierId (empty preferred number when both are empty)
        """
        dot_digits = _digits(dot)
        mc_digits = _digits(mc)

        if dot_digits:
            return ParsedCarrierId(
                dot=dot_digits,
                mc=mc_digits or None,
                preferred_type=CarrierIdType.DOT,
                preferred_num=dot_digits,
            )
        if mc_digits:
            return ParsedCarrierId(mc=mc_digits, preferred_type=CarrierIdType.MC, preferred_num=mc_digits)
        return ParsedCarrierId()

    def extract_dot_only(self, raw_text: Optional[str]) -> str:
        """Extract only the US DOT number, or empty string."""
        parsed = self.parse(raw_text)
        if parsed.dot:
            return parsed.dot
        if parsed.preferred_type == CarrierIdType.DOT:
            return parsed.preferred_num
        return ''

    def normalize_dot(self, value: Optional[str]) -> str:
        """
        Normalize a DOT candidate.

        Keeps 7 digits, truncates longer runs to 7, accepts 6 digits as a
        near match and discards anything shorter.
        """
        digits = _digits(value)
        if len(digits) >= DOT_LENGTH:
            return digits[:DOT_LENGTH]
        return digits if len(digits) == DOT_LENGTH - 1 else ''

    def normalize_mc(self, value: Optional[str]) -> str:
        """
        Normalize an MC candidate.

        Keeps 5-7 digits, truncates longer runs to 7 and discards
        anything shorter than 5.
        """
        digits = _digits(value)
        if len(digits) > MC_MAX_LENGTH:
            return digits[:MC_MAX_LENGTH]
        return digits if len(digits) >= MC_MIN_LENGTH else ''

    def _search(self, pattern_key: str, text: str) -> Optional[str]:
        for pattern in self.patterns[pattern_key]:
            match = pattern.search(text)
            if match:
                return match.group(1)
        return None
