"""Text preprocessing and cleaning utilities.

This module handles the preprocessing of noisy free-text OCR output, including:
- Extraction of text from OCR response structures
- Unicode and whitespace normalization
- Line selection and joining for single-value fields
"""

import re
import unicodedata
from typing import Any, List
import logging

from ..config import Config

logger = logging.getLogger(__name__)


class TextCleaner:
    """
    Handles preprocessing and cleaning of free-text OCR output.

    Generic text OCR returns whatever it saw on the photo, one line per
    visual row. The helpers here reduce that to a single candidate value
    for fields that have no dedicated recognizer.
    """

    def __init__(self, unit_number_max_length: int = Config.UNIT_NUMBER_MAX_LENGTH):
        """
        Initialize the text cleaner.

        Args:
            unit_number_max_length: Truncation limit for unit numbers
        """
        self.unit_number_max_length = unit_number_max_length
        self.logger = logging.getLogger(self.__class__.__name__)

    def clean(self, ocr_data: Any) -> str:
        """
        Clean and preprocess OCR data.

        Args:
            ocr_data: Raw OCR data (string or JSON structure from an OCR API)

        Returns:
            Cleaned text string with one trimmed line per row

        Raises:
            ValueError: If OCR data structure is invalid
        """
        raw_text = self._extract_text_from_ocr(ocr_data)

        cleaned_text = self._normalize_unicode(raw_text)
        cleaned_text = self._normalize_whitespace(cleaned_text)

        self.logger.debug(f"Cleaned text length: {len(cleaned_text)}")
        return cleaned_text

    def _extract_text_from_ocr(self, ocr_data: Any) -> str:
        """
        Extract text content from an OCR response structure.

        Args:
            ocr_data: OCR API response (string or dict)

        Returns:
            Extracted text string
        """
        if ocr_data is None:
            return ''

        if isinstance(ocr_data, str):
            return ocr_data

        if isinstance(ocr_data, dict):
            if isinstance(ocr_data.get('text'), str):
                return ocr_data['text']

            pages = ocr_data.get('pages')
            if isinstance(pages, list) and pages:
                page = pages[0]
                if isinstance(page.get('text'), str):
                    return page['text']
                if 'lines' in page:
                    return '\n'.join(line.get('text', '') for line in page['lines'])
                if 'words' in page:
                    return ' '.join(word.get('text', '') for word in page['words'])

        raise ValueError("Invalid OCR data structure")

    def _normalize_unicode(self, text: str) -> str:
        """Fold compatibility characters (full-width digits, ligatures)."""
        return unicodedata.normalize('NFKC', text)

    def _normalize_whitespace(self, text: str) -> str:
        """
        Normalize whitespace characters.

        Args:
            text: Input text

        Returns:
            Text with single spaces, no blank lines and trimmed lines
        """
        text = re.sub(r'[ \t]+', ' ', text)
        text = re.sub(r'\n\s*\n+', '\n', text)

        lines = [line.strip() for line in text.split('\n')]
        return '\n'.join(lines).strip()

    def lines(self, text: str) -> List[str]:
        """Non-empty trimmed lines of the text."""
        if not text:
            return []
        return [line.strip() for line in text.splitlines() if line.strip()]

    def join_lines(self, text: str) -> str:
        """
        Join all non-empty lines into one space-separated string.

        Used for values that OCR tends to break across rows, such as
        company names painted on a door or a DOT/MC block.

        Args:
            text: Free text from generic OCR

        Returns:
            Joined text, or empty string
        """
        return ' '.join(self.lines(text))

    def first_line(self, text: str) -> str:
        """
        Pick the unit number candidate from free text.

        Takes the first non-empty line, collapses internal whitespace
        and truncates to the unit number length limit.

        Args:
            text: Free text from generic OCR

        Returns:
            Unit number candidate, or empty string
        """
        lines = self.lines(text)
        candidate = lines[0] if lines else ''
        candidate = re.sub(r'\s+', ' ', candidate)
        return candidate[:self.unit_number_max_length]
