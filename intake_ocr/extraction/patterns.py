"""Regex patterns for field extraction.

This module contains the regex patterns used for extracting identity
fields from OCR output. Patterns are designed to handle label variations
and noise around the values.
"""

import re
from typing import Dict, List

# US DOT numbers are 7 digits; MC numbers 5-7 digits
DOT_LENGTH = 7
MC_MIN_LENGTH = 5
MC_MAX_LENGTH = 7

# Carrier ID label patterns - label followed by the digit run
DOT_LABEL_PATTERNS = [
    # "US DOT 3916245", "USDOT#3916245", "DOT: 3916245"; 6-8 digits tolerates OCR slips
    r'(?:US\s*)?DOT\s*[#:]?\s*(\d{6,8})\b',
]

MC_LABEL_PATTERNS = [
    # "MC 1447165", "MC#144716"
    r'\bMC\s*[#:]?\s*(\d{5,8})\b',
]

# Odometer unit suffixes (km, kms, mi, miles, kilometers, kilometres)
ODOMETER_UNIT_PATTERNS = [
    r'\s*(?:kilomet(?:er|re)s?|kms?|miles?|mis?)\s*$',
]

# VIN character set (no I, O, Q)
VIN_CHARSET_PATTERN = r'^[A-HJ-NPR-Z0-9]+$'
VIN_EXCLUDED_PATTERN = r'[IOQ]'


def compile_patterns() -> Dict[str, List[re.Pattern]]:
    """
    Compile all regex patterns for efficient reuse.

    Returns:
        Dictionary mapping field names to compiled regex patterns
    """
    compiled = {}

    compiled['dot_label'] = [re.compile(p, re.IGNORECASE) for p in DOT_LABEL_PATTERNS]
    compiled['mc_label'] = [re.compile(p, re.IGNORECASE) for p in MC_LABEL_PATTERNS]
    compiled['odometer_unit'] = [re.compile(p, re.IGNORECASE) for p in ODOMETER_UNIT_PATTERNS]

    # VIN patterns run on uppercased text
    compiled['vin_charset'] = [re.compile(VIN_CHARSET_PATTERN)]
    compiled['vin_excluded'] = [re.compile(VIN_EXCLUDED_PATTERN)]

    return compiled


# Precompile patterns for performance
COMPILED_PATTERNS = compile_patterns()
