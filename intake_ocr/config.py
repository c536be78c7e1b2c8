"""Configuration settings for the intake OCR core.

This module centralizes configuration values and settings
for easy maintenance and extension.
"""

from pathlib import Path


class Config:
    """Application configuration."""

    # Application info
    APP_NAME = "Intake OCR"
    VERSION = "1.0.0"

    # Logging
    LOG_LEVEL = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    LOG_FORMAT = (
        '%(asctime)s - %(name)s - %(levelname)s - '
        '%(filename)s:%(lineno)d - %(message)s'
    )

    # Field limits
    UNIT_NUMBER_MAX_LENGTH = 20
    VIN_DECODE_MIN_LENGTH = 8

    # Shown once per session when any field's OCR failed
    OCR_FAILURE_MESSAGE = (
        "Reading photos failed for some fields; "
        "you can still edit and create the job."
    )

    # Output settings
    OUTPUT_DIR = Path("output")
    JSON_INDENT = 2

    # Paths
    PROJECT_ROOT = Path(__file__).parent.parent

    @classmethod
    def get_output_dir(cls) -> Path:
        """Get output directory, creating if it doesn't exist."""
        output_dir = cls.PROJECT_ROOT / cls.OUTPUT_DIR
        output_dir.mkdir(parents=True, exist_ok=True)
        return output_dir
