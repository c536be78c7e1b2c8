"""Input/Output handling utilities.

This module handles file I/O operations including:
- Reading capture session JSON files
- Writing reconciled records to JSON and CSV
- Batch file discovery
"""

import json
import csv
import logging
from enum import Enum
from pathlib import Path
from typing import List, Dict, Any, Optional

logger = logging.getLogger(__name__)


class _RecordEncoder(json.JSONEncoder):
    def default(self, obj):
        if isinstance(obj, Enum):
            return obj.value
        if isinstance(obj, Path):
            return str(obj)
        return super().default(obj)


class IOHandler:
    """
    Handles all file I/O operations for the intake CLI.
    """

    def __init__(self):
        """Initialize IO handler."""
        self.logger = logging.getLogger(self.__class__.__name__)

    def read_session_json(self, file_path: Path) -> Dict[str, Any]:
        """
        Read a capture session JSON file.

        Args:
            file_path: Path to JSON file

        Returns:
            Parsed JSON object

        Raises:
            FileNotFoundError: If file doesn't exist
            ValueError: If JSON is invalid or not an object
        """
        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {file_path}: {e}")

        if not isinstance(data, dict):
            raise ValueError(f"Session file {file_path} must contain a JSON object")

        self.logger.info(f"Loaded session data from {file_path}")
        return data

    def write_json(
        self,
        data: List[Dict[str, Any]],
        output_path: Path,
        indent: int = 2
    ):
        """
        Write data to JSON file.

        Args:
            data: List of dictionaries to write
            output_path: Output file path
            indent: JSON indentation (default: 2)
        """
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(data, f, ensure_ascii=False, indent=indent, cls=_RecordEncoder)

        self.logger.info(f"Wrote {len(data)} records to {output_path}")

    def write_csv(
        self,
        data: List[Dict[str, Any]],
        output_path: Path,
        fieldnames: Optional[List[str]] = None
    ):
        """
        Write data to CSV file.

        Args:
            data: List of flat dictionaries to write
            output_path: Output file path
            fieldnames: List of field names (if None, collected from all records)
        """
        if not data:
            self.logger.warning("No data to write to CSV")
            return

        output_path.parent.mkdir(parents=True, exist_ok=True)

        if fieldnames is None:
            fieldnames = []
            for record in data:
                fieldnames.extend(k for k in record if k not in fieldnames)

        def convert_value(val):
            if isinstance(val, Enum):
                return val.value
            if isinstance(val, (list, tuple)):
                return '; '.join(str(v) for v in val)
            if val is None:
                return ''
            return str(val)

        csv_data = [{k: convert_value(v) for k, v in record.items()} for record in data]

        with open(output_path, 'w', encoding='utf-8', newline='') as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames, restval='')
            writer.writeheader()
            writer.writerows(csv_data)

        self.logger.info(f"Wrote {len(data)} records to {output_path}")

    def read_batch(self, input_dir: Path, pattern: str = "*.json") -> List[Path]:
        """
        Find all files matching pattern in directory.

        Args:
            input_dir: Input directory path
            pattern: File pattern (default: *.json)

        Returns:
            Sorted list of file paths
        """
        if not input_dir.exists():
            raise FileNotFoundError(f"Directory not found: {input_dir}")

        files = list(input_dir.glob(pattern))
        self.logger.info(f"Found {len(files)} files matching '{pattern}' in {input_dir}")

        return sorted(files)
