#!/usr/bin/env python3
"""
Main entry point for the intake OCR reconciler.

This module provides a CLI interface for reconciling recorded OCR
results of a capture session into a validated intake record. A session
file lists, per photographed document, the raw OCR payloads that were
obtained for it:

    {
      "previous": {"companyName": "..."},
      "documents": {
        "vin": [{"kind": "vin", "payload": {"vin": "1HGCM82633A004352"}}],
        "dotmc": [{"kind": "carrier_id", "payload": {"dotOrMc": "US DOT 3916245"}}]
      },
      "vin_reference": {"Results": [{"ModelYear": "2003", "Make": "HONDA"}]}
    }
"""

import argparse
import sys
import logging
from pathlib import Path
from typing import List, Dict, Any, Optional
from datetime import datetime

from .config import Config
from .utils.logger import setup_logger
from .utils.io_handler import IOHandler
from .preprocessing.payloads import PayloadReader
from .reconciliation.reconciler import FieldReconciler
from .validation.validator import DataValidator
from .models.schema import FieldId, IntakeRecord


class IntakeParser:
    """
    Session file reconciliation coordinator.

    This class orchestrates the processing of one session file:
    1. Payload reading into typed OCR results
    2. Per-field reconciliation in wizard order
    3. Record validation
    4. Output generation
    """

    def __init__(self, log_level: str = "INFO"):
        """
        Initialize the parser with all components.

        Args:
            log_level: Logging level
        """
        self.logger = setup_logger(
            name="intake_ocr",
            level=getattr(logging, log_level.upper(), logging.INFO)
        )

        self.io_handler = IOHandler()
        self.payload_reader = PayloadReader()
        self.validator = DataValidator()

        self.logger.info(f"Initialized {Config.APP_NAME} v{Config.VERSION}")

    def parse_file(self, input_path: Path) -> Dict[str, Any]:
        """
        Reconcile a single session file.

        Args:
            input_path: Path to session JSON file

        Returns:
            Reconciled and validated record dictionary
        """
        self.logger.info(f"Processing file: {input_path}")

        try:
            session = self.io_handler.read_session_json(input_path)

            previous = IntakeRecord.model_validate(session.get('previous') or {})
            documents = session.get('documents') or {}

            reference = self.payload_reader.read_vin_reference(session.get('vin_reference'))
            reconciler = FieldReconciler(
                vin_decoder=(lambda vin: reference) if reference is not None else None
            )

            record = previous
            diagnostic = None
            notes: Dict[str, List[str]] = {}

            for field_id in FieldId:
                if field_id.value not in documents:
                    continue
                attempts = [
                    self.payload_reader.read(entry['kind'], entry.get('payload'))
                    for entry in documents[field_id.value]
                ]
                outcome = reconciler.reconcile_field(field_id, attempts, record)
                record = outcome.record
                diagnostic = diagnostic or outcome.diagnostic
                if outcome.notes:
                    notes[field_id.value] = outcome.notes

            validation_result = self.validator.validate(record)

            result = {
                'file_name': input_path.name,
                'processed_at': datetime.now().isoformat(),
                'diagnostic': diagnostic,
                'notes': notes,
                'validation': {
                    'is_valid': validation_result.is_valid,
                    'warnings': validation_result.warnings,
                    'errors': validation_result.errors,
                    'field_errors': validation_result.field_errors,
                    'completeness': self.validator.validate_completeness(record),
                },
                'data': record.to_submission()
            }

            status = "SUCCESS" if validation_result.is_valid else "WARNING"
            self.logger.info(
                f"{status}: {input_path.name} - "
                f"Warnings: {len(validation_result.warnings)}, "
                f"Errors: {len(validation_result.errors)}"
            )

            return result

        except Exception as e:
            self.logger.error(f"Failed to process {input_path}: {e}", exc_info=True)
            return {
                'file_name': input_path.name,
                'processed_at': datetime.now().isoformat(),
                'error': str(e),
                'validation': {
                    'is_valid': False,
                    'errors': [str(e)]
                }
            }

    def parse_batch(self, input_paths: List[Path]) -> List[Dict[str, Any]]:
        """
        Reconcile multiple session files.

        Args:
            input_paths: List of input file paths

        Returns:
            List of reconciled records
        """
        self.logger.info(f"Starting batch processing of {len(input_paths)} files")

        results = []
        success_count = 0
        error_count = 0

        for path in input_paths:
            result = self.parse_file(path)
            results.append(result)

            if result.get('validation', {}).get('is_valid', False):
                success_count += 1
            else:
                error_count += 1

        self.logger.info(
            f"Batch processing complete: {success_count} successful, "
            f"{error_count} with errors/warnings"
        )

        return results

    def save_results(
        self,
        results: List[Dict[str, Any]],
        output_format: str = "json",
        output_path: Optional[Path] = None
    ):
        """
        Save reconciliation results to file.

        Args:
            results: List of reconciled records
            output_format: Output format ('json' or 'csv')
            output_path: Optional custom output path
        """
        if output_path is None:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            output_dir = Config.get_output_dir()
            output_path = output_dir / f"intake_results_{timestamp}.{output_format}"

        if output_format == "csv":
            flattened = []
            for result in results:
                flat_record = {
                    'file_name': result['file_name'],
                    'processed_at': result['processed_at'],
                    'is_valid': result.get('validation', {}).get('is_valid', False),
                    'errors': result.get('validation', {}).get('errors', []),
                    **result.get('data', {})
                }
                flattened.append(flat_record)
            self.io_handler.write_csv(flattened, output_path)
        else:
            self.io_handler.write_json(results, output_path, indent=Config.JSON_INDENT)

        self.logger.info(f"Results saved to {output_path}")

    def resolve_inputs(self, input_specs: List[str]) -> List[Path]:
        """
        Expand CLI input arguments into session file paths.

        Args:
            input_specs: Files, directories or glob patterns

        Returns:
            List of file paths (empty if an argument matched nothing)
        """
        input_paths = []
        for input_spec in input_specs:
            path = Path(input_spec)
            if path.is_file():
                input_paths.append(path)
            elif path.is_dir():
                input_paths.extend(self.io_handler.read_batch(path))
            elif '*' in input_spec:
                input_paths.extend(sorted(path.parent.glob(path.name)))
            else:
                self.logger.error(f"Invalid input: {input_spec}")
                return []
        return input_paths


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Reconcile recorded intake OCR results into validated records",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Reconcile a single session
  intake-ocr -i sessions/truck_01.json -o output/truck_01.json

  # Reconcile a directory of sessions to CSV
  intake-ocr -i sessions/ -f csv

  # Enable debug logging
  intake-ocr -i sessions/*.json --log-level DEBUG
        """
    )

    parser.add_argument(
        '-i', '--input',
        type=str,
        nargs='+',
        required=True,
        help='Input session JSON file(s), directory or glob pattern'
    )

    parser.add_argument(
        '-o', '--output',
        type=str,
        help='Output file path (default: auto-generated in output/)'
    )

    parser.add_argument(
        '-f', '--format',
        choices=['json', 'csv'],
        default='json',
        help='Output format (default: json)'
    )

    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        default=Config.LOG_LEVEL,
        help=f'Logging level (default: {Config.LOG_LEVEL})'
    )

    args = parser.parse_args()

    intake_parser = IntakeParser(log_level=args.log_level)

    input_paths = intake_parser.resolve_inputs(args.input)
    if not input_paths:
        intake_parser.logger.error("No valid input files found")
        sys.exit(1)

    results = intake_parser.parse_batch(input_paths)

    output_path = Path(args.output) if args.output else None
    intake_parser.save_results(results, args.format, output_path)

    error_count = sum(
        1 for r in results
        if not r.get('validation', {}).get('is_valid', False)
    )

    if error_count > 0:
        intake_parser.logger.warning(f"{error_count} file(s) had validation errors")
        sys.exit(1)
    else:
        intake_parser.logger.info("All files processed successfully")
        sys.exit(0)


if __name__ == "__main__":
    main()
