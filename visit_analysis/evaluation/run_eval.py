"""
CLI entry point for summarising an exported analysis log.

The log file is JSON lines, one ``ai_analysis_log`` row per line.

Usage:
    python -m visit_analysis.evaluation.run_eval --log analysis_log.jsonl
    python -m visit_analysis.evaluation.run_eval --log analysis_log.jsonl --report report.txt
"""

import argparse
import logging
import sys
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from visit_analysis.evaluation.metrics import MetricsCalculator
from visit_analysis.schemas.analysis_schema import AnalysisLogEntry

logger = logging.getLogger(__name__)


def load_log(path: Path) -> list[AnalysisLogEntry]:
    """Parse a JSON-lines log export, skipping blank and malformed lines."""
    entries: list[AnalysisLogEntry] = []
    for line_no, line in enumerate(path.read_text(encoding="utf-8").splitlines(), start=1):
        if not line.strip():
            continue
        try:
            entries.append(AnalysisLogEntry.model_validate_json(line))
        except PydanticValidationError as e:
            logger.warning("Skipping line %d: %s", line_no, e.errors()[0]["msg"])
    return entries


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Summarise visit analysis performance from a log export."
    )
    parser.add_argument(
        "--log",
        type=str,
        required=True,
        help="Path to a JSON-lines export of the analysis log.",
    )
    parser.add_argument(
        "--report",
        type=str,
        default=None,
        help="Path to write the report (default: stdout).",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging output.",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )

    log_path = Path(args.log)
    if not log_path.exists():
        logger.error("Log file not found: %s", log_path)
        sys.exit(1)

    entries = load_log(log_path)
    if not entries:
        logger.error("No valid log entries found in %s", log_path)
        sys.exit(1)

    logger.info("Loaded %d log entries from %s", len(entries), log_path)

    calculator = MetricsCalculator()
    output = calculator.format_report(calculator.calculate(entries))

    if args.report:
        report_path = Path(args.report)
        report_path.write_text(output, encoding="utf-8")
        logger.info("Report written to %s", report_path)
    else:
        sys.stdout.write(output + "\n")


if __name__ == "__main__":
    main()
