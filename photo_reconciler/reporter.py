"""Reporting for reconciliation runs."""

import logging
from pathlib import Path
from typing import Dict, Any

logger = logging.getLogger(__name__)

OPERATION_TITLES = {
    'copy': 'COPY WITH RENAME',
    'move': 'MOVE WITH RENAME',
    'copy-since': 'COPY SINCE CUTOFF',
    'set-date': 'CANONICAL DATES',
    'dedupe': 'DUPLICATE REMOVAL',
    'unique': 'COPY UNIQUE',
}


class ReconcileReporter:
    """Generates reports for reconciliation operations."""

    def __init__(self, config):
        """Initialize reporter with configuration."""
        self.config = config
        self.report_dir = Path(config.get_report_dir())

    def generate_summary_report(self, results: Dict[str, Any], max_listed: int = 20) -> str:
        """
        Generate human-readable summary report.

        Args:
            results: Results dictionary returned by any operation
            max_listed: Maximum number of affected files listed

        Returns:
            Formatted summary report
        """
        operation = results.get('operation', 'unknown')
        affected = results.get('affected', [])
        errors = results.get('errors', [])

        report = []
        report.append("=" * 50)
        report.append(f"{OPERATION_TITLES.get(operation, operation.upper())} REPORT")
        report.append("=" * 50)
        report.append(f"Completed: {results.get('timestamp', 'Unknown')}")
        report.append(f"Mode: {'DRY RUN' if results.get('dry_run', False) else 'LIVE RUN'}")
        if results.get('directory'):
            report.append(f"Directory: {results['directory']}")
        if results.get('cutoff'):
            report.append(f"Cutoff: {results['cutoff']}")
        report.append("")

        report.append("=== FILE STATISTICS ===")
        if 'total_files' in results:
            report.append(f"• Files examined: {results['total_files']:,}")
        report.append(f"• Files affected: {len(affected):,}")
        report.append(f"• Errors: {len(errors):,}")
        report.append("")

        if affected:
            report.append("=== AFFECTED FILES ===")
            for path in affected[:max_listed]:
                report.append(f"  {path}")
            if len(affected) > max_listed:
                report.append(f"  ... and {len(affected) - max_listed} more files")
            report.append("")

        if errors:
            report.append("=== ERRORS ENCOUNTERED ===")
            for error in errors:
                report.append(f"❌ {error}")
            report.append("")

        status = "✅ COMPLETE SUCCESS" if not errors else "⚠️ COMPLETED WITH ISSUES"
        report.append(f"STATUS: {status}")

        return "\n".join(report)

    def save_report(self, results: Dict[str, Any], filename: str = None) -> str:
        """
        Save summary report to file.

        Args:
            results: Results dictionary
            filename: Optional filename (auto-generated if None)

        Returns:
            Path to saved report file
        """
        if filename is None:
            timestamp = results.get('timestamp', 'unknown').replace(':', '-')
            filename = f"{results.get('operation', 'reconcile')}_report_{timestamp}.txt"

        report_file = self.report_dir / filename
        report_file.parent.mkdir(parents=True, exist_ok=True)

        report_content = self.generate_summary_report(results)

        try:
            with open(report_file, 'w', encoding='utf-8') as f:
                f.write(report_content)

            logger.info(f"Report saved: {report_file}")
            return str(report_file)

        except OSError as e:
            logger.error(f"Failed to save report: {e}")
            raise
