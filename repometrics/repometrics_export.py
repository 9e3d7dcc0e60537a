"""
Export module for repometrics.

Provides CSV, JSON and YAML export of the per-commit metrics series.
"""

import csv
import datetime
import json
from typing import Any, Dict, List

import yaml

from .repometrics_config import get_config


CSV_HEADER = [
    'timestamp_utc', 'non_test_loc', 'total_tests', 'doc_loc',
    'commit', 'commit_msg_len', 'commit_msg_len_avg',
]


class DateTimeEncoder(json.JSONEncoder):
    """Custom JSON encoder that handles datetime objects."""

    def default(self, obj):
        if isinstance(obj, datetime.datetime):
            return obj.isoformat()
        return super().default(obj)


class MetricsExporter:
    """
    Exports a run's commit series to CSV or JSON.
    """

    def __init__(self, result):
        """
        Initialize the exporter.

        Args:
            result: RunResult produced by MetricsCollector.collect()
        """
        self.result = result

    def export_csv(self, filepath: str, decimals: int = 2) -> str:
        """
        Export the series to a CSV file.

        Args:
            filepath: File to write
            decimals: Decimal places of the rolling average column

        Returns:
            Path to the created CSV file
        """
        decimals = max(0, decimals)
        with open(filepath, 'w', encoding='utf-8', newline='') as f:
            writer = csv.writer(f, lineterminator='\n')
            writer.writerow(CSV_HEADER)
            for row in self.result.rows:
                writer.writerow([
                    row.iso_when,
                    row.non_test_loc,
                    row.total_tests,
                    row.doc_loc,
                    row.short_sha,
                    row.commit_msg_len,
                    '%.*f' % (decimals, row.commit_msg_len_avg),
                ])

        if get_config().verbose:
            print(f'Wrote {filepath}')

        return filepath

    def export_json(self, filepath: str, pretty: bool = True) -> str:
        """
        Export the series and run metadata to a JSON file.

        Args:
            filepath: File to write
            pretty: Whether to format with indentation

        Returns:
            Path to the created JSON file
        """
        metrics = self.get_metrics_dict()

        with open(filepath, 'w', encoding='utf-8') as f:
            if pretty:
                json.dump(metrics, f, cls=DateTimeEncoder, indent=2, ensure_ascii=False)
            else:
                json.dump(metrics, f, cls=DateTimeEncoder, ensure_ascii=False)

        if get_config().verbose:
            print(f'Wrote {filepath}')

        return filepath

    def export_yaml(self, filepath: str) -> str:
        """
        Export the series and run metadata to a YAML file.

        Args:
            filepath: File to write

        Returns:
            Path to the created YAML file
        """
        metrics = self.get_metrics_dict()

        with open(filepath, 'w', encoding='utf-8') as f:
            yaml.safe_dump(metrics, f, default_flow_style=False, allow_unicode=True, sort_keys=False)

        if get_config().verbose:
            print(f'Wrote {filepath}')

        return filepath

    def get_metrics_dict(self) -> Dict[str, Any]:
        """
        Get the run as a dictionary (for programmatic access).

        Returns:
            Dictionary with 'metadata' and 'commits' keys
        """
        result = self.result
        return {
            'metadata': {
                'generated_at': datetime.datetime.now(datetime.timezone.utc),
                'repository': result.display_name,
                'rev': result.rev,
                'msg_avg_window': result.msg_avg_window,
                'commits': len(result.rows),
                'blobs_computed': result.blobs_computed,
                'blob_cache_hits': result.blob_cache_hits,
            },
            'commits': self._serialize_rows(),
        }

    def _serialize_rows(self) -> List[Dict[str, Any]]:
        return [
            {
                'timestamp_utc': row.iso_when,
                'commit': row.short_sha,
                'non_test_loc': row.non_test_loc,
                'total_tests': row.total_tests,
                'doc_loc': row.doc_loc,
                'commit_msg_len': row.commit_msg_len,
                'commit_msg_len_avg': row.commit_msg_len_avg,
            }
            for row in self.result.rows
        ]


def export_to_csv(result, filepath: str, decimals: int = 2) -> str:
    """
    Convenience function to export a run to CSV.

    Args:
        result: RunResult to export
        filepath: File to write
        decimals: Decimal places of the rolling average column

    Returns:
        Path to the created CSV file
    """
    return MetricsExporter(result).export_csv(filepath, decimals)


def export_to_json(result, filepath: str) -> str:
    """
    Convenience function to export a run to JSON.

    Args:
        result: RunResult to export
        filepath: File to write

    Returns:
        Path to the created JSON file
    """
    return MetricsExporter(result).export_json(filepath)


def export_to_yaml(result, filepath: str) -> str:
    """
    Convenience function to export a run to YAML.

    Args:
        result: RunResult to export
        filepath: File to write

    Returns:
        Path to the created YAML file
    """
    return MetricsExporter(result).export_yaml(filepath)
