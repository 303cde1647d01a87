"""Result renderer - prints the records of a satisfied wait"""

import csv
import io
import json
from typing import Any, Callable, Dict, List, Optional

import click
import yaml

FORMATS = ("json", "yaml", "table", "csv")


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"), default=str)
    return str(value)


def _columns(records: List[Any]) -> List[str]:
    columns: List[str] = []
    for record in records:
        for key in record:
            if key not in columns:
                columns.append(key)
    return columns


class ResultRenderer:
    """Formats records as json, yaml, table or csv"""

    def __init__(self, output_format: str, echo: Optional[Callable[[str], None]] = None):
        """Initialize renderer

        Args:
            output_format: One of json, yaml, table, csv
            echo: Output sink (default: click.echo to stdout)

        Raises:
            ValueError: If the format is not supported
        """
        output_format = output_format.lower()
        if output_format not in FORMATS:
            raise ValueError(f"Unsupported output format: {output_format}. Supported: {', '.join(FORMATS)}")
        self.output_format = output_format
        self._echo = echo or click.echo

    def render(self, records: List[Dict[str, Any]]) -> None:
        """Print records in the configured format"""
        text = self.format(records)
        if text:
            self._echo(text)

    def format(self, records: List[Dict[str, Any]]) -> str:
        if self.output_format == "json":
            return json.dumps({"records": records}, indent=2, default=str)
        if self.output_format == "yaml":
            return yaml.safe_dump({"records": records}, sort_keys=False, default_flow_style=False).rstrip("\n")
        if not records:
            return ""
        if self.output_format == "csv":
            return self._format_csv(records)
        return self._format_table(records)

    @staticmethod
    def _format_table(records: List[Dict[str, Any]]) -> str:
        columns = _columns(records)
        rows = [[_cell(record.get(column)) for column in columns] for record in records]
        widths = [max(len(column), *(len(row[i]) for row in rows)) for i, column in enumerate(columns)]

        lines = ["  ".join(column.upper().ljust(widths[i]) for i, column in enumerate(columns)).rstrip()]
        for row in rows:
            lines.append("  ".join(value.ljust(widths[i]) for i, value in enumerate(row)).rstrip())
        return "\n".join(lines)

    @staticmethod
    def _format_csv(records: List[Dict[str, Any]]) -> str:
        columns = _columns(records)
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(columns)
        for record in records:
            writer.writerow([_cell(record.get(column)) for column in columns])
        return buffer.getvalue().rstrip("\n")
