"""Report exporters (JSON files and console tables)."""

from .json_exporter import export_json
from .table_exporter import export_table, format_table

__all__ = ["export_json", "export_table", "format_table"]
