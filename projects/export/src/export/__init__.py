"""Flat SQL export of diagrams."""

from export.main import diagram_to_sql, export_filename

__all__ = ["diagram_to_sql", "export_filename"]
