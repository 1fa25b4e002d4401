"""Schema report rendering."""

from .generator import SchemaReportGenerator, render_text

__all__ = ["SchemaReportGenerator", "render_text"]
