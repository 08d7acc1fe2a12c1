"""Message export format handlers."""

from .base import BaseExporter, ExportOptions, ExportProgress
from .json_exporter import JSONExporter
from .txt_exporter import TXTExporter

EXPORTERS = {
    "json": JSONExporter,
    "txt": TXTExporter,
}

__all__ = ["BaseExporter", "ExportOptions", "ExportProgress", "JSONExporter", "TXTExporter", "EXPORTERS"]
