"""
Output boundary for Fuzz Hunter.

This module provides:
- A rich console writer with live progress
- CSV, plain text and JSON file writers
- An output manager that drains the engine's result channels
"""

from .console import ConsoleWriter
from .export_formats import (
    SUPPORTED_FORMATS,
    CsvWriter,
    JsonWriter,
    NullWriter,
    ResultWriter,
    TxtWriter,
    create_writer,
)
from .output_manager import OutputManager

__all__ = [
    'ConsoleWriter',
    'SUPPORTED_FORMATS',
    'CsvWriter',
    'JsonWriter',
    'NullWriter',
    'ResultWriter',
    'TxtWriter',
    'create_writer',
    'OutputManager'
]
