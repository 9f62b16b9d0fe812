"""
Logging configuration for Fuzz Hunter with rich formatting.
"""

import logging
import sys
from pathlib import Path
from typing import Optional
from rich.console import Console
from rich.logging import RichHandler
from rich.traceback import install

# Install rich traceback handler for better error formatting
install(show_locals=False)

LOGGER_NAME = "fuzz_hunter"


class FuzzHunterLogger:
    """Root logger wrapper for Fuzz Hunter."""

    def __init__(self, name: str = LOGGER_NAME):
        self.name = name
        self.logger = logging.getLogger(name)
        # Diagnostics go to stderr so they never interleave with result rows
        self._console = Console(stderr=True)
        self._configured = False

    def configure(
            self,
            level: str = "INFO",
            log_file: Optional[Path] = None,
            rich_console: bool = True,
            show_time: bool = True,
            show_path: bool = False,
            force: bool = False
    ):
        """Configure the logger with handlers and formatting."""
        if self._configured and not force:
            return

        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()

        self.logger.setLevel(getattr(logging, level.upper()))

        detailed_formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s'
        )
        simple_formatter = logging.Formatter('%(message)s')

        if rich_console:
            rich_handler = RichHandler(
                console=self._console,
                show_time=show_time,
                show_path=show_path,
                rich_tracebacks=True,
                tracebacks_show_locals=False
            )
            rich_handler.setFormatter(simple_formatter)
            self.logger.addHandler(rich_handler)
        else:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setFormatter(logging.Formatter('%(levelname)s - %(message)s'))
            self.logger.addHandler(console_handler)

        if log_file:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file, encoding="utf-8", errors="backslashreplace")
            file_handler.setFormatter(detailed_formatter)
            self.logger.addHandler(file_handler)

        self._configured = True

    def get_logger(self) -> logging.Logger:
        """Get the configured logger instance."""
        if not self._configured:
            self.configure()
        return self.logger


# Global logger instance
_global_logger = FuzzHunterLogger()


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Optional logger name. If None, returns the global logger.

    Returns:
        Configured logger instance.
    """
    if name:
        return logging.getLogger(name)
    return _global_logger.get_logger()


def configure_logging(
        level: str = "INFO",
        log_file: Optional[Path] = None,
        rich_console: bool = True,
        show_time: bool = True,
        show_path: bool = False
):
    """
    Configure the global logging system.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to log file
        rich_console: Use rich console formatting
        show_time: Show timestamps in console output
        show_path: Show file paths in console output
    """
    _global_logger.configure(
        level=level,
        log_file=log_file,
        rich_console=rich_console,
        show_time=show_time,
        show_path=show_path,
        force=True
    )


def get_component_logger(component: str) -> logging.Logger:
    """
    Get a logger for a specific component.

    Args:
        component: Component name (e.g., 'fuzzing', 'http_client', 'reporting')

    Returns:
        Logger instance specific to the component
    """
    return logging.getLogger(f"{LOGGER_NAME}.{component}")
