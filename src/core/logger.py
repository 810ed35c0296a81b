"""
Logging and Error Tracking

Central logging setup for Puzzlescribe and the tracker that collects per-page
conversion failures during a batch run.
"""

import logging
import logging.handlers
import sys
import traceback
from collections import Counter
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Tuple

from .errors import MissingAttribute, StructuralMismatch, UnsupportedMarkup


APP_NAME = "puzzlescribe"

# Module loggers created with logging.getLogger(__name__) live under these names
PACKAGE_NAMESPACES = ('core', 'utils', 'cli')

DETAILED_FORMAT = '%(asctime)s | %(name)s | %(levelname)s | %(funcName)s:%(lineno)d | %(message)s'
CONSOLE_FORMAT = '%(asctime)s | %(levelname)s | %(message)s'


def initialize_logging(log_dir: str = "logs", level: int = logging.INFO,
                       app_name: str = APP_NAME,
                       namespaces: Tuple[str, ...] = PACKAGE_NAMESPACES) -> logging.Logger:
    """
    Configure the application logger and the package module loggers.

    Every call replaces the handlers installed by the previous one, so the
    CLI can be invoked repeatedly in one process with different settings.

    Args:
        log_dir: Directory for the rotating log files
        level: Level of the application logger and the console output
        app_name: Name of the application logger and of the log files
        namespaces: Module logger namespaces that share the handlers

    Returns:
        The application logger
    """
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    targets = [logging.getLogger(app_name)] + [logging.getLogger(ns) for ns in namespaces]

    stale = {handler for target in targets for handler in target.handlers}
    for target in targets:
        for handler in list(target.handlers):
            target.removeHandler(handler)
    for handler in stale:
        handler.close()

    detailed_formatter = logging.Formatter(DETAILED_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')

    file_handler = logging.handlers.RotatingFileHandler(
        log_path / f"{app_name}.log",
        maxBytes=10*1024*1024,  # 10MB
        backupCount=5,
        encoding='utf-8'
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(detailed_formatter)

    # stdout carries converted text
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt='%H:%M:%S'))

    error_handler = logging.handlers.RotatingFileHandler(
        log_path / f"{app_name}_errors.log",
        maxBytes=5*1024*1024,  # 5MB
        backupCount=3,
        encoding='utf-8'
    )
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(detailed_formatter)

    for target in targets:
        target.setLevel(min(level, logging.INFO))
        target.addHandler(file_handler)
        target.addHandler(console_handler)
        target.addHandler(error_handler)

    logger = targets[0]
    logger.debug(f"Logging to {log_path.absolute()} (Python {sys.version.split()[0]}, {sys.platform})")
    return logger


def get_logger(name: str) -> logging.Logger:
    """Return the application child logger for a component, e.g. ``cli``."""
    return logging.getLogger(f"{APP_NAME}.{name}")


def describe_failure(error: Exception) -> str:
    """
    Return the category a conversion failure is grouped under in reports.

    Converter errors are grouped by what broke (the offending tag, the missing
    containers); anything else by its exception type.
    """
    if isinstance(error, UnsupportedMarkup):
        return f"unsupported markup <{error.tag}>"
    if isinstance(error, StructuralMismatch):
        return "page without " + " and ".join(f"<{tag}>" for tag in error.missing)
    if isinstance(error, MissingAttribute):
        return f"<{error.tag}> without {error.attribute}"
    return type(error).__name__


class ErrorTracker:
    """
    Collects the failures of a batch run for logging and the error report.
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self.errors: List[Dict[str, Any]] = []

    def log_error(self, error: Exception, context: str = None, url: str = None) -> str:
        """
        Log a page failure and keep it for the report.

        Args:
            error: The exception that stopped the page
            context: What was being done, e.g. the page path
            url: Source URL of the page

        Returns:
            Error ID for tracking
        """
        error_id = f"ERR_{datetime.now().strftime('%Y%m%d_%H%M%S')}_{len(self.errors):03d}"

        entry = {
            'id': error_id,
            'timestamp': datetime.now(),
            'category': describe_failure(error),
            'type': type(error).__name__,
            'message': str(error),
            'context': context,
            'url': url,
            'traceback': ''.join(traceback.format_exception(type(error), error, error.__traceback__)),
        }
        self.errors.append(entry)

        log_message = f"[{error_id}] {entry['type']}: {entry['message']}"
        if context:
            log_message += f" (Context: {context})"
        if url:
            log_message += f" (URL: {url})"

        self.logger.error(log_message)
        self.logger.debug(f"[{error_id}] Full traceback:\n{entry['traceback']}")

        return error_id

    def save_error_report(self, output_path: str):
        """
        Write the collected failures, grouped by category, to a text file.

        Args:
            output_path: Path where the report should be saved
        """
        categories = Counter(entry['category'] for entry in self.errors)

        with open(output_path, 'w', encoding='utf-8') as f:
            f.write("PUZZLESCRIBE ERROR REPORT\n")
            f.write("=" * 50 + "\n\n")
            f.write(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n")
            f.write(f"Failed pages: {len(self.errors)}\n\n")

            f.write("BY CATEGORY:\n")
            for category, count in categories.most_common():
                f.write(f"  {count:4d}  {category}\n")

            for category, _ in categories.most_common():
                f.write(f"\n{category.upper()}\n")
                f.write("-" * 50 + "\n")
                for entry in self.errors:
                    if entry['category'] != category:
                        continue
                    f.write(f"[{entry['id']}] {entry['context'] or ''}\n")
                    if entry['url']:
                        f.write(f"URL: {entry['url']}\n")
                    f.write(f"{entry['type']}: {entry['message']}\n")
                    f.write(f"Traceback:\n{entry['traceback']}\n")

        self.logger.info(f"Error report saved to: {output_path}")
