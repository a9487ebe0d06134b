"""Structured logging configuration.

Log lines go to stderr so that commands printing FHIR JSON keep stdout
clean. ``FB_LOG_JSON=true`` switches to one JSON object per line; the
translation context attached with ``translation_context()`` (resource type,
resource id, batch index) becomes top-level keys of that object.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class StructuredFormatter(logging.Formatter):
    """Renders a record and its ``extra_fields`` as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_fields"):
            log_data.update(record.extra_fields)

        return json.dumps(log_data, default=str)


def translation_context(
    resource_type: Optional[str],
    resource_id: Optional[str] = None,
    **fields: Any
) -> Dict[str, Any]:
    """Build the ``extra`` mapping that carries translation context into a log record.

    Unset values are left out.

    Example Usage:
        ```python
        logger.warning(
            "Failed to translate resource",
            extra=translation_context("Condition", "c-1", index=3),
        )
        ```
    """
    context = {"resource_type": resource_type, "resource_id": resource_id, **fields}
    return {"extra_fields": {k: v for k, v in context.items() if v is not None}}


def setup_logging(use_json: bool = False, log_level: str = "INFO"):
    """Install a single stderr handler on the root logger.

    Parameters:
        use_json: Emit JSON lines instead of plain text
        log_level: Logging level name; unknown names fall back to INFO
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    if use_json:
        formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    # DuckDB is chatty at DEBUG
    logging.getLogger("duckdb").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def configure_logging(app_settings=None, verbose: bool = False):
    """Apply the log level and format from application settings.

    Parameters:
        app_settings: Settings instance (defaults to the global settings)
        verbose: Force DEBUG regardless of the configured level
    """
    if app_settings is None:
        from fhir_bridge.infrastructure.settings import settings as app_settings

    log_level = "DEBUG" if verbose else app_settings.log_level
    setup_logging(use_json=app_settings.log_json, log_level=log_level)
    logger.debug(f"Logging configured for {app_settings.app_name} at {log_level}")
