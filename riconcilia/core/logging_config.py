"""
Logging strutturato (JSON) per import e riconciliazione.

Ogni record porta l'import_id corrente, così tutte le righe di log di uno
stesso file importato si possono filtrare insieme.
"""

import datetime
import json
import logging
import os
import uuid
from threading import local
from typing import Any, Optional

# Contesto per thread (import_id dell'import in corso)
_context = local()


class JSONFormatter(logging.Formatter):
    """Formatter che scrive ogni record come una riga JSON."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "import_id": getattr(_context, "import_id", "GLOBAL"),
        }

        extra_fields = getattr(record, "extra_fields", None)
        if isinstance(extra_fields, dict):
            log_data.update(extra_fields)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


def setup_logging(log_level: int = logging.INFO, log_file: Optional[str] = None):
    """Configura il root logger: console sempre, file JSON se richiesto."""
    if log_file and os.path.dirname(log_file):
        os.makedirs(os.path.dirname(log_file), exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    if root_logger.handlers:
        root_logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(JSONFormatter())
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(file_handler)


def set_import_id(import_id: Optional[str] = None) -> str:
    """Imposta l'import_id del thread corrente (nuovo uuid se non indicato)."""
    _context.import_id = import_id or uuid.uuid4().hex[:12]
    return _context.import_id


def get_import_id() -> str:
    return getattr(_context, "import_id", "GLOBAL")


def clear_import_id():
    if hasattr(_context, "import_id"):
        del _context.import_id


class ImportLoggerAdapter(logging.LoggerAdapter):
    """Permette di passare campi strutturati come keyword: logger.info("msg", righe=3)."""

    def process(self, msg: Any, kwargs: Any) -> tuple:
        extra = dict(kwargs.get("extra") or {})
        fields = dict(extra.get("extra_fields") or {})

        standard_args = {"exc_info", "stack_info", "stacklevel", "extra"}
        new_kwargs = {}
        for key, value in kwargs.items():
            if key in standard_args:
                new_kwargs[key] = value
            else:
                fields[key] = value

        extra["extra_fields"] = fields
        new_kwargs["extra"] = extra
        return msg, new_kwargs


def get_logger(name: str) -> ImportLoggerAdapter:
    return ImportLoggerAdapter(logging.getLogger(name), {})
