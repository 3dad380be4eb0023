"""
Structured logging configuration for the cross-document engine.

Provides two formatters:
- **ConsoleFormatter**: Human-readable colored output, tagged with the rule
  that emitted the record
- **JSONFormatter**: One JSON object per line carrying the rule, its document
  pairing and the structured form of any CrossDocError

Usage:
    from core.logging_config import configure_logging
    configure_logging(json_mode=args.json_log, log_file=args.log_file)
"""

import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from .errors import CrossDocError


def category_documents(category: str) -> List[str]:
    """Document types named by an issue category, e.g. PROTOCOL_SAP -> [PROTOCOL, SAP]."""
    if not category or category == "GLOBAL":
        return []
    return category.split("_")


def _error_entry(exc: BaseException) -> Dict[str, Any]:
    if isinstance(exc, CrossDocError):
        return exc.to_dict()
    return {"error_type": type(exc).__name__, "message": str(exc)}


class JSONFormatter(logging.Formatter):
    """Emit each log record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        rule = getattr(record, "rule", "")
        category = getattr(record, "category", "")
        if rule:
            entry["rule"] = rule
        if category:
            entry["category"] = category
            documents = category_documents(category)
            if documents:
                entry["documents"] = documents

        if record.exc_info and record.exc_info[1]:
            error = _error_entry(record.exc_info[1])
            # a rule-less record still names the rule the error came from
            if "rule" not in entry and error.get("rule"):
                entry["rule"] = error["rule"]
            entry["error"] = error
        return json.dumps(entry, ensure_ascii=False)


class ConsoleFormatter(logging.Formatter):
    """Human-readable formatter with level prefixes and a rule tag."""

    PREFIXES = {
        logging.DEBUG: "\033[90m[DEBUG]\033[0m",
        logging.INFO: "[INFO]",
        logging.WARNING: "\033[33m[WARN]\033[0m",
        logging.ERROR: "\033[31m[ERROR]\033[0m",
        logging.CRITICAL: "\033[1;31m[CRIT]\033[0m",
    }

    def format(self, record: logging.LogRecord) -> str:
        prefix = self.PREFIXES.get(record.levelno, f"[{record.levelname}]")
        rule = getattr(record, "rule", "")
        if rule:
            prefix = f"{prefix} ({rule})"
        line = f"{prefix} {record.getMessage()}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def configure_logging(
    *,
    json_mode: bool = False,
    log_file: Optional[str] = None,
    level: int = logging.INFO,
    quiet: bool = False,
) -> None:
    """
    Configure root logger for a validation or auto-fix run.

    Args:
        json_mode: If True, use JSON formatter for console output.
        log_file: If set, also write JSON logs to this file.
        level: Logging level (default INFO).
        quiet: If True, suppress console output (only file).
    """
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    if not quiet:
        console = logging.StreamHandler(sys.stderr)
        console.setLevel(level)
        console.setFormatter(JSONFormatter() if json_mode else ConsoleFormatter())
        root.addHandler(console)

    # run logs on disk are always JSON
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(level)
        fh.setFormatter(JSONFormatter())
        root.addHandler(fh)


class RuleLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that tags every record with the rule name and issue category."""

    def process(self, msg, kwargs):
        extra = kwargs.setdefault("extra", {})
        extra.setdefault("rule", self.extra.get("rule", ""))
        extra.setdefault("category", self.extra.get("category", ""))
        return msg, kwargs
