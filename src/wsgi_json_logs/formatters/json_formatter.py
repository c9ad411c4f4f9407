"""JSON line formatter.

Emits each transaction record as a single INFO line: the ASCII record
separator followed by the JSON-encoded record, so that records stay
distinguishable from other output sharing the same log device.
"""

from __future__ import annotations

__all__ = ["JSONFormatter"]

import json
import logging
from collections.abc import Mapping
from typing import Any

from wsgi_json_logs.constants import RECORD_SEPARATOR
from wsgi_json_logs.models.record import TransactionRecord


class JSONFormatter:
    """Writes ``"\\x1e" + json.dumps(record)`` at INFO level."""

    def __init__(self, prefix: str = RECORD_SEPARATOR) -> None:
        """Initialize the formatter.

        Args:
            prefix: Prepended to every JSON line.
        """
        self.prefix = prefix

    def encode(self, record: TransactionRecord) -> str:
        """Encode a record as one prefixed JSON line (no trailing newline)."""
        return self.prefix + json.dumps(record.as_json())

    def __call__(
        self,
        logger: logging.Logger | logging.LoggerAdapter,
        record: TransactionRecord,
        environ: Mapping[str, Any],
    ) -> None:
        logger.info(self.encode(record))
