"""Protocol definition for transaction record formatters (sinks).

A formatter receives each finished TransactionRecord exactly once, together
with the logger it should write through and the request environ. Formatters
are structural: any callable with this signature qualifies, no base class
required.

Example:

    class CollectingFormatter:
        def __init__(self) -> None:
            self.records = []

        def __call__(self, logger, record, environ) -> None:
            self.records.append(record)
"""

from __future__ import annotations

__all__ = [
    "Formatter",
]

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Protocol, Union, runtime_checkable

if TYPE_CHECKING:
    import logging

    from wsgi_json_logs.models.record import TransactionRecord


@runtime_checkable
class Formatter(Protocol):
    """Renders or ships one TransactionRecord.

    Called synchronously by the middleware after the request's capture scope
    has been torn down, so anything the formatter writes goes to the real
    channels. Exceptions raised here are reported and swallowed by the
    middleware; they never replace the handler's outcome.
    """

    def __call__(
        self,
        logger: Union["logging.Logger", "logging.LoggerAdapter"],
        record: "TransactionRecord",
        environ: Mapping[str, Any],
    ) -> None:
        """Emit ``record`` through ``logger``."""
        ...
