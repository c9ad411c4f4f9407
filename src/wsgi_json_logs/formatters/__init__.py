"""Transaction record formatters.

Structure:
    protocol.py          Formatter protocol: (logger, record, environ) -> None
    json_formatter.py    JSONFormatter, one record-separator-prefixed JSON line
    pretty_formatter.py  PrettyFormatter, colorized console summary
"""

from wsgi_json_logs.formatters.json_formatter import JSONFormatter
from wsgi_json_logs.formatters.pretty_formatter import PrettyFormatter
from wsgi_json_logs.formatters.protocol import Formatter

__all__ = [
    "Formatter",
    "JSONFormatter",
    "PrettyFormatter",
]
