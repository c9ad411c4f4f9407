"""Middleware configuration for wsgi-json-logs.

Settings cover the options that can be expressed in a file: booleans for the
trace filters, stdio capture, the formatter by name and the handled-error
environ slots. Predicates and loggers are code, and are passed as keyword
overrides to ``JsonLogsMiddleware.from_settings``.

Example usage:
    settings = load_settings(Path("json-logs.json"))
    app = JsonLogsMiddleware.from_settings(handler, settings, logger=my_logger)

Example file:
    {
        "formatter": "pretty",
        "trace_env": false,
        "capture_stdio": true
    }
"""

from __future__ import annotations

__all__ = [
    "FORMATTERS",
    "MiddlewareSettings",
    "load_settings",
]

import json
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from wsgi_json_logs.constants import HANDLED_ERROR_KEYS
from wsgi_json_logs.exceptions import ConfigurationError
from wsgi_json_logs.formatters.json_formatter import JSONFormatter
from wsgi_json_logs.formatters.pretty_formatter import PrettyFormatter

# Formatter name (settings value) -> formatter class
FORMATTERS: dict[str, type] = {
    "json": JSONFormatter,
    "pretty": PrettyFormatter,
}


class MiddlewareSettings(BaseModel):
    """File-expressible middleware options.

    Attributes:
        formatter: "json" (one JSON line per record) or "pretty" (console).
        trace_env: Include the request environ in records of failed requests.
        trace_stack: Include backtrace frames in records of failed requests.
        capture_stdio: Capture sys.stdout/sys.stderr writes during requests.
        error_keys: Environ slots checked, in order, for handled exceptions.
    """

    formatter: Literal["json", "pretty"] = "json"
    trace_env: bool = True
    trace_stack: bool = True
    capture_stdio: bool = True
    error_keys: tuple[str, ...] = Field(default=HANDLED_ERROR_KEYS, min_length=1)

    model_config = ConfigDict(extra="forbid", frozen=True)

    def middleware_options(self) -> dict[str, Any]:
        """Keyword arguments for JsonLogsMiddleware."""
        return {
            "formatter": FORMATTERS[self.formatter](),
            "trace_env": self.trace_env,
            "trace_stack": self.trace_stack,
            "capture_stdio": self.capture_stdio,
            "error_keys": self.error_keys,
        }


def load_settings(file_path: Path) -> MiddlewareSettings:
    """Load and validate settings from a JSON file.

    Args:
        file_path: Path to the JSON settings file.

    Returns:
        MiddlewareSettings: Validated settings.

    Raises:
        ConfigurationError: If the file cannot be read, is not JSON, or fails
            validation. The message lists each invalid field.
    """
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in settings file {file_path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Could not read settings file {file_path}: {e}") from e

    try:
        return MiddlewareSettings.model_validate(data)
    except ValidationError as e:
        errors = []
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"]) or "(root)"
            errors.append(f"  - {loc}: {error['msg']}")
        raise ConfigurationError(f"Invalid settings file {file_path}:\n" + "\n".join(errors)) from e
