"""Application-wide constants for wsgi-json-logs.

Environ keys, stream names and wire constants shared by the capture
machinery, the recorder and the formatters.
For user-configurable settings, see config.py.
"""

__all__ = [
    # Application identity
    "APP_NAME",
    # Environ keys owned by the middleware
    "ENV_PREFIX",
    "LOGGER_KEY",
    "EVENT_LOG_KEY",
    "REQUEST_ID_KEY",
    "HANDLED_ERROR_KEY",
    "FRAMEWORK_ERROR_KEY",
    "HANDLED_ERROR_KEYS",
    # Standard WSGI environ keys
    "ERRORS_KEY",
    "URL_SCHEME_KEY",
    # Stream names
    "STDOUT_STREAM",
    "STDERR_STREAM",
    # Record encoding
    "RECORD_SEPARATOR",
    "PRIMITIVE_TYPES",
    "REDIRECT_STATUSES",
    "DEFAULT_ERROR_STATUS",
]

# ============================================================================
# Application Identity
# ============================================================================

APP_NAME: str = "wsgi-json-logs"

# ============================================================================
# Environ Keys
# ============================================================================

ENV_PREFIX: str = "wsgi_json_logs."

# Request-scoped logger. Replaced by a LoggerProxy while the handler runs.
LOGGER_KEY: str = ENV_PREFIX + "logger"

# The active EventLog, for handlers that hand work to other threads.
EVENT_LOG_KEY: str = ENV_PREFIX + "event_log"

# Request id assigned by an outer framework layer. Wins over X-Request-ID.
REQUEST_ID_KEY: str = ENV_PREFIX + "request_id"

# Slots where a framework stashes an exception it handled itself.
# Checked in this order, after an exception that propagated from the handler.
HANDLED_ERROR_KEY: str = ENV_PREFIX + "error"
FRAMEWORK_ERROR_KEY: str = ENV_PREFIX + "exception"
HANDLED_ERROR_KEYS: tuple[str, str] = (HANDLED_ERROR_KEY, FRAMEWORK_ERROR_KEY)

# PEP 3333 keys
ERRORS_KEY: str = "wsgi.errors"
URL_SCHEME_KEY: str = "wsgi.url_scheme"

# ============================================================================
# Stream Names
# ============================================================================

STDOUT_STREAM: str = "stdout"
STDERR_STREAM: str = "stderr"

# ============================================================================
# Record Encoding
# ============================================================================

# ASCII record separator prefixed to each JSON record line (RFC 7464 style).
RECORD_SEPARATOR: str = "\x1e"

# Environ values of these types are logged as-is; anything else via repr().
PRIMITIVE_TYPES: tuple[type, ...] = (str, int, float, bool, type(None))

REDIRECT_STATUSES: frozenset[int] = frozenset({301, 302})

# Status recorded when the handler raised before producing a response.
DEFAULT_ERROR_STATUS: int = 500
