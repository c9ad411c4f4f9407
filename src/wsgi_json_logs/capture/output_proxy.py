"""Output channel proxies.

OutputProxy wraps a writable channel (``sys.stdout``, ``environ["wsgi.errors"]``,
a file, a byte buffer). Each write checks the capture scope of the calling
thread at call time:

- Scope active: the payload becomes one LogEvent in that scope's EventLog and
  the real channel never sees it.
- No scope: the write goes to the real channel unchanged.

Higher-level writes decompose into the same elementary ``write`` calls the
real channel would get (``print`` writes each argument, separator and end;
``writelines`` writes each item), so the captured bodies of one stream,
concatenated, reproduce what was written.

StdioCapture installs proxies over ``sys.stdout``/``sys.stderr`` for as long as
at least one request is in flight, and puts the original objects back when
the last one finishes.
"""

from __future__ import annotations

__all__ = [
    "OutputProxy",
    "StdioCapture",
    "stdio_capture",
]

import sys
import threading
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from typing import Any

from wsgi_json_logs.capture.scope import current_event_log
from wsgi_json_logs.constants import STDERR_STREAM, STDOUT_STREAM

# File descriptor -> stream name for channels that don't get an explicit name
_FD_STREAM_NAMES: dict[int, str] = {1: STDOUT_STREAM, 2: STDERR_STREAM}


class OutputProxy:
    """Writable channel wrapper that captures writes made inside a scope.

    Attributes not defined here (``encoding``, ``isatty``, ``fileno``, ...)
    are read from the wrapped channel.
    """

    def __init__(self, channel: Any, stream_name: str | None = None) -> None:
        """Wrap a channel.

        Args:
            channel: Object with a callable ``write``.
            stream_name: Name recorded on captured events. Derived from the
                channel's file descriptor when omitted.

        Raises:
            TypeError: If ``channel`` is not writable.
        """
        if not callable(getattr(channel, "write", None)):
            raise TypeError(f"{type(self).__name__} needs a writable channel (an object with write()), got {channel!r}")
        self._channel = channel
        self._stream_name = stream_name
        self._buffer_proxy: OutputProxy | None = None

    @property
    def wrapped(self) -> Any:
        """The real channel behind this proxy."""
        return self._channel

    @property
    def stream_name(self) -> str:
        """Stream name recorded on captured events."""
        if self._stream_name is not None:
            return self._stream_name
        try:
            fd = self._channel.fileno()
        except (AttributeError, OSError, ValueError):
            fd = None
        if fd in _FD_STREAM_NAMES:
            return _FD_STREAM_NAMES[fd]
        return repr(self._channel)

    def write(self, data: Any) -> Any:
        """Capture or forward one write.

        Args:
            data: Text or bytes-like, as the wrapped channel accepts. Mutable
                buffers are copied when captured.

        Returns:
            Number of characters/bytes written, as the real channel reports it.
        """
        event_log = current_event_log()
        if event_log is None:
            return self._channel.write(data)
        if isinstance(data, (bytearray, memoryview)):
            # Captured bodies must not alias the caller's buffer
            data = bytes(data)
        event_log.record(self.stream_name, data)
        return len(data)

    def writelines(self, lines: Iterable[Any]) -> None:
        """Write each item with its own ``write`` call."""
        for line in lines:
            self.write(line)

    def flush(self) -> None:
        """Flush the real channel; nothing to flush while capturing."""
        if current_event_log() is not None:
            return
        flush = getattr(self._channel, "flush", None)
        if flush is not None:
            flush()

    @property
    def buffer(self) -> OutputProxy:
        """Byte-level proxy over the channel's buffer, under the same stream name.

        Raises:
            AttributeError: If the wrapped channel has no ``buffer``.
        """
        if self._buffer_proxy is None:
            self._buffer_proxy = OutputProxy(self._channel.buffer, self.stream_name)
        return self._buffer_proxy

    def __getattr__(self, name: str) -> Any:
        if name == "_channel":
            raise AttributeError(name)
        return getattr(self._channel, name)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} stream={self.stream_name!r} wrapping {self._channel!r}>"


class StdioCapture:
    """Reference-counted installation of proxies over ``sys.stdout``/``sys.stderr``.

    The first ``acquire()`` swaps the process streams for proxies, the last
    ``release()`` restores the exact objects that were there before. Requests
    running concurrently share one installation, so proxies never stack and
    restoration never races.

    A stream reassigned while the proxies are installed (e.g. by
    ``contextlib.redirect_stdout``) is left as the caller set it.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._depth = 0
        self._originals: tuple[Any, Any] | None = None
        self._proxies: tuple[Any, Any] | None = None

    @property
    def installed(self) -> bool:
        """Whether proxies are currently installed by this capture."""
        return self._depth > 0

    def acquire(self) -> None:
        """Install the proxies if not already installed; count one user."""
        with self._lock:
            if self._depth == 0:
                self._originals = (sys.stdout, sys.stderr)
                sys.stdout = _proxy_for(sys.stdout, STDOUT_STREAM)
                sys.stderr = _proxy_for(sys.stderr, STDERR_STREAM)
                self._proxies = (sys.stdout, sys.stderr)
            self._depth += 1

    def release(self) -> None:
        """Drop one user; restore the original streams when none remain."""
        with self._lock:
            if self._depth == 0:
                return
            self._depth -= 1
            if self._depth == 0 and self._originals is not None:
                original_out, original_err = self._originals
                proxy_out, proxy_err = self._proxies
                if sys.stdout is proxy_out:
                    sys.stdout = original_out
                if sys.stderr is proxy_err:
                    sys.stderr = original_err
                self._originals = None
                self._proxies = None

    @contextmanager
    def installed_for(self) -> Iterator[None]:
        """Keep the proxies installed for the duration of the block."""
        self.acquire()
        try:
            yield
        finally:
            self.release()


def _proxy_for(channel: Any, stream_name: str) -> Any:
    """Wrap a process stream, leaving an existing proxy as is."""
    if channel is None or isinstance(channel, OutputProxy):
        return channel
    return OutputProxy(channel, stream_name)


# Process-wide instance shared by every middleware
stdio_capture = StdioCapture()
