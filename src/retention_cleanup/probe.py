"""Check whether another process is holding a file open."""

from __future__ import annotations

import errno
import logging
from enum import Enum
from pathlib import Path


class ProbeOutcome(Enum):
    """Classification of an error raised while probing a file."""

    BUSY = "busy"  # Held by another process
    ACCESS_DENIED = "access_denied"  # Permission problem, not contention
    NOT_FOUND = "not_found"  # File vanished
    UNKNOWN = "unknown"  # Anything else


def _errno_set(*names: str) -> frozenset[int]:
    """Collect errno values that exist on this platform."""
    return frozenset(getattr(errno, name) for name in names if hasattr(errno, name))


_BUSY_ERRNOS = _errno_set("EBUSY", "EAGAIN", "ETXTBSY", "EMFILE", "ENFILE", "ESHUTDOWN", "EPIPE")
_ACCESS_ERRNOS = _errno_set("EACCES", "EPERM")
_NOT_FOUND_ERRNOS = _errno_set("ENOENT")

# ERROR_SHARING_VIOLATION, ERROR_LOCK_VIOLATION
_WINDOWS_BUSY_CODES = frozenset({32, 33})


def classify_os_error(exc: OSError) -> ProbeOutcome:
    """Map a platform I/O error onto a probe outcome.

    Windows reports locked files as ``PermissionError`` with a ``winerror``
    code, so that code is checked before ``errno``.
    """
    winerror = getattr(exc, "winerror", None)
    if winerror in _WINDOWS_BUSY_CODES:
        return ProbeOutcome.BUSY

    code = exc.errno
    if code in _BUSY_ERRNOS:
        return ProbeOutcome.BUSY
    if code in _ACCESS_ERRNOS:
        return ProbeOutcome.ACCESS_DENIED
    if code in _NOT_FOUND_ERRNOS:
        return ProbeOutcome.NOT_FOUND
    return ProbeOutcome.UNKNOWN


class LivenessProbe:
    """Non-destructive check for files that are in use."""

    # Never use a mode that truncates or creates the file
    PROBE_MODES = ("rb", "r+b")

    def __init__(self, logger: logging.Logger) -> None:
        self.logger = logger

    def is_in_use(self, path: Path) -> bool:
        """Probe a file by opening it for read, then for read-write.

        Args:
            path: File to probe.

        Returns:
            True if the file appears to be held by another process.

        """
        try:
            for mode in self.PROBE_MODES:
                with path.open(mode):
                    pass
        except OSError as e:
            outcome = classify_os_error(e)
            if outcome in (ProbeOutcome.ACCESS_DENIED, ProbeOutcome.NOT_FOUND):
                self.logger.debug("Probe failed for reasons other than use: %s (%s)", path, outcome.value)
                return False
            if outcome is ProbeOutcome.BUSY:
                self.logger.warning("File is in use: %s (%s)", path, e)
            else:
                self.logger.warning("Unrecognized error probing %s, treating as in use: %s", path, e)
            return True

        self.logger.debug("File is not in use: %s", path)
        return False
