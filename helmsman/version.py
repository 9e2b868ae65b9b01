"""
Helmsman build metadata.

- BuildInfo(host, revision, timestamp): build provenance; timestamp is in
  milliseconds since the epoch (UTC).
- Version(version, copyright, license, url, build): what --version prints.
- collect(...): gather build provenance from the current machine.
- initialize(metadata) / current(): process-wide metadata, set once.

Output layout (byte-exact, four lines, no trailing newline):

    Version: 0.1.0
    Copyright (c) 2025 Example Corp
    MIT: https://github.com/example/repo/blob/main/LICENSE
    Build: abc123d @ builder.local (2023-11-14T22:13:20+00:00)
"""
import logging
import socket
import subprocess
import time
from datetime import datetime, timedelta, timezone
from typing import NamedTuple

from .utils import *

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
UNKNOWN = "unknown"


def isoformat(timestamp, /):
    """
    Render a millisecond timestamp as ISO-8601 with a +00:00 offset.

    Milliseconds are shown only when non-zero; timestamps outside the range of
    datetime fall back to the epoch.

    Examples
    - isoformat(1700000000000) -> "2023-11-14T22:13:20+00:00"
    - isoformat(1700000000123) -> "2023-11-14T22:13:20.123+00:00"
    """
    try:
        moment = EPOCH + timedelta(milliseconds=timestamp)
    except (OverflowError, TypeError):
        moment = EPOCH
    return moment.isoformat(timespec="milliseconds" if moment.microsecond else "seconds")


class BuildInfo(NamedTuple):
    host: str
    revision: str
    timestamp: int

    @property
    def short(self):
        """First seven characters of the revision."""
        return self.revision[:7]

    def __str__(self):
        return f"Build: {self.short} @ {self.host} ({isoformat(self.timestamp)})"


class Version(NamedTuple):
    version: str
    copyright: str
    license: str
    url: str
    build: BuildInfo

    def lines(self):
        """The four output lines, in order."""
        return (
            f"Version: {self.version}",
            self.copyright,
            f"{self.license}: {self.url}",
            str(self.build),
        )

    def __str__(self):
        return "\n".join(self.lines())


def _revision():
    try:
        completed = subprocess.run(
            ["git", "rev-parse", "HEAD"],
            capture_output=True,
            text=True,
            check=True,
            timeout=5,
        )
    except (OSError, subprocess.SubprocessError) as error:
        logger.debug("cannot read git revision: %s", error)
        return UNKNOWN
    return completed.stdout.strip() or UNKNOWN


def _host():
    try:
        return socket.gethostname() or UNKNOWN
    except OSError as error:
        logger.debug("cannot read host name: %s", error)
        return UNKNOWN


def collect(version, copyright, license, url, /, host=Unset, revision=Unset, timestamp=Unset):
    """
    Build a Version from the current machine.

    Parameters
    - version, copyright, license, url: str
      Release metadata, printed as-is.
    - host: Unset | str
      Build host; the socket host name when omitted ("unknown" on failure).
    - revision: Unset | str
      Commit id; `git rev-parse HEAD` when omitted ("unknown" on failure).
    - timestamp: Unset | int
      Milliseconds since the epoch; the current time when omitted.

    Returns
    - Version
    """
    for name, value in (("version", version), ("copyright", copyright), ("license", license), ("url", url)):
        if not isinstance(value, str):
            raise TypeError(f"collect() {name!r} must be a string")

    if timestamp is Unset:
        timestamp = time.time_ns() // 1_000_000
    elif isinstance(timestamp, bool) or not isinstance(timestamp, int):
        raise TypeError("collect() 'timestamp' must be an integer")

    build = BuildInfo(
        coalesce(host) or _host(),
        coalesce(revision) or _revision(),
        timestamp,
    )
    return Version(version, copyright, license, url, build)


_metadata = None


def initialize(metadata, /):
    """
    Set the process-wide build metadata. Can be called once.

    Raises
    - TypeError when metadata is not a Version.
    - RuntimeError when metadata was already initialized.
    """
    global _metadata
    if not isinstance(metadata, Version):
        raise TypeError("initialize() argument must be a version")
    if _metadata is not None:
        raise RuntimeError("build metadata is already initialized")
    _metadata = metadata
    logger.debug("initialized build metadata %r", metadata)
    return metadata


def current():
    """
    Return the process-wide build metadata, or None before initialize().
    """
    return _metadata


__all__ = (
    "BuildInfo",
    "Version",
    "collect",
    "initialize",
    "current",
    "isoformat",
)
