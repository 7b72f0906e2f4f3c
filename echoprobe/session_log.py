"""
Per-peer traffic logs.

Each connection appends to logs/<peer-ip>.log and each scan rewrites
logs/<target-ip>-scan.log. Lines are human-readable, timestamped and
flushed as they are written so concurrent sessions from one peer
interleave by whole lines.
"""

from datetime import datetime
from pathlib import Path
from typing import Union


def connection_log_path(log_dir: Union[str, Path], ip: str) -> Path:
    return Path(log_dir) / f"{ip}.log"


def scan_log_path(log_dir: Union[str, Path], ip: str) -> Path:
    return Path(log_dir) / f"{ip}-scan.log"


class SessionLog:
    """Line-oriented text log owned by exactly one session."""

    def __init__(self, path: Union[str, Path], append: bool = True):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._file = open(self.path, "a" if append else "w", encoding="utf-8")

    @classmethod
    def for_connection(cls, log_dir, ip: str) -> "SessionLog":
        return cls(connection_log_path(log_dir, ip), append=True)

    @classmethod
    def for_scan(cls, log_dir, ip: str) -> "SessionLog":
        return cls(scan_log_path(log_dir, ip), append=False)

    def write(self, event: str):
        stamp = datetime.now().isoformat(timespec="milliseconds")
        self._file.write(f"[{stamp}] {event}\n")
        self._file.flush()

    def close(self):
        self._file.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
