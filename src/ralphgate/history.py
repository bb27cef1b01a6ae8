"""LMDB-backed history of gate runs.

The history is an optional, append-only log of run summaries kept across
agent iterations. The results file remains the record of a single run;
the history exists so earlier runs can be listed and compared.

Environment layout:
    <history_dir>/
        data.mdb
        lock.mdb
"""

import itertools
import logging
import os
from pathlib import Path
from typing import Iterator, Optional

import lmdb
import msgpack

from .gates.result import RunSummary

logger = logging.getLogger(__name__)

# DBI names
DBI_RUNS = b"runs"

ALL_DBIS = [DBI_RUNS]

# Key delimiter for LMDB keys
KEY_DELIMITER = "\x1f"  # Unit separator

# Default LMDB map size (256MB)
DEFAULT_MAP_SIZE = 256 * 1024 * 1024

# Disambiguates runs recorded by one process within the same millisecond
_sequence = itertools.count(1)


def make_run_key(timestamp: str, pid: int, seq: int) -> bytes:
    """Build a history key that sorts chronologically.

    Timestamps are fixed-width RFC3339, so byte order is time order.
    """
    return KEY_DELIMITER.join([timestamp, f"{pid:010d}", f"{seq:06d}"]).encode("utf-8")


def parse_run_key(key: bytes) -> tuple[str, int, int]:
    """Split a history key into (timestamp, pid, seq)."""
    timestamp, pid, seq = key.decode("utf-8").split(KEY_DELIMITER)
    return timestamp, int(pid), int(seq)


class RunHistory:
    """LMDB environment wrapper for the run history."""

    def __init__(self, history_dir: Path, readonly: bool = True):
        """Initialize the history.

        Args:
            history_dir: Directory holding the LMDB environment.
            readonly: Open in read-only mode (default True for listing).
        """
        self.history_dir = Path(history_dir)
        self.readonly = readonly
        self._env: Optional[lmdb.Environment] = None
        self._dbis: dict[bytes, lmdb._Database] = {}

    @property
    def exists(self) -> bool:
        """Check if a history environment exists on disk."""
        return (self.history_dir / "data.mdb").exists()

    def open(self) -> None:
        """Open the LMDB environment."""
        if self._env is not None:
            return

        if self.readonly and not self.exists:
            raise FileNotFoundError(f"History not found: {self.history_dir}")

        if not self.readonly:
            self.history_dir.mkdir(parents=True, exist_ok=True)

        self._env = lmdb.open(
            str(self.history_dir),
            map_size=DEFAULT_MAP_SIZE,
            max_dbs=len(ALL_DBIS),
            readonly=self.readonly,
            create=not self.readonly,
            subdir=True,
        )
        for dbi_name in ALL_DBIS:
            self._dbis[dbi_name] = self._env.open_db(dbi_name, create=not self.readonly)

    def close(self) -> None:
        """Close the LMDB environment."""
        if self._env is not None:
            self._env.close()
            self._env = None
            self._dbis.clear()

    def __enter__(self) -> "RunHistory":
        self.open()
        return self

    def __exit__(self, *args) -> None:
        self.close()

    @property
    def env(self) -> lmdb.Environment:
        """Get the LMDB environment."""
        if self._env is None:
            raise RuntimeError("History not open")
        return self._env

    def record(self, summary: RunSummary) -> bytes:
        """Append a run summary.

        Returns:
            The key the summary was stored under.
        """
        key = make_run_key(summary.timestamp, os.getpid(), next(_sequence))
        value = msgpack.packb(summary.to_dict(), use_bin_type=True)

        with self.env.begin(write=True) as txn:
            txn.put(key, value, db=self._dbis[DBI_RUNS])

        logger.debug("Recorded run %s in %s", key, self.history_dir)
        return key

    def iter_runs(self) -> Iterator[tuple[bytes, RunSummary]]:
        """Iterate runs newest first."""
        with self.env.begin() as txn:
            cursor = txn.cursor(db=self._dbis[DBI_RUNS])
            if not cursor.last():
                return
            while True:
                key, value = cursor.item()
                yield key, RunSummary.from_dict(msgpack.unpackb(value, raw=False))
                if not cursor.prev():
                    break

    def list_runs(self, limit: Optional[int] = None) -> list[RunSummary]:
        """List runs newest first, at most `limit` of them."""
        runs = []
        for _, summary in self.iter_runs():
            if limit is not None and len(runs) >= limit:
                break
            runs.append(summary)
        return runs

    def count(self) -> int:
        """Number of recorded runs."""
        with self.env.begin() as txn:
            return txn.stat(self._dbis[DBI_RUNS])["entries"]


def record_run(history_dir: Path, summary: RunSummary) -> bytes:
    """Convenience function to append one summary to a history."""
    with RunHistory(history_dir, readonly=False) as history:
        return history.record(summary)
