"""Newline-delimited JSON backup file.

Each line holds one independently decodable record::

    {"kind": "counter", "name": "requests", "value": 8}
    {"kind": "gauge", "name": "temperature", "value": 19.0}

Writes replace the whole file atomically (temp file + fsync + rename) under
a ``filelock`` so at most one writer, in any process, rewrites it at a time.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Protocol, Tuple, Union

from filelock import FileLock, Timeout
from pydantic import ValidationError

from metricol.core.errors.metrics import InvalidValue
from metricol.core.errors.storage import PersistenceUnavailable
from metricol.core.metrics.model import Metric, MetricRecord

# Owner-only access for the backup and its directory
FILE_DEFAULT_PERM = 0o600
DIR_DEFAULT_PERM = 0o750

# Lock acquisition timeout (seconds)
LOCK_ACQUISITION_TIMEOUT = 5


class BackupSink(Protocol):
    """Durable destination for repository snapshots."""

    def write(self, metrics: Iterable[Metric]) -> int: ...

    def read(self) -> Iterable[Tuple[int, Metric]]: ...


def encode_record(metric: Metric) -> str:
    """Serialize one metric to its backup line (without newline).

    Raises:
        ValueError: If the value is not JSON-representable
    """
    return json.dumps(metric.to_record(), separators=(",", ":"), allow_nan=False)


def decode_record(line: Union[str, bytes]) -> Metric:
    """Decode one backup line.

    Raises:
        ValueError: If the line is not a valid record
    """
    try:
        record = MetricRecord.model_validate_json(line)
    except ValidationError as e:
        raise ValueError(f"Malformed record: {e.error_count()} validation error(s)") from e
    try:
        return record.to_metric()
    except InvalidValue as e:
        raise ValueError(str(e)) from e


class FileBackupSink:
    """Backup destination on the local filesystem."""

    def __init__(
        self,
        path: Union[str, Path],
        *,
        lock_timeout: float = LOCK_ACQUISITION_TIMEOUT,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.path = Path(path)
        self.lock_path = self.path.with_name(self.path.name + ".lock")
        self.lock_timeout = lock_timeout
        self._logger = logger if logger is not None else logging.getLogger(__name__)

    def __repr__(self) -> str:
        return f"FileBackupSink({str(self.path)!r})"

    def _ensure_directory(self) -> None:
        self.path.parent.mkdir(mode=DIR_DEFAULT_PERM, parents=True, exist_ok=True)

    def write(self, metrics: Iterable[Metric]) -> int:
        """Atomically replace the backup with ``metrics``.

        A metric that fails to serialize is logged and left out; the rest
        are still written.

        Returns:
            Number of records written

        Raises:
            PersistenceUnavailable: If the directory, lock or file cannot be written
        """
        lines: List[str] = []
        for metric in metrics:
            try:
                lines.append(encode_record(metric))
            except (TypeError, ValueError) as e:
                self._logger.warning(
                    "Failed to serialize metric %s: %s",
                    metric.name,
                    e,
                    extra={"metric": metric.name, "kind": metric.kind.value},
                )
        payload = "".join(line + "\n" for line in lines)

        try:
            self._ensure_directory()
            with FileLock(self.lock_path, timeout=self.lock_timeout):
                self._replace(payload)
        except Timeout as e:
            raise PersistenceUnavailable(self.path, f"lock not acquired: {e}", operation="write") from e
        except OSError as e:
            raise PersistenceUnavailable(self.path, str(e), operation="write") from e

        self._logger.debug("Wrote %d records to %s", len(lines), self.path)
        return len(lines)

    def _replace(self, payload: str) -> None:
        # Atomic write: temp file + fsync + rename
        fd, temp_path = tempfile.mkstemp(
            dir=self.path.parent,
            prefix=f".{self.path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(temp_path, FILE_DEFAULT_PERM)
            os.replace(temp_path, self.path)
        except Exception:
            # Clean up temp file on error
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise

    def read(self) -> Iterator[Tuple[int, Metric]]:
        """Yield ``(line_number, metric)`` for every decodable line, in file order.

        Blank lines are ignored; malformed lines are logged and skipped. A
        missing file yields nothing.

        Raises:
            PersistenceUnavailable: If the file exists but cannot be read
        """
        try:
            with open(self.path, "r", encoding="utf-8", errors="replace") as f:
                lines = f.readlines()
        except FileNotFoundError:
            self._logger.info("No backup found at %s", self.path)
            return
        except OSError as e:
            raise PersistenceUnavailable(self.path, str(e), operation="read") from e

        for number, line in enumerate(lines, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                metric = decode_record(line)
            except ValueError as e:
                self._logger.warning(
                    "Skipping corrupt backup line %d in %s: %s",
                    number,
                    self.path,
                    e,
                    extra={"line": number, "path": str(self.path)},
                )
                continue
            yield number, metric

    def exists(self) -> bool:
        return self.path.is_file()
