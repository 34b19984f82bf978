"""Durable storage error classes."""

from pathlib import Path
from typing import Optional, Union


class PersistenceUnavailable(Exception):
    """Raised when the backup sink cannot be read or written.

    Attributes:
        path: Destination path that failed
        reason: Description of what went wrong
    """

    def __init__(
        self,
        path: Union[str, Path],
        reason: str,
        *,
        operation: Optional[str] = None,
    ):
        self.path = str(path)
        self.reason = reason
        self.operation = operation
        action = f" during {operation}" if operation else ""
        super().__init__(f"Persistence unavailable{action}: path={self.path}, reason={reason}")
