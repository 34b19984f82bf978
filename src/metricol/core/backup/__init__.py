"""
Backup and restore of a metrics repository.

- sink: BackupSink protocol, FileBackupSink (newline-delimited JSON file)
- manager: BackupManager, BackupState, BackupStats
"""

from metricol.core.backup.manager import BackupManager, BackupState, BackupStats
from metricol.core.backup.sink import (
    BackupSink,
    FileBackupSink,
    decode_record,
    encode_record,
)

__all__ = [
    # sink
    "BackupSink",
    "FileBackupSink",
    "decode_record",
    "encode_record",
    # manager
    "BackupManager",
    "BackupState",
    "BackupStats",
]
