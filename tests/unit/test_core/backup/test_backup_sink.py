"""Tests for FileBackupSink and the backup line format.

Covers:
- Newline-delimited JSON layout
- Atomic rewrite (no stale records, no temp files left)
- Owner-only file permissions
- Corrupt line resilience on read
- PersistenceUnavailable on unwritable destinations
"""

import json
import os
import stat
import sys

import pytest
from filelock import FileLock

from metricol.core.backup.sink import FileBackupSink, decode_record, encode_record
from metricol.core.errors import PersistenceUnavailable
from metricol.core.metrics.model import Metric


class TestRecordCodec:
    def test_encode_counter(self):
        assert json.loads(encode_record(Metric.counter("requests", 8))) == {
            "kind": "counter",
            "name": "requests",
            "value": 8,
        }

    def test_encode_is_single_line(self):
        assert "\n" not in encode_record(Metric.gauge("name with\nnewline", 1.0))

    def test_decode_gauge(self):
        assert decode_record('{"kind":"gauge","name":"t","value":19.0}') == Metric.gauge("t", 19.0)

    @pytest.mark.parametrize(
        "line",
        [
            "not json",
            "{}",
            '{"kind":"counter","name":"c"}',
            '{"kind":"counter","name":"","value":1}',
            '{"kind":"counter","name":"c","value":"x"}',
            '{"kind":"timer","name":"c","value":1}',
            "[1, 2, 3]",
        ],
    )
    def test_decode_rejects(self, line):
        with pytest.raises(ValueError):
            decode_record(line)


class TestWrite:
    def test_writes_one_record_per_line(self, file_sink, backup_path):
        written = file_sink.write([Metric.counter("requests", 8), Metric.gauge("temperature", 19.0)])
        assert written == 2

        lines = backup_path.read_text().splitlines()
        assert [json.loads(line) for line in lines] == [
            {"kind": "counter", "name": "requests", "value": 8},
            {"kind": "gauge", "name": "temperature", "value": 19.0},
        ]

    def test_creates_parent_directories(self, tmp_path):
        sink = FileBackupSink(tmp_path / "a" / "b" / "c" / "metrics.jsonl")
        sink.write([Metric.counter("x", 1)])
        assert sink.exists()

    def test_rewrite_replaces_contents(self, file_sink, backup_path):
        file_sink.write([Metric.counter("a", 1), Metric.counter("b", 2), Metric.counter("c", 3)])
        file_sink.write([Metric.counter("a", 10)])
        assert backup_path.read_text() == '{"kind":"counter","name":"a","value":10}\n'

    def test_empty_snapshot_truncates(self, file_sink, backup_path):
        file_sink.write([Metric.counter("a", 1)])
        assert file_sink.write([]) == 0
        assert backup_path.read_text() == ""

    def test_no_temp_files_left(self, file_sink, backup_path):
        file_sink.write([Metric.counter("a", 1)])
        leftovers = [p.name for p in backup_path.parent.iterdir() if p.name.endswith(".tmp")]
        assert leftovers == []

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
    def test_file_is_owner_only(self, file_sink, backup_path):
        file_sink.write([Metric.counter("a", 1)])
        mode = stat.S_IMODE(os.stat(backup_path).st_mode)
        assert mode == 0o600

    def test_unserializable_record_skipped(self, file_sink, backup_path):
        broken = Metric.gauge("broken", 1.0)
        broken.value = float("nan")
        written = file_sink.write([Metric.counter("ok", 1), broken, Metric.gauge("fine", 2.0)])

        assert written == 2
        names = [json.loads(line)["name"] for line in backup_path.read_text().splitlines()]
        assert names == ["ok", "fine"]

    def test_unwritable_destination(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("i am a file, not a directory")
        sink = FileBackupSink(blocker / "metrics.jsonl")

        with pytest.raises(PersistenceUnavailable) as exc_info:
            sink.write([Metric.counter("a", 1)])
        assert exc_info.value.operation == "write"
        assert exc_info.value.path.endswith("metrics.jsonl")

    def test_lock_timeout(self, backup_path):
        backup_path.parent.mkdir(parents=True)
        sink = FileBackupSink(backup_path, lock_timeout=0.05)
        # A second FileLock instance contends like another process would
        other = FileLock(str(sink.lock_path))
        with other:
            with pytest.raises(PersistenceUnavailable):
                sink.write([Metric.counter("a", 1)])


class TestRead:
    def test_missing_file_yields_nothing(self, file_sink):
        assert list(file_sink.read()) == []

    def test_reads_in_file_order(self, file_sink):
        metrics = [Metric.gauge("z", 1.0), Metric.counter("a", 2), Metric.gauge("m", 3.5)]
        file_sink.write(metrics)
        assert [m for _, m in file_sink.read()] == metrics

    def test_skips_corrupt_and_blank_lines(self, file_sink, backup_path, caplog):
        backup_path.parent.mkdir(parents=True)
        backup_path.write_text(
            '{"kind":"counter","name":"a","value":1}\n'
            "\n"
            '{"kind":"counter","name":"b","val\n'
            '{"type":"gauge","name":"c","value":2.5,"extra":true}\n'
        )

        records = list(file_sink.read())
        assert records == [(1, Metric.counter("a", 1)), (4, Metric.gauge("c", 2.5))]
        assert any("corrupt backup line 3" in r.message for r in caplog.records)

    def test_unreadable_path(self, tmp_path):
        directory = tmp_path / "metrics.jsonl"
        directory.mkdir()
        sink = FileBackupSink(directory)
        with pytest.raises(PersistenceUnavailable):
            list(sink.read())
