"""Unit tests for the backup dump and compact commands."""

import json

from metricol.cli.main import cli


class TestDump:
    def test_json(self, cli_runner, backup_file):
        result = cli_runner.invoke(cli, ["backup", "dump"])

        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert payload["success"] is True
        assert payload["data"]["count"] == 2
        assert payload["data"]["path"] == str(backup_file)
        assert payload["data"]["metrics"] == [
            {"kind": "counter", "name": "requests", "value": 8},
            {"kind": "gauge", "name": "temperature", "value": 19.0},
        ]

    def test_text(self, cli_runner, backup_file):
        result = cli_runner.invoke(cli, ["backup", "dump", "--format", "text"])

        assert result.exit_code == 0, result.output
        assert result.stdout.splitlines() == ["counter requests=8", "gauge temperature=19.0"]

    def test_table(self, cli_runner, backup_file):
        result = cli_runner.invoke(cli, ["backup", "dump", "--format", "table"])

        assert result.exit_code == 0, result.output
        assert "requests" in result.stdout
        assert "19.0" in result.stdout

    def test_prometheus(self, cli_runner, backup_file):
        result = cli_runner.invoke(cli, ["backup", "dump", "--format", "prometheus"])

        assert result.exit_code == 0, result.output
        assert "metricol_requests_total 8.0" in result.stdout
        assert "metricol_temperature 19.0" in result.stdout

    def test_missing_backup_is_empty(self, cli_runner, store_dir):
        result = cli_runner.invoke(cli, ["backup", "dump"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["data"]["metrics"] == []

    def test_does_not_modify_file(self, cli_runner, backup_file):
        before = backup_file.read_text()
        cli_runner.invoke(cli, ["backup", "dump"])
        assert backup_file.read_text() == before


class TestCompact:
    def test_drops_corrupt_lines(self, cli_runner, backup_file):
        result = cli_runner.invoke(cli, ["backup", "compact"])

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["data"]["count"] == 2
        records = [json.loads(line) for line in backup_file.read_text().splitlines()]
        assert records == [
            {"kind": "counter", "name": "requests", "value": 8},
            {"kind": "gauge", "name": "temperature", "value": 19.0},
        ]

    def test_unwritable_storage(self, cli_runner, store_dir):
        # A regular file where the storage directory should be
        store_dir.write_text("")

        result = cli_runner.invoke(cli, ["backup", "compact"])

        assert result.exit_code == 1
        payload = json.loads(result.stdout)
        assert payload["success"] is False
        assert payload["error_code"] == "UNAVAILABLE"


class TestRootOptions:
    def test_version(self, cli_runner, store_dir):
        result = cli_runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "metricol" in result.stdout

    def test_invalid_config_is_usage_error(self, cli_runner, store_dir):
        (store_dir.parent / "metricol.toml").write_text('[backup]\nfile_name = ""\n')

        result = cli_runner.invoke(cli, ["backup", "dump"])

        assert result.exit_code == 2
        assert "file name" in result.output
