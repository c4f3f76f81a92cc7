"""Tests for the MySQL collaborators (subprocess calls are mocked unless noted)."""

import gzip
import os
import shutil
import subprocess
from unittest.mock import MagicMock, patch

import pytest

from simplebackup.collaborators.mysql import (
    COMMAND_NOT_RUN,
    MySQLConnection,
    MySQLDumpProducer,
    MySQLEntityLister,
)
from simplebackup.exceptions import CollaboratorFailure
from simplebackup.rotation.tiers import TierName, build_tier_catalog

CONNECTION = MySQLConnection(host="localhost", user="backup", password="s3cret")

needs_shell_tools = pytest.mark.skipif(
    not (shutil.which("nice") and shutil.which("gzip") and shutil.which("sh")),
    reason="requires nice, gzip and sh on PATH",
)


@pytest.fixture
def daily():
    return build_tier_catalog(["0", "7", "0", "0", "0"])[0]


@pytest.fixture
def fake_mysqldump(tmp_path, monkeypatch):
    """Install a shell script named ``mysqldump`` at the front of PATH."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()

    def install(body: str):
        script = bin_dir / "mysqldump"
        script.write_text(f"#!/bin/sh\n{body}\n")
        script.chmod(0o755)
        monkeypatch.setenv("PATH", f"{bin_dir}{os.pathsep}{os.environ.get('PATH', '')}")
        return script

    return install


def _popen(returncode: int, stderr: bytes = b""):
    """Fake Popen factory result that exits with ``returncode``."""
    process = MagicMock()
    process.stdout = MagicMock()
    process.wait.return_value = returncode
    process.stderr_output = stderr
    return process


def _popen_side_effect(*processes):
    """Hand out ``processes`` in order, writing each one's stderr to its sink."""
    queue = list(processes)

    def fake_popen(args, **kwargs):
        process = queue.pop(0)
        sink = kwargs.get("stderr")
        if process.stderr_output and sink is not None and hasattr(sink, "write"):
            sink.write(process.stderr_output)
        return process

    return fake_popen


class TestMySQLConnection:
    """Tests for MySQLConnection."""

    def test_client_args(self):
        assert CONNECTION.client_args() == ["-hlocalhost", "-ubackup", "-ps3cret"]

    def test_repr_hides_password(self):
        assert "s3cret" not in repr(CONNECTION)


class TestMySQLEntityLister:
    """Tests for MySQLEntityLister."""

    def test_lists_databases(self):
        completed = subprocess.CompletedProcess(args=[], returncode=0, stdout="app\nmysql\n\nshop\n", stderr="")

        with patch("simplebackup.collaborators.mysql.subprocess.run", return_value=completed) as run:
            names = MySQLEntityLister(CONNECTION).list_entities()

        assert names == ["app", "mysql", "shop"]
        args = run.call_args[0][0]
        assert args[:3] == ["nice", "-n", "19"]
        assert args[3] == "mysql"
        assert args[-4:] == ["-e", "show databases", "-B", "-N"]

    def test_failure_raises_with_status(self):
        completed = subprocess.CompletedProcess(args=[], returncode=5, stdout="", stderr="Access denied")

        with patch("simplebackup.collaborators.mysql.subprocess.run", return_value=completed):
            with pytest.raises(CollaboratorFailure, match="Access denied") as exc_info:
                MySQLEntityLister(CONNECTION).list_entities()

        assert exc_info.value.exit_code == 5


class TestMySQLDumpProducer:
    """Tests for MySQLDumpProducer."""

    def test_command_includes_extra_args(self):
        producer = MySQLDumpProducer(CONNECTION, ["--default-character-set=utf8"])

        assert producer.command("app") == [
            "nice", "-n", "19",
            "mysqldump", "--default-character-set=utf8",
            "-hlocalhost", "-ubackup", "-ps3cret",
            "app",
        ]

    def test_produce_pipes_dump_through_gzip(self, tmp_path, daily):
        target = tmp_path / "2024_03_15_12:00:00__app.tar.gz"
        dump, gz = _popen(0), _popen(0)

        with patch("simplebackup.collaborators.mysql.subprocess.Popen", side_effect=_popen_side_effect(dump, gz)) as popen:
            artifact = MySQLDumpProducer(CONNECTION).produce("app", target, daily)

        dump_call, gzip_call = popen.call_args_list
        assert dump_call[0][0][3] == "mysqldump"
        assert gzip_call[0][0] == ["nice", "-n", "19", "gzip", "-c"]
        assert gzip_call[1]["stdin"] is dump.stdout
        dump.stdout.close.assert_called_once()
        assert artifact.path == target
        assert artifact.entity == "app"
        assert artifact.tier == TierName.DAILY

    def test_dump_failure_removes_partial_file(self, tmp_path, daily):
        target = tmp_path / "2024_03_15_12:00:00__app.tar.gz"
        dump, gz = _popen(2, stderr=b"Unknown database 'app'"), _popen(0)

        with patch("simplebackup.collaborators.mysql.subprocess.Popen", side_effect=_popen_side_effect(dump, gz)):
            with pytest.raises(CollaboratorFailure, match="Unknown database") as exc_info:
                MySQLDumpProducer(CONNECTION).produce("app", target, daily)

        assert exc_info.value.operation == "mysqldump"
        assert exc_info.value.exit_code == 2
        assert not target.exists()

    def test_gzip_failure(self, tmp_path, daily):
        target = tmp_path / "2024_03_15_12:00:00__app.tar.gz"
        dump, gz = _popen(0), _popen(1)

        with patch("simplebackup.collaborators.mysql.subprocess.Popen", side_effect=_popen_side_effect(dump, gz)):
            with pytest.raises(CollaboratorFailure) as exc_info:
                MySQLDumpProducer(CONNECTION).produce("app", target, daily)

        assert exc_info.value.operation == "gzip"

    def test_dump_stderr_goes_to_a_file(self, tmp_path, daily):
        target = tmp_path / "2024_03_15_12:00:00__app.tar.gz"
        dump, gz = _popen(0), _popen(0)

        with patch("simplebackup.collaborators.mysql.subprocess.Popen", side_effect=_popen_side_effect(dump, gz)) as popen:
            MySQLDumpProducer(CONNECTION).produce("app", target, daily)

        dump_kwargs = popen.call_args_list[0][1]
        assert dump_kwargs["stdout"] == subprocess.PIPE
        assert dump_kwargs["stderr"] != subprocess.PIPE
        assert hasattr(dump_kwargs["stderr"], "fileno")

    def test_missing_program_raises_and_removes_target(self, tmp_path, daily):
        target = tmp_path / "2024_03_15_12:00:00__app.tar.gz"

        with patch(
            "simplebackup.collaborators.mysql.subprocess.Popen",
            side_effect=FileNotFoundError(2, "No such file or directory", "nice"),
        ):
            with pytest.raises(CollaboratorFailure, match="No such file") as exc_info:
                MySQLDumpProducer(CONNECTION).produce("app", target, daily)

        assert exc_info.value.operation == "mysqldump"
        assert exc_info.value.exit_code == COMMAND_NOT_RUN
        assert not target.exists()

    def test_gzip_not_started_stops_dump(self, tmp_path, daily):
        target = tmp_path / "2024_03_15_12:00:00__app.tar.gz"
        dump = _popen(0)
        started = [dump]

        def fake_popen(args, **kwargs):
            if started:
                return started.pop()
            raise PermissionError(13, "Permission denied", "gzip")

        with patch("simplebackup.collaborators.mysql.subprocess.Popen", side_effect=fake_popen):
            with pytest.raises(CollaboratorFailure, match="Permission denied"):
                MySQLDumpProducer(CONNECTION).produce("app", target, daily)

        dump.kill.assert_called_once()
        dump.stdout.close.assert_called_once()
        assert not target.exists()


@needs_shell_tools
class TestMySQLDumpProducerPipeline:
    """Runs the real nice/gzip pipeline against a scripted mysqldump."""

    def test_verbose_stderr_does_not_stall_the_dump(self, tmp_path, daily, fake_mysqldump):
        # Far more than a pipe buffer's worth of warnings before any output
        fake_mysqldump(
            'i=0\n'
            'while [ $i -lt 4000 ]; do\n'
            '  echo "Warning: using a password on the command line interface can be insecure $i" >&2\n'
            '  i=$((i+1))\n'
            'done\n'
            'echo "CREATE TABLE t (id int);"'
        )
        target = tmp_path / "2024_03_15_12:00:00__app.tar.gz"

        artifact = MySQLDumpProducer(CONNECTION).produce("app", target, daily)

        assert artifact.path == target
        with gzip.open(target, "rb") as f:
            assert f.read() == b"CREATE TABLE t (id int);\n"

    def test_failed_dump_reports_its_stderr(self, tmp_path, daily, fake_mysqldump):
        fake_mysqldump('echo "Unknown database \'app\'" >&2\nexit 2')
        target = tmp_path / "2024_03_15_12:00:00__app.tar.gz"

        with pytest.raises(CollaboratorFailure, match="Unknown database") as exc_info:
            MySQLDumpProducer(CONNECTION).produce("app", target, daily)

        assert exc_info.value.exit_code == 2
        assert not target.exists()
