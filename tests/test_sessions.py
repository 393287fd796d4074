"""Concrete sessions: Docker (mocked subprocess), subprocess integration, builder."""

import os
import subprocess
import sys
from unittest.mock import patch

import pytest

from targetio.config import DockerSessionConfig, TargetModeConfig
from targetio.errors import ConfigurationError
from targetio.facades import TargetIO
from targetio.session import CommandResult
from targetio.sessions import DockerSession, SubprocessSession, build_session
from targetio.sessions.base import CommandFile, ShellSession


def completed(returncode=0, stdout=b"", stderr=b""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


class ScriptedShell(ShellSession):
    """ShellSession answering from a command -> CommandResult table."""

    def __init__(self, responses):
        super().__init__()
        self.responses = responses
        self.commands = []

    def run_command(self, command):
        self.commands.append(command)
        return self.responses.get(command, CommandResult("", exit_status=1))

    def read_bytes(self, path):
        raise FileNotFoundError(path)

    def write_bytes(self, path, data):
        pass


class TestDockerSession:
    @pytest.fixture
    def docker(self):
        return DockerSession("web-1", command_timeout_sec=3)

    def test_run_command(self, docker):
        with patch("targetio.sessions.docker.subprocess.run", return_value=completed(0, b"root\n")) as run:
            result = docker.run_command("id -nu")

        assert result == CommandResult(stdout="root\n", stderr="", exit_status=0)
        args, kwargs = run.call_args
        assert args[0] == ["docker", "exec", "web-1", "/bin/sh", "-c", "id -nu"]
        assert kwargs["timeout"] == 3

    def test_read_missing_file(self, docker):
        failure = completed(1, stderr=b"cat: /etc/nope: No such file or directory\n")
        with patch("targetio.sessions.docker.subprocess.run", return_value=failure):
            with pytest.raises(FileNotFoundError):
                docker.read_bytes("/etc/nope")

    def test_read_permission_denied(self, docker):
        failure = completed(1, stderr=b"cat: /etc/shadow: Permission denied\n")
        with patch("targetio.sessions.docker.subprocess.run", return_value=failure):
            with pytest.raises(PermissionError):
                docker.read_bytes("/etc/shadow")

    def test_write_pipes_bytes(self, docker):
        with patch("targetio.sessions.docker.subprocess.run", return_value=completed()) as run:
            docker.write_bytes("/srv/my file", b"payload")

        args, kwargs = run.call_args
        assert args[0] == ["docker", "exec", "-i", "web-1", "/bin/sh", "-c", "cat > '/srv/my file'"]
        assert kwargs["input"] == b"payload"

    def test_timeout(self, docker):
        expired = subprocess.TimeoutExpired(cmd="docker", timeout=3)
        with patch("targetio.sessions.docker.subprocess.run", side_effect=expired):
            with pytest.raises(TimeoutError):
                docker.run_command("sleep 10")

    def test_requires_container(self):
        with pytest.raises(ConfigurationError):
            DockerSession("")

    def test_platform_probe(self, docker):
        with patch("targetio.sessions.docker.subprocess.run", return_value=completed(0, b"Linux\n")) as run:
            assert docker.platform().is_unix
            assert docker.platform().name == "linux"

        assert run.call_count == 1


class TestCommandFile:
    def test_stat(self):
        shell = ScriptedShell({"stat -L -c '%u %g %f %Y %s' /f": CommandResult("0 0 81a4 1700000000 12\n")})

        data = CommandFile(shell, "/f").stat()

        assert data == {"uid": 0, "gid": 0, "mode": 0o100644, "mtime": 1700000000.0, "size": 12}

    def test_stat_missing(self):
        shell = ScriptedShell({})

        assert CommandFile(shell, "/nope").stat() is None
        with pytest.raises(FileNotFoundError):
            CommandFile(shell, "/nope").size()

    def test_predicates(self):
        shell = ScriptedShell({"test -d /srv": CommandResult("")})

        assert CommandFile(shell, "/srv").is_directory() is True
        assert CommandFile(shell, "/srv").is_file() is False
        assert shell.commands == ["test -d /srv", "test -f /srv"]

    def test_windows_when_uname_fails(self):
        assert ScriptedShell({}).platform().is_windows


class TestBuildSession:
    def test_disabled(self):
        assert build_session(TargetModeConfig()) is None

    def test_force(self):
        assert isinstance(build_session(TargetModeConfig(protocol="local"), force=True), SubprocessSession)

    def test_docker(self):
        config = TargetModeConfig(enabled=True, protocol="docker", docker=DockerSessionConfig(container="web-1"))

        session = build_session(config)

        assert isinstance(session, DockerSession)
        assert session.container == "web-1"

    def test_docker_without_container(self):
        with pytest.raises(ConfigurationError):
            build_session(TargetModeConfig(enabled=True, protocol="docker"))

    def test_unknown_protocol(self):
        with pytest.raises(ConfigurationError, match="ssh"):
            build_session(TargetModeConfig(enabled=True, protocol="ssh"))


@pytest.mark.skipif(sys.platform != "linux", reason="needs GNU coreutils")
class TestSubprocessIntegration:
    """The remote code path driven against the local host through /bin/sh."""

    @pytest.fixture
    def io(self):
        return TargetIO.remote(SubprocessSession())

    def test_write_read_stat(self, io, tmp_path):
        target = str(tmp_path / "conf.txt")

        with io.file.open(target, "w") as f:
            f.write("key=value\n")

        assert io.file.read(target) == "key=value\n"
        assert io.file.exists(target)
        assert io.file.size(target) == 10
        assert io.file.stat(target).uid == os.getuid()

    def test_fileutils_and_glob(self, io, tmp_path):
        base = str(tmp_path / "app")

        io.fileutils.mkdir_p(f"{base}/conf.d", mode=0o755)
        io.fileutils.touch([f"{base}/conf.d/a.conf", f"{base}/conf.d/.b.conf", f"{base}/conf.d/c.txt"])

        assert io.dir.glob(f"{base}/conf.d/*.conf") == [f"{base}/conf.d/a.conf"]
        assert sorted(io.dir.entries(f"{base}/conf.d")) == [".b.conf", "a.conf", "c.txt"]

        io.fileutils.rm_rf(base)
        assert not os.path.exists(base)

    def test_login_matches_uid(self, io):
        import pwd

        assert io.etc.getlogin() == pwd.getpwuid(os.geteuid()).pw_name
