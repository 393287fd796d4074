"""Tests for CommandTranslator rendering and execution."""

import logging
from datetime import datetime

import pytest

from targetio.commands import mode_to_s, owner_group, touch_stamp
from targetio.errors import ConfigurationError, ExecutionFailed, InvalidArgument


@pytest.fixture
def translator(remote):
    return remote.translator


class TestRendering:
    """Exact command strings for each verb."""

    def test_chmod(self, translator):
        assert translator.chmod(0o644, "/etc/motd").command == "chmod 644 /etc/motd"

    def test_chmod_recursive_force(self, translator):
        assert translator.chmod(0o755, ["/a", "/b"], recursive=True, force=True).command == "chmod -Rf 755 /a /b"

    def test_chown_owner_only(self, translator):
        assert translator.chown("alice", None, "/x").command == "chown alice: /x"

    def test_chown_group_only(self, translator):
        assert translator.chown(None, "wheel", "/x").command == "chown :wheel /x"

    def test_chown_recursive(self, translator):
        assert translator.chown("alice", "wheel", "/x", recursive=True).command == "chown -R alice:wheel /x"

    def test_cp_preserve(self, translator):
        assert translator.cp("/a", "/b", preserve=True).command == "cp -p /a /b"

    def test_cp_recursive(self, translator):
        translated = translator.cp("/a", "/b", recursive=True, preserve=True, remove_destination=True)
        assert translated.command == "cp -rp --remove-destination /a /b"

    def test_cp_hardlink(self, translator):
        assert translator.cp("/a", "/b", recursive=True, hardlink=True).command == "cp -lr /a /b"

    def test_create_exclusive(self, translator):
        assert translator.create_exclusive("/tmp/my file").command == "(set -C; : > '/tmp/my file')"

    def test_install(self, translator):
        translated = translator.install("/a", "/b", mode=0o755, owner="root", group="root", preserve=True)
        assert translated.command == "install -c -p -m 755 -o root -g root /a /b"

    def test_ln_symbolic_force(self, translator):
        assert translator.ln("/a", "/b", symbolic=True, force=True).command == "ln -sf /a /b"

    def test_mkdir_parents_mode(self, translator):
        assert translator.mkdir(["/a/b/c"], parents=True, mode=0o755).command == "mkdir -p -m 755 /a/b/c"

    def test_mv_force(self, translator):
        assert translator.mv("/a", "/b", force=True).command == "mv -f /a /b"

    def test_rm_recursive_force(self, translator):
        assert translator.rm("/tmp/x", recursive=True, force=True).command == "rm -rf /tmp/x"

    def test_rmdir_parents(self, translator):
        assert translator.rmdir("/a/b", parents=True).command == "rmdir -p /a/b"

    def test_touch(self, translator):
        translated = translator.touch("/f", mtime=datetime(2024, 1, 2, 3, 4, 5), nocreate=True)
        assert translated.command == "touch -c -t 202401020304.05 /f"

    def test_utime(self, translator):
        translated = translator.utime(datetime(2024, 1, 1), datetime(2024, 1, 2), "/f")
        assert translated.command == "touch -a -t 202401010000.00 /f && touch -m -t 202401020000.00 /f"

    def test_permission_test_with_principal(self, translator):
        assert translator.test("r", "/f", "deploy").command == "sudo -n -u deploy test -r /f"

    def test_unknown_test_flag(self, translator):
        with pytest.raises(InvalidArgument):
            translator.test("z", "/f")

    def test_stat(self, translator):
        assert translator.stat("/f").command == "stat -L -c '%u %g %f' /f"
        assert translator.stat("/f", follow_links=False).command == "stat -c '%u %g %f' /f"

    def test_paths_with_spaces_are_quoted(self, translator):
        assert translator.rm("/tmp/my file").command == "rm '/tmp/my file'"

    def test_queries(self, translator):
        assert translator.whoami().command == "id -nu"
        assert translator.list_dir("/srv").command == "ls -A1 /srv"
        assert translator.find("/etc/").command == "find /etc/"


class TestHelpers:
    def test_mode_to_s(self):
        assert mode_to_s(0o644) == "644"
        assert mode_to_s(0o4755) == "4755"
        assert mode_to_s(0o7) == "007"

    @pytest.mark.parametrize("mode", ["644", True, 6.44, None, 0o17777, -1])
    def test_mode_to_s_rejects(self, mode):
        with pytest.raises(InvalidArgument):
            mode_to_s(mode)

    def test_owner_group_requires_one(self):
        with pytest.raises(InvalidArgument):
            owner_group(None, None)

    def test_touch_stamp_from_epoch(self):
        moment = datetime(2023, 6, 1, 12, 30, 15)
        assert touch_stamp(moment.timestamp()) == "202306011230.15"


class TestExecution:
    """Running translated commands through the session."""

    def test_noop_never_reaches_session(self, translator, session):
        translated = translator.run(translator.rm("/x", noop=True))

        assert session.commands == []
        assert translated.result is None
        assert translated.ok
        assert not translated.executed

    def test_success_attaches_result(self, translator, session):
        session.respond("realpath /x", stdout="/real/x\n")

        translated = translator.run(translator.realpath("/x"))

        assert translated.executed
        assert translated.stdout == "/real/x\n"
        assert session.commands == ["realpath /x"]

    def test_failure_raises(self, translator, session):
        session.respond("rm /x", stderr="rm: cannot remove '/x'", exit_status=1)

        with pytest.raises(ExecutionFailed) as exc_info:
            translator.run(translator.rm("/x"))

        assert exc_info.value.exit_status == 1
        assert exc_info.value.command == "rm /x"
        assert "cannot remove" in str(exc_info.value)

    def test_unchecked_failure_returns(self, translator, session):
        session.respond("test -r /x", exit_status=1)

        translated = translator.run(translator.test("r", "/x"), check=False)

        assert not translated.ok
        assert translated.result.exit_status == 1

    def test_verbose_logs_before_running(self, translator, caplog):
        caplog.set_level(logging.INFO, logger="targetio")

        translator.run(translator.mkdir("/x", verbose=True))

        assert "mkdir /x" in caplog.text

    def test_no_session(self, local):
        translator = local.translator
        with pytest.raises(ConfigurationError):
            translator.run(translator.rm("/x"))
