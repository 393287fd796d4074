"""Translate filesystem intents into POSIX shell command strings.

Every argument token goes through shlex.quote, so plain paths render as-is
and paths with shell metacharacters are single-quoted.
"""

from __future__ import annotations

import os
import shlex
from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import datetime
from typing import TYPE_CHECKING, Any

from targetio.errors import ConfigurationError, ExecutionFailed, InvalidArgument
from targetio.session import CommandResult

if TYPE_CHECKING:
    from targetio.context import TargetContext

PathArg = str | os.PathLike | Iterable[str | os.PathLike]

STAT_FORMAT = "%u %g %f"


@dataclass(frozen=True)
class TranslatedCommand:
    """A rendered command and the directives that decide whether it runs."""

    command: str
    noop: bool = False
    verbose: bool = False
    result: CommandResult | None = None

    @property
    def executed(self) -> bool:
        return self.result is not None

    @property
    def ok(self) -> bool:
        return self.result is None or self.result.success

    @property
    def stdout(self) -> str:
        return self.result.stdout if self.result else ""

    def __str__(self) -> str:
        return self.command


def flatten(*items: PathArg) -> list[str]:
    tokens: list[str] = []
    for item in items:
        if isinstance(item, (str, os.PathLike)):
            tokens.append(os.fspath(item))
        else:
            tokens.extend(os.fspath(p) for p in item)
    return tokens


def quote_all(tokens: Iterable[str]) -> str:
    return " ".join(shlex.quote(t) for t in tokens)


def mode_to_s(mode: Any) -> str:
    # bool is an int subclass but never a meaningful mode
    if isinstance(mode, bool) or not isinstance(mode, int):
        raise InvalidArgument(f"mode must be an integer, got {mode!r}")
    if not 0 <= mode <= 0o7777:
        raise InvalidArgument(f"mode out of range: {mode:o}")
    return f"{mode:03o}"


def owner_group(owner: str | int | None, group: str | int | None) -> str:
    if owner is None and group is None:
        raise InvalidArgument("chown needs an owner or a group")
    if group is None:
        return f"{owner}:"
    if owner is None:
        return f":{group}"
    return f"{owner}:{group}"


def touch_stamp(value: datetime | float | int) -> str:
    if isinstance(value, (int, float)):
        value = datetime.fromtimestamp(value)
    return value.strftime("%Y%m%d%H%M.%S")


def _cluster(base: str, *flags: tuple[str, bool]) -> str:
    return base + "".join(flag for flag, enabled in flags if enabled)


class CommandTranslator:
    """Builds TranslatedCommands and runs them through the context's session."""

    def __init__(self, context: TargetContext) -> None:
        self._context = context

    def _make(self, tokens: list[str], args: list[str], *, noop: bool, verbose: bool) -> TranslatedCommand:
        command = " ".join(tokens + ([quote_all(args)] if args else []))
        return TranslatedCommand(command=command, noop=bool(noop), verbose=bool(verbose))

    # ── mutations ──

    def chmod(self, mode, paths: PathArg, *, recursive=False, force=False, noop=False, verbose=False):
        tokens = ["chmod"]
        if recursive:
            tokens.append(_cluster("-R", ("f", force)))
        elif force:
            tokens.append("-f")
        tokens.append(mode_to_s(mode))
        return self._make(tokens, flatten(paths), noop=noop, verbose=verbose)

    def chown(self, owner, group, paths: PathArg, *, recursive=False, force=False, noop=False, verbose=False):
        tokens = ["chown"]
        if recursive:
            tokens.append(_cluster("-R", ("f", force)))
        elif force:
            tokens.append("-f")
        tokens.append(shlex.quote(owner_group(owner, group)))
        return self._make(tokens, flatten(paths), noop=noop, verbose=verbose)

    def cp(
        self,
        src: PathArg,
        dest: str,
        *,
        recursive=False,
        preserve=False,
        remove_destination=False,
        hardlink=False,
        noop=False,
        verbose=False,
    ):
        tokens = ["cp"]
        if hardlink:
            tokens.append(_cluster("-l", ("r", recursive)))
        elif recursive:
            tokens.append(_cluster("-r", ("p", preserve)))
        elif preserve:
            tokens.append("-p")
        if remove_destination:
            tokens.append("--remove-destination")
        return self._make(tokens, flatten(src, dest), noop=noop, verbose=verbose)

    def install(
        self,
        src: PathArg,
        dest: str,
        *,
        mode=None,
        owner=None,
        group=None,
        preserve=False,
        noop=False,
        verbose=False,
    ):
        tokens = ["install", "-c"]
        if preserve:
            tokens.append("-p")
        if mode is not None:
            tokens += ["-m", mode_to_s(mode)]
        if owner is not None:
            tokens += ["-o", shlex.quote(str(owner))]
        if group is not None:
            tokens += ["-g", shlex.quote(str(group))]
        return self._make(tokens, flatten(src, dest), noop=noop, verbose=verbose)

    def ln(self, src: PathArg, dest: str, *, symbolic=False, force=False, noop=False, verbose=False):
        tokens = ["ln"]
        if symbolic:
            tokens.append(_cluster("-s", ("f", force)))
        elif force:
            tokens.append("-f")
        return self._make(tokens, flatten(src, dest), noop=noop, verbose=verbose)

    def mkdir(self, paths: PathArg, *, parents=False, mode=None, noop=False, verbose=False):
        tokens = ["mkdir"]
        if parents:
            tokens.append("-p")
        if mode is not None:
            tokens += ["-m", mode_to_s(mode)]
        return self._make(tokens, flatten(paths), noop=noop, verbose=verbose)

    def mv(self, src: PathArg, dest: str, *, force=False, noop=False, verbose=False):
        tokens = ["mv"]
        if force:
            tokens.append("-f")
        return self._make(tokens, flatten(src, dest), noop=noop, verbose=verbose)

    def rm(self, paths: PathArg, *, recursive=False, force=False, noop=False, verbose=False):
        tokens = ["rm"]
        if recursive:
            tokens.append(_cluster("-r", ("f", force)))
        elif force:
            tokens.append("-f")
        return self._make(tokens, flatten(paths), noop=noop, verbose=verbose)

    def rmdir(self, paths: PathArg, *, parents=False, noop=False, verbose=False):
        tokens = ["rmdir"]
        if parents:
            tokens.append("-p")
        return self._make(tokens, flatten(paths), noop=noop, verbose=verbose)

    def touch(self, paths: PathArg, *, mtime=None, nocreate=False, noop=False, verbose=False):
        tokens = ["touch"]
        if nocreate:
            tokens.append("-c")
        if mtime is not None:
            tokens += ["-t", touch_stamp(mtime)]
        return self._make(tokens, flatten(paths), noop=noop, verbose=verbose)

    def create_exclusive(self, path: str, *, noop=False, verbose=False):
        # noclobber makes the redirection fail on an existing path
        command = f"(set -C; : > {shlex.quote(os.fspath(path))})"
        return TranslatedCommand(command=command, noop=bool(noop), verbose=bool(verbose))

    def utime(self, atime, mtime, paths: PathArg, *, noop=False, verbose=False):
        args = quote_all(flatten(paths))
        command = f"touch -a -t {touch_stamp(atime)} {args} && touch -m -t {touch_stamp(mtime)} {args}"
        return TranslatedCommand(command=command, noop=bool(noop), verbose=bool(verbose))

    # ── queries ──

    def test(self, flag: str, path: str, principal: str | None = None):
        if flag not in {"r", "w", "x", "e", "f", "d", "L", "p", "S", "b", "c"}:
            raise InvalidArgument(f"Unknown test flag: {flag!r}")
        tokens = []
        if principal:
            tokens += ["sudo", "-n", "-u", shlex.quote(principal)]
        tokens += ["test", f"-{flag}"]
        return self._make(tokens, [os.fspath(path)], noop=False, verbose=False)

    def readlink(self, path: str):
        return self._make(["readlink"], [os.fspath(path)], noop=False, verbose=False)

    def realpath(self, path: str):
        return self._make(["realpath"], [os.fspath(path)], noop=False, verbose=False)

    def list_dir(self, path: str):
        return self._make(["ls", "-A1"], [os.fspath(path)], noop=False, verbose=False)

    def find(self, prefix: str):
        return self._make(["find"], [prefix], noop=False, verbose=False)

    def whoami(self):
        return self._make(["id", "-nu"], [], noop=False, verbose=False)

    def stat(self, path: str, *, follow_links=True):
        tokens = ["stat"]
        if follow_links:
            tokens.append("-L")
        tokens += ["-c", shlex.quote(STAT_FORMAT)]
        return self._make(tokens, [os.fspath(path)], noop=False, verbose=False)

    # ── execution ──

    def announce(self, translated: TranslatedCommand) -> None:
        logger = self._context.logger
        if translated.verbose:
            logger.info(translated.command)
        if translated.noop:
            logger.debug("noop: %s", translated.command)

    def run(self, translated: TranslatedCommand, *, check: bool = True) -> TranslatedCommand:
        """Submit a command to the session unless it is a noop.

        Raises:
            ExecutionFailed: If check is set and the exit status is non-zero
        """
        self.announce(translated)
        if translated.noop:
            return translated

        session = self._context.session
        if session is None:
            raise ConfigurationError(f"No session available to run: {translated.command}")

        result = session.run_command(translated.command)
        if check and result.exit_status != 0:
            raise ExecutionFailed(translated.command, result.exit_status, result.stderr)
        return replace(translated, result=result)
