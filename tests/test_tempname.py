"""Tests for temporary path naming."""

import ntpath
import random
import re
from datetime import datetime

import pytest

from targetio.tempname import base36, make_name, make_path


def test_base36_padding():
    assert base36(0) == "000000"
    assert base36(35) == "00000z"
    assert base36(36) == "000010"
    assert base36(36**6 - 1) == "zzzzzz"


def test_base36_negative():
    with pytest.raises(ValueError):
        base36(-1)


def test_make_name_layout():
    name = make_name("chef-", ".rb", now=datetime(2024, 3, 9), pid=4242, rng=random.Random(7))

    assert re.fullmatch(r"chef-20240309-4242-[0-9a-z]{6}\.rb", name)
    assert "%" not in name


def test_make_name_is_reproducible_with_seed():
    first = make_name(now=datetime(2024, 1, 1), pid=1, rng=random.Random(42))
    second = make_name(now=datetime(2024, 1, 1), pid=1, rng=random.Random(42))

    assert first == second


def test_make_path_uses_path_module():
    posix = make_path("/tmp", "d", now=datetime(2024, 1, 1), pid=1, rng=random.Random(0))
    windows = make_path("C:\\Windows\\Temp", "d", pathmod=ntpath, now=datetime(2024, 1, 1), pid=1, rng=random.Random(0))

    assert posix.startswith("/tmp/d20240101-1-")
    assert windows.startswith("C:\\Windows\\Temp\\d20240101-1-")
