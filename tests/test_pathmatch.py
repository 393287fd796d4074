"""Tests for glob-style path matching."""

import pytest

from targetio.pathmatch import filter_paths, fnmatch, has_magic, literal_prefix


@pytest.mark.parametrize(
    "pattern,prefix",
    [
        ("/etc/*.conf", "/etc/"),
        ("etc/*/x", "etc/"),
        ("*.py", ""),
        ("/srv/app/config.yml", "/srv/app/config.yml"),
        ("/a/b?/c/*", "/a/"),
    ],
)
def test_literal_prefix(pattern, prefix):
    assert literal_prefix(pattern) == prefix


def test_has_magic():
    assert has_magic("*.conf")
    assert has_magic("file[0-9]")
    assert not has_magic("plain.txt")


class TestFnmatch:
    def test_star_does_not_cross_separator(self):
        assert fnmatch("/etc/*.conf", "/etc/a.conf")
        assert not fnmatch("/etc/*.conf", "/etc/sub/a.conf")

    def test_double_star(self):
        assert fnmatch("/etc/**/*.conf", "/etc/a.conf")
        assert fnmatch("/etc/**/*.conf", "/etc/x/y/a.conf")

    def test_double_star_skips_hidden_dirs(self):
        assert not fnmatch("/etc/**/*.conf", "/etc/.git/a.conf")
        assert fnmatch("/etc/**/*.conf", "/etc/.git/a.conf", dotmatch=True)

    def test_dotfiles(self):
        assert not fnmatch("*", ".profile")
        assert fnmatch("*", ".profile", dotmatch=True)
        assert fnmatch(".*", ".profile")


def test_filter_paths_sorted_unique():
    paths = ["/b.txt", "/a.txt", "/a.txt", "/c.md"]

    assert filter_paths("/*.txt", paths) == ["/a.txt", "/b.txt"]
