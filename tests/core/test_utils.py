"""
Tests for core utilities.
"""
import os

import pytest

from dataflow.core.utils import apply_path_supplement, as_statements, ensure_directory


class TestEnsureDirectory:
    """Test directory creation."""

    def test_creates_nested(self, tmp_path):
        target = tmp_path / "a" / "b"
        ensure_directory(str(target))
        assert target.is_dir()

    def test_existing_is_fine(self, tmp_path):
        ensure_directory(str(tmp_path))
        assert tmp_path.is_dir()


class TestPathSupplement:
    """Test extending the process PATH."""

    def test_appends(self, monkeypatch):
        monkeypatch.setenv("PATH", os.pathsep.join(["/usr/bin", "/bin"]))

        apply_path_supplement("/opt/client")

        assert os.environ["PATH"].split(os.pathsep) == ["/usr/bin", "/bin", "/opt/client"]

    def test_applied_once(self, monkeypatch):
        monkeypatch.setenv("PATH", "/usr/bin")

        apply_path_supplement("/opt/client")
        apply_path_supplement("/opt/client")

        assert os.environ["PATH"].split(os.pathsep) == ["/usr/bin", "/opt/client"]

    def test_empty_path(self, monkeypatch):
        monkeypatch.setenv("PATH", "")
        apply_path_supplement("/opt/client")
        assert os.environ["PATH"] == "/opt/client"

    def test_empty_supplement(self, monkeypatch):
        monkeypatch.setenv("PATH", "/usr/bin")
        apply_path_supplement("")
        assert os.environ["PATH"] == "/usr/bin"


@pytest.mark.parametrize("commands, expected", [
    (None, []),
    ("", []),
    ("SET a = 1", ["SET a = 1"]),
    (["SET a = 1", "", "SET b = 2"], ["SET a = 1", "SET b = 2"]),
])
def test_as_statements(commands, expected):
    assert as_statements(commands) == expected
