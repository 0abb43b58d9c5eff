"""Pytest configuration and shared fixtures."""

import shutil
import stat
import tempfile
from pathlib import Path

import pytest


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    path = Path(tempfile.mkdtemp())
    yield path
    shutil.rmtree(path, ignore_errors=True)


@pytest.fixture
def workspace(temp_dir):
    """An empty workspace root."""
    root = temp_dir / "workspace"
    root.mkdir()
    return root


@pytest.fixture
def fake_tf(temp_dir):
    """Write a shell script standing in for the tf executable and return its path."""

    def _make(body: str) -> Path:
        script = temp_dir / "bin" / "tf"
        script.parent.mkdir(exist_ok=True)
        script.write_text("#!/bin/sh\n" + body)
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return script

    return _make


@pytest.fixture
def sample_status_output():
    """Sample `tf status /format:detailed` output."""
    return (
        "edit   $/Proj/a.cs\r\n"
        "add    $/Proj/b.cs\r\n"
        "\r\n"
        "2 change(s)\r\n"
    )


@pytest.fixture
def sample_workfold_output():
    """Sample `tf workfold` output."""
    return (
        "===============================================================================\n"
        "Workspace: DEV-PC01\n"
        "Owner: Jane Doe\n"
        "Collection: https://dev.azure.com/contoso/\n"
        " $/Proj: C:\\src\\Proj\n"
    )
