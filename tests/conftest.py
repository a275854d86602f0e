"""Shared test fixtures and configuration."""

import tempfile
from pathlib import Path

import pytest
from git import Repo


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture(autouse=True)
def qkpr_home(temp_dir, monkeypatch):
    """Point the user config at a throwaway directory and clear env fallbacks."""
    path = temp_dir / ".qkpr"
    monkeypatch.setenv("QKPR_CONFIG_DIR", str(path))
    for name in ("QUICK_PR_GEMINI_API_KEY", "GEMINI_API_KEY", "QUICK_PR_GEMINI_MODEL", "GEMINI_MODEL"):
        monkeypatch.delenv(name, raising=False)
    return path


@pytest.fixture
def git_repo(temp_dir):
    """A real repository with one commit on ``main``."""
    root = temp_dir / "repo"
    root.mkdir()
    repo = Repo.init(root)
    with repo.config_writer() as cw:
        cw.set_value("user", "name", "Test User")
        cw.set_value("user", "email", "test@example.com")
    (root / "README.md").write_text("hello\n")
    repo.index.add(["README.md"])
    repo.index.commit("initial commit")
    repo.git.branch("-M", "main")
    return repo

