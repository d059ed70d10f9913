import pytest
import tempfile
from pathlib import Path
from git import Repo
import os


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Keep the user's global config and FAST_CC_* variables out of tests."""
    for name in list(os.environ):
        if name.startswith("FAST_CC_"):
            monkeypatch.delenv(name, raising=False)

    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))

    workdir = tmp_path / "work"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    yield workdir


@pytest.fixture
def temp_git_repo():
    """Create a temporary git repository for testing."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        repo = Repo.init(tmp_dir)

        test_file = Path(tmp_dir) / "test.txt"
        test_file.write_text("Initial content")

        repo.index.add(["test.txt"])
        repo.index.commit("chore: initial commit")

        yield tmp_dir


@pytest.fixture
def conventional_repo(temp_git_repo):
    """Repository whose history holds three conventional commits and one bad one.

    Newest first: ``docs: update readme``, ``fix stuff``,
    ``feat(api): add endpoint``, ``chore: initial commit``.
    """
    repo = Repo(temp_git_repo)
    messages = [
        "feat(api): add endpoint\n\nRefs: ABC-1",
        "fix stuff",
        "docs: update readme",
    ]
    for index, message in enumerate(messages):
        test_file = Path(temp_git_repo) / f"file{index}.txt"
        test_file.write_text(f"content {index}")
        repo.index.add([test_file.name])
        repo.index.commit(message)

    yield temp_git_repo
