"""Tests for CLI functionality."""
import pytest
import yaml
from pathlib import Path
from unittest.mock import patch
from click.testing import CliRunner

from fastcc.cli import main
from fastcc.config import DEFAULT_CONFIG_FILENAME


@pytest.fixture
def cli_runner():
    """Fixture for testing CLI commands."""
    return CliRunner()


@pytest.fixture
def scoped_config(tmp_path):
    path = tmp_path / "scoped.yaml"
    path.write_text("scopes: [api, web]\nscope_required: true\nignore_patterns: ['^WIP']\n")
    return path


def test_validate_valid_message(cli_runner):
    result = cli_runner.invoke(main, ["validate", "feat(auth): add JWT validation"])

    assert result.exit_code == 0
    assert "Commit message is valid" in result.output


def test_validate_joins_arguments(cli_runner):
    result = cli_runner.invoke(main, ["validate", "fix:", "handle", "nil"])
    assert result.exit_code == 0


def test_validate_invalid_message(cli_runner):
    result = cli_runner.invoke(main, ["validate", "fix stuff"])

    assert result.exit_code == 1
    assert "Commit message validation failed:" in result.output
    assert "format:" in result.output


def test_validate_with_config(cli_runner, scoped_config):
    result = cli_runner.invoke(main, ["--config", str(scoped_config), "validate", "feat(ui): add button"])

    assert result.exit_code == 1
    assert "scope 'ui' not in allowed scopes: api, web" in result.output


def test_validate_ignored_message_verbose(cli_runner, scoped_config):
    result = cli_runner.invoke(main, ["--config", str(scoped_config), "-v", "validate", "WIP hacking"])

    assert result.exit_code == 0
    assert "Skipped" in result.output
    assert "matched an ignore pattern" in result.output


def test_validate_file(cli_runner, tmp_path):
    message_file = tmp_path / "COMMIT_EDITMSG"
    message_file.write_text("docs: explain hooks\n\n# Please enter the commit message\n")

    result = cli_runner.invoke(main, ["validate", "--file", str(message_file)])
    assert result.exit_code == 0


def test_validate_file_with_latin1_bytes(cli_runner, tmp_path):
    message_file = tmp_path / "COMMIT_EDITMSG"
    message_file.write_bytes("feat: caf\u00e9 menu\n".encode("latin-1"))

    result = cli_runner.invoke(main, ["validate", "--file", str(message_file)])
    assert result.exit_code == 0
    assert result.exception is None


def test_validate_stdin(cli_runner):
    result = cli_runner.invoke(main, ["validate"], input="perf: faster parsing\n")
    assert result.exit_code == 0

    result = cli_runner.invoke(main, ["validate"], input="faster parsing\n")
    assert result.exit_code == 1


def test_validate_with_timeout(cli_runner):
    result = cli_runner.invoke(main, ["validate", "--timeout", "5000", "feat: x"])
    assert result.exit_code == 0


def test_validate_missing_config_file(cli_runner, tmp_path):
    result = cli_runner.invoke(main, ["--config", str(tmp_path / "nope.yaml"), "validate", "feat: x"])

    assert result.exit_code == 2
    assert "Configuration error" in result.output


def test_validate_bad_environment_value(cli_runner, monkeypatch):
    monkeypatch.setenv("FAST_CC_MAX_SUBJECT_LENGTH", "abc")

    result = cli_runner.invoke(main, ["validate", "feat: x"])
    assert result.exit_code == 2
    assert "Configuration error" in result.output


def test_validate_invalid_config(cli_runner, tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("types: []\n")

    result = cli_runner.invoke(main, ["--config", str(path), "validate", "feat: x"])
    assert result.exit_code == 2


def test_validate_invalid_pattern(cli_runner, tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("ignore_patterns: ['(']\n")

    result = cli_runner.invoke(main, ["--config", str(path), "validate", "feat: x"])
    assert result.exit_code == 2
    assert "ignore_patterns[0]" in result.output


def test_validate_uses_project_config(cli_runner):
    Path(DEFAULT_CONFIG_FILENAME).write_text("types: [fix]\n")

    result = cli_runner.invoke(main, ["validate", "feat: x"])
    assert result.exit_code == 1
    assert "type 'feat' not in allowed types: fix" in result.output


def test_check_range(cli_runner, conventional_repo):
    result = cli_runner.invoke(main, ["check-range", "--path", conventional_repo])

    assert result.exit_code == 1
    assert "invalid" in result.output
    assert "Checked 4 commit(s): 3 passed, 1 failed, 0 inconclusive, 0 skipped" in result.output


def test_check_range_clean(cli_runner, conventional_repo):
    result = cli_runner.invoke(main, ["check-range", "--path", conventional_repo, "--max-count", "1"])

    assert result.exit_code == 0
    assert "Checked 1 commit(s): 1 passed" in result.output


def test_check_range_invalid_revision(cli_runner, conventional_repo):
    result = cli_runner.invoke(main, ["check-range", "nope..HEAD", "--path", conventional_repo])

    assert result.exit_code == 2
    assert "Invalid revision range" in result.output


def test_check_range_reads_repository_config(cli_runner, conventional_repo):
    Path(conventional_repo, DEFAULT_CONFIG_FILENAME).write_text("ignore_patterns: ['^fix stuff']\n")

    result = cli_runner.invoke(main, ["check-range", "--path", conventional_repo, "--workers", "2"])
    assert result.exit_code == 0
    assert "1 skipped" in result.output


def test_init_creates_config(cli_runner):
    result = cli_runner.invoke(main, ["init"])

    assert result.exit_code == 0
    data = yaml.safe_load(Path(DEFAULT_CONFIG_FILENAME).read_text())
    assert data["max_subject_length"] == 72
    assert "feat" in data["types"]

    result = cli_runner.invoke(main, ["init"])
    assert result.exit_code == 1
    assert "already exists" in result.output

    result = cli_runner.invoke(main, ["init", "--force", "--enterprise"])
    assert result.exit_code == 0
    data = yaml.safe_load(Path(DEFAULT_CONFIG_FILENAME).read_text())
    assert data["require_jira_ticket"] is True
    assert "api" in data["scopes"]


def test_init_custom_path(cli_runner, tmp_path):
    target = tmp_path / "nested" / "fcc.yaml"
    result = cli_runner.invoke(main, ["init", "--path", str(target)])

    assert result.exit_code == 0
    assert target.exists()


def test_config_listing(cli_runner):
    result = cli_runner.invoke(main, ["config"])

    assert result.exit_code == 0
    assert "Using default values" in result.output
    assert "max_subject_length" in result.output
    assert "72" in result.output


@patch('pyperclip.copy')
def test_config_copy_path(mock_copy, cli_runner):
    result = cli_runner.invoke(main, ["config", "--copy-path"])

    expected = Path.cwd() / DEFAULT_CONFIG_FILENAME
    assert result.exit_code == 0
    assert expected.exists()
    mock_copy.assert_called_once_with(str(expected))
    assert "Path copied to clipboard!" in result.output


def test_version(cli_runner):
    result = cli_runner.invoke(main, ["version"])

    assert result.exit_code == 0
    assert "fast-cc-hooks" in result.output
