"""Tests for the Command Line Interface (CLI) module."""

from unittest.mock import MagicMock

import pytest

from git_harbor import cli
from git_harbor.constants import MODE_MIRROR, MODE_WORKING


def test_backup_main_runs_mirror_pipeline(mocker: MagicMock) -> None:
    mock_run = mocker.patch("git_harbor.cli.runner.run")

    cli.backup_main([])

    mock_run.assert_called_once_with(MODE_MIRROR)


def test_clone_main_runs_working_pipeline(mocker: MagicMock) -> None:
    mock_run = mocker.patch("git_harbor.cli.runner.run")

    cli.clone_main([])

    mock_run.assert_called_once_with(MODE_WORKING)


def test_help_mentions_config_files(
    mocker: MagicMock, capsys: pytest.CaptureFixture
) -> None:
    """Verifies that --help documents where options live and does not run a sweep."""
    mock_run = mocker.patch("git_harbor.cli.runner.run")

    with pytest.raises(SystemExit) as exc:
        cli.backup_main(["--help"])

    assert exc.value.code == 0
    assert "harbor.toml" in capsys.readouterr().out
    mock_run.assert_not_called()


def test_flags_are_rejected(mocker: MagicMock) -> None:
    """Verifies that behaviour cannot be changed from the command line."""
    mocker.patch("git_harbor.cli.runner.run")

    with pytest.raises(SystemExit) as exc:
        cli.clone_main(["--include-forks"])

    assert exc.value.code == 2
