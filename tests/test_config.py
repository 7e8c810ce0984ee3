"""Tests for the configuration management subsystem."""

from datetime import datetime
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from git_harbor.config import Config, CoreConfig
from git_harbor.constants import MODE_MIRROR, MODE_WORKING


@pytest.fixture(autouse=True)
def no_global_config(tmp_path: Path, mocker: MagicMock) -> Path:
    """Points the global config at a file that does not exist yet."""
    path = tmp_path / "global_config.toml"
    mocker.patch("git_harbor.config.CONFIG_FILE", path)
    return path


def test_config_defaults() -> None:
    """Verifies that the configuration initializes with the documented defaults."""
    conf = Config()
    opts = conf.options
    assert opts.protocol == "ssh"
    assert opts.include_forks is False
    assert opts.include_archived is False
    assert opts.include_wikis is True
    assert opts.include_lfs is True
    assert opts.destination_root is None
    assert conf.owners.organizations == []
    assert conf.core.host == "github.com"


def test_config_load_merges_layers(tmp_path: Path, no_global_config: Path) -> None:
    """Verifies the cascading merge logic (Defaults -> Global -> Local)."""
    no_global_config.write_text(
        '[core]\nprotocol = "https"\ndestination = "/srv/backups"\n'
        '[owners]\norganizations = ["acme", "widgets"]\n'
        "[include]\nforks = true\n"
    )

    local_dir = tmp_path / "work"
    local_dir.mkdir()
    (local_dir / "harbor.toml").write_text(
        '[core]\ndestination = "/mnt/local"\n[include]\nwikis = false\n'
    )

    conf = Config.load(work_dir=local_dir)

    assert conf.core.protocol == "https"  # From Global
    assert conf.core.destination == "/mnt/local"  # Local overrides Global
    assert conf.owners.organizations == ["acme", "widgets"]
    assert conf.include.forks is True
    assert conf.include.wikis is False


def test_config_invalid_keys_and_values(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    """Verifies unknown keys are ignored and invalid values fall back to defaults."""
    import logging

    caplog.set_level(logging.WARNING)

    (tmp_path / "harbor.toml").write_text(
        "[core]\n"
        'protocol = "ftp"\n'
        'colour = "blue"\n'
        "[include]\n"
        'forks = "yes"\n'
        "[owners]\n"
        'organizations = "acme"\n'
        "[limits]\n"
        'max_log_size = "10 gallons"\n'
    )

    conf = Config.load(work_dir=tmp_path)

    assert conf.core.protocol == "ssh"
    assert conf.include.forks is False
    assert conf.owners.organizations == []
    assert conf.limits.max_log_size == 5242880

    assert "Unknown config keys in [core]: colour" in caplog.text
    assert "Config error in [core].protocol: Invalid protocol 'ftp'" in caplog.text
    assert "Config error in [include].forks" in caplog.text
    assert "Config error in [owners].organizations" in caplog.text
    assert "Config error in [limits].max_log_size: Invalid size format" in caplog.text


def test_config_syntax_error_is_logged(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    """Verifies that a broken TOML file is reported and skipped."""
    (tmp_path / "harbor.toml").write_text("[core\nprotocol = ")

    conf = Config.load(work_dir=tmp_path)

    assert conf.core.protocol == "ssh"
    assert "Config syntax error" in caplog.text


def test_non_table_section_is_ignored(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    """Verifies that a section given as a plain value keeps its defaults."""
    (tmp_path / "harbor.toml").write_text(
        'core = "x"\n\n[include]\nforks = true\n'
    )

    conf = Config.load(work_dir=tmp_path)

    assert conf.core == CoreConfig()
    assert conf.include.forks is True
    assert "Config error in [core]: expected a table" in caplog.text


def test_protocol_is_normalized(tmp_path: Path) -> None:
    """Verifies protocol names are case-insensitive."""
    (tmp_path / "harbor.toml").write_text('[core]\nprotocol = " HTTPS "\n')
    assert Config.load(work_dir=tmp_path).options.protocol == "https"


def test_organizations_drop_blank_names(tmp_path: Path) -> None:
    """Verifies blank organization entries are discarded."""
    (tmp_path / "harbor.toml").write_text(
        '[owners]\norganizations = ["acme", "  ", " widgets "]\n'
    )
    assert Config.load(work_dir=tmp_path).owners.organizations == ["acme", "widgets"]


def test_destination_root_configured(tmp_path: Path) -> None:
    """Verifies that a configured destination is used verbatim (resolved)."""
    conf = Config(core=CoreConfig(destination=str(tmp_path / "backups")))
    assert conf.destination_root(MODE_MIRROR) == (tmp_path / "backups").resolve()
    assert conf.destination_root(MODE_WORKING) == (tmp_path / "backups").resolve()


def test_destination_root_defaults_to_timestamped_dir(
    tmp_path: Path, mocker: MagicMock
) -> None:
    """Verifies the per-mode timestamped default under the working directory."""
    mocker.patch.object(Path, "cwd", return_value=tmp_path)
    now = datetime(2024, 1, 2, 3, 4, 5)

    conf = Config()

    assert conf.destination_root(MODE_MIRROR, now=now) == (
        tmp_path / "github-backup-20240102_030405"
    )
    assert conf.destination_root(MODE_WORKING, now=now) == (
        tmp_path / "github-repos-20240102_030405"
    )


def test_parse_size() -> None:
    """Verifies that human-readable sizes are correctly converted to bytes."""
    from git_harbor.config import parse_size

    assert parse_size(100) == 100
    assert parse_size("100kb") == 102400
    assert parse_size("10 MB") == 10485760
    assert parse_size("1.5gb") == int(1.5 * 1024**3)

    with pytest.raises(ValueError, match=r"Invalid size format '100 bits'"):
        parse_size("100 bits")
