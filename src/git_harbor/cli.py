import argparse

from . import runner
from .constants import (
    CONFIG_FILE,
    LOCAL_CONFIG_NAME,
    MODE_MIRROR,
    MODE_WORKING,
)

_CONFIG_HELP = (
    f"All options are read from {CONFIG_FILE} and ./{LOCAL_CONFIG_NAME} "
    "(sections: core, owners, include, limits)."
)


def _build_parser(prog: str, description: str) -> argparse.ArgumentParser:
    """Creates a parser that only provides -h/--help.

    Both pipelines are single invocations; behaviour is configured in TOML.
    """
    return argparse.ArgumentParser(
        prog=prog,
        description=description,
        epilog=_CONFIG_HELP,
    )


def backup_main(argv: list[str] | None = None) -> None:
    """Entry point for `git-harbor-backup`: mirror every repository."""
    parser = _build_parser(
        "git-harbor-backup",
        "Mirror-clone all GitHub repos for your user and configured organizations.",
    )
    parser.parse_args(argv)
    runner.run(MODE_MIRROR)


def clone_main(argv: list[str] | None = None) -> None:
    """Entry point for `git-harbor-clone`: maintain working copies."""
    parser = _build_parser(
        "git-harbor-clone",
        "Clone or fast-forward working copies of all GitHub repos for your user "
        "and configured organizations.",
    )
    parser.parse_args(argv)
    runner.run(MODE_WORKING)


if __name__ == "__main__":
    backup_main()
