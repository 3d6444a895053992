import argparse
import logging
import shutil
import sys
from pathlib import Path
from typing import NoReturn

from rich.console import Console
from rich.markup import escape

from . import daemon
from .config import (
    SyncConfig,
    SyncTarget,
    env_bool,
    env_int,
    env_string,
    env_time,
    parse_bool,
    parse_mode,
    parse_time,
)
from .constants import (
    APP_NAME,
    DEFAULT_BRANCH,
    DEFAULT_REV,
    DEFAULT_WAIT,
    ENV_BRANCH,
    ENV_CALLBACK_URL,
    ENV_DEPTH,
    ENV_DEST,
    ENV_LOG_FILE,
    ENV_ONE_TIME,
    ENV_PASSWORD,
    ENV_PERMISSIONS,
    ENV_REPO,
    ENV_REV,
    ENV_USERNAME,
    ENV_VERBOSITY,
    ENV_WAIT,
    GIT_BINARY,
    USAGE,
)
from .errors import (
    ConfigurationError,
    CredentialSetupError,
    FailureLimitExceeded,
    ToolNotFoundError,
)

logger = logging.getLogger(APP_NAME)
err_console = Console(stderr=True)


def _flag(name: str) -> list[str]:
    """Both spellings of a long flag: '--repo' and the single-dash '-repo'."""
    return [f"--{name}", f"-{name}"]


class SyncArgumentParser(argparse.ArgumentParser):
    """Argument parser that exits with status 1 on bad flag values."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        _fatal(message)


def build_parser() -> argparse.ArgumentParser:
    """Builds the argument parser.

    Defaults are read from the environment when the parser is built, so an
    explicit flag always wins over its environment variable.
    """
    parser = SyncArgumentParser(
        prog=APP_NAME,
        description="Keep a local directory in sync with a remote git branch.",
        allow_abbrev=False,
    )
    parser.add_argument(
        *_flag("repo"),
        default=env_string(ENV_REPO, ""),
        help=f"git repo url [{ENV_REPO}]",
    )
    parser.add_argument(
        *_flag("branch"),
        default=env_string(ENV_BRANCH, DEFAULT_BRANCH),
        help=f"git branch (default: {DEFAULT_BRANCH}) [{ENV_BRANCH}]",
    )
    parser.add_argument(
        *_flag("rev"),
        default=env_string(ENV_REV, DEFAULT_REV),
        help=f"git rev (default: {DEFAULT_REV}) [{ENV_REV}]",
    )
    parser.add_argument(
        *_flag("dest"),
        default=env_string(ENV_DEST, ""),
        help=f"destination path [{ENV_DEST}]",
    )
    parser.add_argument(
        *_flag("wait"),
        type=parse_time,
        default=env_time(ENV_WAIT, DEFAULT_WAIT),
        help=(
            "time to wait before next sync, in seconds or with a unit "
            f"(e.g. '5m') (default: {DEFAULT_WAIT}) [{ENV_WAIT}]"
        ),
    )
    parser.add_argument(
        *_flag("one-time"),
        nargs="?",
        const=True,
        type=parse_bool,
        default=env_bool(ENV_ONE_TIME, False),
        help=f"exit after the initial checkout [{ENV_ONE_TIME}]",
    )
    parser.add_argument(
        *_flag("depth"),
        type=int,
        default=env_int(ENV_DEPTH, 0),
        help=(
            "shallow clone with a history truncated to the specified number "
            f"of commits (default: 0, full history) [{ENV_DEPTH}]"
        ),
    )
    parser.add_argument(
        *_flag("username"),
        default=env_string(ENV_USERNAME, ""),
        help=f"username [{ENV_USERNAME}]",
    )
    parser.add_argument(
        *_flag("password"),
        default=env_string(ENV_PASSWORD, ""),
        help=f"password [{ENV_PASSWORD}]",
    )
    parser.add_argument(
        *_flag("change-permissions"),
        dest="permissions",
        default=env_string(ENV_PERMISSIONS, "0"),
        help=(
            "change the permissions of the synced tree, in chmod notation "
            f"(e.g. 744) [{ENV_PERMISSIONS}]"
        ),
    )
    parser.add_argument(
        *_flag("callback-url"),
        default=env_string(ENV_CALLBACK_URL, ""),
        help=f"url to call after each sync [{ENV_CALLBACK_URL}]",
    )
    parser.add_argument(
        "-v",
        *_flag("verbosity"),
        type=int,
        default=env_int(ENV_VERBOSITY, 0),
        help=f"log verbosity, 2 or more enables debug output [{ENV_VERBOSITY}]",
    )
    parser.add_argument(
        *_flag("log-file"),
        type=Path,
        default=env_string(ENV_LOG_FILE, "") or None,
        help=f"also write logs to this file, with rotation [{ENV_LOG_FILE}]",
    )
    # Accepted for compatibility with older deployments; logs always go to stderr.
    parser.add_argument(
        *_flag("logtostderr"),
        nargs="?",
        const=True,
        type=parse_bool,
        default=True,
        help=argparse.SUPPRESS,
    )
    return parser


def build_config(args: argparse.Namespace) -> SyncConfig:
    """Turns parsed arguments into the immutable process configuration.

    Raises:
        ConfigurationError: If a value cannot be interpreted or a required
            setting is missing.
    """
    try:
        permissions = parse_mode(args.permissions)
    except ValueError as e:
        raise ConfigurationError(str(e)) from e

    log_file = Path(args.log_file) if args.log_file else None
    target = SyncTarget(
        repo=args.repo,
        dest=Path(args.dest) if args.dest else None,
        branch=args.branch,
        rev=args.rev,
        depth=args.depth,
        permissions=permissions,
        callback_url=args.callback_url,
    )
    config = SyncConfig(
        target=target,
        wait=args.wait,
        one_time=args.one_time,
        username=args.username,
        password=args.password,
        verbosity=args.verbosity,
        log_file=log_file,
    )
    config.validate()
    return config


def check_git() -> None:
    """Ensures the git executable is available.

    Raises:
        ToolNotFoundError: If git is not on PATH.
    """
    if shutil.which(GIT_BINARY) is None:
        raise ToolNotFoundError(f"required {GIT_BINARY} executable not found")


def _fatal(message: str, code: int = 1) -> NoReturn:
    err_console.print(f"[bold red]FATAL:[/bold red] {escape(message)}")
    sys.exit(code)


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the git-sync CLI.

    Exit codes: 0 after a one-time sync, 1 on any fatal error (missing or
    malformed configuration, git not found, credential setup, error limit),
    130 when interrupted.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = build_config(args)
    except ConfigurationError as e:
        err_console.print(USAGE, highlight=False, markup=False)
        _fatal(str(e))

    try:
        check_git()
        daemon.main(config)
    except (ToolNotFoundError, CredentialSetupError, FailureLimitExceeded) as e:
        if logger.handlers:
            logger.critical(f"FATAL: {e}")
        _fatal(str(e))
    except KeyboardInterrupt:
        logger.warning("Interrupted.")
        sys.exit(130)


if __name__ == "__main__":
    main()
