import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path

import httpx

from .constants import (
    APP_NAME,
    DEFAULT_BRANCH,
    DEFAULT_REV,
    DEFAULT_WAIT,
)
from .errors import ConfigurationError

logger = logging.getLogger(APP_NAME)

_TRUE_VALUES = {"1", "t", "true"}
_FALSE_VALUES = {"0", "f", "false"}


def parse_time(value: int | str) -> int:
    """Converts time strings (e.g., '300', '30s', '5m', '1hr') to seconds.

    A bare number is taken as seconds.
    """
    if isinstance(value, int):
        return value
    match = re.match(
        r"^(\d+(?:\.\d+)?)\s*(s|sec|m|min|h|hr)?s?$", str(value).strip().lower()
    )
    if not match:
        raise ValueError(f"Invalid time format '{value}'")
    num, unit = float(match.group(1)), match.group(2) or "s"
    multiplier = {"s": 1, "sec": 1, "m": 60, "min": 60, "h": 3600, "hr": 3600}
    return int(num * multiplier[unit])


def parse_bool(value: bool | str) -> bool:
    """Parses boolean spellings such as "1", "t", "TRUE" or "false"."""
    if isinstance(value, bool):
        return value
    normalized = str(value).strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ValueError(f"Invalid boolean '{value}'")


def parse_mode(value: int | str) -> int:
    """Interprets a permission setting written in chmod notation.

    The digits are read as octal, so ``744`` (int or str) becomes ``0o744``.
    Zero means "leave permissions unchanged".

    Raises:
        ValueError: If the value contains non-octal digits or exceeds 7777.
    """
    text = str(value).strip()
    if not re.fullmatch(r"[0-7]{1,4}", text):
        raise ValueError(f"Invalid permission mode '{value}'")
    return int(text, 8)


def env_string(key: str, default: str) -> str:
    """Returns the environment value for ``key``, or ``default`` when unset/empty."""
    return os.environ.get(key) or default


def env_int(key: str, default: int) -> int:
    """Reads an integer from the environment, falling back on bad input."""
    raw = os.environ.get(key)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Invalid value for {key}: {raw!r}. Using default {default}.")
        return default


def env_bool(key: str, default: bool) -> bool:
    """Reads a boolean from the environment, falling back on bad input."""
    raw = os.environ.get(key)
    if not raw:
        return default
    try:
        return parse_bool(raw)
    except ValueError:
        logger.warning(f"Invalid value for {key}: {raw!r}. Using default {default}.")
        return default


def env_time(key: str, default: int) -> int:
    """Reads a duration (see ``parse_time``) from the environment."""
    raw = os.environ.get(key)
    if not raw:
        return default
    try:
        return parse_time(raw)
    except ValueError:
        logger.warning(f"Invalid value for {key}: {raw!r}. Using default {default}.")
        return default


def check_callback_url(url: str) -> None:
    """Rejects callback URLs that could never be requested.

    Raises:
        ConfigurationError: If the URL does not parse or is not http(s).
    """
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL as e:
        raise ConfigurationError(f"invalid callback url: {e}") from e
    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise ConfigurationError(f"invalid callback url: {url!r}")


@dataclass(frozen=True)
class SyncTarget:
    """What to sync, and where.

    Attributes:
        repo (str): The remote repository URL.
        dest (Path | None): The local directory kept in sync with the remote.
        branch (str): The branch to clone and pull.
        rev (str): The revision the working tree is hard-reset to.
        depth (int): Shallow clone depth. 0 clones the full history.
        permissions (int): Mode applied recursively after each sync
            (e.g. ``0o744``). 0 leaves permissions untouched.
        callback_url (str): URL fetched after each successful sync. Empty
            disables the callback.
    """

    repo: str
    dest: Path | None
    branch: str = DEFAULT_BRANCH
    rev: str = DEFAULT_REV
    depth: int = 0
    permissions: int = 0
    callback_url: str = ""


@dataclass(frozen=True)
class SyncConfig:
    """Process-wide settings, built once at startup.

    Attributes:
        target (SyncTarget): The repository and destination to sync.
        wait (int): Seconds to sleep between iterations.
        one_time (bool): Exit after the first iteration.
        username (str): Username primed into the git credential cache.
        password (str): Password primed into the git credential cache.
        verbosity (int): Log verbosity. 2 and above enables debug output.
        log_file (Path | None): Optional rotating log file.
    """

    target: SyncTarget
    wait: int = DEFAULT_WAIT
    one_time: bool = False
    username: str = ""
    password: str = field(default="", repr=False)
    verbosity: int = 0
    log_file: Path | None = None

    @property
    def has_credentials(self) -> bool:
        """True when both a username and a password were supplied."""
        return bool(self.username and self.password)

    def validate(self) -> None:
        """Checks the settings that must hold before the loop may start.

        Raises:
            ConfigurationError: If the repository or destination is missing,
                a numeric setting is out of range, or the callback URL is
                malformed.
        """
        missing = []
        if not self.target.repo:
            missing.append("repo")
        if self.target.dest is None:
            missing.append("dest")
        if missing:
            raise ConfigurationError(
                f"missing required setting(s): {', '.join(missing)}"
            )
        if self.wait < 0:
            raise ConfigurationError(f"wait must not be negative, got {self.wait}")
        if self.target.depth < 0:
            raise ConfigurationError(
                f"depth must not be negative, got {self.target.depth}"
            )
        if self.target.callback_url:
            check_callback_url(self.target.callback_url)
