import logging
import sys
import time
from collections.abc import Callable
from dataclasses import dataclass
from logging.handlers import RotatingFileHandler
from pathlib import Path

from . import ops
from .config import SyncConfig, SyncTarget
from .constants import (
    APP_NAME,
    ERROR_LIMIT,
    LOG_BACKUP_COUNT,
    LOG_DATE_FORMAT,
    LOG_FORMAT,
    MAX_LOG_SIZE,
)
from .errors import FailureLimitExceeded, SyncStepError
from .git_wrapper import redact_url, setup_credential_cache

logger = logging.getLogger(APP_NAME)
logger.setLevel(logging.INFO)


@dataclass
class FailureCounter:
    """Tracks consecutive sync failures.

    Attributes:
        limit (int): Failures tolerated before ``exceeded`` becomes True.
        count (int): Consecutive failures so far.
    """

    limit: int = ERROR_LIMIT
    count: int = 0

    def record_success(self) -> None:
        self.count = 0

    def record_failure(self) -> None:
        self.count += 1

    @property
    def exceeded(self) -> bool:
        return self.count > self.limit


def level_for_verbosity(verbosity: int) -> int:
    """Maps a numeric verbosity (0 = quiet) to a logging level."""
    return logging.DEBUG if verbosity >= 2 else logging.INFO


def setup_logging(verbosity: int = 0, log_file: Path | None = None) -> None:
    """Configures the logging subsystem.

    Args:
        verbosity (int, optional): 2 and above enables debug output.
        log_file (Path | None, optional): If given, logs are also written to
                                          this file with rotation enabled.
    """
    formatter = logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT)
    logger.setLevel(level_for_verbosity(verbosity))

    # Always log to stderr (collected by the container runtime).
    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    if log_file:
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=MAX_LOG_SIZE,
            backupCount=LOG_BACKUP_COUNT,
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)


def run_loop(
    config: SyncConfig,
    sync: Callable[[SyncTarget], None] | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """Runs sync iterations until one-time completion or a fatal error.

    Args:
        config (SyncConfig): The process configuration.
        sync (Callable, optional): The sync operation. Defaults to
                                   ``ops.sync_repo``.
        sleep (Callable, optional): Called with ``config.wait`` between
                                    iterations. Defaults to ``time.sleep``.

    Returns:
        int: The number of iterations run. Only returned in one-time mode.

    Raises:
        FailureLimitExceeded: If more than ``ERROR_LIMIT`` consecutive
            iterations fail.
    """
    sync = sync or ops.sync_repo
    counter = FailureCounter()
    iterations = 0

    while True:
        iterations += 1
        try:
            sync(config.target)
        except SyncStepError as e:
            counter.record_failure()
            logger.error(f"SYNC ERROR ({counter.count}/{counter.limit}): {e}")
        else:
            counter.record_success()
            logger.info(
                f"SUCCESS: {config.target.dest} synced to {config.target.rev}."
            )

        if counter.exceeded:
            raise FailureLimitExceeded(counter.limit)

        if config.one_time:
            return iterations

        logger.debug(f"Waiting {config.wait} seconds.")
        sleep(config.wait)


def main(config: SyncConfig) -> int:
    """Sets up logging and credentials, then enters the sync loop.

    Args:
        config (SyncConfig): A validated configuration.

    Returns:
        int: The number of iterations run (one-time mode only).

    Raises:
        CredentialSetupError: If the credential cache cannot be primed.
        FailureLimitExceeded: If the loop gives up.
    """
    setup_logging(config.verbosity, config.log_file)
    target = config.target
    logger.info(f"Syncing {redact_url(target.repo)} to {target.dest}")

    if config.has_credentials:
        setup_credential_cache(target.repo, config.username, config.password)

    return run_loop(config)
