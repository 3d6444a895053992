import logging
from typing import Any, Iterator

import pytest

from git_sync.constants import (
    APP_NAME,
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
)

ENV_VARS = [
    ENV_REPO,
    ENV_BRANCH,
    ENV_REV,
    ENV_DEST,
    ENV_WAIT,
    ENV_ONE_TIME,
    ENV_DEPTH,
    ENV_USERNAME,
    ENV_PASSWORD,
    ENV_PERMISSIONS,
    ENV_CALLBACK_URL,
    ENV_VERBOSITY,
    ENV_LOG_FILE,
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensures no GIT_SYNC_* variable from the host leaks into a test."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def reset_logger() -> Iterator[Any]:
    """Removes handlers installed by setup_logging during a test."""
    logger = logging.getLogger(APP_NAME)
    handlers = list(logger.handlers)
    level = logger.level
    yield
    for handler in logger.handlers[:]:
        if handler not in handlers:
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(level)
