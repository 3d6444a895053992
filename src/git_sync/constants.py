"""Global constants and default values for git-sync.

This module defines the application identity, the defaults applied when
neither a flag nor an environment variable is set, and the environment
variable names that can override each command-line flag.
"""

# --- Identity ---
APP_NAME = "git-sync"
"""str: The human-readable application name, also used as the logger name."""

GIT_BINARY = "git"
"""str: The version-control executable every sync step shells out to."""

# --- Loop Defaults ---
DEFAULT_WAIT = 300
"""int: Seconds to sleep between two sync iterations."""

ERROR_LIMIT = 5
"""int: Consecutive failures tolerated before the process gives up."""

DEFAULT_BRANCH = "master"
"""str: Branch cloned and pulled when none is configured."""

DEFAULT_REV = "HEAD"
"""str: Revision the working tree is reset to after each pull."""

CALLBACK_TIMEOUT = 30.0
"""float: Seconds to wait for the callback endpoint to answer."""

# --- Logging ---
LOG_FORMAT = "[%(asctime)s] %(levelname)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
MAX_LOG_SIZE = 5 * 1024 * 1024
LOG_BACKUP_COUNT = 5

# --- Environment Overrides ---
ENV_REPO = "GIT_SYNC_REPO"
ENV_BRANCH = "GIT_SYNC_BRANCH"
ENV_REV = "GIT_SYNC_REV"
ENV_DEST = "GIT_SYNC_DEST"
ENV_WAIT = "GIT_SYNC_WAIT"
ENV_ONE_TIME = "GIT_SYNC_ONE_TIME"
ENV_DEPTH = "GIT_SYNC_DEPTH"
ENV_USERNAME = "GIT_SYNC_USERNAME"
ENV_PASSWORD = "GIT_SYNC_PASSWORD"
ENV_PERMISSIONS = "GIT_SYNC_PERMISSIONS"
ENV_CALLBACK_URL = "CALLBACK_URL"
ENV_VERBOSITY = "GIT_SYNC_VERBOSITY"
ENV_LOG_FILE = "GIT_SYNC_LOG_FILE"

USAGE = (
    "usage: GIT_SYNC_REPO= GIT_SYNC_DEST= [GIT_SYNC_BRANCH= GIT_SYNC_WAIT= "
    "GIT_SYNC_DEPTH= GIT_SYNC_USERNAME= GIT_SYNC_PASSWORD= GIT_SYNC_ONE_TIME=] "
    "git-sync --repo GIT_REPO_URL --dest PATH "
    "[--branch --wait --username --password --depth --one-time]"
)
"""str: Short usage line printed when required configuration is missing."""
