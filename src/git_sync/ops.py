import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import httpx

from .config import SyncTarget
from .constants import APP_NAME, CALLBACK_TIMEOUT
from .errors import CommandError, SyncStepError
from .git_wrapper import GitRepo, redact_url

logger = logging.getLogger(APP_NAME)


@contextmanager
def step(name: str) -> Iterator[None]:
    """Tags any failure raised inside the block with the sync step it belongs to.

    Command failures, filesystem errors, HTTP transport errors and
    unparsable callback URLs are re-raised as ``SyncStepError`` so the loop
    can count them.

    Args:
        name (str): The step name (e.g. 'clone', 'pull').
    """
    try:
        yield
    except SyncStepError:
        raise
    except (CommandError, OSError, httpx.HTTPError, httpx.InvalidURL) as e:
        raise SyncStepError(name, str(e)) from e


def apply_permissions(root: Path, mode: int) -> None:
    """Recursively applies ``mode`` to ``root`` and everything below it.

    Entries are changed bottom-up so that a mode lacking the owner execute
    bit does not prevent the walk from reaching nested directories.
    Symbolic links are not followed.

    Args:
        root (Path): The top of the tree.
        mode (int): The permission bits (e.g. ``0o744``).

    Raises:
        OSError: If any entry cannot be changed.
    """
    for dirpath, dirnames, filenames in os.walk(root, topdown=False, onerror=_raise):
        for name in filenames + dirnames:
            entry = os.path.join(dirpath, name)
            if not os.path.islink(entry):
                os.chmod(entry, mode)
    os.chmod(root, mode)


def _raise(error: OSError) -> None:
    raise error


def notify_callback(url: str, client: httpx.Client | None = None) -> None:
    """Issues a GET request to the callback URL.

    Args:
        url (str): The endpoint to notify.
        client (httpx.Client | None, optional): Client to send the request
            with. A short-lived client is created when omitted.

    Raises:
        SyncStepError: If the endpoint answers outside the 2xx range.
        httpx.HTTPError: On transport failures.
        httpx.InvalidURL: If the URL cannot be parsed.
    """
    logger.debug(f"GET {redact_url(url)}")
    if client is None:
        with httpx.Client(timeout=CALLBACK_TIMEOUT) as own_client:
            response = own_client.get(url)
    else:
        response = client.get(url)

    if not response.is_success:
        raise SyncStepError(
            "callback",
            f"request to {redact_url(url)} failed with status code "
            f"{response.status_code}",
        )
    logger.info(f"Callback {redact_url(url)} called successfully.")


def sync_repo(target: SyncTarget, client: httpx.Client | None = None) -> None:
    """Brings the destination directory in line with the remote branch.

    Steps (each failure aborts the remaining steps):
    1. Clone without checkout if the destination has no git metadata yet.
    2. Point 'origin' at the configured URL.
    3. Pull the branch.
    4. Hard-reset the working tree to the configured revision.
    5. Apply the permission mode, if one is configured.
    6. Notify the callback URL, if one is configured.

    A failed callback still fails the sync, although the checkout has
    already been updated by then.

    Args:
        target (SyncTarget): What to sync and where.
        client (httpx.Client | None, optional): HTTP client for the callback.

    Raises:
        SyncStepError: If any step fails.
    """
    dest = target.dest
    if dest is None:
        raise SyncStepError("check", "no destination configured")

    with step("check"):
        present = GitRepo.exists(dest)

    if present:
        repo = GitRepo(dest)
    else:
        with step("clone"):
            repo = GitRepo.clone(target.repo, dest, target.branch, target.depth)

    with step("remote"):
        output = repo.set_remote_url(target.repo)
    logger.debug(f"set remote-url to {redact_url(target.repo)}: {output.strip()}")

    with step("pull"):
        output = repo.pull(target.branch)
    logger.debug(f"pull {target.branch!r}: {output.strip()}")

    with step("reset"):
        output = repo.reset_hard(target.rev)
    logger.debug(f"reset {target.rev!r}: {output.strip()}")

    if target.permissions:
        with step("chmod"):
            apply_permissions(dest, target.permissions)
        logger.debug(f"chmod {target.permissions:o} {dest}")

    if target.callback_url:
        with step("callback"):
            notify_callback(target.callback_url, client)
