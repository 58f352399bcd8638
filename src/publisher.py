"""
Publishers

After the ledger (or a context log file) changes on disk, a Publisher snapshots
it somewhere external. GitPublisher commits and pushes the file to the current
repository; NullPublisher does nothing and is used when publishing is disabled
and in tests.

Copyright (c) 2025 Steve Angelovich
Licensed under the MIT License - see LICENSE file for details.
"""

import asyncio
import logging
import subprocess
from abc import ABC, abstractmethod

import constants as const
from errors import PublishError


logger = logging.getLogger(__name__)


class Publisher(ABC):
    """Snapshot a changed file to an external system"""

    @abstractmethod
    async def commit_if_changed(self, path: str) -> bool:
        """
        Publish path if it differs from the last published version.

        Returns:
            True if something was published, False for a no-op or a failure
        """


class NullPublisher(Publisher):
    """Publishing disabled"""

    async def commit_if_changed(self, path: str) -> bool:
        logger.debug(f"Publishing disabled, skipping {path}")
        return False


class GitPublisher(Publisher):
    """
    git add / commit / push of a single file.

    Nothing staged means nothing to publish. A rejected push is retried once after
    `git pull --rebase --autostash`. Failures are logged and reported as False;
    they never propagate to the ingestion path.
    """

    def __init__(
        self,
        commit_message: str = const.PUBLISH_COMMIT_MESSAGE,
        cwd: str | None = None,
        user_name: str | None = const.GIT_USER_NAME,
        user_email: str | None = const.GIT_USER_EMAIL,
    ) -> None:
        self.commit_message = commit_message
        self.cwd = cwd or str(const.PROJECT_ROOT)
        self.user_name = user_name
        self.user_email = user_email
        # One git invocation sequence at a time
        self._lock = asyncio.Lock()

    def _git(self, *args: str) -> subprocess.CompletedProcess:
        return subprocess.run(
            ["git", *args],
            cwd=self.cwd,
            capture_output=True,
            text=True,
            check=False,
        )

    def _git_checked(self, *args: str) -> None:
        result = self._git(*args)
        if result.returncode != 0:
            raise PublishError(f"git {' '.join(args)} failed: {result.stderr.strip()}")

    def _commit_sync(self, path: str) -> bool:
        if self.user_name:
            self._git_checked("config", "user.name", self.user_name)
        if self.user_email:
            self._git_checked("config", "user.email", self.user_email)

        self._git_checked("add", path)
        if self._git("diff", "--cached", "--quiet").returncode == 0:
            logger.debug(f"No staged changes for {path}")
            return False

        self._git_checked("commit", "-m", self.commit_message)
        if self._git("push").returncode != 0:
            logger.warning("git push rejected, rebasing and retrying")
            self._git_checked("pull", "--rebase", "--autostash")
            self._git_checked("push")

        logger.info(f"Published {path}")
        return True

    async def commit_if_changed(self, path: str) -> bool:
        async with self._lock:
            try:
                return await asyncio.to_thread(self._commit_sync, path)
            except (PublishError, OSError) as e:
                logger.error(f"Publishing {path} failed: {e}", exc_info=True)
                return False


def create_publisher(commit_message: str = const.PUBLISH_COMMIT_MESSAGE) -> Publisher:
    """GitPublisher when PUBLISH_ENABLED is set, otherwise NullPublisher."""
    if const.PUBLISH_ENABLED:
        return GitPublisher(commit_message=commit_message)
    return NullPublisher()
