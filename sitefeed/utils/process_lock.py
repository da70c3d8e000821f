"""
Process Lock Utilities
======================

File lock keeping two builds from rewriting the same content cache at once.
"""

import os
import fcntl
import logging
from pathlib import Path
from typing import Optional, Union

from .exceptions import CacheError, ErrorCode

logger = logging.getLogger(__name__)


class ProcessLock:
    """File-based process lock to prevent concurrent builds."""

    def __init__(self, lock_name: str, lock_dir: Union[str, Path]):
        """
        Initialize process lock.

        Args:
            lock_name: Name for the lock file (without extension)
            lock_dir: Directory holding the lock file
        """
        self.lock_file = Path(lock_dir) / f"{lock_name}.lock"
        self.lock_fd: Optional[int] = None
        self.acquired = False

    def acquire(self) -> bool:
        """
        Acquire the lock.

        Returns:
            True if lock was acquired successfully, False if already locked
        """
        try:
            self.lock_file.parent.mkdir(parents=True, exist_ok=True)

            # Truncated only once the lock is held
            self.lock_fd = os.open(str(self.lock_file), os.O_CREAT | os.O_WRONLY)

            # Non-blocking exclusive lock
            fcntl.flock(self.lock_fd, fcntl.LOCK_EX | fcntl.LOCK_NB)

            os.ftruncate(self.lock_fd, 0)
            os.write(self.lock_fd, f"{os.getpid()}\n".encode())
            os.fsync(self.lock_fd)

            self.acquired = True
            logger.debug(f"Process lock acquired: {self.lock_file}")
            return True

        except OSError:
            if self.lock_fd is not None:
                try:
                    os.close(self.lock_fd)
                except OSError as close_error:
                    logger.debug(f"Closing lock descriptor failed: {close_error}")
                self.lock_fd = None

            existing_pid = self.holder_pid()
            if existing_pid:
                logger.warning(f"Process lock already held by PID {existing_pid}: {self.lock_file}")
            else:
                logger.warning(f"Process lock unavailable: {self.lock_file}")

            return False

    def release(self) -> None:
        """Release the lock."""
        if self.lock_fd is not None and self.acquired:
            try:
                self.lock_file.unlink(missing_ok=True)
                fcntl.flock(self.lock_fd, fcntl.LOCK_UN)
                os.close(self.lock_fd)
                logger.debug(f"Process lock released: {self.lock_file}")
            except OSError as e:
                logger.warning(f"Error releasing lock: {e}")
            finally:
                self.lock_fd = None
                self.acquired = False

    def holder_pid(self) -> Optional[int]:
        """Get PID of the process holding the lock."""
        try:
            if self.lock_file.exists():
                content = self.lock_file.read_text().strip()
                return int(content)
        except (ValueError, OSError):
            pass
        return None

    def __enter__(self):
        """Context manager entry."""
        if not self.acquire():
            pid = self.holder_pid()
            holder = f" (held by PID {pid})" if pid else ""
            raise CacheError(
                f"Could not acquire process lock: {self.lock_file}{holder}",
                cache_path=str(self.lock_file.parent),
                error_code=ErrorCode.CACHE_LOCKED,
                user_message="Another build is already using the content cache",
                recoverable=False,
            )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.release()


def build_lock(cache_dir: Union[str, Path]) -> ProcessLock:
    """Lock guarding a content cache directory for one build."""
    return ProcessLock("sitefeed-build", cache_dir)
