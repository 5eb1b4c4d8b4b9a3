import os
import fcntl
import json
import time
import logging
from typing import Optional, Dict

logger = logging.getLogger(__name__)

LOCK_FILE_PATH = "rescore.lock"


class PipelineController:
    """
    Exclusive lock for fleet rescoring runs, held through a lock file.

    The CLI ('cli') and the web server ('web') both take this lock so two
    fleet runs never overlap.
    """
    def __init__(self, lock_file: str = LOCK_FILE_PATH):
        self.lock_file = lock_file
        self.file_handle = None

    def acquire_lock(self, source: str, metadata: Optional[Dict] = None) -> bool:
        """
        Try to take the lock without blocking.

        Args:
            source: Who is taking the lock ('cli' or 'web')
            metadata: Extra owner details written to the lock file

        Returns:
            True if the lock was acquired.
        """
        if self.file_handle is None:
            self.file_handle = open(self.lock_file, "a+")
        try:
            fcntl.flock(self.file_handle, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            return False

        self.file_handle.truncate(0)
        self.file_handle.seek(0)
        json.dump({"source": source, "pid": os.getpid(), "timestamp": time.time(), **(metadata or {})}, self.file_handle)
        self.file_handle.flush()
        return True

    def release_lock(self) -> None:
        if self.file_handle is None:
            return
        try:
            self.file_handle.truncate(0)
            fcntl.flock(self.file_handle, fcntl.LOCK_UN)
        except OSError as e:
            logger.error(f"Error releasing rescore lock: {e}")
        finally:
            self.file_handle.close()
            self.file_handle = None

    def get_lock_info(self) -> Optional[Dict]:
        """Owner details of the current lock, or None if unlocked or unreadable."""
        if not os.path.exists(self.lock_file):
            return None
        try:
            with open(self.lock_file, "r") as f:
                content = f.read().strip()
            return json.loads(content) if content else None
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read lock info: {e}")
            return None
