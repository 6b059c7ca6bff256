"""
Settings Persistence - Store the grid as one JSON settings document.

The registry hands a full settings snapshot to SaveQueue.submit() after
every mutation. The queue writes on a background thread:

  - only the newest snapshot is written (last write wins)
  - bursts of mutations within `delay` seconds collapse into one write
  - a failed write is logged and dropped; the next snapshot retries
    naturally

JsonSettingsBackend writes atomically: the document goes to a .tmp sibling
first and is then renamed over the real file.
"""

import json
import os
import threading
import time
from pathlib import Path
from typing import Any, Optional, Protocol, Union

from loguru import logger

from ..utils.helpers import default_settings_path


class SettingsBackend(Protocol):
    """Where the settings document lives."""

    def load_settings(self) -> Optional[dict[str, Any]]:
        ...

    def save_settings(self, settings: dict[str, Any]) -> None:
        ...


class JsonSettingsBackend:
    """
    Settings stored as a JSON file.

    Args:
        path: Settings file, defaults to $XDG_CONFIG_HOME/hexdeck/settings.json
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path else default_settings_path()

    def load_settings(self) -> Optional[dict[str, Any]]:
        """
        Read the settings document.

        Returns:
            The parsed settings, or None if the file is missing or unreadable
        """
        if not self.path.exists():
            logger.info(f"Settings file not found at {self.path}, starting empty")
            return None

        try:
            with open(self.path) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not load settings from {self.path}: {e}")
            return None

        if not isinstance(data, dict):
            logger.warning(f"Settings file {self.path} does not hold an object, ignoring it")
            return None
        return data

    def save_settings(self, settings: dict[str, Any]) -> None:
        """
        Write the settings document atomically.

        Raises:
            OSError: directory or file not writable
            TypeError: settings not JSON serializable
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")

        try:
            with open(tmp_path, "w") as f:
                json.dump(settings, f, indent=2)
            os.replace(tmp_path, self.path)
        except Exception:
            tmp_path.unlink(missing_ok=True)
            raise
        logger.debug(f"Saved settings to {self.path}")


class SaveQueue:
    """
    Fire-and-forget writer with last-write-wins coalescing.

    Args:
        backend: Target SettingsBackend
        delay: Seconds to wait after the first pending snapshot before
            writing, so that bursts collapse into one write

    Usage:
        queue = SaveQueue(JsonSettingsBackend())
        registry = GridRegistry(persist=queue.submit)
        ...
        queue.close()
    """

    def __init__(self, backend: SettingsBackend, delay: float = 0.05):
        self.backend = backend
        self.delay = delay
        self.writes = 0     # successful writes
        self.failures = 0   # writes that raised

        self._cond = threading.Condition()
        self._snapshot: Optional[dict[str, Any]] = None
        self._writing = False
        self._closed = False

        self._thread = threading.Thread(target=self._run, name="hexdeck-save", daemon=True)
        self._thread.start()

    @property
    def pending(self) -> bool:
        """True while a snapshot is waiting or being written."""
        with self._cond:
            return self._snapshot is not None or self._writing

    def submit(self, settings: dict[str, Any]) -> None:
        """Queue a snapshot, replacing any snapshot not yet written."""
        with self._cond:
            if self._closed:
                logger.warning("SaveQueue is closed, dropping settings snapshot")
                return
            self._snapshot = settings
            self._cond.notify_all()

    def flush(self, timeout: Optional[float] = None) -> bool:
        """
        Block until nothing is pending.

        Returns:
            False if the timeout expired first
        """
        with self._cond:
            return self._cond.wait_for(
                lambda: self._snapshot is None and not self._writing,
                timeout,
            )

    def close(self, timeout: Optional[float] = None) -> None:
        """Write whatever is pending, then stop the worker."""
        self.flush(timeout)
        with self._cond:
            self._closed = True
            self._cond.notify_all()
        self._thread.join(timeout)

    def _run(self) -> None:
        while True:
            with self._cond:
                self._cond.wait_for(lambda: self._snapshot is not None or self._closed)
                if self._snapshot is None:
                    return
                closing = self._closed

            if self.delay and not closing:
                time.sleep(self.delay)

            with self._cond:
                snapshot, self._snapshot = self._snapshot, None
                self._writing = True

            try:
                self.backend.save_settings(snapshot)
                self.writes += 1
            except Exception:
                self.failures += 1
                logger.exception("Failed to save settings")
            finally:
                with self._cond:
                    self._writing = False
                    self._cond.notify_all()
