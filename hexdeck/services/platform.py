"""
Platform interfaces - What the grid core needs from the outside world.

The core never touches the filesystem or process table itself. The host
application supplies objects matching these protocols; tests use mocks.
"""

from typing import Any, Optional, Protocol


class ProcessLauncher(Protocol):
    """Starts programs for shortcut cells."""

    def launch_process(self, path: str, args: Optional[str] = None, cwd: Optional[str] = None) -> None:
        ...


class IconProvider(Protocol):
    def get_file_icon(self, path: str) -> Optional[str]:
        ...


class FilePicker(Protocol):
    def pick_file(self, options: dict[str, Any]) -> Optional[str]:
        ...


class LauncherActions(Protocol):
    """Window-level actions triggered by system cells."""

    def open_settings(self) -> None:
        ...

    def open_tree(self) -> None:
        ...

    def hide_window(self) -> None:
        ...
