"""
hexdeck - Composition root

Builds a ready-to-use launcher core from the user config:

  config.toml -> load_config()
              -> JsonSettingsBackend + SaveQueue
              -> GridRegistry (hydrated from settings.json)
              -> Selection, PlacementResolver, CellClickHandler,
                 GestureTracker, KeyboardController, SearchEngine

The host UI calls create_launcher() once, forwards pointer and key events
to `gestures` and `keyboard`, renders `registry`, and calls shutdown() on
exit so the last snapshot reaches disk.

Usage:
  launcher = create_launcher(actions=window_actions, launcher=process_launcher)
"""

import sys
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Optional

from loguru import logger

from .grid.interaction import CellClickHandler, GestureTracker
from .grid.keyboard import KeyBindings, KeyboardController
from .grid.placement import PlacementResolver
from .grid.registry import GridRegistry
from .grid.selection import Selection
from .search import SearchEngine
from .search.handlers import FuzzySearchHandler, PartialSearchHandler, RegexSearchHandler
from .services.persistence import JsonSettingsBackend, SaveQueue, SettingsBackend
from .services.platform import FilePicker, IconProvider, LauncherActions, ProcessLauncher
from .services.search_history import SearchHistory
from .utils.helpers import load_config


def configure_logging(level: str = "INFO") -> None:
    """Replace loguru's default sink with a stderr sink at `level`."""
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


@dataclass
class Launcher:
    """Everything the host UI talks to."""
    config: dict[str, Any]
    registry: GridRegistry
    selection: Selection
    resolver: PlacementResolver
    clicks: CellClickHandler
    gestures: GestureTracker
    keyboard: KeyboardController
    search_engine: SearchEngine
    history: SearchHistory
    save_queue: SaveQueue

    def search(self, query: str, mode: Optional[str] = None, scope: Optional[str] = None) -> list[str]:
        """
        Search cells using the appearance preferences and record the query.

        Args:
            query: The search query string
            mode: Overrides appearance.searchMode
            scope: Overrides appearance.searchScope

        Returns:
            Matching cell ids, best first
        """
        appearance = self.registry.preferences.get("appearance", {})
        mode = mode or appearance.get("searchMode")
        scope = scope or appearance.get("searchScope")

        results = self.search_engine.search_registry(self.registry, query, mode=mode, scope=scope)
        if self.history.add(query):
            self.registry.set_search_history(self.history.to_list())
        return results

    def shutdown(self, timeout: Optional[float] = 5.0) -> None:
        """Write pending settings and stop the save worker."""
        self.save_queue.close(timeout)
        logger.debug("Launcher shut down")


def _selection_sync(registry: GridRegistry, selection: Selection) -> Callable[[GridRegistry], None]:
    """Registry listener: clear on plane change, drop ids that no longer exist."""
    state = {"active": registry.active_group_id}

    def on_change(registry: GridRegistry) -> None:
        if registry.active_group_id != state["active"]:
            state["active"] = registry.active_group_id
            selection.clear()
            return
        for cell_id in selection.ids:
            if cell_id not in registry.cells:
                selection.deselect(cell_id)

    return on_change


def create_launcher(
    config: Optional[dict[str, Any]] = None,
    backend: Optional[SettingsBackend] = None,
    actions: Optional[LauncherActions] = None,
    launcher: Optional[ProcessLauncher] = None,
    prompt: Optional[Callable[[str, str], Optional[str]]] = None,
    on_search: Optional[Callable[[], None]] = None,
    picker: Optional[FilePicker] = None,
    icons: Optional[IconProvider] = None,
) -> Launcher:
    """
    Wire up the launcher core.

    Args:
        config: Already loaded config (see load_config); loaded from disk when None
        backend: Settings storage; JSON file from config when None
        actions: Window actions for system cells
        launcher: Process launcher for shortcut cells
        prompt: Text prompt used by keyboard group creation and rename
        on_search: Called when the search key binding fires
        picker: File dialog for the create-shortcut key bindings
        icons: Icon lookup for new shortcuts

    Returns:
        Launcher with the registry hydrated from stored settings
    """
    config = config if config is not None else load_config()
    configure_logging(config["logging"]["level"])
    grid_cfg = config["grid"]
    search_cfg = config["search"]
    persistence_cfg = config["persistence"]

    if backend is None:
        backend = JsonSettingsBackend(persistence_cfg.get("settings_path") or None)
    save_queue = SaveQueue(backend, delay=persistence_cfg["save_delay_ms"] / 1000)

    registry = GridRegistry(persist=save_queue.submit)
    settings = backend.load_settings()
    if settings:
        registry.load_from_settings(settings)
    else:
        # First run: seed search preferences from the config file
        registry.preferences["appearance"]["searchMode"] = search_cfg["mode"]
        registry.preferences["appearance"]["searchScope"] = search_cfg["scope"]
        registry.preferences["grid"]["hexSize"] = grid_cfg["hex_size"]

    hex_size = registry.preferences["grid"].get("hexSize", grid_cfg["hex_size"])

    selection = Selection()
    registry.connect(_selection_sync(registry, selection))

    resolver = PlacementResolver(registry, selection, hex_size=hex_size)
    clicks = CellClickHandler(registry, selection, actions=actions, launcher=launcher, hex_size=hex_size)
    gestures = GestureTracker(registry, selection, resolver, clicks, threshold=grid_cfg["drag_threshold"])
    keyboard = KeyboardController(
        registry,
        selection,
        bindings=KeyBindings.from_dict(registry.preferences.get("keyBindings")),
        prompt=prompt,
        on_search=on_search,
        picker=picker,
        icons=icons,
    )

    search_engine = SearchEngine(
        handlers=[
            FuzzySearchHandler(threshold=search_cfg["fuzzy_threshold"]),
            PartialSearchHandler(),
            RegexSearchHandler(),
        ],
        default_mode=search_cfg["mode"],
    )
    history = SearchHistory(max_items=search_cfg["history_size"], items=registry.search_history)

    logger.debug(f"Launcher ready: {len(registry.cells)} cells, {len(registry.groups)} groups")
    return Launcher(
        config=config,
        registry=registry,
        selection=selection,
        resolver=resolver,
        clicks=clicks,
        gestures=gestures,
        keyboard=keyboard,
        search_engine=search_engine,
        history=history,
        save_queue=save_queue,
    )
