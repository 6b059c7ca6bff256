"""
Grid data model - Cubes, cells, groups, and the patch types that edit them.

Entities are plain dataclasses. The registry never mutates a stored cell in
place: edits go through CellPatch / GroupPatch, which build a new entity
from the old one, so views handed to the renderer stay stable.

Wire format (persisted settings) uses camelCase keys; attributes are
snake_case. to_dict() drops None fields, from_dict() ignores unknown keys.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, Optional


@dataclass(frozen=True)
class Cube:
    """Three-axis hex coordinate with x + y + z == 0."""
    x: int
    y: int
    z: int

    def __post_init__(self):
        if self.x + self.y + self.z != 0:
            raise ValueError(f"Invalid cube ({self.x}, {self.y}, {self.z}): components must sum to 0")

    def __add__(self, other: Cube) -> Cube:
        return Cube(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: Cube) -> Cube:
        return Cube(self.x - other.x, self.y - other.y, self.z - other.z)

    @property
    def key(self) -> str:
        """String key used for occupancy sets, e.g. "1,-1,0"."""
        return f"{self.x},{self.y},{self.z}"

    @classmethod
    def from_key(cls, key: str) -> Cube:
        x, y, z = (int(part) for part in key.split(","))
        return cls(x, y, z)

    def to_dict(self) -> dict[str, int]:
        return {"x": self.x, "y": self.y, "z": self.z}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Cube:
        return cls(int(data["x"]), int(data["y"]), int(data["z"]))


ORIGIN = Cube(0, 0, 0)


@dataclass(frozen=True)
class Point:
    """Pixel position (y grows downward)."""
    x: float
    y: float


class CellType(str, Enum):
    """What a cell does when activated."""
    LAUNCHER_SETTING = "launcher_setting"
    SHORTCUT = "shortcut"
    GROUP = "group"
    GROUP_BACK = "group_back"
    GROUP_CLOSE = "group_close"
    GROUP_TREE = "group_tree"
    WIDGET = "widget"

    @classmethod
    def parse(cls, value: str) -> CellType:
        # Older settings files store launch targets as "app"
        if value == "app":
            return cls.SHORTCUT
        return cls(value)


SYSTEM_CELL_TYPES = frozenset({
    CellType.LAUNCHER_SETTING,
    CellType.GROUP_BACK,
    CellType.GROUP_CLOSE,
    CellType.GROUP_TREE,
})


class InvalidPatchError(ValueError):
    """Raised when an update request names fields the entity does not have."""


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _snake(name: str) -> str:
    return "".join(f"_{c.lower()}" if c.isupper() else c for c in name)


@dataclass
class ShortcutInfo:
    """Launch payload of a shortcut cell."""
    kind: str = "file"  # file, folder, lnk, uwp, uri
    target_path: Optional[str] = None
    arguments: Optional[str] = None
    working_directory: Optional[str] = None
    aumid: Optional[str] = None
    uri: Optional[str] = None
    run_as_admin: Optional[bool] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            _camel(f.name): getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ShortcutInfo:
        known = {f.name for f in fields(cls)}
        kwargs = {_snake(k): v for k, v in data.items() if _snake(k) in known}
        return cls(**kwargs)


@dataclass
class Cell:
    """
    One hexagon on a plane.

    `group_id` is set only on GROUP cells and is the sole link from the
    spatial layer into the group hierarchy. `target`, `args` and
    `working_dir` are the legacy launch fields still honored on activation.
    """
    id: str
    type: CellType
    cube: Cube
    title: str
    icon: Optional[str] = None
    theme_color: Optional[str] = None
    shortcut: Optional[ShortcutInfo] = None
    group_id: Optional[str] = None
    target: Optional[str] = None
    args: Optional[str] = None
    working_dir: Optional[str] = None

    @property
    def is_system(self) -> bool:
        return self.type in SYSTEM_CELL_TYPES

    @property
    def launch_target(self) -> Optional[str]:
        """Path or URI this cell launches, if any."""
        if self.shortcut and self.shortcut.target_path:
            return self.shortcut.target_path
        if self.shortcut and self.shortcut.uri:
            return self.shortcut.uri
        return self.target

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "type": self.type.value,
            "cube": self.cube.to_dict(),
            "title": self.title,
        }
        for name in ("icon", "theme_color", "group_id", "target", "args", "working_dir"):
            value = getattr(self, name)
            if value is not None:
                data[_camel(name)] = value
        if self.shortcut is not None:
            data["shortcut"] = self.shortcut.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Cell:
        shortcut = data.get("shortcut")
        return cls(
            id=data["id"],
            type=CellType.parse(data["type"]),
            cube=Cube.from_dict(data["cube"]),
            title=data.get("title", ""),
            icon=data.get("icon"),
            theme_color=data.get("themeColor"),
            shortcut=ShortcutInfo.from_dict(shortcut) if shortcut else None,
            group_id=data.get("groupId"),
            target=data.get("target"),
            args=data.get("args"),
            working_dir=data.get("workingDir"),
        )


@dataclass
class Group:
    """A nested plane of cells, reached through a GROUP cell."""
    id: str
    title: str
    cells: list[str] = field(default_factory=list)
    parent_id: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id, "title": self.title, "cells": list(self.cells)}
        if self.parent_id is not None:
            data["parentId"] = self.parent_id
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Group:
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            cells=list(data.get("cells", [])),
            parent_id=data.get("parentId"),
        )


class _Unset:
    """Marker for patch fields that were not provided."""

    def __repr__(self):
        return "UNSET"

    def __bool__(self):
        return False


UNSET: Any = _Unset()


class _Patch:
    """Shared logic for entity update requests."""

    _entity: type = object
    _coercers: dict = {}

    @classmethod
    def from_dict(cls, updates: Mapping[str, Any]):
        """
        Build a patch from a loose mapping, validating every key.

        Args:
            updates: Field values keyed by attribute (snake_case) or wire
                name (camelCase)

        Raises:
            InvalidPatchError: unknown field, or an attempt to change `id`
        """
        allowed = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in updates.items():
            name = key if key in allowed else _snake(key)
            if name == "id":
                raise InvalidPatchError(f"{cls._entity.__name__} id cannot be changed")
            if name not in allowed:
                raise InvalidPatchError(f"{cls._entity.__name__} has no field '{key}'")
            coerce = cls._coercers.get(name)
            if coerce is not None and value is not None:
                value = coerce(value)
            kwargs[name] = value
        return cls(**kwargs)

    def changes(self) -> dict[str, Any]:
        """Fields explicitly set on this patch."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not UNSET
        }

    def apply(self, entity):
        """Return a copy of `entity` with the set fields replaced."""
        return replace(entity, **self.changes())

    def __bool__(self):
        return bool(self.changes())


def _coerce_cube(value):
    return value if isinstance(value, Cube) else Cube.from_dict(value)


def _coerce_shortcut(value):
    return value if isinstance(value, ShortcutInfo) else ShortcutInfo.from_dict(value)


def _coerce_type(value):
    return value if isinstance(value, CellType) else CellType.parse(value)


@dataclass
class CellPatch(_Patch):
    """Partial update of a Cell. Fields left UNSET are kept; None clears."""
    type: Any = UNSET
    cube: Any = UNSET
    title: Any = UNSET
    icon: Any = UNSET
    theme_color: Any = UNSET
    shortcut: Any = UNSET
    group_id: Any = UNSET
    target: Any = UNSET
    args: Any = UNSET
    working_dir: Any = UNSET

    _entity = Cell
    _coercers = {"cube": _coerce_cube, "shortcut": _coerce_shortcut, "type": _coerce_type}


@dataclass
class GroupPatch(_Patch):
    """Partial update of a Group's title or parent."""
    title: Any = UNSET
    parent_id: Any = UNSET

    _entity = Group
