"""
Selection - Ordered set of selected cell ids.

Plain click replaces the selection; Ctrl/Shift click toggles one id.
The placement resolver drags the whole selection when it is non-empty.
"""


class Selection:
    """Current multi-selection of cells."""

    def __init__(self):
        self._ids: list[str] = []

    @property
    def ids(self) -> list[str]:
        return list(self._ids)

    def select(self, cell_id: str, multi: bool = False) -> None:
        """
        Select a cell.

        Args:
            cell_id: Cell to select
            multi: Toggle `cell_id` in the current selection instead of
                replacing it
        """
        if not multi:
            self._ids = [cell_id]
        elif cell_id in self._ids:
            self._ids.remove(cell_id)
        else:
            self._ids.append(cell_id)

    def deselect(self, cell_id: str) -> None:
        if cell_id in self._ids:
            self._ids.remove(cell_id)

    def clear(self) -> None:
        self._ids = []

    def __contains__(self, cell_id: object) -> bool:
        return cell_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self):
        return iter(list(self._ids))
