# nicemask/src/nicemask/mask_editor/history.py

from __future__ import annotations

from typing import List

from nicemask.mask_editor.surface import MaskSnapshot, RasterSurface
from nicemask.utils.logging import get_logger

logger = get_logger(__name__)


class MaskHistory:
    """Undo/redo stack of full mask snapshots.

    ``history[0]`` is the pristine empty buffer taken at session start and is
    never evicted. ``0 <= index < len(history)`` always holds.
    """

    def __init__(self, surface: RasterSurface) -> None:
        self._surface = surface
        self._snapshots: List[MaskSnapshot] = [surface.snapshot()]
        self._index: int = 0

    def __len__(self) -> int:
        return len(self._snapshots)

    @property
    def index(self) -> int:
        return self._index

    @property
    def can_undo(self) -> bool:
        return self._index > 0

    @property
    def can_redo(self) -> bool:
        return self._index < len(self._snapshots) - 1

    def current(self) -> MaskSnapshot:
        return self._snapshots[self._index]

    def commit(self, snapshot: MaskSnapshot | None = None) -> None:
        """Append a snapshot after the current index, dropping any redo entries."""
        if snapshot is None:
            snapshot = self._surface.snapshot()
        dropped = len(self._snapshots) - 1 - self._index
        self._snapshots = self._snapshots[: self._index + 1] + [snapshot]
        self._index = len(self._snapshots) - 1
        logger.debug(f"commit: index={self._index} len={len(self._snapshots)} dropped={dropped}")

    def undo(self) -> bool:
        if not self.can_undo:
            return False
        self._index -= 1
        self._surface.restore(self._snapshots[self._index])
        logger.debug(f"undo: index={self._index}")
        return True

    def redo(self) -> bool:
        if not self.can_redo:
            return False
        self._index += 1
        self._surface.restore(self._snapshots[self._index])
        logger.debug(f"redo: index={self._index}")
        return True

    def reset(self) -> None:
        """Collapse to the initial empty snapshot and restore it."""
        self._snapshots = [self._snapshots[0]]
        self._index = 0
        self._surface.restore(self._snapshots[0])
        logger.debug("reset: history collapsed to initial snapshot")
