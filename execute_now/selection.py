"""
Execute Now - Selection State.

The caller's current selection, as shown by the "N selected"
counter of the list pages. It is cleared after a request was
sent and kept as-is after a rejection so it can be adjusted.
"""

import logging
from typing import Iterable, List, Tuple

from .types import MonitoredObject


logger = logging.getLogger(__name__)


class SelectionState:
    """Ordered set of selected objects."""

    def __init__(self, objects: Iterable[MonitoredObject] = ()):
        self._objects: List[MonitoredObject] = []
        self.select(*objects)

    def select(self, *objects: MonitoredObject) -> None:
        """Add objects, ignoring ones already selected."""
        for obj in objects:
            if obj.object_id not in self:
                self._objects.append(obj)

    def deselect(self, *objects: MonitoredObject) -> None:
        ids = {obj.object_id for obj in objects}
        self._objects = [obj for obj in self._objects if obj.object_id not in ids]

    def clear(self) -> None:
        logger.debug(f"Clearing selection of {len(self._objects)} objects")
        self._objects = []

    @property
    def objects(self) -> Tuple[MonitoredObject, ...]:
        """Immutable snapshot of the selection."""
        return tuple(self._objects)

    @property
    def count(self) -> int:
        return len(self._objects)

    @property
    def label(self) -> str:
        """Counter text, e.g. "2 selected"."""
        return f"{self.count} selected"

    def __len__(self) -> int:
        return len(self._objects)

    def __contains__(self, object_id: str) -> bool:
        return any(obj.object_id == object_id for obj in self._objects)

    def __iter__(self):
        return iter(self.objects)
