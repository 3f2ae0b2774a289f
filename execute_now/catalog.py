"""
Execute Now - Object Catalog.

============================================================
RESPONSIBILITY
============================================================
Supplies resolved MonitoredObject records to the evaluator.

- Validates records on load (pydantic schemas)
- Rejects malformed dependency data before evaluation
- Resolves master and root master items
- Resolves selection references by id, name or list label

============================================================
PRECONDITIONS ENFORCED
============================================================
1. Object ids are unique
2. A dependent object references a known master
3. A master is always an item, never a discovery rule
4. DEPENDENT type objects have a master
5. No dependency cycles
6. Chains are at most max_dependency_depth levels deep

============================================================
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

import yaml
from pydantic import ValidationError

from .schemas import ObjectRecord
from .types import (
    CatalogError,
    MonitoredObject,
    ObjectKind,
    ObjectType,
)


logger = logging.getLogger(__name__)


LABEL_SEPARATOR = ": "


class ObjectCatalog:
    """
    Read-only catalog of items and discovery rules.

    Usage:
        catalog = ObjectCatalog.from_records(records)
        item = catalog.resolve("I1-lvl1-agent-num: I1-lvl2-dep-log")
        master = catalog.root_master_of(item)
    """

    def __init__(
        self,
        objects: Iterable[MonitoredObject],
        max_dependency_depth: int = 3,
    ):
        """
        Initialize catalog.

        Args:
            objects: Catalog objects
            max_dependency_depth: Maximum dependency levels

        Raises:
            CatalogError: If objects violate a precondition
        """
        self._objects: Dict[str, MonitoredObject] = {}
        self._max_dependency_depth = max_dependency_depth

        for obj in objects:
            if obj.object_id in self._objects:
                raise CatalogError(f"Duplicate object id: {obj.object_id}")
            self._objects[obj.object_id] = obj

        self._validate()

        logger.debug(f"ObjectCatalog loaded {len(self._objects)} objects")

    # ============================================================
    # CONSTRUCTION
    # ============================================================

    @classmethod
    def from_records(
        cls,
        records: Iterable[Dict[str, Any]],
        max_dependency_depth: int = 3,
    ) -> "ObjectCatalog":
        """
        Build catalog from raw records.

        Raises:
            CatalogError: If a record is invalid
        """
        objects = []
        for index, record in enumerate(records):
            try:
                objects.append(ObjectRecord(**record).to_object())
            except ValidationError as e:
                raise CatalogError(f"Invalid catalog record #{index}: {e}") from e
            except TypeError as e:
                raise CatalogError(f"Catalog record #{index} is not a mapping") from e
        return cls(objects, max_dependency_depth=max_dependency_depth)

    @classmethod
    def from_file(
        cls,
        path: Union[str, Path],
        max_dependency_depth: int = 3,
    ) -> "ObjectCatalog":
        """
        Build catalog from a YAML or JSON file.

        The file holds either a list of records or a mapping with
        an "objects" list.
        """
        path = Path(path)
        try:
            with open(path, "r") as f:
                if path.suffix.lower() == ".json":
                    data = json.load(f)
                else:
                    data = yaml.safe_load(f)
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise CatalogError(f"Failed to load catalog from {path}: {e}") from e

        if isinstance(data, dict):
            data = data.get("objects")
        if not isinstance(data, list):
            raise CatalogError(f"Catalog file {path} must contain a list of objects")

        return cls.from_records(data, max_dependency_depth=max_dependency_depth)

    # ============================================================
    # VALIDATION
    # ============================================================

    def _validate(self) -> None:
        for obj in self._objects.values():
            if obj.object_type == ObjectType.DEPENDENT and not obj.is_dependent:
                raise CatalogError(
                    f"Dependent object {obj.object_id} ({obj.name}) has no master"
                )
            if not obj.is_dependent:
                continue

            master = self._objects.get(obj.master_id)
            if master is None:
                raise CatalogError(
                    f"Object {obj.object_id} ({obj.name}) references "
                    f"unknown master {obj.master_id}"
                )
            if master.kind != ObjectKind.ITEM:
                raise CatalogError(
                    f"Object {obj.object_id} ({obj.name}) references "
                    f"discovery rule {master.object_id} as master"
                )

            depth = len(self._chain(obj))
            if depth > self._max_dependency_depth:
                raise CatalogError(
                    f"Object {obj.object_id} ({obj.name}) exceeds maximum "
                    f"dependency depth: {depth} > {self._max_dependency_depth}"
                )

    def _chain(self, obj: MonitoredObject) -> List[MonitoredObject]:
        """Masters of obj, nearest first."""
        chain: List[MonitoredObject] = []
        visited = {obj.object_id}
        current = obj
        while current.is_dependent:
            master = self._objects.get(current.master_id)
            if master is None:
                raise CatalogError(
                    f"Object {current.object_id} references unknown master {current.master_id}"
                )
            if master.object_id in visited:
                raise CatalogError(f"Dependency cycle detected at object {master.object_id}")
            visited.add(master.object_id)
            chain.append(master)
            current = master
        return chain

    # ============================================================
    # LOOKUP
    # ============================================================

    def __len__(self) -> int:
        return len(self._objects)

    def __contains__(self, object_id: str) -> bool:
        return object_id in self._objects

    def __iter__(self):
        return iter(self._objects.values())

    def get(self, object_id: str) -> MonitoredObject:
        """
        Get object by id.

        Raises:
            CatalogError: If the id is unknown
        """
        try:
            return self._objects[object_id]
        except KeyError:
            raise CatalogError(f"Unknown object id: {object_id}") from None

    def master_of(self, obj: MonitoredObject) -> Optional[MonitoredObject]:
        """Immediate master, or None for a top-level object."""
        if not obj.is_dependent:
            return None
        return self.get(obj.master_id)

    def root_master_of(self, obj: MonitoredObject) -> Optional[MonitoredObject]:
        """First non-dependent ancestor, or None for a top-level object."""
        chain = self._chain(obj)
        return chain[-1] if chain else None

    def dependency_depth(self, obj: MonitoredObject) -> int:
        """Number of masters above obj."""
        return len(self._chain(obj))

    def label_of(self, obj: MonitoredObject) -> str:
        """
        List label as shown in the items and discovery rule lists.

        Dependent objects are prefixed with their master's name.
        """
        master = self.master_of(obj)
        if master is None:
            return obj.name
        return f"{master.name}{LABEL_SEPARATOR}{obj.name}"

    def find_by_name(self, name: str) -> List[MonitoredObject]:
        return [obj for obj in self._objects.values() if obj.name == name]

    def resolve(self, ref: str) -> MonitoredObject:
        """
        Resolve a selection reference.

        Tried in order: object id, exact name, list label.

        Raises:
            CatalogError: If nothing or more than one object matches
        """
        if ref in self._objects:
            return self._objects[ref]

        matches = self.find_by_name(ref)
        if not matches:
            matches = [obj for obj in self._objects.values() if self.label_of(obj) == ref]

        if not matches:
            raise CatalogError(f"No object matches {ref!r}")
        if len(matches) > 1:
            ids = ", ".join(obj.object_id for obj in matches)
            raise CatalogError(f"Reference {ref!r} is ambiguous: {ids}")
        return matches[0]

    def resolve_all(self, refs: Iterable[str]) -> List[MonitoredObject]:
        return [self.resolve(ref) for ref in refs]

    def filter(
        self,
        host: Optional[str] = None,
        kind: Optional[ObjectKind] = None,
    ) -> List[MonitoredObject]:
        """Objects in a host / kind scope."""
        return [
            obj for obj in self._objects.values()
            if (host is None or obj.host == host)
            and (kind is None or obj.kind == kind)
        ]
