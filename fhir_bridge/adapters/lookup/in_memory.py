"""In-memory entity store.

Dictionary-backed implementation of EntityStorePort, used for embedding the
translators in a process that already holds its entities, and in tests.
"""

import logging
import threading
from typing import Iterable, Optional, TypeVar

from fhir_bridge.domain.models import DomainEntity
from fhir_bridge.domain.ports import EntityStorePort, LookupPortError

logger = logging.getLogger(__name__)

E = TypeVar('E', bound=DomainEntity)


class InMemoryEntityStore(EntityStorePort[E]):
    """Thread-safe dictionary store keyed by entity uuid.

    Parameters:
        entities: Optional entities to seed the store with
        name: Store name used in log and error messages

    Example Usage:
        ```python
        patients = InMemoryEntityStore([patient], name="patient")
        patients.get(patient.uuid)   # -> patient
        patients.get("unknown")      # -> None
        ```
    """

    def __init__(self, entities: Optional[Iterable[E]] = None, name: str = "entity"):
        self.name = name
        self._entities: dict[str, E] = {}
        self._lock = threading.Lock()

        for entity in entities or ():
            self.create(entity)

    def get(self, identifier: str) -> Optional[E]:
        with self._lock:
            return self._entities.get(identifier)

    def create(self, entity: E) -> E:
        with self._lock:
            if entity.uuid in self._entities:
                raise LookupPortError(
                    f"{self.name} {entity.uuid} already exists",
                    operation="create",
                    details={"uuid": entity.uuid},
                )
            self._entities[entity.uuid] = entity
        logger.debug(f"Created {self.name} {entity.uuid}")
        return entity

    def update(self, entity: E) -> E:
        with self._lock:
            if entity.uuid not in self._entities:
                raise LookupPortError(
                    f"{self.name} {entity.uuid} does not exist",
                    operation="update",
                    details={"uuid": entity.uuid},
                )
            self._entities[entity.uuid] = entity
        logger.debug(f"Updated {self.name} {entity.uuid}")
        return entity

    def __len__(self) -> int:
        with self._lock:
            return len(self._entities)

    def __contains__(self, identifier: object) -> bool:
        with self._lock:
            return identifier in self._entities

    def __repr__(self) -> str:
        return f"InMemoryEntityStore(name={self.name!r}, size={len(self)})"
