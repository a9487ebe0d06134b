"""DuckDB Entity Store.

This adapter implements EntityStorePort on top of DuckDB, an in-process
database. Entities are stored as JSON documents produced by pydantic and
rehydrated with the entity model on lookup, so nested entities (an
encounter's patient, a visit's location...) are stored as snapshots.

Architecture:
    - Implements EntityStorePort (Hexagonal Architecture)
    - One ``entities`` table shared by every kind, keyed by (kind, uuid)
    - Connection is established lazily on first operation
    - Backend failures are wrapped in LookupPortError; misses return None
"""

import logging
import threading
from pathlib import Path
from typing import Optional, TypeVar

import duckdb
from pydantic import ValidationError as PydanticValidationError

from fhir_bridge.domain.models import DomainEntity
from fhir_bridge.domain.ports import EntityStorePort, LookupPortError, Result
from fhir_bridge.infrastructure.config_manager import LookupConfig

logger = logging.getLogger(__name__)

E = TypeVar('E', bound=DomainEntity)


class DuckDBEntityStore(EntityStorePort[E]):
    """DuckDB implementation of EntityStorePort for one entity kind.

    Parameters:
        entity_type: Domain model class stored by this instance
        kind: Partition key in the entities table (defaults to ``entity_type.kind``)
        lookup_config: LookupConfig from configuration manager (preferred)
        db_path: Path to DuckDB database file (or ':memory:' for in-memory)
        connection: Existing connection to share; the store works on its
            own cursor of it

    Example Usage:
        ```python
        store = DuckDBEntityStore(Patient, db_path="data/entities.duckdb")
        result = store.initialize_schema()
        if result.is_success():
            store.create(patient)
            store.get(patient.uuid)
        ```
    """

    def __init__(
        self,
        entity_type: type[E],
        kind: Optional[str] = None,
        lookup_config: Optional[LookupConfig] = None,
        db_path: Optional[str] = None,
        connection: Optional[duckdb.DuckDBPyConnection] = None
    ):
        if lookup_config is not None:
            if lookup_config.backend != "duckdb":
                raise LookupPortError(
                    f"LookupConfig backend '{lookup_config.backend}' does not match DuckDB store",
                    operation="__init__"
                )
            self.db_path = lookup_config.db_path
        else:
            self.db_path = db_path or ":memory:"

        if self.db_path != ":memory:" and connection is None:
            db_path_obj = Path(self.db_path)
            if not db_path_obj.parent.exists():
                raise LookupPortError(
                    f"Database directory does not exist: {db_path_obj.parent}",
                    operation="__init__"
                )

        self.entity_type = entity_type
        self.kind = kind or entity_type.kind
        self._shared_connection = connection
        self._connection: Optional[duckdb.DuckDBPyConnection] = None
        self._initialized = False
        self._lock = threading.RLock()

    def _get_connection(self) -> duckdb.DuckDBPyConnection:
        """Get or create the DuckDB connection used by this store."""
        if self._connection is None:
            try:
                if self._shared_connection is not None:
                    self._connection = self._shared_connection.cursor()
                else:
                    self._connection = duckdb.connect(self.db_path)
                    logger.info(f"Connected to DuckDB database: {self.db_path}")
            except duckdb.Error as e:
                raise LookupPortError(
                    f"Failed to connect to DuckDB: {str(e)}",
                    operation="connect",
                    details={"db_path": self.db_path}
                )
        return self._connection

    def initialize_schema(self) -> Result[None]:
        """Create the entities table if it does not exist.

        Returns:
            Result[None]: Success or failure result
        """
        with self._lock:
            try:
                conn = self._get_connection()
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS entities (
                        kind VARCHAR NOT NULL,
                        uuid VARCHAR NOT NULL,
                        payload VARCHAR NOT NULL,
                        PRIMARY KEY (kind, uuid)
                    )
                """)
                self._initialized = True
                logger.debug(f"Entity schema ready for kind '{self.kind}'")
                return Result.success_result(None)

            except (duckdb.Error, LookupPortError) as e:
                error_msg = f"Failed to initialize schema: {str(e)}"
                logger.error(error_msg, exc_info=True)
                return Result.failure_result(
                    LookupPortError(error_msg, operation="initialize_schema"),
                    error_type="LookupPortError"
                )

    def _ensure_schema(self) -> duckdb.DuckDBPyConnection:
        if not self._initialized:
            result = self.initialize_schema()
            if result.is_failure():
                raise LookupPortError(result.error, operation="initialize_schema")
        return self._get_connection()

    def _exists(self, conn: duckdb.DuckDBPyConnection, identifier: str) -> bool:
        row = conn.execute(
            "SELECT 1 FROM entities WHERE kind = ? AND uuid = ?",
            [self.kind, identifier]
        ).fetchone()
        return row is not None

    def get(self, identifier: str) -> Optional[E]:
        with self._lock:
            conn = self._ensure_schema()
            try:
                row = conn.execute(
                    "SELECT payload FROM entities WHERE kind = ? AND uuid = ?",
                    [self.kind, identifier]
                ).fetchone()
            except duckdb.Error as e:
                raise LookupPortError(
                    f"Failed to look up {self.kind}: {str(e)}",
                    operation="get",
                    details={"uuid": identifier}
                )

        if row is None:
            return None

        try:
            return self.entity_type.model_validate_json(row[0])
        except PydanticValidationError as e:
            raise LookupPortError(
                f"Stored {self.kind} {identifier} could not be rehydrated: {str(e)}",
                operation="get",
                details={"uuid": identifier}
            )

    def create(self, entity: E) -> E:
        with self._lock:
            conn = self._ensure_schema()
            try:
                if self._exists(conn, entity.uuid):
                    raise LookupPortError(
                        f"{self.kind} {entity.uuid} already exists",
                        operation="create",
                        details={"uuid": entity.uuid}
                    )
                conn.execute(
                    "INSERT INTO entities (kind, uuid, payload) VALUES (?, ?, ?)",
                    [self.kind, entity.uuid, entity.model_dump_json()]
                )
            except duckdb.Error as e:
                raise LookupPortError(
                    f"Failed to create {self.kind}: {str(e)}",
                    operation="create",
                    details={"uuid": entity.uuid}
                )
        return entity

    def update(self, entity: E) -> E:
        with self._lock:
            conn = self._ensure_schema()
            try:
                if not self._exists(conn, entity.uuid):
                    raise LookupPortError(
                        f"{self.kind} {entity.uuid} does not exist",
                        operation="update",
                        details={"uuid": entity.uuid}
                    )
                conn.execute(
                    "UPDATE entities SET payload = ? WHERE kind = ? AND uuid = ?",
                    [entity.model_dump_json(), self.kind, entity.uuid]
                )
            except duckdb.Error as e:
                raise LookupPortError(
                    f"Failed to update {self.kind}: {str(e)}",
                    operation="update",
                    details={"uuid": entity.uuid}
                )
        return entity

    def __len__(self) -> int:
        with self._lock:
            conn = self._ensure_schema()
            row = conn.execute(
                "SELECT COUNT(*) FROM entities WHERE kind = ?", [self.kind]
            ).fetchone()
        return int(row[0])

    def __contains__(self, identifier: object) -> bool:
        if not isinstance(identifier, str):
            return False
        with self._lock:
            return self._exists(self._ensure_schema(), identifier)

    def close(self) -> None:
        """Close the store's connection and release resources."""
        with self._lock:
            if self._connection is not None:
                try:
                    self._connection.close()
                    logger.info(f"Closed DuckDB connection for kind '{self.kind}'")
                except duckdb.Error as e:
                    logger.warning(f"Error closing connection: {str(e)}")
                finally:
                    self._connection = None
                    self._initialized = False
